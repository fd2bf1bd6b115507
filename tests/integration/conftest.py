"""Shared fixtures for integration tests."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

_ENV_KEYS = (
    "NANURI_ID",
    "NANURI_PW",
    "LOGIN_URL",
    "LOGIN_ID_FIELD",
    "LOGIN_PW_FIELD",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Hide the developer's portal env vars, and drop any a .env file added."""
    for key in list(os.environ):
        if key.startswith("NANURI_PROXY_") or key in _ENV_KEYS:
            monkeypatch.delenv(key)
    yield
    for key in list(os.environ):
        if key.startswith("NANURI_PROXY_") or key in _ENV_KEYS:
            os.environ.pop(key, None)
