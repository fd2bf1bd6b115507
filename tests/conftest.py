"""Shared test fixtures for the nanuri-proxy test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timezone

import httpx
import pytest

from nanuri_proxy.domain.entities import SearchRecord, StreamDescriptor
from nanuri_proxy.infrastructure.config.schema import PortalConfig
from nanuri_proxy.infrastructure.portal import (
    PortalAuthenticator,
    PortalHttpClient,
    PortalSession,
)

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def search_record() -> SearchRecord:
    return SearchRecord(
        title="국정브리핑 1회",
        detail_reference="/program/selectOriganlShotDetail.do?cntntsSn=1",
        thumbnail="https://nps.ktv.go.kr/img/Catalog/1.jpg",
    )


@pytest.fixture()
def stream_descriptor() -> StreamDescriptor:
    return StreamDescriptor(
        stream_url="https://play.g.ktv.go.kr:4433/vod-proxy/a/playlist.m3u8",
        resolved_from=(
            "https://nanuri.ktv.go.kr/program/selectOriganlShotDetail.do?cntntsSn=1"
        ),
        resolved_at=datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
        thumbnail="https://nps.ktv.go.kr/img/Catalog/1.jpg",
    )


# ---------------------------------------------------------------------------
# Portal infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def portal_config() -> PortalConfig:
    """Live portal endpoints with a configured account."""
    return PortalConfig(username="tester", password="secret")


@pytest.fixture()
def session() -> PortalSession:
    return PortalSession()


@pytest.fixture()
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
def portal_http(
    session: PortalSession, http_client: httpx.AsyncClient
) -> PortalHttpClient:
    return PortalHttpClient(
        session, user_agent="Mozilla/5.0 (test) Chrome/120", client=http_client
    )


@pytest.fixture()
def authenticator(
    portal_http: PortalHttpClient,
    session: PortalSession,
    portal_config: PortalConfig,
) -> PortalAuthenticator:
    return PortalAuthenticator(portal_http, session, portal_config)
