"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

from .schema import DEFAULT_USER_AGENT

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "nanuri-proxy",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "user_agent": DEFAULT_USER_AGENT,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cors_allow_origins": ["*"],
    "portal": {
        "origin": "https://nanuri.ktv.go.kr",
        "login_page_url": "https://nanuri.ktv.go.kr/member/login.do",
        "login_url": "https://nanuri.ktv.go.kr/member/doLogin.do",
        "login_id_field": "userId",
        "login_pw_field": "password",
        "search_url": "https://nanuri.ktv.go.kr/search/searchResultMain.do",
        "stream_origin": "https://play.g.ktv.go.kr:4433",
        "image_host": "nps.ktv.go.kr",
    },
    "search": {
        "default_max_pages": 5,
        "default_page_size": 30,
        "debug_dump_dir": None,
    },
}
