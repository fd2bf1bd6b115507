"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from nanuri_proxy.application.use_cases import (
    AuthStatusUseCase,
    ResolveStreamUseCase,
    SearchCatalogUseCase,
)
from nanuri_proxy.infrastructure.config.schema import AppConfig
from nanuri_proxy.infrastructure.portal import (
    DetailResolver,
    PortalAuthenticator,
    PortalHttpClient,
    PortalSearcher,
    PortalSession,
)
from nanuri_proxy.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def wire_portal(state: AppState, config: AppConfig) -> None:
    """Build the portal engine and use cases on top of ``state.http_client``."""
    portal_cfg = config.portal
    dump_dir = config.search.debug_dump_dir

    session = PortalSession()
    http = PortalHttpClient(
        session,
        user_agent=config.http_user_agent,
        client=state.http_client,
    )
    authenticator = PortalAuthenticator(http, session, portal_cfg)

    state.portal_session = session
    state.search_uc = SearchCatalogUseCase(
        PortalSearcher(http, authenticator, portal_cfg, debug_dump_dir=dump_dir),
        default_max_pages=config.search.default_max_pages,
        default_page_size=config.search.default_page_size,
    )
    state.resolve_stream_uc = ResolveStreamUseCase(
        DetailResolver(http, authenticator, portal_cfg, debug_dump_dir=dump_dir)
    )
    state.auth_status_uc = AuthStatusUseCase(
        session,
        has_username=bool(portal_cfg.username),
        has_password=bool(portal_cfg.password),
        has_login_url=bool(portal_cfg.login_url),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create shared resources on startup and close them on shutdown."""
    state = cast(AppState, app.state)
    config = state.config

    state.http_client = httpx.AsyncClient(timeout=config.http_timeout_seconds)
    wire_portal(state, config)

    missing = config.portal.missing_settings
    if missing:
        log.warning("portal_credentials_missing", missing=missing)
    log.info(
        "app_started",
        app_name=config.app_name,
        environment=config.environment,
        portal=config.portal.origin,
    )
    log.debug("config_loaded", config=config.to_sectioned_dict())

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("app_stopped")
