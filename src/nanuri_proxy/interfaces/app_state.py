"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from nanuri_proxy.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from nanuri_proxy.application.use_cases import (
        AuthStatusUseCase,
        ResolveStreamUseCase,
        SearchCatalogUseCase,
    )
    from nanuri_proxy.infrastructure.portal import PortalSession


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    portal_session: PortalSession

    # Application Services
    search_uc: SearchCatalogUseCase
    resolve_stream_uc: ResolveStreamUseCase
    auth_status_uc: AuthStatusUseCase
