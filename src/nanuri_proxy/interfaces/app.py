"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.responses import Response

from nanuri_proxy.infrastructure.config import AppConfig
from nanuri_proxy.interfaces.app_state import AppState
from nanuri_proxy.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


async def _invalid_request(request: Request, exc: Exception) -> JSONResponse:
    # Malformed bodies share the 400 {"error": ...} shape of the portal routes.
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    fields = [".".join(str(p) for p in err.get("loc", ())) for err in errors]
    log.info("request_rejected", path=request.url.path, fields=fields)
    return JSONResponse(
        {"error": "invalid request", "fields": fields}, status_code=400
    )


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration only, no resource initialization.

    The HTTP client, portal session and use cases are created in lifespan().
    """
    app = FastAPI(
        title=config.app_name,
        description="Search and stream-resolution proxy for the nanuri KTV portal",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config
    app.add_exception_handler(RequestValidationError, _invalid_request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    from nanuri_proxy.interfaces.api.portal import router as portal_router

    app.include_router(portal_router)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "nanuri proxy alive"

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        """Liveness check; returns 200 as long as the process is running."""
        return {"status": "ok"}

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = getattr(locals().get("response", None), "status_code", 500)

            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
