"""Portal proxy API endpoints (search, play-url, auth-status)."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from nanuri_proxy.application.use_cases import SearchQuery
from nanuri_proxy.domain.entities.portal import (
    AuthError,
    SearchRecord,
    StreamDescriptor,
    StreamNotFoundError,
    UpstreamFetchError,
    ValidationError,
)
from nanuri_proxy.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["portal"])


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    keyword: str | None = None
    max_pages: int | None = Field(default=None, alias="maxPages")
    page_size: int | None = Field(default=None, alias="pageSize")
    debug: bool = False


class PlayUrlRequest(BaseModel):
    detail_reference: str | None = Field(
        default=None,
        validation_alias=AliasChoices("detailReference", "detailUrl"),
    )


def _is_prod(state: AppState) -> bool:
    return getattr(state.config, "environment", "dev") == "prod"


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def _server_error(state: AppState, exc: Exception) -> JSONResponse:
    if _is_prod(state):
        return _error(500, "server error")
    return _error(500, "server error", detail=str(exc))


def _format_record(record: SearchRecord) -> dict[str, str | None]:
    return {
        "title": record.title,
        "detailReference": record.detail_reference,
        "thumbnail": record.thumbnail,
    }


def _format_stream(descriptor: StreamDescriptor) -> dict[str, Any]:
    return {
        "streamUrl": descriptor.stream_url,
        "thumbnail": descriptor.thumbnail,
        "meta": {
            "detailPage": descriptor.resolved_from,
            "extractedAt": descriptor.resolved_at.isoformat(),
        },
    }


@router.post("/search")
async def search(
    request: Request, body: SearchRequest | None = None
) -> JSONResponse:
    """Multi-page catalog search (at most 100 items)."""
    state = cast(AppState, request.app.state)
    body = body or SearchRequest()
    debug = body.debug or request.query_params.get("debug") == "1"

    try:
        outcome = await state.search_uc.execute(
            SearchQuery(
                keyword=body.keyword or "",
                max_pages=body.max_pages,
                page_size=body.page_size,
                debug=debug,
            )
        )
    except ValidationError as e:
        return _error(400, str(e))
    except AuthError as e:
        log.warning("search_auth_failed", error=str(e))
        return _error(401, "login failed (check configuration)")
    except Exception as e:
        log.exception("search_unhandled_error", keyword=body.keyword)
        return _server_error(state, e)

    payload: dict[str, Any] = {"items": [_format_record(r) for r in outcome.items]}
    if debug and outcome.debug is not None:
        payload["debug"] = outcome.debug
    return JSONResponse(payload)


@router.post("/play-url")
async def play_url(
    request: Request, body: PlayUrlRequest | None = None
) -> JSONResponse:
    """Resolve a detail reference to a playable m3u8 URL plus thumbnail."""
    state = cast(AppState, request.app.state)
    body = body or PlayUrlRequest()

    try:
        reference = body.detail_reference or ""
        descriptor = await state.resolve_stream_uc.execute(reference)
    except ValidationError as e:
        return _error(400, str(e))
    except AuthError as e:
        log.warning("play_url_auth_failed", error=str(e))
        return _error(401, "login failed (check configuration)")
    except UpstreamFetchError as e:
        return _error(502, "detail fetch failed", status=e.status, tried=e.tried)
    except StreamNotFoundError as e:
        return _error(
            404,
            "m3u8 not found on detail page",
            thumbnail=e.thumbnail,
            meta={
                "detailPage": e.resolved_from,
                "extractedAt": e.resolved_at.isoformat(),
            },
        )
    except Exception as e:
        log.exception(
            "play_url_unhandled_error", detail_reference=body.detail_reference
        )
        return _server_error(state, e)

    return JSONResponse(_format_stream(descriptor))


@router.get("/auth-status")
async def auth_status(request: Request) -> dict[str, Any]:
    """Session presence and configuration completeness; never logs in."""
    state = cast(AppState, request.app.state)
    status = state.auth_status_uc.execute()
    return {
        "loggedIn": status.logged_in,
        "hasConfig": {
            "username": status.has_username,
            "password": status.has_password,
            "loginUrl": status.has_login_url,
        },
    }
