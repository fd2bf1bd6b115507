"""Domain entities for the nanuri portal proxy.

Pure value objects and the error taxonomy. No framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class SearchRecord:
    """One catalog hit from the portal search list.

    ``detail_reference`` is the argument of the upstream ``fn_detail(...)``
    handler, not a URL. Only the detail resolver knows how to fetch it.
    """

    title: str
    detail_reference: str
    thumbnail: str | None = None


@dataclass(frozen=True)
class PageWindow:
    """Pagination cursor for a single search page request."""

    page_index: int
    page_size: int


@dataclass(frozen=True)
class SearchOutcome:
    """Search result list plus the optional page-1 diagnostic snapshot."""

    items: list[SearchRecord]
    debug: dict[str, Any] | None = None


@dataclass(frozen=True)
class StreamDescriptor:
    """Playable stream resolved from a detail page."""

    stream_url: str
    resolved_from: str
    resolved_at: datetime
    thumbnail: str | None = None


@dataclass(frozen=True)
class AuthStatus:
    """Session presence and configuration completeness (no login triggered)."""

    logged_in: bool
    has_username: bool
    has_password: bool
    has_login_url: bool


class PortalError(Exception):
    """Base error for portal proxy domain/usecases."""


class ValidationError(PortalError):
    """Bad caller input. Never retried."""


class AuthError(PortalError):
    """Login could not establish a session."""


class TransportError(PortalError):
    """Network-level failure talking to the upstream."""


class UpstreamFetchError(PortalError):
    """Every detail-page candidate failed at the transport/status level."""

    def __init__(self, message: str, *, status: int | None, tried: list[str]) -> None:
        super().__init__(message)
        self.status = status
        self.tried = tried


class StreamNotFoundError(PortalError):
    """Detail page fetched, but no stream extraction stage matched.

    Carries whatever was recovered so callers can still report it.
    """

    def __init__(
        self,
        message: str,
        *,
        resolved_from: str,
        resolved_at: datetime,
        thumbnail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.resolved_from = resolved_from
        self.resolved_at = resolved_at
        self.thumbnail = thumbnail
