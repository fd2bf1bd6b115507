"""Ports for the portal search / stream resolution core."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from nanuri_proxy.domain.entities.portal import SearchOutcome, StreamDescriptor


@runtime_checkable
class PortalSearchPort(Protocol):
    """Runs a bounded, deduplicated multi-page catalog search."""

    async def search(
        self,
        keyword: str,
        max_pages: int,
        page_size: int,
        *,
        debug: bool = False,
    ) -> SearchOutcome:
        """Return at most 100 unique records for *keyword*.

        Raises ValidationError on bad input and AuthError when no session
        could be established.
        """
        ...


@runtime_checkable
class StreamResolverPort(Protocol):
    """Turns an opaque detail reference into a playable stream."""

    async def resolve_stream(self, detail_reference: str) -> StreamDescriptor:
        """Resolve *detail_reference* to a StreamDescriptor.

        Raises ValidationError, AuthError, UpstreamFetchError or
        StreamNotFoundError.
        """
        ...


class SessionStatusPort(Protocol):
    """Read-only view of the shared upstream session."""

    @property
    def is_authenticated(self) -> bool: ...
