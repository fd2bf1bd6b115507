"""Stream resolution use case."""

from __future__ import annotations

import structlog

from nanuri_proxy.domain.entities.portal import StreamDescriptor, ValidationError
from nanuri_proxy.domain.ports import StreamResolverPort

log = structlog.get_logger(__name__)


class ResolveStreamUseCase:
    """Resolves a detail reference taken from a search record."""

    def __init__(self, resolver: StreamResolverPort) -> None:
        self._resolver = resolver

    async def execute(self, detail_reference: str) -> StreamDescriptor:
        reference = (detail_reference or "").strip()
        if not reference:
            raise ValidationError("detailReference required")

        descriptor = await self._resolver.resolve_stream(reference)
        log.info(
            "stream_resolved",
            detail_page=descriptor.resolved_from,
            stream_url=descriptor.stream_url,
        )
        return descriptor
