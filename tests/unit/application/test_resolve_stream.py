"""Tests for ResolveStreamUseCase."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from nanuri_proxy.application.use_cases import ResolveStreamUseCase
from nanuri_proxy.domain.entities import (
    StreamDescriptor,
    StreamNotFoundError,
    UpstreamFetchError,
    ValidationError,
)


class TestResolveStreamUseCase:
    async def test_delegates_trimmed_reference(
        self, stream_descriptor: StreamDescriptor
    ) -> None:
        resolver = AsyncMock()
        resolver.resolve_stream = AsyncMock(return_value=stream_descriptor)

        result = await ResolveStreamUseCase(resolver).execute("  /detail.do?id=1 ")

        resolver.resolve_stream.assert_awaited_once_with("/detail.do?id=1")
        assert result is stream_descriptor

    async def test_empty_reference_rejected(self) -> None:
        resolver = AsyncMock()
        with pytest.raises(ValidationError, match="detailReference required"):
            await ResolveStreamUseCase(resolver).execute("")
        resolver.resolve_stream.assert_not_awaited()

    @pytest.mark.parametrize(
        "error",
        [
            UpstreamFetchError("detail page fetch failed", status=404, tried=["u"]),
            StreamNotFoundError(
                "m3u8 not found on detail page",
                resolved_from="u",
                resolved_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            ),
        ],
    )
    async def test_resolver_errors_propagate(self, error: Exception) -> None:
        resolver = AsyncMock()
        resolver.resolve_stream = AsyncMock(side_effect=error)
        with pytest.raises(type(error)):
            await ResolveStreamUseCase(resolver).execute("/detail.do")
