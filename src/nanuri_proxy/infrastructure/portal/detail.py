"""Detail page -> playable stream resolution."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import structlog

from nanuri_proxy.domain.entities.portal import (
    StreamDescriptor,
    StreamNotFoundError,
    TransportError,
    UpstreamFetchError,
    ValidationError,
)
from nanuri_proxy.infrastructure.config.schema import PortalConfig

from .authenticator import PortalAuthenticator
from .debug_dump import dump_html
from .extractors import build_stream_chain, build_thumbnail_chain, first_match
from .http_client import PortalHttpClient, PortalResponse
from .urls import absolute_url

log = structlog.get_logger(__name__)

# The portal serves the detail endpoint under two misspellings and links
# to both. Probably an upstream bug: if one spelling disappears, drop the pair.
_SPELLING_VARIANTS = ("selectOriganlShotDetail", "selectOrignalShotDetail")


def candidate_urls(reference: str, origin: str) -> list[str]:
    """Absolute URLs to try for *reference*, as given first."""
    first, second = _SPELLING_VARIANTS
    raw = [reference]
    if first in reference:
        raw.append(reference.replace(first, second))
    if second in reference:
        raw.append(reference.replace(second, first))

    urls: list[str] = []
    for candidate in raw:
        url = absolute_url(candidate, origin)
        if url and url not in urls:
            urls.append(url)
    return urls


class DetailResolver:
    """Fetches a detail page and runs the stream/thumbnail chains over it."""

    def __init__(
        self,
        http: PortalHttpClient,
        authenticator: PortalAuthenticator,
        config: PortalConfig,
        *,
        debug_dump_dir: Path | None = None,
    ) -> None:
        self._http = http
        self._auth = authenticator
        self._config = config
        self._debug_dump_dir = debug_dump_dir
        self._stream_chain = build_stream_chain(config.stream_origin)
        self._thumbnail_chain = build_thumbnail_chain(config.image_host)

    async def _fetch_detail(
        self, candidates: list[str]
    ) -> tuple[str, PortalResponse]:
        """First candidate answering 2xx; transport failures count as misses."""
        last_status: int | None = None
        for url in candidates:
            try:
                response = await self._http.request(
                    url, headers={"Referer": f"{self._config.origin}/"}
                )
            except TransportError:
                last_status = None
                continue
            last_status = response.status
            if response.ok:
                return url, response
            log.info("detail_candidate_rejected", url=url, status=response.status)

        log.warning("detail_fetch_failed", status=last_status, tried=candidates)
        raise UpstreamFetchError(
            "detail page fetch failed", status=last_status, tried=candidates
        )

    async def resolve_stream(self, detail_reference: str) -> StreamDescriptor:
        """Resolve a search record's detail reference to a stream.

        Raises:
            ValidationError: empty reference.
            AuthError: no session and login failed.
            UpstreamFetchError: no candidate URL answered 2xx.
            StreamNotFoundError: page fetched, no stream stage matched.
        """
        reference = (detail_reference or "").strip()
        if not reference:
            raise ValidationError("detailReference required")

        await self._auth.ensure_session()

        candidates = candidate_urls(reference, self._config.origin)
        resolved_from, response = await self._fetch_detail(candidates)
        html = response.text
        resolved_at = datetime.now(timezone.utc)
        dump_html(self._debug_dump_dir, "debug_detail.html", html)

        thumb_hit = first_match(self._thumbnail_chain, html)
        thumbnail = thumb_hit[1] if thumb_hit else None

        stream_hit = first_match(self._stream_chain, html)
        if stream_hit is None:
            log.warning("stream_not_found", detail_page=resolved_from)
            raise StreamNotFoundError(
                "m3u8 not found on detail page",
                resolved_from=resolved_from,
                resolved_at=resolved_at,
                thumbnail=thumbnail,
            )

        stage, stream_url = stream_hit
        log.info(
            "stream_extracted",
            stage=stage,
            detail_page=resolved_from,
            has_thumbnail=thumbnail is not None,
        )
        return StreamDescriptor(
            stream_url=stream_url,
            thumbnail=thumbnail,
            resolved_from=resolved_from,
            resolved_at=resolved_at,
        )
