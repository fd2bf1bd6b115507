"""Fallback-chain extraction for portal detail pages.

Each stage is a pure ``text -> str | None`` function. Chains are ordered
lists of named stages, tried in priority order until one returns a value.
A stage that does not match returns ``None``; only an exhausted chain is
an error, and raising it is the caller's decision.

Host-specific stages take the host as a keyword argument with the live
portal as default, so every stage is usable on its own against fixture
HTML.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Generic, TypeVar
from urllib.parse import urlparse

T = TypeVar("T")

DEFAULT_STREAM_ORIGIN = "https://play.g.ktv.go.kr:4433"
DEFAULT_IMAGE_HOST = "nps.ktv.go.kr"

# One URL path character: anything but quotes, whitespace and JS escapes.
_PATH_CHARS = r"""[^"'\s\\]"""

_VOD_URL_ENCODED_RE = re.compile(
    r"""vodUrl_m\s*:\s*encodeURI\(\s*(["'])(.+?)\1\s*\)""", re.IGNORECASE
)
_VOD_URL_PLAIN_RE = re.compile(r"""vodUrl_m\s*:\s*(["'])(.+?)\1""", re.IGNORECASE)
_VOD_PROXY_RE = re.compile(rf"/vod-proxy/{_PATH_CHARS}+?playlist\.m3u8")
_POST_IMAGE_RE = re.compile(r"""postImageUrl\s*:\s*['"]([^'"]+)['"]""", re.IGNORECASE)


@dataclass(frozen=True)
class Extractor(Generic[T]):
    """A named extraction stage."""

    name: str
    extract: Callable[[T], str | None]


def first_match(
    extractors: Sequence[Extractor[T]], subject: T
) -> tuple[str, str] | None:
    """Run *extractors* in order; return ``(stage_name, value)`` of the first hit."""
    for extractor in extractors:
        value = extractor.extract(subject)
        if value:
            return extractor.name, value
    return None


def _netloc(origin: str) -> str:
    return urlparse(origin).netloc or origin


def _host_url_re(netloc: str, tail: str) -> re.Pattern[str]:
    return re.compile(
        rf"https?://{re.escape(netloc)}/{_PATH_CHARS}+{tail}", re.IGNORECASE
    )


def image_url_re(image_host: str = DEFAULT_IMAGE_HOST) -> re.Pattern[str]:
    """Catalog image pattern: ``https://<host>/.../Catalog/<digits>.jpg``."""
    return _host_url_re(image_host, r"/Catalog/\d+\.jpg")


# ---------------------------------------------------------------------------
# Stream URL stages
# ---------------------------------------------------------------------------


def direct_m3u8(
    html: str, *, stream_origin: str = DEFAULT_STREAM_ORIGIN
) -> str | None:
    """Streaming-host ``.m3u8`` URL written out in the page."""
    m = _host_url_re(_netloc(stream_origin), r"\.m3u8").search(html)
    return m.group(0) if m else None


def vod_url_encoded(html: str) -> str | None:
    """Player config ``vodUrl_m: encodeURI("...")``."""
    m = _VOD_URL_ENCODED_RE.search(html)
    return m.group(2) if m else None


def vod_url_plain(html: str) -> str | None:
    """Player config ``vodUrl_m: "..."``."""
    m = _VOD_URL_PLAIN_RE.search(html)
    return m.group(2) if m else None


def mp4_to_playlist(
    html: str, *, stream_origin: str = DEFAULT_STREAM_ORIGIN
) -> str | None:
    """Streaming-host ``.mp4`` URL mapped to its sibling ``playlist.m3u8``."""
    m = _host_url_re(_netloc(stream_origin), rf"\.mp4{_PATH_CHARS}*").search(html)
    if not m:
        return None
    mp4_url = m.group(0)
    if "playlist.m3u8" in mp4_url:
        return mp4_url
    return f"{mp4_url.rstrip('/')}/playlist.m3u8"


def vod_proxy_path(
    html: str, *, stream_origin: str = DEFAULT_STREAM_ORIGIN
) -> str | None:
    """Root-relative ``/vod-proxy/.../playlist.m3u8`` on the streaming host."""
    m = _VOD_PROXY_RE.search(html)
    return f"{stream_origin.rstrip('/')}{m.group(0)}" if m else None


def build_stream_chain(
    stream_origin: str = DEFAULT_STREAM_ORIGIN,
) -> list[Extractor[str]]:
    """Stream URL stages in priority order."""
    return [
        Extractor("direct_m3u8", partial(direct_m3u8, stream_origin=stream_origin)),
        Extractor("vod_url_encoded", vod_url_encoded),
        Extractor("vod_url_plain", vod_url_plain),
        Extractor(
            "mp4_to_playlist", partial(mp4_to_playlist, stream_origin=stream_origin)
        ),
        Extractor(
            "vod_proxy_path", partial(vod_proxy_path, stream_origin=stream_origin)
        ),
    ]


# ---------------------------------------------------------------------------
# Detail page thumbnail stages
# ---------------------------------------------------------------------------


def post_image_url(html: str) -> str | None:
    """Player config ``postImageUrl: '...'``."""
    m = _POST_IMAGE_RE.search(html)
    return m.group(1) if m else None


def catalog_image(html: str, *, image_host: str = DEFAULT_IMAGE_HOST) -> str | None:
    """Any catalog image URL on the image host."""
    m = image_url_re(image_host).search(html)
    return m.group(0) if m else None


def build_thumbnail_chain(
    image_host: str = DEFAULT_IMAGE_HOST,
) -> list[Extractor[str]]:
    """Detail page thumbnail stages in priority order."""
    return [
        Extractor("post_image_url", post_image_url),
        Extractor("catalog_image", partial(catalog_image, image_host=image_host)),
    ]
