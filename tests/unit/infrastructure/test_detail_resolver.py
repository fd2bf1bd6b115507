"""Tests for detail page fetching and stream resolution."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import respx

from nanuri_proxy.domain.entities import (
    StreamNotFoundError,
    UpstreamFetchError,
    ValidationError,
)
from nanuri_proxy.infrastructure.config.schema import PortalConfig
from nanuri_proxy.infrastructure.portal import (
    DetailResolver,
    PortalAuthenticator,
    PortalHttpClient,
    PortalSession,
    candidate_urls,
)

_ORIGIN = "https://nanuri.ktv.go.kr"
_REF = "/program/selectOriganlShotDetail.do?cntntsSn=7"
_URL_A = f"{_ORIGIN}/program/selectOriganlShotDetail.do?cntntsSn=7"
_URL_B = f"{_ORIGIN}/program/selectOrignalShotDetail.do?cntntsSn=7"
_M3U8 = "https://play.g.ktv.go.kr:4433/vod/2024/clip/playlist.m3u8"
_THUMB = "https://nps.ktv.go.kr/img/Catalog/7.jpg"

_DETAIL_PAGE = f"""
<html><body><script>
var player = {{
  vodUrl_m: encodeURI('{_M3U8}'),
  postImageUrl: '{_THUMB}'
}};
</script></body></html>
"""


@pytest.fixture()
def resolver(
    portal_http: PortalHttpClient,
    authenticator: PortalAuthenticator,
    portal_config: PortalConfig,
    session: PortalSession,
) -> DetailResolver:
    session.absorb(["JSESSIONID=existing"])
    return DetailResolver(portal_http, authenticator, portal_config)


class TestCandidateUrls:
    def test_first_spelling_adds_second(self) -> None:
        assert candidate_urls(_REF, _ORIGIN) == [_URL_A, _URL_B]

    def test_second_spelling_adds_first(self) -> None:
        ref = "/program/selectOrignalShotDetail.do?cntntsSn=7"
        assert candidate_urls(ref, _ORIGIN) == [_URL_B, _URL_A]

    def test_other_reference_is_used_as_is(self) -> None:
        assert candidate_urls("/vod/detail.do?id=1", _ORIGIN) == [
            f"{_ORIGIN}/vod/detail.do?id=1"
        ]

    def test_absolute_reference(self) -> None:
        assert candidate_urls(_URL_A, _ORIGIN) == [_URL_A, _URL_B]

    def test_relative_without_slash(self) -> None:
        assert candidate_urls("detail.do?id=1", _ORIGIN) == [
            f"{_ORIGIN}/detail.do?id=1"
        ]


class TestResolveStream:
    @respx.mock
    async def test_success(self, resolver: DetailResolver) -> None:
        route = respx.get(_URL_A).respond(200, text=_DETAIL_PAGE)

        descriptor = await resolver.resolve_stream(_REF)

        assert descriptor.stream_url == _M3U8
        assert descriptor.thumbnail == _THUMB
        assert descriptor.resolved_from == _URL_A
        assert descriptor.resolved_at.tzinfo is not None
        sent = route.calls.last.request
        assert sent.headers["referer"] == f"{_ORIGIN}/"
        assert sent.headers["cookie"] == "JSESSIONID=existing"

    @pytest.mark.parametrize("ref", ["", "  "])
    @respx.mock
    async def test_empty_reference(self, ref: str, resolver: DetailResolver) -> None:
        with pytest.raises(ValidationError):
            await resolver.resolve_stream(ref)
        assert respx.calls.call_count == 0

    @respx.mock
    async def test_falls_back_to_other_spelling(
        self, resolver: DetailResolver
    ) -> None:
        first = respx.get(_URL_A).respond(404)
        second = respx.get(_URL_B).respond(200, text=_DETAIL_PAGE)

        descriptor = await resolver.resolve_stream(_REF)

        assert first.called and second.called
        assert descriptor.resolved_from == _URL_B

    @respx.mock
    async def test_transport_failure_counts_as_miss(
        self, resolver: DetailResolver
    ) -> None:
        respx.get(_URL_A).mock(side_effect=httpx.ConnectError("refused"))
        respx.get(_URL_B).respond(200, text=_DETAIL_PAGE)

        descriptor = await resolver.resolve_stream(_REF)

        assert descriptor.resolved_from == _URL_B

    @respx.mock
    async def test_all_candidates_fail(self, resolver: DetailResolver) -> None:
        respx.get(_URL_A).respond(500)
        respx.get(_URL_B).respond(404)

        with pytest.raises(UpstreamFetchError) as exc_info:
            await resolver.resolve_stream(_REF)

        assert exc_info.value.status == 404
        assert exc_info.value.tried == [_URL_A, _URL_B]

    @respx.mock
    async def test_last_candidate_unreachable_has_no_status(
        self, resolver: DetailResolver
    ) -> None:
        respx.get(_URL_A).respond(500)
        respx.get(_URL_B).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(UpstreamFetchError) as exc_info:
            await resolver.resolve_stream(_REF)

        assert exc_info.value.status is None

    @respx.mock
    async def test_no_stream_keeps_thumbnail(self, resolver: DetailResolver) -> None:
        html = f'<img src="{_THUMB}"><p>video unavailable</p>'
        respx.get(_URL_A).respond(200, text=html)

        with pytest.raises(StreamNotFoundError) as exc_info:
            await resolver.resolve_stream(_REF)

        err = exc_info.value
        assert err.thumbnail == _THUMB
        assert err.resolved_from == _URL_A
        assert err.resolved_at.tzinfo is not None

    @respx.mock
    async def test_mp4_page_resolves_to_playlist(
        self, resolver: DetailResolver
    ) -> None:
        html = "<video src='https://play.g.ktv.go.kr:4433/vod/a.mp4'></video>"
        respx.get(_URL_A).respond(200, text=html)

        descriptor = await resolver.resolve_stream(_REF)

        assert (
            descriptor.stream_url
            == "https://play.g.ktv.go.kr:4433/vod/a.mp4/playlist.m3u8"
        )
        assert descriptor.thumbnail is None

    @respx.mock
    async def test_custom_stream_origin(
        self,
        portal_http: PortalHttpClient,
        authenticator: PortalAuthenticator,
        session: PortalSession,
    ) -> None:
        session.absorb(["JSESSIONID=existing"])
        config = PortalConfig(
            username="u", password="p", stream_origin="https://stream.test/"
        )
        resolver = DetailResolver(portal_http, authenticator, config)
        respx.get(_URL_A).respond(200, text="'/vod-proxy/z/playlist.m3u8'")

        descriptor = await resolver.resolve_stream(_REF)

        assert descriptor.stream_url == "https://stream.test/vod-proxy/z/playlist.m3u8"


class TestDebugDump:
    @respx.mock
    async def test_writes_detail_page(
        self,
        tmp_path: Path,
        portal_http: PortalHttpClient,
        authenticator: PortalAuthenticator,
        portal_config: PortalConfig,
        session: PortalSession,
    ) -> None:
        session.absorb(["JSESSIONID=existing"])
        resolver = DetailResolver(
            portal_http, authenticator, portal_config, debug_dump_dir=tmp_path
        )
        respx.get(_URL_A).respond(200, text=_DETAIL_PAGE)

        await resolver.resolve_stream(_REF)

        assert (tmp_path / "debug_detail.html").read_text(
            encoding="utf-8"
        ) == _DETAIL_PAGE
