"""Tests for the multi-page portal searcher."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest
import respx

from nanuri_proxy.domain.entities import AuthError, ValidationError
from nanuri_proxy.infrastructure.config.schema import PortalConfig
from nanuri_proxy.infrastructure.portal import (
    MAX_SEARCH_RESULTS,
    PortalAuthenticator,
    PortalHttpClient,
    PortalSearcher,
    PortalSession,
)

_SEARCH = "https://nanuri.ktv.go.kr/search/searchResultMain.do"


def _page(refs: list[str]) -> str:
    rows = "".join(
        f"<li><a onclick=\"fn_detail('{ref}')\">title {ref}</a></li>" for ref in refs
    )
    return f"<html><body><ul>{rows}</ul></body></html>"


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def _paged(pages: dict[int, list[str]]):
    """respx side effect answering each pageIndex from *pages*."""

    def handler(request: httpx.Request) -> httpx.Response:
        index = int(_form(request)["pageIndex"])
        return httpx.Response(200, text=_page(pages.get(index, [])))

    return handler


@pytest.fixture()
def searcher(
    portal_http: PortalHttpClient,
    authenticator: PortalAuthenticator,
    portal_config: PortalConfig,
    session: PortalSession,
) -> PortalSearcher:
    session.absorb(["JSESSIONID=existing"])
    return PortalSearcher(portal_http, authenticator, portal_config)


class TestValidation:
    @pytest.mark.parametrize("keyword", ["", "   "])
    @respx.mock
    async def test_empty_keyword(self, keyword: str, searcher: PortalSearcher) -> None:
        with pytest.raises(ValidationError, match="keyword required"):
            await searcher.search(keyword, 1, 10)
        assert respx.calls.call_count == 0

    @respx.mock
    async def test_non_positive_paging(self, searcher: PortalSearcher) -> None:
        with pytest.raises(ValidationError):
            await searcher.search("news", 0, 10)
        with pytest.raises(ValidationError):
            await searcher.search("news", 1, -1)


class TestSearchRequests:
    @respx.mock
    async def test_posts_search_form(self, searcher: PortalSearcher) -> None:
        route = respx.post(_SEARCH).respond(200, text=_page(["r1"]))

        await searcher.search("  국정 브리핑 ", 1, 30)

        sent = route.calls.last.request
        assert _form(sent) == {
            "cntntsTy": "original",
            "category": "ALL",
            "clorYn": "N",
            "koglTyYn": "N",
            "mediaTyYn": "N",
            "dwldPosblAtYn": "N",
            "baseKeyword": "국정 브리핑",
            "pageIndex": "1",
            "pageUnit": "30",
            "pageSize": "30",
        }
        assert sent.headers["origin"] == "https://nanuri.ktv.go.kr"
        assert sent.headers["referer"] == _SEARCH
        assert sent.headers["accept"].startswith("text/html")
        assert sent.headers["cookie"] == "JSESSIONID=existing"

    @respx.mock
    async def test_follows_redirect_answer(self, searcher: PortalSearcher) -> None:
        respx.post(_SEARCH).respond(
            302, headers={"Location": "/search/list.do?token=t"}
        )
        follow = respx.get("https://nanuri.ktv.go.kr/search/list.do?token=t").respond(
            200, text=_page(["r1"])
        )

        outcome = await searcher.search("news", 1, 10)

        assert [r.detail_reference for r in outcome.items] == ["r1"]
        assert follow.calls.last.request.headers["referer"] == _SEARCH

    @respx.mock
    async def test_logs_in_first_without_session(
        self,
        portal_http: PortalHttpClient,
        portal_config: PortalConfig,
    ) -> None:
        session = portal_http.session
        auth = PortalAuthenticator(portal_http, session, portal_config)
        searcher = PortalSearcher(portal_http, auth, portal_config)
        respx.get("https://nanuri.ktv.go.kr/member/login.do").respond(200)
        respx.post("https://nanuri.ktv.go.kr/member/doLogin.do").respond(
            200, headers={"Set-Cookie": "JSESSIONID=new"}
        )
        search = respx.post(_SEARCH).respond(200, text=_page([]))

        await searcher.search("news", 1, 10)

        assert search.calls.last.request.headers["cookie"] == "JSESSIONID=new"

    @respx.mock
    async def test_auth_failure_propagates(
        self,
        portal_http: PortalHttpClient,
    ) -> None:
        config = PortalConfig()
        auth = PortalAuthenticator(portal_http, portal_http.session, config)
        searcher = PortalSearcher(portal_http, auth, config)

        with pytest.raises(AuthError):
            await searcher.search("news", 1, 10)
        assert respx.calls.call_count == 0


class TestPagination:
    @respx.mock
    async def test_zero_results(self, searcher: PortalSearcher) -> None:
        respx.post(_SEARCH).respond(200, text=_page([]))

        outcome = await searcher.search("nothing", 2, 10)

        assert outcome.items == []
        assert outcome.debug is None

    @respx.mock
    async def test_deduplicates_across_pages(self, searcher: PortalSearcher) -> None:
        respx.post(_SEARCH).mock(
            side_effect=_paged({1: ["a", "b", "a"], 2: ["b", "c"], 3: ["d"]})
        )

        outcome = await searcher.search("news", 3, 10)

        assert [r.detail_reference for r in outcome.items] == ["a", "b", "c", "d"]

    @respx.mock
    async def test_scans_exactly_max_pages(self, searcher: PortalSearcher) -> None:
        route = respx.post(_SEARCH).mock(side_effect=_paged({}))

        await searcher.search("news", 4, 10)

        assert route.call_count == 4
        assert [_form(c.request)["pageIndex"] for c in route.calls] == [
            "1",
            "2",
            "3",
            "4",
        ]

    @respx.mock
    async def test_caps_at_max_results(self, searcher: PortalSearcher) -> None:
        pages = {i: [f"p{i}-{n}" for n in range(60)] for i in range(1, 6)}
        route = respx.post(_SEARCH).mock(side_effect=_paged(pages))

        outcome = await searcher.search("news", 5, 60)

        assert len(outcome.items) == MAX_SEARCH_RESULTS
        assert outcome.items[-1].detail_reference == "p2-39"
        # Scanning stops once the cap is reached.
        assert route.call_count == 2


class TestDebugSnapshot:
    @respx.mock
    async def test_snapshot_describes_page_one(self, searcher: PortalSearcher) -> None:
        respx.post(_SEARCH).mock(side_effect=_paged({1: ["a"], 2: ["b"]}))

        outcome = await searcher.search("news", 2, 10, debug=True)

        assert outcome.debug is not None
        assert outcome.debug["received"] == {"keyword": "news", "debug": True}
        assert outcome.debug["pageSize"] == 10
        assert outcome.debug["maxPages"] == 2
        page1 = outcome.debug["page1"]
        assert page1["foundFnDetail"] == 1
        assert page1["hasFnDetail"] is True
        assert page1["looksLikeLoginPage"] is False

    @respx.mock
    async def test_login_page_is_flagged(self, searcher: PortalSearcher) -> None:
        respx.post(_SEARCH).respond(
            200, text='<form action="/member/doLogin.do">로그인</form>'
        )

        outcome = await searcher.search("news", 1, 10, debug=True)

        assert outcome.items == []
        assert outcome.debug is not None
        assert outcome.debug["page1"]["looksLikeLoginPage"] is True


class TestDebugDump:
    @respx.mock
    async def test_writes_first_page(
        self,
        tmp_path: Path,
        portal_http: PortalHttpClient,
        authenticator: PortalAuthenticator,
        portal_config: PortalConfig,
        session: PortalSession,
    ) -> None:
        session.absorb(["JSESSIONID=existing"])
        searcher = PortalSearcher(
            portal_http, authenticator, portal_config, debug_dump_dir=tmp_path / "d"
        )
        respx.post(_SEARCH).mock(side_effect=_paged({1: ["first"], 2: ["second"]}))

        await searcher.search("news", 2, 10)

        dumped = (tmp_path / "d" / "debug_search.html").read_text(encoding="utf-8")
        assert "first" in dumped
        assert "second" not in dumped
