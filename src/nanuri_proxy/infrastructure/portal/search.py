"""Multi-page catalog search against the portal."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog

from nanuri_proxy.domain.entities.portal import (
    PageWindow,
    SearchOutcome,
    SearchRecord,
    ValidationError,
)
from nanuri_proxy.infrastructure.config.schema import PortalConfig

from .authenticator import PortalAuthenticator
from .debug_dump import dump_html
from .http_client import PortalHttpClient
from .search_page import page_diagnostics, parse_html, parse_search_page

log = structlog.get_logger(__name__)

MAX_SEARCH_RESULTS = 100

# Fixed filter form: original content, every category, no boolean filters.
SEARCH_FORM_FILTERS: dict[str, str] = {
    "cntntsTy": "original",
    "category": "ALL",
    "clorYn": "N",
    "koglTyYn": "N",
    "mediaTyYn": "N",
    "dwldPosblAtYn": "N",
}

_ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class PortalSearcher:
    """Search paginator.

    Pages are fetched strictly one after another: each page may depend on
    cookies set by the previous response.
    """

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

    def _form(self, keyword: str, window: PageWindow) -> dict[str, str]:
        return {
            **SEARCH_FORM_FILTERS,
            "baseKeyword": keyword,
            "pageIndex": str(window.page_index),
            "pageUnit": str(window.page_size),
            "pageSize": str(window.page_size),
        }

    async def _fetch_page(self, keyword: str, window: PageWindow) -> str:
        """POST the search form; follow a redirect answer with one GET."""
        search_url = self._config.search_url
        response = await self._http.request(
            search_url,
            method="POST",
            headers={
                "Origin": self._config.origin,
                "Referer": search_url,
                "Accept": _ACCEPT_HTML,
            },
            data=self._form(keyword, window),
            redirect="manual",
        )

        location = response.location
        if response.is_redirect and location:
            followed = await self._http.request(
                location, headers={"Referer": search_url}, redirect="auto"
            )
            return followed.text
        return response.text

    async def search(
        self,
        keyword: str,
        max_pages: int,
        page_size: int,
        *,
        debug: bool = False,
    ) -> SearchOutcome:
        """Scan pages 1..max_pages and return at most 100 unique records.

        Raises:
            ValidationError: empty keyword or non-positive page parameters.
            AuthError: no session and login failed.
            TransportError: the portal could not be reached.
        """
        keyword = (keyword or "").strip()
        if not keyword:
            raise ValidationError("keyword required")
        if max_pages < 1 or page_size < 1:
            raise ValidationError("maxPages and pageSize must be positive")

        await self._auth.ensure_session()

        collected: list[SearchRecord] = []
        seen: set[str] = set()
        debug_snapshot: dict[str, Any] | None = None

        for page_index in range(1, max_pages + 1):
            html = await self._fetch_page(keyword, PageWindow(page_index, page_size))
            soup = parse_html(html)

            if page_index == 1:
                dump_html(self._debug_dump_dir, "debug_search.html", html)
                if debug:
                    debug_snapshot = {
                        "received": {"keyword": keyword, "debug": debug},
                        "pageSize": page_size,
                        "maxPages": max_pages,
                        "page1": page_diagnostics(html, soup),
                    }

            page_records = parse_search_page(
                soup, origin=self._config.origin, image_host=self._config.image_host
            )
            added = 0
            for record in page_records:
                if record.detail_reference in seen:
                    continue
                seen.add(record.detail_reference)
                collected.append(record)
                added += 1
                if len(collected) >= MAX_SEARCH_RESULTS:
                    break

            log.info(
                "search_page",
                keyword=keyword,
                page=page_index,
                found=len(page_records),
                added=added,
                total=len(collected),
            )
            if len(collected) >= MAX_SEARCH_RESULTS:
                break

        return SearchOutcome(items=collected, debug=debug_snapshot)
