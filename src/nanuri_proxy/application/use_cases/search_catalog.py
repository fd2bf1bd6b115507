"""Catalog search use case."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from nanuri_proxy.domain.entities.portal import SearchOutcome, ValidationError
from nanuri_proxy.domain.ports import PortalSearchPort

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SearchQuery:
    """Raw front-end search input; unset paging falls back to defaults."""

    keyword: str
    max_pages: int | None = None
    page_size: int | None = None
    debug: bool = False


class SearchCatalogUseCase:
    """Applies paging defaults and delegates to the portal searcher."""

    def __init__(
        self,
        searcher: PortalSearchPort,
        *,
        default_max_pages: int = 5,
        default_page_size: int = 30,
    ) -> None:
        self._searcher = searcher
        self._default_max_pages = default_max_pages
        self._default_page_size = default_page_size

    async def execute(self, q: SearchQuery) -> SearchOutcome:
        """Run the search.

        Raises:
            ValidationError: empty keyword or non-positive paging values.
            AuthError: login could not be established.
        """
        keyword = (q.keyword or "").strip()
        if not keyword:
            raise ValidationError("keyword required")

        # 0 means "not given", as with the original form fields.
        max_pages = q.max_pages or self._default_max_pages
        page_size = q.page_size or self._default_page_size

        outcome = await self._searcher.search(
            keyword, max_pages, page_size, debug=q.debug
        )
        log.info(
            "search_completed",
            keyword=keyword,
            max_pages=max_pages,
            page_size=page_size,
            items=len(outcome.items),
        )
        return outcome
