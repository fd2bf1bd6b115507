"""Search result page parsing.

The portal renders result rows as arbitrary markup whose only stable
feature is the ``onclick="fn_detail('...')"`` handler on the clickable
title. Thumbnails live somewhere in the surrounding "card", in one of
several lazy-loading spellings, so they go through a fallback chain of
their own.
"""

from __future__ import annotations

import re
from functools import partial

from bs4 import BeautifulSoup, Tag

from nanuri_proxy.domain.entities.portal import SearchRecord

from .extractors import DEFAULT_IMAGE_HOST, Extractor, first_match, image_url_re
from .urls import absolute_url

DETAIL_HANDLER_SELECTOR = "[onclick*='fn_detail']"

_DETAIL_REF_RE = re.compile(r"""fn_detail\(\s*(['"])(.+?)\1""", re.IGNORECASE)
_BACKGROUND_URL_RE = re.compile(r"""url\((['"]?)(.*?)\1\)""", re.IGNORECASE)
_LOGIN_PAGE_RE = re.compile(r"login|로그인|member/login\.do|doLogin", re.IGNORECASE)

# Containers that count as a result "card" around a detail link.
_CARD_CLASSES = frozenset(
    {
        "item",
        "list",
        "result",
        "cont",
        "tit_area",
        "thumb_area",
        "img_area",
        "video_list",
        "vod_list",
    }
)
_IMG_ATTRS = ("data-src", "data-original", "data-lazy", "src")

DEBUG_HEAD_CHARS = 1200


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string with the lxml backend."""
    return BeautifulSoup(html, "lxml")


def _is_card(tag: Tag) -> bool:
    if tag.name == "li":
        return True
    return any(cls in _CARD_CLASSES for cls in tag.get("class") or [])


def find_card(element: Tag) -> Tag | None:
    """Nearest card container, *element* itself included."""
    node: Tag | None = element
    while isinstance(node, Tag) and node.name != "[document]":
        if _is_card(node):
            return node
        node = node.parent
    return None


def img_thumbnail(card: Tag) -> str | None:
    """First ``<img>`` in the card, lazy-load attributes before ``src``."""
    img = card.find("img")
    if not isinstance(img, Tag):
        return None
    for attr in _IMG_ATTRS:
        value = img.get(attr)
        if value:
            return str(value)
    return None


def background_thumbnail(card: Tag) -> str | None:
    """``url(...)`` from the first inline style mentioning ``background``."""
    styled = card.select_one("[style*='background']")
    if styled is None:
        return None
    m = _BACKGROUND_URL_RE.search(str(styled.get("style", "")))
    return m.group(2) if m and m.group(2) else None


def markup_thumbnail(card: Tag, *, image_host: str = DEFAULT_IMAGE_HOST) -> str | None:
    """Catalog image URL anywhere in the card's inner markup."""
    m = image_url_re(image_host).search(card.decode_contents())
    return m.group(0) if m else None


def build_card_thumbnail_chain(
    image_host: str = DEFAULT_IMAGE_HOST,
) -> list[Extractor[Tag]]:
    """Search card thumbnail stages in priority order."""
    return [
        Extractor("img", img_thumbnail),
        Extractor("background", background_thumbnail),
        Extractor("markup", partial(markup_thumbnail, image_host=image_host)),
    ]


def detail_reference(element: Tag) -> str | None:
    """Argument of the element's ``fn_detail('...')`` handler."""
    m = _DETAIL_REF_RE.search(str(element.get("onclick", "")).strip())
    return m.group(2) if m else None


def parse_search_page(
    soup: BeautifulSoup,
    *,
    origin: str,
    image_host: str = DEFAULT_IMAGE_HOST,
) -> list[SearchRecord]:
    """Extract every usable result row, in page order (not deduplicated).

    Rows without title text or without a detail reference are skipped.
    """
    chain = build_card_thumbnail_chain(image_host)
    records: list[SearchRecord] = []
    for element in soup.select(DETAIL_HANDLER_SELECTOR):
        title = " ".join(element.get_text().split())
        reference = detail_reference(element)
        if not title or not reference:
            continue

        thumbnail = None
        card = find_card(element)
        if card is not None:
            hit = first_match(chain, card)
            if hit:
                thumbnail = absolute_url(hit[1], origin)

        records.append(
            SearchRecord(title=title, detail_reference=reference, thumbnail=thumbnail)
        )
    return records


def page_diagnostics(html: str, soup: BeautifulSoup) -> dict[str, object]:
    """Snapshot used to tell "no hits" apart from "we got the login page"."""
    return {
        "htmlLen": len(html),
        "hasFnDetail": "fn_detail(" in html,
        "foundFnDetail": len(soup.select(DETAIL_HANDLER_SELECTOR)),
        "looksLikeLoginPage": bool(_LOGIN_PAGE_RE.search(html)),
        "head": html[:DEBUG_HEAD_CHARS],
    }
