"""URL helpers shared by the search paginator and the detail resolver."""

from __future__ import annotations

import re
from urllib.parse import urljoin

# RFC 3986 scheme: letter, then letters, digits, "+", "-" or ".".
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")


def absolute_url(maybe_relative: str | None, origin: str) -> str | None:
    """Resolve a portal link against *origin*.

    Anything with a scheme (``https:``, ``data:``, ...) is kept as is,
    ``//host/...`` gets ``https:``, and every other value is joined to the
    origin with RFC 3986 rules, so ``../img/a.jpg`` loses its dot segments.
    """
    if not maybe_relative:
        return None
    value = maybe_relative.strip()
    if not value:
        return None
    if value.startswith("//"):
        return f"https:{value}"
    if _SCHEME_RE.match(value):
        return value
    return urljoin(f"{origin.rstrip('/')}/", value)
