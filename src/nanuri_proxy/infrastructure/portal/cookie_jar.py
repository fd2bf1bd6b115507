"""Session cookie handling for the upstream portal.

The whole proxy shares one upstream identity. Its state is a single
``Cookie`` request header, rebuilt from every ``Set-Cookie`` the portal
sends. Attributes (Path, Domain, Expires, ...) are dropped and nothing
expires: the session lives as long as the process, or until the next
login resets it.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable

# A comma only separates cookies when a ``name=`` token follows it;
# commas inside ``Expires=Wed, 21 Oct 2015 ...`` are left alone.
_COMBINED_SPLIT_RE = re.compile(r",\s*(?=[^;,=\s]+=)")


def _parse_pair(fragment: str) -> tuple[str, str] | None:
    eq = fragment.find("=")
    if eq <= 0:
        return None
    name = fragment[:eq].strip()
    if not name:
        return None
    return name, fragment[eq + 1 :].strip()


def split_set_cookie(value: str) -> list[str]:
    """Split a transport-combined ``Set-Cookie`` value into single cookies."""
    if not value:
        return []
    return [part.strip() for part in _COMBINED_SPLIT_RE.split(value) if part.strip()]


def merge_cookie_header(current: str, set_cookies: Iterable[str]) -> str:
    """Merge ``Set-Cookie`` values into a ``Cookie`` header string.

    Incoming values win over existing ones with the same name. Malformed
    entries (no ``=``) are ignored.
    """
    jar: dict[str, str] = {}

    for fragment in (current or "").split(";"):
        pair = _parse_pair(fragment.strip())
        if pair:
            jar[pair[0]] = pair[1]

    for raw in set_cookies:
        if not raw:
            continue
        pair = _parse_pair(raw.split(";", 1)[0])
        if pair:
            jar[pair[0]] = pair[1]

    return "; ".join(f"{name}={value}" for name, value in jar.items())


class PortalSession:
    """The single shared upstream session.

    Merges are synchronous, so they cannot interleave on the event loop.
    ``lock`` serializes logins (see ``PortalAuthenticator.ensure_session``).
    """

    def __init__(self) -> None:
        self._cookie_header = ""
        self.lock = asyncio.Lock()

    @property
    def cookie_header(self) -> str:
        return self._cookie_header

    @property
    def is_authenticated(self) -> bool:
        return bool(self._cookie_header)

    def absorb(self, set_cookies: Iterable[str]) -> None:
        """Merge response ``Set-Cookie`` values into the session."""
        values = [c for raw in set_cookies for c in split_set_cookie(raw)]
        if values:
            self._cookie_header = merge_cookie_header(self._cookie_header, values)

    def reset(self) -> None:
        """Drop every cookie (start of a login attempt)."""
        self._cookie_header = ""
