"""httpx wrapper that keeps the shared portal session in sync.

Every request carries the fixed browser identity and the current session
``Cookie`` header. Every response, whatever its status, feeds its
``Set-Cookie`` headers back into the session. Redirects are followed
hop by hop by this class (``auto``) or handed back to the caller
(``manual``). httpx's own cookie jar is never consulted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Mapping

import httpx
import structlog

from nanuri_proxy.domain.entities.portal import TransportError

from .cookie_jar import PortalSession

RedirectMode = Literal["auto", "manual"]

DEFAULT_MAX_REDIRECTS = 10

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PortalResponse:
    """Status, headers and decoded body of one upstream response."""

    status: int
    headers: httpx.Headers
    text: str
    url: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status < 400

    @property
    def location(self) -> str | None:
        """Absolute redirect target, or ``None`` without a Location header."""
        raw = self.headers.get("location")
        if not raw:
            return None
        return str(httpx.URL(self.url).join(raw))


def _redirect_method(status: int, method: str) -> str:
    # Browser behaviour: 303 always, and 301/302 after POST, turn into GET.
    if status == 303 and method != "HEAD":
        return "GET"
    if status in (301, 302) and method == "POST":
        return "GET"
    return method


class PortalHttpClient:
    """Outbound requests bound to one ``PortalSession``."""

    def __init__(
        self,
        session: PortalSession,
        *,
        user_agent: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
    ) -> None:
        self._session = session
        self._user_agent = user_agent
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._max_redirects = max_redirects

    @property
    def session(self) -> PortalSession:
        return self._session

    async def aclose(self) -> None:
        """Close the underlying client if this wrapper created it."""
        if self._owns_client:
            await self._client.aclose()

    def _build_headers(self, extra: Mapping[str, str] | None) -> httpx.Headers:
        headers = httpx.Headers({"User-Agent": self._user_agent})
        if self._session.cookie_header:
            headers["Cookie"] = self._session.cookie_header
        if extra:
            headers.update(extra)
        return headers

    async def _send_once(
        self,
        method: str,
        url: str,
        headers: httpx.Headers,
        data: Mapping[str, str] | None,
    ) -> httpx.Response:
        request = self._client.build_request(method, url, headers=headers, data=data)
        if "cookie" not in headers:
            # build_request would otherwise fall back to httpx's client jar.
            request.headers.pop("Cookie", None)
        try:
            response = await self._client.send(request, follow_redirects=False)
        except httpx.TransportError as exc:
            log.warning(
                "portal_transport_error",
                method=method,
                url=url,
                error=str(exc) or type(exc).__name__,
            )
            raise TransportError(f"{method} {url} failed: {exc!r}") from exc

        # Cookie capture is unconditional: redirects and errors included.
        self._session.absorb(response.headers.get_list("set-cookie"))
        return response

    async def request(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
        redirect: RedirectMode = "auto",
    ) -> PortalResponse:
        """Send a request and return the final (or, in manual mode, first) response.

        Raises:
            TransportError: network failure or too many redirects.
        """
        method = method.upper()
        response = await self._send_once(
            method, url, self._build_headers(headers), data
        )

        hops = 0
        while redirect == "auto" and response.has_redirect_location:
            hops += 1
            if hops > self._max_redirects:
                raise TransportError(
                    f"{method} {url} exceeded {self._max_redirects} redirects"
                )
            next_url = str(response.url.join(response.headers["location"]))
            new_method = _redirect_method(response.status_code, method)
            hop_headers = self._build_headers(headers)
            if new_method != method:
                data = None
                hop_headers.pop("Content-Type", None)
            method = new_method
            log.debug("portal_redirect", to=next_url, status=response.status_code)

            response = await self._send_once(method, next_url, hop_headers, data)

        return PortalResponse(
            status=response.status_code,
            headers=response.headers,
            text=response.text,
            url=str(response.url),
        )
