"""Login handshake against the portal.

The portal signals a successful login by setting a session cookie, not by
status code. The redirect target of the credential POST depends on
server-side state tied to the cookies of that exact response, so the POST
runs with manual redirects and the cookies are captured before anything
follows the Location.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import structlog

from nanuri_proxy.domain.entities.portal import AuthError, TransportError
from nanuri_proxy.infrastructure.config.schema import PortalConfig

from .cookie_jar import PortalSession
from .http_client import PortalHttpClient

log = structlog.get_logger(__name__)

MISSING_CONFIGURATION = "missing configuration"
NO_SESSION_COOKIE = "no session cookie after credential submit"


class AuthState(str, Enum):
    IDLE = "idle"
    SEEDING_SESSION = "seeding_session"
    SUBMITTING_CREDENTIALS = "submitting_credentials"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True)
class AuthOutcome:
    """Terminal state of one login attempt."""

    state: AuthState
    reason: str = ""
    status: int | None = None

    @property
    def ok(self) -> bool:
        return self.state is AuthState.AUTHENTICATED


class PortalAuthenticator:
    """Drives IDLE -> SEEDING_SESSION -> SUBMITTING_CREDENTIALS -> done."""

    def __init__(
        self,
        http: PortalHttpClient,
        session: PortalSession,
        config: PortalConfig,
    ) -> None:
        self._http = http
        self._session = session
        self._config = config
        self.state = AuthState.IDLE

    def _finish(
        self, state: AuthState, reason: str = "", status: int | None = None
    ) -> AuthOutcome:
        self.state = state
        return AuthOutcome(state=state, reason=reason, status=status)

    async def login(self) -> AuthOutcome:
        """Run one full login attempt.

        Does not check for an existing session; callers go through
        ``ensure_session``. Raises ``TransportError`` if the login page or
        the credential POST cannot be reached.
        """
        self.state = AuthState.IDLE
        missing = self._config.missing_settings
        if missing:
            log.warning("portal_login_not_configured", missing=missing)
            return self._finish(AuthState.FAILED, MISSING_CONFIGURATION)

        # A fresh login never inherits a stale or half-authenticated session.
        self._session.reset()
        self.state = AuthState.SEEDING_SESSION
        await self._http.request(self._config.login_page_url, redirect="auto")

        self.state = AuthState.SUBMITTING_CREDENTIALS
        response = await self._http.request(
            self._config.login_url,
            method="POST",
            headers={
                "Origin": self._config.origin,
                "Referer": self._config.login_page_url,
            },
            data={
                self._config.login_id_field: self._config.username,
                self._config.login_pw_field: self._config.password,
            },
            redirect="manual",
        )

        log.info(
            "portal_login",
            status=response.status,
            cookie_set=self._session.is_authenticated,
        )

        if not self._session.is_authenticated:
            return self._finish(AuthState.FAILED, NO_SESSION_COOKIE, response.status)

        location = response.location
        if location:
            # Lets the portal finalize the server-side session; best effort.
            try:
                await self._http.request(location, redirect="auto")
            except TransportError as exc:
                log.warning(
                    "portal_login_finalize_failed", url=location, error=str(exc)
                )

        return self._finish(AuthState.AUTHENTICATED, status=response.status)

    async def ensure_session(self) -> None:
        """Log in unless a session already exists.

        Serialized on the session lock and re-checked inside it, so
        concurrent callers that both saw "no session" log in only once.

        Raises:
            AuthError: login failed (configuration missing or rejected).
        """
        if self._session.is_authenticated:
            return
        async with self._session.lock:
            if self._session.is_authenticated:
                return
            outcome = await self.login()
        if not outcome.ok:
            raise AuthError(f"login failed: {outcome.reason}")
