"""Auth status report (never triggers a login)."""

from __future__ import annotations

from nanuri_proxy.domain.entities.portal import AuthStatus
from nanuri_proxy.domain.ports import SessionStatusPort


class AuthStatusUseCase:
    def __init__(
        self,
        session: SessionStatusPort,
        *,
        has_username: bool,
        has_password: bool,
        has_login_url: bool,
    ) -> None:
        self._session = session
        self._has_username = has_username
        self._has_password = has_password
        self._has_login_url = has_login_url

    def execute(self) -> AuthStatus:
        return AuthStatus(
            logged_in=self._session.is_authenticated,
            has_username=self._has_username,
            has_password=self._has_password,
            has_login_url=self._has_login_url,
        )
