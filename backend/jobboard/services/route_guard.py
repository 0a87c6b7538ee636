"""
Route guard.

A small state machine deciding whether a page may render for the current
session. It ignores everything while the first auth check is running and
issues at most one redirect in its lifetime, however many times the session
state is re-emitted.
"""

from __future__ import annotations

import enum
from typing import Iterable, Optional
from urllib.parse import urlencode

from jobboard.services.session_store import SessionState


class GuardStatus(str, enum.Enum):
    CHECKING = "checking"
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"


class RouteGuard:
    def __init__(
        self,
        allowed_roles: Iterable[str],
        current_path: str = "/",
        fallback_path: str = "/",
        login_path: str = "/login",
        unresolved_path: str = "/",
    ):
        self.allowed_roles = {str(getattr(role, "value", role)) for role in allowed_roles}
        self.current_path = current_path
        self.fallback_path = fallback_path
        self.login_path = login_path
        self.unresolved_path = unresolved_path
        self.status = GuardStatus.CHECKING
        self.redirect_to: Optional[str] = None
        self.redirect_count = 0

    @property
    def has_redirected(self) -> bool:
        return self.redirect_to is not None

    def login_redirect(self) -> str:
        return f"{self.login_path}?{urlencode({'redirect': self.current_path})}"

    def observe(self, state: SessionState) -> GuardStatus:
        """Feed one session-state emission; returns the resulting status."""
        if self.has_redirected:
            return self.status

        if state.checking:
            self.status = GuardStatus.CHECKING
            return self.status

        session = state.session
        if session is None:
            self.status = GuardStatus.UNAUTHENTICATED
            self._redirect(self.login_redirect())
        elif not session.role:
            # account record unreadable; no role-guarded page can help
            self.status = GuardStatus.UNAUTHORIZED
            self._redirect(self.unresolved_path)
        elif session.role not in self.allowed_roles:
            self.status = GuardStatus.UNAUTHORIZED
            self._redirect(self.fallback_path)
        else:
            self.status = GuardStatus.AUTHORIZED
        return self.status

    def _redirect(self, target: str) -> None:
        self.redirect_to = target
        self.redirect_count += 1
