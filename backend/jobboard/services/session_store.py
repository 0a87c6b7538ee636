"""
Session store.

Owns the `{session, profile, profile_complete, loading, checking}` state for
one browser context and is the only writer of it. The identity provider
notifies it of sign-in and sign-out; it resolves the account record, provisions
one on first login, and mirrors the token into the auth cookie.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Protocol

from fastapi import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from jobboard.core.config import settings
from jobboard.db.base import utcnow
from jobboard.models import DEFAULT_ROLE, User
from jobboard.services.identity import Identity
from jobboard.services.profiles import create_empty_profile, get_profile_record, profile_fields

logger = logging.getLogger("session")


@dataclass
class Session:
    """Identity attributes merged with the stored account data."""

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    role: Optional[str] = None  # None when the account record could not be read
    company_name: Optional[str] = None
    company_logo: Optional[str] = None
    auth_provider: Optional[str] = None
    profile_completed: str = "no"


@dataclass(frozen=True)
class SessionState:
    session: Optional[Session] = None
    profile: Optional[dict[str, Any]] = None
    profile_complete: bool = False
    loading: bool = True
    checking: bool = True


Listener = Callable[[SessionState], None]


class CookieMirror(Protocol):
    def set(self, token: str) -> None: ...

    def clear(self) -> None: ...


class ResponseCookieMirror:
    """Writes the session token into the auth cookie of an outgoing response."""

    def __init__(self, response: Response):
        self.response = response

    def set(self, token: str) -> None:
        self.response.set_cookie(
            key=settings.AUTH_COOKIE_NAME,
            value=token,
            max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            httponly=True,
            secure=settings.AUTH_COOKIE_SECURE,
            samesite="lax",
        )

    def clear(self) -> None:
        self.response.delete_cookie(settings.AUTH_COOKIE_NAME)


class SessionStore:
    """Single owner of session state with a subscribe/read interface."""

    def __init__(self, db: DBSession, cookie_mirror: Optional[CookieMirror] = None):
        self.db = db
        self.cookie_mirror = cookie_mirror
        self._state = SessionState()
        self._listeners: list[Listener] = []
        self._generation = 0
        self._closed = False

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; it is called right away with the current state."""
        self._listeners.append(listener)
        listener(self._state)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Stop accepting notifications; in-flight results are dropped."""
        self._closed = True
        self._listeners.clear()

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def handle_auth_change(self, identity: Optional[Identity], token: Optional[str] = None) -> None:
        """Translate one identity-provider notification into session state."""
        if self._closed:
            return

        self._generation += 1
        generation = self._generation
        self._set_state(replace(self._state, checking=True))

        if identity is None:
            logger.info("No authenticated user")
            if self.cookie_mirror is not None:
                self.cookie_mirror.clear()
            self._set_state(SessionState(loading=False, checking=False))
            return

        session, profile, complete = self._resolve(identity)

        # A newer notification or a close() while resolving wins
        if self._closed or generation != self._generation:
            logger.debug(f"Discarding stale session result for {identity.uid}")
            return

        if token and self.cookie_mirror is not None:
            self.cookie_mirror.set(token)

        self._set_state(
            SessionState(
                session=session,
                profile=profile,
                profile_complete=complete,
                loading=False,
                checking=False,
            )
        )

    def _resolve(self, identity: Identity) -> tuple[Session, Optional[dict[str, Any]], bool]:
        try:
            user = self.db.query(User).filter(User.id == identity.uid).first()
            if user is None:
                user = self._provision(identity)
            else:
                user.last_login = utcnow()
                self.db.commit()

            record = get_profile_record(self.db, user)
            if record is not None:
                profile = profile_fields(record)
                complete = profile.get("profile_completed") == "yes"
            else:
                profile = None
                complete = user.profile_completed == "yes"
        except SQLAlchemyError as e:
            logger.error(f"Failed to load account record for {identity.uid}: {e}")
            self.db.rollback()
            return self._raw_session(identity), None, False

        session = Session(
            uid=user.id,
            email=user.email or identity.email,
            display_name=user.display_name or identity.display_name,
            photo_url=user.photo_url or identity.photo_url,
            role=user.role or DEFAULT_ROLE.value,
            company_name=user.company_name,
            company_logo=user.company_logo,
            auth_provider=user.auth_provider or identity.provider,
            profile_completed=user.profile_completed or "no",
        )
        return session, profile, complete

    def _provision(self, identity: Identity) -> User:
        """First login: create the account record with the default role."""
        logger.info(f"Provisioning account record for {identity.uid}")
        user = User(
            id=identity.uid,
            email=(identity.email or f"{identity.uid}@unknown").lower(),
            display_name=identity.display_name or "User",
            photo_url=identity.photo_url,
            role=DEFAULT_ROLE.value,
            auth_provider=identity.provider,
            profile_completed="no",
            saved_jobs=[],
            last_login=utcnow(),
        )
        self.db.add(user)
        self.db.flush()
        create_empty_profile(self.db, user)
        self.db.commit()
        self.db.refresh(user)
        return user

    @staticmethod
    def _raw_session(identity: Identity) -> Session:
        return Session(
            uid=identity.uid,
            email=identity.email,
            display_name=identity.display_name,
            photo_url=identity.photo_url,
            role=None,
            auth_provider=identity.provider,
        )
