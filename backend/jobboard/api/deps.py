"""
Request-scoped wiring of the identity provider, session store and route guard.

Every request gets its own store subscribed to its own provider. The
presented token (bearer header or auth cookie) is replayed through the
provider so the store sees exactly the notifications a browser would.
"""

from typing import Callable, Iterable, Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session as DBSession

from jobboard.core.config import settings
from jobboard.core.errors import AppError
from jobboard.db.session import get_db
from jobboard.models import Role, User
from jobboard.services.identity import GoogleTokenVerifier, IdentityProvider, OAuthVerifier
from jobboard.services.mailer import Mailer
from jobboard.services.route_guard import GuardStatus, RouteGuard
from jobboard.services.session_store import (
    ResponseCookieMirror,
    Session,
    SessionState,
    SessionStore,
)

COMPANY_PROFILE_PATH = "/company/profile"


class RedirectRequired(Exception):
    """Raised by page dependencies; rendered as a redirect response."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(location)


def get_request_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the mirrored cookie."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def get_oauth_verifier() -> OAuthVerifier:
    return GoogleTokenVerifier()


def get_mailer() -> Mailer:
    return Mailer()


def get_identity_provider(
    db: DBSession = Depends(get_db),
    verifier: OAuthVerifier = Depends(get_oauth_verifier),
    mailer: Mailer = Depends(get_mailer),
) -> IdentityProvider:
    return IdentityProvider(db, oauth_verifier=verifier, mailer=mailer)


def get_session_store(
    response: Response,
    db: DBSession = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    store = SessionStore(db, cookie_mirror=ResponseCookieMirror(response))
    unsubscribe = provider.on_auth_state_changed(store.handle_auth_change)
    try:
        yield store
    finally:
        unsubscribe()
        store.close()


def get_session_state(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> SessionState:
    """Resolve the request's token into session state."""
    provider.restore(get_request_token(request))
    return store.state


def get_current_session(state: SessionState = Depends(get_session_state)) -> Session:
    if state.session is None:
        raise AppError("auth/invalid-token")
    return state.session


def get_current_user(
    session: Session = Depends(get_current_session),
    db: DBSession = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.id == session.uid).first()
    if user is None:
        raise AppError("auth/invalid-token")
    return user


def require_roles(*roles: Role) -> Callable[..., User]:
    """API dependency: 401 without a session, 403 when the role is not allowed."""

    def dependency(
        state: SessionState = Depends(get_session_state),
        db: DBSession = Depends(get_db),
    ) -> User:
        guard = RouteGuard(roles)
        guard.observe(state)
        if guard.status == GuardStatus.UNAUTHENTICATED:
            raise AppError("auth/invalid-token")
        if guard.status != GuardStatus.AUTHORIZED:
            raise AppError("permission-denied")
        return get_current_user(state.session, db)

    return dependency


def _requested_path(request: Request) -> str:
    if request.url.query:
        return f"{request.url.path}?{request.url.query}"
    return request.url.path


def page_guard(
    roles: Iterable[Role],
    fallback: str = "/",
    require_complete_company: bool = False,
) -> Callable[..., SessionState]:
    """
    Page dependency running a RouteGuard over the session-state stream.

    The guard is subscribed before the token is replayed so it sees the
    initial checking state first, then the resolved one.
    """
    roles = tuple(roles)

    def dependency(
        request: Request,
        store: SessionStore = Depends(get_session_store),
        provider: IdentityProvider = Depends(get_identity_provider),
    ) -> SessionState:
        guard = RouteGuard(roles, current_path=_requested_path(request), fallback_path=fallback)
        unsubscribe = store.subscribe(guard.observe)
        try:
            provider.restore(get_request_token(request))
        finally:
            unsubscribe()

        if guard.redirect_to:
            raise RedirectRequired(guard.redirect_to)

        state = store.state
        if (
            require_complete_company
            and state.session.role == Role.COMPANY
            and not state.profile_complete
            and request.url.path != COMPANY_PROFILE_PATH
        ):
            raise RedirectRequired(COMPANY_PROFILE_PATH)
        return state

    return dependency
