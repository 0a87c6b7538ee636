from jobboard.services.identity import (
    Identity,
    IdentityProvider,
    GoogleTokenVerifier,
    OAuthHandoff,
    OAuthProfile,
)
from jobboard.services.session_store import (
    Session,
    SessionState,
    SessionStore,
    ResponseCookieMirror,
)
from jobboard.services.route_guard import RouteGuard, GuardStatus
from jobboard.services.profiles import (
    is_profile_complete,
    get_profile_link,
    recompute_completion,
)
from jobboard.services.storage import LocalStorage, StorageError, get_storage
from jobboard.services.mailer import Mailer

__all__ = [
    "Identity",
    "IdentityProvider",
    "GoogleTokenVerifier",
    "OAuthHandoff",
    "OAuthProfile",
    "Session",
    "SessionState",
    "SessionStore",
    "ResponseCookieMirror",
    "RouteGuard",
    "GuardStatus",
    "is_profile_complete",
    "get_profile_link",
    "recompute_completion",
    "LocalStorage",
    "StorageError",
    "get_storage",
    "Mailer",
]
