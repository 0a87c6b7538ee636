"""
Identity provider.

Issues and validates identities (password and Google sign-in), owns the
credential side of account creation and password reset, and notifies
observers whenever the signed-in identity changes.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional, Protocol

import httpx
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobboard.core.config import settings
from jobboard.core.errors import AppError
from jobboard.core.security import (
    HANDOFF_PURPOSE,
    RESET_PURPOSE,
    create_access_token,
    create_token,
    decode_access_token,
    decode_token,
    get_password_hash,
    password_fingerprint,
    verify_password,
)
from jobboard.db.base import utcnow
from jobboard.models import Role, User
from jobboard.services.mailer import Mailer
from jobboard.services.profiles import create_empty_profile

logger = logging.getLogger("auth")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8
MIN_NAME_LENGTH = 2
REGISTRABLE_ROLES = (Role.JOB_SEEKER.value, Role.COMPANY.value)
SUPPORTED_PROVIDERS = ("google",)


@dataclass(frozen=True)
class Identity:
    """Raw identity attributes carried by a token."""

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    provider: str = "email"

    def claims(self) -> dict:
        return {
            "sub": self.uid,
            "email": self.email,
            "name": self.display_name,
            "picture": self.photo_url,
            "provider": self.provider,
        }

    @classmethod
    def from_claims(cls, payload: dict) -> Optional["Identity"]:
        uid = payload.get("sub")
        if not uid:
            return None
        return cls(
            uid=uid,
            email=payload.get("email"),
            display_name=payload.get("name"),
            photo_url=payload.get("picture"),
            provider=payload.get("provider") or "email",
        )

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(
            uid=user.id,
            email=user.email,
            display_name=user.display_name,
            photo_url=user.photo_url,
            provider=user.auth_provider or "email",
        )


@dataclass
class AuthResult:
    identity: Identity
    access_token: str


@dataclass
class OAuthProfile:
    """Verified attributes returned by an OAuth provider."""

    subject: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None


@dataclass
class OAuthHandoff:
    """Returned when a provider identity has no account yet."""

    provider: str
    email: str
    name: Optional[str]
    picture: Optional[str]
    handoff_token: str
    is_new_user: bool = True


AuthListener = Callable[[Optional[Identity], Optional[str]], None]


class OAuthVerifier(Protocol):
    def verify(self, id_token: str) -> OAuthProfile: ...


class GoogleTokenVerifier:
    """Validates a Google ID token with the token-info endpoint."""

    def __init__(self, client_id: str = "", tokeninfo_url: str = "", timeout: float = 0):
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.tokeninfo_url = tokeninfo_url or settings.GOOGLE_TOKENINFO_URL
        self.timeout = timeout or settings.OAUTH_TIMEOUT

    def verify(self, id_token: str) -> OAuthProfile:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(self.tokeninfo_url, params={"id_token": id_token})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Google token rejected: HTTP {e.response.status_code}")
            raise AppError("auth/oauth-failed")
        except httpx.HTTPError as e:
            logger.error(f"Google token verification failed: {e}")
            raise AppError("unavailable")

        if self.client_id and data.get("aud") != self.client_id:
            logger.warning("Google token issued for another client")
            raise AppError("auth/oauth-failed")
        if not data.get("email") or str(data.get("email_verified", "true")).lower() != "true":
            raise AppError("auth/oauth-failed")

        return OAuthProfile(
            subject=data.get("sub", ""),
            email=data["email"].lower(),
            name=data.get("name"),
            picture=data.get("picture"),
        )


def validate_email(email: str) -> str:
    if not email or not EMAIL_PATTERN.match(email):
        raise AppError("auth/invalid-email")
    return email.strip().lower()


def validate_registration(
    name: str,
    email: str,
    password: str,
    role: str,
    company_name: Optional[str],
) -> str:
    """Reject bad sign-up data before touching the database; returns the normalized email."""
    if not name or len(name.strip()) < MIN_NAME_LENGTH:
        raise AppError("auth/invalid-name")
    normalized = validate_email(email)
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise AppError("auth/weak-password")
    validate_role(role, company_name)
    return normalized


def validate_role(role: str, company_name: Optional[str]) -> None:
    if role not in REGISTRABLE_ROLES:
        raise AppError(
            "validation/invalid-value",
            message=f"Role must be one of: {', '.join(REGISTRABLE_ROLES)}",
            fields={"role": "invalid"},
        )
    if role == Role.COMPANY and (not company_name or len(company_name.strip()) < MIN_NAME_LENGTH):
        raise AppError("auth/company-name-required")


class IdentityProvider:
    """Password and OAuth authentication with change notifications."""

    def __init__(
        self,
        db: Session,
        oauth_verifier: Optional[OAuthVerifier] = None,
        mailer: Optional[Mailer] = None,
    ):
        self.db = db
        self.oauth_verifier = oauth_verifier
        self.mailer = mailer or Mailer()
        self._listeners: list[AuthListener] = []
        self.current: Optional[Identity] = None

    # ============== Observers ==============

    def on_auth_state_changed(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, identity: Optional[Identity], token: Optional[str]) -> None:
        self.current = identity
        for listener in list(self._listeners):
            listener(identity, token)

    def _sign_in(self, user: User) -> AuthResult:
        identity = Identity.from_user(user)
        token = create_access_token(identity.claims())
        self._notify(identity, token)
        return AuthResult(identity=identity, access_token=token)

    # ============== Sessions ==============

    def restore(self, token: Optional[str]) -> Optional[Identity]:
        """Re-emit the identity carried by a presented token, or sign-out if none."""
        identity = None
        if token:
            payload = decode_access_token(token)
            if payload is not None:
                identity = Identity.from_claims(payload)
        self._notify(identity, token if identity else None)
        return identity

    def sign_out(self) -> None:
        if self.current is not None:
            logger.info(f"Signing out {self.current.uid}")
        self._notify(None, None)

    def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        normalized = validate_email(email)
        if not password:
            raise AppError("auth/invalid-credential")

        user = self.db.query(User).filter(User.email == normalized).first()
        if user is None or not verify_password(password, user.hashed_password):
            logger.info(f"Failed sign-in for {normalized}")
            raise AppError("auth/invalid-credential")

        user.last_login = utcnow()
        self.db.commit()
        return self._sign_in(user)

    # ============== Registration ==============

    def register(
        self,
        name: str,
        email: str,
        password: str,
        role: str = Role.JOB_SEEKER.value,
        company_name: Optional[str] = None,
    ) -> AuthResult:
        """Create an email/password account and sign it in."""
        normalized = validate_registration(name, email, password, role, company_name)
        if self.db.query(User).filter(User.email == normalized).first():
            raise AppError("auth/email-already-in-use")

        user = User(
            email=normalized,
            hashed_password=get_password_hash(password),
            display_name=name.strip(),
            role=role,
            company_name=company_name.strip() if role == Role.COMPANY and company_name else None,
            profile_completed="no",
            auth_provider="email",
            saved_jobs=[],
            last_login=utcnow(),
        )
        self._create(user)
        logger.info(f"Created {role} account {user.id}")
        return self._sign_in(user)

    def _create(self, user: User) -> None:
        try:
            self.db.add(user)
            self.db.flush()
            create_empty_profile(self.db, user)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AppError("auth/email-already-in-use")
        self.db.refresh(user)

    # ============== OAuth ==============

    def sign_in_with_oauth(self, provider: str, id_token: str) -> AuthResult | OAuthHandoff:
        """
        Sign in with a provider ID token.

        Unknown emails are not signed in: the caller gets a hand-off that
        `register_with_oauth` completes once a role is chosen.
        """
        if provider not in SUPPORTED_PROVIDERS or self.oauth_verifier is None:
            raise AppError("auth/unsupported-provider")

        profile = self.oauth_verifier.verify(id_token)
        user = self.db.query(User).filter(User.email == profile.email).first()

        if user is None:
            logger.info(f"New {provider} user {profile.email}, hand-off to registration")
            handoff_token = create_token(
                {
                    "sub": profile.email,
                    "name": profile.name,
                    "picture": profile.picture,
                    "provider": provider,
                },
                purpose=HANDOFF_PURPOSE,
                expires_delta=timedelta(minutes=settings.OAUTH_HANDOFF_EXPIRE_MINUTES),
            )
            return OAuthHandoff(
                provider=provider,
                email=profile.email,
                name=profile.name,
                picture=profile.picture,
                handoff_token=handoff_token,
            )

        user.last_login = utcnow()
        if not user.photo_url and profile.picture:
            user.photo_url = profile.picture
        self.db.commit()
        return self._sign_in(user)

    def register_with_oauth(
        self,
        handoff_token: str,
        role: str,
        company_name: Optional[str] = None,
    ) -> AuthResult:
        payload = decode_token(handoff_token, HANDOFF_PURPOSE)
        if payload is None or not payload.get("sub"):
            raise AppError("auth/oauth-handoff-expired")

        validate_role(role, company_name)
        email = payload["sub"]
        if self.db.query(User).filter(User.email == email).first():
            raise AppError("auth/email-already-in-use")

        user = User(
            email=email,
            hashed_password=None,
            display_name=payload.get("name") or "User",
            photo_url=payload.get("picture"),
            role=role,
            company_name=company_name.strip() if role == Role.COMPANY and company_name else None,
            profile_completed="no",
            auth_provider=payload.get("provider") or "google",
            saved_jobs=[],
            last_login=utcnow(),
        )
        self._create(user)
        logger.info(f"Registered {user.auth_provider} account {user.id} as {role}")
        return self._sign_in(user)

    # ============== Password reset ==============

    def send_password_reset(self, email: str) -> None:
        normalized = validate_email(email)
        user = self.db.query(User).filter(User.email == normalized).first()
        if user is None:
            raise AppError("auth/user-not-found")

        token = create_token(
            {"sub": user.id, "pwd": password_fingerprint(user.hashed_password)},
            purpose=RESET_PURPOSE,
            expires_delta=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        )
        link = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={token}"
        self.mailer.send_password_reset(user.email, link)

    def confirm_password_reset(self, token: str, new_password: str) -> None:
        payload = decode_token(token, RESET_PURPOSE)
        if payload is None:
            raise AppError("auth/invalid-token")
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise AppError("auth/weak-password")

        user = self.db.query(User).filter(User.id == payload.get("sub")).first()
        if user is None:
            raise AppError("auth/user-not-found")
        if payload.get("pwd") != password_fingerprint(user.hashed_password):
            # link already used, or the password changed since it was sent
            raise AppError("auth/invalid-token")

        user.hashed_password = get_password_hash(new_password)
        self.db.commit()
        logger.info(f"Password reset for {user.id}")
