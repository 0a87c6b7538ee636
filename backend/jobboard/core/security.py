"""
Security utilities for authentication and authorization.

Provides password hashing (bcrypt) and JWT token management for access,
password-reset and OAuth hand-off tokens.
"""

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from jobboard.core.config import settings

# Password hashing context using bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_PURPOSE = "access"
RESET_PURPOSE = "password-reset"
HANDOFF_PURPOSE = "oauth-handoff"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a plain password against a hashed password.

    Accounts created through OAuth have no password hash and never match.
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def password_fingerprint(hashed_password: Optional[str]) -> str:
    """Short digest of the stored hash; changes whenever the password does."""
    return hashlib.sha256((hashed_password or "").encode()).hexdigest()[:16]


def create_token(
    data: dict,
    purpose: str = ACCESS_PURPOSE,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT.

    Args:
        data: The claims to encode (typically {"sub": user_id, ...})
        purpose: Tag checked on decode so a reset token can't be used to log in
        expires_delta: Optional custom expiration time

    Returns:
        The encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire, "purpose": purpose})

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token for a signed-in identity."""
    return create_token(data, ACCESS_PURPOSE, expires_delta)


def decode_token(token: str, purpose: str = ACCESS_PURPOSE) -> Optional[dict]:
    """
    Decode and validate a JWT.

    Returns:
        The decoded payload, or None if invalid, expired or minted for
        another purpose
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except InvalidTokenError:
        return None
    if payload.get("purpose") != purpose:
        return None
    return payload


def decode_access_token(token: str) -> Optional[dict]:
    return decode_token(token, ACCESS_PURPOSE)
