"""
Authentication API endpoints.

Handles registration, password and Google sign-in, sign-out and password
reset. Every successful sign-in mirrors the access token into the auth cookie
through the request's session store.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from jobboard.api.deps import (
    get_identity_provider,
    get_session_state,
    get_session_store,
)
from jobboard.models import Role
from jobboard.services.identity import AuthResult, IdentityProvider, OAuthHandoff
from jobboard.services.profiles import get_profile_link
from jobboard.services.session_store import SessionState, SessionStore

router = APIRouter()


# ============== Pydantic Schemas ==============


class UserRegister(BaseModel):
    """Schema for user registration."""

    name: str
    email: str
    password: str
    role: str = Role.JOB_SEEKER.value  # 'job-seeker' | 'company'
    company_name: Optional[str] = None


class SessionUser(BaseModel):
    """The signed-in user as exposed to clients."""

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    role: Optional[str] = None
    company_name: Optional[str] = None
    company_logo: Optional[str] = None
    auth_provider: Optional[str] = None
    profile_completed: str = "no"

    class Config:
        from_attributes = True


class Token(BaseModel):
    """Schema for JWT token response."""

    access_token: str
    token_type: str = "bearer"
    user: Optional[SessionUser] = None


class SessionResponse(BaseModel):
    user: Optional[SessionUser] = None
    profile_complete: bool = False
    profile_link: Optional[str] = None
    loading: bool = False
    checking: bool = False


class OAuthSignIn(BaseModel):
    id_token: str


class OAuthHandoffResponse(BaseModel):
    is_new_user: bool = True
    provider: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
    handoff_token: str
    next: str
    message: str = "You need to register first."


class OAuthRegister(BaseModel):
    handoff_token: str
    role: str
    company_name: Optional[str] = None


class PasswordResetRequest(BaseModel):
    email: str


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str


# ============== Helper Functions ==============


def _token_response(result: AuthResult, store: SessionStore) -> Token:
    session = store.state.session
    return Token(
        access_token=result.access_token,
        user=SessionUser.model_validate(session) if session else None,
    )


def session_response(state: SessionState) -> SessionResponse:
    session = state.session
    return SessionResponse(
        user=SessionUser.model_validate(session) if session else None,
        profile_complete=state.profile_complete,
        profile_link=get_profile_link(session.role, state.profile_complete) if session else None,
        loading=state.loading,
        checking=state.checking,
    )


# ============== API Endpoints ==============


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    provider: IdentityProvider = Depends(get_identity_provider),
    store: SessionStore = Depends(get_session_store),
):
    """
    Register a new account and sign it in.

    Creates the user record and an empty profile for its role. Company
    accounts must provide a company name.
    """
    result = provider.register(
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
        role=user_data.role,
        company_name=user_data.company_name,
    )
    return _token_response(result, store)


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    provider: IdentityProvider = Depends(get_identity_provider),
    store: SessionStore = Depends(get_session_store),
):
    """
    Login and get JWT access token.

    Uses OAuth2 password flow. Send username (email) and password
    as form data.
    """
    result = provider.sign_in_with_password(form_data.username, form_data.password)
    return _token_response(result, store)


@router.post("/logout")
async def logout(
    provider: IdentityProvider = Depends(get_identity_provider),
    store: SessionStore = Depends(get_session_store),
):
    """Sign out and clear the auth cookie."""
    provider.sign_out()
    return {"message": "Signed out"}


@router.get("/me", response_model=SessionResponse)
async def get_me(state: SessionState = Depends(get_session_state)):
    """
    Current session state.

    Never fails: a signed-out caller gets `user: null`.
    """
    return session_response(state)


@router.post("/oauth/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def oauth_register(
    payload: OAuthRegister,
    provider: IdentityProvider = Depends(get_identity_provider),
    store: SessionStore = Depends(get_session_store),
):
    """Finish a provider hand-off by choosing a role."""
    result = provider.register_with_oauth(
        payload.handoff_token,
        role=payload.role,
        company_name=payload.company_name,
    )
    return _token_response(result, store)


@router.post("/oauth/{provider_name}")
async def oauth_sign_in(
    provider_name: str,
    payload: OAuthSignIn,
    provider: IdentityProvider = Depends(get_identity_provider),
    store: SessionStore = Depends(get_session_store),
):
    """
    Sign in with a provider ID token.

    Known accounts get a token. Unknown emails get a hand-off to complete at
    `/register?provider=<name>`.
    """
    result = provider.sign_in_with_oauth(provider_name, payload.id_token)
    if isinstance(result, OAuthHandoff):
        return OAuthHandoffResponse(
            provider=result.provider,
            email=result.email,
            name=result.name,
            picture=result.picture,
            handoff_token=result.handoff_token,
            next=f"/register?provider={result.provider}",
        )
    return _token_response(result, store)


@router.post("/reset-password")
async def request_password_reset(
    payload: PasswordResetRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Email a password reset link."""
    provider.send_password_reset(payload.email)
    return {"message": "Reset email sent. Check your inbox."}


@router.post("/reset-password/confirm")
async def confirm_password_reset(
    payload: PasswordResetConfirm,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Set a new password from a reset link token."""
    provider.confirm_password_reset(payload.token, payload.new_password)
    return {"message": "Password updated. You can now sign in."}
