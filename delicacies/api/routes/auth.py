"""
Authentication API Routes for Bihari Delicacies.

Handles:
- User registration (Sign Up)
- User login (session cookie)
- Logout
- Current user retrieval
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from delicacies.api.dependencies import (
    SESSION_COOKIE,
    Settings,
    get_auth_gateway,
    get_optional_user,
    get_session_id,
    get_app_settings,
)
from delicacies.api.schemas import (
    Envelope,
    ErrorResponse,
    LoginRequest,
    RegisterRequest,
    UserInfo,
)
from delicacies.auth.gateway import AuthGateway, public_user
from delicacies.exceptions import AuthenticationError
from delicacies.storage.record_store import Record

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, session_id: str, settings: Settings) -> None:
    # No max_age: the cookie lives for the browser session
    response.set_cookie(
        SESSION_COOKIE,
        session_id,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


# --- Endpoints ---

@router.post(
    "/register",
    response_model=Envelope[UserInfo],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing fields"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
def register(
    body: RegisterRequest,
    response: Response,
    gateway: AuthGateway = Depends(get_auth_gateway),
    settings: Settings = Depends(get_app_settings),
):
    """Register a new user and log them in."""
    result = gateway.register(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role.value,
        phone=body.phone,
        address=body.address,
    )
    _set_session_cookie(response, result.session_id, settings)
    return {"data": public_user(result.user)}


@router.post(
    "/login",
    response_model=Envelope[UserInfo],
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
def login(
    body: LoginRequest,
    response: Response,
    gateway: AuthGateway = Depends(get_auth_gateway),
    settings: Settings = Depends(get_app_settings),
):
    """Check credentials and open a session."""
    result = gateway.login(body.email, body.password)
    _set_session_cookie(response, result.session_id, settings)
    return {"data": public_user(result.user)}


@router.post("/logout", response_model=Envelope[bool])
def logout(
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    """End the session. Succeeds with or without a cookie."""
    gateway.logout(session_id)
    response.delete_cookie(SESSION_COOKIE, path="/")
    return {"data": True}


@router.get(
    "/me",
    response_model=Envelope[UserInfo],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
def read_users_me(user: Optional[Record] = Depends(get_optional_user)):
    """Get current user profile."""
    if user is None:
        raise AuthenticationError("Not authenticated")
    return {"data": public_user(user)}
