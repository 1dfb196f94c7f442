"""
Authentication routes.

Provides endpoints for:
- User registration (self-service)
- Login (email/password → JWT)
- Guest sessions (ephemeral JWT, nothing persisted)
- Current user info
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Request
from loguru import logger
from pydantic import BaseModel, Field

from vault_core.auth import get_auth_context
from vault_core.auth.jwt_service import JwtService
from vault_core.auth.user_service import UserService
from vault_core.domain.auth import AuthContext
from vault_core.domain.exceptions import AuthenticationError, NotFoundError
from vault_core.domain.models import UserProfile
from vault_core.infrastructure.rate_limiter import limiter

router = APIRouter(prefix="/auth", tags=["auth"])


# =============================================================================
# Request/Response Schemas
# =============================================================================


class SignupRequest(BaseModel):
    """User registration request."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=320)
    password: str


class LoginRequest(BaseModel):
    """Login request."""

    email: str
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Token plus the profile it was issued for."""

    success: bool = True
    token: str
    user: UserProfile


class UserResponse(BaseModel):
    success: bool = True
    data: UserProfile


# =============================================================================
# Service Factories
# =============================================================================


def get_user_service() -> UserService:
    """Get user service instance."""
    return UserService()


def get_jwt_service() -> JwtService:
    """Get JWT service instance."""
    return JwtService()


# =============================================================================
# Routes
# =============================================================================


@router.post("/signup", response_model=TokenResponse, status_code=201)
@limiter.limit("5/minute")
def signup(
    request: Request,
    signup_request: SignupRequest = Body(...),
    user_service: UserService = Depends(get_user_service),
    jwt_service: JwtService = Depends(get_jwt_service),
):
    """Register a new user and return an access token."""
    user = user_service.register(
        name=signup_request.name,
        email=signup_request.email,
        password=signup_request.password,
    )
    logger.info(f"New user registered: {user.id}")
    return TokenResponse(
        token=jwt_service.create_access_token(user.id, email=user.email),
        user=user,
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
def login(
    request: Request,
    login_request: LoginRequest = Body(...),
    user_service: UserService = Depends(get_user_service),
    jwt_service: JwtService = Depends(get_jwt_service),
):
    """Authenticate with email and password."""
    user = user_service.authenticate(login_request.email, login_request.password)
    if not user:
        raise AuthenticationError("Invalid credentials")

    logger.info(f"User logged in: {user.id}")
    return TokenResponse(
        token=jwt_service.create_access_token(user.id, email=user.email),
        user=user,
    )


@router.post("/guest", response_model=TokenResponse)
@limiter.limit("10/minute")
def guest(
    request: Request,
    user_service: UserService = Depends(get_user_service),
    jwt_service: JwtService = Depends(get_jwt_service),
):
    """Start an ephemeral guest session. Guests can browse but not upload."""
    guest_id, token = jwt_service.create_guest_token()
    logger.info(f"Guest session started: {guest_id}")
    return TokenResponse(token=token, user=user_service.guest_profile(guest_id))


@router.get("/me", response_model=UserResponse)
def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
    user_service: UserService = Depends(get_user_service),
):
    """Get current authenticated user.

    Requires Bearer token authentication.
    """
    if auth.is_guest:
        return UserResponse(data=user_service.guest_profile(auth.user_id))

    user = user_service.get_by_id(auth.user_id)
    if not user:
        raise NotFoundError("User not found")
    return UserResponse(data=user)
