"""
api/routes/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/auth/register   -- create an account; returns user + token (201)
  POST /api/auth/login      -- password login; returns user + token
  GET  /api/auth/me         -- current user (requires Bearer token)

Handlers are plain `def` so FastAPI runs them in its thread pool: bcrypt and
the SQLAlchemy store are blocking calls.

Errors raised by AuthService propagate out of the handler unchanged. The
AuthError handler in api/main.py maps each kind to a status code and the
standard error envelope. Login responses carry Cache-Control: no-store so
tokens are never cached by intermediaries.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from api.models import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from auth.dependencies import get_auth_service, get_current_user
from auth.models import UserProfile
from auth.service import AuthService

# Auth policy:
# - POST /api/auth/register: public
# - POST /api/auth/login:    public
# - GET  /api/auth/me:       requires auth (get_current_user)
router = APIRouter()


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(
    body: RegisterRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a new account and log it in.

    A taken email yields 409 email_taken whether it lost a concurrent race
    or was registered long ago.
    """
    result = service.register(body.name, body.email, body.password, avatar=body.avatar)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse.from_result(result, expires_in=service.tokens.lifetime_seconds)


@router.post("/auth/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Authenticate with email and password.

    Returns the same bad_credentials error for an unknown email and a wrong
    password.
    """
    result = service.login(body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse.from_result(result, expires_in=service.tokens.lifetime_seconds)


@router.get("/auth/me", response_model=UserResponse)
def me(current_user: UserProfile = Depends(get_current_user)) -> UserResponse:
    """Return the account the presented token belongs to."""
    return UserResponse.from_profile(current_user)
