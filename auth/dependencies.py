"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The bearer token comes from the Authorization: Bearer <token> header only.
There is no cookie or API key path.

get_current_user() resolves the token through AuthService. Core errors
(InvalidTokenError, UserNotFoundError) propagate untouched; the exception
handler in api/main.py turns them into responses. A missing or malformed
header never reaches the core -- it is a plain 401 here.

Layer rule: no imports from api/ or core/.
  auth/dependencies.py may import from fastapi (for Depends/HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from auth.models import UserProfile
from auth.service import AuthService


def get_auth_service(request: Request) -> AuthService:
    """Return the AuthService wired into app.state by the lifespan."""
    return request.app.state.auth_service


def bearer_token(request: Request) -> str:
    """Extract the token from the Authorization header. Raises HTTP 401 if absent."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token.strip()


def get_current_user(
    token: str = Depends(bearer_token),
    service: AuthService = Depends(get_auth_service),
) -> UserProfile:
    """Require authentication and return the caller's profile.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: UserProfile = Depends(get_current_user)): ...
    """
    return service.current_user(token)
