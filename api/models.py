"""
API request and response models for loginapp REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

UserResponse is built from auth.models.UserProfile, which has no
password_hash -- there is no field to leak even by accident.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import AuthResult, UserProfile

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    # Passwords are not stripped -- leading/trailing spaces are part of the secret.
    password: str = Field(min_length=8, max_length=128)
    avatar: Optional[str] = Field(default=None, max_length=2048)

    # Only the display name is stripped. Email is stored as provided.
    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def email_has_at(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user account."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    email: str
    avatar: Optional[str]
    created_at: datetime
    updated_at: datetime
    is_active: bool

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserResponse":
        return cls(
            id=profile.id,
            name=profile.name,
            email=profile.email,
            avatar=profile.avatar,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
            is_active=profile.is_active,
        )


class AuthResponse(BaseModel):
    """Response for register and login: the user plus a bearer token."""

    model_config = ConfigDict(frozen=True)

    user: UserResponse
    token: str
    token_type: str = "bearer"
    expires_in: int

    @classmethod
    def from_result(cls, result: AuthResult, expires_in: int) -> "AuthResponse":
        return cls(
            user=UserResponse.from_profile(result.user),
            token=result.token,
            expires_in=expires_in,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    components: dict[str, str]
