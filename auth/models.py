"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). The store and the
service do the work; these only own the domain shape.

User is the persisted record and carries password_hash. It never leaves the
auth core -- AuthService converts it to a UserProfile first.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class User:
    """A registered account as stored in the users table.

    id is None on a draft that has not been persisted yet. The store assigns
    a random uuid4 on insert and every record it returns has one.

    created_at / updated_at are timezone-aware UTC datetimes. On a draft they
    are ignored -- the store stamps both at insert time.
    """

    name: str
    email: str
    password_hash: str
    avatar: str | None = None
    id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_active: bool = True


@dataclass(frozen=True)
class UserProfile:
    """Outward-facing view of a User. Has no password_hash field at all."""

    id: UUID
    name: str
    email: str
    avatar: str | None
    created_at: datetime
    updated_at: datetime
    is_active: bool


@dataclass(frozen=True)
class AuthResult:
    """Returned by register and login: the profile plus a fresh session token."""

    user: UserProfile
    token: str
