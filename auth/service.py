"""
auth/service.py -- Registration, login and current-user resolution.

AuthService is the only entry point api/ uses. It owns no state of its own
beyond the collaborators handed to its constructor, so one instance serves
every request concurrently.

Account enumeration [C1]:
  login() raises the same InvalidCredentialsError for an unknown email and a
  wrong password, and runs bcrypt in both cases (against a dummy hash when
  the email is unknown) so response time does not reveal which one happened.

Inactive accounts:
  is_active is checked only after the password verifies. A caller must know
  the correct password to learn that an account is deactivated; everyone
  else sees InvalidCredentialsError.

Every method returns UserProfile, never User, so password_hash cannot leak
into a response.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from auth.errors import AccountInactiveError, InvalidCredentialsError, UserNotFoundError
from auth.hashing import PasswordHasher
from auth.models import AuthResult, User, UserProfile
from auth.store import UserStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("loginapp.auth")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_profile(user: User) -> UserProfile:
    """Strip password_hash from a persisted User."""
    return UserProfile(
        id=user.id,
        name=user.name,
        email=user.email,
        avatar=user.avatar,
        created_at=user.created_at,
        updated_at=user.updated_at,
        is_active=user.is_active,
    )


class AuthService:
    """Orchestrates UserStore, PasswordHasher and TokenIssuer.

    Usage:
        service = AuthService(store, PasswordHasher(), TokenIssuer(secret))
        result = service.register("Ann", "a@x.com", "pw123456")
        result = service.login("a@x.com", "pw123456")
        profile = service.current_user(result.token)
    """

    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self._clock = clock or _utcnow
        # Computed once so the first unknown-email login is not measurably
        # slower than later ones.
        self._dummy_hash = hasher.hash("loginapp_timing_dummy")

    def register(self, name: str, email: str, password: str, avatar: str | None = None) -> AuthResult:
        """Create an account and return it with a session token.

        Raises DuplicateEmailError if the email is already registered. There
        is no pre-check: the store's unique constraint decides, so a lost
        race and a plain duplicate look the same to the caller.
        """
        draft = User(
            name=name,
            email=email,
            password_hash=self.hasher.hash(password),
            avatar=avatar,
            is_active=True,
        )
        user = self.store.create(draft)
        logger.info("Registered user %s", user.id)
        token = self.tokens.issue(user.id, now=self._clock())
        return AuthResult(user=to_profile(user), token=token)

    def login(self, email: str, password: str) -> AuthResult:
        """Verify credentials and return the user with a new session token."""
        user = self.store.find_by_email(email)
        if user is None:
            # Equalize timing -- do NOT return early before running bcrypt [C1]
            self.hasher.verify(password, self._dummy_hash)
            logger.warning("Login failed: unknown email")
            raise InvalidCredentialsError()
        if not self.hasher.verify(password, user.password_hash):
            logger.warning("Login failed: bad password for user %s", user.id)
            raise InvalidCredentialsError()
        if not user.is_active:
            logger.warning("Login refused: user %s is inactive", user.id)
            raise AccountInactiveError()
        token = self.tokens.issue(user.id, now=self._clock())
        logger.info("Login: user %s", user.id)
        return AuthResult(user=to_profile(user), token=token)

    def current_user(self, token: str) -> UserProfile:
        """Resolve a bearer token to the user it was issued for.

        Raises InvalidTokenError for a bad or expired token and
        UserNotFoundError when the token is valid but the account no longer
        exists.
        """
        user_id = self.tokens.verify(token, now=self._clock())
        user = self.store.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return to_profile(user)
