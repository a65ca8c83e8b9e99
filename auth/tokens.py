"""
auth/tokens.py -- Session token issue and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the server secret and
       carry sub (user id), iat and exp. Nothing is stored server-side --
       signature plus expiry is the whole validity check, and expiry is the
       only lifetime bound (no revocation list).

  Expiry: checked here, not by python-jose, so callers can pass an explicit
       `now` (tests, replay of a recorded request). jose's own exp check is
       disabled and no leeway is applied: a token is valid for
       iat <= now < exp and rejected from exp onwards.

  Resolution: NumericDate claims are whole seconds. `now` is truncated to
       whole seconds on both issue and verify.

The secret and lifetime are passed in by the caller (api/main.py reads them
from Settings at startup). This module never reads configuration itself.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from jose import JWTError, jwt

from auth.errors import InvalidTokenError, SigningError

logger = logging.getLogger("loginapp.auth")

_ALGORITHM = "HS256"

DEFAULT_LIFETIME_SECONDS = 7 * 24 * 60 * 60


def _timestamp(now: datetime | None) -> int:
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    return int(now.timestamp())


class TokenIssuer:
    """Mints and validates signed, expiring bearer tokens.

    Usage:
        tokens = TokenIssuer(secret="...", lifetime_seconds=3600)
        token = tokens.issue(user.id)
        user_id = tokens.verify(token)   # raises InvalidTokenError on failure
    """

    def __init__(self, secret: str, lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS) -> None:
        if lifetime_seconds <= 0:
            raise ValueError("lifetime_seconds must be positive")
        self._secret = secret
        self._lifetime = lifetime_seconds

    @property
    def lifetime_seconds(self) -> int:
        return self._lifetime

    def issue(self, user_id: UUID, now: datetime | None = None) -> str:
        """Return a signed token for user_id, valid for lifetime_seconds from now."""
        if not self._secret:
            raise SigningError("token secret is empty")
        issued_at = _timestamp(now)
        payload = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
        }
        try:
            return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)
        except JWTError as exc:
            logger.error("JWT signing failed: %s", exc)
            raise SigningError(f"JWT signing failed: {exc}") from exc

    def verify(self, token: str, now: datetime | None = None) -> UUID:
        """Validate token and return the user id it was issued for.

        Raises InvalidTokenError when the signature does not match, the token
        or its claims are malformed, or now is at or past exp.
        """
        if not isinstance(token, str) or not token:
            raise InvalidTokenError("token is empty")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidTokenError(f"token rejected: {exc}") from exc

        exp = payload.get("exp")
        sub = payload.get("sub")
        if not isinstance(exp, int) or isinstance(exp, bool) or not isinstance(sub, str):
            raise InvalidTokenError("token is missing sub or exp")
        if _timestamp(now) >= exp:
            raise InvalidTokenError("token expired")
        try:
            return UUID(sub)
        except ValueError as exc:
            raise InvalidTokenError("token subject is not a user id") from exc
