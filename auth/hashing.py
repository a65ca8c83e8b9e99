"""
auth/hashing.py -- Password hashing with bcrypt.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error. Direct bcrypt usage is simpler and has no
compatibility shim.

bcrypt only ever reads the first 72 bytes of a password. Older releases
truncated silently; current ones raise ValueError instead. We truncate the
UTF-8 encoding ourselves in both hash() and verify() so long passwords keep
working and the two sides always agree on what was hashed.

The hash string embeds algorithm, cost and salt ($2b$12$<salt><digest>), so
verify() needs nothing but the stored string.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.errors import HashingError

logger = logging.getLogger("loginapp.auth")

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    # surrogatepass: every str encodes, including lone surrogates.
    return plain.encode("utf-8", "surrogatepass")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Salted, iterated one-way hashing of plaintext passwords.

    Usage:
        hasher = PasswordHasher(rounds=12)
        stored = hasher.hash("pw123456")
        hasher.verify("pw123456", stored)   # True
        hasher.verify("wrong", stored)      # False
    """

    def __init__(self, rounds: int = 12) -> None:
        # bcrypt accepts a cost factor in [4, 31]; 12 is the library default.
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be between 4 and 31, got {rounds}")
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of plain. Two calls never return the same string."""
        try:
            return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")
        except (ValueError, TypeError) as exc:
            logger.error("bcrypt hashing failed: %s", exc)
            raise HashingError(f"bcrypt hashing failed: {exc}") from exc

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches hashed, False on mismatch.

        Raises HashingError when hashed is not a structurally valid bcrypt
        string -- that means the stored record is corrupt, not that the
        password is wrong.
        """
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except (ValueError, TypeError) as exc:
            raise HashingError(f"stored hash is not a valid bcrypt string: {exc}") from exc
