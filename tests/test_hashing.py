"""Unit tests for auth/hashing.py -- bcrypt password hashing.

Covers:
- hash() output verifies against the same plaintext and is not the plaintext
- salting: two hashes of one password differ yet both verify
- wrong passwords return False, not an error
- malformed stored hashes raise HashingError
- passwords longer than bcrypt's 72-byte window hash and verify
- any str hashes, including lone surrogates
"""

from __future__ import annotations

import pytest

from auth.errors import HashingError
from auth.hashing import PasswordHasher


def test_hash_verifies_against_same_plaintext(hasher: PasswordHasher) -> None:
    stored = hasher.hash("pw123456")
    assert stored != "pw123456"
    assert stored.startswith("$2")
    assert hasher.verify("pw123456", stored) is True


def test_wrong_password_returns_false(hasher: PasswordHasher) -> None:
    stored = hasher.hash("pw123456")
    assert hasher.verify("pw1234567", stored) is False
    assert hasher.verify("", stored) is False


def test_same_password_hashes_differently(hasher: PasswordHasher) -> None:
    """Per-hash random salt: identical input must not produce identical output."""
    first = hasher.hash("correct horse battery staple")
    second = hasher.hash("correct horse battery staple")
    assert first != second
    assert hasher.verify("correct horse battery staple", first)
    assert hasher.verify("correct horse battery staple", second)


def test_unicode_password(hasher: PasswordHasher) -> None:
    stored = hasher.hash("pässwörd-密码")
    assert hasher.verify("pässwörd-密码", stored)
    assert not hasher.verify("passwort-密码", stored)


def test_empty_password_is_hashable(hasher: PasswordHasher) -> None:
    stored = hasher.hash("")
    assert hasher.verify("", stored)


def test_long_password_does_not_raise(hasher: PasswordHasher) -> None:
    """Input longer than 72 bytes is truncated consistently on both sides."""
    long_pw = "x" * 200
    stored = hasher.hash(long_pw)
    assert hasher.verify(long_pw, stored)


def test_cost_factor_is_embedded(hasher: PasswordHasher) -> None:
    stored = hasher.hash("pw123456")
    assert stored.split("$")[2] == "04"


@pytest.mark.parametrize("bad_hash", ["", "not-a-hash", "$2b$12$tooshort"])
def test_malformed_hash_raises(hasher: PasswordHasher, bad_hash: str) -> None:
    with pytest.raises(HashingError):
        hasher.verify("pw123456", bad_hash)


def test_rounds_out_of_range_rejected() -> None:
    with pytest.raises(ValueError):
        PasswordHasher(rounds=3)
    with pytest.raises(ValueError):
        PasswordHasher(rounds=32)


def test_lone_surrogate_password_hashes(hasher: PasswordHasher) -> None:
    """Any str is hashable, even one that is not valid UTF-8 text."""
    stored = hasher.hash("pw\ud800xx")
    assert hasher.verify("pw\ud800xx", stored)
    assert not hasher.verify("pw\ud801xx", stored)
