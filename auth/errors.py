"""
auth/errors.py -- Error taxonomy for the authentication core.

Every failure the core can produce is a subclass of AuthError carrying a
machine-readable code and a client-safe message. The core raises these
untranslated; api/ maps each kind to an HTTP status.

Infrastructure errors (HashingError, SigningError, StorageError) may carry
internal detail in str(exc). That detail is for server logs only -- clients
see the class-level message.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every error raised by the auth core."""

    code: str = "auth_error"
    message: str = "Authentication failed."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail


# ---------------------------------------------------------------------------
# Client-facing conditions
# ---------------------------------------------------------------------------


class DuplicateEmailError(AuthError):
    code = "email_taken"
    message = "A user with this email already exists."


class InvalidCredentialsError(AuthError):
    """Raised for both unknown email and wrong password.

    The two cases are deliberately indistinguishable to prevent account
    enumeration.
    """

    code = "bad_credentials"
    message = "Invalid email or password."


class AccountInactiveError(AuthError):
    code = "account_inactive"
    message = "This account has been deactivated."


class InvalidTokenError(AuthError):
    code = "invalid_token"
    message = "Invalid or expired token."


class UserNotFoundError(AuthError):
    code = "user_not_found"
    message = "User not found."


# ---------------------------------------------------------------------------
# Infrastructure failures -- logged with detail, surfaced opaquely
# ---------------------------------------------------------------------------


class HashingError(AuthError):
    code = "internal_error"
    message = "Password hashing failed."


class SigningError(AuthError):
    code = "internal_error"
    message = "Token signing failed."


class StorageError(AuthError):
    code = "internal_error"
    message = "Storage operation failed."
