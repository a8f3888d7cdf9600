# session_authority/auth/errors.py
"""
Failure kinds surfaced by the session authority.

None of these are retried internally. The transport layer maps every one of
them to an unauthorized response; ``code`` is the stable, machine-readable
reason that goes along with it.
"""
from __future__ import annotations


class AuthError(Exception):
    code = "UNAUTHORIZED"
    default_message = "Could not validate credentials"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidCredentials(AuthError):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class InvalidRefreshToken(AuthError):
    code = "INVALID_REFRESH_TOKEN"
    default_message = "Invalid refresh token"


class RefreshTokenExpired(AuthError):
    code = "REFRESH_TOKEN_EXPIRED"
    default_message = "Refresh token expired"


class InvalidSignature(AuthError):
    code = "INVALID_SIGNATURE"
    default_message = "Invalid access token"


class AccessTokenExpired(AuthError):
    code = "ACCESS_TOKEN_EXPIRED"
    default_message = "Access token expired"


class UserNotFound(AuthError):
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class MissingCredential(AuthError):
    code = "MISSING_CREDENTIAL"
    default_message = "Missing Authorization header"
