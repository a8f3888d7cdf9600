# session_authority/auth/signer.py
"""
Signed, expiring access tokens (HS256 JWTs by default).

The signer is stateless: output depends only on the secret, the claims and
the clock value passed in. Expiry is checked here against the caller's
``now`` rather than the wall clock, and only after the signature has been
verified.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from session_authority.auth.errors import AccessTokenExpired, InvalidSignature
from session_authority.core.config import AuthConfig

TOKEN_PURPOSE = "access"


@dataclass(frozen=True)
class AccessTokenClaims:
    subject: str
    email: str
    issued_at: datetime
    expires_at: datetime

    @property
    def user_id(self) -> int:
        return int(self.subject)


def _timestamp(now: datetime) -> int:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return int(now.timestamp())


def _is_canonical(token: str) -> bool:
    """
    True when every segment is the exact base64url encoding of its bytes,
    i.e. no stray padding bits in a final character.
    """
    segments = token.split(".")
    if len(segments) != 3:
        return False
    for segment in segments:
        try:
            raw = segment.encode("ascii")
            if base64url_encode(base64url_decode(raw)) != raw:
                return False
        except (ValueError, TypeError):
            return False
    return True


class AccessTokenSigner:
    def __init__(self, config: AuthConfig) -> None:
        self._secret = config.signing_secret
        self._algorithm = config.algorithm
        self._ttl_seconds = int(config.access_token_ttl.total_seconds())

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue_access_token(self, subject: int | str, email: str, now: datetime) -> str:
        """
        Access token used for API auth: Authorization: Bearer <token>
        """
        iat = _timestamp(now)
        payload = {
            "sub": str(subject),
            "email": email,
            "purpose": TOKEN_PURPOSE,
            "iat": iat,
            "exp": iat + self._ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify_access_token(self, token: str, now: datetime) -> AccessTokenClaims:
        """
        Raises InvalidSignature for anything that does not verify against our
        secret (garbled, tampered, wrong key, wrong purpose) and
        AccessTokenExpired once ``now`` is past ``exp``. The boundary second
        itself is still valid.
        """
        if not token or not _is_canonical(token):
            raise InvalidSignature()

        try:
            # exp is checked below against the injected clock.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            raise InvalidSignature()

        claims = self._claims_from_payload(payload)
        if _timestamp(now) > _timestamp(claims.expires_at):
            raise AccessTokenExpired()
        return claims

    @staticmethod
    def _claims_from_payload(payload: dict[str, Any]) -> AccessTokenClaims:
        if payload.get("purpose") != TOKEN_PURPOSE:
            raise InvalidSignature("Invalid token purpose")

        sub = payload.get("sub")
        email = payload.get("email")
        iat = payload.get("iat")
        exp = payload.get("exp")
        if not sub or not str(sub).isdigit() or not isinstance(email, str):
            raise InvalidSignature("Invalid token payload")
        if not isinstance(iat, int) or not isinstance(exp, int):
            raise InvalidSignature("Invalid token payload")

        return AccessTokenClaims(
            subject=str(sub),
            email=email,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
