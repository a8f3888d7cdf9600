# session_authority/auth/bearer.py
from __future__ import annotations

import logging
from datetime import datetime

from session_authority.auth.errors import MissingCredential, UserNotFound
from session_authority.auth.identity import Identity
from session_authority.auth.signer import AccessTokenSigner
from session_authority.services.users import UserDirectory

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_bearer_token(raw_header: str | None) -> str:
    """
    Pull the token out of an ``Authorization: Bearer <token>`` value.
    The scheme is matched case-insensitively.
    """
    if not raw_header or not raw_header.strip():
        raise MissingCredential()

    parts = raw_header.strip().split(None, 1)
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        raise MissingCredential("Malformed Authorization header")

    token = parts[1].strip()
    if not token:
        raise MissingCredential()
    return token


class BearerValidator:
    """
    Resolves a bearer credential to a live user.

    Validates:
      - Authorization: Bearer <token>
      - token signature + exp
      - subject still resolves to a user (tokens outlive account deletion,
        so this lookup is the only guard)
    """

    def __init__(self, signer: AccessTokenSigner, users: UserDirectory) -> None:
        self.signer = signer
        self.users = users

    def resolve(self, raw_header: str | None, now: datetime) -> Identity:
        token = extract_bearer_token(raw_header)
        claims = self.signer.verify_access_token(token, now)

        user = self.users.get_by_id(claims.user_id)
        if user is None:
            logger.info("Access token subject %s no longer resolves to a user", claims.subject)
            raise UserNotFound()

        return Identity.from_user(user)
