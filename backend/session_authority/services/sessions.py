# session_authority/services/sessions.py
"""
Session authority: login, refresh, logout, revoke-all and cleanup.

Refresh-token lifecycle:
  ISSUED -> VALID (while now <= expires_at) -> EXPIRED | REVOKED

Refresh tokens are NOT rotated: a valid refresh token can be exchanged for a
new access token any number of times until it expires or is revoked.

Each operation issues at most one store mutation. The only side effect of a
failed call is ``refresh`` on an expired token, which deletes that record.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from session_authority.auth.errors import (
    InvalidCredentials,
    InvalidRefreshToken,
    RefreshTokenExpired,
)
from session_authority.auth.identity import Identity
from session_authority.auth.signer import AccessTokenSigner
from session_authority.core.config import AuthConfig
from session_authority.core.security import as_utc, generate_refresh_token, verify_password
from session_authority.services.refresh_tokens import RefreshTokenStore, SqlAlchemyRefreshTokenStore
from session_authority.services.users import SqlAlchemyUserDirectory, UserDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    user: Identity


class SessionAuthority:
    def __init__(
        self,
        config: AuthConfig,
        signer: AccessTokenSigner,
        store: RefreshTokenStore,
        users: UserDirectory,
    ) -> None:
        self.config = config
        self.signer = signer
        self.store = store
        self.users = users

    def login(self, email: str, password: str, now: datetime) -> LoginResult:
        """
        Verify the password and open a new session. Every call creates its own
        refresh-token record; sessions per user are not capped.
        """
        user = self.users.get_by_email(email)
        if user is None:
            # Same failure as a bad password so callers can't enumerate accounts.
            logger.info("Login failed: unknown email")
            raise InvalidCredentials()

        if not verify_password(password, user.password_hash):
            logger.info("Login failed: bad password for user id=%s", user.id)
            raise InvalidCredentials()

        access_token = self.signer.issue_access_token(user.id, user.email, now)

        refresh_token = generate_refresh_token()
        self.store.create(
            user_id=user.id,
            token=refresh_token,
            expires_at=as_utc(now) + self.config.refresh_token_ttl,
        )

        logger.info("Login succeeded for user id=%s", user.id)
        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            user=Identity.from_user(user),
        )

    def refresh(self, token: str, now: datetime) -> str:
        """
        Exchange a refresh token for a new access token. The refresh record
        is left untouched unless it has expired, in which case it is deleted.
        """
        if not token:
            raise InvalidRefreshToken()

        record = self.store.find_by_token(token)
        if record is None:
            raise InvalidRefreshToken()

        if as_utc(now) > as_utc(record.expires_at):
            self.store.delete_by_id(record.id)
            logger.info("Deleted expired refresh token id=%s for user id=%s", record.id, record.user_id)
            raise RefreshTokenExpired()

        user = self.users.get_by_id(record.user_id)
        if user is None:
            raise InvalidRefreshToken()

        return self.signer.issue_access_token(user.id, user.email, now)

    def logout(self, token: str | None) -> None:
        """Revoke one session. Unknown or already-revoked tokens are fine."""
        if not token:
            return
        self.store.delete_by_token(token)

    def revoke_all(self, user_id: int) -> int:
        """Logout everywhere: drop every refresh token the user holds."""
        count = self.store.delete_all_for_user(user_id)
        logger.info("Revoked %d refresh token(s) for user id=%s", count, user_id)
        return count

    def cleanup_expired(self, now: datetime) -> int:
        count = self.store.delete_expired(now)
        logger.info("Removed %d expired refresh token(s)", count)
        return count


def build_session_authority(db: Session, config: AuthConfig) -> SessionAuthority:
    return SessionAuthority(
        config=config,
        signer=AccessTokenSigner(config),
        store=SqlAlchemyRefreshTokenStore(db),
        users=SqlAlchemyUserDirectory(db),
    )
