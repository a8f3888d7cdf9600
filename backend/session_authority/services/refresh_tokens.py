# session_authority/services/refresh_tokens.py
"""
Persistence for refresh-token records.

Only a hash of each token is stored; lookups and deletes by token hash the
presented value first. Every mutation commits on its own, and deletes never
fail for a missing row (they report how many rows went away).
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from session_authority.core.security import as_utc, hash_refresh_token
from session_authority.models.refresh_token import RefreshToken


class RefreshTokenStore(Protocol):
    def create(self, user_id: int, token: str, expires_at: datetime) -> RefreshToken: ...

    def find_by_token(self, token: str) -> Optional[RefreshToken]: ...

    def delete_by_id(self, record_id: int) -> int: ...

    def delete_by_token(self, token: str) -> int: ...

    def delete_all_for_user(self, user_id: int) -> int: ...

    def delete_expired(self, now: datetime) -> int: ...


class SqlAlchemyRefreshTokenStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create(self, user_id: int, token: str, expires_at: datetime) -> RefreshToken:
        rt = RefreshToken(
            user_id=user_id,
            token_hash=hash_refresh_token(token),
            expires_at=as_utc(expires_at),
        )
        self.db.add(rt)
        self.db.commit()
        self.db.refresh(rt)
        return rt

    def find_by_token(self, token: str) -> Optional[RefreshToken]:
        if not token:
            return None
        token_hash = hash_refresh_token(token)
        return self.db.query(RefreshToken).filter(RefreshToken.token_hash == token_hash).first()

    def delete_by_id(self, record_id: int) -> int:
        return self._delete(self.db.query(RefreshToken).filter(RefreshToken.id == record_id))

    def delete_by_token(self, token: str) -> int:
        if not token:
            return 0
        token_hash = hash_refresh_token(token)
        return self._delete(self.db.query(RefreshToken).filter(RefreshToken.token_hash == token_hash))

    def delete_all_for_user(self, user_id: int) -> int:
        return self._delete(self.db.query(RefreshToken).filter(RefreshToken.user_id == user_id))

    def delete_expired(self, now: datetime) -> int:
        # Valid while now <= expires_at, so expired means strictly earlier.
        return self._delete(self.db.query(RefreshToken).filter(RefreshToken.expires_at < as_utc(now)))

    def _delete(self, query) -> int:
        count = query.delete(synchronize_session=False)
        self.db.commit()
        return int(count or 0)
