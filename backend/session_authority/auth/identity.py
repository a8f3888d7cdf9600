# session_authority/auth/identity.py
"""
Authenticated identity returned by the bearer validator.

Handlers receive this value explicitly (via a FastAPI dependency) instead of
reading a user object attached to the request.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Identity:
    """
    Minimal projection of a live user account.

    Attributes:
        id: Internal user ID (the access token ``sub`` claim).
        email: Normalized email address.
        created_at: When the account was created.
    """

    id: int
    email: str
    created_at: datetime | None = None

    @classmethod
    def from_user(cls, user: Any) -> Identity:
        return cls(id=int(user.id), email=user.email, created_at=user.created_at)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "email": self.email, "created_at": self.created_at}
