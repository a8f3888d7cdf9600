# session_authority/services/users.py
"""
User collaborator.

The session authority only reads users (lookup by email for login, by id for
refresh and bearer validation). Registration and listing live here too so
the HTTP layer has somewhere to create the accounts it authenticates.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from session_authority.core.security import hash_password
from session_authority.models.user import User

logger = logging.getLogger(__name__)


class EmailAlreadyRegisteredError(ValueError):
    pass


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Look up a user by email address."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def list_users(db: Session) -> list[User]:
    """All users, newest first."""
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def create_user(db: Session, email: str, password: str) -> User:
    """
    Register a new user with a hashed password.

    Raises:
        ValueError: If email or password is empty
        EmailAlreadyRegisteredError: If the email is taken
    """
    normalized_email = normalize_email(email)
    if not normalized_email:
        raise ValueError("email is required")
    if not password:
        raise ValueError("password is required")

    if get_user_by_email(db, normalized_email):
        raise EmailAlreadyRegisteredError("Email already registered")

    user = User(email=normalized_email, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email.
        db.rollback()
        raise EmailAlreadyRegisteredError("Email already registered")
    db.refresh(user)

    logger.info("Registered user id=%s email=%s", user.id, normalized_email)
    return user


class UserDirectory(Protocol):
    def get_by_email(self, email: str) -> Optional[User]: ...

    def get_by_id(self, user_id: int) -> Optional[User]: ...


class SqlAlchemyUserDirectory:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_email(self, email: str) -> Optional[User]:
        return get_user_by_email(self.db, email)

    def get_by_id(self, user_id: int) -> Optional[User]:
        return get_user_by_id(self.db, user_id)
