from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from session_authority.celery_app import celery_app
from session_authority.core.config import get_auth_config
from session_authority.core.database import SessionLocal
from session_authority.core.security import utc_now
from session_authority.services.sessions import build_session_authority


logger = logging.getLogger(__name__)


def _with_db_session() -> Session:
    return SessionLocal()


@celery_app.task(name="sessions.cleanup_expired_refresh_tokens")
def cleanup_expired_refresh_tokens() -> int:
    """Periodic sweep of refresh tokens already past their expiry."""
    db = _with_db_session()
    try:
        authority = build_session_authority(db, get_auth_config())
        return authority.cleanup_expired(utc_now())
    except Exception:
        db.rollback()
        logger.exception("Expired refresh token cleanup failed")
        raise
    finally:
        db.close()
