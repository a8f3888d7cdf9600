# session_authority/dependencies/auth.py
from __future__ import annotations

from fastapi import Depends
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from session_authority.auth.bearer import BearerValidator
from session_authority.auth.identity import Identity
from session_authority.auth.signer import AccessTokenSigner
from session_authority.core.config import AuthConfig, get_auth_config
from session_authority.core.database import get_db
from session_authority.core.security import utc_now
from session_authority.services.sessions import SessionAuthority, build_session_authority
from session_authority.services.users import SqlAlchemyUserDirectory

# Raw header value; the validator does its own "Bearer <token>" parsing.
authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


def get_session_authority(
    db: Session = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> SessionAuthority:
    return build_session_authority(db, config)


def get_bearer_validator(
    db: Session = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> BearerValidator:
    return BearerValidator(AccessTokenSigner(config), SqlAlchemyUserDirectory(db))


def get_current_identity(
    authorization: str | None = Depends(authorization_header),
    validator: BearerValidator = Depends(get_bearer_validator),
) -> Identity:
    """
    Protected-route dependency. Raises an AuthError subclass (rendered as 401
    by the app's exception handler) when the credential doesn't resolve.
    """
    return validator.resolve(authorization, utc_now())
