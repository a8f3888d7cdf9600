# session_authority/routes/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from session_authority.auth.identity import Identity
from session_authority.core.security import utc_now
from session_authority.dependencies.auth import get_current_identity, get_session_authority
from session_authority.routes.cookies import (
    clear_refresh_cookie,
    read_refresh_cookie,
    set_refresh_cookie,
)
from session_authority.schemas.auth import (
    AccessTokenOut,
    LoginIn,
    LoginOut,
    LogoutIn,
    MessageOut,
    RefreshIn,
    RevokeAllOut,
)
from session_authority.schemas.user import UserOut
from session_authority.services.sessions import SessionAuthority

router = APIRouter(prefix="/auth", tags=["auth"])


def _refresh_token_from(payload: RefreshIn | LogoutIn | None, request: Request) -> str | None:
    # Body wins over cookie so non-browser clients can ignore cookies entirely.
    if payload is not None and payload.refresh_token and payload.refresh_token.strip():
        return payload.refresh_token.strip()
    return read_refresh_cookie(request)


@router.post("/login", response_model=LoginOut)
def login(
    payload: LoginIn,
    response: Response,
    authority: SessionAuthority = Depends(get_session_authority),
):
    result = authority.login(payload.email, payload.password, utc_now())
    set_refresh_cookie(response, result.refresh_token)

    return {
        "access_token": result.access_token,
        "refresh_token": result.refresh_token,
        "token_type": "bearer",
        "expires_in": authority.signer.ttl_seconds,
        "user": result.user.to_dict(),
    }


@router.post("/refresh", response_model=AccessTokenOut)
def refresh(
    request: Request,
    payload: RefreshIn | None = None,
    authority: SessionAuthority = Depends(get_session_authority),
):
    """
    Exchange a refresh token (JSON body or HttpOnly cookie) for a new access
    token. The refresh token itself stays valid until it expires or is revoked.
    """
    raw = _refresh_token_from(payload, request)
    access_token = authority.refresh(raw or "", utc_now())
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": authority.signer.ttl_seconds,
    }


@router.post("/logout", response_model=MessageOut)
def logout(
    request: Request,
    response: Response,
    payload: LogoutIn | None = None,
    authority: SessionAuthority = Depends(get_session_authority),
):
    """
    Revoke the presented refresh token (if any) and clear the cookie.
    Always succeeds.
    """
    authority.logout(_refresh_token_from(payload, request))
    clear_refresh_cookie(response)
    return {"message": "Logged out"}


@router.post("/logout-all", response_model=RevokeAllOut)
def logout_all(
    response: Response,
    identity: Identity = Depends(get_current_identity),
    authority: SessionAuthority = Depends(get_session_authority),
):
    revoked = authority.revoke_all(identity.id)
    clear_refresh_cookie(response)
    return {"message": "Logged out from all sessions", "revoked": revoked}


@router.get("/me", response_model=UserOut)
def me(identity: Identity = Depends(get_current_identity)):
    return identity.to_dict()
