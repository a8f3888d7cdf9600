# session_authority/routes/users.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from session_authority.core.database import get_db
from session_authority.schemas.user import RegisterIn, UserOut
from session_authority.services.users import EmailAlreadyRegisteredError, create_user, list_users

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    try:
        user = create_user(db, payload.email, payload.password)
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return user


@router.get("", response_model=list[UserOut])
def get_users(db: Session = Depends(get_db)):
    return list_users(db)
