# backend/invdb/apps/accounts/router_public.py

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from invdb.database import get_db

from . import schemas, services

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user) -> schemas.Token:
    token, expires_in = services.issue_access_token_for_user(user)
    return schemas.Token(
        access_token=token,
        expires_in=expires_in,
        user=schemas.UserRead.model_validate(user),
    )


@router.post(
    "/register",
    response_model=schemas.Token,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: schemas.RegisterRequest,
    db: Session = Depends(get_db),
):
    user = services.register_user(db, payload)
    db.commit()
    db.refresh(user)
    return _token_response(user)


@router.post("/login", response_model=schemas.Token)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
):
    try:
        user = services.authenticate_user(db, login_req=payload)
    except services.AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc) or "Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _token_response(user)
