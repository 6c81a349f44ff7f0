# backend/invdb/apps/accounts/services.py

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from invdb.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    verify_password,
)

from . import models, schemas

logger = logging.getLogger(__name__)

DEFAULT_ROLES = (
    {
        "alias": models.DEFAULT_ROLE_ALIAS,
        "name": "Viewer",
        "description": "Read-only access.",
    },
    {
        "alias": models.MANAGER_ROLE_ALIAS,
        "name": "Manager",
        "description": "Can manage limited resources.",
    },
    {
        "alias": models.ADMIN_ROLE_ALIAS,
        "name": "Administrator",
        "description": "Full access to administrative features.",
    },
)


class AuthenticationError(Exception):
    """Raised when login credentials are invalid."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalise_email(email: str) -> str:
    return (email or "").strip().lower()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _users(db: Session):
    return db.query(models.User).filter(models.User.deleted_at.is_(None))


def list_users(db: Session) -> List[models.User]:
    return _users(db).order_by(models.User.id.asc()).all()


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    return _users(db).filter(models.User.username == (username or "").strip()).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return _users(db).filter(models.User.email == _normalise_email(email)).first()


def _username_taken(db: Session, username: str) -> bool:
    # includes soft-deleted rows; the columns are unique
    return db.query(models.User.id).filter(models.User.username == (username or "").strip()).first() is not None


def _email_taken(db: Session, email: str) -> bool:
    return db.query(models.User.id).filter(models.User.email == _normalise_email(email)).first() is not None


def get_user(db: Session, user_id: int) -> models.User:
    user = _users(db).filter(models.User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID {user_id} not found",
        )
    return user


def create_user(
    db: Session,
    *,
    username: str,
    email: str,
    password: str,
    role_alias: Optional[str] = models.DEFAULT_ROLE_ALIAS,
) -> models.User:
    if _username_taken(db, username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
    if _email_taken(db, email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
    if role_alias and not db.get(models.Role, role_alias):
        # Fresh databases may not be seeded yet; registration must still work.
        role_alias = None

    user = models.User(
        username=username.strip(),
        email=_normalise_email(email),
        hashed_password=get_password_hash(password),
        role_alias=role_alias,
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


def update_user(db: Session, user_id: int, payload: schemas.UserUpdate) -> models.User:
    user = get_user(db, user_id)
    data = payload.model_dump(exclude_unset=True)

    new_username = data.get("username")
    if new_username and new_username != user.username and _username_taken(db, new_username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")

    new_email = data.get("email")
    if new_email:
        data["email"] = _normalise_email(new_email)
        if data["email"] != user.email and _email_taken(db, data["email"]):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    role_alias = data.get("role_alias")
    if role_alias and not db.get(models.Role, role_alias):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Role with alias '{role_alias}' not found",
        )

    for field, value in data.items():
        setattr(user, field, value)
    db.add(user)
    db.flush()
    return user


def soft_delete_user(db: Session, user_id: int) -> None:
    user = get_user(db, user_id)
    user.deleted_at = _utcnow()
    db.add(user)
    db.flush()


def reset_password(db: Session, user_id: int, new_password: str) -> None:
    user = get_user(db, user_id)
    user.hashed_password = get_password_hash(new_password)
    db.add(user)
    db.flush()


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


def authenticate_user(db: Session, *, login_req: schemas.LoginRequest) -> models.User:
    user = get_user_by_username(db, login_req.username)
    if not user or not verify_password(login_req.password, user.hashed_password):
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AuthenticationError("Account is disabled")
    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    """
    Create a JWT access token for the user.

    Returns (token_string, expires_in_seconds).
    """
    expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "role_alias": user.role_alias,
    }
    token = create_access_token(data=payload, expires_delta=expires_delta)
    return token, int(expires_delta.total_seconds())


def register_user(db: Session, payload: schemas.RegisterRequest) -> models.User:
    """External registrations always land on the viewer role."""
    user = create_user(
        db,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        role_alias=models.DEFAULT_ROLE_ALIAS,
    )
    logger.info("user registered", extra={"user_id": user.id, "username": user.username})
    return user


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


def list_roles(db: Session) -> List[models.Role]:
    return db.query(models.Role).order_by(models.Role.alias.asc()).all()


def get_role(db: Session, alias: str) -> models.Role:
    role = db.get(models.Role, alias)
    if not role:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Role with alias '{alias}' not found",
        )
    return role


def create_role(db: Session, payload: schemas.RoleCreate) -> models.Role:
    if db.get(models.Role, payload.alias):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Role with alias '{payload.alias}' already exists",
        )
    role = models.Role(**payload.model_dump())
    db.add(role)
    db.flush()
    return role


def update_role(db: Session, alias: str, payload: schemas.RoleUpdate) -> models.Role:
    role = get_role(db, alias)
    data = payload.model_dump(exclude_unset=True)

    new_alias = data.get("alias")
    if new_alias and new_alias != alias and db.get(models.Role, new_alias):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Role with alias '{new_alias}' already exists",
        )

    for field, value in data.items():
        setattr(role, field, value)
    db.add(role)
    db.flush()
    return role


def delete_role(db: Session, alias: str) -> str:
    role = get_role(db, alias)
    assigned = _users(db).filter(models.User.role_alias == alias).count()
    if assigned:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete role '{alias}' because it has {assigned} assigned user(s)",
        )
    db.delete(role)
    db.flush()
    return f"Role '{alias}' deleted successfully"


def ensure_default_roles(db: Session) -> int:
    """Create any missing default role. Returns how many were created."""
    created = 0
    for data in DEFAULT_ROLES:
        if db.get(models.Role, data["alias"]):
            continue
        db.add(models.Role(**data))
        created += 1
    db.flush()
    return created
