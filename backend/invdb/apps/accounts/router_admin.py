# backend/invdb/apps/accounts/router_admin.py
"""
User and role management.

Any authenticated user may read; role changes are reserved for admins.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from invdb.database import get_db
from invdb.security import get_current_active_user, require_roles

from . import models, schemas, services

users_router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(get_current_active_user)],
)

roles_router = APIRouter(prefix="/roles", tags=["roles"])


# ---------------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------------


@users_router.get("/profile", response_model=schemas.UserRead)
def read_profile(current_user: models.User = Depends(get_current_active_user)):
    return current_user


@users_router.get("", response_model=List[schemas.UserRead])
def list_users(db: Session = Depends(get_db)):
    return services.list_users(db)


@users_router.get("/{user_id}", response_model=schemas.UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return services.get_user(db, user_id)


@users_router.patch("/{user_id}", response_model=schemas.UserRead)
def update_user(
    user_id: int,
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
):
    user = services.update_user(db, user_id, payload)
    db.commit()
    db.refresh(user)
    return user


@users_router.delete("/{user_id}", response_model=schemas.MessageResponse)
def soft_delete_user(user_id: int, db: Session = Depends(get_db)):
    services.soft_delete_user(db, user_id)
    db.commit()
    return schemas.MessageResponse(message="User soft deleted successfully")


@users_router.patch("/{user_id}/reset-password", response_model=schemas.MessageResponse)
def reset_password(
    user_id: int,
    payload: schemas.PasswordReset,
    db: Session = Depends(get_db),
):
    services.reset_password(db, user_id, payload.new_password)
    db.commit()
    return schemas.MessageResponse(message="Password reset successfully")


# ---------------------------------------------------------------------------
# ROLES
# ---------------------------------------------------------------------------


@roles_router.get(
    "",
    response_model=List[schemas.RoleRead],
    dependencies=[Depends(get_current_active_user)],
)
def list_roles(db: Session = Depends(get_db)):
    return services.list_roles(db)


@roles_router.get(
    "/{alias}",
    response_model=schemas.RoleRead,
    dependencies=[Depends(get_current_active_user)],
)
def get_role(alias: str, db: Session = Depends(get_db)):
    return services.get_role(db, alias)


@roles_router.post(
    "",
    response_model=schemas.RoleRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(models.ADMIN_ROLE_ALIAS))],
)
def create_role(payload: schemas.RoleCreate, db: Session = Depends(get_db)):
    role = services.create_role(db, payload)
    db.commit()
    db.refresh(role)
    return role


@roles_router.patch(
    "/{alias}",
    response_model=schemas.RoleRead,
    dependencies=[Depends(require_roles(models.ADMIN_ROLE_ALIAS))],
)
def update_role(alias: str, payload: schemas.RoleUpdate, db: Session = Depends(get_db)):
    role = services.update_role(db, alias, payload)
    db.commit()
    db.refresh(role)
    return role


@roles_router.delete(
    "/{alias}",
    response_model=schemas.MessageResponse,
    dependencies=[Depends(require_roles(models.ADMIN_ROLE_ALIAS))],
)
def delete_role(alias: str, db: Session = Depends(get_db)):
    message = services.delete_role(db, alias)
    db.commit()
    return schemas.MessageResponse(message=message)
