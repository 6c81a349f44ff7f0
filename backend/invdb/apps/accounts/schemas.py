from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


# -------------------------------------------------------------------
# ROLES
# -------------------------------------------------------------------

class RoleBase(BaseModel):
    alias: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class RoleCreate(RoleBase):
    pass


class RoleUpdate(BaseModel):
    alias: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None

    @field_validator("alias", "name", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class RoleUserSummary(BaseModel):
    id: int
    username: str
    email: str

    class Config:
        from_attributes = True


class RoleRead(RoleBase):
    created_at: datetime
    updated_at: datetime
    users: List[RoleUserSummary] = []

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str


# -------------------------------------------------------------------
# USERS
# -------------------------------------------------------------------

class UserRead(BaseModel):
    id: int
    username: str
    email: str
    role_alias: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=100)
    email: Optional[EmailStr] = None
    role_alias: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("username", "email", "is_active", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class PasswordReset(BaseModel):
    new_password: str = Field(..., min_length=6)


# -------------------------------------------------------------------
# AUTH
# -------------------------------------------------------------------

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    username: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead
