from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class MerchantBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str = ""
    address: str = ""
    city: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None
    business_license: Optional[str] = None
    is_active: bool = True
    receive_reports: bool = True


class MerchantCreate(MerchantBase):
    pass


class MerchantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None
    business_license: Optional[str] = None
    is_active: Optional[bool] = None
    receive_reports: Optional[bool] = None

    @field_validator("name", "email", "phone", "address", "is_active", "receive_reports", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class MerchantRead(MerchantBase):
    id: int
    email: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
