from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class InventoryItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    quantity: Decimal = Field(..., max_digits=10, decimal_places=2)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    sku: Optional[str] = None
    category: Optional[str] = None


class InventoryItemCreate(InventoryItemBase):
    pass


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    quantity: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    sku: Optional[str] = None
    category: Optional[str] = None

    @field_validator("name", "description", "quantity", "price", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class InventoryItemRead(InventoryItemBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
