from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from invdb.apps.inventory.schemas import InventoryItemRead
from invdb.apps.notifications.schemas import QueueStats


class InventorySnapshotLine(BaseModel):
    """One inventory item's name and remaining quantity at dispatch time."""

    itemName: str
    remainingQty: float


class SendToMerchantResponse(BaseModel):
    message: str
    merchantId: int


class SendToAllResponse(BaseModel):
    message: str
    totalMerchants: int
    queued: int


class ReportStats(BaseModel):
    totalMerchants: int
    activeMerchants: int
    inventoryItems: int
    emailQueue: QueueStats


class ReportCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    inventory_item_ids: List[int] = Field(..., min_length=1)


class ReportRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    inventory_items: List[InventoryItemRead] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
