from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from . import models, schemas


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def live_items(db: Session):
    """Query over inventory items that have not been soft-deleted."""
    return db.query(models.InventoryItem).filter(models.InventoryItem.deleted_at.is_(None))


def _get_by_name(db: Session, name: str) -> Optional[models.InventoryItem]:
    # names stay reserved after soft delete (unique column)
    return db.query(models.InventoryItem).filter(models.InventoryItem.name == name).first()


def list_items(db: Session) -> List[models.InventoryItem]:
    return live_items(db).order_by(models.InventoryItem.id.asc()).all()


def get_item(db: Session, item_id: int) -> models.InventoryItem:
    item = live_items(db).filter(models.InventoryItem.id == item_id).first()
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Inventory item with ID {item_id} not found",
        )
    return item


def get_items_by_ids(db: Session, item_ids: Sequence[int]) -> List[models.InventoryItem]:
    """Load every id in `item_ids`; 404 names the ids that are missing."""
    wanted = list(dict.fromkeys(item_ids))
    items = live_items(db).filter(models.InventoryItem.id.in_(wanted)).all()
    found = {item.id for item in items}
    missing = [item_id for item_id in wanted if item_id not in found]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Inventory items not found: {', '.join(str(i) for i in missing)}",
        )
    by_id = {item.id: item for item in items}
    return [by_id[item_id] for item_id in wanted]


def count_items(db: Session) -> int:
    return live_items(db).count()


def create_item(db: Session, payload: schemas.InventoryItemCreate) -> models.InventoryItem:
    name = payload.name.strip()
    if _get_by_name(db, name):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Inventory item with this name already exists",
        )
    data = payload.model_dump()
    data["name"] = name
    item = models.InventoryItem(**data)
    db.add(item)
    db.flush()
    return item


def update_item(db: Session, item_id: int, payload: schemas.InventoryItemUpdate) -> models.InventoryItem:
    item = get_item(db, item_id)
    data = payload.model_dump(exclude_unset=True)

    new_name = data.get("name")
    if new_name:
        data["name"] = new_name = new_name.strip()
        if new_name != item.name and _get_by_name(db, new_name):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Inventory item with this name already exists",
            )

    for field, value in data.items():
        setattr(item, field, value)
    db.add(item)
    db.flush()
    return item


def soft_delete_item(db: Session, item_id: int) -> None:
    item = get_item(db, item_id)
    item.deleted_at = _utcnow()
    db.add(item)
    db.flush()
