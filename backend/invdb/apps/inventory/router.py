from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from invdb.database import get_db
from invdb.security import get_current_active_user

from . import schemas, services

router = APIRouter(
    prefix="/inventory",
    tags=["inventory"],
    dependencies=[Depends(get_current_active_user)],
)


@router.get("", response_model=List[schemas.InventoryItemRead])
def list_inventory(db: Session = Depends(get_db)):
    return services.list_items(db)


@router.get("/{item_id}", response_model=schemas.InventoryItemRead)
def get_inventory_item(item_id: int, db: Session = Depends(get_db)):
    return services.get_item(db, item_id)


@router.post(
    "",
    response_model=schemas.InventoryItemRead,
    status_code=status.HTTP_201_CREATED,
)
def create_inventory_item(
    payload: schemas.InventoryItemCreate,
    db: Session = Depends(get_db),
):
    item = services.create_item(db, payload)
    db.commit()
    db.refresh(item)
    return item


@router.patch("/{item_id}", response_model=schemas.InventoryItemRead)
def update_inventory_item(
    item_id: int,
    payload: schemas.InventoryItemUpdate,
    db: Session = Depends(get_db),
):
    item = services.update_item(db, item_id, payload)
    db.commit()
    db.refresh(item)
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_item(item_id: int, db: Session = Depends(get_db)):
    services.soft_delete_item(db, item_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
