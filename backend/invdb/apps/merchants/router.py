from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from invdb.database import get_db
from invdb.security import get_current_active_user

from . import schemas, services

router = APIRouter(
    prefix="/merchants",
    tags=["merchants"],
    dependencies=[Depends(get_current_active_user)],
)


@router.get("", response_model=List[schemas.MerchantRead])
def list_merchants(db: Session = Depends(get_db)):
    return services.list_merchants(db)


@router.get("/active/list", response_model=List[schemas.MerchantRead])
def list_active_merchants(db: Session = Depends(get_db)):
    return services.list_active_merchants(db)


@router.get("/{merchant_id}", response_model=schemas.MerchantRead)
def get_merchant(merchant_id: int, db: Session = Depends(get_db)):
    return services.get_merchant(db, merchant_id)


@router.post(
    "",
    response_model=schemas.MerchantRead,
    status_code=status.HTTP_201_CREATED,
)
def create_merchant(payload: schemas.MerchantCreate, db: Session = Depends(get_db)):
    merchant = services.create_merchant(db, payload)
    db.commit()
    db.refresh(merchant)
    return merchant


@router.patch("/{merchant_id}", response_model=schemas.MerchantRead)
def update_merchant(
    merchant_id: int,
    payload: schemas.MerchantUpdate,
    db: Session = Depends(get_db),
):
    merchant = services.update_merchant(db, merchant_id, payload)
    db.commit()
    db.refresh(merchant)
    return merchant


@router.delete("/{merchant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_merchant(merchant_id: int, db: Session = Depends(get_db)):
    services.soft_delete_merchant(db, merchant_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
