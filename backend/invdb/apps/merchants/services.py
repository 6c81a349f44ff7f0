from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import true
from sqlalchemy.orm import Session

from . import models, schemas


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalise_email(email: str) -> str:
    return (email or "").strip().lower()


def live_merchants(db: Session):
    return db.query(models.Merchant).filter(models.Merchant.deleted_at.is_(None))


def eligible_merchants(db: Session):
    """Merchants that should receive inventory reports."""
    return live_merchants(db).filter(
        models.Merchant.is_active == true(),
        models.Merchant.receive_reports == true(),
    )


def list_merchants(db: Session) -> List[models.Merchant]:
    return live_merchants(db).order_by(models.Merchant.id.asc()).all()


def list_active_merchants(db: Session) -> List[models.Merchant]:
    return (
        live_merchants(db)
        .filter(models.Merchant.is_active == true())
        .order_by(models.Merchant.name.asc())
        .all()
    )


def list_report_recipients(db: Session) -> List[models.Merchant]:
    return eligible_merchants(db).order_by(models.Merchant.name.asc()).all()


def count_merchants(db: Session) -> int:
    return live_merchants(db).count()


def count_report_recipients(db: Session) -> int:
    return eligible_merchants(db).count()


def find_merchant(db: Session, merchant_id: int) -> Optional[models.Merchant]:
    return live_merchants(db).filter(models.Merchant.id == merchant_id).first()


def get_merchant(db: Session, merchant_id: int) -> models.Merchant:
    merchant = find_merchant(db, merchant_id)
    if not merchant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Merchant with ID {merchant_id} not found",
        )
    return merchant


def _ensure_unique(db: Session, *, name: Optional[str], email: Optional[str]) -> None:
    if name and db.query(models.Merchant).filter(models.Merchant.name == name).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Merchant with this name already exists",
        )
    if email and db.query(models.Merchant).filter(models.Merchant.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Merchant with this email already exists",
        )


def create_merchant(db: Session, payload: schemas.MerchantCreate) -> models.Merchant:
    data = payload.model_dump()
    data["name"] = data["name"].strip()
    data["email"] = _normalise_email(data["email"])
    _ensure_unique(db, name=data["name"], email=data["email"])

    merchant = models.Merchant(**data)
    db.add(merchant)
    db.flush()
    return merchant


def update_merchant(db: Session, merchant_id: int, payload: schemas.MerchantUpdate) -> models.Merchant:
    merchant = get_merchant(db, merchant_id)
    data = payload.model_dump(exclude_unset=True)

    if data.get("name"):
        data["name"] = data["name"].strip()
    if data.get("email"):
        data["email"] = _normalise_email(data["email"])
    _ensure_unique(
        db,
        name=data.get("name") if data.get("name") != merchant.name else None,
        email=data.get("email") if data.get("email") != merchant.email else None,
    )

    for field, value in data.items():
        setattr(merchant, field, value)
    db.add(merchant)
    db.flush()
    return merchant


def soft_delete_merchant(db: Session, merchant_id: int) -> None:
    merchant = get_merchant(db, merchant_id)
    merchant.deleted_at = _utcnow()
    db.add(merchant)
    db.flush()
