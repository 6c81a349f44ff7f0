from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from invdb.apps.inventory import services as inventory_services

from . import models, schemas


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def live_reports(db: Session):
    return db.query(models.Report).filter(models.Report.deleted_at.is_(None))


def list_reports(db: Session) -> List[models.Report]:
    return live_reports(db).order_by(models.Report.created_at.desc(), models.Report.id.desc()).all()


def get_report(db: Session, report_id: int) -> models.Report:
    report = live_reports(db).filter(models.Report.id == report_id).first()
    if not report:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Report with ID {report_id} not found",
        )
    return report


def create_report(db: Session, payload: schemas.ReportCreate) -> models.Report:
    items = inventory_services.get_items_by_ids(db, payload.inventory_item_ids)
    report = models.Report(
        title=payload.title.strip(),
        description=payload.description,
    )
    report.item_links = [models.ReportInventoryItem(inventory_item=item) for item in items]
    db.add(report)
    db.flush()
    return report


def soft_delete_report(db: Session, report_id: int) -> None:
    report = get_report(db, report_id)
    report.deleted_at = _utcnow()
    db.add(report)
    db.flush()
