from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from invdb.apps.notifications.queue import EmailQueue, QueueUnavailable, get_email_queue
from invdb.database import get_db
from invdb.security import get_current_active_user

from . import schemas, services
from .dispatch import ReportDispatchService, SendStatus

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
    dependencies=[Depends(get_current_active_user)],
)


def get_dispatch_service(
    db: Session = Depends(get_db),
    queue: EmailQueue = Depends(get_email_queue),
) -> ReportDispatchService:
    return ReportDispatchService(db, queue)


def _queue_unavailable(exc: QueueUnavailable) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


# --- dispatch pipeline (static paths before /{report_id}) ---

@router.get("/inventory-summary", response_model=List[schemas.InventorySnapshotLine])
def inventory_summary(service: ReportDispatchService = Depends(get_dispatch_service)):
    return [
        schemas.InventorySnapshotLine(itemName=line.item_name, remainingQty=line.remaining_qty)
        for line in service.get_inventory_summary()
    ]


@router.post("/send-to-merchant/{merchant_id}", response_model=schemas.SendToMerchantResponse)
def send_to_merchant(
    merchant_id: int,
    service: ReportDispatchService = Depends(get_dispatch_service),
):
    try:
        result = service.send_to_merchant(merchant_id)
    except QueueUnavailable as exc:
        raise _queue_unavailable(exc) from exc

    if result.status is SendStatus.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.reason)
    if result.status is SendStatus.INELIGIBLE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.reason)
    return schemas.SendToMerchantResponse(
        message="Inventory report queued successfully",
        merchantId=merchant_id,
    )


@router.post("/send-to-all", response_model=schemas.SendToAllResponse)
def send_to_all(service: ReportDispatchService = Depends(get_dispatch_service)):
    try:
        result = service.send_to_all_eligible_merchants()
    except QueueUnavailable as exc:
        raise _queue_unavailable(exc) from exc
    return schemas.SendToAllResponse(
        message="Inventory reports queued successfully",
        totalMerchants=result.total_merchants,
        queued=result.queued,
    )


@router.get("/stats", response_model=schemas.ReportStats)
def report_stats(service: ReportDispatchService = Depends(get_dispatch_service)):
    try:
        return service.get_stats()
    except QueueUnavailable as exc:
        raise _queue_unavailable(exc) from exc


# --- saved reports ---

@router.get("", response_model=List[schemas.ReportRead])
def list_reports(db: Session = Depends(get_db)):
    return services.list_reports(db)


@router.post("", response_model=schemas.ReportRead, status_code=status.HTTP_201_CREATED)
def create_report(payload: schemas.ReportCreate, db: Session = Depends(get_db)):
    report = services.create_report(db, payload)
    db.commit()
    db.refresh(report)
    return report


@router.get("/{report_id}", response_model=schemas.ReportRead)
def get_report(report_id: int, db: Session = Depends(get_db)):
    return services.get_report(db, report_id)


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_report(report_id: int, db: Session = Depends(get_db)):
    services.soft_delete_report(db, report_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
