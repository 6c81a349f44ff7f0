from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from invdb.security import get_current_active_user

from . import schemas
from .queue import EmailQueue, QueueUnavailable, get_email_queue

router = APIRouter(
    prefix="/email",
    tags=["email"],
    dependencies=[Depends(get_current_active_user)],
)


def _unavailable(exc: QueueUnavailable) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get("/queue-stats", response_model=schemas.QueueStats)
def queue_stats(queue: EmailQueue = Depends(get_email_queue)):
    try:
        return queue.stats()
    except QueueUnavailable as exc:
        raise _unavailable(exc) from exc


@router.get("/failed-jobs", response_model=List[schemas.FailedEmailJobRead])
def failed_jobs(
    limit: int = Query(50, ge=1, le=500),
    queue: EmailQueue = Depends(get_email_queue),
):
    try:
        return queue.failed_jobs(limit=limit)
    except QueueUnavailable as exc:
        raise _unavailable(exc) from exc
