# backend/invdb/apps/notifications/worker.py
"""
Email delivery worker.

Each worker slot loops: claim one WAITING job whose `available_at` has passed,
call the provider outside any transaction, then record the outcome.

Outcomes:
  - success: the row is deleted (remove_on_complete) or marked COMPLETED
  - failure with attempts left: back to WAITING, `available_at` pushed out by
    the job's backoff (5s, then 10s for the default policy)
  - failure on the last attempt: FAILED and kept (remove_on_fail=False);
    never picked up again
  - no outcome at all (worker died, DB error while recording): once the job
    has been ACTIVE for `stalled_after` it counts as a failed attempt and is
    re-delivered, or marked FAILED if that was its last attempt

A failing job never stops the loop or blocks other jobs.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from invdb.settings import QueueSettings

from . import models
from .providers import EmailProvider, ProviderError
from .queue import backoff_for

logger = logging.getLogger(__name__)

CLAIM_SCAN_LIMIT = 10
DEFAULT_STALLED_AFTER = timedelta(minutes=5)
STALLED_ERROR = "worker stopped before reporting an outcome"


class DeliveryFailed(Exception):
    """One delivery attempt failed; the retry policy decides what happens next."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _claim_waiting(db: Session, job_id: int, *, worker_id: str, now: datetime) -> Optional[models.EmailQueueEntry]:
    claimed = (
        db.query(models.EmailQueueEntry)
        .filter(
            models.EmailQueueEntry.id == job_id,
            models.EmailQueueEntry.status == models.EmailJobStatus.WAITING,
        )
        .update(
            {
                models.EmailQueueEntry.status: models.EmailJobStatus.ACTIVE,
                models.EmailQueueEntry.started_at: now,
                models.EmailQueueEntry.locked_by: worker_id,
            },
            synchronize_session=False,
        )
    )
    if claimed != 1:
        return None
    db.commit()
    return db.get(models.EmailQueueEntry, job_id)


def _reclaim_stalled(
    db: Session,
    job_id: int,
    *,
    worker_id: str,
    now: datetime,
    stalled_before: datetime,
) -> Optional[models.EmailQueueEntry]:
    """
    Take over an ACTIVE job whose worker never reported an outcome.

    The stall uses up one attempt. Re-stamping `started_at` is the claim, so
    only one worker recovers a given stall.
    """
    claimed = (
        db.query(models.EmailQueueEntry)
        .filter(
            models.EmailQueueEntry.id == job_id,
            models.EmailQueueEntry.status == models.EmailJobStatus.ACTIVE,
            models.EmailQueueEntry.started_at <= stalled_before,
        )
        .update(
            {
                models.EmailQueueEntry.started_at: now,
                models.EmailQueueEntry.locked_by: worker_id,
                models.EmailQueueEntry.attempts_made: models.EmailQueueEntry.attempts_made + 1,
                models.EmailQueueEntry.last_error: STALLED_ERROR,
            },
            synchronize_session=False,
        )
    )
    if claimed != 1:
        return None
    db.commit()

    job = db.get(models.EmailQueueEntry, job_id)
    if job.attempts_made < job.max_attempts:
        logger.warning(
            "re-delivering stalled email",
            extra={"job_id": job_id, "recipient": job.recipient, "attempts_made": job.attempts_made},
        )
        return job

    logger.warning(
        "stalled email exhausted its attempts",
        extra={"job_id": job_id, "recipient": job.recipient, "attempts_made": job.attempts_made},
    )
    job.finished_at = now
    job.locked_by = None
    if job.remove_on_fail:
        db.delete(job)
    else:
        job.status = models.EmailJobStatus.FAILED
        db.add(job)
    db.commit()
    return None


def claim_next_job(
    db: Session,
    *,
    worker_id: str,
    now: datetime,
    stalled_after: timedelta = DEFAULT_STALLED_AFTER,
) -> Optional[models.EmailQueueEntry]:
    """
    Atomically claim one job for delivery and return it.

    Candidates are WAITING jobs whose `available_at` has passed, plus ACTIVE
    jobs claimed more than `stalled_after` ago. The conditional UPDATE is the
    claim: if another worker got the row first, rowcount is 0 and the next
    candidate is tried.
    """
    stalled_before = now - stalled_after
    query = (
        db.query(models.EmailQueueEntry.id, models.EmailQueueEntry.status)
        .filter(
            or_(
                and_(
                    models.EmailQueueEntry.status == models.EmailJobStatus.WAITING,
                    models.EmailQueueEntry.available_at <= now,
                ),
                and_(
                    models.EmailQueueEntry.status == models.EmailJobStatus.ACTIVE,
                    models.EmailQueueEntry.started_at <= stalled_before,
                ),
            )
        )
        .order_by(models.EmailQueueEntry.available_at.asc(), models.EmailQueueEntry.id.asc())
        .with_for_update(skip_locked=True)
        .limit(CLAIM_SCAN_LIMIT)
    )
    candidates = query.all()

    for job_id, job_status in candidates:
        if models.EmailJobStatus(job_status) == models.EmailJobStatus.ACTIVE:
            job = _reclaim_stalled(
                db, job_id, worker_id=worker_id, now=now, stalled_before=stalled_before
            )
        else:
            job = _claim_waiting(db, job_id, worker_id=worker_id, now=now)
        if job is not None:
            return job

    db.rollback()
    return None


def mark_completed(db: Session, job: models.EmailQueueEntry, *, now: datetime) -> None:
    if job.remove_on_complete:
        db.delete(job)
    else:
        job.status = models.EmailJobStatus.COMPLETED
        job.attempts_made += 1
        job.finished_at = now
        job.locked_by = None
        job.last_error = None
        db.add(job)
    db.commit()


def mark_failed(db: Session, job: models.EmailQueueEntry, *, error: str, now: datetime) -> bool:
    """
    Record one failed attempt. Returns True if the job will be retried.
    """
    job.attempts_made += 1
    job.last_error = (error or "delivery failed")[:1000]
    job.locked_by = None

    if job.attempts_made < job.max_attempts:
        job.status = models.EmailJobStatus.WAITING
        job.available_at = now + backoff_for(job).delay_for(job.attempts_made)
        db.add(job)
        db.commit()
        return True

    job.finished_at = now
    if job.remove_on_fail:
        db.delete(job)
    else:
        job.status = models.EmailJobStatus.FAILED
        db.add(job)
    db.commit()
    return False


class EmailWorker:
    """
    Pool of `concurrency` threads consuming the email queue.

    Everything it needs is passed in; nothing is read from module globals.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        provider: EmailProvider,
        *,
        from_email: str,
        concurrency: int = 1,
        poll_interval_sec: float = 1.0,
        stalled_after: timedelta = DEFAULT_STALLED_AFTER,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._session_factory = session_factory
        self._provider = provider
        self.from_email = from_email
        self.concurrency = concurrency
        self.poll_interval_sec = poll_interval_sec
        self.stalled_after = stalled_after
        self._clock = clock
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []
        self.worker_id = f"email-worker-{uuid.uuid4().hex[:8]}"

    @classmethod
    def from_settings(
        cls,
        session_factory: Callable[[], Session],
        provider: EmailProvider,
        *,
        from_email: str,
        settings: QueueSettings,
    ) -> "EmailWorker":
        return cls(
            session_factory,
            provider,
            from_email=from_email,
            concurrency=settings.worker_concurrency,
            poll_interval_sec=settings.poll_interval_sec,
            stalled_after=timedelta(seconds=settings.stalled_after_sec),
        )

    def _deliver(self, job: models.EmailQueueEntry) -> None:
        try:
            self._provider.send(
                to=job.recipient,
                from_email=self.from_email,
                subject=job.subject,
                text=job.text_body,
                html=job.html_body,
            )
        except ProviderError as exc:
            raise DeliveryFailed(str(exc)) from exc
        except Exception as exc:  # noqa: BLE001 - provider SDKs raise anything
            raise DeliveryFailed(f"{type(exc).__name__}: {exc}") from exc

    def run_once(self, slot: str = "0") -> bool:
        """Process at most one job. Returns True if a job was claimed."""
        db = self._session_factory()
        try:
            job = claim_next_job(
                db,
                worker_id=f"{self.worker_id}:{slot}",
                now=self._clock(),
                stalled_after=self.stalled_after,
            )
            if job is None:
                return False

            job_id, recipient = job.id, job.recipient
            logger.info("processing email", extra={"job_id": job_id, "recipient": recipient})
            try:
                self._deliver(job)
            except DeliveryFailed as exc:
                attempt = job.attempts_made + 1
                retrying = mark_failed(db, job, error=str(exc), now=self._clock())
                logger.warning(
                    "email delivery failed",
                    extra={
                        "job_id": job_id,
                        "recipient": recipient,
                        "attempt": attempt,
                        "retrying": retrying,
                        "error": str(exc),
                    },
                )
                return True

            mark_completed(db, job, now=self._clock())
            logger.info("email sent", extra={"job_id": job_id, "recipient": recipient})
            return True
        finally:
            db.close()

    def _loop(self, slot: str) -> None:
        while not self._stop.is_set():
            try:
                processed = self.run_once(slot)
            except Exception:  # noqa: BLE001 - keep the slot alive; a stranded job is reclaimed once stalled
                logger.exception("email worker iteration failed", extra={"slot": slot})
                processed = False
            if not processed:
                self._stop.wait(self.poll_interval_sec)

    def start(self) -> None:
        if self._threads:
            return
        self._stop.clear()
        for index in range(self.concurrency):
            thread = threading.Thread(
                target=self._loop,
                args=(str(index),),
                name=f"{self.worker_id}-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        logger.info(
            "email worker started",
            extra={"worker_id": self.worker_id, "concurrency": self.concurrency},
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []

    def run_forever(self) -> None:
        self.start()
        try:
            while not self._stop.is_set():
                self._stop.wait(1.0)
        except KeyboardInterrupt:
            logger.info("email worker interrupted")
        finally:
            self.stop(timeout=30)
