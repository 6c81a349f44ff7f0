# backend/invdb/apps/notifications/queue.py
"""
Email dispatch queue.

Jobs are rows in `email_jobs`. Producers (`enqueue`, `enqueue_batch`) only
insert rows and commit; nothing here talks to the email provider. Delivery,
retries and backoff are the worker's job (see `worker.py`).

Every job carries `DEFAULT_JOB_OPTIONS`:
  - 3 attempts in total
  - exponential backoff starting at 5000 ms (5s, 10s, ...)
  - completed jobs are deleted, failed jobs are kept
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

from fastapi import Request
from sqlalchemy import create_engine, func
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from invdb.database import WriteSessionLocal, engine_kwargs
from invdb.settings import QueueSettings

from . import models, schemas

logger = logging.getLogger(__name__)

SEND_EMAIL_JOB = "send-email"


class QueueUnavailable(Exception):
    """The queue backend could not be reached."""


@dataclass(frozen=True)
class Backoff:
    type: str = "exponential"
    delay_ms: int = 5000

    def delay_for(self, attempts_made: int) -> timedelta:
        """Delay before the next attempt, after `attempts_made` failed ones."""
        if self.type == "fixed":
            return timedelta(milliseconds=self.delay_ms)
        return timedelta(milliseconds=self.delay_ms * (2 ** max(attempts_made - 1, 0)))


@dataclass(frozen=True)
class JobOptions:
    attempts: int = 3
    backoff: Backoff = field(default_factory=Backoff)
    remove_on_complete: bool = True
    remove_on_fail: bool = False


DEFAULT_JOB_OPTIONS = JobOptions()


@dataclass(frozen=True)
class EmailJob:
    to: str
    subject: str
    text: str
    html: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def backoff_for(entry: models.EmailQueueEntry) -> Backoff:
    return Backoff(type=entry.backoff_type, delay_ms=entry.backoff_delay_ms)


class EmailQueue:
    """
    Producer side of the email queue, plus read-only counters.

    `session_factory` decides where the queue lives; pass a test sessionmaker
    for isolated instances.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        options: JobOptions = DEFAULT_JOB_OPTIONS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self.options = options
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: QueueSettings) -> "EmailQueue":
        if not settings.database_url:
            return cls(WriteSessionLocal)
        queue_engine = create_engine(settings.database_url, **engine_kwargs(settings.database_url))
        return cls(sessionmaker(bind=queue_engine, autocommit=False, autoflush=False, future=True))

    @property
    def session_factory(self) -> Callable[[], Session]:
        return self._session_factory

    def _entry(self, job: EmailJob, now: datetime) -> models.EmailQueueEntry:
        return models.EmailQueueEntry(
            name=SEND_EMAIL_JOB,
            recipient=job.to,
            subject=job.subject,
            text_body=job.text,
            html_body=job.html,
            status=models.EmailJobStatus.WAITING,
            max_attempts=self.options.attempts,
            attempts_made=0,
            backoff_type=self.options.backoff.type,
            backoff_delay_ms=self.options.backoff.delay_ms,
            remove_on_complete=self.options.remove_on_complete,
            remove_on_fail=self.options.remove_on_fail,
            available_at=now,
        )

    def _submit(self, jobs: Sequence[EmailJob]) -> None:
        db = self._session_factory()
        try:
            now = self._clock()
            db.add_all([self._entry(job, now) for job in jobs])
            db.commit()
        except (OperationalError, InterfaceError) as exc:
            db.rollback()
            raise QueueUnavailable(f"Email queue backend unreachable: {exc}") from exc
        finally:
            db.close()

    def enqueue(self, job: EmailJob) -> None:
        self._submit([job])
        logger.info("queued email", extra={"recipient": job.to, "subject": job.subject})

    def enqueue_batch(self, jobs: Sequence[EmailJob]) -> None:
        jobs = list(jobs)
        if not jobs:
            return
        self._submit(jobs)
        logger.info("queued %s emails for processing", len(jobs), extra={"queued": len(jobs)})

    def stats(self) -> schemas.QueueStats:
        db = self._session_factory()
        try:
            rows = (
                db.query(models.EmailQueueEntry.status, func.count(models.EmailQueueEntry.id))
                .group_by(models.EmailQueueEntry.status)
                .all()
            )
        except (OperationalError, InterfaceError) as exc:
            raise QueueUnavailable(f"Email queue backend unreachable: {exc}") from exc
        finally:
            db.close()

        counts = {models.EmailJobStatus(status): total for status, total in rows}
        return schemas.QueueStats(
            waiting=counts.get(models.EmailJobStatus.WAITING, 0),
            active=counts.get(models.EmailJobStatus.ACTIVE, 0),
            completed=counts.get(models.EmailJobStatus.COMPLETED, 0),
            failed=counts.get(models.EmailJobStatus.FAILED, 0),
        )

    def failed_jobs(self, limit: int = 50) -> list[models.EmailQueueEntry]:
        """Permanently failed jobs, newest first, for operator inspection."""
        db = self._session_factory()
        try:
            return (
                db.query(models.EmailQueueEntry)
                .filter(models.EmailQueueEntry.status == models.EmailJobStatus.FAILED)
                .order_by(models.EmailQueueEntry.finished_at.desc(), models.EmailQueueEntry.id.desc())
                .limit(limit)
                .all()
            )
        except (OperationalError, InterfaceError) as exc:
            raise QueueUnavailable(f"Email queue backend unreachable: {exc}") from exc
        finally:
            db.close()

    def create_table(self) -> None:
        """Create `email_jobs` where the queue lives, if it is missing."""
        db = self._session_factory()
        try:
            models.EmailQueueEntry.__table__.create(bind=db.get_bind(), checkfirst=True)
        except (OperationalError, InterfaceError) as exc:
            raise QueueUnavailable(f"Email queue backend unreachable: {exc}") from exc
        finally:
            db.close()


def get_email_queue(request: Request) -> EmailQueue:
    """FastAPI dependency; the queue is built by the app lifespan."""
    return request.app.state.email_queue
