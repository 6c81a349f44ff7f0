from __future__ import annotations

from datetime import datetime, timezone
import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    String,
    Text,
    func,
)

from invdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmailJobStatus(str, enum.Enum):
    WAITING = "WAITING"        # ready now, or parked until available_at for a retry
    ACTIVE = "ACTIVE"          # claimed by a worker slot
    COMPLETED = "COMPLETED"    # only kept when remove_on_complete is off
    FAILED = "FAILED"          # attempts exhausted; kept for inspection


class EmailQueueEntry(Base):
    """
    One queued outbound email.

    The retry policy is copied onto each row at enqueue time so a worker
    always applies the policy the job was submitted with.
    """

    __tablename__ = "email_jobs"
    __table_args__ = (
        Index("ix_email_jobs_status_available", "status", "available_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(64), nullable=False, default="send-email")

    recipient = Column(String(255), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    text_body = Column(Text, nullable=False)
    html_body = Column(Text, nullable=False)

    status = Column(
        SAEnum(EmailJobStatus, name="email_job_status_enum", native_enum=False),
        nullable=False,
        default=EmailJobStatus.WAITING,
        index=True,
    )

    max_attempts = Column(Integer, nullable=False)
    attempts_made = Column(Integer, nullable=False, default=0)
    backoff_type = Column(String(16), nullable=False)
    backoff_delay_ms = Column(Integer, nullable=False)
    remove_on_complete = Column(Boolean, nullable=False)
    remove_on_fail = Column(Boolean, nullable=False)

    available_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    finished_at = Column(DateTime(timezone=True), nullable=True)

    locked_by = Column(String(64), nullable=True)
    last_error = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<EmailQueueEntry id={self.id} recipient={self.recipient} status={self.status}>"
