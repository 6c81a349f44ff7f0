from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class QueueStats(BaseModel):
    """Point-in-time counters read straight from the queue table."""

    waiting: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0


class FailedEmailJobRead(BaseModel):
    id: int
    recipient: str
    subject: str
    attempts_made: int
    max_attempts: int
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    class Config:
        from_attributes = True
