# backend/invdb/settings.py
"""
Runtime settings for the email queue, the email provider and the report
schedule.

Each group is a small frozen dataclass built from the environment with
`from_env()`. Instances are passed explicitly into the queue, the worker and
the report dispatch service, so tests can build isolated copies without
touching process-wide state.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

_TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_FROM_EMAIL = "noreply@example.com"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class EmailSettings:
    provider: str = "sendgrid"
    sendgrid_api_key: Optional[str] = None
    from_email: str = DEFAULT_FROM_EMAIL
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    timeout_sec: int = 15

    @classmethod
    def from_env(cls) -> "EmailSettings":
        provider = (
            os.getenv("EMAIL_PROVIDER")
            or os.getenv("NOTIFICATIONS_EMAIL_PROVIDER")
            or "sendgrid"
        ).strip().lower()
        return cls(
            provider=provider,
            sendgrid_api_key=os.getenv("SENDGRID_API_KEY") or None,
            from_email=(
                os.getenv("SENDGRID_FROM_EMAIL")
                or os.getenv("SMTP_FROM")
                or DEFAULT_FROM_EMAIL
            ),
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=_env_int("SMTP_PORT", 587),
            smtp_user=os.getenv("SMTP_USER") or None,
            smtp_password=os.getenv("SMTP_PASS") or None,
            timeout_sec=_env_int("EMAIL_PROVIDER_TIMEOUT_SEC", 15),
        )


@dataclass(frozen=True)
class QueueSettings:
    """
    Where the email queue lives and how the worker pool polls it.

    The queue is a table; `database_url` may point at a dedicated database
    (host/port are part of the URL). When unset, the main database is used.
    """

    database_url: Optional[str] = None
    worker_concurrency: int = 1
    poll_interval_sec: float = 1.0
    # ACTIVE jobs older than this are treated as abandoned by their worker.
    stalled_after_sec: int = 300

    @classmethod
    def from_env(cls) -> "QueueSettings":
        try:
            poll = float(os.getenv("EMAIL_WORKER_POLL_INTERVAL_SEC", "1"))
        except ValueError:
            poll = 1.0
        return cls(
            database_url=os.getenv("EMAIL_QUEUE_DATABASE_URL") or None,
            worker_concurrency=max(_env_int("EMAIL_WORKER_CONCURRENCY", 1), 1),
            poll_interval_sec=poll,
            stalled_after_sec=max(_env_int("EMAIL_QUEUE_STALLED_AFTER_SEC", 300), 1),
        )


@dataclass(frozen=True)
class ScheduleSettings:
    enabled: bool = False
    weekdays: str = "mon-fri"
    at: str = "09:00"

    @classmethod
    def from_env(cls) -> "ScheduleSettings":
        return cls(
            enabled=_env_flag("REPORTS_SCHEDULE_ENABLED", "false"),
            weekdays=os.getenv("REPORTS_SCHEDULE_WEEKDAYS", "mon-fri"),
            at=os.getenv("REPORTS_SCHEDULE_TIME", "09:00"),
        )
