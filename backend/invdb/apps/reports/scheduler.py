# backend/invdb/apps/reports/scheduler.py
"""
Weekday-morning trigger for the "send to all" dispatch.

- `WeeklySchedule` is the calendar rule ("mon-fri" at "09:00" by default).
- `ReportScheduler` is a daemon thread that fires the job when due.
- `run_scheduled_reports` is the job itself. It catches and logs every error
  so a failed run never stops the thread or later runs.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, time, timedelta
from typing import Callable, FrozenSet, Optional

from sqlalchemy.orm import Session

from invdb.apps.notifications.queue import EmailQueue
from invdb.settings import ScheduleSettings

from .dispatch import DispatchSummary, ReportDispatchService

logger = logging.getLogger(__name__)

WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
MAX_SLEEP_SEC = 60.0


def parse_weekdays(value: str) -> FrozenSet[int]:
    """
    "mon-fri" -> {0..4}; "mon,wed,fri" -> {0, 2, 4}; ranges may wrap ("sat-mon").
    """
    days = set()
    for part in (value or "").lower().split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start_name, end_name = (p.strip() for p in part.split("-", 1))
            start, end = WEEKDAYS.index(start_name), WEEKDAYS.index(end_name)
            day = start
            while True:
                days.add(day)
                if day == end:
                    break
                day = (day + 1) % 7
        else:
            days.add(WEEKDAYS.index(part))
    if not days:
        raise ValueError(f"No weekdays in schedule: {value!r}")
    return frozenset(days)


def parse_time_of_day(value: str) -> time:
    hour, _, minute = (value or "").strip().partition(":")
    return time(hour=int(hour), minute=int(minute or 0))


class WeeklySchedule:
    def __init__(self, weekdays: FrozenSet[int], at: time) -> None:
        self.weekdays = weekdays
        self.at = at

    @classmethod
    def parse(cls, weekdays: str = "mon-fri", at: str = "09:00") -> "WeeklySchedule":
        try:
            return cls(parse_weekdays(weekdays), parse_time_of_day(at))
        except ValueError as exc:
            raise ValueError(f"Invalid report schedule {weekdays!r} at {at!r}: {exc}") from exc

    @classmethod
    def from_settings(cls, settings: ScheduleSettings) -> "WeeklySchedule":
        return cls.parse(settings.weekdays, settings.at)

    def next_run_after(self, moment: datetime) -> datetime:
        """First scheduled datetime strictly after `moment` (same tzinfo)."""
        candidate = datetime.combine(moment.date(), self.at, tzinfo=moment.tzinfo)
        if candidate <= moment:
            candidate += timedelta(days=1)
        while candidate.weekday() not in self.weekdays:
            candidate += timedelta(days=1)
        return candidate


def run_scheduled_reports(
    session_factory: Callable[[], Session],
    queue: EmailQueue,
) -> Optional[DispatchSummary]:
    logger.info("Starting scheduled inventory report sending")
    db = session_factory()
    try:
        result = ReportDispatchService(db, queue).send_to_all_eligible_merchants()
    except Exception:  # noqa: BLE001 - a scheduled run must never take the process down
        logger.exception("Failed to send scheduled reports")
        return None
    finally:
        db.close()

    logger.info(
        "Scheduled report completed. Sent to %s/%s merchants",
        result.queued,
        result.total_merchants,
    )
    return result


class ReportScheduler:
    def __init__(
        self,
        schedule: WeeklySchedule,
        job: Callable[[], object],
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.schedule = schedule
        self._job = job
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.next_run: datetime = schedule.next_run_after(clock())

    def run_job(self) -> None:
        try:
            self._job()
        except Exception:  # noqa: BLE001
            logger.exception("Scheduled report job raised")

    def tick(self) -> bool:
        """Run the job if it is due. Returns True if it ran."""
        now = self._clock()
        if now < self.next_run:
            return False
        self.run_job()
        self.next_run = self.schedule.next_run_after(self._clock())
        logger.info("next scheduled inventory report", extra={"next_run": self.next_run.isoformat()})
        return True

    def _loop(self) -> None:
        while not self._stop.is_set():
            self.tick()
            wait = (self.next_run - self._clock()).total_seconds()
            self._stop.wait(min(max(wait, 0.0), MAX_SLEEP_SEC))

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="report-scheduler", daemon=True)
        self._thread.start()
        logger.info("report scheduler started", extra={"next_run": self.next_run.isoformat()})

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
