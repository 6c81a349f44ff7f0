from __future__ import annotations

import logging
from datetime import datetime, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from invdb.apps.merchants import models as merchant_models
from invdb.apps.notifications.queue import EmailQueue
from invdb.apps.reports import scheduler
from invdb.apps.reports.scheduler import (
    ReportScheduler,
    WeeklySchedule,
    parse_weekdays,
    run_scheduled_reports,
)
from invdb.settings import ScheduleSettings


class StepClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def test_parse_weekdays():
    assert parse_weekdays("mon-fri") == frozenset({0, 1, 2, 3, 4})
    assert parse_weekdays("mon,wed,fri") == frozenset({0, 2, 4})
    assert parse_weekdays("sat-mon") == frozenset({5, 6, 0})
    with pytest.raises(ValueError):
        parse_weekdays("funday")


def test_schedule_defaults_to_weekday_mornings():
    schedule = WeeklySchedule.from_settings(ScheduleSettings())
    assert schedule.at == time(9, 0)
    assert schedule.weekdays == frozenset({0, 1, 2, 3, 4})


def test_invalid_time_is_rejected():
    with pytest.raises(ValueError):
        WeeklySchedule.parse("mon-fri", "25:00")


def test_next_run_after_skips_weekend():
    schedule = WeeklySchedule.parse("mon-fri", "09:00")
    # Friday 2026-03-06 10:00 -> Monday 2026-03-09 09:00
    assert schedule.next_run_after(datetime(2026, 3, 6, 10, 0)) == datetime(2026, 3, 9, 9, 0)
    # Monday before 9 -> same day
    assert schedule.next_run_after(datetime(2026, 3, 9, 8, 59)) == datetime(2026, 3, 9, 9, 0)
    # exactly at 9 -> next day
    assert schedule.next_run_after(datetime(2026, 3, 9, 9, 0)) == datetime(2026, 3, 10, 9, 0)


def test_tick_runs_only_when_due_and_reschedules():
    clock = StepClock(datetime(2026, 3, 9, 8, 0))
    runs = []
    sched = ReportScheduler(WeeklySchedule.parse("mon-fri", "09:00"), lambda: runs.append(clock.now), clock=clock)

    assert sched.tick() is False
    clock.now = datetime(2026, 3, 9, 9, 0, 5)
    assert sched.tick() is True
    assert sched.next_run == datetime(2026, 3, 10, 9, 0)
    assert runs == [datetime(2026, 3, 9, 9, 0, 5)]


def test_failing_run_does_not_cancel_later_runs(caplog):
    clock = StepClock(datetime(2026, 3, 9, 9, 30))
    calls = []

    def job():
        calls.append(clock.now)
        raise RuntimeError("queue down")

    sched = ReportScheduler(WeeklySchedule.parse("mon-fri", "09:00"), job, clock=clock)

    with caplog.at_level(logging.ERROR, logger=scheduler.__name__):
        clock.now = datetime(2026, 3, 10, 9, 0)
        assert sched.tick() is True
        clock.now = datetime(2026, 3, 11, 9, 0)
        assert sched.tick() is True

    assert len(calls) == 2
    assert "Scheduled report job raised" in caplog.text


def test_run_scheduled_reports_swallows_queue_outage(db_session, session_factory, caplog):
    db_session.add(merchant_models.Merchant(name="Alice", email="alice@x.com"))
    from invdb.apps.inventory import models as inventory_models

    db_session.add(inventory_models.InventoryItem(name="Widget A", quantity=1, price=1))
    db_session.commit()

    broken_engine = create_engine("sqlite+pysqlite:////nonexistent-dir/invdb-queue.db")
    broken_queue = EmailQueue(sessionmaker(bind=broken_engine))

    with caplog.at_level(logging.ERROR, logger=scheduler.__name__):
        assert run_scheduled_reports(session_factory, broken_queue) is None

    assert "Failed to send scheduled reports" in caplog.text


def test_run_scheduled_reports_queues_for_eligible_merchants(db_session, session_factory, email_queue):
    from invdb.apps.inventory import models as inventory_models

    db_session.add(merchant_models.Merchant(name="Alice", email="alice@x.com"))
    db_session.add(merchant_models.Merchant(name="Bob", email="bob@x.com", is_active=False))
    db_session.add(inventory_models.InventoryItem(name="Widget A", quantity=1, price=1))
    db_session.commit()

    result = run_scheduled_reports(session_factory, email_queue)

    assert result.total_merchants == 1
    assert result.queued == 1
    assert email_queue.stats().waiting == 1
