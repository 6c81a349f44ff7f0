"""Inventory report runner.

Queues the inventory summary for every eligible merchant once. For use from
an external cron when the in-process schedule is disabled.
"""

from __future__ import annotations

import logging
import os

from invdb.apps.notifications.queue import EmailQueue
from invdb.apps.reports.dispatch import ReportDispatchService
from invdb.database import WriteSessionLocal
from invdb.settings import QueueSettings


def run() -> dict:
    queue = EmailQueue.from_settings(QueueSettings.from_env())
    db = WriteSessionLocal()
    try:
        result = ReportDispatchService(db, queue).send_to_all_eligible_merchants()
        return {"totalMerchants": result.total_merchants, "queued": result.queued}
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    result = run()
    print("Inventory report runner completed:", result)
