"""Email delivery worker.

Long-running: `python -m invdb.jobs.email_worker`. Run as many processes as
needed; jobs are claimed row by row so workers never share a job.
"""

from __future__ import annotations

import logging
import os

from invdb.apps.notifications.providers import get_email_provider
from invdb.apps.notifications.queue import EmailQueue
from invdb.apps.notifications.worker import EmailWorker
from invdb.settings import EmailSettings, QueueSettings


def build_worker() -> EmailWorker:
    email_settings = EmailSettings.from_env()
    queue_settings = QueueSettings.from_env()
    queue = EmailQueue.from_settings(queue_settings)
    return EmailWorker.from_settings(
        queue.session_factory,
        get_email_provider(email_settings),
        from_email=email_settings.from_email,
        settings=queue_settings,
    )


if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    build_worker().run_forever()
