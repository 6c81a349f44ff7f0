# backend/invdb/main.py
import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .database import Base, WriteSessionLocal, engine
from .settings import EmailSettings, QueueSettings, ScheduleSettings

from .apps.accounts.router_public import router as accounts_public_router
from .apps.accounts.router_admin import roles_router, users_router
from .apps.inventory.router import router as inventory_router
from .apps.merchants.router import router as merchants_router
from .apps.notifications.providers import log_configuration_warnings
from .apps.notifications.queue import EmailQueue
from .apps.notifications.router import router as email_router
from .apps.reports.router import router as reports_router
from .apps.reports.scheduler import ReportScheduler, WeeklySchedule, run_scheduled_reports

logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()


def _allowed_origins() -> List[str]:
    """
    Parse CORS_ALLOWED_ORIGINS from env.

    Accepts comma-separated origins. If unset, defaults to local dev ports.
    """
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if raw:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if origins:
            return origins
    return [
        "http://127.0.0.1:3000",
        "http://localhost:3000",
        "http://localhost:5173",
    ]


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in {"1", "true", "yes", "on"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_configuration_warnings(EmailSettings.from_env())

    queue = EmailQueue.from_settings(QueueSettings.from_env())
    app.state.email_queue = queue

    if _env_flag("INVDB_CREATE_TABLES"):
        Base.metadata.create_all(bind=engine)
        # The queue may live in its own database.
        queue.create_table()

    scheduler = None
    schedule_settings = ScheduleSettings.from_env()
    if schedule_settings.enabled:
        scheduler = ReportScheduler(
            WeeklySchedule.from_settings(schedule_settings),
            lambda: run_scheduled_reports(WriteSessionLocal, queue),
        )
        scheduler.start()
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()


app = FastAPI(title="Inventory Management API", version="1.0.0", lifespan=lifespan)
cors_origins = _allowed_origins()
allow_credentials = "*" not in cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["health"])
def read_root():
    return {"status": "ok", "message": "Inventory Management backend is running"}


@app.get("/health", tags=["health"])
def health():
    return {
        "status": "ok",
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "env": os.getenv("APP_ENV", "development"),
    }


app.include_router(accounts_public_router)
app.include_router(users_router)
app.include_router(roles_router)
app.include_router(inventory_router)
app.include_router(merchants_router)
app.include_router(reports_router)
app.include_router(email_router)
