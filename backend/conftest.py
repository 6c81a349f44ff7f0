from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["EMAIL_PROVIDER"] = "noop"
os.environ["REPORTS_SCHEDULE_ENABLED"] = "false"
# Cheap hashes; tests hash a password per user.
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"
os.environ["ARGON2_PARALLELISM"] = "1"

import invdb  # noqa: E402,F401  registers every model on Base
from invdb.database import Base, get_db  # noqa: E402
from invdb.apps.accounts import models as account_models  # noqa: E402
from invdb.apps.accounts import services as account_services  # noqa: E402
from invdb.apps.notifications.queue import EmailQueue, get_email_queue  # noqa: E402


class FrozenClock:
    """Settable clock for queue, worker and scheduler tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def engine():
    # One shared connection so the TestClient thread sees the same in-memory DB.
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock():
    return FrozenClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def email_queue(session_factory, clock):
    return EmailQueue(session_factory, clock=clock)


@pytest.fixture()
def admin_user(db_session):
    account_services.ensure_default_roles(db_session)
    user = account_services.create_user(
        db_session,
        username="admin",
        email="admin@example.com",
        password="admin123",
        role_alias=account_models.ADMIN_ROLE_ALIAS,
    )
    db_session.commit()
    return user


@pytest.fixture()
def auth_headers(admin_user):
    token, _ = account_services.issue_access_token_for_user(admin_user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client(session_factory, email_queue):
    from fastapi.testclient import TestClient

    from invdb.main import app

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_email_queue] = lambda: email_queue
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
