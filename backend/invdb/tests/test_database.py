from __future__ import annotations

from invdb import database


def test_get_db_yields_session_on_the_shared_engine():
    sessions = database.get_db()
    db = next(sessions)
    try:
        assert db.get_bind() is database.engine
    finally:
        sessions.close()


def test_engine_kwargs_only_tune_pools_for_server_databases():
    sqlite = database.engine_kwargs("sqlite:///invdb.db")
    assert "pool_size" not in sqlite
    assert sqlite["connect_args"] == {"check_same_thread": False}

    postgres = database.engine_kwargs("postgresql+psycopg2://u:p@db-host:5432/invdb")
    assert postgres["pool_size"] == database.POOL_SIZE
    assert postgres["pool_recycle"] == database.POOL_RECYCLE
