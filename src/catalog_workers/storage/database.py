"""SQLite engine factory and schema migrations for the record store."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from sqlmodel import create_engine

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"
SQLITE_PRAGMAS = ("journal_mode = WAL", "foreign_keys = ON")


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def sqlite_url(db_path: Path) -> str:
    return f"sqlite:///{db_path}"


def open_engine(db_path: Path, *, busy_timeout_ms: int) -> Engine:
    """Engine shared by handler threads.

    NullPool hands every session its own connection; SQLite serializes
    writers and `busy_timeout` makes concurrent inserts wait instead of failing.
    """

    busy_timeout_ms = max(1, busy_timeout_ms)
    engine = create_engine(
        sqlite_url(db_path),
        connect_args={"check_same_thread": False, "timeout": busy_timeout_ms / 1000.0},
        poolclass=NullPool,
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        try:
            for pragma in (*SQLITE_PRAGMAS, f"busy_timeout = {busy_timeout_ms}"):
                cursor.execute(f"PRAGMA {pragma}")
        finally:
            cursor.close()

    return engine


def migrate(db_path: Path, *, revision: str = "head") -> None:
    """Bring the catalog schema at `db_path` up to `revision`."""

    db_path.parent.mkdir(parents=True, exist_ok=True)
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.set_main_option("sqlalchemy.url", sqlite_url(db_path))
    logger.debug("Migrating %s to %s", db_path, revision)
    command.upgrade(config, revision)
