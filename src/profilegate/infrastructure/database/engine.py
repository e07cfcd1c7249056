"""Database engine setup for SQLite with WAL mode.

WAL mode gives readers a consistent snapshot without blocking writers.
Write transactions open with ``BEGIN IMMEDIATE`` (request it with the
``immediate`` execution option) so two writers queue on the busy timeout
instead of one failing when it upgrades its lock mid-transaction.
Plain connections use a deferred ``BEGIN`` and never take the write lock.

SQLAlchemy Core (not ORM) is used: every operation is a handful of
statements against small tables, no identity map needed.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, insert, select
from sqlalchemy.engine import Connection, Engine

from profilegate.domain.ids import REQUEST_ID_PREFIX
from profilegate.infrastructure.database.schema import id_counters, metadata

DEFAULT_DB_FILENAME = "profilegate.db"


def create_db_engine(db_path: Path, *, busy_timeout: float = 30.0) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"timeout": busy_timeout, "check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        # Let SQLAlchemy emit BEGIN itself (see _begin below).
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn: Connection) -> None:
        if conn.get_execution_options().get("immediate"):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def init_database(
    data_dir: Path,
    *,
    db_filename: str = DEFAULT_DB_FILENAME,
    busy_timeout: float = 30.0,
) -> Engine:
    """Initialize the database at ``{data_dir}/{db_filename}``.

    Creates *data_dir* if needed, all tables from :data:`schema.metadata`,
    and seeds the ``id_counters`` row for friend-request IDs.

    Idempotent — safe to call on an existing database.

    Returns the engine ready for use.
    """
    data_dir.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(data_dir / db_filename, busy_timeout=busy_timeout)

    metadata.create_all(engine)
    _seed_counters(engine)
    return engine


def _seed_counters(engine: Engine) -> None:
    """Insert the initial counter row for request IDs if it doesn't exist."""
    with write_transaction(engine) as conn:
        row = conn.execute(
            select(id_counters.c.type_prefix).where(id_counters.c.type_prefix == REQUEST_ID_PREFIX)
        ).first()
        if row is None:
            conn.execute(insert(id_counters).values(type_prefix=REQUEST_ID_PREFIX, next_value=1))


@contextmanager
def write_transaction(engine: Engine) -> Iterator[Connection]:
    """Open a ``BEGIN IMMEDIATE`` transaction; commit on success, roll back on error."""
    with engine.connect() as conn:
        conn.execution_options(immediate=True)
        with conn.begin():
            yield conn
