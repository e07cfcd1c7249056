"""SQLite database engine, schema, and ID counters via SQLAlchemy Core."""

from profilegate.infrastructure.database.counters import next_sequential_id
from profilegate.infrastructure.database.engine import (
    create_db_engine,
    init_database,
    write_transaction,
)
from profilegate.infrastructure.database.schema import (
    audience_entry_settings,
    audience_settings,
    event_wal,
    friend_requests,
    id_counters,
    metadata,
    notifications,
    profiles,
)

__all__ = [
    "audience_entry_settings",
    "audience_settings",
    "create_db_engine",
    "event_wal",
    "friend_requests",
    "id_counters",
    "init_database",
    "metadata",
    "next_sequential_id",
    "notifications",
    "profiles",
    "write_transaction",
]
