"""SQLAlchemy Core table definitions for the profilegate database.

The friend-request ledger is the single source of truth for relationships.
Friend lists are never stored; they are derived from accepted records.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
    text,
)

metadata = MetaData()

friend_requests = Table(
    "friend_requests",
    metadata,
    Column("id", Text, primary_key=True),  # FR-NNNN
    Column("sender_id", Text, nullable=False),
    Column("receiver_id", Text, nullable=False),
    Column("pair_key", Text, nullable=False),  # sorted "a|b"
    Column("status", Text, nullable=False),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

audience_settings = Table(
    "audience_settings",
    metadata,
    Column("owner_id", Text, nullable=False),
    Column("field_key", Text, nullable=False),
    Column("level", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
    PrimaryKeyConstraint("owner_id", "field_key"),
)

audience_entry_settings = Table(
    "audience_entry_settings",
    metadata,
    Column("owner_id", Text, nullable=False),
    Column("field_key", Text, nullable=False),
    Column("entry_id", Text, nullable=False),
    Column("level", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
    PrimaryKeyConstraint("owner_id", "field_key", "entry_id"),
)

profiles = Table(
    "profiles",
    metadata,
    Column("owner_id", Text, primary_key=True),
    Column("data", Text, nullable=False),  # JSON object
    Column("updated_at", Text, nullable=False),
)

id_counters = Table(
    "id_counters",
    metadata,
    Column("type_prefix", Text, primary_key=True),
    Column("next_value", Integer, nullable=False, default=1, server_default="1"),
)

event_wal = Table(
    "event_wal",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("hook_name", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON
    Column("status", Text, nullable=False),
    Column("error", Text),
    Column("retries", Integer, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    Column("completed", Text),
)

notifications = Table(
    "notifications",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("recipient_id", Text, nullable=False),
    Column("sender_id", Text),
    Column("type", Text, nullable=False),  # friend_request | friend_accept
    Column("reference_id", Text),  # FR-NNNN
    Column("is_read", Integer, default=0, server_default="0"),
    Column("created", Text, nullable=False),
)

# ---------------------------------------------------------------------------
# Indexes
# ---------------------------------------------------------------------------

# Backstop for the one-open-record-per-pair invariant across processes.
Index(
    "ux_friend_requests_open_pair",
    friend_requests.c.pair_key,
    unique=True,
    sqlite_where=text("status IN ('pending', 'accepted')"),
)
Index("ix_friend_requests_sender", friend_requests.c.sender_id, friend_requests.c.status)
Index("ix_friend_requests_receiver", friend_requests.c.receiver_id, friend_requests.c.status)
Index("ix_friend_requests_status", friend_requests.c.status)
Index("ix_notifications_recipient", notifications.c.recipient_id)
