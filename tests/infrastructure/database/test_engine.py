"""Tests for database engine setup and initialization."""

from pathlib import Path

import pytest
from sqlalchemy import inspect, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from profilegate.infrastructure.database.engine import (
    create_db_engine,
    init_database,
    write_transaction,
)
from profilegate.infrastructure.database.schema import friend_requests, id_counters


class TestCreateDbEngine:
    def test_wal_mode_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db")
        with engine.connect() as conn:
            result = conn.execute(text("PRAGMA journal_mode")).scalar()
            assert result == "wal"

    def test_foreign_keys_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestInitDatabase:
    def test_creates_data_dir_and_db_file(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "state"
        init_database(target, db_filename="x.db")
        assert (target / "x.db").exists()

    def test_creates_all_tables(self, db_engine: Engine) -> None:
        table_names = set(inspect(db_engine).get_table_names())
        assert {
            "friend_requests",
            "audience_settings",
            "audience_entry_settings",
            "profiles",
            "id_counters",
            "event_wal",
            "notifications",
        } <= table_names

    def test_seeds_request_counter(self, db_engine: Engine) -> None:
        with db_engine.connect() as conn:
            row = conn.execute(
                select(id_counters.c.next_value).where(id_counters.c.type_prefix == "FR-")
            ).one()
            assert row.next_value == 1

    def test_idempotent(self, tmp_path: Path) -> None:
        """Calling init_database twice should not raise or duplicate data."""
        init_database(tmp_path).dispose()
        engine2 = init_database(tmp_path)
        with engine2.connect() as conn:
            rows = conn.execute(select(id_counters)).fetchall()
            assert len(rows) == 1
        engine2.dispose()


class TestOpenPairIndex:
    def _insert(self, engine: Engine, rid: str, status: str) -> None:
        with write_transaction(engine) as conn:
            conn.execute(
                friend_requests.insert().values(
                    id=rid,
                    sender_id="alice",
                    receiver_id="bob",
                    pair_key="alice|bob",
                    status=status,
                    created_at="t",
                    updated_at="t",
                )
            )

    def test_second_open_record_rejected(self, db_engine: Engine) -> None:
        self._insert(db_engine, "FR-0001", "pending")
        with pytest.raises(IntegrityError):
            self._insert(db_engine, "FR-0002", "accepted")

    def test_closed_records_do_not_conflict(self, db_engine: Engine) -> None:
        for n, status in enumerate(["declined", "cancelled", "removed", "pending"], start=1):
            self._insert(db_engine, f"FR-{n:04d}", status)
        with db_engine.connect() as conn:
            assert len(conn.execute(select(friend_requests)).fetchall()) == 4


class TestWriteTransaction:
    def test_commits_on_success(self, db_engine: Engine) -> None:
        with write_transaction(db_engine) as conn:
            conn.execute(id_counters.update().values(next_value=7))
        with db_engine.connect() as conn:
            assert conn.execute(select(id_counters.c.next_value)).scalar() == 7

    def test_rolls_back_on_error(self, db_engine: Engine) -> None:
        try:
            with write_transaction(db_engine) as conn:
                conn.execute(id_counters.update().values(next_value=7))
                raise KeyError("boom")
        except KeyError:
            pass
        with db_engine.connect() as conn:
            assert conn.execute(select(id_counters.c.next_value)).scalar() == 1
