"""Tests for EventBus — WAL-backed event dispatch."""

from __future__ import annotations

import threading
import time
from typing import Any

import pluggy
import pytest
from sqlalchemy import select
from sqlalchemy.engine import Engine

from profilegate.infrastructure.database.schema import event_wal
from profilegate.plugins.event_bus import COMPLETED, DEAD_LETTER, FAILED, EventBus
from profilegate.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("profilegate")

SENT = {"request_id": "FR-0001", "sender_id": "alice", "receiver_id": "bob"}


# ---------------------------------------------------------------------------
# Fake plugins for testing
# ---------------------------------------------------------------------------


class RecordingPlugin:
    """Plugin that records all hook calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def post_friend_request_sent(self, request_id: str, sender_id: str, receiver_id: str) -> None:
        self.calls.append(
            (
                "post_friend_request_sent",
                {"request_id": request_id, "sender_id": sender_id, "receiver_id": receiver_id},
            )
        )

    @hookimpl
    def post_audience_change(self, owner_id: str, changes: dict[str, Any]) -> None:
        self.calls.append(("post_audience_change", {"owner_id": owner_id, "changes": changes}))


class FailingPlugin:
    """Plugin that always raises on post_friend_request_sent."""

    @hookimpl
    def post_friend_request_sent(self, request_id: str, sender_id: str, receiver_id: str) -> None:
        msg = "Plugin exploded!"
        raise RuntimeError(msg)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def pm_with_recorder() -> tuple[PluginManager, RecordingPlugin]:
    pm = PluginManager()
    recorder = RecordingPlugin()
    pm.register_plugin(recorder, name="recorder")
    return pm, recorder


@pytest.fixture
def pm_with_failer() -> PluginManager:
    pm = PluginManager()
    pm.register_plugin(FailingPlugin(), name="failer")
    return pm


@pytest.fixture
def bus(
    db_engine: Engine, pm_with_recorder: tuple[PluginManager, RecordingPlugin]
) -> tuple[EventBus, RecordingPlugin]:
    """Sync EventBus with a recording plugin."""
    pm, recorder = pm_with_recorder
    return EventBus(db_engine, pm, sync=True), recorder


def _row(engine: Engine, event_id: int) -> Any:
    with engine.connect() as conn:
        return conn.execute(select(event_wal).where(event_wal.c.id == event_id)).fetchone()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestEventBusWAL:
    def test_dispatch_writes_wal_row(
        self, bus: tuple[EventBus, RecordingPlugin], db_engine: Engine
    ):
        event_bus, _ = bus
        event_id = event_bus.dispatch("post_friend_request_sent", SENT)

        row = _row(db_engine, event_id)
        assert row is not None
        assert row.hook_name == "post_friend_request_sent"
        assert row.status == COMPLETED
        assert row.retries == 0
        assert row.completed is not None

    def test_dispatch_sync_calls_hook(self, bus: tuple[EventBus, RecordingPlugin]):
        event_bus, recorder = bus
        event_bus.dispatch(
            "post_audience_change", {"owner_id": "alice", "changes": {"email": "Friends"}}
        )

        assert recorder.calls == [
            ("post_audience_change", {"owner_id": "alice", "changes": {"email": "Friends"}})
        ]

    def test_status_counts(self, bus: tuple[EventBus, RecordingPlugin]):
        event_bus, _ = bus
        event_bus.dispatch("post_friend_request_sent", SENT)
        event_bus.dispatch("post_friend_request_sent", SENT)
        assert event_bus.status_counts() == {COMPLETED: 2}

    def test_status_of_unknown(self, bus: tuple[EventBus, RecordingPlugin]):
        event_bus, _ = bus
        assert event_bus.status_of(999) is None


class TestEventBusFailures:
    def test_failed_hook_records_error(self, db_engine: Engine, pm_with_failer: PluginManager):
        bus = EventBus(db_engine, pm_with_failer, sync=True, max_retries=3)
        event_id = bus.dispatch("post_friend_request_sent", SENT)

        row = _row(db_engine, event_id)
        assert row.status == FAILED
        assert "Plugin exploded!" in row.error
        assert row.retries == 1

    def test_max_retries_dead_letters(self, db_engine: Engine, pm_with_failer: PluginManager):
        bus = EventBus(db_engine, pm_with_failer, sync=True, max_retries=2)
        event_id = bus.dispatch("post_friend_request_sent", SENT)
        bus.drain()

        row = _row(db_engine, event_id)
        assert row.status == DEAD_LETTER
        assert row.retries == 2
        # Dead letters are not retried.
        assert bus.drain() == []

    def test_drain_retries_failed(
        self,
        db_engine: Engine,
        pm_with_failer: PluginManager,
        pm_with_recorder: tuple[PluginManager, RecordingPlugin],
    ):
        """A later bus with a working plugin replays events that failed earlier."""
        EventBus(db_engine, pm_with_failer, sync=True, max_retries=3).dispatch(
            "post_friend_request_sent", SENT
        )

        pm, recorder = pm_with_recorder
        results = EventBus(db_engine, pm, sync=True).drain()

        assert len(results) == 1
        assert results[0]["hook_name"] == "post_friend_request_sent"
        assert results[0]["status"] == COMPLETED
        assert recorder.calls[0][1] == SENT

    def test_drain_empty(self, bus: tuple[EventBus, RecordingPlugin]):
        event_bus, _ = bus
        assert event_bus.drain() == []


class TestEventBusAsync:
    def test_async_dispatch_completes(
        self, db_engine: Engine, pm_with_recorder: tuple[PluginManager, RecordingPlugin]
    ):
        pm, recorder = pm_with_recorder
        bus = EventBus(db_engine, pm, sync=False, max_workers=1)
        assert not bus.is_sync

        bus.dispatch("post_friend_request_sent", SENT)
        bus.shutdown()

        assert len(recorder.calls) == 1

    def test_flush_waits(
        self, db_engine: Engine, pm_with_recorder: tuple[PluginManager, RecordingPlugin]
    ):
        pm, recorder = pm_with_recorder
        bus = EventBus(db_engine, pm, sync=False, max_workers=2)

        for i in range(5):
            bus.dispatch("post_audience_change", {"owner_id": f"user{i}", "changes": {}})
        bus.flush()

        assert len(recorder.calls) == 5
        assert bus.status_counts() == {COMPLETED: 5}
        bus.shutdown()

    def test_same_key_runs_in_dispatch_order(self, db_engine: Engine):
        class SlowFirstPlugin:
            def __init__(self) -> None:
                self.seen: list[str] = []

            @hookimpl
            def post_audience_change(self, owner_id: str, changes: dict[str, Any]) -> None:
                if changes.get("slow"):
                    time.sleep(0.2)
                self.seen.append(changes["step"])

        pm = PluginManager()
        plugin = SlowFirstPlugin()
        pm.register_plugin(plugin, name="slow-first")
        bus = EventBus(db_engine, pm, sync=False, max_workers=2)

        bus.dispatch(
            "post_audience_change",
            {"owner_id": "alice", "changes": {"step": "first", "slow": True}},
            key="alice",
        )
        bus.dispatch(
            "post_audience_change",
            {"owner_id": "alice", "changes": {"step": "second"}},
            key="alice",
        )
        bus.flush()

        assert plugin.seen == ["first", "second"]
        bus.shutdown()

    def test_flush_during_concurrent_dispatch(
        self, db_engine: Engine, pm_with_recorder: tuple[PluginManager, RecordingPlugin]
    ):
        pm, recorder = pm_with_recorder
        bus = EventBus(db_engine, pm, sync=False, max_workers=2)

        def dispatch_batch(owner: str) -> None:
            for i in range(5):
                bus.dispatch(
                    "post_audience_change",
                    {"owner_id": owner, "changes": {"i": i}},
                    key=owner,
                )
                bus.flush()

        threads = [threading.Thread(target=dispatch_batch, args=(f"user{n}",)) for n in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        bus.flush()

        assert len(recorder.calls) == 15
        assert bus.status_counts() == {COMPLETED: 15}
        bus.shutdown()


class TestEventBusNoPlugins:
    def test_dispatch_with_empty_pm_is_noop(self, db_engine: Engine):
        bus = EventBus(db_engine, PluginManager(), sync=True)
        event_id = bus.dispatch("post_friend_request_sent", SENT)
        assert bus.status_of(event_id) == COMPLETED

    def test_dispatch_unknown_hook_completes(self, db_engine: Engine):
        """Dispatching a hook name that doesn't exist on the relay completes silently."""
        bus = EventBus(db_engine, PluginManager(), sync=True)
        event_id = bus.dispatch("nonexistent_hook", {"foo": "bar"})
        assert bus.status_of(event_id) == COMPLETED
