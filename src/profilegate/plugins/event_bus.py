"""Durable hand-off of lifecycle events to pluggy hooks.

An event is a row in ``event_wal`` before any plugin sees it. The row then
moves ``pending -> completed`` or ``pending -> failed``; a failed row is
retried by :meth:`EventBus.drain` until it has failed ``max_retries`` times
and becomes ``dead_letter``. Plugin exceptions never reach the service that
dispatched the event.

In background mode hooks run on a small thread pool and :meth:`flush` waits
for them; ``--sync`` runs each hook before ``dispatch`` returns. Events
dispatched with the same ``key`` (a pair key, an owner id) run one after
another in dispatch order, so a plugin never sees an accept before the
request it answers.
"""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select, update

from profilegate.infrastructure.database.engine import write_transaction
from profilegate.infrastructure.database.schema import event_wal
from profilegate.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from profilegate.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

_FLUSH_TIMEOUT_S = 30


class EventStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    DEAD_LETTER = "dead_letter"


PENDING = EventStatus.PENDING
COMPLETED = EventStatus.COMPLETED
FAILED = EventStatus.FAILED
DEAD_LETTER = EventStatus.DEAD_LETTER

_RETRYABLE = (PENDING.value, FAILED.value)


class EventBus:
    """Queue events in the WAL and run the matching hook for each."""

    def __init__(
        self,
        engine: Engine,
        plugin_manager: PluginManager,
        *,
        sync: bool = False,
        max_retries: int = 3,
        max_workers: int = 2,
    ) -> None:
        self._engine = engine
        self._pm = plugin_manager
        self._max_retries = max_retries
        self._pool = None if sync else ThreadPoolExecutor(max_workers=max_workers)
        self._inflight: list[Future[None]] = []
        self._tails: dict[str, Future[None]] = {}
        self._lock = threading.Lock()

    @property
    def is_sync(self) -> bool:
        return self._pool is None

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    def dispatch(
        self, hook_name: str, payload: dict[str, Any], *, key: str | None = None
    ) -> int:
        """Record *hook_name* with *payload* and run it. Returns the WAL row id.

        In background mode the hook waits for the previous event with the
        same *key*; events without a key are unordered.
        """
        event_id = self._record(hook_name, payload)
        pool = self._pool
        if pool is None:
            self._run(event_id, hook_name, payload)
            return event_id

        with self._lock:
            before = self._tails.get(key) if key is not None else None
            future = pool.submit(self._run_after, before, event_id, hook_name, payload)
            self._inflight.append(future)
            if key is not None:
                self._tails[key] = future
        if key is not None:
            future.add_done_callback(lambda done: self._forget(key, done))
        return event_id

    def drain(self) -> list[dict[str, Any]]:
        """Flush, then rerun every pending or failed event in WAL order.

        Returns one ``{id, hook_name, status}`` entry per rerun event.
        """
        self.flush()
        with self._engine.connect() as conn:
            backlog = conn.execute(
                select(event_wal.c.id, event_wal.c.hook_name, event_wal.c.payload)
                .where(event_wal.c.status.in_(_RETRYABLE))
                .order_by(event_wal.c.id)
            ).fetchall()

        replayed = []
        for event_id, hook_name, raw in backlog:
            self._run(event_id, hook_name, json.loads(raw))
            replayed.append(
                {"id": event_id, "hook_name": hook_name, "status": self.status_of(event_id)}
            )
        return replayed

    def status_of(self, event_id: int) -> str | None:
        with self._engine.connect() as conn:
            return conn.execute(
                select(event_wal.c.status).where(event_wal.c.id == event_id)
            ).scalar_one_or_none()

    def status_counts(self) -> dict[str, int]:
        with self._engine.connect() as conn:
            counts = conn.execute(
                select(event_wal.c.status, func.count()).group_by(event_wal.c.status)
            ).all()
        return dict(counts)

    def flush(self) -> None:
        """Wait for every background hook dispatched so far."""
        with self._lock:
            inflight, self._inflight = self._inflight, []
        for future in inflight:
            # _run never raises; failures are already in the WAL
            future.result(timeout=_FLUSH_TIMEOUT_S)

    def shutdown(self) -> None:
        self.flush()
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def _record(self, hook_name: str, payload: dict[str, Any]) -> int:
        with write_transaction(self._engine) as conn:
            inserted = conn.execute(
                insert(event_wal).values(
                    hook_name=hook_name,
                    payload=json.dumps(payload),
                    status=PENDING.value,
                    retries=0,
                    created=now_iso(),
                )
            )
            event_id = inserted.lastrowid
        assert event_id is not None
        return event_id

    def _run_after(
        self,
        before: Future[None] | None,
        event_id: int,
        hook_name: str,
        payload: dict[str, Any],
    ) -> None:
        # the pool is FIFO, so *before* is already running or done
        if before is not None:
            wait([before])
        self._run(event_id, hook_name, payload)

    def _forget(self, key: str, done: Future[None]) -> None:
        with self._lock:
            if self._tails.get(key) is done:
                del self._tails[key]

    def _run(self, event_id: int, hook_name: str, payload: dict[str, Any]) -> None:
        error: str | None = None
        if self._pm.implementations(hook_name):
            try:
                getattr(self._pm.hook, hook_name)(**payload)
            except Exception as exc:
                logger.warning("Hook %s failed for event %d: %s", hook_name, event_id, exc)
                error = str(exc)
        self._settle(event_id, error)

    def _settle(self, event_id: int, error: str | None) -> None:
        """Complete the row, or count one more failure against it."""
        row = event_wal.c
        with write_transaction(self._engine) as conn:
            if error is None:
                values: dict[str, Any] = {
                    "status": COMPLETED.value,
                    "error": None,
                    "completed": now_iso(),
                }
            else:
                attempts = conn.execute(select(row.retries).where(row.id == event_id)).scalar_one()
                attempts += 1
                dead = attempts >= self._max_retries
                values = {
                    "status": (DEAD_LETTER if dead else FAILED).value,
                    "error": error,
                    "retries": attempts,
                    "completed": now_iso() if dead else None,
                }
            conn.execute(update(event_wal).where(row.id == event_id).values(**values))
