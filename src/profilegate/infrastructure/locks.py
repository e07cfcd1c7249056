"""KeyedLocks — one exclusive lock per key, created on demand.

Used with canonical pair keys to serialize ledger mutations for a pair,
and with owner IDs to serialize audience writes. Holders of different
keys never contend. A key's lock is dropped once nobody holds or waits
for it, so the registry does not grow with the number of pairs ever seen.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field


@dataclass
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class KeyedLocks:
    """Registry of per-key mutexes."""

    def __init__(self, name: str = "locks") -> None:
        self._name = name
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the exclusive lock for *key* for the duration of the block."""
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    def active_keys(self) -> list[str]:
        """Keys currently held or awaited (for diagnostics and tests)."""
        with self._guard:
            return sorted(self._entries)

    def __repr__(self) -> str:
        return f"KeyedLocks({self._name!r}, active={len(self._entries)})"
