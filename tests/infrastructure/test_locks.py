"""Tests for per-key locks."""

from __future__ import annotations

import threading
import time

from profilegate.infrastructure.locks import KeyedLocks


class TestKeyedLocks:
    def test_same_key_is_exclusive(self) -> None:
        locks = KeyedLocks()
        inside = 0
        peak = 0
        guard = threading.Lock()

        def worker() -> None:
            nonlocal inside, peak
            with locks.hold("alice|bob"):
                with guard:
                    inside += 1
                    peak = max(peak, inside)
                time.sleep(0.01)
                with guard:
                    inside -= 1

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert peak == 1

    def test_different_keys_do_not_contend(self) -> None:
        locks = KeyedLocks()
        entered = threading.Event()
        release = threading.Event()

        def holder() -> None:
            with locks.hold("alice|bob"):
                entered.set()
                release.wait(timeout=5)

        t = threading.Thread(target=holder)
        t.start()
        assert entered.wait(timeout=5)
        # A different pair is free while alice|bob is held.
        with locks.hold("carol|dave"):
            assert "alice|bob" in locks.active_keys()
        release.set()
        t.join()

    def test_registry_drops_released_keys(self) -> None:
        locks = KeyedLocks()
        with locks.hold("a"), locks.hold("b"):
            assert locks.active_keys() == ["a", "b"]
        assert locks.active_keys() == []

    def test_released_after_exception(self) -> None:
        locks = KeyedLocks()
        try:
            with locks.hold("a"):
                raise RuntimeError
        except RuntimeError:
            pass
        assert locks.active_keys() == []
        with locks.hold("a"):
            pass

    def test_repr(self) -> None:
        assert repr(KeyedLocks("pairs")) == "KeyedLocks('pairs', active=0)"
