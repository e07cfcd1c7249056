"""Shared constructor and event hand-off for the profilegate services.

Services are thin: they normalize input, take the right keyed lock, run one
write transaction against the :class:`Store`, and then hand a payload to the
event bus. The bus call happens after commit, so a plugin can never undo a
friend request or an audience change.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from profilegate.infrastructure.store import Store

logger = logging.getLogger(__name__)


class BaseService:
    """Holds the store; subclasses add the operations."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
        *,
        key: str | None = None,
    ) -> bool:
        """Queue *hook_name* on the event bus after a committed mutation.

        Events sharing *key* reach plugins in the order they were queued.

        Returns False when nothing was queued. A bus error is recorded in
        *warnings* and the mutation still reports success.
        """
        bus = self._store.event_bus
        if bus is None:
            return False
        try:
            bus.dispatch(hook_name, payload, key=key)
        except Exception as exc:
            logger.warning("Could not queue %s: %s", hook_name, exc, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")
            return False
        return True
