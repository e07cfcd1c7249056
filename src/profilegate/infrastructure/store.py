"""Store — repository pattern with transaction coordination.

The Store is the single dependency injected into every service. It owns
the database engine, the friendship graph cache, the ledger, the audience
configuration, the profile store, and the keyed locks.

:meth:`Store.transaction` opens a ``BEGIN IMMEDIATE`` write transaction
(commit on success, roll back on exception) and invalidates the graph
cache when it ends, whatever the outcome, so the next read rebuilds from
committed state.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from profilegate.config.discovery import STATE_DIRNAME
from profilegate.infrastructure.audience import AudienceConfig
from profilegate.infrastructure.database.engine import init_database, write_transaction
from profilegate.infrastructure.graph.engine import FriendshipGraph
from profilegate.infrastructure.locks import KeyedLocks
from profilegate.infrastructure.notifications import NotificationLog
from profilegate.infrastructure.profiles import ProfileStore
from profilegate.infrastructure.relationships import RelationshipGraph

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from profilegate.config.settings import ProfileGateSettings
    from profilegate.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)


class Store:
    """Repository encapsulating database, ledger, and configuration access.

    Constructed once at CLI startup from :class:`ProfileGateSettings` and
    held by :class:`~profilegate.commands._context.AppContext`. Services
    receive it via their :class:`BaseService` constructor.
    """

    def __init__(self, settings: ProfileGateSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(
            self.state_dir,
            db_filename=settings.store.db_filename,
            busy_timeout=settings.store.busy_timeout_seconds,
        )
        self._graph = FriendshipGraph(self._engine)
        self.relationships = RelationshipGraph(self._engine, self._graph)
        self.audience = AudienceConfig(self._engine)
        self.profiles = ProfileStore(self._engine)
        self.notifications = NotificationLog(self._engine)
        self.pair_locks = KeyedLocks("pairs")
        self.owner_locks = KeyedLocks("owners")
        self._event_bus: EventBus | None = None

    @property
    def state_dir(self) -> Path:
        """Directory holding the database (``{data_dir}/.profilegate``)."""
        return Path(self._settings.data_dir) / STATE_DIRNAME

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def graph(self) -> FriendshipGraph:
        """The friendship graph (lazy-built from accepted records)."""
        return self._graph

    @property
    def settings(self) -> ProfileGateSettings:
        return self._settings

    @property
    def event_bus(self) -> EventBus | None:
        """The plugin event bus (None if not initialized)."""
        return self._event_bus

    def init_event_bus(self, *, sync: bool | None = None) -> None:
        """Create the plugin manager, load plugins, and wire up the EventBus.

        Discovers entry-point plugins and registers the built-in
        notifications plugin unless ``[notifications] enabled = false``.
        *sync* defaults to the ``--sync`` flag or ``[events] sync``.
        """
        from profilegate.plugins.builtins.notifications import NotificationPlugin
        from profilegate.plugins.event_bus import EventBus
        from profilegate.plugins.manager import PluginManager

        pm = PluginManager()
        pm.discover_and_load()
        if self._settings.notifications.enabled:
            pm.register_plugin(NotificationPlugin(self.notifications), name="notifications-builtin")

        events = self._settings.events
        self._event_bus = EventBus(
            self._engine,
            pm,
            sync=self._settings.sync_events if sync is None else sync,
            max_retries=events.max_retries,
            max_workers=events.max_workers,
        )

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Write transaction that invalidates the graph cache when it ends.

        Do not read ``store.graph`` inside the block: the graph is built
        from committed state and will not reflect pending writes.

        Usage::

            with store.transaction() as conn:
                store.relationships.send_request(conn, "alice", "bob")
        """
        try:
            with write_transaction(self._engine) as conn:
                yield conn
        finally:
            self._graph.invalidate()

    def close(self) -> None:
        """Flush the event bus and release database connections."""
        if self._event_bus is not None:
            self._event_bus.shutdown()
            self._event_bus = None
        self._engine.dispose()
