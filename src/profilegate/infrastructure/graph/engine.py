"""FriendshipGraph — lazy-built NetworkX graph of accepted friendships.

A derived cache over the ledger, never a second source of truth. Built
from ``friend_requests`` rows with ``status='accepted'`` on first access and
invalidated on every ledger write. Relationship class checks do not use
it; they read the ledger directly.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import networkx as nx

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

type _Graph = nx.Graph


class FriendshipGraph:
    """Thread-safe lazy-loading friendship graph backed by the ledger."""

    def __init__(self, db: Engine) -> None:
        self._db = db
        self._graph: _Graph | None = None
        self._lock = threading.RLock()

    @property
    def graph(self) -> _Graph:
        """Return the graph, building from DB on first access."""
        with self._lock:
            if self._graph is None:
                self._graph = self._build_from_db()
            return self._graph

    def invalidate(self) -> None:
        """Clear the cached graph, forcing rebuild on next access."""
        with self._lock:
            self._graph = None

    def friends_of(self, user_id: str) -> list[str]:
        """Sorted friend IDs of *user_id* (empty for unknown users)."""
        g = self.graph
        if user_id not in g:
            return []
        return sorted(g.neighbors(user_id))

    def mutual_friends(self, user_a: str, user_b: str) -> list[str]:
        """Sorted IDs that are friends with both *user_a* and *user_b*."""
        g = self.graph
        if user_a not in g or user_b not in g:
            return []
        return sorted(nx.common_neighbors(g, user_a, user_b))

    def _build_from_db(self) -> _Graph:
        """Build an undirected graph with one edge per accepted record."""
        from sqlalchemy import select

        from profilegate.domain.lifecycle import FriendRequestStatus
        from profilegate.infrastructure.database.schema import friend_requests

        g: _Graph = nx.Graph()
        with self._db.connect() as conn:
            rows = conn.execute(
                select(
                    friend_requests.c.id,
                    friend_requests.c.sender_id,
                    friend_requests.c.receiver_id,
                    friend_requests.c.updated_at,
                ).where(friend_requests.c.status == FriendRequestStatus.ACCEPTED.value)
            )
            for row in rows:
                g.add_edge(
                    row.sender_id,
                    row.receiver_id,
                    request_id=row.id,
                    since=row.updated_at,
                )
        return g
