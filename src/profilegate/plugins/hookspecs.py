"""Pluggy hook specifications for friend-request and audience events.

Every hook fires after the corresponding write has committed. Arguments
are plain JSON-serializable values so events can be replayed from the
``event_wal`` table.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("profilegate")


class ProfileGateHookSpec:
    """Hook specifications for the profilegate plugin system."""

    @hookspec
    def post_friend_request_sent(
        self,
        request_id: str,
        sender_id: str,
        receiver_id: str,
    ) -> None:
        """Called after a pending request is created."""

    @hookspec
    def post_friend_request_responded(
        self,
        request_id: str,
        sender_id: str,
        receiver_id: str,
        status: str,
    ) -> None:
        """Called after the receiver accepts or declines (*status* is the new status)."""

    @hookspec
    def post_friend_request_cancelled(
        self,
        request_id: str,
        sender_id: str,
        receiver_id: str,
    ) -> None:
        """Called after the sender withdraws a pending request."""

    @hookspec
    def post_unfriend(
        self,
        request_id: str,
        user_id: str,
        friend_id: str,
    ) -> None:
        """Called after *user_id* removes *friend_id*."""

    @hookspec
    def post_audience_change(
        self,
        owner_id: str,
        changes: dict[str, Any],
    ) -> None:
        """Called after an owner changes field or entry audience levels.

        *changes* maps field keys to their new level, or, for entry-level
        changes, to ``{entry_id: level or None}``.
        """
