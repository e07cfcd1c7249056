"""Friend-request status lifecycle.

Per record: ``pending -> accepted | declined | cancelled`` and
``accepted -> removed`` (unfriend tombstone). Per unordered pair, the pair
returns to "no relationship" whenever its live record leaves the
open statuses, so a fresh request may follow.

INVARIANT: at most one record per pair key is in :data:`OPEN_STATUSES`.
"""

from __future__ import annotations

from enum import StrEnum


class FriendRequestStatus(StrEnum):
    """Status of a single friend-request record."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    REMOVED = "removed"


class Decision(StrEnum):
    """Receiver's answer to a pending request."""

    ACCEPT = "accept"
    DECLINE = "decline"


# --- Transition map ---

FRIEND_REQUEST_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["accepted", "declined", "cancelled"],
    "accepted": ["removed"],
    "declined": [],
    "cancelled": [],
    "removed": [],
}

# Statuses that occupy the pair key.
OPEN_STATUSES: frozenset[str] = frozenset(
    {FriendRequestStatus.PENDING, FriendRequestStatus.ACCEPTED}
)

TERMINAL_STATUSES: frozenset[str] = frozenset(
    status for status, targets in FRIEND_REQUEST_TRANSITIONS.items() if not targets
)

DECISION_TARGETS: dict[Decision, FriendRequestStatus] = {
    Decision.ACCEPT: FriendRequestStatus.ACCEPTED,
    Decision.DECLINE: FriendRequestStatus.DECLINED,
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]] = FRIEND_REQUEST_TRANSITIONS,
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed


def parse_decision(value: str | Decision) -> Decision:
    """Coerce *value* to a :class:`Decision`.

    Accepts ``reject`` as an alias for ``decline``.

    Raises:
        ValueError: If *value* names neither decision.
    """
    if isinstance(value, Decision):
        return value
    normalized = str(value).strip().lower()
    if normalized == "reject":
        normalized = Decision.DECLINE.value
    try:
        return Decision(normalized)
    except ValueError:
        msg = f"Unknown decision: {value!r}. Expected 'accept' or 'decline'"
        raise ValueError(msg) from None
