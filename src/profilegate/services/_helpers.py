"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso() -> str:
    """Current UTC time as standard ISO 8601 (ledger timestamps, WAL rows)."""
    return datetime.now(UTC).isoformat()


def parse_assignments(pairs: list[str] | tuple[str, ...]) -> dict[str, str]:
    """Split ``KEY=VALUE`` strings into a dict.

    Examples:
        >>> parse_assignments(["work=Friends", "email=Only Me"])
        {'work': 'Friends', 'email': 'Only Me'}

    Raises:
        ValueError: If an item has no ``=`` or an empty key.
    """
    result: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            msg = f"Expected KEY=VALUE, got {pair!r}"
            raise ValueError(msg)
        result[key.strip()] = value.strip()
    return result
