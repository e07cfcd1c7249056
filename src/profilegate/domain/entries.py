"""Normalization for dated profile entries (work history, education).

One transform, applied wherever such entries are written:

- A missing start year clears start month and day; a missing or zero
  start month clears start day. The same holds for the end fields.
- An ongoing entry (``current`` or ``is_ongoing`` true) carries no end
  date at all.

INVARIANT: ongoing implies no end-date fields.
"""

from __future__ import annotations

from typing import Any

from profilegate.domain.audience import ProfileField

ONGOING_KEYS: tuple[str, ...] = ("current", "is_ongoing")

_START = ("start_year", "start_month", "start_day")
_END = ("end_year", "end_month", "end_day")

DATED_ENTRY_FIELDS: frozenset[ProfileField] = frozenset(
    {ProfileField.WORK, ProfileField.EDUCATION}
)


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or str(value) == "0"


def _clear_partial_date(entry: dict[str, Any], keys: tuple[str, str, str]) -> None:
    year, month, day = keys
    if _is_blank(entry.get(year)):
        entry.pop(month, None)
        entry.pop(day, None)
    elif _is_blank(entry.get(month)):
        entry.pop(day, None)


def is_ongoing(entry: dict[str, Any]) -> bool:
    """Return True if any ongoing flag on *entry* is truthy."""
    return any(bool(entry.get(key)) for key in ONGOING_KEYS)


def normalize_dated_entry(entry: dict[str, Any]) -> dict[str, Any]:
    """Return a normalized copy of a single dated entry."""
    normalized = dict(entry)
    _clear_partial_date(normalized, _START)
    _clear_partial_date(normalized, _END)
    if is_ongoing(normalized):
        for key in _END:
            normalized.pop(key, None)
    return normalized


def normalize_profile(profile: dict[str, Any]) -> dict[str, Any]:
    """Apply :func:`normalize_dated_entry` to every dated list in *profile*.

    Non-dict entries are passed through untouched.
    """
    normalized = dict(profile)
    for field in DATED_ENTRY_FIELDS:
        entries = normalized.get(field.value)
        if not isinstance(entries, list):
            continue
        normalized[field.value] = [
            normalize_dated_entry(e) if isinstance(e, dict) else e for e in entries
        ]
    return normalized
