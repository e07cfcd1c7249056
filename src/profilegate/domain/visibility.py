"""Pure redaction: raw profile + relationship class + audience snapshot -> projection.

No I/O. Given the same inputs the output is always the same, and the
function never raises on unexpected keys or values.

Rules:
- Baseline fields are always kept.
- A configurable field is kept iff its level admits the relationship class.
- Unknown keys are treated as Public.
- Within a kept multi-entry field, entries with an ``id`` that has its own
  level are filtered by the same rule; other entries inherit the field.
- Withheld fields are omitted, never replaced with placeholders.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from profilegate.domain.audience import (
    BASELINE_FIELDS,
    DEFAULT_LEVEL,
    MULTI_ENTRY_FIELDS,
    AudienceLevel,
    ProfileField,
    RelationshipClass,
    level_allows,
)

ENTRY_ID_KEY = "id"

_FIELD_VALUES: dict[str, ProfileField] = {f.value: f for f in ProfileField}


@dataclass(frozen=True)
class AudienceSnapshot:
    """Point-in-time copy of one owner's audience configuration."""

    owner_id: str
    levels: Mapping[ProfileField, AudienceLevel] = field(default_factory=dict)
    entry_levels: Mapping[ProfileField, Mapping[str, AudienceLevel]] = field(
        default_factory=dict
    )

    def level_for(self, field_key: ProfileField) -> AudienceLevel:
        return self.levels.get(field_key, DEFAULT_LEVEL)

    def entry_level_for(self, field_key: ProfileField, entry_id: str) -> AudienceLevel | None:
        return self.entry_levels.get(field_key, {}).get(entry_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner_id": self.owner_id,
            "levels": {f.value: self.level_for(f).value for f in ProfileField},
            "entries": {
                f.value: {eid: lv.value for eid, lv in sorted(entries.items())}
                for f, entries in self.entry_levels.items()
                if entries
            },
        }


def _filter_entries(
    entries: list[Any],
    field_key: ProfileField,
    relationship: RelationshipClass,
    snapshot: AudienceSnapshot,
) -> list[Any]:
    kept: list[Any] = []
    for entry in entries:
        entry_id = entry.get(ENTRY_ID_KEY) if isinstance(entry, Mapping) else None
        if entry_id is not None:
            level = snapshot.entry_level_for(field_key, str(entry_id))
            if level is not None and not level_allows(level, relationship):
                continue
        kept.append(entry)
    return kept


def redact(
    raw_profile: Mapping[str, Any],
    relationship: RelationshipClass,
    snapshot: AudienceSnapshot,
) -> dict[str, Any]:
    """Project *raw_profile* down to what *relationship* may see."""
    if relationship is RelationshipClass.SELF:
        return dict(raw_profile)

    projection: dict[str, Any] = {}
    for key, value in raw_profile.items():
        if key in BASELINE_FIELDS:
            projection[key] = value
            continue

        field_key = _FIELD_VALUES.get(key)
        if field_key is None:
            # Unknown keys default to Public.
            projection[key] = value
            continue

        if not level_allows(snapshot.level_for(field_key), relationship):
            continue

        if field_key in MULTI_ENTRY_FIELDS and isinstance(value, list):
            projection[key] = _filter_entries(value, field_key, relationship, snapshot)
        else:
            projection[key] = value
    return projection
