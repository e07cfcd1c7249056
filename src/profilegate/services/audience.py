"""AudienceService — read and change per-field audience levels.

Writes for one owner are serialized through ``store.owner_locks``; every
key and level is validated before the first row is written.
"""

from __future__ import annotations

from collections.abc import Mapping

from profilegate.domain.audience import AudienceLevel, ProfileField, parse_field
from profilegate.domain.errors import ProfileGateError
from profilegate.domain.ids import normalize_identity
from profilegate.services.base import BaseService
from profilegate.services.result import ServiceResult
from profilegate.services.telemetry import traced


class AudienceService(BaseService):
    """Per-owner audience configuration."""

    @traced
    def get_config(self, owner_id: str) -> ServiceResult:
        """Every configurable field with its effective level, plus entry overrides."""
        op = "get_config"
        try:
            owner = normalize_identity(owner_id)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)
        snapshot = self._store.audience.snapshot(owner)
        return ServiceResult(ok=True, op=op, data=snapshot.to_dict())

    @traced
    def set_level(
        self,
        owner_id: str,
        field_key: str | ProfileField,
        level: str | AudienceLevel,
    ) -> ServiceResult:
        op = "set_level"
        warnings: list[str] = []
        store = self._store

        try:
            owner = normalize_identity(owner_id)
            with store.owner_locks.hold(owner), store.transaction() as conn:
                field, parsed = store.audience.set(conn, owner, field_key, level)
        except ProfileGateError as exc:
            return ServiceResult.failure(op, exc)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        changes = {field.value: parsed.value}
        self._dispatch_event(
            "post_audience_change", {"owner_id": owner, "changes": changes}, warnings, key=owner
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"owner_id": owner, "field": field.value, "level": parsed.value},
            warnings=warnings,
        )

    @traced
    def bulk_set(
        self,
        owner_id: str,
        mapping: Mapping[str | ProfileField, str | AudienceLevel],
    ) -> ServiceResult:
        """Apply several field levels at once; one bad entry rejects them all."""
        op = "bulk_set"
        warnings: list[str] = []
        store = self._store

        try:
            owner = normalize_identity(owner_id)
            with store.owner_locks.hold(owner), store.transaction() as conn:
                applied = store.audience.bulk_set(conn, owner, mapping)
        except ProfileGateError as exc:
            return ServiceResult.failure(op, exc)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        changes = {f.value: lv.value for f, lv in applied.items()}
        if changes:
            self._dispatch_event(
                "post_audience_change", {"owner_id": owner, "changes": changes}, warnings, key=owner
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={"owner_id": owner, "count": len(changes), "levels": changes},
            warnings=warnings,
        )

    @traced
    def set_entry_level(
        self,
        owner_id: str,
        field_key: str | ProfileField,
        entry_id: str,
        level: str | AudienceLevel,
    ) -> ServiceResult:
        """Give one entry of a multi-entry field its own level."""
        op = "set_entry_level"
        warnings: list[str] = []
        store = self._store

        try:
            owner = normalize_identity(owner_id)
            entry = normalize_identity(entry_id)
            with store.owner_locks.hold(owner), store.transaction() as conn:
                field, parsed = store.audience.set_entry(conn, owner, field_key, entry, level)
        except ProfileGateError as exc:
            return ServiceResult.failure(op, exc)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        self._dispatch_event(
            "post_audience_change",
            {"owner_id": owner, "changes": {field.value: {entry: parsed.value}}},
            warnings,
            key=owner,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "owner_id": owner,
                "field": field.value,
                "entry_id": entry,
                "level": parsed.value,
            },
            warnings=warnings,
        )

    @traced
    def clear_entry_level(
        self,
        owner_id: str,
        field_key: str | ProfileField,
        entry_id: str,
    ) -> ServiceResult:
        """Drop an entry override so the entry inherits its field's level again."""
        op = "clear_entry_level"
        warnings: list[str] = []
        store = self._store

        try:
            owner = normalize_identity(owner_id)
            entry = normalize_identity(entry_id)
            with store.owner_locks.hold(owner), store.transaction() as conn:
                removed = store.audience.clear_entry(conn, owner, field_key, entry)
        except ProfileGateError as exc:
            return ServiceResult.failure(op, exc)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        field = parse_field(field_key)
        if removed:
            self._dispatch_event(
                "post_audience_change",
                {"owner_id": owner, "changes": {field.value: {entry: None}}},
                warnings,
                key=owner,
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={"owner_id": owner, "field": field.value, "entry_id": entry, "removed": removed},
            warnings=warnings,
        )
