"""AudienceConfig — per-owner, per-field audience levels.

Absence of a row means the default level (Public). Rows are overwritten,
never deleted; entry-level rows for multi-entry fields may be cleared when
the entry itself goes away.

Writes take a ``Connection`` from a caller-owned write transaction and
validate every key and level before touching the database, so a failing
``bulk_set`` leaves nothing behind. Reads open their own connection.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from profilegate.domain.audience import (
    DEFAULT_LEVEL,
    AudienceLevel,
    ProfileField,
    parse_field,
    parse_level,
    parse_multi_entry_field,
)
from profilegate.domain.errors import ProfileGateError
from profilegate.domain.ids import normalize_identity
from profilegate.domain.visibility import AudienceSnapshot
from profilegate.infrastructure.database.schema import (
    audience_entry_settings,
    audience_settings,
)
from profilegate.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class AudienceConfig:
    """Store and retrieve per-field visibility preferences."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, owner_id: str, field_key: str | ProfileField) -> AudienceLevel:
        """Configured level for one field, or Public if unset or unreadable.

        Raises:
            InvalidFieldError: *field_key* is not a configurable field.
        """
        field = parse_field(field_key)
        return self.snapshot(owner_id).level_for(field)

    def get_all(self, owner_id: str) -> dict[ProfileField, AudienceLevel]:
        """Every configurable field mapped to its effective level."""
        return dict(self.snapshot(owner_id).levels)

    def get_entries(self, owner_id: str) -> dict[ProfileField, dict[str, AudienceLevel]]:
        """Entry-level overrides, grouped by field."""
        return {f: dict(e) for f, e in self.snapshot(owner_id).entry_levels.items()}

    def snapshot(self, owner_id: str) -> AudienceSnapshot:
        """Read the owner's whole configuration in one deferred transaction.

        Stored rows with an unrecognized field or level are skipped (and
        logged) so a stale row can never break resolution.
        """
        owner = normalize_identity(owner_id)
        levels: dict[ProfileField, AudienceLevel] = {f: DEFAULT_LEVEL for f in ProfileField}
        entry_levels: dict[ProfileField, dict[str, AudienceLevel]] = {}

        with self._engine.connect() as conn, conn.begin():
            field_rows = conn.execute(
                select(audience_settings.c.field_key, audience_settings.c.level).where(
                    audience_settings.c.owner_id == owner
                )
            ).fetchall()
            entry_rows = conn.execute(
                select(
                    audience_entry_settings.c.field_key,
                    audience_entry_settings.c.entry_id,
                    audience_entry_settings.c.level,
                ).where(audience_entry_settings.c.owner_id == owner)
            ).fetchall()

        for row in field_rows:
            try:
                levels[parse_field(row.field_key)] = parse_level(row.level)
            except ProfileGateError:
                logger.warning("Skipping stored audience row %s/%s", owner, row.field_key)

        for row in entry_rows:
            try:
                field = parse_field(row.field_key)
                entry_levels.setdefault(field, {})[row.entry_id] = parse_level(row.level)
            except ProfileGateError:
                logger.warning(
                    "Skipping stored entry audience row %s/%s/%s",
                    owner,
                    row.field_key,
                    row.entry_id,
                )

        return AudienceSnapshot(owner_id=owner, levels=levels, entry_levels=entry_levels)

    # ------------------------------------------------------------------
    # Writes (caller owns the transaction)
    # ------------------------------------------------------------------

    def set(
        self,
        conn: Connection,
        owner_id: str,
        field_key: str | ProfileField,
        level: str | AudienceLevel,
    ) -> tuple[ProfileField, AudienceLevel]:
        """Overwrite one field's level.

        Raises:
            InvalidFieldError: unknown field.
            InvalidAudienceLevelError: unknown level.
        """
        owner = normalize_identity(owner_id)
        field = parse_field(field_key)
        parsed = parse_level(level)
        self._upsert(conn, owner, field, parsed)
        return field, parsed

    def bulk_set(
        self,
        conn: Connection,
        owner_id: str,
        mapping: Mapping[str | ProfileField, str | AudienceLevel],
    ) -> dict[ProfileField, AudienceLevel]:
        """Overwrite several fields at once; all-or-nothing.

        Every entry is validated before the first write.
        """
        owner = normalize_identity(owner_id)
        validated = {parse_field(k): parse_level(v) for k, v in mapping.items()}
        for field, level in validated.items():
            self._upsert(conn, owner, field, level)
        return validated

    def set_entry(
        self,
        conn: Connection,
        owner_id: str,
        field_key: str | ProfileField,
        entry_id: str,
        level: str | AudienceLevel,
    ) -> tuple[ProfileField, AudienceLevel]:
        """Set the level of one entry inside a multi-entry field.

        Raises:
            InvalidFieldError: unknown field, or a field without entries.
            InvalidAudienceLevelError: unknown level.
        """
        owner = normalize_identity(owner_id)
        field = parse_multi_entry_field(field_key)
        parsed = parse_level(level)
        entry = normalize_identity(entry_id)
        stmt = sqlite_insert(audience_entry_settings).values(
            owner_id=owner,
            field_key=field.value,
            entry_id=entry,
            level=parsed.value,
            updated_at=now_iso(),
        )
        conn.execute(
            stmt.on_conflict_do_update(
                index_elements=["owner_id", "field_key", "entry_id"],
                set_={"level": stmt.excluded.level, "updated_at": stmt.excluded.updated_at},
            )
        )
        return field, parsed

    def clear_entry(
        self,
        conn: Connection,
        owner_id: str,
        field_key: str | ProfileField,
        entry_id: str,
    ) -> bool:
        """Drop an entry override. Returns True if a row was removed."""
        owner = normalize_identity(owner_id)
        field = parse_multi_entry_field(field_key)
        entry = normalize_identity(entry_id)
        result = conn.execute(
            delete(audience_entry_settings).where(
                audience_entry_settings.c.owner_id == owner,
                audience_entry_settings.c.field_key == field.value,
                audience_entry_settings.c.entry_id == entry,
            )
        )
        return result.rowcount > 0

    @staticmethod
    def _upsert(conn: Connection, owner: str, field: ProfileField, level: AudienceLevel) -> None:
        stmt = sqlite_insert(audience_settings).values(
            owner_id=owner,
            field_key=field.value,
            level=level.value,
            updated_at=now_iso(),
        )
        conn.execute(
            stmt.on_conflict_do_update(
                index_elements=["owner_id", "field_key"],
                set_={"level": stmt.excluded.level, "updated_at": stmt.excluded.updated_at},
            )
        )
