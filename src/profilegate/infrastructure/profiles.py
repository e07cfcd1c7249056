"""ProfileStore — raw profile snapshots stored as JSON, one row per owner."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from profilegate.domain.entries import normalize_profile
from profilegate.domain.ids import normalize_identity
from profilegate.infrastructure.database.schema import profiles
from profilegate.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine


class ProfileStore:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def save(self, conn: Connection, owner_id: str, profile: dict[str, Any]) -> dict[str, Any]:
        """Normalize and store *profile*, replacing any previous snapshot.

        Returns the snapshot exactly as stored.
        """
        owner = normalize_identity(owner_id)
        normalized = normalize_profile(profile)
        try:
            data = json.dumps(normalized, sort_keys=True)
        except TypeError as exc:
            msg = f"Profile is not JSON-serializable: {exc}"
            raise ValueError(msg) from exc
        stmt = sqlite_insert(profiles).values(
            owner_id=owner,
            data=data,
            updated_at=now_iso(),
        )
        conn.execute(
            stmt.on_conflict_do_update(
                index_elements=["owner_id"],
                set_={"data": stmt.excluded.data, "updated_at": stmt.excluded.updated_at},
            )
        )
        return normalized

    def load(self, owner_id: str) -> dict[str, Any] | None:
        """Return the stored snapshot for *owner_id*, or None."""
        with self._engine.connect() as conn:
            row = conn.execute(
                select(profiles.c.data).where(profiles.c.owner_id == owner_id)
            ).first()
        if row is None:
            return None
        data: dict[str, Any] = json.loads(row.data)
        return data
