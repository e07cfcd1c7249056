"""NotificationLog — the ``notifications`` table.

Rows are written by the built-in notifications plugin in response to
friend-request events and read by :class:`NotificationService`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from profilegate.infrastructure.database.engine import write_transaction
from profilegate.infrastructure.database.schema import notifications
from profilegate.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

FRIEND_REQUEST = "friend_request"
FRIEND_ACCEPT = "friend_accept"


class NotificationLog:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def add(self, recipient_id: str, sender_id: str, kind: str, reference_id: str) -> int:
        with write_transaction(self._engine) as conn:
            result = conn.execute(
                insert(notifications).values(
                    recipient_id=recipient_id,
                    sender_id=sender_id,
                    type=kind,
                    reference_id=reference_id,
                    is_read=0,
                    created=now_iso(),
                )
            )
            assert result.lastrowid is not None
            return result.lastrowid

    def remove(self, recipient_id: str, kind: str, reference_id: str) -> int:
        """Delete matching notifications. Returns the number removed."""
        with write_transaction(self._engine) as conn:
            result = conn.execute(
                delete(notifications).where(
                    notifications.c.recipient_id == recipient_id,
                    notifications.c.type == kind,
                    notifications.c.reference_id == reference_id,
                )
            )
            return result.rowcount

    def list_for(self, recipient_id: str, *, unread_only: bool = False) -> list[dict[str, Any]]:
        """Notifications for *recipient_id*, newest first."""
        stmt = select(notifications).where(notifications.c.recipient_id == recipient_id)
        if unread_only:
            stmt = stmt.where(notifications.c.is_read == 0)
        with self._engine.connect() as conn:
            rows = conn.execute(
                stmt.order_by(notifications.c.created.desc(), notifications.c.id.desc())
            ).fetchall()
        return [
            {
                "id": row.id,
                "type": row.type,
                "sender_id": row.sender_id,
                "reference_id": row.reference_id,
                "is_read": bool(row.is_read),
                "created": row.created,
            }
            for row in rows
        ]

    def mark_read(self, recipient_id: str) -> int:
        """Mark every unread notification for *recipient_id* as read."""
        with write_transaction(self._engine) as conn:
            result = conn.execute(
                update(notifications)
                .where(notifications.c.recipient_id == recipient_id, notifications.c.is_read == 0)
                .values(is_read=1)
            )
            return result.rowcount
