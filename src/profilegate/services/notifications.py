"""NotificationService — read the notifications kept by the built-in plugin."""

from __future__ import annotations

from profilegate.domain.ids import normalize_identity
from profilegate.services.base import BaseService
from profilegate.services.result import ServiceResult
from profilegate.services.telemetry import traced


class NotificationService(BaseService):
    @traced
    def list_notifications(self, user_id: str, *, unread_only: bool = False) -> ServiceResult:
        op = "list_notifications"
        try:
            user = normalize_identity(user_id)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        # Background dispatch may still be writing rows for this user.
        bus = self._store.event_bus
        if bus is not None:
            bus.flush()

        items = self._store.notifications.list_for(user, unread_only=unread_only)
        return ServiceResult(
            ok=True,
            op=op,
            data={"user_id": user, "count": len(items), "items": items},
        )

    @traced
    def mark_read(self, user_id: str) -> ServiceResult:
        op = "mark_read"
        try:
            user = normalize_identity(user_id)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)
        count = self._store.notifications.mark_read(user)
        return ServiceResult(ok=True, op=op, data={"user_id": user, "count": count})
