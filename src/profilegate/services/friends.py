"""FriendRequestService — the only entry point for friend-request mutations.

Every mutation follows the same pipeline:

    NORMALIZE → LOCK (pair key) → TRANSACT (ledger op) → DISPATCH → RESPOND

The per-pair lock serializes concurrent operations on one pair inside this
process; the ledger's partial unique index catches any other writer.
Typed ledger errors come back as ``ServiceResult(ok=False)``; nothing is
retried.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from profilegate.domain.errors import NotFoundError, ProfileGateError
from profilegate.domain.ids import canonical_pair_key, normalize_identity, validate_request_id
from profilegate.domain.lifecycle import Decision, parse_decision
from profilegate.infrastructure.relationships import FriendRequestRecord
from profilegate.services.base import BaseService
from profilegate.services.result import ServiceResult
from profilegate.services.telemetry import traced

if TYPE_CHECKING:
    from sqlalchemy import Connection

logger = logging.getLogger(__name__)


def _record_data(record: FriendRequestRecord) -> dict[str, Any]:
    return record.model_dump(mode="json")


def _event_payload(record: FriendRequestRecord) -> dict[str, Any]:
    return {
        "request_id": record.id,
        "sender_id": record.sender_id,
        "receiver_id": record.receiver_id,
    }


def _checked_request_id(request_id: str) -> str:
    rid = request_id.strip()
    if not validate_request_id(rid):
        msg = f"Malformed friend request ID: {request_id!r}"
        raise ValueError(msg)
    return rid


def _transition_data(record: FriendRequestRecord) -> dict[str, Any]:
    return {"id": record.id, "status": record.status.value, "request": _record_data(record)}


class FriendRequestService(BaseService):
    """Send, answer, withdraw, and remove friendships."""

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @traced
    def send_request(self, sender_id: str, receiver_id: str) -> ServiceResult:
        """Create a pending request from *sender_id* to *receiver_id*."""
        op = "send_request"
        warnings: list[str] = []
        store = self._store

        try:
            sender = normalize_identity(sender_id)
            receiver = normalize_identity(receiver_id)
            with store.pair_locks.hold(canonical_pair_key(sender, receiver)):
                with store.transaction() as conn:
                    record = store.relationships.send_request(conn, sender, receiver)
        except ProfileGateError as exc:
            return ServiceResult.failure(op, exc)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        self._dispatch_event(
            "post_friend_request_sent", _event_payload(record), warnings, key=record.pair_key
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": record.id, "request": _record_data(record)},
            warnings=warnings,
        )

    @traced
    def respond(
        self,
        request_id: str,
        responder_id: str,
        decision: str | Decision,
    ) -> ServiceResult:
        """Accept or decline *request_id* as its receiver."""
        op = "respond"
        warnings: list[str] = []

        try:
            parsed = parse_decision(decision)
            responder = normalize_identity(responder_id)
            record = self._locked_transition(
                request_id,
                lambda conn, rid: self._store.relationships.respond(conn, rid, responder, parsed),
            )
        except ProfileGateError as exc:
            return ServiceResult.failure(op, exc)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        self._dispatch_event(
            "post_friend_request_responded",
            {**_event_payload(record), "status": record.status.value},
            warnings,
            key=record.pair_key,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data=_transition_data(record),
            warnings=warnings,
        )

    def accept(self, request_id: str, responder_id: str) -> ServiceResult:
        return self.respond(request_id, responder_id, Decision.ACCEPT)

    def decline(self, request_id: str, responder_id: str) -> ServiceResult:
        return self.respond(request_id, responder_id, Decision.DECLINE)

    @traced
    def cancel(self, request_id: str, canceller_id: str) -> ServiceResult:
        """Withdraw *request_id* as its sender."""
        op = "cancel"
        warnings: list[str] = []

        try:
            canceller = normalize_identity(canceller_id)
            record = self._locked_transition(
                request_id,
                lambda conn, rid: self._store.relationships.cancel(conn, rid, canceller),
            )
        except ProfileGateError as exc:
            return ServiceResult.failure(op, exc)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        self._dispatch_event(
            "post_friend_request_cancelled", _event_payload(record), warnings, key=record.pair_key
        )
        return ServiceResult(
            ok=True,
            op=op,
            data=_transition_data(record),
            warnings=warnings,
        )

    @traced
    def unfriend(self, user_id: str, friend_id: str) -> ServiceResult:
        """Remove the friendship between *user_id* and *friend_id*."""
        op = "unfriend"
        warnings: list[str] = []
        store = self._store

        try:
            user = normalize_identity(user_id)
            friend = normalize_identity(friend_id)
            with store.pair_locks.hold(canonical_pair_key(user, friend)):
                with store.transaction() as conn:
                    record = store.relationships.unfriend(conn, user, friend)
        except ProfileGateError as exc:
            return ServiceResult.failure(op, exc)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        self._dispatch_event(
            "post_unfriend",
            {"request_id": record.id, "user_id": user, "friend_id": friend},
            warnings,
            key=record.pair_key,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": record.id, "user_id": user, "friend_id": friend},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @traced
    def get_request(self, request_id: str) -> ServiceResult:
        op = "get_request"
        try:
            rid = _checked_request_id(request_id)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)
        record = self._store.relationships.get_request(rid)
        if record is None:
            return ServiceResult.failure(
                op, NotFoundError(f"No friend request found with ID: {request_id}")
            )
        return ServiceResult(
            ok=True, op=op, data={"id": record.id, "request": _record_data(record)}
        )

    @traced
    def list_pending(self, user_id: str, *, sent: bool = False) -> ServiceResult:
        """Open requests addressed to (or, with *sent*, sent by) *user_id*."""
        op = "list_pending"
        try:
            user = normalize_identity(user_id)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        graph = self._store.relationships
        records = graph.pending_sent(user) if sent else graph.pending_received(user)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "user_id": user,
                "direction": "sent" if sent else "received",
                "count": len(records),
                "items": [_record_data(r) for r in records],
            },
        )

    @traced
    def list_friends(self, user_id: str) -> ServiceResult:
        op = "list_friends"
        try:
            user = normalize_identity(user_id)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        friends = self._store.relationships.friends_of(user)
        return ServiceResult(
            ok=True,
            op=op,
            data={"user_id": user, "count": len(friends), "items": friends},
        )

    @traced
    def mutual_friends(self, user_a: str, user_b: str) -> ServiceResult:
        op = "mutual_friends"
        try:
            a = normalize_identity(user_a)
            b = normalize_identity(user_b)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        mutual = self._store.relationships.mutual_friends(a, b)
        return ServiceResult(
            ok=True,
            op=op,
            data={"users": [a, b], "count": len(mutual), "items": mutual},
        )

    @traced
    def relationship_status(self, viewer_id: str, other_id: str) -> ServiceResult:
        """Badge for how *viewer_id* relates to *other_id*."""
        op = "relationship_status"
        try:
            viewer = normalize_identity(viewer_id)
            other = normalize_identity(other_id)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        status = self._store.relationships.relationship_status(viewer, other)
        return ServiceResult(
            ok=True,
            op=op,
            data={"viewer_id": viewer, "other_id": other, "status": status},
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _locked_transition(
        self,
        request_id: str,
        apply: Callable[[Connection, str], FriendRequestRecord],
    ) -> FriendRequestRecord:
        """Read *request_id*, lock its pair, then run *apply* in a transaction.

        The pair key is only known once the record is read. *apply*
        re-validates against the row inside the transaction.
        """
        rid = _checked_request_id(request_id)
        store = self._store
        record = store.relationships.get_request(rid)
        if record is None:
            msg = f"No friend request found with ID: {rid}"
            raise NotFoundError(msg, request_id=rid)

        with store.pair_locks.hold(record.pair_key):
            with store.transaction() as conn:
                updated = apply(conn, rid)
        logger.debug("%s now %s", rid, updated.status.value)
        return updated
