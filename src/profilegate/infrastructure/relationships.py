"""RelationshipGraph — the friend-request ledger and relationship queries.

Mutations take a ``Connection`` from a caller-owned write transaction and
raise typed :mod:`profilegate.domain.errors`; they never commit, retry,
or lock on their own. Serialization per pair is the caller's job
(:class:`~profilegate.services.friends.FriendRequestService`), with the
partial unique index on ``pair_key`` as the cross-process backstop.

Reads open their own short connection and take no application lock.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from profilegate.domain.audience import RelationshipClass
from profilegate.domain.errors import (
    AlreadyFriendsError,
    DuplicateRequestError,
    InvalidStateTransitionError,
    NotFoundError,
    SelfReferenceError,
    UnauthorizedActionError,
)
from profilegate.domain.ids import canonical_pair_key, normalize_identity
from profilegate.domain.lifecycle import (
    DECISION_TARGETS,
    OPEN_STATUSES,
    Decision,
    FriendRequestStatus,
    is_valid_transition,
)
from profilegate.infrastructure.database.counters import next_sequential_id
from profilegate.infrastructure.database.schema import friend_requests
from profilegate.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy import Connection, Row
    from sqlalchemy.engine import Engine

    from profilegate.infrastructure.graph.engine import FriendshipGraph

logger = logging.getLogger(__name__)


class FriendRequestRecord(BaseModel):
    """One row of the friend-request ledger."""

    model_config = {"frozen": True}

    id: str
    sender_id: str
    receiver_id: str
    pair_key: str
    status: FriendRequestStatus
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: Row) -> FriendRequestRecord:
        return cls.model_validate(row._asdict())


class RelationshipStatus:
    """Viewer-relative badge for another user (string constants)."""

    SELF = "self"
    FRIEND = "friend"
    REQUEST_SENT = "request_sent"
    REQUEST_RECEIVED = "request_received"
    NONE = "none"


class RelationshipGraph:
    """Ledger of friend requests; derives relationships on demand."""

    def __init__(self, engine: Engine, graph: FriendshipGraph) -> None:
        self._engine = engine
        self._graph = graph

    # ------------------------------------------------------------------
    # Mutations (caller owns the transaction)
    # ------------------------------------------------------------------

    def send_request(
        self, conn: Connection, sender_id: str, receiver_id: str
    ) -> FriendRequestRecord:
        """Create a pending request from *sender_id* to *receiver_id*.

        Raises:
            SelfReferenceError: sender and receiver are the same identity.
            AlreadyFriendsError: an accepted record exists for the pair.
            DuplicateRequestError: a pending record exists in either direction.
        """
        sender = normalize_identity(sender_id)
        receiver = normalize_identity(receiver_id)
        if sender == receiver:
            msg = "Cannot send a friend request to yourself"
            raise SelfReferenceError(msg, user_id=sender)

        pair_key = canonical_pair_key(sender, receiver)
        existing = self._open_record(conn, pair_key)
        if existing is not None:
            _raise_for_open_record(existing)

        request_id = next_sequential_id(conn)
        now = now_iso()
        try:
            conn.execute(
                insert(friend_requests).values(
                    id=request_id,
                    sender_id=sender,
                    receiver_id=receiver,
                    pair_key=pair_key,
                    status=FriendRequestStatus.PENDING.value,
                    created_at=now,
                    updated_at=now,
                )
            )
        except IntegrityError as exc:
            # Another process won the race for this pair.
            msg = f"A friend request between {sender} and {receiver} already exists"
            raise DuplicateRequestError(msg, pair_key=pair_key) from exc

        logger.debug("friend request %s created: %s -> %s", request_id, sender, receiver)
        return FriendRequestRecord(
            id=request_id,
            sender_id=sender,
            receiver_id=receiver,
            pair_key=pair_key,
            status=FriendRequestStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    def respond(
        self,
        conn: Connection,
        request_id: str,
        responder_id: str,
        decision: Decision,
    ) -> FriendRequestRecord:
        """Accept or decline a pending request as its receiver.

        Raises:
            NotFoundError: no such request.
            UnauthorizedActionError: *responder_id* is not the receiver.
            InvalidStateTransitionError: the request is no longer pending.
        """
        record = self._require(conn, request_id)
        if record.receiver_id != responder_id:
            msg = f"Only the receiver may respond to {request_id}"
            raise UnauthorizedActionError(msg, request_id=request_id, actor=responder_id)
        return self._transition(conn, record, DECISION_TARGETS[decision])

    def cancel(self, conn: Connection, request_id: str, canceller_id: str) -> FriendRequestRecord:
        """Withdraw a pending request as its sender.

        Raises:
            NotFoundError: no such request.
            UnauthorizedActionError: *canceller_id* is not the sender.
            InvalidStateTransitionError: the request is no longer pending.
        """
        record = self._require(conn, request_id)
        if record.sender_id != canceller_id:
            msg = f"Only the sender may cancel {request_id}"
            raise UnauthorizedActionError(msg, request_id=request_id, actor=canceller_id)
        return self._transition(conn, record, FriendRequestStatus.CANCELLED)

    def unfriend(self, conn: Connection, user_a: str, user_b: str) -> FriendRequestRecord:
        """Tombstone the accepted record for the pair, freeing the pair key.

        Raises:
            SelfReferenceError: *user_a* and *user_b* are the same identity.
            InvalidStateTransitionError: the pair are not friends.
        """
        a = normalize_identity(user_a)
        b = normalize_identity(user_b)
        if a == b:
            msg = "Cannot unfriend yourself"
            raise SelfReferenceError(msg, user_id=a)

        pair_key = canonical_pair_key(a, b)
        record = self._open_record(conn, pair_key)
        if record is None or record.status is not FriendRequestStatus.ACCEPTED:
            msg = f"{a} and {b} are not friends"
            raise InvalidStateTransitionError(msg, pair_key=pair_key)
        return self._transition(conn, record, FriendRequestStatus.REMOVED)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_request(
        self, request_id: str, *, conn: Connection | None = None
    ) -> FriendRequestRecord | None:
        """Look up a single record by ID."""
        if conn is not None:
            return self._fetch(conn, request_id)
        with self._engine.connect() as read_conn:
            return self._fetch(read_conn, request_id)

    def relationship_class(self, viewer_id: str | None, owner_id: str) -> RelationshipClass:
        """Derive Self / Friend / Public for a viewer looking at *owner_id*.

        Never raises. An anonymous or blank viewer is Public; a ledger
        read failure is logged and treated as Public. Both IDs are compared
        after trimming.
        """
        if viewer_id is None:
            return RelationshipClass.PUBLIC
        try:
            viewer = normalize_identity(viewer_id)
            owner = normalize_identity(owner_id)
        except ValueError:
            return RelationshipClass.PUBLIC
        if viewer == owner:
            return RelationshipClass.SELF
        pair_key = canonical_pair_key(viewer, owner)
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    select(friend_requests.c.id).where(
                        friend_requests.c.pair_key == pair_key,
                        friend_requests.c.status == FriendRequestStatus.ACCEPTED.value,
                    )
                ).first()
        except SQLAlchemyError:
            logger.warning("relationship lookup failed for %s", pair_key, exc_info=True)
            return RelationshipClass.PUBLIC
        return RelationshipClass.FRIEND if row is not None else RelationshipClass.PUBLIC

    def relationship_status(self, viewer_id: str, other_id: str) -> str:
        """Viewer-relative status: self, friend, request_sent, request_received, none."""
        if viewer_id == other_id:
            return RelationshipStatus.SELF
        with self._engine.connect() as conn:
            record = self._open_record(conn, canonical_pair_key(viewer_id, other_id))
        if record is None:
            return RelationshipStatus.NONE
        if record.status is FriendRequestStatus.ACCEPTED:
            return RelationshipStatus.FRIEND
        if record.sender_id == viewer_id:
            return RelationshipStatus.REQUEST_SENT
        return RelationshipStatus.REQUEST_RECEIVED

    def pending_received(self, user_id: str) -> list[FriendRequestRecord]:
        """Pending requests addressed to *user_id*, oldest first."""
        return self._pending_where(friend_requests.c.receiver_id == user_id)

    def pending_sent(self, user_id: str) -> list[FriendRequestRecord]:
        """Pending requests sent by *user_id*, oldest first."""
        return self._pending_where(friend_requests.c.sender_id == user_id)

    def history(self, user_a: str, user_b: str) -> list[FriendRequestRecord]:
        """Every record ever written for the pair, oldest first."""
        pair_key = canonical_pair_key(user_a, user_b)
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(friend_requests)
                .where(friend_requests.c.pair_key == pair_key)
                .order_by(friend_requests.c.created_at, friend_requests.c.id)
            ).fetchall()
        return [FriendRequestRecord.from_row(r) for r in rows]

    def friends_of(self, user_id: str) -> list[str]:
        return self._graph.friends_of(user_id)

    def mutual_friends(self, user_a: str, user_b: str) -> list[str]:
        return self._graph.mutual_friends(user_a, user_b)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _fetch(conn: Connection, request_id: str) -> FriendRequestRecord | None:
        row = conn.execute(
            select(friend_requests).where(friend_requests.c.id == request_id)
        ).first()
        return FriendRequestRecord.from_row(row) if row is not None else None

    def _require(self, conn: Connection, request_id: str) -> FriendRequestRecord:
        record = self._fetch(conn, request_id)
        if record is None:
            msg = f"No friend request found with ID: {request_id}"
            raise NotFoundError(msg, request_id=request_id)
        return record

    @staticmethod
    def _open_record(conn: Connection, pair_key: str) -> FriendRequestRecord | None:
        row = conn.execute(
            select(friend_requests).where(
                friend_requests.c.pair_key == pair_key,
                friend_requests.c.status.in_(sorted(OPEN_STATUSES)),
            )
        ).first()
        return FriendRequestRecord.from_row(row) if row is not None else None

    @staticmethod
    def _transition(
        conn: Connection,
        record: FriendRequestRecord,
        target: FriendRequestStatus,
    ) -> FriendRequestRecord:
        """Compare-and-set the record's status from its current value to *target*."""
        current = record.status
        if not is_valid_transition(current.value, target.value):
            msg = f"Invalid status transition for {record.id}: {current.value} -> {target.value}"
            raise InvalidStateTransitionError(
                msg, request_id=record.id, status=current.value, target=target.value
            )

        now = now_iso()
        result = conn.execute(
            update(friend_requests)
            .where(
                friend_requests.c.id == record.id,
                friend_requests.c.status == current.value,
            )
            .values(status=target.value, updated_at=now)
        )
        if result.rowcount != 1:
            msg = f"Friend request {record.id} changed concurrently"
            raise InvalidStateTransitionError(msg, request_id=record.id, status=current.value)

        logger.debug("friend request %s: %s -> %s", record.id, current.value, target.value)
        return record.model_copy(update={"status": target, "updated_at": now})

    def _pending_where(self, clause: object) -> list[FriendRequestRecord]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(friend_requests)
                .where(
                    clause,  # type: ignore[arg-type]
                    friend_requests.c.status == FriendRequestStatus.PENDING.value,
                )
                .order_by(friend_requests.c.created_at, friend_requests.c.id)
            ).fetchall()
        return [FriendRequestRecord.from_row(r) for r in rows]


def _raise_for_open_record(record: FriendRequestRecord) -> None:
    if record.status is FriendRequestStatus.ACCEPTED:
        msg = f"{record.sender_id} and {record.receiver_id} are already friends"
        raise AlreadyFriendsError(msg, pair_key=record.pair_key, request_id=record.id)
    msg = (
        f"A pending friend request already exists between "
        f"{record.sender_id} and {record.receiver_id}"
    )
    raise DuplicateRequestError(msg, pair_key=record.pair_key, request_id=record.id)
