"""Built-in notifications plugin.

Keeps the ``notifications`` table in step with the friend-request
lifecycle:

- sent: the receiver gets a ``friend_request`` notification
- accepted: that notification is removed and the sender gets ``friend_accept``
- declined or cancelled: the ``friend_request`` notification is removed
"""

from __future__ import annotations

import logging

import pluggy

from profilegate.domain.lifecycle import FriendRequestStatus
from profilegate.infrastructure.notifications import (
    FRIEND_ACCEPT,
    FRIEND_REQUEST,
    NotificationLog,
)

hookimpl = pluggy.HookimplMarker("profilegate")

logger = logging.getLogger(__name__)


class NotificationPlugin:
    def __init__(self, log: NotificationLog) -> None:
        self._log = log

    @hookimpl
    def post_friend_request_sent(self, request_id: str, sender_id: str, receiver_id: str) -> None:
        self._log.add(receiver_id, sender_id, FRIEND_REQUEST, request_id)

    @hookimpl
    def post_friend_request_responded(
        self,
        request_id: str,
        sender_id: str,
        receiver_id: str,
        status: str,
    ) -> None:
        self._log.remove(receiver_id, FRIEND_REQUEST, request_id)
        if status == FriendRequestStatus.ACCEPTED:
            self._log.add(sender_id, receiver_id, FRIEND_ACCEPT, request_id)
        logger.debug("notifications updated for %s (%s)", request_id, status)

    @hookimpl
    def post_friend_request_cancelled(
        self, request_id: str, sender_id: str, receiver_id: str
    ) -> None:
        self._log.remove(receiver_id, FRIEND_REQUEST, request_id)
