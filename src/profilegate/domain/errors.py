"""Typed errors raised by the ledger and audience configuration.

Each error carries a stable ``code`` that the service layer copies into
:class:`~profilegate.services.result.ServiceError`. Callers map codes to
their own responses (conflict, forbidden, not-found, ...).
"""

from __future__ import annotations

from typing import Any


class ProfileGateError(Exception):
    """Base class for all domain errors."""

    code: str = "ERROR"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail


class SelfReferenceError(ProfileGateError):
    """An operation named the same identity on both sides."""

    code = "SELF_REFERENCE"


class DuplicateRequestError(ProfileGateError):
    """A pending request already exists for the pair, in either direction."""

    code = "DUPLICATE_REQUEST"


class AlreadyFriendsError(ProfileGateError):
    """The pair already has an accepted record."""

    code = "ALREADY_FRIENDS"


class NotFoundError(ProfileGateError):
    code = "NOT_FOUND"


class UnauthorizedActionError(ProfileGateError):
    """The acting identity is not allowed to perform this transition."""

    code = "NOT_AUTHORIZED"


class InvalidStateTransitionError(ProfileGateError):
    code = "INVALID_STATE"


class InvalidFieldError(ProfileGateError):
    code = "INVALID_FIELD"


class InvalidAudienceLevelError(ProfileGateError):
    code = "INVALID_AUDIENCE_LEVEL"
