"""Identity handling, canonical pair keys, and request ID format.

Identities are opaque strings; the only operations assumed are equality
and ordering (for the canonical pair key).

Request IDs are sequential: ``FR-`` followed by a counter of at least
4 digits, claimed atomically from the ``id_counters`` table.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import re

REQUEST_ID_PREFIX = "FR-"
REQUEST_ID_PATTERN: re.Pattern[str] = re.compile(r"^FR-\d{4,}$")

PAIR_KEY_SEPARATOR = "|"


def normalize_identity(identity: str) -> str:
    """Strip surrounding whitespace; reject empty identities.

    Raises:
        ValueError: If *identity* is empty after stripping.
    """
    value = str(identity).strip()
    if not value:
        msg = "Identity must be a non-empty string"
        raise ValueError(msg)
    return value


def canonical_pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for the unordered pair ``{user_a, user_b}``.

    Examples:
        >>> canonical_pair_key("bob", "alice")
        'alice|bob'
        >>> canonical_pair_key("alice", "bob")
        'alice|bob'
    """
    low, high = sorted((user_a, user_b))
    return f"{low}{PAIR_KEY_SEPARATOR}{high}"


def validate_request_id(request_id: str) -> bool:
    """Check whether *request_id* has the ``FR-NNNN`` shape."""
    return REQUEST_ID_PATTERN.match(request_id) is not None
