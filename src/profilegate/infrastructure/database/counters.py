"""Sequential friend-request ids (``FR-0001``, ``FR-0002``, ...).

The counter row lives in ``id_counters`` and is bumped on the caller's
connection, so an id is only consumed if the request that carries it
commits. Ids are zero-padded to four digits and simply get wider after
``FR-9999``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from profilegate.domain.ids import REQUEST_ID_PREFIX
from profilegate.infrastructure.database.schema import id_counters

if TYPE_CHECKING:
    from sqlalchemy import Connection

_KNOWN_PREFIXES = frozenset({REQUEST_ID_PREFIX})


def next_sequential_id(conn: Connection, type_prefix: str = REQUEST_ID_PREFIX) -> str:
    """Reserve and return the next id for *type_prefix* on *conn*.

    Raises:
        ValueError: For a prefix with no counter row.
    """
    if type_prefix not in _KNOWN_PREFIXES:
        msg = f"No id counter for prefix {type_prefix!r}"
        raise ValueError(msg)

    counter = id_counters.c
    value: int = conn.execute(
        select(counter.next_value).where(counter.type_prefix == type_prefix)
    ).scalar_one()
    conn.execute(
        update(id_counters)
        .where(counter.type_prefix == type_prefix)
        .values(next_value=counter.next_value + 1)
    )
    return f"{type_prefix}{value:04d}"
