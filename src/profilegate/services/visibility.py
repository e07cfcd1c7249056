"""VisibilityResolver — compute what a viewer may see of an owner's profile.

The relationship class is derived once per call; the owner's audience
configuration is read as one snapshot. Resolution never raises: if either
read fails, the viewer is treated as Public and every configurable field
is withheld, leaving baseline fields and unknown keys.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from profilegate.domain.audience import AudienceLevel, ProfileField, RelationshipClass
from profilegate.domain.ids import normalize_identity
from profilegate.domain.visibility import AudienceSnapshot, redact
from profilegate.services.telemetry import trace_span

if TYPE_CHECKING:
    from profilegate.infrastructure.audience import AudienceConfig
    from profilegate.infrastructure.relationships import RelationshipGraph

logger = logging.getLogger(__name__)


class VisibilityResolver:
    def __init__(self, relationships: RelationshipGraph, audience: AudienceConfig) -> None:
        self._relationships = relationships
        self._audience = audience

    def resolve_profile(
        self,
        viewer_id: str | None,
        owner_id: str,
        raw_profile: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Return the subset of *raw_profile* that *viewer_id* may see.

        ``viewer_id=None`` is an anonymous viewer. The owner always gets
        the profile back unchanged (as a copy); IDs are compared after
        trimming.
        """
        if _is_owner(viewer_id, owner_id):
            return dict(raw_profile)

        relationship, snapshot = self._gather(viewer_id, owner_id)
        with trace_span("redact") as span:
            projection = redact(raw_profile, relationship, snapshot)
            if span:
                span.annotate("relationship", relationship.value)
                span.annotate("withheld", len(raw_profile) - len(projection))
        return projection

    def _gather(
        self, viewer_id: str | None, owner_id: str
    ) -> tuple[RelationshipClass, AudienceSnapshot]:
        try:
            with trace_span("relationship_class"):
                relationship = self._relationships.relationship_class(viewer_id, owner_id)
            with trace_span("audience_snapshot"):
                snapshot = self._audience.snapshot(owner_id)
        except Exception:
            logger.warning(
                "Visibility lookup failed for %s viewing %s; serving public view",
                viewer_id,
                owner_id,
                exc_info=True,
            )
            return RelationshipClass.PUBLIC, _restrictive_snapshot(owner_id)
        return relationship, snapshot


def _is_owner(viewer_id: str | None, owner_id: str) -> bool:
    if viewer_id is None:
        return False
    try:
        return normalize_identity(viewer_id) == normalize_identity(owner_id)
    except ValueError:
        return False


def _restrictive_snapshot(owner_id: str) -> AudienceSnapshot:
    """Every configurable field withheld from anyone but the owner."""
    return AudienceSnapshot(
        owner_id=owner_id,
        levels={f: AudienceLevel.ONLY_ME for f in ProfileField},
    )
