"""ProfileService — store profile snapshots and serve viewer-specific projections."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from profilegate.domain.errors import NotFoundError, ProfileGateError
from profilegate.domain.ids import normalize_identity
from profilegate.services.base import BaseService
from profilegate.services.result import ServiceResult
from profilegate.services.telemetry import traced
from profilegate.services.visibility import VisibilityResolver


class ProfileService(BaseService):
    """Profile snapshots plus the ResolveProfile operation."""

    @property
    def resolver(self) -> VisibilityResolver:
        return VisibilityResolver(self._store.relationships, self._store.audience)

    @traced
    def save_profile(self, owner_id: str, profile: Mapping[str, Any]) -> ServiceResult:
        """Normalize dated entries and store *profile* as the owner's snapshot."""
        op = "save_profile"
        store = self._store
        try:
            owner = normalize_identity(owner_id)
            if not isinstance(profile, Mapping):
                msg = f"Profile must be a mapping, got {type(profile).__name__}"
                raise ValueError(msg)
            with store.owner_locks.hold(owner), store.transaction() as conn:
                stored = store.profiles.save(conn, owner, dict(profile))
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={"owner_id": owner, "fields": sorted(stored), "profile": stored},
        )

    @traced
    def get_profile(self, owner_id: str) -> ServiceResult:
        """The owner's own, unredacted snapshot."""
        op = "get_profile"
        try:
            owner = normalize_identity(owner_id)
            profile = self._load(owner)
        except ProfileGateError as exc:
            return ServiceResult.failure(op, exc)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)
        return ServiceResult(ok=True, op=op, data={"owner_id": owner, "profile": profile})

    @traced
    def view_profile(self, viewer_id: str | None, owner_id: str) -> ServiceResult:
        """Load the owner's snapshot and project it for *viewer_id* (None: anonymous)."""
        op = "view_profile"
        try:
            owner = normalize_identity(owner_id)
            viewer = normalize_identity(viewer_id) if viewer_id is not None else None
            raw = self._load(owner)
        except ProfileGateError as exc:
            return ServiceResult.failure(op, exc)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)
        return self._projection(op, viewer, owner, raw)

    @traced
    def resolve(
        self,
        viewer_id: str | None,
        owner_id: str,
        raw_profile: Mapping[str, Any],
    ) -> ServiceResult:
        """Project a caller-supplied *raw_profile* for *viewer_id*."""
        op = "resolve"
        try:
            owner = normalize_identity(owner_id)
            viewer = normalize_identity(viewer_id) if viewer_id is not None else None
            if not isinstance(raw_profile, Mapping):
                msg = f"Profile must be a mapping, got {type(raw_profile).__name__}"
                raise ValueError(msg)
        except ValueError as exc:
            return ServiceResult.invalid(op, exc)
        return self._projection(op, viewer, owner, raw_profile)

    def _load(self, owner: str) -> dict[str, Any]:
        profile = self._store.profiles.load(owner)
        if profile is None:
            msg = f"No profile stored for {owner}"
            raise NotFoundError(msg, owner_id=owner)
        return profile

    def _projection(
        self,
        op: str,
        viewer: str | None,
        owner: str,
        raw: Mapping[str, Any],
    ) -> ServiceResult:
        projection = self.resolver.resolve_profile(viewer, owner, raw)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "owner_id": owner,
                "viewer_id": viewer,
                "profile": projection,
                "withheld": sorted(set(raw) - set(projection)),
            },
        )
