"""Tests for the pure redaction rules."""

from __future__ import annotations

from typing import Any

import pytest

from profilegate.domain.audience import (
    BASELINE_FIELDS,
    AudienceLevel,
    ProfileField,
    RelationshipClass,
)
from profilegate.domain.visibility import AudienceSnapshot, redact
from tests.conftest import SAMPLE_PROFILE

PUBLIC = AudienceLevel.PUBLIC
FRIENDS = AudienceLevel.FRIENDS
ONLY_ME = AudienceLevel.ONLY_ME


def _snapshot(
    levels: dict[ProfileField, AudienceLevel] | None = None,
    entries: dict[ProfileField, dict[str, AudienceLevel]] | None = None,
) -> AudienceSnapshot:
    return AudienceSnapshot(owner_id="alice", levels=levels or {}, entry_levels=entries or {})


class TestRedact:
    def test_self_sees_everything(self) -> None:
        snap = _snapshot({f: ONLY_ME for f in ProfileField})
        assert redact(SAMPLE_PROFILE, RelationshipClass.SELF, snap) == SAMPLE_PROFILE

    def test_defaults_are_public(self) -> None:
        assert redact(SAMPLE_PROFILE, RelationshipClass.PUBLIC, _snapshot()) == SAMPLE_PROFILE

    @pytest.mark.parametrize("relationship", [RelationshipClass.FRIEND, RelationshipClass.PUBLIC])
    def test_baseline_fields_always_kept(self, relationship: RelationshipClass) -> None:
        snap = _snapshot({f: ONLY_ME for f in ProfileField})
        projection = redact(SAMPLE_PROFILE, relationship, snap)
        for key in BASELINE_FIELDS:
            assert projection[key] == SAMPLE_PROFILE[key]

    def test_friends_field(self) -> None:
        snap = _snapshot({ProfileField.EMAIL: FRIENDS})
        assert "email" in redact(SAMPLE_PROFILE, RelationshipClass.FRIEND, snap)
        assert "email" not in redact(SAMPLE_PROFILE, RelationshipClass.PUBLIC, snap)

    def test_only_me_field_hidden_from_friends(self) -> None:
        snap = _snapshot({ProfileField.PHONE_NUMBER: ONLY_ME})
        projection = redact(SAMPLE_PROFILE, RelationshipClass.FRIEND, snap)
        assert "phone_number" not in projection
        assert projection["email"] == SAMPLE_PROFILE["email"]

    def test_withheld_fields_are_omitted_not_blanked(self) -> None:
        snap = _snapshot({ProfileField.BIRTHDAY: ONLY_ME})
        projection = redact(SAMPLE_PROFILE, RelationshipClass.PUBLIC, snap)
        assert "birthday" not in projection
        assert None not in projection.values()

    def test_unknown_keys_are_public(self) -> None:
        snap = _snapshot({f: ONLY_ME for f in ProfileField})
        projection = redact(SAMPLE_PROFILE, RelationshipClass.PUBLIC, snap)
        assert projection["nickname_color"] == "blue"

    def test_entry_override_filters_entries(self) -> None:
        snap = _snapshot(entries={ProfileField.WORK: {"job-2": ONLY_ME}})
        projection = redact(SAMPLE_PROFILE, RelationshipClass.FRIEND, snap)
        assert [job["id"] for job in projection["work"]] == ["job-1"]

    def test_entry_override_can_loosen_within_visible_field(self) -> None:
        snap = _snapshot(
            {ProfileField.WORK: FRIENDS},
            {ProfileField.WORK: {"job-1": PUBLIC}},
        )
        projection = redact(SAMPLE_PROFILE, RelationshipClass.FRIEND, snap)
        assert len(projection["work"]) == 2

    def test_hidden_field_hides_all_entries(self) -> None:
        snap = _snapshot(
            {ProfileField.WORK: ONLY_ME},
            {ProfileField.WORK: {"job-1": PUBLIC}},
        )
        assert "work" not in redact(SAMPLE_PROFILE, RelationshipClass.PUBLIC, snap)

    def test_entries_without_id_inherit_field(self) -> None:
        profile: dict[str, Any] = {"websites": ["https://a.test", {"url": "https://b.test"}]}
        snap = _snapshot(entries={ProfileField.WEBSITES: {"x": ONLY_ME}})
        assert redact(profile, RelationshipClass.PUBLIC, snap) == profile

    def test_non_list_multi_entry_value_kept(self) -> None:
        profile = {"work": "self-employed"}
        assert redact(profile, RelationshipClass.PUBLIC, _snapshot()) == profile

    def test_input_not_mutated(self) -> None:
        profile = dict(SAMPLE_PROFILE)
        redact(profile, RelationshipClass.PUBLIC, _snapshot({ProfileField.EMAIL: ONLY_ME}))
        assert profile == SAMPLE_PROFILE

    def test_deterministic(self) -> None:
        snap = _snapshot({ProfileField.EMAIL: FRIENDS})
        first = redact(SAMPLE_PROFILE, RelationshipClass.PUBLIC, snap)
        second = redact(SAMPLE_PROFILE, RelationshipClass.PUBLIC, snap)
        assert first == second

    def test_empty_profile(self) -> None:
        assert redact({}, RelationshipClass.PUBLIC, _snapshot()) == {}


class TestAudienceSnapshot:
    def test_to_dict_lists_every_field(self) -> None:
        snap = _snapshot(
            {ProfileField.EMAIL: FRIENDS},
            {ProfileField.WORK: {"job-2": ONLY_ME}},
        )
        data = snap.to_dict()
        assert data["owner_id"] == "alice"
        assert set(data["levels"]) == {f.value for f in ProfileField}
        assert data["levels"]["email"] == "Friends"
        assert data["levels"]["hometown"] == "Public"
        assert data["entries"] == {"work": {"job-2": "Only Me"}}

    def test_entry_level_for_missing(self) -> None:
        assert _snapshot().entry_level_for(ProfileField.WORK, "nope") is None
