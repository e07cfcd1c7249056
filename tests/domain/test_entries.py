"""Tests for dated-entry normalization (work history, education)."""

from __future__ import annotations

from profilegate.domain.entries import is_ongoing, normalize_dated_entry, normalize_profile


class TestNormalizeDatedEntry:
    def test_ongoing_clears_end_date(self) -> None:
        entry = {
            "start_year": 2019,
            "end_year": 2022,
            "end_month": 4,
            "end_day": 2,
            "current": True,
        }
        normalized = normalize_dated_entry(entry)
        assert normalized == {"start_year": 2019, "current": True}

    def test_is_ongoing_flag_alias(self) -> None:
        normalized = normalize_dated_entry({"is_ongoing": True, "end_year": 2020})
        assert "end_year" not in normalized

    def test_missing_start_year_clears_month_and_day(self) -> None:
        normalized = normalize_dated_entry({"start_month": 3, "start_day": 9})
        assert "start_month" not in normalized
        assert "start_day" not in normalized

    def test_zero_month_clears_day(self) -> None:
        normalized = normalize_dated_entry({"end_year": 2020, "end_month": 0, "end_day": 14})
        assert normalized["end_year"] == 2020
        assert "end_day" not in normalized

    def test_complete_dates_untouched(self) -> None:
        entry = {"start_year": 2010, "start_month": 9, "start_day": 1, "end_year": 2014}
        assert normalize_dated_entry(entry) == entry

    def test_input_not_mutated(self) -> None:
        entry = {"current": True, "end_year": 2020}
        normalize_dated_entry(entry)
        assert entry == {"current": True, "end_year": 2020}

    def test_is_ongoing(self) -> None:
        assert is_ongoing({"current": True})
        assert is_ongoing({"is_ongoing": 1})
        assert not is_ongoing({"current": False})
        assert not is_ongoing({})


class TestNormalizeProfile:
    def test_applies_to_work_and_education_only(self) -> None:
        profile = {
            "work": [{"id": "w1", "current": True, "end_year": 2020}],
            "education": [{"id": "e1", "is_ongoing": True, "end_year": 2024}],
            "places_lived": [{"id": "p1", "current": True, "end_year": 2020}],
        }
        normalized = normalize_profile(profile)
        assert normalized["work"] == [{"id": "w1", "current": True}]
        assert normalized["education"] == [{"id": "e1", "is_ongoing": True}]
        assert normalized["places_lived"] == profile["places_lived"]

    def test_non_list_and_non_dict_values_pass_through(self) -> None:
        profile = {"work": "freelance", "education": ["self-taught"]}
        assert normalize_profile(profile) == profile
