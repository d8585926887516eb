"""Tests for the embedded dataset, load-time validation and context preparation."""

from __future__ import annotations

import dataclasses
from datetime import date, datetime

import pytest

from core.data import (
    CAPSULE_ROWS,
    UNKNOWN_LOCATION,
    InvalidCapsuleError,
    load_capsules,
    load_dashboard_data,
    parse_capsule_row,
    prepare_context,
)
from core.filters import FilterSpec, SortSpec

BASE_ROW = {"id": "x", "name": "X Major", "location": "X", "year": 2024}


class TestDataset:
    def test_loads_all_rows(self, capsules) -> None:
        assert len(capsules) == len(CAPSULE_ROWS) == 24

    def test_ids_unique(self, capsules) -> None:
        ids = [r.id for r in capsules]
        assert len(ids) == len(set(ids))

    def test_parsed_dates(self, by_id) -> None:
        paris = by_id["paris-2023"]
        assert paris.introduced_date == date(2023, 5, 4)
        assert paris.sale_start_date == date(2023, 6, 23)
        assert paris.removed_date == date(2023, 10, 7)
        assert paris.winner == "Team Vitality"

    def test_unknown_location(self, by_id) -> None:
        rmr = by_id["RMR-2020"]
        assert rmr.location == UNKNOWN_LOCATION
        assert rmr.has_known_location is False
        assert rmr.winner is None

    def test_records_are_immutable(self, by_id) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            by_id["paris-2023"].name = "changed"  # type: ignore[misc]

    def test_well_ordered_dates(self, capsules) -> None:
        for r in capsules:
            present = [d for d in (r.introduced_date, r.sale_start_date, r.removed_date) if d is not None]
            assert present == sorted(present), r.id


class TestValidation:
    def test_blank_dates_are_absent(self) -> None:
        r = parse_capsule_row({**BASE_ROW, "introduced_date": "", "removed_date": None})
        assert r.introduced_date is None
        assert r.removed_date is None

    def test_year_string_coerced(self) -> None:
        assert parse_capsule_row({**BASE_ROW, "year": " 2019 "}).year == 2019

    @pytest.mark.parametrize("field", ["id", "name", "location", "year"])
    def test_missing_required_field(self, field: str) -> None:
        row = dict(BASE_ROW)
        row.pop(field)
        with pytest.raises(InvalidCapsuleError, match=field):
            parse_capsule_row(row)

    def test_bad_year(self) -> None:
        with pytest.raises(InvalidCapsuleError, match="year"):
            parse_capsule_row({**BASE_ROW, "year": "twenty"})

    def test_malformed_date_fails_fast(self) -> None:
        with pytest.raises(InvalidCapsuleError, match="sale_start_date"):
            load_capsules([{**BASE_ROW, "sale_start_date": "2024-02-30"}])

    @pytest.mark.parametrize("value", ["20240101", "2024-W01-1"])
    def test_non_calendar_iso_forms_rejected(self, value: str) -> None:
        with pytest.raises(InvalidCapsuleError, match="introduced_date"):
            load_capsules([{**BASE_ROW, "introduced_date": value}])

    def test_datetime_value_loads_as_date(self) -> None:
        (record,) = load_capsules([{**BASE_ROW, "introduced_date": datetime(2024, 1, 1, 12), "removed_date": "2024-01-11"}])
        assert record.introduced_date == date(2024, 1, 1)
        assert type(record.introduced_date) is date

    def test_duplicate_ids(self) -> None:
        with pytest.raises(InvalidCapsuleError, match="Duplicate"):
            load_capsules([BASE_ROW, dict(BASE_ROW)])

    def test_invalid_error_is_value_error(self) -> None:
        assert issubclass(InvalidCapsuleError, ValueError)


class TestContext:
    def test_dashboard_data_is_cached(self) -> None:
        assert load_dashboard_data() is load_dashboard_data()

    def test_dashboard_data_shape(self) -> None:
        data_ctx = load_dashboard_data()
        assert data_ctx["years"][0] == 2026
        assert data_ctx["by_id"]["austin-2025"].removed_date is None

    def test_prepare_context_normalizes_raw_input(self) -> None:
        now = date(2026, 10, 19)
        ctx = prepare_context({"year_filter": 2019}, {"column": "name", "direction": "asc"}, load_dashboard_data(), now)
        assert ctx["filters"] == FilterSpec(year_filter="2019")
        assert ctx["sort"] == SortSpec("name", "asc")
        assert ctx["now"] == now
        assert [r.id for r in ctx["filtered"]] == ["katowice-2019", "berlin-2019"]

    def test_prepare_context_default_sort(self) -> None:
        ctx = prepare_context(FilterSpec(), None, load_dashboard_data(), date(2026, 10, 19))
        assert ctx["sort"] == SortSpec()
        assert len(ctx["filtered"]) == 24
