"""Tests for calendar date keys."""

from __future__ import annotations

import time
from datetime import date, datetime, timedelta, timezone

import pytest

from study_journal.datekeys import (
    display_date,
    display_long_date,
    format_date_key,
    is_date_key,
    normalize_date_key,
    parse_date_key,
    today_key,
)


@pytest.fixture
def new_york_tz(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset not available")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


class TestFormat:
    def test_zero_padding(self) -> None:
        assert format_date_key(date(2025, 1, 5)) == "2025-01-05"

    def test_naive_datetime_uses_its_fields(self) -> None:
        assert format_date_key(datetime(2025, 11, 16, 23, 59)) == "2025-11-16"

    def test_aware_datetime_converted_to_local_not_utc(self, new_york_tz) -> None:
        # 03:00 UTC on the 16th is still the evening of the 15th in New York
        moment = datetime(2025, 11, 16, 3, 0, tzinfo=timezone.utc)
        assert format_date_key(moment) == "2025-11-15"


class TestParse:
    def test_components(self) -> None:
        assert parse_date_key("2025-11-16") == date(2025, 11, 16)

    @pytest.mark.parametrize(
        "key",
        [
            "",
            "2025-11",
            "2025/11/16",
            "abcd-ef-gh",
            "2025-02-30",
            "2025-13-01",
            # Non-canonical spellings of a valid day
            "2025-3-9",
            " 2025-11-16",
            "2025-11-16\n",
            "\u0662\u0660\u0662\u0665-\u0661\u0661-\u0661\u0666",
        ],
    )
    def test_invalid(self, key: str) -> None:
        with pytest.raises(ValueError):
            parse_date_key(key)

    def test_is_date_key(self) -> None:
        assert is_date_key("2024-02-29") is True
        assert is_date_key("2023-02-29") is False
        assert is_date_key(None) is False
        assert is_date_key("2025-3-9") is False


class TestNormalize:
    @pytest.mark.parametrize(
        "value",
        ["2025-03-09", "2025-3-9", " 2025-3-09 ", "2025-03-9\n"],
    )
    def test_canonical_key(self, value: str) -> None:
        assert normalize_date_key(value) == "2025-03-09"

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "16-11-2025",
            "2025-02-30",
            "2025-011-16",
            "\u0662\u0660\u0662\u0665-\u0661\u0661-\u0661\u0666",
            None,
        ],
    )
    def test_invalid(self, value) -> None:
        with pytest.raises(ValueError):
            normalize_date_key(value)


class TestRoundTrip:
    @pytest.mark.parametrize(
        "d",
        [
            date(2025, 12, 31),
            date(2026, 1, 1),
            date(2024, 2, 29),
            # DST transitions (US and EU)
            date(2025, 3, 9),
            date(2025, 11, 2),
            date(2025, 3, 30),
            date(2025, 10, 26),
        ],
    )
    def test_parse_format(self, d: date) -> None:
        assert parse_date_key(format_date_key(d)) == d

    def test_across_dst_in_local_zone(self, new_york_tz) -> None:
        start = datetime(2025, 3, 8, 23, 30)
        for hours in range(0, 72, 3):
            moment = (start + timedelta(hours=hours)).astimezone()
            key = format_date_key(moment)
            assert parse_date_key(key) == moment.date()

    def test_year_boundary(self) -> None:
        last = date(2025, 12, 31)
        assert format_date_key(last + timedelta(days=1)) == "2026-01-01"


def test_today_key_is_valid() -> None:
    assert parse_date_key(today_key()) == date.today()


def test_display_formats() -> None:
    assert display_date("2025-11-16") == "16/11/2025"
    assert display_long_date("2025-11-16") == "Sunday, 16 November 2025"
