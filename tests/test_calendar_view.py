"""Tests for the calendar month grid."""

from __future__ import annotations

import calendar
from datetime import date

from study_journal.calendar_view import month_grid, render_month, shift_month
from study_journal.models import DayRecord


class TestShiftMonth:
    def test_forward(self) -> None:
        assert shift_month(2025, 11, 1) == (2025, 12)

    def test_year_rollover(self) -> None:
        assert shift_month(2025, 12, 1) == (2026, 1)

    def test_backward_rollover(self) -> None:
        assert shift_month(2026, 1, -1) == (2025, 12)

    def test_many_months(self) -> None:
        assert shift_month(2025, 11, -23) == (2023, 12)


class TestMonthGrid:
    def test_full_weeks_starting_monday(self) -> None:
        grid = month_grid(2025, 11, {}, today=date(2025, 11, 16))
        assert all(len(week) == 7 for week in grid)
        # November 2025 starts on a Saturday
        assert grid[0][0].date == date(2025, 10, 27)
        assert grid[0][0].in_month is False
        assert grid[0][5].key == "2025-11-01"
        assert grid[0][5].in_month is True

    def test_sunday_first(self) -> None:
        grid = month_grid(2025, 11, {}, first_weekday=calendar.SUNDAY)
        assert grid[0][0].date == date(2025, 10, 26)

    def test_marks_today_and_content(self) -> None:
        records = {
            "2025-11-10": DayRecord(date="2025-11-10", summary="notes"),
            "2025-11-11": DayRecord.empty("2025-11-11"),
        }
        grid = month_grid(2025, 11, records, today=date(2025, 11, 16))
        cells = {cell.key: cell for week in grid for cell in week}

        assert cells["2025-11-16"].is_today is True
        assert cells["2025-11-10"].has_content is True
        assert cells["2025-11-11"].has_content is False
        assert sum(cell.is_today for cell in cells.values()) == 1


def test_render_month() -> None:
    records = {"2025-11-10": DayRecord(date="2025-11-10", summary="notes")}
    text = render_month(2025, 11, records, today=date(2025, 11, 16))
    lines = text.splitlines()

    assert lines[0].strip() == "November 2025"
    assert lines[1].split() == ["Mo", "Tu", "We", "Th", "Fr", "Sa", "Su"]
    assert "10*" in text
    assert "[16]" in text
    assert "27" not in lines[2]  # October days are blank
