"""Month grid for the calendar view."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

from study_journal.datekeys import format_date_key
from study_journal.models import DayRecord


@dataclass
class CalendarCell:
    date: date
    key: str
    in_month: bool
    is_today: bool = False
    has_content: bool = False


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``delta`` months forward (or back), rolling the year over."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_grid(
    year: int,
    month: int,
    records: dict[str, DayRecord],
    today: date | None = None,
    first_weekday: int = calendar.MONDAY,
) -> list[list[CalendarCell]]:
    """Build full weeks covering the month.

    Leading and trailing cells belong to the neighbouring months.
    """
    today = today or date.today()
    cal = calendar.Calendar(firstweekday=first_weekday)
    weeks: list[list[CalendarCell]] = []
    for week in cal.monthdatescalendar(year, month):
        row = []
        for d in week:
            key = format_date_key(d)
            record = records.get(key)
            row.append(
                CalendarCell(
                    date=d,
                    key=key,
                    in_month=d.month == month,
                    is_today=d == today,
                    has_content=record is not None and record.has_content,
                )
            )
        weeks.append(row)
    return weeks


def render_month(
    year: int,
    month: int,
    records: dict[str, DayRecord],
    today: date | None = None,
    first_weekday: int = calendar.MONDAY,
) -> str:
    """Render the month as plain text.

    Days with content get a ``*``; today is shown in brackets.
    """
    grid = month_grid(year, month, records, today=today, first_weekday=first_weekday)
    lines = [f"{calendar.month_name[month]} {year}".center(35).rstrip()]
    lines.append(
        " ".join(
            calendar.day_abbr[(first_weekday + i) % 7][:2].rjust(4) for i in range(7)
        )
    )
    for week in grid:
        cells = []
        for cell in week:
            if not cell.in_month:
                cells.append("    ")
                continue
            label = f"{cell.date.day}{'*' if cell.has_content else ''}"
            if cell.is_today:
                label = f"[{label}]"
            cells.append(label.rjust(4))
        lines.append(" ".join(cells).rstrip())
    return "\n".join(lines)
