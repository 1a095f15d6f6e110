"""Calendar date keys ("YYYY-MM-DD") in the local time zone.

Keys are always built from local year/month/day fields. Converting through
UTC would move the key across midnight for anyone not at UTC+0.
"""

from __future__ import annotations

import re
from datetime import date, datetime

_KEY_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII)
# User input may omit zero padding
_LOOSE_KEY_RE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})", re.ASCII)


def format_date_key(value: date | datetime) -> str:
    """Format a date as its calendar key using local fields."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        value = value.date()
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date_key(key: str) -> date:
    """Build a date from the three components of a calendar key.

    Raises:
        ValueError: If the key is malformed or names an impossible date.
    """
    m = _KEY_RE.fullmatch(key) if isinstance(key, str) else None
    if not m:
        raise ValueError(f"Invalid date key: {key!r}")
    year, month, day = (int(part) for part in m.groups())
    return date(year, month, day)


def is_date_key(value: object) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parse_date_key(value)
    except ValueError:
        return False
    return True


def today_key() -> str:
    """Return the key of the current local day."""
    return format_date_key(datetime.now())


def display_date(key: str) -> str:
    """Format a key as DD/MM/YYYY for documents."""
    return parse_date_key(key).strftime("%d/%m/%Y")


def display_long_date(key: str) -> str:
    """Format a key as e.g. 'Sunday, 16 November 2025'."""
    d = parse_date_key(key)
    return f"{d.strftime('%A')}, {d.day} {d.strftime('%B %Y')}"


def normalize_date_key(value: str) -> str:
    """Turn user input like ' 2025-3-9 ' into the canonical key '2025-03-09'.

    Raises:
        ValueError: If the value does not name a calendar date.
    """
    m = _LOOSE_KEY_RE.fullmatch(value.strip()) if isinstance(value, str) else None
    if not m:
        raise ValueError(f"Invalid date: {value!r}")
    year, month, day = (int(part) for part in m.groups())
    return format_date_key(date(year, month, day))
