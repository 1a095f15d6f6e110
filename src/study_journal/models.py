"""Data models for the study journal.

Every model converts to and from the JSON shape stored in the local cache
(and, for day records, the remote table rows). ``from_dict`` is the
schema check at that boundary: it raises ``SchemaError`` on values of the
wrong shape.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from typing import Any

from study_journal.datekeys import is_date_key


class SchemaError(ValueError):
    """Raised when a stored value does not match the expected record shape."""


def create_id() -> str:
    """Return an opaque unique identifier."""
    return uuid.uuid4().hex


def _require_dict(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise SchemaError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _require_str(data: dict, key: str, what: str, default: str | None = None) -> str:
    value = data.get(key, default)
    if value is None and default is not None:
        value = default
    if not isinstance(value, str):
        raise SchemaError(f"{what}.{key} must be a string")
    return value


def _require_id(data: dict, what: str) -> str:
    value = _require_str(data, "id", what)
    if not value:
        raise SchemaError(f"{what}.id must not be empty")
    return value


@dataclass
class LinkItem:
    """A study link attached to a day."""

    id: str
    title: str
    url: str

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "url": self.url}

    @classmethod
    def from_dict(cls, data: Any) -> LinkItem:
        data = _require_dict(data, "link")
        return cls(
            id=_require_id(data, "link"),
            title=_require_str(data, "title", "link", ""),
            url=_require_str(data, "url", "link", ""),
        )


@dataclass
class CaptureItem:
    """An image capture attached to a day. ``url`` is usually a data URL."""

    id: str
    title: str
    url: str

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "url": self.url}

    @classmethod
    def from_dict(cls, data: Any) -> CaptureItem:
        data = _require_dict(data, "capture")
        return cls(
            id=_require_id(data, "capture"),
            title=_require_str(data, "title", "capture", ""),
            url=_require_str(data, "url", "capture", ""),
        )


def _item_list(raw: Any, item_cls, what: str) -> list:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise SchemaError(f"{what} must be a list")
    return [item_cls.from_dict(item) for item in raw]


@dataclass
class DayRecord:
    """Everything recorded for one calendar day."""

    date: str  # YYYY-MM-DD, local time
    summary: str = ""
    links: list[LinkItem] = field(default_factory=list)
    captures: list[CaptureItem] = field(default_factory=list)

    @classmethod
    def empty(cls, date: str) -> DayRecord:
        return cls(date=date)

    @property
    def has_content(self) -> bool:
        return bool(self.summary or self.links or self.captures)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "summary": self.summary,
            "links": [link.to_dict() for link in self.links],
            "captures": [cap.to_dict() for cap in self.captures],
        }

    @classmethod
    def from_dict(cls, data: Any) -> DayRecord:
        """Build a record from a cache value or a remote row.

        Remote rows may hold null for summary, links and captures.
        """
        data = _require_dict(data, "day")
        date = data.get("date")
        if not is_date_key(date):
            raise SchemaError(f"day.date is not a valid date key: {date!r}")
        summary = data.get("summary")
        if summary is None:
            summary = ""
        if not isinstance(summary, str):
            raise SchemaError("day.summary must be a string")
        return cls(
            date=date,
            summary=summary,
            links=_item_list(data.get("links"), LinkItem, "day.links"),
            captures=_item_list(data.get("captures"), CaptureItem, "day.captures"),
        )


@dataclass
class TaskItem:
    id: str
    text: str
    done: bool = False

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text, "done": self.done}

    @classmethod
    def from_dict(cls, data: Any) -> TaskItem:
        data = _require_dict(data, "task")
        done = data.get("done", False)
        if not isinstance(done, bool):
            raise SchemaError("task.done must be a boolean")
        return cls(
            id=_require_id(data, "task"),
            text=_require_str(data, "text", "task", ""),
            done=done,
        )


class VideoStatus(str, enum.Enum):
    TO_WATCH = "to_watch"
    WATCHED = "watched"
    MASTERED = "mastered"

    @property
    def label(self) -> str:
        return VIDEO_STATUS_LABELS[self]


VIDEO_STATUS_LABELS: dict[VideoStatus, str] = {
    VideoStatus.TO_WATCH: "To watch",
    VideoStatus.WATCHED: "Watched",
    VideoStatus.MASTERED: "Watched and learned",
}


@dataclass
class VideoItem:
    id: str
    title: str
    url: str = ""
    status: VideoStatus = VideoStatus.TO_WATCH

    @property
    def href(self) -> str:
        """The url as something a browser can open."""
        if not self.url:
            return ""
        if self.url.startswith("http"):
            return self.url
        return f"https://{self.url}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Any) -> VideoItem:
        data = _require_dict(data, "video")
        raw_status = data.get("status", VideoStatus.TO_WATCH.value)
        try:
            status = VideoStatus(raw_status)
        except ValueError:
            raise SchemaError(f"video.status is unknown: {raw_status!r}")
        return cls(
            id=_require_id(data, "video"),
            title=_require_str(data, "title", "video", ""),
            url=_require_str(data, "url", "video", ""),
            status=status,
        )


@dataclass
class JournalEntry:
    """A free-form journal entry; several may share a date."""

    id: str
    date: str
    notes: str = ""
    hours: float = 0.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "notes": self.notes,
            "hours": self.hours,
        }

    @classmethod
    def from_dict(cls, data: Any) -> JournalEntry:
        data = _require_dict(data, "entry")
        date = data.get("date")
        if not is_date_key(date):
            raise SchemaError(f"entry.date is not a valid date key: {date!r}")
        hours = data.get("hours")
        if hours is None:
            hours = 0.0
        if isinstance(hours, bool) or not isinstance(hours, (int, float)):
            raise SchemaError("entry.hours must be a number")
        return cls(
            id=_require_id(data, "entry"),
            date=date,
            notes=_require_str(data, "notes", "entry", ""),
            hours=float(hours),
        )


@dataclass
class Screenshot:
    id: str
    name: str
    data_url: str
    created_at: str  # ISO 8601, UTC

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "dataUrl": self.data_url,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Screenshot:
        data = _require_dict(data, "screenshot")
        return cls(
            id=_require_id(data, "screenshot"),
            name=_require_str(data, "name", "screenshot", ""),
            data_url=_require_str(data, "dataUrl", "screenshot"),
            created_at=_require_str(data, "createdAt", "screenshot", ""),
        )
