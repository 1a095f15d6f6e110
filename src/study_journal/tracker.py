"""Local-only study tracker: tasks, journal entries, videos and screenshots.

Each collection is stored under its own key in the local cache, newest
first, and saved after every change. Unknown ids are ignored.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from study_journal.datekeys import normalize_date_key, today_key
from study_journal.day import file_to_data_url
from study_journal.local_cache import (
    ENTRIES_KEY,
    SCREENSHOTS_KEY,
    TASKS_KEY,
    VIDEOS_KEY,
    LocalCache,
)
from study_journal.models import (
    JournalEntry,
    SchemaError,
    Screenshot,
    TaskItem,
    VideoItem,
    VideoStatus,
    create_id,
)

logger = logging.getLogger(__name__)


@dataclass
class TrackerStats:
    completed_tasks: int = 0
    total_tasks: int = 0
    total_hours: float = 0.0
    mastered_videos: int = 0


def parse_hours(raw: str) -> float:
    """Parse study hours; ',' works as decimal separator.

    Empty, invalid, infinite or negative input counts as 0.
    """
    text = raw.replace(",", ".").strip()
    # float() also accepts digit separators like "1_0"
    if not text or "_" in text:
        return 0.0
    try:
        hours = float(text)
    except ValueError:
        return 0.0
    if not math.isfinite(hours) or hours < 0:
        return 0.0
    return hours


def _load_list(cache: LocalCache, key: str, from_dict: Callable) -> list:
    raw = cache.get(key, [])
    if not isinstance(raw, list):
        logger.warning("Cached %s is not a list, ignoring it", key)
        return []
    items = []
    for value in raw:
        try:
            items.append(from_dict(value))
        except SchemaError as e:
            logger.warning("Skipping cached %s item: %s", key, e)
    return items


class Tracker:
    """Tasks, entries, videos and screenshots kept in the local cache."""

    def __init__(self, cache: LocalCache):
        self._cache = cache
        self.tasks: list[TaskItem] = _load_list(cache, TASKS_KEY, TaskItem.from_dict)
        self.entries: list[JournalEntry] = _load_list(
            cache, ENTRIES_KEY, JournalEntry.from_dict
        )
        self.videos: list[VideoItem] = _load_list(cache, VIDEOS_KEY, VideoItem.from_dict)
        self.screenshots: list[Screenshot] = _load_list(
            cache, SCREENSHOTS_KEY, Screenshot.from_dict
        )

    def _save(self, key: str, items: list) -> None:
        self._cache.set(key, [item.to_dict() for item in items])

    # Tasks

    def add_task(self, text: str) -> TaskItem | None:
        text = text.strip()
        if not text:
            return None
        task = TaskItem(id=create_id(), text=text, done=False)
        self.tasks = [task, *self.tasks]
        self._save(TASKS_KEY, self.tasks)
        return task

    def toggle_task(self, task_id: str) -> None:
        for task in self.tasks:
            if task.id == task_id:
                task.done = not task.done
        self._save(TASKS_KEY, self.tasks)

    def delete_task(self, task_id: str) -> None:
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self._save(TASKS_KEY, self.tasks)

    # Journal entries

    def add_entry(
        self, notes: str, hours: str = "", date: str | None = None
    ) -> JournalEntry | None:
        """Save a new entry. Both notes and hours empty is a no-op.

        Raises:
            ValueError: If ``date`` is not a calendar date.
        """
        notes = notes.strip()
        if not notes and not hours.strip():
            return None
        entry = JournalEntry(
            id=create_id(),
            date=normalize_date_key(date) if date else today_key(),
            notes=notes,
            hours=parse_hours(hours),
        )
        self.entries = [entry, *self.entries]
        self._save(ENTRIES_KEY, self.entries)
        return entry

    def delete_entry(self, entry_id: str) -> None:
        self.entries = [e for e in self.entries if e.id != entry_id]
        self._save(ENTRIES_KEY, self.entries)

    def entries_by_date(self) -> list[JournalEntry]:
        """Entries with the most recent date first."""
        return sorted(self.entries, key=lambda e: e.date, reverse=True)

    # Videos

    def add_video(
        self,
        title: str = "",
        url: str = "",
        status: VideoStatus = VideoStatus.TO_WATCH,
    ) -> VideoItem | None:
        title = title.strip()
        url = url.strip()
        if not title and not url:
            return None
        video = VideoItem(id=create_id(), title=title or url, url=url, status=status)
        self.videos = [video, *self.videos]
        self._save(VIDEOS_KEY, self.videos)
        return video

    def set_video_status(self, video_id: str, status: VideoStatus) -> None:
        for video in self.videos:
            if video.id == video_id:
                video.status = status
        self._save(VIDEOS_KEY, self.videos)

    def delete_video(self, video_id: str) -> None:
        self.videos = [v for v in self.videos if v.id != video_id]
        self._save(VIDEOS_KEY, self.videos)

    # Screenshots

    def add_screenshot(self, path: Path) -> Screenshot:
        shot = Screenshot(
            id=create_id(),
            name=path.name,
            data_url=file_to_data_url(path),
            created_at=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        )
        self.screenshots = [shot, *self.screenshots]
        self._save(SCREENSHOTS_KEY, self.screenshots)
        return shot

    def delete_screenshot(self, screenshot_id: str) -> None:
        self.screenshots = [s for s in self.screenshots if s.id != screenshot_id]
        self._save(SCREENSHOTS_KEY, self.screenshots)

    def stats(self) -> TrackerStats:
        return TrackerStats(
            completed_tasks=sum(1 for t in self.tasks if t.done),
            total_tasks=len(self.tasks),
            total_hours=sum(e.hours for e in self.entries),
            mastered_videos=sum(
                1 for v in self.videos if v.status is VideoStatus.MASTERED
            ),
        )
