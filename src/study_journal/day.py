"""Operations on a single calendar day: summary, study links and captures."""

from __future__ import annotations

import base64
import dataclasses
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING

from study_journal.models import CaptureItem, DayRecord, LinkItem, create_id

if TYPE_CHECKING:
    from study_journal.coordinator import SyncCoordinator

DEFAULT_CAPTURE_TITLE = "Capture"


def file_to_data_url(path: Path) -> str:
    """Encode a file as a ``data:`` URL."""
    mime, _ = mimetypes.guess_type(path.name)
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime or 'application/octet-stream'};base64,{encoded}"


class DayController:
    """Edits one day through the sync coordinator."""

    def __init__(self, coordinator: SyncCoordinator, date: str):
        self.coordinator = coordinator
        self.date = date

    @property
    def record(self) -> DayRecord:
        return self.coordinator.get_record(self.date)

    def save_summary(self, text: str) -> DayRecord:
        summary = text.strip()
        return self.coordinator.update_record(
            self.date, lambda prev: dataclasses.replace(prev, summary=summary)
        )

    def add_link(self, url: str, title: str = "") -> LinkItem | None:
        """Append a link. An empty url is ignored and returns None."""
        url = url.strip()
        if not url:
            return None
        link = LinkItem(id=create_id(), title=title.strip() or url, url=url)
        self.coordinator.update_record(
            self.date,
            lambda prev: dataclasses.replace(prev, links=[*prev.links, link]),
        )
        return link

    def delete_link(self, link_id: str) -> DayRecord:
        return self.coordinator.update_record(
            self.date,
            lambda prev: dataclasses.replace(
                prev, links=[link for link in prev.links if link.id != link_id]
            ),
        )

    def add_capture(
        self, data_url: str, title: str = "", file_name: str = ""
    ) -> CaptureItem | None:
        """Append a capture. An empty image is ignored and returns None."""
        if not data_url:
            return None
        capture = CaptureItem(
            id=create_id(),
            title=title.strip() or file_name or DEFAULT_CAPTURE_TITLE,
            url=data_url,
        )
        self.coordinator.update_record(
            self.date,
            lambda prev: dataclasses.replace(prev, captures=[*prev.captures, capture]),
        )
        return capture

    def add_capture_file(self, path: Path, title: str = "") -> CaptureItem | None:
        return self.add_capture(file_to_data_url(path), title=title, file_name=path.name)

    def delete_capture(self, capture_id: str) -> DayRecord:
        return self.coordinator.update_record(
            self.date,
            lambda prev: dataclasses.replace(
                prev, captures=[cap for cap in prev.captures if cap.id != capture_id]
            ),
        )
