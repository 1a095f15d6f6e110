"""Remote row-store mirror over a PostgREST-style HTTP API (urllib only).

One row per calendar date: ``date`` (primary key), ``summary``, ``links``
and ``captures``. Change notifications are produced by polling the table
and comparing a fingerprint of the rows.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import urllib.error
import urllib.parse
import urllib.request
from typing import Callable

from study_journal.models import DayRecord, SchemaError

logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """Raised when communication with the remote mirror fails."""


class Subscription:
    """A running change subscription; ``stop()`` ends it."""

    def __init__(self, thread: threading.Thread | None, stop_event: threading.Event):
        self._thread = thread
        self._stop_event = stop_event

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)


class RestRemoteMirror:
    """Minimal client for a PostgREST table of day records."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        table: str = "calendar_days",
        timeout: int = 10,
        poll_interval: float = 5.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.table = table
        self.timeout = timeout
        self.poll_interval = poll_interval

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/rest/v1/{urllib.parse.quote(self.table)}"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _request(
        self,
        url: str,
        method: str = "GET",
        payload: dict | list | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> bytes:
        headers = self._headers()
        if extra_headers:
            headers.update(extra_headers)
        body = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(url, data=body, headers=headers, method=method)

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.read()
        except urllib.error.HTTPError as e:
            raise RemoteError(f"Remote HTTP error {e.code}: {e.reason}")
        except urllib.error.URLError as e:
            raise RemoteError(f"Cannot connect to remote at {self.base_url}: {e}")
        except OSError as e:
            raise RemoteError(f"Remote request failed: {e}")

    def fetch_rows(self) -> list[dict]:
        """Return the raw table rows ordered by date ascending."""
        query = urllib.parse.urlencode({"select": "*", "order": "date.asc"})
        raw = self._request(f"{self.table_url}?{query}")
        try:
            rows = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RemoteError(f"Invalid JSON response from remote: {e}")
        if not isinstance(rows, list):
            raise RemoteError("Remote response is not a list of rows")
        return rows

    def select_all(self) -> list[DayRecord]:
        """Fetch every day record, ordered by date ascending.

        Rows that do not match the day schema are logged and skipped.
        """
        records: list[DayRecord] = []
        for row in self.fetch_rows():
            try:
                records.append(DayRecord.from_dict(row))
            except SchemaError as e:
                logger.warning("Skipping malformed remote row: %s", e)
        logger.debug("Fetched %d remote day(s)", len(records))
        return records

    def upsert(self, record: DayRecord) -> None:
        """Insert or replace the row for ``record.date``."""
        query = urllib.parse.urlencode({"on_conflict": "date"})
        self._request(
            f"{self.table_url}?{query}",
            method="POST",
            payload=record.to_dict(),
            extra_headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )
        logger.debug("Upserted remote day %s", record.date)

    def subscribe(self, callback: Callable[[], None]) -> Subscription:
        """Call ``callback`` whenever the table contents change.

        A background thread polls the table every ``poll_interval`` seconds.
        The first poll only records the baseline.
        """
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._poll_loop,
            args=(callback, stop_event),
            name=f"remote-poll-{self.table}",
            daemon=True,
        )
        thread.start()
        return Subscription(thread, stop_event)

    def _poll_loop(self, callback: Callable[[], None], stop_event: threading.Event) -> None:
        last_fingerprint: str | None = None
        while not stop_event.is_set():
            try:
                fingerprint = rows_fingerprint(self.fetch_rows())
            except RemoteError as e:
                logger.error("Polling remote changes failed: %s", e)
            else:
                if last_fingerprint is not None and fingerprint != last_fingerprint:
                    logger.info("Remote table %s changed", self.table)
                    try:
                        callback()
                    except Exception:
                        logger.exception("Remote change callback failed")
                last_fingerprint = fingerprint
            stop_event.wait(self.poll_interval)


def rows_fingerprint(rows: list[dict]) -> str:
    """Compute a SHA-256 fingerprint of table rows."""
    content = json.dumps(rows, sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
