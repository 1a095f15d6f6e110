"""Keep day records consistent between the local cache and the remote mirror.

Local writes are synchronous. Remote work (the bulk fetch on load, refreshes
triggered by change notifications, and one upsert per update) runs as
detached tasks on a thread pool: failures are logged, never raised to the
caller, never retried, and never roll back local state.

Remote upserts for the same date are not serialized. Two quick updates of
one day always leave both applied locally in call order, but the mirror
ends up with whichever upsert arrives last.
"""

from __future__ import annotations

import copy
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable

from study_journal.local_cache import DAYS_KEY, LocalCache
from study_journal.models import DayRecord, SchemaError
from study_journal.remote import RemoteError

if TYPE_CHECKING:
    from study_journal.remote import RestRemoteMirror, Subscription

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, DayRecord]], None]


class SyncCoordinator:
    """In-memory map of day records backed by a local cache and a mirror."""

    def __init__(
        self,
        cache: LocalCache,
        remote: RestRemoteMirror | None = None,
        max_workers: int = 4,
    ):
        self._cache = cache
        self._remote = remote
        self._days: dict[str, DayRecord] = {}
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="remote-sync"
        )
        self._subscription: Subscription | None = None

    def __enter__(self) -> SyncCoordinator:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def has_remote(self) -> bool:
        return self._remote is not None

    def load(self) -> Future | None:
        """Read the local cache now and start the remote fetch.

        Returns the future of the remote fetch-and-merge (its result is
        True on success), or None when there is no mirror.
        """
        self._load_local()
        if self._remote is None:
            return None
        return self._detach(self._fetch_and_merge, "load remote days")

    def _load_local(self) -> None:
        raw = self._cache.get(DAYS_KEY, {})
        if not isinstance(raw, dict):
            logger.warning("Cached days are not a map, ignoring them")
            raw = {}

        days: dict[str, DayRecord] = {}
        for key, value in raw.items():
            try:
                record = DayRecord.from_dict(value)
            except SchemaError as e:
                logger.warning("Skipping cached day %s: %s", key, e)
                continue
            days[record.date] = record

        with self._lock:
            self._days = days
        logger.debug("Loaded %d day(s) from local cache", len(days))
        self._notify()

    def refresh(self) -> bool:
        """Fetch every remote row and merge it, in the calling thread."""
        if self._remote is None:
            return False
        return self._run_logged(self._fetch_and_merge, "refresh remote days")

    def _fetch_and_merge(self) -> None:
        records = self._remote.select_all()
        self.merge_remote(records)

    def merge_remote(self, records: list[DayRecord]) -> None:
        """Merge remote records: a remote record replaces the local one.

        Local edits that never reached the mirror are overwritten for any
        date the mirror also holds.
        """
        with self._lock:
            for record in records:
                self._days[record.date] = record
            self._persist()
        logger.info("Merged %d remote day(s)", len(records))
        self._notify()

    def get_record(self, date: str) -> DayRecord:
        """Return the record for ``date`` or an unsaved empty one."""
        with self._lock:
            record = self._days.get(date)
            if record is None:
                return DayRecord.empty(date)
            return copy.deepcopy(record)

    def records(self) -> dict[str, DayRecord]:
        """Return a snapshot of every stored record."""
        with self._lock:
            return copy.deepcopy(self._days)

    def update_record(
        self, date: str, mutator: Callable[[DayRecord], DayRecord]
    ) -> DayRecord:
        """Replace the record for ``date`` with ``mutator(current)``.

        The local cache is written before this returns; the remote upsert
        is detached.
        """
        with self._lock:
            current = self._days.get(date) or DayRecord.empty(date)
            updated = mutator(copy.deepcopy(current))
            if updated.date != date:
                raise ValueError(
                    f"Mutator changed record date from {date} to {updated.date}"
                )
            self._days[date] = updated
            self._persist()
        self._notify()

        if self._remote is not None:
            self._detach(self._remote.upsert, f"save day {date}", copy.deepcopy(updated))
        return copy.deepcopy(updated)

    def add_listener(self, listener: Listener) -> None:
        """Register a callback receiving a snapshot after every change."""
        self._listeners.append(listener)

    def start_realtime(self) -> None:
        """Refresh from the mirror whenever it reports a change."""
        if self._remote is None or self._subscription is not None:
            return
        self._subscription = self._remote.subscribe(self.refresh)
        logger.info("Subscribed to remote changes")

    def stop_realtime(self) -> None:
        if self._subscription is not None:
            self._subscription.stop()
            self._subscription = None

    def close(self, wait: bool = True) -> None:
        """Stop the subscription and shut the worker pool down."""
        self.stop_realtime()
        self._executor.shutdown(wait=wait)

    def _persist(self) -> None:
        self._cache.set(
            DAYS_KEY, {date: record.to_dict() for date, record in self._days.items()}
        )

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.records()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Day listener failed")

    def _detach(self, fn: Callable, description: str, *args) -> Future:
        return self._executor.submit(self._run_logged, fn, description, *args)

    def _run_logged(self, fn: Callable, description: str, *args) -> bool:
        try:
            fn(*args)
        except RemoteError as e:
            logger.error("Remote %s failed: %s", description, e)
            return False
        except Exception:
            logger.exception("Remote %s failed", description)
            return False
        return True
