"""Tests for the local/remote sync coordinator."""

from __future__ import annotations

import dataclasses
import json
import logging
import threading
from pathlib import Path
from unittest.mock import MagicMock

from study_journal.coordinator import SyncCoordinator
from study_journal.local_cache import DAYS_KEY, LocalCache
from study_journal.models import DayRecord, LinkItem
from study_journal.remote import RemoteError


def _cache_with_days(path: Path, days: dict[str, DayRecord]) -> LocalCache:
    cache = LocalCache(path)
    cache.set(DAYS_KEY, {k: v.to_dict() for k, v in days.items()})
    return LocalCache(path)


def _remote(records: list[DayRecord] | None = None) -> MagicMock:
    remote = MagicMock()
    remote.select_all.return_value = records or []
    return remote


def _with_summary(text: str):
    return lambda prev: dataclasses.replace(prev, summary=text)


class TestLoad:
    def test_local_only(self, tmp_path) -> None:
        a = DayRecord(date="2025-11-15", summary="A")
        cache = _cache_with_days(tmp_path / "cache.json", {a.date: a})
        coordinator = SyncCoordinator(cache)

        assert coordinator.load() is None
        assert coordinator.records() == {a.date: a}
        coordinator.close()

    def test_remote_preferred_merge(self, tmp_path) -> None:
        a = DayRecord(date="2025-11-15", summary="A")
        b = DayRecord(date="2025-11-15", summary="B")
        c = DayRecord(date="2025-11-16", summary="C")
        path = tmp_path / "cache.json"
        cache = _cache_with_days(path, {a.date: a})

        with SyncCoordinator(cache, remote=_remote([b, c])) as coordinator:
            assert coordinator.load().result() is True
            assert coordinator.records() == {"2025-11-15": b, "2025-11-16": c}

        stored = json.loads(path.read_text(encoding="utf-8"))[DAYS_KEY]
        assert stored == {"2025-11-15": b.to_dict(), "2025-11-16": c.to_dict()}

    def test_remote_failure_keeps_local(self, tmp_path, caplog) -> None:
        a = DayRecord(date="2025-11-15", summary="A")
        cache = _cache_with_days(tmp_path / "cache.json", {a.date: a})
        remote = _remote()
        remote.select_all.side_effect = RemoteError("offline")

        with SyncCoordinator(cache, remote=remote) as coordinator:
            with caplog.at_level(logging.ERROR):
                assert coordinator.load().result() is False
            assert coordinator.records() == {a.date: a}
        assert "offline" in caplog.text

    def test_malformed_cached_day_skipped(self, tmp_path) -> None:
        cache = LocalCache(tmp_path / "cache.json")
        cache.set(DAYS_KEY, {
            "2025-11-15": {"date": "2025-11-15", "summary": "ok"},
            "junk": {"date": "junk"},
        })
        with SyncCoordinator(cache) as coordinator:
            coordinator.load()
            assert list(coordinator.records()) == ["2025-11-15"]


class TestGetRecord:
    def test_unknown_key_is_empty_and_not_stored(self, tmp_path) -> None:
        with SyncCoordinator(LocalCache(tmp_path / "cache.json")) as coordinator:
            coordinator.load()
            record = coordinator.get_record("2025-11-16")
            assert record == DayRecord(date="2025-11-16", summary="", links=[], captures=[])
            assert coordinator.records() == {}

    def test_returned_record_is_a_copy(self, tmp_path) -> None:
        with SyncCoordinator(LocalCache(tmp_path / "cache.json")) as coordinator:
            coordinator.update_record("2025-11-16", _with_summary("x"))
            record = coordinator.get_record("2025-11-16")
            record.summary = "changed"
            assert coordinator.get_record("2025-11-16").summary == "x"


class TestUpdateRecord:
    def test_update_then_get(self, tmp_path) -> None:
        with SyncCoordinator(LocalCache(tmp_path / "cache.json")) as coordinator:
            coordinator.update_record("2025-11-16", _with_summary("first"))
            previous = coordinator.get_record("2025-11-16")
            link = LinkItem(id="1", title="X", url="http://x")

            def add_link(prev: DayRecord) -> DayRecord:
                return dataclasses.replace(prev, links=[*prev.links, link])

            coordinator.update_record("2025-11-16", add_link)
            assert coordinator.get_record("2025-11-16") == add_link(previous)

    def test_local_cache_written_synchronously(self, tmp_path) -> None:
        path = tmp_path / "cache.json"
        with SyncCoordinator(LocalCache(path)) as coordinator:
            coordinator.update_record("2025-11-16", _with_summary("saved"))
            stored = json.loads(path.read_text(encoding="utf-8"))
            assert stored[DAYS_KEY]["2025-11-16"]["summary"] == "saved"

    def test_remote_upsert_sent(self, tmp_path) -> None:
        remote = _remote()
        coordinator = SyncCoordinator(LocalCache(tmp_path / "cache.json"), remote=remote)
        updated = coordinator.update_record("2025-11-16", _with_summary("s"))
        coordinator.close()

        remote.upsert.assert_called_once_with(updated)

    def test_remote_failure_does_not_roll_back(self, tmp_path, caplog) -> None:
        remote = _remote()
        remote.upsert.side_effect = RemoteError("boom")
        coordinator = SyncCoordinator(LocalCache(tmp_path / "cache.json"), remote=remote)

        with caplog.at_level(logging.ERROR):
            coordinator.update_record("2025-11-16", _with_summary("kept"))
            coordinator.close()

        assert coordinator.get_record("2025-11-16").summary == "kept"
        assert "boom" in caplog.text

    def test_unexpected_remote_error_is_logged(self, tmp_path, caplog) -> None:
        remote = _remote()
        remote.upsert.side_effect = RuntimeError("surprise")
        coordinator = SyncCoordinator(LocalCache(tmp_path / "cache.json"), remote=remote)

        with caplog.at_level(logging.ERROR):
            coordinator.update_record("2025-11-16", _with_summary("kept"))
            coordinator.close()
        assert "save day 2025-11-16" in caplog.text

    def test_update_does_not_wait_for_remote(self, tmp_path) -> None:
        release = threading.Event()
        remote = _remote()
        remote.upsert.side_effect = lambda record: release.wait(5.0)
        coordinator = SyncCoordinator(LocalCache(tmp_path / "cache.json"), remote=remote)

        coordinator.update_record("2025-11-16", _with_summary("fast"))
        assert coordinator.get_record("2025-11-16").summary == "fast"
        release.set()
        coordinator.close()

    def test_two_quick_updates_apply_in_call_order(self, tmp_path) -> None:
        remote = _remote()
        coordinator = SyncCoordinator(LocalCache(tmp_path / "cache.json"), remote=remote)

        coordinator.update_record("2025-11-16", _with_summary("one"))
        coordinator.update_record(
            "2025-11-16",
            lambda prev: dataclasses.replace(prev, summary=prev.summary + "+two"),
        )
        coordinator.close()

        assert coordinator.get_record("2025-11-16").summary == "one+two"
        # One upsert per update; their arrival order at the mirror is not defined.
        sent = sorted(call.args[0].summary for call in remote.upsert.call_args_list)
        assert sent == ["one", "one+two"]

    def test_mutator_must_keep_date(self, tmp_path) -> None:
        with SyncCoordinator(LocalCache(tmp_path / "cache.json")) as coordinator:
            try:
                coordinator.update_record(
                    "2025-11-16", lambda prev: dataclasses.replace(prev, date="2025-11-17")
                )
            except ValueError as e:
                assert "changed record date" in str(e)
            else:
                raise AssertionError("expected ValueError")
            assert coordinator.records() == {}


class TestListenersAndRealtime:
    def test_listener_receives_snapshot(self, tmp_path) -> None:
        snapshots = []
        with SyncCoordinator(LocalCache(tmp_path / "cache.json")) as coordinator:
            coordinator.add_listener(snapshots.append)
            coordinator.update_record("2025-11-16", _with_summary("x"))
        assert snapshots[-1]["2025-11-16"].summary == "x"

    def test_failing_listener_does_not_break_update(self, tmp_path) -> None:
        with SyncCoordinator(LocalCache(tmp_path / "cache.json")) as coordinator:
            coordinator.add_listener(MagicMock(side_effect=RuntimeError("view crashed")))
            coordinator.update_record("2025-11-16", _with_summary("x"))
            assert coordinator.get_record("2025-11-16").summary == "x"

    def test_realtime_refresh(self, tmp_path) -> None:
        remote = _remote([DayRecord(date="2025-11-16", summary="remote")])
        coordinator = SyncCoordinator(LocalCache(tmp_path / "cache.json"), remote=remote)

        coordinator.start_realtime()
        callback = remote.subscribe.call_args[0][0]
        assert callback() is True
        assert coordinator.get_record("2025-11-16").summary == "remote"

        subscription = remote.subscribe.return_value
        coordinator.close()
        subscription.stop.assert_called_once()

    def test_realtime_without_remote_is_noop(self, tmp_path) -> None:
        with SyncCoordinator(LocalCache(tmp_path / "cache.json")) as coordinator:
            coordinator.start_realtime()
            assert coordinator.refresh() is False
