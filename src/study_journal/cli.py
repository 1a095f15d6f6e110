"""CLI entry point for study-journal."""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from datetime import date
from pathlib import Path

from .calendar_view import render_month
from .config import Config
from .coordinator import SyncCoordinator
from .datekeys import display_long_date, normalize_date_key, today_key
from .day import DayController
from .exporter import (
    ExportError,
    export_pdf,
    print_document,
    render_day_document,
    render_journal_document,
)
from .local_cache import LocalCache
from .models import VideoStatus
from .remote import RestRemoteMirror
from .tracker import Tracker

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(message)s",
        level=level,
        stream=sys.stderr,
    )


def _build_coordinator(config: Config) -> SyncCoordinator:
    remote = None
    if config.remote.enabled:
        remote = RestRemoteMirror(
            base_url=config.remote.url,
            api_key=config.remote.api_key,
            table=config.remote.table,
            timeout=config.remote.timeout,
            poll_interval=config.remote.poll_interval,
        )
    return SyncCoordinator(LocalCache(config.cache_file), remote=remote)


def _open_coordinator(config: Config) -> SyncCoordinator:
    """Build and load a coordinator, waiting for the remote fetch."""
    coordinator = _build_coordinator(config)
    future = coordinator.load()
    if future is not None:
        future.result()
    return coordinator


def _check_date(value: str) -> str | None:
    """Return the canonical key for a user-given date, or None if invalid."""
    try:
        return normalize_date_key(value)
    except ValueError:
        print(f"Invalid date (expected YYYY-MM-DD): {value}")
        return None


def _print_day(controller: DayController) -> None:
    record = controller.record
    print(f"Study day - {display_long_date(record.date)}")
    print()
    print("Summary:")
    print(record.summary or "  (no summary saved for this day)")
    print()
    print("Links:")
    if not record.links:
        print("  (no links saved for this day)")
    for link in record.links:
        print(f"  {link.id}  {link.title or '(untitled)'}  {link.url}")
    print()
    print("Captures:")
    if not record.captures:
        print("  (no captures saved for this day)")
    for cap in record.captures:
        print(f"  {cap.id}  {cap.title or '(untitled)'}")


def _export(content: str, name: str, pdf: str | None, config: Config) -> int:
    if pdf:
        try:
            path = export_pdf(content, Path(pdf).expanduser())
        except (ImportError, ExportError) as e:
            logger.error("PDF export failed: %s", e)
            return 1
        print(f"Wrote {path}")
        return 0
    path = print_document(
        content,
        config.export.output_dir,
        name=name,
        open_browser=config.export.open_browser,
    )
    if path is not None:
        print(f"Opened {path} for printing")
    return 0


def _handle_calendar(args: argparse.Namespace, config: Config) -> int:
    """Handle calendar command."""
    today = date.today()
    year, month = today.year, today.month
    if args.month:
        try:
            year_str, month_str = args.month.split("-")
            year, month = int(year_str), int(month_str)
            if not 1 <= month <= 12:
                raise ValueError(args.month)
        except ValueError:
            print(f"Invalid month (expected YYYY-MM): {args.month}")
            return 1

    with _open_coordinator(config) as coordinator:
        print(render_month(year, month, coordinator.records(), today=today))
    return 0


def _handle_day(args: argparse.Namespace, config: Config) -> int:
    """Handle day subcommands."""
    day_date = _check_date(getattr(args, "date", None) or today_key())
    if day_date is None:
        return 1

    with _open_coordinator(config) as coordinator:
        controller = DayController(coordinator, day_date)

        if args.day_command == "show":
            _print_day(controller)
            return 0

        if args.day_command == "summary":
            controller.save_summary(args.text)
            print(f"Saved summary for {day_date}")
            return 0

        if args.day_command == "link":
            if args.link_command == "add":
                link = controller.add_link(args.url, title=args.title or "")
                if link is None:
                    print("A link needs a url")
                    return 1
                print(f"Added link {link.id}")
                return 0
            if args.link_command == "rm":
                controller.delete_link(args.id)
                print(f"Removed link {args.id}")
                return 0

        if args.day_command == "capture":
            if args.capture_command == "add":
                path = Path(args.file).expanduser()
                if not path.is_file():
                    print(f"Image file not found: {path}")
                    return 1
                capture = controller.add_capture_file(path, title=args.title or "")
                print(f"Added capture {capture.id}")
                return 0
            if args.capture_command == "rm":
                controller.delete_capture(args.id)
                print(f"Removed capture {args.id}")
                return 0

        if args.day_command == "export":
            return _export(
                render_day_document(controller.record),
                f"day-{day_date}",
                args.pdf,
                config,
            )

    return 1


def _handle_task(args: argparse.Namespace, tracker: Tracker) -> int:
    if args.task_command == "add":
        task = tracker.add_task(args.text)
        if task is None:
            print("A task needs some text")
            return 1
        print(f"Added task {task.id}")
    elif args.task_command == "toggle":
        tracker.toggle_task(args.id)
    elif args.task_command == "rm":
        tracker.delete_task(args.id)
    else:
        for task in tracker.tasks:
            print(f"{task.id}  [{'x' if task.done else ' '}] {task.text}")
    return 0


def _handle_video(args: argparse.Namespace, tracker: Tracker) -> int:
    if args.video_command == "add":
        video = tracker.add_video(
            title=args.title or "",
            url=args.url or "",
            status=VideoStatus(args.status),
        )
        if video is None:
            print("A video needs a title or a url")
            return 1
        print(f"Added video {video.id}")
    elif args.video_command == "status":
        tracker.set_video_status(args.id, VideoStatus(args.status))
    elif args.video_command == "rm":
        tracker.delete_video(args.id)
    else:
        for video in tracker.videos:
            link = video.href or "(no link)"
            print(f"{video.id}  {video.title}  [{video.status.label}]  {link}")
    return 0


def _handle_entry(args: argparse.Namespace, tracker: Tracker) -> int:
    if args.entry_command == "add":
        entry_date = None
        if args.date:
            entry_date = _check_date(args.date)
            if entry_date is None:
                return 1
        entry = tracker.add_entry(args.notes, hours=args.hours or "", date=entry_date)
        if entry is None:
            print("An entry needs notes or hours")
            return 1
        print(f"Added entry {entry.id}")
    elif args.entry_command == "rm":
        tracker.delete_entry(args.id)
    else:
        for entry in tracker.entries_by_date():
            print(f"{entry.id}  {entry.date}  {entry.hours:g}h")
            if entry.notes:
                for line in entry.notes.splitlines():
                    print(f"    {line}")
    return 0


def _handle_screenshot(args: argparse.Namespace, tracker: Tracker) -> int:
    if args.screenshot_command == "add":
        for raw in args.files:
            path = Path(raw).expanduser()
            if not path.is_file():
                print(f"Image file not found: {path}")
                return 1
            shot = tracker.add_screenshot(path)
            print(f"Added screenshot {shot.id}")
    elif args.screenshot_command == "rm":
        tracker.delete_screenshot(args.id)
    else:
        for shot in tracker.screenshots:
            print(f"{shot.id}  {shot.name}  {shot.created_at}")
    return 0


def _handle_stats(tracker: Tracker) -> int:
    stats = tracker.stats()
    print(f"Total hours: {stats.total_hours:g}")
    print(f"Tasks: {stats.completed_tasks}/{stats.total_tasks} completed")
    print(f"Videos learned: {stats.mastered_videos}")
    return 0


def _handle_sync(config: Config) -> int:
    """Handle sync command."""
    if not config.remote.enabled:
        print("No remote configured")
        return 1
    coordinator = _build_coordinator(config)
    try:
        future = coordinator.load()
        ok = future.result()
    finally:
        coordinator.close()
    if not ok:
        print("Remote sync failed, local data kept")
        return 1
    print(f"Synced {len(coordinator.records())} day(s)")
    return 0


def _handle_watch(config: Config) -> int:
    """Handle watch command."""
    if not config.remote.enabled:
        print("No remote configured")
        return 1

    coordinator = _build_coordinator(config)
    coordinator.add_listener(lambda days: print(f"{len(days)} day(s) in journal"))
    stop = threading.Event()
    try:
        coordinator.load()
        coordinator.start_realtime()
        stop.wait()
    except KeyboardInterrupt:
        pass
    finally:
        coordinator.close()
    return 0


def _add_day_parser(subparsers) -> argparse.ArgumentParser:
    day_parser = subparsers.add_parser("day", help="Summary, links and captures of a day")
    day_parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    day_subparsers = day_parser.add_subparsers(dest="day_command")

    show_parser = day_subparsers.add_parser("show", help="Show a day")
    show_parser.add_argument("date", nargs="?", help="Date (YYYY-MM-DD, default: today)")

    summary_parser = day_subparsers.add_parser("summary", help="Save the summary of a day")
    summary_parser.add_argument("date", help="Date (YYYY-MM-DD)")
    summary_parser.add_argument("text", help="Summary text")

    link_parser = day_subparsers.add_parser("link", help="Manage study links")
    link_subparsers = link_parser.add_subparsers(dest="link_command", required=True)
    link_add = link_subparsers.add_parser("add", help="Add a link")
    link_add.add_argument("date", help="Date (YYYY-MM-DD)")
    link_add.add_argument("url", help="Link url")
    link_add.add_argument("--title", type=str, default=None, help="Link title (default: the url)")
    link_rm = link_subparsers.add_parser("rm", help="Remove a link")
    link_rm.add_argument("date", help="Date (YYYY-MM-DD)")
    link_rm.add_argument("id", help="Link id")

    capture_parser = day_subparsers.add_parser("capture", help="Manage captures")
    capture_subparsers = capture_parser.add_subparsers(dest="capture_command", required=True)
    capture_add = capture_subparsers.add_parser("add", help="Add an image capture")
    capture_add.add_argument("date", help="Date (YYYY-MM-DD)")
    capture_add.add_argument("file", help="Image file")
    capture_add.add_argument("--title", type=str, default=None, help="Capture title (default: file name)")
    capture_rm = capture_subparsers.add_parser("rm", help="Remove a capture")
    capture_rm.add_argument("date", help="Date (YYYY-MM-DD)")
    capture_rm.add_argument("id", help="Capture id")

    export_parser = day_subparsers.add_parser("export", help="Print a day (save as PDF)")
    export_parser.add_argument("date", nargs="?", help="Date (YYYY-MM-DD, default: today)")
    export_parser.add_argument("--pdf", type=str, default=None, help="Write a PDF file with Playwright")
    return day_parser


def _add_tracker_parsers(subparsers) -> None:
    task_parser = subparsers.add_parser("task", help="Manage tasks")
    task_subparsers = task_parser.add_subparsers(dest="task_command")
    task_subparsers.add_parser("list", help="List tasks")
    task_add = task_subparsers.add_parser("add", help="Add a task")
    task_add.add_argument("text", help="Task text")
    for name, help_text in (("toggle", "Toggle a task done/open"), ("rm", "Remove a task")):
        p = task_subparsers.add_parser(name, help=help_text)
        p.add_argument("id", help="Task id")

    statuses = [s.value for s in VideoStatus]
    video_parser = subparsers.add_parser("video", help="Manage study videos")
    video_subparsers = video_parser.add_subparsers(dest="video_command")
    video_subparsers.add_parser("list", help="List videos")
    video_add = video_subparsers.add_parser("add", help="Add a video")
    video_add.add_argument("--title", type=str, default=None, help="Video title")
    video_add.add_argument("--url", type=str, default=None, help="Video link")
    video_add.add_argument("--status", choices=statuses, default=VideoStatus.TO_WATCH.value)
    video_status = video_subparsers.add_parser("status", help="Change a video's status")
    video_status.add_argument("id", help="Video id")
    video_status.add_argument("status", choices=statuses)
    video_rm = video_subparsers.add_parser("rm", help="Remove a video")
    video_rm.add_argument("id", help="Video id")

    entry_parser = subparsers.add_parser("entry", help="Manage journal entries")
    entry_subparsers = entry_parser.add_subparsers(dest="entry_command")
    entry_subparsers.add_parser("list", help="List entries, most recent first")
    entry_add = entry_subparsers.add_parser("add", help="Add an entry")
    entry_add.add_argument("notes", help="What you learned")
    entry_add.add_argument("--hours", type=str, default=None, help="Study hours (e.g. 1,5)")
    entry_add.add_argument("--date", type=str, default=None, help="Date (YYYY-MM-DD, default: today)")
    entry_rm = entry_subparsers.add_parser("rm", help="Remove an entry")
    entry_rm.add_argument("id", help="Entry id")

    screenshot_parser = subparsers.add_parser("screenshot", help="Manage screenshots")
    screenshot_subparsers = screenshot_parser.add_subparsers(dest="screenshot_command")
    screenshot_subparsers.add_parser("list", help="List screenshots")
    screenshot_add = screenshot_subparsers.add_parser("add", help="Add screenshots")
    screenshot_add.add_argument("files", nargs="+", help="Image files")
    screenshot_rm = screenshot_subparsers.add_parser("rm", help="Remove a screenshot")
    screenshot_rm.add_argument("id", help="Screenshot id")

    subparsers.add_parser("stats", help="Show study totals")

    export_parser = subparsers.add_parser("export", help="Print the whole journal (save as PDF)")
    export_parser.add_argument("--pdf", type=str, default=None, help="Write a PDF file with Playwright")

    for p in (task_parser, video_parser, entry_parser, screenshot_parser, export_parser):
        p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="study-journal",
        description="Personal study journal with calendar days, tasks and videos",
    )
    subparsers = parser.add_subparsers(dest="command")

    calendar_parser = subparsers.add_parser("calendar", help="Show a month")
    calendar_parser.add_argument("--month", type=str, default=None, help="Month (YYYY-MM, default: current)")
    calendar_parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    day_parser = _add_day_parser(subparsers)
    _add_tracker_parsers(subparsers)

    sync_parser = subparsers.add_parser("sync", help="Pull remote days into the local cache")
    sync_parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    watch_parser = subparsers.add_parser("watch", help="Follow remote changes")
    watch_parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    _setup_logging(getattr(args, "verbose", False))

    overrides = {}
    if getattr(args, "verbose", False):
        overrides["verbose"] = True
    config = Config.load(overrides)

    if args.command == "calendar":
        return _handle_calendar(args, config)

    if args.command == "day":
        if not args.day_command:
            day_parser.print_help()
            return 1
        return _handle_day(args, config)

    if args.command == "sync":
        return _handle_sync(config)

    if args.command == "watch":
        return _handle_watch(config)

    cache = LocalCache(config.cache_file)
    tracker = Tracker(cache)

    if args.command == "task":
        return _handle_task(args, tracker)
    if args.command == "video":
        return _handle_video(args, tracker)
    if args.command == "entry":
        return _handle_entry(args, tracker)
    if args.command == "screenshot":
        return _handle_screenshot(args, tracker)
    if args.command == "stats":
        return _handle_stats(tracker)
    if args.command == "export":
        content = render_journal_document(
            tracker.entries_by_date(),
            tracker.tasks,
            tracker.videos,
            tracker.screenshots,
        )
        return _export(content, "journal", args.pdf, config)

    return 1


if __name__ == "__main__":
    sys.exit(main())
