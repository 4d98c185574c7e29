from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
import threading

from .clock import ThreadScheduler
from .db import CATEGORIES, SessionStore, StoredSession, default_db_path
from .gui import launch_gui
from .notifier import SessionNotifier, SessionSummary
from .recorder import SessionRecorder
from .reporting import build_report, format_duration
from .timer import SessionCompleted, TimerEngine, TimerSettings, format_countdown


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="focustrack",
        description="FocusTrack: focus timer with session history and reports",
    )
    parser.add_argument(
        "--db",
        default=str(default_db_path()),
        help="SQLite database path (default focustrack/data/focustrack.sqlite, or $FOCUSTRACK_DB)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")

    subparsers = parser.add_subparsers(dest="command", required=True)

    start_parser = subparsers.add_parser("start", help="run a focus session in the terminal")
    start_parser.add_argument("--minutes", type=int, default=25, help="session length, at least 5")
    start_parser.add_argument(
        "--category",
        default=CATEGORIES[0],
        help=f"session category ({', '.join(CATEGORIES)} or free text)",
    )
    start_parser.add_argument(
        "--tick-seconds",
        type=float,
        default=1.0,
        help="real seconds per countdown second (>0)",
    )
    start_parser.add_argument("--notify", action="store_true", help="desktop notification on completion")

    history_parser = subparsers.add_parser("history", help="list recorded sessions, newest first")
    history_parser.add_argument("--limit", type=int, default=20, help="maximum rows to show")

    subparsers.add_parser("stats", help="show totals, last 7 days and categories")

    clear_parser = subparsers.add_parser("clear", help="delete every recorded session")
    clear_parser.add_argument("--yes", action="store_true", help="skip the confirmation prompt")

    seed_parser = subparsers.add_parser("seed", help="insert sample sessions for demos")
    seed_parser.add_argument("--count", type=int, default=30, help="number of sample sessions")

    subparsers.add_parser("gui", help="open the desktop window")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "gui":
        return launch_gui(Path(args.db))

    store = SessionStore(Path(args.db))
    recorder = SessionRecorder(store)
    recorder.init()
    try:
        if args.command == "start":
            return _handle_start(args, recorder, parser)
        if args.command == "history":
            return _handle_history(args, recorder)
        if args.command == "stats":
            return _handle_stats(recorder)
        if args.command == "clear":
            return _handle_clear(args, recorder)
        if args.command == "seed":
            return _handle_seed(args, recorder, parser)
    finally:
        store.close()

    parser.print_help()
    return 2


def _handle_start(
    args: argparse.Namespace,
    recorder: SessionRecorder,
    parser: argparse.ArgumentParser,
) -> int:
    if args.minutes < 5:
        parser.error("--minutes must be at least 5")
    if args.tick_seconds <= 0:
        parser.error("--tick-seconds must be positive")
    if args.notify:
        recorder.notifier = SessionNotifier(stream=sys.stdout)

    settings = TimerSettings(
        default_duration_seconds=args.minutes * 60,
        default_category=args.category.strip(),
        tick_seconds=float(args.tick_seconds),
    )
    done = threading.Event()
    completed: list[SessionCompleted] = []

    def on_complete(event: SessionCompleted) -> None:
        completed.append(event)
        recorder.record(event)
        done.set()

    engine = TimerEngine(
        ThreadScheduler(),
        on_complete=on_complete,
        progress_callback=_render_progress,
        settings=settings,
    )
    print(
        f"Focus session: {format_countdown(settings.default_duration_seconds)} "
        f"of {settings.default_category or '-'}. Ctrl-C finishes early."
    )

    interrupted = False
    engine.start()
    try:
        while not done.wait(0.2):
            pass
    except KeyboardInterrupt:
        interrupted = True
        engine.finish()
    finally:
        engine.close()

    _clear_line()
    if completed:
        print(f"Session complete: {SessionSummary.from_event(completed[0]).headline}")
    return 130 if interrupted else 0


def _handle_history(args: argparse.Namespace, recorder: SessionRecorder) -> int:
    sessions = recorder.load()[: max(1, args.limit)]
    if not sessions:
        print("No saved sessions yet.")
        return 0

    for item in sessions:
        print(_history_line(item))
    return 0


def _handle_stats(recorder: SessionRecorder) -> int:
    report = build_report(recorder.load())
    totals = report.totals

    print("[Today]")
    print(f"Focus: {format_duration(totals.today_focus_seconds)}")
    print(f"Distractions: {totals.today_distractions}")
    print("")
    print("[All time]")
    print(f"Focus: {format_duration(totals.all_time_focus_seconds)}")
    print(f"Distractions: {totals.all_time_distractions}")
    print("")
    print("[Last 7 days, minutes]")
    for day in report.weekly:
        print(f"{day.label:>6} {day.total_minutes:7.1f}")
    print("")
    print("[Categories]")
    if not report.categories:
        print("No data.")
    for name, seconds in sorted(report.categories.items(), key=lambda x: x[1], reverse=True):
        print(f"{name}: {format_duration(seconds)}")
    return 0


def _handle_clear(args: argparse.Namespace, recorder: SessionRecorder) -> int:
    if not args.yes:
        answer = input("Delete all recorded sessions? This cannot be undone. [y/N] ")
        if answer.strip().lower() not in {"y", "yes"}:
            print("Cancelled.")
            return 1

    deleted = recorder.clear()
    print(f"Deleted {deleted} session(s).")
    return 0


def _handle_seed(
    args: argparse.Namespace,
    recorder: SessionRecorder,
    parser: argparse.ArgumentParser,
) -> int:
    if args.count < 1:
        parser.error("--count must be at least 1")
    inserted = recorder.seed(args.count)
    print(f"Inserted {inserted} sample session(s).")
    return 0


def _history_line(item: StoredSession) -> str:
    minutes, sec = divmod(item.duration_seconds, 60)
    moment = item.completed_at()
    return (
        f"{minutes}:{sec:02d} | {moment.day}/{moment.month}/{moment.year} {moment:%H:%M} | "
        f"{item.category or '-'} | {item.distractions} distraction(s)"
    )


def _render_progress(event: str, payload: dict[str, object]) -> None:
    if event != "tick":
        return
    remaining = int(payload.get("remaining_seconds", 0))  # type: ignore[arg-type]
    sys.stdout.write(f"\r{payload.get('category') or '-'} {format_countdown(remaining)}")
    sys.stdout.flush()


def _clear_line() -> None:
    sys.stdout.write("\r" + (" " * 40) + "\r")
    sys.stdout.flush()
