"""Command-line entry point for Loops AI."""

from __future__ import annotations

import argparse
from datetime import UTC, datetime, timedelta
from pathlib import Path

from loops_ai.core import AppSettings, configure_logging, load_app_settings
from loops_ai.core.datetime_utils import coerce_instant
from loops_ai.core.models import Loop
from loops_ai.ingestion import JsonFileLoopSource, LoopParseError
from loops_ai.intelligence import (
    FollowUpStreamService,
    SuggestionError,
    compute_stats,
    filter_loops,
    is_stale,
    sort_by_priority,
)
from loops_ai.intelligence.filters import FILTER_LABELS
from loops_ai.web.app import FOLLOW_UP_STREAM, build_container


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Loops AI follow-up assistant")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "suggest", "stats", "list"],
        help="Operation to execute.",
    )
    parser.add_argument(
        "--loops-file",
        dest="loops_file",
        type=Path,
        default=None,
        help="JSON export of loops (default: storage.loops_path setting).",
    )
    parser.add_argument(
        "--now",
        dest="now",
        default=None,
        help="Reference instant in ISO 8601 (default: current time).",
    )
    parser.add_argument(
        "--filter",
        dest="filters",
        action="append",
        choices=sorted(FILTER_LABELS),
        default=[],
        help="Filter for the list command; repeat to combine.",
    )
    parser.add_argument(
        "--sort",
        dest="sort",
        choices=["recent", "priority"],
        default="recent",
        help="Ordering for the list command (default: recent).",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return an exit code."""
    command = args.command
    if command == "info":
        print("Loops AI is ready. Point --loops-file at a loop export to begin.")
        print(f"Scorer: {settings.follow_up.scorer}")
        print(f"Loops file: {settings.storage.loops_path}")
        return 0

    now = _resolve_now(args.now)
    if now is None:
        print(f"Could not parse --now value: {args.now!r}")
        return 2
    source = JsonFileLoopSource(args.loops_file or settings.storage.loops_path)
    try:
        loops = source.list_loops()
    except (OSError, LoopParseError) as exc:
        print(f"Could not load loops: {exc}")
        return 1

    if command == "suggest":
        return _run_suggest(settings, loops, now)
    if command == "stats":
        _run_stats(settings, loops, now)
    elif command == "list":
        _run_list(settings, loops, now, filters=args.filters, sort=args.sort)
    return 0


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    raise SystemExit(execute(args, settings))


def _resolve_now(raw: str | None) -> datetime | None:
    if raw is None:
        return datetime.now(tz=UTC)
    return coerce_instant(raw)


def _run_suggest(settings: AppSettings, loops: list[Loop], now: datetime) -> int:
    """Print the ranked follow-up shortlist."""
    with build_container(settings) as container:
        stream: FollowUpStreamService = container.resolve(FOLLOW_UP_STREAM)
        try:
            result, cards = stream.build_stream(loops, now)
        except SuggestionError as exc:
            print(f"Suggestions failed: {exc}")
            return 1

    if not cards:
        print("Nothing needs follow-up right now.")
        return 0

    source = result.provider + (" (fallback)" if result.used_fallback else "")
    print(f"Top {len(cards)} loop(s) to follow up on [{source}]:")
    header = f"{'#':>2}  {'Score':>5}  {'Loop':<24}  Rationale"
    print(header)
    print("-" * len(header))
    for position, card in enumerate(cards, start=1):
        title = card.loop.title or card.loop.id
        print(f"{position:>2}  {card.score:>5}  {title[:24]:<24}  {card.rationale}")
    return 0


def _run_stats(settings: AppSettings, loops: list[Loop], now: datetime) -> None:
    """Print dashboard counters."""
    window = timedelta(hours=settings.follow_up.stale_soon_hours)
    stats = compute_stats(loops, now, stale_soon_window=window)
    print(f"Total: {stats.total}")
    print(f"New: {stats.new}")
    print(f"Act on: {stats.act_on}")
    print(f"Active: {stats.active}")
    print(f"Stalled: {stats.stalled}")
    print(f"Closed: {stats.closed}")
    print(f"Stale soon: {stats.stale_soon}")


def _run_list(
    settings: AppSettings,
    loops: list[Loop],
    now: datetime,
    *,
    filters: list[str],
    sort: str,
) -> None:
    """List loops matching the selected filters."""
    soon_window = timedelta(hours=settings.follow_up.stale_soon_hours)
    stale_window = timedelta(hours=settings.follow_up.stale_window_hours)
    selected = filter_loops(loops, filters, now, stale_soon_window=soon_window)
    if sort == "priority":
        selected = sort_by_priority(selected)

    if not selected:
        print("No loops found.")
        return

    header = (
        f"{'ID':<16}  {'Status':<8}  {'Priority':<8}  {'Due':<16}  "
        f"{'Stale':<5}  Title"
    )
    print(header)
    print("-" * len(header))
    for loop in selected:
        due_text = loop.due_at.isoformat(timespec="minutes") if loop.due_at else "-"
        stale_text = "yes" if is_stale(loop, now, window=stale_window) else "-"
        print(
            f"{loop.id[:16]:<16}  {loop.status.value:<8}  {loop.priority.value:<8}  "
            f"{due_text[:16]:<16}  {stale_text:<5}  {loop.title}"
        )


if __name__ == "__main__":
    main()
