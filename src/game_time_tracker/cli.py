"""
CLI entry point for Game Time Tracker.

PURPOSE: Command-line interface for the server, the terminal tracker,
reports and CSV exchange.
AI CONTEXT: Main entry points for package execution.

USAGE:
    # Run the server (default)
    python -m game_time_tracker

    # Or via CLI command (after install)
    game-time-tracker

    # Run with subcommands
    game-time-tracker serve --port 3000     # Session store + summary page
    game-time-tracker track kovaaks         # Time a session in the terminal
    game-time-tracker report                # Print summary statistics
    game-time-tracker export sessions.csv   # Write the collection to CSV
    game-time-tracker import sessions.csv   # Replace the collection from CSV
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from .config import Config
from .errors import PersistenceError, ValidationError

if TYPE_CHECKING:
    from .controller import SessionStore, TrackerController
    from .statistics import SessionAggregator
    from .storage import LocalCache, StorageManager
    from .timer import Clock, TickResult

PROG_NAME = "game-time-tracker"

InputFn = Callable[[str], str]


@lru_cache(maxsize=1)
def _get_logger() -> logging.Logger:
    """Get module logger (cached for thread safety)."""
    logging.basicConfig(level=logging.INFO)
    return logging.getLogger(__name__)


def _log(message: str, *, level: int = logging.INFO) -> None:
    _get_logger().log(level, message)


# =============================================================================
# SERVE
# =============================================================================


def run_serve(host: str = Config.DEFAULT_HOST, port: int = Config.DEFAULT_PORT) -> None:
    """
    Run the session store server and summary page.

    Blocks until the server is stopped (Ctrl+C).

    Raises:
        OSError: If the port is already in use.

    Example:
        >>> # From command line:
        >>> # game-time-tracker serve --host 0.0.0.0 --port 3000
        >>> run_serve(port=3000)
    """
    from .web import run_server as start_web

    _log(f"Starting Game Time Tracker at http://{host}:{port}")
    _log(f"Storage: {Config.get_storage_dir()}")
    _log("Press Ctrl+C to stop")
    start_web(host=host, port=port)


# =============================================================================
# TRACK
# =============================================================================


def _ask_count(prompt: str, input_fn: InputFn) -> int:
    answer = input_fn(prompt).strip()
    if not answer:
        return 0
    try:
        return max(0, int(answer))
    except ValueError:
        _log(f"Not a number: {answer!r}, counting 0", level=logging.WARNING)
        return 0


def prompt_metadata(game: str, input_fn: InputFn = input) -> dict[str, Any] | None:
    """
    Ask for the metadata of a just-stopped session.

    - Tactical shooter: a match count per match type (blank means 0).
    - Aim trainer: one training type, chosen by number or name.
    - Any other game: no questions.

    Args:
        game: Game of the stopped session.
        input_fn: Reads one answer per prompt. Default: builtin input.

    Returns:
        Wire-form metadata dict, or None to complete without metadata.
    """
    if game == Config.MATCH_GAME:
        counts = {
            match_type: _ask_count(f"  {match_type} matches [0]: ", input_fn)
            for match_type in Config.MATCH_TYPES
        }
        if not any(counts.values()):
            return None
        return {"matchTypes": counts}

    if game == Config.AIM_TRAINING_GAME:
        for number, aim_type in enumerate(Config.AIM_TYPES, start=1):
            print(f"  {number}. {aim_type}")
        answer = input_fn("  Training type (number or name, blank to skip): ").strip()
        if not answer:
            return None
        if answer.isdigit() and 1 <= int(answer) <= len(Config.AIM_TYPES):
            return {"aimType": Config.AIM_TYPES[int(answer) - 1]}
        if answer in Config.AIM_TYPES:
            return {"aimType": answer}
        _log(f"Unknown training type {answer!r}, skipping", level=logging.WARNING)
        return None

    return None


def _print_tick(result: TickResult) -> None:
    from .timer import format_elapsed

    line = f"\r  {format_elapsed(result.elapsed_ms)}"
    if result.today_minutes is not None:
        line += f"  (today: {result.today_minutes:.0f} min)"
    sys.stdout.write(line)
    sys.stdout.flush()


def _print_alarm(today_minutes: float) -> None:
    print(
        f"\n*** Daily limit reached: {today_minutes:.0f} of "
        f"{Config.DAILY_LIMIT_MINUTES} minutes of aim training today ***"
    )


async def _track_session(
    controller: TrackerController,
    game: str,
    input_fn: InputFn,
) -> int:
    outcome = await asyncio.to_thread(controller.load)
    if outcome.from_cache:
        _log(
            f"Store unavailable ({outcome.error}); using {len(outcome.sessions)} cached sessions",
            level=logging.WARNING,
        )

    if controller.start(game) is None:
        return 1
    print(f"Tracking {Config.game_label(game)}. Press Enter to stop.")

    # Ticks keep firing on the loop while the blocking read runs in a thread
    await asyncio.to_thread(input_fn, "")
    record = controller.stop()
    if record is None:
        return 1
    print(f"\nStopped after {record.duration_minutes} min")

    metadata = prompt_metadata(game, input_fn)
    if metadata is None:
        controller.skip_metadata()
    else:
        controller.submit_metadata(metadata)

    try:
        count = await asyncio.to_thread(controller.save)
    except (ValidationError, PersistenceError) as e:
        _log(f"Save failed: {e} (session kept in local cache)", level=logging.ERROR)
        return 1

    print(f"Saved {count} sessions")
    return 0


def run_track(
    game: str,
    server_url: str | None = None,
    *,
    store: SessionStore | None = None,
    cache: LocalCache | None = None,
    clock: Clock | None = None,
    input_fn: InputFn = input,
) -> int:
    """
    Time one session in the terminal.

    Loads the collection (falling back to the local cache), starts the
    timer, stops on Enter, asks for metadata, then saves the whole
    collection back. For the aim trainer the elapsed line shows today's
    cumulative minutes and an alarm is printed when the daily limit is hit.

    Args:
        game: Game identifier to time.
        server_url: Remote store base URL. Default: GAME_TRACKER_SERVER_URL,
            else the local store directory.
        store: Injected store, for tests. Overrides server_url.
        cache: Injected local cache. Default: LocalCache().
        clock: Injected clock. Default: SystemClock.
        input_fn: Reads terminal input. Default: builtin input.

    Returns:
        0 when the session was saved, 1 otherwise.
    """
    from .client import HttpSessionStore
    from .controller import TrackerController
    from .storage import LocalCache as Cache
    from .storage import StorageManager as StorageMgr
    from .timer import AsyncioTickScheduler

    if not Config.is_registered_game(game):
        _log(f"{game!r} is not a registered game; tracking time only", level=logging.WARNING)

    remote: HttpSessionStore | None = None
    if store is None:
        url = server_url or Config.get_server_url()
        if url:
            remote = HttpSessionStore(url)
            store = remote
        else:
            store = StorageMgr()

    try:
        controller = TrackerController(
            store,
            cache=cache if cache is not None else Cache(),
            clock=clock,
            scheduler=AsyncioTickScheduler(),
            on_tick=_print_tick,
            on_alarm=_print_alarm,
        )
        return asyncio.run(_track_session(controller, game, input_fn))
    finally:
        if remote is not None:
            remote.close()


# =============================================================================
# REPORT
# =============================================================================


def run_report(
    storage: StorageManager | None = None,
    aggregator: SessionAggregator | None = None,
) -> int:
    """
    Print summary statistics and daily totals to stdout.

    Args:
        storage: Optional StorageManager for testability.
        aggregator: Optional SessionAggregator for testability.

    Returns:
        0 on success, 1 if the store can't be read.

    Example:
        >>> # From command line:
        >>> # game-time-tracker report > weekly.txt
        >>> run_report()
        ==================================================
        GAME TIME TRACKER - SUMMARY
        ...
    """
    from .presenters import DashboardPresenter, format_minutes
    from .statistics import SessionAggregator as Aggregator
    from .storage import StorageManager as StorageMgr

    presenter = DashboardPresenter(storage or StorageMgr(), aggregator or Aggregator())
    try:
        stats = presenter.get_stats()
        daily = presenter.get_daily_totals()
    except PersistenceError as e:
        _log(f"Could not read sessions: {e}", level=logging.ERROR)
        return 1

    view = presenter.build_view(stats)
    lines = ["=" * 50, "GAME TIME TRACKER - SUMMARY", "=" * 50]
    lines.extend(f"{item.label:<24}{item.value}" for item in view.summary)
    if view.match_types:
        lines.append("")
        lines.append("Match types:")
        lines.extend(f"  {item.label:<22}{item.value}" for item in view.match_types)
    if view.aim_types:
        lines.append("")
        lines.append("Aim training:")
        lines.extend(f"  {item.label:<22}{item.value}" for item in view.aim_types)
    if daily:
        lines.append("")
        lines.append("Daily totals:")
        for day in daily:
            games = ", ".join(
                f"{Config.game_label(game)} {format_minutes(minutes)}"
                for game, minutes in day.minutes.items()
            )
            lines.append(f"  {day.date}  {format_minutes(day.total):>8}  {games}")

    # Note: Using print() intentionally for stdout piping support
    print("\n".join(lines))
    return 0


# =============================================================================
# EXPORT / IMPORT
# =============================================================================


def run_export(path: str, storage: StorageManager | None = None) -> int:
    """Write the stored collection to a CSV file. Returns an exit code."""
    from .session_service import SessionService

    result = SessionService(storage=storage).export_sessions(path)
    if not result.success:
        _log(f"{result.message}: {result.error}", level=logging.ERROR)
        return 1
    _log(result.message)
    return 0


def run_import(path: str, storage: StorageManager | None = None) -> int:
    """Replace the stored collection with a CSV file. Returns an exit code."""
    from .session_service import SessionService

    result = SessionService(storage=storage).import_sessions(path)
    if not result.success:
        _log(f"{result.message}: {result.error}", level=logging.ERROR)
        return 1
    _log(result.message)
    skipped = (result.data or {}).get("skipped", 0)
    if skipped:
        _log(f"Skipped {skipped} rows with unreadable dates", level=logging.WARNING)
    return 0


def main() -> int:
    """
    Main CLI entry point for Game Time Tracker.

    Parses command-line arguments and dispatches to the matching handler.
    With no subcommand the server is started.

    Subcommands:
    - serve [--host HOST] [--port PORT]: Run the server (default)
    - track GAME [--server URL]: Time a session in the terminal
    - report: Print summary statistics
    - export PATH / import PATH: CSV exchange

    Returns:
        Exit code: 0 for success, 1 for a failed command.

    Raises:
        SystemExit: On --help, --version or argument parsing errors.
    """
    from .__version__ import __version__

    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description="Game Time Tracker - time gaming sessions and review where the hours go",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the session store and summary page")
    serve_parser.add_argument(
        "--host",
        default=Config.DEFAULT_HOST,
        help=f"Bind address (default: {Config.DEFAULT_HOST})",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=Config.DEFAULT_PORT,
        help=f"Port number (default: {Config.DEFAULT_PORT})",
    )

    track_parser = subparsers.add_parser("track", help="Time a session in the terminal")
    track_parser.add_argument("game", help=f"Game to track ({', '.join(Config.GAMES)})")
    track_parser.add_argument(
        "--server",
        default=None,
        help="Remote store URL (default: $GAME_TRACKER_SERVER_URL, else local storage)",
    )

    subparsers.add_parser("report", help="Print summary statistics to stdout")

    export_parser = subparsers.add_parser("export", help="Write all sessions to a CSV file")
    export_parser.add_argument("path", help="Destination CSV file")

    import_parser = subparsers.add_parser("import", help="Replace all sessions from a CSV file")
    import_parser.add_argument("path", help="Source CSV file")

    args = parser.parse_args()

    if args.command == "track":
        return run_track(args.game, server_url=args.server)
    if args.command == "report":
        return run_report()
    if args.command == "export":
        return run_export(args.path)
    if args.command == "import":
        return run_import(args.path)
    if args.command == "serve":
        run_serve(host=args.host, port=args.port)
    else:
        # Default: serve on the default address
        run_serve()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
