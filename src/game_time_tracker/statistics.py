"""
Session aggregation for Game Time Tracker.

PURPOSE: Daily totals and summary statistics over a session collection.
AI CONTEXT: Pure data processing - no visualization, no I/O.

OPERATIONS:
1. group_by_date_and_game: per-date, per-game minute totals for trend charts
2. summarize: counts, totals, average, per-game and per-metadata breakdowns
3. today_minutes: one game's total for one date (timer alarm input)

BREAKDOWN SHAPES:
- Fixed-domain maps (per-game totals, per-date game maps) are zero-filled
  over the registered games.
- Metadata-derived maps (match types, aim types) are sparse: only keys
  observed in the data appear.

USAGE:
    aggregator = SessionAggregator()
    daily = aggregator.group_by_date_and_game(sessions)
    stats = aggregator.summarize(sessions).to_dict()
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .config import Config
from .errors import ParseError
from .models import GameSession, KovaaksMetadata, ValorantMetadata, canonical_date

__all__ = [
    "DailyTotal",
    "SummaryStats",
    "SessionAggregator",
    "group_by_date_and_game",
    "summarize",
]

logger = logging.getLogger(__name__)


@dataclass
class DailyTotal:
    """Minutes per registered game for one canonical date."""

    date: str
    minutes: dict[str, int]

    @property
    def total(self) -> int:
        """Sum of minutes across the games in this bucket."""
        return sum(self.minutes.values())

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "games": dict(self.minutes), "total": self.total}


@dataclass
class SummaryStats:
    """
    Aggregate statistics for a session collection.

    to_dict() produces the wire shape served by /api/sessions/stats.
    """

    total_sessions: int = 0
    total_time_minutes: int = 0
    avg_session_minutes: float = 0.0
    game_breakdown: dict[str, int] = field(default_factory=dict)
    match_type_breakdown: dict[str, int] = field(default_factory=dict)
    aim_type_breakdown: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalSessions": self.total_sessions,
            "totalTimeMinutes": self.total_time_minutes,
            "avgSessionMinutes": self.avg_session_minutes,
            "gameBreakdown": dict(self.game_breakdown),
            "matchTypeBreakdown": dict(self.match_type_breakdown),
            "aimTypeBreakdown": dict(self.aim_type_breakdown),
        }


def _coerce_sessions(sessions: Iterable[GameSession | dict[str, Any]]) -> list[GameSession]:
    """Turn raw dicts into GameSession records, skipping non-record entries."""
    coerced: list[GameSession] = []
    for item in sessions:
        if isinstance(item, GameSession):
            coerced.append(item)
        elif isinstance(item, dict):
            coerced.append(GameSession.from_dict(item))
        else:
            logger.warning(f"Skipping non-record entry of type {type(item).__name__}")
    return coerced


class SessionAggregator:
    """
    Calculator for session totals and breakdowns.

    DESIGN:
    - Stateless: Each method operates on the provided collection
    - Pure: No side effects, never raises on malformed records
    - Configurable: The game registry comes from Config or the constructor

    Accepts GameSession records or raw session dicts in either wire or
    persisted form; dicts are coerced with GameSession.from_dict, which
    absorbs malformed metadata and missing durations.
    """

    def __init__(self, games: Sequence[str] | None = None) -> None:
        """
        Initialize the aggregator with the registered game identifiers.

        Args:
            games: Ordered game identifiers to zero-fill. Default:
                Config.GAMES. Sessions for other games still count toward
                overall totals.

        Example:
            >>> SessionAggregator().games
            ('valorant', 'kovaaks')
            >>> SessionAggregator(["valorant", "kovaaks", "apex"]).games
            ('valorant', 'kovaaks', 'apex')
        """
        self.games: tuple[str, ...] = tuple(games) if games is not None else Config.GAMES

    def _zero_filled(self) -> dict[str, int]:
        return dict.fromkeys(self.games, 0)

    def group_by_date_and_game(
        self, sessions: Iterable[GameSession | dict[str, Any]]
    ) -> list[DailyTotal]:
        """
        Bucket session minutes by canonical date, then by game.

        Dates are sorted ascending as strings, which is chronological for
        YYYY-MM-DD. Every registered game appears in every bucket (0 when
        it has no sessions that day). Sessions for unregistered games open
        their date bucket but add nothing to it. Sessions whose date cannot
        be canonicalized are skipped.

        Args:
            sessions: Session records or dicts.

        Returns:
            List of DailyTotal in ascending date order. Empty for empty input.

        Example:
            >>> agg = SessionAggregator()
            >>> [d.to_dict() for d in agg.group_by_date_and_game([
            ...     {"game": "valorant", "date": "2024-01-02", "durationMinutes": 30},
            ...     {"game": "kovaaks", "date": "2024-01-01", "durationMinutes": 15},
            ... ])]  # doctest: +NORMALIZE_WHITESPACE
            [{'date': '2024-01-01', 'games': {'valorant': 0, 'kovaaks': 15}, 'total': 15},
             {'date': '2024-01-02', 'games': {'valorant': 30, 'kovaaks': 0}, 'total': 30}]
        """
        buckets: dict[str, dict[str, int]] = {}

        for session in _coerce_sessions(sessions):
            try:
                day = canonical_date(session.date)
            except ParseError as e:
                logger.debug(f"Skipping session {session.id} in daily totals: {e}")
                continue

            bucket = buckets.setdefault(day, self._zero_filled())
            if session.game in bucket:
                bucket[session.game] += session.duration_minutes

        return [DailyTotal(date=day, minutes=buckets[day]) for day in sorted(buckets)]

    def summarize(self, sessions: Iterable[GameSession | dict[str, Any]]) -> SummaryStats:
        """
        Compute summary statistics for a session collection.

        - total_sessions / total_time_minutes cover every record, including
          unregistered games.
        - avg_session_minutes is exactly 0 for an empty collection.
        - game_breakdown is zero-filled over the registered games.
        - match_type_breakdown sums match counts from tactical-shooter
          metadata; aim_type_breakdown sums session minutes per selected aim
          type. Both only contain observed keys.

        Args:
            sessions: Session records or dicts.

        Returns:
            SummaryStats; call to_dict() for the wire shape.

        Example:
            >>> stats = SessionAggregator().summarize([
            ...     {"game": "valorant", "date": "2024-01-01", "durationMinutes": 30,
            ...      "metadata": {"matchTypes": {"competitive": 2}}},
            ...     {"game": "kovaaks", "date": "2024-01-01", "durationMinutes": 45,
            ...      "metadata": {"aimType": "static-clicking"}},
            ... ])
            >>> stats.avg_session_minutes
            37.5
            >>> stats.aim_type_breakdown
            {'static-clicking': 45}
        """
        records = _coerce_sessions(sessions)

        total_time = 0
        game_breakdown = self._zero_filled()
        match_types: dict[str, int] = {}
        aim_types: dict[str, int] = {}

        for session in records:
            minutes = session.duration_minutes
            total_time += minutes
            if session.game in game_breakdown:
                game_breakdown[session.game] += minutes

            metadata = session.metadata
            if isinstance(metadata, ValorantMetadata):
                for label, count in metadata.match_types.items():
                    match_types[label] = match_types.get(label, 0) + count
            elif isinstance(metadata, KovaaksMetadata):
                aim_types[metadata.aim_type] = aim_types.get(metadata.aim_type, 0) + minutes

        count = len(records)
        return SummaryStats(
            total_sessions=count,
            total_time_minutes=total_time,
            avg_session_minutes=total_time / count if count else 0.0,
            game_breakdown=game_breakdown,
            match_type_breakdown=match_types,
            aim_type_breakdown=aim_types,
        )

    def today_minutes(
        self,
        sessions: Iterable[GameSession | dict[str, Any]],
        game: str,
        today: str,
    ) -> int:
        """
        Total minutes logged for one game on one canonical date.

        Args:
            sessions: Session records or dicts.
            game: Game identifier.
            today: Canonical date to match.

        Returns:
            Sum of duration_minutes for matching sessions.
        """
        total = 0
        for session in _coerce_sessions(sessions):
            if session.game != game:
                continue
            try:
                if canonical_date(session.date) == today:
                    total += session.duration_minutes
            except ParseError:
                continue
        return total


def group_by_date_and_game(
    sessions: Iterable[GameSession | dict[str, Any]],
) -> list[DailyTotal]:
    """Daily totals over the configured game registry."""
    return SessionAggregator().group_by_date_and_game(sessions)


def summarize(sessions: Iterable[GameSession | dict[str, Any]]) -> SummaryStats:
    """Summary statistics over the configured game registry."""
    return SessionAggregator().summarize(sessions)
