"""
Top-level controller for a tracking client.

PURPOSE: Single owner of the session collection, the timer, the store and
the local cache.
AI CONTEXT: Frontends (the terminal tracker, tests) talk to this object
instead of sharing module-level state.

DATA FLOW:
    timer.submit_metadata() ──► _record_completed() ──► sessions + local cache
    save()  ──► store.save_sessions(sessions) ──► local cache
    load()  ──► store.load_sessions() ──► sessions (wholesale) + local cache
                      └── on failure ──► local cache ──► sessions
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from .errors import PersistenceError
from .models import GameSession
from .statistics import DailyTotal, SessionAggregator, SummaryStats
from .storage import LocalCache
from .timer import Clock, TickResult, TickScheduler, TimerStateMachine

__all__ = ["SessionStore", "LoadOutcome", "TrackerController"]

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Bulk-replace store; StorageManager and HttpSessionStore both fit."""

    def save_sessions(self, sessions: Sequence[GameSession]) -> int: ...

    def load_sessions(self) -> list[GameSession]: ...


@dataclass
class LoadOutcome:
    """Result of TrackerController.load()."""

    sessions: list[GameSession]
    from_cache: bool = False
    error: str | None = None


class TrackerController:
    """
    Owns one client's session collection and timer.

    The collection starts from the local cache, is appended to as sessions
    complete, and is replaced wholesale by load(). The timer reads it
    through a callable, so a replacement is visible on the next tick.
    """

    def __init__(
        self,
        store: SessionStore,
        cache: LocalCache | None = None,
        clock: Clock | None = None,
        scheduler: TickScheduler | None = None,
        aggregator: SessionAggregator | None = None,
        on_tick: Callable[[TickResult], None] | None = None,
        on_alarm: Callable[[float], None] | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.aggregator = aggregator or SessionAggregator()
        self.sessions: list[GameSession] = cache.read() if cache is not None else []
        self.timer = TimerStateMachine(
            clock=clock,
            scheduler=scheduler,
            history=lambda: self.sessions,
            on_complete=self._record_completed,
            on_tick=on_tick,
            on_alarm=on_alarm,
            aggregator=self.aggregator,
        )

    # =========================================================================
    # TIMER
    # =========================================================================

    def start(self, game: str | None = None) -> GameSession | None:
        return self.timer.start(game)

    def stop(self) -> GameSession | None:
        return self.timer.stop()

    def submit_metadata(self, data: Any) -> GameSession | None:
        return self.timer.submit_metadata(data)

    def skip_metadata(self) -> GameSession | None:
        return self.timer.skip_metadata()

    def select_game(self, game: str, confirm: Callable[[], bool]) -> str:
        return self.timer.select_game(game, confirm)

    def _record_completed(self, record: GameSession) -> None:
        self.sessions.append(record)
        self._write_cache()

    def _write_cache(self) -> None:
        if self.cache is not None:
            self.cache.write(self.sessions)

    # =========================================================================
    # STORE
    # =========================================================================

    def save(self) -> int:
        """
        Replace the store's collection with this client's collection.

        Returns:
            Number of sessions saved.

        Raises:
            ValidationError: If the store rejects the payload.
            PersistenceError: If the store can't be written or reached.
        """
        count = self.store.save_sessions(list(self.sessions))
        self._write_cache()
        return count

    def load(self) -> LoadOutcome:
        """
        Replace this client's collection with the store's.

        On a store failure the local cache is used instead and the error is
        reported in the outcome rather than raised.

        Returns:
            LoadOutcome describing where the collection came from.
        """
        try:
            sessions = self.store.load_sessions()
        except PersistenceError as e:
            logger.warning(f"Load failed, using local cache: {e}")
            fallback = self.cache.read() if self.cache is not None else []
            self.sessions = list(fallback)
            return LoadOutcome(sessions=self.sessions, from_cache=True, error=str(e))

        self.sessions = list(sessions)
        self._write_cache()
        return LoadOutcome(sessions=self.sessions)

    # =========================================================================
    # STATISTICS
    # =========================================================================

    def stats(self) -> SummaryStats:
        return self.aggregator.summarize(self.sessions)

    def daily_totals(self) -> list[DailyTotal]:
        return self.aggregator.group_by_date_and_game(self.sessions)
