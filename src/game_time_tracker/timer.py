"""
Timer state machine for Game Time Tracker.

PURPOSE: Lifecycle of a single in-progress session and its elapsed time.
AI CONTEXT: No I/O. Wall-clock time and periodic ticks are injected.

STATES:
    IDLE --start(game)--> RUNNING --stop()--> AWAITING_METADATA
    AWAITING_METADATA --submit_metadata()/skip_metadata()--> IDLE
    (the completed record is handed to on_complete on the way back to IDLE)

TICKS:
While RUNNING a repeating tick (Config.TICK_INTERVAL_SECONDS) refreshes the
elapsed time. For the aim-training game each tick also checks today's
cumulative minutes against Config.DAILY_LIMIT_MINUTES and raises a latched,
dismissible alarm the first time the limit is reached. The tick handle is
cancelled exactly once, in stop().

USAGE:
    timer = TimerStateMachine(clock=SystemClock(), scheduler=AsyncioTickScheduler())
    timer.start("kovaaks")
    ...
    timer.stop()
    record = timer.submit_metadata({"aimType": "tracking"})
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol

from .config import Config
from .models import GameSession, canonical_date
from .statistics import SessionAggregator

__all__ = [
    "TimerState",
    "Clock",
    "SystemClock",
    "TickHandle",
    "TickScheduler",
    "AsyncioTickScheduler",
    "TickResult",
    "TimerStateMachine",
    "format_elapsed",
]

logger = logging.getLogger(__name__)


class TimerState(Enum):
    """Lifecycle states of the timer."""

    IDLE = "idle"
    RUNNING = "running"
    AWAITING_METADATA = "awaiting_metadata"


class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        """Return the current timezone-aware time."""
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class TickHandle(Protocol):
    """Handle returned by a scheduler; cancel() stops further ticks."""

    def cancel(self) -> None: ...


class TickScheduler(Protocol):
    """Runs a callback repeatedly at a fixed interval until cancelled."""

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        """
        Start calling callback every interval seconds.

        Args:
            interval: Seconds between calls.
            callback: Zero-argument function to call.

        Returns:
            Handle whose cancel() stops the repetition.
        """
        ...


class _RepeatingCall:
    """Re-arms itself with loop.call_later after every run."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], None],
    ) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._handle = loop.call_later(interval, self._run)

    def _run(self) -> None:
        if self._cancelled:
            return
        try:
            self._callback()
        finally:
            if not self._cancelled:
                self._handle = self._loop.call_later(self._interval, self._run)

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()


class AsyncioTickScheduler:
    """
    Tick scheduler on an asyncio event loop.

    Uses the running loop at schedule time unless a loop is given, so it
    must be used from code running inside the loop (the CLI tracker does).
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _RepeatingCall(loop, interval, callback)


@dataclass
class TickResult:
    """Snapshot produced by one tick."""

    elapsed_ms: int
    today_minutes: float | None = None
    alarm_fired: bool = False


def format_elapsed(elapsed_ms: int) -> str:
    """
    Format elapsed milliseconds as HH:MM:SS.

    Example:
        >>> format_elapsed(3_725_999)
        '01:02:05'
    """
    total_seconds = max(0, elapsed_ms) // 1000
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class TimerStateMachine:
    """
    State machine for one session at a time.

    Completed sessions are not stored here. The machine reads prior
    sessions through the history callable (for the daily alarm) and hands
    each finished record to on_complete, so the owner of the collection can
    replace it wholesale at any time without the timer holding a stale copy.
    Without an owner, finished records accumulate in self.completed.

    Invalid transitions (start while running, stop while idle, metadata
    while not awaiting) are no-ops that return None.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        scheduler: TickScheduler | None = None,
        history: Callable[[], Iterable[GameSession]] | None = None,
        on_complete: Callable[[GameSession], None] | None = None,
        on_tick: Callable[[TickResult], None] | None = None,
        on_alarm: Callable[[float], None] | None = None,
        aggregator: SessionAggregator | None = None,
    ) -> None:
        """
        Initialize an idle timer.

        Args:
            clock: Time source. Default: SystemClock.
            scheduler: Tick scheduler. None disables periodic ticks; tick()
                can still be called directly.
            history: Returns the sessions recorded so far. Default: the
                records this timer completed itself.
            on_complete: Receives each finished record. Default: append to
                self.completed.
            on_tick: Receives every TickResult.
            on_alarm: Receives today's cumulative minutes when the alarm fires.
            aggregator: Used for the daily total. Default: SessionAggregator().
        """
        self.clock: Clock = clock or SystemClock()
        self.scheduler = scheduler
        self.completed: list[GameSession] = []
        self._history = history or (lambda: self.completed)
        self._on_complete = on_complete or self.completed.append
        self._on_tick = on_tick
        self._on_alarm = on_alarm
        self._aggregator = aggregator or SessionAggregator()

        self.state = TimerState.IDLE
        self.selected_game: str | None = None
        self._current: GameSession | None = None
        self._started_at: datetime | None = None
        self._tick_handle: TickHandle | None = None
        self._elapsed_ms = 0
        self.alarm_latched = False
        self.alarm_active = False

    @property
    def current(self) -> GameSession | None:
        """The in-progress or pending record, if any."""
        return self._current

    @property
    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    @property
    def elapsed_ms(self) -> int:
        """Milliseconds elapsed as of the last tick, stop, or now while running."""
        if self.state is TimerState.RUNNING and self._started_at is not None:
            return self._measure()
        return self._elapsed_ms

    def elapsed_display(self) -> str:
        """Elapsed time as HH:MM:SS."""
        return format_elapsed(self.elapsed_ms)

    def _measure(self) -> int:
        if self._started_at is None:
            return self._elapsed_ms
        delta = self.clock.now() - self._started_at
        return max(0, int(delta.total_seconds() * 1000))

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def start(self, game: str | None = None) -> GameSession | None:
        """
        Begin timing a session.

        Args:
            game: Game to time. Default: the currently selected game.

        Returns:
            The in-progress record, or None if the timer was not idle or no
            game is selected.
        """
        if self.state is not TimerState.IDLE:
            logger.debug(f"start() ignored in state {self.state.value}")
            return None

        game = game or self.selected_game
        if not game:
            logger.warning("start() ignored: no game selected")
            return None

        now = self.clock.now()
        self.selected_game = game
        self._current = GameSession.begin(game, now)
        self._started_at = now
        self._elapsed_ms = 0
        self.alarm_latched = False
        self.alarm_active = False
        self.state = TimerState.RUNNING

        if self.scheduler is not None:
            self._tick_handle = self.scheduler.schedule_repeating(
                Config.TICK_INTERVAL_SECONDS, self._scheduled_tick
            )

        logger.info(f"Started {game} session {self._current.id}")
        return self._current

    def stop(self) -> GameSession | None:
        """
        Stop the running session and wait for metadata.

        Returns:
            The stopped record with end_time and duration_minutes set, or
            None if the timer was not running.
        """
        if self.state is not TimerState.RUNNING or self._current is None:
            logger.debug(f"stop() ignored in state {self.state.value}")
            return None

        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

        now = self.clock.now()
        self._elapsed_ms = self._measure()
        self._current = self._current.complete(now)
        self.state = TimerState.AWAITING_METADATA

        logger.info(
            f"Stopped {self._current.game} session {self._current.id} "
            f"after {self._current.duration_minutes} min"
        )
        return self._current

    def submit_metadata(self, data: Any) -> GameSession | None:
        """
        Attach metadata and complete the pending session.

        Malformed metadata is dropped rather than rejected.

        Returns:
            The completed record, or None if nothing was pending.
        """
        if self.state is not TimerState.AWAITING_METADATA or self._current is None:
            logger.debug(f"submit_metadata() ignored in state {self.state.value}")
            return None
        return self._finish(self._current.with_metadata(data))

    def skip_metadata(self) -> GameSession | None:
        """Complete the pending session without metadata."""
        if self.state is not TimerState.AWAITING_METADATA or self._current is None:
            logger.debug(f"skip_metadata() ignored in state {self.state.value}")
            return None
        return self._finish(self._current)

    def _finish(self, record: GameSession) -> GameSession:
        self._current = None
        self._started_at = None
        self._elapsed_ms = 0
        self.alarm_active = False
        self.state = TimerState.IDLE
        self._on_complete(record)
        logger.info(f"Completed session {record.id} ({record.duration_minutes} min)")
        return record

    def select_game(self, game: str, confirm: Callable[[], bool]) -> str:
        """
        Change the selected game.

        While a session is running or awaiting metadata, confirm() decides.
        Declining keeps the in-progress game and changes nothing. Confirming
        stops a running session (as stop() would) and selects the new game.

        Args:
            game: Newly selected game.
            confirm: Asked only when a session is in progress.

        Returns:
            The game that is selected afterwards.
        """
        if self.state is TimerState.IDLE or self._current is None:
            self.selected_game = game
            return game

        if game == self._current.game:
            return game

        if not confirm():
            return self._current.game

        self.stop()
        self.selected_game = game
        return game

    # =========================================================================
    # TICKS AND ALARM
    # =========================================================================

    def _scheduled_tick(self) -> None:
        result = self.tick()
        if result is not None and self._on_tick is not None:
            self._on_tick(result)

    def tick(self) -> TickResult | None:
        """
        Refresh elapsed time and evaluate the daily alarm.

        Returns:
            TickResult while running, None otherwise.
        """
        if self.state is not TimerState.RUNNING or self._current is None:
            return None

        self._elapsed_ms = self._measure()
        result = TickResult(elapsed_ms=self._elapsed_ms)

        if self._current.game != Config.AIM_TRAINING_GAME:
            return result

        today = canonical_date(self.clock.now())
        prior = self._aggregator.today_minutes(self._history(), self._current.game, today)
        cumulative = prior + self._elapsed_ms / 60000
        result.today_minutes = cumulative

        if not self.alarm_latched and cumulative >= Config.DAILY_LIMIT_MINUTES:
            self.alarm_latched = True
            self.alarm_active = True
            result.alarm_fired = True
            logger.info(f"Daily {self._current.game} limit reached: {cumulative:.1f} min")
            if self._on_alarm is not None:
                self._on_alarm(cumulative)

        return result

    def dismiss_alarm(self) -> None:
        """Silence the alarm; the latch stays set and the timer keeps running."""
        self.alarm_active = False
