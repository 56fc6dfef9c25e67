"""
Data models for Game Time Tracker.

PURPOSE: Type-safe dataclasses for session records and their per-game metadata.
AI CONTEXT: These models define the data schema shared by timer, store and stats.

MODEL HIERARCHY:
- GameSession: One timed activity entry (in progress or completed)
- ValorantMetadata: Match counts per match type (tactical shooter)
- KovaaksMetadata: Selected training type (aim trainer)

SERIALIZATION:
- to_dict()/from_dict(): wire form, camelCase keys, metadata as an object
- to_record()/from_record(): persisted form, metadata as a JSON string
Timestamps use ISO 8601 with timezone. Dates use canonical YYYY-MM-DD.

USAGE:
    session = GameSession.begin("valorant", datetime.now(UTC))
    session = session.complete(datetime.now(UTC))
    session = session.with_metadata(ValorantMetadata({"competitive": 2}))
"""

from __future__ import annotations

import json
import logging
import math
import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from typing import Any

from .config import Config
from .errors import ParseError

__all__ = [
    "GameSession",
    "ValorantMetadata",
    "KovaaksMetadata",
    "SessionMetadata",
    "canonical_date",
    "parse_timestamp",
    "parse_metadata",
    "compute_duration_minutes",
]

logger = logging.getLogger(__name__)

_CANONICAL_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Textual date forms seen in spreadsheet cells, tried in order after ISO 8601.
_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%m/%d/%y",
    "%d.%m.%Y",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
)

# Day zero of spreadsheet serial dates (1900 date system, leap-year bug included).
_SERIAL_EPOCH = date(1899, 12, 30)

_MINUTE = timedelta(minutes=1)


@dataclass(frozen=True)
class ValorantMetadata:
    """Match counts keyed by match-type label, e.g. {"competitive": 2}."""

    match_types: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire form {"matchTypes": {...}}."""
        return {"matchTypes": dict(self.match_types)}


@dataclass(frozen=True)
class KovaaksMetadata:
    """Single selected aim-training type, e.g. "static-clicking"."""

    aim_type: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire form {"aimType": "..."}."""
        return {"aimType": self.aim_type}


SessionMetadata = ValorantMetadata | KovaaksMetadata | None


def _parse_match_types(raw: Any) -> ValorantMetadata:
    if not isinstance(raw, dict):
        raise ParseError(f"matchTypes must be an object, got {type(raw).__name__}")
    counts: dict[str, int] = {}
    for label, count in raw.items():
        # bool is an int subclass; a checkbox value is not a match count
        if isinstance(count, bool) or not isinstance(count, int | float):
            logger.debug(f"Skipping non-numeric match count {label}={count!r}")
            continue
        if isinstance(count, float) and not math.isfinite(count):
            continue
        counts[str(label)] = int(count)
    return ValorantMetadata(match_types=counts)


def parse_metadata(game: str | None, raw: Any) -> SessionMetadata:
    """
    Interpret a metadata bag for the given game.

    Accepts an already-decoded object, a JSON string (persisted form), an
    existing metadata variant, or None. Empty bags and games without a
    metadata variant yield None.

    Args:
        game: Game identifier the metadata belongs to.
        raw: Metadata in any of the accepted forms.

    Returns:
        ValorantMetadata, KovaaksMetadata or None.

    Raises:
        ParseError: If raw cannot be decoded or does not fit the game's
            variant. Callers recover by treating the metadata as empty.

    Example:
        >>> parse_metadata("kovaaks", '{"aimType": "tracking"}')
        KovaaksMetadata(aim_type='tracking')
    """
    if raw is None or isinstance(raw, ValorantMetadata | KovaaksMetadata):
        return raw

    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ParseError(f"Metadata is not valid JSON: {e}") from e
        if raw is None:
            return None

    if not isinstance(raw, dict):
        raise ParseError(f"Metadata must be an object, got {type(raw).__name__}")
    if not raw:
        return None

    if game == Config.MATCH_GAME:
        if "matchTypes" not in raw:
            return None
        return _parse_match_types(raw["matchTypes"])

    if game == Config.AIM_TRAINING_GAME:
        aim_type = raw.get("aimType")
        if aim_type is None or aim_type == "":
            return None
        if not isinstance(aim_type, str):
            raise ParseError(f"aimType must be a string, got {type(aim_type).__name__}")
        return KovaaksMetadata(aim_type=aim_type)

    logger.debug(f"No metadata variant for game {game!r}; dropping {sorted(raw)}")
    return None


def _safe_metadata(game: str | None, raw: Any) -> SessionMetadata:
    try:
        return parse_metadata(game, raw)
    except ParseError as e:
        logger.warning(f"Ignoring malformed metadata for {game!r}: {e}")
        return None


def canonical_date(value: Any) -> str:
    """
    Normalize a date-like value to canonical YYYY-MM-DD.

    Timezone-aware datetimes are converted to UTC before the date is taken,
    so '2024-01-01T23:30:00-05:00' lands on '2024-01-02'. Naive datetimes
    are taken as-is. Numbers are read as spreadsheet serial days.

    Args:
        value: str, date, datetime, or int/float serial day.

    Returns:
        Canonical date string.

    Raises:
        ParseError: If the value cannot be interpreted as a date.

    Example:
        >>> canonical_date("2024-01-05T10:00:00Z")
        '2024-01-05'
        >>> canonical_date("1/5/2024")
        '2024-01-05'
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, int | float) and not isinstance(value, bool):
        try:
            return (_SERIAL_EPOCH + timedelta(days=int(value))).isoformat()
        except OverflowError as e:
            raise ParseError(f"Serial date out of range: {value}") from e
    if not isinstance(value, str) or not value.strip():
        raise ParseError(f"Not a date: {value!r}")

    text = value.strip()
    if _CANONICAL_DATE_RE.match(text):
        try:
            return date.fromisoformat(text).isoformat()
        except ValueError as e:
            raise ParseError(f"Invalid calendar date: {text}") from e

    try:
        return canonical_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue

    raise ParseError(f"Unrecognized date format: {text!r}")


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO 8601 timestamp into a timezone-aware datetime.

    Handles both 'Z' and '+00:00' suffixes. Naive values are assumed UTC.

    Raises:
        ParseError: If value is not a datetime or an ISO 8601 string.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise ParseError(f"Invalid timestamp: {value!r}") from e
    else:
        raise ParseError(f"Not a timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def compute_duration_minutes(start: datetime, end: datetime) -> int:
    """
    Whole minutes between start and end, rounding half a minute up.

    Negative spans (clock skew) clamp to zero.

    Example:
        >>> t0 = datetime(2024, 1, 1, tzinfo=UTC)
        >>> compute_duration_minutes(t0, t0 + timedelta(milliseconds=90_500))
        2
        >>> compute_duration_minutes(t0, t0 + timedelta(seconds=30))
        1
    """
    micros = (end - start) // timedelta(microseconds=1)
    if micros <= 0:
        return 0
    minute_us = _MINUTE // timedelta(microseconds=1)
    return int((micros + minute_us // 2) // minute_us)


def _round_half_up(value: float) -> int:
    if not math.isfinite(value):
        return 0
    return max(0, math.floor(value + 0.5))


def _coerce_duration(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return _round_half_up(value)
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return 0
        return _round_half_up(parsed)
    return 0


@dataclass(frozen=True)
class GameSession:
    """
    One timed gaming activity.

    LIFECYCLE:
    1. begin(): id, game, date and start_time set; duration 0
    2. complete(): end_time and duration_minutes set
    3. with_metadata(): metadata attached, record appended to the collection

    Instances are frozen; each lifecycle step returns a new record, so a
    record cannot change after it has been appended.
    """

    id: str
    game: str
    date: str
    start_time: str
    end_time: str | None = None
    duration_minutes: int = 0
    metadata: SessionMetadata = None

    @classmethod
    def begin(cls, game: str, now: datetime) -> GameSession:
        """
        Create an in-progress session starting at now.

        Args:
            game: Game identifier.
            now: Timezone-aware start instant.

        Returns:
            New GameSession with a fresh id, the UTC date of now, and
            end_time unset.
        """
        return cls(
            id=uuid.uuid4().hex,
            game=game,
            date=canonical_date(now),
            start_time=now.isoformat(),
        )

    @property
    def is_complete(self) -> bool:
        """True once end_time has been recorded."""
        return self.end_time is not None

    def complete(self, now: datetime) -> GameSession:
        """Return a copy ending at now with its rounded duration."""
        start = parse_timestamp(self.start_time)
        return replace(
            self,
            end_time=now.isoformat(),
            duration_minutes=compute_duration_minutes(start, now),
        )

    def with_metadata(self, metadata: Any) -> GameSession:
        """Return a copy carrying metadata; malformed metadata becomes None."""
        return replace(self, metadata=_safe_metadata(self.game, metadata))

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize to the wire form used by the JSON API.

        Metadata is always an object; a session without metadata carries {}.

        Example:
            >>> s = GameSession("1", "kovaaks", "2024-01-01", "2024-01-01T10:00:00+00:00")
            >>> s.to_dict()["metadata"]
            {}
        """
        return {
            "id": self.id,
            "game": self.game,
            "date": self.date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "durationMinutes": self.duration_minutes,
            "metadata": self.metadata.to_dict() if self.metadata else {},
        }

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted form; metadata is a JSON string or None."""
        record = self.to_dict()
        record["metadata"] = json.dumps(record["metadata"]) if self.metadata else None
        return record

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameSession:
        """
        Deserialize from either the wire or the persisted form.

        Tolerant by design of the data it reads: a missing duration becomes
        0, malformed metadata becomes None, and an unparseable date is kept
        verbatim (the aggregator skips it). Snake_case keys are accepted as
        a fallback for older files.

        Args:
            data: Session dict.

        Returns:
            GameSession instance.

        Example:
            >>> GameSession.from_dict({"game": "valorant", "date": "2024-01-01"}).duration_minutes
            0
        """
        game = str(data.get("game") or "")
        raw_date = data.get("date")
        try:
            session_date = canonical_date(raw_date)
        except ParseError:
            session_date = "" if raw_date is None else str(raw_date)

        raw_id = data.get("id")
        end_time = data.get("endTime", data.get("end_time"))
        return cls(
            id=str(raw_id) if raw_id not in (None, "") else uuid.uuid4().hex,
            game=game,
            date=session_date,
            start_time=str(data.get("startTime", data.get("start_time")) or ""),
            end_time=str(end_time) if end_time else None,
            duration_minutes=_coerce_duration(
                data.get("durationMinutes", data.get("duration_minutes"))
            ),
            metadata=_safe_metadata(game, data.get("metadata")),
        )

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> GameSession:
        """Deserialize from the persisted form (alias of from_dict)."""
        return cls.from_dict(record)
