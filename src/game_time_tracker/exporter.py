"""
CSV export/import for Game Time Tracker.

PURPOSE: Move the whole session collection in and out of a spreadsheet.

FORMAT:
One header row, then one row per session:
    id, game, date, startTime, endTime, durationMinutes, metadata
metadata holds the persisted JSON string (empty when absent).

IMPORT RULES:
Cells are read from whatever text the sheet holds. Dates accept ISO 8601,
MM/DD/YYYY and similar forms and are normalized to YYYY-MM-DD; a row whose
date can't be read is skipped. Timestamps accept ISO 8601, MM/DD/YYYY HH:MM[:SS]
and the JavaScript Date.toString() form; unreadable ones load empty.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from .errors import ParseError
from .filesystem import RealFileSystem
from .models import GameSession, canonical_date, parse_timestamp

if TYPE_CHECKING:
    from .filesystem import FileSystem

__all__ = ["CSV_COLUMNS", "export_csv", "import_csv"]

logger = logging.getLogger(__name__)

CSV_COLUMNS: tuple[str, ...] = (
    "id",
    "game",
    "date",
    "startTime",
    "endTime",
    "durationMinutes",
    "metadata",
)

_TIMESTAMP_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%a %b %d %Y %H:%M:%S GMT%z",
)


def export_csv(
    sessions: Sequence[GameSession],
    path: str,
    filesystem: FileSystem | None = None,
) -> int:
    """
    Write sessions to a CSV file.

    Args:
        sessions: Collection to export.
        path: Destination file.
        filesystem: FileSystem implementation. Default: RealFileSystem

    Returns:
        Number of rows written (excluding the header).

    Raises:
        OSError: If the file can't be written.
    """
    fs = filesystem or RealFileSystem()
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    for session in sessions:
        record = session.to_record()
        record["endTime"] = record["endTime"] or ""
        record["metadata"] = record["metadata"] or ""
        writer.writerow(record)
    fs.write_text(path, buf.getvalue())
    logger.info(f"Exported {len(sessions)} sessions to {path}")
    return len(sessions)


def _parse_cell_timestamp(value: str | None) -> str | None:
    if not value or not value.strip():
        return None
    text = value.strip()
    try:
        return parse_timestamp(text).isoformat()
    except ParseError:
        pass
    # Date.toString() appends a zone name in parentheses
    text = text.split(" (", 1)[0]
    for fmt in _TIMESTAMP_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.isoformat()
    logger.warning(f"Unreadable timestamp cell {value!r}")
    return None


def _row_to_session(row: dict[str, Any]) -> GameSession:
    day = canonical_date(row.get("date"))
    return GameSession.from_dict(
        {
            "id": (row.get("id") or "").strip(),
            "game": (row.get("game") or "").strip(),
            "date": day,
            "startTime": _parse_cell_timestamp(row.get("startTime")) or "",
            "endTime": _parse_cell_timestamp(row.get("endTime")),
            "durationMinutes": row.get("durationMinutes"),
            "metadata": row.get("metadata") or None,
        }
    )


def import_csv(
    path: str,
    filesystem: FileSystem | None = None,
) -> tuple[list[GameSession], int]:
    """
    Read sessions from a CSV file.

    Args:
        path: Source file.
        filesystem: FileSystem implementation. Default: RealFileSystem

    Returns:
        (sessions, skipped) where skipped counts rows with an unreadable date.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        OSError: If the file can't be read.
    """
    fs = filesystem or RealFileSystem()
    reader = csv.DictReader(io.StringIO(fs.read_text(path)))

    sessions: list[GameSession] = []
    skipped = 0
    for line_no, row in enumerate(reader, start=2):
        try:
            sessions.append(_row_to_session(row))
        except ParseError as e:
            skipped += 1
            logger.warning(f"Skipping row {line_no} of {path}: {e}")

    logger.info(f"Imported {len(sessions)} sessions from {path} ({skipped} skipped)")
    return sessions, skipped
