"""
Session Service - shared business logic for the session store.

PURPOSE: Save/load/stats operations reused by the web routes and the CLI.
AI CONTEXT: Routes and CLI commands stay thin; validation and error
reporting live here.

ARCHITECTURE:
    CLI commands ──┐
                   ├──► SessionService ◄── StorageManager
    Web routes ────┘          │
                              └──────────► SessionAggregator

USAGE:
    service = SessionService()
    result = service.save_sessions(payload["sessions"])
    if not result.success:
        print(result.error)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .errors import GameTrackerError, PersistenceError, ValidationError
from .exporter import export_csv, import_csv
from .models import GameSession
from .statistics import SessionAggregator
from .storage import StorageManager

__all__ = [
    "SessionService",
    "ServiceResult",
    "validate_payload",
]

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """
    Result from a service operation.

    Attributes:
        success: Whether the operation completed successfully.
        message: Human-readable result message.
        data: Optional dict with operation-specific data.
        error: Optional error message if success is False.
        error_type: Name of the error class behind a failure
            ("ValidationError" or "PersistenceError"), used by callers to
            pick a status code.
    """

    success: bool
    message: str
    data: dict[str, Any] | None = None
    error: str | None = None
    error_type: str | None = None

    @classmethod
    def failure(cls, message: str, exc: Exception) -> ServiceResult:
        """Build a failed result from an exception."""
        return cls(
            success=False,
            message=message,
            error=str(exc),
            error_type=type(exc).__name__,
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to a JSON-serializable dictionary.

        Fields with None/empty values (data, error) are omitted.

        Example:
            >>> ServiceResult(success=True, message="Saved", data={"count": 2}).to_dict()
            {'success': True, 'message': 'Saved', 'data': {'count': 2}}
        """
        result: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
        }
        if self.data:
            result["data"] = self.data
        if self.error:
            result["error"] = self.error
        return result


def validate_payload(sessions: Any) -> list[GameSession]:
    """
    Check a save payload and convert it to GameSession records.

    Args:
        sessions: Value of the "sessions" field of a save request.

    Returns:
        Parsed records in payload order.

    Raises:
        ValidationError: If sessions is not a list or holds a non-object.
    """
    if not isinstance(sessions, list):
        raise ValidationError("Invalid sessions data: expected an array of sessions")
    for index, item in enumerate(sessions):
        if not isinstance(item, dict):
            raise ValidationError(f"Invalid sessions data: entry {index} is not an object")
    return [GameSession.from_dict(item) for item in sessions]


class SessionService:
    """
    Session store operations.

    OPERATIONS:
    - save_sessions: Validate and replace the stored collection
    - load_sessions: Read the full collection in wire form
    - get_stats: Summary statistics over the stored collection
    - get_daily_totals: Per-date, per-game minutes
    - export_sessions / import_sessions: CSV exchange

    No method raises for expected failures; each returns a ServiceResult.
    """

    def __init__(
        self,
        storage: StorageManager | None = None,
        aggregator: SessionAggregator | None = None,
    ) -> None:
        """
        Initialize the service with storage and aggregation dependencies.

        Args:
            storage: Session store. Defaults to StorageManager() at the
                configured storage directory.
            aggregator: Statistics calculator. Defaults to SessionAggregator().
        """
        self.storage = storage or StorageManager()
        self.aggregator = aggregator or SessionAggregator()

    def save_sessions(self, sessions: Any) -> ServiceResult:
        """
        Replace the stored collection with a request payload.

        Args:
            sessions: Raw "sessions" value from the request body.

        Returns:
            ServiceResult with the saved count; failures carry
            error_type "ValidationError" or "PersistenceError".
        """
        try:
            records = validate_payload(sessions)
            count = self.storage.save_sessions(records)
        except ValidationError as e:
            logger.warning(f"Rejected save payload: {e}")
            return ServiceResult.failure("Invalid sessions data", e)
        except PersistenceError as e:
            logger.error(f"Error saving sessions: {e}")
            return ServiceResult.failure("Failed to save sessions", e)

        return ServiceResult(
            success=True,
            message="Sessions saved successfully",
            data={"count": count},
        )

    def load_sessions(self) -> ServiceResult:
        """
        Load the stored collection in wire form.

        Returns:
            ServiceResult with data["sessions"] as a list of dicts whose
            metadata is an object and date is canonical.
        """
        try:
            sessions = self.storage.load_sessions()
        except PersistenceError as e:
            logger.error(f"Error loading sessions: {e}")
            return ServiceResult.failure("Failed to load sessions", e)

        logger.debug(f"Loaded {len(sessions)} sessions")
        return ServiceResult(
            success=True,
            message=f"Loaded {len(sessions)} sessions",
            data={"sessions": [s.to_dict() for s in sessions]},
        )

    def get_stats(self) -> ServiceResult:
        """
        Summary statistics recomputed from the stored collection.

        Returns:
            ServiceResult with data["stats"] in the wire summary shape.
        """
        try:
            sessions = self.storage.load_sessions()
        except PersistenceError as e:
            logger.error(f"Error getting stats: {e}")
            return ServiceResult.failure("Failed to get stats", e)

        stats = self.aggregator.summarize(sessions)
        return ServiceResult(
            success=True,
            message="Statistics computed",
            data={"stats": stats.to_dict()},
        )

    def get_daily_totals(self) -> ServiceResult:
        """Per-date, per-game minutes for the stored collection."""
        try:
            sessions = self.storage.load_sessions()
        except PersistenceError as e:
            logger.error(f"Error getting daily totals: {e}")
            return ServiceResult.failure("Failed to get daily totals", e)

        daily = self.aggregator.group_by_date_and_game(sessions)
        return ServiceResult(
            success=True,
            message=f"{len(daily)} days",
            data={"daily": [d.to_dict() for d in daily]},
        )

    def export_sessions(self, path: str) -> ServiceResult:
        """Write the stored collection to a CSV file."""
        try:
            sessions = self.storage.load_sessions()
            count = export_csv(sessions, path)
        except (GameTrackerError, OSError) as e:
            logger.error(f"Error exporting sessions: {e}")
            return ServiceResult.failure("Failed to export sessions", e)

        return ServiceResult(
            success=True,
            message=f"Exported {count} sessions to {path}",
            data={"count": count, "path": path},
        )

    def import_sessions(self, path: str) -> ServiceResult:
        """
        Replace the stored collection with the rows of a CSV file.

        Rows whose date can't be parsed are skipped and counted.
        """
        try:
            sessions, skipped = import_csv(path)
            count = self.storage.save_sessions(sessions)
        except (GameTrackerError, OSError) as e:
            logger.error(f"Error importing sessions: {e}")
            return ServiceResult.failure("Failed to import sessions", e)

        return ServiceResult(
            success=True,
            message=f"Imported {count} sessions from {path}",
            data={"count": count, "skipped": skipped},
        )
