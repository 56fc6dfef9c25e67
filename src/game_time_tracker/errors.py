"""
Error types for Game Time Tracker.

PURPOSE: One small taxonomy shared by storage, service, client and web layers.

ERROR KINDS:
- ValidationError: Malformed save payload. Surfaces as HTTP 400.
- PersistenceError: Store unreachable or read/write failure. Surfaces as HTTP 500.
- ParseError: Malformed metadata or date. Always recovered where raised;
  callers substitute a safe default and carry on.
"""

from __future__ import annotations

__all__ = [
    "GameTrackerError",
    "ValidationError",
    "PersistenceError",
    "ParseError",
]


class GameTrackerError(Exception):
    """Base class for all tracker errors."""


class ValidationError(GameTrackerError):
    """Raised when a save payload is not a list of session objects."""


class PersistenceError(GameTrackerError):
    """Raised when the session store cannot be read or written."""


class ParseError(GameTrackerError, ValueError):
    """Raised when a metadata bag or date string cannot be interpreted."""
