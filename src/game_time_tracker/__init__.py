"""
Game Time Tracker.

PURPOSE: Time gaming sessions, persist them, and report where the hours go.
AI CONTEXT: This package provides the timer, session store, aggregation and web UI.

PACKAGE STRUCTURE:
- models.py: GameSession record and per-game metadata variants
- timer.py: Timer state machine with injectable clock and tick scheduler
- statistics.py: Daily totals and summary statistics
- storage.py: JSON file persistence and local fallback cache
- session_service.py: Save/load/stats operations shared by CLI and web
- controller.py: Top-level owner of the session collection and timer
- client.py: HTTP client for a remote session store
- exporter.py: CSV export/import
- presenters.py: View models and chart rendering
- web/: FastAPI application
- config.py: Configuration constants

QUICK START:
    # Run the web server
    python -m game_time_tracker serve

    # Time a session in the terminal
    python -m game_time_tracker track valorant

    # Print a report
    python -m game_time_tracker report
"""

from game_time_tracker.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __url__,
    __version__,
    __version_date__,
)

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__url__",
    "__author__",
    "__license__",
    "__copyright__",
]
