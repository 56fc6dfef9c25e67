"""Version information for game-time-tracker."""

__version__ = "1.2.0"
__version_date__ = "2026-10-19"

__title__ = "game_time_tracker"
__description__ = "Timer, session store and statistics for tracking time spent in games"
__url__ = "https://github.com/game-time-tracker/game-time-tracker"

__author__ = "Game Time Tracker contributors"

__license__ = "MIT"
__copyright__ = "Copyright 2025 Game Time Tracker contributors"

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
