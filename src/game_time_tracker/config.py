"""
Configuration for Game Time Tracker.

PURPOSE: Centralized configuration constants and runtime settings.
AI CONTEXT: All configurable values live here - modify this file to change behavior.

CONFIGURATION CATEGORIES:
- Storage: File paths and directory structure
- Games: Registered game identifiers and their metadata vocabularies
- Timer: Tick interval and daily aim-training limit
- Web: Default bind address for the server

ENVIRONMENT VARIABLES:
- GAME_TRACKER_STORAGE_DIR: Storage directory (default: .game_time_tracker)
- GAME_TRACKER_SERVER_URL: Remote session store used by `track` (default: none)

USAGE:
    from game_time_tracker.config import Config
    storage_dir = Config.get_storage_dir()
    games = Config.GAMES
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration container for Game Time Tracker.

    DESIGN: Frozen dataclass ensures configuration immutability at runtime.
    All values are class-level constants - no instance creation needed.

    GAME REGISTRY:
    GAMES is ordered; its order is the order of chart series and of the
    zero-filled per-game breakdowns. Extending the tracker to a new game
    means adding its identifier here (and a label in GAME_LABELS).

    STORAGE STRUCTURE:
        .game_time_tracker/
        ├── sessions.json      # Session store [persisted records]
        └── local_cache.json   # Last known-good collection
    """

    # =========================================================================
    # STORAGE CONFIGURATION
    # =========================================================================
    STORAGE_DIR: ClassVar[str] = ".game_time_tracker"
    SESSIONS_FILE: ClassVar[str] = "sessions.json"
    LOCAL_CACHE_FILE: ClassVar[str] = "local_cache.json"

    # =========================================================================
    # GAME REGISTRY
    # =========================================================================
    MATCH_GAME: ClassVar[str] = "valorant"
    """Tactical shooter; metadata counts matches per match type."""

    AIM_TRAINING_GAME: ClassVar[str] = "kovaaks"
    """Aim trainer; metadata selects a single training type."""

    GAMES: ClassVar[tuple[str, ...]] = (MATCH_GAME, AIM_TRAINING_GAME)

    GAME_LABELS: ClassVar[dict[str, str]] = {
        "valorant": "Valorant",
        "kovaaks": "Kovaaks Aim Trainer",
    }

    MATCH_TYPES: ClassVar[tuple[str, ...]] = (
        "deathmatch",
        "competitive",
        "unrated",
        "spike-rush",
    )

    AIM_TYPES: ClassVar[tuple[str, ...]] = (
        "static-clicking",
        "dynamic-clicking",
        "tracking",
        "target-switching",
    )

    # =========================================================================
    # TIMER CONFIGURATION
    # =========================================================================
    TICK_INTERVAL_SECONDS: ClassVar[float] = 1.0

    DAILY_LIMIT_MINUTES: ClassVar[int] = 60
    """
    Daily aim-training threshold. The running timer raises its alarm the
    first time today's cumulative minutes for AIM_TRAINING_GAME reach it.
    """

    # =========================================================================
    # WEB CONFIGURATION
    # =========================================================================
    DEFAULT_HOST: ClassVar[str] = "127.0.0.1"
    DEFAULT_PORT: ClassVar[int] = 3000
    REQUEST_TIMEOUT_SECONDS: ClassVar[float] = 10.0

    # =========================================================================
    # ENVIRONMENT-BASED SETTINGS (runtime configurable)
    # =========================================================================
    _storage_dir_override: ClassVar[str | None] = None
    _server_url_override: ClassVar[str | None] = None

    @classmethod
    def get_storage_dir(cls) -> str:
        """
        Get the directory holding the session store and local cache.

        Uses a priority system: test overrides first, then the
        GAME_TRACKER_STORAGE_DIR environment variable, then STORAGE_DIR.

        Returns:
            Storage directory path (may be relative to the working directory).

        Example:
            >>> Config.get_storage_dir()
            '.game_time_tracker'
        """
        if cls._storage_dir_override is not None:
            return cls._storage_dir_override
        return os.environ.get("GAME_TRACKER_STORAGE_DIR", cls.STORAGE_DIR)

    @classmethod
    def get_server_url(cls) -> str | None:
        """
        Get the base URL of a remote session store, if one is configured.

        Returns:
            Base URL such as 'http://127.0.0.1:3000', or None to use the
            local store directly.
        """
        if cls._server_url_override is not None:
            return cls._server_url_override or None
        return os.environ.get("GAME_TRACKER_SERVER_URL") or None

    @classmethod
    def is_registered_game(cls, game: str | None) -> bool:
        """Return True if game is one of the registered identifiers."""
        return game in cls.GAMES

    @classmethod
    def game_label(cls, game: str) -> str:
        """
        Get the display label for a game identifier.

        Falls back to a title-cased identifier so unregistered games still
        render something readable.

        Example:
            >>> Config.game_label('kovaaks')
            'Kovaaks Aim Trainer'
            >>> Config.game_label('apex')
            'Apex'
        """
        return cls.GAME_LABELS.get(game, game.replace("-", " ").title())

    @classmethod
    def set_test_overrides(
        cls,
        storage_dir: str | None = None,
        server_url: str | None = None,
    ) -> None:
        """
        Set test overrides for environment-based settings.

        Must call reset_test_overrides() in test teardown to avoid affecting
        other tests. Pass server_url="" to force "no remote store" regardless
        of the environment.

        Args:
            storage_dir: Override for the storage directory. None to clear.
            server_url: Override for the remote store URL. None to clear.
        """
        cls._storage_dir_override = storage_dir
        cls._server_url_override = server_url

    @classmethod
    def reset_test_overrides(cls) -> None:
        """Reset all test overrides to use environment variables."""
        cls._storage_dir_override = None
        cls._server_url_override = None
