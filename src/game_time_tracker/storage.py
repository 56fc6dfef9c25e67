"""
Storage management for Game Time Tracker.

PURPOSE: Durable session store and local fallback cache, both JSON files.
AI CONTEXT: All persistence operations go through this module.

STORAGE STRUCTURE:
    .game_time_tracker/
    ├── sessions.json      # Dict: session_id -> persisted record
    └── local_cache.json   # List: last known-good collection (wire form)

ERROR HANDLING STRATEGY:
- Session store: missing file reads as empty; corrupt JSON, wrong shape or
  I/O failure raises PersistenceError so the caller can surface it and fall
  back to the local cache.
- Local cache: fail-safe. Errors are logged and reported as an empty list
  or False, never raised.

USAGE:
    storage = StorageManager()
    storage.save_sessions(sessions)       # wholesale replace
    sessions = storage.load_sessions()

    # Testing with MockFileSystem
    storage = StorageManager(storage_dir="/test", filesystem=mock_fs)
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from .config import Config
from .errors import PersistenceError
from .filesystem import RealFileSystem
from .models import GameSession

if TYPE_CHECKING:
    from .filesystem import FileSystem

__all__ = ["StorageManager", "LocalCache"]

logger = logging.getLogger(__name__)


class StorageManager:
    """
    JSON session store keyed by session id.

    DESIGN PRINCIPLES:
    1. Wholesale: save replaces the entire collection, load returns all of it
    2. Atomic: writes go to a temporary file that then replaces the store
    3. Loud on failure: read/write problems raise PersistenceError
    4. Testable: FileSystem can be injected for mocking

    Records are stored in the persisted form (metadata as a JSON string),
    in the order they were saved.

    THREAD SAFETY:
    Not thread-safe. Concurrent saves are last-writer-wins.
    """

    def __init__(
        self,
        storage_dir: str | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        """
        Initialize storage with directory structure.

        Args:
            storage_dir: Custom storage path. Default: Config.get_storage_dir()
            filesystem: FileSystem implementation. Default: RealFileSystem

        Creates:
            - Storage directory
            - Empty sessions file
        """
        self.storage_dir = storage_dir or Config.get_storage_dir()
        self._fs: FileSystem = filesystem or RealFileSystem()
        self.sessions_file = os.path.join(self.storage_dir, Config.SESSIONS_FILE)

        self._initialize_storage()

    def _initialize_storage(self) -> None:
        """
        Create the storage directory and an empty store if missing.

        Logs errors but doesn't raise; the first save or load reports the
        problem to its caller instead.
        """
        try:
            self._fs.makedirs(self.storage_dir, exist_ok=True)
            if not self._fs.exists(self.sessions_file):
                self._fs.write_text(self.sessions_file, "{}")
            logger.info(f"Storage initialized: {self.storage_dir}")
        except OSError as e:
            logger.error(f"Failed to initialize storage: {e}")

    def load_records(self) -> list[dict[str, Any]]:
        """
        Load every persisted record.

        Returns:
            Records in stored order. Empty list if the store doesn't exist.

        Raises:
            PersistenceError: If the file can't be read, isn't valid JSON,
                or doesn't hold an id -> record mapping.
        """
        try:
            content = self._fs.read_text(self.sessions_file)
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error(f"Error reading {self.sessions_file}: {e}")
            raise PersistenceError(f"Failed to read session store: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {self.sessions_file}: {e}")
            raise PersistenceError(f"Session store is corrupt: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(
                f"Session store must hold an object, found {type(data).__name__}"
            )

        records: list[dict[str, Any]] = []
        for session_id, record in data.items():
            if not isinstance(record, dict):
                logger.warning(f"Skipping malformed record {session_id}")
                continue
            records.append({**record, "id": record.get("id") or session_id})
        return records

    def load_sessions(self) -> list[GameSession]:
        """
        Load the full collection as GameSession records.

        Metadata is decoded from its stored JSON string and dates are
        normalized; malformed metadata loads as None.

        Raises:
            PersistenceError: If the store can't be read.
        """
        return [GameSession.from_record(r) for r in self.load_records()]

    def save_sessions(self, sessions: Sequence[GameSession]) -> int:
        """
        Replace the stored collection with sessions.

        Records missing an id, or repeating one already seen in this batch,
        get a fresh id so no record overwrites another.

        Args:
            sessions: Complete collection to store.

        Returns:
            Number of records written.

        Raises:
            PersistenceError: If the store can't be written.
        """
        records: dict[str, dict[str, Any]] = {}
        for session in sessions:
            record = session.to_record()
            if not record["id"] or record["id"] in records:
                record["id"] = uuid.uuid4().hex
            records[record["id"]] = record

        tmp_file = f"{self.sessions_file}.tmp"
        try:
            content = json.dumps(records, indent=2, default=str)
            self._fs.makedirs(self.storage_dir, exist_ok=True)
            self._fs.write_text(tmp_file, content)
            self._fs.replace(tmp_file, self.sessions_file)
        except OSError as e:
            logger.error(f"Error writing {self.sessions_file}: {e}")
            self._discard(tmp_file)
            raise PersistenceError(f"Failed to write session store: {e}") from e

        logger.info(f"Saved {len(records)} sessions")
        return len(records)

    def _discard(self, path: str) -> None:
        """Remove a leftover temporary file; a missing file is fine."""
        try:
            self._fs.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove {path}: {e}")

    def clear_all(self) -> None:
        """
        Reset the store to an empty collection.

        WARNING: Destroys all data.

        Raises:
            PersistenceError: If the store can't be written.
        """
        self.save_sessions([])
        logger.info("Session store cleared")


class LocalCache:
    """
    Local mirror of the last known-good session collection.

    Written after every successful completion or save; read when the
    session store can't be loaded. Never raises.
    """

    def __init__(
        self,
        path: str | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        self.path = path or os.path.join(Config.get_storage_dir(), Config.LOCAL_CACHE_FILE)
        self._fs: FileSystem = filesystem or RealFileSystem()

    def read(self) -> list[GameSession]:
        """
        Read the cached collection.

        Returns:
            Cached sessions, or an empty list if the cache is missing or
            unreadable.
        """
        try:
            data = json.loads(self._fs.read_text(self.path))
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {self.path}: {e}")
            return []
        except OSError as e:
            logger.error(f"Error reading {self.path}: {e}")
            return []

        if not isinstance(data, list):
            logger.error(f"Local cache {self.path} is not a list")
            return []
        return [GameSession.from_dict(item) for item in data if isinstance(item, dict)]

    def write(self, sessions: Sequence[GameSession]) -> bool:
        """
        Overwrite the cache with sessions.

        Returns:
            True on success, False on failure.
        """
        try:
            parent = os.path.dirname(self.path)
            if parent:
                self._fs.makedirs(parent, exist_ok=True)
            self._fs.write_text(self.path, json.dumps([s.to_dict() for s in sessions], indent=2))
            return True
        except OSError as e:
            logger.error(f"Error writing {self.path}: {e}")
            return False
