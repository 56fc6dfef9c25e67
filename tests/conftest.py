"""
Pytest configuration and shared fixtures for Game Time Tracker tests.

This module contains:
- MockFileSystem: In-memory filesystem for testing without actual I/O
- FakeClock: Manually advanced time source for the timer
- FakeScheduler: Records repeating tick registrations instead of running them
- Shared fixtures available to all test modules
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from game_time_tracker.config import Config


class MockFileSystem:
    """
    In-memory file system for testing.

    Simulates a file system using dictionaries:
    - _files: dict mapping path -> content (str)
    - _dirs: set of directory paths
    - _read_only: paths whose writes raise PermissionError
    - _unreadable: paths whose reads raise OSError

    FEATURES:
    - No actual I/O operations
    - Fast test execution
    - Easy to inspect state
    - Supports read and write failure simulation
    """

    def __init__(self) -> None:
        """
        Initialize empty mock file system.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.list_files()
            []
        """
        self._files: dict[str, str] = {}
        self._dirs: set[str] = set()
        self._read_only: set[str] = set()
        self._unreadable: set[str] = set()

    def exists(self, path: str) -> bool:
        """
        Check if path exists in mock filesystem.

        Business context: StorageManager checks for an existing store
        before seeding an empty one.

        Args:
            path: Absolute path to check.

        Returns:
            True if path is a known file or directory.
        """
        return path in self._files or path in self._dirs

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create mock directory and parent directories.

        Args:
            path: Absolute path of directory to create.
            exist_ok: If True, don't raise if directory exists.

        Raises:
            OSError: If directory exists and exist_ok is False,
                or if path is an existing file.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.makedirs('/data/backup', exist_ok=True)
            >>> fs.list_dirs()
            ['/data', '/data/backup']
        """
        if path in self._dirs:
            if not exist_ok:
                raise OSError(f"Directory exists: {path}")
            return

        if path in self._files:
            raise OSError(f"Path is a file, not directory: {path}")

        parts = path.rstrip("/").split("/")
        for i in range(1, len(parts) + 1):
            parent = "/".join(parts[:i])
            if parent:
                self._dirs.add(parent)

    def read_text(self, path: str, _encoding: str = "utf-8") -> str:
        """
        Read mock file contents.

        Raises:
            FileNotFoundError: If path not in _files.
            OSError: If path was marked unreadable.
        """
        if path in self._unreadable:
            raise OSError(f"I/O error: {path}")
        if path not in self._files:
            raise FileNotFoundError(f"No such file: {path}")
        return self._files[path]

    def write_text(self, path: str, content: str, _encoding: str = "utf-8") -> None:
        """
        Write text to mock file, creating parent directories.

        Raises:
            PermissionError: If path is marked read-only.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.write_text('/data/sessions.json', '{}')
            >>> fs.get_file('/data/sessions.json')
            '{}'
        """
        if path in self._read_only:
            raise PermissionError(f"Permission denied: {path}")

        parent = "/".join(path.rstrip("/").split("/")[:-1])
        if parent and parent not in self._dirs:
            self.makedirs(parent, exist_ok=True)

        self._files[path] = content

    def replace(self, src: str, dst: str) -> None:
        """
        Move src over dst, overwriting it.

        Business context: StorageManager writes a temporary file and then
        replaces the store with it, so a failed write leaves the old store.

        Raises:
            FileNotFoundError: If src doesn't exist.
            PermissionError: If dst is marked read-only.
        """
        if src not in self._files:
            raise FileNotFoundError(f"No such file: {src}")
        if dst in self._read_only:
            raise PermissionError(f"Permission denied: {dst}")
        self._files[dst] = self._files.pop(src)

    def remove(self, path: str) -> None:
        """
        Remove a mock file.

        Raises:
            FileNotFoundError: If path not in _files.
        """
        if path not in self._files:
            raise FileNotFoundError(f"No such file: {path}")
        del self._files[path]
        self._read_only.discard(path)

    # =========================================================================
    # TEST HELPERS
    # =========================================================================

    def get_file(self, path: str) -> str | None:
        """File content, or None if the file doesn't exist."""
        return self._files.get(path)

    def set_file(self, path: str, content: str) -> None:
        """Set file content directly (delegates to write_text)."""
        self.write_text(path, content)

    def set_read_only(self, path: str) -> None:
        """Make later writes to path raise PermissionError."""
        self._read_only.add(path)

    def set_unreadable(self, path: str) -> None:
        """Make later reads of path raise OSError."""
        self._unreadable.add(path)

    def list_files(self) -> list[str]:
        """Sorted list of all file paths."""
        return sorted(self._files.keys())

    def list_dirs(self) -> list[str]:
        """Sorted list of all directory paths."""
        return sorted(self._dirs)


class FakeClock:
    """
    Manually advanced time source.

    Example:
        >>> clock = FakeClock()
        >>> clock.advance(seconds=90)
        >>> clock.now().isoformat()
        '2024-01-01T12:01:30+00:00'
    """

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        """Move forward by a timedelta built from kwargs."""
        self.current = self.current + timedelta(**kwargs)


class FakeHandle:
    """Tick handle that counts cancel() calls."""

    def __init__(self) -> None:
        self.cancel_count = 0

    @property
    def cancelled(self) -> bool:
        return self.cancel_count > 0

    def cancel(self) -> None:
        self.cancel_count += 1


class FakeScheduler:
    """
    Scheduler that records registrations; tests fire ticks with fire().

    fire() runs the callbacks of every handle that hasn't been cancelled,
    the way a real scheduler would keep calling them.
    """

    def __init__(self) -> None:
        self.registrations: list[tuple[float, Callable[[], None], FakeHandle]] = []

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle()
        self.registrations.append((interval, callback, handle))
        return handle

    @property
    def handles(self) -> list[FakeHandle]:
        return [handle for _, _, handle in self.registrations]

    def fire(self) -> None:
        for _, callback, handle in list(self.registrations):
            if not handle.cancelled:
                callback()


def session_dict(
    game: str = "valorant",
    date: str = "2024-01-01",
    duration: Any = 30,
    metadata: Any = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build a wire-form session dict with sensible defaults."""
    data: dict[str, Any] = {
        "game": game,
        "date": date,
        "startTime": f"{date}T10:00:00+00:00",
        "endTime": f"{date}T11:00:00+00:00",
        "durationMinutes": duration,
        "metadata": metadata if metadata is not None else {},
    }
    data.update(extra)
    return data


@pytest.fixture(autouse=True)
def reset_config_overrides() -> Iterator[None]:
    """Clear Config test overrides after every test."""
    yield
    Config.reset_test_overrides()


@pytest.fixture
def mock_fs() -> MockFileSystem:
    """
    Create a MockFileSystem for testing.

    Provides a fresh in-memory filesystem instance for each test,
    ensuring test isolation without actual disk I/O.

    Example:
        >>> def test_storage(mock_fs):
        ...     mock_fs.set_file('/data/sessions.json', '{}')
    """
    return MockFileSystem()


@pytest.fixture
def clock() -> FakeClock:
    """FakeClock starting at 2024-01-01 12:00 UTC."""
    return FakeClock()


@pytest.fixture
def scheduler() -> FakeScheduler:
    """Fresh FakeScheduler with no registrations."""
    return FakeScheduler()


@pytest.fixture
def sample_sessions() -> list[dict[str, Any]]:
    """
    Two sessions on one day: 30 min of matches plus 45 min of aim training.

    Totals 75 minutes with an average of 37.5.
    """
    return [
        session_dict(
            "valorant",
            "2024-01-01",
            30,
            {"matchTypes": {"competitive": 2, "deathmatch": 1}},
            id="v1",
        ),
        session_dict("kovaaks", "2024-01-01", 45, {"aimType": "static-clicking"}, id="k1"),
    ]
