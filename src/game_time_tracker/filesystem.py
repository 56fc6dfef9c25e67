"""
FileSystem abstraction for Game Time Tracker.

PURPOSE: Injectable file system interface so storage can be tested in memory.

DESIGN:
- Protocol defines the handful of operations the store and exporter need
- RealFileSystem delegates to os / open()
- MockFileSystem in tests/conftest.py keeps files in a dict

USAGE:
    storage = StorageManager(filesystem=RealFileSystem())
    storage = StorageManager(storage_dir="/test", filesystem=mock_fs)  # tests
"""

from __future__ import annotations

import os
from typing import Protocol

__all__ = ["FileSystem", "RealFileSystem"]


class FileSystem(Protocol):
    """
    Protocol for file system operations.

    All paths are plain strings. Implementations raise the same built-in
    exceptions the os module would (FileNotFoundError, PermissionError,
    OSError) so callers can handle both alike.
    """

    def exists(self, path: str) -> bool:
        """Return True if path is an existing file or directory."""
        ...

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create a directory and any missing parents.

        Raises:
            OSError: If the directory exists and exist_ok is False.
        """
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """
        Read a whole file as text.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """
        Write text to a file, replacing any previous content.

        Raises:
            PermissionError: If the file cannot be written.
        """
        ...

    def replace(self, src: str, dst: str) -> None:
        """
        Move src over dst, overwriting dst if present.

        Used to publish a fully written temporary file in one step.

        Raises:
            FileNotFoundError: If src does not exist.
        """
        ...

    def remove(self, path: str) -> None:
        """
        Delete a file.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        ...


class RealFileSystem:
    """Production file system backed by the os module."""

    def exists(self, path: str) -> bool:  # pragma: no cover
        return os.path.exists(path)

    def makedirs(self, path: str, exist_ok: bool = False) -> None:  # pragma: no cover
        os.makedirs(path, exist_ok=exist_ok)

    def read_text(self, path: str, encoding: str = "utf-8") -> str:  # pragma: no cover
        with open(path, encoding=encoding) as f:
            return f.read()

    def write_text(
        self, path: str, content: str, encoding: str = "utf-8"
    ) -> None:  # pragma: no cover
        with open(path, "w", encoding=encoding, newline="") as f:
            f.write(content)

    def replace(self, src: str, dst: str) -> None:  # pragma: no cover
        os.replace(src, dst)

    def remove(self, path: str) -> None:  # pragma: no cover
        os.remove(path)
