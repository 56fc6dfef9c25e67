"""HTTP client for a remote Game Time Tracker session store."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from .config import Config
from .errors import PersistenceError, ValidationError
from .models import GameSession

__all__ = ["HttpSessionStore"]

logger = logging.getLogger(__name__)


class HttpSessionStore:
    """
    Session store reached over the /api/sessions/* JSON endpoints.

    Offers the same save_sessions/load_sessions pair as StorageManager so
    the controller can use either. No retries: a failed call raises and the
    caller decides whether to fall back to the local cache.
    """

    SAVE_PATH = "/api/sessions/save"
    LOAD_PATH = "/api/sessions/load"
    STATS_PATH = "/api/sessions/stats"

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout or Config.REQUEST_TIMEOUT_SECONDS,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        logger.info(f"Session store client using {self.base_url}")

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpSessionStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise PersistenceError(f"Session store unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        error = data.get("error") if isinstance(data, dict) else None
        if response.status_code == 400:
            raise ValidationError(error or "Invalid sessions data")
        if response.is_error:
            logger.error(f"{method} {path} returned {response.status_code}")
            raise PersistenceError(error or f"Session store returned HTTP {response.status_code}")
        if not isinstance(data, dict):
            raise PersistenceError(f"Unexpected response body from {path}")
        return data

    def save_sessions(self, sessions: Sequence[GameSession]) -> int:
        """
        Replace the remote collection.

        Returns:
            Number of sessions sent.

        Raises:
            ValidationError: If the server rejects the payload.
            PersistenceError: On transport failure or a server error.
        """
        self._request(
            "POST",
            self.SAVE_PATH,
            json={"sessions": [s.to_dict() for s in sessions]},
        )
        logger.info(f"Saved {len(sessions)} sessions to {self.base_url}")
        return len(sessions)

    def load_sessions(self) -> list[GameSession]:
        """
        Fetch the full remote collection.

        Raises:
            PersistenceError: On transport failure, a server error, or a
                body without a sessions array.
        """
        data = self._request("GET", self.LOAD_PATH)
        sessions = data.get("sessions")
        if not isinstance(sessions, list):
            raise PersistenceError("Load response has no sessions array")
        return [GameSession.from_dict(item) for item in sessions if isinstance(item, dict)]

    def get_stats(self) -> dict[str, Any]:
        """Fetch the server-side summary statistics."""
        data = self._request("GET", self.STATS_PATH)
        stats = data.get("stats")
        if not isinstance(stats, dict):
            raise PersistenceError("Stats response has no stats object")
        return stats
