"""Tests for web module."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest
from conftest import MockFileSystem, session_dict

# Skip all tests if FastAPI not installed
fastapi = pytest.importorskip("fastapi")

if TYPE_CHECKING:
    from fastapi.testclient import TestClient

from game_time_tracker.storage import StorageManager  # noqa: E402
from game_time_tracker.web import create_app  # noqa: E402

STORAGE_DIR = "/web"
SESSIONS_PATH = f"{STORAGE_DIR}/sessions.json"


@pytest.fixture
def storage(mock_fs: MockFileSystem) -> StorageManager:
    return StorageManager(storage_dir=STORAGE_DIR, filesystem=mock_fs)


@pytest.fixture
def client(storage: StorageManager) -> Iterator[TestClient]:
    """Create a test client whose routes all read the in-memory store.

    Business context:
    The JSON endpoints are what tracking clients save to and load from;
    the HTML routes are what the player looks at. Both must see the same
    collection.

    Returns:
        TestClient wrapping a fresh app, with get_storage patched to the
        MockFileSystem-backed StorageManager.
    """
    from fastapi.testclient import TestClient as TC

    with patch("game_time_tracker.web.routes.get_storage", return_value=storage):
        yield TC(create_app())


class TestWebAppCreation:
    """Tests for the application factory."""

    def test_create_app_returns_fastapi(self) -> None:
        from fastapi import FastAPI

        assert isinstance(create_app(), FastAPI)

    def test_app_has_routes(self) -> None:
        paths = {getattr(route, "path", None) for route in create_app().routes}
        assert {
            "/api/sessions/save",
            "/api/sessions/load",
            "/api/sessions/stats",
            "/api/sessions/daily",
            "/",
            "/partials/stats",
            "/partials/daily-chart",
            "/charts/daily.png",
        } <= paths


class TestSaveEndpoint:
    """Tests for POST /api/sessions/save.

    Categories:
    1. Success replaces the collection
    2. Malformed bodies are rejected with 400
    3. Store failures surface as 500
    """

    def test_save_success(self, client: TestClient, storage: StorageManager) -> None:
        """Verifies a valid body is stored and acknowledged.

        Business context:
        Saving is bulk replace: the client sends everything it has and the
        server keeps exactly that.

        Arrangement:
        Store already holds one session that the new body does not include.

        Action:
        POST two sessions.

        Assertion Strategy:
        200 with the success message; the store now holds only the two
        posted sessions.
        """
        client.post("/api/sessions/save", json={"sessions": [session_dict(id="old")]})

        response = client.post(
            "/api/sessions/save",
            json={"sessions": [session_dict("valorant"), session_dict("kovaaks")]},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Sessions saved successfully"}
        assert [s.game for s in storage.load_sessions()] == ["valorant", "kovaaks"]

    def test_save_empty_list(self, client: TestClient, storage: StorageManager) -> None:
        client.post("/api/sessions/save", json={"sessions": [session_dict()]})
        response = client.post("/api/sessions/save", json={"sessions": []})
        assert response.status_code == 200
        assert storage.load_sessions() == []

    @pytest.mark.parametrize(
        "body",
        [{}, {"sessions": "nope"}, {"sessions": {"a": 1}}, [1, 2], {"sessions": [1]}],
    )
    def test_save_rejects_bad_body(self, client: TestClient, body: Any) -> None:
        response = client.post("/api/sessions/save", json=body)
        assert response.status_code == 400
        assert "error" in response.json()

    def test_save_rejects_invalid_json(self, client: TestClient) -> None:
        response = client.post(
            "/api/sessions/save",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid sessions data"}

    def test_rejected_save_keeps_store(self, client: TestClient, storage: StorageManager) -> None:
        client.post("/api/sessions/save", json={"sessions": [session_dict()]})
        client.post("/api/sessions/save", json={"sessions": None})
        assert len(storage.load_sessions()) == 1

    def test_save_store_failure(self, client: TestClient, mock_fs: MockFileSystem) -> None:
        mock_fs.set_read_only(SESSIONS_PATH)
        response = client.post("/api/sessions/save", json={"sessions": [session_dict()]})
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save sessions"}


class TestReadEndpoints:
    """Tests for the load, stats and daily endpoints."""

    def test_load_empty(self, client: TestClient) -> None:
        response = client.get("/api/sessions/load")
        assert response.status_code == 200
        assert response.json() == {"sessions": []}

    def test_load_returns_metadata_objects(self, client: TestClient) -> None:
        """Metadata round-trips as an object, never as a JSON string."""
        client.post(
            "/api/sessions/save",
            json={"sessions": [session_dict("kovaaks", metadata={"aimType": "tracking"})]},
        )

        sessions = client.get("/api/sessions/load").json()["sessions"]

        assert sessions[0]["metadata"] == {"aimType": "tracking"}
        assert sessions[0]["durationMinutes"] == 30

    def test_load_failure(self, client: TestClient, mock_fs: MockFileSystem) -> None:
        mock_fs.set_file(SESSIONS_PATH, "{corrupt")
        response = client.get("/api/sessions/load")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to load sessions"}

    def test_stats(self, client: TestClient, sample_sessions: list[dict[str, Any]]) -> None:
        client.post("/api/sessions/save", json={"sessions": sample_sessions})

        stats = client.get("/api/sessions/stats").json()["stats"]

        assert stats["totalSessions"] == 2
        assert stats["totalTimeMinutes"] == 75
        assert stats["avgSessionMinutes"] == 37.5
        assert stats["gameBreakdown"] == {"valorant": 30, "kovaaks": 45}
        assert stats["matchTypeBreakdown"]["competitive"] == 2
        assert stats["aimTypeBreakdown"]["static-clicking"] == 45

    def test_stats_key_names(self, client: TestClient) -> None:
        """Breakdowns use the generic key names, not the per-game legacy ones."""
        stats = client.get("/api/sessions/stats").json()["stats"]
        assert set(stats) == {
            "totalSessions",
            "totalTimeMinutes",
            "avgSessionMinutes",
            "gameBreakdown",
            "matchTypeBreakdown",
            "aimTypeBreakdown",
        }

    def test_stats_failure(self, client: TestClient, mock_fs: MockFileSystem) -> None:
        mock_fs.set_unreadable(SESSIONS_PATH)
        response = client.get("/api/sessions/stats")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to get stats"}

    def test_daily(self, client: TestClient) -> None:
        client.post(
            "/api/sessions/save",
            json={
                "sessions": [
                    session_dict("kovaaks", "2024-01-02", 20),
                    session_dict("valorant", "2024-01-01", 10),
                ]
            },
        )

        daily = client.get("/api/sessions/daily").json()["daily"]

        assert [d["date"] for d in daily] == ["2024-01-01", "2024-01-02"]


class TestDashboardPage:
    """Tests for the summary page and its partials."""

    def test_dashboard_page_returns_html(self, client: TestClient) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "<title>Game Time Tracker - Summary</title>" in response.text
        assert 'hx-get="/partials/stats"' in response.text
        assert '<img src="/charts/daily.png"' in response.text

    def test_stats_partial_empty(self, client: TestClient) -> None:
        response = client.get("/partials/stats")
        assert "No sessions recorded yet" in response.text

    def test_stats_partial_with_data(
        self, client: TestClient, sample_sessions: list[dict[str, Any]]
    ) -> None:
        """Verifies the panel shows formatted totals and the breakdown sections.

        Arrangement:
        Store holds a 30-minute match session and a 45-minute aim session.

        Assertion Strategy:
        Totals are in "Xh Ym" form and both breakdown headings appear with
        display labels.
        """
        client.post("/api/sessions/save", json={"sessions": sample_sessions})

        text = client.get("/partials/stats").text

        assert "Summary Statistics" in text
        assert "1h 15m" in text
        assert "0h 38m" in text
        assert "Valorant Match Types" in text
        assert "2 matches" in text
        assert "Aim Training Breakdown" in text
        assert "Static Clicking" in text

    def test_stats_partial_hides_empty_breakdowns(self, client: TestClient) -> None:
        client.post("/api/sessions/save", json={"sessions": [session_dict("valorant")]})
        text = client.get("/partials/stats").text
        assert "Valorant Match Types" not in text
        assert "Aim Training Breakdown" not in text

    def test_stats_partial_error(self, client: TestClient, mock_fs: MockFileSystem) -> None:
        mock_fs.set_unreadable(SESSIONS_PATH)
        text = client.get("/partials/stats").text
        assert '<div class="error">' in text
        assert "Error loading data" in text

    def test_daily_chart_partial_has_timestamp(self, client: TestClient) -> None:
        text = client.get("/partials/daily-chart").text
        assert "/charts/daily.png?t=" in text


class TestChartRoute:
    """Tests for /charts/daily.png."""

    def test_chart_png(self, client: TestClient) -> None:
        pytest.importorskip("matplotlib")
        client.post("/api/sessions/save", json={"sessions": [session_dict()]})

        response = client.get("/charts/daily.png")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content.startswith(b"\x89PNG")

    def test_chart_fallback_without_matplotlib(self, client: TestClient) -> None:
        with patch(
            "game_time_tracker.presenters.ChartPresenter.render_daily_chart",
            side_effect=ImportError("No module named 'matplotlib'"),
        ):
            response = client.get("/charts/daily.png")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert b"install matplotlib" in response.content


class TestRunServer:
    """Tests for the uvicorn launcher."""

    def test_run_server_calls_uvicorn(self) -> None:
        from game_time_tracker.web.app import run_server

        with patch("game_time_tracker.web.app.uvicorn.run") as mock_run:
            run_server(host="0.0.0.0", port=8080)

        mock_run.assert_called_once()
        args, kwargs = mock_run.call_args
        assert args[0] == "game_time_tracker.web.app:create_app"
        assert kwargs["factory"] is True
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 8080
