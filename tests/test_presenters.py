"""Tests for presenters module."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from conftest import MockFileSystem, session_dict

from game_time_tracker.errors import PersistenceError
from game_time_tracker.models import GameSession
from game_time_tracker.presenters import (
    ChartPresenter,
    DashboardPresenter,
    StatItem,
    StatsViewModel,
    format_aim_type,
    format_match_type,
    format_minutes,
)
from game_time_tracker.statistics import DailyTotal, SessionAggregator, SummaryStats
from game_time_tracker.storage import StorageManager


def _has_matplotlib() -> bool:
    """Check if matplotlib is available for chart tests.

    Returns:
        True if matplotlib can be imported, False otherwise.
    """
    try:
        import matplotlib  # noqa: F401

        return True
    except ImportError:
        return False


@pytest.fixture
def storage(mock_fs: MockFileSystem) -> StorageManager:
    return StorageManager(storage_dir="/dash", filesystem=mock_fs)


def stored(storage: StorageManager, sessions: list[dict[str, Any]]) -> StorageManager:
    storage.save_sessions([GameSession.from_dict(s) for s in sessions])
    return storage


class TestFormatting:
    """Tests for display formatting helpers."""

    @pytest.mark.parametrize(
        ("minutes", "expected"),
        [
            (0, "0h 0m"),
            (45, "0h 45m"),
            (75, "1h 15m"),
            (37.5, "0h 38m"),
            (59.6, "1h 0m"),
            (120, "2h 0m"),
        ],
    )
    def test_format_minutes(self, minutes: float, expected: str) -> None:
        assert format_minutes(minutes) == expected

    def test_format_match_type(self) -> None:
        assert format_match_type("spike-rush") == "Spike-rush"
        assert format_match_type("competitive") == "Competitive"

    def test_format_aim_type(self) -> None:
        assert format_aim_type("static-clicking") == "Static Clicking"
        assert format_aim_type("tracking") == "Tracking"


class TestStatsViewModel:
    """Tests for StatsViewModel."""

    def test_defaults_have_no_data(self) -> None:
        view = StatsViewModel()
        assert not view.has_data
        assert view.error is None

    def test_has_data(self) -> None:
        assert StatsViewModel(total_sessions=1).has_data


class TestDashboardPresenter:
    """Tests for DashboardPresenter.

    Categories:
    1. Summary items with per-game labels
    2. Breakdown filtering of zero entries
    3. Store failures become an error message
    """

    def test_build_view_summary(self) -> None:
        """Verifies the summary grid lists totals then one entry per game.

        Business context:
        The player reads total and average time at a glance, then how it
        splits between the match game and the aim trainer.

        Arrangement:
        SummaryStats for 75 minutes over two sessions.

        Assertion Strategy:
        Labels appear in order with "Xh Ym" values and display names.
        """
        stats = SummaryStats(
            total_sessions=2,
            total_time_minutes=75,
            avg_session_minutes=37.5,
            game_breakdown={"valorant": 30, "kovaaks": 45},
        )
        presenter = DashboardPresenter(MagicMock(), SessionAggregator())

        view = presenter.build_view(stats)

        assert view.summary == [
            StatItem("Total Sessions", "2"),
            StatItem("Total Time", "1h 15m"),
            StatItem("Average Session", "0h 38m"),
            StatItem("Valorant", "0h 30m"),
            StatItem("Kovaaks Aim Trainer", "0h 45m"),
        ]

    def test_build_view_filters_zero_breakdowns(self) -> None:
        stats = SummaryStats(
            total_sessions=1,
            match_type_breakdown={"deathmatch": 0, "competitive": 3},
            aim_type_breakdown={"tracking": 0, "static-clicking": 20},
        )
        view = DashboardPresenter(MagicMock(), SessionAggregator()).build_view(stats)

        assert view.match_types == [StatItem("Competitive", "3 matches")]
        assert view.aim_types == [StatItem("Static Clicking", "0h 20m")]

    def test_get_stats_view_from_store(
        self, storage: StorageManager, sample_sessions: list[dict[str, Any]]
    ) -> None:
        stored(storage, sample_sessions)
        view = DashboardPresenter(storage, SessionAggregator()).get_stats_view()

        assert view.total_sessions == 2
        assert view.error is None
        assert StatItem("Deathmatch", "1 matches") in view.match_types

    def test_get_stats_view_empty_store(self, storage: StorageManager) -> None:
        view = DashboardPresenter(storage, SessionAggregator()).get_stats_view()
        assert not view.has_data

    def test_get_stats_view_store_failure(self) -> None:
        failing = MagicMock(spec=StorageManager)
        failing.load_sessions.side_effect = PersistenceError("disk gone")

        view = DashboardPresenter(failing, SessionAggregator()).get_stats_view()

        assert view.error == "Error loading data. Please try again later."
        assert view.summary == []

    def test_get_daily_totals(self, storage: StorageManager) -> None:
        stored(
            storage,
            [session_dict("valorant", "2024-01-02", 10), session_dict("kovaaks", "2024-01-01", 5)],
        )
        daily = DashboardPresenter(storage, SessionAggregator()).get_daily_totals()
        assert [d.date for d in daily] == ["2024-01-01", "2024-01-02"]


class TestChartPresenter:
    """Tests for ChartPresenter."""

    def test_chart_data(self) -> None:
        """One dataset per registered game, zero where a date has no minutes."""
        daily = [
            DailyTotal("2024-01-01", {"valorant": 30, "kovaaks": 0}),
            DailyTotal("2024-01-02", {"valorant": 0, "kovaaks": 45}),
        ]
        data = ChartPresenter(MagicMock(), SessionAggregator()).chart_data(daily)

        assert data["labels"] == ["2024-01-01", "2024-01-02"]
        assert data["datasets"] == [
            {"game": "valorant", "label": "Valorant", "data": [30, 0]},
            {"game": "kovaaks", "label": "Kovaaks Aim Trainer", "data": [0, 45]},
        ]

    def test_chart_data_missing_game_is_zero(self) -> None:
        daily = [DailyTotal("2024-01-01", {})]
        data = ChartPresenter(MagicMock(), SessionAggregator()).chart_data(daily)
        assert [d["data"] for d in data["datasets"]] == [[0], [0]]

    @pytest.mark.skipif(not _has_matplotlib(), reason="matplotlib not installed")
    def test_render_daily_chart(
        self, storage: StorageManager, sample_sessions: list[dict[str, Any]]
    ) -> None:
        stored(storage, sample_sessions)
        png = ChartPresenter(storage, SessionAggregator()).render_daily_chart()
        assert png.startswith(b"\x89PNG")

    @pytest.mark.skipif(not _has_matplotlib(), reason="matplotlib not installed")
    def test_render_empty_chart(self, storage: StorageManager) -> None:
        png = ChartPresenter(storage, SessionAggregator()).render_daily_chart()
        assert png.startswith(b"\x89PNG")

    @pytest.mark.skipif(not _has_matplotlib(), reason="matplotlib not installed")
    def test_render_chart_store_failure(self) -> None:
        """An unreadable store still yields an image, not an exception."""
        failing = MagicMock(spec=StorageManager)
        failing.load_sessions.side_effect = PersistenceError("disk gone")

        png = ChartPresenter(failing, SessionAggregator()).render_daily_chart()

        assert png.startswith(b"\x89PNG")
