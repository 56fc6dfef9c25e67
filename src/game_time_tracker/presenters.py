"""
Presenters for the Game Time Tracker dashboard.

PURPOSE: Testable layer between the session store and the HTML/PNG output.
AI CONTEXT: Pure data transformation plus matplotlib rendering - no routing.

DESIGN PRINCIPLES:
1. Presenters receive storage and aggregator, return view models or bytes
2. No dependencies on FastAPI
3. Store failures become an error message on the view model, not an exception

USAGE:
    presenter = DashboardPresenter(storage, aggregator)
    view = presenter.get_stats_view()
    png = ChartPresenter(storage, aggregator).render_daily_chart()
"""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .config import Config
from .errors import PersistenceError

if TYPE_CHECKING:
    from .statistics import DailyTotal, SessionAggregator, SummaryStats
    from .storage import StorageManager

__all__ = [
    "StatItem",
    "StatsViewModel",
    "DashboardPresenter",
    "ChartPresenter",
    "format_minutes",
    "format_match_type",
    "format_aim_type",
]

logger = logging.getLogger(__name__)

# Bar fill and border colors, cycled per game series.
SERIES_COLORS: tuple[tuple[str, str], ...] = (
    ("#7289dacc", "#7289da"),
    ("#43b581cc", "#43b581"),
    ("#f04747cc", "#f04747"),
    ("#faa61acc", "#faa61a"),
    ("#72e0ebcc", "#72e0eb"),
    ("#be82ffcc", "#be82ff"),
)

CHART_BACKGROUND = "#1e1e1e"
CHART_TEXT = "#e0e0e0"
CHART_MUTED = "#b0b0b0"
CHART_GRID = "#464646"


def format_minutes(minutes: float) -> str:
    """
    Format a minute count as "Xh Ym".

    Whole hours are floored; the remaining minutes are rounded, so an
    average of 37.5 minutes shows as "0h 38m".

    Example:
        >>> format_minutes(75)
        '1h 15m'
        >>> format_minutes(37.5)
        '0h 38m'
    """
    hours = int(minutes // 60)
    rest = math.floor(minutes % 60 + 0.5)
    if rest == 60:
        hours, rest = hours + 1, 0
    return f"{hours}h {rest}m"


def format_match_type(label: str) -> str:
    """Capitalize the first letter: "spike-rush" -> "Spike-rush"."""
    return label[:1].upper() + label[1:]


def format_aim_type(label: str) -> str:
    """Title-case each dash-separated word: "static-clicking" -> "Static Clicking"."""
    return " ".join(word[:1].upper() + word[1:] for word in label.split("-"))


@dataclass
class StatItem:
    """One labelled figure in a stats grid."""

    label: str
    value: str


@dataclass
class StatsViewModel:
    """
    Display-ready summary statistics.

    ATTRIBUTES:
    - summary: totals and per-game figures (always present when there is data)
    - match_types: tactical-shooter match counts, only non-zero entries
    - aim_types: aim-training minutes per type, only non-zero entries
    - error: message shown when the store couldn't be read
    """

    total_sessions: int = 0
    summary: list[StatItem] = field(default_factory=list)
    match_types: list[StatItem] = field(default_factory=list)
    aim_types: list[StatItem] = field(default_factory=list)
    error: str | None = None

    @property
    def has_data(self) -> bool:
        return self.total_sessions > 0


class DashboardPresenter:
    """Builds stats view models from the stored collection."""

    def __init__(self, storage: StorageManager, aggregator: SessionAggregator) -> None:
        self.storage = storage
        self.aggregator = aggregator

    def get_stats(self) -> SummaryStats:
        """
        Summary statistics of the stored collection.

        Raises:
            PersistenceError: If the store can't be read.
        """
        return self.aggregator.summarize(self.storage.load_sessions())

    def get_stats_view(self) -> StatsViewModel:
        """
        Build the stats panel view model.

        Returns:
            StatsViewModel; on a store failure its error is set and the
            lists are empty.
        """
        try:
            stats = self.get_stats()
        except PersistenceError as e:
            logger.error(f"Dashboard could not load sessions: {e}")
            return StatsViewModel(error="Error loading data. Please try again later.")
        return self.build_view(stats)

    def build_view(self, stats: SummaryStats) -> StatsViewModel:
        """Turn SummaryStats into labelled display items."""
        summary = [
            StatItem("Total Sessions", str(stats.total_sessions)),
            StatItem("Total Time", format_minutes(stats.total_time_minutes)),
            StatItem("Average Session", format_minutes(stats.avg_session_minutes)),
        ]
        summary.extend(
            StatItem(Config.game_label(game), format_minutes(minutes))
            for game, minutes in stats.game_breakdown.items()
        )
        match_types = [
            StatItem(format_match_type(label), f"{count} matches")
            for label, count in stats.match_type_breakdown.items()
            if count > 0
        ]
        aim_types = [
            StatItem(format_aim_type(label), format_minutes(minutes))
            for label, minutes in stats.aim_type_breakdown.items()
            if minutes > 0
        ]
        return StatsViewModel(
            total_sessions=stats.total_sessions,
            summary=summary,
            match_types=match_types,
            aim_types=aim_types,
        )

    def get_daily_totals(self) -> list[DailyTotal]:
        """
        Daily per-game minutes of the stored collection.

        Raises:
            PersistenceError: If the store can't be read.
        """
        return self.aggregator.group_by_date_and_game(self.storage.load_sessions())


class ChartPresenter:
    """
    Renders the daily trend chart.

    Uses matplotlib for server-side rendering, imported lazily so the rest
    of the package works without it.
    """

    def __init__(self, storage: StorageManager, aggregator: SessionAggregator) -> None:
        self.storage = storage
        self.aggregator = aggregator

    def chart_data(self, daily: list[DailyTotal]) -> dict[str, Any]:
        """
        Arrange daily totals as labels plus one series per registered game.

        Example:
            >>> presenter.chart_data(daily)
            {'labels': ['2024-01-01'], 'datasets': [{'game': 'valorant',
             'label': 'Valorant', 'data': [30]}, ...]}
        """
        labels = [d.date for d in daily]
        datasets = [
            {
                "game": game,
                "label": Config.game_label(game),
                "data": [d.minutes.get(game, 0) for d in daily],
            }
            for game in self.aggregator.games
        ]
        return {"labels": labels, "datasets": datasets}

    def render_daily_chart(self) -> bytes:
        """
        Render minutes per day and game as a grouped bar chart PNG.

        Returns:
            PNG bytes. Shows a "No data available" placeholder when the
            store is empty or unreadable.

        Raises:
            ImportError: If matplotlib is not installed. Callers fall back
                to a placeholder SVG.
        """
        import matplotlib

        matplotlib.use("Agg")  # Non-interactive backend
        import matplotlib.pyplot as plt

        try:
            daily = self.aggregator.group_by_date_and_game(self.storage.load_sessions())
        except PersistenceError as e:
            logger.error(f"Chart could not load sessions: {e}")
            daily = []

        fig, ax = plt.subplots(figsize=(9, 4))
        fig.patch.set_facecolor(CHART_BACKGROUND)
        ax.set_facecolor(CHART_BACKGROUND)

        if not daily:
            ax.text(
                0.5, 0.5, "No data available", ha="center", va="center",
                fontsize=14, color=CHART_MUTED,
            )
            ax.axis("off")
        else:
            data = self.chart_data(daily)
            count = len(data["datasets"])
            width = 0.8 / max(count, 1)
            positions = range(len(data["labels"]))

            for index, dataset in enumerate(data["datasets"]):
                fill, border = SERIES_COLORS[index % len(SERIES_COLORS)]
                offset = (index - (count - 1) / 2) * width
                ax.bar(
                    [p + offset for p in positions],
                    dataset["data"],
                    width=width,
                    color=fill,
                    edgecolor=border,
                    linewidth=2,
                    label=dataset["label"],
                )

            ax.set_xticks(list(positions))
            ax.set_xticklabels(data["labels"], rotation=45, ha="right", color=CHART_MUTED)
            ax.set_xlabel("Date", color=CHART_MUTED)
            ax.set_ylabel("Minutes", color=CHART_MUTED)
            ax.set_ylim(bottom=0)
            ax.tick_params(colors=CHART_MUTED)
            ax.grid(axis="y", color=CHART_GRID, alpha=0.3)
            ax.set_title("Daily Gaming Time", color=CHART_TEXT, fontweight="bold")
            legend = ax.legend(loc="upper left", facecolor=CHART_BACKGROUND, edgecolor="#444")
            for text in legend.get_texts():
                text.set_color(CHART_TEXT)
            for spine in ax.spines.values():
                spine.set_color("#333")

        buf = io.BytesIO()
        plt.tight_layout()
        plt.savefig(buf, format="png", dpi=100, bbox_inches="tight", facecolor=CHART_BACKGROUND)
        plt.close(fig)
        buf.seek(0)
        return buf.read()
