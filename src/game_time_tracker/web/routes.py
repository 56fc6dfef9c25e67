"""
FastAPI routes for Game Time Tracker.

PURPOSE: Thin route handlers that delegate to the session service and
presenters.
AI CONTEXT: Routes should be simple - validation and aggregation live in
SessionService and the presenters.

ROUTE STRUCTURE:
- /api/sessions/* : JSON session store (save, load, stats, daily)
- / : Summary page (full HTML)
- /partials/stats : htmx partial update of the stats panel
- /charts/daily.png : Daily trend chart image
"""

from __future__ import annotations

import html
import logging
import time
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from ..presenters import ChartPresenter, DashboardPresenter, StatsViewModel
from ..session_service import ServiceResult, SessionService
from ..statistics import SessionAggregator
from ..storage import StorageManager

__all__ = [
    "router",
    "get_storage",
    "get_aggregator",
    "get_session_service",
    "get_dashboard_presenter",
    "get_chart_presenter",
]

logger = logging.getLogger(__name__)

router = APIRouter()

# =============================================================================
# CSS Styles
# =============================================================================

_DASHBOARD_CSS = """
:root {
    --bg: #121212;
    --surface: #1e1e1e;
    --border: #333;
    --text: #e0e0e0;
    --text-muted: #b0b0b0;
    --primary: #7289da;
    --success: #43b581;
    --danger: #f04747;
}
* { box-sizing: border-box; margin: 0; padding: 0; }
body {
    font-family: system-ui, -apple-system, sans-serif;
    background: var(--bg);
    color: var(--text);
    line-height: 1.6;
    padding: 1rem;
}
.container { max-width: 1100px; margin: 0 auto; }
header {
    display: flex;
    justify-content: space-between;
    align-items: center;
    margin-bottom: 1.5rem;
    padding-bottom: 1rem;
    border-bottom: 1px solid var(--border);
}
h1 { font-size: 1.5rem; font-weight: 600; }
h3 { font-size: 0.95rem; color: var(--text-muted); margin: 1rem 0 0.5rem; }
.refresh-indicator { color: var(--text-muted); font-size: 0.875rem; }
.panel {
    background: var(--surface);
    border: 1px solid var(--border);
    border-radius: 0.5rem;
    padding: 1rem;
    margin-bottom: 1rem;
}
.panel h2 {
    font-size: 1rem;
    font-weight: 500;
    color: var(--text-muted);
    margin-bottom: 0.75rem;
}
.stats-grid {
    display: grid;
    grid-template-columns: repeat(auto-fit, minmax(180px, 1fr));
    gap: 0.75rem;
}
.stat-item {
    background: var(--bg);
    border-radius: 0.375rem;
    padding: 0.75rem;
}
.stat-label { font-size: 0.8rem; color: var(--text-muted); }
.stat-value { font-size: 1.4rem; font-weight: 700; color: var(--primary); }
.empty, .error { text-align: center; padding: 1rem; color: var(--text-muted); }
.error { color: var(--danger); }
.chart-container { display: flex; justify-content: center; padding: 1rem 0; }
.chart-container img { max-width: 100%; height: auto; border-radius: 0.25rem; }
footer {
    margin-top: 2rem;
    padding-top: 1rem;
    border-top: 1px solid var(--border);
    color: var(--text-muted);
    font-size: 0.875rem;
    text-align: center;
}
"""

# =============================================================================
# Dependency Factory Functions
# =============================================================================


def get_storage() -> StorageManager:
    """
    Create a StorageManager for the configured storage directory.

    A fresh instance per request so every handler reads the file as it is
    now. Tests patch this function to point at a temporary directory.

    Raises:
        PersistenceError: If the storage directory can't be created.
    """
    return StorageManager()


def get_aggregator() -> SessionAggregator:
    """Create a SessionAggregator over the registered games."""
    return SessionAggregator()


def get_session_service() -> SessionService:
    """
    Create a SessionService with storage and aggregation dependencies.

    Business context: The JSON endpoints are the contract tracking clients
    save to and load from, so they go through the same validation and
    error reporting as the CLI.

    Example:
        >>> service = get_session_service()
        >>> service.load_sessions().data["sessions"]
        []
    """
    return SessionService(get_storage(), get_aggregator())


def get_dashboard_presenter() -> DashboardPresenter:
    """Create a DashboardPresenter with injected storage and aggregator."""
    return DashboardPresenter(get_storage(), get_aggregator())


def get_chart_presenter() -> ChartPresenter:
    """
    Create a ChartPresenter for server-side chart rendering.

    Raises:
        PersistenceError: If storage cannot be initialized.
    """
    return ChartPresenter(get_storage(), get_aggregator())


def _error_response(result: ServiceResult) -> JSONResponse:
    status = 400 if result.error_type == "ValidationError" else 500
    return JSONResponse(status_code=status, content={"error": result.message})


# ============================================================================
# API Routes (JSON)
# ============================================================================


@router.post("/api/sessions/save")
async def save_sessions(
    request: Request,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> Any:
    """
    Replace the stored collection with the posted sessions.

    Request body: {"sessions": [SessionRecord, ...]}

    Returns:
        200 {"success": true, "message": "Sessions saved successfully"}
        400 {"error": "Invalid sessions data"} when the body is not JSON,
            sessions is missing, or sessions is not an array
        500 {"error": "Failed to save sessions"} when the store can't be written

    Example:
        >>> # POST /api/sessions/save
        >>> # {"sessions": [{"game": "valorant", "date": "2024-01-01", ...}]}
    """
    try:
        body = await request.json()
    except ValueError:
        logger.warning("Save request body is not valid JSON")
        return JSONResponse(status_code=400, content={"error": "Invalid sessions data"})

    sessions = body.get("sessions") if isinstance(body, dict) else None
    if not isinstance(sessions, list):
        logger.warning("Save request has no sessions array")
        return JSONResponse(status_code=400, content={"error": "Invalid sessions data"})

    result = service.save_sessions(sessions)
    if not result.success:
        return _error_response(result)
    return {"success": True, "message": result.message}


@router.get("/api/sessions/load")
async def load_sessions(
    service: Annotated[SessionService, Depends(get_session_service)],
) -> Any:
    """
    Return the full stored collection.

    Each session's metadata is an object ({} when absent or unreadable)
    and its date is normalized to YYYY-MM-DD where it can be parsed.

    Returns:
        200 {"sessions": [...]} or 500 {"error": "Failed to load sessions"}
    """
    result = service.load_sessions()
    if not result.success:
        return _error_response(result)
    return {"sessions": (result.data or {}).get("sessions", [])}


@router.get("/api/sessions/stats")
async def session_stats(
    service: Annotated[SessionService, Depends(get_session_service)],
) -> Any:
    """
    Return summary statistics recomputed from the stored collection.

    Returns:
        200 {"stats": {totalSessions, totalTimeMinutes, avgSessionMinutes,
        gameBreakdown, matchTypeBreakdown, aimTypeBreakdown}}
        or 500 {"error": "Failed to get stats"}

    Note: older clients read valorantMatchTypes and kovaaksAimTypes; those
    are now matchTypeBreakdown and aimTypeBreakdown with the same contents.
    """
    result = service.get_stats()
    if not result.success:
        return _error_response(result)
    return {"stats": (result.data or {}).get("stats", {})}


@router.get("/api/sessions/daily")
async def daily_totals(
    service: Annotated[SessionService, Depends(get_session_service)],
) -> Any:
    """Return per-date, per-game minutes in ascending date order."""
    result = service.get_daily_totals()
    if not result.success:
        return _error_response(result)
    return {"daily": (result.data or {}).get("daily", [])}


# ============================================================================
# Full Page Routes
# ============================================================================


@router.get("/", response_class=HTMLResponse)
async def dashboard_page(
    presenter: Annotated[DashboardPresenter, Depends(get_dashboard_presenter)],
) -> HTMLResponse:
    """
    Render the summary page: stats panel plus the daily trend chart.

    Business context: This is where the player checks how much time went
    into each game, which match types they queue for, and how their
    aim-training minutes are spread.

    Returns:
        HTMLResponse with the full page. The stats panel refreshes itself
        every 30 seconds through htmx.
    """
    view = presenter.get_stats_view()
    html_content = _render_dashboard_html(view)
    return HTMLResponse(content=html_content, media_type="text/html; charset=utf-8")


# ============================================================================
# Partial Routes (htmx)
# ============================================================================


@router.get("/partials/stats", response_class=HTMLResponse)
async def stats_partial(
    presenter: Annotated[DashboardPresenter, Depends(get_dashboard_presenter)],
) -> HTMLResponse:
    """Render the stats panel fragment for htmx swaps."""
    view = presenter.get_stats_view()
    return HTMLResponse(content=_render_stats_panel(view), media_type="text/html; charset=utf-8")


@router.get("/partials/daily-chart", response_class=HTMLResponse)
async def daily_chart_partial() -> HTMLResponse:
    """Chart panel fragment with a cache-busted img src."""
    timestamp = int(time.time())
    html_content = f"""<h2>Daily Gaming Time</h2>
        <div class="chart-container">
            <img src="/charts/daily.png?t={timestamp}" alt="Daily Gaming Time">
        </div>"""
    return HTMLResponse(content=html_content, media_type="text/html; charset=utf-8")


# ============================================================================
# Chart Routes
# ============================================================================


@router.get("/charts/daily.png")
async def daily_chart(
    presenter: Annotated[ChartPresenter, Depends(get_chart_presenter)],
) -> Response:
    """
    Serve the daily trend chart.

    Returns:
        PNG bytes (image/png), or an SVG placeholder (image/svg+xml) when
        matplotlib is not installed.
    """
    try:
        png_bytes = presenter.render_daily_chart()
        return Response(content=png_bytes, media_type="image/png")
    except ImportError:
        return Response(
            content=_placeholder_chart_svg("Daily Gaming Time"),
            media_type="image/svg+xml",
        )


# ============================================================================
# Template Rendering Helpers
# ============================================================================


def _placeholder_chart_svg(title: str) -> bytes:
    """SVG shown in place of a chart when matplotlib is unavailable."""
    svg = f"""<svg xmlns="http://www.w3.org/2000/svg" width="400" height="200">
        <rect width="100%" height="100%" fill="#1e1e1e"/>
        <text x="50%" y="50%" text-anchor="middle" fill="#b0b0b0" font-size="16">
            {html.escape(title)} Chart (install matplotlib)
        </text>
    </svg>"""
    return svg.encode("utf-8")


def _render_stat_grid(items: list[Any]) -> str:
    cells = "".join(
        f"""<div class="stat-item">
            <div class="stat-label">{html.escape(item.label)}</div>
            <div class="stat-value">{html.escape(item.value)}</div>
        </div>"""
        for item in items
    )
    return f'<div class="stats-grid">{cells}</div>'


def _render_stats_panel(view: StatsViewModel) -> str:
    """
    Render the stats panel body.

    Sections:
    - Summary: total sessions, total time, average session, per-game time
    - Match types: only shown when at least one match was recorded
    - Aim training: only shown when at least one minute was recorded

    Example:
        >>> _render_stats_panel(StatsViewModel())
        '<h2>Summary Statistics</h2>...No sessions recorded yet...'
    """
    if view.error:
        return f'<h2>Summary Statistics</h2><div class="error">{html.escape(view.error)}</div>'
    if not view.has_data:
        return '<h2>Summary Statistics</h2><div class="empty">No sessions recorded yet</div>'

    sections = [_render_stat_grid(view.summary)]
    if view.match_types:
        sections.append("<h3>Valorant Match Types</h3>")
        sections.append(_render_stat_grid(view.match_types))
    if view.aim_types:
        sections.append("<h3>Aim Training Breakdown</h3>")
        sections.append(_render_stat_grid(view.aim_types))
    return "<h2>Summary Statistics</h2>" + "".join(sections)


def _render_dashboard_html(view: StatsViewModel) -> str:
    """Full HTML document with embedded CSS and htmx refresh triggers."""
    stats_html = _render_stats_panel(view)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Game Time Tracker - Summary</title>
    <script src="https://unpkg.com/htmx.org@1.9.10"></script>
    <style>
        {_DASHBOARD_CSS}
    </style>
</head>
<body>
    <div class="container">
        <header>
            <h1>Game Time Tracker</h1>
            <span class="refresh-indicator">Auto-refresh: 30s</span>
        </header>

        <div class="panel" id="stats-panel"
             hx-get="/partials/stats"
             hx-trigger="every 30s"
             hx-swap="innerHTML">
            {stats_html}
        </div>

        <div class="panel" id="daily-chart-panel"
             hx-get="/partials/daily-chart"
             hx-trigger="every 60s"
             hx-swap="innerHTML">
            <h2>Daily Gaming Time</h2>
            <div class="chart-container">
                <img src="/charts/daily.png" alt="Daily Gaming Time">
            </div>
        </div>

        <footer>
            Game Time Tracker &bull; Powered by FastAPI + htmx
        </footer>
    </div>
</body>
</html>"""
