"""
Web server for Game Time Tracker.

PURPOSE: FastAPI app hosting the JSON session store and the summary page.

FEATURES:
- /api/sessions/* endpoints used by tracking clients
- Server-rendered summary page with htmx refresh
- Server-side daily trend chart (matplotlib)

USAGE:
    # Via CLI
    game-time-tracker serve --port 3000

    # Programmatically
    from game_time_tracker.web import create_app
    app = create_app()
"""

from .app import create_app, run_server

__all__ = ["create_app", "run_server"]
