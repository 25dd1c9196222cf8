"""
JSON API server — Flask app factory.

Creates the Flask application serving the same discovery operations
as the CLI, for dashboards polling every ``refresh_interval`` seconds.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask, current_app, jsonify

from dockview import __version__
from dockview.core.config.loader import Settings
from dockview.core.context import DiscoveryContext

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    cwd: Path | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Discovery settings (defaults when omitted).
        cwd: Directory discovery runs against (default: process cwd).

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    app.config["DOCKVIEW_SETTINGS"] = settings or Settings()
    app.config["DOCKVIEW_ROOT"] = str((cwd or Path.cwd()).resolve())

    from dockview.ui.web.routes_compose import compose_bp
    from dockview.ui.web.routes_docker import docker_bp

    app.register_blueprint(compose_bp, url_prefix="/api")
    app.register_blueprint(docker_bp, url_prefix="/api")

    @app.route("/api/health")
    def health():  # type: ignore[no-untyped-def]
        s: Settings = current_app.config["DOCKVIEW_SETTINGS"]
        return jsonify({
            "ok": True,
            "version": __version__,
            "refresh_interval": s.refresh_interval,
        })

    logger.info("API app created (root=%s)", app.config["DOCKVIEW_ROOT"])
    return app


def app_settings() -> Settings:
    return current_app.config["DOCKVIEW_SETTINGS"]


def request_context() -> DiscoveryContext:
    """A discovery context for the current request."""
    settings = app_settings()
    return DiscoveryContext(
        timeout=settings.discovery_timeout,
        cwd=Path(current_app.config["DOCKVIEW_ROOT"]),
    )


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8000,
    debug: bool = False,
) -> None:
    """Run the Flask development server."""
    logger.info("Starting API on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False)
