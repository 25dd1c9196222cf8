"""
Compose routes — project, service and container discovery endpoints.

Blueprint: compose_bp
Prefix: /api

Thin HTTP wrappers over ``dockview.core.services.compose_ops``.

Endpoints:
    GET  /compose/projects                         — project inventory
    GET  /compose/services?path=                   — services of a compose file
    GET  /compose/projects/<name>/containers       — containers of a project
    GET  /compose/projects/<name>?path=&stats=     — services + containers
    GET  /compose/projects/<name>/inspect?path=    — config + ps report (text)
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from dockview.core.services import compose_ops
from dockview.ui.web.server import app_settings, request_context

compose_bp = Blueprint("compose", __name__)


def _flag(name: str) -> bool:
    return request.args.get(name, "false").lower() in ("true", "1", "yes")


@compose_bp.route("/compose/projects")
def compose_projects():  # type: ignore[no-untyped-def]
    """Every compose project the tool reports or the filesystem holds."""
    result = compose_ops.list_projects(request_context(), settings=app_settings())
    return jsonify(result.to_dict())


@compose_bp.route("/compose/services")
def compose_services():  # type: ignore[no-untyped-def]
    """Services declared at ?path= (file or directory)."""
    path = request.args.get("path", "").strip()
    if not path:
        return jsonify({"error": "Missing 'path' parameter"}), 400

    result = compose_ops.list_services(path, request_context(), settings=app_settings())
    return jsonify(result.to_dict())


@compose_bp.route("/compose/projects/<name>/containers")
def compose_containers(name: str):  # type: ignore[no-untyped-def]
    """Runtime containers belonging to a project."""
    result = compose_ops.list_containers(name, request_context(), settings=app_settings())
    return jsonify(result.to_dict())


@compose_bp.route("/compose/projects/<name>")
def compose_project(name: str):  # type: ignore[no-untyped-def]
    """Services and containers of a project, reconciled."""
    ctx = request_context()
    settings = app_settings()

    path = request.args.get("path", "").strip()
    if not path:
        inventory = compose_ops.list_projects(ctx, settings=settings)
        match = next((p for p in inventory.items if p.name == name), None)
        if match is None:
            return jsonify({"error": f"Unknown project: {name}"}), 404
        path = match.path

    detail = compose_ops.describe_project(
        name, path, ctx, with_stats=_flag("stats"), settings=settings,
    )
    return jsonify(detail.model_dump(mode="json"))


@compose_bp.route("/compose/projects/<name>/inspect")
def compose_inspect(name: str):  # type: ignore[no-untyped-def]
    """Resolved config and containers as a plain-text report."""
    report = compose_ops.inspect_project_text(
        name, request.args.get("path", ""), request_context(), settings=app_settings(),
    )
    return report, 200, {"Content-Type": "text/plain; charset=utf-8"}
