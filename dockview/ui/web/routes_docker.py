"""
Docker routes — resource listings, container logs and inspect.

Blueprint: docker_bp
Prefix: /api

Endpoints:
    GET  /docker/containers?all=   — list containers
    GET  /docker/images            — list images
    GET  /docker/volumes           — list volumes
    GET  /docker/networks          — list networks
    GET  /docker/logs?id=&tail=    — recent logs of a container
    GET  /docker/inspect?kind=&id= — inspect one object (kind defaults to container)
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from dockview.core.services import docker_resources
from dockview.ui.web.server import app_settings, request_context

docker_bp = Blueprint("docker", __name__)


@docker_bp.route("/docker/containers")
def docker_containers():  # type: ignore[no-untyped-def]
    """List Docker containers."""
    all_ = request.args.get("all", "true").lower() in ("true", "1", "yes")
    result = docker_resources.list_containers(
        request_context(), all_=all_, settings=app_settings(),
    )
    return jsonify(result.to_dict())


@docker_bp.route("/docker/images")
def docker_images():  # type: ignore[no-untyped-def]
    """List local Docker images."""
    result = docker_resources.list_images(request_context(), settings=app_settings())
    return jsonify(result.to_dict())


@docker_bp.route("/docker/volumes")
def docker_volumes():  # type: ignore[no-untyped-def]
    result = docker_resources.list_volumes(request_context(), settings=app_settings())
    return jsonify(result.to_dict())


@docker_bp.route("/docker/networks")
def docker_networks():  # type: ignore[no-untyped-def]
    result = docker_resources.list_networks(request_context(), settings=app_settings())
    return jsonify(result.to_dict())


@docker_bp.route("/docker/logs")
def docker_logs():  # type: ignore[no-untyped-def]
    """Recent logs of one container."""
    container = request.args.get("id", "")
    if not container:
        return jsonify({"error": "Missing 'id' parameter"}), 400

    tail = request.args.get("tail", 100, type=int)
    result = docker_resources.container_logs(
        container, request_context(), tail=tail, settings=app_settings(),
    )
    if "error" in result:
        return jsonify(result), 400
    return jsonify(result)


@docker_bp.route("/docker/inspect")
def docker_inspect():  # type: ignore[no-untyped-def]
    """Inspect a container, image, volume or network."""
    target = request.args.get("id", "")
    if not target:
        return jsonify({"error": "Missing 'id' parameter"}), 400

    kind = request.args.get("kind", "container")
    result = docker_resources.inspect_object(
        kind, target, request_context(), settings=app_settings(),
    )
    if "error" in result:
        return jsonify(result), 400
    return jsonify(result)
