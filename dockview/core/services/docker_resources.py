"""Docker resource views — listings plus single-object logs and inspect."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from dockview.adapters.containers.docker import INSPECT_KINDS, DockerRuntime, RuntimeUnavailable
from dockview.core.config.loader import Settings
from dockview.core.context import DiscoveryContext
from dockview.core.models.discovery import DiscoveryResult

logger = logging.getLogger(__name__)

_RUNTIME_HINTS = [
    "Check that the Docker daemon is running ('docker info')",
    "Make sure your user can access the Docker socket",
]


def list_containers(
    ctx: DiscoveryContext | None = None,
    *,
    all_: bool = True,
    settings: Settings | None = None,
    runtime: DockerRuntime | None = None,
) -> DiscoveryResult:
    """All containers (stopped ones included unless ``all_`` is False)."""
    return _listing(
        "containers",
        lambda rt, c: rt.list_containers(c, all_=all_),
        ctx, settings, runtime,
    )


def list_images(
    ctx: DiscoveryContext | None = None,
    *,
    settings: Settings | None = None,
    runtime: DockerRuntime | None = None,
) -> DiscoveryResult:
    return _listing("images", lambda rt, c: rt.list_images(c), ctx, settings, runtime)


def list_volumes(
    ctx: DiscoveryContext | None = None,
    *,
    settings: Settings | None = None,
    runtime: DockerRuntime | None = None,
) -> DiscoveryResult:
    return _listing("volumes", lambda rt, c: rt.list_volumes(c), ctx, settings, runtime)


def list_networks(
    ctx: DiscoveryContext | None = None,
    *,
    settings: Settings | None = None,
    runtime: DockerRuntime | None = None,
) -> DiscoveryResult:
    return _listing("networks", lambda rt, c: rt.list_networks(c), ctx, settings, runtime)


def _listing(
    kind: str,
    fetch: Callable[[DockerRuntime, DiscoveryContext], list[Any]],
    ctx: DiscoveryContext | None,
    settings: Settings | None,
    runtime: DockerRuntime | None,
) -> DiscoveryResult:
    settings = settings or Settings()
    ctx = ctx or DiscoveryContext(timeout=settings.discovery_timeout)
    runtime = runtime or DockerRuntime(settings)

    try:
        items = fetch(runtime, ctx)
    except RuntimeUnavailable as e:
        if e.timed_out:
            logger.info("Listing %s stopped early: %s", kind, e)
            result = DiscoveryResult(source="docker", complete=False)
            result.note(f"{kind}: {e}")
            return result
        logger.warning("Cannot list %s: %s", kind, e)
        return DiscoveryResult(
            source="docker",
            error=f"Docker not available: {e}",
            hints=list(_RUNTIME_HINTS),
        )

    result = DiscoveryResult(items=items, source="docker")
    if result.empty:
        result.hints = [f"No {kind} found"]
    return result


# ═══════════════════════════════════════════════════════════════════
#  Single objects
# ═══════════════════════════════════════════════════════════════════


def container_logs(
    container_id: str,
    ctx: DiscoveryContext | None = None,
    *,
    tail: int = 100,
    settings: Settings | None = None,
    runtime: DockerRuntime | None = None,
) -> dict:
    """Recent log lines of one container.

    Returns:
        {"ok": True, "container": ..., "logs": "..."}, {"error": "..."},
        or {"ok": False, "complete": False, "message": ...} when the
        context ran out first.
    """
    if not container_id:
        return {"error": "Missing container ID"}
    return _single(
        f"logs of {container_id}",
        lambda rt, c: {"container": container_id, "logs": rt.container_logs(container_id, c, tail=tail)},
        ctx, settings, runtime,
    )


def inspect_object(
    kind: str,
    target: str,
    ctx: DiscoveryContext | None = None,
    *,
    settings: Settings | None = None,
    runtime: DockerRuntime | None = None,
) -> dict:
    """Full inspect document of a container, image, volume or network.

    Returns:
        {"ok": True, "kind": ..., "target": ..., "detail": {...}} or
        {"error": "..."}; an expired context gives ``complete: False``.
    """
    if kind not in INSPECT_KINDS:
        return {"error": f"Unknown kind '{kind}' (expected one of: {', '.join(INSPECT_KINDS)})"}
    if not target:
        return {"error": f"Missing {kind} ID or name"}
    return _single(
        f"{kind} {target}",
        lambda rt, c: {"kind": kind, "target": target, "detail": rt.inspect(kind, target, c)},
        ctx, settings, runtime,
    )


def _single(
    what: str,
    fetch: Callable[[DockerRuntime, DiscoveryContext], dict],
    ctx: DiscoveryContext | None,
    settings: Settings | None,
    runtime: DockerRuntime | None,
) -> dict:
    settings = settings or Settings()
    ctx = ctx or DiscoveryContext(timeout=settings.discovery_timeout)
    runtime = runtime or DockerRuntime(settings)

    try:
        payload = fetch(runtime, ctx)
    except RuntimeUnavailable as e:
        if e.timed_out:
            logger.info("Reading %s stopped early: %s", what, e)
            return {"ok": False, "complete": False, "message": str(e)}
        logger.warning("Cannot read %s: %s", what, e)
        return {"error": str(e)}
    return {"ok": True, **payload}
