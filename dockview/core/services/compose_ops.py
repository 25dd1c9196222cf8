"""
Compose operations — the entry points the CLI and the web API call.

Each operation takes an optional ``DiscoveryContext`` (built from
``settings.discovery_timeout`` when omitted) and returns within it.
Nothing here raises for a discovery failure: results carry whatever was
found, plus ``error`` once every strategy is exhausted and ``hints``
when the answer is empty.

    list_projects         inventory from the tool and the filesystem
    list_services         services declared by one compose file
    list_containers       runtime containers of one project
    describe_project      services and containers reconciled together
    inspect_project_text  ``config`` + ``ps`` as a readable report
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from dockview.adapters.containers.docker import DockerRuntime, RuntimeUnavailable
from dockview.core.config.loader import Settings
from dockview.core.context import DiscoveryContext
from dockview.core.models.compose import ComposeService, ProjectDetail
from dockview.core.models.container import ContainerInfo
from dockview.core.models.discovery import DiscoveryResult
from dockview.core.services import compose_containers, compose_projects
from dockview.core.services.compose_common import run_compose
from dockview.core.services.compose_containers import MatchKey
from dockview.core.services.compose_declaration import (
    COMPOSE_FILENAMES,
    DeclarationNotFound,
    DeclarationReadError,
    EmptyDeclaration,
    InvalidDeclaration,
    parse_declaration,
    read_declaration,
)
from dockview.core.services.compose_output import interpret_containers
from dockview.core.services.container_stats import sum_usage

logger = logging.getLogger(__name__)


def _prepare(
    ctx: DiscoveryContext | None,
    settings: Settings | None,
) -> tuple[DiscoveryContext, Settings]:
    settings = settings or Settings()
    return ctx or DiscoveryContext(timeout=settings.discovery_timeout), settings


# ═══════════════════════════════════════════════════════════════════
#  Listings
# ═══════════════════════════════════════════════════════════════════


def list_projects(
    ctx: DiscoveryContext | None = None,
    *,
    settings: Settings | None = None,
) -> DiscoveryResult:
    """Every compose project the tool reports or the filesystem holds."""
    ctx, settings = _prepare(ctx, settings)
    return compose_projects.list_projects(ctx, settings)


def list_services(
    path: str | Path,
    ctx: DiscoveryContext | None = None,
    *,
    settings: Settings | None = None,
) -> DiscoveryResult:
    """Services declared at *path* (a compose file or project directory).

    Falls back to ``compose --file <path> config --services`` when the
    scanner finds no services.
    """
    ctx, settings = _prepare(ctx, settings)
    target = Path(path).expanduser()
    if not target.is_absolute():
        target = ctx.cwd / target

    try:
        compose_file, data = read_declaration(target)
    except DeclarationNotFound as e:
        return DiscoveryResult(
            error=str(e),
            hints=[
                "Check the project path",
                f"Expected one of: {', '.join(COMPOSE_FILENAMES)}",
            ],
        )
    except EmptyDeclaration as e:
        return DiscoveryResult(error=str(e), hints=["Add a 'services:' section to the file"])
    except DeclarationReadError as e:
        return DiscoveryResult(error=str(e), hints=["Check the file permissions"])

    result = DiscoveryResult()
    services: dict[str, ComposeService] = {}
    invalid = False
    try:
        services = parse_declaration(data)
    except InvalidDeclaration as e:
        invalid = True
        result.note(f"{compose_file}: {e}")
        logger.debug("Scanner rejected %s: %s", compose_file, e)

    if services:
        result.items = list(services.values())
        result.source = "declaration"
        return result

    outcome = run_compose(
        "--file", str(compose_file), "config", "--services",
        ctx=ctx, settings=settings, cwd=compose_file.parent,
    )
    if outcome.ok:
        names = [line.strip() for line in outcome.text.splitlines() if line.strip()]
        if names:
            logger.info("Services of %s listed by the compose tool", compose_file)
            result.items = [ComposeService(name=n) for n in dict.fromkeys(names)]
            result.source = "tool"
            return result
    else:
        result.note(outcome.describe())

    if outcome.timed_out:
        result.complete = False
    elif invalid and not outcome.ok:
        result.error = f"Could not read services from {compose_file}"
        result.hints = ["Check the file with 'docker compose config'"]
    else:
        result.hints = [f"No services declared in {compose_file}"]
    return result


def list_containers(
    project_name: str,
    ctx: DiscoveryContext | None = None,
    *,
    settings: Settings | None = None,
    runtime: DockerRuntime | None = None,
) -> DiscoveryResult:
    """Runtime containers belonging to *project_name*."""
    ctx, settings = _prepare(ctx, settings)
    runtime = runtime or DockerRuntime(settings)
    return compose_containers.find_project_containers(project_name, ctx, runtime, settings)


# ═══════════════════════════════════════════════════════════════════
#  Project detail
# ═══════════════════════════════════════════════════════════════════


def describe_project(
    name: str,
    path: str | Path,
    ctx: DiscoveryContext | None = None,
    *,
    with_stats: bool = False,
    settings: Settings | None = None,
    runtime: DockerRuntime | None = None,
) -> ProjectDetail:
    """Services and containers of one project, reconciled.

    Each service lists the containers that realise it: by the compose
    service label, else by the ``<project>[-_]<service>[-_]`` name
    pattern.  With ``with_stats``, live cpu and memory are summed per
    service; services without readings keep None.
    """
    ctx, settings = _prepare(ctx, settings)
    runtime = runtime or DockerRuntime(settings)

    services_result = list_services(path, ctx, settings=settings)
    containers_result = list_containers(name, ctx, settings=settings, runtime=runtime)

    detail = ProjectDetail(project=name, path=str(path))
    detail.services = [s.model_copy(deep=True) for s in services_result.items]
    detail.containers = list(containers_result.items)
    for result in (services_result, containers_result):
        if result.error:
            detail.errors.append(result.error)
        detail.hints.extend(h for h in result.hints if h not in detail.hints)

    key = MatchKey(name)
    for service in detail.services:
        service.containers = [
            c.name for c in detail.containers if container_serves(c, key, service.name)
        ]

    if with_stats and detail.containers:
        _attach_stats(detail, ctx, runtime)

    return detail


def container_serves(container: ContainerInfo, key: MatchKey, service: str) -> bool:
    """Whether *container* realises *service* of the project *key*."""
    if container.service:
        return container.service == service
    for form in key.forms:
        pattern = rf"^{re.escape(form)}[-_]{re.escape(service)}([-_]|$)"
        if re.match(pattern, container.name, re.IGNORECASE):
            return True
    return False


def _attach_stats(detail: ProjectDetail, ctx: DiscoveryContext, runtime: DockerRuntime) -> None:
    try:
        stats = runtime.container_stats([c.id for c in detail.containers], ctx)
    except RuntimeUnavailable as e:
        detail.errors.append(f"Stats unavailable: {e}")
        return

    by_name = {s.container: s for s in stats if s.container}
    for service in detail.services:
        readings = [by_name[n] for n in service.containers if n in by_name]
        service.cpu, service.memory, service.memory_limit = sum_usage(readings)


# ═══════════════════════════════════════════════════════════════════
#  Inspect report
# ═══════════════════════════════════════════════════════════════════


def inspect_project_text(
    name: str,
    path: str | Path = "",
    ctx: DiscoveryContext | None = None,
    *,
    settings: Settings | None = None,
) -> str:
    """Resolved ``config`` and ``ps`` output as one readable report."""
    ctx, settings = _prepare(ctx, settings)

    project_args: list[str] = []
    if name:
        project_args += ["--project-name", name]
    directory = Path(path).expanduser() if path else None
    if directory is not None and directory.is_file():
        directory = directory.parent
    if directory is not None and directory.is_dir():
        project_args += ["--project-directory", str(directory)]
    if not project_args:
        return "No project name or path given\n"

    title = name or str(directory)
    lines = [f"=== Docker Compose Project: {title} ===", ""]

    config = run_compose(*project_args, "config", ctx=ctx, settings=settings, cwd=directory)
    lines.append("=== Config ===")
    lines.append(config.text.rstrip() if config.ok else f"(unavailable: {config.describe()})")
    lines.append("")

    ps = run_compose(
        *project_args, "ps", "-a", "--format", "json",
        ctx=ctx, settings=settings, cwd=directory,
    )
    lines.append("=== Containers ===")
    if not ps.ok:
        lines.append(f"(unavailable: {ps.describe()})")
    else:
        containers, _ = interpret_containers(ps.stdout)
        if not containers:
            lines.append("(none)")
        for c in containers:
            ports = ", ".join(c.ports) or "-"
            lines.append(f"{c.id}  {c.display_name:<40}  {c.state.value:<10}  {c.status}  {ports}")

    return "\n".join(lines) + "\n"
