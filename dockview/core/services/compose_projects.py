"""Compose project inventory — what the tool reports plus what is on disk.

Sources, each best-effort:

    1. ``compose ls -a --format json`` (running and stopped projects)
    2. a bounded filesystem scan for declaration files under the scan root

The two are merged on ``name:path``; a path known for a name is applied
to every record of that name.  Names that still have no path go through
secondary lookups and finally the working directory, marked unverified.
Neither source being present is a normal state: the inventory is empty
and the reasons stay in ``diagnostics``.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from dockview.adapters.shell.command import CommandOutcome
from dockview.core.config.loader import Settings
from dockview.core.context import DiscoveryContext
from dockview.core.models.compose import ComposeProject
from dockview.core.models.discovery import DiscoveryResult
from dockview.core.services.compose_common import run_compose
from dockview.core.services.compose_declaration import (
    DeclarationError,
    declared_project_name,
    find_compose_file,
    read_declaration,
)
from dockview.core.services.compose_output import first_config_file, interpret_projects

logger = logging.getLogger(__name__)


def list_projects(ctx: DiscoveryContext, settings: Settings) -> DiscoveryResult:
    """Build the full project inventory."""
    result = DiscoveryResult()
    sources: list[str] = []

    reported = projects_from_tool(ctx, settings, result)
    if reported:
        sources.append("tool")

    scanned = scan_declarations(
        settings.scan_directory(ctx.cwd),
        ctx,
        max_depth=settings.scan_max_depth,
        exclude=settings.scan_exclude,
        result=result,
    )
    if scanned:
        sources.append("filesystem")

    projects = merge_projects(reported + scanned)
    projects = resolve_missing_paths(projects, ctx, settings, result)
    result.items = merge_projects(projects)
    result.source = "+".join(sources)

    if ctx.expired:
        result.complete = False

    if result.empty:
        result.hints = [
            "No compose projects found",
            "Start one with 'docker compose up -d' in a directory holding a compose file",
        ]
    logger.info("Found %d compose project(s) via %s", len(result.items), result.source or "nothing")
    return result


# ═══════════════════════════════════════════════════════════════════
#  Sources
# ═══════════════════════════════════════════════════════════════════


def projects_from_tool(
    ctx: DiscoveryContext,
    settings: Settings,
    result: DiscoveryResult,
) -> list[ComposeProject]:
    """Projects the compose tool reports."""
    outcome = run_compose("ls", "-a", "--format", "json", ctx=ctx, settings=settings)
    if not outcome.ok:
        result.note(f"compose ls: {outcome.describe()}")
        if outcome.timed_out:
            result.complete = False
        return []

    projects, failures = interpret_projects(outcome.stdout)
    for failure in failures:
        result.note(f"compose ls: {failure}")
    return projects


def scan_declarations(
    root: Path,
    ctx: DiscoveryContext,
    *,
    max_depth: int = 4,
    exclude: list[str] | tuple[str, ...] = (),
    result: DiscoveryResult | None = None,
) -> list[ComposeProject]:
    """Find declaration files under *root* (at most *max_depth* levels down).

    Each directory holding a canonical declaration is one project, named
    by the declaration's own ``name:`` or else by the directory.
    """
    if not root.is_dir():
        if result is not None:
            result.note(f"scan: {root} is not a directory")
        return []

    root = root.resolve()
    excluded = set(exclude)
    projects: list[ComposeProject] = []

    for dirpath, dirnames, _filenames in os.walk(root):
        if ctx.expired:
            if result is not None:
                result.note("scan: stopped, context expired")
                result.complete = False
            break

        current = Path(dirpath)
        depth = len(current.relative_to(root).parts)
        if depth >= max_depth:
            dirnames.clear()
        else:
            dirnames[:] = sorted(d for d in dirnames if d not in excluded)

        compose_file = find_compose_file(current)
        if compose_file is None:
            continue

        name = current.name
        try:
            _, data = read_declaration(compose_file)
            name = declared_project_name(data) or name
        except DeclarationError as e:
            logger.debug("Using directory name for %s: %s", compose_file, e)

        projects.append(ComposeProject(
            name=name,
            path=str(current),
            config_files=str(compose_file),
            status="unknown",
            source="filesystem",
            path_source="filesystem",
        ))

    logger.debug("Filesystem scan of %s found %d declaration(s)", root, len(projects))
    return projects


# ═══════════════════════════════════════════════════════════════════
#  Merge
# ═══════════════════════════════════════════════════════════════════


def merge_projects(projects: list[ComposeProject]) -> list[ComposeProject]:
    """Merge candidates into one record per ``name:path``.

    The first non-empty path seen for a name is applied to every record
    of that name, so each name ends up with a single entry.  A known
    status beats ``unknown`` and missing config files are filled in.
    Merging is idempotent.
    """
    known_paths: dict[str, tuple[str, str]] = {}
    for project in projects:
        if project.name and project.path and project.name not in known_paths:
            known_paths[project.name] = (project.path, project.path_source)

    merged: dict[str, ComposeProject] = {}
    for project in projects:
        if not project.name:
            continue

        known = known_paths.get(project.name)
        if known and project.path != known[0]:
            if project.path:
                logger.info(
                    "Project %s reported at %s and %s; keeping %s",
                    project.name, known[0], project.path, known[0],
                )
            project = project.model_copy(update={"path": known[0], "path_source": known[1]})

        key = project.dedup_key
        existing = merged.get(key)
        if existing is None:
            merged[key] = project
            continue

        updates: dict[str, str] = {}
        if existing.status == "unknown" and project.status != "unknown":
            updates["status"] = project.status
        if not existing.config_files and project.config_files:
            updates["config_files"] = project.config_files
        if updates:
            merged[key] = existing.model_copy(update=updates)

    return list(merged.values())


# ═══════════════════════════════════════════════════════════════════
#  Path resolution
# ═══════════════════════════════════════════════════════════════════


def resolve_missing_paths(
    projects: list[ComposeProject],
    ctx: DiscoveryContext,
    settings: Settings,
    result: DiscoveryResult,
) -> list[ComposeProject]:
    """Fill in paths for projects that still lack one.

    Order: parent of the first config file, the tool's per-project
    config, the tool's text listing, then the working directory
    (unverified).
    """
    resolved: list[ComposeProject] = []
    tool_usable = True

    for project in projects:
        if project.path:
            resolved.append(project)
            continue

        path, source = "", ""
        config_file = first_config_file(project.config_files)
        if config_file is not None:
            path, source = str(config_file.parent), "config_files"

        if not path and tool_usable and not ctx.expired:
            path, outcome = lookup_working_dir(project.name, ctx, settings, result)
            source = "tool_config" if path else ""
            if not path and not _tool_missing(outcome):
                path, outcome = lookup_listing_path(project.name, ctx, settings, result)
                source = "tool_listing" if path else ""
            if not path and _tool_missing(outcome):
                logger.debug("Compose tool cannot be started; skipping further path lookups")
                tool_usable = False

        if not path:
            path, source = str(ctx.cwd), "fallback"
            logger.info("No path found for project %s, assuming %s (unverified)", project.name, path)
            result.note(f"{project.name}: path unverified, using working directory")

        resolved.append(project.model_copy(update={"path": path, "path_source": source}))

    return resolved


def lookup_working_dir(
    name: str,
    ctx: DiscoveryContext,
    settings: Settings,
    result: DiscoveryResult,
) -> tuple[str, CommandOutcome]:
    """``working_dir`` from ``compose --project-name N config --format json``.

    Returns:
        (path or "", the tool's outcome)
    """
    outcome = run_compose(
        "--project-name", name, "config", "--format", "json",
        ctx=ctx, settings=settings,
    )
    if not outcome.ok:
        result.note(f"{name}: compose config: {outcome.describe()}")
        return "", outcome
    try:
        config = json.loads(outcome.stdout)
    except json.JSONDecodeError:
        result.note(f"{name}: compose config: output is not JSON")
        return "", outcome
    if isinstance(config, dict):
        working_dir = config.get("working_dir") or config.get("WorkingDir")
        if isinstance(working_dir, str) and working_dir:
            return working_dir, outcome
    return "", outcome


def lookup_listing_path(
    name: str,
    ctx: DiscoveryContext,
    settings: Settings,
    result: DiscoveryResult,
) -> tuple[str, CommandOutcome]:
    """Third column of the ``compose ls -a`` text line naming the project.

    That column lists config files, so a declaration file is turned into
    its directory.
    """
    outcome = run_compose("ls", "-a", ctx=ctx, settings=settings)
    if not outcome.ok:
        result.note(f"{name}: compose ls -a: {outcome.describe()}")
        return "", outcome
    for line in outcome.text.splitlines():
        parts = line.split()
        if name not in parts or len(parts) < 3:
            continue
        column = parts[2].split(",")[0]
        if column.lower().endswith((".yml", ".yaml")):
            return str(Path(column).parent), outcome
        return column, outcome
    return "", outcome


def _tool_missing(outcome: CommandOutcome) -> bool:
    """The program could not be started at all (not a timeout)."""
    return outcome.status == "not_run" and not outcome.timed_out
