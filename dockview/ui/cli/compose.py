"""
CLI commands for compose projects.

Thin wrappers over ``dockview.core.services.compose_ops``.
"""

from __future__ import annotations

import click

from dockview.ui.cli.common import (
    discovery_context,
    echo_json,
    get_settings,
    report_outcome,
)

_STATE_ICONS = {
    "running": "🟢",
    "paused": "🟡",
    "restarting": "🟠",
    "exited": "🔴",
    "dead": "💀",
}


@click.group()
def compose() -> None:
    """Compose — projects, services and their containers."""


@compose.command("projects")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def projects(ctx: click.Context, as_json: bool) -> None:
    """List compose projects (tool-reported and found on disk)."""
    from dockview.core.services import compose_ops

    result = compose_ops.list_projects(discovery_context(ctx), settings=get_settings(ctx))

    if as_json:
        echo_json(result.to_dict())
        return

    report_outcome(ctx, result, "compose projects")
    if result.empty:
        return

    click.secho(f"📋 Projects ({len(result.items)}):", fg="cyan", bold=True)
    for p in result.items:
        marker = "" if p.path_verified else "  (path unverified)"
        click.echo(f"   • {p.name:<25} {p.status:<14} {p.path}{marker}")
    click.echo()


@compose.command("services")
@click.argument("path", default=".", type=click.Path())
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def services(ctx: click.Context, path: str, as_json: bool) -> None:
    """List services declared by the compose file at PATH."""
    from dockview.core.services import compose_ops

    result = compose_ops.list_services(path, discovery_context(ctx), settings=get_settings(ctx))

    if as_json:
        echo_json(result.to_dict())
        return

    report_outcome(ctx, result, "services")
    if result.empty:
        return

    click.secho(f"🧩 Services ({len(result.items)}):", fg="cyan", bold=True)
    for s in result.items:
        click.echo(f"   • {s.name:<20} {s.image or '-'}")
        if s.ports:
            click.echo(f"      Ports: {', '.join(s.ports)}")
    if result.source == "tool":
        click.secho("   (names from 'compose config --services')", fg="white", dim=True)
    click.echo()


@compose.command("containers")
@click.argument("project")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def containers(ctx: click.Context, project: str, as_json: bool) -> None:
    """List runtime containers belonging to PROJECT."""
    from dockview.core.services import compose_ops

    result = compose_ops.list_containers(project, discovery_context(ctx), settings=get_settings(ctx))

    if as_json:
        echo_json(result.to_dict())
        return

    report_outcome(ctx, result, f"containers for project '{project}'")
    if result.empty:
        return

    click.secho(f"📦 {project} ({len(result.items)} containers):", fg="cyan", bold=True)
    for c in result.items:
        icon = _STATE_ICONS.get(c.state.value, "⚪")
        click.echo(f"   {icon} {c.display_name:<40} {c.image}")
        click.echo(f"      {c.id}  {c.status}")
    click.echo()


@compose.command("show")
@click.argument("project")
@click.option("--path", "project_path", default=None, help="Project directory or compose file.")
@click.option("--stats", "with_stats", is_flag=True, help="Include live CPU / memory usage.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(
    ctx: click.Context,
    project: str,
    project_path: str | None,
    with_stats: bool,
    as_json: bool,
) -> None:
    """Show PROJECT's services with the containers realising them."""
    from dockview.core.services import compose_ops

    settings = get_settings(ctx)
    dctx = discovery_context(ctx)

    if project_path is None:
        inventory = compose_ops.list_projects(dctx, settings=settings)
        match = next((p for p in inventory.items if p.name == project), None)
        project_path = match.path if match else "."

    detail = compose_ops.describe_project(
        project, project_path, dctx, with_stats=with_stats, settings=settings,
    )

    if as_json:
        echo_json(detail.model_dump(mode="json"))
        return

    click.secho(f"📋 {detail.project}", fg="cyan", bold=True)
    click.echo(f"   Path: {detail.path}")
    click.echo()

    for s in detail.services:
        click.secho(f"   🧩 {s.name}", fg="white", bold=True)
        click.echo(f"      Image: {s.image or '-'}")
        if s.ports:
            click.echo(f"      Ports: {', '.join(s.ports)}")
        click.echo(f"      Containers: {', '.join(s.containers) or '-'}")
        if s.cpu is not None:
            click.echo(f"      CPU: {s.cpu:.2f}%")
        if s.memory is not None:
            click.echo(f"      Memory: {_human_bytes(s.memory)}")

    orphans = [c for c in detail.containers if not any(c.name in s.containers for s in detail.services)]
    if orphans:
        click.echo()
        click.secho("   Other containers:", fg="white", bold=True)
        for c in orphans:
            click.echo(f"      • {c.display_name}  {c.status}")

    for error in detail.errors:
        click.secho(f"   ⚠️  {error}", fg="yellow")
    if not detail.services and not detail.containers:
        for hint in detail.hints:
            click.echo(f"   💡 {hint}")
    click.echo()


@compose.command("inspect")
@click.argument("project")
@click.option("--path", "project_path", default="", help="Project directory or compose file.")
@click.pass_context
def inspect_project(ctx: click.Context, project: str, project_path: str) -> None:
    """Print PROJECT's resolved config and containers."""
    from dockview.core.services import compose_ops

    report = compose_ops.inspect_project_text(
        project, project_path, discovery_context(ctx), settings=get_settings(ctx),
    )
    click.echo(report, nl=False)


def _human_bytes(value: int) -> str:
    size = float(value)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if size < 1024:
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}TiB"
