"""
CLI commands for plain docker resources.

Thin wrappers over ``dockview.core.services.docker_resources``.
"""

from __future__ import annotations

import sys

import click

from dockview.adapters.containers.docker import INSPECT_KINDS
from dockview.ui.cli.common import (
    discovery_context,
    echo_json,
    get_settings,
    report_outcome,
    report_single,
)


@click.group()
def docker() -> None:
    """Docker — containers, images, volumes, networks, logs, inspect."""


@docker.command("containers")
@click.option("--running", is_flag=True, help="Only show running containers.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def containers(ctx: click.Context, running: bool, as_json: bool) -> None:
    """List Docker containers."""
    from dockview.core.services import docker_resources

    result = docker_resources.list_containers(
        discovery_context(ctx), all_=not running, settings=get_settings(ctx),
    )

    if as_json:
        echo_json(result.to_dict())
        return

    report_outcome(ctx, result, "containers")
    if result.empty:
        return

    click.secho(f"📦 Containers ({len(result.items)}):", fg="cyan", bold=True)
    for c in result.items:
        state = c.state.value
        icon = "🟢" if state == "running" else "🔴" if state == "exited" else "⚪"
        click.echo(f"   {icon} {c.display_name:<30} {c.image}")
        click.echo(f"      Status: {c.status}  Ports: {', '.join(c.ports) or '-'}")
    click.echo()


@docker.command("images")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def images(ctx: click.Context, as_json: bool) -> None:
    """List local Docker images."""
    from dockview.core.services import docker_resources

    result = docker_resources.list_images(discovery_context(ctx), settings=get_settings(ctx))

    if as_json:
        echo_json(result.to_dict())
        return

    report_outcome(ctx, result, "images")
    if result.empty:
        return

    click.secho(f"🖼️  Images ({len(result.items)}):", fg="cyan", bold=True)
    for img in result.items:
        click.echo(f"   {img.reference:<40} {img.size:>10}  {img.id}")
    click.echo()


@docker.command("volumes")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def volumes(ctx: click.Context, as_json: bool) -> None:
    """List Docker volumes."""
    from dockview.core.services import docker_resources

    result = docker_resources.list_volumes(discovery_context(ctx), settings=get_settings(ctx))

    if as_json:
        echo_json(result.to_dict())
        return

    report_outcome(ctx, result, "volumes")
    if result.empty:
        return

    click.secho(f"💾 Volumes ({len(result.items)}):", fg="cyan", bold=True)
    for v in result.items:
        click.echo(f"   • {v.name:<40} {v.driver}")
    click.echo()


@docker.command("networks")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def networks(ctx: click.Context, as_json: bool) -> None:
    """List Docker networks."""
    from dockview.core.services import docker_resources

    result = docker_resources.list_networks(discovery_context(ctx), settings=get_settings(ctx))

    if as_json:
        echo_json(result.to_dict())
        return

    report_outcome(ctx, result, "networks")
    if result.empty:
        return

    click.secho(f"🌐 Networks ({len(result.items)}):", fg="cyan", bold=True)
    for n in result.items:
        click.echo(f"   • {n.name:<30} {n.driver:<10} {n.scope}")
    click.echo()


@docker.command("logs")
@click.argument("container")
@click.option("-n", "--tail", "tail", default=100, show_default=True, type=int, help="Number of lines.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def logs(ctx: click.Context, container: str, tail: int, as_json: bool) -> None:
    """Show recent logs of a container."""
    from dockview.core.services import docker_resources

    result = docker_resources.container_logs(
        container, discovery_context(ctx), tail=tail, settings=get_settings(ctx),
    )
    if as_json:
        echo_json(result)
        if "error" in result:
            sys.exit(1)
        return

    if not report_single(result):
        return
    click.secho(f"📜 Logs: {container}", fg="cyan", bold=True)
    click.echo(result["logs"], nl=False)


@docker.command("inspect")
@click.argument("kind", type=click.Choice(INSPECT_KINDS))
@click.argument("target")
@click.pass_context
def inspect(ctx: click.Context, kind: str, target: str) -> None:
    """Show the full inspect document of a container, image, volume or network."""
    from dockview.core.services import docker_resources

    result = docker_resources.inspect_object(
        kind, target, discovery_context(ctx), settings=get_settings(ctx),
    )
    if not report_single(result):
        return
    echo_json(result["detail"])
