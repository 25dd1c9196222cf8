"""
dockview — CLI entrypoint.

Usage:
    dockview --help
    dockview compose projects
    dockview compose containers myapp --json
    dockview docker images
    dockview web --port 8000
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from dockview import __version__
from dockview.core.config.loader import ConfigError, load_settings
from dockview.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="dockview")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to dockview.yml (default: auto-detect).",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Discovery deadline in seconds (default: from settings).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    timeout: float | None,
) -> None:
    """dockview — inspect containers and compose projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    level = resolve_level(debug=debug, verbose=verbose, quiet=quiet)
    setup_logging(level=level, quiet_third_party=not debug)

    try:
        settings = load_settings(Path(config_path) if config_path else None)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if settings.log_file:
        setup_logging(level=level, log_file=settings.log_file, quiet_third_party=not debug)

    ctx.obj["settings"] = settings
    ctx.obj["timeout"] = timeout if timeout is not None else settings.discovery_timeout


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", "-p", default=8000, type=int, help="Port number.")
@click.pass_context
def web(ctx: click.Context, host: str, port: int) -> None:
    "Start the JSON API server."
    from dockview.ui.web.server import create_app, run_server

    app = create_app(settings=ctx.obj["settings"], cwd=Path.cwd())
    debug = ctx.obj.get("debug", False)

    click.echo()
    click.secho("🐳 dockview — JSON API", bold=True)
    click.echo(f"   Listening: http://{host}:{port}/api")
    click.echo(f"   Root:      {Path.cwd()}")
    if debug:
        click.secho("   Logging: DEBUG (all output)", fg="yellow")
    click.echo()

    run_server(app, host=host, port=port, debug=debug)


# ── Register sub-command groups from dockview/ui/cli/ ─────────────

from dockview.ui.cli.compose import compose  # noqa: E402
from dockview.ui.cli.docker import docker  # noqa: E402

cli.add_command(compose)
cli.add_command(docker)


if __name__ == "__main__":
    cli()
