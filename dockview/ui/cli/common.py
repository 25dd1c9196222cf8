"""Shared helpers for the CLI command groups."""

from __future__ import annotations

import json
import sys
from typing import Any

import click

from dockview.core.config.loader import Settings
from dockview.core.context import DiscoveryContext
from dockview.core.models.discovery import DiscoveryResult


def get_settings(ctx: click.Context) -> Settings:
    """Settings loaded by the root group (defaults when run standalone)."""
    obj = ctx.find_root().obj or {}
    return obj.get("settings") or Settings()


def discovery_context(ctx: click.Context) -> DiscoveryContext:
    """A fresh context bounded by ``--timeout`` or the settings."""
    obj = ctx.find_root().obj or {}
    timeout = obj.get("timeout")
    if timeout is None:
        timeout = get_settings(ctx).discovery_timeout
    return DiscoveryContext(timeout=timeout)


def echo_json(payload: dict[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def report_outcome(ctx: click.Context, result: DiscoveryResult, noun: str) -> None:
    """Print the error / hints / diagnostics of a result.

    Exits 1 when the result carries an error.
    """
    verbose = (ctx.find_root().obj or {}).get("verbose", False)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        for hint in result.hints:
            click.echo(f"   💡 {hint}")
        _diagnostics(result, verbose)
        sys.exit(1)

    if not result.complete:
        click.secho("⏱  Discovery timed out, results may be partial", fg="yellow")

    if result.empty:
        click.secho(f"No {noun} found.", fg="yellow")
        for hint in result.hints:
            click.echo(f"   💡 {hint}")

    _diagnostics(result, verbose)


def report_single(result: dict[str, Any]) -> bool:
    """Report a single-object lookup; True when there is a payload to print.

    Exits 1 when the lookup failed.
    """
    if "error" in result:
        click.secho(f"❌ {result['error']}", fg="red")
        sys.exit(1)
    if not result.get("ok"):
        click.secho(f"⏱  Timed out before an answer: {result.get('message', '')}", fg="yellow")
        return False
    return True


def _diagnostics(result: DiscoveryResult, verbose: bool) -> None:
    if verbose and result.diagnostics:
        click.secho("   Diagnostics:", fg="white", bold=True)
        for line in result.diagnostics:
            click.echo(f"     · {line}")
