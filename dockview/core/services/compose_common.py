"""Compose shared helpers — low-level compose command runners.

Thin wrappers over ``run_command`` that prepend the configured compose
program (``docker compose`` or the legacy ``docker-compose``) and cap
each call at ``settings.command_timeout`` within the discovery context.

Nothing here interprets output; see ``compose_output``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from dockview.adapters.shell.command import CommandOutcome, run_command
from dockview.core.config.loader import Settings
from dockview.core.context import DiscoveryContext

logger = logging.getLogger(__name__)


def run_compose(
    *args: str,
    ctx: DiscoveryContext,
    settings: Settings,
    cwd: Path | None = None,
) -> CommandOutcome:
    """Run a compose command (``docker compose`` by default)."""
    return run_command(
        [*settings.compose_command, *args],
        ctx,
        cwd=cwd,
        timeout=settings.command_timeout,
    )


def run_legacy_compose(
    *args: str,
    ctx: DiscoveryContext,
    settings: Settings,
    cwd: Path | None = None,
) -> CommandOutcome:
    """Run the standalone ``docker-compose`` binary used by older installs."""
    if not settings.legacy_compose_command:
        return CommandOutcome.invocation_failure(list(args), "legacy compose disabled")
    return run_command(
        [*settings.legacy_compose_command, *args],
        ctx,
        cwd=cwd,
        timeout=settings.command_timeout,
    )
