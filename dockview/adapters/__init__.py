"""Adapters — bindings to the external tools the engine drives.

Public re-exports for convenient access.
"""

from dockview.adapters.containers.docker import DockerRuntime, RuntimeUnavailable
from dockview.adapters.shell.command import CommandOutcome, run_command

__all__ = [
    "CommandOutcome",
    "DockerRuntime",
    "RuntimeUnavailable",
    "run_command",
]
