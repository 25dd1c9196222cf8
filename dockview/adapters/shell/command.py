"""
Command runner — execute an external tool and classify how it went.

This is the most fundamental adapter: every docker / compose call in the
engine goes through ``run_command``.  It never raises for an expected
failure; the outcome is one of:

    ok           the process ran and exited 0
    tool_failed  the process ran and exited non-zero (output is kept,
                 it often carries an error message worth surfacing)
    not_run      the process could not be started, or was abandoned
                 because the discovery context expired / was cancelled

The wait is bounded by the caller's ``DiscoveryContext``: a context that
has already expired returns ``not_run`` without spawning anything, and a
process still running when the deadline passes is killed.
"""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from dockview.core.context import DiscoveryContext

logger = logging.getLogger(__name__)

# How often the runner wakes up to check for cancellation
_POLL_INTERVAL = 0.05


@dataclass
class CommandOutcome:
    """Result of one external command invocation."""

    args: list[str]
    status: Literal["ok", "tool_failed", "not_run"]
    stdout: bytes = b""
    stderr: bytes = b""
    returncode: int | None = None
    error: str = ""
    timed_out: bool = False
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def output(self) -> bytes:
        """Combined stdout + stderr bytes."""
        return self.stdout + self.stderr

    @property
    def text(self) -> str:
        """Decoded stdout (undecodable bytes replaced)."""
        return self.stdout.decode("utf-8", errors="replace")

    def describe(self) -> str:
        """One-line human summary, used for diagnostics."""
        cmd = " ".join(self.args)
        if self.status == "ok":
            return f"{cmd}: ok"
        if self.status == "tool_failed":
            detail = self.stderr.decode("utf-8", errors="replace").strip().splitlines()
            tail = f" ({detail[-1]})" if detail else ""
            return f"{cmd}: exit {self.returncode}{tail}"
        return f"{cmd}: {self.error}"

    @classmethod
    def success(cls, args: list[str], stdout: bytes, stderr: bytes = b"", **kwargs: Any) -> CommandOutcome:
        return cls(args=args, status="ok", stdout=stdout, stderr=stderr, returncode=0, **kwargs)

    @classmethod
    def tool_failure(
        cls,
        args: list[str],
        returncode: int,
        stdout: bytes = b"",
        stderr: bytes = b"",
        **kwargs: Any,
    ) -> CommandOutcome:
        return cls(
            args=args,
            status="tool_failed",
            stdout=stdout,
            stderr=stderr,
            returncode=returncode,
            **kwargs,
        )

    @classmethod
    def invocation_failure(cls, args: list[str], error: str, **kwargs: Any) -> CommandOutcome:
        return cls(args=args, status="not_run", error=error, **kwargs)


def run_command(
    args: Sequence[str],
    ctx: DiscoveryContext,
    *,
    cwd: Path | None = None,
    timeout: float | None = None,
) -> CommandOutcome:
    """Run *args* and wait for it within the context's deadline.

    Args:
        args: Program and arguments (no shell).
        ctx: Discovery context bounding the wait.
        cwd: Working directory (default: ``ctx.cwd``).
        timeout: Optional per-command cap in seconds, further bounded by
            the context's remaining time.

    Returns:
        CommandOutcome — never raises for a missing tool, a non-zero exit,
        or an expired context.
    """
    cmd = [str(a) for a in args]
    if ctx.expired:
        reason = "cancelled" if ctx.cancelled else "deadline exceeded before start"
        logger.debug("Skipping %s: %s", cmd, reason)
        return CommandOutcome.invocation_failure(cmd, reason, timed_out=True)

    limit = ctx.remaining() if timeout is None else ctx.bounded(timeout)
    workdir = cwd or ctx.cwd
    logger.debug("Running: %s (cwd=%s, limit=%s)", cmd, workdir, limit)

    start = time.monotonic()
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(workdir),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError:
        return CommandOutcome.invocation_failure(cmd, f"{cmd[0]}: command not found")
    except OSError as e:
        return CommandOutcome.invocation_failure(cmd, f"{cmd[0]}: {e}")

    deadline = None if limit is None else start + limit
    while True:
        if ctx.cancelled:
            _kill(proc)
            logger.debug("Killed %s: context cancelled", cmd)
            return CommandOutcome.invocation_failure(
                cmd, "cancelled", timed_out=True, duration_ms=_elapsed_ms(start),
            )

        wait = _POLL_INTERVAL
        if deadline is not None:
            wait = min(wait, max(deadline - time.monotonic(), 0.0))
        try:
            stdout, stderr = proc.communicate(timeout=wait)
            break
        except subprocess.TimeoutExpired:
            if deadline is not None and time.monotonic() >= deadline:
                _kill(proc)
                logger.debug("Killed %s: timed out after %.2fs", cmd, limit)
                return CommandOutcome.invocation_failure(
                    cmd,
                    f"timed out after {limit:.1f}s",
                    timed_out=True,
                    duration_ms=_elapsed_ms(start),
                )

    elapsed = _elapsed_ms(start)
    if proc.returncode == 0:
        return CommandOutcome.success(cmd, stdout, stderr, duration_ms=elapsed)

    logger.debug("%s exited with %s", cmd, proc.returncode)
    return CommandOutcome.tool_failure(cmd, proc.returncode, stdout, stderr, duration_ms=elapsed)


def _kill(proc: subprocess.Popen[bytes]) -> None:
    """Kill a running process and reap it."""
    proc.kill()
    proc.wait()


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
