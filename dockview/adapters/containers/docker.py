"""
Docker adapter — the runtime client the engine and the resource views use.

Uses the docker CLI — never the Docker API directly.  Every listing asks
for ``--format {{json .}}`` (one object per line) and decodes it into the
shared models.  Any failure to reach the runtime raises
``RuntimeUnavailable``; callers decide whether that narrows a result or
ends it.
"""

from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Sequence

from dockview.adapters.shell.command import CommandOutcome, run_command
from dockview.core.config.loader import Settings
from dockview.core.context import DiscoveryContext
from dockview.core.models.container import ContainerInfo, ContainerStats
from dockview.core.models.resources import ImageInfo, NetworkInfo, VolumeInfo
from dockview.core.services.compose_output import container_from_record, parse_labels
from dockview.core.services.container_stats import decode_stats

logger = logging.getLogger(__name__)

_JSON_FORMAT = "{{json .}}"

# Object kinds ``docker <kind> inspect`` accepts
INSPECT_KINDS = ("container", "image", "volume", "network")


class RuntimeUnavailable(Exception):
    """The docker CLI could not answer (missing, daemon down, timed out)."""

    def __init__(self, message: str, outcome: CommandOutcome | None = None) -> None:
        super().__init__(message)
        self.outcome = outcome

    @property
    def timed_out(self) -> bool:
        return bool(self.outcome and self.outcome.timed_out)


class DockerRuntime:
    """Container runtime client backed by the docker CLI.

    Args:
        settings: Supplies ``docker_command`` and the per-call timeout.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()

    @property
    def name(self) -> str:
        return "docker"

    def is_available(self) -> bool:
        return shutil.which(self.settings.docker_command[0]) is not None

    # ── Containers ──────────────────────────────────────────────

    def list_containers(
        self,
        ctx: DiscoveryContext,
        *,
        all_: bool = True,
        label: str | None = None,
    ) -> list[ContainerInfo]:
        """List containers, optionally filtered by ``label`` (``key=value``)."""
        args = ["ps"]
        if all_:
            args.append("-a")
        if label:
            args += ["--filter", f"label={label}"]
        args += ["--format", _JSON_FORMAT]

        containers = []
        for record in self._json_lines(args, ctx):
            container = container_from_record(record)
            if container is not None:
                containers.append(container)
        return containers

    def inspect_labels(self, container_id: str, ctx: DiscoveryContext) -> dict[str, str]:
        """Labels of one container via ``docker inspect``."""
        output = self._docker(
            ["inspect", "--format", "{{json .Config.Labels}}", container_id], ctx,
        )
        text = output.decode("utf-8", errors="replace").strip()
        if not text or text == "null":
            return {}
        try:
            return parse_labels(json.loads(text))
        except json.JSONDecodeError as e:
            raise RuntimeUnavailable(f"Unreadable labels for {container_id}: {e}") from e

    def container_labels(self, container: ContainerInfo, ctx: DiscoveryContext) -> dict[str, str]:
        """Labels from the listing, else from an inspect call."""
        if container.labels:
            return container.labels
        return self.inspect_labels(container.id, ctx)

    def container_stats(
        self,
        container_ids: Sequence[str],
        ctx: DiscoveryContext,
    ) -> list[ContainerStats]:
        """One-shot resource usage for the given containers."""
        if not container_ids:
            return []
        records = self._json_lines(
            ["stats", "--no-stream", "--format", _JSON_FORMAT, *container_ids], ctx,
        )
        return [decode_stats(record)[0] for record in records]

    # ── Other resources ─────────────────────────────────────────

    def list_images(self, ctx: DiscoveryContext) -> list[ImageInfo]:
        images = []
        for record in self._json_lines(["images", "--format", _JSON_FORMAT], ctx):
            images.append(ImageInfo(
                id=str(record.get("id", "")),
                repository=str(record.get("repository", "")),
                tag=str(record.get("tag", "")),
                size=str(record.get("size", "")),
                created=str(record.get("createdsince", record.get("createdat", ""))),
            ))
        return images

    def list_volumes(self, ctx: DiscoveryContext) -> list[VolumeInfo]:
        volumes = []
        for record in self._json_lines(["volume", "ls", "--format", _JSON_FORMAT], ctx):
            volumes.append(VolumeInfo(
                name=str(record.get("name", "")),
                driver=str(record.get("driver", "")),
                mountpoint=str(record.get("mountpoint", "")),
                labels=parse_labels(record.get("labels")),
            ))
        return volumes

    def list_networks(self, ctx: DiscoveryContext) -> list[NetworkInfo]:
        networks = []
        for record in self._json_lines(["network", "ls", "--format", _JSON_FORMAT], ctx):
            networks.append(NetworkInfo(
                id=str(record.get("id", "")),
                name=str(record.get("name", "")),
                driver=str(record.get("driver", "")),
                scope=str(record.get("scope", "")),
            ))
        return networks

    # ── Single objects ──────────────────────────────────────────

    def container_logs(self, container_id: str, ctx: DiscoveryContext, *, tail: int = 100) -> str:
        """Last *tail* lines of a container's log, with timestamps.

        The container's stderr stream follows its stdout stream.
        """
        outcome = self._run(
            ["logs", "--timestamps", "--tail", str(tail), container_id], ctx,
        )
        return outcome.text + outcome.stderr.decode("utf-8", errors="replace")

    def inspect(self, kind: str, target: str, ctx: DiscoveryContext) -> dict:
        """Full ``docker <kind> inspect`` document for one object.

        Args:
            kind: One of ``INSPECT_KINDS``.
            target: Id or name.
        """
        if kind not in INSPECT_KINDS:
            raise ValueError(f"Cannot inspect a {kind!r}; expected one of {', '.join(INSPECT_KINDS)}")
        output = self._docker([kind, "inspect", target], ctx)
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise RuntimeUnavailable(f"Unreadable inspect output for {kind} {target}: {e}") from e
        if isinstance(data, list) and data and isinstance(data[0], dict):
            return data[0]
        raise RuntimeUnavailable(f"Empty inspect result for {kind} {target}")

    # ── Helpers ─────────────────────────────────────────────────

    def _run(self, args: list[str], ctx: DiscoveryContext) -> CommandOutcome:
        """Run a docker command; raise RuntimeUnavailable unless it succeeds."""
        outcome = run_command(
            [*self.settings.docker_command, *args],
            ctx,
            timeout=self.settings.command_timeout,
        )
        if not outcome.ok:
            raise RuntimeUnavailable(outcome.describe(), outcome)
        return outcome

    def _docker(self, args: list[str], ctx: DiscoveryContext) -> bytes:
        return self._run(args, ctx).stdout

    def _json_lines(self, args: list[str], ctx: DiscoveryContext) -> list[dict]:
        """Run a ``--format {{json .}}`` command and decode each line."""
        records = []
        for line in self._docker(args, ctx).decode("utf-8", errors="replace").splitlines():
            if not line.strip():
                continue
            try:
                info = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Skipping non-JSON line from docker %s: %r", args[0], line[:80])
                continue
            if isinstance(info, dict):
                records.append({str(k).lower(): v for k, v in info.items()})
        return records
