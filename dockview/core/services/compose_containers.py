"""Compose container matching — which runtime containers belong to a project.

Compose releases have named and labelled containers differently over
time (``myapp_web_1``, ``myapp-web-1``, lowercased project names, no
labels at all from very old tooling).  Matching runs an ordered chain;
each step runs only when every earlier step found nothing:

    1. label      ``com.docker.compose.project=<name>``
    2. spelling   label lookups for ``_``↔``-`` spellings, then container
                  names equal to / prefixed by any spelling
    3. lowercase  the same with the lowercased name, if it differs
    4. tool       ``compose ps`` for the project, cross-referenced
                  against the runtime listing by id prefix
    5. tokens     runtime names split on ``_``, any token equal to a
                  MatchKey form

No spelling combines lowercasing with the dash swap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from dockview.adapters.containers.docker import DockerRuntime, RuntimeUnavailable
from dockview.core.config.loader import Settings
from dockview.core.context import DiscoveryContext
from dockview.core.models.container import PROJECT_LABEL, ContainerInfo
from dockview.core.models.discovery import DiscoveryResult
from dockview.core.services.compose_common import run_compose, run_legacy_compose
from dockview.core.services.compose_output import interpret_containers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchKey:
    """Normalised spellings of a project name.

    ``lower``, ``dashed`` and ``underscored`` are treated as the same
    project when compared against container names and labels.
    """

    name: str

    @property
    def lower(self) -> str:
        return self.name.lower()

    @property
    def dashed(self) -> str:
        return self.name.replace("_", "-")

    @property
    def underscored(self) -> str:
        return self.name.replace("-", "_")

    @property
    def forms(self) -> tuple[str, ...]:
        """Every distinct form, original first."""
        seen: list[str] = []
        for form in (self.name, self.lower, self.dashed, self.underscored):
            if form not in seen:
                seen.append(form)
        return tuple(seen)

    def alternate_spellings(self) -> list[str]:
        """Dash / underscore spellings that differ from the name."""
        return [s for s in dict.fromkeys((self.dashed, self.underscored)) if s != self.name]

    def matches(self, text: str) -> bool:
        """Exact equality with one of :attr:`forms`."""
        return text in self.forms


def name_has_prefix(container_name: str, spelling: str) -> bool:
    """``myapp-web-1`` / ``myapp_web_1`` / ``myapp`` all belong to ``myapp``."""
    return (
        container_name == spelling
        or container_name.startswith(spelling + "-")
        or container_name.startswith(spelling + "_")
    )


def find_project_containers(
    name: str,
    ctx: DiscoveryContext,
    runtime: DockerRuntime,
    settings: Settings,
) -> DiscoveryResult:
    """Run the matching chain for one project.

    Returns:
        DiscoveryResult whose ``source`` names the step that matched.
    """
    if not name or not name.strip():
        return DiscoveryResult(error="No project name provided")

    matcher = _Matcher(MatchKey(name.strip()), ctx, runtime, settings)
    return matcher.run()


class _Matcher:
    """State for one matching call (never reused)."""

    def __init__(
        self,
        key: MatchKey,
        ctx: DiscoveryContext,
        runtime: DockerRuntime,
        settings: Settings,
    ) -> None:
        self.key = key
        self.ctx = ctx
        self.runtime = runtime
        self.settings = settings
        self.result = DiscoveryResult()
        self.found: dict[str, ContainerInfo] = {}
        self._listing: list[ContainerInfo] | None = None
        self._runtime_down = False

    def run(self) -> DiscoveryResult:
        steps = (
            ("label", self.label_step),
            ("spelling", self.spelling_step),
            ("lowercase", self.lowercase_step),
            ("tool", self.tool_step),
            ("tokens", self.token_step),
        )
        for source, step in steps:
            if self.ctx.expired:
                self.result.note(f"stopped before {source} step: context expired")
                self.result.complete = False
                break
            step()
            if self.found:
                self.result.source = source
                break
            logger.debug("Project %s: %s step found nothing", self.key.name, source)

        self.result.items = list(self.found.values())
        if self.result.empty:
            self.result.hints = [
                "Check if containers are running with 'docker ps'",
                f"Start the project with 'docker compose -p {self.key.name} up -d'",
                "Verify the project name matches the container name prefix",
            ]
        logger.info(
            "Project %s: %d container(s) via %s",
            self.key.name, len(self.result.items), self.result.source or "nothing",
        )
        return self.result

    # ── Steps ───────────────────────────────────────────────────

    def label_step(self) -> None:
        self._collect(self._by_label(self.key.name))

    def spelling_step(self) -> None:
        for spelling in self.key.alternate_spellings():
            self._collect(self._by_label(spelling))
        if not self.found:
            self._collect(self._by_name((self.key.name, *self.key.alternate_spellings())))

    def lowercase_step(self) -> None:
        lower = self.key.lower
        if lower == self.key.name:
            return
        self._collect(self._by_label(lower))
        if not self.found:
            self._collect(self._by_name((lower,)))

    def tool_step(self) -> None:
        reported = self._from_tool()
        if not reported:
            return
        listing = self._all_containers()
        for record in reported:
            runtime_match = next((c for c in listing if c.matches_id(record.id)), None)
            if runtime_match is None:
                self._collect([record])
                continue
            if not runtime_match.service and record.service:
                runtime_match = runtime_match.model_copy(update={"service": record.service})
            self._collect([runtime_match])

    def token_step(self) -> None:
        matched = [
            c for c in self._all_containers()
            if any(self.key.matches(token) for token in c.name.split("_") if token)
        ]
        self._collect(matched)

    # ── Lookups ─────────────────────────────────────────────────

    def _by_label(self, project: str) -> list[ContainerInfo]:
        if self._runtime_down:
            return []
        try:
            return self.runtime.list_containers(self.ctx, label=f"{PROJECT_LABEL}={project}")
        except RuntimeUnavailable as e:
            self._runtime_failed(f"label lookup {project}", e)
            return []

    def _by_name(self, spellings: tuple[str, ...]) -> list[ContainerInfo]:
        matched = []
        for container in self._all_containers():
            if not any(name_has_prefix(container.name, s) for s in spellings):
                continue
            try:
                labels = self.runtime.container_labels(container, self.ctx)
            except RuntimeUnavailable as e:
                # Only this container is dropped
                self.result.note(f"{container.name}: labels unavailable ({e})")
                continue
            owner = labels.get(PROJECT_LABEL, "")
            if owner and not self.key.matches(owner):
                logger.debug("Skipping %s: belongs to project %s", container.name, owner)
                continue
            matched.append(container)
        return matched

    def _all_containers(self) -> list[ContainerInfo]:
        if self._listing is not None:
            return self._listing
        self._listing = []
        if self._runtime_down:
            return self._listing
        try:
            self._listing = self.runtime.list_containers(self.ctx)
        except RuntimeUnavailable as e:
            self._runtime_failed("container listing", e)
        return self._listing

    def _from_tool(self) -> list[ContainerInfo]:
        name = self.key.name
        attempts = (
            (run_compose, ("--project-name", name, "ps", "-a", "--format", "json")),
            (run_compose, ("--project-name", name, "ps")),
            (run_legacy_compose, ("--project-name", name, "ps")),
        )
        for runner, args in attempts:
            if self.ctx.expired:
                self.result.complete = False
                return []
            outcome = runner(*args, ctx=self.ctx, settings=self.settings)
            if not outcome.ok:
                self.result.note(outcome.describe())
                if outcome.timed_out:
                    self.result.complete = False
                continue
            containers, failures = interpret_containers(outcome.stdout)
            if containers:
                return containers
            for failure in failures:
                self.result.note(f"{' '.join(outcome.args)}: {failure}")
        return []

    # ── Bookkeeping ─────────────────────────────────────────────

    def _collect(self, containers: list[ContainerInfo]) -> None:
        for container in containers:
            if container.id and container.id not in self.found:
                self.found[container.id] = container

    def _runtime_failed(self, what: str, error: RuntimeUnavailable) -> None:
        self.result.note(f"{what}: {error}")
        if error.timed_out:
            self.result.complete = False
        else:
            self._runtime_down = True
