"""
Container model — a runtime-managed process instance as the engine sees it.

The runtime owns containers; the engine only observes and classifies
them.  Records are rebuilt on every discovery call.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, computed_field, field_validator

# Labels every compose tool sets on the containers it creates
PROJECT_LABEL = "com.docker.compose.project"
SERVICE_LABEL = "com.docker.compose.service"

# Canonical short-id length used by the docker CLI
SHORT_ID_LENGTH = 12


def short_id(value: str) -> str:
    """Truncate a container id to its canonical short form."""
    value = value.strip()
    if value.startswith("sha256:"):
        value = value[len("sha256:"):]
    return value[:SHORT_ID_LENGTH]


class ContainerState(StrEnum):
    """Coarse container lifecycle state."""

    CREATED = "created"
    RUNNING = "running"
    PAUSED = "paused"
    RESTARTING = "restarting"
    EXITED = "exited"
    DEAD = "dead"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, state: str | None, status: str | None = None) -> ContainerState:
        """Resolve a state from the runtime's state word, else its status text.

        ``state`` is the runtime's own word (``running``, ``exited`` ...).
        When it is missing or not one we know, the human status text
        (``Up 2 hours``, ``Exited (0) 3 minutes ago``) is used instead.
        """
        if state:
            try:
                return cls(state.strip().lower())
            except ValueError:
                pass
        return cls.from_status(status or "")

    @classmethod
    def from_status(cls, status: str) -> ContainerState:
        text = status.strip().lower()
        if not text:
            return cls.UNKNOWN
        if text.startswith("up"):
            return cls.PAUSED if "(paused)" in text else cls.RUNNING
        if text.startswith("exited"):
            return cls.EXITED
        if text.startswith("restarting"):
            return cls.RESTARTING
        if text.startswith("created"):
            return cls.CREATED
        if text.startswith("dead"):
            return cls.DEAD
        if "running" in text:
            return cls.RUNNING
        return cls.UNKNOWN


class ContainerInfo(BaseModel):
    """A container row, shared by the compose engine and the resource views."""

    id: str
    name: str = ""
    image: str = ""
    command: str = ""
    status: str = ""
    state: ContainerState = ContainerState.UNKNOWN
    created: datetime | None = None      # None when the source has no timestamp
    ports: list[str] = Field(default_factory=list)

    service: str = ""                    # com.docker.compose.service, when known
    project: str = ""                    # com.docker.compose.project, when known
    labels: dict[str, str] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def _truncate_id(cls, value: str) -> str:
        return short_id(value)

    @field_validator("name")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.lstrip("/")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_name(self) -> str:
        """Container name with its compose service appended, when known."""
        if self.service:
            return f"{self.name} ({self.service})"
        return self.name

    def matches_id(self, other: str) -> bool:
        """Identifier-prefix match in either direction.

        Tool output ids can be shorter or longer than the canonical
        12-character form.
        """
        other = other.strip()
        if not other or not self.id:
            return False
        return self.id.startswith(short_id(other)) or other.startswith(self.id)


class ContainerStats(BaseModel):
    """One-shot resource usage for a container.

    Every reading is optional: a field the source did not provide (or
    that could not be decoded) stays None rather than reading as zero.
    """

    container: str = ""
    cpu_percent: float | None = None
    memory_usage: int | None = None
    memory_limit: int | None = None
    memory_percent: float | None = None
    net_rx: int | None = None
    net_tx: int | None = None
    block_read: int | None = None
    block_write: int | None = None
