"""
Compose models — projects and the services they declare.

Both are read-only snapshots reconstructed on every discovery call.
The only identity carried across calls is the project name string the
caller hands back in.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, computed_field

from dockview.core.models.container import ContainerInfo

# Where a project's path came from, most to least trustworthy
PathSource = Literal[
    "reported",       # the compose tool listed it
    "filesystem",     # the declaration file was found on disk
    "config_files",   # parent directory of the reported config file
    "tool_config",    # `compose config --format json` working_dir
    "tool_listing",   # `compose ls -a` text, third column
    "fallback",       # current working directory, unverified
    "",
]


class ComposeProject(BaseModel):
    """A named bundle of services declared by one compose file."""

    name: str
    path: str = ""
    config_files: str = ""
    status: str = "unknown"
    source: Literal["tool", "filesystem"] = "tool"
    path_source: PathSource = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def path_verified(self) -> bool:
        """False when the path is the working-directory fallback."""
        return bool(self.path) and self.path_source != "fallback"

    @property
    def dedup_key(self) -> str:
        return f"{self.name}:{self.path}"


class ComposeService(BaseModel):
    """One named component of a project's declaration.

    ``cpu``, ``memory`` and ``memory_limit`` are only set when live
    stats were read for the service's containers.
    """

    name: str
    image: str = ""
    ports: list[str] = Field(default_factory=list)
    containers: list[str] = Field(default_factory=list)
    cpu: float | None = None
    memory: int | None = None
    memory_limit: int | None = None


class ProjectDetail(BaseModel):
    """Services and containers of one project, reconciled together."""

    project: str
    path: str = ""
    declaration: str = ""
    services: list[ComposeService] = Field(default_factory=list)
    containers: list[ContainerInfo] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    hints: list[str] = Field(default_factory=list)
