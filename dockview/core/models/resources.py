"""
Resource models — images, volumes and networks for the simple resource views.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ImageInfo(BaseModel):
    """A local image."""

    id: str
    repository: str = ""
    tag: str = ""
    size: str = ""
    created: str = ""

    @property
    def reference(self) -> str:
        return f"{self.repository or '<none>'}:{self.tag or '<none>'}"


class VolumeInfo(BaseModel):
    """A named volume."""

    name: str
    driver: str = ""
    mountpoint: str = ""
    labels: dict[str, str] = Field(default_factory=dict)


class NetworkInfo(BaseModel):
    """A runtime network."""

    id: str
    name: str = ""
    driver: str = ""
    scope: str = ""
