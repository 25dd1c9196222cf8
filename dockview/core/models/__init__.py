"""
Domain models — Pydantic types for the viewer and the discovery engine.

All models are re-exported here for convenient access:

    from dockview.core.models import ComposeProject, ComposeService, ContainerInfo
"""

from dockview.core.models.compose import ComposeProject, ComposeService, ProjectDetail
from dockview.core.models.container import (
    ContainerInfo,
    ContainerState,
    ContainerStats,
    short_id,
)
from dockview.core.models.discovery import DiscoveryResult
from dockview.core.models.resources import ImageInfo, NetworkInfo, VolumeInfo

__all__ = [
    # compose.py
    "ComposeProject",
    "ComposeService",
    "ProjectDetail",
    # container.py
    "ContainerInfo",
    "ContainerState",
    "ContainerStats",
    "short_id",
    # discovery.py
    "DiscoveryResult",
    # resources.py
    "ImageInfo",
    "NetworkInfo",
    "VolumeInfo",
]
