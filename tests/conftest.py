"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from dockview.core.config.loader import Settings
from dockview.core.context import DiscoveryContext

# The two-service declaration used throughout the suite
WEB_DB_COMPOSE = textwrap.dedent("""\
    services:
      web:
        image: nginx:latest
        ports:
          - "8080:80"
      db:
        image: postgres:14
""")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep DVW_* variables from the developer's shell out of the tests."""
    for name in (
        "DVW_DISCOVERY_TIMEOUT",
        "DVW_COMMAND_TIMEOUT",
        "DVW_COMPOSE_COMMAND",
        "DVW_DOCKER_COMMAND",
        "DVW_SCAN_ROOT",
        "DVW_LOG_LEVEL",
        "DVW_LOG_FILE",
        "DVW_LOG_FILE_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    """Default settings."""
    return Settings()


@pytest.fixture
def ctx(tmp_path: Path) -> DiscoveryContext:
    """A generous discovery context rooted at tmp_path."""
    return DiscoveryContext(timeout=30, cwd=tmp_path)


@pytest.fixture
def web_db_project(tmp_path: Path) -> Path:
    """A project directory holding the web/db declaration."""
    project = tmp_path / "myapp"
    project.mkdir()
    (project / "docker-compose.yml").write_text(WEB_DB_COMPOSE)
    return project


@pytest.fixture
def web_db_compose() -> str:
    """The web/db declaration text."""
    return WEB_DB_COMPOSE
