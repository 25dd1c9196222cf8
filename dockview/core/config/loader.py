"""
Configuration loader — reads dockview.yml into the Settings model.

The config file is optional: with no file anywhere up the tree the
defaults apply.  A file that exists but cannot be read or validated is
an error (``ConfigError``) so typos never silently fall back.

Precedence:  environment variables  >  dockview.yml  >  defaults
"""

from __future__ import annotations

import logging
import os
import shlex
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "dockview.yml"


class ConfigError(Exception):
    """Raised when the configuration file is unreadable or invalid."""


class Settings(BaseModel):
    """Runtime settings for discovery and the interface layer."""

    discovery_timeout: float = Field(default=10.0, gt=0)
    command_timeout: float = Field(default=10.0, gt=0)
    refresh_interval: float = Field(default=5.0, gt=0)

    docker_command: list[str] = Field(default_factory=lambda: ["docker"])
    compose_command: list[str] = Field(default_factory=lambda: ["docker", "compose"])
    legacy_compose_command: list[str] = Field(default_factory=lambda: ["docker-compose"])

    scan_root: str | None = None
    scan_max_depth: int = Field(default=4, ge=0)
    scan_exclude: list[str] = Field(
        default_factory=lambda: [".git", "node_modules", ".venv", "venv", "__pycache__", ".tox"],
    )

    log_file: str | None = None

    @field_validator("docker_command", "compose_command", "legacy_compose_command", mode="before")
    @classmethod
    def _split_command(cls, value: object) -> object:
        # "docker compose" in YAML or env → ["docker", "compose"]
        if isinstance(value, str):
            return shlex.split(value)
        return value

    @field_validator("docker_command", "compose_command")
    @classmethod
    def _non_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("command must not be empty")
        return value

    def scan_directory(self, cwd: Path) -> Path:
        """Root of the filesystem scan for declaration files."""
        if self.scan_root:
            root = Path(self.scan_root).expanduser()
            return root if root.is_absolute() else (cwd / root)
        return cwd


# Environment overrides: env var → settings field
_ENV_OVERRIDES = {
    "DVW_DISCOVERY_TIMEOUT": "discovery_timeout",
    "DVW_COMMAND_TIMEOUT": "command_timeout",
    "DVW_COMPOSE_COMMAND": "compose_command",
    "DVW_DOCKER_COMMAND": "docker_command",
    "DVW_SCAN_ROOT": "scan_root",
}


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for dockview.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to dockview.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None, *, search: bool = True) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit path to dockview.yml.  If None and ``search`` is
            True, searches upward from the cwd.
        search: Whether to search for a config file when none is given.

    Returns:
        Validated Settings (defaults when no file is found).

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    data: dict = {}

    if path is not None and not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    if path is None and search:
        path = find_config_file()

    if path is not None:
        logger.debug("Loading settings from %s", path)
        data = _read_yaml(path)
    else:
        logger.debug("No %s found, using defaults", CONFIG_FILE)

    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data[field_name] = value

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        source = path or "environment"
        raise ConfigError(f"Invalid settings in {source}: {e}") from e

    logger.info(
        "Settings: compose=%s timeout=%.1fs scan_depth=%d",
        " ".join(settings.compose_command),
        settings.discovery_timeout,
        settings.scan_max_depth,
    )
    return settings


def _read_yaml(path: Path) -> dict:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The file may nest everything under a "dockview" key or be flat
    if isinstance(data.get("dockview"), dict):
        data = data["dockview"]
    return dict(data)
