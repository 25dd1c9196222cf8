"""Compose output interpretation — turn tool output bytes into records.

Compose releases disagree about what ``--format json`` means:

    - older releases print a JSON array
    - some print a single JSON object when there is one entry
    - current releases print one JSON object per line
    - without a JSON-capable release there is only the text table

``interpret`` walks an explicit ladder of decode attempts, one per
format, and returns the first that yields at least one well-formed
record.  Every attempt reports a ``StrategyResult``; the failures are
kept so callers can surface why nothing was understood.

JSON keys are normalised to lowercase, so ``ID``, ``Id`` and ``id``
all read as ``id``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from dockview.core.models.compose import ComposeProject
from dockview.core.models.container import (
    PROJECT_LABEL,
    SERVICE_LABEL,
    ContainerInfo,
    ContainerState,
)

logger = logging.getLogger(__name__)

# Text-table columns, in positional order
PROJECT_COLUMNS = ("name", "status", "path")
CONTAINER_COLUMNS = ("id", "name", "status")

# Header words that identify the first text line as a header
_PROJECT_HEADERS = ("name", "status", "config files")
_CONTAINER_HEADERS = ("container id", "name", "image", "status", "service")

# `"name": "value"` fragments in output that is JSON-ish but not JSON
_NAME_FRAGMENT = re.compile(r'"name"\s*:\s*"([^"]+)"', re.IGNORECASE)

Record = dict[str, Any]


# ═══════════════════════════════════════════════════════════════════
#  Decode ladder
# ═══════════════════════════════════════════════════════════════════


@dataclass
class StrategyResult:
    """Outcome of one decode attempt."""

    strategy: str
    records: list[Record] = field(default_factory=list)
    applicable: bool = False
    reason: str = ""


@dataclass
class Interpretation:
    """First successful decode attempt, or every attempt's failure reason."""

    records: list[Record] = field(default_factory=list)
    strategy: str = ""
    failures: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.records


def interpret(
    data: bytes,
    columns: Sequence[str],
    *,
    header_markers: Sequence[str] = (),
    min_fields: int = 1,
) -> Interpretation:
    """Decode tool output through the JSON → text ladder.

    Args:
        data: Raw tool stdout.
        columns: Positional column names for the text scanner; the last
            column absorbs the remainder of the line.
        header_markers: Lowercase words identifying a header line.
        min_fields: Text lines with fewer tokens are skipped.

    Returns:
        Interpretation with the winning strategy's records.
    """
    text = data.decode("utf-8", errors="replace").strip()
    result = Interpretation()
    if not text:
        result.failures.append("no output")
        return result

    attempts: list[Callable[[], StrategyResult]] = [
        lambda: _json_array(text),
        lambda: _json_object(text),
        lambda: _json_lines(text),
        lambda: _text_table(text, columns, header_markers, min_fields),
    ]
    for attempt in attempts:
        outcome = attempt()
        if outcome.applicable and outcome.records:
            result.records = outcome.records
            result.strategy = outcome.strategy
            logger.debug("Interpreted %d record(s) as %s", len(outcome.records), outcome.strategy)
            return result
        result.failures.append(f"{outcome.strategy}: {outcome.reason or 'no records'}")

    logger.debug("Output not understood: %s", "; ".join(result.failures))
    return result


def _json_array(text: str) -> StrategyResult:
    outcome = StrategyResult("json_array")
    if not text.startswith("["):
        outcome.reason = "not a JSON array"
        return outcome
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        outcome.reason = f"invalid JSON: {e.msg}"
        return outcome
    outcome.applicable = True
    outcome.records = [_normalize_keys(item) for item in parsed if _well_formed(item)]
    if not outcome.records:
        outcome.reason = "array has no objects"
    return outcome


def _json_object(text: str) -> StrategyResult:
    outcome = StrategyResult("json_object")
    if not text.startswith("{"):
        outcome.reason = "not a JSON object"
        return outcome
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        outcome.reason = f"invalid JSON: {e.msg}"
        return outcome
    outcome.applicable = True
    if _well_formed(parsed):
        outcome.records = [_normalize_keys(parsed)]
    else:
        outcome.reason = "empty object"
    return outcome


def _json_lines(text: str) -> StrategyResult:
    outcome = StrategyResult("json_lines")
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines or not lines[0].startswith("{"):
        outcome.reason = "not line-delimited JSON"
        return outcome
    outcome.applicable = True
    skipped = 0
    for line in lines:
        try:
            item = json.loads(line)
        except json.JSONDecodeError:
            skipped += 1
            continue
        if _well_formed(item):
            outcome.records.append(_normalize_keys(item))
    if skipped:
        outcome.reason = f"{skipped} line(s) were not JSON"
    return outcome


def _text_table(
    text: str,
    columns: Sequence[str],
    header_markers: Sequence[str],
    min_fields: int,
) -> StrategyResult:
    outcome = StrategyResult("text", applicable=True)
    lines = [line for line in text.splitlines() if line.strip()]
    if lines and _is_header(lines[0], header_markers):
        lines = lines[1:]

    width = len(columns)
    for line in lines:
        tokens = line.split(None, width - 1)
        if len(tokens) < min_fields:
            continue
        outcome.records.append(
            {column: value.strip() for column, value in zip(columns, tokens)}
        )
    if not outcome.records:
        outcome.reason = "no data lines"
    return outcome


def _is_header(line: str, markers: Sequence[str]) -> bool:
    lowered = line.lower()
    tokens = lowered.split()
    for marker in markers:
        if (" " in marker and marker in lowered) or marker in tokens:
            return True
    return False


def _well_formed(item: object) -> bool:
    return isinstance(item, dict) and any(v not in (None, "", [], {}) for v in item.values())


def _normalize_keys(item: dict) -> Record:
    return {str(k).lower(): v for k, v in item.items()}


def _text(record: Record, *keys: str) -> str:
    """First non-empty value among *keys*, as a string."""
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return str(value)
    return ""


# ═══════════════════════════════════════════════════════════════════
#  Projects
# ═══════════════════════════════════════════════════════════════════


def interpret_projects(data: bytes) -> tuple[list[ComposeProject], list[str]]:
    """``compose ls`` output → ComposeProject records.

    Returns:
        (projects, failure reasons when nothing was understood)
    """
    result = interpret(data, PROJECT_COLUMNS, header_markers=_PROJECT_HEADERS)
    projects = [p for p in (project_from_record(r) for r in result.records) if p]
    if projects:
        return projects, []

    # Last resort: JSON-looking output that did not decode
    scraped = scrape_project_names(data)
    if scraped:
        logger.debug("Scraped %d project name(s) from malformed output", len(scraped))
        return [ComposeProject(name=n) for n in scraped], []
    return [], result.failures


def project_from_record(record: Record) -> ComposeProject | None:
    """Build a project from one decoded record (JSON or text)."""
    name = _text(record, "name")
    # Fragments of broken JSON are not names; the scraper handles those
    if not name or name.startswith(("{", "[", "\"")):
        return None

    config_files = _text(record, "configfiles", "config_files")
    path = _text(record, "path", "workingdir", "working_dir")
    path_source = "reported" if path else ""

    # Text tables put the config file list in the last column
    if path and _looks_like_declaration(path) and not config_files:
        config_files, path, path_source = path, "", ""

    return ComposeProject(
        name=name,
        path=path,
        config_files=config_files,
        status=_text(record, "status") or "unknown",
        source="tool",
        path_source=path_source,
    )


def scrape_project_names(data: bytes) -> list[str]:
    """Names from ``"name": "..."`` fragments, in order, without repeats."""
    names: list[str] = []
    for line in data.decode("utf-8", errors="replace").splitlines():
        for match in _NAME_FRAGMENT.finditer(line):
            if match.group(1) not in names:
                names.append(match.group(1))
    return names


def first_config_file(config_files: str) -> Path | None:
    """First entry of a comma-separated config file list."""
    for entry in config_files.split(","):
        if entry.strip():
            return Path(entry.strip())
    return None


def _looks_like_declaration(value: str) -> bool:
    first = value.split(",")[0].strip().lower()
    return first.endswith((".yml", ".yaml"))


# ═══════════════════════════════════════════════════════════════════
#  Containers
# ═══════════════════════════════════════════════════════════════════


def interpret_containers(data: bytes) -> tuple[list[ContainerInfo], list[str]]:
    """``compose ps`` / ``docker ps`` output → ContainerInfo records."""
    result = interpret(
        data,
        CONTAINER_COLUMNS,
        header_markers=_CONTAINER_HEADERS,
        min_fields=3,
    )
    containers: list[ContainerInfo] = []
    for record in result.records:
        if result.strategy == "text":
            container = _container_from_text(record)
        else:
            container = container_from_record(record)
        if container is not None:
            containers.append(container)
    return containers, ([] if containers else result.failures)


def container_from_record(record: Record) -> ContainerInfo | None:
    """Build a container from a decoded JSON record (docker or compose)."""
    raw_id = _text(record, "id")
    if not raw_id:
        return None

    labels = parse_labels(record.get("labels"))
    status = _text(record, "status")
    return ContainerInfo(
        id=raw_id,
        name=_text(record, "name", "names").split(",")[0],
        image=_text(record, "image"),
        command=_text(record, "command").strip('"'),
        status=status,
        state=ContainerState.parse(_text(record, "state"), status),
        created=parse_created(record.get("createdat", record.get("created"))),
        ports=parse_ports(record.get("publishers") or record.get("ports")),
        service=_text(record, "service") or labels.get(SERVICE_LABEL, ""),
        project=_text(record, "project") or labels.get(PROJECT_LABEL, ""),
        labels=labels,
    )


def _container_from_text(record: Record) -> ContainerInfo | None:
    raw_id = record.get("id", "")
    name = record.get("name", "")
    if not raw_id or not name:
        return None
    # A single trailing token is not a status ("Up 2 hours", "Exited (0) ...")
    status = record.get("status", "")
    if " " not in status:
        status = "unknown"
    parts = name.split("_")
    return ContainerInfo(
        id=raw_id,
        name=name,
        status=status,
        state=ContainerState.from_status(status),
        service=parts[1] if len(parts) > 1 else "",
    )


# ── Field decoding ──────────────────────────────────────────────


def parse_labels(value: object) -> dict[str, str]:
    """Labels as a mapping, from either a dict or ``"k=v,k=v"`` text."""
    if isinstance(value, dict):
        return {str(k): str(v) for k, v in value.items()}
    if not isinstance(value, str) or not value.strip():
        return {}
    labels: dict[str, str] = {}
    for pair in value.split(","):
        key, sep, val = pair.partition("=")
        if sep and key.strip():
            labels[key.strip()] = val.strip()
    return labels


def parse_ports(value: object) -> list[str]:
    """Port mappings from ``"a->b/tcp, c->d/tcp"`` text or compose publishers."""
    if isinstance(value, str):
        return [p.strip() for p in value.split(", ") if p.strip()]
    if not isinstance(value, list):
        return []

    ports: list[str] = []
    for item in value:
        if isinstance(item, str):
            ports.append(item)
            continue
        if not isinstance(item, dict):
            continue
        entry = _normalize_keys(item)
        target = entry.get("targetport")
        if not target:
            continue
        published = entry.get("publishedport")
        protocol = entry.get("protocol") or "tcp"
        mapping = f"{published}->{target}/{protocol}" if published else f"{target}/{protocol}"
        if published and entry.get("url"):
            mapping = f"{entry['url']}:{mapping}"
        if mapping not in ports:
            ports.append(mapping)
    return ports


def parse_created(value: object) -> datetime | None:
    """Creation time from a unix timestamp or docker's ``CreatedAt`` text."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None

    # "2024-01-02 15:04:05 +0100 CET"
    parts = value.split()
    for fmt, count in (("%Y-%m-%d %H:%M:%S %z", 3), ("%Y-%m-%d %H:%M:%S", 2)):
        try:
            return datetime.strptime(" ".join(parts[:count]), fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
