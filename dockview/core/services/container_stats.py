"""Container stats decoding — ``docker stats`` text fields into numbers.

``docker stats --format {{json .}}`` reports everything as display
strings (``"12.5%"``, ``"10MiB / 1GiB"``, ``"1.2kB / 0B"``).  Each field
is decoded on its own: one that is missing or malformed stays None and
leaves a diagnostic behind, the rest of the record is still used.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from dockview.core.models.container import ContainerStats

logger = logging.getLogger(__name__)

_SIZE_UNITS = {
    "b": 1,
    "kb": 1000,
    "mb": 1000**2,
    "gb": 1000**3,
    "tb": 1000**4,
    "kib": 1024,
    "mib": 1024**2,
    "gib": 1024**3,
    "tib": 1024**4,
}

_SIZE = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*([a-zA-Z]*)\s*$")


def parse_percent(text: object) -> float | None:
    """``"12.5%"`` → 12.5; None for anything else."""
    if not isinstance(text, str):
        return None
    value = text.strip().rstrip("%").strip()
    if not value or value == "--":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def parse_size(text: object) -> int | None:
    """``"10MiB"`` → 10485760, ``"1.5kB"`` → 1500; None when undecodable."""
    if not isinstance(text, str):
        return None
    match = _SIZE.match(text)
    if not match:
        return None
    number, unit = match.groups()
    factor = _SIZE_UNITS.get((unit or "b").lower())
    if factor is None:
        return None
    return int(float(number) * factor)


def parse_pair(text: object) -> tuple[int | None, int | None]:
    """``"10MiB / 1GiB"`` → (used, total)."""
    if not isinstance(text, str) or "/" not in text:
        return None, None
    left, _, right = text.partition("/")
    return parse_size(left), parse_size(right)


def decode_stats(record: dict[str, Any]) -> tuple[ContainerStats, list[str]]:
    """Decode one ``docker stats`` JSON record.

    Keys are matched case-insensitively.

    Returns:
        (stats, diagnostics for every field left unset)
    """
    fields = {str(k).lower(): v for k, v in record.items()}
    container = str(fields.get("name") or fields.get("container") or fields.get("id") or "")
    diagnostics: list[str] = []

    def note(field_name: str) -> None:
        raw = fields.get(field_name)
        if raw is None:
            diagnostics.append(f"{container or '?'}: {field_name} missing")
        else:
            diagnostics.append(f"{container or '?'}: cannot decode {field_name} {raw!r}")

    cpu = parse_percent(fields.get("cpuperc"))
    if cpu is None:
        note("cpuperc")

    mem_used, mem_limit = parse_pair(fields.get("memusage"))
    if mem_used is None or mem_limit is None:
        note("memusage")

    mem_pct = parse_percent(fields.get("memperc"))
    if mem_pct is None:
        note("memperc")

    net_rx, net_tx = parse_pair(fields.get("netio"))
    if net_rx is None or net_tx is None:
        note("netio")

    block_read, block_write = parse_pair(fields.get("blockio"))
    if block_read is None or block_write is None:
        note("blockio")

    stats = ContainerStats(
        container=container,
        cpu_percent=cpu,
        memory_usage=mem_used,
        memory_limit=mem_limit,
        memory_percent=mem_pct,
        net_rx=net_rx,
        net_tx=net_tx,
        block_read=block_read,
        block_write=block_write,
    )
    if diagnostics:
        logger.debug("Partial stats for %s: %s", container, "; ".join(diagnostics))
    return stats, diagnostics


def sum_usage(stats: list[ContainerStats]) -> tuple[float | None, int | None, int | None]:
    """Total (cpu %, memory bytes, memory limit) over *stats*.

    A total is None when no container contributed a reading.
    """
    cpu = [s.cpu_percent for s in stats if s.cpu_percent is not None]
    memory = [s.memory_usage for s in stats if s.memory_usage is not None]
    limit = [s.memory_limit for s in stats if s.memory_limit is not None]
    return (
        round(sum(cpu), 2) if cpu else None,
        sum(memory) if memory else None,
        sum(limit) if limit else None,
    )
