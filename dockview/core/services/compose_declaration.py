"""Compose declarations — locate, read and scan compose files.

The scanner is not a YAML parser.  Compose files are read
as a YAML subset with a two-pass, indentation-driven scan:

    Pass 1  find the top-level ``services:`` line, note its indent (the
            base) and collect every ``<name>:`` line at ``base + 2``
            (a trailing ``# comment`` is allowed).
    Pass 2  for each name, find its header again and read direct scalars
            at ``indent + 2`` (``image:``) and list items at
            ``indent + 4`` under the ``ports`` key.

Indentation counts each space as 1 and each tab as 4; mixed tabs and
spaces are accepted as-is, without checking alignment.  Files indented
by anything other than two spaces per level yield no services and the
caller falls back to ``compose config --services``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from dockview.core.models.compose import ComposeService

logger = logging.getLogger(__name__)

# Canonical declaration filenames, probed in this order
COMPOSE_FILENAMES = (
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
)

_TAB_WIDTH = 4

# Keys of a long-form port mapping (``- target: 80``)
_LONG_PORT_KEY = re.compile(r"^(target|published|protocol|host_ip|mode|app_protocol|name)\s*:")


# ═══════════════════════════════════════════════════════════════════
#  Errors
# ═══════════════════════════════════════════════════════════════════


class DeclarationError(Exception):
    """Base class for declaration problems. Carries the offending path."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class DeclarationNotFound(DeclarationError):
    """Neither the path nor any canonical file under it exists."""


class DeclarationReadError(DeclarationError):
    """The file exists but could not be read."""


class EmptyDeclaration(DeclarationError):
    """The file is empty (distinct from a file declaring zero services)."""


class InvalidDeclaration(DeclarationError):
    """The bytes could not be interpreted as a compose declaration."""


# ═══════════════════════════════════════════════════════════════════
#  Reader
# ═══════════════════════════════════════════════════════════════════


def find_compose_file(directory: Path) -> Path | None:
    """Return the first canonical compose file in *directory*, or None."""
    for name in COMPOSE_FILENAMES:
        path = directory / name
        if path.is_file():
            return path
    return None


def resolve_declaration(path: Path) -> Path:
    """Resolve *path* (a file or a project directory) to a declaration file.

    Raises:
        DeclarationNotFound: Nothing usable exists at *path*.
    """
    if path.is_file():
        return path
    if path.is_dir():
        found = find_compose_file(path)
        if found is not None:
            return found
        raise DeclarationNotFound(f"No compose file found in {path}", path)
    raise DeclarationNotFound(f"Path does not exist: {path}", path)


def read_declaration(path: Path) -> tuple[Path, bytes]:
    """Locate and read a declaration.

    Returns:
        (resolved file path, raw bytes)

    Raises:
        DeclarationNotFound, DeclarationReadError, EmptyDeclaration
    """
    compose_file = resolve_declaration(path)
    try:
        data = compose_file.read_bytes()
    except OSError as e:
        raise DeclarationReadError(f"Cannot read {compose_file}: {e}", compose_file) from e

    if not data.strip():
        raise EmptyDeclaration(f"Compose file is empty: {compose_file}", compose_file)

    logger.debug("Read %d bytes from %s", len(data), compose_file)
    return compose_file, data


# ═══════════════════════════════════════════════════════════════════
#  Scanner
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class _Line:
    indent: int
    text: str  # stripped


def parse_declaration(data: bytes) -> dict[str, ComposeService]:
    """Scan declaration bytes into ``{service name: ComposeService}``.

    The mapping keeps file order.  A ``services:`` section with no
    recognisable entries returns an empty mapping; the caller decides
    on the fallback.

    Raises:
        InvalidDeclaration: Undecodable bytes or no ``services:`` section.
    """
    lines = _content_lines(_decode(data))

    if not _has_services_key(lines):
        raise InvalidDeclaration("No 'services:' section found")

    services: dict[str, ComposeService] = {}
    for name in _find_service_names(lines):
        services[name] = _read_service(lines, name)

    logger.debug("Scanned %d service(s): %s", len(services), ", ".join(services))
    return services


def declared_project_name(data: bytes) -> str | None:
    """Top-level ``name:`` of a declaration, if it has one."""
    try:
        lines = _content_lines(_decode(data))
    except InvalidDeclaration:
        return None
    for line in lines:
        if line.indent != 0:
            continue
        kv = _key_value(line.text)
        if kv and kv[0] == "name":
            value = _scalar(kv[1])
            return value or None
    return None


def _decode(data: bytes) -> str:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise InvalidDeclaration(f"Declaration is not valid UTF-8: {e}") from e
    if "\x00" in text:
        raise InvalidDeclaration("Declaration contains binary data")
    return text


def _content_lines(text: str) -> list[_Line]:
    """Non-blank, non-comment lines with their indentation."""
    result: list[_Line] = []
    for raw in text.splitlines():
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue
        result.append(_Line(indent=_indent_of(raw), text=stripped))
    return result


def _indent_of(line: str) -> int:
    indent = 0
    for char in line:
        if char == " ":
            indent += 1
        elif char == "\t":
            indent += _TAB_WIDTH
        else:
            break
    return indent


def _section_headers(lines: list[_Line]) -> Iterator[tuple[int, str]]:
    """``(index, name)`` of each ``<name>:`` line directly under a top-level ``services:``.

    Only keys at the file's outermost indentation open or close the
    section, so a ``services:`` nested under another key is ignored.
    """
    top = min((line.indent for line in lines), default=0)
    in_services = False

    for i, line in enumerate(lines):
        if line.indent == top:
            kv = _key_value(line.text)
            in_services = bool(kv) and kv[0] == "services" and kv[1] == ""
            continue
        if not in_services or line.indent != top + 2:
            continue
        kv = _key_value(line.text)
        if kv and kv[0] and kv[1] == "":
            yield i, kv[0]


def _has_services_key(lines: list[_Line]) -> bool:
    top = min((line.indent for line in lines), default=0)
    for line in lines:
        if line.indent != top:
            continue
        kv = _key_value(line.text)
        if kv and kv[0] == "services" and kv[1] in ("", "{}"):
            return True
    return False


def _find_service_names(lines: list[_Line]) -> list[str]:
    """Pass 1: service names in file order."""
    names: list[str] = []
    for _, name in _section_headers(lines):
        if name not in names:
            names.append(name)
    return names


def _locate_header(lines: list[_Line], name: str) -> int | None:
    """Index of the service's header line inside the services section."""
    return next((i for i, found in _section_headers(lines) if found == name), None)


def _read_service(lines: list[_Line], name: str) -> ComposeService:
    """Pass 2: direct attributes of one service."""
    service = ComposeService(name=name)
    header = _locate_header(lines, name)
    if header is None:
        return service

    indent = lines[header].indent
    current_key = ""
    long_port: dict[str, str] | None = None

    for line in lines[header + 1:]:
        if line.indent <= indent:
            break

        if line.indent == indent + 2:
            _flush_long_port(service, long_port)
            long_port = None
            kv = _key_value(line.text)
            if kv is None:
                if current_key == "ports" and line.text.startswith("-"):
                    logger.debug("Service %s: skipping port item not indented under 'ports:': %s", name, line.text)
                    continue
                current_key = ""
                continue
            current_key, value = kv
            if current_key == "image":
                service.image = _scalar(value)
            elif current_key == "ports" and value.startswith("["):
                service.ports.extend(_flow_list(value))
            continue

        if current_key != "ports":
            continue

        if line.indent == indent + 4 and (line.text.startswith("- ") or line.text == "-"):
            _flush_long_port(service, long_port)
            long_port = None
            item = line.text[1:].strip()
            if _LONG_PORT_KEY.match(item):
                key, value = _key_value(item) or ("", "")
                long_port = {key: _scalar(value)}
            elif item:
                service.ports.append(_scalar(item))
        elif line.indent > indent + 4 and long_port is not None:
            kv = _key_value(line.text)
            if kv:
                long_port[kv[0]] = _scalar(kv[1])
        elif line.text.startswith("-"):
            logger.debug("Service %s: skipping port item at indent %d: %s", name, line.indent, line.text)

    _flush_long_port(service, long_port)
    return service


def _flush_long_port(service: ComposeService, entry: dict[str, str] | None) -> None:
    """Fold a long-form port mapping into ``host:container[/proto]``."""
    if not entry or not entry.get("target"):
        return
    mapping = entry["target"]
    if entry.get("published"):
        mapping = f"{entry['published']}:{mapping}"
    if entry.get("protocol"):
        mapping = f"{mapping}/{entry['protocol']}"
    service.ports.append(mapping)


# ── Scalars ─────────────────────────────────────────────────────


def _key_value(text: str) -> tuple[str, str] | None:
    """Split ``key: value`` / ``key:``; None for anything else."""
    if text.startswith(("-", "[", "{")):
        return None
    match = re.match(r"""^("[^"]*"|'[^']*'|[^:\s][^:]*?)\s*:(?:\s+(.*))?$""", text)
    if not match:
        return None
    key = _unquote(match.group(1).strip())
    value = _strip_comment(match.group(2) or "")
    return key, value


def _strip_comment(value: str) -> str:
    """Drop a trailing ``# comment`` that is not inside quotes."""
    quote = ""
    for i, char in enumerate(value):
        if quote:
            if char == quote:
                quote = ""
        elif char in ("'", '"'):
            quote = char
        elif char == "#" and (i == 0 or value[i - 1] in (" ", "\t")):
            return value[:i].strip()
    return value.strip()


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _scalar(value: str) -> str:
    return _unquote(_strip_comment(value))


def _flow_list(value: str) -> list[str]:
    """``["80:80", '443:443']`` → ``["80:80", "443:443"]``."""
    inner = _strip_comment(value).strip()
    if inner.startswith("[") and inner.endswith("]"):
        inner = inner[1:-1]
    return [_unquote(part.strip()) for part in inner.split(",") if part.strip()]
