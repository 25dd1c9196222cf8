"""
Discovery result — what every facade operation hands back.

Discovery never raises to the interface layer.  A result always carries
whatever items were found; ``error`` is only set once every strategy in
a chain is exhausted, and an empty result is a valid terminal state
("nothing found") accompanied by actionable hints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


@dataclass
class DiscoveryResult:
    """Best-effort items plus the story of how they were found."""

    items: list[Any] = field(default_factory=list)
    source: str = ""                                   # strategy that produced items
    error: str | None = None
    hints: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)
    complete: bool = True                              # False: deadline hit / cancelled

    @property
    def empty(self) -> bool:
        return not self.items

    @property
    def ok(self) -> bool:
        return self.error is None

    def note(self, message: str) -> None:
        """Record a diagnostic (strategy failure, fallback taken)."""
        self.diagnostics.append(message)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        result: dict[str, Any] = {
            "items": [
                item.model_dump(mode="json") if isinstance(item, BaseModel) else item
                for item in self.items
            ],
            "count": len(self.items),
            "source": self.source,
            "complete": self.complete,
        }
        if self.error:
            result["error"] = self.error
        if self.hints:
            result["hints"] = list(self.hints)
        if self.diagnostics:
            result["diagnostics"] = list(self.diagnostics)
        return result
