"""
Discovery context — the bounded-time context threaded through every discovery call.

Every facade operation accepts one of these.  It carries:

    - a monotonic deadline (``remaining()`` / ``expired``)
    - a cancellation flag the interface layer can trip from another thread
    - the working directory discovery runs against (filesystem scan root,
      fallback project path, subprocess cwd)

Design notes:
    - A context is cheap and single-use: build one per call.
    - An expired or cancelled context means "no results yet", never a
      data error.  Subprocess runners check it before spawning and kill
      any in-flight process once it trips.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path


class DiscoveryContext:
    """Deadline + cancellation + working directory for one discovery call.

    Args:
        timeout: Seconds until the deadline.  ``None`` means no deadline
            (cancellation still applies).
        cwd: Working directory (default: process cwd at construction time).
    """

    def __init__(self, timeout: float | None = None, cwd: Path | None = None) -> None:
        self._deadline = None if timeout is None else time.monotonic() + max(timeout, 0.0)
        self._cancelled = threading.Event()
        self.cwd = (cwd or Path.cwd()).resolve()

    @classmethod
    def expired_now(cls, cwd: Path | None = None) -> DiscoveryContext:
        """A context whose deadline has already passed."""
        return cls(timeout=0.0, cwd=cwd)

    # ── Deadline ────────────────────────────────────────────────

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def bounded(self, cap: float) -> float:
        """The smaller of *cap* and the remaining time."""
        left = self.remaining()
        return cap if left is None else min(cap, left)

    @property
    def expired(self) -> bool:
        """True once the deadline passed or the context was cancelled."""
        if self._cancelled.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    # ── Cancellation ────────────────────────────────────────────

    def cancel(self) -> None:
        """Abandon the call; in-flight subprocesses are killed."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def __repr__(self) -> str:
        left = self.remaining()
        budget = "unbounded" if left is None else f"{left:.2f}s left"
        return f"<DiscoveryContext {budget} cwd={str(self.cwd)!r}>"
