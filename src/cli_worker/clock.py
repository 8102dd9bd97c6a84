"""Per-iteration clock shared between the loop and its jobs."""

from __future__ import annotations

from datetime import datetime, timezone


class Clock:
    """Hold a cached ``now`` that only advances on :meth:`refresh`.

    The worker loop refreshes the clock once per iteration so every part of
    a job sees the same timestamp.
    """

    def __init__(self) -> None:
        self._now = datetime.now(timezone.utc)

    def refresh(self) -> None:
        self._now = datetime.now(timezone.utc)

    def now(self) -> datetime:
        return self._now


default_clock = Clock()


def now() -> datetime:
    """Return the cached time of the default clock."""
    return default_clock.now()
