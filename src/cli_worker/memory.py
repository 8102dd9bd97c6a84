"""Detect memory pressure before it turns into an out-of-memory kill."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, NamedTuple, Optional

import psutil

logger = logging.getLogger(__name__)

# Maximum share of the memory limit that can be safely consumed.
MEMORY_LIMIT_MAX_CONSUMPTION = 0.8

_UNIT_SHIFTS = {"k": 10, "m": 20, "g": 30, "t": 40}
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

_CGROUP_ROOT = Path("/sys/fs/cgroup")


class MemorySample(NamedTuple):
    used: int
    limit: int


def parse_byte_size(text: str | int | None) -> int:
    """Return the number of bytes described by ``text``.

    ``text`` is an integer optionally followed by ``k``, ``m``, ``g`` or ``t``
    (case-insensitive) which shifts the value left by 10, 20, 30 or 40 bits.
    Text without a leading integer yields ``0``; negative values are kept so
    callers can treat ``-1`` as "no limit".
    """

    if text is None:
        return 0
    if isinstance(text, int):
        return text
    text = text.strip()
    match = _LEADING_INT.match(text)
    if not match:
        return 0
    value = int(match.group(1))
    shift = _UNIT_SHIFTS.get(text[-1:].lower(), 0)
    if value < 0:
        return value
    return value << shift


def _read(path: Path) -> Optional[int]:
    try:
        return int(path.read_bytes())
    except (FileNotFoundError, ValueError, OSError):
        return None


def get_cgroup_limit(root: Path = _CGROUP_ROOT) -> Optional[int]:
    """Return the cgroup memory limit in bytes or ``None`` when unlimited.

    Both cgroup v2 (``memory.max``) and v1 (``memory.limit_in_bytes``) are
    detected.
    """

    limit = _read(root / "memory.max")
    if limit is None:
        limit = _read(root / "memory.limit_in_bytes")
    if limit is not None and limit > 1 << 60:  # treat very large values as unlimited
        limit = None
    return limit


def get_process_memory() -> int:
    """Return the current resident memory of this process in bytes."""
    return psutil.Process().memory_info().rss


def resolve_memory_limit(raw: str | int | None) -> int:
    """Translate a configured ceiling into bytes; ``0`` means no ceiling."""
    if isinstance(raw, str) and raw.strip().lower() == "auto":
        return get_cgroup_limit() or 0
    return max(parse_byte_size(raw), 0)


class MemoryGuard:
    """Report whether the process is close to its memory ceiling."""

    def __init__(
        self,
        limit: str | int | None = None,
        *,
        name: str = "worker",
        usage: Callable[[], int] = get_process_memory,
        max_consumption: float = MEMORY_LIMIT_MAX_CONSUMPTION,
    ) -> None:
        self.limit = resolve_memory_limit(limit)
        self.name = name
        self._usage = usage
        self.max_consumption = max_consumption

    def sample(self) -> MemorySample:
        return MemorySample(used=self._usage(), limit=self.limit)

    def check(self) -> bool:
        """Return ``True`` when usage exceeds the safe share of the limit."""
        if self.limit <= 0:
            return False
        used, limit = self.sample()
        if used > self.max_consumption * limit:
            logger.error(
                "%s: consumed over %d %% of memory limit",
                self.name,
                int(self.max_consumption * 100),
                extra={
                    "event": "worker_memory_limit",
                    "current_memory_usage": used,
                    "current_memory_limit": limit,
                },
            )
            return True
        return False
