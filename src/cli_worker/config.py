"""Configuration helpers for worker processes."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Defaults applied when neither the command line nor the environment
# provides a value.
DEFAULT_LIMIT = 0
DEFAULT_SLEEP_SECONDS = 15


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(
            "invalid_env_int",
            extra={"event": "invalid_env_int", "variable": name, "value": raw},
        )
        return default


@dataclass
class WorkerSettings:
    """Settings for a worker process loaded from the environment."""

    name: str
    default_limit: int
    default_sleep: int
    memory_limit: str | None = None


def worker_settings() -> WorkerSettings:
    """Return worker settings loaded from the environment.

    ``WORKER_MEMORY_LIMIT`` accepts a byte size such as ``512M``, ``-1`` for
    no ceiling, or ``auto`` to use the container's cgroup limit.
    """

    memory_limit = os.getenv("WORKER_MEMORY_LIMIT", "").strip() or None
    return WorkerSettings(
        name=os.getenv("WORKER_NAME", "worker"),
        default_limit=_env_int("WORKER_LIMIT", DEFAULT_LIMIT),
        default_sleep=_env_int("WORKER_SLEEP_SECONDS", DEFAULT_SLEEP_SECONDS),
        memory_limit=memory_limit,
    )
