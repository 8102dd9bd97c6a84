"""Worker loop for command line job processors."""

from .clock import Clock
from .errors import InvalidOptionError, WorkerError
from .loop import (
    EXIT_CODE_MEMORY_LIMIT,
    JobProcessor,
    LoopState,
    LoopStatus,
    WorkerLoop,
)
from .memory import MemoryGuard, parse_byte_size
from .policy import LoopPolicy
from .signals import SignalDeferral

__all__ = [
    "Clock",
    "EXIT_CODE_MEMORY_LIMIT",
    "InvalidOptionError",
    "JobProcessor",
    "LoopPolicy",
    "LoopState",
    "LoopStatus",
    "MemoryGuard",
    "SignalDeferral",
    "WorkerError",
    "WorkerLoop",
    "parse_byte_size",
]
