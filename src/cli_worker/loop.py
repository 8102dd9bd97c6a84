"""Worker execution loop.

The loop repeatedly asks a job to process one unit of work.  Between jobs it
drains deferred signals and checks memory pressure; either may request a
stop, which is honoured before the next job starts.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Union

from .clock import default_clock
from .policy import LoopPolicy
from .signals import NullSignalSource

logger = logging.getLogger(__name__)

# Exit code returned when the loop stops due to the risk of exhausting memory.
EXIT_CODE_MEMORY_LIMIT = 100
SIGNAL_EXIT_BASE = 128


class JobProcessor(Protocol):
    def try_process_one(self, inputs: Any) -> bool:
        """Return ``True`` if a job was processed, ``False`` if none was available."""


class SignalSource(Protocol):
    def drain(self, callback: Callable[[int], None]) -> None: ...


class MemoryCheck(Protocol):
    def check(self) -> bool: ...


class TickingClock(Protocol):
    def refresh(self) -> None: ...


Job = Union[JobProcessor, Callable[[Any], bool]]


class LoopStatus(enum.Enum):
    RUNNING = "running"
    SLEEPING = "sleeping"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class LoopState:
    processed_count: int = 0
    exit_code: Optional[int] = None
    status: LoopStatus = LoopStatus.RUNNING

    @property
    def stop_requested(self) -> bool:
        return self.exit_code is not None


class _NoMemoryLimit:
    def check(self) -> bool:
        return False


class WorkerLoop:
    """Run ``job`` according to ``policy`` and return a process exit code."""

    def __init__(
        self,
        job: Job,
        policy: LoopPolicy,
        *,
        name: str = "worker",
        signals: SignalSource | None = None,
        memory: MemoryCheck | None = None,
        clock: TickingClock | None = None,
        sleep: Callable[[float], object] | None = None,
    ) -> None:
        self._process = getattr(job, "try_process_one", job)
        self.policy = policy
        self.name = name
        self.signals = signals if signals is not None else NullSignalSource()
        self.memory = memory if memory is not None else _NoMemoryLimit()
        self.clock = clock if clock is not None else default_clock
        # SignalDeferral.wait returns early when a signal arrives.
        self._sleep = sleep if sleep is not None else getattr(self.signals, "wait", time.sleep)
        self.state = LoopState()

    def _handle_signal(self, state: LoopState, signal_number: int) -> None:
        logger.info(
            "%s: received signal %d",
            self.name,
            signal_number,
            extra={"event": "worker_signal", "signal_number": signal_number},
        )
        state.exit_code = SIGNAL_EXIT_BASE + signal_number

    def _within_limit(self, state: LoopState) -> bool:
        return self.policy.unbounded or state.processed_count < self.policy.limit

    def _checkpoint(self, state: LoopState) -> bool:
        """Apply pending stop requests; return ``True`` if the loop must stop."""
        self.signals.drain(lambda signum: self._handle_signal(state, signum))
        if self.memory.check():
            state.exit_code = 0 if self.policy.worker else EXIT_CODE_MEMORY_LIMIT
        return state.stop_requested

    def _process_one(self, state: LoopState, inputs: Any) -> bool:
        try:
            return bool(self._process(inputs))
        except Exception as exc:
            logger.warning(
                "%s: unhandled exception: %s: %s; terminating",
                self.name,
                type(exc).__name__,
                exc,
                extra={
                    "event": "worker_job_failed",
                    "processed_count": state.processed_count,
                    "limit": self.policy.limit,
                },
            )
            raise

    def run(self, inputs: Any = None) -> int:
        """Process jobs until the policy, a signal or memory pressure stops us."""
        state = self.state = LoopState()
        while self._within_limit(state):
            state.status = LoopStatus.RUNNING
            if self._checkpoint(state):
                break

            self.clock.refresh()

            if self._process_one(state, inputs):
                state.processed_count += 1
                if state.stop_requested:
                    break
            elif self.policy.worker:
                if state.stop_requested:
                    break
                state.status = LoopStatus.SLEEPING
                self._sleep(self.policy.sleep)
            else:
                break

        state.status = LoopStatus.STOPPING
        logger.info(
            "%s: finished",
            self.name,
            extra={
                "event": "worker_finished",
                "processed_count": state.processed_count,
                "exit_code": state.exit_code,
            },
        )
        state.status = LoopStatus.STOPPED
        return state.exit_code or 0
