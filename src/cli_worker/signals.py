"""Defer termination signals to iteration boundaries.

Handlers installed here only record the signal.  The worker loop drains the
queue between jobs so a job that has started always runs to completion.
"""

from __future__ import annotations

import logging
import signal
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict

logger = logging.getLogger(__name__)

DEFERRED_SIGNAL_NAMES = ("SIGHUP", "SIGINT", "SIGTERM")


class SignalDeferral:
    """Queue termination signals until :meth:`drain` is called."""

    def __init__(self, names: tuple[str, ...] = DEFERRED_SIGNAL_NAMES) -> None:
        self.names = names
        self._pending: Deque[int] = deque()
        self._previous: Dict[int, Any] = {}
        self._received = threading.Event()

    @property
    def installed(self) -> bool:
        return bool(self._previous)

    def _handler(self, signum: int, _frame: object) -> None:
        self._pending.append(signum)
        self._received.set()

    def install(self) -> "SignalDeferral":
        """Replace the handlers of the deferred signals.

        Signals the platform lacks, and installation outside the main
        thread, are skipped so the loop still runs without graceful
        shutdown support.
        """
        for name in self.names:
            sig = getattr(signal, name, None)
            if sig is None:
                logger.debug("signal_unsupported", extra={"signal": name})
                continue
            try:
                self._previous[sig] = signal.signal(sig, self._handler)
            except (OSError, RuntimeError, ValueError):
                logger.debug("unable_to_install_signal_handler", extra={"signal": name})
        return self

    def uninstall(self) -> None:
        """Restore the handlers that were active before :meth:`install`."""
        while self._previous:
            sig, previous = self._previous.popitem()
            try:
                signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
            except (OSError, RuntimeError, ValueError):
                logger.debug("unable_to_restore_signal_handler", extra={"signal": sig})

    def drain(self, callback: Callable[[int], None]) -> None:
        """Deliver every queued signal number to ``callback``."""
        self._received.clear()
        while self._pending:
            callback(self._pending.popleft())

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds, waking early when a signal arrives.

        Returns ``True`` if a signal is waiting to be drained.
        """
        return self._received.wait(timeout)

    def __enter__(self) -> "SignalDeferral":
        return self.install()

    def __exit__(self, *exc: object) -> None:
        self.uninstall()


class NullSignalSource:
    """Signal source that never delivers anything."""

    def drain(self, callback: Callable[[int], None]) -> None:
        return None
