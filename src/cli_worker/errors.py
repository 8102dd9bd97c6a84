"""Exceptions raised by the worker loop."""

from __future__ import annotations


class WorkerError(Exception):
    """Base class for worker loop errors."""


class InvalidOptionError(WorkerError, ValueError):
    """Raised when a loop option cannot be parsed as a non-negative integer."""

    def __init__(self, name: str, value: object) -> None:
        super().__init__(f"invalid value for --{name}: {value!r}")
        self.name = name
        self.value = value
