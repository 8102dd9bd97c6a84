"""Loop policy derived from command line options."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidOptionError


def _non_negative_int(name: str, value: object) -> int:
    if isinstance(value, bool):
        raise InvalidOptionError(name, value)
    try:
        number = int(value.strip()) if isinstance(value, str) else int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        raise InvalidOptionError(name, value) from None
    if number < 0:
        raise InvalidOptionError(name, value)
    return number


def _flag(name: str, value: object) -> bool:
    if not isinstance(value, bool):
        raise InvalidOptionError(name, value)
    return value


@dataclass(frozen=True)
class LoopPolicy:
    """Iteration cap, poll interval and daemon flag for a worker loop.

    ``limit`` of ``0`` means the loop is unbounded.
    """

    limit: int = 0
    sleep: int = 15
    worker: bool = False

    @classmethod
    def from_options(
        cls, limit: object = 0, worker: object = False, sleep: object = 15
    ) -> "LoopPolicy":
        """Build a policy from raw option values."""
        return cls(
            limit=_non_negative_int("limit", limit),
            sleep=_non_negative_int("sleep", sleep),
            worker=_flag("worker", worker),
        )

    @property
    def unbounded(self) -> bool:
        return self.limit == 0
