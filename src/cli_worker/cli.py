"""Command line helpers for worker scripts.

Typical use::

    def process(args):
        ...
        return found_work

    if __name__ == "__main__":
        raise SystemExit(run_worker(process, name="mailer"))
"""

from __future__ import annotations

import argparse
from typing import Sequence

from dotenv import load_dotenv

from .config import DEFAULT_LIMIT, DEFAULT_SLEEP_SECONDS, worker_settings
from .errors import InvalidOptionError
from .logging import setup_logging
from .loop import Job, WorkerLoop
from .memory import MemoryGuard
from .policy import LoopPolicy
from .signals import SignalDeferral


def add_worker_arguments(
    parser: argparse.ArgumentParser,
    default_limit: int = DEFAULT_LIMIT,
    default_sleep: int = DEFAULT_SLEEP_SECONDS,
) -> argparse.ArgumentParser:
    """Add ``--limit``, ``--worker`` and ``--sleep`` to ``parser``."""
    parser.add_argument(
        "-l",
        "--limit",
        default=default_limit,
        help="maximum number of jobs to process, 0 for no limit",
    )
    parser.add_argument(
        "-w",
        "--worker",
        action="store_true",
        help="keep polling for jobs instead of exiting when none is available",
    )
    parser.add_argument(
        "-s",
        "--sleep",
        default=default_sleep,
        help="seconds to sleep between polls that found no job",
    )
    return parser


def policy_from_args(args: argparse.Namespace) -> LoopPolicy:
    return LoopPolicy.from_options(
        limit=args.limit, worker=args.worker, sleep=args.sleep
    )


def run_worker(
    job: Job,
    argv: Sequence[str] | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    parser: argparse.ArgumentParser | None = None,
) -> int:
    """Parse options, run ``job`` in a worker loop and return the exit code.

    The parsed :class:`argparse.Namespace` is passed to the job on every
    iteration.  A custom ``parser`` may be supplied to add job specific
    arguments; the worker options are added to it.
    """
    load_dotenv()
    setup_logging()
    settings = worker_settings()
    name = name or settings.name

    if parser is None:
        parser = argparse.ArgumentParser(prog=name, description=description)
    add_worker_arguments(parser, settings.default_limit, settings.default_sleep)
    args = parser.parse_args(argv)
    try:
        policy = policy_from_args(args)
    except InvalidOptionError as exc:
        parser.error(str(exc))

    memory = MemoryGuard(settings.memory_limit, name=name)
    with SignalDeferral() as signals:
        loop = WorkerLoop(job, policy, name=name, signals=signals, memory=memory)
        return loop.run(args)
