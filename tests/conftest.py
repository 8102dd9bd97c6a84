import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402

from cli_worker.logging import reset_logging  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_logging() -> None:
    """Undo ``setup_logging`` so each test configures logging from scratch."""

    root = logging.getLogger()
    level = root.level
    yield
    reset_logging()
    root.setLevel(level)
