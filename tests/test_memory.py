from __future__ import annotations

import logging
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

import cli_worker.memory as mem
from cli_worker.loop import WorkerLoop
from cli_worker.memory import MemoryGuard, parse_byte_size
from cli_worker.policy import LoopPolicy


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1024", 1024),
        ("128M", 128 << 20),
        ("128m", 128 << 20),
        ("2k", 2048),
        ("1G", 1 << 30),
        ("1t", 1 << 40),
        (" 64K ", 64 << 10),
        ("-1", -1),
        ("", 0),
        ("unlimited", 0),
        ("12x", 12),
    ],
)
def test_parse_byte_size(text: str, expected: int) -> None:
    assert parse_byte_size(text) == expected


def test_parse_byte_size_passes_ints_through() -> None:
    assert parse_byte_size(4096) == 4096
    assert parse_byte_size(None) == 0


@pytest.mark.parametrize("limit", [None, "", "0", "-1", 0])
def test_guard_without_ceiling_never_reports(limit) -> None:
    guard = MemoryGuard(limit, usage=lambda: 1 << 40)
    assert guard.limit == 0
    assert guard.check() is False


def test_guard_reports_over_threshold(caplog) -> None:
    guard = MemoryGuard("100", name="mailer", usage=lambda: 81)
    with caplog.at_level(logging.ERROR):
        assert guard.check() is True
    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert record.current_memory_usage == 81
    assert record.current_memory_limit == 100
    assert record.getMessage() == "mailer: consumed over 80 % of memory limit"


def test_guard_under_threshold(caplog) -> None:
    guard = MemoryGuard("1k", usage=lambda: 512)
    with caplog.at_level(logging.ERROR):
        assert guard.check() is False
    assert caplog.records == []


def test_guard_sample() -> None:
    guard = MemoryGuard("2M", usage=lambda: 10)
    assert guard.sample() == mem.MemorySample(used=10, limit=2 << 20)


def test_cgroup_limit_v2(tmp_path: Path) -> None:
    (tmp_path / "memory.max").write_text("200")
    assert mem.get_cgroup_limit(tmp_path) == 200


def test_cgroup_limit_v1(tmp_path: Path) -> None:
    (tmp_path / "memory.limit_in_bytes").write_text("300")
    assert mem.get_cgroup_limit(tmp_path) == 300


def test_cgroup_limit_unlimited(tmp_path: Path) -> None:
    # "max" in cgroup v2 and huge values in v1 both mean no limit
    (tmp_path / "memory.max").write_text("max")
    (tmp_path / "memory.limit_in_bytes").write_text(str(1 << 63))
    assert mem.get_cgroup_limit(tmp_path) is None


def test_auto_limit_uses_cgroup(monkeypatch) -> None:
    monkeypatch.setattr(mem, "get_cgroup_limit", lambda: 1000)
    guard = MemoryGuard("auto", usage=lambda: 900)
    assert guard.limit == 1000
    assert guard.check() is True


def test_auto_limit_without_cgroup(monkeypatch) -> None:
    monkeypatch.setattr(mem, "get_cgroup_limit", lambda: None)
    assert MemoryGuard("AUTO").limit == 0


def test_process_memory_reports_current_rss(monkeypatch) -> None:
    class DummyProcess:
        def memory_info(self):
            return SimpleNamespace(rss=123456)

    monkeypatch.setattr(mem.psutil, "Process", DummyProcess)
    assert mem.get_process_memory() == 123456


def test_guard_does_not_need_resource_module(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "resource", None)
    guard = MemoryGuard("512G")
    assert guard.sample().used > 0
    loop = WorkerLoop(lambda _inputs: False, LoopPolicy(), memory=guard)
    assert loop.run() == 0
    assert MemoryGuard("1").check() is True
