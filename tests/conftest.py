"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from portmonitor.config import PortMonitorConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class FakeRunner:
    """CommandRunner that serves canned output and records every call."""

    def __init__(self, outputs: dict[str, str] | None = None) -> None:
        self.outputs = outputs or {}
        self.calls: list[tuple[str, list[str]]] = []

    def __call__(self, path: str, args: Sequence[str]) -> str:
        args = list(args)
        self.calls.append((path, args))
        return self.outputs.get(self.route(path, args), "")

    @staticmethod
    def route(path: str, args: list[str]) -> str:
        tool = Path(path).name
        if tool == "lsof":
            if "cwd" in args:
                return "cwd"
            if "txt" in args:
                return "txt"
            return "sockets"
        return tool

    def calls_to(self, key: str) -> list[list[str]]:
        return [args for path, args in self.calls if self.route(path, args) == key]


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def lsof_text() -> str:
    return read_fixture("lsof_sockets.txt")


@pytest.fixture
def ps_text() -> str:
    return read_fixture("ps_commands.txt")


@pytest.fixture
def nettop_text() -> str:
    return read_fixture("nettop_traffic.txt")


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner(
        {
            "sockets": read_fixture("lsof_sockets.txt"),
            "ps": read_fixture("ps_commands.txt"),
            "cwd": read_fixture("lsof_cwd.txt"),
            "txt": read_fixture("lsof_txt.txt"),
            "nettop": read_fixture("nettop_traffic.txt"),
        }
    )


@pytest.fixture
def empty_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def config(tmp_path: Path) -> PortMonitorConfig:
    return PortMonitorConfig(config_dir=tmp_path, kill_settle_delay=0.01)


@pytest.fixture
def runner_factory() -> type[FakeRunner]:
    return FakeRunner
