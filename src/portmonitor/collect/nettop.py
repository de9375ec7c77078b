"""Per-process traffic counters from ``nettop``."""

from __future__ import annotations

import logging

from portmonitor.commands import CommandRunner
from portmonitor.models import UNKNOWN_BYTES, TrafficInfo

logger = logging.getLogger(__name__)


def fetch_traffic(runner: CommandRunner, nettop_path: str = "/usr/bin/nettop") -> str:
    """Take a single per-process nettop sample with bytes in/out columns."""
    return runner(nettop_path, ["-P", "-L", "1", "-J", "bytes_in,bytes_out", "-x"])


def parse_traffic(text: str) -> dict[int, TrafficInfo]:
    """Parse ``name.pid,bytes_in,bytes_out`` lines into ``{pid: TrafficInfo}``.

    Unparseable byte columns become the unknown sentinel rather than zero.
    """
    traffic: dict[int, TrafficInfo] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if "bytes_in" in stripped and "bytes_out" in stripped:
            continue  # header

        parts = stripped.split(",")
        if len(parts) < 3:
            continue

        pid = _parse_pid(parts[0])
        if pid is None:
            continue

        traffic[pid] = TrafficInfo(
            bytes_in=_parse_bytes(parts[1]),
            bytes_out=_parse_bytes(parts[2]),
        )
    logger.debug("Parsed traffic for %d pids", len(traffic))
    return traffic


def _parse_pid(process_field: str) -> int | None:
    """Extract the pid from a ``name.pid`` field."""
    _, sep, pid_str = process_field.rpartition(".")
    pid_str = pid_str.strip()
    if not sep or not _is_count(pid_str):
        return None
    return int(pid_str)


def _parse_bytes(field: str) -> int:
    field = field.strip()
    return int(field) if _is_count(field) else UNKNOWN_BYTES


def _is_count(text: str) -> bool:
    # int() would also take "1_000", "+5" and non-ASCII digits
    return text.isascii() and text.isdigit()
