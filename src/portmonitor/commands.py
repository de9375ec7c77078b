"""Run external data-source commands and capture their output as text."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from typing import Protocol

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Anything that runs ``path args...`` and returns its stdout."""

    def __call__(self, path: str, args: Sequence[str]) -> str: ...


def run_command(
    path: str,
    args: Sequence[str],
    timeout: float | None = None,
) -> str:
    """Run a command and return its stdout, or "" if it could not be run.

    Stdin is closed and stderr discarded. A non-zero exit status is not an
    error: lsof exits 1 whenever one of the requested pids has no match but
    still prints everything it found.
    """
    env = dict(os.environ)
    env["OS_ACTIVITY_MODE"] = "disable"

    try:
        result = subprocess.run(
            [path, *args],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            env=env,
            timeout=timeout,
            check=False,
        )
    except (subprocess.TimeoutExpired, subprocess.SubprocessError, OSError) as exc:
        logger.debug("Command %s failed: %s", path, exc)
        return ""

    return result.stdout.decode("utf-8", errors="replace")


class SubprocessRunner:
    """CommandRunner backed by :func:`run_command` with a fixed timeout."""

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout

    def __call__(self, path: str, args: Sequence[str]) -> str:
        return run_command(path, args, timeout=self._timeout)
