"""Kill action — forcefully terminate the process that owns a port."""

from __future__ import annotations

import logging

from portmonitor.commands import CommandRunner

logger = logging.getLogger(__name__)

_SIGNAL = "-9"


class KillAction:
    """Sends SIGKILL through the ``kill`` command.

    Fire and forget: the outcome is never checked. Whether the process
    really went away only shows up in the next refresh.
    """

    def __init__(self, runner: CommandRunner, kill_path: str = "/bin/kill") -> None:
        self._runner = runner
        self._kill_path = kill_path

    def execute(self, pid: int, process_name: str = "") -> None:
        if pid <= 0:
            logger.error("Refusing to kill invalid pid %d", pid)
            return

        logger.warning("KILLING process %d (%s)", pid, process_name or "unknown")
        self._runner(self._kill_path, [_SIGNAL, str(pid)])
