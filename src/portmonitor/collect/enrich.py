"""Process enrichment — command line, working directory and executable per pid.

Two batch modes:

* ``fast``: one ``ps`` call; the working directory is guessed from the
  command line.
* ``full``: ``ps`` plus two ``lsof -Fn`` calls for the ``cwd`` and ``txt``
  file descriptors.

Every parser skips lines it does not understand; a pid missing from the
result simply gets no enrichment downstream.
"""

from __future__ import annotations

import logging
import posixpath
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable

from portmonitor.commands import CommandRunner
from portmonitor.models import EnrichmentInfo

logger = logging.getLogger(__name__)

_PROJECT_MARKERS = ("/node_modules/", "/src/", "/app/")
_SCRIPT_SUFFIXES = (".js", ".ts", ".py")
_TOOLING_DIRS = ("node_modules", ".bin")


def parse_ps_output(text: str) -> dict[int, str]:
    """Parse ``ps -o pid=,command=`` lines into ``{pid: command}``."""
    commands: dict[int, str] = {}
    for line in text.splitlines():
        parts = line.strip().split(None, 1)
        if len(parts) < 2:
            continue
        if not _is_pid(parts[0]):
            continue
        commands[int(parts[0])] = parts[1]
    return commands


def parse_fd_paths(text: str, first_only: bool = False) -> dict[int, str]:
    """Parse ``lsof -Fn`` field output into ``{pid: path}``.

    ``p<pid>`` lines open a process section; ``n<path>`` lines belong to the
    most recent section. Later paths overwrite earlier ones unless
    ``first_only`` is set.
    """
    paths: dict[int, str] = {}
    current_pid: int | None = None
    for line in text.splitlines():
        if line.startswith("p"):
            current_pid = int(line[1:]) if _is_pid(line[1:]) else None
        elif line.startswith("n") and current_pid is not None:
            if first_only and current_pid in paths:
                continue
            paths[current_pid] = line[1:]
    return paths


def _is_pid(text: str) -> bool:
    return text.isascii() and text.isdigit()


def guess_working_directory(command: str) -> str:
    """Guess a project directory from script paths in a command line."""
    for token in command.split(" "):
        if not token.startswith("/"):
            continue
        if not (
            any(marker in token for marker in _PROJECT_MARKERS)
            or token.endswith(_SCRIPT_SUFFIXES)
        ):
            continue

        directory = posixpath.dirname(token)
        if posixpath.basename(directory) in _TOOLING_DIRS:
            directory = posixpath.dirname(directory)
            if posixpath.basename(directory) == "node_modules":
                directory = posixpath.dirname(directory)
        return directory
    return ""


def join_pids(pids: Iterable[int], threshold: int) -> str:
    """Comma-join pids above ``threshold`` in ascending order."""
    return ",".join(str(pid) for pid in sorted(set(pids)) if pid > threshold)


class EnrichmentCache:
    """Bounded, time-boxed pid → EnrichmentInfo cache.

    Entries expire after ``ttl`` seconds; beyond ``max_entries`` the least
    recently stored entry is evicted.
    """

    def __init__(
        self,
        max_entries: int = 512,
        ttl: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_entries = max_entries
        self._ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[int, tuple[float, EnrichmentInfo]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pid: object) -> bool:
        return pid in self._entries

    def get(self, pid: int) -> EnrichmentInfo | None:
        entry = self._entries.get(pid)
        if entry is None:
            return None
        stored_at, info = entry
        if self._clock() - stored_at > self._ttl:
            del self._entries[pid]
            return None
        return info

    def put(self, pid: int, info: EnrichmentInfo) -> None:
        self._entries.pop(pid, None)
        self._entries[pid] = (self._clock(), info)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def update(self, infos: dict[int, EnrichmentInfo]) -> None:
        for pid, info in infos.items():
            self.put(pid, info)

    def purge_expired(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        expired = [
            pid
            for pid, (stored_at, _info) in self._entries.items()
            if now - stored_at > self._ttl
        ]
        for pid in expired:
            del self._entries[pid]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()


class ProcessResolver:
    """Batch-resolves enrichment for a set of pids through ps and lsof."""

    def __init__(
        self,
        runner: CommandRunner,
        ps_path: str = "/bin/ps",
        lsof_path: str = "/usr/sbin/lsof",
        fast_threshold: int = 50,
        full_threshold: int = 100,
        cache: EnrichmentCache | None = None,
    ) -> None:
        self._runner = runner
        self._ps_path = ps_path
        self._lsof_path = lsof_path
        self._fast_threshold = fast_threshold
        self._full_threshold = full_threshold
        self._cache = cache

    def resolve(self, pids: Iterable[int], mode: str = "fast") -> dict[int, EnrichmentInfo]:
        if mode == "full":
            return self.full(pids)
        return self.fast(pids)

    def fast(self, pids: Iterable[int]) -> dict[int, EnrichmentInfo]:
        """Command lines only, with a guessed working directory."""
        pid_list = join_pids(pids, self._fast_threshold)
        if not pid_list:
            return {}

        commands = self._commands(pid_list)
        result = {
            pid: EnrichmentInfo(
                command=command,
                working_directory=guess_working_directory(command),
            )
            for pid, command in commands.items()
        }
        return self._with_cache(pid_list, result)

    def full(self, pids: Iterable[int]) -> dict[int, EnrichmentInfo]:
        """Command lines plus cwd and executable path from lsof."""
        pid_list = join_pids(pids, self._full_threshold)
        if not pid_list:
            return {}

        commands = self._commands(pid_list)
        cwds = parse_fd_paths(
            self._runner(self._lsof_path, ["-p", pid_list, "-d", "cwd", "-Fn"])
        )
        executables = parse_fd_paths(
            self._runner(self._lsof_path, ["-p", pid_list, "-d", "txt", "-Fn"]),
            first_only=True,
        )

        result: dict[int, EnrichmentInfo] = {}
        for pid in commands.keys() | cwds.keys() | executables.keys():
            result[pid] = EnrichmentInfo(
                command=commands.get(pid, ""),
                working_directory=cwds.get(pid, ""),
                executable_path=executables.get(pid, ""),
            )
        return self._with_cache(pid_list, result)

    def _commands(self, pid_list: str) -> dict[int, str]:
        output = self._runner(self._ps_path, ["-p", pid_list, "-o", "pid=,command="])
        return parse_ps_output(output)

    def _with_cache(
        self, pid_list: str, fresh: dict[int, EnrichmentInfo]
    ) -> dict[int, EnrichmentInfo]:
        # Fresh lookups always win; the cache only fills pids that came back empty.
        if self._cache is None:
            return fresh

        self._cache.purge_expired()
        merged = dict(fresh)
        for pid_str in pid_list.split(","):
            pid = int(pid_str)
            if pid in merged:
                continue
            cached = self._cache.get(pid)
            if cached is not None:
                logger.debug("Using cached enrichment for pid %d", pid)
                merged[pid] = cached
        self._cache.update(fresh)
        return merged
