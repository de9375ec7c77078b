"""Port monitor service — refresh cycle, kill requests and read-only views."""

from __future__ import annotations

import enum
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from portmonitor.actions.kill import KillAction
from portmonitor.collect.assemble import Collector
from portmonitor.config import PortMonitorConfig
from portmonitor.models import ConnectionState, PortCategory, PortRecord, PortStats

logger = logging.getLogger(__name__)


class FilterOption(enum.Enum):
    """Which connection states a view shows."""

    ALL = "All"
    LISTENING = "Listening"
    ESTABLISHED = "Connected"


class SortOption(enum.Enum):
    """Sort key for a view."""

    PORT = "Port"
    PROCESS = "Process"
    STATE = "State"


# CLI and API spellings of the view options.
FILTERS_BY_NAME = {
    "all": FilterOption.ALL,
    "listening": FilterOption.LISTENING,
    "connected": FilterOption.ESTABLISHED,
}
SORTS_BY_NAME = {
    "port": SortOption.PORT,
    "process": SortOption.PROCESS,
    "state": SortOption.STATE,
}


@dataclass(frozen=True)
class Snapshot:
    """Consistent view of the published record set."""

    records: tuple[PortRecord, ...] = ()
    is_loading: bool = False
    last_updated: float | None = None


class PortMonitorService:
    """Owns the current record set and the refresh/kill lifecycle.

    Threading model:
    - At most one refresh runs at a time; a refresh requested while another
      is in flight is dropped.
    - Records, loading flag and timestamp are swapped together under
      ``_state_lock``; readers go through snapshot() and never see a
      half-built set.
    """

    def __init__(
        self,
        config: PortMonitorConfig | None = None,
        collector: Collector | None = None,
        on_update: Callable[[Snapshot], None] | None = None,
    ) -> None:
        self._config = config or PortMonitorConfig()
        self._collector = collector or Collector(self._config)
        self._on_update = on_update
        self._kill = KillAction(self._collector.runner, self._config.kill_path)

        self._refresh_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._records: tuple[PortRecord, ...] = ()
        self._loading = False
        self._last_updated: float | None = None

        self._stop_event = threading.Event()
        self._auto_thread: threading.Thread | None = None

    @property
    def config(self) -> PortMonitorConfig:
        return self._config

    def snapshot(self) -> Snapshot:
        with self._state_lock:
            return Snapshot(self._records, self._loading, self._last_updated)

    @property
    def records(self) -> tuple[PortRecord, ...]:
        with self._state_lock:
            return self._records

    @property
    def is_loading(self) -> bool:
        with self._state_lock:
            return self._loading

    @property
    def last_updated(self) -> float | None:
        with self._state_lock:
            return self._last_updated

    # --- Refresh -----------------------------------------------------------

    def refresh(self) -> bool:
        """Collect and publish a new record set. Returns False if dropped."""
        if not self._refresh_lock.acquire(blocking=False):
            logger.debug("Refresh already in flight — dropping request")
            return False

        try:
            with self._state_lock:
                self._loading = True
            records: tuple[PortRecord, ...] | None = None
            try:
                records = self._collector.collect()
            finally:
                with self._state_lock:
                    if records is not None:
                        self._records = records
                        self._last_updated = time.time()
                    self._loading = False
                    snapshot = Snapshot(self._records, self._loading, self._last_updated)
        finally:
            self._refresh_lock.release()

        logger.info("Published %d port records", len(snapshot.records))
        if self._on_update:
            self._on_update(snapshot)
        return True

    def refresh_async(self) -> threading.Thread:
        """Run refresh() on a daemon thread."""
        thread = threading.Thread(
            target=self.refresh, name="portmonitor-refresh", daemon=True
        )
        thread.start()
        return thread

    def start_auto_refresh(self, interval: float | None = None) -> None:
        """Refresh now and then every ``interval`` seconds until stopped."""
        self.stop_auto_refresh()
        interval = interval or self._config.refresh_interval
        # One event per loop; a stopped loop never sees a cleared event.
        stop = threading.Event()
        self._stop_event = stop

        def _loop() -> None:
            while not stop.is_set():
                try:
                    self.refresh()
                except Exception:
                    logger.exception("Refresh failed — keeping previous records")
                stop.wait(timeout=interval)

        self._auto_thread = threading.Thread(
            target=_loop, name="portmonitor-auto-refresh", daemon=True
        )
        self._auto_thread.start()
        logger.debug("Auto refresh every %.1fs", interval)

    def stop_auto_refresh(self) -> None:
        self._stop_event.set()
        if self._auto_thread is not None:
            self._auto_thread.join(timeout=5)
            self._auto_thread = None

    # --- Kill --------------------------------------------------------------

    def kill(self, pid: int) -> threading.Timer:
        """Send SIGKILL to ``pid`` and refresh once the OS has settled.

        The refresh runs on the returned timer thread; join it to wait for
        the post-kill record set.
        """
        name = next((r.process_name for r in self.records if r.pid == pid), "")
        self._kill.execute(pid, name)

        timer = threading.Timer(self._config.kill_settle_delay, self.refresh)
        timer.daemon = True
        timer.start()
        return timer

    # --- Views -------------------------------------------------------------

    def filtered(
        self,
        search: str = "",
        filter_option: FilterOption = FilterOption.ALL,
        sort_option: SortOption = SortOption.PORT,
    ) -> list[PortRecord]:
        return filter_records(self.records, search, filter_option, sort_option)

    def grouped_by_category(
        self,
        search: str = "",
        filter_option: FilterOption = FilterOption.ALL,
        sort_option: SortOption = SortOption.PORT,
    ) -> dict[PortCategory, list[PortRecord]]:
        groups: dict[PortCategory, list[PortRecord]] = {}
        for record in self.filtered(search, filter_option, sort_option):
            groups.setdefault(record.category, []).append(record)
        return groups

    def stats(self) -> PortStats:
        return PortStats.from_records(self.records)


def filter_records(
    records: tuple[PortRecord, ...] | list[PortRecord],
    search: str = "",
    filter_option: FilterOption = FilterOption.ALL,
    sort_option: SortOption = SortOption.PORT,
) -> list[PortRecord]:
    """Filter by state, search text, then sort."""
    result = list(records)

    if filter_option is FilterOption.LISTENING:
        result = [r for r in result if r.state is ConnectionState.LISTEN]
    elif filter_option is FilterOption.ESTABLISHED:
        result = [r for r in result if r.state is ConnectionState.ESTABLISHED]

    if search:
        result = [r for r in result if _matches_search(r, search)]

    if sort_option is SortOption.PORT:
        result.sort(key=lambda r: r.port)
    elif sort_option is SortOption.PROCESS:
        result.sort(key=lambda r: r.process_name.lower())
    elif sort_option is SortOption.STATE:
        result.sort(key=lambda r: r.state.value)

    return result


def _matches_search(record: PortRecord, search: str) -> bool:
    needle = search.lower()
    haystacks = (
        record.process_name,
        str(record.port),
        record.local_address,
        record.command,
        record.project_name,
        record.working_directory,
    )
    return any(needle in h.lower() for h in haystacks)
