"""Join socket records with enrichment and traffic into PortRecords."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from portmonitor.collect.enrich import EnrichmentCache, ProcessResolver
from portmonitor.collect.lsof import collect_pids, fetch_socket_table, parse_socket_table
from portmonitor.collect.nettop import fetch_traffic, parse_traffic
from portmonitor.commands import CommandRunner, SubprocessRunner
from portmonitor.config import PortMonitorConfig
from portmonitor.models import (
    EnrichmentInfo,
    PortRecord,
    RawSocketRecord,
    TrafficInfo,
)

logger = logging.getLogger(__name__)

_NO_TRAFFIC = TrafficInfo()


def assemble(
    raw_records: Iterable[RawSocketRecord],
    enrichment: dict[int, EnrichmentInfo],
    traffic: dict[int, TrafficInfo],
) -> tuple[PortRecord, ...]:
    """Build deduplicated PortRecords in socket-table order."""
    records: list[PortRecord] = []
    for raw in raw_records:
        if raw.port <= 0:
            continue

        info = enrichment.get(raw.pid)
        if info is None:
            info = EnrichmentInfo(command=raw.process_name)
        stats = traffic.get(raw.pid, _NO_TRAFFIC)

        records.append(
            PortRecord(
                port=raw.port,
                protocol=raw.protocol,
                process_name=raw.process_name,
                pid=raw.pid,
                user=raw.user,
                state=raw.state,
                local_address=raw.local_address,
                foreign_address=raw.foreign_address,
                command=info.command or raw.process_name,
                working_directory=info.working_directory,
                executable_path=info.executable_path,
                bytes_in=stats.bytes_in,
                bytes_out=stats.bytes_out,
            )
        )
    return deduplicate(records)


def deduplicate(records: Iterable[PortRecord]) -> tuple[PortRecord, ...]:
    """Keep the first record for each (port, process name, state)."""
    seen: set[tuple[int, str, str]] = set()
    unique: list[PortRecord] = []
    for record in records:
        key = record.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return tuple(unique)


class Collector:
    """Runs one discovery pass: lsof, then ps/lsof enrichment and nettop in parallel."""

    def __init__(
        self,
        config: PortMonitorConfig | None = None,
        runner: CommandRunner | None = None,
        cache: EnrichmentCache | None = None,
    ) -> None:
        self._config = config or PortMonitorConfig()
        self._runner = runner or SubprocessRunner(timeout=self._config.command_timeout)
        if cache is None:
            cache = EnrichmentCache(
                max_entries=self._config.cache_max_entries,
                ttl=self._config.cache_ttl,
            )
        self._resolver = ProcessResolver(
            self._runner,
            ps_path=self._config.ps_path,
            lsof_path=self._config.lsof_path,
            fast_threshold=self._config.fast_pid_threshold,
            full_threshold=self._config.full_pid_threshold,
            cache=cache,
        )

    @property
    def runner(self) -> CommandRunner:
        return self._runner

    def collect(self, mode: str | None = None) -> tuple[PortRecord, ...]:
        mode = mode or self._config.enrichment_mode

        socket_text = fetch_socket_table(self._runner, self._config.lsof_path)
        raw_records = parse_socket_table(socket_text)
        pids = collect_pids(socket_text)

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="portmonitor") as pool:
            enrichment_future = pool.submit(self._resolver.resolve, pids, mode)
            traffic_future = pool.submit(self._traffic)
            enrichment = enrichment_future.result()
            traffic = traffic_future.result()

        records = assemble(raw_records, enrichment, traffic)
        logger.debug(
            "Collected %d socket lines -> %d ports (%d enriched pids, %d with traffic)",
            len(raw_records),
            len(records),
            len(enrichment),
            len(traffic),
        )
        return records

    def _traffic(self) -> dict[int, TrafficInfo]:
        return parse_traffic(fetch_traffic(self._runner, self._config.nettop_path))
