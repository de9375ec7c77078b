"""CLI command: portmonitor watch — live, auto-refreshing port table."""

from __future__ import annotations

import signal
import threading

import click
from rich.console import Console, Group
from rich.live import Live
from rich.text import Text

from portmonitor.cli.table import build_ports_table, stats_line
from portmonitor.models import PortStats
from portmonitor.service import (
    FILTERS_BY_NAME,
    SORTS_BY_NAME,
    PortMonitorService,
    Snapshot,
    filter_records,
)

console = Console(stderr=True)


@click.command()
@click.option(
    "--interval",
    "-n",
    type=float,
    default=None,
    help="Seconds between refreshes (default: from config, 5s).",
)
@click.option(
    "--filter",
    "-f",
    "filter_name",
    type=click.Choice(list(FILTERS_BY_NAME)),
    default="all",
    show_default=True,
)
@click.option(
    "--sort",
    "-s",
    "sort_name",
    type=click.Choice(list(SORTS_BY_NAME)),
    default="port",
    show_default=True,
)
@click.option("--search", "-q", default="", help="Case-insensitive text filter.")
@click.pass_context
def watch(
    ctx: click.Context,
    interval: float | None,
    filter_name: str,
    sort_name: str,
    search: str,
) -> None:
    """Continuously refresh the open-port table until Ctrl+C."""
    config = ctx.obj["config"]
    stop = threading.Event()

    with Live(
        Text("Scanning ports...", style="dim italic"),
        console=console,
        refresh_per_second=4,
    ) as live:

        def on_update(snapshot: Snapshot) -> None:
            records = filter_records(
                snapshot.records,
                search,
                FILTERS_BY_NAME[filter_name],
                SORTS_BY_NAME[sort_name],
            )
            stats = PortStats.from_records(snapshot.records)
            live.update(
                Group(
                    build_ports_table(records, title="Open ports"),
                    Text.from_markup(stats_line(stats, snapshot.last_updated)),
                    Text("Press Ctrl+C to stop.", style="dim"),
                )
            )

        def _signal_handler(signum: int, frame: object) -> None:
            stop.set()

        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)

        service = PortMonitorService(config, on_update=on_update)
        service.start_auto_refresh(interval)
        try:
            stop.wait()
        finally:
            service.stop_auto_refresh()

    console.print("[dim]Stopped.[/dim]")
