"""Rich renderables for port records."""

from __future__ import annotations

from datetime import datetime

from rich.table import Table
from rich.text import Text

from portmonitor.models import PortRecord, PortStats, format_bytes

# Model color hints mapped to rich color names.
_RICH_COLORS = {
    "orange": "dark_orange",
    "purple": "magenta",
    "gray": "grey50",
}


def rich_color(name: str) -> str:
    return _RICH_COLORS.get(name, name)


def build_ports_table(records: list[PortRecord], title: str | None = None) -> Table:
    table = Table(title=title, show_lines=False, expand=True)
    table.add_column("Port", justify="right", style="bold")
    table.add_column("Proto", width=5)
    table.add_column("Name", style="cyan", max_width=28)
    table.add_column("What", max_width=24)
    table.add_column("PID", justify="right")
    table.add_column("State")
    table.add_column("Category")
    table.add_column("In", justify="right")
    table.add_column("Out", justify="right")

    for record in records:
        name = Text(record.display_name)
        if record.display_name != record.process_name:
            name.append(f" ({record.process_name})", style="dim")
        state_color = rich_color(record.state.color)
        category_color = rich_color(record.category.color)
        table.add_row(
            str(record.port),
            record.protocol.value,
            name,
            record.description,
            str(record.pid),
            f"[{state_color}]{record.state.display_name}[/{state_color}]",
            f"[{category_color}]{record.category.value}[/{category_color}]",
            record.bytes_in_formatted,
            record.bytes_out_formatted,
        )
    return table


def stats_line(stats: PortStats, last_updated: float | None = None) -> str:
    line = (
        f"Total: {stats.total}  "
        f"[green]Listen: {stats.listening}[/green]  "
        f"[blue]Conn: {stats.established}[/blue]"
    )
    if stats.total_in > 0 or stats.total_out > 0:
        line += f"  ↓ {format_bytes(stats.total_in)}  ↑ {format_bytes(stats.total_out)}"
    if last_updated is not None:
        stamp = datetime.fromtimestamp(last_updated).strftime("%H:%M:%S")
        line += f"  [dim]updated {stamp}[/dim]"
    return line
