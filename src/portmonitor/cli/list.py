"""CLI command: portmonitor list — one-shot table of open ports."""

from __future__ import annotations

import json

import click
from rich.console import Console

from portmonitor.cli.table import build_ports_table, stats_line
from portmonitor.service import FILTERS_BY_NAME, SORTS_BY_NAME, PortMonitorService

console = Console()


@click.command(name="list")
@click.option(
    "--filter",
    "-f",
    "filter_name",
    type=click.Choice(list(FILTERS_BY_NAME)),
    default="all",
    show_default=True,
    help="Only show ports in this state.",
)
@click.option(
    "--sort",
    "-s",
    "sort_name",
    type=click.Choice(list(SORTS_BY_NAME)),
    default="port",
    show_default=True,
    help="Sort order.",
)
@click.option("--search", "-q", default="", help="Case-insensitive text filter.")
@click.option(
    "--full",
    is_flag=True,
    help="Resolve cwd and executable paths via lsof (slower).",
)
@click.option("--json", "as_json", is_flag=True, help="Print records as JSON.")
@click.pass_context
def list_ports(
    ctx: click.Context,
    filter_name: str,
    sort_name: str,
    search: str,
    full: bool,
    as_json: bool,
) -> None:
    """List open network ports and the processes that own them."""
    config = ctx.obj["config"]
    if full:
        config.enrichment_mode = "full"

    service = PortMonitorService(config)
    service.refresh()
    records = service.filtered(
        search, FILTERS_BY_NAME[filter_name], SORTS_BY_NAME[sort_name]
    )

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        console.print("[dim]No open ports found.[/dim]")
    else:
        console.print(build_ports_table(records, title="Open ports"))

    console.print(stats_line(service.stats(), service.last_updated))
