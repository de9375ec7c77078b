"""CLI command: portmonitor kill <PID> — terminate the process behind a port."""

from __future__ import annotations

import sys

import click
from rich.console import Console

from portmonitor.service import PortMonitorService

console = Console(stderr=True)


@click.command()
@click.argument("pid", type=int)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def kill(ctx: click.Context, pid: int, yes: bool) -> None:
    """Send SIGKILL to PID and report whether its ports went away."""
    if pid <= 0:
        raise click.BadParameter("PID must be positive", param_hint="PID")

    service = PortMonitorService(ctx.obj["config"])
    service.refresh()

    owned = [r for r in service.records if r.pid == pid]
    name = owned[0].process_name if owned else "unknown"
    if not owned:
        console.print(f"[yellow]PID {pid} does not own any open port.[/yellow]")

    if not yes and not click.confirm(
        f"Are you sure you want to kill {name} (PID: {pid})?", default=False
    ):
        console.print("[dim]Cancelled.[/dim]")
        return

    timer = service.kill(pid)
    timer.join()

    remaining = [r for r in service.records if r.pid == pid]
    if remaining:
        ports = ", ".join(str(r.port) for r in remaining)
        console.print(
            f"[red]PID {pid} still owns port(s) {ports}[/red] "
            "(insufficient privileges, or it is still shutting down)"
        )
        sys.exit(1)

    console.print(f"[green]Killed {name} (PID {pid}).[/green]")
