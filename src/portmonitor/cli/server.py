"""CLI command: portmonitor server — start the local JSON API."""

from __future__ import annotations

import click
from rich.console import Console

console = Console(stderr=True)


@click.command()
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to listen on (default: 8471).",
)
@click.pass_context
def server(ctx: click.Context, port: int | None) -> None:
    """Serve open-port data as JSON on localhost."""
    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]Web dependencies not installed.[/red]\n"
            "Install with: pip install portmonitor[web]"
        )
        raise SystemExit(1)

    config = ctx.obj["config"]
    if port is not None:
        config.web_port = port

    console.print(
        f"[bold]PortMonitor[/bold] API starting on "
        f"[cyan]http://{config.web_host}:{config.web_port}/api/ports[/cyan]"
    )
    console.print(f"  [dim]Bound to {config.web_host} only[/dim]\n")

    from portmonitor.web.app import create_app

    uvicorn.run(
        create_app(config),
        host=config.web_host,
        port=config.web_port,
        log_level="info",
    )
