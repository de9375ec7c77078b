"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from portmonitor import __version__
from portmonitor.config import PortMonitorConfig


@click.group()
@click.version_option(version=__version__, prog_name="portmonitor")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """PortMonitor — see which processes own your open ports, and kill them."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = PortMonitorConfig.load(config_path)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    config.verbose = verbose

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


def _register_commands() -> None:
    from portmonitor.cli.kill import kill  # noqa: F811
    from portmonitor.cli.list import list_ports  # noqa: F811
    from portmonitor.cli.server import server  # noqa: F811
    from portmonitor.cli.watch import watch  # noqa: F811

    main.add_command(list_ports)
    main.add_command(kill)
    main.add_command(watch)
    main.add_command(server)


_register_commands()
