"""``hostmcp bridge`` — relay stdio JSON-RPC to a running server."""

from __future__ import annotations

import asyncio
import logging

import click

from hostmcp.cli_commands._output import configure_logging


@click.command()
@click.option("--host", envvar="HOSTMCP_HOST", default="localhost", show_default=True, help="Server host.")
@click.option("--port", envvar="HOSTMCP_PORT", type=int, default=3000, show_default=True, help="Server port.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr.")
def bridge(host: str, port: int, verbose: bool) -> None:
    """Read JSON-RPC lines from stdin and print responses and notifications."""
    from hostmcp.bridge import StdioBridge

    configure_logging(verbose)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        asyncio.run(StdioBridge(f"http://{host}:{port}").run())
    except KeyboardInterrupt:
        pass
