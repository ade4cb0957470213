"""hostmcp CLI entrypoint."""

from __future__ import annotations

import click

from hostmcp import __version__


@click.group()
@click.version_option(version=__version__, prog_name="hostmcp")
def main() -> None:
    """hostmcp — expose a host application's operations over MCP."""


# Register subcommands
from hostmcp.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
