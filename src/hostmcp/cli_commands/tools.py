"""``hostmcp tools`` — inspect the local tool catalog."""

from __future__ import annotations

import sys

import click

from hostmcp.cli_commands._output import console, print_tools_table


@click.group()
def tools() -> None:
    """Inspect registered tools."""


@tools.command("list")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False), default=None, help="YAML settings file.")
@click.option("--tools", "tool_modules", multiple=True, help="Importable module with @tool definitions (repeatable).")
@click.option("--json", "as_json", is_flag=True, help="Print the tools/list result as JSON.")
def list_tools(config_path: str | None, tool_modules: tuple[str, ...], as_json: bool) -> None:
    """List the tools a server with this configuration would expose."""
    from hostmcp.app import build_registry
    from hostmcp.protocol.codec import dumps
    from hostmcp.protocol.models import ToolsListResult
    from hostmcp.settings import SettingsError, SettingsLoader

    try:
        settings = SettingsLoader(config_path).load()
        if tool_modules:
            settings = settings.model_copy(update={"tool_modules": list(tool_modules)})
        registry = build_registry(settings)
    except SettingsError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    definitions = registry.list_definitions()

    if as_json:
        console.print_json(dumps(ToolsListResult(tools=definitions)))
        return

    if not definitions:
        console.print("[yellow]No tools registered.[/yellow]")
        return

    print_tools_table(definitions)
