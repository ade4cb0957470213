"""``hostmcp serve`` — run the MCP server with this process as the host."""

from __future__ import annotations

import sys
from typing import Any

import click

from hostmcp.cli_commands._output import configure_logging, console


@click.command()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False), default=None, help="YAML settings file.")
@click.option("--host", default=None, help="Interface to bind.")
@click.option("--port", "-p", type=int, default=None, help="Port to bind (0 picks a free port).")
@click.option("--tools", "tool_modules", multiple=True, help="Importable module with @tool definitions (repeatable).")
@click.option("--resource-root", type=click.Path(exists=True, file_okay=False), default=None, help="Directory exposed through resources/*.")
@click.option("--timeout-policy", type=click.Choice(["abandon", "cancel"]), default=None, help="What happens to a request that times out.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--telemetry", is_flag=True, help="Enable OpenTelemetry tracing.")
def serve(
    config_path: str | None,
    host: str | None,
    port: int | None,
    tool_modules: tuple[str, ...],
    resource_root: str | None,
    timeout_policy: str | None,
    verbose: bool,
    telemetry: bool,
) -> None:
    """Start the server and drain host work on this thread until Ctrl-C."""
    from hostmcp.app import HostApplication
    from hostmcp.server.transport import TransportError
    from hostmcp.settings import ServerSettings, SettingsError, SettingsLoader

    configure_logging(verbose)

    try:
        settings = SettingsLoader(config_path).load()
        overrides: dict[str, Any] = {}
        if host is not None:
            overrides["host"] = host
        if port is not None:
            overrides["port"] = port
        if tool_modules:
            overrides["tool_modules"] = list(tool_modules)
        if resource_root is not None:
            overrides["resource_root"] = resource_root
        if timeout_policy is not None:
            overrides["timeout_policy"] = timeout_policy
        if telemetry:
            overrides["telemetry"] = {**settings.telemetry.model_dump(), "enabled": True}
        if overrides:
            settings = ServerSettings.model_validate({**settings.model_dump(), **overrides})
        app = HostApplication(settings)
    except (SettingsError, ValueError) as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    if settings.telemetry.enabled:
        from hostmcp.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(otlp_endpoint=settings.telemetry.otlp_endpoint)
        except ImportError as exc:
            console.print(f"[red]Telemetry error:[/red] {exc}")
            sys.exit(1)

    try:
        app.start()
    except TransportError as exc:
        console.print(f"[red]Server error:[/red] {exc}")
        sys.exit(1)

    console.print(f"[green]Serving MCP on {app.server.url}[/green] ({len(app.registry)} tools)")
    try:
        app.run_forever()
    except KeyboardInterrupt:
        console.print("Shutting down.")
    finally:
        app.stop()
