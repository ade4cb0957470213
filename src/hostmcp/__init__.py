"""hostmcp — JSON-RPC/MCP server that runs tool calls on a host application's main thread."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from hostmcp.app import HostApplication as HostApplication
    from hostmcp.settings import ServerSettings as ServerSettings
    from hostmcp.tools.markers import tool as tool
    from hostmcp.tools.markers import tool_provider as tool_provider
    from hostmcp.tools.registry import ToolRegistry as ToolRegistry

_EXPORTS = {
    "HostApplication": "hostmcp.app",
    "ServerSettings": "hostmcp.settings",
    "ToolRegistry": "hostmcp.tools.registry",
    "tool": "hostmcp.tools.markers",
    "tool_provider": "hostmcp.tools.markers",
}


def __getattr__(name: str) -> object:
    module_path = _EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'hostmcp' has no attribute {name!r}")
