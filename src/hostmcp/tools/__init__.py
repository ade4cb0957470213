"""Tool catalog — declarative markers, schema derivation, and the registry."""

from hostmcp.tools.markers import ToolMarker, tool, tool_provider
from hostmcp.tools.registry import ToolDescriptor, ToolRegistry, parse_arguments
from hostmcp.tools.schema import generate_schema

__all__ = [
    "ToolDescriptor",
    "ToolMarker",
    "ToolRegistry",
    "generate_schema",
    "parse_arguments",
    "tool",
    "tool_provider",
]
