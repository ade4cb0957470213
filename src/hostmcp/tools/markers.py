"""Declarative markers for tool discovery.

Usage::

    @tool_provider
    class SceneTools:
        @tool("scene_summary", "Summarize the active scene", args=SummaryArgs)
        def summary(self, arguments_json: str) -> dict[str, Any]:
            ...

        @staticmethod
        @tool("scene_reload", "Reload the active scene")
        def reload() -> None:
            ...

The markers only attach metadata; :class:`~hostmcp.tools.registry.ToolRegistry`
does the scanning when it initializes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeVar

TOOL_ATTR = "__hostmcp_tool__"
PROVIDER_ATTR = "__hostmcp_tool_provider__"

F = TypeVar("F", bound=Callable[..., Any])
C = TypeVar("C", bound=type)


@dataclass(frozen=True)
class ToolMarker:
    """Metadata attached to a function by :func:`tool`."""

    name: str
    description: str
    args: type | None = None


def tool(name: str, description: str, args: type | None = None) -> Callable[[F], F]:
    """Mark a function or method as a tool.

    *args* is only used to derive the input schema; the handler still
    receives the raw arguments JSON string.
    """

    def decorator(fn: F) -> F:
        setattr(fn, TOOL_ATTR, ToolMarker(name=name, description=description, args=args))
        return fn

    return decorator


def tool_provider(cls: C) -> C:
    """Mark a class whose methods carry :func:`tool` markers."""
    setattr(cls, PROVIDER_ATTR, True)
    return cls


def get_marker(obj: object) -> ToolMarker | None:
    if isinstance(obj, (staticmethod, classmethod)):
        obj = obj.__func__
    marker = getattr(obj, TOOL_ATTR, None)
    return marker if isinstance(marker, ToolMarker) else None


def is_tool_provider(obj: object) -> bool:
    return isinstance(obj, type) and bool(getattr(obj, PROVIDER_ATTR, False))
