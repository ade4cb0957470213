"""ToolRegistry — the catalog of invocable host operations.

The registry is an explicit object: build it once at startup and inject
it into the router.  It is filled two ways:

* **scanning** — modules, classes and instances handed to the constructor
  (or found through an entry-point group) are scanned for
  :func:`~hostmcp.tools.markers.tool` markers when :meth:`initialize` runs;
* **registration** — :meth:`register` adds a handler directly.

Usage::

    registry = ToolRegistry([my_tools_module, SceneTools])
    registry.list_definitions()              # triggers initialize()
    registry.execute("scene_summary", "{}")  # calls the bound handler
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from importlib.metadata import entry_points
from types import ModuleType
from typing import Any, TypeVar

from pydantic import BaseModel

from hostmcp.protocol.errors import ToolNotFoundError
from hostmcp.protocol.models import ToolDefinition
from hostmcp.tools.markers import ToolMarker, get_marker, is_tool_provider
from hostmcp.tools.schema import generate_schema
from hostmcp.utils.telemetry import ATTR_TOOL_NAME, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

M = TypeVar("M", bound=BaseModel)

DEFAULT_RESULT: dict[str, Any] = {"success": True}


@dataclass(frozen=True)
class ToolDescriptor:
    """A registered tool.  The schema is derived once, at registration."""

    name: str
    description: str
    handler: Callable[..., Any]
    input_schema: dict[str, Any] = field(default_factory=lambda: generate_schema(None))
    args_type: type | None = None
    owner: object | None = None
    takes_arguments: bool = True

    def to_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
        )

    def invoke(self, arguments_json: str) -> Any:
        if self.takes_arguments:
            return self.handler(arguments_json)
        return self.handler()


class ToolRegistry:
    """Name-keyed map of :class:`ToolDescriptor`; last registration wins.

    :meth:`initialize` is guarded by a flag, not a lock: it is meant to run
    on the host thread (inside a dispatched call or at startup).
    """

    def __init__(
        self,
        providers: Iterable[object] = (),
        *,
        entry_point_group: str | None = None,
    ) -> None:
        self._providers: list[object] = list(providers)
        self._entry_point_group = entry_point_group
        self._tools: dict[str, ToolDescriptor] = {}
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def add_provider(self, provider: object) -> None:
        """Queue *provider* for scanning (scanned now if already initialized)."""
        self._providers.append(provider)
        if self._initialized:
            self._scan(provider)

    def initialize(self) -> None:
        """Scan all providers once.  Later calls are no-ops."""
        if self._initialized:
            return

        for provider in self._providers:
            self._scan(provider)
        if self._entry_point_group:
            self._scan_entry_points(self._entry_point_group)

        self._initialized = True
        logger.info("Tool registry initialized with %d tools.", len(self._tools))

    def register(
        self,
        name: str,
        description: str,
        handler: Callable[..., Any],
        args_type: type | None = None,
        *,
        owner: object | None = None,
    ) -> ToolDescriptor:
        """Add *handler* under *name*, replacing any previous tool of that name."""
        if name in self._tools:
            logger.warning("Tool %s registered twice; keeping the latest.", name)
        descriptor = ToolDescriptor(
            name=name,
            description=description,
            handler=handler,
            input_schema=generate_schema(args_type),
            args_type=args_type,
            owner=owner,
            takes_arguments=_takes_arguments(handler),
        )
        self._tools[name] = descriptor
        logger.debug("Registered tool: %s", name)
        return descriptor

    def get(self, name: str) -> ToolDescriptor | None:
        self.initialize()
        return self._tools.get(name)

    def names(self) -> list[str]:
        self.initialize()
        return list(self._tools)

    def list_definitions(self) -> list[ToolDefinition]:
        """Return one definition per registered tool."""
        self.initialize()
        return [d.to_definition() for d in self._tools.values()]

    def execute(self, name: str, arguments_json: str) -> Any:
        """Invoke tool *name* with the raw arguments JSON.

        Exceptions raised by the tool propagate unchanged.  A ``None``
        result becomes ``{"success": True}``.

        Raises:
            ToolNotFoundError: If no tool is registered under *name*.
        """
        self.initialize()
        descriptor = self._tools.get(name)
        if descriptor is None:
            raise ToolNotFoundError(name)

        with _tracer.start_as_current_span("hostmcp.tool.execute") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            result = descriptor.invoke(arguments_json)

        return dict(DEFAULT_RESULT) if result is None else result

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def _scan(self, provider: object) -> None:
        if inspect.ismodule(provider):
            self._scan_module(provider)
        elif inspect.isclass(provider):
            instance = _instantiate(provider)
            if instance is not None:
                self._scan_members(provider, instance)
        elif get_marker(provider) is not None:
            self._register_marked(get_marker(provider), provider, None)  # type: ignore[arg-type]
        else:
            self._scan_members(type(provider), provider)

    def _scan_module(self, module: ModuleType) -> None:
        for value in list(vars(module).values()):
            if getattr(value, "__module__", None) != module.__name__:
                continue
            if is_tool_provider(value):
                self._scan(value)
            elif inspect.isfunction(value):
                marker = get_marker(value)
                if marker is not None:
                    self._register_marked(marker, value, None)

    def _scan_members(self, cls: type, instance: object) -> None:
        members: dict[str, object] = {}
        for klass in reversed(cls.__mro__):
            members.update(vars(klass))

        for attr_name, raw in members.items():
            marker = get_marker(raw)
            if marker is None:
                continue
            if isinstance(raw, staticmethod):
                self._register_marked(marker, raw.__func__, None)
            else:
                self._register_marked(marker, getattr(instance, attr_name), instance)

    def _scan_entry_points(self, group: str) -> None:
        for ep in entry_points(group=group):
            try:
                target = ep.load()
            except Exception as exc:
                logger.warning("Skipping tool entry point %s: %s", ep.name, exc)
                continue
            self._scan(target)

    def _register_marked(
        self,
        marker: ToolMarker,
        handler: Callable[..., Any],
        owner: object | None,
    ) -> None:
        self.register(marker.name, marker.description, handler, marker.args, owner=owner)


def parse_arguments(arguments_json: str | None, args_type: type[M]) -> M:
    """Validate a tool's raw arguments JSON into *args_type*.

    Blank input yields the model's defaults.
    """
    if not arguments_json or not arguments_json.strip():
        return args_type()
    return args_type.model_validate_json(arguments_json)


def _instantiate(cls: type) -> object | None:
    try:
        return cls()
    except Exception as exc:
        logger.warning("Skipping tool provider %s: %s", cls.__qualname__, exc)
        return None


def _takes_arguments(handler: Callable[..., Any]) -> bool:
    try:
        params = inspect.signature(handler).parameters.values()
    except (TypeError, ValueError):
        return True
    return any(
        p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.VAR_POSITIONAL)
        for p in params
    )
