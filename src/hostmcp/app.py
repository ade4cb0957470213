"""HostApplication — wires registry, router, dispatcher and server together."""

from __future__ import annotations

import importlib
import logging
import threading

from hostmcp.resources.files import FileResourceProvider
from hostmcp.resources.provider import ResourceProvider
from hostmcp.server.dispatch import MainThreadDispatcher
from hostmcp.server.hostloop import HostLoop
from hostmcp.server.router import RequestRouter
from hostmcp.server.transport import HostServer
from hostmcp.settings import ServerSettings, SettingsError
from hostmcp.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def build_registry(settings: ServerSettings) -> ToolRegistry:
    """Import every configured tool module and hand them to a new registry.

    Raises:
        SettingsError: If a tool module cannot be imported.
    """
    modules = []
    for name in settings.tool_modules:
        try:
            modules.append(importlib.import_module(name))
        except ImportError as exc:
            raise SettingsError(f"Cannot import tool module {name!r}: {exc}") from exc
    return ToolRegistry(modules, entry_point_group=settings.entry_point_group)


class HostApplication:
    """A complete server for one host process.

    Usage::

        app = HostApplication(ServerSettings(port=0))
        app.start()
        try:
            app.run_forever()    # drains the queue on this thread
        finally:
            app.stop()
    """

    def __init__(
        self,
        settings: ServerSettings,
        *,
        registry: ToolRegistry | None = None,
        resources: ResourceProvider | None = None,
    ) -> None:
        self.settings = settings
        self.registry = registry if registry is not None else build_registry(settings)
        if resources is None and settings.resource_root is not None:
            resources = FileResourceProvider(settings.resource_root)
        self.resources = resources
        self.router = RequestRouter(
            self.registry,
            resources=resources,
            server_name=settings.server_name,
            server_version=settings.server_version,
        )
        self.dispatcher = MainThreadDispatcher(
            timeout=settings.request_timeout,
            timeout_policy=settings.timeout_policy,
        )
        self.server = HostServer(
            self.router,
            self.dispatcher,
            host=settings.host,
            port=settings.port,
            request_timeout=settings.request_timeout,
            max_workers=settings.max_workers,
            stream_poll_interval=settings.stream_poll_interval,
            stream_keepalive=settings.stream_keepalive,
        )
        self.host_loop = HostLoop(self.dispatcher, tick_interval=settings.tick_interval)

    def start(self) -> None:
        """Scan tools, then start listening."""
        self.registry.initialize()
        self.server.start()

    def run_forever(self, stop_event: threading.Event | None = None) -> None:
        self.host_loop.run(stop_event)

    def stop(self) -> None:
        self.host_loop.stop()
        self.server.stop()
