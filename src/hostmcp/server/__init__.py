"""Server side: routing, host-thread dispatch, and the HTTP/SSE transport."""

from hostmcp.server.dispatch import MainThreadDispatcher, PendingDispatch, TimeoutPolicy
from hostmcp.server.hostloop import HostLoop
from hostmcp.server.router import RequestRouter
from hostmcp.server.streams import StreamClient, StreamHub, format_event
from hostmcp.server.transport import HostServer, TransportError

__all__ = [
    "HostLoop",
    "HostServer",
    "MainThreadDispatcher",
    "PendingDispatch",
    "RequestRouter",
    "StreamClient",
    "StreamHub",
    "TimeoutPolicy",
    "TransportError",
    "format_event",
]
