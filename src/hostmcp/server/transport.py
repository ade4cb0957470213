"""HostServer — JSON-RPC over HTTP with a server-sent event side channel.

Endpoints:

* ``POST /message`` (or ``POST /``): one JSON-RPC request per body.  The
  request is handed to the host thread through the
  :class:`~hostmcp.server.dispatch.MainThreadDispatcher` and the worker
  blocks until the response is ready.
* ``GET /sse``: an event stream that receives every
  :meth:`HostServer.send_notification`.
* ``OPTIONS``: CORS preflight.

Connections are accepted on a dedicated thread and served by a bounded
thread pool.  A streaming client holds its worker for as long as it stays
connected.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

from pydantic import BaseModel

from hostmcp.protocol.codec import dumps, encode_error
from hostmcp.protocol.errors import DispatchTimeoutError
from hostmcp.server.dispatch import MainThreadDispatcher
from hostmcp.server.router import RequestRouter
from hostmcp.server.streams import SSE_CONNECTED, SSE_KEEPALIVE, StreamClient, StreamHub

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 3000
DEFAULT_MAX_WORKERS = 64

MESSAGE_PATHS = frozenset({"/", "/message"})
STREAM_PATH = "/sse"

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

StateListener = Callable[[bool], None]


class TransportError(Exception):
    """The server could not bind or serve."""


class _PooledHTTPServer(HTTPServer):
    """HTTPServer that serves each connection on a shared thread pool."""

    allow_reuse_address = True

    def __init__(self, address: tuple[str, int], app: HostServer, max_workers: int) -> None:
        self.app = app
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="hostmcp-worker")
        super().__init__(address, _RequestHandler)

    def process_request(self, request: Any, client_address: Any) -> None:
        try:
            self._pool.submit(self._serve, request, client_address)
        except RuntimeError:
            # Pool already shut down.
            self.shutdown_request(request)

    def _serve(self, request: Any, client_address: Any) -> None:
        try:
            self.finish_request(request, client_address)
        except Exception:
            self.handle_error(request, client_address)
        finally:
            self.shutdown_request(request)

    def handle_error(self, request: Any, client_address: Any) -> None:
        logger.exception("Error serving %s", client_address)

    def server_close(self) -> None:
        super().server_close()
        self._pool.shutdown(wait=False, cancel_futures=True)


class _RequestHandler(BaseHTTPRequestHandler):
    server: _PooledHTTPServer

    def _cors(self) -> None:
        for name, value in CORS_HEADERS.items():
            self.send_header(name, value)

    def _reply(self, status: int, body: bytes = b"", content_type: str | None = None) -> None:
        self.send_response(status)
        self._cors()
        if content_type:
            self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def do_OPTIONS(self) -> None:  # noqa: N802
        self._reply(200)

    def do_POST(self) -> None:  # noqa: N802
        if self.path == STREAM_PATH:
            self._reply(405, b"Method Not Allowed", "text/plain")
            return
        if self.path not in MESSAGE_PATHS:
            self._reply(404, b"Not Found", "text/plain")
            return

        try:
            length = int(self.headers.get("Content-Length", 0))
            # Invalid UTF-8 is replaced with U+FFFD.
            body = self.rfile.read(length).decode("utf-8", errors="replace") if length > 0 else ""
            response = self.server.app.handle_message(body)
        except Exception as exc:
            logger.exception("Error handling request")
            self._reply(500, str(exc).encode("utf-8"), "text/plain")
            return
        self._reply(200, response.encode("utf-8"), "application/json")

    def do_GET(self) -> None:  # noqa: N802
        if self.path == STREAM_PATH:
            self.server.app.serve_stream(self)
            return
        if self.path in MESSAGE_PATHS:
            self._reply(405, b"Method Not Allowed", "text/plain")
            return
        self._reply(404, b"Not Found", "text/plain")

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.debug("%s - %s", self.address_string(), format % args)


class HostServer:
    """HTTP + SSE front end feeding the host's dispatch queue.

    Usage::

        server = HostServer(router, dispatcher, port=0)
        server.start()
        server.port                          # actual bound port
        server.send_notification({"method": "host/changed"})
        server.stop()

    *max_workers* bounds the connection pool.  Every open ``/sse`` client
    pins one worker, so with *max_workers* streams connected no unary
    request is served until a stream closes.
    """

    def __init__(
        self,
        router: RequestRouter,
        dispatcher: MainThreadDispatcher,
        *,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        request_timeout: float | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        stream_poll_interval: float = 0.1,
        stream_keepalive: float = 15.0,
    ) -> None:
        self._router = router
        self._dispatcher = dispatcher
        self._host = host
        self._port = port
        self._request_timeout = request_timeout
        self._max_workers = max_workers
        self._stream_poll_interval = stream_poll_interval
        self._stream_keepalive = stream_keepalive
        self._streams = StreamHub()
        self._listeners: list[StateListener] = []
        self._httpd: _PooledHTTPServer | None = None
        self._thread: threading.Thread | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def port(self) -> int:
        if self._httpd is not None:
            return int(self._httpd.server_address[1])
        return self._port

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self.port}"

    @property
    def streams(self) -> StreamHub:
        return self._streams

    def add_state_listener(self, listener: StateListener) -> None:
        """Call *listener* with ``True``/``False`` when the server starts/stops."""
        self._listeners.append(listener)

    def _notify_state(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._running)
            except Exception:
                logger.exception("Server state listener failed")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, port: int | None = None) -> None:
        if self._running:
            logger.warning("MCP Server already running")
            return
        if port is not None:
            self._port = port

        try:
            self._httpd = _PooledHTTPServer((self._host, self._port), self, self._max_workers)
        except OSError as exc:
            msg = f"Failed to start MCP server on {self._host}:{self._port}: {exc}"
            raise TransportError(msg) from exc

        self._running = True
        self._thread = threading.Thread(
            target=self._httpd.serve_forever,
            kwargs={"poll_interval": 0.1},
            name="hostmcp-accept",
            daemon=True,
        )
        self._thread.start()
        logger.info("MCP Server started on %s", self.url)
        self._notify_state()

    def stop(self, timeout: float = 1.0) -> None:
        if not self._running:
            return
        self._running = False
        self._streams.close_all()

        if self._httpd is not None:
            # shutdown() blocks until the accept loop exits.
            closer = threading.Thread(target=self._httpd.shutdown, name="hostmcp-shutdown", daemon=True)
            closer.start()
            closer.join(timeout)
            if closer.is_alive():
                logger.warning("Accept loop did not stop within %.1fs", timeout)
            self._httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout)

        self._httpd = None
        self._thread = None
        logger.info("MCP Server stopped")
        self._notify_state()

    # ------------------------------------------------------------------
    # Request handling (called on worker threads)
    # ------------------------------------------------------------------

    def handle_message(self, body: str) -> str:
        """Run *body* through the router on the host thread."""
        try:
            return self._dispatcher.call(lambda: self._router.handle(body), self._request_timeout)
        except DispatchTimeoutError as exc:
            return encode_error(None, exc.code, exc.message)

    def serve_stream(self, handler: BaseHTTPRequestHandler) -> None:
        """Hold *handler*'s connection open as an event stream until it ends."""
        handler.send_response(200)
        handler.send_header("Content-Type", "text/event-stream")
        handler.send_header("Cache-Control", "no-cache")
        handler.send_header("Connection", "keep-alive")
        for name, value in CORS_HEADERS.items():
            handler.send_header(name, value)
        handler.end_headers()

        client = StreamClient(handler.wfile)
        if not self._streams.send(client, SSE_CONNECTED):
            return
        self._streams.add(client)

        idle = 0.0
        try:
            while self._running and client.is_open:
                if client.wait_closed(self._stream_poll_interval):
                    break
                idle += self._stream_poll_interval
                if self._stream_keepalive > 0 and idle >= self._stream_keepalive:
                    idle = 0.0
                    if not self._streams.send(client, SSE_KEEPALIVE):
                        break
        finally:
            self._streams.remove(client.id)
            handler.close_connection = True

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def send_notification(self, payload: str | BaseModel | Mapping[str, Any]) -> int:
        """Broadcast *payload* to every stream client; return how many received it."""
        text = payload if isinstance(payload, str) else dumps(payload)
        return self._streams.broadcast(text)

    def notify(self, method: str, params: Mapping[str, Any] | None = None) -> int:
        """Broadcast a JSON-RPC notification (no id)."""
        message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = dict(params)
        return self.send_notification(message)
