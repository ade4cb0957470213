"""End-to-end tests for the HTTP/SSE transport on a real socket."""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from hostmcp.server.dispatch import MainThreadDispatcher
from hostmcp.server.hostloop import HostLoop
from hostmcp.server.router import RequestRouter
from hostmcp.server.transport import CORS_HEADERS, HostServer, TransportError
from hostmcp.tools.registry import ToolRegistry


def _rpc(method: str, req_id: Any, params: Any = None) -> str:
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": req_id, "method": method}
    if params is not None:
        message["params"] = params
    return json.dumps(message)


@pytest.fixture
def registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register("thread_name", "Name of the thread running the tool", lambda: threading.current_thread().name)
    return registry


@pytest.fixture
def server(registry: ToolRegistry) -> Iterator[HostServer]:
    dispatcher = MainThreadDispatcher(timeout=5.0)
    loop = HostLoop(dispatcher, tick_interval=0.005)
    server = HostServer(
        RequestRouter(registry),
        dispatcher,
        host="127.0.0.1",
        port=0,
        stream_poll_interval=0.02,
    )
    loop.start()
    server.start()
    try:
        yield server
    finally:
        server.stop()
        loop.stop()


class TestUnary:
    def test_ping(self, server: HostServer) -> None:
        response = httpx.post(f"{server.url}/message", content=_rpc("ping", 1))
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"jsonrpc": "2.0", "id": "1", "result": {"pong": True}}

    def test_root_path(self, server: HostServer) -> None:
        response = httpx.post(f"{server.url}/", content=_rpc("ping", "r"))
        assert response.json()["id"] == "r"

    def test_cors_headers(self, server: HostServer) -> None:
        response = httpx.post(f"{server.url}/message", content=_rpc("ping", 1))
        for name, value in CORS_HEADERS.items():
            assert response.headers[name] == value

    def test_tool_runs_on_host_thread(self, server: HostServer) -> None:
        params = {"name": "thread_name"}
        response = httpx.post(f"{server.url}/message", content=_rpc("tools/call", 1, params))
        assert response.json()["result"]["content"][0]["text"] == "hostmcp-host"

    def test_parse_error(self, server: HostServer) -> None:
        response = httpx.post(f"{server.url}/message", content='{"method":"ping"')
        assert response.status_code == 200
        assert response.json()["error"]["code"] == -32700

    def test_invalid_utf8_body_gets_envelope(self, server: HostServer) -> None:
        response = httpx.post(f"{server.url}/message", content=b'{"method":"ping","id":"\xff"}')
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        body = response.json()
        assert body["result"] == {"pong": True}
        assert body["id"] == "\ufffd"

    def test_concurrent_requests_echo_own_ids(self, server: HostServer) -> None:
        def call(i: int) -> str:
            response = httpx.post(f"{server.url}/message", content=_rpc("ping", f"req-{i}"))
            return str(response.json()["id"])

        with ThreadPoolExecutor(max_workers=8) as pool:
            ids = list(pool.map(call, range(20)))
        assert ids == [f"req-{i}" for i in range(20)]


class TestHttpSurface:
    def test_options(self, server: HostServer) -> None:
        response = httpx.options(f"{server.url}/message")
        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["Access-Control-Allow-Methods"] == "POST, GET, OPTIONS"

    def test_unknown_path(self, server: HostServer) -> None:
        assert httpx.get(f"{server.url}/nope").status_code == 404
        assert httpx.post(f"{server.url}/nope", content="{}").status_code == 404

    def test_wrong_verb(self, server: HostServer) -> None:
        assert httpx.get(f"{server.url}/message").status_code == 405
        assert httpx.post(f"{server.url}/sse", content="{}").status_code == 405


class TestTimeout:
    def test_dispatch_timeout_reports_internal_error(self, registry: ToolRegistry) -> None:
        # No host loop: nothing drains the queue.
        dispatcher = MainThreadDispatcher(timeout=0.1)
        server = HostServer(RequestRouter(registry), dispatcher, host="127.0.0.1", port=0)
        server.start()
        try:
            response = httpx.post(f"{server.url}/message", content=_rpc("ping", 5))
        finally:
            server.stop()
        assert response.status_code == 200
        assert response.json() == {
            "jsonrpc": "2.0",
            "id": None,
            "error": {"code": -32603, "message": "Request timeout"},
        }


class TestStream:
    def _wait_for_clients(self, server: HostServer, count: int) -> None:
        deadline = time.monotonic() + 5.0
        while len(server.streams) < count and time.monotonic() < deadline:
            time.sleep(0.01)
        assert len(server.streams) == count

    def test_broadcast_frame(self, server: HostServer) -> None:
        with httpx.Client(timeout=5.0) as client:
            with client.stream("GET", f"{server.url}/sse") as response:
                assert response.status_code == 200
                assert response.headers["content-type"] == "text/event-stream"
                lines = response.iter_lines()
                assert next(lines) == ": connected"
                self._wait_for_clients(server, 1)

                assert server.send_notification('{"x":1}') == 1
                data = next(line for line in lines if line)
                assert data == 'data: {"x":1}'

    def test_notify_helper(self, server: HostServer) -> None:
        with httpx.Client(timeout=5.0) as client:
            with client.stream("GET", f"{server.url}/sse") as response:
                lines = response.iter_lines()
                next(lines)
                self._wait_for_clients(server, 1)
                server.notify("host/changed", {"scene": "main"})
                data = next(line for line in lines if line.startswith("data: "))
        assert json.loads(data[len("data: ") :]) == {
            "jsonrpc": "2.0",
            "method": "host/changed",
            "params": {"scene": "main"},
        }

    def test_notification_without_clients(self, server: HostServer) -> None:
        assert server.send_notification({"x": 1}) == 0

    def test_stop_closes_streams(self, registry: ToolRegistry) -> None:
        dispatcher = MainThreadDispatcher()
        server = HostServer(RequestRouter(registry), dispatcher, host="127.0.0.1", port=0, stream_poll_interval=0.02)
        server.start()
        with httpx.Client(timeout=5.0) as client:
            with client.stream("GET", f"{server.url}/sse") as response:
                lines = response.iter_lines()
                next(lines)
                self._wait_for_clients(server, 1)
                server.stop()
                remaining = list(lines)
        assert all(not line.startswith("data:") for line in remaining)
        assert len(server.streams) == 0


class TestLifecycle:
    def test_port_zero_binds_free_port(self, server: HostServer) -> None:
        assert server.is_running
        assert server.port > 0

    def test_double_start_warns(self, server: HostServer, caplog: pytest.LogCaptureFixture) -> None:
        port = server.port
        server.start()
        assert "already running" in caplog.text
        assert server.port == port

    def test_state_listeners(self, registry: ToolRegistry) -> None:
        states: list[bool] = []
        server = HostServer(RequestRouter(registry), MainThreadDispatcher(), host="127.0.0.1", port=0)
        server.add_state_listener(states.append)
        server.start()
        server.stop()
        assert states == [True, False]
        assert not server.is_running

    def test_bind_failure(self, server: HostServer, registry: ToolRegistry) -> None:
        other = HostServer(RequestRouter(registry), MainThreadDispatcher(), host="127.0.0.1", port=server.port)
        with pytest.raises(TransportError):
            other.start()

    def test_stop_bounded_when_accept_loop_hangs(
        self, registry: ToolRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        server = HostServer(RequestRouter(registry), MainThreadDispatcher(), host="127.0.0.1", port=0)
        server.start()
        httpd = server._httpd
        assert httpd is not None
        real_shutdown = httpd.shutdown
        release = threading.Event()
        try:
            with patch.object(httpd, "shutdown", side_effect=lambda: release.wait(5.0)):
                started = time.monotonic()
                server.stop(timeout=0.2)
                elapsed = time.monotonic() - started
        finally:
            release.set()
            real_shutdown()
        assert elapsed < 2.0
        assert not server.is_running
        assert "did not stop" in caplog.text

    def test_open_streams_pin_workers(self, registry: ToolRegistry) -> None:
        dispatcher = MainThreadDispatcher(timeout=5.0)
        loop = HostLoop(dispatcher, tick_interval=0.005)
        server = HostServer(
            RequestRouter(registry),
            dispatcher,
            host="127.0.0.1",
            port=0,
            max_workers=1,
            stream_poll_interval=0.02,
        )
        loop.start()
        server.start()
        try:
            with httpx.Client(timeout=5.0) as client:
                with client.stream("GET", f"{server.url}/sse") as response:
                    assert next(response.iter_lines()) == ": connected"
                    with pytest.raises(httpx.ReadTimeout):
                        httpx.post(f"{server.url}/message", content=_rpc("ping", 1), timeout=0.3)
        finally:
            server.stop()
            loop.stop()
