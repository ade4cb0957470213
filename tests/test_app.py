"""Tests for application wiring."""

from __future__ import annotations

import json
import threading
from pathlib import Path

import httpx
import pytest

from hostmcp.app import HostApplication, build_registry
from hostmcp.resources.files import FileResourceProvider
from hostmcp.server.dispatch import TimeoutPolicy
from hostmcp.settings import ServerSettings, SettingsError


class TestBuildRegistry:
    def test_default_builtin_tools(self) -> None:
        registry = build_registry(ServerSettings())
        assert "host_get_info" in registry.names()

    def test_bad_module(self) -> None:
        with pytest.raises(SettingsError, match="no_such_module_xyz"):
            build_registry(ServerSettings(tool_modules=["no_such_module_xyz"]))


class TestHostApplication:
    def test_wiring(self, tmp_path: Path) -> None:
        settings = ServerSettings(
            port=0,
            request_timeout=2.5,
            timeout_policy=TimeoutPolicy.CANCEL,
            resource_root=tmp_path,
        )
        app = HostApplication(settings)
        assert isinstance(app.resources, FileResourceProvider)
        assert app.dispatcher.timeout == 2.5
        assert app.dispatcher.timeout_policy is TimeoutPolicy.CANCEL

    def test_no_resource_root(self) -> None:
        app = HostApplication(ServerSettings(port=0))
        assert app.resources is None

    def test_serves_builtin_tools(self, tmp_path: Path) -> None:
        (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")
        app = HostApplication(ServerSettings(host="127.0.0.1", port=0, resource_root=tmp_path))
        stop = threading.Event()
        app.start()
        host = threading.Thread(target=app.run_forever, args=(stop,), daemon=True)
        host.start()
        try:
            url = f"{app.server.url}/message"
            listed = httpx.post(url, content='{"jsonrpc":"2.0","id":1,"method":"tools/list"}').json()
            call = httpx.post(
                url,
                content='{"jsonrpc":"2.0","id":2,"method":"tools/call","params":{"name":"host_get_info"}}',
            ).json()
            read = httpx.post(
                url,
                content='{"jsonrpc":"2.0","id":3,"method":"resources/read","params":{"uri":"host://file/notes.txt"}}',
            ).json()
        finally:
            stop.set()
            host.join(2.0)
            app.stop()

        names = {t["name"] for t in listed["result"]["tools"]}
        assert {"host_get_info", "host_get_logs", "host_clear_logs"} <= names
        info = json.loads(call["result"]["content"][0]["text"])
        assert info["thread"] == host.name
        assert read["result"]["contents"][0]["text"] == "hello"
