"""Tests for the built-in host tools and the log ring buffer."""

from __future__ import annotations

import logging
import os

from hostmcp.tools.builtin import (
    DEFAULT_LOG_COUNT,
    MAX_LOG_ENTRIES,
    HostInfo,
    HostTools,
    LogBuffer,
    LogsResult,
    install_log_buffer,
)
from hostmcp.tools.registry import ToolRegistry


def _record(message: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord("host.test", level, __file__, 1, message, None, None)


class TestLogBuffer:
    def test_capacity(self) -> None:
        buffer = LogBuffer()
        for i in range(MAX_LOG_ENTRIES + 20):
            buffer.emit(_record(f"m{i}"))
        assert len(buffer) == MAX_LOG_ENTRIES
        assert buffer.recent(1)[0].message == f"m{MAX_LOG_ENTRIES + 19}"

    def test_recent_oldest_first(self) -> None:
        buffer = LogBuffer()
        for i in range(5):
            buffer.emit(_record(f"m{i}"))
        assert [e.message for e in buffer.recent(2)] == ["m3", "m4"]

    def test_level_filter(self) -> None:
        buffer = LogBuffer()
        buffer.emit(_record("info"))
        buffer.emit(_record("bad", logging.ERROR))
        entries = buffer.recent(10, "error")
        assert [e.message for e in entries] == ["bad"]
        assert entries[0].level == "ERROR"
        assert entries[0].logger == "host.test"

    def test_message_args_formatted(self) -> None:
        buffer = LogBuffer()
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        buffer.emit(record)
        assert buffer.recent(1)[0].message == "hello world"

    def test_clear(self) -> None:
        buffer = LogBuffer()
        buffer.emit(_record("m"))
        buffer.clear()
        assert len(buffer) == 0

    def test_install_once(self) -> None:
        first = install_log_buffer()
        assert install_log_buffer() is first
        assert first in logging.getLogger().handlers


class TestHostTools:
    def test_registered_names(self) -> None:
        registry = ToolRegistry([HostTools(LogBuffer())])
        assert sorted(registry.names()) == ["host_clear_logs", "host_get_info", "host_get_logs"]

    def test_get_logs_schema(self) -> None:
        registry = ToolRegistry([HostTools(LogBuffer())])
        descriptor = registry.get("host_get_logs")
        assert descriptor is not None
        props = descriptor.input_schema["properties"]
        assert props["count"]["type"] == "integer"
        assert props["level"]["enum"] == ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        assert descriptor.input_schema["required"] == []

    def test_get_info(self) -> None:
        info = HostTools(LogBuffer()).get_info()
        assert isinstance(info, HostInfo)
        assert info.pid == os.getpid()
        assert info.uptime_seconds >= 0

    def test_get_logs_defaults(self) -> None:
        buffer = LogBuffer()
        for i in range(DEFAULT_LOG_COUNT + 10):
            buffer.emit(_record(f"m{i}"))
        result = HostTools(buffer).get_logs("{}")
        assert isinstance(result, LogsResult)
        assert result.returned_count == DEFAULT_LOG_COUNT
        assert result.total_buffered == DEFAULT_LOG_COUNT + 10

    def test_get_logs_non_positive_count_uses_default(self) -> None:
        buffer = LogBuffer()
        for i in range(3):
            buffer.emit(_record(f"m{i}"))
        result = HostTools(buffer).get_logs('{"count": 0}')
        assert result.returned_count == 3

    def test_get_logs_level(self) -> None:
        buffer = LogBuffer()
        buffer.emit(_record("quiet", logging.DEBUG))
        buffer.emit(_record("loud", logging.WARNING))
        result = HostTools(buffer).get_logs('{"count": 5, "level": "WARNING"}')
        assert [e.message for e in result.logs] == ["loud"]

    def test_clear_logs(self) -> None:
        buffer = LogBuffer()
        buffer.emit(_record("m"))
        result = HostTools(buffer).clear_logs()
        assert result["success"] is True
        assert len(buffer) == 0
