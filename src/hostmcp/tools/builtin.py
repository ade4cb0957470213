"""Built-in host tools: process info and recent log records.

Log records are captured by a :class:`LogBuffer` attached to the root
logger the first time :class:`HostTools` is instantiated.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
import threading
import time
from collections import deque
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from hostmcp.tools.markers import tool, tool_provider
from hostmcp.tools.registry import parse_arguments

MAX_LOG_ENTRIES = 100
DEFAULT_LOG_COUNT = 50

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogEntry(BaseModel):
    timestamp: str
    level: str
    logger: str
    message: str


class GetLogsArgs(BaseModel):
    count: int = Field(default=DEFAULT_LOG_COUNT, description="Maximum number of entries to return")
    level: LogLevel | None = Field(default=None, description="Only return entries of this level")


class LogsResult(BaseModel):
    total_buffered: int
    returned_count: int
    logs: list[LogEntry]


class HostInfo(BaseModel):
    pid: int
    python: str
    platform: str
    thread: str
    uptime_seconds: float


class LogBuffer(logging.Handler):
    """Ring buffer of the most recent log records."""

    def __init__(self, capacity: int = MAX_LOG_ENTRIES) -> None:
        super().__init__()
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._entries_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = LogEntry(
                timestamp=datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3],
                level=record.levelname,
                logger=record.name,
                message=record.getMessage(),
            )
        except Exception:
            self.handleError(record)
            return
        with self._entries_lock:
            self._entries.append(entry)

    def __len__(self) -> int:
        with self._entries_lock:
            return len(self._entries)

    def recent(self, count: int, level: str | None = None) -> list[LogEntry]:
        """Return up to *count* newest entries, oldest first."""
        with self._entries_lock:
            entries = list(self._entries)
        if level:
            entries = [e for e in entries if e.level.upper() == level.upper()]
        return entries[-count:] if count > 0 else []

    def clear(self) -> None:
        with self._entries_lock:
            self._entries.clear()


_log_buffer: LogBuffer | None = None
_install_lock = threading.Lock()


def install_log_buffer() -> LogBuffer:
    """Attach the shared :class:`LogBuffer` to the root logger (once)."""
    global _log_buffer
    with _install_lock:
        if _log_buffer is None:
            _log_buffer = LogBuffer()
            logging.getLogger().addHandler(_log_buffer)
        return _log_buffer


@tool_provider
class HostTools:
    """Introspection tools for the process hosting the server."""

    def __init__(self, log_buffer: LogBuffer | None = None) -> None:
        self._log_buffer = log_buffer if log_buffer is not None else install_log_buffer()
        self._started = time.monotonic()

    @tool("host_get_info", "Get information about the host process")
    def get_info(self) -> HostInfo:
        return HostInfo(
            pid=os.getpid(),
            python=sys.version.split()[0],
            platform=platform.platform(),
            thread=threading.current_thread().name,
            uptime_seconds=round(time.monotonic() - self._started, 3),
        )

    @tool("host_get_logs", "Get recent host log records", args=GetLogsArgs)
    def get_logs(self, arguments_json: str) -> LogsResult:
        args = parse_arguments(arguments_json, GetLogsArgs)
        count = args.count if args.count > 0 else DEFAULT_LOG_COUNT
        logs = self._log_buffer.recent(count, args.level)
        return LogsResult(
            total_buffered=len(self._log_buffer),
            returned_count=len(logs),
            logs=logs,
        )

    @tool("host_clear_logs", "Clear the buffered host log records")
    def clear_logs(self) -> dict[str, object]:
        self._log_buffer.clear()
        return {"success": True, "message": "Logs cleared"}
