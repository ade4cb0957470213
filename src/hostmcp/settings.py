"""Server configuration: pydantic settings loaded from YAML and the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from hostmcp import __version__
from hostmcp.server.dispatch import TimeoutPolicy

ENV_HOST = "HOSTMCP_HOST"
ENV_PORT = "HOSTMCP_PORT"

DEFAULT_TOOL_MODULES = ["hostmcp.tools.builtin"]


class SettingsError(Exception):
    """Raised when the server configuration cannot be read or validated."""


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    otlp_endpoint: str | None = None


class ServerSettings(BaseModel):
    """Everything needed to build and run a :class:`~hostmcp.app.HostApplication`."""

    host: str = "localhost"
    port: int = Field(default=3000, ge=0, le=65535)
    request_timeout: float = Field(default=30.0, gt=0)
    timeout_policy: TimeoutPolicy = TimeoutPolicy.ABANDON
    max_workers: int = Field(default=64, ge=1)
    stream_poll_interval: float = Field(default=0.1, gt=0)
    stream_keepalive: float = Field(default=15.0, ge=0)
    tick_interval: float = Field(default=0.01, gt=0)
    server_name: str = "hostmcp"
    server_version: str = __version__
    tool_modules: list[str] = Field(default_factory=lambda: list(DEFAULT_TOOL_MODULES))
    entry_point_group: str | None = None
    resource_root: Path | None = None
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)


class SettingsLoader:
    """Load :class:`ServerSettings` from an optional YAML file.

    ``${VAR}`` references in the file are expanded before parsing, and
    ``HOSTMCP_HOST`` / ``HOSTMCP_PORT`` override whatever the file says.
    """

    def __init__(self, path: str | Path | None = None, *, environ: Mapping[str, str] | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._environ = os.environ if environ is None else environ

    def load(self) -> ServerSettings:
        """
        Raises:
            SettingsError: On unreadable files, YAML errors or invalid values.
        """
        data = self._read_file() if self._path is not None else {}

        if self._environ.get(ENV_HOST):
            data["host"] = self._environ[ENV_HOST]
        if self._environ.get(ENV_PORT):
            data["port"] = self._environ[ENV_PORT]

        try:
            return ServerSettings.model_validate(data)
        except ValidationError as exc:
            raise SettingsError(str(exc)) from exc

    def _read_file(self) -> dict[str, Any]:
        assert self._path is not None
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise SettingsError(f"YAML parse error: {exc}") from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise SettingsError("Settings YAML must be a mapping")
        return data
