"""Protocol models — JSON-RPC 2.0 envelopes and MCP result payloads.

Requests are decoded by :mod:`hostmcp.protocol.codec` without a
schema-bound deserializer, so :class:`RpcRequest` keeps ``params`` as the
raw JSON span it was found as.  The payload models below are what the
router hands to the codec for serialization.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

PROTOCOL_VERSION = "2024-11-05"

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class RpcRequest(BaseModel):
    """A decoded JSON-RPC 2.0 request.

    ``id`` is kept as text: numeric ids are echoed back quoted.  An absent
    id and a ``null`` id are indistinguishable.
    """

    model_config = {"frozen": True}

    method: str | None = None
    id: str | None = None
    params: str | None = None


class RpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str


class RpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: str | int | None = None
    result: Any = None
    error: RpcError | None = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> RpcResponse:
        if self.error is not None and self.result is not None:
            msg = "response carries both 'result' and 'error'"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Capability negotiation
# ---------------------------------------------------------------------------


class ServerInfo(BaseModel):
    name: str
    version: str


class ToolsCapability(BaseModel):
    model_config = {"populate_by_name": True}

    list_changed: bool = Field(default=False, alias="listChanged")


class ResourcesCapability(BaseModel):
    model_config = {"populate_by_name": True}

    subscribe: bool = False
    list_changed: bool = Field(default=False, alias="listChanged")


class ServerCapabilities(BaseModel):
    tools: ToolsCapability = Field(default_factory=ToolsCapability)
    resources: ResourcesCapability = Field(default_factory=ResourcesCapability)


class InitializeResult(BaseModel):
    """Result of the ``initialize`` handshake."""

    model_config = {"populate_by_name": True}

    protocol_version: str = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: ServerCapabilities = Field(default_factory=ServerCapabilities)
    server_info: ServerInfo = Field(alias="serverInfo")


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


class ToolDefinition(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = {"populate_by_name": True}

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")


class ToolsListResult(BaseModel):
    tools: list[ToolDefinition] = Field(default_factory=list)


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolCallResult(BaseModel):
    """Envelope around a tool's raw result, rendered as one text block."""

    model_config = {"populate_by_name": True}

    content: list[TextContent] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class Resource(BaseModel):
    model_config = {"populate_by_name": True}

    uri: str
    name: str
    description: str = ""
    mime_type: str = Field(default="text/plain", alias="mimeType")


class ResourcesListResult(BaseModel):
    resources: list[Resource] = Field(default_factory=list)


class ResourceContent(BaseModel):
    model_config = {"populate_by_name": True}

    uri: str
    mime_type: str = Field(default="text/plain", alias="mimeType")
    text: str


class ResourcesReadResult(BaseModel):
    contents: list[ResourceContent] = Field(default_factory=list)
