"""RequestRouter — maps JSON-RPC methods to their handlers.

:meth:`RequestRouter.handle` is the outermost boundary for a request body:
it decodes, routes and encodes, and always returns a response envelope.
It is meant to run on the host thread, inside a dispatched call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from hostmcp import __version__
from hostmcp.protocol.codec import decode, dumps, encode_error, encode_success, extract_value
from hostmcp.protocol.errors import (
    INTERNAL_ERROR,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    ParseError,
    ProtocolError,
    ResourceNotFoundError,
)
from hostmcp.protocol.models import (
    InitializeResult,
    ResourcesListResult,
    ResourcesReadResult,
    RpcRequest,
    ServerInfo,
    TextContent,
    ToolCallResult,
    ToolsListResult,
)
from hostmcp.resources.provider import ResourceProvider
from hostmcp.tools.registry import ToolRegistry
from hostmcp.utils.telemetry import ATTR_RPC_ERROR_CODE, ATTR_RPC_ID, ATTR_RPC_METHOD, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

EMPTY_ARGUMENTS = "{}"

Handler = Callable[[RpcRequest], Any]


class RequestRouter:
    def __init__(
        self,
        registry: ToolRegistry,
        *,
        resources: ResourceProvider | None = None,
        server_name: str = "hostmcp",
        server_version: str = __version__,
    ) -> None:
        self._registry = registry
        self._resources = resources
        self._server_info = ServerInfo(name=server_name, version=server_version)
        self._handlers: dict[str, Handler] = {
            "initialize": self._initialize,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "resources/read": self._resources_read,
            "ping": self._ping,
        }

    @property
    def methods(self) -> list[str]:
        return list(self._handlers)

    def handle(self, text: str) -> str:
        """Decode *text*, route it, and return the encoded response.  Never raises."""
        try:
            request = decode(text)
        except ParseError as exc:
            logger.debug("Rejecting malformed request: %s", exc.message)
            return encode_error(None, exc.code, exc.message)
        return self.dispatch(request)

    def dispatch(self, request: RpcRequest) -> str:
        with _tracer.start_as_current_span("hostmcp.rpc") as span:
            span.set_attribute(ATTR_RPC_METHOD, request.method or "")
            span.set_attribute(ATTR_RPC_ID, request.id or "")
            try:
                return encode_success(request.id, self.route(request))
            except ProtocolError as exc:
                span.set_attribute(ATTR_RPC_ERROR_CODE, exc.code)
                return encode_error(request.id, exc.code, exc.message)
            except Exception as exc:
                logger.exception("Error handling %s", request.method)
                span.set_attribute(ATTR_RPC_ERROR_CODE, INTERNAL_ERROR)
                return encode_error(request.id, INTERNAL_ERROR, str(exc))

    def route(self, request: RpcRequest) -> Any:
        """Return the result for *request*, raising :class:`ProtocolError` on failure."""
        if not request.method:
            raise InvalidRequestError("Invalid Request: missing method")
        handler = self._handlers.get(request.method)
        if handler is None:
            raise MethodNotFoundError(request.method)
        return handler(request)

    # ------------------------------------------------------------------
    # Methods
    # ------------------------------------------------------------------

    def _initialize(self, request: RpcRequest) -> InitializeResult:
        return InitializeResult(server_info=self._server_info)

    def _tools_list(self, request: RpcRequest) -> ToolsListResult:
        return ToolsListResult(tools=self._registry.list_definitions())

    def _tools_call(self, request: RpcRequest) -> ToolCallResult:
        if not request.params:
            raise InvalidRequestError("Invalid Request: missing params")
        name = extract_value(request.params, "name")
        if not name:
            raise InvalidRequestError("Invalid Request: missing tool name")
        arguments = extract_value(request.params, "arguments") or EMPTY_ARGUMENTS

        result = self._registry.execute(name, arguments)
        text = result if isinstance(result, str) else dumps(result, indent=2)
        return ToolCallResult(content=[TextContent(text=text)])

    def _resources_list(self, request: RpcRequest) -> ResourcesListResult:
        if self._resources is None:
            return ResourcesListResult()
        return ResourcesListResult(resources=self._resources.list_resources())

    def _resources_read(self, request: RpcRequest) -> ResourcesReadResult:
        uri = extract_value(request.params, "uri")
        if not uri:
            raise InvalidParamsError("Invalid params: missing uri")
        if self._resources is None:
            raise ResourceNotFoundError(uri)
        return ResourcesReadResult(contents=self._resources.read_resource(uri))

    def _ping(self, request: RpcRequest) -> dict[str, bool]:
        return {"pong": True}
