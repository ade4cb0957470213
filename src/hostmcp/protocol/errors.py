"""Shared error types for the protocol layer.

Every error carries the JSON-RPC code it is reported with, so the router
can turn any :class:`ProtocolError` into an error envelope without a
lookup table.
"""

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""

    code: int = INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ParseError(ProtocolError):
    """The request body is not a well-formed JSON object."""

    code = PARSE_ERROR


class InvalidRequestError(ProtocolError):
    """The envelope is missing a required member."""

    code = INVALID_REQUEST


class MethodNotFoundError(ProtocolError):
    """No handler is routed for the requested method."""

    code = METHOD_NOT_FOUND

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method not found: {method}")


class InvalidParamsError(ProtocolError):
    """The method exists but its parameters cannot be honoured."""

    code = INVALID_PARAMS


class InternalError(ProtocolError):
    """A failure inside the host context while serving a request."""

    code = INTERNAL_ERROR


class ToolNotFoundError(InvalidParamsError):
    """Requested tool does not exist in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ResourceNotFoundError(InvalidParamsError):
    """Requested resource URI cannot be resolved."""

    def __init__(self, uri: str, detail: str = "") -> None:
        self.uri = uri
        self.detail = detail
        super().__init__(f"Resource not found: {uri}" + (f" ({detail})" if detail else ""))


class DispatchTimeoutError(InternalError):
    """The host context did not run a dispatched call within the timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__("Request timeout")
