"""JSON-RPC 2.0 protocol layer — codec, payload models, and error types."""

from hostmcp.protocol.codec import decode, decode_response, encode_error, encode_success
from hostmcp.protocol.errors import (
    DispatchTimeoutError,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    ParseError,
    ProtocolError,
    ResourceNotFoundError,
    ToolNotFoundError,
)
from hostmcp.protocol.models import (
    PROTOCOL_VERSION,
    RpcError,
    RpcRequest,
    RpcResponse,
    ToolDefinition,
)

__all__ = [
    "PROTOCOL_VERSION",
    "DispatchTimeoutError",
    "InternalError",
    "InvalidParamsError",
    "InvalidRequestError",
    "MethodNotFoundError",
    "ParseError",
    "ProtocolError",
    "ResourceNotFoundError",
    "RpcError",
    "RpcRequest",
    "RpcResponse",
    "ToolDefinition",
    "ToolNotFoundError",
    "decode",
    "decode_response",
    "encode_error",
    "encode_success",
]
