"""JSON-RPC codec — lenient envelope decoding and hand-framed responses.

Requests are not run through a schema-bound deserializer.  The decoder
walks the raw text, finds the top-level ``method``, ``id`` and ``params``
members, and keeps ``params`` as the raw JSON span it found, so that a
free-form (or even partly broken) ``params`` value never fails the whole
request.

Only the envelope structure is checked: a non-empty body must be a single
JSON object whose brackets balance outside of string literals.  Anything
else is a :class:`~hostmcp.protocol.errors.ParseError`.

Usage::

    request = decode('{"jsonrpc":"2.0","id":7,"method":"ping"}')
    request.id        # "7"
    encode_success(request.id, {"pong": True})
    # '{"jsonrpc":"2.0","id":"7","result":{"pong":true}}'
"""

from __future__ import annotations

import dataclasses
import enum
import json
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel

from hostmcp.protocol.errors import ParseError
from hostmcp.protocol.models import RpcRequest, RpcResponse

_WHITESPACE = " \t\r\n"
_OPENERS = "{["
_CLOSERS = "}]"
_DELIMITERS = ",}]"


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def decode(text: str) -> RpcRequest:
    """Decode a request body into an :class:`RpcRequest`.

    Missing members come back as ``None``; an empty body yields a request
    whose ``method`` is ``None`` (the router reports it as invalid).

    Raises:
        ParseError: If a non-empty body is not a balanced JSON object.
    """
    if not text or not text.strip():
        return RpcRequest()

    _check_structure(text)

    return RpcRequest(
        method=extract_value(text, "method"),
        id=extract_value(text, "id"),
        params=extract_value(text, "params"),
    )


def extract_value(json_text: str | None, key: str) -> str | None:
    """Return the raw value of the top-level member *key* of *json_text*.

    * strings are returned unescaped, without their quotes;
    * objects and arrays are returned as their exact source span;
    * other primitives are returned as text, ``null`` as ``None``.

    Returns ``None`` when the member is absent.  Never raises.
    """
    if not json_text:
        return None

    start = _locate(json_text, key)
    if start is None or start >= len(json_text):
        return None

    first = json_text[start]
    if first == '"':
        end = _scan_string(json_text, start)
        if end is None:
            return json_text[start + 1 :]
        return _unescape(json_text[start : end + 1])

    if first in _OPENERS:
        end = _scan_span(json_text, start)
        return json_text[start:end]

    end = start
    while end < len(json_text) and json_text[end] not in _DELIMITERS:
        end += 1
    value = json_text[start:end].strip()
    if not value or value == "null":
        return None
    return value


def _locate(text: str, key: str) -> int | None:
    """Find the index where the value of top-level member *key* starts."""
    depth = 0
    i = 0
    length = len(text)
    while i < length:
        char = text[i]
        if char == '"':
            end = _scan_string(text, i)
            if end is None:
                return None
            if depth == 1:
                colon = _skip_whitespace(text, end + 1)
                if colon < length and text[colon] == ":":
                    if _unescape(text[i : end + 1]) == key:
                        return _skip_whitespace(text, colon + 1)
            i = end + 1
            continue
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
        i += 1
    return None


def _scan_string(text: str, start: int) -> int | None:
    """Return the index of the quote closing the string opened at *start*."""
    i = start + 1
    while i < len(text):
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == '"':
            return i
        i += 1
    return None


def _scan_span(text: str, start: int) -> int:
    """Return the end (exclusive) of the object/array opened at *start*.

    Brackets inside string literals are ignored.  An unterminated span
    runs to the end of the text.
    """
    depth = 0
    i = start
    while i < len(text):
        char = text[i]
        if char == '"':
            end = _scan_string(text, i)
            if end is None:
                return len(text)
            i = end + 1
            continue
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return len(text)


def _check_structure(text: str) -> None:
    """Raise :class:`ParseError` unless *text* is one balanced JSON object."""
    start = _skip_whitespace(text, 0)
    if text[start] != "{":
        raise ParseError("Parse error: expected a JSON object")

    stack: list[str] = []
    i = start
    while i < len(text):
        char = text[i]
        if char == '"':
            end = _scan_string(text, i)
            if end is None:
                raise ParseError("Parse error: unterminated string")
            i = end + 1
            continue
        if char in _OPENERS:
            stack.append(char)
        elif char in _CLOSERS:
            if not stack or _OPENERS.index(stack.pop()) != _CLOSERS.index(char):
                raise ParseError(f"Parse error: unexpected '{char}' at offset {i}")
            if not stack:
                break
        i += 1

    if stack:
        raise ParseError("Parse error: unbalanced brackets")
    if _skip_whitespace(text, i + 1) < len(text):
        raise ParseError("Parse error: trailing data after request object")


def _skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index] in _WHITESPACE:
        index += 1
    return index


def _unescape(quoted: str) -> str:
    try:
        return str(json.loads(quoted, strict=False))
    except ValueError:
        return quoted[1:-1]


def decode_response(text: str) -> RpcResponse:
    """Parse a response envelope (client side)."""
    return RpcResponse.model_validate_json(text)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_success(request_id: str | None, result: Any) -> str:
    """Frame *result* as a success envelope echoing *request_id*."""
    return f'{{"jsonrpc":"2.0","id":{_encode_id(request_id)},"result":{dumps(result)}}}'


def encode_error(request_id: str | None, code: int, message: str) -> str:
    """Frame an error envelope echoing *request_id*."""
    return (
        f'{{"jsonrpc":"2.0","id":{_encode_id(request_id)},'
        f'"error":{{"code":{int(code)},"message":"{escape(message)}"}}}}'
    )


def escape(value: str) -> str:
    """Escape *value* for embedding inside a JSON string literal."""
    if not value:
        return ""
    return json.dumps(value, ensure_ascii=False)[1:-1]


def dumps(value: Any, *, indent: int | None = None) -> str:
    """Serialize a result value (models, dataclasses, plain data) to JSON."""
    separators = None if indent is not None else (",", ":")
    return json.dumps(
        to_jsonable(value),
        default=_default,
        ensure_ascii=False,
        indent=indent,
        separators=separators,
    )


def to_jsonable(value: Any) -> Any:
    """Convert top-level models and dataclasses to plain data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value


def _encode_id(request_id: str | None) -> str:
    if not request_id:
        return "null"
    return f'"{escape(request_id)}"'


def _default(value: Any) -> Any:
    if isinstance(value, BaseModel) or (
        dataclasses.is_dataclass(value) and not isinstance(value, type)
    ):
        return to_jsonable(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(value, PurePath):
        return str(value)
    return str(value)
