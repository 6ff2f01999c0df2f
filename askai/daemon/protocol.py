"""JSON-lines protocol for daemon IPC.

Each message is one UTF-8 JSON object terminated by a newline.

Request format (tagged by "type"):
    {"type": "GenerateCommand", "prompt": str, "context": str, "provider": str}
    {"type": "Ping"}
    {"type": "Shutdown"}

Response format (tagged by "status"):
    {"status": "Success", "command": str, "from_cache": bool}
    {"status": "Pong", "uptime_seconds": int, "session_count": int}
    {"status": "Error", "message": str}
    {"status": "ShuttingDown"}
"""

import json
from dataclasses import dataclass, fields
from typing import Any, Dict, Type, TypeVar, Union

from askai.errors import SerializationError


@dataclass(frozen=True)
class GenerateCommand:
    prompt: str
    context: str
    provider: str


@dataclass(frozen=True)
class Ping:
    pass


@dataclass(frozen=True)
class Shutdown:
    pass


@dataclass(frozen=True)
class Success:
    command: str
    from_cache: bool


@dataclass(frozen=True)
class Pong:
    uptime_seconds: int
    session_count: int


@dataclass(frozen=True)
class Error:
    message: str


@dataclass(frozen=True)
class ShuttingDown:
    pass


DaemonRequest = Union[GenerateCommand, Ping, Shutdown]
DaemonResponse = Union[Success, Pong, Error, ShuttingDown]

REQUEST_TAG = "type"
RESPONSE_TAG = "status"

_REQUEST_TYPES: Dict[str, type] = {cls.__name__: cls for cls in (GenerateCommand, Ping, Shutdown)}
_RESPONSE_TYPES: Dict[str, type] = {
    cls.__name__: cls for cls in (Success, Pong, Error, ShuttingDown)
}

# Field name -> expected JSON type, used to reject structurally wrong payloads
_FIELD_TYPES = {
    "prompt": str,
    "context": str,
    "provider": str,
    "command": str,
    "from_cache": bool,
    "uptime_seconds": int,
    "session_count": int,
    "message": str,
}

T = TypeVar("T")


def _encode(message: Any, tag: str) -> bytes:
    payload = {tag: type(message).__name__}
    payload.update({f.name: getattr(message, f.name) for f in fields(message)})
    return (json.dumps(payload) + "\n").encode("utf-8")


def _decode(data: Union[bytes, str], tag: str, registry: Dict[str, Type[T]]) -> T:
    try:
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        payload = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SerializationError(f"Invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise SerializationError("Message must be a JSON object")

    variant = payload.get(tag)
    cls = registry.get(variant) if isinstance(variant, str) else None
    if cls is None:
        raise SerializationError(f"Unknown {tag}: {variant!r}")

    kwargs = {}
    for f in fields(cls):
        if f.name not in payload:
            raise SerializationError(f"{variant} is missing field '{f.name}'")
        value = payload[f.name]
        expected = _FIELD_TYPES[f.name]
        # bool is a subclass of int; keep them apart
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise SerializationError(
                f"{variant}.{f.name} must be {expected.__name__}, got {type(value).__name__}"
            )
        kwargs[f.name] = value
    return cls(**kwargs)


def serialize_request(request: DaemonRequest) -> bytes:
    """Encode a request as one newline-terminated JSON line."""
    return _encode(request, REQUEST_TAG)


def deserialize_request(data: Union[bytes, str]) -> DaemonRequest:
    """
    Decode one request line.

    Raises:
        SerializationError: Malformed JSON or unknown/incomplete variant
    """
    return _decode(data, REQUEST_TAG, _REQUEST_TYPES)


def serialize_response(response: DaemonResponse) -> bytes:
    """Encode a response as one newline-terminated JSON line."""
    return _encode(response, RESPONSE_TAG)


def deserialize_response(data: Union[bytes, str]) -> DaemonResponse:
    """
    Decode one response line.

    Raises:
        SerializationError: Malformed JSON or unknown/incomplete variant
    """
    return _decode(data, RESPONSE_TAG, _RESPONSE_TYPES)
