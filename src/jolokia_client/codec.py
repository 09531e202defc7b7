"""Canonical JSON wire encoding shared by messages and transports."""

from __future__ import annotations

import json
from typing import Any, Mapping

from .errors import DecodeError, EncodeError

WireObject = dict[str, Any]

#: Indentation used when a message is rendered with ``str()``.
WIRE_INDENT: int | None = 2


def encode(value: Any, indent: int | None = None) -> str:
    try:
        return json.dumps(_elide_callables(value, set()), indent=indent)
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"Value is not JSON serializable: {exc}", context=value) from exc


def decode(payload: str | bytes) -> Any:
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Invalid JSON payload: {exc}", context=payload) from exc


def deep_copy(value: Any) -> Any:
    """Copy ``value`` by a round trip through the wire encoding.

    Callables inside mappings are dropped, callables inside lists become
    ``None`` and a bare callable copies to ``None``. Cycles and types JSON
    cannot represent raise :class:`EncodeError`.
    """
    if value is None:
        return None
    return json.loads(encode(value))


def decode_object(payload: str | bytes | Mapping[str, Any]) -> Mapping[str, Any]:
    """Accept an encoded string or an already-decoded mapping."""
    if isinstance(payload, (str, bytes)):
        obj = decode(payload)
    else:
        obj = payload
    if not isinstance(obj, Mapping):
        raise DecodeError(f"Expected a JSON object, got {type(obj).__name__}", context=payload)
    return obj


def extract_error_message(body: str | None) -> str:
    if not body:
        return "Error occurred"
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        return body.strip() or "Error occurred"

    if isinstance(parsed, dict) and "error" in parsed:
        message = parsed["error"]
        if isinstance(message, str):
            return message
        return str(message)
    return body.strip() or "Error occurred"


def is_empty_payload(payload: Any) -> bool:
    if payload is None:
        return True
    if isinstance(payload, (str, bytes)):
        return not payload.strip()
    return False


def _elide_callables(value: Any, seen: set[int]) -> Any:
    if callable(value):
        return None
    if isinstance(value, Mapping):
        marker = id(value)
        if marker in seen:
            raise ValueError("Circular reference detected")
        seen.add(marker)
        try:
            return {k: _elide_callables(v, seen) for k, v in value.items() if not callable(v)}
        finally:
            seen.discard(marker)
    if isinstance(value, (list, tuple)):
        marker = id(value)
        if marker in seen:
            raise ValueError("Circular reference detected")
        seen.add(marker)
        try:
            return [_elide_callables(item, seen) for item in value]
        finally:
            seen.discard(marker)
    return value


__all__ = [
    "WIRE_INDENT",
    "WireObject",
    "decode",
    "decode_object",
    "deep_copy",
    "encode",
    "extract_error_message",
    "is_empty_payload",
]
