"""Inbound Jolokia responses."""

from __future__ import annotations

from typing import Any, Mapping

from .codec import WireObject
from .fields import FieldSpec
from .message import Message
from .request import Request

SUCCESS_STATUS = 200

_UNSET: Any = object()


def is_success_status(status: Any) -> bool:
    """Compare ``status`` against 200 regardless of its JSON type."""
    if status is None or isinstance(status, bool):
        return False
    try:
        return float(status) == SUCCESS_STATUS
    except (TypeError, ValueError):
        return False


def status_code(status: Any) -> int | None:
    if status is None or isinstance(status, bool):
        return None
    try:
        return int(float(status))
    except (TypeError, ValueError):
        return None


class Response(Message):
    """A Jolokia response, optionally linked to the request that produced it."""

    fields = (
        FieldSpec("value"),
        FieldSpec("timestamp"),
        FieldSpec("status"),
        FieldSpec("error"),
        FieldSpec("history"),
        FieldSpec("stacktrace"),
    )

    def __init__(self, wire: str | bytes | Mapping[str, Any] | None = None) -> None:
        self._request: Request | None = None
        super().__init__(wire)

    def request(self, value: Any = _UNSET) -> Any:
        """Get the linked request, or link one.

        Accepts a :class:`Request` (linked as is), a wire string or mapping
        (a new Request is built from it) or a false value (unlinks).
        """
        if value is _UNSET:
            return self._request
        if isinstance(value, Request):
            self._request = value
        elif value:
            self._request = Request(value)
        else:
            self._request = None
        return self

    def is_success(self) -> bool:
        return is_success_status(self.status())

    def to_wire_object(self) -> WireObject:
        obj = super().to_wire_object()
        if self._request is not None:
            obj["request"] = self._request.to_wire_object()
        return obj

    def _reset(self) -> None:
        super()._reset()
        self._request = None

    def _populate(self, obj: Mapping[str, Any]) -> None:
        super()._populate(obj)
        if obj.get("request"):
            self.request(obj["request"])


class VersionResponse(Response):
    """Response to a ``version`` request."""

    def agent_version(self) -> str | None:
        return self._value_entry("agent")

    def protocol_version(self) -> str | None:
        return self._value_entry("protocol")

    def info(self) -> dict[str, Any]:
        return dict(self._value_entry("info") or {})

    def _value_entry(self, key: str) -> Any:
        value = self.value()
        if isinstance(value, Mapping):
            return value.get(key)
        return None


__all__ = ["Response", "SUCCESS_STATUS", "VersionResponse", "is_success_status", "status_code"]
