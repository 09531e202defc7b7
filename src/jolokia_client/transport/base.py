"""Common transport abstractions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, Mapping, Protocol, runtime_checkable

from ..codec import extract_error_message
from ..errors import ConfigurationError, JolokiaError

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from ..request import Request


TransportKind = Literal["http", "async-http"]

SUPPORTED_METHOD = "POST"

#: Used when the effective options carry no usable timeout.
FALLBACK_TIMEOUT_MS = 10000

BASE_HEADERS: dict[str, str] = {
    "Content-Type": "text/plain",
    "Connection": "close",
}


class CompletionSink(Protocol):
    """Where a transport reports the outcome of one exchange."""

    def succeed(self, payload: Any) -> bool: ...

    def fail(self, message: str, error: JolokiaError | None = None) -> bool: ...


class TransportHandle(Protocol):
    def abort(self) -> None: ...


@runtime_checkable
class Transport(Protocol):
    Kind = TransportKind

    @property
    def kind(self) -> TransportKind: ...

    def send(
        self,
        request: "Request",
        options: Mapping[str, Any],
        sink: CompletionSink,
    ) -> TransportHandle: ...

    def close(self) -> None: ...


class CompletedHandle:
    """Handle for an exchange that finished before ``send`` returned."""

    def abort(self) -> None:
        pass


COMPLETED = CompletedHandle()


def require_post(options: Mapping[str, Any]) -> str:
    method = str(options.get("method") or SUPPORTED_METHOD).upper()
    if method != SUPPORTED_METHOD:
        raise ConfigurationError(f"Only POST requests are currently implemented, got {method!r}")
    return method


def request_headers(options: Mapping[str, Any]) -> dict[str, str]:
    headers = dict(BASE_HEADERS)
    extra = options.get("headers")
    if extra:
        headers.update(extra)
    return headers


def effective_timeout_ms(options: Mapping[str, Any]) -> float:
    """Positive ``timeout`` option in milliseconds, else the fallback."""
    try:
        value = float(options.get("timeout"))
    except (TypeError, ValueError):
        return FALLBACK_TIMEOUT_MS
    return value if value > 0 else FALLBACK_TIMEOUT_MS


def timeout_seconds(options: Mapping[str, Any]) -> float:
    return effective_timeout_ms(options) / 1000.0


def http_error_message(
    options: Mapping[str, Any],
    status: int,
    reason: str,
    body: str | None = None,
) -> str:
    message = (
        f"Error sending a '{options.get('method', SUPPORTED_METHOD)}' request to "
        f"[{options.get('url')}]: status=[{status} {reason}]"
    )
    if body and body.strip():
        message += f": {extract_error_message(body)}"
    return message


__all__ = [
    "COMPLETED",
    "CompletedHandle",
    "CompletionSink",
    "FALLBACK_TIMEOUT_MS",
    "Transport",
    "TransportHandle",
    "TransportKind",
    "effective_timeout_ms",
    "http_error_message",
    "request_headers",
    "require_post",
    "timeout_seconds",
]
