"""Custom exceptions raised by the Jolokia Python client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .response import Response


class JolokiaError(Exception):
    """Base error for all client failures."""

    def __init__(self, message: str, *, context: Any | None = None) -> None:
        super().__init__(message)
        self.context = context


class ConfigurationError(JolokiaError):
    """Raised synchronously when the client is used outside its contract."""


class DecodeError(JolokiaError):
    """Raised when a wire payload is not valid JSON."""


class EncodeError(JolokiaError):
    """Raised when a value cannot be copied into a message field."""


class TransportError(JolokiaError):
    """Raised when the exchange with the agent cannot be completed."""


class DispatchTimeoutError(TransportError):
    """Raised when the dispatch timer fires before the transport reports."""


class ResponseError(JolokiaError):
    """The agent answered, but with a non-200 status."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response: "Response | None" = None,
        context: Any | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.status = status
        self.response = response

    @property
    def stacktrace(self) -> str | None:
        if self.response is None:
            return None
        return self.response.stacktrace()


class BadRequestError(ResponseError):
    """Raised when the agent rejects the request as malformed."""


class AuthenticationError(ResponseError):
    """Raised when the agent requires credentials."""


class AuthorizationError(ResponseError):
    """Raised when the agent denies access to an MBean."""


class NotFoundError(ResponseError):
    """Raised when the target MBean or attribute does not exist."""


class ServerError(ResponseError):
    """Raised for 5xx style failures."""


def response_error_for_status(status: int | None) -> type[ResponseError]:
    if status == 400:
        return BadRequestError
    if status == 401:
        return AuthenticationError
    if status == 403:
        return AuthorizationError
    if status == 404:
        return NotFoundError
    if status is not None and 500 <= status < 600:
        return ServerError
    return ResponseError


__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "BadRequestError",
    "ConfigurationError",
    "DecodeError",
    "DispatchTimeoutError",
    "EncodeError",
    "JolokiaError",
    "NotFoundError",
    "ResponseError",
    "ServerError",
    "TransportError",
    "response_error_for_status",
]
