"""Public surface for the Jolokia Python client."""

from .client import JolokiaClient
from .dispatcher import DispatchCycle, DispatchState, TransportDispatcher
from .errors import (
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    ConfigurationError,
    DecodeError,
    DispatchTimeoutError,
    EncodeError,
    JolokiaError,
    NotFoundError,
    ResponseError,
    ServerError,
    TransportError,
)
from .options import DEFAULT_CONNECTION_OPTIONS, ConnectionDefaults, resolve_options
from .request import Request
from .response import Response, VersionResponse
from .transport import AsyncHttpTransport, HttpTransport
from .types import ExecuteResult
from .version import __version__

__all__ = [
    "__version__",
    "AsyncHttpTransport",
    "AuthenticationError",
    "AuthorizationError",
    "BadRequestError",
    "ConfigurationError",
    "ConnectionDefaults",
    "DEFAULT_CONNECTION_OPTIONS",
    "DecodeError",
    "DispatchCycle",
    "DispatchState",
    "DispatchTimeoutError",
    "EncodeError",
    "ExecuteResult",
    "HttpTransport",
    "JolokiaClient",
    "JolokiaError",
    "NotFoundError",
    "Request",
    "Response",
    "ResponseError",
    "ServerError",
    "TransportDispatcher",
    "TransportError",
    "VersionResponse",
    "resolve_options",
]
