"""Transport implementations exposed to users."""

from .async_http import AsyncHttpTransport
from .base import CompletionSink, Transport, TransportHandle, TransportKind
from .http import HttpTransport

__all__ = [
    "AsyncHttpTransport",
    "CompletionSink",
    "HttpTransport",
    "Transport",
    "TransportHandle",
    "TransportKind",
]
