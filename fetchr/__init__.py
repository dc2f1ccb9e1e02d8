"""fetchr-python.

Single logical HTTP requests with retries, per-attempt timeouts and cancellation.
"""

from __future__ import annotations

from .controller import RequestController, RequestHandle, execute
from .retry import RetryPolicy
from .shared.exceptions import (
    ErrorReason,
    FetchrAbortError,
    FetchrBadJsonError,
    FetchrError,
    FetchrHttpStatusError,
    FetchrTimeoutError,
    FetchrUnknownError,
)
from .shared.hints import Hint, format_hints
from .transport import AbortSignal, HttpxTransport, Transport, TransportAbortedError
from .types import RequestOptions, RetryConfig
from .version import __version__

__all__ = [
    "AbortSignal",
    "ErrorReason",
    "FetchrAbortError",
    "FetchrBadJsonError",
    "FetchrError",
    "FetchrHttpStatusError",
    "FetchrTimeoutError",
    "FetchrUnknownError",
    "Hint",
    "HttpxTransport",
    "RequestController",
    "RequestHandle",
    "RequestOptions",
    "RetryConfig",
    "RetryPolicy",
    "Transport",
    "TransportAbortedError",
    "__version__",
    "execute",
    "format_hints",
]
