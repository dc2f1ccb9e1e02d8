"""Fetchr exception system.

Every logical request that fails surfaces exactly one ``FetchrError``. The
concrete subclass tells the caller *why* it failed, and ``reason`` exposes the
same information as a plain enum for callers that prefer to switch on it.

Example:
    try:
        body = await execute(options)
    except FetchrHttpStatusError as e:
        print(e.status_code, e.response_text)
    except FetchrError as e:
        print(e.reason, e.hints)
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from typing import Self

    from fetchr.types import RequestOptions

from fetchr.shared.hints import (
    INVALID_JSON,
    NETWORK_ERROR,
    RATE_LIMIT_HIT,
    REQUEST_ABORTED,
    REQUEST_TIMEOUT,
    SERVER_ERROR,
    Hint,
)

logger = logging.getLogger(__name__)


class ErrorReason(str, Enum):
    """Terminal failure kinds of a logical request."""

    ABORT = "ABORT"
    TIMEOUT = "TIMEOUT"
    BAD_JSON = "BAD_JSON"
    BAD_HTTP_STATUS = "BAD_HTTP_STATUS"
    UNKNOWN = "UNKNOWN"


def _parse_body(message: str) -> tuple[Any, Any, Any]:
    """Split an error message into ``(body, output, meta)``.

    Servers commonly answer errors with a JSON document; when they do, the
    ``output`` and ``meta`` members are lifted out for convenience.
    """
    if not message:
        return None, None, None

    try:
        body = json.loads(message)
    except ValueError:
        return message, None, None

    if isinstance(body, dict):
        return body, body.get("output"), body.get("meta")
    return body, None, None


class FetchrError(Exception):
    """Base class for every terminal failure of a logical request.

    Attributes:
        reason: Which kind of failure this is.
        message: Human-readable message, or the raw response text.
        options: The options of the logical request that failed.
        status_code: HTTP status of the response, ``0`` when none was received.
        url: Requested URL.
        timeout: Per-attempt timeout in seconds.
        raw_request: Method, URL and headers of the request.
        body: ``message`` parsed as JSON when possible, else the text itself.
        output: ``body["output"]`` when the body is a JSON object.
        meta: ``body["meta"]`` when the body is a JSON object.
        hints: Structured guidance for the user.
    """

    reason: ClassVar[ErrorReason] = ErrorReason.UNKNOWN
    # Subclasses can override this class attribute
    default_hints: ClassVar[list[Hint]] = []

    def __init__(
        self,
        message: str,
        options: RequestOptions,
        *,
        status_code: int = 0,
        hints: list[Hint] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = str(message)
        self.options = options
        self.status_code = status_code
        self.url = options.url
        self.timeout = options.timeout
        self.raw_request = {
            "headers": dict(options.headers),
            "method": options.method,
            "url": options.url,
        }
        self.body, self.output, self.meta = _parse_body(self.message)
        # If hints not provided, use defaults defined by subclass
        self.hints: list[Hint] = hints if hints is not None else list(self.default_hints)

    def __str__(self) -> str:
        parts = [f"[{self.reason.value}] {self.message}"]

        if self.status_code:
            parts.append(f"Status: {self.status_code}")

        parts.append(f"{self.raw_request['method']} {self.url}")
        return " | ".join(parts)


class FetchrAbortError(FetchrError):
    """The caller cancelled the request."""

    reason = ErrorReason.ABORT
    default_hints: ClassVar[list[Hint]] = [REQUEST_ABORTED]


class FetchrTimeoutError(FetchrError):
    """An attempt did not complete within the configured timeout."""

    reason = ErrorReason.TIMEOUT
    default_hints: ClassVar[list[Hint]] = [REQUEST_TIMEOUT]


class FetchrBadJsonError(FetchrError):
    """The response had a successful status but its body is not JSON."""

    reason = ErrorReason.BAD_JSON
    default_hints: ClassVar[list[Hint]] = [INVALID_JSON]


class FetchrUnknownError(FetchrError):
    """The transport failed for a reason other than cancellation."""

    reason = ErrorReason.UNKNOWN
    default_hints: ClassVar[list[Hint]] = [NETWORK_ERROR]


class FetchrHttpStatusError(FetchrError):
    """The server answered with a non-successful HTTP status."""

    reason = ErrorReason.BAD_HTTP_STATUS

    def __init__(
        self,
        message: str,
        options: RequestOptions,
        *,
        status_code: int = 0,
        response_headers: dict[str, str] | None = None,
        hints: list[Hint] | None = None,
    ) -> None:
        self.response_text = message
        self.response_headers = response_headers or {}
        # Compute default hints from status code if none provided
        if hints is None:
            if status_code == 429:
                hints = [RATE_LIMIT_HIT]
            elif status_code >= 500:
                hints = [SERVER_ERROR]
        super().__init__(message, options, status_code=status_code, hints=hints)

    @classmethod
    def from_response(
        cls,
        options: RequestOptions,
        status_code: int,
        text: str,
        headers: dict[str, str] | None = None,
    ) -> Self:
        """Create a status error from a response that was already read.

        Args:
            options: Options of the logical request.
            status_code: HTTP status of the response.
            text: Response body decoded as text.
            headers: Response headers.

        Returns:
            A FetchrHttpStatusError instance.
        """
        logger.debug(
            "HTTP error from %s | Status: %s | Response: %s%s",
            options.url,
            status_code,
            text[:500],
            "..." if len(text) > 500 else "",
        )
        return cls(text, options, status_code=status_code, response_headers=headers)
