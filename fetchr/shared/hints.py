from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass
class Hint:
    """Structured hint for user guidance.

    Attributes:
        title: Short title describing the hint.
        message: Main explanatory message.
        tips: Optional list of short actionable tips.
        docs_url: Optional URL for documentation.
        code: Optional machine-readable code (e.g., "REQUEST_TIMEOUT").
        context: Optional context tags (e.g., ["network", "retry"]).
    """

    title: str
    message: str
    tips: list[str] | None = None
    docs_url: str | None = None
    code: str | None = None
    context: list[str] | None = None


REQUEST_TIMEOUT = Hint(
    title="Request timed out",
    message="The server did not answer within the configured timeout.",
    tips=[
        "Raise the timeout option",
        "Add 0 to retry.status_codes to retry timeouts",
        "Check that the server is reachable",
    ],
    code="REQUEST_TIMEOUT",
    context=["network", "timeout"],
)

REQUEST_ABORTED = Hint(
    title="Request cancelled",
    message="The request was cancelled before it completed.",
    tips=[
        "Only call cancel() when the result is no longer needed",
    ],
    code="REQUEST_ABORTED",
    context=["cancel"],
)

RATE_LIMIT_HIT = Hint(
    title="Rate limit reached",
    message="Too many requests.",
    tips=[
        "Add 429 to retry.status_codes",
        "Increase retry.interval",
        "Check API quotas",
    ],
    code="RATE_LIMIT",
    context=["network", "retry"],
)

SERVER_ERROR = Hint(
    title="Server error",
    message="The server failed to handle the request.",
    tips=[
        "Add the status to retry.status_codes if the failure is transient",
        "Check server logs for details",
    ],
    code="SERVER_ERROR",
    context=["network", "server"],
)

INVALID_JSON = Hint(
    title="Invalid JSON response",
    message="The server answered with a success status but the body is not JSON.",
    tips=[
        "Check the Content-Type the endpoint returns",
        "Inspect error.body for the raw payload",
    ],
    code="BAD_JSON",
    context=["response"],
)

NETWORK_ERROR = Hint(
    title="Network error",
    message="The request failed before a response was received.",
    tips=[
        "Check the URL and DNS resolution",
        "Add 0 to retry.status_codes to retry network failures",
    ],
    code="NETWORK_ERROR",
    context=["network"],
)


def format_hints(hints: Iterable[Hint] | None) -> list[str]:
    """Render hints as plain text lines, suitable for logs or CLI output."""
    if not hints:
        return []

    lines: list[str] = []
    for hint in hints:
        # Compact rendering - skip title if same as message
        if hint.title and hint.title != hint.message:
            lines.append(f"{hint.title}: {hint.message}")
        else:
            lines.append(hint.message)

        if hint.tips:
            lines.extend(f"  - {tip}" for tip in hint.tips)

        if hint.docs_url:
            lines.append(f"  {hint.docs_url}")
    return lines
