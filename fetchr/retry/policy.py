"""Retry decisions for a logical request."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fetchr.shared.exceptions import ErrorReason

if TYPE_CHECKING:
    from collections.abc import Callable

    from fetchr.shared.exceptions import FetchrError
    from fetchr.types import RequestOptions


@dataclass(frozen=True)
class RetryPolicy:
    """
    Decide whether a failed attempt is retried and how long to wait first.

    The policy holds no state; both methods depend only on their arguments and
    on ``rand``, which is injectable so delays can be made deterministic.

    Args:
        rand: Source of uniform floats in ``[0, 1)``
    """

    rand: Callable[[], float] = field(default=random.random)

    def should_retry(self, retries: int, options: RequestOptions, error: FetchrError) -> bool:
        """
        Check whether the request should be attempted again.

        Args:
            retries: Retries already performed (0 after the first attempt fails)
            options: Options of the logical request
            error: Classified failure of the attempt that just finished

        Returns:
            True if another attempt should be scheduled, False otherwise
        """
        if error.reason is ErrorReason.ABORT:
            return False

        if retries >= options.retry.max_retries:
            return False

        if options.method == "POST" and not options.retry.retry_on_post:
            return False

        # The exchange itself succeeded; retrying would not change the body
        if error.reason is ErrorReason.BAD_JSON:
            return False

        return error.status_code in options.retry.status_codes

    def compute_delay(self, attempt: int, options: RequestOptions) -> float:
        """
        Exponential backoff with full jitter.

        Args:
            attempt: Attempts completed before the upcoming one
            options: Options of the logical request

        Returns:
            Delay in seconds, in ``[0, interval * 2 ** attempt)``
        """
        return self.rand() * options.retry.interval * (2**attempt)
