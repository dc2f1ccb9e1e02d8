"""
Lifecycle of one logical request.

A logical request is driven by a single asyncio task that performs physical
attempts one after another. Between attempts it sleeps for the backoff delay
chosen by the ``RetryPolicy``. The caller only ever observes the final outcome:
the parsed JSON body, or exactly one ``FetchrError``.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from fetchr.retry import RetryPolicy
from fetchr.shared.exceptions import (
    FetchrAbortError,
    FetchrBadJsonError,
    FetchrError,
    FetchrHttpStatusError,
    FetchrTimeoutError,
    FetchrUnknownError,
)
from fetchr.transport import (
    AbortSignal,
    HttpxTransport,
    TransportAbortedError,
    TransportRequest,
)
from fetchr.types import RequestOptions

if TYPE_CHECKING:
    from collections.abc import Callable, Generator, Mapping

    from fetchr.transport import Transport, TransportResponse

logger = logging.getLogger(__name__)


@dataclass
class AttemptState:
    """Mutable bookkeeping of a logical request, owned by its controller."""

    current_attempt: int = 0
    signal: AbortSignal | None = None
    timed_out: bool = False


class RequestController:
    """
    Drive the attempts of one logical request.

    Args:
        options: Options of the logical request
        transport: Collaborator performing each physical exchange
        policy: Retry policy; a default ``RetryPolicy`` if omitted
        owns_transport: Close the transport once the request settles
    """

    def __init__(
        self,
        options: RequestOptions,
        transport: Transport,
        policy: RetryPolicy | None = None,
        *,
        owns_transport: bool = False,
    ) -> None:
        self.options = options
        self._transport = transport
        self._policy = policy or RetryPolicy()
        self._owns_transport = owns_transport
        self._state = AttemptState()
        self._abort_requested = False
        self._wakeup = asyncio.Event()
        self._task: asyncio.Task[Any] | None = None

    @property
    def attempts(self) -> int:
        """Number of physical attempts started so far."""
        return self._state.current_attempt

    def start(self) -> RequestHandle:
        """Schedule the first attempt and return the caller's handle.

        Must be called with a running event loop.
        """
        if self._task is not None:
            raise RuntimeError("Request already started")
        self._task = asyncio.get_running_loop().create_task(self._run())
        return RequestHandle(self, self._task)

    def cancel(self) -> None:
        """Abort the in-flight attempt and stop any further retry."""
        if self._abort_requested or (self._task is not None and self._task.done()):
            return
        self._abort_requested = True
        if self._state.signal is not None:
            self._state.signal.abort("cancelled by caller")
        self._wakeup.set()

    async def _run(self) -> Any:
        try:
            while True:
                if self._abort_requested:
                    raise FetchrAbortError("Request was cancelled", self.options)

                try:
                    return await self._attempt()
                except FetchrError as error:
                    retries = self._state.current_attempt - 1
                    if not self._policy.should_retry(retries, self.options, error):
                        logger.debug(
                            "%s %s failed after %d attempt(s): %s",
                            self.options.method,
                            self.options.url,
                            self._state.current_attempt,
                            error.reason.value,
                        )
                        raise

                    delay = self._policy.compute_delay(self._state.current_attempt, self.options)
                    logger.debug(
                        "%s from %s, retrying in %.2f seconds (attempt %d/%d)",
                        error.reason.value,
                        self.options.url,
                        delay,
                        retries + 1,
                        self.options.retry.max_retries,
                    )
                    if await self._backoff(delay):
                        raise FetchrAbortError(
                            "Request was cancelled while waiting to retry", self.options
                        ) from error
        finally:
            self._state.signal = None
            if self._owns_transport:
                await self._transport.aclose()  # type: ignore[attr-defined]

    async def _backoff(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds; return True if cancelled meanwhile."""
        if not self._abort_requested:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
        return self._abort_requested

    def _on_timeout(self, signal: AbortSignal) -> None:
        if signal is not self._state.signal:
            return
        self._state.timed_out = True
        signal.abort("timeout")

    def _aborted_error(self) -> FetchrError:
        # Caller intent wins when the timeout fires in the same loop iteration
        if not self._abort_requested and self._state.timed_out:
            return FetchrTimeoutError("Request failed due to timeout", self.options)
        return FetchrAbortError("The operation was aborted", self.options)

    async def _attempt(self) -> Any:
        state = self._state
        signal = AbortSignal()
        state.signal = signal
        state.timed_out = False
        state.current_attempt += 1

        options = self.options
        request = TransportRequest(
            method=options.method,
            url=options.url,
            headers=dict(options.headers),
            body=options.body,
            credentials=options.credentials,
        )
        timer = asyncio.get_running_loop().call_later(options.timeout, self._on_timeout, signal)
        try:
            response = await signal.race(self._transport.send(request, signal))
        except TransportAbortedError as e:
            raise self._aborted_error() from e
        except Exception as e:
            raise FetchrUnknownError(str(e) or type(e).__name__, options) from e
        finally:
            timer.cancel()

        try:
            return await self._read(response, signal)
        finally:
            await response.aclose()

    async def _read(self, response: TransportResponse, signal: AbortSignal) -> Any:
        options = self.options
        if response.ok:
            try:
                return await signal.race(response.json())
            except TransportAbortedError as e:
                raise self._aborted_error() from e
            except Exception as e:
                raise FetchrBadJsonError(
                    "Cannot parse response into a JSON object",
                    options,
                    status_code=response.status_code,
                ) from e

        try:
            text = await signal.race(response.text())
        except TransportAbortedError as e:
            raise self._aborted_error() from e
        except Exception as e:
            raise FetchrUnknownError(str(e) or type(e).__name__, options) from e
        raise FetchrHttpStatusError.from_response(
            options, response.status_code, text, response.headers
        )


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class RequestHandle:
    """
    Caller's view of a logical request.

    Await the handle for the parsed JSON body; a failed request raises one
    ``FetchrError``. ``cancel()`` aborts the request at any point.

    Example:
        handle = execute({"url": "https://api.example.com/items"})
        try:
            items = await handle
        except FetchrTimeoutError:
            ...
    """

    def __init__(self, controller: RequestController, task: asyncio.Task[Any]) -> None:
        self._controller = controller
        self._task = task

    @property
    def options(self) -> RequestOptions:
        return self._controller.options

    @property
    def attempts(self) -> int:
        return self._controller.attempts

    def cancel(self) -> None:
        self._controller.cancel()

    def done(self) -> bool:
        return self._task.done()

    def result(self) -> Any:
        return self._task.result()

    def exception(self) -> BaseException | None:
        return self._task.exception()

    def add_done_callback(self, fn: Callable[[RequestHandle], object]) -> None:
        self._task.add_done_callback(lambda _task: fn(self))

    def then(
        self,
        on_success: Callable[[Any], Any] | None = None,
        on_failure: Callable[[FetchrError], Any] | None = None,
    ) -> asyncio.Task[Any]:
        """
        Chain callbacks onto the result, like a promise.

        Callbacks may be plain functions or coroutine functions. Without
        ``on_failure`` the error propagates to the returned task.
        """

        async def _chain() -> Any:
            try:
                body = await self
            except FetchrError as error:
                if on_failure is None:
                    raise
                return await _resolve(on_failure(error))
            if on_success is None:
                return body
            return await _resolve(on_success(body))

        return asyncio.get_running_loop().create_task(_chain())

    def catch(self, on_failure: Callable[[FetchrError], Any]) -> asyncio.Task[Any]:
        """Shorthand for ``then(None, on_failure)``."""
        return self.then(None, on_failure)

    def __await__(self) -> Generator[Any, None, Any]:
        # Cancelling a consumer must not cancel the request; use cancel() for that
        return asyncio.shield(self._task).__await__()


def execute(
    options: RequestOptions | Mapping[str, Any],
    *,
    transport: Transport | None = None,
    policy: RetryPolicy | None = None,
) -> RequestHandle:
    """
    Start a logical request.

    Args:
        options: Request options, or a mapping validated into ``RequestOptions``
        transport: Collaborator performing the exchanges; an ``HttpxTransport``
            owned by the request is created if omitted
        policy: Retry policy; a default ``RetryPolicy`` if omitted

    Returns:
        RequestHandle: awaitable for the parsed JSON body, with ``cancel()``

    Raises:
        pydantic.ValidationError: If ``options`` is invalid.
        RuntimeError: If no event loop is running.
    """
    asyncio.get_running_loop()
    if not isinstance(options, RequestOptions):
        options = RequestOptions.model_validate(options)

    owns_transport = transport is None
    controller = RequestController(
        options,
        transport if transport is not None else HttpxTransport(),
        policy,
        owns_transport=owns_transport,
    )
    return controller.start()
