"""
Transport collaborator for fetchr requests.

A transport performs exactly one HTTP exchange. Retrying, timeouts and
classification live in the controller; the transport only has to honour the
``AbortSignal`` it is handed, which ``AbortSignal.race`` does for it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

import httpx

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from fetchr.types import Credentials

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Upper bound for a single exchange; the per-attempt timeout is enforced by the controller.
_DEFAULT_TIMEOUT = 600.0
_DEFAULT_LIMITS = httpx.Limits(
    max_connections=100,
    max_keepalive_connections=20,
    keepalive_expiry=10.0,
)
_DEFAULT_PORTS = {"http": 80, "https": 443}


class TransportAbortedError(Exception):
    """The exchange was cancelled through its ``AbortSignal``."""

    def __init__(self, reason: str = "aborted") -> None:
        super().__init__(f"The operation was aborted: {reason}")
        self.reason = reason


async def _cancel_and_wait(task: asyncio.Future[Any]) -> None:
    """Cancel ``task`` and wait until it has finished unwinding."""
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.debug("Aborted exchange failed while cancelling: %s", e)


class AbortSignal:
    """
    Revocable signal for one physical attempt.

    ``abort()`` may be called any number of times; only the first call records
    a reason. Awaiting ``race(aw)`` runs ``aw`` until it finishes or the signal
    fires, whichever comes first.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self, reason: str = "aborted") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def race(self, aw: Awaitable[T]) -> T:
        """
        Await ``aw`` unless the signal fires first.

        Raises:
            TransportAbortedError: If the signal fired before ``aw`` finished.
                ``aw`` is cancelled and awaited until it unwinds.
        """
        if self.aborted:
            if asyncio.iscoroutine(aw):
                aw.close()
            raise TransportAbortedError(self.reason or "aborted")

        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            await _cancel_and_wait(task)
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        await _cancel_and_wait(task)
        raise TransportAbortedError(self.reason or "aborted")


@dataclass(frozen=True)
class TransportRequest:
    """Everything a transport needs for one exchange."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str | bytes | None = None
    credentials: Credentials = "same-origin"


class TransportResponse(Protocol):
    """Response of one exchange; the body is read lazily."""

    status_code: int
    headers: dict[str, str]

    @property
    def ok(self) -> bool: ...

    async def json(self) -> Any: ...

    async def text(self) -> str: ...

    async def aclose(self) -> None: ...


class Transport(Protocol):
    """Performs one HTTP exchange."""

    async def send(self, request: TransportRequest, signal: AbortSignal) -> TransportResponse: ...


class HttpxResponse:
    """``TransportResponse`` over a streamed ``httpx.Response``."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self.status_code = response.status_code
        self.headers = dict(response.headers)

    @property
    def ok(self) -> bool:
        return self._response.is_success

    async def json(self) -> Any:
        await self._response.aread()
        return self._response.json()

    async def text(self) -> str:
        await self._response.aread()
        return self._response.text

    async def aclose(self) -> None:
        await self._response.aclose()


def _create_default_async_client() -> httpx.AsyncClient:
    """Create a default httpx AsyncClient with standard configuration."""
    return httpx.AsyncClient(
        timeout=_DEFAULT_TIMEOUT,
        limits=_DEFAULT_LIMITS,
    )


def _origin_of(url: httpx.URL) -> tuple[str, str, int | None]:
    return url.scheme, url.host, url.port or _DEFAULT_PORTS.get(url.scheme)


class HttpxTransport:
    """
    Default transport built on ``httpx.AsyncClient``.

    Credentials (cookies from the client jar and ``auth``) are attached
    according to the request's credentials mode:

    - ``omit``: never sent
    - ``include``: always sent
    - ``same-origin``: sent when the URL shares scheme, host and port with
      ``origin`` (or the client's ``base_url``). Without either, every request
      counts as same-origin.

    Args:
        client: Client to send requests with; one is created (and owned) if omitted
        auth: Authentication applied when credentials are allowed
        origin: Origin used by the ``same-origin`` mode
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        auth: httpx.Auth | None = None,
        origin: str | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else _create_default_async_client()
        self._auth = auth
        if origin:
            self._origin: httpx.URL | None = httpx.URL(origin)
        elif str(self._client.base_url):
            self._origin = self._client.base_url
        else:
            self._origin = None

    def _allows_credentials(self, url: httpx.URL, mode: Credentials) -> bool:
        if mode == "omit":
            return False
        if mode == "include" or self._origin is None:
            return True
        return _origin_of(url) == _origin_of(self._origin)

    async def send(self, request: TransportRequest, signal: AbortSignal) -> TransportResponse:
        http_request = self._client.build_request(
            request.method,
            request.url,
            headers=request.headers,
            content=request.body,
        )

        auth: Any = httpx.USE_CLIENT_DEFAULT
        if self._allows_credentials(http_request.url, request.credentials):
            if self._auth is not None:
                auth = self._auth
        else:
            http_request.headers.pop("Cookie", None)
            auth = None

        logger.debug("%s %s (credentials=%s)", request.method, http_request.url, request.credentials)
        response = await signal.race(self._client.send(http_request, auth=auth, stream=True))
        return HttpxResponse(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
