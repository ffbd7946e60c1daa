# src/fanout/transport/http.py
"""Transport collaborator: performs exactly one transfer for a handle.

The multiplexer schedules one `perform()` coroutine per active handle on its
event loop. A transport maps everything that can go wrong with one
request/response exchange onto a transfer-domain Status; it never raises
for network failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import httpx
import structlog

from fanout.contracts.status import Status, TransferCode

if TYPE_CHECKING:
    from fanout.pooling.handle import TransferHandle

logger = structlog.get_logger(__name__)


class Transport(Protocol):
    """Performs single transfers on behalf of the multiplexer.

    Implementations:
    - HttpxTransport: real HTTP via httpx.AsyncClient (production)
    - test doubles that complete after a scripted number of loop passes
    """

    async def perform(self, handle: TransferHandle) -> Status:
        """Run one transfer for the handle and return its transfer-domain status."""
        ...

    def set_max_connections(self, limit: int) -> None:
        """Apply the concurrency bound to the underlying connection pool."""
        ...

    async def aclose(self) -> None:
        """Release transport resources."""
        ...


class HttpxTransport:
    """HTTP transport backed by one shared httpx.AsyncClient.

    The client is created lazily on first use so that it binds to the
    multiplexer's event loop, and its connection limits follow the pool size.

    Response codes do not make a transfer fail unless fail_on_http_error is
    set: a transfer succeeds once a response has been received.

    Example:
        transport = HttpxTransport(timeout=10.0)
        mux = Multiplexer(transport)
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        follow_redirects: bool = True,
        fail_on_http_error: bool = False,
        client_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize transport.

        Args:
            timeout: Per-request timeout in seconds
            headers: Default headers for all requests
            follow_redirects: Follow 3xx responses
            fail_on_http_error: Treat 4xx/5xx responses as failed transfers
            client_transport: Optional httpx transport (httpx.MockTransport in tests)
        """
        self._timeout = timeout
        self._headers = headers or {}
        self._follow_redirects = follow_redirects
        self._fail_on_http_error = fail_on_http_error
        self._client_transport = client_transport
        self._limits = httpx.Limits()
        self._client: httpx.AsyncClient | None = None

    def set_max_connections(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"max connections must be >= 1, got {limit}")
        if self._client is not None:
            raise RuntimeError("max connections must be set before the first transfer")
        self._limits = httpx.Limits(max_connections=limit, max_keepalive_connections=limit)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers,
                follow_redirects=self._follow_redirects,
                limits=self._limits,
                transport=self._client_transport,
            )
        return self._client

    async def perform(self, handle: TransferHandle) -> Status:
        url = handle.url
        if url is None:
            return Status.transfer(TransferCode.FAILED, f"Handle {handle.index} has no bound locator")

        content = handle.payload_bytes() if handle.payload is not None else None
        try:
            response = await self._get_client().request(handle.method, url, content=content)
        except httpx.TimeoutException as e:
            return Status.transfer(TransferCode.TIMEOUT, f"Timeout sending to {url}: {e}")
        except httpx.ConnectError as e:
            return Status.transfer(TransferCode.CONNECT_FAILED, f"Connection error sending to {url}: {e}")
        except httpx.TooManyRedirects as e:
            return Status.transfer(TransferCode.TOO_MANY_REDIRECTS, f"Too many redirects: {url}: {e}")
        except httpx.WriteError as e:
            return Status.transfer(TransferCode.SEND_FAILED, f"Failed sending to {url}: {e}")
        except httpx.ReadError as e:
            return Status.transfer(TransferCode.RECEIVE_FAILED, f"Failed receiving from {url}: {e}")
        except httpx.RemoteProtocolError as e:
            return Status.transfer(TransferCode.PROTOCOL_ERROR, f"Protocol error from {url}: {e}")
        except httpx.RequestError as e:
            return Status.transfer(TransferCode.FAILED, f"Request to {url} failed: {e}")

        handle.response_code = response.status_code
        if self._fail_on_http_error and response.is_error:
            return Status.transfer(TransferCode.HTTP_ERROR, f"HTTP {response.status_code}: {url}")
        return Status.transfer(TransferCode.OK)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
