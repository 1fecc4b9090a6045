"""HTTP transport used by the change-aware fetcher."""

import asyncio
from io import BytesIO
from types import TracebackType
from typing import Protocol

import httpx
import structlog

from watchfetch.features.fetch.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    METHOD_HEAD,
)
from watchfetch.features.fetch.models import FetchErrorClass


logger = structlog.get_logger()

# Body is decoded while streaming, so these no longer describe it. HEAD
# responses have no body and keep them as sent.
_ENCODING_HEADERS = ("content-encoding", "content-length", "transfer-encoding")


class TransportError(Exception):
    """Raised when a request could not produce an HTTP response.

    Attributes:
        error_class: Classification used for metrics and outcomes.
        message: Human-readable error message.
    """

    error_class: FetchErrorClass = FetchErrorClass.TRANSPORT_ERROR

    def __init__(self, message: str) -> None:
        """Initialize the transport error.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)
        self.message = message


class TransportTimeoutError(TransportError):
    """Raised when a request exceeds its timeout."""

    error_class = FetchErrorClass.NETWORK_TIMEOUT


class TransportConnectError(TransportError):
    """Raised when a connection could not be established."""

    error_class = FetchErrorClass.CONNECTION_ERROR


class ResponseSizeExceededError(TransportError):
    """Raised when response size exceeds the configured limit."""

    error_class = FetchErrorClass.RESPONSE_SIZE_EXCEEDED


class Transport(Protocol):
    """Protocol for sending a single HTTP request.

    Implementations return a fully read response for any status code and
    raise TransportError when no response could be obtained.
    """

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: httpx.Headers,
        timeout: float | None,
    ) -> httpx.Response:
        """Send a request.

        Args:
            method: HTTP method.
            url: Target URL.
            headers: Request headers.
            timeout: Timeout in seconds, None for no limit.

        Returns:
            Response with its body already read.

        Raises:
            TransportError: If the request failed.
        """
        ...


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``.

    Redirects are not followed. Bodies are streamed with a size limit.
    """

    def __init__(
        self,
        max_response_size_bytes: int = DEFAULT_MAX_RESPONSE_SIZE_BYTES,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            max_response_size_bytes: Largest body accepted.
            client: Client to use; a new one is created when omitted.
        """
        self._max_response_size_bytes = max_response_size_bytes
        self._client = client or httpx.AsyncClient(follow_redirects=False)
        self._log = logger.bind(component="transport")

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client."""
        await self._client.aclose()

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: httpx.Headers,
        timeout: float | None,
    ) -> httpx.Response:
        """Send a request and read the full response.

        Args:
            method: HTTP method.
            url: Target URL.
            headers: Request headers.
            timeout: Overall timeout in seconds, None for no limit.

        Returns:
            Response with its body already read.

        Raises:
            TransportError: If the request failed.
        """
        try:
            if timeout is None:
                return await self._send(method, url, headers, timeout)
            return await asyncio.wait_for(
                self._send(method, url, headers, timeout), timeout
            )
        except TransportError:
            raise
        except TimeoutError as e:
            msg = f"Request timed out after {timeout}s"
            raise TransportTimeoutError(msg) from e
        except httpx.TimeoutException as e:
            msg = f"Request timed out: {e}"
            raise TransportTimeoutError(msg) from e
        except httpx.ConnectError as e:
            msg = f"Connection failed: {e}"
            raise TransportConnectError(msg) from e
        except httpx.HTTPError as e:
            msg = f"Request failed: {e}"
            raise TransportError(msg) from e

    async def _send(
        self,
        method: str,
        url: str,
        headers: httpx.Headers,
        timeout: float | None,
    ) -> httpx.Response:
        request = self._client.build_request(
            method, url, headers=headers, timeout=timeout
        )
        response = await self._client.send(request, stream=True)
        try:
            if method != METHOD_HEAD:
                self._check_declared_size(response)
            body = await self._read_body_with_limit(response)
        finally:
            await response.aclose()

        self._log.debug(
            "response_read",
            method=method,
            status_code=response.status_code,
            bytes=len(body),
        )

        dropped: tuple[str, ...] = () if method == METHOD_HEAD else _ENCODING_HEADERS
        response_headers = httpx.Headers(
            [
                (name, value)
                for name, value in response.headers.multi_items()
                if name.lower() not in dropped
            ]
        )
        # A stream keeps httpx from adding its own Content-Length
        rebuilt = httpx.Response(
            status_code=response.status_code,
            headers=response_headers,
            stream=httpx.ByteStream(body),
            request=request,
        )
        rebuilt.read()
        return rebuilt

    def _check_declared_size(self, response: httpx.Response) -> None:
        content_length = response.headers.get("content-length")
        if content_length and content_length.isdigit():
            size = int(content_length)
            if size > self._max_response_size_bytes:
                msg = (
                    f"Response size {size} exceeds limit "
                    f"{self._max_response_size_bytes}"
                )
                raise ResponseSizeExceededError(msg)

    async def _read_body_with_limit(self, response: httpx.Response) -> bytes:
        """Read response body with size limit.

        Args:
            response: Streaming HTTP response.

        Returns:
            Response body bytes.

        Raises:
            ResponseSizeExceededError: If size limit exceeded.
        """
        buffer = BytesIO()
        total_read = 0
        max_size = self._max_response_size_bytes

        async for chunk in response.aiter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
            total_read += len(chunk)
            if total_read > max_size:
                msg = (
                    f"Response size exceeded limit of {max_size} bytes "
                    f"(read {total_read} bytes)"
                )
                raise ResponseSizeExceededError(msg)
            buffer.write(chunk)

        return buffer.getvalue()
