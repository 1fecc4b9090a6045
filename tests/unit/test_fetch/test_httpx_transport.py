"""Unit tests for HttpxTransport using httpx.MockTransport."""

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import pytest

from watchfetch.features.fetch.models import FetchErrorClass
from watchfetch.features.fetch.transport import (
    HttpxTransport,
    ResponseSizeExceededError,
    TransportConnectError,
    TransportError,
    TransportTimeoutError,
)


URL = "https://api.example.com/openapi.json"


def send(
    handler: Callable[[httpx.Request], Any],
    method: str = "GET",
    headers: dict[str, str] | None = None,
    timeout: float | None = 5.0,
    max_response_size_bytes: int = 1024,
) -> httpx.Response:
    """Send one request through a transport backed by ``handler``."""

    async def run() -> httpx.Response:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with HttpxTransport(
            max_response_size_bytes=max_response_size_bytes, client=client
        ) as transport:
            return await transport.send(
                method, URL, headers=httpx.Headers(headers or {}), timeout=timeout
            )

    return asyncio.run(run())


class TestSuccessfulRequests:
    """Tests for requests that produce a response."""

    def test_returns_read_response(self) -> None:
        """Test that body, status and validators are returned."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"ETag": '"a"'}, content=b"hello")

        response = send(handler)

        assert response.status_code == 200
        assert response.content == b"hello"
        assert response.headers["etag"] == '"a"'

    def test_forwards_method_and_headers(self) -> None:
        """Test that request method and headers reach the server."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        send(handler, method="HEAD", headers={"If-None-Match": '"a"'})

        assert seen[0].method == "HEAD"
        assert seen[0].headers["if-none-match"] == '"a"'

    def test_non_ok_status_is_returned(self) -> None:
        """Test that error statuses are responses, not exceptions."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, content=b"down")

        response = send(handler)

        assert response.status_code == 503
        assert response.content == b"down"

    def test_redirects_not_followed(self) -> None:
        """Test that a redirect is returned as-is."""
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(302, headers={"Location": "https://other.example.com/"})

        response = send(handler)

        assert response.status_code == 302
        assert calls == [URL]

    def test_streamed_body_drops_length_headers(self) -> None:
        """Test that framing headers are removed from the rebuilt response."""

        async def chunks() -> AsyncIterator[bytes]:
            yield b"part1-"
            yield b"part2"

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=chunks())

        response = send(handler)

        assert response.content == b"part1-part2"
        assert "transfer-encoding" not in response.headers
        assert "content-length" not in response.headers

    def test_fixed_length_body_has_no_length_header(self) -> None:
        """Test that a decoded body is not given a recomputed Content-Length."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"hello")

        response = send(handler)

        assert response.content == b"hello"
        assert "content-length" not in response.headers


class TestResponseSizeLimit:
    """Tests for the response size limit."""

    def test_declared_length_over_limit(self) -> None:
        """Test that a large Content-Length is rejected before reading."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, headers={"Content-Length": "999999"}, content=b"x"
            )

        with pytest.raises(ResponseSizeExceededError, match="999999"):
            send(handler)

    def test_streamed_body_over_limit(self) -> None:
        """Test that bodies without Content-Length are capped while reading."""

        async def chunks() -> AsyncIterator[bytes]:
            for _ in range(4):
                yield b"x" * 512

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=chunks())

        with pytest.raises(ResponseSizeExceededError) as exc_info:
            send(handler)

        assert exc_info.value.error_class == FetchErrorClass.RESPONSE_SIZE_EXCEEDED

    def test_body_at_limit_accepted(self) -> None:
        """Test that a body exactly at the limit is read."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"x" * 1024)

        assert len(send(handler).content) == 1024

    def test_head_ignores_declared_length(self) -> None:
        """Test that HEAD responses may announce large documents."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, headers={"Content-Length": "50000000", "ETag": '"a"'}
            )

        response = send(handler, method="HEAD")

        assert response.status_code == 200
        assert response.headers["etag"] == '"a"'
        assert response.headers["content-length"] == "50000000"
        assert response.content == b""


class TestTransportErrors:
    """Tests for mapping httpx failures to transport errors."""

    def test_connect_error(self) -> None:
        """Test that connection failures are classified."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportConnectError, match="connection refused") as exc_info:
            send(handler)

        assert exc_info.value.error_class == FetchErrorClass.CONNECTION_ERROR

    def test_httpx_timeout(self) -> None:
        """Test that httpx timeouts are classified."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(TransportTimeoutError) as exc_info:
            send(handler)

        assert exc_info.value.error_class == FetchErrorClass.NETWORK_TIMEOUT

    def test_overall_timeout(self) -> None:
        """Test that the timeout bounds the whole request."""

        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1.0)
            return httpx.Response(200)

        with pytest.raises(TransportTimeoutError, match="timed out after 0.05s"):
            send(handler, timeout=0.05)

    def test_other_http_error(self) -> None:
        """Test that remaining httpx errors become generic transport errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError("peer closed connection", request=request)

        with pytest.raises(TransportError) as exc_info:
            send(handler)

        assert type(exc_info.value) is TransportError
        assert exc_info.value.error_class == FetchErrorClass.TRANSPORT_ERROR
        assert "peer closed connection" in exc_info.value.message


class TestLifecycle:
    """Tests for client ownership."""

    def test_context_manager_closes_client(self) -> None:
        """Test that leaving the context closes the client."""
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200))
        )

        async def run() -> None:
            async with HttpxTransport(client=client):
                pass

        asyncio.run(run())

        assert client.is_closed
