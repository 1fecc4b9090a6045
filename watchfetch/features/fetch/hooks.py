"""Lifecycle hooks invoked around every network request."""

import inspect
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import httpx
import structlog

from watchfetch.features.observability.redact import (
    redact_headers,
    redact_url_credentials,
)


logger = structlog.get_logger()


@dataclass(frozen=True)
class RequestHookContext:
    """Context passed to ``on_pre_request``.

    Attributes:
        headers: Headers about to be sent.
        method: HTTP method.
        timeout: Timeout in seconds, or None.
        url: Target URL.
    """

    headers: httpx.Headers
    method: str
    timeout: float | None
    url: str


@dataclass(frozen=True)
class ResponseHookContext:
    """Context passed to ``on_post_request``.

    Attributes:
        duration: Wall-clock duration of the network call in milliseconds.
        headers: Headers that were sent.
        method: HTTP method.
        response: Server response, or a synthesized one on transport error.
        timeout: Timeout in seconds, or None.
        url: Target URL.
        error: Transport error, if the request failed.
    """

    duration: int
    headers: httpx.Headers
    method: str
    response: httpx.Response
    timeout: float | None
    url: str
    error: Exception | None = None


class FetchHooks(Protocol):
    """Protocol for request lifecycle observers.

    Methods may be plain functions or coroutines; the fetcher awaits
    coroutine results. Exceptions raised by hooks propagate to the caller.
    """

    def on_pre_request(self, context: RequestHookContext) -> object:
        """Called before a request is sent."""
        ...

    def on_post_request(self, context: ResponseHookContext) -> object:
        """Called after a request completed or failed."""
        ...


async def call_hook(result: object) -> None:
    """Await a hook result when it is awaitable."""
    if inspect.isawaitable(result):
        await result


class NoopHooks:
    """Hooks that do nothing."""

    def on_pre_request(self, context: RequestHookContext) -> None:
        """Ignore the request."""

    def on_post_request(self, context: ResponseHookContext) -> None:
        """Ignore the response."""


class LoggingHooks:
    """Hooks that log every request with redacted headers."""

    def __init__(self, component: str = "watch") -> None:
        self._log = logger.bind(component=component)

    def on_pre_request(self, context: RequestHookContext) -> None:
        """Log the outgoing request."""
        self._log.debug(
            "request_start",
            method=context.method,
            url=redact_url_credentials(context.url),
            headers=redact_headers(context.headers),
            timeout=context.timeout,
        )

    def on_post_request(self, context: ResponseHookContext) -> None:
        """Log the request result."""
        log = self._log.bind(
            method=context.method,
            url=redact_url_credentials(context.url),
            duration_ms=context.duration,
        )
        if context.error is not None:
            log.warning(
                "request_failed",
                error=str(context.error),
                error_type=type(context.error).__name__,
            )
            return
        log.debug(
            "request_complete",
            status_code=context.response.status_code,
            response_headers=redact_headers(context.response.headers),
        )


class CompositeHooks:
    """Fan hook calls out to several hook objects in order."""

    def __init__(self, hooks: Sequence[FetchHooks]) -> None:
        self._hooks = list(hooks)

    async def on_pre_request(self, context: RequestHookContext) -> None:
        """Invoke every ``on_pre_request`` in order."""
        for hook in self._hooks:
            await call_hook(hook.on_pre_request(context))

    async def on_post_request(self, context: ResponseHookContext) -> None:
        """Invoke every ``on_post_request`` in order."""
        for hook in self._hooks:
            await call_hook(hook.on_post_request(context))
