"""Change-aware fetcher: retrieve a document only when it changed."""

import time
from typing import Any

import httpx
import structlog

from watchfetch.features.fetch.config import FetchConfig
from watchfetch.features.fetch.constants import (
    HTTP_STATUS_NOT_MODIFIED,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_TRANSPORT_FAILURE,
    METHOD_GET,
    METHOD_HEAD,
    VALIDATOR_HEADERS,
)
from watchfetch.features.fetch.headers import merge_headers
from watchfetch.features.fetch.hooks import (
    FetchHooks,
    NoopHooks,
    RequestHookContext,
    ResponseHookContext,
    call_hook,
)
from watchfetch.features.fetch.metrics import FetchMetrics
from watchfetch.features.fetch.models import (
    Content,
    FetchErrorClass,
    FetchOptions,
    FetchOutcome,
    FileInput,
    NotModified,
    NotOk,
    RawInput,
    UrlInput,
    classify_status,
    is_ok_status,
)
from watchfetch.features.fetch.resolve import DefaultInputResolver, InputResolver
from watchfetch.features.fetch.state import WatchState
from watchfetch.features.fetch.transport import Transport, TransportError
from watchfetch.features.observability.redact import redact_url_credentials


logger = structlog.get_logger()

# Reasons reported for not-modified outcomes
REASON_HEAD_304 = "head_304"
REASON_VALIDATOR = "validator"
REASON_CONTENT = "content"
REASON_LOCAL = "local"


def _error_response(message: str) -> httpx.Response:
    """Build the response reported for a failed transport call."""
    return httpx.Response(status_code=HTTP_STATUS_TRANSPORT_FAILURE, text=message)


def _elapsed_ms(start_ns: int) -> int:
    return round((time.perf_counter_ns() - start_ns) / 1_000_000)


class ChangeAwareFetcher:
    """Fetch a document only when it changed since the previous poll.

    URL inputs are revalidated in two phases:
    - A HEAD probe with stored validators, skipped on the first poll and
      once the server is known not to support HEAD
    - A GET of the full body when the probe could not prove the document
      unchanged; without validators the body text is compared with the
      previous one

    Validators returned by the HEAD request are stored before the GET is
    sent and are kept when that GET fails, so the next poll reports
    NotModified for a change the caller never received. Callers that must
    see every change should poll with a fresh WatchState after NotOk.

    File and raw inputs never touch the network: the first poll yields
    Content and every later poll yields NotModified.

    One instance may serve many sources; each source has its own
    WatchState, which must not be shared by concurrent fetches.
    """

    def __init__(
        self,
        transport: Transport,
        hooks: FetchHooks | None = None,
        resolver: InputResolver | None = None,
        config: FetchConfig | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            transport: Transport used for HEAD and GET requests.
            hooks: Request lifecycle hooks, no-op when omitted.
            resolver: Input resolver, default rules when omitted.
            config: Fetch configuration, defaults when omitted.
        """
        self._transport = transport
        self._hooks: FetchHooks = hooks or NoopHooks()
        self._resolver: InputResolver = resolver or DefaultInputResolver()
        self._config = config or FetchConfig()
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="watch")

    async def fetch(
        self,
        input_ref: Any,
        *,
        watch: WatchState,
        options: FetchOptions | None = None,
        timeout: float | None = None,
    ) -> FetchOutcome:
        """Run one poll cycle for a source.

        Args:
            input_ref: URL, path, inline data or resolved input.
            watch: Watch state of the source, updated in place.
            options: Caller request options.
            timeout: Per-request timeout in seconds; the configured default
                applies when omitted.

        Returns:
            Content, NotModified or NotOk. Transport and server failures are
            returned as NotOk; only hook exceptions propagate.
        """
        resolved = self._resolver.resolve(input_ref)

        if isinstance(resolved, UrlInput):
            if timeout is None:
                timeout = self._config.default_timeout_seconds
            outcome = await self._fetch_url(
                resolved, watch, options or FetchOptions(), timeout
            )
            target = redact_url_credentials(resolved.path)
        else:
            outcome = self._fetch_local(resolved, watch)
            target = resolved.type.value

        self._metrics.record_outcome(outcome.kind)
        log = self._log.bind(
            input_type=resolved.type.value,
            target=target,
            outcome=outcome.kind,
        )
        if isinstance(outcome, Content):
            log.info("fetch_outcome", bytes=outcome.body_size)
        elif isinstance(outcome, NotOk):
            log.info(
                "fetch_outcome",
                status_code=outcome.status_code,
                error_class=outcome.error_class.value,
            )
        else:
            log.info("fetch_outcome", status_code=outcome.response.status_code)
        return outcome

    def _fetch_local(
        self, resolved: FileInput | RawInput, watch: WatchState
    ) -> FetchOutcome:
        """Handle file and raw inputs, which are only observed once."""
        if watch.last_value is None:
            watch.last_value = resolved.type.value
            return Content(buffer=None, resolved_input=resolved)

        self._metrics.record_not_modified(REASON_LOCAL)
        return NotModified(response=httpx.Response(HTTP_STATUS_NOT_MODIFIED))

    async def _fetch_url(
        self,
        resolved: UrlInput,
        watch: WatchState,
        options: FetchOptions,
        timeout: float | None,
    ) -> FetchOutcome:
        url = resolved.path
        watch.last_url = url
        base_headers = merge_headers(
            {"User-Agent": self._config.user_agent},
            self._config.headers,
            options.headers,
        )

        has_changed: bool | None = None
        if watch.last_value is not None and watch.is_head_method_supported is not False:
            outcome, has_changed = await self._probe(url, watch, base_headers, timeout)
            if outcome is not None:
                return outcome

        result = await self._send(METHOD_GET, url, base_headers, timeout)
        if isinstance(result, NotOk):
            return result
        response = result

        if not HTTP_STATUS_OK_MIN <= response.status_code < HTTP_STATUS_OK_MAX:
            return self._not_ok(response, classify_status(response.status_code))

        buffer = response.content
        self._store_validators(response, watch)

        if has_changed is None:
            # Lossy for binary bodies; comparison is on decoded text
            content = buffer.decode("utf-8", errors="replace")
            has_changed = content != watch.last_value
            watch.last_value = content

        if not has_changed:
            return self._not_modified(response, REASON_CONTENT)

        return Content(buffer=buffer, resolved_input=resolved)

    async def _probe(
        self,
        url: str,
        watch: WatchState,
        base_headers: httpx.Headers,
        timeout: float | None,
    ) -> tuple[FetchOutcome | None, bool | None]:
        """Revalidate with a HEAD request.

        Returns:
            A final outcome when the probe settles the cycle, otherwise None
            and whether the validators proved a change (None if unknown).
        """
        self._metrics.record_head_probe()
        headers = merge_headers(base_headers, watch.headers)

        result = await self._send(METHOD_HEAD, url, headers, timeout)
        if isinstance(result, NotOk):
            return result, None
        response = result

        ok = is_ok_status(response.status_code)
        if watch.is_head_method_supported is None:
            watch.is_head_method_supported = ok
            if not ok:
                self._log.info(
                    "head_unsupported",
                    url=redact_url_credentials(url),
                    status_code=response.status_code,
                )

        if not ok:
            return self._not_ok(response, classify_status(response.status_code)), None

        if response.status_code == HTTP_STATUS_NOT_MODIFIED:
            return self._not_modified(response, REASON_HEAD_304), None

        has_changed: bool | None = None
        for response_header, request_header in VALIDATOR_HEADERS:
            value = response.headers.get(response_header)
            if value:
                has_changed = watch.set_validator(request_header, value)
                break

        if has_changed is False:
            return self._not_modified(response, REASON_VALIDATOR), None

        return None, has_changed

    async def _send(
        self,
        method: str,
        url: str,
        headers: httpx.Headers,
        timeout: float | None,
    ) -> httpx.Response | NotOk:
        """Send one request between the pre and post hooks.

        Transport failures are reported to the post hook with a synthesized
        response and returned as NotOk.
        """
        await call_hook(
            self._hooks.on_pre_request(
                RequestHookContext(
                    headers=headers, method=method, timeout=timeout, url=url
                )
            )
        )

        error: Exception | None = None
        error_class = FetchErrorClass.TRANSPORT_ERROR
        start_ns = time.perf_counter_ns()
        try:
            response = await self._transport.send(
                method, url, headers=headers, timeout=timeout
            )
        except TransportError as e:
            error, error_class = e, e.error_class
            response = _error_response(e.message)
        except Exception as e:  # noqa: BLE001
            error = e
            response = _error_response(str(e) or type(e).__name__)
        duration = _elapsed_ms(start_ns)

        self._metrics.record_request(method, duration)
        if error is None:
            self._metrics.record_response(response.status_code, len(response.content))

        await call_hook(
            self._hooks.on_post_request(
                ResponseHookContext(
                    duration=duration,
                    headers=headers,
                    method=method,
                    response=response,
                    timeout=timeout,
                    url=url,
                    error=error,
                )
            )
        )

        if error is not None:
            return self._not_ok(response, error_class)
        return response

    def _store_validators(self, response: httpx.Response, watch: WatchState) -> None:
        """Keep validators from a full response as the next probe's baseline."""
        for response_header, request_header in VALIDATOR_HEADERS:
            value = response.headers.get(response_header)
            if value:
                watch.set_validator(request_header, value)

    def _not_modified(self, response: httpx.Response, reason: str) -> NotModified:
        self._metrics.record_not_modified(reason)
        return NotModified(response=response)

    def _not_ok(self, response: httpx.Response, error_class: FetchErrorClass) -> NotOk:
        self._metrics.record_failure(error_class)
        return NotOk(response=response, error_class=error_class)
