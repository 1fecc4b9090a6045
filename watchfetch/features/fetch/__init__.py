"""Change-aware fetch layer for watch mode.

This module retrieves a document only when it changed since the previous
poll, using:
- HEAD probes with If-None-Match / If-Modified-Since validators
- ETag and Last-Modified comparison
- Body text comparison when the server offers no validators
- Single observation of local files and inline data
"""

from watchfetch.features.fetch.config import FetchConfig
from watchfetch.features.fetch.constants import (
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    HEADER_ETAG,
    HEADER_IF_MODIFIED_SINCE,
    HEADER_IF_NONE_MATCH,
    HEADER_LAST_MODIFIED,
    HTTP_STATUS_NOT_MODIFIED,
    HTTP_STATUS_TRANSPORT_FAILURE,
)
from watchfetch.features.fetch.fetcher import ChangeAwareFetcher
from watchfetch.features.fetch.headers import merge_headers
from watchfetch.features.fetch.hooks import (
    CompositeHooks,
    FetchHooks,
    LoggingHooks,
    NoopHooks,
    RequestHookContext,
    ResponseHookContext,
)
from watchfetch.features.fetch.metrics import FetchMetrics
from watchfetch.features.fetch.models import (
    Content,
    FetchErrorClass,
    FetchOptions,
    FetchOutcome,
    FileInput,
    InputType,
    NotModified,
    NotOk,
    RawInput,
    ResolvedInput,
    UrlInput,
)
from watchfetch.features.fetch.resolve import (
    DefaultInputResolver,
    InputResolver,
    resolve_input,
)
from watchfetch.features.fetch.state import WatchState
from watchfetch.features.fetch.transport import (
    HttpxTransport,
    ResponseSizeExceededError,
    Transport,
    TransportConnectError,
    TransportError,
    TransportTimeoutError,
)


__all__ = [
    # Fetcher
    "ChangeAwareFetcher",
    # State
    "WatchState",
    # Config
    "FetchConfig",
    "FetchOptions",
    # Inputs
    "InputType",
    "UrlInput",
    "FileInput",
    "RawInput",
    "ResolvedInput",
    "InputResolver",
    "DefaultInputResolver",
    "resolve_input",
    # Outcomes
    "FetchOutcome",
    "Content",
    "NotModified",
    "NotOk",
    "FetchErrorClass",
    # Transport
    "Transport",
    "HttpxTransport",
    "TransportError",
    "TransportTimeoutError",
    "TransportConnectError",
    "ResponseSizeExceededError",
    # Hooks
    "FetchHooks",
    "NoopHooks",
    "LoggingHooks",
    "CompositeHooks",
    "RequestHookContext",
    "ResponseHookContext",
    # Constants
    "DEFAULT_MAX_RESPONSE_SIZE_BYTES",
    "DEFAULT_TIMEOUT_SECONDS",
    "HEADER_ETAG",
    "HEADER_LAST_MODIFIED",
    "HEADER_IF_NONE_MATCH",
    "HEADER_IF_MODIFIED_SINCE",
    "HTTP_STATUS_NOT_MODIFIED",
    "HTTP_STATUS_TRANSPORT_FAILURE",
    # Metrics
    "FetchMetrics",
    # Headers
    "merge_headers",
]
