"""Observability module for logging and redaction."""

from watchfetch.features.observability.logging import (
    bind_watch_context,
    clear_watch_context,
    configure_logging,
    get_logger,
    parse_log_level,
)
from watchfetch.features.observability.redact import (
    REDACTED_VALUE,
    is_sensitive_header,
    redact_headers,
    redact_url_credentials,
)


__all__ = [
    "REDACTED_VALUE",
    "bind_watch_context",
    "clear_watch_context",
    "configure_logging",
    "get_logger",
    "is_sensitive_header",
    "parse_log_level",
    "redact_headers",
    "redact_url_credentials",
]
