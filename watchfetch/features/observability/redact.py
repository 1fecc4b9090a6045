"""Header and URL redaction for log output."""

import re
from collections.abc import Mapping

import httpx


# Headers that must never appear in logs
SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "proxy-authorization",
        "set-cookie",
        "x-api-key",
        "x-auth-token",
    }
)

REDACTED_VALUE = "[REDACTED]"

_URL_CREDENTIALS = re.compile(r"(https?://)([^:/@]+):([^@/]+)@")


def is_sensitive_header(header_name: str) -> bool:
    """Check if a header name must be redacted."""
    return header_name.lower() in SENSITIVE_HEADERS


def redact_headers(headers: Mapping[str, str] | httpx.Headers) -> dict[str, str]:
    """Copy headers into a plain dict with sensitive values replaced.

    Args:
        headers: Request or response headers.

    Returns:
        New dictionary safe for logging.
    """
    items = headers.multi_items() if isinstance(headers, httpx.Headers) else headers.items()
    return {
        name: REDACTED_VALUE if is_sensitive_header(name) else value
        for name, value in items
    }


def redact_url_credentials(url: str) -> str:
    """Replace ``user:password@`` in a URL with redaction markers."""
    return _URL_CREDENTIALS.sub(r"\1[REDACTED]:[REDACTED]@", url)
