"""Data models for the change-aware fetch layer."""

from enum import Enum
from typing import Annotated, Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field

from watchfetch.features.fetch.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_NOT_MODIFIED,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_SERVER_ERROR_MAX,
    HTTP_STATUS_SERVER_ERROR_MIN,
)


class InputType(str, Enum):
    """Kind of a resolved input."""

    URL = "url"
    FILE = "file"
    RAW = "raw"


class UrlInput(BaseModel):
    """A remote document reachable over HTTP(S)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal[InputType.URL] = InputType.URL
    path: Annotated[str, Field(min_length=1, description="Absolute URL")]


class FileInput(BaseModel):
    """A document on the local file system."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal[InputType.FILE] = InputType.FILE
    path: Annotated[str, Field(min_length=1, description="File system path")]


class RawInput(BaseModel):
    """Inline document data supplied by the caller."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal[InputType.RAW] = InputType.RAW
    data: bytes | str | dict[str, Any]


ResolvedInput = Annotated[
    UrlInput | FileInput | RawInput, Field(discriminator="type")
]


class FetchErrorClass(str, Enum):
    """Classification of not-ok fetch results.

    Transport failures:
    - NETWORK_TIMEOUT: Request timed out
    - CONNECTION_ERROR: Could not establish connection
    - RESPONSE_SIZE_EXCEEDED: Response exceeded max size limit
    - TRANSPORT_ERROR: Any other transport-level failure

    Server responses:
    - HTTP_REDIRECT: 3xx other than 304 (redirects are not followed)
    - HTTP_4XX: Client error status
    - HTTP_5XX: Server error status
    - HTTP_NOT_OK: Any other status that is not ok
    """

    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    RESPONSE_SIZE_EXCEEDED = "RESPONSE_SIZE_EXCEEDED"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    HTTP_REDIRECT = "HTTP_REDIRECT"
    HTTP_4XX = "HTTP_4XX"
    HTTP_5XX = "HTTP_5XX"
    HTTP_NOT_OK = "HTTP_NOT_OK"


def is_ok_status(status_code: int) -> bool:
    """Check whether a status counts as ok for revalidation.

    Ok means 2xx, or 304 which answers a conditional request.

    Args:
        status_code: HTTP status code.

    Returns:
        True if the status is ok.
    """
    return (
        HTTP_STATUS_OK_MIN <= status_code < HTTP_STATUS_OK_MAX
        or status_code == HTTP_STATUS_NOT_MODIFIED
    )


def classify_status(status_code: int) -> FetchErrorClass:
    """Classify a not-ok HTTP status.

    Args:
        status_code: HTTP status code.

    Returns:
        Error class for the status.
    """
    if HTTP_STATUS_OK_MAX <= status_code < HTTP_STATUS_BAD_REQUEST:
        return FetchErrorClass.HTTP_REDIRECT
    if HTTP_STATUS_BAD_REQUEST <= status_code < HTTP_STATUS_SERVER_ERROR_MIN:
        return FetchErrorClass.HTTP_4XX
    if HTTP_STATUS_SERVER_ERROR_MIN <= status_code < HTTP_STATUS_SERVER_ERROR_MAX:
        return FetchErrorClass.HTTP_5XX
    return FetchErrorClass.HTTP_NOT_OK


class FetchOptions(BaseModel):
    """Caller-supplied request options forwarded to every request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra request headers"
    )


class Content(BaseModel):
    """The document changed, or is seen for the first time.

    For URL inputs ``buffer`` holds the response body. For file and raw
    inputs it is None and the caller reads the input itself.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["content"] = "content"
    buffer: bytes | None = None
    resolved_input: ResolvedInput

    @property
    def body_size(self) -> int:
        """Get the size of the buffer in bytes."""
        return len(self.buffer) if self.buffer is not None else 0


class NotModified(BaseModel):
    """The document is unchanged since the previous poll."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    kind: Literal["not-modified"] = "not-modified"
    response: httpx.Response


class NotOk(BaseModel):
    """The document is currently unavailable; try again next cycle."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    kind: Literal["not-ok"] = "not-ok"
    response: httpx.Response
    error_class: FetchErrorClass

    @property
    def status_code(self) -> int:
        """Status of the (possibly synthesized) response."""
        return self.response.status_code


FetchOutcome = Content | NotModified | NotOk
