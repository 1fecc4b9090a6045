"""Configuration models for the change-aware fetch layer."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from watchfetch.features.fetch.constants import (
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)


# Credentials belong in the environment, never in config files
FORBIDDEN_CONFIG_HEADERS = frozenset({"authorization", "cookie", "x-api-key"})


def validate_config_headers(headers: dict[str, str]) -> dict[str, str]:
    """Reject credential headers in configuration.

    Args:
        headers: Header mapping from configuration.

    Returns:
        The unchanged mapping.

    Raises:
        ValueError: If a credential header is present.
    """
    for key in headers:
        if key.lower() in FORBIDDEN_CONFIG_HEADERS:
            msg = (
                f"Header '{key}' must not be stored in config; "
                "use environment variables"
            )
            raise ValueError(msg)
    return headers


class FetchConfig(BaseModel):
    """Configuration shared by every fetch.

    Headers configured here are sent with both HEAD probes and GET
    requests, before any per-call headers.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )
    default_timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    max_response_size_bytes: Annotated[int, Field(ge=1024, le=100 * 1024 * 1024)] = (
        DEFAULT_MAX_RESPONSE_SIZE_BYTES
    )
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers added to every request"
    )

    @field_validator("headers")
    @classmethod
    def validate_no_auth_headers(cls, v: dict[str, str]) -> dict[str, str]:
        """Ensure no credential headers are stored in config."""
        return validate_config_headers(v)
