"""Watch configuration schema."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from watchfetch.features.fetch.config import FetchConfig, validate_config_headers


class SourceConfig(BaseModel):
    """Configuration for a single watched source.

    Attributes:
        id: Unique identifier, also the key of the persisted watch state.
        input: URL or file path to watch.
        headers: Extra request headers for this source.
        timeout_seconds: Request timeout overriding the fetch default.
        enabled: Whether the source is polled.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Annotated[str, Field(min_length=1, max_length=100, pattern=r"^[a-z0-9_-]+$")]
    input: Annotated[str, Field(min_length=1)]
    headers: dict[str, str] = Field(default_factory=dict)
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] | None = None
    enabled: bool = True

    @field_validator("headers")
    @classmethod
    def validate_no_auth_headers(cls, v: dict[str, str]) -> dict[str, str]:
        """Ensure no credential headers are stored in config."""
        return validate_config_headers(v)


class WatchConfig(BaseModel):
    """Root configuration of a watch file.

    Attributes:
        version: Schema version.
        fetch: Settings shared by every fetch.
        sources: Sources to poll.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    sources: list[SourceConfig]

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "WatchConfig":
        """Ensure all source IDs are unique."""
        ids = [s.id for s in self.sources]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            msg = f"Duplicate source IDs: {', '.join(duplicates)}"
            raise ValueError(msg)
        return self

    @property
    def enabled_sources(self) -> list[SourceConfig]:
        """Sources that should be polled."""
        return [s for s in self.sources if s.enabled]
