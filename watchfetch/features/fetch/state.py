"""Caller-owned watch state persisted across poll cycles."""

from dataclasses import dataclass, field
from typing import Any

from watchfetch.features.fetch.constants import (
    HEADER_IF_MODIFIED_SINCE,
    HEADER_IF_NONE_MATCH,
)


_VALIDATOR_NAMES = {
    HEADER_IF_NONE_MATCH.lower(): HEADER_IF_NONE_MATCH,
    HEADER_IF_MODIFIED_SINCE.lower(): HEADER_IF_MODIFIED_SINCE,
}


def _canonical_validator(name: str) -> str:
    try:
        return _VALIDATOR_NAMES[name.lower()]
    except KeyError:
        msg = f"Unsupported validator header: {name}"
        raise ValueError(msg) from None


@dataclass
class WatchState:
    """Revalidation state for one watched source.

    Created empty before the first poll and handed to every fetch for the
    same source. Only one fetch may use a given state at a time.

    Attributes:
        last_value: Last observed body text, or the input kind marker for
            file and raw inputs. None until the first successful poll.
        headers: Stored request validators (If-None-Match, If-Modified-Since).
        is_head_method_supported: None while unknown, then fixed by the
            first HEAD probe.
        last_url: Last URL fetched for this source.
    """

    last_value: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    is_head_method_supported: bool | None = None
    last_url: str | None = None

    def get_validator(self, name: str) -> str | None:
        """Get a stored validator by request header name (case-insensitive)."""
        return self.headers.get(_canonical_validator(name))

    def set_validator(self, name: str, value: str) -> bool:
        """Store a validator if it differs from the current value.

        Validators are never cleared; a missing value on a response leaves
        the stored one untouched.

        Args:
            name: Request header name.
            value: New validator value.

        Returns:
            True if the stored value changed.
        """
        key = _canonical_validator(name)
        if self.headers.get(key) == value:
            return False
        self.headers[key] = value
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert state to a JSON-serializable dictionary."""
        return {
            "last_value": self.last_value,
            "headers": dict(self.headers),
            "is_head_method_supported": self.is_head_method_supported,
            "last_url": self.last_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WatchState":
        """Restore state from ``to_dict`` output.

        Unknown header entries are dropped.
        """
        state = cls(
            last_value=data.get("last_value"),
            is_head_method_supported=data.get("is_head_method_supported"),
            last_url=data.get("last_url"),
        )
        for name, value in (data.get("headers") or {}).items():
            if name.lower() in _VALIDATOR_NAMES and value:
                state.set_validator(name, str(value))
        return state
