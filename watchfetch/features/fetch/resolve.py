"""Resolution of caller input references into concrete inputs."""

import os
from collections.abc import Mapping
from typing import Any, Protocol

from pydantic import BaseModel

from watchfetch.features.fetch.models import (
    FileInput,
    RawInput,
    ResolvedInput,
    UrlInput,
)


_URL_PREFIXES = ("http://", "https://")


class InputResolver(Protocol):
    """Protocol for turning an input reference into a resolved input.

    Implementations must be pure and synchronous.
    """

    def resolve(self, input_ref: Any) -> ResolvedInput:
        """Resolve an input reference.

        Args:
            input_ref: URL string, path, inline data or resolved input.

        Returns:
            The concrete input variant.
        """
        ...


def resolve_input(input_ref: Any) -> ResolvedInput:
    """Resolve an input reference with the default rules.

    - Resolved inputs pass through unchanged
    - Strings starting with http:// or https:// are URLs
    - Other strings and path-like objects are files
    - Bytes and mappings are raw data

    Args:
        input_ref: Reference to resolve.

    Returns:
        The concrete input variant.

    Raises:
        TypeError: If the reference has an unsupported type.
    """
    if isinstance(input_ref, UrlInput | FileInput | RawInput):
        return input_ref
    if isinstance(input_ref, str):
        if input_ref.lower().startswith(_URL_PREFIXES):
            return UrlInput(path=input_ref)
        return FileInput(path=input_ref)
    if isinstance(input_ref, os.PathLike):
        return FileInput(path=os.fspath(input_ref))
    if isinstance(input_ref, bytes | bytearray):
        return RawInput(data=bytes(input_ref))
    if isinstance(input_ref, BaseModel):
        return RawInput(data=input_ref.model_dump(mode="json"))
    if isinstance(input_ref, Mapping):
        return RawInput(data=dict(input_ref))
    msg = f"Unsupported input reference type: {type(input_ref).__name__}"
    raise TypeError(msg)


class DefaultInputResolver:
    """Input resolver backed by ``resolve_input``."""

    def resolve(self, input_ref: Any) -> ResolvedInput:
        """Resolve an input reference with the default rules."""
        return resolve_input(input_ref)
