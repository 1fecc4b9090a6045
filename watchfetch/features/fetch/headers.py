"""Request header helpers."""

from collections.abc import Mapping

import httpx


HeaderSource = Mapping[str, str] | httpx.Headers | None


def merge_headers(*sources: HeaderSource) -> httpx.Headers:
    """Merge header collections into one.

    Later sources override earlier ones. Names compare case-insensitively
    and a replaced name is not duplicated.

    Args:
        sources: Header collections, None entries are skipped.

    Returns:
        Merged headers.
    """
    merged = httpx.Headers()
    for source in sources:
        if not source:
            continue
        items = source.multi_items() if isinstance(source, httpx.Headers) else source.items()
        for name, value in items:
            merged[name] = value
    return merged
