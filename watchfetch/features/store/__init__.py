"""Watch state persistence."""

from watchfetch.features.store.store import StateStoreError, WatchStateStore


__all__ = ["StateStoreError", "WatchStateStore"]
