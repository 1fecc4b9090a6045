"""JSON persistence of watch states between process runs."""

import json
from pathlib import Path

import structlog

from watchfetch.features.fetch.state import WatchState


logger = structlog.get_logger()

STATE_FILE_VERSION = 1


class StateStoreError(Exception):
    """Raised when the state file cannot be read."""

    def __init__(self, path: Path, message: str) -> None:
        """Initialize the error.

        Args:
            path: Path of the state file.
            message: Human-readable error message.
        """
        self.path = path
        super().__init__(f"{path}: {message}")


class WatchStateStore:
    """Watch states keyed by source id, stored in one JSON file.

    Writes go to a temporary file that is renamed over the target, so a
    reader never sees a partial file.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the JSON state file.
        """
        self._path = path
        self._states: dict[str, WatchState] = {}
        self._log = logger.bind(component="store", path=str(path))

    @property
    def path(self) -> Path:
        """Location of the state file."""
        return self._path

    def load(self) -> None:
        """Read states from disk; a missing file yields an empty store.

        Raises:
            StateStoreError: If the file is not a valid state file.
        """
        if not self._path.exists():
            self._states = {}
            self._log.debug("state_file_missing")
            return

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StateStoreError(self._path, f"invalid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("sources"), dict):
            raise StateStoreError(self._path, "missing 'sources' mapping")

        self._states = {
            source_id: WatchState.from_dict(entry)
            for source_id, entry in data["sources"].items()
            if isinstance(entry, dict)
        }
        self._log.debug("state_loaded", source_count=len(self._states))

    def get(self, source_id: str) -> WatchState:
        """Get the state for a source, creating an empty one if needed."""
        if source_id not in self._states:
            self._states[source_id] = WatchState()
        return self._states[source_id]

    def source_ids(self) -> list[str]:
        """Ids of all stored sources."""
        return sorted(self._states)

    def save(self) -> None:
        """Write all states to disk atomically."""
        payload = {
            "version": STATE_FILE_VERSION,
            "sources": {
                source_id: state.to_dict()
                for source_id, state in sorted(self._states.items())
            },
        }
        content = json.dumps(payload, indent=2, sort_keys=True)

        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        temp_path.write_text(content, encoding="utf-8")
        temp_path.replace(self._path)

        self._log.debug(
            "state_saved",
            source_count=len(self._states),
            bytes=len(content.encode("utf-8")),
        )
