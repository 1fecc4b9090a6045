"""Watch configuration loader with validation."""

import hashlib
import time
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from watchfetch.features.config.schemas import WatchConfig


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when configuration loading or validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: Flattened error details with loc, msg and type keys.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


class ConfigLoader:
    """Loads and validates watch configuration files."""

    def __init__(self, session_id: str) -> None:
        """Initialize the loader.

        Args:
            session_id: Identifier of the current watch session.
        """
        self._log = logger.bind(component="config", session_id=session_id)
        self._checksum: str | None = None
        self._validation_duration_ms: float = 0

    @property
    def checksum(self) -> str | None:
        """SHA-256 of the last file read, if any."""
        return self._checksum

    @property
    def validation_duration_ms(self) -> float:
        """Get validation duration in milliseconds."""
        return self._validation_duration_ms

    def load(self, path: Path) -> WatchConfig:
        """Load and validate a watch configuration file.

        Args:
            path: Path to the YAML file.

        Returns:
            Validated configuration.

        Raises:
            ConfigValidationError: If the file is missing, malformed or
                does not match the schema.
        """
        start_time = time.perf_counter()
        log = self._log.bind(file_path=str(path))
        log.info("loading_config_file")

        try:
            content_bytes = path.read_bytes()
            self._checksum = hashlib.sha256(content_bytes).hexdigest()
            data = yaml.safe_load(content_bytes.decode("utf-8")) or {}
            config = WatchConfig.model_validate(data)
        except FileNotFoundError as e:
            raise self._fail(log, path, "file", str(e), "file_not_found") from e
        except UnicodeDecodeError as e:
            raise self._fail(log, path, "file", str(e), "encoding_error") from e
        except yaml.YAMLError as e:
            raise self._fail(log, path, "yaml", str(e), "yaml_parse_error") from e
        except ValidationError as e:
            errors = [
                {
                    "loc": ".".join(str(loc) for loc in err["loc"]) or "root",
                    "msg": err["msg"],
                    "type": err["type"],
                }
                for err in e.errors()
            ]
            log.error(
                "config_validation_failed",
                validation_error_count=len(errors),
                errors=errors,
            )
            raise ConfigValidationError(errors, str(path)) from e

        self._validation_duration_ms = (time.perf_counter() - start_time) * 1000
        log.info(
            "config_file_loaded",
            file_sha256=self._checksum,
            source_count=len(config.sources),
            config_validation_duration_ms=self._validation_duration_ms,
        )
        return config

    def _fail(
        self,
        log: structlog.stdlib.BoundLogger,
        path: Path,
        loc: str,
        message: str,
        error_type: str,
    ) -> ConfigValidationError:
        log.error("config_load_failed", error=message, error_type=error_type)
        return ConfigValidationError(
            [{"loc": loc, "msg": message, "type": error_type}], str(path)
        )
