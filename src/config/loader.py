"""Configuration loader with validation."""

import hashlib
import time
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from src.config.schemas.matching import MatchingConfig


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


class ConfigLoader:
    """Loads and validates matching.yaml.

    Configuration is immutable once loaded; a loader instance keeps the
    checksum and validation errors of its last load for reporting.
    """

    def __init__(self, request_id: str = "config") -> None:
        """Initialize the loader.

        Args:
            request_id: Identifier used to correlate log events.
        """
        self._request_id = request_id
        self._checksum: str | None = None
        self._validation_errors: list[dict[str, str]] = []
        self._validation_duration_ms: float = 0.0

    @property
    def checksum(self) -> str | None:
        """SHA-256 of the last loaded file."""
        return self._checksum

    @property
    def validation_errors(self) -> list[dict[str, str]]:
        """Get validation errors if any."""
        return self._validation_errors.copy()

    @property
    def validation_duration_ms(self) -> float:
        """Get validation duration in milliseconds."""
        return self._validation_duration_ms

    def load(self, config_path: Path) -> MatchingConfig:
        """Load and validate a matching configuration file.

        Args:
            config_path: Path to matching.yaml.

        Returns:
            Validated MatchingConfig.

        Raises:
            ConfigValidationError: If the file is missing, unparseable or
                fails schema validation.
        """
        start_time = time.perf_counter()
        self._validation_errors = []
        log = logger.bind(
            request_id=self._request_id,
            component="config",
            file_path=str(config_path),
        )
        log.info("loading_config_file")

        try:
            content_bytes = config_path.read_bytes()
            self._checksum = hashlib.sha256(content_bytes).hexdigest()
            parsed = yaml.safe_load(content_bytes.decode("utf-8")) or {}
            config = MatchingConfig.model_validate(parsed)
        except FileNotFoundError as e:
            self._record_error("file", str(e), "file_not_found")
            log.error("config_file_not_found", error=str(e))
            raise ConfigValidationError(self.validation_errors, str(config_path)) from e
        except yaml.YAMLError as e:
            self._record_error("yaml", str(e), "yaml_parse_error")
            log.error("config_yaml_parse_error", error=str(e))
            raise ConfigValidationError(self.validation_errors, str(config_path)) from e
        except ValidationError as e:
            for err in e.errors():
                self._record_error(
                    ".".join(str(loc) for loc in err["loc"]), err["msg"], err["type"]
                )
            log.error(
                "config_validation_failed",
                validation_error_count=len(self._validation_errors),
                errors=self._validation_errors,
            )
            raise ConfigValidationError(self.validation_errors, str(config_path)) from e

        self._validation_duration_ms = (time.perf_counter() - start_time) * 1000
        log.info(
            "config_ready",
            file_sha256=self._checksum,
            config_validation_duration_ms=self._validation_duration_ms,
        )
        return config

    def _record_error(self, loc: str, msg: str, error_type: str) -> None:
        self._validation_errors.append({"loc": loc, "msg": msg, "type": error_type})


def load_matching_config(config_path: Path | None = None) -> MatchingConfig:
    """Load matching configuration, falling back to defaults.

    Args:
        config_path: Optional path to matching.yaml.

    Returns:
        Validated configuration, or the defaults when no path is given.
    """
    if config_path is None:
        return MatchingConfig()
    return ConfigLoader().load(config_path)
