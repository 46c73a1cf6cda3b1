"""Engine settings loaded from YAML and validated with pydantic."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from utils import constants
from utils.exceptions import ConfigurationError
from utils.logger import get_logger, set_log_level

logger = get_logger(__name__)


class EngineSettings(BaseModel):
    """Tunables for delivery scoring and learning analytics.

    Policy thresholds (weak/strong tag cut-offs, fallback scores)
    live in utils.constants and are not configurable.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Pause detection
    long_pause_threshold_ms: int = Field(default=constants.LONG_PAUSE_THRESHOLD_MS, gt=0)
    escalation_start_ms: int = Field(default=constants.ESCALATION_START_MS, gt=0)
    escalation_step_ms: int = Field(default=constants.ESCALATION_STEP_MS, gt=0)
    baseline_wpm: int = Field(default=constants.BASELINE_WPM, gt=0)

    # Content analyzer calls
    analyzer_timeout_seconds: float = Field(default=constants.DEFAULT_ANALYZER_TIMEOUT_SECONDS, gt=0)
    analyzer_max_retries: int = Field(default=constants.DEFAULT_ANALYZER_MAX_RETRIES, ge=0)
    analyzer_retry_delay_seconds: float = Field(
        default=constants.DEFAULT_ANALYZER_RETRY_DELAY_SECONDS, ge=0
    )
    role: str = Field(default=constants.DEFAULT_ROLE, min_length=1)
    priorities: tuple[str, ...] = constants.DEFAULT_PRIORITIES

    # Learning analytics
    backfill_batch_size: int = Field(default=constants.DEFAULT_BACKFILL_BATCH_SIZE, ge=1)
    terminology_glossary: dict[str, str] = Field(default_factory=dict)

    # Filler rules (None -> packaged defaults)
    filler_rules_path: str | None = None

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("escalation_start_ms")
    @classmethod
    def validate_escalation_start(cls, v, info):
        """Escalation must start at or after the long-pause threshold."""
        threshold = info.data.get("long_pause_threshold_ms")
        if threshold is not None and v < threshold:
            raise ValueError("escalation_start_ms must be >= long_pause_threshold_ms")
        return v


def _read_yaml(config_path: Path) -> dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Parsed YAML document (empty dict for an empty file).

    Raises:
        ConfigurationError: If the file is missing or malformed.
    """
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(
            "Configuration file not found", context={"path": str(config_path)}, cause=e
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            "Configuration file is not valid YAML", context={"path": str(config_path)}, cause=e
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Configuration root must be a mapping", context={"path": str(config_path)}
        )
    return data


def load_settings(config_path: str | Path | None = None) -> EngineSettings:
    """
    Load engine settings from the ``settings`` section of a YAML file.

    Resolution order: explicit path, then the SPEECHCOACH_CONFIG environment
    variable, then built-in defaults.

    Args:
        config_path: Optional path to a YAML configuration file.

    Returns:
        Validated EngineSettings.

    Raises:
        ConfigurationError: If the file cannot be read or fails validation.
    """
    if config_path is None:
        config_path = os.getenv(constants.CONFIG_PATH_ENV_VAR)

    if not config_path:
        return EngineSettings()

    path = Path(config_path)
    data = _read_yaml(path)
    section = data.get("settings") or {}

    try:
        settings = EngineSettings.model_validate(section)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid engine settings", context={"path": str(path)}, cause=e
        ) from e

    set_log_level(settings.log_level)
    logger.info(f"Loaded engine settings from {path}")
    return settings
