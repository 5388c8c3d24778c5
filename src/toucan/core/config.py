# src/toucan/core/config.py
"""
Configuration schema and loading for Toucan.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from toucan.contracts.enums import ControlPhase


class ControlSettings(BaseModel):
    """When control fields are advanced relative to dispatch.

    Example YAML:
        control:
          phase: before
    """

    model_config = {"frozen": True, "extra": "forbid"}

    phase: ControlPhase = Field(
        default=ControlPhase.AFTER,
        description="'after' mutates once a run is queued; 'before' mutates just before compiling",
    )


class SubmissionSettings(BaseModel):
    """How compile warnings are treated at submission time."""

    model_config = {"frozen": True, "extra": "forbid"}

    fail_on_warnings: bool = Field(
        default=False,
        description="Treat advisory warnings as blocking (non-interactive use)",
    )


class LoggingSettings(BaseModel):
    """Log output configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )
    json_output: bool = Field(
        default=False,
        description="Emit JSON log lines instead of console output",
    )


class ToucanSettings(BaseModel):
    """Top-level settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    control: ControlSettings = Field(default_factory=ControlSettings)
    submission: SubmissionSettings = Field(default_factory=SubmissionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: Path | None = None) -> ToucanSettings:
    """Load settings from a YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (TOUCAN_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: TOUCAN_CONTROL__PHASE for nested keys.

    Args:
        config_path: Path to YAML configuration file, or None for env + defaults

    Returns:
        Validated ToucanSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="TOUCAN",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic fields are lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config: dict[str, Any] = _lower_keys({k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys})
    return ToucanSettings(**raw_config)


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value
