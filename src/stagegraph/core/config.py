"""
Configuration schema and loading for stagegraph.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class LoggingSettings(BaseModel):
    """Log output configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )
    json_output: bool = Field(default=False, description="Emit JSON instead of console output")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:
        if isinstance(v, str):
            return v.upper()
        return v


class StageGraphSettings(BaseModel):
    """Top-level settings for the graph builder.

    Example YAML:
        node_dump_enabled: true
        strict_scanner: false
        synthetic_stage_name: Parallel
        logging:
          level: DEBUG
          json_output: true
    """

    model_config = {"frozen": True}

    node_dump_enabled: bool = Field(
        default=False,
        description="Log every scanner event the visitor receives at DEBUG level",
    )
    strict_scanner: bool = Field(
        default=False,
        description="Raise ScannerProtocolError on unpaired branch events instead of skipping the parallel block",
    )
    synthetic_stage_name: str = Field(
        default="Parallel",
        min_length=1,
        description="Label of the stage synthesized around top-level parallel blocks",
    )
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("synthetic_stage_name")
    @classmethod
    def validate_synthetic_stage_name(cls, v: str) -> str:
        if v.strip() != v or not v:
            raise ValueError(f"synthetic_stage_name must not have surrounding whitespace: {v!r}")
        return v


def load_settings(config_path: Path) -> StageGraphSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (STAGEGRAPH_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: STAGEGRAPH_LOGGING__LEVEL for nested keys.

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="STAGEGRAPH",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic fields are lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    if "logging" in raw_config:
        raw_config["logging"] = {k.lower(): v for k, v in raw_config["logging"].items()}

    return StageGraphSettings(**raw_config)
