"""Typed configuration models.

Validated views over ``config/edgeport.yaml``. Every field has a default
so an empty or missing config file is valid.
"""

from typing import List

from pydantic import BaseModel, Field, field_validator

from ..constants import DEFAULT_HANDLER_NAME, SKIPPED_FILES

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised when the configuration file is unreadable or invalid."""


class TransformSettings(BaseModel):
    handler_name: str = DEFAULT_HANDLER_NAME
    fix_cors_exports: bool = False
    add_supabase_client_import: bool = False
    max_rule_passes: int = Field(default=8, ge=1, le=64)

    @field_validator("handler_name")
    @classmethod
    def _valid_identifier(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"handler_name must be a plain identifier, got {value!r}")
        return value


class ConversionSettings(BaseModel):
    output_dir: str = "backend"
    handlers_dir: str = "src/handlers"
    shared_dir: str = "src/shared"
    skip_files: List[str] = Field(default_factory=lambda: list(SKIPPED_FILES))
    write_report: bool = True


class EdgeportSettings(BaseModel):
    log_level: str = "INFO"
    transform: TransformSettings = Field(default_factory=TransformSettings)
    conversion: ConversionSettings = Field(default_factory=ConversionSettings)

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return level
