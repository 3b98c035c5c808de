"""Configuration system for Livro Fiscal.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults for ERP synchronization and book
exports.

Usage:
    from livro_integrations.config import LivroConfig

    # Reads LIVRO_* variables, then .env
    config = LivroConfig()

    # Access sync settings
    print(config.sync.max_retries)
    print(config.sync.retry_delay)

    # Access export settings
    print(config.export.default_format)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from livro_core.models import ExportFormat

ENVIRONMENTS = {"development", "staging", "production", "test"}
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class SyncConfig(BaseSettings):
    """ERP synchronization settings.

    Environment Variables:
        LIVRO_SYNC_MAX_RETRIES: Retries after a recoverable fetch failure
        LIVRO_SYNC_RETRY_DELAY: Delay between retries in seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="LIVRO_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Maximum retry attempts for failed fetches",
    )
    retry_delay: float = Field(
        default=1.0,
        ge=0,
        description="Delay between retry attempts in seconds",
    )


class ExportConfig(BaseSettings):
    """Book export settings.

    Environment Variables:
        LIVRO_EXPORT_DEFAULT_FORMAT: csv, excel, text or pdf
        LIVRO_EXPORT_ENCODING: Encoding used when writing text exports
    """

    model_config = SettingsConfigDict(
        env_prefix="LIVRO_EXPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_format: ExportFormat = Field(
        default=ExportFormat.PDF,
        description="Format used when none is requested",
    )
    encoding: str = Field(
        default="utf-8",
        description="Text encoding for exported files",
    )

    @field_validator("default_format", mode="before")
    @classmethod
    def normalize_format(cls, v):
        """Accept format names in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class LivroConfig(BaseSettings):
    """Root configuration for Livro Fiscal.

    Environment Variables:
        LIVRO_ENV: Environment name (development, staging, production, test)
        LIVRO_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        LIVRO_OUTPUT_DIR: Directory where generated files are written

    Example:
        # Everything from the environment
        config = LivroConfig()

        # Explicit overrides win over the environment
        config = LivroConfig(
            sync=SyncConfig(max_retries=0),
            export=ExportConfig(default_format="csv"),
        )
    """

    model_config = SettingsConfigDict(
        env_prefix="LIVRO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment settings
    env: str = Field(
        default="development",
        description="Environment name (development, staging, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    output_dir: str = Field(
        default="./output",
        description="Directory for generated SPED files, summaries and exports",
    )

    # Nested configuration
    sync: SyncConfig = Field(default_factory=SyncConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        name = v.lower().strip()
        if name not in ENVIRONMENTS:
            raise ValueError(f"LIVRO_ENV must be one of {sorted(ENVIRONMENTS)}, got {v!r}")
        return name

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        name = v.upper().strip()
        if name not in LOG_LEVELS:
            raise ValueError(f"LIVRO_LOG_LEVEL must be one of {sorted(LOG_LEVELS)}, got {v!r}")
        return name

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def is_debug(self) -> bool:
        return self.log_level == "DEBUG"
