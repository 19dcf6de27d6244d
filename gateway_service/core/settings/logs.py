"""Logging configuration settings."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_logging_yaml_source

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Structured logging configuration.

    Environment variables use LOG_ prefix.
    Example: LOG_LEVEL=INFO, LOG_JSON_LOGS=true
    """

    service_name: str = Field(
        default="gateway-service",
        description="Service name added to every JSON log record",
    )

    level: LogLevel = Field(
        default="INFO",
        description="Logging level (DEBUG|INFO|WARNING|ERROR|CRITICAL)",
    )

    json_logs: bool = Field(
        default=True,
        description="Enable JSON-formatted structured logs",
    )

    console_enabled: bool = Field(
        default=True,
        description="Enable console/stderr logging",
    )

    file_path: str | None = Field(
        default=None,
        max_length=500,
        description="Log file path (None to disable file logging)",
    )
    file_max_bytes: int = Field(
        default=10_485_760,
        ge=1024,
        le=1_073_741_824,
        description="Max log file size in bytes (10MB, max 1GB)",
    )
    file_backup_count: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Number of backup log files to keep",
    )

    include_context: bool = Field(
        default=True,
        description="Inject contextvar log context into every record",
    )
    capture_warnings: bool = Field(
        default=True,
        description="Forward Python warnings to logging",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Customize settings source precedence."""
        return (
            init_settings,
            create_logging_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def level_int(self) -> int:
        """Get numeric log level."""
        import logging

        return getattr(logging, self.level.upper(), logging.INFO)

    def to_logging_kwargs(self) -> dict[str, Any]:
        """Return kwargs suitable for configure_logging(...)."""
        return {
            "service_name": self.service_name,
            "log_level": self.level,
            "json_logs": self.json_logs,
            "console_enabled": self.console_enabled,
            "file_path": self.file_path,
            "file_max_bytes": self.file_max_bytes,
            "file_backup_count": self.file_backup_count,
            "include_context": self.include_context,
            "capture_warnings": self.capture_warnings,
        }
