"""Centralized settings using pydantic-settings.

This module provides a single source of truth for configuration loaded from
environment variables. Uses pydantic for automatic validation, type coercion,
and documentation.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_RABBITMQ_SERVICE_NAME


class Settings(BaseSettings):
    """Configuration loaded from environment variables.

    All settings have sensible defaults. Override via environment variables
    as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Enable correlation IDs in logs to group one sync pass",
    )

    # Reconciliation behavior
    dry_run: bool = Field(
        default=False,
        validation_alias="DRY_RUN",
        description="Report changes without applying them through the provider",
    )
    rabbitmq_service_name: str = Field(
        default=DEFAULT_RABBITMQ_SERVICE_NAME,
        validation_alias="RABBITMQ_SERVICE_NAME",
        description="Service that rabbitmq_user resources implicitly require",
    )

    # Tracing
    tracing_enabled: bool = Field(
        default=False,
        validation_alias="TRACING_ENABLED",
        description="Enable OpenTelemetry tracing of sync passes",
    )
    tracing_endpoint: str = Field(
        default="http://localhost:4317",
        validation_alias="OTEL_EXPORTER_OTLP_ENDPOINT",
        description="OTLP collector endpoint (gRPC)",
    )
    tracing_sample_rate: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        validation_alias="TRACING_SAMPLE_RATE",
        description="Fraction of root spans to sample (0.0-1.0)",
    )
    tracing_service_name: str = Field(
        default="rabbitmq-declarative",
        validation_alias="TRACING_SERVICE_NAME",
        description="Service name reported on exported spans",
    )


# Global settings instance - initialized once at module import
settings = Settings()
