"""
Shared configuration management for the Feature Toggle service.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="FEATURES_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment")
    log_level: str = Field(default="info", description="Root log level")
    json_logs: bool = Field(default=True, description="Render logs as JSON lines instead of console output")

    # Feature catalog
    catalog_path: Optional[str] = Field(default=None, description="Path to the JSON feature catalog")

    # Observability
    enable_tracing: bool = Field(default=False, description="Configure OpenTelemetry tracing on startup")
    otel_exporter: str = Field(default="http://localhost:4317", description="OTLP collector endpoint")
    enable_console_tracing: bool = Field(default=False, description="Also print spans to stdout")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
