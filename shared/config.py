"""
Shared configuration management for the todos proxy.
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_API_URL = "https://jsonplaceholder.typicode.com/todos"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    # Rate limiting (window in minutes, max requests per window)
    rate_limit_window: int = Field(default=1)
    rate_limit_max: int = Field(default=10)

    # Caching (seconds)
    cache_duration: int = Field(default=60)

    # Upstream
    api_url: str = Field(default=DEFAULT_API_URL)
    upstream_timeout: float = Field(default=10.0)

    # Local snapshot
    snapshot_path: str = Field(default="data.json")
    refresh_interval: int = Field(default=0)

    @field_validator("port", "rate_limit_window", "rate_limit_max", "cache_duration", mode="before")
    @classmethod
    def _positive_int_or_default(cls, value: Any, info) -> Any:
        """Fall back to the field default for empty, unparsable or non-positive values."""
        default = cls.model_fields[info.field_name].default
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return default
        return parsed if parsed > 0 else default

    @field_validator("upstream_timeout", mode="before")
    @classmethod
    def _positive_float_or_default(cls, value: Any) -> Any:
        try:
            parsed = float(value)
        except (TypeError, ValueError):
            return 10.0
        return parsed if parsed > 0 else 10.0

    @field_validator("refresh_interval", mode="before")
    @classmethod
    def _non_negative_interval(cls, value: Any) -> Any:
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return 0
        return max(0, parsed)

    @property
    def rate_limit_window_ms(self) -> int:
        """Rate limit window converted to milliseconds."""
        return self.rate_limit_window * 60 * 1000


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str

    def __init__(self, service_name: str, **kwargs):
        super().__init__(service_name=service_name, **kwargs)


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
