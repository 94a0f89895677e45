"""
Shared configuration management for the FluxFlix catalog service.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SEED_TITLES = [
    "Flux Gordon",
    "Enter the Mono<Void>",
    "Back to the Future",
    "AEon Flux",
]


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Storage
    repository_backend: str = Field(default="memory")
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Event streams
    stream_interval_seconds: float = Field(default=1.0)

    # Security
    required_role: str = Field(default="stream")
    access_pattern: str = Field(default="/**")
    default_password: str = Field(default="password")

    # Startup data
    seed_on_startup: bool = Field(default=True)
    seed_titles: List[str] = Field(default_factory=lambda: list(DEFAULT_SEED_TITLES))

    @field_validator("stream_interval_seconds")
    @classmethod
    def _positive_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("stream_interval_seconds must be positive")
        return value

    @field_validator("repository_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("memory", "redis"):
            raise ValueError(f"Unknown repository backend: {value}")
        return value


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
