"""
Shared configuration management for the Blog API.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="BLOG_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # External services
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_socket_timeout: float = Field(default=5.0, gt=0)
    postgres_dsn: str = Field(default="postgresql://localhost:5432/blog")
    postgres_min_pool: int = Field(default=2, ge=1)
    postgres_max_pool: int = Field(default=25, ge=1)

    # Startup
    connect_retries: int = Field(default=30, ge=1)
    connect_retry_delay: float = Field(default=2.0, ge=0)

    # Cache
    cache_ttl_seconds: int = Field(default=300, gt=0)

    # Background work
    view_count_queue_size: int = Field(default=1000, ge=1)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
