"""Shared configuration management for the invoicing platform.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Service configuration
    service_name: str = Field(
        default="invoicing-platform",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # Document rendering
    currency_symbol: str = Field(
        default="€",
        description="Currency symbol appended to every rendered amount",
    )
    logo_max_bytes: int = Field(
        default=500 * 1024,
        description="Maximum accepted logo image size in bytes",
        gt=0,
    )

    # Record store configuration
    record_store: Literal["memory", "minio"] = Field(
        default="memory",
        description="Record store backend: memory (process-local), minio (S3-compatible)",
    )

    # Storage configuration (S3-compatible object storage)
    storage_endpoint: str = Field(
        default="localhost:9000",
        description="S3-compatible storage endpoint (host:port)",
    )
    storage_access_key: str = Field(
        default="",
        description="Storage access key (use env var APP_STORAGE_ACCESS_KEY)",
    )
    storage_secret_key: str = Field(
        default="",
        description="Storage secret key (use env var APP_STORAGE_SECRET_KEY)",
    )
    storage_bucket: str = Field(
        default="invoicing",
        description="Bucket holding users, issuer profiles and issued documents",
    )
    storage_secure: bool = Field(
        default=False,
        description="Use HTTPS for storage connections",
    )

    # Authentication
    admin_email: str = Field(
        default="admin@example.com",
        description="Email of the administrator account seeded on start-up",
    )
    admin_password: str = Field(
        default="admin",
        description="Initial administrator password (use env var APP_ADMIN_PASSWORD)",
    )
    password_hash_rounds: int = Field(
        default=12,
        description="bcrypt cost factor for stored password hashes",
        ge=4,
        le=31,
    )


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
