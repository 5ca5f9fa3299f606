"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Defaults reproduce the fixed constants of a batch run; every value can be
overridden with a ``PRICE_TAGS_`` environment variable or a ``.env`` file.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )

    # Data Configuration
    products_file: Path = Field(
        default=Path("products.json"), description="JSON array of product records"
    )
    output_dir: Path = Field(
        default=Path("generated_cards"), description="Directory receiving generated images"
    )
    images_dir: Path = Field(default=Path("images"), description="Directory of product photos")
    static_dir: Path = Field(default=Path("."), description="Directory served at the site root")

    # Server Configuration
    host: str = Field(default="127.0.0.1", description="Page server host")
    port: int = Field(default=3000, ge=0, le=65535, description="Page server port")

    # Browser Configuration
    viewport_width: int = Field(default=1368, gt=0, description="Capture viewport width")
    viewport_height: int = Field(default=768, gt=0, description="Capture viewport height")
    device_scale_factor: float = Field(default=2.0, gt=0, le=4.0, description="Device pixel ratio")
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    playwright_timeout: int = Field(default=30000, description="Playwright timeout in milliseconds")
    webp_quality: int = Field(default=90, ge=1, le=100, description="WebP encoder quality")

    # Worker Configuration
    worker_fraction: float = Field(
        default=0.75, description="Share of logical CPUs used as capture workers"
    )
    worker_count: Optional[int] = Field(
        default=None, ge=1, description="Explicit worker count, overrides worker_fraction"
    )
    worker_timeout: Optional[float] = Field(
        default=None, gt=0, description="Seconds to wait for all workers, None waits forever"
    )
    worker_start_method: str = Field(
        default="spawn", description="multiprocessing start method for capture workers"
    )
    persist_only_captured: bool = Field(
        default=False, description="Only mark products caught up when their capture succeeded"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Optional[Path] = Field(default=None, description="Directory for rotating log files")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("worker_fraction")
    @classmethod
    def validate_worker_fraction(cls, v: float) -> float:
        """Validate worker fraction lies in (0, 1]."""
        if not 0 < v <= 1:
            raise ValueError("Worker fraction must be greater than 0 and at most 1")
        return v

    @field_validator("worker_start_method")
    @classmethod
    def validate_start_method(cls, v: str) -> str:
        """Validate multiprocessing start method."""
        allowed = {"spawn", "fork", "forkserver"}
        if v not in allowed:
            raise ValueError(f"Worker start method must be one of: {allowed}")
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="PRICE_TAGS_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
