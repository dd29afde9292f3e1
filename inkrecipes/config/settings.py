"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional, List, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
from pathlib import Path

from ..models.schemas import DitherMethod


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Ink Recipes Renderer", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # Redis Configuration
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    redis_max_connections: int = Field(default=20, description="Redis connection pool size")
    mixup_store: str = Field(default="redis", description="Mixup persistence backend: redis, memory")
    mixup_key_prefix: str = Field(default="inkrecipes:mixup", description="Redis key prefix for mixups")

    # Storage Configuration
    storage_path: Path = Field(default=Path("./storage"), description="Storage directory path")
    recipes_config_path: Optional[Path] = Field(
        default=None, description="Override for the bundled recipes.yaml table"
    )

    # Cache Configuration
    props_cache_ttl: int = Field(
        default=300, ge=0, description="Resolved props TTL in seconds (0 keeps for process lifetime)"
    )
    render_cache_ttl: int = Field(
        default=60, ge=0, description="Rendered output TTL in seconds (0 keeps for process lifetime)"
    )
    render_cache_max_entries: int = Field(
        default=64, ge=1, description="Rendered outputs kept before the least recently used are evicted"
    )

    # Rendering Configuration
    default_width: int = Field(default=800, description="Default device width")
    default_height: int = Field(default=480, description="Default device height")
    max_width: int = Field(default=2000, description="Maximum render width")
    max_height: int = Field(default=2000, description="Maximum render height")
    default_grayscale: int = Field(default=2, description="Default number of gray levels")
    preserve_edges: bool = Field(
        default=True, description="Snap near-black/white pixels and text edges when dithering"
    )
    dither_method: DitherMethod = Field(
        default=DitherMethod.ATKINSON, description="Halftoning algorithm: atkinson, floyd-steinberg, bayer"
    )
    data_fetch_timeout: float = Field(default=10.0, gt=0, description="Data source timeout in seconds")

    # Browser Configuration
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    playwright_timeout: int = Field(default=15000, description="Playwright timeout in milliseconds")
    browser_pool_size: int = Field(default=2, description="Browser instance pool size")

    # Data source HTTP configuration
    http_timeout: float = Field(default=8.0, description="Data source HTTP timeout in seconds")
    http_user_agent: str = Field(
        default="inkrecipes/1.0 (+https://github.com/inkrecipes)", description="Data source user agent"
    )

    # API Documentation Configuration
    enable_docs: bool = Field(default=True, description="Enable FastAPI docs endpoint")

    # Security Configuration
    allowed_hosts: List[str] = Field(default=["*"], description="Allowed hosts for CORS")

    log_level: str = Field(default="INFO", description="Logging level")

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

    @field_validator("mixup_store")
    @classmethod
    def validate_mixup_store(cls, v: str) -> str:
        """Validate mixup store backend."""
        allowed = {"redis", "memory"}
        if v.lower() not in allowed:
            raise ValueError(f"Mixup store must be one of: {allowed}")
        return v.lower()

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse allowed hosts from string or list."""
        if isinstance(v, str):
            # Handle JSON-like string: ["*"] or ["host1", "host2"]
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            # Handle comma-separated string: "*" or "host1,host2"
            return [host.strip() for host in v.split(",") if host.strip()]
        return v

    @field_validator("storage_path")
    @classmethod
    def create_directories(cls, v: Path) -> Path:
        """Ensure directories exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="INKRECIPES_"
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
