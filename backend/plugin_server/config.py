"""
Plugin Server Application Configuration
Environment driven settings for the plugin archive service
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Plugin Server"
    app_version: str = "1.0.0"
    debug: bool = False

    # HTTP
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = Field(
        default="sqlite:///./plugins.db",
        description="SQLAlchemy URL of the plugin store",
    )

    # File upload limits
    max_upload_size: int = 100 * 1024 * 1024  # 100MB

    # Logging
    log_level: str = "INFO"

    # User recorded on uploads when the request carries no X-User header
    default_user: Optional[str] = None

    @field_validator("api_prefix")
    @classmethod
    def api_prefix_must_be_absolute(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("API prefix must start with '/'")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def log_level_upper(cls, v: str) -> str:
        return v.upper()

    class Config:
        env_file = ".env"
        env_prefix = "PLUGIN_SERVER_"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings"""
    return Settings()
