"""
Configuration module for cayley-client.

Uses pydantic-settings for environment-based configuration of the
Cayley graph database endpoint.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Client settings loaded from environment variables.

    Logging is configured separately through CAYLEY_CLIENT_LOG_LEVEL
    (see src.core.logging).

    The target URL is fixed at client construction:
    http://{cayley_host}:{cayley_port}/api/{cayley_api_version}/query/gremlin
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===========================================
    # CAYLEY CONFIGURATION
    # ===========================================
    cayley_host: str = Field(default="localhost", description="Cayley HTTP host")
    cayley_port: int = Field(
        default=64210,
        ge=1,
        le=65535,
        description="Cayley HTTP port",
    )
    cayley_api_version: str = Field(
        default="v1",
        description="API version segment of the query URL",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
