"""
Application configuration loaded from environment variables.

All configuration is validated at startup to fail fast on misconfiguration.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with validation.

    All settings are loaded from environment variables with the same name.
    Use .env file for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./anticipation.db",
        description="SQLAlchemy async connection string (aiosqlite or asyncpg driver)"
    )
    database_echo: bool = Field(
        default=False,
        description="Log every SQL statement emitted by the engine"
    )

    # Server
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed error messages"
    )
    enable_cleanup: bool | None = Field(
        default=None,
        description="Expose the cleanup endpoint (defaults to the debug flag)"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:4200"],
        description="Origins allowed to call the API from a browser"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    @property
    def cleanup_enabled(self) -> bool:
        """Whether the bulk-delete endpoint may be served."""
        if self.enable_cleanup is None:
            return self.debug
        return self.enable_cleanup

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once at startup and cached for subsequent calls.
    This ensures consistent configuration across the application lifecycle.
    """
    return Settings()
