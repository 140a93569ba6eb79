"""Application configuration using pydantic-settings."""
from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Development mode - bypasses auth for local development
    dev_mode: bool = Field(default=False, validation_alias="DEV_MODE")

    # Bearer tokens are issued by the identity provider; we only verify them
    jwt_secret: str = Field(default="", validation_alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    jwt_audience: str = Field(default="", validation_alias="JWT_AUDIENCE")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ORIGINS",
    )

    # YouTube Data API - used by the description push pipeline
    youtube_api_base_url: str = Field(
        default="https://www.googleapis.com/youtube/v3",
        validation_alias="YOUTUBE_API_BASE_URL",
    )
    youtube_access_token: str = Field(default="", validation_alias="YOUTUBE_ACCESS_TOKEN")
    push_timeout_seconds: float = Field(default=30.0, validation_alias="PUSH_TIMEOUT_SECONDS")
    push_max_attempts: int = Field(default=3, ge=1, validation_alias="PUSH_MAX_ATTEMPTS")
    push_backoff_seconds: float = Field(
        default=1.0, ge=0, validation_alias="PUSH_BACKOFF_SECONDS",
    )

    # Composition
    default_separator: str = Field(default="\n\n", validation_alias="DEFAULT_SEPARATOR")
    max_template_length: int = Field(default=5000, validation_alias="MAX_TEMPLATE_LENGTH")
    # YouTube rejects descriptions longer than 5000 characters
    max_description_length: int = Field(
        default=5000, validation_alias="MAX_DESCRIPTION_LENGTH",
    )

    @model_validator(mode="after")
    def validate_dev_mode_security(self) -> "Settings":
        """
        Prevent DEV_MODE from being enabled with a production database.

        DEV_MODE completely bypasses authentication, so we must ensure it's only
        used with local development databases. File-based and in-memory SQLite
        databases are always local.
        """
        if not self.dev_mode:
            return self

        try:
            parsed = urlparse(self.database_url)
            scheme = parsed.scheme
            hostname = parsed.hostname or ""
        except ValueError:
            scheme = ""
            hostname = ""

        if scheme.startswith("sqlite"):
            return self

        local_hosts = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}
        if hostname.lower() not in local_hosts:
            raise ValueError(
                f"DEV_MODE cannot be enabled with a non-local database. "
                f"Database host '{hostname}' appears to be a production database. "
                f"DEV_MODE bypasses all authentication and must only be used locally.",
            )

        return self

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
