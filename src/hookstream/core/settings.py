"""Application settings and configuration.

This module defines all configuration options for the hookstream relay.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="hookstream", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        alias="ENVIRONMENT",
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./hookstream.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Admin surface
    admin_api_key: str | None = Field(default=None, min_length=16, alias="ADMIN_API_KEY")

    # Downstream stream API
    stream_api_url: str = Field(default="http://localhost:8080", alias="STREAM_API_URL")
    stream_api_token: str = Field(default="", alias="STREAM_API_TOKEN")
    stream_api_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        alias="STREAM_API_TIMEOUT_SECONDS",
    )

    # Retry scheduler
    retry_job_enabled: bool = Field(default=True, alias="RETRY_JOB_ENABLED")
    retry_job_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        alias="RETRY_JOB_INTERVAL_SECONDS",
    )
    retry_job_max_retries: int = Field(default=10, ge=1, alias="RETRY_JOB_MAX_RETRIES")
    retry_job_batch_size: int = Field(default=100, ge=1, alias="RETRY_JOB_BATCH_SIZE")
    retry_base_delay_seconds: int = Field(default=60, ge=1, alias="RETRY_BASE_DELAY_SECONDS")
    retry_max_delay_seconds: int = Field(default=3600, ge=1, alias="RETRY_MAX_DELAY_SECONDS")
    retry_initial_delay_seconds: int = Field(
        default=60,
        ge=0,
        alias="RETRY_INITIAL_DELAY_SECONDS",
    )

    # CORS configuration
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
