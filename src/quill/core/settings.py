"""Application settings and configuration.

This module defines all configuration options for the Quill API.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Quill API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    admin_secret: str = Field(alias="ADMIN_SECRET")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./quill.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    transaction_timeout_seconds: int = Field(default=30, alias="TRANSACTION_TIMEOUT_SECONDS")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 3,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Non-admin data retention
    purge_enabled: bool = Field(default=True, alias="PURGE_ENABLED")
    purge_interval_hours: float = Field(default=12.0, alias="PURGE_INTERVAL_HOURS")

    # Character finder games left unfinished are dropped after this many days
    finder_passive_days: int = Field(default=3, alias="FINDER_PASSIVE_DAYS")

    # Image uploads and object storage
    max_file_size_mb: float = Field(default=2.0, alias="MAX_FILE_SIZE_MB")
    storage_url: str | None = Field(default=None, alias="STORAGE_URL")
    storage_key: str | None = Field(default=None, alias="STORAGE_KEY")
    storage_bucket: str = Field(default="images", alias="STORAGE_BUCKET")
    storage_root_dir: str = Field(default="quill", alias="STORAGE_ROOT_DIR")
    storage_bucket_url: str | None = Field(default=None, alias="STORAGE_BUCKET_URL")
    storage_http_timeout_seconds: float = Field(
        default=10.0,
        alias="STORAGE_HTTP_TIMEOUT_SECONDS",
    )

    # Visitor tracking cookies
    visitor_cookie_max_age_days: int = Field(default=365, alias="VISITOR_COOKIE_MAX_AGE_DAYS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
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

    @property
    def purge_interval_seconds(self) -> float:
        """Return the purge interval expressed in seconds."""
        return self.purge_interval_hours * 3600

    @property
    def max_file_size_bytes(self) -> int:
        """Return the upload size limit in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)

    @property
    def storage_enabled(self) -> bool:
        """Return True when object storage credentials are configured."""
        return bool(self.storage_url and self.storage_key)


settings = Settings()  # type: ignore[call-arg]
