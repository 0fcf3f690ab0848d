"""Application settings and configuration.

This module defines all configuration options for the mx-space application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="mx-space", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./mx-space.db",
        alias="DATABASE_URL",
    )
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Redis backs the per-day read/like de-duplication; in-process sets otherwise.
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Site owner ("master") identity
    master_username: str = Field(default="master", alias="MASTER_USERNAME")
    master_name: str = Field(default="Master", alias="MASTER_NAME")
    master_mail: str | None = Field(default=None, alias="MASTER_MAIL")
    master_url: str | None = Field(default=None, alias="MASTER_URL")
    master_password_hash: str | None = Field(default=None, alias="MASTER_PASSWORD_HASH")

    # Comment anti-spam settings
    comment_spam_check: bool = Field(default=True, alias="COMMENT_SPAM_CHECK")
    comment_spam_keywords: list[str] = Field(default=[], alias="COMMENT_SPAM_KEYWORDS")
    comment_block_ips: list[str] = Field(default=[], alias="COMMENT_BLOCK_IPS")

    # Scheduled maintenance
    maintenance_enabled: bool = Field(default=True, alias="MAINTENANCE_ENABLED")
    maintenance_interval_seconds: float = Field(
        default=60 * 60 * 24,
        alias="MAINTENANCE_INTERVAL_SECONDS",
    )
    access_record_retention_days: int = Field(default=7, alias="ACCESS_RECORD_RETENTION_DAYS")
    temp_dir: str = Field(default="./tmp", alias="TEMP_DIR")

    # Uploaded images
    upload_dir: str = Field(default="./uploads", alias="UPLOAD_DIR")
    upload_max_bytes: int = Field(default=6 * 1024 * 1024, alias="UPLOAD_MAX_BYTES")

    # CORS configuration for the admin panel and public site
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

        Converts async driver URLs so Alembic migrations can run with the
        synchronous drivers.

        Returns:
            Database URL compatible with synchronous database drivers
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        if url.startswith("sqlite+aiosqlite"):
            return url.replace("sqlite+aiosqlite", "sqlite", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
