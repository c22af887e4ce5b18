"""Application settings and configuration.

This module defines all process-level configuration options for SnipShare.
Settings are loaded from environment variables with sensible defaults.
Operator-tunable limits (rate thresholds, file size caps) are *not* kept here;
they live in the database and are loaded per operation, see
`snipshare.services.limits`.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="SnipShare", alias="APP_NAME")
    app_version: str = Field(default="1.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    admin_password: str = Field(default="", alias="ADMIN_PASSWORD")
    admin_token_ttl_seconds: int = Field(default=24 * 60 * 60, alias="ADMIN_TOKEN_TTL_SECONDS")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    cleanup_token: str | None = Field(default=None, alias="CLEANUP_TOKEN")

    # Database configuration
    database_url: str = Field(default="sqlite:///./snipshare.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Blob storage for uploaded files
    blob_storage_path: str = Field(default="./data/blobs", alias="BLOB_STORAGE_PATH")

    # Content limits that are not operator-tunable at runtime
    max_text_bytes: int = Field(default=500_000, alias="MAX_TEXT_BYTES")
    max_expiration_seconds: int = Field(
        default=14 * 24 * 60 * 60,
        alias="MAX_EXPIRATION_SECONDS",
    )
    snippet_id_length: int = Field(default=10, alias="SNIPPET_ID_LENGTH")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
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
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
