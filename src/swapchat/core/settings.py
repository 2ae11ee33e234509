"""Application settings and configuration.

This module defines all configuration options for the SwapChat service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="SwapChat", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Caller identity (tokens are issued elsewhere on the platform)
    secret_key: str = Field(default="dev-secret-change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./swapchat.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Icons fall back to a default profile picture on this domain
    image_domain: str = Field(default="images.example.org", alias="IMAGE_DOMAIN")

    # Moderation
    review_flood_window_hours: int = Field(default=24, alias="REVIEW_FLOOD_WINDOW_HOURS")
    review_page_size: int = Field(default=100, alias="REVIEW_PAGE_SIZE")
    max_page_size: int = Field(default=1000, alias="MAX_PAGE_SIZE")

    # Engagement
    typing_delay_seconds: int = Field(default=30, alias="TYPING_DELAY_SECONDS")

    # Room lists
    user_chat_active_days: int = Field(default=31, alias="USER_CHAT_ACTIVE_DAYS")
    mod_chat_active_days: int = Field(default=365, alias="MOD_CHAT_ACTIVE_DAYS")
    room_page_size: int = Field(default=50, alias="ROOM_PAGE_SIZE")
    snippet_length: int = Field(default=30, alias="SNIPPET_LENGTH")
    aggregation_timeout_seconds: float = Field(
        default=10.0,
        alias="AGGREGATION_TIMEOUT_SECONDS",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def default_icon(self) -> str:
        """Icon used when neither the participant nor the group has an image."""
        return f"https://{self.image_domain}/defaultprofile.png"


settings = Settings()
