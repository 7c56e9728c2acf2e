"""
Application settings module.

Manages all configuration via environment variables using pydantic-settings.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class PostgresSettings(BaseSettings):
    """PostgreSQL connection settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="PG_", extra="ignore")

    host: str = "localhost"
    port: int = 5432
    user: str = "admin"
    password: str = "1234"
    database: str = "listings_dev"
    pool_max: int = 10

    @property
    def dsn(self) -> str:
        """Generate PostgreSQL DSN."""
        return (
            f"postgresql://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class RedisSettings(BaseSettings):
    """Redis connection settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="REDIS_", extra="ignore")

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str = ""

    @property
    def url(self) -> str:
        """Generate Redis URL."""
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class AnthropicSettings(BaseSettings):
    """Enrichment (Anthropic Messages API) settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="ANTHROPIC_", extra="ignore")

    api_key: str = ""
    model: str = "claude-haiku-4-5-20251001"
    fallback_model: str = "claude-sonnet-4-5-20250929"
    api_url: str = "https://api.anthropic.com/v1/messages"
    api_version: str = "2023-06-01"

    timeout: int = 30         # ANTHROPIC_TIMEOUT (seconds)
    max_tokens: int = 4096    # ANTHROPIC_MAX_TOKENS


class ScraperSettings(BaseSettings):
    """Scrape provider settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SCRAPER_", extra="ignore")

    provider: str = "otodom"
    import_limit: int = 10

    base_url: str = "https://www.otodom.pl"
    search_path: str = "/pl/wyniki/sprzedaz/mieszkanie"
    max_pages: int = 5
    page_delay: float = 1.0
    offer_delay: float = 1.0
    request_timeout: int = 30

    # Import interval in minutes
    interval_minutes: int = 60


class ImageSettings(BaseSettings):
    """Image download settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="IMAGE_", extra="ignore")

    head_timeout: int = 10
    download_timeout: int = 30
    min_body_bytes: int = 1_000
    max_gallery_images: int = 8
    max_fallback_images: int = 5
    storage_dir: str = "storage/media"


class QueueSettings(BaseSettings):
    """Background queue worker settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="QUEUE_", extra="ignore")

    poll_interval: float = 2.0   # seconds between empty polls
    enrichment_workers: int = 1
    media_workers: int = 2


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    cors_origins: str = "*"

    postgres: PostgresSettings = PostgresSettings()
    redis: RedisSettings = RedisSettings()
    anthropic: AnthropicSettings = AnthropicSettings()
    scraper: ScraperSettings = ScraperSettings()
    images: ImageSettings = ImageSettings()
    queue: QueueSettings = QueueSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
