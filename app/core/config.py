"""
Application configuration using Pydantic Settings.
Loads from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Snapcaption Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # API
    api_v1_prefix: str = "/api/v1"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Database - Individual settings (recommended)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_database: str = "snapcaption"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    database_url_override: Optional[str] = None  # e.g. sqlite+aiosqlite:///./dev.db

    # Database pool settings
    database_pool_size: int = 10
    database_max_overflow: int = 10

    @property
    def database_url(self) -> str:
        """Build database URL from individual components."""
        if self.database_url_override:
            return self.database_url_override
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_database}"

    # Redis
    redis_url: RedisDsn = Field(default="redis://localhost:6379/0")
    style_profile_cache_ttl: int = 0  # 0 = recompute profiles on every request

    # OpenAI (captioning)
    openai_api_key: str = ""
    openai_vision_model: str = "gpt-4o"
    caption_temperature: float = 0.7
    caption_max_tokens: int = 600
    caption_timeout: int = 60
    caption_max_retries: int = 3

    # Instagram
    instagram_app_id: str = ""
    instagram_app_secret: str = ""
    instagram_redirect_uri: str = "http://localhost:8000/api/v1/auth/instagram/callback"
    instagram_oauth_base_url: str = "https://api.instagram.com"
    instagram_graph_base_url: str = "https://graph.instagram.com"
    instagram_media_limit: int = 25
    instagram_http_timeout: float = 30.0

    # Username scraper (instaloader CLI)
    instaloader_executable: str = "instaloader"
    instaloader_work_dir: str = "./temp_insta"
    instaloader_post_count: int = 10
    instaloader_timeout_seconds: int = 120

    # Style analysis
    analyzer_refresh_timeout_seconds: float = 45.0

    # Authentication
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    oauth_state_ttl_seconds: int = 600  # 10 minutes

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "console"

    # Sentry (Error Tracking)
    sentry_dsn: str = ""
    sentry_environment: str = "development"
    sentry_traces_sample_rate: float = 0.1


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
