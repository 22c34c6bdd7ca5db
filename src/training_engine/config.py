"""Configuration settings for the training decision engine."""

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


# __file__ = src/training_engine/config.py
# .parent.parent.parent = project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Database
    database_path: Path | None = None

    # Shared secret for the cron trigger (empty = not configured)
    cron_secret: str = ""

    # Nightly load monitor schedule (UTC)
    load_monitor_enabled: bool = True
    load_monitor_hour: int = 2
    load_monitor_minute: int = 0

    def model_post_init(self, __context) -> None:
        """Set default database path after initialization."""
        if self.database_path is None:
            self.database_path = PROJECT_ROOT / "training_engine.db"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
