"""
Client Configuration

Connection, retry and persistence settings for the review client, read
from the environment (and a .env file) through pydantic-settings.
Interaction defaults for the terminal driver live in config/default.yaml.

Usage:
    from review_client.config import settings

    base_url = settings.API_BASE_URL
    attempts = settings.RETRY_MAX_ATTEMPTS
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Word Review Client"
    DEBUG: bool = False

    # Remote review service
    API_BASE_URL: str = "http://localhost:8080/api"
    API_AUTH_TOKEN: str = ""
    API_TIMEOUT_SECONDS: float = 30.0

    # Retry / backoff for remote calls.
    # Delay before attempt n+1 = base * 2^(n-1) + uniform(0, jitter)
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_BASE_DELAY_SECONDS: float = 1.0
    RETRY_JITTER_SECONDS: float = 1.0

    # Local session persistence (resume after reload/crash)
    SESSION_STORE_DIR: str = "~/.word_review"
    SESSION_STORAGE_KEY: str = "active_review_session"

    # Session start validation
    REVIEW_DEFAULT_LIMIT: int = 20
    REVIEW_MIN_LIMIT: int = 1
    REVIEW_MAX_LIMIT: int = 100

    @property
    def SESSION_STORE_PATH(self) -> Path:
        """Expanded directory for the local session store."""
        return Path(self.SESSION_STORE_DIR).expanduser()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
