from __future__ import annotations

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # Supabase (service-role key: the recovery job reads and writes every creator's videos)
    supabase_url: str = ""
    supabase_key: str = ""

    # Trigger auth
    cron_secret: str = ""
    admin_api_key: str = ""
    environment: str = "development"

    # Inngest event API
    inngest_event_key: str = ""
    inngest_base_url: str = "https://inn.gs"
    inngest_timeout_seconds: float = 10.0

    # Recovery policy
    max_recovery_attempts: int = 3
    min_retry_interval_minutes: int = 60

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


def configure_logging(level: str = "INFO") -> None:
    """Route every module's ``logging.getLogger(__name__)`` output to stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


settings = get_settings()
