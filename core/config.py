"""
core/config.py -- Centralized configuration via pydantic-settings.

All environment variable reads for gauth happen here. No module should call
os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. database_url -> DATABASE_URL). Type coercion and validation are
      built in.

  @model_validator(mode="after"): Cross-field checks run after all fields are
      resolved, so a bad value fails at startup instead of at first use.

Layer rule: core/ may not import from store/ or main.py.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("gauth.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'gauth.db'}"

# Keys shorter than this are guessable; longer than the api_key column cannot be stored.
_MIN_API_KEY_LENGTH = 16
_MAX_API_KEY_LENGTH = 256


class Settings(BaseSettings):
    """Settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in tests
    without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    # Any SQLAlchemy URL. PostgreSQL in production, SQLite file by default.
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    debug: bool = False

    # ------------------------------------------------------------------
    # API keys
    # ------------------------------------------------------------------

    # Length of keys generated by `add-key` when no explicit key is given.
    api_key_length: int = 32

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Reject an empty DATABASE_URL and out-of-range API_KEY_LENGTH."""
        self.database_url = self.database_url.strip()
        if not self.database_url:
            raise ValueError("DATABASE_URL must not be empty.")
        if not _MIN_API_KEY_LENGTH <= self.api_key_length <= _MAX_API_KEY_LENGTH:
            raise ValueError(
                f"API_KEY_LENGTH must be between {_MIN_API_KEY_LENGTH} and {_MAX_API_KEY_LENGTH}, "
                f"got {self.api_key_length}."
            )
        if ":memory:" in self.database_url or "mode=memory" in self.database_url:
            logger.warning("DATABASE_URL points at an in-memory database. Nothing will persist across restarts.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
