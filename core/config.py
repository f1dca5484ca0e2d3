"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Postgate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. The
      lifespan in api/main.py reads it once and injects the values into the
      TokenService and BlogStore constructors.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET). Type coercion and validation are built in.

  @model_validator(mode="after"): dev mode (DEBUG=true) auto-generates a
      signing secret with a warning. Outside dev mode a missing secret is left
      empty here and rejected by TokenService at startup with ConfigurationError.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or blog/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("postgate.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'postgate.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured".
    jwt_secret: str = ""
    min_secret_length: int = 32
    # Claims.exp is always iat + 24h.
    token_ttl_seconds: int = 24 * 60 * 60
    # bcrypt cost factor; 12 is the library default. Tests lower it to 4.
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    @model_validator(mode="after")
    def fill_dev_secret(self) -> "Settings":
        """Generate a throwaway JWT_SECRET in dev mode.

        Tokens signed with a generated secret do not survive a restart, which
        is acceptable for local development only.
        """
        if not self.jwt_secret and self.debug:
            self.jwt_secret = secrets.token_hex(32)
            logger.warning("Using auto-generated JWT_SECRET. Tokens will not survive a restart.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
