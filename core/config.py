"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Ubiquitous happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. session_expire_seconds -> SESSION_EXPIRE_SECONDS).

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Bad values fail at startup, not on the
      first request that happens to read them.

Security notes:
  bcrypt_rounds is bounded to 4..16. Below 4 bcrypt refuses to hash; above 16
  a single login takes several seconds and becomes a self-inflicted DoS.

  secure_cookies must be true in production so the session cookie is only
  sent over HTTPS. It defaults to false so local HTTP development works.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or projects/.
"""

import logging
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("ubiquitous.config")


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
    # One logical store for users, projects, grants and access requests.
    database_url: str = "sqlite:///./ubiquitous.db"

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    session_expire_seconds: int = 86400
    session_cookie_name: str = "ubiquitous.sid"
    secure_cookies: bool = False
    # When true, every authenticated request pushes expires_at forward.
    session_rolling: bool = False
    session_purge_interval_seconds: int = 600

    # ------------------------------------------------------------------
    # Password hashing
    # ------------------------------------------------------------------

    bcrypt_rounds: int = 10

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"
    signup_rate_limit: str = "5/minute"

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    self_registration_enabled: bool = True

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost", "testserver"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        """Reject values that would make authentication unusable or unsafe."""
        if self.session_expire_seconds <= 0:
            raise ValueError("SESSION_EXPIRE_SECONDS must be a positive number of seconds.")
        if self.session_purge_interval_seconds <= 0:
            raise ValueError("SESSION_PURGE_INTERVAL_SECONDS must be a positive number of seconds.")
        if not 4 <= self.bcrypt_rounds <= 16:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 16.")
        if not self.session_cookie_name:
            raise ValueError("SESSION_COOKIE_NAME must not be empty.")
        if not self.secure_cookies and not self.debug:
            logger.warning("SECURE_COOKIES is off -- session cookies will be sent over plain HTTP.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
