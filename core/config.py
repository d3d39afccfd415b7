"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for siteadmin happen here. No module should
call os.getenv() or os.environ.get() directly. Entrypoints (asgi.py, main.py)
build a Settings value once and pass it down explicitly: the token issuer,
request authenticator and database engine receive it as a constructor
argument and never reach back into the environment.

Design patterns used:
  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  Singleton via lru_cache: get_settings() instantiates Settings once for the
      process entrypoint. Library code takes a Settings argument instead.

Configuration-fatal rules:
  SECRET_KEY missing or blank -> ValidationError. There is no generated or
      default key: a token signed with a key nobody configured is worse than
      a server that refuses to start.
  SECRET_KEY shorter than 32 chars -> ValidationError (HS256 key entropy).
  PORT outside 1..65535 -> ValidationError.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, content/ or migrations/.
"""

import logging
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("siteadmin.config")

# 7 days, the session lifetime the admin UI is built around.
DEFAULT_TOKEN_EXPIRE_SECONDS = 7 * 24 * 60 * 60


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field except secret_key has a default, so tests can construct
    Settings(secret_key=..., database_url=...) without touching the
    environment.
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
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 5000
    database_url: str = "sqlite:///data/database.sqlite"
    # Comma-separated list, e.g. "https://example.com,https://admin.example.com"
    cors_origin: str = "http://localhost:3000"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    secret_key: str
    token_expire_seconds: int = DEFAULT_TOKEN_EXPIRE_SECONDS

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "30/15 minutes"
    rate_limit_enabled: bool = True

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError(
                "SECRET_KEY is required. Set SECRET_KEY in your environment or .env file."
            )
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("PORT must be a positive integer between 1 and 65535.")
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        return v.strip()

    @field_validator("token_expire_seconds")
    @classmethod
    def validate_token_expire_seconds(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be greater than 0")
        return v

    @property
    def cors_origins(self) -> list[str]:
        """CORS_ORIGIN split on commas, blanks dropped."""
        origins = [o.strip() for o in self.cors_origin.split(",")]
        return [o for o in origins if o]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings instance for an entrypoint.

    Raises pydantic.ValidationError when the environment is not usable
    (missing SECRET_KEY, invalid PORT). Callers let it propagate: the
    process must not start in that state.

    In tests: construct Settings(...) directly instead, or call
    get_settings.cache_clear() after changing the environment.
    """
    return Settings()
