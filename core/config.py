"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for loginapp happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Settings are read once, in the API lifespan, and the individual values are
handed to each component's constructor (UserStore gets database_url,
TokenIssuer gets the secret and lifetime, and so on). auth/ never imports
this module.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET). Type coercion and validation are built in.

  @model_validator(mode="after"): Cross-field validation after all fields are
      resolved. DEBUG=true generates a throwaway JWT secret with a warning;
      otherwise a missing secret refuses to start.

Security notes:
  JWT_SECRET shorter than 32 chars is rejected outright. HS256 signing relies
  on key entropy -- a short key weakens every token.

Layer rule: core/ may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("loginapp.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `jwt_secret` reads from JWT_SECRET, `jwt_expires_in` from JWT_EXPIRES_IN.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "127.0.0.1"
    port: int = 8001
    debug: bool = False
    frontend_url: str = "http://localhost:5173"

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = "sqlite:///loginapp.db"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_secret: str = ""
    jwt_expires_in: int = 604800  # 7 days
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_auth(self) -> "Settings":
        """Enforce JWT_SECRET and lifetime policy.

        Dev mode (DEBUG=true): auto-generate a random secret with a warning.
            Tokens will not survive a restart -- acceptable for local dev.

        Production mode: refuse to start without JWT_SECRET.

        Both modes: reject secrets shorter than 32 characters and
            non-positive token lifetimes.
        """
        if not self.jwt_secret:
            if self.debug:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("Using auto-generated JWT_SECRET. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "JWT_SECRET is required in production mode. "
                    "Set JWT_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        if self.jwt_expires_in <= 0:
            raise ValueError("JWT_EXPIRES_IN must be a positive number of seconds.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
