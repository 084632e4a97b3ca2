from __future__ import annotations

import sys
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_DEFAULT_JWT_SECRET = "change-me-in-production-use-long-random-string"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="EDULINK_")

    # Database
    database_url: str = "sqlite:///./edulink.db"
    log_sql: bool = False

    # Server
    environment: str = "development"
    log_level: str = "info"
    log_format: str = "json"
    allow_cors_origins: List[str] = ["*"]

    # Sessions
    jwt_secret: str = _DEFAULT_JWT_SECRET
    jwt_expire_minutes: int = 480  # 8 hours
    session_cookie_name: str = "edulink_session"
    session_cookie_secure: bool = False
    session_refresh_minutes: int = 60

    # Gate
    lookup_timeout_seconds: float = 5.0
    enforce_approval: bool = False

    # Rate limiting (login endpoint only; the global gate limit is fixed)
    login_rate_limit: str = "10/minute"

    # Wallets
    default_currency: str = "KES"

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, v: str, info) -> str:
        """Refuse to start in production with the default JWT secret."""
        env = info.data.get("environment", "development")
        if env != "development" and v == _DEFAULT_JWT_SECRET:
            print(
                "\nFATAL: EDULINK_JWT_SECRET is set to the default value.\n"
                "   Set EDULINK_JWT_SECRET to a strong random string before "
                "running in production.\n",
                file=sys.stderr,
            )
            raise ValueError(
                "JWT secret must be changed from default in non-development environments. "
                "Set EDULINK_JWT_SECRET env var."
            )
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()


# Module-level singleton for convenience
settings = get_settings()
