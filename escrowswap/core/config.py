"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from escrowswap.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "sqlite://",
    "sqlite+pysqlite://",
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
)


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False

    # Local file database by default; Postgres also accepted.
    DATABASE_URL: str = "sqlite:///./escrowswap.db"

    # Session cookie: opaque id signed with SESSION_SECRET, row kept server-side
    SESSION_SECRET: SecretStr = SecretStr("change-me-in-production")
    SESSION_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "escrowswap.sid"
    SESSION_MAX_AGE_HOURS: int = 24
    SESSION_COOKIE_SECURE: bool = False
    # Expired session rows are purged by `python -m escrowswap.retention`
    SESSION_RETENTION_ENABLED: bool = True

    # Seed admin created at startup when both are set
    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: SecretStr | None = None

    # Orders
    DEFAULT_PAYMENT_ADDRESS: str = "T-YOUR-TRC20-ADDRESS-HERE"
    ORDER_CODE_LENGTH: int = 8

    # Relay
    RELAY_MAX_MESSAGE_LENGTH: int = 2000

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.strip().startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a SQLite or PostgreSQL URL (e.g. sqlite:///./escrowswap.db)"
            )
        return v.strip()

    @field_validator("SESSION_SECRET")
    @classmethod
    def validate_session_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("SESSION_SECRET must be set and non-empty")
        return v

    @field_validator("SESSION_ALGORITHM")
    @classmethod
    def validate_session_algorithm(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SESSION_ALGORITHM must be set and non-empty")
        return v.strip()

    @field_validator("SESSION_COOKIE_NAME")
    @classmethod
    def validate_session_cookie_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SESSION_COOKIE_NAME must be set and non-empty")
        return v.strip()

    @field_validator("SESSION_MAX_AGE_HOURS")
    @classmethod
    def validate_session_max_age(cls, v: int) -> int:
        if v < 1 or v > 168:
            raise ValueError(
                "SESSION_MAX_AGE_HOURS must be between 1 and 168 (1 hour to 7 days)"
            )
        return v

    @field_validator("ADMIN_EMAIL")
    @classmethod
    def validate_admin_email(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        if "@" not in v:
            raise ValueError("ADMIN_EMAIL must be an e-mail address")
        return v.strip().lower()

    @field_validator("ADMIN_PASSWORD")
    @classmethod
    def validate_admin_password(cls, v: SecretStr | None) -> SecretStr | None:
        if v is None or not v.get_secret_value().strip():
            return None
        if not PASSWORD_MIN_LEN <= len(v.get_secret_value()) <= PASSWORD_MAX_LEN:
            raise ValueError(
                f"ADMIN_PASSWORD must be {PASSWORD_MIN_LEN} to {PASSWORD_MAX_LEN} characters"
            )
        return v

    @field_validator("DEFAULT_PAYMENT_ADDRESS")
    @classmethod
    def validate_default_payment_address(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DEFAULT_PAYMENT_ADDRESS must be set and non-empty")
        return v.strip()

    @field_validator("ORDER_CODE_LENGTH")
    @classmethod
    def validate_order_code_length(cls, v: int) -> int:
        if v < 6 or v > 16:
            raise ValueError("ORDER_CODE_LENGTH must be between 6 and 16")
        return v

    @field_validator("RELAY_MAX_MESSAGE_LENGTH")
    @classmethod
    def validate_relay_max_message_length(cls, v: int) -> int:
        if v < 1 or v > 10000:
            raise ValueError("RELAY_MAX_MESSAGE_LENGTH must be between 1 and 10000")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
