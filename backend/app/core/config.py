# backend/app/core/config.py
import logging
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


_BACKEND_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = _BACKEND_ROOT / ".env"
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


# Development-only fallback; production deployments must set MESSAGE_ENCRYPTION_KEY.
_DEV_MESSAGE_KEY = "movt-dev-message-key-not-for-production"


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")
    is_testing: bool = Field(default=False, description="Set by the test harness")

    # Database
    database_url: str = Field(
        default="sqlite:///./movt_dev.db",
        description="SQLAlchemy URL for the relational store",
    )
    db_pool_size: int = Field(default=10, ge=1)
    db_max_overflow: int = Field(default=5, ge=0)
    db_pool_timeout: int = Field(default=10, ge=1, description="Seconds to wait for a pooled connection")
    db_pool_recycle: int = Field(default=20, ge=1, description="Seconds before idle connections are recycled")
    db_connect_timeout: int = Field(default=10, ge=1)
    db_statement_timeout_ms: int = Field(default=15000, ge=0)

    # Message encryption
    message_encryption_key: SecretStr = Field(
        default=SecretStr(""),
        description="Secret used to derive the AES-256 key for chat message text",
    )

    # External identity provider / realtime store (Supabase)
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_service_role_key: SecretStr = Field(
        default=SecretStr(""),
        description="Service-role key used for admin auth calls and realtime mirroring",
    )
    identity_provider_timeout: float = Field(default=10.0, gt=0)
    realtime_mirror_enabled: bool = Field(default=True)

    # Messaging
    chat_messages_default_limit: int = Field(default=50, ge=1)
    chat_messages_max_limit: int = Field(default=200, ge=1)

    # Appointment listings
    appointment_list_limit: int = Field(default=50, ge=1)

    cors_origins: str = Field(default="*", description="Comma-separated list of allowed origins")

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("supabase_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return (value or "").strip().rstrip("/")

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key.get_secret_value())

    def get_database_url(self) -> str:
        """Return the SQLAlchemy URL, normalising the legacy postgres:// scheme."""
        url = self.database_url.strip()
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://") :]
        return url

    def get_message_secret(self) -> str:
        """Return the configured message secret, or the development fallback."""
        secret = self.message_encryption_key.get_secret_value()
        if secret:
            return secret
        if self.environment == "production":
            logger.warning("[CONFIG] MESSAGE_ENCRYPTION_KEY is not set; using development key")
        return _DEV_MESSAGE_KEY


settings = Settings()
if is_running_tests():
    settings.is_testing = True
