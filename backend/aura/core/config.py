"""Application configuration using Pydantic BaseSettings"""
import logging
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

logger = logging.getLogger("config")

# Values baked into the shipped bundle; used when the runtime environment lacks them
BUILD_ENV_FILE = "aura.env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Domain & URLs
    FRONTEND_URL: str = "http://localhost:1420"
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"

    # OpenTelemetry
    OTEL_EXPORTER_OTLP_ENDPOINT: str = ""
    OTEL_SERVICE_NAME: str = "aura-backend"
    OTEL_ENVIRONMENT: str = "development"

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_PUBLISHABLE_KEY: str = ""

    # Relational backend (Supabase REST)
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    HTTP_TIMEOUT: float = 30.0

    # Local session store
    ENCRYPTION_KEY: str = ""
    SESSION_STORE_PATH: Path = Path("aura_session.store")

    # Purchases
    PURCHASE_VERIFY_DELAY: float = 0.1  # seconds
    PLACEHOLDER_EMAIL_DOMAIN: str = "aura.app"

    model_config = SettingsConfigDict(
        env_file=BUILD_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("ENCRYPTION_KEY")
    @classmethod
    def check_encryption_key(cls, v):
        if not v or v.strip() == "":
            logger.warning("ENCRYPTION_KEY is missing! The local session store cannot be opened.")
        return v

    @field_validator("SUPABASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")


# Create global settings instance
settings = Settings()
