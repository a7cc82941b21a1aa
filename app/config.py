"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str

    # Application
    APP_ENV: str = "development"
    SECRET_KEY: str
    API_V1_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    # Session
    SESSION_COOKIE_NAME: str = "coachboard_session"
    SESSION_COOKIE_SECURE: bool = False
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # Rate limiting (slowapi limit strings)
    RATE_LIMIT_DEFAULT: str = "200/minute"
    RATE_LIMIT_AUTH: str = "10/minute"
    RATE_LIMIT_MESSAGES: str = "30/minute"
    RATE_LIMIT_IMPORT: str = "10/minute"

    # Email
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "Coachboard <notifications@coachboard.app>"

    # Error tracking
    SENTRY_DSN: Optional[str] = None

    # CSV import
    MAX_IMPORT_BYTES: int = 2_000_000

    # CORS
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        if self.APP_ENV == "development":
            return ["*"]  # Allow all origins in development
        return [self.FRONTEND_URL, "http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True
    )


settings = Settings()
