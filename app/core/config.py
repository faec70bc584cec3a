"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, secrets, API keys)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal, List


DEV_JWT_SECRET = "fallback_secret_key_for_development_only"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URI: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="weather-app",
        description="MongoDB database name"
    )

    # Auth
    JWT_SECRET: Optional[str] = Field(
        default=None,
        description="Secret used to sign access tokens"
    )
    JWT_EXPIRES_DAYS: int = Field(
        default=7,
        description="Access token lifetime in days"
    )
    BCRYPT_ROUNDS: int = Field(
        default=10,
        description="bcrypt cost factor for password hashing"
    )
    ADMIN_EMAILS: Optional[str] = Field(
        default=None,
        description="Comma separated list of admin emails"
    )
    ADMIN_EMAIL: Optional[str] = Field(
        default=None,
        description="Legacy single admin email"
    )

    # OpenWeatherMap
    WEATHER_API_KEY: Optional[str] = Field(
        default=None,
        description="OpenWeatherMap API key"
    )
    WEATHER_BASE_URL: str = Field(
        default="https://api.openweathermap.org/data/2.5",
        description="OpenWeatherMap data API base URL"
    )
    WEATHER_GEO_URL: str = Field(
        default="http://api.openweathermap.org/geo/1.0/direct",
        description="OpenWeatherMap direct geocoding URL"
    )
    WEATHER_TIMEOUT: float = Field(
        default=15.0,
        description="Upstream weather request timeout in seconds"
    )
    WEATHER_CACHE_SECONDS: int = Field(
        default=300,
        description="Cache lifetime for weather/forecast responses"
    )
    SEARCH_CACHE_SECONDS: int = Field(
        default=600,
        description="Cache lifetime for geocoding responses"
    )

    # Discord
    DISCORD_TOKEN: Optional[str] = Field(
        default=None,
        description="Discord bot token"
    )
    DISCORD_CLIENT_ID: Optional[str] = Field(
        default=None,
        description="Discord application (client) ID"
    )
    DISCORD_WEBHOOK_URL: Optional[str] = Field(
        default=None,
        description="Webhook used for admin notifications"
    )
    NOTIFICATION_TIMEZONE: str = Field(
        default="Asia/Ho_Chi_Minh",
        description="Timezone used to match notification times"
    )
    DAILY_SUMMARY_HOUR: int = Field(
        default=8,
        description="Local hour of the daily forecast summary"
    )

    # CCCD OCR (Gemini)
    GEMINI_API_KEY: Optional[str] = Field(
        default=None,
        description="Google generative AI API key"
    )
    GEMINI_MODEL: str = Field(
        default="gemini-2.0-flash",
        description="Model used for CCCD extraction"
    )
    UPLOAD_DIR: str = Field(
        default="uploads",
        description="Directory for temporary uploads"
    )
    MAX_UPLOAD_MB: int = Field(
        default=5,
        description="Maximum CCCD image size in megabytes"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )
    PORT: int = Field(
        default=5000,
        description="HTTP port for the API server"
    )

    @validator("JWT_SECRET")
    def validate_jwt_secret(cls, v, values):
        """Ensure a real secret is configured in production."""
        if values.get("ENVIRONMENT") == "production" and (not v or v == DEV_JWT_SECRET):
            raise ValueError("JWT_SECRET must be set in production environment")
        return v

    @property
    def jwt_secret(self) -> str:
        return self.JWT_SECRET or DEV_JWT_SECRET

    @property
    def admin_emails(self) -> List[str]:
        """Admin emails from ADMIN_EMAILS (or the legacy ADMIN_EMAIL)."""
        raw = self.ADMIN_EMAILS or self.ADMIN_EMAIL or ""
        return [e.strip().lower() for e in raw.split(",") if e.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    from app.core.logging import get_logger

    logger = get_logger(__name__)
    errors = []

    if not settings.MONGODB_URI:
        errors.append("MONGODB_URI is required")

    if not settings.WEATHER_API_KEY:
        logger.warning("WEATHER_API_KEY is not set. Weather requests will fail.")

    if not settings.JWT_SECRET:
        logger.warning("JWT_SECRET not set, using fallback key. This is not secure for production!")

    if settings.is_production:
        if not settings.JWT_SECRET or settings.JWT_SECRET == DEV_JWT_SECRET:
            errors.append("JWT_SECRET is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
