"""Application settings and configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "lightning-lessons"
    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json"
    allowed_origins: str = "http://localhost:4321"
    port: int = 8080

    # Frontend the redirects point back to
    base_url: str = "http://localhost:4321"
    class_signup_url: str = "https://lightninglessons.com/signup"

    # Database (health check only)
    database_url: str | None = None

    # Stripe
    stripe_secret_key: str | None = None
    stripe_api_version: str = "2025-08-27.basil"
    stripe_max_network_retries: int = 3
    stripe_timeout_seconds: float = 30.0
    price_id: str | None = None
    coupon_id: str | None = None  # Coupon backing the referral promo codes

    # Resend
    resend_api_key: str | None = None
    resend_audience_id: str | None = None
    email_from: str = "Lightning Lessons <hello@lightninglessons.com>"

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    def redirect_url(self, path: str) -> str:
        """Join a frontend path onto the configured base URL."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


# Global settings instance
settings = Settings()
