"""Application configuration from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Site
    public_base_url: str = Field(default="http://localhost:3000", alias="PUBLIC_BASE_URL")
    artist_name: str = Field(default="Vicki Danielson", alias="ARTIST_NAME")
    site_name: str = Field(default="Vicki Danielson Art", alias="SITE_NAME")
    shipping_countries: str = Field(default="US,CA", alias="SHIPPING_COUNTRIES")

    # Stripe
    stripe_secret_key: str = Field(default="", alias="STRIPE_SECRET_KEY")
    stripe_webhook_secret: str = Field(default="", alias="STRIPE_WEBHOOK_SECRET")
    stripe_webhook_tolerance: int = Field(default=300, alias="STRIPE_WEBHOOK_TOLERANCE")

    # SMTP
    smtp_host: str = Field(default="smtp.gmail.com", alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_user: str = Field(default="", alias="SMTP_USER")
    smtp_password: str = Field(default="", alias="SMTP_PASSWORD")
    smtp_use_ssl: bool = Field(default=False, alias="SMTP_USE_SSL")
    smtp_use_starttls: bool = Field(default=True, alias="SMTP_USE_STARTTLS")
    mail_from_name: str = Field(default="", alias="MAIL_FROM_NAME")
    artist_email: str = Field(default="", alias="ARTIST_EMAIL")

    # Sanity
    sanity_project_id: str = Field(default="", alias="SANITY_PROJECT_ID")
    sanity_dataset: str = Field(default="production", alias="SANITY_DATASET")
    sanity_api_version: str = Field(default="2025-08-27", alias="SANITY_API_VERSION")
    sanity_api_token: str = Field(default="", alias="SANITY_API_TOKEN")
    sanity_webhook_secret: str = Field(default="", alias="SANITY_WEBHOOK_SECRET")
    sanity_use_cdn: bool = Field(default=False, alias="SANITY_USE_CDN")

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    page_cache_ttl_seconds: int = Field(default=3600, alias="PAGE_CACHE_TTL_SECONDS")

    # Rate limiting
    rate_limit_per_hour: int = Field(default=60, alias="RATE_LIMIT_PER_HOUR")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def allowed_shipping_countries(self) -> list[str]:
        return [
            code.strip().upper() for code in self.shipping_countries.split(",") if code.strip()
        ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reset_settings_cache() -> None:
    """Clear cached settings (useful in tests)."""
    get_settings.cache_clear()
