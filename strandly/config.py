"""Configuration management for Strandly using Pydantic."""

import logging

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # CMS Configuration
    cms_url: str = Field(
        default="http://localhost:3000", description="Base URL of the headless CMS"
    )
    cms_api_key: str | None = Field(None, description="CMS API key for server calls")
    cms_timeout: float = Field(default=10.0, description="CMS request timeout (s)")

    # Server Configuration
    server_host: str = Field(default="0.0.0.0", description="Server host")
    server_port: int = Field(default=8080, description="Server port")
    server_url: str = Field(
        default="http://localhost:8080",
        description="Server URL for CLI to connect to API",
    )
    site_url: str = Field(
        default="http://localhost:3000",
        description="Public site URL used in the sitemap",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed CORS origins"
    )
    trusted_proxies: list[str] = Field(
        default_factory=list,
        description="Proxy addresses whose X-Forwarded-For header is trusted",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    # Cache Configuration
    cache_ttl_seconds: int = Field(
        default=60, ge=0, description="TTL for cached CMS reads (0 disables)"
    )
    cache_max_entries: int = Field(
        default=1000, gt=0, description="Maximum cached responses"
    )
    revalidate_secret: str | None = Field(
        None, description="Shared secret for the CMS revalidation webhook"
    )

    # Localization
    default_locale: str = Field(default="en", description="Fallback locale")
    supported_locales: list[str] = Field(
        default_factory=lambda: ["en", "es", "fr"],
        description="Locales served by the site",
    )

    # Booking Configuration
    timezone: str = Field(default="UTC", description="Salon timezone (IANA name)")
    booking_slot_minutes: int = Field(
        default=15, gt=0, description="Granularity of bookable start times"
    )
    booking_lead_minutes: int = Field(
        default=60, ge=0, description="Minimum notice before a booking starts"
    )
    booking_horizon_days: int = Field(
        default=60, gt=0, description="How far ahead bookings are accepted"
    )
    booking_hourly_limit: int = Field(
        default=5, gt=0, description="Booking submissions per client per hour"
    )
    booking_daily_limit: int = Field(
        default=20, gt=0, description="Booking submissions per client per day"
    )
    rate_limit_db_path: str = Field(
        default="rate_limits.db", description="SQLite file for rate limiting"
    )

    # Shop Configuration
    currency: str = Field(default="USD", description="Shop currency code")
    max_cart_quantity: int = Field(
        default=10, gt=0, description="Maximum quantity per cart line"
    )
    cart_max_age_minutes: int = Field(
        default=24 * 60, gt=0, description="Idle time after which a cart is dropped"
    )
    max_carts: int = Field(
        default=10_000, gt=0, description="Maximum carts held in memory"
    )

    # Error monitoring
    sentry_dsn: str | None = Field(None, description="Sentry DSN")
    sentry_environment: str = Field(
        default="development", description="Sentry environment name"
    )
    sentry_traces_sample_rate: float = Field(
        default=0.0, ge=0.0, le=1.0, description="Sentry performance sample rate"
    )

    @model_validator(mode="after")
    def _check_locales(self) -> "Config":
        if self.default_locale not in self.supported_locales:
            msg = (
                f"default_locale '{self.default_locale}' must be one of "
                f"{self.supported_locales}"
            )
            raise ValueError(msg)
        return self

    def has_sentry_config(self) -> bool:
        """Check if error monitoring is configured."""
        return bool(self.sentry_dsn)

    def model_post_init(self, __context) -> None:
        """Warn about optional integrations left unconfigured."""
        if not self.sentry_dsn:
            logger.warning("SENTRY_DSN not set - error monitoring disabled")

        if not self.revalidate_secret:
            logger.warning("REVALIDATE_SECRET not set - revalidation webhook disabled")

        if not self.cms_api_key:
            logger.warning("CMS_API_KEY not set - CMS requests are anonymous")


# Global config instance
config: Config | None = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global config
    if config is None:
        config = Config()
    return config


def setup_logging(cfg: Config | None = None) -> None:
    """Configure logging for the application."""
    if cfg is None:
        cfg = get_config()

    log_level = getattr(logging, cfg.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from external libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
