"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.commission_constants import (
    BALANCE_THRESHOLD,
    COMPANY_MARGIN_SHARE,
    DEFAULT_COST_RATIO,
    MAX_UPLINE_DEPTH,
    MIN_COMMISSION_PAYOUT,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (Celery broker)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/commissions.log"

    # Commission distribution
    company_margin_share: Decimal = Field(
        default=COMPANY_MARGIN_SHARE,
        ge=0,
        lt=1,
        description="Fraction of order margin retained by the platform",
    )
    default_cost_ratio: Decimal = Field(
        default=DEFAULT_COST_RATIO,
        ge=0,
        le=1,
        description="Unit cost as a fraction of unit price when an item has no cost",
    )
    min_commission_payout: Decimal = Field(
        default=MIN_COMMISSION_PAYOUT,
        ge=0,
        description="Upline payouts below this amount are dropped",
    )
    balance_threshold: Decimal = Field(
        default=BALANCE_THRESHOLD,
        gt=0,
        description="Balance level that triggers a threshold-reached notification",
    )
    max_upline_depth: int = Field(
        default=MAX_UPLINE_DEPTH,
        ge=1,
        le=MAX_UPLINE_DEPTH,
        description="Number of ancestors kept in an account's upline snapshot",
    )
    commission_retry_max_attempts: int = Field(
        default=5,
        ge=0,
        description="Retries for a failed commission distribution",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        allowed = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.database_url.startswith("sqlite"):
                logger.warning(
                    "DATABASE_URL points at SQLite in production. "
                    "Concurrent distributions serialize on a file lock."
                )
        return self


settings = Settings()
