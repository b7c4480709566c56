"""Application configuration via pydantic settings."""

from functools import lru_cache
from pathlib import Path

from typing import Any

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "Booking Pricing Engine"
    api_v1_prefix: str = "/api/v1"

    database_url: str = Field(..., alias="DATABASE_URL")
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")
    database_isolation_level: str | None = Field(
        default=None, alias="DATABASE_ISOLATION_LEVEL"
    )

    secret_key: str = Field(..., alias="SECRET_KEY")
    jwt_secret_key: str = Field(default="", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    token_url: str = Field("/auth/token", alias="TOKEN_URL")

    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_allowlist: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"], alias="CORS_ALLOWLIST"
    )

    rate_limit_promotions: str = Field("20/minute", alias="RATE_LIMIT_PROMOTIONS")

    redemption_retry_attempts: int = Field(3, ge=1, alias="REDEMPTION_RETRY_ATTEMPTS")
    redemption_retry_backoff_seconds: float = Field(
        0.1, ge=0, alias="REDEMPTION_RETRY_BACKOFF_SECONDS"
    )

    price_forecast_days: int = Field(90, ge=1, alias="PRICE_FORECAST_DAYS")
    price_forecast_max_days: int = Field(365, ge=1, alias="PRICE_FORECAST_MAX_DAYS")

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        case_sensitive=False,
    )

    def model_post_init(self, __context: Any) -> None:
        """Populate JWT secret from the generic secret when not provided."""

        if not self.jwt_secret_key:
            object.__setattr__(self, "jwt_secret_key", self.secret_key)

    @field_validator("cors_allowlist", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
