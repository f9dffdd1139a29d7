"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key for signing JWT tokens", min_length=1
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    app_timezone: str = Field(
        default="UTC",
        description="IANA timezone name or UTC offset used for timestamps",
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the API from a browser (JSON list)",
    )

    notification_batch_size: int = Field(
        default=50,
        description="Maximum number of notifications written in one batch insert",
        gt=0,
    )
    notification_flush_delay_seconds: float = Field(
        default=1.0,
        description="Seconds after the oldest queued notification before a flush",
        gt=0,
    )
    notification_retry_delay_seconds: float = Field(
        default=5.0,
        description="Backoff in seconds before retrying a failed batch insert",
        gt=0,
    )
    notification_max_flush_attempts: int | None = Field(
        default=None,
        description="Failed flushes before a notification is dead-lettered (unbounded when unset)",
        gt=0,
    )
    notification_dead_letter_limit: int = Field(
        default=1000,
        description="Maximum number of dead-lettered notifications kept in memory",
        gt=0,
    )

    expo_push_url: str = Field(
        default="https://exp.host/--/api/v2/push/send",
        description="Expo push API endpoint",
    )
    expo_access_token: str | None = Field(
        default=None, description="Optional Expo access token for enhanced push security"
    )
    push_timeout_seconds: float = Field(
        default=10.0, description="Timeout for push gateway requests", gt=0
    )
    notification_email_enabled: bool = Field(
        default=False,
        description="Send high priority notifications by email as well as push",
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending notification emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of notification emails",
        min_length=3,
    )

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
