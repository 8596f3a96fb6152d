"""
Notification settings: SMTP transport, frontend links and webhook secret.

SMTP is optional. Without `SMTP_USER`/`SMTP_PASS` the mailer logs the
message instead of sending it.

Dependencies: pydantic, pydantic_settings
System role: Outbound notification and payment signal configuration
"""

from pydantic import AliasChoices, Field
from pydantic_settings import SettingsConfigDict

from car_repair.configs.base import BaseSettings


class EmailSettings(BaseSettings):
    """SMTP transport configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SMTP_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    host: str = Field(default="smtp.gmail.com", description="SMTP host")
    port: int = Field(default=587, description="SMTP port (465 uses implicit TLS)")
    user: str | None = Field(default=None, description="SMTP username")
    password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SMTP_PASS", "SMTP_PASSWORD"),
        description="SMTP password",
    )
    from_address: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SMTP_FROM", "SMTP_FROM_ADDRESS"),
        description="Sender address; defaults to the SMTP user",
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="SMTP socket timeout")

    @property
    def is_configured(self) -> bool:
        """True when credentials are present and real mail can be sent."""
        return bool(self.user and self.password)

    @property
    def sender(self) -> str:
        """Envelope sender address."""
        return self.from_address or self.user or "no-reply@localhost"


class NotificationSettings(BaseSettings):
    """Report-ready notification configuration."""

    frontend_url: str = Field(
        default="http://localhost:5173",
        validation_alias=AliasChoices("FRONTEND_URL"),
        description="Base URL of the web client used in emailed links",
    )
    direct_access_token_days: int = Field(
        default=7,
        ge=1,
        validation_alias=AliasChoices("DIRECT_ACCESS_TOKEN_DAYS"),
        description="Lifetime of direct-access links in days",
    )


class PaymentSettings(BaseSettings):
    """Payment confirmation webhook configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PAYMENT_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    webhook_secret: str | None = Field(
        default=None,
        description="Shared secret expected in the X-Webhook-Secret header",
    )
