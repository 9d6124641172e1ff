"""
config.py — Runtime Configuration

All credentials and collaborator endpoints come from environment variables (or a
local `.env` file). Gateway credentials are required; mail and ledger settings are
optional and the matching notification step is reported as failed when they are
missing.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed view of the service configuration."""

    app_name: str = Field(default="Cake Order Service")
    shop_name: str = Field(default="KappuCake")

    razorpay_key_id: str
    razorpay_key_secret: SecretStr
    razorpay_base_url: str = Field(default="https://api.razorpay.com")
    gateway_timeout_seconds: float = Field(default=8.0)
    currency: str = Field(default="INR")

    smtp_host: str = Field(default="smtp.zoho.in")
    smtp_port: int = Field(default=465)
    smtp_user: Optional[str] = Field(default=None)
    smtp_password: Optional[SecretStr] = Field(default=None)
    from_email: Optional[str] = Field(default=None)
    admin_email: Optional[str] = Field(default=None)

    ledger_sheet_id: Optional[str] = Field(default=None)
    ledger_range: str = Field(default="Orders!A1")
    google_service_account_file: Optional[str] = Field(default=None)

    max_orders_per_day: Optional[int] = Field(default=None, gt=0)

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")
    log_file: str = Field(default="cake_orders.log")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def sender_email(self) -> Optional[str]:
        return self.from_email or self.smtp_user

    def disabled_integrations(self) -> List[str]:
        """Names of optional collaborators that lack configuration."""
        disabled = []
        if not self.smtp_user or not self.smtp_password:
            disabled.append("mail")
        if not self.admin_email:
            disabled.append("admin-mail")
        if not self.ledger_sheet_id or not self.google_service_account_file:
            disabled.append("ledger")
        return disabled


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance, loading it on first use."""
    return Settings()
