"""
Shared configuration management for the Checklist Access Layer.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias="ACCESS_ENV")
    log_level: str = Field(default="info", validation_alias="ACCESS_LOG_LEVEL")

    # Outbound calls
    outbound_timeout_seconds: float = Field(default=10.0, validation_alias="OUTBOUND_TIMEOUT_SECONDS")

    # Identity (Supabase auth)
    supabase_url: str = Field(default="http://localhost:54321", validation_alias="SUPABASE_URL")
    supabase_service_role_key: str = Field(default="", validation_alias="SUPABASE_SERVICE_ROLE_KEY")

    # Identity (ID token claims)
    firebase_project_id: str = Field(default="", validation_alias="FIREBASE_PROJECT_ID")
    firebase_jwks_url: str = Field(
        default="https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com",
        validation_alias="FIREBASE_JWKS_URL",
    )
    ai_identity_provider: str = Field(default="claims", validation_alias="AI_IDENTITY_PROVIDER")

    # Subscription authority
    adapty_api_key: str = Field(default="", validation_alias="ADAPTY_API_KEY")
    adapty_api_base_url: str = Field(default="https://api.adapty.io", validation_alias="ADAPTY_API_BASE_URL")
    skip_adapty_emails: str = Field(default="", validation_alias="SKIP_ADAPTY_EMAILS")

    # AI generation
    openrouter_api_key: str = Field(default="", validation_alias="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1", validation_alias="OPENROUTER_BASE_URL")
    or_model_name: str = Field(default="", validation_alias="OR_MODEL_NAME")
    site_url: str = Field(default="", validation_alias="SITE_URL")
    site_name: str = Field(default="", validation_alias="SITE_NAME")

    # Push notifications
    os_app_id: str = Field(default="", validation_alias="OS_APP_ID")
    os_api_key: str = Field(default="", validation_alias="OS_API_KEY")
    os_api_base_url: str = Field(default="https://api.onesignal.com", validation_alias="OS_API_BASE_URL")
    os_android_channel_id: Optional[str] = Field(default=None, validation_alias="OS_ANDROID_CHANNEL_ID")
    android_package_name: str = Field(default="", validation_alias="ANDROID_PACKAGE_NAME")

    @property
    def skip_email_list(self) -> List[str]:
        """Allow-listed emails, trimmed and lower-cased."""
        return [
            email.strip().lower()
            for email in self.skip_adapty_emails.split(",")
            if email.strip()
        ]


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int = Field(default=3000, validation_alias="PORT")
    host: str = "0.0.0.0"


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service.

    ``port`` is the service default; a ``PORT`` environment variable or an
    explicit override wins over it.
    """
    config = ServiceConfig(service_name=service_name, **overrides)
    if "port" not in config.model_fields_set:
        config.port = port
    return config
