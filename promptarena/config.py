"""
PromptArena Configuration Module

This module manages application settings and environment variables using
pydantic-settings for type-safe configuration management.

Environment variables are loaded from .env file or system environment.
All sensitive values use SecretStr to prevent accidental logging.

Provider API keys are optional: a provider without a key is still listed,
but every comparison that selects it records a "missing credential"
outcome instead of calling the network.
"""

from functools import lru_cache
from typing import Literal
import logging
import sys

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic Settings automatically reads from:
    1. Environment variables
    2. .env file in working directory
    3. Default values defined here

    API keys and shared secrets use SecretStr to prevent accidental exposure.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )

    # -- LLM providers -------------------------------------------------------

    openai_api_key: SecretStr | None = Field(
        default=None, description="OpenAI API key (ChatGPT)"
    )

    anthropic_api_key: SecretStr | None = Field(
        default=None, description="Anthropic API key (Claude)"
    )

    google_api_key: SecretStr | None = Field(
        default=None, description="Google Generative Language API key (Gemini)"
    )

    perplexity_api_key: SecretStr | None = Field(
        default=None, description="Perplexity API key (OpenAI-compatible endpoint)"
    )

    provider_timeout_seconds: float = Field(
        default=25.0,
        gt=0.0,
        le=120.0,
        description="Per-provider call timeout in seconds",
    )

    provider_max_tokens: int = Field(
        default=1000,
        gt=0,
        description="Output length limit sent to every provider",
    )

    provider_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature sent to every provider",
    )

    # -- Email collaborator (EmailJS) ----------------------------------------

    email_enabled: bool = Field(
        default=True, description="Send the comparison report by email"
    )

    emailjs_api_url: str = Field(
        default="https://api.emailjs.com/api/v1.0/email/send",
        description="EmailJS send endpoint",
    )

    emailjs_service_id: str = Field(default="", description="EmailJS service ID")

    emailjs_template_id: str = Field(default="", description="EmailJS template ID")

    emailjs_public_key: str = Field(
        default="", description="EmailJS public key (sent as user_id)"
    )

    emailjs_private_key: SecretStr | None = Field(
        default=None, description="EmailJS private key (sent as accessToken)"
    )

    email_timeout_seconds: float = Field(
        default=10.0, gt=0.0, description="Timeout for the email API call"
    )

    # -- Credit ledger collaborator ------------------------------------------

    credit_ledger_url: str | None = Field(
        default=None,
        description="Base URL of the credit ledger service (credit mode is off when unset)",
    )

    credit_ledger_secret: SecretStr | None = Field(
        default=None, description="Shared secret sent to the credit ledger"
    )

    ledger_timeout_seconds: float = Field(
        default=10.0, gt=0.0, description="Timeout for credit ledger calls"
    )

    # -- Reporting -----------------------------------------------------------

    report_max_response_chars: int = Field(
        default=2000,
        ge=100,
        description="Responses longer than this are truncated in the report",
    )

    # -- Service -------------------------------------------------------------

    track_metrics: bool = Field(
        default=True, description="Record per-comparison metrics in memory"
    )

    cors_allow_origins: list[str] = Field(
        default=["*"], description="Origins allowed by the CORS middleware"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Application log level"
    )

    host: str = Field(default="0.0.0.0", description="Server bind host")

    port: int = Field(default=8000, description="Server bind port")

    debug: bool = Field(default=False, description="Enable debug mode")

    @field_validator("credit_ledger_url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        """Normalize the ledger base URL so paths can be appended."""
        if v is None:
            return None
        v = v.strip().rstrip("/")
        return v or None

    @property
    def credit_mode_enabled(self) -> bool:
        """True when a credit ledger is configured."""
        return self.credit_ledger_url is not None


@lru_cache
def get_settings() -> Settings:
    """
    Returns cached settings instance.

    Using lru_cache ensures settings are loaded once and reused,
    avoiding repeated file reads and environment parsing.

    Returns:
        Settings: The application settings singleton.
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """
    Configure application logging based on settings.

    Sets up structured logging with timestamps and reduces noise
    from third-party HTTP libraries.

    Args:
        settings: The application settings instance.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
