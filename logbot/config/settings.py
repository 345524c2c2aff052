"""Environment configuration and validation.

Settings are loaded from environment variables (optionally via a local `.env` file). The log API
base URL and timeouts drive the REST client; the LLM block is optional and, when disabled, the
rules resolver handles intent parsing and summaries are unavailable.
"""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    telegram_bot_token: str = Field(alias="TELEGRAM_BOT_TOKEN")

    log_api_base_url: str = Field(default="http://localhost:8080", alias="LOG_API_BASE_URL")
    log_api_timeout_s: float = Field(default=30.0, gt=0, alias="LOG_API_TIMEOUT_S")

    llm_enabled: bool = Field(default=False, alias="LLM_ENABLED")
    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_model: str = Field(default="gpt-3.5-turbo", alias="LLM_MODEL")
    llm_api_base: str = Field(default="https://api.openai.com/v1", alias="LLM_API_BASE")
    llm_timeout_s: float = Field(default=60.0, gt=0, alias="LLM_TIMEOUT_S")

    app_timezone: str = Field(default="Asia/Seoul", alias="APP_TIMEZONE")

    summary_enabled: bool = Field(default=True, alias="SUMMARY_ENABLED")
    summary_token_threshold: int = Field(default=10_000, gt=0, alias="SUMMARY_TOKEN_THRESHOLD")
    event_codes_path: str | None = Field(default=None, alias="EVENT_CODES_PATH")

    @field_validator("app_timezone")
    @classmethod
    def validate_app_timezone(cls, value: str) -> str:
        """Validate that the timezone is a known IANA zone name.

        Naive timestamps proposed by the resolver are interpreted in this zone.
        """

        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"APP_TIMEZONE is not a known timezone: {value}") from exc
        return value

    @model_validator(mode="after")
    def validate_llm_config(self) -> Settings:
        """If the LLM is enabled, an API key must be provided."""

        if self.llm_enabled and not self.llm_api_key:
            raise ValueError("LLM_API_KEY is required when LLM_ENABLED=true")
        return self

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.app_timezone)


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        RuntimeError: If the environment configuration is missing or invalid.
    """

    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc
