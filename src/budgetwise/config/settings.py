"""Configuration settings for budgetwise."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlatSettings(BaseSettings):
    """Flat settings read from environment variables or a ``.env`` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # AI collaborator (optional; only needed for the insights module)
    google_api_key: SecretStr | None = Field(default=None, validation_alias="GOOGLE_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
    llm_max_tokens: int = Field(default=2048, validation_alias="LLM_MAX_TOKENS")
    llm_temperature: float = Field(default=0.2, validation_alias="LLM_TEMPERATURE")
    ai_timeout: float = Field(
        default=30.0, description="Seconds before an AI request is abandoned",
        validation_alias="AI_TIMEOUT",
    )

    # Ledger conventions
    transfer_category: str = Field(default="Transfers", validation_alias="TRANSFER_CATEGORY")

    # CSV
    export_date_format: str | None = Field(
        default=None,
        description="strftime format for exported dates (default M/D/YYYY)",
        validation_alias="EXPORT_DATE_FORMAT",
    )
    csv_mappings_path: str | None = Field(
        default=None,
        description="YAML file overriding the bundled CSV column mappings",
        validation_alias="CSV_MAPPINGS_PATH",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> FlatSettings:
    """Get cached settings instance."""
    return FlatSettings()
