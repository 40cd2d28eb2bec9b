"""
Configuration Management for SnapSpend

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.

NOTE: This is deployment configuration. The user's own preferences
(currency, theme, week start...) live in the Settings Store, not here.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets backup store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: Optional[str] = Field(
        default=None,
        description="ID of an existing spreadsheet. Looked up by title when unset."
    )
    spreadsheet_title: str = Field(
        default="xPense_Expenses",
        description="Title used to find or create the backup spreadsheet"
    )
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the worksheet holding expense rows"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before connecting the backup store."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini extraction model configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class StorageSettings(BaseSettings):
    """Local persistence configuration (one JSON file per slot)."""

    model_config = SettingsConfigDict(
        env_prefix="SNAPSPEND_",
        extra="ignore"
    )

    data_dir: str = Field(
        default=".snapspend",
        description="Directory holding the local persistence slots"
    )
    expenses_file: str = Field(default="expenses.json")
    wallets_file: str = Field(default="wallets.json")
    settings_file: str = Field(default="settings.json")

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Reconciliation
    sync_amount_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Absolute amount difference below which two records are the same purchase"
    )

    # Insights
    insights_max_records: int = Field(
        default=500,
        ge=1,
        description="How many of the most recent records are sent with an insights question"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Loaded lazily so a missing Gemini key does not block local-only use

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every section that failed to load.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "gemini", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
