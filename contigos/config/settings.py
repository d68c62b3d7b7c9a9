"""
Configuration Management for Contigos

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    settings_sheet_name: str = Field(
        default="Settings",
        description="Name of the sheet holding the settings row"
    )
    incomes_sheet_name: str = Field(
        default="Incomes",
        description="Name of the sheet for incomes"
    )
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for shared expenses"
    )
    private_expenses_sheet_name: str = Field(
        default="PrivateExpenses",
        description="Name of the sheet for private expenses"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


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

    # Access
    app_password: Optional[str] = Field(
        default=None,
        description="Shared household password. If unset, nobody can log in."
    )

    # Display names
    partner1_name: str = Field(
        default="Partner 1",
        min_length=1,
        max_length=50,
    )
    partner2_name: str = Field(
        default="Partner 2",
        min_length=1,
        max_length=50,
    )

    storage_backend: Literal["memory", "google_sheets"] = Field(
        default="memory",
        description="Where records are kept"
    )

    # Input bounds
    min_amount: float = Field(
        default=0.01,
        gt=0,
        description="Smallest accepted amount for a record"
    )
    max_amount: float = Field(
        default=1_000_000.0,
        gt=0,
        description="Largest accepted amount (also bounds settings fields)"
    )
    max_description_length: int = Field(
        default=100,
        ge=1,
        le=255,
        description="Longer descriptions are rejected"
    )

    # Control check
    control_tolerance: float = Field(
        default=0.01,
        gt=0,
        description="Allowed gap between needed deposit and sum of transfers"
    )

    @property
    def partner_names(self) -> tuple[str, str]:
        return self.partner1_name, self.partner2_name


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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
