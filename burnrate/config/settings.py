"""
Configuration Management for Burnrate

Settings come from environment variables and an optional .env file,
validated by pydantic-settings.

DESIGN DECISION: Every knob lives in this module.
Google and Gemini credentials are only read when the backend or the
advisor that needs them is built, so a local setup needs no secrets.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """Where expenses, settings and usage are persisted."""
    LOCAL = "local"    # JSON documents under data_dir
    SHEETS = "sheets"  # Google Sheets spreadsheet
    MEMORY = "memory"  # Process memory only (tests, demos)


class GoogleSheetsSettings(BaseSettings):
    """Credentials and tab names for the Sheets backend."""

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

    # Tab names
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expense records"
    )
    settings_sheet_name: str = Field(
        default="Settings",
        description="Name of the key/value sheet for currency, budget and usage"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn, but accept, a credentials path that does not exist yet."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini advisor configuration."""

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
        description="Gemini model used for plans, briefings and chat"
    )
    vision_model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model used for receipt scanning"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature for plan generation"
    )


class AppSettings(BaseSettings):
    """
    Application-wide settings.

    Read without a prefix, e.g. STORAGE_BACKEND, DATA_DIR, PLAN.
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

    # Persistence
    storage_backend: StorageBackend = Field(
        default=StorageBackend.LOCAL,
        description="Persistence backend: local, sheets or memory"
    )
    data_dir: str = Field(
        default=".burnrate",
        description="Directory for the local JSON storage backend"
    )

    # Budget defaults
    default_budget: float = Field(
        default=5000.0,
        ge=0,
        description="Monthly budget used until the user saves one"
    )

    # Plan and credits
    plan: str = Field(
        default="free",
        pattern="^(free|pro|business)$",
        description="Subscription plan of the local user"
    )
    free_tier_credit_limit: int = Field(
        default=50,
        ge=0,
        description="AI credits available on the free plan"
    )
    free_tier_expense_limit: int = Field(
        default=100,
        ge=1,
        description="Maximum number of tracked expenses on the free plan"
    )

    # Receipt uploads
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum receipt image size in MB"
    )
    supported_image_formats: str = Field(
        default="jpg,jpeg,png,webp",
        description="Comma-separated list of supported image formats"
    )

    @property
    def supported_formats_list(self) -> list[str]:
        """Lower-cased receipt image extensions."""
        return [fmt.strip().lower() for fmt in self.supported_image_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Receipt size limit in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Entry point to every settings group.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration:
    # a local-only setup never needs Google credentials.

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Process-wide Settings instance.

    Tests that change the environment call
    get_settings.cache_clear() afterwards.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Check which settings groups load from the current environment.

    Returns a dict of {setting_name: is_valid}, plus
    `<name>_error` entries describing each failure.
    Intended for startup diagnostics.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
