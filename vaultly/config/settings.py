"""
Configuration Management for Vaultly

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Engine constants (tolerances, solver bounds, system categories) live next to
the storage credentials so every tunable number has exactly one home.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document store configuration."""

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

    # One worksheet per collection
    transactions_sheet_name: str = Field(default="Transactions")
    goals_sheet_name: str = Field(default="Goals")
    funds_sheet_name: str = Field(default="Funds")
    credits_sheet_name: str = Field(default="Credits")
    projects_sheet_name: str = Field(default="Projects")
    scheduled_sheet_name: str = Field(default="ScheduledTransactions")
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

    def sheet_name_for(self, collection: str) -> str:
        """Worksheet name for a record collection (e.g. 'goals')."""
        try:
            return getattr(self, f"{collection}_sheet_name")
        except AttributeError:
            raise ValueError(f"Unknown collection: {collection}")


class EngineSettings(BaseSettings):
    """
    Financial engine tunables.

    Tolerances are expressed in major units (1.0 == one currency unit).
    """

    model_config = SettingsConfigDict(
        env_prefix="VAULTLY_ENGINE_",
        extra="ignore"
    )

    payment_tolerance: float = Field(
        default=1.0,
        ge=0.0,
        description="Slack when deciding a credit is fully paid"
    )
    goal_paid_tolerance: float = Field(
        default=1.0,
        ge=0.0,
        description="Slack when deciding a goal quota is covered this month"
    )

    # Interest rate solver (bisection)
    rate_solver_iterations: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Fixed number of bisection steps"
    )
    rate_solver_low: float = Field(
        default=0.0,
        ge=0.0,
        description="Lower bracket bound, annual percent"
    )
    rate_solver_high: float = Field(
        default=1000.0,
        gt=0.0,
        description="Upper bracket bound, annual percent"
    )
    rate_solver_tolerance: float = Field(
        default=0.01,
        gt=0.0,
        description="Stop when the quota error drops below this"
    )

    # System categories written by cross-store flows
    investment_category: str = Field(
        default="Inversión",
        description="Category of the wallet expense mirroring a project capital injection"
    )
    credit_payment_category: str = Field(
        default="Deudas",
        description="Category of the wallet expense mirroring a credit payment"
    )
    currency_symbol: str = Field(default="$")

    @model_validator(mode='after')
    def validate_bracket(self) -> 'EngineSettings':
        """The solver bracket must not be empty."""
        if self.rate_solver_high <= self.rate_solver_low:
            raise ValueError("rate_solver_high must be greater than rate_solver_low")
        return self


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

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for local structured logs"
    )
    default_user_id: Optional[str] = Field(
        default=None,
        description="User whose collections are loaded when none is given"
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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    '<name>_error' entry for each failure. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("google_sheets", "engine", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
