"""
Configuration Management for Supplier Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Ledger policy (timeouts, placeholder labels, approval category) and the
storage backend are visible in one place and validated at startup.
"""

from functools import lru_cache
from pathlib import Path

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
    transactions_sheet_name: str = Field(
        default="SupplierTransactions",
        description="Name of the sheet for supplier transactions"
    )
    payments_out_sheet_name: str = Field(
        default="PaymentsOut",
        description="Name of the sheet for Payment Out approval entries"
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


class LedgerSettings(BaseSettings):
    """
    Ledger policy settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )

    # Write path
    write_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Upper bound for each store write in the payment protocol"
    )
    enforce_balance_version: bool = Field(
        default=True,
        description="Re-check the supplier/project balance version before writing a payment"
    )

    # Validation thresholds
    future_date_tolerance_days: int = Field(
        default=0,
        ge=0,
        description="How many days in the future an entry date can be"
    )

    # Read-side placeholders
    unknown_project_label: str = Field(
        default="Unknown Project",
        description="Label used when a referenced project no longer exists"
    )
    unknown_project_status: str = Field(
        default="unknown",
        description="Status used when a referenced project no longer exists"
    )
    unknown_supplier_label: str = Field(
        default="Unknown Supplier",
        description="Label used when a referenced supplier no longer exists"
    )

    # Payment Out entries
    payment_out_category: str = Field(
        default="Materials",
        description="Category assigned to auto-created Payment Out entries"
    )
    default_entered_by: str = Field(
        default="Unknown",
        description="Provenance recorded when no user name is available"
    )
    currency_symbol: str = Field(
        default="₹",
        description="Symbol used in user-facing messages"
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

    # Note: sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()


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
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    return results
