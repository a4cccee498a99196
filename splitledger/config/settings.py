"""
Configuration Management for SplitLedger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Nothing in the ledger core reads the environment directly; components
receive the settings object they need.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Share computation and command behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="SPLITLEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    currency_symbol: str = Field(
        default="€",
        description="Symbol appended to every formatted amount"
    )
    auto_assign_new_receipts: bool = Field(
        default=False,
        description="Add each new receipt to every existing participant"
    )
    reject_invalid_amounts: bool = Field(
        default=True,
        description="Raise ValidationError for non-positive receipt amounts"
    )
    allocation_unit: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Smallest amount a share is split into (one cent)"
    )

    @field_validator('allocation_unit')
    @classmethod
    def validate_allocation_unit(cls, v: Decimal) -> Decimal:
        """Shares must stay in whole cents so exported rows add up."""
        if v % Decimal("0.01") != 0:
            raise ValueError(f"allocation_unit must be a multiple of 0.01, got {v}")
        return v


class ExportSettings(BaseSettings):
    """CSV and text report configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPLITLEDGER_EXPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    directory: str = Field(
        default="exports",
        description="Directory export files are written to"
    )
    csv_filename: str = Field(
        default="split.csv",
        description="File name of the CSV report"
    )
    txt_filename: str = Field(
        default="split.txt",
        description="File name of the fixed-width text report"
    )

    # Fixed-width layout
    name_min_width: int = Field(default=5, ge=1)
    total_min_width: int = Field(default=5, ge=1)
    receipt_min_width: int = Field(default=7, ge=1)
    column_separator: str = Field(
        default=" | ",
        description="Text placed between fixed-width columns"
    )

    @field_validator('csv_filename', 'txt_filename')
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """File names must not smuggle in a directory."""
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"Invalid export file name: {v!r}")
        return v


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPLITLEDGER_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Standard library log level name"
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON (False gives console output)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return v.upper()


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

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def export(self) -> ExportSettings:
        return ExportSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


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

    Returns a dict of {setting_name: is_valid}, with a
    `<name>_error` entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "export", "logging"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
