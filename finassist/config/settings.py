"""
Configuration Management for the Financial Assistant

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every threshold the analyses apply lives in AnalysisSettings, so the
rules that decide what counts as "large", "unusual" or "low" are
visible in one place and can be tuned per deployment.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalysisSettings(BaseSettings):
    """
    Thresholds and windows used by the forecast, anomaly and insight analyses.

    The defaults are the rules the bookkeeping dashboard has always shown.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINASSIST_",
        extra="ignore"
    )

    # Historical window
    history_window_days: int = Field(
        default=30,
        ge=1,
        description="Length of the trailing window used for history and spikes"
    )
    fallback_day_divisor: int = Field(
        default=30,
        ge=1,
        description="Divisor applied to the window mean when a day has no history"
    )

    # Forecast confidence
    high_confidence_min_transactions: int = Field(
        default=50,
        description="Window transactions required (strictly more) for high confidence"
    )
    high_confidence_horizon_days: int = Field(
        default=30,
        description="Forecast offsets below this may be high confidence"
    )
    medium_confidence_min_transactions: int = Field(
        default=20,
        description="Window transactions required (strictly more) for medium confidence"
    )
    medium_confidence_horizon_days: int = Field(
        default=60,
        description="Forecast offsets below this may be medium confidence"
    )
    default_forecast_days: int = Field(
        default=30,
        ge=1,
        description="Forecast horizon used when the caller does not pass one"
    )
    max_forecast_days: int = Field(
        default=365,
        ge=1,
        description="Largest horizon the dashboard flow accepts"
    )

    # Alternative forecast methods
    forecast_trend_weight: Decimal = Field(
        default=Decimal("0.3"),
        ge=0,
        le=1,
        description="Share of the recent daily rate in a weighted forecast"
    )
    forecast_smoothing_alpha: Decimal = Field(
        default=Decimal("0.3"),
        ge=0,
        le=1,
        description="Weight of the day itself in an exponential forecast"
    )
    forecast_moving_average_days: int = Field(
        default=7,
        ge=1,
        description="Preceding days averaged by a moving-average forecast"
    )

    # Anomaly detection
    unusual_spending_min_expenses: int = Field(
        default=10,
        description="Minimum number of expenses before outliers are scanned"
    )
    unusual_spending_stddev_multiplier: Decimal = Field(
        default=Decimal("2"),
        description="Standard deviations above the mean that mark an outlier"
    )
    large_transaction_threshold: Decimal = Field(
        default=Decimal("1000"),
        description="Amounts strictly above this are flagged as large"
    )
    category_spike_min_categories: int = Field(
        default=3,
        description="Distinct expense categories needed before spikes are scanned"
    )
    category_spike_multiplier: Decimal = Field(
        default=Decimal("2"),
        description="Multiple of the mean category total that marks a spike"
    )

    # Extended anomaly scans
    income_spike_history_days: int = Field(
        default=90,
        ge=1,
        description="Income older than the trailing window but within this many days is the baseline"
    )
    income_spike_min_recent: int = Field(
        default=5,
        description="Recent income transactions needed before income spikes are scanned"
    )
    income_spike_min_history: int = Field(
        default=30,
        description="Baseline income transactions needed before income spikes are scanned"
    )
    income_spike_multiplier: Decimal = Field(
        default=Decimal("2"),
        description="Recent/baseline average ratio (strictly above) that marks a spike"
    )
    income_spike_high_multiplier: Decimal = Field(
        default=Decimal("3"),
        description="Ratio (strictly above) at which an income spike is high severity"
    )
    income_spike_max_listed: int = Field(
        default=5,
        ge=1,
        description="Largest transactions attached to an income spike"
    )
    card_testing_max_amount: Decimal = Field(
        default=Decimal("50"),
        description="Expenses strictly below this count as small charges"
    )
    card_testing_window_days: int = Field(
        default=2,
        ge=1,
        description="Small charges dated within this many days of today are recent"
    )
    card_testing_min_count: int = Field(
        default=3,
        description="Recent small charges at one merchant that look like card testing"
    )
    timing_min_transactions: int = Field(
        default=10,
        description="Transactions a category needs before its weekdays are profiled"
    )
    timing_typical_day_share: Decimal = Field(
        default=Decimal("0.1"),
        description="Share of a category's transactions (strictly above) that makes a weekday typical"
    )

    # Insights
    trend_stable_threshold_pct: Decimal = Field(
        default=Decimal("5"),
        description="Revenue changes smaller than this percentage are stable"
    )
    low_balance_threshold: Decimal = Field(
        default=Decimal("1000"),
        description="Balances strictly below this trigger a cash warning"
    )
    deductible_categories: str = Field(
        default="Office Supplies,Professional Services,Travel,Equipment",
        description="Comma-separated expense categories that are usually deductible"
    )

    # Recurring expenses
    recurring_min_occurrences: int = Field(
        default=3,
        ge=2,
        description="Payments with the same description needed to spot a pattern"
    )
    recurring_min_interval_days: float = Field(
        default=25,
        description="Mean interval must be strictly above this to look monthly"
    )
    recurring_max_interval_days: float = Field(
        default=35,
        description="Mean interval must be strictly below this to look monthly"
    )
    recurring_max_interval_stddev_days: float = Field(
        default=5,
        description="Interval spread (days) tolerated for a monthly pattern"
    )
    recurring_max_interval_variation: float = Field(
        default=0.15,
        description="Interval spread relative to the mean tolerated for a monthly pattern"
    )
    recurring_amount_tolerance: Decimal = Field(
        default=Decimal("0.10"),
        description="Amount spread relative to the mean tolerated for a subscription"
    )

    # Presentation of amounts inside titles and descriptions
    currency_symbol: str = Field(
        default="$",
        description="Symbol used when amounts are written into texts"
    )

    @property
    def deductible_categories_set(self) -> frozenset[str]:
        """Get deductible categories as a set."""
        return frozenset(
            name.strip() for name in self.deductible_categories.split(",") if name.strip()
        )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets transaction source and audit log configuration."""

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
        description="ID of the spreadsheet holding the business's books"
    )

    # Sheet names within the spreadsheet
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet the transactions are read from"
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

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def analysis(self) -> AnalysisSettings:
        return AnalysisSettings()

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
        _ = settings.analysis
        results["analysis"] = True
    except Exception as e:
        results["analysis"] = False
        results["analysis_error"] = str(e)

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
