"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class BrokerSettings(BaseSettings):
    """Broker account conventions (Rakuten FX style defaults)."""

    model_config = SettingsConfigDict(env_prefix="BROKER_")

    lot_size: Decimal = Decimal("10000")  # currency units per lot
    margin_call_level: Decimal = Decimal("100")  # percent
    stop_out_level: Decimal = Decimal("50")  # percent


class AnalysisSettings(BaseSettings):
    """Default rate grid for the margin range scan.

    Used when the stored position file carries no analysis block of its own.
    All fields configurable via ANALYSIS_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="ANALYSIS_")

    min_rate: Decimal = Decimal("130")
    max_rate: Decimal = Decimal("160")
    step: Decimal = Decimal("0.5")


class LoanSettings(BaseSettings):
    """Mortgage tax deduction parameters (Japanese housing loan deduction)."""

    model_config = SettingsConfigDict(env_prefix="LOAN_")

    deduction_rate: Decimal = Decimal("0.007")  # 0.7% of year-end balance
    deduction_cap: Decimal = Decimal("45000000")  # balance ceiling in JPY
    deduction_years: int = 13


class StoreSettings(BaseSettings):
    """Location of the JSON position/account file."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    config_path: str = "fx-usdjpy-config.json"


class DashboardSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 3000


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    broker: BrokerSettings = BrokerSettings()
    analysis: AnalysisSettings = AnalysisSettings()
    loan: LoanSettings = LoanSettings()
    store: StoreSettings = StoreSettings()
    dashboard: DashboardSettings = DashboardSettings()
