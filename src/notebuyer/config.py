"""
Centralized configuration management using pydantic-settings.
All modules should import Settings from this module.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, Set

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Environment types."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class MarketplaceSettings(BaseSettings):
    """Marketplace API settings."""
    base_url: str = Field(
        default="https://api.lendingclub.com/api/investor/v1",
        description="Investor API base URL"
    )
    timeout_seconds: float = Field(default=10.0, description="HTTP timeout in seconds")
    max_keepalive_connections: int = Field(default=5, description="Keep-alive pool size")

    model_config = SettingsConfigDict(env_prefix="MARKETPLACE_")


class FilterSettings(BaseSettings):
    """Loan eligibility policy applied to every account."""
    min_annual_income: Decimal = Field(default=Decimal("59900"), description="Borrower annual income floor")
    allowed_purposes: Set[str] = Field(
        default={"debt_consolidation", "credit_card"},
        description="Loan purposes eligible for purchase"
    )
    max_inquiries_last_6_months: int = Field(default=0, description="Credit inquiry ceiling")
    min_interest_rate: Decimal = Field(default=Decimal("10.0"), description="Interest rate floor in percent")
    required_term: int = Field(default=36, description="Required loan term in months")
    require_no_delinquency: bool = Field(default=True, description="Reject borrowers with any delinquency")
    revol_bal_band: Decimal = Field(
        default=Decimal("0.10"),
        description="Allowed deviation of loan amount from revolving balance"
    )
    default_loan_grades: Set[str] = Field(default={"B", "C", "D"}, description="Grades used when a profile sets none")

    model_config = SettingsConfigDict(env_prefix="FILTER_")


class InvestSettings(BaseSettings):
    """Investment loop settings."""
    quiescence_interval_seconds: float = Field(default=1.0, description="Pause after a cycle with no eligible loans")
    run_deadline_seconds: float = Field(default=120.0, description="Wall-clock budget for the whole run")
    default_amount_per_loan: Decimal = Field(default=Decimal("25"), description="Amount invested in each note")
    default_state_percent_limit: float = Field(default=0.05, description="Max share of account value per state")
    accounts_file: str = Field(default="accounts.json", description="Path to the account profiles file")

    model_config = SettingsConfigDict(env_prefix="INVEST_")


class MonitoringSettings(BaseSettings):
    """Monitoring and observability settings."""
    # Prometheus
    metrics_port: Optional[int] = Field(default=None, description="Prometheus metrics port, disabled when unset")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format (json or text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    model_config = SettingsConfigDict(env_prefix="MONITORING_")


class Settings(BaseSettings):
    """Main settings class combining all settings groups."""
    # Environment
    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Environment")
    service_name: str = Field(default="notebuyer", description="Service name")

    # Sub-settings
    marketplace: MarketplaceSettings = Field(default_factory=MarketplaceSettings)
    filters: FilterSettings = Field(default_factory=FilterSettings)
    invest: InvestSettings = Field(default_factory=InvestSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
