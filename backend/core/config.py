"""
Replenish Configuration

Uses pydantic-settings for type-safe environment variable loading.
Defaults mirror the inventory-planning and demand-forecasting settings screens.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

# Find .env file: check CWD first, then parent (project root)
_env_file = Path(".env")
if not _env_file.exists():
    _parent_env = Path(__file__).resolve().parent.parent.parent / ".env"
    if _parent_env.exists():
        _env_file = _parent_env


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Replenish"
    app_version: str = "1.0.0"
    app_env: str = "local"
    debug: bool = False

    # Default replenishment parameters
    default_service_level: float = Field(default=0.95, gt=0.0, lt=1.0)
    order_cost_per_order: float = Field(default=50.0, gt=0.0)
    holding_cost_rate: float = Field(default=0.22, gt=0.0)  # 22% of unit cost per year
    default_lead_time_days: float = Field(default=7.0, ge=0.0)
    minimum_order_qty: float = Field(default=0.0, ge=0.0)
    review_period_days: int = Field(default=7, ge=0)
    stockout_cost_multiplier: float = Field(default=1.5, ge=0.0)

    # Demand estimation
    historical_data_period: int = Field(default=90, ge=30, le=365)
    min_historical_window_days: int = 30
    max_historical_window_days: int = 365
    high_variability_threshold: float = 25.0  # demand variability %
    insufficient_data_policy: Literal["flag", "zero_demand"] = "flag"

    # Risk & action classification
    low_change_threshold: float = 0.10
    high_change_threshold: float = 0.30
    trivial_change_threshold: float = 0.02
    service_gap_tolerance: float = 0.05
    min_benefit: float = 25.0
    savings_epsilon: float = 0.01

    # Dead stock
    dead_stock_threshold_days: int = Field(default=90, ge=0)

    model_config = {
        "env_file": str(_env_file),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    settings = Settings()
    _enforce_planning_guardrails(settings)
    return settings


def _enforce_planning_guardrails(settings: Settings) -> None:
    if not 0 <= settings.trivial_change_threshold <= settings.low_change_threshold:
        raise ValueError("trivial_change_threshold must be between 0 and low_change_threshold")
    if settings.low_change_threshold >= settings.high_change_threshold:
        raise ValueError("low_change_threshold must be below high_change_threshold")
    if not 0 < settings.service_gap_tolerance < 1:
        raise ValueError("service_gap_tolerance must be within (0, 1)")
    if settings.min_historical_window_days > settings.max_historical_window_days:
        raise ValueError("min_historical_window_days must not exceed max_historical_window_days")
    if not settings.min_historical_window_days <= settings.historical_data_period <= settings.max_historical_window_days:
        raise ValueError("historical_data_period must fall within the configured window bounds")
