"""
Replenishment Domain Models.

Plain dataclasses passed between the calculators. Inputs (StockItem,
ConsumptionRecord, ReorderPolicy) are supplied by the inventory data source;
outputs (DemandProfile, ReplenishmentRecommendation) are produced per run and
replaced, never mutated, by the next one.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.config import Settings


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActionType(str, Enum):
    IMPLEMENT = "implement"
    PILOT = "pilot"
    MONITOR = "monitor"
    REJECT = "reject"


class DeadStockRisk(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DeadStockAction(str, Enum):
    CONTINUE = "continue"
    REDUCE = "reduce"
    LIQUIDATE = "liquidate"
    RETURN = "return"
    WRITEOFF = "writeoff"


class StockStatus(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class RoundingPolicy(str, Enum):
    """How quantities are rounded for display. Calculations stay unrounded."""

    NONE = "none"
    CEIL = "ceil"
    FLOOR = "floor"
    NEAREST = "nearest"


def apply_rounding(value: float, policy: RoundingPolicy | str) -> float:
    """Round a quantity per the caller's policy (ceil to whole units, etc)."""
    policy = RoundingPolicy(policy)
    if policy is RoundingPolicy.CEIL:
        return float(math.ceil(value))
    if policy is RoundingPolicy.FLOOR:
        return float(math.floor(value))
    if policy is RoundingPolicy.NEAREST:
        return float(round(value))
    return value


@dataclass(frozen=True)
class StockItem:
    """An item stocked at one location."""

    product_id: str
    code: str
    name: str
    category: str
    location_id: str
    unit: str
    current_stock: float
    unit_cost: float
    location_name: str = ""
    lead_time_days: float | None = None  # None → configured default
    lead_time_std_days: float = 0.0
    is_critical: bool = False

    @property
    def stock_value(self) -> float:
        return self.current_stock * self.unit_cost


@dataclass(frozen=True)
class ConsumptionRecord:
    """One historical consumption observation."""

    date: date
    quantity: float


@dataclass(frozen=True)
class DemandProfile:
    """Demand statistics for an (item, location) over the historical window."""

    daily_demand_mean: float
    daily_demand_std_dev: float  # Sample std dev (ddof=1); 0 for a single day
    demand_variability_pct: float
    lead_time_days: float
    historical_window_days: int
    observation_count: int

    @property
    def annual_demand(self) -> float:
        return self.daily_demand_mean * 365


@dataclass(frozen=True)
class ReorderPolicy:
    """Reorder settings currently in force for an item at a location."""

    reorder_point: float = 0.0
    economic_order_qty: float = 0.0
    safety_stock: float = 0.0


@dataclass(frozen=True)
class ReplenishmentParameters:
    """Cost and service inputs, fixed for the duration of one calculation run."""

    target_service_level: float = 0.95
    ordering_cost: float = 50.0
    holding_cost_rate: float = 0.22  # Fraction of unit cost per year
    minimum_order_qty: float = 0.0
    review_period_days: int = 7
    stockout_cost_multiplier: float = 1.5
    historical_window_days: int = 90
    default_lead_time_days: float = 7.0

    @classmethod
    def from_settings(cls, settings: Settings) -> ReplenishmentParameters:
        return cls(
            target_service_level=settings.default_service_level,
            ordering_cost=settings.order_cost_per_order,
            holding_cost_rate=settings.holding_cost_rate,
            minimum_order_qty=settings.minimum_order_qty,
            review_period_days=settings.review_period_days,
            stockout_cost_multiplier=settings.stockout_cost_multiplier,
            historical_window_days=settings.historical_data_period,
            default_lead_time_days=settings.default_lead_time_days,
        )


@dataclass(frozen=True)
class ReplenishmentRecommendation:
    """Output of one calculation run for an (item, location)."""

    item_id: str
    location_id: str
    product_code: str
    product_name: str
    category: str
    unit: str
    current_rop: float
    recommended_rop: float
    current_eoq: float
    recommended_eoq: float
    current_safety_stock: float
    recommended_safety_stock: float
    projected_annual_savings: float
    risk_level: RiskLevel
    action_type: ActionType
    current_stock: float = 0.0
    unit_cost: float = 0.0
    daily_demand: float = 0.0
    demand_variability_pct: float = 0.0
    lead_time_days: float = 0.0
    current_service_level: float = 0.0
    target_service_level: float = 0.0
    change_magnitude: float = 0.0
    order_up_to_level: float = 0.0
    holding_savings: float = 0.0
    stockout_savings: float = 0.0
    location_name: str = ""

    @property
    def stock_value(self) -> float:
        return self.current_stock * self.unit_cost
