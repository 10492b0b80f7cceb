"""
Inventory Optimizer — Reorder Point and Economic Order Quantity.

Transforms a demand profile plus cost parameters into the reorder policy an
item should run with, and prices the difference against the policy in force.

Algorithm:
  ROP = (Avg Daily Demand × Lead Time) + Safety Stock
  EOQ = √((2 × Annual Demand × Order Cost) / (Holding Rate × Unit Cost))
  Order-Up-To = Avg Daily Demand × (Review Period + Lead Time) + Safety Stock

Savings:
  holding  = annual ordering + holding cost (current) - (recommended), floored at 0
  stockout = expected annual shortage cost (current SS) - (recommended SS), floored at 0

All values are unrounded. Rounding belongs to the presentation layer.
"""

import math
from dataclasses import dataclass
from typing import Any

from inventory.errors import InvalidCostParameterError, InvalidPlanningInputError
from inventory.models import DemandProfile, ReorderPolicy, ReplenishmentParameters, StockItem
from inventory.safety_stock import (
    achieved_service_level,
    calculate_safety_stock,
    expected_shortage_per_cycle,
    get_z_score,
    lead_time_demand_std,
)

DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class SavingsBreakdown:
    """Projected annual savings of a recommended policy over the current one."""

    holding: float
    stockout: float

    @property
    def total(self) -> float:
        return self.holding + self.stockout


@dataclass(frozen=True)
class ReorderCalculation:
    """Result of a reorder point calculation for one (item, location)."""

    reorder_point: float
    safety_stock: float
    economic_order_qty: float
    order_up_to_level: float
    lead_time_days: float
    avg_daily_demand: float
    demand_std_dev: float
    current_service_level: float
    savings: SavingsBreakdown
    rationale: dict[str, Any]


def _require_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise InvalidPlanningInputError(f"{name} must be non-negative, got {value}")


def _validate_costs(ordering_cost: float, holding_cost_rate: float, unit_cost: float) -> None:
    if not all(math.isfinite(v) for v in (ordering_cost, holding_cost_rate, unit_cost)):
        raise InvalidCostParameterError("cost parameters must be finite numbers")
    if holding_cost_rate <= 0:
        raise InvalidCostParameterError(f"holding cost rate must be positive, got {holding_cost_rate}")
    if unit_cost <= 0:
        raise InvalidCostParameterError(f"unit cost must be positive, got {unit_cost}")
    if ordering_cost <= 0:
        raise InvalidCostParameterError(f"ordering cost must be positive, got {ordering_cost}")


def calculate_reorder_point(daily_demand_mean: float, lead_time_days: float, safety_stock: float) -> float:
    """ROP = d × LT + SS (exact)."""
    _require_non_negative("daily demand", daily_demand_mean)
    _require_non_negative("lead time", lead_time_days)
    _require_non_negative("safety stock", safety_stock)
    return daily_demand_mean * lead_time_days + safety_stock


def calculate_eoq(
    daily_demand_mean: float,
    ordering_cost: float,
    holding_cost_rate: float,
    unit_cost: float,
    minimum_order_qty: float = 0.0,
) -> float:
    """
    Economic Order Quantity (Wilson formula), floored at the minimum order qty.

    D=1000/yr, S=50, h=0.2, c=10 → √(2×1000×50 / 2) = √50000 ≈ 223.6

    Zero demand means no reorder is needed: EOQ is 0 before the floor.
    """
    _validate_costs(ordering_cost, holding_cost_rate, unit_cost)
    _require_non_negative("daily demand", daily_demand_mean)
    _require_non_negative("minimum order qty", minimum_order_qty)

    annual_demand = daily_demand_mean * DAYS_PER_YEAR
    if annual_demand == 0:
        eoq = 0.0
    else:
        eoq = math.sqrt((2 * annual_demand * ordering_cost) / (holding_cost_rate * unit_cost))
    return max(eoq, minimum_order_qty)


def calculate_order_up_to_level(
    daily_demand_mean: float,
    lead_time_days: float,
    review_period_days: float,
    safety_stock: float,
) -> float:
    """Periodic review target: S = d × (R + LT) + SS."""
    _require_non_negative("review period", review_period_days)
    return calculate_reorder_point(daily_demand_mean, lead_time_days + review_period_days, safety_stock)


def calculate_annual_cost(
    annual_demand: float,
    order_qty: float,
    safety_stock: float,
    ordering_cost: float,
    holding_cost_per_unit: float,
) -> float:
    """Annual ordering cost + holding cost of cycle stock and safety stock."""
    ordering = annual_demand / order_qty * ordering_cost if order_qty > 0 else 0.0
    holding = (order_qty / 2 + safety_stock) * holding_cost_per_unit
    return ordering + holding


def calculate_projected_savings(
    *,
    annual_demand: float,
    current: ReorderPolicy,
    recommended_eoq: float,
    recommended_safety_stock: float,
    sigma_lead_time: float,
    ordering_cost: float,
    holding_cost_rate: float,
    unit_cost: float,
    stockout_cost_multiplier: float,
) -> SavingsBreakdown:
    """
    Price the recommended policy against the current one.

    Items with no current order quantity have no comparable ordering cost,
    so only the safety-stock-driven stockout delta is counted for them.
    The stockout delta uses the recommended order frequency on both sides.
    """
    _validate_costs(ordering_cost, holding_cost_rate, unit_cost)
    holding_cost_per_unit = holding_cost_rate * unit_cost

    holding = 0.0
    if current.economic_order_qty > 0 and annual_demand > 0:
        current_cost = calculate_annual_cost(
            annual_demand, current.economic_order_qty, current.safety_stock, ordering_cost, holding_cost_per_unit
        )
        recommended_cost = calculate_annual_cost(
            annual_demand, recommended_eoq, recommended_safety_stock, ordering_cost, holding_cost_per_unit
        )
        holding = max(0.0, current_cost - recommended_cost)

    stockout = 0.0
    if recommended_eoq > 0 and annual_demand > 0:
        orders_per_year = annual_demand / recommended_eoq
        shortage_delta = expected_shortage_per_cycle(current.safety_stock, sigma_lead_time) - (
            expected_shortage_per_cycle(recommended_safety_stock, sigma_lead_time)
        )
        stockout = max(0.0, shortage_delta * orders_per_year * unit_cost * stockout_cost_multiplier)

    return SavingsBreakdown(holding=holding, stockout=stockout)


class InventoryOptimizer:
    """Calculate the recommended reorder policy for an item from its demand profile."""

    def __init__(self, params: ReplenishmentParameters):
        self.params = params

    def calculate(
        self,
        item: StockItem,
        profile: DemandProfile,
        current: ReorderPolicy | None = None,
    ) -> ReorderCalculation:
        params = self.params
        current = current or ReorderPolicy()

        lead_time = profile.lead_time_days
        avg_daily_demand = profile.daily_demand_mean
        demand_std_dev = profile.daily_demand_std_dev

        # 1. Safety stock
        safety_stock = calculate_safety_stock(
            demand_std_dev,
            lead_time,
            params.target_service_level,
            daily_demand_mean=avg_daily_demand,
            lead_time_std_days=item.lead_time_std_days,
        )
        sigma_lt = lead_time_demand_std(demand_std_dev, lead_time, avg_daily_demand, item.lead_time_std_days)

        # 2. Reorder point + periodic review target
        reorder_point = calculate_reorder_point(avg_daily_demand, lead_time, safety_stock)
        order_up_to = calculate_order_up_to_level(avg_daily_demand, lead_time, params.review_period_days, safety_stock)

        # 3. EOQ
        eoq = calculate_eoq(
            avg_daily_demand,
            params.ordering_cost,
            params.holding_cost_rate,
            item.unit_cost,
            params.minimum_order_qty,
        )

        # 4. Savings against the policy in force
        savings = calculate_projected_savings(
            annual_demand=profile.annual_demand,
            current=current,
            recommended_eoq=eoq,
            recommended_safety_stock=safety_stock,
            sigma_lead_time=sigma_lt,
            ordering_cost=params.ordering_cost,
            holding_cost_rate=params.holding_cost_rate,
            unit_cost=item.unit_cost,
            stockout_cost_multiplier=params.stockout_cost_multiplier,
        )

        current_service_level = achieved_service_level(
            current.safety_stock,
            demand_std_dev,
            lead_time,
            daily_demand_mean=avg_daily_demand,
            lead_time_std_days=item.lead_time_std_days,
        )

        z_score = get_z_score(params.target_service_level)
        rationale = {
            "lead_time_days": lead_time,
            "lead_time_std_days": item.lead_time_std_days,
            "avg_daily_demand": round(avg_daily_demand, 4),
            "demand_std_dev": round(demand_std_dev, 4),
            "service_level": params.target_service_level,
            "z_score": round(z_score, 4),
            "safety_stock_formula": (
                f"Z({z_score:.3f}) × √(LT({lead_time}) × σd²({demand_std_dev:.2f}) "
                f"+ D²({avg_daily_demand:.2f}) × σLT²({item.lead_time_std_days}))"
            ),
            "holding_cost_annual": round(params.holding_cost_rate * item.unit_cost, 4),
            "cost_per_order": params.ordering_cost,
            "min_order_qty": params.minimum_order_qty,
            "review_period_days": params.review_period_days,
            "historical_window_days": profile.historical_window_days,
        }

        return ReorderCalculation(
            reorder_point=reorder_point,
            safety_stock=safety_stock,
            economic_order_qty=eoq,
            order_up_to_level=order_up_to,
            lead_time_days=lead_time,
            avg_daily_demand=avg_daily_demand,
            demand_std_dev=demand_std_dev,
            current_service_level=current_service_level,
            savings=savings,
            rationale=rationale,
        )
