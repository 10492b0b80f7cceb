"""
Safety Stock Calculator — Buffer stock for a target service level.

Algorithm:
  Safety Stock = Z(service level) × √(LT × σd² + d² × σLT²)

With no lead time variability (σLT = 0) this reduces to the textbook
Z × σd × √LT. Z is the inverse standard normal CDF, so any service level in
(0, 1) is accepted and safety stock never decreases as the level rises.

Results are returned unrounded; rounding to whole units is a display concern.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from scipy.stats import norm

from inventory.errors import InvalidPlanningInputError, InvalidServiceLevelError

# Levels offered on the safety stock configuration screen
SUPPORTED_SERVICE_LEVELS = (0.90, 0.95, 0.99)


def get_z_score(service_level: float) -> float:
    """Inverse standard normal CDF at the service level (0.95 → 1.645)."""
    if not 0.0 < service_level < 1.0:
        raise InvalidServiceLevelError(f"service level must be within (0, 1), got {service_level}")
    return float(norm.ppf(service_level))


def lead_time_demand_std(
    demand_std_dev: float,
    lead_time_days: float,
    daily_demand_mean: float = 0.0,
    lead_time_std_days: float = 0.0,
) -> float:
    """Standard deviation of demand over the replenishment lead time."""
    if demand_std_dev < 0:
        raise InvalidPlanningInputError(f"demand std dev must be non-negative, got {demand_std_dev}")
    if lead_time_days < 0 or lead_time_std_days < 0:
        raise InvalidPlanningInputError("lead time and its std dev must be non-negative")

    demand_component = lead_time_days * demand_std_dev**2
    leadtime_component = daily_demand_mean**2 * lead_time_std_days**2
    return math.sqrt(demand_component + leadtime_component)


def calculate_safety_stock(
    demand_std_dev: float,
    lead_time_days: float,
    service_level: float,
    *,
    daily_demand_mean: float = 0.0,
    lead_time_std_days: float = 0.0,
) -> float:
    """
    Safety stock in the item's unit of measure.

    Example: σd=1, LT=7, 95% → 1.645 × 1 × √7 ≈ 4.35 units
    """
    z_score = get_z_score(service_level)
    sigma = lead_time_demand_std(demand_std_dev, lead_time_days, daily_demand_mean, lead_time_std_days)
    # Service levels below 50% have negative Z; never hold negative stock
    return max(0.0, z_score * sigma)


def achieved_service_level(
    safety_stock: float,
    demand_std_dev: float,
    lead_time_days: float,
    *,
    daily_demand_mean: float = 0.0,
    lead_time_std_days: float = 0.0,
) -> float:
    """Cycle service level a given safety stock delivers: Φ(SS / σLT)."""
    sigma = lead_time_demand_std(demand_std_dev, lead_time_days, daily_demand_mean, lead_time_std_days)
    if sigma == 0:
        return 1.0 if safety_stock >= 0 else 0.0
    return float(norm.cdf(safety_stock / sigma))


def expected_shortage_per_cycle(safety_stock: float, sigma_lead_time: float) -> float:
    """
    Expected units short per replenishment cycle (normal loss function).

    E[short] = σ × (φ(z) - z × (1 - Φ(z))), z = SS / σ
    """
    if sigma_lead_time <= 0:
        return 0.0
    z = safety_stock / sigma_lead_time
    loss = norm.pdf(z) - z * norm.sf(z)
    return max(0.0, float(sigma_lead_time * loss))


# ── Service level scenarios ────────────────────────────────────────────


@dataclass
class ServiceLevelScenario:
    """Safety stock and carrying cost at one service level, across items."""

    service_level: float
    safety_stock_by_item: dict[str, float] = field(default_factory=dict)
    current_cost: float = 0.0
    recommended_cost: float = 0.0
    items_with_increase: int = 0
    items_with_decrease: int = 0

    @property
    def savings(self) -> float:
        return self.current_cost - self.recommended_cost


def compare_service_levels(
    items: Iterable[dict],
    levels: Sequence[float] = SUPPORTED_SERVICE_LEVELS,
) -> list[ServiceLevelScenario]:
    """
    Compare current safety stock against the level each service target implies.

    Each item dict needs: item_id, current_safety_stock, unit_cost,
    demand_std_dev, lead_time_days. Optional: daily_demand_mean,
    lead_time_std_days.
    """
    items = list(items)
    scenarios = []
    for level in levels:
        scenario = ServiceLevelScenario(service_level=level)
        for item in items:
            recommended = calculate_safety_stock(
                item["demand_std_dev"],
                item["lead_time_days"],
                level,
                daily_demand_mean=item.get("daily_demand_mean", 0.0),
                lead_time_std_days=item.get("lead_time_std_days", 0.0),
            )
            current = item["current_safety_stock"]
            scenario.safety_stock_by_item[item["item_id"]] = recommended
            scenario.current_cost += current * item["unit_cost"]
            scenario.recommended_cost += recommended * item["unit_cost"]
            if recommended > current:
                scenario.items_with_increase += 1
            elif recommended < current:
                scenario.items_with_decrease += 1
        scenarios.append(scenario)
    return scenarios
