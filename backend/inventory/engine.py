"""
Replenishment Engine — Batch reorder recommendations for a set of items.

Pipeline per (item, location):
  consumption history → Demand Estimator
                      → Safety Stock + ROP/EOQ (InventoryOptimizer)
                      → Risk & Action Classifier
                      → ReplenishmentRecommendation

A PlanningError on one item is recorded as an ItemError and the run carries
on with the next item. The result is an immutable RecommendationSet that the
reporting facade filters and summarizes.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Literal

import structlog

from inventory.classifier import (
    DEFAULT_THRESHOLDS,
    ClassifierThresholds,
    change_magnitude,
    classify_action,
    classify_risk,
    service_level_gap,
)
from inventory.demand import DEFAULT_HIGH_VARIABILITY_PCT, estimate_demand, is_high_variability, zero_demand_profile
from inventory.errors import InsufficientDataError, PlanningError
from inventory.models import (
    ConsumptionRecord,
    DemandProfile,
    ReorderPolicy,
    ReplenishmentParameters,
    ReplenishmentRecommendation,
    StockItem,
)
from inventory.optimizer import InventoryOptimizer, ReorderCalculation
from reporting.rollups import ItemError, RecommendationSet

logger = structlog.get_logger()

ItemKey = tuple[str, str]  # (product_id, location_id)
InsufficientDataPolicy = Literal["flag", "zero_demand"]


def item_key(item: StockItem) -> ItemKey:
    return (item.product_id, item.location_id)


def _lookup(mapping: Mapping, item: StockItem):
    """Histories/policies may be keyed by (product_id, location_id) or by product_id alone."""
    key = item_key(item)
    if key in mapping:
        return mapping[key]
    return mapping.get(item.product_id)


def latest_observation_date(histories: Mapping) -> date | None:
    """Most recent consumption date across every history in the batch."""
    dates = [record.date for history in histories.values() for record in history]
    return max(dates) if dates else None


class ReplenishmentEngine:
    """Run the replenishment calculation over a batch of stock items."""

    def __init__(
        self,
        params: ReplenishmentParameters | None = None,
        thresholds: ClassifierThresholds = DEFAULT_THRESHOLDS,
        insufficient_data_policy: InsufficientDataPolicy = "flag",
        high_variability_threshold: float = DEFAULT_HIGH_VARIABILITY_PCT,
    ):
        if insufficient_data_policy not in ("flag", "zero_demand"):
            raise ValueError(f"Unknown insufficient data policy: {insufficient_data_policy}")
        self.params = params or ReplenishmentParameters()
        self.thresholds = thresholds
        self.insufficient_data_policy = insufficient_data_policy
        self.high_variability_threshold = high_variability_threshold
        self.optimizer = InventoryOptimizer(self.params)

    @classmethod
    def from_settings(cls, settings) -> "ReplenishmentEngine":
        return cls(
            params=ReplenishmentParameters.from_settings(settings),
            thresholds=ClassifierThresholds.from_settings(settings),
            insufficient_data_policy=settings.insufficient_data_policy,
            high_variability_threshold=settings.high_variability_threshold,
        )

    def build_profile(
        self,
        item: StockItem,
        history: Sequence[ConsumptionRecord],
        as_of: date | None = None,
    ) -> DemandProfile:
        lead_time = item.lead_time_days if item.lead_time_days is not None else self.params.default_lead_time_days
        window = self.params.historical_window_days
        try:
            profile = estimate_demand(history, window, lead_time_days=lead_time, as_of=as_of)
        except InsufficientDataError:
            if self.insufficient_data_policy == "zero_demand":
                logger.info("engine.zero_demand_fallback", item_id=item.product_id, location_id=item.location_id)
                return zero_demand_profile(lead_time, window)
            raise

        if is_high_variability(profile, self.high_variability_threshold):
            logger.info(
                "engine.high_variability",
                item_id=item.product_id,
                location_id=item.location_id,
                variability_pct=round(profile.demand_variability_pct, 1),
            )
        return profile

    def recommend(
        self,
        item: StockItem,
        history: Sequence[ConsumptionRecord],
        current: ReorderPolicy | None = None,
        *,
        as_of: date | None = None,
    ) -> ReplenishmentRecommendation:
        """Calculate one item. Raises PlanningError subclasses on bad input."""
        current = current or ReorderPolicy()
        profile = self.build_profile(item, history, as_of)
        calc = self.optimizer.calculate(item, profile, current)
        return self._to_recommendation(item, profile, current, calc)

    def run(
        self,
        items: Iterable[StockItem],
        histories: Mapping,
        policies: Mapping | None = None,
        *,
        as_of: date | None = None,
    ) -> RecommendationSet:
        """
        Calculate every item, collecting per-item failures instead of raising.

        Args:
            items: Stock items to plan
            histories: Consumption records keyed by (product_id, location_id) or product_id
            policies: Current ReorderPolicy per item, same keys (missing → new item)
            as_of: End of the historical window, shared by every item (default: the
                latest observation across all histories)
        """
        items = list(items)
        policies = policies or {}
        as_of = as_of or latest_observation_date(histories)
        logger.info(
            "engine.run_started",
            items=len(items),
            as_of=as_of.isoformat() if as_of else None,
            service_level=self.params.target_service_level,
        )

        recommendations: list[ReplenishmentRecommendation] = []
        errors: list[ItemError] = []

        for item in items:
            try:
                rec = self.recommend(
                    item,
                    _lookup(histories, item) or [],
                    _lookup(policies, item),
                    as_of=as_of,
                )
            except PlanningError as exc:
                logger.warning(
                    "engine.item_failed",
                    item_id=item.product_id,
                    location_id=item.location_id,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                errors.append(
                    ItemError(
                        item_id=item.product_id,
                        location_id=item.location_id,
                        error_type=type(exc).__name__,
                        message=str(exc),
                    )
                )
                continue
            recommendations.append(rec)

        result = RecommendationSet(
            recommendations=tuple(recommendations),
            errors=tuple(errors),
            metadata={
                "as_of": as_of.isoformat() if as_of else None,
                "target_service_level": self.params.target_service_level,
                "historical_window_days": self.params.historical_window_days,
            },
        )
        summary = result.summary
        logger.info(
            "engine.run_completed",
            calculated=summary.count,
            failed=len(errors),
            proposed_changes=summary.proposed_changes,
            total_savings=round(summary.total_savings, 2),
        )
        return result

    def _to_recommendation(
        self,
        item: StockItem,
        profile: DemandProfile,
        current: ReorderPolicy,
        calc: ReorderCalculation,
    ) -> ReplenishmentRecommendation:
        change = max(
            change_magnitude(current.reorder_point, calc.reorder_point),
            change_magnitude(current.economic_order_qty, calc.economic_order_qty),
            change_magnitude(current.safety_stock, calc.safety_stock),
        )
        gap = service_level_gap(calc.current_service_level, self.params.target_service_level)
        savings = calc.savings.total
        risk = classify_risk(gap, change, item.is_critical, self.thresholds)
        action = classify_action(risk, savings, self.thresholds)

        return ReplenishmentRecommendation(
            item_id=item.product_id,
            location_id=item.location_id,
            product_code=item.code,
            product_name=item.name,
            category=item.category,
            unit=item.unit,
            current_rop=current.reorder_point,
            recommended_rop=calc.reorder_point,
            current_eoq=current.economic_order_qty,
            recommended_eoq=calc.economic_order_qty,
            current_safety_stock=current.safety_stock,
            recommended_safety_stock=calc.safety_stock,
            projected_annual_savings=savings,
            risk_level=risk,
            action_type=action,
            current_stock=item.current_stock,
            unit_cost=item.unit_cost,
            daily_demand=profile.daily_demand_mean,
            demand_variability_pct=profile.demand_variability_pct,
            lead_time_days=profile.lead_time_days,
            current_service_level=calc.current_service_level,
            target_service_level=self.params.target_service_level,
            change_magnitude=change,
            order_up_to_level=calc.order_up_to_level,
            holding_savings=calc.savings.holding,
            stockout_savings=calc.savings.stockout,
            location_name=item.location_name,
        )
