"""
Dead Stock Analyzer — Slow-moving inventory risk and disposal actions.

Stock that has not moved for months ties up working capital and, for
perishables, drifts toward a write-off. Risk is bucketed by days since the
last movement; the higher the risk the less the stock recovers if sold off.

  > 365 days → critical (30% recoverable)
  > 180 days → high     (40%)
  >  90 days → medium   (60%)
  otherwise  → low      (80%)

Agent: data-engineer
"""

from dataclasses import dataclass, field
from datetime import date

from inventory.errors import InvalidPlanningInputError
from inventory.models import DeadStockAction, DeadStockRisk, StockItem

AVG_DAYS_PER_MONTH = 30.4


@dataclass(frozen=True)
class DeadStockThresholds:
    critical_days: int = 365
    high_days: int = 180
    medium_days: int = 90
    threshold_days: int = 90  # Minimum idle days to report as dead stock
    liquidation_rates: dict[DeadStockRisk, float] = field(
        default_factory=lambda: {
            DeadStockRisk.CRITICAL: 0.3,
            DeadStockRisk.HIGH: 0.4,
            DeadStockRisk.MEDIUM: 0.6,
            DeadStockRisk.LOW: 0.8,
        }
    )

    @classmethod
    def from_settings(cls, settings) -> "DeadStockThresholds":
        return cls(threshold_days=settings.dead_stock_threshold_days)


DEFAULT_DEAD_STOCK_THRESHOLDS = DeadStockThresholds()


@dataclass(frozen=True)
class DeadStockAssessment:
    product_id: str
    product_code: str
    product_name: str
    category: str
    location_id: str
    location_name: str
    unit: str
    current_stock: float
    value: float
    last_movement_date: date
    days_since_movement: int
    risk_level: DeadStockRisk
    recommended_action: DeadStockAction
    liquidation_value: float
    potential_loss: float
    months_of_stock: float | None  # None when there is no demand to cover
    expiry_date: date | None = None
    days_until_expiry: int | None = None


def classify_dead_stock_risk(
    days_since_movement: int,
    thresholds: DeadStockThresholds = DEFAULT_DEAD_STOCK_THRESHOLDS,
) -> DeadStockRisk:
    if days_since_movement > thresholds.critical_days:
        return DeadStockRisk.CRITICAL
    if days_since_movement > thresholds.high_days:
        return DeadStockRisk.HIGH
    if days_since_movement > thresholds.medium_days:
        return DeadStockRisk.MEDIUM
    return DeadStockRisk.LOW


def recommend_dead_stock_action(
    risk: DeadStockRisk,
    *,
    expired: bool = False,
    returnable: bool = False,
) -> DeadStockAction:
    if risk is DeadStockRisk.CRITICAL:
        return DeadStockAction.WRITEOFF if expired else DeadStockAction.LIQUIDATE
    if risk is DeadStockRisk.HIGH:
        return DeadStockAction.RETURN if returnable else DeadStockAction.LIQUIDATE
    if risk is DeadStockRisk.MEDIUM:
        return DeadStockAction.REDUCE
    return DeadStockAction.CONTINUE


def analyze_dead_stock(
    item: StockItem,
    last_movement_date: date,
    as_of: date,
    *,
    daily_demand: float = 0.0,
    expiry_date: date | None = None,
    returnable: bool = False,
    thresholds: DeadStockThresholds = DEFAULT_DEAD_STOCK_THRESHOLDS,
) -> DeadStockAssessment:
    """Assess one item's idle stock and recommend what to do with it."""
    if last_movement_date > as_of:
        raise InvalidPlanningInputError("last movement date is after the analysis date")
    if item.current_stock < 0 or daily_demand < 0:
        raise InvalidPlanningInputError("stock and demand must be non-negative")

    days_since_movement = (as_of - last_movement_date).days
    days_until_expiry = (expiry_date - as_of).days if expiry_date else None
    expired = days_until_expiry is not None and days_until_expiry <= 0

    risk = classify_dead_stock_risk(days_since_movement, thresholds)
    action = recommend_dead_stock_action(risk, expired=expired, returnable=returnable)

    value = item.stock_value
    liquidation_value = value * thresholds.liquidation_rates[risk]
    months_of_stock = item.current_stock / (daily_demand * AVG_DAYS_PER_MONTH) if daily_demand > 0 else None

    return DeadStockAssessment(
        product_id=item.product_id,
        product_code=item.code,
        product_name=item.name,
        category=item.category,
        location_id=item.location_id,
        location_name=item.location_name,
        unit=item.unit,
        current_stock=item.current_stock,
        value=value,
        last_movement_date=last_movement_date,
        days_since_movement=days_since_movement,
        risk_level=risk,
        recommended_action=action,
        liquidation_value=liquidation_value,
        potential_loss=value - liquidation_value,
        months_of_stock=months_of_stock,
        expiry_date=expiry_date,
        days_until_expiry=days_until_expiry,
    )


def is_dead_stock(assessment: DeadStockAssessment, threshold_days: int | None = None) -> bool:
    """Idle for at least the reporting threshold."""
    threshold = DEFAULT_DEAD_STOCK_THRESHOLDS.threshold_days if threshold_days is None else threshold_days
    return assessment.days_since_movement >= threshold
