"""
Recommendation Rollups — Summary cards and query facade for planning screens.

A RecommendationSet is the immutable outcome of one engine run: the
recommendations that were produced plus an error entry for every item that
could not be calculated. Querying it filters, searches and sorts the
recommendations and recomputes the summary over what is left; per-item
errors always travel with the result so the screen can flag them.
"""

from __future__ import annotations

import dataclasses
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

import pandas as pd
import structlog

from inventory.dead_stock import DeadStockAssessment
from inventory.models import (
    ActionType,
    DeadStockAction,
    DeadStockRisk,
    ReplenishmentRecommendation,
    RiskLevel,
    RoundingPolicy,
    apply_rounding,
)
from reporting.filters import FilterCondition, apply_filters, search_records, sort_records

logger = structlog.get_logger()

# Quantity columns rounded for export; money and ratios are left alone
QUANTITY_FIELDS = (
    "current_rop",
    "recommended_rop",
    "current_eoq",
    "recommended_eoq",
    "current_safety_stock",
    "recommended_safety_stock",
    "order_up_to_level",
)


@dataclass(frozen=True)
class ItemError:
    """A single item that failed to calculate, reported alongside successes."""

    item_id: str
    location_id: str
    error_type: str
    message: str


@dataclass(frozen=True)
class RecommendationSummary:
    count: int
    total_savings: float
    proposed_changes: int  # implement + pilot
    by_action: dict[str, int]
    by_risk: dict[str, int]
    value_at_risk: float  # stock value of high-risk items


@dataclass(frozen=True)
class BucketTotal:
    count: int = 0
    value: float = 0.0


@dataclass(frozen=True)
class DeadStockSummary:
    count: int
    total_value: float
    liquidation_value: float
    potential_loss: float
    by_risk: dict[str, BucketTotal]
    by_action: dict[str, BucketTotal]


def summarize_recommendations(recommendations: Iterable[ReplenishmentRecommendation]) -> RecommendationSummary:
    recs = list(recommendations)
    by_action = Counter(r.action_type.value for r in recs)
    by_risk = Counter(r.risk_level.value for r in recs)
    return RecommendationSummary(
        count=len(recs),
        total_savings=sum(r.projected_annual_savings for r in recs),
        proposed_changes=by_action[ActionType.IMPLEMENT.value] + by_action[ActionType.PILOT.value],
        by_action={a.value: by_action[a.value] for a in ActionType},
        by_risk={r.value: by_risk[r.value] for r in RiskLevel},
        value_at_risk=sum(r.stock_value for r in recs if r.risk_level is RiskLevel.HIGH),
    )


def _bucket_totals(items: list[DeadStockAssessment], attr: str, keys: Iterable[str]) -> dict[str, BucketTotal]:
    totals = {key: BucketTotal() for key in keys}
    for item in items:
        key = getattr(item, attr).value
        bucket = totals[key]
        totals[key] = BucketTotal(count=bucket.count + 1, value=bucket.value + item.value)
    return totals


def summarize_dead_stock(items: Iterable[DeadStockAssessment]) -> DeadStockSummary:
    items = list(items)
    return DeadStockSummary(
        count=len(items),
        total_value=sum(i.value for i in items),
        liquidation_value=sum(i.liquidation_value for i in items),
        potential_loss=sum(i.potential_loss for i in items),
        by_risk=_bucket_totals(items, "risk_level", (r.value for r in DeadStockRisk)),
        by_action=_bucket_totals(items, "recommended_action", (a.value for a in DeadStockAction)),
    )


@dataclass(frozen=True)
class QueryResult:
    items: list[ReplenishmentRecommendation]
    summary: RecommendationSummary
    errors: tuple[ItemError, ...]


@dataclass(frozen=True)
class RecommendationSet:
    """Snapshot of one calculation run. Never mutated; the next run replaces it."""

    recommendations: tuple[ReplenishmentRecommendation, ...] = ()
    errors: tuple[ItemError, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "recommendations", tuple(self.recommendations))
        object.__setattr__(self, "errors", tuple(self.errors))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __len__(self) -> int:
        return len(self.recommendations)

    @property
    def summary(self) -> RecommendationSummary:
        return summarize_recommendations(self.recommendations)

    def query(
        self,
        conditions: Sequence[FilterCondition] = (),
        *,
        search: str | None = None,
        sort_by: str | None = None,
        descending: bool = False,
    ) -> QueryResult:
        items = apply_filters(self.recommendations, conditions)
        items = search_records(items, search)
        if sort_by:
            items = sort_records(items, sort_by, descending=descending)

        logger.debug(
            "recommendations.queried",
            conditions=len(conditions),
            matched=len(items),
            total=len(self.recommendations),
            errors=len(self.errors),
        )
        return QueryResult(items=items, summary=summarize_recommendations(items), errors=self.errors)


def to_frame(
    records: Sequence[Any],
    rounding: RoundingPolicy | str = RoundingPolicy.NONE,
    quantity_fields: Sequence[str] = QUANTITY_FIELDS,
) -> pd.DataFrame:
    """Export dataclass records as a DataFrame, rounding quantity columns for display."""
    rows = []
    for record in records:
        row = dataclasses.asdict(record)
        for key, value in row.items():
            if isinstance(value, Enum):
                row[key] = value.value
        rows.append(row)

    df = pd.DataFrame(rows)
    if df.empty:
        return df
    for column in quantity_fields:
        if column in df.columns:
            df[column] = df[column].map(lambda v: apply_rounding(v, rounding) if pd.notna(v) else v)
    return df
