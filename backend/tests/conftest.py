"""
Test Configuration — Fixtures for stock items, consumption history and parameters.

Mirrors the items on the reorder and safety stock planning screens so
scenarios read like the data the engine sees in production.
"""

from datetime import date, timedelta

import pytest

from core.config import get_settings
from inventory.classifier import ClassifierThresholds
from inventory.models import ConsumptionRecord, ReorderPolicy, ReplenishmentParameters, StockItem

AS_OF = date(2024, 6, 30)


def make_history(quantities, end: date = AS_OF) -> list[ConsumptionRecord]:
    """One record per day, the last quantity landing on `end`."""
    start = end - timedelta(days=len(quantities) - 1)
    return [ConsumptionRecord(date=start + timedelta(days=i), quantity=q) for i, q in enumerate(quantities)]


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def params():
    return ReplenishmentParameters(
        target_service_level=0.95,
        ordering_cost=50.0,
        holding_cost_rate=0.2,
        minimum_order_qty=0.0,
        review_period_days=7,
        stockout_cost_multiplier=1.5,
        historical_window_days=90,
        default_lead_time_days=7,
    )


@pytest.fixture
def thresholds():
    return ClassifierThresholds()


@pytest.fixture
def olive_oil():
    return StockItem(
        product_id="prod-0",
        code="OIL-001",
        name="Olive Oil Extra Virgin 1L",
        category="Oils & Fats",
        location_id="loc-1",
        location_name="Main Kitchen",
        unit="bottles",
        current_stock=40,
        unit_cost=12.5,
        lead_time_days=7,
    )


@pytest.fixture
def salmon():
    return StockItem(
        product_id="prod-7",
        code="SAL-001",
        name="Atlantic Salmon Fillet",
        category="Seafood",
        location_id="loc-2",
        location_name="Satellite Kitchen",
        unit="kg",
        current_stock=12,
        unit_cost=22.0,
        lead_time_days=2,
        is_critical=True,
    )


@pytest.fixture
def build_history():
    return make_history


@pytest.fixture
def steady_history():
    """Alternating 4/6 units a day for 60 days: mean 5."""
    return make_history([4, 6] * 30)


@pytest.fixture
def current_policy():
    return ReorderPolicy(reorder_point=40, economic_order_qty=60, safety_stock=5)
