"""
Tests for the Replenishment Engine — batch recommendations with per-item errors.
"""

from dataclasses import FrozenInstanceError, replace
from datetime import date

import pytest
from structlog.testing import capture_logs

from core.config import Settings
from inventory.engine import ReplenishmentEngine
from inventory.errors import InsufficientDataError
from inventory.models import ActionType, ReorderPolicy, RiskLevel, StockItem

AS_OF = date(2024, 6, 30)


@pytest.fixture
def engine(params, thresholds):
    return ReplenishmentEngine(params, thresholds)


@pytest.fixture
def spinach():
    """No consumption history on record."""
    return StockItem(
        product_id="prod-10",
        code="VEG-001",
        name="Fresh Spinach 500g",
        category="Produce",
        location_id="loc-1",
        unit="bags",
        current_stock=6,
        unit_cost=3.0,
    )


# ── Single item ───────────────────────────────────────────────────────


class TestRecommend:
    def test_close_to_current_policy_implements(self, engine, olive_oil, steady_history):
        current = ReorderPolicy(reorder_point=39, economic_order_qty=250, safety_stock=4.2)
        rec = engine.recommend(olive_oil, steady_history, current)

        assert rec.risk_level is RiskLevel.LOW
        assert rec.action_type is ActionType.IMPLEMENT
        assert rec.projected_annual_savings > 0
        assert rec.change_magnitude <= 0.10

    def test_recommendation_fields(self, engine, olive_oil, steady_history, current_policy):
        rec = engine.recommend(olive_oil, steady_history, current_policy)

        assert rec.item_id == "prod-0"
        assert rec.location_id == "loc-1"
        assert rec.product_code == "OIL-001"
        assert rec.current_rop == 40
        assert rec.current_eoq == 60
        assert rec.current_safety_stock == 5
        assert rec.daily_demand == pytest.approx(5.0)
        assert rec.lead_time_days == 7
        assert rec.target_service_level == 0.95
        assert rec.recommended_rop == pytest.approx(rec.daily_demand * 7 + rec.recommended_safety_stock)
        assert rec.projected_annual_savings == pytest.approx(rec.holding_savings + rec.stockout_savings)

    def test_large_eoq_change_is_high_risk(self, engine, olive_oil, steady_history, current_policy):
        """EOQ 60 → ~270 is far beyond the 30% high threshold."""
        rec = engine.recommend(olive_oil, steady_history, current_policy)
        assert rec.risk_level is RiskLevel.HIGH
        # Holding savings are large, so the change is worth watching rather than rejecting
        assert rec.action_type is ActionType.MONITOR

    def test_critical_item_is_high_risk(self, engine, salmon, build_history):
        rec = engine.recommend(salmon, build_history([8, 12] * 30))
        assert rec.risk_level is RiskLevel.HIGH

    def test_default_lead_time_applied(self, engine, olive_oil, steady_history):
        rec = engine.recommend(replace(olive_oil, lead_time_days=None), steady_history)
        assert rec.lead_time_days == 7

    def test_missing_history_raises(self, engine, spinach):
        with pytest.raises(InsufficientDataError):
            engine.recommend(spinach, [])

    def test_zero_demand_fallback(self, params, thresholds, spinach):
        engine = ReplenishmentEngine(params, thresholds, insufficient_data_policy="zero_demand")
        rec = engine.recommend(spinach, [])

        assert rec.daily_demand == 0
        assert rec.recommended_rop == 0
        assert rec.recommended_eoq == 0
        assert rec.recommended_safety_stock == 0
        assert rec.risk_level is RiskLevel.LOW
        assert rec.action_type is ActionType.MONITOR

    def test_unknown_fallback_policy(self, params):
        with pytest.raises(ValueError):
            ReplenishmentEngine(params, insufficient_data_policy="guess")


# ── Batch run ─────────────────────────────────────────────────────────


class TestRun:
    def test_failed_item_does_not_abort_batch(self, engine, olive_oil, salmon, spinach, steady_history, build_history):
        histories = {
            ("prod-0", "loc-1"): steady_history,
            ("prod-7", "loc-2"): build_history([8, 12] * 30),
        }
        result = engine.run([olive_oil, spinach, salmon], histories, as_of=AS_OF)

        assert [r.item_id for r in result.recommendations] == ["prod-0", "prod-7"]
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.item_id == "prod-10"
        assert error.location_id == "loc-1"
        assert error.error_type == "InsufficientDataError"

    def test_cost_error_flagged(self, engine, olive_oil, steady_history):
        broken = replace(olive_oil, product_id="prod-99", unit_cost=0)
        histories = {"prod-0": steady_history, "prod-99": steady_history}
        result = engine.run([olive_oil, broken], histories)

        assert len(result) == 1
        assert result.errors[0].error_type == "InvalidCostParameterError"

    def test_histories_keyed_by_product(self, engine, olive_oil, steady_history):
        result = engine.run([olive_oil], {"prod-0": steady_history})
        assert len(result) == 1
        assert result.errors == ()

    def test_policies_applied_per_item(self, engine, olive_oil, steady_history, current_policy):
        result = engine.run([olive_oil], {"prod-0": steady_history}, {("prod-0", "loc-1"): current_policy})
        assert result.recommendations[0].current_eoq == 60

    def test_same_item_at_two_locations(self, engine, olive_oil, steady_history, build_history):
        satellite = replace(olive_oil, location_id="loc-2")
        histories = {
            ("prod-0", "loc-1"): steady_history,
            ("prod-0", "loc-2"): build_history([10] * 30),
        }
        result = engine.run([olive_oil, satellite], histories)
        by_location = {r.location_id: r for r in result.recommendations}
        assert by_location["loc-1"].daily_demand == pytest.approx(5.0)
        assert by_location["loc-2"].daily_demand == pytest.approx(10.0)

    def test_invariants_hold(self, params, thresholds, olive_oil, salmon, steady_history, build_history):
        engine = ReplenishmentEngine(replace(params, minimum_order_qty=24), thresholds)
        histories = {"prod-0": steady_history, "prod-7": build_history([0, 1, 0, 2] * 10)}
        for rec in engine.run([olive_oil, salmon], histories).recommendations:
            assert rec.recommended_rop >= 0
            assert rec.recommended_safety_stock >= 0
            assert rec.recommended_eoq >= 24
            assert rec.holding_savings >= 0
            assert rec.stockout_savings >= 0

    def test_result_is_immutable(self, engine, olive_oil, steady_history):
        result = engine.run([olive_oil], {"prod-0": steady_history})
        with pytest.raises(FrozenInstanceError):
            result.recommendations[0].risk_level = RiskLevel.LOW
        with pytest.raises(FrozenInstanceError):
            result.errors = ()

    def test_metadata(self, engine, olive_oil, steady_history):
        result = engine.run([olive_oil], {"prod-0": steady_history}, as_of=AS_OF)
        assert result.metadata["as_of"] == "2024-06-30"
        assert result.metadata["target_service_level"] == 0.95

    def test_stale_item_planned_against_batch_date(self, params, thresholds, olive_oil, salmon, build_history):
        """Salmon last moved a year before olive oil; its demand is not carried forward."""
        engine = ReplenishmentEngine(replace(params, historical_window_days=30), thresholds)
        histories = {
            "prod-0": build_history([5] * 30),
            "prod-7": build_history([5] * 30, end=date(2023, 6, 30)),
        }
        result = engine.run([olive_oil, salmon], histories)

        assert result.metadata["as_of"] == "2024-06-30"
        assert [r.item_id for r in result.recommendations] == ["prod-0"]
        assert result.errors[0].item_id == "prod-7"
        assert result.errors[0].error_type == "InsufficientDataError"

    def test_stale_item_with_zero_demand_fallback(self, params, thresholds, salmon, olive_oil, build_history):
        engine = ReplenishmentEngine(
            replace(params, historical_window_days=30), thresholds, insufficient_data_policy="zero_demand"
        )
        histories = {
            "prod-0": build_history([5] * 30),
            "prod-7": build_history([5] * 30, end=date(2023, 6, 30)),
        }
        by_item = {r.item_id: r for r in engine.run([olive_oil, salmon], histories).recommendations}
        assert by_item["prod-7"].daily_demand == 0
        assert by_item["prod-7"].order_up_to_level == 0

    def test_quiet_item_demand_diluted_by_batch_date(self, engine, olive_oil, salmon, build_history):
        """Salmon stopped 30 days before the batch's latest date: 60 days of 6 over 90 days."""
        histories = {
            "prod-0": build_history([5] * 90),
            "prod-7": build_history([6] * 60, end=date(2024, 5, 31)),
        }
        by_item = {r.item_id: r for r in engine.run([olive_oil, salmon], histories).recommendations}
        assert by_item["prod-7"].daily_demand == pytest.approx(4.0)

    def test_empty_batch(self, engine):
        result = engine.run([], {})
        assert len(result) == 0
        assert result.summary.count == 0

    def test_deterministic(self, engine, olive_oil, salmon, steady_history, build_history):
        histories = {"prod-0": steady_history, "prod-7": build_history([8, 12] * 30)}
        assert engine.run([olive_oil, salmon], histories) == engine.run([olive_oil, salmon], histories)

    def test_logs_failures(self, engine, spinach):
        with capture_logs() as logs:
            engine.run([spinach], {})
        events = [entry["event"] for entry in logs]
        assert "engine.run_started" in events
        assert "engine.item_failed" in events
        assert "engine.run_completed" in events

    def test_logs_high_variability(self, engine, olive_oil, build_history):
        """Demand of 0/10 alternating has ~100% variability."""
        with capture_logs() as logs:
            engine.run([olive_oil], {"prod-0": build_history([0, 10] * 30)})
        assert any(entry["event"] == "engine.high_variability" for entry in logs)


# ── Settings wiring ───────────────────────────────────────────────────


class TestFromSettings:
    def test_engine_uses_settings(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_SERVICE_LEVEL", "0.99")
        monkeypatch.setenv("HIGH_CHANGE_THRESHOLD", "0.5")
        monkeypatch.setenv("INSUFFICIENT_DATA_POLICY", "zero_demand")
        engine = ReplenishmentEngine.from_settings(Settings())

        assert engine.params.target_service_level == 0.99
        assert engine.thresholds.high_change_threshold == 0.5
        assert engine.insufficient_data_policy == "zero_demand"
