"""
Tests for settings loading and planning guardrails.
"""

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings
from inventory.classifier import ClassifierThresholds
from inventory.models import ReplenishmentParameters, RoundingPolicy, apply_rounding


class TestDefaults:
    def test_planning_defaults(self):
        settings = Settings()
        assert settings.default_service_level == 0.95
        assert settings.order_cost_per_order == 50.0
        assert settings.holding_cost_rate == 0.22
        assert settings.default_lead_time_days == 7.0
        assert settings.historical_data_period == 90
        assert settings.insufficient_data_policy == "flag"

    def test_parameters_from_settings(self):
        params = ReplenishmentParameters.from_settings(Settings())
        assert params == ReplenishmentParameters()

    def test_thresholds_from_settings(self):
        assert ClassifierThresholds.from_settings(Settings()) == ClassifierThresholds()


class TestEnvironment:
    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("ORDER_COST_PER_ORDER", "75")
        monkeypatch.setenv("HISTORICAL_DATA_PERIOD", "180")
        settings = get_settings()
        assert settings.order_cost_per_order == 75.0
        assert settings.historical_data_period == 180

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()

    @pytest.mark.parametrize(
        "name,value",
        [
            ("DEFAULT_SERVICE_LEVEL", "1.0"),
            ("DEFAULT_SERVICE_LEVEL", "0"),
            ("ORDER_COST_PER_ORDER", "0"),
            ("HOLDING_COST_RATE", "-0.1"),
            ("HISTORICAL_DATA_PERIOD", "10"),
            ("INSUFFICIENT_DATA_POLICY", "guess"),
        ],
    )
    def test_invalid_values_rejected(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            Settings()


class TestGuardrails:
    def test_low_threshold_must_be_below_high(self, monkeypatch):
        monkeypatch.setenv("LOW_CHANGE_THRESHOLD", "0.4")
        with pytest.raises(ValueError, match="low_change_threshold"):
            get_settings()

    def test_trivial_threshold_within_low(self, monkeypatch):
        monkeypatch.setenv("TRIVIAL_CHANGE_THRESHOLD", "0.2")
        with pytest.raises(ValueError, match="trivial_change_threshold"):
            get_settings()

    def test_service_gap_tolerance_bounds(self, monkeypatch):
        monkeypatch.setenv("SERVICE_GAP_TOLERANCE", "1.5")
        with pytest.raises(ValueError, match="service_gap_tolerance"):
            get_settings()

    def test_window_bounds(self, monkeypatch):
        monkeypatch.setenv("MAX_HISTORICAL_WINDOW_DAYS", "60")
        with pytest.raises(ValueError, match="historical_data_period"):
            get_settings()


class TestRounding:
    @pytest.mark.parametrize(
        "policy,expected",
        [
            (RoundingPolicy.NONE, 12.4),
            (RoundingPolicy.CEIL, 13.0),
            (RoundingPolicy.FLOOR, 12.0),
            (RoundingPolicy.NEAREST, 12.0),
            ("ceil", 13.0),
        ],
    )
    def test_policies(self, policy, expected):
        assert apply_rounding(12.4, policy) == expected

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            apply_rounding(1.5, "bankers")
