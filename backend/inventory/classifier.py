"""
Risk & Action Classifier — Threshold rules for reorder recommendations.

Risk level:
  high    change > high threshold, or critical item with a non-trivial change
  low     change ≤ low threshold, non-critical, service gap within tolerance
  medium  everything else

Action:
  savings ≈ 0   → reject (high risk) / monitor (otherwise)
  high risk     → reject unless savings clear the minimum benefit, then monitor
  medium risk   → pilot
  low risk      → implement

Rules are checked strictest first, so every input maps to exactly one outcome.
"""

from dataclasses import dataclass

from inventory.models import ActionType, RiskLevel


@dataclass(frozen=True)
class ClassifierThresholds:
    """Tunable classification boundaries (fractions of the current value)."""

    low_change_threshold: float = 0.10
    high_change_threshold: float = 0.30
    trivial_change_threshold: float = 0.02
    service_gap_tolerance: float = 0.05
    min_benefit: float = 25.0
    savings_epsilon: float = 0.01

    @classmethod
    def from_settings(cls, settings) -> "ClassifierThresholds":
        return cls(
            low_change_threshold=settings.low_change_threshold,
            high_change_threshold=settings.high_change_threshold,
            trivial_change_threshold=settings.trivial_change_threshold,
            service_gap_tolerance=settings.service_gap_tolerance,
            min_benefit=settings.min_benefit,
            savings_epsilon=settings.savings_epsilon,
        )


DEFAULT_THRESHOLDS = ClassifierThresholds()


def change_magnitude(current: float, recommended: float) -> float:
    """Relative change, with current values below 1 treated as 1."""
    return abs(recommended - current) / max(current, 1)


def service_level_gap(current_service_level: float, target_service_level: float) -> float:
    """How far the current policy falls short of target (0 when it meets it)."""
    return max(0.0, target_service_level - current_service_level)


def classify_risk(
    service_gap: float,
    change: float,
    is_critical: bool,
    thresholds: ClassifierThresholds = DEFAULT_THRESHOLDS,
) -> RiskLevel:
    if change > thresholds.high_change_threshold:
        return RiskLevel.HIGH
    if is_critical and change > thresholds.trivial_change_threshold:
        return RiskLevel.HIGH
    if (
        change <= thresholds.low_change_threshold
        and not is_critical
        and service_gap <= thresholds.service_gap_tolerance
    ):
        return RiskLevel.LOW
    return RiskLevel.MEDIUM


def classify_action(
    risk: RiskLevel,
    savings: float,
    thresholds: ClassifierThresholds = DEFAULT_THRESHOLDS,
) -> ActionType:
    if savings <= thresholds.savings_epsilon:
        return ActionType.REJECT if risk is RiskLevel.HIGH else ActionType.MONITOR
    if risk is RiskLevel.HIGH:
        if savings <= thresholds.min_benefit:
            return ActionType.REJECT
        return ActionType.MONITOR
    if risk is RiskLevel.MEDIUM:
        return ActionType.PILOT
    return ActionType.IMPLEMENT


def describe_risk(risk: RiskLevel) -> str:
    """One-line assessment shown alongside a recommendation."""
    return {
        RiskLevel.LOW: "Minor changes to non-critical item",
        RiskLevel.MEDIUM: "Moderate changes, recommend pilot testing",
        RiskLevel.HIGH: "Significant changes to critical item, careful review required",
    }[risk]
