"""
Planning Errors — value-level failures raised by the replenishment calculators.

All of these are local to a single item's calculation. The batch engine
captures them per item so one bad record never aborts a run.
"""


class PlanningError(ValueError):
    """Base class for recoverable replenishment calculation failures."""


class InsufficientDataError(PlanningError):
    """Raised when demand estimation has no consumption history to work with."""


class InvalidServiceLevelError(PlanningError):
    """Raised when a service level falls outside the open interval (0, 1)."""


class InvalidCostParameterError(PlanningError):
    """Raised when cost inputs would divide by zero or go negative."""


class InvalidFilterOperatorError(PlanningError):
    """Raised when a filter condition names an unknown operator."""


class InvalidPlanningInputError(PlanningError):
    """Raised for negative quantities, lead times or out-of-range windows."""
