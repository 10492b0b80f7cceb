"""Par-level replenishment helpers for store operations."""

from inventory.errors import InvalidPlanningInputError
from inventory.models import StockStatus


def suggested_order_qty(par_level: float, current_stock: float, on_order: float = 0.0) -> float:
    """
    Quantity needed to bring stock back to par, counting what is already on order.

    Example: par 80, 25 on hand, 50 on order → 5
    """
    if par_level < 0 or on_order < 0:
        raise InvalidPlanningInputError("par level and on-order quantity must be non-negative")
    return max(0.0, par_level - (current_stock + on_order))


def stock_status(current_stock: float, min_level: float, max_level: float) -> StockStatus:
    if min_level > max_level:
        raise InvalidPlanningInputError(f"min level {min_level} exceeds max level {max_level}")
    if current_stock < min_level:
        return StockStatus.LOW
    if current_stock > max_level:
        return StockStatus.HIGH
    return StockStatus.NORMAL


def needs_transfer(current_stock: float, transfer_trigger: float) -> bool:
    """Stock has fallen to the level where an inter-location transfer is requested."""
    return current_stock <= transfer_trigger
