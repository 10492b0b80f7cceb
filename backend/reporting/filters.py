"""
Record Filters — Declarative condition chains over list-screen records.

One implementation of the quick-filter / advanced-filter builder every list
screen offers. Records can be dataclasses, plain objects or mappings, and
fields of any type are compared uniformly:

  contains / equals / notEquals   case-insensitive text (equals is numeric
                                  when both sides parse as numbers)
  greaterThan / lessThan          numeric; unparseable values never match
  isEmpty / isNotEmpty            None, blank text or an empty collection

A blank contains value keeps every record, the same as a blank search.
Conditions combine with AND, in the order given.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from inventory.errors import InvalidFilterOperatorError

T = TypeVar("T")

ALL = "all"


class FilterOperator(str, Enum):
    CONTAINS = "contains"
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"


@dataclass(frozen=True)
class FilterCondition:
    field: str
    operator: FilterOperator
    value: Any = None

    def __post_init__(self):
        try:
            operator = FilterOperator(self.operator)
        except ValueError as exc:
            raise InvalidFilterOperatorError(f"Unknown filter operator '{self.operator}'") from exc
        object.__setattr__(self, "operator", operator)


def get_field(record: Any, field: str) -> Any:
    """Read a field from a mapping or an object; enums yield their value."""
    if isinstance(record, Mapping):
        value = record.get(field)
    else:
        value = getattr(record, field, None)
    if isinstance(value, Enum):
        return value.value
    return value


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_text(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    return "" if value is None else str(value).strip().casefold()


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def _equals(field_value: Any, expected: Any) -> bool:
    left, right = _as_number(field_value), _as_number(expected)
    if left is not None and right is not None:
        return left == right
    if field_value is None:
        return _is_empty(expected)
    return _as_text(field_value) == _as_text(expected)


def _compare(field_value: Any, expected: Any, op: Callable[[float, float], bool]) -> bool:
    left, right = _as_number(field_value), _as_number(expected)
    if left is None or right is None:
        return False
    return op(left, right)


def matches(record: Any, condition: FilterCondition) -> bool:
    value = get_field(record, condition.field)
    operator = condition.operator

    if operator is FilterOperator.CONTAINS:
        needle = _as_text(condition.value)
        if not needle:
            return True
        return value is not None and needle in _as_text(value)
    if operator is FilterOperator.EQUALS:
        return _equals(value, condition.value)
    if operator is FilterOperator.NOT_EQUALS:
        return not _equals(value, condition.value)
    if operator is FilterOperator.GREATER_THAN:
        return _compare(value, condition.value, lambda a, b: a > b)
    if operator is FilterOperator.LESS_THAN:
        return _compare(value, condition.value, lambda a, b: a < b)
    if operator is FilterOperator.IS_EMPTY:
        return _is_empty(value)
    if operator is FilterOperator.IS_NOT_EMPTY:
        return not _is_empty(value)
    raise InvalidFilterOperatorError(f"Unknown filter operator '{operator}'")


def build_conditions(raw: Iterable[Mapping[str, Any]]) -> list[FilterCondition]:
    """Conditions from {"field", "operator", "value"} dicts, as posted by a filter builder."""
    return [FilterCondition(field=c["field"], operator=c["operator"], value=c.get("value")) for c in raw]


def apply_filters(records: Sequence[T], conditions: Sequence[FilterCondition]) -> list[T]:
    """Records satisfying every condition, in input order."""
    if not conditions:
        return list(records)
    return [r for r in records if all(matches(r, c) for c in conditions)]


# ── Quick filters ──────────────────────────────────────────────────────


def search_records(
    records: Sequence[T],
    term: str | None,
    fields: Sequence[str] = ("product_name", "product_code"),
) -> list[T]:
    """Case-insensitive substring search across any of the given fields."""
    needle = _as_text(term)
    if not needle:
        return list(records)
    return [r for r in records if any(needle in _as_text(get_field(r, f)) for f in fields)]


def filter_by_value(records: Sequence[T], field: str, value: Any) -> list[T]:
    """Dropdown filter: exact match on a field, where "all" (or None) keeps everything."""
    if value is None or value == ALL:
        return list(records)
    return apply_filters(records, [FilterCondition(field, FilterOperator.EQUALS, value)])


def sort_records(records: Sequence[T], field: str, descending: bool = False) -> list[T]:
    """
    Stable sort on one field. In a column mixing numbers and text, numbers
    come before text in either direction; missing values always come last.
    """
    numbers, texts, missing = [], [], []
    for record in records:
        value = get_field(record, field)
        if _is_empty(value):
            missing.append(record)
        elif _as_number(value) is not None:
            numbers.append(record)
        else:
            texts.append(record)

    numbers.sort(key=lambda r: _as_number(get_field(r, field)), reverse=descending)
    texts.sort(key=lambda r: _as_text(get_field(r, field)), reverse=descending)
    return numbers + texts + missing
