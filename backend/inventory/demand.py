"""
Demand Estimator — Daily demand statistics from consumption history.

Turns a sequence of (date, quantity) consumption observations into the
mean and variability inputs the safety stock and reorder calculators need.

Algorithm:
  1. Sum observations sharing a date into one daily total
  2. Keep days in (as_of - window_days, as_of]; as_of defaults to the latest date
  3. Fill every calendar day from the later of window start and first
     observation through as_of, days without consumption counting as 0
  4. Mean + sample standard deviation (ddof=1) of the daily series
  5. Variability % = std / mean × 100

A one-day series has a standard deviation of 0. No history raises
InsufficientDataError; the caller owns the fallback policy.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

import numpy as np
import pandas as pd

from inventory.errors import InsufficientDataError, InvalidPlanningInputError
from inventory.models import ConsumptionRecord, DemandProfile

MIN_WINDOW_DAYS = 30
MAX_WINDOW_DAYS = 365
DEFAULT_HIGH_VARIABILITY_PCT = 25.0


def _validate_window(window_days: int, min_window: int, max_window: int) -> None:
    if not min_window <= window_days <= max_window:
        raise InvalidPlanningInputError(
            f"historical window must be between {min_window} and {max_window} days, got {window_days}"
        )


def _daily_totals(
    observations: Iterable[ConsumptionRecord],
    window_days: int,
    as_of: date | None,
) -> pd.Series:
    """
    Calendar-day demand series over the window, days without consumption as 0.

    The series starts at the later of the window start and the first
    observation, so a short history is not diluted by days before it began.
    Empty when nothing was consumed inside the window.
    """
    totals: dict[date, float] = {}
    for obs in observations:
        if obs.quantity < 0:
            raise InvalidPlanningInputError(f"consumption quantity must be non-negative, got {obs.quantity}")
        totals[obs.date] = totals.get(obs.date, 0.0) + float(obs.quantity)

    if not totals:
        return pd.Series(dtype=float)

    end = as_of or max(totals)
    window_start = end - timedelta(days=window_days - 1)
    in_window = {day: qty for day, qty in totals.items() if window_start <= day <= end}
    if not in_window:
        return pd.Series(dtype=float)

    start = max(window_start, min(totals))
    series = pd.Series(in_window, dtype=float)
    series.index = pd.to_datetime(series.index)
    return series.reindex(pd.date_range(start, end, freq="D"), fill_value=0.0)


def estimate_demand(
    observations: Iterable[ConsumptionRecord],
    window_days: int = 90,
    *,
    lead_time_days: float = 0.0,
    as_of: date | None = None,
    min_window: int = MIN_WINDOW_DAYS,
    max_window: int = MAX_WINDOW_DAYS,
) -> DemandProfile:
    """
    Estimate daily demand mean and variability over the historical window.

    Uses the sample standard deviation (ddof=1), the same estimator
    PostgreSQL's stddev() applies to forecast rows. observation_count is
    the number of calendar days the series covers.

    Raises:
        InsufficientDataError: no observations fall inside the window.
        InvalidPlanningInputError: window out of bounds or negative quantity.
    """
    _validate_window(window_days, min_window, max_window)
    if lead_time_days < 0:
        raise InvalidPlanningInputError(f"lead time must be non-negative, got {lead_time_days}")

    daily = _daily_totals(observations, window_days, as_of)
    if daily.empty:
        raise InsufficientDataError(f"no consumption history in the last {window_days} days")

    values = np.asarray(daily, dtype=float)
    mean = float(values.mean())
    std_dev = float(values.std(ddof=1)) if len(values) > 1 else 0.0
    variability = std_dev / mean * 100 if mean > 0 else 0.0

    return DemandProfile(
        daily_demand_mean=mean,
        daily_demand_std_dev=std_dev,
        demand_variability_pct=variability,
        lead_time_days=lead_time_days,
        historical_window_days=window_days,
        observation_count=len(daily),
    )


def estimate_demand_from_frame(
    df: pd.DataFrame,
    window_days: int = 90,
    *,
    date_col: str = "date",
    quantity_col: str = "quantity",
    **kwargs,
) -> DemandProfile:
    """
    Same as estimate_demand, for a consumption DataFrame.

    Rows whose date or quantity cannot be parsed are dropped before estimation.
    """
    missing = {date_col, quantity_col} - set(df.columns)
    if missing:
        raise InvalidPlanningInputError(f"Missing required columns for demand estimation: {sorted(missing)}")

    work = pd.DataFrame(
        {
            "date": pd.to_datetime(df[date_col], errors="coerce").dt.date,
            "quantity": pd.to_numeric(df[quantity_col], errors="coerce"),
        }
    ).dropna()

    records = [ConsumptionRecord(date=row.date, quantity=float(row.quantity)) for row in work.itertuples(index=False)]
    return estimate_demand(records, window_days, **kwargs)


def zero_demand_profile(lead_time_days: float, window_days: int) -> DemandProfile:
    """Fallback profile for items with no usable history."""
    return DemandProfile(
        daily_demand_mean=0.0,
        daily_demand_std_dev=0.0,
        demand_variability_pct=0.0,
        lead_time_days=lead_time_days,
        historical_window_days=window_days,
        observation_count=0,
    )


def is_high_variability(profile: DemandProfile, threshold_pct: float = DEFAULT_HIGH_VARIABILITY_PCT) -> bool:
    return profile.demand_variability_pct > threshold_pct
