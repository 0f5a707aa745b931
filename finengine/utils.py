"""General utilities for FinEngine

Contents
--------
- Validation helpers
- Array/Series helpers (ensure_1d, day_series)
- Calendar helpers (days_between, add_days, add_months, clamp_day,
  day_of_month_diff)
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .constants import APPROX_MONTH_DAYS

__all__ = [
    # Validation
    "check_non_negative",
    "check_day_of_month",
    # Arrays / Series
    "ensure_1d",
    "day_series",
    # Calendar
    "days_between",
    "add_days",
    "add_months",
    "clamp_day",
    "day_of_month_diff",
]

DateLike = Union[date, datetime, pd.Timestamp]

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def check_non_negative(name: str, value: float) -> None:
    """Raise if *value* is negative (strict)."""
    if value < 0:
        raise ValueError(f"{name} must be non-negative (got {value}).")


def check_day_of_month(name: str, value: int) -> None:
    """Raise if *value* is not a valid day of month (1..31)."""
    if not (1 <= int(value) <= 31):
        raise ValueError(f"{name} must be in 1..31 (got {value}).")


# ---------------------------------------------------------------------------
# Array / Series helpers
# ---------------------------------------------------------------------------
ArrayLike = Sequence[float] | np.ndarray | pd.Series


def ensure_1d(a: ArrayLike, *, name: str = "array") -> np.ndarray:
    """Convert input to a 1-D float NumPy array with helpful error messages."""
    arr = np.asarray(a, dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-D, got shape {arr.shape}.")
    if not np.isfinite(arr).all():
        raise ValueError(f"{name} must contain only finite values.")
    return arr


def day_series(amounts: Mapping[int, float], days: int, *, name: str = "spend") -> pd.Series:
    """Return a 1-based day-indexed Series of length *days*, zero-filled.

    Days outside 1..days are dropped. Repeated days must already be summed
    by the caller (a Mapping cannot hold duplicates).
    """
    index = pd.RangeIndex(1, max(int(days), 0) + 1, name="day")
    s = pd.Series(amounts, dtype=float, name=name)
    return s.reindex(index, fill_value=0.0)


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def _like(ts: pd.Timestamp, original: DateLike) -> DateLike:
    """Return *ts* as the same type as *original* (date stays date)."""
    if isinstance(original, pd.Timestamp):
        return ts
    if isinstance(original, datetime):
        return ts.to_pydatetime()
    return ts.date()


def days_between(start: DateLike, end: DateLike) -> float:
    """Fractional days from *start* to *end* (negative if end is earlier)."""
    return float((pd.Timestamp(end) - pd.Timestamp(start)) / pd.Timedelta(days=1))


def add_days(start: DateLike, days: float) -> DateLike:
    """Shift *start* by *days* (may be fractional for datetimes)."""
    return _like(pd.Timestamp(start) + pd.Timedelta(days=float(days)), start)


def add_months(start: DateLike, months: int) -> DateLike:
    """Shift *start* by whole calendar months, clamping the day to month end."""
    return _like(pd.Timestamp(start) + pd.DateOffset(months=int(months)), start)


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping *day* to the length of the month.

    >>> clamp_day(2025, 2, 31)
    datetime.date(2025, 2, 28)
    """
    last = pd.Timestamp(year=year, month=month, day=1).days_in_month
    return date(year, month, min(int(day), int(last)))


def day_of_month_diff(due_day: int, today_day: int, *, month_days: Optional[int] = None) -> int:
    """Days from *today_day* to the next *due_day*, wrapping on a fixed month.

    Uses a fixed month length (30 by default) instead of the calendar.
    This is the documented approximation the risk thresholds are tuned on.
    """
    month_days = APPROX_MONTH_DAYS if month_days is None else month_days
    diff = int(due_day) - int(today_day)
    if diff < 0:
        diff += month_days
    return diff
