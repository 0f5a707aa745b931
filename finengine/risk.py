# finengine/risk.py
"""
Obligation risk classifier.

Purpose
-------
Turns a snapshot of recurring obligations plus an optional current balance
into a discrete risk level (low / medium / high), together with the list of
obligations falling inside the look-ahead window and the salary timing
figures the caller displays next to it.

Algorithm
---------
1. Any unpaid obligation whose due day is earlier than today's day of month,
   within the overdue lookback (15 days), makes the level ``high``.
2. Otherwise sum the unpaid obligations due in the next 7 days. Day-of-month
   distances wrap on a fixed 30-day month (see `day_of_month_diff`).
3. Balance known:   high   if balance < due7
                    medium if due7 > 0.5 * balance
                    low    otherwise
4. Balance unknown: medium if due7 > 0 and at least 3 obligations fall in
                    the window, low otherwise.

Notes
-----
The 30-day wrap is a known approximation: near the end of 28/29/31-day
months the window is off by up to two days. The thresholds above were tuned
against it, so it is kept as is.

Example
-------
>>> from datetime import date
>>> from finengine.risk import Obligation, calculate_risk
>>> bills = [Obligation(id="rent", name="Rent", amount=8000, due_day=8)]
>>> calculate_risk(bills, salary_day=10, today=date(2024, 1, 5),
...                current_balance=10000).level
'medium'
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Literal, Optional, Sequence, Tuple
import logging
import math

from .config import RiskConfig
from .utils import (
    DateLike,
    add_months,
    check_day_of_month,
    check_non_negative,
    clamp_day,
    day_of_month_diff,
    days_between,
)

__all__ = [
    "ObligationCategory",
    "RiskLevel",
    "Obligation",
    "RiskResult",
    "days_until_salary",
    "days_until_due",
    "is_payment_before_salary",
    "unpaid_before_salary",
    "upcoming_obligations",
    "has_overdue",
    "calculate_risk",
]

logger = logging.getLogger(__name__)

ObligationCategory = Literal["utilities", "credit", "subscription", "mfo", "other"]
RiskLevel = Literal["low", "medium", "high"]

_CATEGORIES = ("utilities", "credit", "subscription", "mfo", "other")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Obligation:
    """
    Recurring monthly obligation (bill, instalment, subscription).

    Parameters
    ----------
    id : str
        Caller-owned identifier.
    name : str
        Display name.
    amount : float
        Amount due each month, non-negative.
    due_day : int
        Day of month the payment is due (1-31).
    category : {"utilities", "credit", "subscription", "mfo", "other"}
    is_paid : bool
        Whether the current month's payment has been made.
    last_paid_at, created_at, updated_at : datetime, optional
        Caller-owned timestamps; the engine only reads them.
    """
    id: str
    name: str
    amount: float
    due_day: int
    category: ObligationCategory = "other"
    is_paid: bool = False
    last_paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        check_non_negative("amount", self.amount)
        check_day_of_month("due_day", self.due_day)
        if self.category not in _CATEGORIES:
            raise ValueError(
                f"category must be one of {_CATEGORIES}, got {self.category!r}"
            )


@dataclass(frozen=True)
class RiskResult:
    """
    Outcome of `calculate_risk`.

    Attributes
    ----------
    level : {"low", "medium", "high"}
    amount_due_7_days : float
        Sum of unpaid obligations in the look-ahead window.
    amount_due_before_salary : float
        Sum of unpaid obligations due between today and the next payday.
    days_until_salary : int
        Calendar days until the next salary day.
    has_overdue : bool
        True when the level was forced by an overdue obligation.
    at_risk : tuple of Obligation
        Unpaid obligations in the look-ahead window, input order.
    """
    level: RiskLevel
    amount_due_7_days: float
    amount_due_before_salary: float
    days_until_salary: int
    has_overdue: bool = False
    at_risk: Tuple[Obligation, ...] = field(default_factory=tuple)

    @property
    def at_risk_ids(self) -> List[str]:
        """Ids of the at-risk obligations."""
        return [o.id for o in self.at_risk]


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def days_until_salary(today: DateLike, salary_day: int) -> int:
    """
    Calendar days from *today* to the next salary day.

    Rolls to next month when ``today.day >= salary_day``. A salary day past
    the end of the target month is clamped to that month's last day.

    Examples
    --------
    >>> days_until_salary(date(2024, 1, 5), 10)
    5
    >>> days_until_salary(date(2024, 1, 15), 10)
    26
    """
    check_day_of_month("salary_day", salary_day)
    if today.day >= salary_day:
        nxt = add_months(date(today.year, today.month, 1), 1)
        payday = clamp_day(nxt.year, nxt.month, salary_day)
    else:
        payday = clamp_day(today.year, today.month, salary_day)
    return int(math.ceil(days_between(today, payday)))


def days_until_due(obligation: Obligation, today: DateLike, *, month_days: int = 30) -> int:
    """Days from *today* to the obligation's next due day (30-day wrap)."""
    return day_of_month_diff(obligation.due_day, today.day, month_days=month_days)


def is_payment_before_salary(obligation: Obligation, today: DateLike, salary_day: int) -> bool:
    """
    Whether *obligation* falls due before the next salary arrives.

    Salary still ahead this month: due in [today, salary_day).
    Salary already received: due later this month or early next month,
    before salary_day.
    """
    current = today.day
    due = obligation.due_day
    if current < salary_day:
        return current <= due < salary_day
    return due > current or due < salary_day


def unpaid_before_salary(
    obligations: Sequence[Obligation],
    today: DateLike,
    salary_day: int,
) -> List[Obligation]:
    """Unpaid obligations due before the next salary day, input order."""
    return [
        o for o in obligations
        if not o.is_paid and is_payment_before_salary(o, today, salary_day)
    ]


def upcoming_obligations(
    obligations: Sequence[Obligation],
    today: DateLike,
    window_days: int = 7,
    *,
    month_days: int = 30,
) -> List[Obligation]:
    """Unpaid obligations due within *window_days* of *today* (inclusive)."""
    out = []
    for o in obligations:
        if o.is_paid:
            continue
        diff = days_until_due(o, today, month_days=month_days)
        if 0 <= diff <= window_days:
            out.append(o)
    return out


def has_overdue(
    obligations: Sequence[Obligation],
    today: DateLike,
    lookback_days: int = 15,
) -> bool:
    """True if an unpaid obligation fell due within the lookback window."""
    current = today.day
    return any(
        not o.is_paid and o.due_day < current and current - o.due_day < lookback_days
        for o in obligations
    )


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------

def calculate_risk(
    obligations: Sequence[Obligation],
    salary_day: int,
    today: DateLike,
    current_balance: Optional[float] = None,
    config: Optional[RiskConfig] = None,
) -> RiskResult:
    """
    Classify the short-term payment risk of a set of obligations.

    Parameters
    ----------
    obligations : sequence of Obligation
        Snapshot of the caller's obligations (paid ones are ignored).
    salary_day : int
        Day of month salary arrives (1-31).
    today : date or datetime
        As-of date; the classifier never reads the clock.
    current_balance : float, optional
        Available balance. None means unknown.
    config : RiskConfig, optional
        Window and threshold overrides.

    Returns
    -------
    RiskResult
    """
    cfg = config or RiskConfig()

    window = upcoming_obligations(
        obligations, today, cfg.window_days, month_days=cfg.month_days
    )
    due7 = float(sum(o.amount for o in window))
    before_salary = float(
        sum(o.amount for o in unpaid_before_salary(obligations, today, salary_day))
    )
    overdue = has_overdue(obligations, today, cfg.overdue_lookback_days)

    level: RiskLevel
    if overdue:
        level = "high"
    elif current_balance is not None:
        if current_balance < due7:
            level = "high"
        elif due7 > current_balance * cfg.load_ratio:
            level = "medium"
        else:
            level = "low"
    elif due7 > 0 and len(window) >= cfg.min_count_no_balance:
        level = "medium"
    else:
        level = "low"

    logger.debug(
        "risk: level=%s due7=%.2f window=%d overdue=%s balance=%s",
        level, due7, len(window), overdue, current_balance,
    )
    return RiskResult(
        level=level,
        amount_due_7_days=due7,
        amount_due_before_salary=before_salary,
        days_until_salary=days_until_salary(today, salary_day),
        has_overdue=overdue,
        at_risk=tuple(window),
    )
