# finengine/payday.py
"""
Payday planner and income distribution helpers.

Purpose
-------
Splits an incoming payday amount into priority buckets and walks the days
until the next payday to check the balance never goes negative.

Allocation waterfall
--------------------
1. mandatory      : sum of bills, capped at what is available
2. buffer         : payday * buffer_rate
3. goals          : payday * 0.20
4. discretionary  : whatever is left

Cashflow
--------
Day 0 is payday: the payday amount is added to the current balance. For
each day t = 0..N (N = ceil of days between paydays) bills whose due day
matches the calendar day of month are paid and discretionary money is
spent evenly (allocated / N per day). The lowest balance and the first
day the balance turns negative are tracked.

Example
-------
>>> from datetime import date
>>> from finengine.payday import PaydayInput, plan_payday
>>> from finengine.risk import Obligation
>>> plan = plan_payday(PaydayInput(
...     current_balance=0, payday_amount=100_000,
...     payday_date=date(2025, 3, 5), next_payday_date=date(2025, 4, 5),
...     mandatories=[Obligation("rent", "Rent", 40_000, due_day=10)]))
>>> plan.buckets["discretionary"].allocated
30000.0
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Literal, Mapping, Optional, Sequence, Set, Tuple
import logging
import math

import numpy as np
import pandas as pd

from .constants import DEFAULT_GOAL_SHARE
from .envelopes import Envelope
from .risk import Obligation
from .utils import check_non_negative, days_between

__all__ = [
    "BucketType",
    "PaydayInput",
    "AllocationBucket",
    "PlannedFlow",
    "PaydayPlan",
    "calculate_allocation",
    "simulate_cashflow",
    "plan_payday",
    "DistributionItem",
    "amount_from_percent",
    "percent_from_amount",
    "scale_items",
    "distribution_totals",
]

logger = logging.getLogger(__name__)

BucketType = Literal["mandatory", "buffer", "goals", "discretionary"]


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PaydayInput:
    """
    Everything the payday planner needs.

    Parameters
    ----------
    payday_amount : float
        Money arriving on payday.
    payday_date, next_payday_date : date
        Period bounds; the next payday must come later.
    current_balance : float
        Balance before the payday arrives.
    buffer_rate : float
        Share of the payday kept as a buffer, in [0, 1].
    mandatories : sequence of Obligation
        Bills to pay during the period.
    goals : sequence of Envelope
        Savings goals funded from the goals bucket.
    """
    payday_amount: float
    payday_date: date
    next_payday_date: date
    current_balance: float = 0.0
    buffer_rate: float = 0.10
    mandatories: Tuple[Obligation, ...] = ()
    goals: Tuple[Envelope, ...] = ()

    def __post_init__(self):
        check_non_negative("payday_amount", self.payday_amount)
        if not (0.0 <= self.buffer_rate <= 1.0):
            raise ValueError(f"buffer_rate must be in [0, 1], got {self.buffer_rate}")
        if self.next_payday_date <= self.payday_date:
            raise ValueError(
                f"next_payday_date ({self.next_payday_date}) must be after "
                f"payday_date ({self.payday_date})"
            )

    @property
    def period_days(self) -> int:
        return int(math.ceil(days_between(self.payday_date, self.next_payday_date)))


@dataclass(frozen=True)
class AllocationBucket:
    """One bucket of the waterfall; ``min_required`` is what it asked for."""
    id: BucketType
    label: str
    priority: int
    min_required: float
    allocated: float
    item_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PlannedFlow:
    """Balance movement of one day of the period."""
    day: int
    date: date
    inflow: float
    outflow: float
    balance: float
    description: Optional[str] = None


@dataclass(frozen=True)
class PaydayPlan:
    """Allocation and simulated cashflow for one pay period."""
    total_income: float
    buckets: Dict[str, AllocationBucket]
    cashflow: Tuple[PlannedFlow, ...]
    lowest_balance: float
    risk_day: Optional[int]

    @property
    def is_safe(self) -> bool:
        """True when the balance never dips below zero."""
        return self.lowest_balance >= 0

    @property
    def unallocated(self) -> float:
        return self.total_income - sum(b.allocated for b in self.buckets.values())

    def to_frame(self) -> pd.DataFrame:
        """Cashflow as a DataFrame indexed by day."""
        return pd.DataFrame(
            [
                {
                    "day": f.day,
                    "date": f.date,
                    "inflow": f.inflow,
                    "outflow": f.outflow,
                    "balance": f.balance,
                    "description": f.description,
                }
                for f in self.cashflow
            ]
        ).set_index("day")


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------

def calculate_allocation(payday: PaydayInput, goal_share: float = DEFAULT_GOAL_SHARE) -> Dict[str, AllocationBucket]:
    """
    Priority waterfall of the payday amount.

    Returns
    -------
    dict
        Buckets keyed mandatory, buffer, goals, discretionary. Allocations
        always sum to the payday amount.
    """
    amount = payday.payday_amount
    asks = [
        ("mandatory", "Mandatory", float(sum(m.amount for m in payday.mandatories)),
         tuple(m.id for m in payday.mandatories)),
        ("buffer", "Safety buffer", amount * payday.buffer_rate, ()),
        ("goals", "Goals", amount * goal_share, tuple(g.id for g in payday.goals)),
    ]

    left = amount
    buckets: Dict[str, AllocationBucket] = {}
    for priority, (bucket_id, label, ask, items) in enumerate(asks, start=1):
        allocated = min(left, ask)
        left = max(0.0, left - allocated)
        min_required = ask if bucket_id == "mandatory" else 0.0
        buckets[bucket_id] = AllocationBucket(bucket_id, label, priority, min_required, allocated, items)
    buckets["discretionary"] = AllocationBucket("discretionary", "Discretionary", 4, 0.0, left)
    return buckets


def simulate_cashflow(
    payday: PaydayInput,
    buckets: Mapping[str, AllocationBucket],
) -> Tuple[List[PlannedFlow], float, Optional[int]]:
    """
    Day-by-day balance between two paydays.

    Returns
    -------
    (flow, lowest, risk_day) : tuple
        ``risk_day`` is the first day index with a negative balance, None if
        the balance stays non-negative.
    """
    days = payday.period_days
    dates = pd.date_range(pd.Timestamp(payday.payday_date), periods=days + 1, freq="D")

    bills_by_day: Dict[int, List[Obligation]] = {}
    for m in payday.mandatories:
        bills_by_day.setdefault(m.due_day, []).append(m)

    daily_disc = max(0.0, buckets["discretionary"].allocated / days)
    bills = np.array(
        [sum(m.amount for m in bills_by_day.get(d.day, ())) for d in dates],
        dtype=float,
    )
    outflow = bills + daily_disc
    balance = payday.current_balance + payday.payday_amount - np.cumsum(outflow)

    flow = []
    for t, d in enumerate(dates):
        paid = bills_by_day.get(d.day)
        flow.append(
            PlannedFlow(
                day=t,
                date=d.date(),
                inflow=payday.payday_amount if t == 0 else 0.0,
                outflow=float(outflow[t]),
                balance=float(balance[t]),
                description=("Paid: " + ", ".join(m.name for m in paid)) if paid else None,
            )
        )

    negative = np.flatnonzero(balance < 0)
    risk_day = int(negative[0]) if negative.size else None
    return flow, float(balance.min()), risk_day


def plan_payday(payday: PaydayInput, goal_share: float = DEFAULT_GOAL_SHARE) -> PaydayPlan:
    """Allocate the payday and simulate the period."""
    buckets = calculate_allocation(payday, goal_share)
    flow, lowest, risk_day = simulate_cashflow(payday, buckets)
    logger.debug("payday plan: lowest=%.2f risk_day=%s", lowest, risk_day)
    return PaydayPlan(
        total_income=payday.payday_amount,
        buckets=buckets,
        cashflow=tuple(flow),
        lowest_balance=lowest,
        risk_day=risk_day,
    )


# ---------------------------------------------------------------------------
# Income distribution helpers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DistributionItem:
    """Line of an income distribution (percent and amount kept in sync by the caller)."""
    id: str
    percent: float
    amount: float = 0.0
    group: Literal["mandatory", "flexible", "savings"] = "flexible"
    mode: Literal["percent", "amount"] = "percent"
    is_locked: bool = False


def amount_from_percent(percent: float, income: float, step: float = 1.0) -> float:
    """Amount for *percent* of *income*, rounded half-up to a multiple of *step*."""
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    return math.floor(income * percent / 100.0 / step + 0.5) * step


def percent_from_amount(amount: float, income: float) -> float:
    """Share of *income* that *amount* represents, clamped to [0, 100]."""
    safe_income = max(income, 0.01)
    return min(100.0, max(0.0, amount / safe_income * 100.0))


def scale_items(
    items: Sequence[DistributionItem],
    target_percent: float,
    flexible_ids: Set[str],
) -> Dict[str, float]:
    """
    Rescale the flexible items so their percents sum to *target_percent*.

    Returns the new percent of each flexible item; empty when the flexible
    items currently hold (almost) nothing.
    """
    current = sum(i.percent for i in items if i.id in flexible_ids)
    if current <= 0.01:
        return {}
    scale = target_percent / current
    return {i.id: i.percent * scale for i in items if i.id in flexible_ids}


def distribution_totals(items: Sequence[DistributionItem]) -> Dict[str, float]:
    """Total percent and total amount of a distribution."""
    return {
        "total_percent": float(sum(i.percent for i in items)),
        "total_amount": float(sum(i.amount for i in items)),
    }
