# finengine/envelopes.py
"""
Envelope (savings goal) projection module.

Purpose
-------
Answers the questions a savings goal raises: how much is left, how much per
day is needed to meet the deadline, how fast the saver has actually been
going, when the goal will be reached at that pace (with an uncertainty band),
and whether that is on track.

Mathematical Framework
----------------------
Remaining:          Delta = max(0, G - C)
Days to deadline:   T = ceil(deadline - today), 0 if passed, inf if none
Required daily:     d_req = Delta / T
Historical pace:    v = sum(y) / max(1, days_active),  sigma = 0.3 * v
ETA:                ceil(Delta / max(v, 0.01)) days, capped at 100 years
Bands:              optimistic  Delta / (v + sigma)
                    pessimistic Delta / max(v - sigma, 0.01)
Status:             onTrack if ETA <= T, atRisk if ETA <= 1.2 T, else behind

Interest-bearing goals solve the annuity equation
    FV(C) + PMT * ((1 + r_d)^T - 1) / r_d = G
for the daily contribution PMT, with r_d the effective daily rate of the
daily (r / 365) or monthly ((1 + r/12)^(12/365) - 1) capitalization.

Notes
-----
``sigma = 0.3 * pace`` is a placeholder volatility for sparse contribution
data, not a sample estimate.

Example
-------
>>> from datetime import date
>>> from finengine.envelopes import Envelope, required_daily, eta, goal_status
>>> env = Envelope("car", target_amount=100_000, current_amount=27_000,
...                deadline=date(2025, 6, 30))
>>> round(required_daily(env.remaining, 180), 1)
405.6
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional, Sequence, Tuple
import logging
import math

from .config import ProjectionConfig
from .constants import (
    AT_RISK_DEADLINE_FACTOR,
    DAYS_PER_YEAR,
    MAX_ETA_DAYS,
    MONTHS_PER_YEAR,
    PACE_EPSILON,
    PACE_SIGMA_FACTOR,
)
from .utils import DateLike, add_days, check_non_negative, days_between

__all__ = [
    "AutoRule",
    "Envelope",
    "Contribution",
    "EnvelopeProjection",
    "remaining",
    "days_until_deadline",
    "required_daily",
    "historical_pace",
    "eta",
    "eta_bands",
    "goal_status",
    "auto_contribution",
    "required_with_interest",
    "project_envelope",
]

logger = logging.getLogger(__name__)

GoalStatus = Literal["onTrack", "atRisk", "behind"]


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AutoRule:
    """
    Recurring auto-contribution.

    kind="fixed" contributes `value` currency units; kind="percent"
    contributes `value` (a fraction in [0, 1]) of each income.
    """
    kind: Literal["fixed", "percent"]
    value: float
    payday_offset: Optional[int] = None

    def __post_init__(self):
        if self.kind not in ("fixed", "percent"):
            raise ValueError(f"kind must be 'fixed' or 'percent', got {self.kind!r}")
        check_non_negative("value", self.value)


@dataclass(frozen=True)
class Envelope:
    """
    Savings envelope / goal.

    Parameters
    ----------
    id : str
    target_amount : float
    current_amount : float
    deadline : date, optional
    name : str
    priority : int
        1 (highest) to 5.
    auto_rule : AutoRule, optional
    apy : float, optional
        Annual yield in percent (10 means 10%).
    apy_frequency : {"daily", "monthly"}
        Capitalization frequency of the yield.
    created_at : date, optional
    """
    id: str
    target_amount: float
    current_amount: float = 0.0
    deadline: Optional[date] = None
    name: str = ""
    priority: int = 3
    auto_rule: Optional[AutoRule] = None
    apy: Optional[float] = None
    apy_frequency: Literal["daily", "monthly"] = "monthly"
    created_at: Optional[date] = None

    def __post_init__(self):
        check_non_negative("target_amount", self.target_amount)
        check_non_negative("current_amount", self.current_amount)
        if not (1 <= self.priority <= 5):
            raise ValueError(f"priority must be in 1..5, got {self.priority}")
        if self.apy_frequency not in ("daily", "monthly"):
            raise ValueError(
                f"apy_frequency must be 'daily' or 'monthly', got {self.apy_frequency!r}"
            )

    @property
    def remaining(self) -> float:
        return remaining(self.target_amount, self.current_amount)

    @property
    def progress(self) -> float:
        """Fraction of the target reached, in [0, 1]."""
        if self.target_amount <= 0:
            return 1.0
        return min(1.0, self.current_amount / self.target_amount)


@dataclass(frozen=True)
class Contribution:
    """Money put into an envelope on a given date."""
    amount: float
    date: date


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------

def remaining(target: float, current: float) -> float:
    """Amount still to save, never negative."""
    return max(0.0, target - current)


def days_until_deadline(deadline: Optional[DateLike], today: DateLike) -> float:
    """
    Whole days (ceiling) until *deadline*.

    Returns 0 once the deadline has passed and ``math.inf`` without one.
    """
    if deadline is None:
        return math.inf
    diff = days_between(today, deadline)
    if diff <= 0:
        return 0
    return math.ceil(diff)


def required_daily(remaining_amount: float, days: float) -> float:
    """Daily contribution meeting the deadline; 0 without one or once passed."""
    if math.isinf(days) or days <= 0:
        return 0.0
    return remaining_amount / days


def historical_pace(
    contributions: Sequence[Contribution],
    created_at: DateLike,
    today: DateLike,
    sigma_factor: float = PACE_SIGMA_FACTOR,
) -> Tuple[float, float]:
    """
    Average daily contribution since creation and its heuristic volatility.

    Returns
    -------
    (pace, sigma) : tuple of float
        (0, 0) without contributions. ``sigma = sigma_factor * pace``.
    """
    if not contributions:
        return 0.0, 0.0
    days_active = max(1.0, days_between(created_at, today))
    pace = sum(c.amount for c in contributions) / days_active
    return pace, sigma_factor * pace


def _days_needed(amount: float, pace: float, cap: int) -> int:
    if amount <= 0:
        return 0
    return int(min(math.ceil(amount / pace), cap))


def eta(
    remaining_amount: float,
    pace: float,
    today: DateLike,
    *,
    pace_epsilon: float = PACE_EPSILON,
    max_days: int = MAX_ETA_DAYS,
) -> Tuple[DateLike, int]:
    """
    Date and day count at which the goal is reached at *pace*.

    0 days when nothing remains; capped at *max_days* (100 years).
    """
    days = _days_needed(remaining_amount, max(pace, pace_epsilon), max_days)
    return add_days(today, days), days


def eta_bands(
    remaining_amount: float,
    pace: float,
    sigma: float,
    today: DateLike,
    *,
    pace_epsilon: float = PACE_EPSILON,
    max_days: int = MAX_ETA_DAYS,
) -> Tuple[DateLike, DateLike]:
    """
    Optimistic and pessimistic ETA dates.

    Optimistic uses ``pace + sigma``, pessimistic ``max(pace - sigma, eps)``.
    Both paces are floored at *pace_epsilon*.
    """
    fast = max(pace + sigma, pace_epsilon)
    slow = max(pace - sigma, pace_epsilon)
    low = _days_needed(remaining_amount, fast, max_days)
    high = _days_needed(remaining_amount, slow, max_days)
    return add_days(today, low), add_days(today, high)


def goal_status(eta_days: float, deadline_days: float) -> GoalStatus:
    """onTrack / atRisk / behind; a goal without deadline is always onTrack."""
    if math.isinf(deadline_days):
        return "onTrack"
    if eta_days <= deadline_days:
        return "onTrack"
    if eta_days <= AT_RISK_DEADLINE_FACTOR * deadline_days:
        return "atRisk"
    return "behind"


def auto_contribution(rule: Optional[AutoRule], income: float) -> float:
    """Amount an auto rule contributes from one *income*."""
    if rule is None:
        return 0.0
    if rule.kind == "fixed":
        return rule.value
    return rule.value * income


def required_with_interest(
    target: float,
    current: float,
    days: float,
    apy: float,
    frequency: Literal["daily", "monthly"] = "monthly",
) -> Tuple[float, float]:
    """
    Daily contribution for a yield-bearing goal.

    Parameters
    ----------
    target, current : float
    days : float
        Days until the deadline.
    apy : float
        Annual yield in percent.
    frequency : {"daily", "monthly"}
        Capitalization frequency.

    Returns
    -------
    (daily, total_interest) : tuple of float
        (0, 0) when no days remain. Without yield the plain required daily
        amount is returned. When the current balance alone grows past the
        target, daily is 0 and total_interest is the growth of the balance.
    """
    if days <= 0:
        return 0.0, 0.0
    if apy <= 0:
        return required_daily(remaining(target, current), days), 0.0

    r = apy / 100.0
    years = days / DAYS_PER_YEAR
    fv_current = current
    if current > 0:
        if frequency == "daily":
            fv_current = current * (1 + r / DAYS_PER_YEAR) ** (DAYS_PER_YEAR * years)
        else:
            fv_current = current * (1 + r / MONTHS_PER_YEAR) ** (MONTHS_PER_YEAR * years)

    needed = max(0.0, target - fv_current)
    if needed <= 0:
        return 0.0, fv_current - current

    if frequency == "daily":
        r_daily = r / DAYS_PER_YEAR
    else:
        r_daily = (1 + r / MONTHS_PER_YEAR) ** (MONTHS_PER_YEAR / DAYS_PER_YEAR) - 1

    pmt = needed * r_daily / ((1 + r_daily) ** days - 1)
    total_interest = target - (pmt * days + current)
    return pmt, total_interest


# ---------------------------------------------------------------------------
# Aggregate projection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EnvelopeProjection:
    """Everything the goal screen shows for one envelope."""
    remaining: float
    days_until_deadline: float
    required_daily: float
    pace: float
    sigma: float
    eta_date: date
    eta_days: int
    eta_optimistic: date
    eta_pessimistic: date
    status: GoalStatus
    projected_by_deadline: float


def project_envelope(
    envelope: Envelope,
    contributions: Sequence[Contribution],
    today: DateLike,
    created_at: Optional[DateLike] = None,
    config: Optional[ProjectionConfig] = None,
) -> EnvelopeProjection:
    """
    Full projection of an envelope.

    Parameters
    ----------
    envelope : Envelope
    contributions : sequence of Contribution
    today : date
    created_at : date, optional
        Defaults to ``envelope.created_at``, then to the first contribution,
        then to *today*.
    config : ProjectionConfig, optional

    Returns
    -------
    EnvelopeProjection
        ``projected_by_deadline = current + pace * days`` with 365 days when
        the envelope has no deadline.
    """
    cfg = config or ProjectionConfig()
    if created_at is None:
        created_at = envelope.created_at
    if created_at is None:
        created_at = min((c.date for c in contributions), default=today)

    left = envelope.remaining
    deadline_days = days_until_deadline(envelope.deadline, today)
    pace, sigma = historical_pace(contributions, created_at, today, cfg.sigma_factor)
    eta_date, eta_days = eta(
        left, pace, today, pace_epsilon=cfg.pace_epsilon, max_days=cfg.max_eta_days
    )
    optimistic, pessimistic = eta_bands(
        left, pace, sigma, today, pace_epsilon=cfg.pace_epsilon, max_days=cfg.max_eta_days
    )
    horizon = DAYS_PER_YEAR if math.isinf(deadline_days) else deadline_days

    logger.debug(
        "envelope %s: remaining=%.2f pace=%.2f eta=%d deadline=%s",
        envelope.id, left, pace, eta_days, deadline_days,
    )
    return EnvelopeProjection(
        remaining=left,
        days_until_deadline=deadline_days,
        required_daily=required_daily(left, deadline_days),
        pace=pace,
        sigma=sigma,
        eta_date=eta_date,
        eta_days=eta_days,
        eta_optimistic=optimistic,
        eta_pessimistic=pessimistic,
        status=goal_status(eta_days, deadline_days),
        projected_by_deadline=envelope.current_amount + pace * horizon,
    )
