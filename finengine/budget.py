# finengine/budget.py
"""
Budget forecasting module.

Purpose
-------
Pure functions over a day-indexed spend series for a budget period: where the
spend stands, where it is heading, how uncertain that heading is, and how
worried the caller should be.

Key components
--------------
- Budget, BudgetThresholds, BudgetSpend : period limit and dated spend events
- DailySpend : (day, amount) row, day being the 1-based index in the period
- Elementary formulas : cumulative_spend, remaining, utilization, burn_rate,
  ewma_rate, linear_forecast, ewma_forecast, uncertainty_params,
  confidence_interval, probability_of_overrun, expected_overrun_day,
  anomaly_score, recommended_limit, risk_tier
- forecast_budget : aggregates everything into a BudgetForecast
- budget_metrics / threshold_status / recommended_limits : period summary
  used by budget cards (linear burn over elapsed days, floored at 1)

Mathematical Framework
----------------------
Spend through day n:   S(n) = sum_{d <= n} y(d)
Linear forecast:       F = (S(n) / n) * T
Smoothed forecast:     F = S(n) + v_ewma(n) * (T - n)
Forecast dispersion:   sigma_F = sigma_day * sqrt(T)
Confidence interval:   F +/- z * sigma_F           (z = 1.28 | 1.96)
Overrun probability:   P(F > L) = 1 - Phi(L; F, max(sigma_F, 1e-4))
Anomaly score:         (y(n) - mu_day) / max(sigma_day, 1e-4)

Example
-------
>>> from finengine.budget import DailySpend, forecast_budget
>>> spends = [DailySpend(1, 500), DailySpend(2, 300), DailySpend(3, 700)]
>>> fc = forecast_budget(limit=10_000, daily_spends=spends,
...                      total_days=30, current_day=3)
>>> fc.forecast
15000.0
>>> fc.risk_tier  # no history: sigma floored, forecast above limit
'highRisk'
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Literal, Mapping, Optional, Sequence, Tuple, Union
import logging
import math

import numpy as np
import pandas as pd

from .config import ForecastConfig
from .constants import (
    AT_RISK_PROBABILITY,
    AT_RISK_UTILIZATION,
    DEFAULT_ALPHA,
    DEFAULT_BUDGET_THRESHOLDS,
    EPSILON,
    HIGH_RISK_PROBABILITY,
    RECOMMENDED_LIMIT_K,
    RECOMMENDED_LIMIT_MARGIN,
    Z_80,
    Z_95,
)
from .stats import ewma, mean, normal_cdf, stddev
from .utils import check_non_negative, day_series, days_between

__all__ = [
    # Records
    "BudgetThresholds",
    "Budget",
    "BudgetSpend",
    "DailySpend",
    "BudgetForecast",
    "BudgetMetrics",
    # Formulas
    "cumulative_spend",
    "remaining",
    "utilization",
    "burn_rate",
    "ewma_rate",
    "linear_forecast",
    "ewma_forecast",
    "uncertainty_params",
    "confidence_interval",
    "probability_of_overrun",
    "expected_overrun_day",
    "anomaly_score",
    "recommended_limit",
    "risk_tier",
    "z_score",
    # Aggregates
    "forecast_budget",
    "daily_spends_from_events",
    "budget_metrics",
    "threshold_status",
    "recommended_limits",
]

logger = logging.getLogger(__name__)

RiskTier = Literal["onTrack", "atRisk", "highRisk", "overLimit"]
ThresholdStatus = Literal["ok", "warning", "danger", "exceeded"]
SpendInput = Union[Sequence["DailySpend"], Mapping[int, float]]


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BudgetThresholds:
    """Utilization ratios at which a budget turns warning / danger / exceeded."""
    warning: float = DEFAULT_BUDGET_THRESHOLDS[0]
    danger: float = DEFAULT_BUDGET_THRESHOLDS[1]
    exceeded: float = DEFAULT_BUDGET_THRESHOLDS[2]

    def __post_init__(self):
        if not (0 <= self.warning <= self.danger <= self.exceeded):
            raise ValueError(
                "thresholds must satisfy 0 <= warning <= danger <= exceeded, got "
                f"({self.warning}, {self.danger}, {self.exceeded})"
            )


@dataclass(frozen=True)
class Budget:
    """
    Spending limit for one period (week or month).

    Parameters
    ----------
    id : str
    limit : float
        Period limit L, non-negative.
    period_start, period_end : date
        Inclusive period bounds.
    period_type : {"week", "month"}
    category_id : str, optional
    thresholds : BudgetThresholds
    """
    id: str
    limit: float
    period_start: date
    period_end: date
    period_type: Literal["week", "month"] = "month"
    category_id: Optional[str] = None
    thresholds: BudgetThresholds = field(default_factory=BudgetThresholds)

    def __post_init__(self):
        check_non_negative("limit", self.limit)
        if self.period_end < self.period_start:
            raise ValueError(
                f"period_end ({self.period_end}) must not precede "
                f"period_start ({self.period_start})"
            )

    @property
    def total_days(self) -> int:
        """Number of days in the period (inclusive bounds)."""
        return int(days_between(self.period_start, self.period_end)) + 1

    def days_passed(self, today: date) -> int:
        """1-based day index of *today* in the period, clipped to [0, total_days]."""
        n = int(days_between(self.period_start, today)) + 1
        return max(0, min(n, self.total_days))


@dataclass(frozen=True)
class BudgetSpend:
    """Dated spend event recorded against a budget (append-only fact)."""
    id: str
    amount: float
    date: date
    budget_id: Optional[str] = None
    category_id: Optional[str] = None
    description: str = ""

    def __post_init__(self):
        check_non_negative("amount", self.amount)


@dataclass(frozen=True)
class DailySpend:
    """Spend total for one day of the period (day is 1-based)."""
    day: int
    amount: float

    def __post_init__(self):
        if self.day < 1:
            raise ValueError(f"day must be >= 1, got {self.day}")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _by_day(spends: SpendInput) -> pd.Series:
    """Sum spends per day; accepts DailySpend rows or a {day: amount} map."""
    if isinstance(spends, Mapping):
        s = pd.Series(dict(spends), dtype=float)
    else:
        rows = list(spends)
        s = pd.Series(
            [r.amount for r in rows],
            index=[r.day for r in rows],
            dtype=float,
        )
    if s.empty:
        return s
    return s.groupby(level=0).sum().sort_index()


# ---------------------------------------------------------------------------
# Elementary formulas
# ---------------------------------------------------------------------------

def cumulative_spend(spends: SpendInput, current_day: int) -> float:
    """Total spend on days 1..current_day."""
    s = _by_day(spends)
    return float(s[s.index <= current_day].sum())


def remaining(limit: float, spend: float) -> float:
    """Limit minus spend (negative once over the limit)."""
    return limit - spend


def utilization(limit: float, spend: float) -> float:
    """Spend as a fraction of the limit; the limit is floored at 1."""
    return spend / max(limit, 1.0)


def burn_rate(spend: float, current_day: int) -> float:
    """Average spend per elapsed day; 0 before the period starts."""
    if current_day <= 0:
        return 0.0
    return spend / current_day


def ewma_rate(spends: SpendInput, alpha: float = DEFAULT_ALPHA, current_day: int = 0) -> float:
    """
    EWMA of daily spend over days 1..current_day.

    Missing days count as zero spend; the average is seeded with day 1.
    Returns 0 when current_day <= 0.
    """
    if current_day <= 0:
        return 0.0
    series = day_series(_by_day(spends).to_dict(), current_day)
    return ewma(series.to_numpy(), alpha)


def linear_forecast(rate: float, total_days: int) -> float:
    """End-of-period spend at a constant burn rate."""
    return rate * total_days


def ewma_forecast(spend: float, rate: float, total_days: int, current_day: int) -> float:
    """Spend so far plus the smoothed rate over the days left."""
    return spend + rate * (total_days - current_day)


def uncertainty_params(history: Iterable[Sequence[float]]) -> Tuple[float, float]:
    """
    Pooled daily mean and population std across prior periods.

    Parameters
    ----------
    history : iterable of sequences
        Each inner sequence holds the daily spends of one past period.

    Returns
    -------
    (mean_day, std_day) : tuple of float
        (0, 0) for empty history.
    """
    pooled = [float(v) for period in history for v in period]
    if not pooled:
        return 0.0, 0.0
    return mean(pooled), stddev(pooled)


def confidence_interval(
    forecast: float,
    std_day: float,
    total_days: int,
    z: float,
) -> Tuple[float, float, float]:
    """
    Confidence interval of the forecast.

    Returns
    -------
    (lower, upper, sigma_forecast) : tuple of float
    """
    sigma = std_day * math.sqrt(total_days)
    return forecast - z * sigma, forecast + z * sigma, sigma


def probability_of_overrun(forecast: float, limit: float, sigma: float) -> float:
    """P(end-of-period spend > limit) under N(forecast, sigma^2)."""
    return 1.0 - normal_cdf(limit, forecast, max(sigma, EPSILON))


def expected_overrun_day(
    limit: float,
    spend: float,
    rate: float,
    current_day: int,
) -> Optional[int]:
    """
    Day index at which the limit is expected to be crossed.

    None means never (non-positive burn rate). Already-over budgets yield a
    day at or before *current_day*.
    """
    if rate <= 0:
        return None
    return current_day + int(math.ceil((limit - spend) / rate))


def anomaly_score(today_spend: float, mean_day: float, std_day: float) -> float:
    """z-score of today's spend against the historical daily distribution."""
    return (today_spend - mean_day) / max(std_day, EPSILON)


def recommended_limit(history: Iterable[Sequence[float]], k: float = RECOMMENDED_LIMIT_K) -> float:
    """mean(period totals) + k * std(period totals); 0 for empty history."""
    totals = [float(sum(period)) for period in history]
    if not totals:
        return 0.0
    return mean(totals) + k * stddev(totals)


def risk_tier(util: float, prob: float) -> RiskTier:
    """
    Discrete budget risk tier.

    Utilization at or above 1 is always ``overLimit``, whatever the
    probability of overrun.
    """
    if util >= 1.0:
        return "overLimit"
    if prob > HIGH_RISK_PROBABILITY:
        return "highRisk"
    if AT_RISK_PROBABILITY <= prob <= HIGH_RISK_PROBABILITY or AT_RISK_UTILIZATION <= util < 1.0:
        return "atRisk"
    return "onTrack"


def z_score(confidence_level: int) -> float:
    """z for a two-sided 80% or 95% interval."""
    if confidence_level == 80:
        return Z_80
    if confidence_level == 95:
        return Z_95
    raise ValueError(f"confidence_level must be 80 or 95, got {confidence_level}")


# ---------------------------------------------------------------------------
# Aggregate forecast
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BudgetForecast:
    """
    Everything the budget screen shows for one period.

    Attributes
    ----------
    spend, remaining, utilization, burn_rate : float
        Current state.
    forecast, ci_low, ci_high, sigma_forecast : float
        End-of-period projection and its confidence interval.
    probability_of_overrun : float
    expected_overrun_day : int or None
        None means the limit is never reached at the current burn.
    anomaly_score : float
    is_anomalous : bool
    recommended_limit : float
    risk_tier : {"onTrack", "atRisk", "highRisk", "overLimit"}
    """
    spend: float
    remaining: float
    utilization: float
    burn_rate: float
    forecast: float
    ci_low: float
    ci_high: float
    sigma_forecast: float
    probability_of_overrun: float
    expected_overrun_day: Optional[int]
    anomaly_score: float
    is_anomalous: bool
    recommended_limit: float
    risk_tier: RiskTier

    def summary(self) -> pd.Series:
        """Forecast as a labelled pandas Series (for display/export)."""
        return pd.Series(
            {
                "spend": self.spend,
                "forecast": self.forecast,
                "ci_low": self.ci_low,
                "ci_high": self.ci_high,
                "probability_of_overrun": self.probability_of_overrun,
                "risk_tier": self.risk_tier,
            },
            name="budget_forecast",
        )


def forecast_budget(
    limit: float,
    daily_spends: SpendInput,
    total_days: int,
    current_day: int,
    history: Iterable[Sequence[float]] = (),
    config: Optional[ForecastConfig] = None,
) -> BudgetForecast:
    """
    Full forecast of a budget period.

    Parameters
    ----------
    limit : float
        Period limit.
    daily_spends : sequence of DailySpend or {day: amount}
        Spends in the current period.
    total_days : int
        Length of the period T.
    current_day : int
        1-based index of today in the period.
    history : iterable of sequences, optional
        Daily spends of prior periods; drives uncertainty and the
        recommended limit.
    config : ForecastConfig, optional
        alpha, confidence level, smoothing switch, anomaly threshold.

    Returns
    -------
    BudgetForecast
    """
    cfg = config or ForecastConfig()
    history = [list(p) for p in history]
    by_day = _by_day(daily_spends)

    spend = cumulative_spend(by_day.to_dict(), current_day)
    today_spend = float(by_day.get(current_day, 0.0))
    util = utilization(limit, spend)
    rate = burn_rate(spend, current_day)

    if cfg.use_smoothing:
        smoothed = ewma_rate(by_day.to_dict(), cfg.alpha, current_day)
        fc = ewma_forecast(spend, smoothed, total_days, current_day)
    else:
        fc = linear_forecast(rate, total_days)

    mean_day, std_day = uncertainty_params(history)
    low, high, sigma = confidence_interval(fc, std_day, total_days, z_score(cfg.confidence_level))
    prob = probability_of_overrun(fc, limit, sigma)
    score = anomaly_score(today_spend, mean_day, std_day)
    tier = risk_tier(util, prob)

    logger.debug(
        "budget forecast: spend=%.2f forecast=%.2f sigma=%.2f p=%.3f tier=%s",
        spend, fc, sigma, prob, tier,
    )
    return BudgetForecast(
        spend=spend,
        remaining=remaining(limit, spend),
        utilization=util,
        burn_rate=rate,
        forecast=fc,
        ci_low=low,
        ci_high=high,
        sigma_forecast=sigma,
        probability_of_overrun=prob,
        expected_overrun_day=expected_overrun_day(limit, spend, rate, current_day),
        anomaly_score=score,
        is_anomalous=abs(score) >= cfg.anomaly_threshold,
        recommended_limit=recommended_limit(history, cfg.recommended_k),
        risk_tier=tier,
    )


# ---------------------------------------------------------------------------
# Period summary (budget cards)
# ---------------------------------------------------------------------------

def daily_spends_from_events(spends: Sequence[BudgetSpend], period_start: date) -> List[DailySpend]:
    """
    Collapse dated spend events into DailySpend rows.

    Events before *period_start* are dropped; same-day events are summed.
    """
    if not spends:
        return []
    frame = pd.DataFrame(
        {
            "date": pd.to_datetime([s.date for s in spends]),
            "amount": [float(s.amount) for s in spends],
        }
    )
    frame["day"] = (frame["date"] - pd.Timestamp(period_start)).dt.days + 1
    frame = frame[frame["day"] >= 1]
    totals = frame.groupby("day")["amount"].sum().sort_index()
    return [DailySpend(int(d), float(a)) for d, a in totals.items()]


@dataclass(frozen=True)
class BudgetMetrics:
    """Linear period summary shown on a budget card."""
    spent: float
    remaining: float
    percent: float
    burn_rate: float
    forecast: float
    forecast_remaining: float
    risk_score: float
    days_to_breach: float
    is_risk: bool


def budget_metrics(
    budget: Budget,
    spends: Sequence[BudgetSpend],
    total_days: Optional[int] = None,
    days_passed: int = 1,
) -> BudgetMetrics:
    """
    Summarize a budget period from its spend events.

    Parameters
    ----------
    budget : Budget
    spends : sequence of BudgetSpend
        Events already filtered to the period.
    total_days : int, optional
        Period length; defaults to ``budget.total_days``.
    days_passed : int
        Elapsed days, floored at 1 for the burn rate.

    Returns
    -------
    BudgetMetrics
        ``days_to_breach`` is inf when nothing is being spent and 0 once the
        limit is already reached. ``risk_score`` is 1 for a zero limit.
    """
    total_days = budget.total_days if total_days is None else total_days
    limit = budget.limit
    spent = float(sum(s.amount for s in spends))
    percent = spent / limit if limit > 0 else 0.0
    rate = spent / max(1, days_passed)
    fc = linear_forecast(rate, total_days)

    if limit == 0:
        score = 1.0
    else:
        score = float(np.clip((fc - limit) / limit, 0.0, 1.0))

    left = limit - spent
    if rate <= 0:
        breach = math.inf
    elif left <= 0:
        breach = 0.0
    else:
        breach = float(math.ceil(left / rate))

    return BudgetMetrics(
        spent=spent,
        remaining=left,
        percent=percent,
        burn_rate=rate,
        forecast=fc,
        forecast_remaining=limit - fc,
        risk_score=score,
        days_to_breach=breach,
        is_risk=score > 0 or percent >= budget.thresholds.danger,
    )


def threshold_status(budget: Budget, spent: float) -> ThresholdStatus:
    """Which notification threshold the spend has reached."""
    if budget.limit <= 0:
        return "exceeded" if spent > 0 else "ok"
    ratio = spent / budget.limit
    t = budget.thresholds
    if ratio >= t.exceeded:
        return "exceeded"
    if ratio >= t.danger:
        return "danger"
    if ratio >= t.warning:
        return "warning"
    return "ok"


def recommended_limits(period_totals: Sequence[float], alpha: float = DEFAULT_ALPHA) -> Dict[str, float]:
    """
    Recommended and safe limits from past period totals (oldest first).

    recommended = ceil(ewma * 1.10)
    safe        = ceil(ewma + 0.5 * std)
    """
    if len(period_totals) == 0:
        return {"recommended": 0.0, "safe": 0.0}
    mu = ewma(period_totals, alpha)
    sigma = stddev(period_totals)
    return {
        "recommended": float(math.ceil(mu * (1.0 + RECOMMENDED_LIMIT_MARGIN))),
        "safe": float(math.ceil(mu + RECOMMENDED_LIMIT_K * sigma)),
    }
