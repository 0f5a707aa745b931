"""
Global constants for FinEngine.

Purpose
-------
Centralizes default values and tuned thresholds used throughout the engine.
Several of these (the 30-day month, the 7-day risk window, the 0.3 pace
volatility factor) are heuristics the risk and projection thresholds were
tuned against; change them together or not at all.

Usage
-----
>>> from finengine.constants import DEFAULT_ALPHA, Z_95
>>> forecast_budget(..., alpha=DEFAULT_ALPHA)

Categories
----------
- Statistics: smoothing factor, epsilons, z-scores
- Risk: windows and load ratios for the obligation classifier
- Budgets: risk-tier cut-offs, recommended-limit factors
- Debts: simulation cap, sensitivity step
- Envelopes: pace heuristics, ETA cap
- Score: rating thresholds
- Settlement: matching epsilon
"""

from typing import Tuple

__all__ = [
    # Statistics
    "DEFAULT_ALPHA",
    "EPSILON",
    "Z_80",
    "Z_95",
    # Risk
    "RISK_WINDOW_DAYS",
    "OVERDUE_LOOKBACK_DAYS",
    "RISK_LOAD_RATIO",
    "RISK_MIN_COUNT_NO_BALANCE",
    "APPROX_MONTH_DAYS",
    "PLAN_OBLIGATION_WINDOW_DAYS",
    # Budgets
    "ANOMALY_THRESHOLD",
    "RECOMMENDED_LIMIT_K",
    "RECOMMENDED_LIMIT_MARGIN",
    "HIGH_RISK_PROBABILITY",
    "AT_RISK_PROBABILITY",
    "AT_RISK_UTILIZATION",
    "DEFAULT_BUDGET_THRESHOLDS",
    # Debts
    "MAX_SIMULATION_MONTHS",
    "MARGINAL_STEP",
    "MONTHS_PER_YEAR",
    "BALANCE_EPSILON",
    # Envelopes
    "PACE_SIGMA_FACTOR",
    "PACE_EPSILON",
    "MAX_ETA_DAYS",
    "AT_RISK_DEADLINE_FACTOR",
    "DAYS_PER_YEAR",
    # Score
    "RATING_THRESHOLDS",
    # Settlement
    "SETTLEMENT_EPSILON",
    # Payday
    "DEFAULT_GOAL_SHARE",
]


# =============================================================================
# Statistics Defaults
# =============================================================================

DEFAULT_ALPHA: float = 0.30
"""Default EWMA smoothing factor (weight of the newest observation)."""

EPSILON: float = 1e-4
"""Floor for standard deviations used as denominators."""

Z_80: float = 1.28
"""Two-sided z-score for an 80% confidence interval."""

Z_95: float = 1.96
"""Two-sided z-score for a 95% confidence interval."""


# =============================================================================
# Risk Classifier
# =============================================================================

RISK_WINDOW_DAYS: int = 7
"""Look-ahead window (days) for obligations counted as at risk."""

OVERDUE_LOOKBACK_DAYS: int = 15
"""An unpaid item due fewer than this many days ago counts as overdue."""

RISK_LOAD_RATIO: float = 0.5
"""Share of the balance consumed by the 7-day window that triggers `medium`."""

RISK_MIN_COUNT_NO_BALANCE: int = 3
"""Obligations in the window that trigger `medium` when balance is unknown."""

APPROX_MONTH_DAYS: int = 30
"""Month length assumed by day-of-month wrap arithmetic.

Known approximation: wrong near boundaries of 28/29/31-day months. The risk
thresholds were tuned against it.
"""

PLAN_OBLIGATION_WINDOW_DAYS: int = 10
"""Window (days) for obligation-driven plan actions."""


# =============================================================================
# Budget Forecaster
# =============================================================================

ANOMALY_THRESHOLD: float = 2.0
"""|z| at or above which a day's spend is flagged anomalous."""

RECOMMENDED_LIMIT_K: float = 0.5
"""Std multiplier in mean + k*std recommended limits."""

RECOMMENDED_LIMIT_MARGIN: float = 0.10
"""Margin over the EWMA of period totals for the recommended limit."""

HIGH_RISK_PROBABILITY: float = 0.60
"""Probability of overrun above which a budget is `highRisk`."""

AT_RISK_PROBABILITY: float = 0.30
"""Probability of overrun from which a budget is `atRisk`."""

AT_RISK_UTILIZATION: float = 0.90
"""Utilization from which a budget is `atRisk`."""

DEFAULT_BUDGET_THRESHOLDS: Tuple[float, float, float] = (0.7, 0.9, 1.0)
"""Default (warning, danger, exceeded) utilization thresholds."""


# =============================================================================
# Debt Optimizer
# =============================================================================

MAX_SIMULATION_MONTHS: int = 360
"""Simulation cap (30 years). Hitting it yields debt_free_month = -1."""

MARGINAL_STEP: float = 500.0
"""Extra-payment increment used for marginal sensitivity."""

MONTHS_PER_YEAR: int = 12
"""Number of months in a year (APR -> monthly rate)."""

BALANCE_EPSILON: float = 1e-9
"""Residual balance treated as fully repaid (floating-point dust)."""


# =============================================================================
# Envelope / Goal Projector
# =============================================================================

PACE_SIGMA_FACTOR: float = 0.3
"""Heuristic daily volatility as a fraction of pace.

Placeholder for true daily variance on sparse contribution data.
"""

PACE_EPSILON: float = 0.01
"""Floor for pace when dividing the remaining amount."""

MAX_ETA_DAYS: int = 365 * 100
"""ETA cap (100 years) for display safety."""

AT_RISK_DEADLINE_FACTOR: float = 1.2
"""ETA up to deadline * factor is `atRisk` rather than `behind`."""

DAYS_PER_YEAR: int = 365
"""Days per year for daily capitalization."""


# =============================================================================
# Health Score
# =============================================================================

RATING_THRESHOLDS: Tuple[Tuple[int, str], ...] = (
    (900, "Excellent"),
    (750, "Good"),
    (600, "Fair"),
    (400, "Poor"),
)
"""Lower bounds of each rating; anything below the last is `Critical`."""


# =============================================================================
# Settlement
# =============================================================================

SETTLEMENT_EPSILON: float = 0.01
"""Net balances within this magnitude are treated as settled."""


# =============================================================================
# Payday Planner
# =============================================================================

DEFAULT_GOAL_SHARE: float = 0.20
"""Share of the payday amount requested for goals."""
