"""
Type definitions for FinEngine.

Purpose
-------
Provides TypedDict definitions for the dictionary shapes that cross the
engine boundary: serialized results written by the serialization module
and the CLI, and the plain-dict form of catalog blueprints.

Usage
-----
>>> from finengine.types import SettlementDict, PayoffMonthDict
>>>
>>> transfer: SettlementDict = {"from_id": "a", "to_id": "b", "amount": 25.0}

Type Definitions
----------------
RiskResultDict
    Serialized risk classification: {"level", "amount_due_7_days", ...}

BudgetForecastDict
    Serialized budget forecast: {"spend", "forecast", "risk_tier", ...}

PayoffMonthDict
    One month of a debt payoff schedule

SimulationResultDict
    Aggregate debt simulation output

SettlementDict
    A single pairwise transfer: {"from_id", "to_id", "amount"}

HealthFactorDict / HealthScoreDict
    Serialized health score breakdown

PlanActionDict / PlanRuleDict
    Serialized plan actions and rules
"""

from typing import Dict, List, Optional
from typing_extensions import TypedDict, NotRequired

__all__ = [
    "RiskResultDict",
    "BudgetForecastDict",
    "PayoffMonthDict",
    "SimulationResultDict",
    "ComparisonDict",
    "SettlementDict",
    "HealthFactorDict",
    "HealthScoreDict",
    "PlanActionDict",
    "PlanRuleDict",
    "PlanInstanceDict",
]


class RiskResultDict(TypedDict):
    """
    Serialized risk classification.

    Attributes
    ----------
    level : str
        "low", "medium" or "high".
    amount_due_7_days : float
        Sum of unpaid obligations in the look-ahead window.
    amount_due_before_salary : float
        Sum of unpaid obligations falling before the next payday.
    days_until_salary : int
        Calendar days to the next salary day.
    has_overdue : bool
        True when an unpaid obligation is overdue.
    at_risk : list of str
        Ids of obligations in the look-ahead window.
    """

    level: str
    amount_due_7_days: float
    amount_due_before_salary: float
    days_until_salary: int
    has_overdue: bool
    at_risk: List[str]


class BudgetForecastDict(TypedDict):
    """Serialized budget forecast."""

    spend: float
    remaining: float
    utilization: float
    burn_rate: float
    forecast: float
    ci_low: float
    ci_high: float
    probability_of_overrun: float
    expected_overrun_day: Optional[int]
    anomaly_score: NotRequired[float]
    is_anomalous: NotRequired[bool]
    recommended_limit: Optional[float]
    risk_tier: str


class PayoffMonthDict(TypedDict):
    """
    One month of a payoff schedule.

    Attributes
    ----------
    month : int
        1-based month index.
    total_payment, total_interest, total_principal : float
        Aggregates across all debts for the month.
    remaining_balance : float
        Sum of balances after the month's step.
    balances, payments : dict
        Per-debt balances after the step and payments made.
    closed_debts : list of str
        Ids of debts reaching zero this month.
    """

    month: int
    total_payment: float
    total_interest: float
    total_principal: float
    remaining_balance: float
    balances: Dict[str, float]
    payments: Dict[str, float]
    closed_debts: List[str]


class SimulationResultDict(TypedDict):
    """Aggregate debt simulation output."""

    strategy: str
    extra_payment: float
    total_interest: float
    total_paid: float
    debt_free_month: int
    payoff_order: List[str]
    schedule: NotRequired[List[PayoffMonthDict]]


class ComparisonDict(TypedDict):
    """Baseline vs optimized comparison."""

    interest_savings: float
    months_saved: Optional[int]
    marginal_months_saved: Optional[int]


class SettlementDict(TypedDict):
    """A single transfer from a debtor to a creditor."""

    from_id: str
    to_id: str
    amount: float


class HealthFactorDict(TypedDict):
    """One factor of the health score breakdown."""

    id: str
    label: str
    value: float
    score: float
    weight: float
    contribution: float
    impact: str
    recommendation: NotRequired[str]


class HealthScoreDict(TypedDict):
    """Health score with its ranked factor breakdown."""

    total_score: int
    rating: str
    factors: List[HealthFactorDict]


class PlanActionDict(TypedDict):
    """Serialized plan action."""

    id: str
    plan_id: str
    title: str
    description: str
    priority: int
    tag: str
    schedule: str
    is_recurring: bool
    estimated_effect: Optional[float]
    points: int
    is_done: bool
    obligation_id: NotRequired[str]


class PlanRuleDict(TypedDict):
    """Serialized plan rule."""

    id: str
    plan_id: str
    text: str
    is_active: bool


class PlanInstanceDict(TypedDict):
    """Serialized plan instance with its generated actions and rules."""

    id: str
    template_id: str
    horizon: str
    started_at: str
    ends_at: str
    params: Dict[str, object]
    actions: List[PlanActionDict]
    rules: List[PlanRuleDict]
