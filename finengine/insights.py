# finengine/insights.py
"""
Smart insights: small rule-based detectors that turn engine output into
actionable prompts.

Detectors
---------
- detect_subscriptions     : recurring merchant charges with stable interval
                             and amount (coefficient of variation filters)
- recommend_debt_strategy  : avalanche vs snowball at the same extra payment
- analyze_budget_risks     : budgets whose overrun probability exceeds 0.60
- analyze_score_drop       : health factors that lost more than 5 points

Every prompt carries a confidence in [0, 1] and a short explanation.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence

import logging

import numpy as np
import pandas as pd

from .budget import BudgetForecast
from .debts import Debt
from .optimizer import DebtOptimizer, SimulationResult
from .score import ScoreFactor

__all__ = [
    "PromptType",
    "SmartPrompt",
    "MerchantTransaction",
    "BudgetRisk",
    "detect_subscriptions",
    "recommend_debt_strategy",
    "analyze_budget_risks",
    "analyze_score_drop",
]

logger = logging.getLogger(__name__)

PromptType = Literal["subscription", "debt_strategy", "budget_risk", "score_drop"]

MIN_SUBSCRIPTION_SAMPLES = 3
MAX_INTERVAL_CV = 0.2
MAX_AMOUNT_CV = 0.1
AVALANCHE_SAVINGS_THRESHOLD = 1000.0
SNOWBALL_COST_TOLERANCE = 500.0
BUDGET_RISK_PROBABILITY = 0.60
SCORE_DROP_POINTS = 5.0


@dataclass(frozen=True)
class SmartPrompt:
    """Insight shown to the user."""
    id: str
    type: PromptType
    title: str
    message: str
    confidence: float
    action_label: str
    explanation: Optional[str] = None
    action_data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MerchantTransaction:
    """Card transaction used for subscription detection."""
    id: str
    merchant: str
    amount: float
    date: date
    category_id: Optional[str] = None


@dataclass(frozen=True)
class BudgetRisk:
    """Named budget forecast fed to `analyze_budget_risks`."""
    name: str
    limit: float
    forecast: BudgetForecast


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------

def _cv(values: np.ndarray) -> float:
    avg = float(values.mean())
    return float(values.std()) / (avg or 1.0)


def _periodicity(avg_interval: float) -> str:
    if abs(avg_interval - 365) < 10:
        return "yearly"
    if abs(avg_interval - 7) < 2:
        return "weekly"
    return "monthly"


def detect_subscriptions(transactions: Sequence[MerchantTransaction]) -> List[SmartPrompt]:
    """
    Find merchants charged at a regular interval with a stable amount.

    Merchants are matched case-insensitively after trimming. A merchant
    needs at least three charges, an interval CV <= 0.2 and an amount
    CV <= 0.1. Confidence is ``(1 - cv_interval) * (1 - cv_amount)``.
    """
    if not transactions:
        return []

    df = pd.DataFrame(
        {
            "key": [t.merchant.strip().lower() for t in transactions],
            "merchant": [t.merchant for t in transactions],
            "amount": [float(t.amount) for t in transactions],
            "date": pd.to_datetime([t.date for t in transactions]),
        }
    )

    prompts: List[SmartPrompt] = []
    for key, group in df.groupby("key", sort=True):
        if len(group) < MIN_SUBSCRIPTION_SAMPLES:
            continue
        group = group.sort_values("date", ascending=False)
        intervals = (-group["date"].diff().dropna()).dt.total_seconds().to_numpy() / 86400.0
        amounts = group["amount"].to_numpy()

        cv_interval = _cv(intervals)
        cv_amount = _cv(amounts)
        if cv_interval > MAX_INTERVAL_CV or cv_amount > MAX_AMOUNT_CV:
            continue

        avg_interval = float(intervals.mean())
        avg_amount = float(amounts.mean())
        latest_name = group["merchant"].iloc[0]
        prompts.append(
            SmartPrompt(
                id=f"sub_{key}",
                type="subscription",
                title="Possible subscription",
                message=(
                    f"Recurring {_periodicity(avg_interval)} payment of "
                    f"{avg_amount:.0f} to {latest_name}"
                ),
                confidence=(1 - cv_interval) * (1 - cv_amount),
                action_label="Track as fixed cost",
                explanation=(
                    f"Found {len(group)} transactions roughly {avg_interval:.1f} "
                    "days apart with stable amounts."
                ),
                action_data={"merchant": latest_name, "amount": avg_amount},
            )
        )
    logger.debug("detected %d subscription candidates", len(prompts))
    return prompts


# ---------------------------------------------------------------------------
# Debt strategy
# ---------------------------------------------------------------------------

def _first_close_month(result: SimulationResult) -> Optional[int]:
    for m in result.schedule:
        if m.closed_debts:
            return m.month
    return None


def recommend_debt_strategy(
    debts: Sequence[Debt],
    optimizer: Optional[DebtOptimizer] = None,
    extra_payment: float = 0.0,
) -> Optional[SmartPrompt]:
    """
    Suggest a payoff strategy from two simulations at the same extra payment.

    Avalanche is suggested when it saves more than 1000 in interest.
    Snowball is suggested when it closes the first debt sooner and costs
    less than 500 extra. Fewer than two debts, or no clear winner, gives
    None.

    Notes
    -----
    With no extra payment both runs pay only minimums until the first debt
    closes, so they close it in the same month and only the avalanche
    branch can fire.
    """
    if len(debts) < 2:
        return None
    opt = optimizer or DebtOptimizer()
    avalanche = opt.simulate(debts, "avalanche", extra_payment)
    snowball = opt.simulate(debts, "snowball", extra_payment)

    diff = snowball.total_interest - avalanche.total_interest
    if diff > AVALANCHE_SAVINGS_THRESHOLD:
        return SmartPrompt(
            id="debt_strat_avalanche",
            type="debt_strategy",
            title="Switch to avalanche",
            message=f"Save {diff:.0f} in interest by paying the highest APR first.",
            confidence=0.9,
            action_label="Apply strategy",
            explanation=(
                f"Snowball costs {snowball.total_interest:.0f} vs avalanche "
                f"{avalanche.total_interest:.0f}."
            ),
            action_data={"strategy": "avalanche", "interest_savings": diff},
        )

    sb_first = _first_close_month(snowball)
    av_first = _first_close_month(avalanche)
    if sb_first is not None and av_first is not None and sb_first < av_first and diff < SNOWBALL_COST_TOLERANCE:
        return SmartPrompt(
            id="debt_strat_snowball",
            type="debt_strategy",
            title="Psychological win",
            message=(
                f"Clear your first debt {av_first - sb_first} months sooner "
                "with minimal extra cost."
            ),
            confidence=0.85,
            action_label="Use snowball",
            explanation=(
                f"Snowball closes a debt in month {sb_first}, avalanche in month "
                f"{av_first}. The interest difference is negligible."
            ),
            action_data={"strategy": "snowball", "months_sooner": av_first - sb_first},
        )
    return None


# ---------------------------------------------------------------------------
# Budgets and score
# ---------------------------------------------------------------------------

def analyze_budget_risks(budgets: Sequence[BudgetRisk]) -> List[SmartPrompt]:
    """One prompt per budget whose overrun probability exceeds 0.60."""
    prompts = []
    for b in budgets:
        prob = b.forecast.probability_of_overrun
        if prob <= BUDGET_RISK_PROBABILITY:
            continue
        prompts.append(
            SmartPrompt(
                id=f"risk_{b.name}",
                type="budget_risk",
                title=f"Risk: {b.name}",
                message=(
                    f"{prob * 100:.0f}% chance to exceed the limit by "
                    f"~{b.forecast.forecast - b.limit:.0f}"
                ),
                confidence=prob,
                action_label="Adjust budget",
                explanation="Based on current spending pace and historical volatility.",
            )
        )
    return prompts


def analyze_score_drop(
    old_factors: Sequence[ScoreFactor],
    new_factors: Sequence[ScoreFactor],
) -> List[SmartPrompt]:
    """Prompts for factors whose sub-score fell by more than 5 points."""
    previous: Mapping[str, ScoreFactor] = {f.id: f for f in old_factors}
    prompts = []
    for new in new_factors:
        old = previous.get(new.id)
        if old is None:
            continue
        delta = new.score - old.score
        if delta < -SCORE_DROP_POINTS:
            prompts.append(
                SmartPrompt(
                    id=f"score_drop_{new.id}",
                    type="score_drop",
                    title=f"{new.label} hurting score",
                    message=f"{new.label} dropped by {abs(delta):.0f} points.",
                    confidence=1.0,
                    action_label="View impact",
                    explanation=f"Value changed from {old.value:.2f} to {new.value:.2f}.",
                )
            )
    return prompts
