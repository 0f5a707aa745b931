# finengine/score.py
"""
Financial health score.

Five ratios from a flat FinancialProfile, each mapped to a 0-100 sub-score
with a logistic curve, weighted and scaled to a 0-1000 total.

Factors
-------
======  ===========================================  ========  =====  =========  ======
id      ratio                                        midpoint  k      direction  weight
======  ===========================================  ========  =====  =========  ======
DSR     debt payments / income                       0.40      15     decay      0.25
RC      liquid assets / mandatory expenses           3.0       0.8    growth     0.25
LR      liquid assets / total debt (100 if no debt)  0.25      5      growth     0.20
BO      (income - mandatory - debt pay) / income     0.10      15     growth     0.15
DBR     total debt / (12 * income)                   0.60      4      decay      0.15
======  ===========================================  ========  =====  =========  ======

Income and mandatory expenses are floored at 1 in denominators.

Example
-------
>>> from finengine.score import FinancialProfile, calculate_health_score
>>> profile = FinancialProfile(monthly_income=100_000,
...                            monthly_mandatory_expenses=40_000,
...                            monthly_debt_payments=10_000,
...                            total_liquid_assets=300_000,
...                            total_debt=50_000)
>>> result = calculate_health_score(profile)
>>> 0 <= result.total_score <= 1000
True
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Tuple
import math

from .constants import MONTHS_PER_YEAR, RATING_THRESHOLDS
from .stats import logistic_score
from .utils import check_non_negative

__all__ = [
    "FinancialProfile",
    "ScoreFactor",
    "HealthScore",
    "FACTOR_SPECS",
    "health_ratios",
    "rating_for",
    "calculate_health_score",
]

Impact = Literal["positive", "negative", "neutral"]


@dataclass(frozen=True)
class FinancialProfile:
    """Flat monthly snapshot scored by `calculate_health_score`."""
    monthly_income: float
    monthly_mandatory_expenses: float = 0.0
    monthly_debt_payments: float = 0.0
    total_liquid_assets: float = 0.0
    total_debt: float = 0.0

    def __post_init__(self):
        for name in (
            "monthly_income",
            "monthly_mandatory_expenses",
            "monthly_debt_payments",
            "total_liquid_assets",
            "total_debt",
        ):
            check_non_negative(name, getattr(self, name))


@dataclass(frozen=True)
class _FactorSpec:
    label: str
    midpoint: float
    steepness: float
    direction: Literal["growth", "decay"]
    weight: float
    threshold: Optional[float] = None
    recommendation: Optional[str] = None


FACTOR_SPECS: Dict[str, _FactorSpec] = {
    "DSR": _FactorSpec(
        "Debt service ratio", 0.40, 15.0, "decay", 0.25,
        60.0, "Refinance expensive loans or raise income.",
    ),
    "RC": _FactorSpec(
        "Reserve coverage", 3.0, 0.8, "growth", 0.25,
        60.0, "Build an emergency reserve covering at least 3 months.",
    ),
    "LR": _FactorSpec("Liquidity ratio", 0.25, 5.0, "growth", 0.20),
    "BO": _FactorSpec(
        "Surplus ratio", 0.10, 15.0, "growth", 0.15,
        50.0, "Review subscriptions and recurring expenses.",
    ),
    "DBR": _FactorSpec("Debt burden ratio", 0.60, 4.0, "decay", 0.15),
}


@dataclass(frozen=True)
class ScoreFactor:
    """One scored ratio of the breakdown."""
    id: str
    label: str
    value: float
    score: float
    weight: float
    contribution: float
    impact: Impact
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class HealthScore:
    """Total score, rating and factors sorted worst-first."""
    total_score: int
    rating: str
    factors: Tuple[ScoreFactor, ...]

    def factor(self, factor_id: str) -> ScoreFactor:
        """Look up a factor by id (DSR, RC, LR, BO, DBR)."""
        for f in self.factors:
            if f.id == factor_id:
                return f
        raise KeyError(factor_id)


def health_ratios(profile: FinancialProfile) -> Dict[str, float]:
    """Raw ratios by factor id; LR is 1 when there is no debt."""
    income = max(profile.monthly_income, 1.0)
    mandatory = max(profile.monthly_mandatory_expenses, 1.0)
    surplus = (
        profile.monthly_income
        - profile.monthly_mandatory_expenses
        - profile.monthly_debt_payments
    )
    return {
        "DSR": profile.monthly_debt_payments / income,
        "RC": profile.total_liquid_assets / mandatory,
        "LR": profile.total_liquid_assets / profile.total_debt if profile.total_debt > 0 else 1.0,
        "BO": surplus / income,
        "DBR": profile.total_debt / (income * MONTHS_PER_YEAR),
    }


def rating_for(total_score: float) -> str:
    """Textual rating of a 0-1000 score."""
    for floor, label in RATING_THRESHOLDS:
        if total_score >= floor:
            return label
    return "Critical"


def _impact(score: float) -> Impact:
    if score > 80:
        return "positive"
    if score < 50:
        return "negative"
    return "neutral"


def calculate_health_score(profile: FinancialProfile) -> HealthScore:
    """
    Score a financial profile.

    Returns
    -------
    HealthScore
        ``total_score`` in [0, 1000] (half-up rounding of ten times the
        weighted sum) and factors sorted ascending by sub-score.
    """
    ratios = health_ratios(profile)
    factors: List[ScoreFactor] = []
    weighted = 0.0
    for fid, spec in FACTOR_SPECS.items():
        value = ratios[fid]
        if fid == "LR" and profile.total_debt == 0:
            score = 100.0
        else:
            score = logistic_score(value, spec.midpoint, spec.steepness, spec.direction)
        weighted += score * spec.weight
        recommendation = None
        if spec.threshold is not None and score < spec.threshold:
            recommendation = spec.recommendation
        factors.append(
            ScoreFactor(
                id=fid,
                label=spec.label,
                value=value,
                score=score,
                weight=spec.weight,
                contribution=score * spec.weight * 10,
                impact=_impact(score),
                recommendation=recommendation,
            )
        )

    total = int(math.floor(weighted * 10 + 0.5))
    total = max(0, min(1000, total))
    factors.sort(key=lambda f: f.score)
    return HealthScore(total_score=total, rating=rating_for(total), factors=tuple(factors))
