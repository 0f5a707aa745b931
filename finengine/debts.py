# finengine/debts.py
"""
Debt amortization formulas.

Purpose
-------
Closed-form, single-step building blocks for the payoff simulator in
`finengine.optimizer`: monthly rate and interest, one amortization step,
the negative-amortization check, and the strategy orderings.

Mathematical Framework
----------------------
Monthly rate:        r = APR / 12 / 100
Interest:            I = B * r
Principal:           P = max(0, p - I - f)
Next balance:        B' = max(0, B - P)
Negative amortization when the minimum payment does not cover interest
plus included fees:  m <= I + f

Strategies
----------
avalanche : highest APR first
snowball  : smallest current balance first
Ties keep input order (stable sort).

Example
-------
>>> from finengine.debts import Debt, amortization_step
>>> step = amortization_step(balance=10_000, payment=500, apr=24.0)
>>> step.interest, step.principal, step.end_balance
(200.0, 300.0, 9700.0)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Literal, Optional, Sequence

from .constants import MONTHS_PER_YEAR
from .utils import check_day_of_month, check_non_negative

__all__ = [
    "Strategy",
    "Debt",
    "AmortizationStep",
    "monthly_rate",
    "monthly_interest",
    "payoff_amount",
    "amortization_step",
    "is_negative_amortization",
    "STRATEGIES",
    "sort_by_strategy",
    "marginal_savings",
]

Strategy = Literal["avalanche", "snowball"]


@dataclass(frozen=True)
class Debt:
    """
    Amortizing debt.

    Parameters
    ----------
    id : str
    balance : float
        Outstanding balance, non-negative.
    apr : float
        Annual percentage rate in percent (24.9 means 24.9%). Zero or
        negative APR means no interest accrues.
    min_payment : float
        Contractual minimum monthly payment.
    name : str
        Display name, empty by default.
    due_day : int
        Day of month the payment is due (1-31).
    fees : float
        Fixed monthly fee.
    include_fees : bool
        Whether the fee is charged on top of interest each month.
    """
    id: str
    balance: float
    apr: float
    min_payment: float
    name: str = ""
    due_day: int = 1
    fees: float = 0.0
    include_fees: bool = False

    def __post_init__(self):
        check_non_negative("balance", self.balance)
        check_non_negative("min_payment", self.min_payment)
        check_non_negative("fees", self.fees)
        check_day_of_month("due_day", self.due_day)

    @property
    def monthly_fee(self) -> float:
        """Fee charged each month (0 unless include_fees)."""
        return self.fees if self.include_fees else 0.0


@dataclass(frozen=True)
class AmortizationStep:
    """Result of one month of amortization."""
    interest: float
    principal: float
    end_balance: float
    fees: float = 0.0


def monthly_rate(apr: float) -> float:
    """Monthly rate from an APR in percent; non-positive APR gives 0."""
    if apr <= 0:
        return 0.0
    return apr / MONTHS_PER_YEAR / 100.0


def monthly_interest(balance: float, apr: float) -> float:
    """Interest accrued on *balance* over one month."""
    return balance * monthly_rate(apr)


def payoff_amount(debt: Debt, balance: Optional[float] = None) -> float:
    """Payment that clears *balance* this month: B + B*r + fee."""
    b = debt.balance if balance is None else balance
    return b + monthly_interest(b, debt.apr) + debt.monthly_fee


def amortization_step(balance: float, payment: float, apr: float, fees: float = 0.0) -> AmortizationStep:
    """
    Advance one debt by one month.

    The balance never goes negative: overpayment beyond the outstanding
    principal is absorbed by the floor at zero.
    """
    interest = monthly_interest(balance, apr)
    principal = max(0.0, payment - interest - fees)
    end_balance = max(0.0, balance - principal)
    return AmortizationStep(interest, principal, end_balance, fees)


def is_negative_amortization(debt: Debt) -> bool:
    """True when the minimum payment does not exceed interest plus fees."""
    return debt.min_payment <= monthly_interest(debt.balance, debt.apr) + debt.monthly_fee


# Sort keys over (debt, current balance)
STRATEGIES: Dict[str, Callable[[Debt, float], float]] = {
    "avalanche": lambda debt, balance: -debt.apr,
    "snowball": lambda debt, balance: balance,
}


def sort_by_strategy(
    debts: Sequence[Debt],
    strategy: Strategy,
    balances: Optional[Dict[str, float]] = None,
) -> List[Debt]:
    """
    Order debts by *strategy*.

    Parameters
    ----------
    debts : sequence of Debt
    strategy : {"avalanche", "snowball"}
    balances : dict, optional
        Current balances by id (snowball ranks on these); defaults to each
        debt's own balance.
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"strategy must be one of {sorted(STRATEGIES)}, got {strategy!r}")
    key = STRATEGIES[strategy]
    balances = balances or {}
    return sorted(debts, key=lambda d: key(d, balances.get(d.id, d.balance)))


def marginal_savings(baseline_month: int, new_month: int) -> int:
    """Months saved moving from *baseline_month* to *new_month*, floored at 0."""
    return max(0, baseline_month - new_month)
