# finengine/optimizer.py
"""
Debt payoff optimizer.

Purpose
-------
Month-by-month amortization simulator with avalanche/snowball ordering and
"freed minimum" reallocation, plus the analyses built on top of it:
baseline-vs-strategy comparison and marginal sensitivity to a larger extra
payment.

Simulation (one month)
----------------------
(a) Each open debt is owed min(min_payment, B + B*r + fee).
(b) The monthly budget is the sum of the ORIGINAL minimum payments of all
    debts plus the extra payment, so minimums freed by closed debts keep
    flowing into the open ones.
(c) Whatever is left after the minimums goes entirely to the first open debt
    in strategy order (avalanche: highest APR; snowball: smallest current
    balance; ties keep input order).
(d) Every open debt is amortized one step; interest, principal, payments
    and closures are recorded.

The loop stops when every balance is zero or after `max_months` (360). A run
that hits the cap with balance left reports ``debt_free_month = -1`` and
emits a RuntimeWarning.

Key components
--------------
- PayoffMonth : one row of the schedule
- SimulationResult : schedule plus totals, `to_frame()` for pandas export
- Comparison : baseline vs optimized run, interest and months saved
- DebtOptimizer : simulate / compare / sensitivity / analyze

Example
-------
>>> from finengine.debts import Debt
>>> from finengine.optimizer import DebtOptimizer
>>> debts = [Debt("card", balance=10_000, apr=20, min_payment=500),
...          Debt("loan", balance=5_000, apr=30, min_payment=300)]
>>> result = DebtOptimizer().simulate(debts, "avalanche", extra_payment=1000)
>>> result.payoff_order
['loan', 'card']
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import warnings

import pandas as pd

from .config import OptimizerConfig
from .constants import BALANCE_EPSILON
from .debts import (
    STRATEGIES,
    Debt,
    Strategy,
    amortization_step,
    marginal_savings,
    payoff_amount,
    sort_by_strategy,
)

__all__ = [
    "PayoffMonth",
    "SimulationResult",
    "Comparison",
    "OptimizerAnalysis",
    "DebtOptimizer",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PayoffMonth:
    """
    One month of a payoff schedule.

    Attributes
    ----------
    month : int
        1-based month index.
    total_payment : float
        Money applied across all debts this month.
    total_interest : float
    total_principal : float
    remaining_balance : float
        Sum of balances after the step.
    balances : dict
        Balance of every debt after the step (closed debts report 0).
    payments : dict
        Payment applied to each open debt.
    closed_debts : tuple of str
        Debts reaching zero this month.
    """
    month: int
    total_payment: float
    total_interest: float
    total_principal: float
    remaining_balance: float
    balances: Dict[str, float]
    payments: Dict[str, float]
    closed_debts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SimulationResult:
    """
    Outcome of one payoff simulation.

    Attributes
    ----------
    strategy : {"avalanche", "snowball"}
    extra_payment : float
    schedule : tuple of PayoffMonth
    total_interest : float
    total_paid : float
        Sum of all payments applied (interest + fees + principal).
    debt_free_month : int
        Month all balances reached zero, 0 for no debt, -1 when the cap was
        hit with balance remaining.
    payoff_order : tuple of str
        Debt ids in the order they were cleared.
    """
    strategy: Strategy
    extra_payment: float
    schedule: Tuple[PayoffMonth, ...]
    total_interest: float
    total_paid: float
    debt_free_month: int
    payoff_order: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def converged(self) -> bool:
        """True unless the simulation hit the month cap."""
        return self.debt_free_month >= 0

    @property
    def months(self) -> int:
        """Number of simulated months."""
        return len(self.schedule)

    def to_frame(self) -> pd.DataFrame:
        """
        Schedule as a DataFrame indexed by month.

        Columns: total_payment, total_interest, total_principal,
        remaining_balance, plus one ``balance[<id>]`` column per debt.
        """
        if not self.schedule:
            return pd.DataFrame(
                columns=["total_payment", "total_interest", "total_principal", "remaining_balance"],
                index=pd.Index([], name="month"),
            )
        rows = []
        for m in self.schedule:
            row = {
                "month": m.month,
                "total_payment": m.total_payment,
                "total_interest": m.total_interest,
                "total_principal": m.total_principal,
                "remaining_balance": m.remaining_balance,
            }
            row.update({f"balance[{k}]": v for k, v in m.balances.items()})
            rows.append(row)
        return pd.DataFrame(rows).set_index("month")


@dataclass(frozen=True)
class Comparison:
    """
    Baseline (zero extra) vs optimized run.

    ``months_saved`` is None when either run did not converge, since the
    -1 sentinel is not a month count.
    """
    baseline: SimulationResult
    optimized: SimulationResult
    interest_savings: float
    months_saved: Optional[int]


@dataclass(frozen=True)
class OptimizerAnalysis:
    """Comparison plus marginal sensitivity of a further extra-payment step."""
    comparison: Comparison
    sensitivity: SimulationResult
    step: float
    marginal_months_saved: Optional[int]

    @property
    def baseline(self) -> SimulationResult:
        return self.comparison.baseline

    @property
    def optimized(self) -> SimulationResult:
        return self.comparison.optimized


# ---------------------------------------------------------------------------
# Optimizer
# ---------------------------------------------------------------------------

class DebtOptimizer:
    """
    Avalanche/snowball payoff simulator.

    Parameters
    ----------
    config : OptimizerConfig, optional
        Month cap, sensitivity step and default strategies.

    Examples
    --------
    >>> optimizer = DebtOptimizer(OptimizerConfig(max_months=120))
    >>> analysis = optimizer.analyze(debts, "avalanche", extra_payment=1000)
    >>> analysis.comparison.interest_savings > 0
    True
    """

    def __init__(self, config: Optional[OptimizerConfig] = None):
        self.config = config or OptimizerConfig()

    def simulate(
        self,
        debts: Sequence[Debt],
        strategy: Optional[Strategy] = None,
        extra_payment: float = 0.0,
    ) -> SimulationResult:
        """
        Run the payoff simulation.

        Parameters
        ----------
        debts : sequence of Debt
            Input debts; never mutated.
        strategy : {"avalanche", "snowball"}, optional
            Defaults to ``config.strategy``.
        extra_payment : float
            Monthly amount on top of the original minimums.

        Returns
        -------
        SimulationResult

        Warns
        -----
        RuntimeWarning
            When the month cap is hit with balance remaining.
        """
        strategy = strategy or self.config.strategy
        if extra_payment < 0:
            raise ValueError(f"extra_payment must be non-negative, got {extra_payment}")
        if strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {sorted(STRATEGIES)}, got {strategy!r}")

        balances: Dict[str, float] = {d.id: float(d.balance) for d in debts}
        budget = sum(d.min_payment for d in debts) + extra_payment

        schedule: List[PayoffMonth] = []
        payoff_order: List[str] = []
        total_interest = 0.0
        total_paid = 0.0
        month = 0

        def is_open(debt: Debt) -> bool:
            return balances[debt.id] > BALANCE_EPSILON

        while any(is_open(d) for d in debts) and month < self.config.max_months:
            month += 1
            open_debts = [d for d in debts if is_open(d)]

            # (a) minimums, capped at the payoff amount
            payments: Dict[str, float] = {}
            for d in open_debts:
                payments[d.id] = min(d.min_payment, payoff_amount(d, balances[d.id]))

            # (b)+(c) leftover budget to the strategy target
            leftover = budget - sum(payments.values())
            if leftover > 0:
                target = sort_by_strategy(open_debts, strategy, balances)[0]
                payments[target.id] += leftover

            # (d) amortize
            m_interest = 0.0
            m_principal = 0.0
            m_paid = 0.0
            closed: List[str] = []
            for d in open_debts:
                before = balances[d.id]
                applied = min(payments[d.id], payoff_amount(d, before))
                step = amortization_step(before, applied, d.apr, d.monthly_fee)
                after = step.end_balance if step.end_balance > BALANCE_EPSILON else 0.0
                balances[d.id] = after
                payments[d.id] = applied

                m_interest += step.interest
                m_principal += before - after if after < before else 0.0
                m_paid += applied
                if after == 0.0:
                    closed.append(d.id)
                    payoff_order.append(d.id)

            total_interest += m_interest
            total_paid += m_paid
            schedule.append(
                PayoffMonth(
                    month=month,
                    total_payment=m_paid,
                    total_interest=m_interest,
                    total_principal=m_principal,
                    remaining_balance=sum(balances.values()),
                    balances=dict(balances),
                    payments=payments,
                    closed_debts=tuple(closed),
                )
            )

        if any(is_open(d) for d in debts):
            debt_free_month = -1
            warnings.warn(
                f"Debt simulation ({strategy}, extra={extra_payment:,.2f}) did not "
                f"converge within {self.config.max_months} months; "
                f"remaining balance {sum(balances.values()):,.2f}. "
                "Minimum payments may not cover interest.",
                RuntimeWarning,
                stacklevel=2,
            )
        else:
            debt_free_month = month

        logger.debug(
            "simulate: strategy=%s extra=%.2f months=%d interest=%.2f order=%s",
            strategy, extra_payment, month, total_interest, payoff_order,
        )
        return SimulationResult(
            strategy=strategy,
            extra_payment=float(extra_payment),
            schedule=tuple(schedule),
            total_interest=total_interest,
            total_paid=total_paid,
            debt_free_month=debt_free_month,
            payoff_order=tuple(payoff_order),
        )

    def compare(
        self,
        debts: Sequence[Debt],
        strategy: Optional[Strategy] = None,
        extra_payment: float = 0.0,
    ) -> Comparison:
        """
        Zero-extra baseline against *strategy* with *extra_payment*.

        Returns
        -------
        Comparison
            ``interest_savings = baseline.total_interest - optimized.total_interest``;
            ``months_saved`` is None unless both runs converged.
        """
        baseline = self.simulate(debts, self.config.baseline_strategy, 0.0)
        optimized = self.simulate(debts, strategy, extra_payment)
        months_saved = None
        if baseline.converged and optimized.converged:
            months_saved = baseline.debt_free_month - optimized.debt_free_month
        return Comparison(
            baseline=baseline,
            optimized=optimized,
            interest_savings=baseline.total_interest - optimized.total_interest,
            months_saved=months_saved,
        )

    def sensitivity(
        self,
        debts: Sequence[Debt],
        strategy: Optional[Strategy] = None,
        extra_payment: float = 0.0,
        optimized: Optional[SimulationResult] = None,
    ) -> Tuple[SimulationResult, Optional[int]]:
        """
        Months saved by raising the extra payment one more step.

        Returns
        -------
        (run, months) : tuple
            The ``extra + step`` run and the incremental months saved over
            *optimized* (None unless both runs converged).
        """
        if optimized is None:
            optimized = self.simulate(debts, strategy, extra_payment)
        stepped = self.simulate(debts, strategy, extra_payment + self.config.marginal_step)
        if not (optimized.converged and stepped.converged):
            return stepped, None
        return stepped, marginal_savings(optimized.debt_free_month, stepped.debt_free_month)

    def analyze(
        self,
        debts: Sequence[Debt],
        strategy: Optional[Strategy] = None,
        extra_payment: float = 0.0,
    ) -> OptimizerAnalysis:
        """Comparison and marginal sensitivity in one call."""
        comparison = self.compare(debts, strategy, extra_payment)
        stepped, marginal = self.sensitivity(
            debts, strategy, extra_payment, optimized=comparison.optimized
        )
        return OptimizerAnalysis(
            comparison=comparison,
            sensitivity=stepped,
            step=self.config.marginal_step,
            marginal_months_saved=marginal,
        )
