# finengine/shared.py
"""
Shared-expense settlement module.

Purpose
-------
Splits shared transactions across group members, aggregates each member's
net position (paid minus consumed share), and proposes a short list of
pairwise transfers that clears every position.

Split methods
-------------
The split of a transaction is a closed variant:

- EqualSplit()                 : amount / number of members
- WeightedSplit()              : proportional to monthly income, equal when
                                 the group's total income is zero
- ExactSplit(shares)           : explicit amounts; missing members owe 0
- PercentageSplit(percents)    : explicit percentages (0-100); missing
                                 members owe 0

Settlement
----------
Debtors (net < -0.01) and creditors (net > 0.01) are sorted by magnitude,
largest first, and matched greedily largest-to-largest. Each transfer moves
min(debt, credit), rounded to cents. The greedy match produces at most
``members - 1`` transfers; it is not guaranteed to be the global minimum.

Example
-------
>>> from finengine.shared import Member, SharedTransaction, EqualSplit
>>> from finengine.shared import calculate_balances, calculate_settlements
>>> members = [Member("ann"), Member("bob"), Member("cid")]
>>> txns = [SharedTransaction("t1", payer_id="ann", amount=90, split=EqualSplit())]
>>> [(s.from_id, s.to_id, s.amount) for s in
...  calculate_settlements(calculate_balances(txns, members))]
[('bob', 'ann', 30.0), ('cid', 'ann', 30.0)]
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .constants import SETTLEMENT_EPSILON
from .exceptions import SplitError
from .utils import check_non_negative

__all__ = [
    "Member",
    "EqualSplit",
    "WeightedSplit",
    "ExactSplit",
    "PercentageSplit",
    "Split",
    "split_from_method",
    "SharedTransaction",
    "MemberBalance",
    "Settlement",
    "weighted_ratios",
    "transaction_shares",
    "calculate_balances",
    "calculate_settlements",
]


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Member:
    """Group participant; income drives weighted splits."""
    id: str
    name: str = ""
    monthly_income: float = 0.0

    def __post_init__(self):
        check_non_negative("monthly_income", self.monthly_income)


@dataclass(frozen=True)
class EqualSplit:
    """Everyone pays the same share."""


@dataclass(frozen=True)
class WeightedSplit:
    """Shares proportional to monthly income."""


@dataclass(frozen=True)
class ExactSplit:
    """Explicit amount per member id."""
    shares: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class PercentageSplit:
    """Explicit percentage (0-100) per member id."""
    percents: Mapping[str, float] = field(default_factory=dict)


Split = Union[EqualSplit, WeightedSplit, ExactSplit, PercentageSplit]


def split_from_method(method: str, details: Optional[Mapping[str, float]] = None) -> Split:
    """
    Build a split from its string tag and optional detail map.

    Raises
    ------
    SplitError
        Unknown method, or exact/percentage without details.
    """
    if method == "equal":
        return EqualSplit()
    if method == "weighted":
        return WeightedSplit()
    if method in ("exact", "percentage"):
        if not details:
            raise SplitError(f"Split method {method!r} requires a details map.")
        if method == "exact":
            return ExactSplit(dict(details))
        return PercentageSplit(dict(details))
    raise SplitError(
        f"Unsupported split method {method!r}. "
        "Use one of: equal, weighted, exact, percentage."
    )


@dataclass(frozen=True)
class SharedTransaction:
    """Expense paid by one member on behalf of the group."""
    id: str
    payer_id: str
    amount: float
    split: Split = field(default_factory=EqualSplit)
    description: str = ""
    date: Optional[date] = None

    def __post_init__(self):
        check_non_negative("amount", self.amount)


@dataclass(frozen=True)
class MemberBalance:
    """Aggregate position of one member; net > 0 means the member is owed."""
    member_id: str
    paid: float
    share: float

    @property
    def net(self) -> float:
        return self.paid - self.share


@dataclass(frozen=True)
class Settlement:
    """Transfer from a debtor to a creditor."""
    from_id: str
    to_id: str
    amount: float


# ---------------------------------------------------------------------------
# Shares and balances
# ---------------------------------------------------------------------------

def weighted_ratios(members: Sequence[Member]) -> Dict[str, float]:
    """Income share of each member; equal ratios when total income is 0."""
    total = sum(m.monthly_income for m in members)
    if total == 0:
        equal = 1.0 / max(1, len(members))
        return {m.id: equal for m in members}
    return {m.id: m.monthly_income / total for m in members}


def transaction_shares(txn: SharedTransaction, members: Sequence[Member]) -> Dict[str, float]:
    """
    Consumed share of *txn* for every member.

    Raises
    ------
    TypeError
        If the transaction carries a split outside the closed variant.
    """
    split = txn.split
    if not members:
        return {}
    if isinstance(split, EqualSplit):
        each = txn.amount / len(members)
        return {m.id: each for m in members}
    if isinstance(split, WeightedSplit):
        ratios = weighted_ratios(members)
        return {m.id: txn.amount * ratios[m.id] for m in members}
    if isinstance(split, ExactSplit):
        return {m.id: float(split.shares.get(m.id, 0.0)) for m in members}
    if isinstance(split, PercentageSplit):
        return {m.id: txn.amount * float(split.percents.get(m.id, 0.0)) / 100.0 for m in members}
    raise TypeError(f"Unhandled split variant: {type(split).__name__}")


def calculate_balances(
    transactions: Sequence[SharedTransaction],
    members: Sequence[Member],
) -> List[MemberBalance]:
    """
    Paid and consumed totals per member, in member order.

    Payers outside *members* are ignored.
    """
    paid = {m.id: 0.0 for m in members}
    share = {m.id: 0.0 for m in members}
    for txn in transactions:
        if txn.payer_id in paid:
            paid[txn.payer_id] += txn.amount
        for member_id, amount in transaction_shares(txn, members).items():
            share[member_id] += amount
    return [MemberBalance(m.id, paid[m.id], share[m.id]) for m in members]


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------

def calculate_settlements(
    balances: Sequence[MemberBalance],
    epsilon: float = SETTLEMENT_EPSILON,
) -> List[Settlement]:
    """
    Greedy largest-to-largest settlement of net balances.

    Parameters
    ----------
    balances : sequence of MemberBalance
    epsilon : float
        Positions within +/- epsilon count as settled.

    Returns
    -------
    list of Settlement
        Amounts rounded to 2 decimals.
    """
    debtors = sorted(
        ([b.member_id, -b.net] for b in balances if b.net < -epsilon),
        key=lambda x: x[1],
        reverse=True,
    )
    creditors = sorted(
        ([b.member_id, b.net] for b in balances if b.net > epsilon),
        key=lambda x: x[1],
        reverse=True,
    )

    settlements: List[Settlement] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        amount = min(debtor[1], creditor[1])
        if amount > epsilon:
            settlements.append(Settlement(debtor[0], creditor[0], round(amount, 2)))
        debtor[1] -= amount
        creditor[1] -= amount
        if debtor[1] < epsilon:
            i += 1
        if creditor[1] < epsilon:
            j += 1
    return settlements
