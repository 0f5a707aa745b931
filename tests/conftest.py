"""
Pytest configuration and fixtures for FinEngine test suite.

This module provides reusable fixtures for testing all FinEngine components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

from datetime import date, datetime, timedelta
from typing import List

import pytest

from finengine.debts import Debt
from finengine.envelopes import Contribution, Envelope
from finengine.plans import PlanTemplate, RuleBlueprint, TaskBlueprint, TemplateCatalog
from finengine.risk import Obligation
from finengine.score import FinancialProfile
from finengine.shared import Member


# ---------------------------------------------------------------------------
# Date Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def today() -> date:
    """Standard as-of date for tests (5th of the month)."""
    return date(2024, 1, 5)


@pytest.fixture
def plan_start() -> datetime:
    """Standard plan start timestamp."""
    return datetime(2025, 3, 1, 9, 0)


# ---------------------------------------------------------------------------
# Obligation Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def rent() -> Obligation:
    """Rent due on the 8th, 3 days after `today`."""
    return Obligation(id="rent", name="Rent", amount=8000, due_day=8, category="utilities")


@pytest.fixture
def obligations(rent) -> List[Obligation]:
    """
    Mixed obligation set.

    - rent:    8 000 due day 8 (unpaid)
    - phone:     500 due day 20 (unpaid)
    - gym:     1 500 due day 7 (paid)
    """
    return [
        rent,
        Obligation(id="phone", name="Phone", amount=500, due_day=20, category="subscription"),
        Obligation(id="gym", name="Gym", amount=1500, due_day=7, is_paid=True),
    ]


# ---------------------------------------------------------------------------
# Debt Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def two_debts() -> List[Debt]:
    """
    Classic avalanche scenario.

    A: 10 000 at 20% APR, minimum 500
    B:  5 000 at 30% APR, minimum 300
    """
    return [
        Debt(id="A", name="Card A", balance=10_000, apr=20, min_payment=500),
        Debt(id="B", name="Card B", balance=5_000, apr=30, min_payment=300),
    ]


@pytest.fixture
def three_debts() -> List[Debt]:
    """Small debt that closes fast, then a high-APR and a low-APR debt."""
    return [
        Debt(id="small", balance=1_000, apr=10, min_payment=500),
        Debt(id="expensive", balance=60_000, apr=40, min_payment=2_500),
        Debt(id="cheap", balance=20_000, apr=5, min_payment=1_000),
    ]


# ---------------------------------------------------------------------------
# Envelope Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def car_goal(today) -> Envelope:
    """Goal: 100 000 with 27 000 saved, deadline 180 days out."""
    return Envelope(
        id="car",
        name="Car",
        target_amount=100_000,
        current_amount=27_000,
        deadline=today + timedelta(days=180),
    )


@pytest.fixture
def steady_contributions(today) -> List[Contribution]:
    """50 000 contributed over the last 100 days (500/day)."""
    start = today - timedelta(days=100)
    return [Contribution(amount=5_000, date=start + timedelta(days=10 * i)) for i in range(10)]


# ---------------------------------------------------------------------------
# Profile / Group Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def healthy_profile() -> FinancialProfile:
    return FinancialProfile(
        monthly_income=100_000,
        monthly_mandatory_expenses=40_000,
        monthly_debt_payments=10_000,
        total_liquid_assets=300_000,
        total_debt=50_000,
    )


@pytest.fixture
def members() -> List[Member]:
    return [
        Member("ann", "Ann", monthly_income=60_000),
        Member("bob", "Bob", monthly_income=40_000),
        Member("cid", "Cid", monthly_income=0),
    ]


# ---------------------------------------------------------------------------
# Catalog Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def debt_template() -> PlanTemplate:
    """Structured debt template (blueprints for tasks and rules)."""
    return PlanTemplate(
        id="debt_avalanche",
        title="Debt avalanche",
        category="debt",
        horizons=("month", "quarter"),
        default_params={"extra": 1000, "horizon": "month"},
        tasks_blueprint=(
            TaskBlueprint(title="List all debts by APR", priority=2, estimated_effect=1500),
            TaskBlueprint(title="Send extra to top debt", repeat="weekly", schedule="weekly",
                          tag="debt", estimated_effect="varies"),
        ),
        rules_blueprint=(
            RuleBlueprint(trigger="new_credit_offer", action="decline",
                          description="Decline new credit offers"),
        ),
    )


@pytest.fixture
def reserve_template() -> PlanTemplate:
    """Legacy reserve template (example tasks only)."""
    return PlanTemplate(
        id="reserve_basic",
        title="Emergency reserve",
        category="reserve",
        horizons=("week", "month"),
        example_tasks=("Open a savings account", "Set up an automatic transfer"),
    )


@pytest.fixture
def catalog(debt_template, reserve_template) -> TemplateCatalog:
    return TemplateCatalog([debt_template, reserve_template])
