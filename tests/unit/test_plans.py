"""
Unit tests for plans.py module.

Tests template catalog lookup, structured vs legacy task and rule sources,
plan instance generation and the weekly plan.
"""

from datetime import date, datetime

import pytest

from finengine.exceptions import TemplateNotFoundError
from finengine.plans import (
    LegacyRules,
    LegacyTasks,
    PlanGenerator,
    PlanTemplate,
    StructuredRules,
    StructuredTasks,
    TemplateCatalog,
    generate_weekly_plan,
    is_plan_current_week,
    plan_end_date,
    resolve_rule_source,
    resolve_task_source,
    week_start_of,
)
from finengine.risk import Obligation, RiskResult


def _risk(level):
    return RiskResult(level=level, amount_due_7_days=0.0, amount_due_before_salary=0.0, days_until_salary=5)


@pytest.fixture
def generator(catalog):
    return PlanGenerator(catalog)


# ============================================================================
# CATALOG
# ============================================================================

class TestCatalog:
    """Tests for TemplateCatalog and PlanTemplate."""

    def test_lookup(self, catalog):
        assert catalog.get("debt_avalanche").category == "debt"
        assert "reserve_basic" in catalog
        assert len(catalog) == 2
        assert catalog.ids == ["debt_avalanche", "reserve_basic"]

    def test_missing_template(self, catalog):
        with pytest.raises(TemplateNotFoundError, match="debt_avalanche") as exc:
            catalog.get("nope")
        assert exc.value.template_id == "nope"

    def test_duplicate_ids(self, debt_template):
        with pytest.raises(ValueError, match="duplicate"):
            TemplateCatalog([debt_template, debt_template])

    def test_template_requires_horizon(self):
        with pytest.raises(ValueError, match="horizon"):
            PlanTemplate(id="x", title="X", category="debt", horizons=())

    def test_sources(self, debt_template, reserve_template):
        assert isinstance(resolve_task_source(debt_template), StructuredTasks)
        assert isinstance(resolve_rule_source(debt_template), StructuredRules)
        assert resolve_task_source(reserve_template) == LegacyTasks(reserve_template.example_tasks)
        assert resolve_rule_source(reserve_template) == LegacyRules("reserve")

    def test_empty_blueprint_falls_back(self):
        t = PlanTemplate(id="x", title="X", category="debt", horizons=("week",),
                         tasks_blueprint=(), rules_blueprint=())
        assert isinstance(resolve_task_source(t), LegacyTasks)
        assert isinstance(resolve_rule_source(t), LegacyRules)


# ============================================================================
# PLAN GENERATION
# ============================================================================

class TestCreatePlan:
    """Tests for PlanGenerator.create_plan."""

    def test_structured_template(self, generator, obligations, plan_start):
        plan = generator.create_plan("debt_avalanche", _risk("medium"), obligations, started_at=plan_start)
        assert plan.instance.horizon == "month"
        assert plan.instance.ends_at == datetime(2025, 4, 1, 9, 0)
        assert plan.instance.risk_level == "medium"
        assert plan.instance.status == "active"

        texts = [a.text for a in plan.actions]
        assert texts == ['Pay "Rent" (8000) by day 8', "List all debts by APR", "Send extra to top debt"]

        rent, listing, extra = plan.actions
        assert rent.priority == 1
        assert rent.tag == "mandatory"
        assert rent.obligation_id == "rent"
        assert listing.points == 10
        assert listing.estimated_effect == 1500.0
        assert listing.is_recurring is False
        assert extra.is_recurring is True
        assert extra.estimated_effect == 0.0
        assert extra.tag == "debt"

        assert [r.text for r in plan.rules] == ["Decline new credit offers"]
        assert all(r.is_active for r in plan.rules)

    def test_legacy_reserve_template(self, generator, obligations, plan_start):
        plan = generator.create_plan("reserve_basic", _risk("low"), obligations, started_at=plan_start)
        assert plan.instance.horizon == "week"
        assert [a.priority for a in plan.actions] == [3, 4]
        assert all(a.points == 5 and a.tag == "general" for a in plan.actions)
        assert all(a.obligation_id is None for a in plan.actions)
        assert [r.text for r in plan.rules] == [
            "Pay yourself first (to reserve)",
            "24-hour pause before purchases",
        ]

    def test_legacy_debt_rules(self, obligations, plan_start):
        t = PlanTemplate(id="d", title="D", category="debt", horizons=("month",), example_tasks=("Call bank",))
        plan = PlanGenerator(TemplateCatalog([t])).create_plan("d", _risk("low"), [], plan_start)
        assert [r.text for r in plan.rules] == ["No new debt"]

    def test_other_category_has_no_legacy_rules(self, plan_start):
        t = PlanTemplate(id="o", title="O", category="optimization", horizons=("month",))
        plan = PlanGenerator(TemplateCatalog([t])).create_plan("o", _risk("low"), [], plan_start)
        assert plan.rules == ()
        assert plan.actions == ()

    def test_supported_horizon_honoured(self, generator, plan_start):
        plan = generator.create_plan("debt_avalanche", _risk("low"), [], plan_start, horizon="quarter")
        assert plan.instance.horizon == "quarter"
        assert plan.instance.ends_at == datetime(2025, 6, 1, 9, 0)

    def test_unsupported_horizon_falls_back(self, generator, plan_start):
        plan = generator.create_plan("debt_avalanche", _risk("low"), [], plan_start, horizon="year")
        assert plan.instance.horizon == "month"

    def test_horizon_from_params(self, generator, plan_start):
        plan = generator.create_plan("debt_avalanche", _risk("low"), [], plan_start, params={"horizon": "quarter"})
        assert plan.instance.horizon == "quarter"

    def test_params_layered_over_defaults(self, generator, plan_start):
        plan = generator.create_plan("debt_avalanche", _risk("low"), [], plan_start, params={"extra": 2500})
        assert plan.instance.params == {"extra": 2500, "horizon": "month"}

    def test_unknown_template(self, generator, plan_start):
        with pytest.raises(TemplateNotFoundError):
            generator.create_plan("missing", _risk("low"), [], plan_start)

    def test_obligation_window(self, generator, plan_start):
        bills = [
            Obligation("soon", "Soon", 100, due_day=11),
            Obligation("late", "Late", 100, due_day=12),
            Obligation("paid", "Paid", 100, due_day=2, is_paid=True),
        ]
        plan = generator.create_plan("debt_avalanche", _risk("low"), bills, plan_start)
        assert [a.obligation_id for a in plan.actions if a.obligation_id] == ["soon"]

    def test_ids_deterministic(self, generator, obligations, plan_start):
        a = generator.create_plan("debt_avalanche", _risk("low"), obligations, plan_start)
        b = generator.create_plan("debt_avalanche", _risk("low"), obligations, plan_start)
        assert a == b
        ids = [x.id for x in a.actions] + [r.id for r in a.rules] + [a.instance.id]
        assert len(set(ids)) == len(ids)
        assert all(x.plan_instance_id == a.instance.id for x in a.actions)

    def test_start_time_changes_id(self, generator, plan_start):
        a = generator.create_plan("debt_avalanche", _risk("low"), [], plan_start)
        b = generator.create_plan("debt_avalanche", _risk("low"), [], datetime(2025, 3, 2, 9, 0))
        assert a.instance.id != b.instance.id

    def test_explicit_instance_id(self, generator, plan_start):
        plan = generator.create_plan("debt_avalanche", _risk("low"), [], plan_start, instance_id="plan-1")
        assert plan.instance.id == "plan-1"
        assert all(r.plan_instance_id == "plan-1" for r in plan.rules)


class TestPlanEndDate:
    """Tests for horizon arithmetic."""

    @pytest.mark.parametrize(
        "horizon,expected",
        [
            ("day", date(2025, 1, 31)),
            ("week", date(2025, 2, 6)),
            ("month", date(2025, 2, 28)),
            ("quarter", date(2025, 4, 30)),
            ("year", date(2026, 1, 30)),
        ],
    )
    def test_horizons(self, horizon, expected):
        assert plan_end_date(date(2025, 1, 30), horizon) == expected

    def test_unknown_horizon(self):
        with pytest.raises(ValueError):
            plan_end_date(date(2025, 1, 30), "decade")


# ============================================================================
# WEEKLY PLAN
# ============================================================================

class TestWeeklyPlan:
    """Tests for generate_weekly_plan and week helpers."""

    def test_payments_then_tips(self, obligations):
        actions = generate_weekly_plan(obligations, _risk("high"), date(2024, 1, 1))
        assert [a.text for a in actions[:2]] == [
            'Pay "Rent" (8000) by 2024-01-08',
            'Pay "Phone" (500) by 2024-01-20',
        ]
        assert len(actions) == 2 + 4
        assert [a.priority for a in actions] == [1, 2, 3, 4, 5, 6]
        assert all(a.week_start == date(2024, 1, 1) for a in actions)

    @pytest.mark.parametrize("level,tips", [("low", 2), ("medium", 3), ("high", 4)])
    def test_tip_count(self, level, tips):
        assert len(generate_weekly_plan([], _risk(level), date(2024, 1, 1))) == tips

    def test_at_most_five_payments(self):
        bills = [Obligation(str(d), f"Bill {d}", 10, due_day=d) for d in range(2, 9)]
        actions = generate_weekly_plan(bills, _risk("low"), date(2024, 1, 1))
        payments = [a for a in actions if a.obligation_id]
        assert [a.obligation_id for a in payments] == ["2", "3", "4", "5", "6"]

    def test_deadline_rolls_to_next_month(self):
        bills = [Obligation("late", "Late", 10, due_day=2), Obligation("end", "End", 10, due_day=31)]
        actions = generate_weekly_plan(bills, _risk("low"), date(2024, 1, 29))
        assert actions[0].text == 'Pay "End" (10) by 2024-01-31'
        assert actions[1].text == 'Pay "Late" (10) by 2024-02-02'

    def test_deadline_clamped(self):
        bills = [Obligation("end", "End", 10, due_day=31)]
        actions = generate_weekly_plan(bills, _risk("low"), date(2024, 2, 5))
        assert actions[0].text.endswith("by 2024-02-29")

    def test_week_start_of(self):
        assert week_start_of(date(2024, 1, 5)) == date(2024, 1, 1)
        assert week_start_of(datetime(2024, 1, 7, 23, 0)) == date(2024, 1, 1)
        assert week_start_of(date(2024, 1, 1)) == date(2024, 1, 1)

    def test_is_plan_current_week(self):
        assert is_plan_current_week("2024-01-01", date(2024, 1, 7)) is True
        assert is_plan_current_week(date(2024, 1, 1), date(2024, 1, 8)) is False
