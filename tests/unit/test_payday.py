"""
Unit tests for payday.py module.

Tests the allocation waterfall, the day-by-day cashflow check and the
income distribution helpers.
"""

from datetime import date

import pytest

from finengine.envelopes import Envelope
from finengine.payday import (
    DistributionItem,
    PaydayInput,
    amount_from_percent,
    calculate_allocation,
    distribution_totals,
    percent_from_amount,
    plan_payday,
    scale_items,
    simulate_cashflow,
)
from finengine.risk import Obligation


@pytest.fixture
def rent_bill():
    return Obligation("rent", "Rent", 40_000, due_day=10)


@pytest.fixture
def march_payday(rent_bill):
    """100 000 arriving 5 March, next payday 5 April (31 days)."""
    return PaydayInput(
        payday_amount=100_000,
        payday_date=date(2025, 3, 5),
        next_payday_date=date(2025, 4, 5),
        mandatories=(rent_bill,),
        goals=(Envelope("car", target_amount=500_000),),
    )


class TestPaydayInput:
    """Tests for PaydayInput validation."""

    def test_period_days(self, march_payday):
        assert march_payday.period_days == 31

    def test_next_payday_must_be_later(self):
        with pytest.raises(ValueError, match="next_payday_date"):
            PaydayInput(1000, date(2025, 3, 5), date(2025, 3, 5))

    def test_buffer_rate_range(self):
        with pytest.raises(ValueError, match="buffer_rate"):
            PaydayInput(1000, date(2025, 3, 5), date(2025, 4, 5), buffer_rate=1.5)

    def test_negative_amount(self):
        with pytest.raises(ValueError, match="payday_amount"):
            PaydayInput(-1, date(2025, 3, 5), date(2025, 4, 5))


class TestAllocation:
    """Tests for the priority waterfall."""

    def test_waterfall(self, march_payday):
        buckets = calculate_allocation(march_payday)
        assert list(buckets) == ["mandatory", "buffer", "goals", "discretionary"]
        assert [b.priority for b in buckets.values()] == [1, 2, 3, 4]
        assert buckets["mandatory"].allocated == 40_000
        assert buckets["mandatory"].item_ids == ("rent",)
        assert buckets["buffer"].allocated == pytest.approx(10_000)
        assert buckets["goals"].allocated == pytest.approx(20_000)
        assert buckets["goals"].item_ids == ("car",)
        assert buckets["discretionary"].allocated == pytest.approx(30_000)

    def test_shortfall_starves_lower_buckets(self, rent_bill):
        payday = PaydayInput(10_000, date(2025, 3, 5), date(2025, 4, 5), mandatories=(rent_bill,))
        buckets = calculate_allocation(payday)
        assert buckets["mandatory"].min_required == 40_000
        assert buckets["mandatory"].allocated == 10_000
        assert buckets["buffer"].allocated == 0
        assert buckets["goals"].allocated == 0
        assert buckets["discretionary"].allocated == 0

    def test_allocations_sum_to_payday(self, march_payday):
        total = sum(b.allocated for b in calculate_allocation(march_payday, goal_share=0.35).values())
        assert total == pytest.approx(100_000)


class TestCashflow:
    """Tests for simulate_cashflow and plan_payday."""

    def test_safe_period(self, march_payday):
        plan = plan_payday(march_payday)
        assert len(plan.cashflow) == 32
        assert plan.cashflow[0].inflow == 100_000
        assert plan.cashflow[0].date == date(2025, 3, 5)
        assert plan.cashflow[-1].date == date(2025, 4, 5)
        assert plan.cashflow[5].description == "Paid: Rent"
        assert plan.is_safe
        assert plan.risk_day is None
        assert plan.unallocated == pytest.approx(0.0)
        assert plan.lowest_balance == pytest.approx(60_000 - 32 * 30_000 / 31)

    def test_negative_day_detected(self, rent_bill):
        payday = PaydayInput(10_000, date(2025, 3, 5), date(2025, 4, 5), mandatories=(rent_bill,))
        plan = plan_payday(payday)
        assert plan.risk_day == 5
        assert plan.lowest_balance == pytest.approx(-30_000)
        assert plan.is_safe is False

    def test_current_balance_carried(self, rent_bill):
        payday = PaydayInput(10_000, date(2025, 3, 5), date(2025, 4, 5),
                             current_balance=35_000, mandatories=(rent_bill,))
        plan = plan_payday(payday)
        assert plan.lowest_balance == pytest.approx(5_000)
        assert plan.is_safe

    def test_same_day_bills_grouped(self):
        bills = (Obligation("a", "Power", 100, due_day=7), Obligation("b", "Water", 50, due_day=7))
        payday = PaydayInput(1_000, date(2025, 3, 5), date(2025, 3, 12), mandatories=bills)
        flow, _, _ = simulate_cashflow(payday, calculate_allocation(payday))
        day7 = next(f for f in flow if f.date == date(2025, 3, 7))
        assert day7.description == "Paid: Power, Water"
        assert day7.outflow >= 150

    def test_to_frame(self, march_payday):
        df = plan_payday(march_payday).to_frame()
        assert df.index.name == "day"
        assert len(df) == 32
        assert df["balance"].min() == pytest.approx(plan_payday(march_payday).lowest_balance)


class TestDistribution:
    """Tests for the income distribution helpers."""

    def test_amount_from_percent(self):
        assert amount_from_percent(12.5, 50_000) == 6_250
        assert amount_from_percent(33.33, 1_000, step=100) == 300

    def test_amount_rounds_half_up(self):
        assert amount_from_percent(50, 5, step=1) == 3

    def test_step_must_be_positive(self):
        with pytest.raises(ValueError, match="step"):
            amount_from_percent(10, 1_000, step=0)

    def test_percent_from_amount(self):
        assert percent_from_amount(250, 1_000) == pytest.approx(25.0)
        assert percent_from_amount(2_000, 1_000) == 100.0
        assert percent_from_amount(-5, 1_000) == 0.0
        assert percent_from_amount(10, 0) == 100.0

    def test_scale_items(self):
        items = [
            DistributionItem("a", 10),
            DistributionItem("b", 30),
            DistributionItem("c", 60, group="mandatory", is_locked=True),
        ]
        assert scale_items(items, 20, {"a", "b"}) == pytest.approx({"a": 5.0, "b": 15.0})

    def test_scale_items_empty_flexible(self):
        items = [DistributionItem("a", 0), DistributionItem("c", 100)]
        assert scale_items(items, 20, {"a"}) == {}

    def test_totals(self):
        items = [DistributionItem("a", 40, 400), DistributionItem("b", 60, 600)]
        assert distribution_totals(items) == {"total_percent": 100.0, "total_amount": 1000.0}
