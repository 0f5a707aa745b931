"""
Unit tests for envelopes.py module.

Tests goal pace, ETA bands, status and the yield-bearing annuity solve.
"""

import math
from datetime import date, timedelta

import pytest

from finengine.config import ProjectionConfig
from finengine.envelopes import (
    AutoRule,
    Contribution,
    Envelope,
    auto_contribution,
    days_until_deadline,
    eta,
    eta_bands,
    goal_status,
    historical_pace,
    project_envelope,
    remaining,
    required_daily,
    required_with_interest,
)


class TestEnvelope:
    """Tests for Envelope and AutoRule validation."""

    def test_remaining_and_progress(self, car_goal):
        assert car_goal.remaining == 73_000
        assert car_goal.progress == pytest.approx(0.27)

    def test_overfunded(self):
        env = Envelope("e", target_amount=100, current_amount=150)
        assert env.remaining == 0.0
        assert env.progress == 1.0

    def test_zero_target_is_complete(self):
        assert Envelope("e", target_amount=0).progress == 1.0

    def test_priority_range(self):
        with pytest.raises(ValueError, match="priority"):
            Envelope("e", target_amount=100, priority=6)

    def test_auto_rule_kind(self):
        with pytest.raises(ValueError, match="kind"):
            AutoRule(kind="weekly", value=10)


class TestFormulas:
    """Tests for the per-quantity goal formulas."""

    def test_remaining_floor(self):
        assert remaining(100, 130) == 0.0

    def test_days_until_deadline(self, today):
        assert days_until_deadline(today + timedelta(days=30), today) == 30
        assert days_until_deadline(today - timedelta(days=1), today) == 0
        assert days_until_deadline(None, today) == math.inf

    def test_required_daily(self):
        assert required_daily(73_000, 180) == pytest.approx(405.555, abs=1e-3)
        assert required_daily(73_000, 0) == 0.0
        assert required_daily(73_000, math.inf) == 0.0

    def test_historical_pace(self, steady_contributions, today):
        pace, sigma = historical_pace(steady_contributions, today - timedelta(days=100), today)
        assert pace == pytest.approx(500.0)
        assert sigma == pytest.approx(150.0)

    def test_pace_without_contributions(self, today):
        assert historical_pace([], today, today) == (0.0, 0.0)

    def test_pace_floors_active_days(self, today):
        pace, _ = historical_pace([Contribution(300, today)], today, today)
        assert pace == 300.0

    def test_eta(self, today):
        when, days = eta(73_000, 500, today)
        assert days == 146
        assert when == today + timedelta(days=146)

    def test_eta_nothing_left(self, today):
        assert eta(0, 500, today) == (today, 0)

    def test_eta_capped(self, today):
        _, days = eta(73_000, 0, today)
        assert days == 365 * 100

    def test_eta_bands(self, today):
        optimistic, pessimistic = eta_bands(73_000, 500, 150, today)
        assert optimistic == today + timedelta(days=113)
        assert pessimistic == today + timedelta(days=209)
        assert optimistic <= pessimistic

    @pytest.mark.parametrize(
        "eta_days,deadline_days,status",
        [(146, 180, "onTrack"), (180, 180, "onTrack"), (210, 180, "atRisk"), (230, 180, "behind")],
    )
    def test_goal_status(self, eta_days, deadline_days, status):
        assert goal_status(eta_days, deadline_days) == status

    def test_goal_status_without_deadline(self):
        assert goal_status(10_000, math.inf) == "onTrack"

    def test_auto_contribution(self):
        assert auto_contribution(AutoRule("fixed", 2_000), 50_000) == 2_000
        assert auto_contribution(AutoRule("percent", 0.1), 50_000) == pytest.approx(5_000)
        assert auto_contribution(None, 50_000) == 0.0


class TestRequiredWithInterest:
    """Tests for the yield-bearing annuity solve."""

    def test_no_yield_is_plain(self):
        daily, interest = required_with_interest(10_000, 1_000, 90, apy=0)
        assert daily == pytest.approx(100.0)
        assert interest == 0.0

    def test_no_yield_overfunded(self):
        assert required_with_interest(1_000, 1_500, 30, apy=0) == (0.0, 0.0)

    def test_no_days(self):
        assert required_with_interest(10_000, 0, 0, apy=10) == (0.0, 0.0)

    def test_daily_capitalization_reaches_target(self):
        target, current, days, apy = 100_000, 10_000, 365, 10
        daily, interest = required_with_interest(target, current, days, apy, "daily")
        rd = apy / 100 / 365
        growth = (1 + rd) ** days
        assert current * growth + daily * (growth - 1) / rd == pytest.approx(target)
        assert daily < (target - current) / days
        assert interest > 0

    def test_monthly_capitalization_cheaper_than_plain(self):
        daily, _ = required_with_interest(100_000, 0, 365, 12, "monthly")
        assert 0 < daily < 100_000 / 365

    def test_balance_grows_past_target(self):
        daily, interest = required_with_interest(1_000, 999, 365, 10, "daily")
        assert daily == 0.0
        assert interest > 0


class TestProjectEnvelope:
    """Tests for the aggregate projection."""

    def test_documented_scenario(self, car_goal, steady_contributions, today):
        p = project_envelope(car_goal, steady_contributions, today)
        assert p.remaining == 73_000
        assert p.days_until_deadline == 180
        assert p.required_daily == pytest.approx(405.555, abs=1e-3)
        assert p.pace == pytest.approx(500.0)
        assert p.eta_days == 146
        assert p.eta_optimistic == today + timedelta(days=113)
        assert p.eta_pessimistic == today + timedelta(days=209)
        assert p.status == "onTrack"
        assert p.projected_by_deadline == pytest.approx(117_000.0)

    def test_no_deadline_projects_one_year(self, steady_contributions, today):
        env = Envelope("open", target_amount=1_000_000, current_amount=0)
        p = project_envelope(env, steady_contributions, today)
        assert p.status == "onTrack"
        assert p.required_daily == 0.0
        assert p.projected_by_deadline == pytest.approx(500.0 * 365)

    def test_explicit_created_at(self, car_goal, steady_contributions, today):
        p = project_envelope(car_goal, steady_contributions, today, created_at=today - timedelta(days=200))
        assert p.pace == pytest.approx(250.0)
        assert p.status == "behind"

    def test_created_at_from_envelope(self, steady_contributions, today):
        env = Envelope("e", 100_000, 27_000, created_at=today - timedelta(days=50))
        assert project_envelope(env, steady_contributions, today).pace == pytest.approx(1_000.0)

    def test_sigma_factor_override(self, car_goal, steady_contributions, today):
        p = project_envelope(car_goal, steady_contributions, today, config=ProjectionConfig(sigma_factor=0.0))
        assert p.sigma == 0.0
        assert p.eta_optimistic == p.eta_pessimistic == p.eta_date

    def test_no_contributions(self, car_goal, today):
        p = project_envelope(car_goal, [], today)
        assert p.pace == 0.0
        assert p.status == "behind"

    def test_deadline_passed(self, steady_contributions, today):
        env = Envelope("late", 100_000, 27_000, deadline=date(2023, 12, 1))
        p = project_envelope(env, steady_contributions, today)
        assert p.days_until_deadline == 0
        assert p.required_daily == 0.0
        assert p.status == "behind"
