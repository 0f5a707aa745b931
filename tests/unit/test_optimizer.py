"""
Unit tests for optimizer.py module.

Tests the month-by-month payoff simulation, freed-minimum reallocation,
non-convergence reporting, comparison and sensitivity analysis.
"""

import pytest

from finengine.config import OptimizerConfig
from finengine.debts import Debt
from finengine.optimizer import DebtOptimizer


@pytest.fixture
def optimizer():
    return DebtOptimizer()


@pytest.fixture
def stuck_debt():
    """Minimum payment below monthly interest: never repaid."""
    return [Debt("stuck", balance=10_000, apr=24, min_payment=100)]


# ============================================================================
# SIMULATION
# ============================================================================

class TestSimulate:
    """Tests for DebtOptimizer.simulate."""

    def test_avalanche_first_month(self, optimizer, two_debts):
        """Extra goes entirely to the highest-APR debt."""
        result = optimizer.simulate(two_debts, "avalanche", extra_payment=1000)
        first = result.schedule[0]
        assert first.payments["B"] == pytest.approx(1300.0)
        assert first.payments["A"] == pytest.approx(500.0)

    def test_avalanche_payoff_order(self, optimizer, two_debts):
        result = optimizer.simulate(two_debts, "avalanche", extra_payment=1000)
        assert result.payoff_order == ("B", "A")
        assert result.converged

    def test_freed_minimum_rolls_over(self, optimizer, two_debts):
        """Once B closes, A receives the full 1 800 monthly budget."""
        result = optimizer.simulate(two_debts, "avalanche", extra_payment=1000)
        closing = next(m for m in result.schedule if "B" in m.closed_debts)
        after = result.schedule[closing.month]
        assert "B" not in after.payments
        assert after.payments["A"] == pytest.approx(1800.0)

    def test_snowball_targets_smallest(self, optimizer, three_debts):
        result = optimizer.simulate(three_debts, "snowball", extra_payment=500)
        assert result.schedule[0].payments["small"] > 500
        assert result.payoff_order[0] == "small"

    def test_amortization_invariant(self, optimizer, two_debts):
        """next balance = balance + interest - payment, for every debt every month."""
        result = optimizer.simulate(two_debts, "avalanche", extra_payment=1000)
        rates = {d.id: d.apr / 12 / 100 for d in two_debts}
        prev = {d.id: d.balance for d in two_debts}
        for month in result.schedule:
            for debt_id, paid in month.payments.items():
                expected = prev[debt_id] * (1 + rates[debt_id]) - paid
                assert month.balances[debt_id] == pytest.approx(max(expected, 0.0), abs=1e-6)
            prev = dict(month.balances)

    def test_totals_consistent(self, optimizer, two_debts):
        result = optimizer.simulate(two_debts, "avalanche", extra_payment=1000)
        principal = sum(m.total_principal for m in result.schedule)
        assert principal == pytest.approx(15_000.0)
        assert result.total_paid == pytest.approx(result.total_interest + principal)
        assert result.schedule[-1].remaining_balance == 0.0
        assert result.debt_free_month == result.months

    def test_payment_capped_at_payoff(self, optimizer):
        result = optimizer.simulate([Debt("tiny", balance=100, apr=0, min_payment=500)])
        assert result.debt_free_month == 1
        assert result.total_paid == pytest.approx(100.0)

    def test_zero_apr(self, optimizer):
        result = optimizer.simulate([Debt("flat", balance=1200, apr=0, min_payment=100)])
        assert result.debt_free_month == 12
        assert result.total_interest == 0.0

    def test_no_debts(self, optimizer):
        result = optimizer.simulate([], "avalanche")
        assert result.debt_free_month == 0
        assert result.schedule == ()
        assert result.to_frame().empty

    def test_inputs_not_mutated(self, optimizer, two_debts):
        optimizer.simulate(two_debts, "avalanche", extra_payment=1000)
        assert [d.balance for d in two_debts] == [10_000, 5_000]

    def test_negative_extra_rejected(self, optimizer, two_debts):
        with pytest.raises(ValueError, match="extra_payment"):
            optimizer.simulate(two_debts, "avalanche", extra_payment=-1)

    def test_unknown_strategy_rejected_without_open_debts(self, optimizer):
        paid = [Debt("a", balance=0, apr=10, min_payment=50)]
        with pytest.raises(ValueError, match="strategy"):
            optimizer.simulate(paid, "bogus")

    def test_default_strategy_from_config(self, two_debts):
        result = DebtOptimizer(OptimizerConfig(strategy="snowball")).simulate(two_debts)
        assert result.strategy == "snowball"

    def test_deterministic(self, optimizer, three_debts):
        a = optimizer.simulate(three_debts, "avalanche", 750)
        b = optimizer.simulate(three_debts, "avalanche", 750)
        assert a == b

    def test_to_frame_columns(self, optimizer, two_debts):
        df = optimizer.simulate(two_debts, "avalanche", 1000).to_frame()
        assert df.index.name == "month"
        assert {"balance[A]", "balance[B]", "remaining_balance"} <= set(df.columns)
        assert df["remaining_balance"].is_monotonic_decreasing


class TestNonConvergence:
    """Tests for the month cap sentinel."""

    def test_cap_reports_minus_one(self, stuck_debt):
        optimizer = DebtOptimizer(OptimizerConfig(max_months=24))
        with pytest.warns(RuntimeWarning, match="did not converge"):
            result = optimizer.simulate(stuck_debt)
        assert result.debt_free_month == -1
        assert result.converged is False
        assert result.months == 24

    def test_comparison_months_saved_undefined(self, stuck_debt):
        optimizer = DebtOptimizer(OptimizerConfig(max_months=24))
        with pytest.warns(RuntimeWarning):
            comparison = optimizer.compare(stuck_debt, "avalanche", extra_payment=50)
        assert comparison.months_saved is None


# ============================================================================
# ANALYSIS
# ============================================================================

class TestAnalysis:
    """Tests for compare, sensitivity and analyze."""

    def test_compare_savings(self, optimizer, two_debts):
        comparison = optimizer.compare(two_debts, "avalanche", extra_payment=1000)
        assert comparison.baseline.strategy == "snowball"
        assert comparison.baseline.extra_payment == 0.0
        assert comparison.interest_savings > 0
        assert comparison.months_saved > 0

    def test_sensitivity_non_negative(self, optimizer, three_debts):
        stepped, marginal = optimizer.sensitivity(three_debts, "avalanche", extra_payment=1000)
        assert stepped.extra_payment == 1500
        assert marginal >= 0

    def test_analyze(self, optimizer, two_debts):
        analysis = optimizer.analyze(two_debts, "avalanche", extra_payment=1000)
        assert analysis.step == 500
        assert analysis.optimized.extra_payment == 1000
        assert analysis.sensitivity.extra_payment == 1500
        assert analysis.marginal_months_saved == (
            analysis.optimized.debt_free_month - analysis.sensitivity.debt_free_month
        )

    def test_more_extra_never_slower(self, optimizer, three_debts):
        months = [optimizer.simulate(three_debts, "avalanche", e).debt_free_month for e in (0, 500, 1000, 2000)]
        assert months == sorted(months, reverse=True)
