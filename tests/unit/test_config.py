"""
Unit tests for config.py Pydantic models.

Tests validation, defaults, and serialization of configuration classes.
"""

import pytest
from datetime import date
from pathlib import Path

from pydantic import ValidationError

from finengine.config import (
    AppSettings,
    AutoRuleConfig,
    BudgetConfig,
    DebtConfig,
    EnvelopeConfig,
    ForecastConfig,
    ObligationConfig,
    OptimizerConfig,
    PaydayConfig,
    PlanTemplateConfig,
    ProjectionConfig,
    RiskConfig,
    TransactionConfig,
)


class TestEngineConfigs:
    """Tests for engine parameter models."""

    def test_defaults(self):
        """Defaults reproduce the tuned constants."""
        assert RiskConfig().window_days == 7
        assert RiskConfig().month_days == 30
        assert RiskConfig().plan_window_days == 10
        assert ForecastConfig().alpha == 0.30
        assert ForecastConfig().confidence_level == 95
        assert OptimizerConfig().max_months == 360
        assert OptimizerConfig().marginal_step == 500.0
        assert ProjectionConfig().sigma_factor == 0.3

    def test_immutable(self):
        """Test that config is frozen (immutable)."""
        config = ForecastConfig()
        with pytest.raises(ValidationError):
            config.alpha = 0.5

    def test_confidence_level_restricted(self):
        with pytest.raises(ValidationError):
            ForecastConfig(confidence_level=90)

    def test_alpha_range(self):
        with pytest.raises(ValidationError):
            ForecastConfig(alpha=0.0)
        with pytest.raises(ValidationError):
            ForecastConfig(alpha=1.2)

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            OptimizerConfig(max_month=12)

    def test_month_days_range(self):
        with pytest.raises(ValidationError):
            RiskConfig(month_days=27)

    def test_serialization(self):
        """Test JSON round trip of an override."""
        config = OptimizerConfig(max_months=120, strategy="snowball")
        restored = OptimizerConfig.model_validate_json(config.model_dump_json())
        assert restored == config


class TestInputRecords:
    """Tests for input record models."""

    def test_obligation_due_day(self):
        with pytest.raises(ValidationError):
            ObligationConfig(id="x", name="X", amount=1, due_day=0)

    def test_obligation_category(self):
        with pytest.raises(ValidationError):
            ObligationConfig(id="x", name="X", amount=1, due_day=3, category="fun")

    def test_debt_defaults(self):
        debt = DebtConfig(id="d", balance=100, apr=12.5, min_payment=10)
        assert debt.due_day == 1
        assert debt.include_fees is False

    def test_debt_negative_balance(self):
        with pytest.raises(ValidationError):
            DebtConfig(id="d", balance=-1, apr=10, min_payment=10)

    def test_auto_rule_percent_is_fraction(self):
        AutoRuleConfig(kind="percent", value=0.15)
        with pytest.raises(ValidationError, match="percent"):
            AutoRuleConfig(kind="percent", value=15)

    def test_envelope_nested_rule(self):
        env = EnvelopeConfig.model_validate(
            {"id": "car", "target_amount": 1000, "deadline": "2025-06-30",
             "auto_rule": {"kind": "fixed", "value": 100}}
        )
        assert env.deadline == date(2025, 6, 30)
        assert env.auto_rule.kind == "fixed"

    def test_transaction_exact_needs_details(self):
        with pytest.raises(ValidationError, match="split_details"):
            TransactionConfig(id="t", payer_id="a", amount=10, split_method="exact")

    def test_transaction_equal_without_details(self):
        assert TransactionConfig(id="t", payer_id="a", amount=10).split_method == "equal"

    def test_budget_day_keys(self):
        cfg = BudgetConfig.model_validate(
            {"limit": 1000, "total_days": 30, "current_day": 2, "daily_spends": {"1": 50, "2": 20}}
        )
        assert cfg.daily_spends == {1: 50.0, 2: 20.0}
        with pytest.raises(ValidationError, match="days"):
            BudgetConfig(limit=1000, total_days=30, current_day=2, daily_spends={0: 5.0})

    def test_payday_dates(self):
        with pytest.raises(ValidationError, match="next_payday_date"):
            PaydayConfig(payday_amount=100, payday_date=date(2025, 3, 5), next_payday_date=date(2025, 3, 1))

    def test_template_needs_horizon(self):
        with pytest.raises(ValidationError):
            PlanTemplateConfig(id="t", title="T", category="debt", horizons=[])

    def test_template_mixed_effects(self):
        cfg = PlanTemplateConfig.model_validate(
            {"id": "t", "title": "T", "category": "debt", "horizons": ["month"],
             "tasks_blueprint": [{"title": "a", "estimated_effect": 100},
                                 {"title": "b", "estimated_effect": "varies"}]}
        )
        assert [t.estimated_effect for t in cfg.tasks_blueprint] == [100, "varies"]


class TestAppSettings:
    """Tests for AppSettings (environment-based configuration)."""

    @pytest.fixture(autouse=True)
    def isolated_env(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for var in ("FINENGINE_DEBUG", "FINENGINE_LOG_LEVEL", "FINENGINE_OUTPUT_DIR"):
            monkeypatch.delenv(var, raising=False)

    def test_defaults(self):
        settings = AppSettings()
        assert settings.debug is False
        assert settings.log_level == "WARNING"
        assert settings.output_dir == Path("results")

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("FINENGINE_LOG_LEVEL", "INFO")
        monkeypatch.setenv("FINENGINE_OUTPUT_DIR", "/tmp/out")
        settings = AppSettings()
        assert settings.log_level == "INFO"
        assert settings.output_dir == Path("/tmp/out")

    def test_debug_overrides_level(self, monkeypatch):
        monkeypatch.setenv("FINENGINE_DEBUG", "true")
        assert AppSettings().effective_log_level == "DEBUG"

    def test_env_file(self, tmp_path):
        (tmp_path / ".env").write_text("FINENGINE_LOG_LEVEL=ERROR\n")
        assert AppSettings().log_level == "ERROR"

    def test_invalid_level(self, monkeypatch):
        monkeypatch.setenv("FINENGINE_LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            AppSettings()
