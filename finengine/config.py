"""
Configuration management module for FinEngine.

Purpose
-------
Centralized configuration using Pydantic models for type-safe parameter
management, validation, and serialization. Two families live here:

- Engine parameters (RiskConfig, ForecastConfig, OptimizerConfig,
  ProjectionConfig): the tuned constants of each computation, overridable
  per call.
- Input records (ObligationConfig, DebtConfig, EnvelopeConfig, ...): the
  validated JSON shape of the facts callers hand to the engine. The
  serialization module converts them into the frozen domain dataclasses.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Serializable: Easy conversion to/from JSON for input files
- Environment-aware: AppSettings reads FINENGINE_* variables and .env files
- Defaults: Every engine parameter defaults to the tuned constant

Example
-------
>>> from finengine.config import ForecastConfig, OptimizerConfig
>>> forecast = ForecastConfig(alpha=0.25, confidence_level=80)
>>> optimizer = OptimizerConfig(max_months=240)
>>>
>>> # Serialize to dict/JSON
>>> forecast.model_dump()
{'alpha': 0.25, 'confidence_level': 80, 'recommended_k': 0.5, ...}
>>>
>>> # Load from dict/JSON
>>> ForecastConfig.model_validate_json('{"alpha": 0.4}')
"""

from __future__ import annotations
from typing import Dict, List, Literal, Optional, Union
import datetime
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    ANOMALY_THRESHOLD,
    APPROX_MONTH_DAYS,
    DEFAULT_ALPHA,
    MARGINAL_STEP,
    MAX_ETA_DAYS,
    MAX_SIMULATION_MONTHS,
    OVERDUE_LOOKBACK_DAYS,
    PACE_EPSILON,
    PACE_SIGMA_FACTOR,
    PLAN_OBLIGATION_WINDOW_DAYS,
    RECOMMENDED_LIMIT_K,
    RISK_LOAD_RATIO,
    RISK_MIN_COUNT_NO_BALANCE,
    RISK_WINDOW_DAYS,
)

__all__ = [
    # Engine parameters
    "RiskConfig",
    "ForecastConfig",
    "OptimizerConfig",
    "ProjectionConfig",
    # Input records
    "ObligationConfig",
    "DebtConfig",
    "AutoRuleConfig",
    "EnvelopeConfig",
    "ContributionConfig",
    "ProfileConfig",
    "MemberConfig",
    "TransactionConfig",
    "BudgetConfig",
    "TaskBlueprintConfig",
    "RuleBlueprintConfig",
    "PlanTemplateConfig",
    "PaydayConfig",
    # Settings
    "AppSettings",
]


# ---------------------------------------------------------------------------
# Engine Parameters
# ---------------------------------------------------------------------------

class RiskConfig(BaseModel):
    """
    Parameters of the obligation risk classifier.

    Attributes
    ----------
    window_days : int
        Look-ahead window for at-risk obligations (default 7).
    overdue_lookback_days : int
        Unpaid items due fewer than this many days ago are overdue (default 15).
    load_ratio : float
        Share of balance consumed by the window that triggers `medium`.
    min_count_no_balance : int
        Items in the window that trigger `medium` without a balance.
    month_days : int
        Month length used by the day-of-month wrap approximation (30).
    plan_window_days : int
        Window for obligation-driven plan actions (default 10).

    Examples
    --------
    >>> config = RiskConfig(window_days=5)
    >>> config.load_ratio
    0.5
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    window_days: int = Field(default=RISK_WINDOW_DAYS, ge=1, le=31)
    overdue_lookback_days: int = Field(default=OVERDUE_LOOKBACK_DAYS, ge=1, le=31)
    load_ratio: float = Field(default=RISK_LOAD_RATIO, gt=0.0, le=1.0)
    min_count_no_balance: int = Field(default=RISK_MIN_COUNT_NO_BALANCE, ge=1)
    month_days: int = Field(default=APPROX_MONTH_DAYS, ge=28, le=31)
    plan_window_days: int = Field(default=PLAN_OBLIGATION_WINDOW_DAYS, ge=1, le=31)


class ForecastConfig(BaseModel):
    """
    Parameters of the budget forecaster.

    Attributes
    ----------
    alpha : float
        EWMA smoothing factor in (0, 1].
    confidence_level : {80, 95}
        Confidence interval width; maps to z = 1.28 or 1.96.
    recommended_k : float
        Std multiplier for the recommended limit.
    anomaly_threshold : float
        |z| from which a day's spend is anomalous.
    use_smoothing : bool
        Forecast with the EWMA marginal rate instead of the linear burn rate.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    alpha: float = Field(default=DEFAULT_ALPHA, gt=0.0, le=1.0)
    confidence_level: Literal[80, 95] = Field(default=95)
    recommended_k: float = Field(default=RECOMMENDED_LIMIT_K, ge=0.0)
    anomaly_threshold: float = Field(default=ANOMALY_THRESHOLD, gt=0.0)
    use_smoothing: bool = Field(default=False)


class OptimizerConfig(BaseModel):
    """
    Parameters of the debt payoff simulator.

    Attributes
    ----------
    max_months : int
        Iteration cap; reaching it reports debt_free_month = -1.
    marginal_step : float
        Extra-payment increment for sensitivity analysis.
    strategy : {"avalanche", "snowball"}
        Ordering used when the caller does not name one.
    baseline_strategy : {"avalanche", "snowball"}
        Ordering used for the zero-extra baseline run.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_months: int = Field(default=MAX_SIMULATION_MONTHS, ge=1, le=1200)
    marginal_step: float = Field(default=MARGINAL_STEP, gt=0.0)
    strategy: Literal["avalanche", "snowball"] = Field(default="avalanche")
    baseline_strategy: Literal["avalanche", "snowball"] = Field(default="snowball")


class ProjectionConfig(BaseModel):
    """
    Parameters of the envelope/goal projector.

    Attributes
    ----------
    sigma_factor : float
        Heuristic pace volatility as a fraction of pace (0.3).
    pace_epsilon : float
        Pace floor used when dividing the remaining amount.
    max_eta_days : int
        ETA cap for display safety (100 years).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    sigma_factor: float = Field(default=PACE_SIGMA_FACTOR, ge=0.0, le=1.0)
    pace_epsilon: float = Field(default=PACE_EPSILON, gt=0.0)
    max_eta_days: int = Field(default=MAX_ETA_DAYS, ge=1)


# ---------------------------------------------------------------------------
# Input Records
# ---------------------------------------------------------------------------

class ObligationConfig(BaseModel):
    """JSON shape of a recurring obligation (bill, loan instalment, ...)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=200)
    amount: float = Field(ge=0.0)
    due_day: int = Field(ge=1, le=31)
    category: Literal["utilities", "credit", "subscription", "mfo", "other"] = "other"
    is_paid: bool = False
    last_paid_at: Optional[datetime.datetime] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


class DebtConfig(BaseModel):
    """JSON shape of an amortizing debt."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str = Field(default="", max_length=200)
    balance: float = Field(ge=0.0)
    apr: float = Field(description="Annual percentage rate, e.g. 24.9")
    min_payment: float = Field(ge=0.0)
    due_day: int = Field(default=1, ge=1, le=31)
    fees: float = Field(default=0.0, ge=0.0)
    include_fees: bool = False


class AutoRuleConfig(BaseModel):
    """Recurring auto-contribution rule of an envelope."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["fixed", "percent"]
    value: float = Field(ge=0.0)
    payday_offset: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_percent(self) -> "AutoRuleConfig":
        """Percent rules are fractions of income in [0, 1]."""
        if self.kind == "percent" and self.value > 1.0:
            raise ValueError(f"percent rule value must be <= 1.0, got {self.value}")
        return self


class EnvelopeConfig(BaseModel):
    """JSON shape of a savings envelope / goal."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str = Field(default="", max_length=200)
    target_amount: float = Field(ge=0.0)
    current_amount: float = Field(default=0.0, ge=0.0)
    deadline: Optional[datetime.date] = None
    priority: int = Field(default=3, ge=1, le=5)
    auto_rule: Optional[AutoRuleConfig] = None
    apy: Optional[float] = Field(default=None, ge=0.0)
    apy_frequency: Literal["daily", "monthly"] = "monthly"
    created_at: Optional[datetime.date] = None


class ContributionConfig(BaseModel):
    """A single contribution into an envelope."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    amount: float
    date: datetime.date


class ProfileConfig(BaseModel):
    """Flat financial snapshot consumed by the health scorer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    monthly_income: float = Field(ge=0.0)
    monthly_mandatory_expenses: float = Field(default=0.0, ge=0.0)
    monthly_debt_payments: float = Field(default=0.0, ge=0.0)
    total_liquid_assets: float = Field(default=0.0, ge=0.0)
    total_debt: float = Field(default=0.0, ge=0.0)


class MemberConfig(BaseModel):
    """Participant of a shared-expense group."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str = Field(default="", max_length=200)
    monthly_income: float = Field(default=0.0, ge=0.0)


class TransactionConfig(BaseModel):
    """Shared expense paid by one member and split across the group."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    payer_id: str = Field(min_length=1)
    amount: float = Field(ge=0.0)
    description: str = ""
    date: Optional[datetime.date] = None
    split_method: Literal["equal", "weighted", "exact", "percentage"] = "equal"
    split_details: Optional[Dict[str, float]] = None

    @model_validator(mode="after")
    def check_details(self) -> "TransactionConfig":
        """Exact and percentage splits need an explicit map."""
        if self.split_method in ("exact", "percentage") and not self.split_details:
            raise ValueError(
                f"split_method {self.split_method!r} requires split_details"
            )
        return self


class BudgetConfig(BaseModel):
    """Budget forecasting input: limit, period shape, spends and history."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(default="budget", max_length=200)
    limit: float = Field(ge=0.0)
    total_days: int = Field(ge=1, le=366)
    current_day: int = Field(ge=0, le=366)
    daily_spends: Dict[int, float] = Field(default_factory=dict)
    history: List[List[float]] = Field(default_factory=list)

    @field_validator("daily_spends")
    @classmethod
    def validate_days(cls, v: Dict[int, float]) -> Dict[int, float]:
        """Day keys are 1-based period indices."""
        bad = [d for d in v if d < 1]
        if bad:
            raise ValueError(f"daily_spends days must be >= 1, got {bad}")
        return v


class TaskBlueprintConfig(BaseModel):
    """Structured task entry of a plan template."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str = Field(min_length=1)
    description: str = ""
    schedule: str = "immediate"
    priority: int = Field(default=3, ge=1)
    repeat: Optional[str] = None
    tag: str = "general"
    estimated_effect: Optional[Union[float, str]] = None


class RuleBlueprintConfig(BaseModel):
    """Structured trigger/action rule of a plan template."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    trigger: str = Field(min_length=1)
    action: str = Field(min_length=1)
    description: str = Field(min_length=1)
    trigger_params: Optional[Dict[str, object]] = None


class PlanTemplateConfig(BaseModel):
    """Catalog entry describing a plan template."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str = ""
    category: Literal["reserve", "debt", "optimization", "stability"]
    horizons: List[Literal["day", "week", "month", "quarter", "year"]] = Field(min_length=1)
    intensity: str = "medium"
    target_audience: str = ""
    requirements: List[str] = Field(default_factory=list)
    example_tasks: List[str] = Field(default_factory=list)
    required_params: List[str] = Field(default_factory=list)
    default_params: Dict[str, object] = Field(default_factory=dict)
    tasks_blueprint: Optional[List[TaskBlueprintConfig]] = None
    rules_blueprint: Optional[List[RuleBlueprintConfig]] = None


class PaydayConfig(BaseModel):
    """Payday planner input."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    current_balance: float = 0.0
    payday_amount: float = Field(ge=0.0)
    payday_date: datetime.date
    next_payday_date: datetime.date
    buffer_rate: float = Field(default=0.10, ge=0.0, le=1.0)
    mandatories: List[ObligationConfig] = Field(default_factory=list)
    goals: List[EnvelopeConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_dates(self) -> "PaydayConfig":
        """The next payday closes the period and must come later."""
        if self.next_payday_date <= self.payday_date:
            raise ValueError(
                f"next_payday_date ({self.next_payday_date}) must be after "
                f"payday_date ({self.payday_date})"
            )
        return self


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    are prefixed with FINENGINE_ (e.g., FINENGINE_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    debug : bool
        Enable debug mode (forces DEBUG logging in the CLI)
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    output_dir : Path
        Directory that relative `-o` result paths are written under

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'WARNING'

    # With .env file:
    # FINENGINE_DEBUG=true
    >>> settings = AppSettings(_env_file=".env")
    >>> settings.debug
    True
    """

    model_config = SettingsConfigDict(
        env_prefix="FINENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    output_dir: Path = Field(
        default=Path("results"),
        description="Base directory for relative CLI output paths"
    )

    @property
    def effective_log_level(self) -> str:
        """DEBUG when debug mode is on, otherwise the configured level."""
        return "DEBUG" if self.debug else self.log_level
