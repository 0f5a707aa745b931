"""
Serialization module for FinEngine inputs and results.

Purpose
-------
Reads JSON documents describing financial facts into engine records and
turns engine results back into plain dictionaries for JSON output. The
computation modules never touch the filesystem; this module and the CLI
are the only places that do.

Supports:
- Obligations, debts, envelopes and contributions
- Financial profiles, group members and shared transactions
- Budget periods and payday inputs
- Plan template catalogs
- Result converters (*_to_dict) for every engine output

Design Principles
-----------------
- Type-safe: every record is validated by a Pydantic config model first
- Human-readable: plain JSON with ISO dates
- Backward compatible: documents carry a schema version; a mismatch warns

Example
-------
>>> from pathlib import Path
>>> from finengine.serialization import load_document, obligations_from_list
>>> from finengine.risk import calculate_risk
>>>
>>> doc = load_document(Path("risk.json"))
>>> result = calculate_risk(obligations_from_list(doc["obligations"]),
...                         salary_day=doc["salary_day"], today=date.today())
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, TYPE_CHECKING
from pathlib import Path
from datetime import date, datetime
import json
import math
import warnings

from .config import (
    BudgetConfig,
    ContributionConfig,
    DebtConfig,
    EnvelopeConfig,
    MemberConfig,
    ObligationConfig,
    PaydayConfig,
    PlanTemplateConfig,
    ProfileConfig,
    TransactionConfig,
)
from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .budget import BudgetForecast
    from .debts import Debt
    from .envelopes import Contribution, Envelope, EnvelopeProjection
    from .insights import SmartPrompt
    from .optimizer import Comparison, OptimizerAnalysis, SimulationResult
    from .payday import PaydayInput, PaydayPlan
    from .plans import GeneratedPlan, PlanAction, PlanTemplate, TemplateCatalog
    from .risk import Obligation, RiskResult
    from .score import FinancialProfile, HealthScore
    from .shared import Member, Settlement, SharedTransaction
    from .types import (
        BudgetForecastDict,
        ComparisonDict,
        HealthScoreDict,
        PlanActionDict,
        PlanInstanceDict,
        RiskResultDict,
        SettlementDict,
        SimulationResultDict,
    )

__all__ = [
    "SCHEMA_VERSION",
    "load_document",
    "save_json",
    "require_section",
    # Inputs
    "obligation_from_dict",
    "obligations_from_list",
    "debt_from_dict",
    "envelope_from_dict",
    "contribution_from_dict",
    "profile_from_dict",
    "member_from_dict",
    "transaction_from_dict",
    "budget_config_from_dict",
    "payday_from_dict",
    "template_from_dict",
    "catalog_from_list",
    "load_catalog",
    # Results
    "risk_to_dict",
    "forecast_to_dict",
    "simulation_to_dict",
    "analysis_to_dict",
    "projection_to_dict",
    "health_score_to_dict",
    "settlements_to_dict",
    "action_to_dict",
    "plan_to_dict",
    "payday_plan_to_dict",
    "prompt_to_dict",
]


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "0.1.0"


def _check_version(data: Mapping[str, Any]) -> None:
    schema_version = data.get("schema_version", "0.0.0")
    if schema_version != SCHEMA_VERSION:
        warnings.warn(
            f"Document schema version {schema_version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )


def load_document(path: Path) -> Dict[str, Any]:
    """
    Read a JSON input document and check its schema version.

    Raises
    ------
    ConfigurationError
        If the top level is not a JSON object.
    """
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top level must be a JSON object")
    _check_version(data)
    return data


def require_section(data: Mapping[str, Any], key: str) -> Any:
    """Return ``data[key]`` or raise ConfigurationError naming the missing section."""
    if key not in data:
        raise ConfigurationError(f"Input document is missing required section {key!r}")
    return data[key]


def _json_default(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    # numpy scalars
    if hasattr(value, "item"):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _finite(value: float) -> Optional[float]:
    """JSON has no infinity; map it to null."""
    return None if math.isinf(value) else value


def save_json(data: Mapping[str, Any], path: Path) -> None:
    """
    Write *data* as indented JSON, stamping the schema version.

    Parent directories are created as needed.
    """
    payload = {"schema_version": SCHEMA_VERSION, **data}
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(payload, f, indent=2, default=_json_default)


# ---------------------------------------------------------------------------
# Input Records
# ---------------------------------------------------------------------------

def obligation_from_dict(data: Dict[str, Any]) -> Obligation:
    """Validate and build an Obligation."""
    from .risk import Obligation

    config = ObligationConfig.model_validate(data)
    return Obligation(**config.model_dump())


def obligations_from_list(items: Iterable[Dict[str, Any]]) -> List[Obligation]:
    return [obligation_from_dict(d) for d in items]


def debt_from_dict(data: Dict[str, Any]) -> Debt:
    """Validate and build a Debt."""
    from .debts import Debt

    config = DebtConfig.model_validate(data)
    return Debt(**config.model_dump())


def envelope_from_dict(data: Dict[str, Any]) -> Envelope:
    """Validate and build an Envelope (with its auto rule, if any)."""
    from .envelopes import AutoRule, Envelope

    config = EnvelopeConfig.model_validate(data)
    fields = config.model_dump(exclude={"auto_rule"})
    rule = None
    if config.auto_rule is not None:
        rule = AutoRule(**config.auto_rule.model_dump())
    return Envelope(auto_rule=rule, **fields)


def contribution_from_dict(data: Dict[str, Any]) -> Contribution:
    from .envelopes import Contribution

    config = ContributionConfig.model_validate(data)
    return Contribution(amount=config.amount, date=config.date)


def profile_from_dict(data: Dict[str, Any]) -> FinancialProfile:
    from .score import FinancialProfile

    config = ProfileConfig.model_validate(data)
    return FinancialProfile(**config.model_dump())


def member_from_dict(data: Dict[str, Any]) -> Member:
    from .shared import Member

    config = MemberConfig.model_validate(data)
    return Member(**config.model_dump())


def transaction_from_dict(data: Dict[str, Any]) -> SharedTransaction:
    """
    Validate and build a SharedTransaction.

    ``split_method`` / ``split_details`` become the closed split variant.
    """
    from .shared import SharedTransaction, split_from_method

    config = TransactionConfig.model_validate(data)
    return SharedTransaction(
        id=config.id,
        payer_id=config.payer_id,
        amount=config.amount,
        split=split_from_method(config.split_method, config.split_details),
        description=config.description,
        date=config.date,
    )


def budget_config_from_dict(data: Dict[str, Any]) -> BudgetConfig:
    """Validated budget period input (limit, days, daily spends, history)."""
    return BudgetConfig.model_validate(data)


def payday_from_dict(data: Dict[str, Any]) -> PaydayInput:
    """Validate and build a PaydayInput with its bills and goals."""
    from .payday import PaydayInput

    config = PaydayConfig.model_validate(data)
    return PaydayInput(
        payday_amount=config.payday_amount,
        payday_date=config.payday_date,
        next_payday_date=config.next_payday_date,
        current_balance=config.current_balance,
        buffer_rate=config.buffer_rate,
        mandatories=tuple(obligation_from_dict(m.model_dump()) for m in config.mandatories),
        goals=tuple(envelope_from_dict(g.model_dump()) for g in config.goals),
    )


def template_from_dict(data: Dict[str, Any]) -> PlanTemplate:
    """
    Validate and build a PlanTemplate.

    Missing blueprints stay None so the generator falls back to example
    tasks and category rules.
    """
    from .plans import PlanTemplate, RuleBlueprint, TaskBlueprint

    config = PlanTemplateConfig.model_validate(data)
    tasks = None
    if config.tasks_blueprint is not None:
        tasks = tuple(TaskBlueprint(**t.model_dump()) for t in config.tasks_blueprint)
    rules = None
    if config.rules_blueprint is not None:
        rules = tuple(RuleBlueprint(**r.model_dump()) for r in config.rules_blueprint)
    return PlanTemplate(
        id=config.id,
        title=config.title,
        category=config.category,
        horizons=tuple(config.horizons),
        description=config.description,
        intensity=config.intensity,
        target_audience=config.target_audience,
        requirements=tuple(config.requirements),
        example_tasks=tuple(config.example_tasks),
        required_params=tuple(config.required_params),
        default_params=dict(config.default_params),
        tasks_blueprint=tasks,
        rules_blueprint=rules,
    )


def catalog_from_list(items: Iterable[Dict[str, Any]]) -> TemplateCatalog:
    from .plans import TemplateCatalog

    return TemplateCatalog(template_from_dict(d) for d in items)


def load_catalog(path: Path) -> TemplateCatalog:
    """
    Load a template catalog from a JSON file.

    The file holds ``{"schema_version": ..., "templates": [...]}``.
    """
    data = load_document(path)
    return catalog_from_list(require_section(data, "templates"))


# ---------------------------------------------------------------------------
# Result Converters
# ---------------------------------------------------------------------------

def risk_to_dict(result: RiskResult) -> RiskResultDict:
    return {
        "level": result.level,
        "amount_due_7_days": result.amount_due_7_days,
        "amount_due_before_salary": result.amount_due_before_salary,
        "days_until_salary": result.days_until_salary,
        "has_overdue": result.has_overdue,
        "at_risk": result.at_risk_ids,
    }


def forecast_to_dict(forecast: BudgetForecast) -> BudgetForecastDict:
    return {
        "spend": forecast.spend,
        "remaining": forecast.remaining,
        "utilization": forecast.utilization,
        "burn_rate": forecast.burn_rate,
        "forecast": forecast.forecast,
        "ci_low": forecast.ci_low,
        "ci_high": forecast.ci_high,
        "probability_of_overrun": forecast.probability_of_overrun,
        "expected_overrun_day": forecast.expected_overrun_day,
        "anomaly_score": forecast.anomaly_score,
        "is_anomalous": forecast.is_anomalous,
        "recommended_limit": forecast.recommended_limit,
        "risk_tier": forecast.risk_tier,
    }


def simulation_to_dict(result: SimulationResult, include_schedule: bool = True) -> SimulationResultDict:
    """
    Convert a SimulationResult to a dictionary.

    Parameters
    ----------
    result : SimulationResult
    include_schedule : bool
        Whether to include the month-by-month schedule.
    """
    out: SimulationResultDict = {
        "strategy": result.strategy,
        "extra_payment": result.extra_payment,
        "total_interest": result.total_interest,
        "total_paid": result.total_paid,
        "debt_free_month": result.debt_free_month,
        "payoff_order": list(result.payoff_order),
    }
    if include_schedule:
        out["schedule"] = [
            {
                "month": m.month,
                "total_payment": m.total_payment,
                "total_interest": m.total_interest,
                "total_principal": m.total_principal,
                "remaining_balance": m.remaining_balance,
                "balances": dict(m.balances),
                "payments": dict(m.payments),
                "closed_debts": list(m.closed_debts),
            }
            for m in result.schedule
        ]
    return out


def analysis_to_dict(analysis: OptimizerAnalysis, include_schedule: bool = False) -> Dict[str, Any]:
    """Baseline, optimized and sensitivity runs plus the savings figures."""
    comparison: ComparisonDict = {
        "interest_savings": analysis.comparison.interest_savings,
        "months_saved": analysis.comparison.months_saved,
        "marginal_months_saved": analysis.marginal_months_saved,
    }
    return {
        "baseline": simulation_to_dict(analysis.baseline, include_schedule),
        "optimized": simulation_to_dict(analysis.optimized, include_schedule),
        "sensitivity": simulation_to_dict(analysis.sensitivity, include_schedule),
        "comparison": comparison,
    }


def projection_to_dict(projection: EnvelopeProjection) -> Dict[str, Any]:
    """Envelope projection; an infinite deadline distance becomes null."""
    return {
        "remaining": projection.remaining,
        "days_until_deadline": _finite(projection.days_until_deadline),
        "required_daily": projection.required_daily,
        "pace": projection.pace,
        "sigma": projection.sigma,
        "eta_date": projection.eta_date.isoformat(),
        "eta_days": projection.eta_days,
        "eta_optimistic": projection.eta_optimistic.isoformat(),
        "eta_pessimistic": projection.eta_pessimistic.isoformat(),
        "status": projection.status,
        "projected_by_deadline": projection.projected_by_deadline,
    }


def health_score_to_dict(score: HealthScore) -> HealthScoreDict:
    factors = []
    for f in score.factors:
        entry = {
            "id": f.id,
            "label": f.label,
            "value": f.value,
            "score": f.score,
            "weight": f.weight,
            "contribution": f.contribution,
            "impact": f.impact,
        }
        if f.recommendation is not None:
            entry["recommendation"] = f.recommendation
        factors.append(entry)
    return {"total_score": score.total_score, "rating": score.rating, "factors": factors}


def settlements_to_dict(settlements: Sequence[Settlement]) -> List[SettlementDict]:
    return [{"from_id": s.from_id, "to_id": s.to_id, "amount": s.amount} for s in settlements]


def action_to_dict(action: PlanAction) -> PlanActionDict:
    out: PlanActionDict = {
        "id": action.id,
        "plan_id": action.plan_instance_id or "",
        "title": action.text,
        "description": action.description,
        "priority": action.priority,
        "tag": action.tag,
        "schedule": action.schedule,
        "is_recurring": action.is_recurring,
        "estimated_effect": action.estimated_effect,
        "points": action.points,
        "is_done": action.is_done,
    }
    if action.obligation_id is not None:
        out["obligation_id"] = action.obligation_id
    return out


def plan_to_dict(plan: GeneratedPlan) -> PlanInstanceDict:
    inst = plan.instance
    return {
        "id": inst.id,
        "template_id": inst.template_id,
        "horizon": inst.horizon,
        "started_at": inst.started_at.isoformat(),
        "ends_at": inst.ends_at.isoformat(),
        "params": dict(inst.params),
        "actions": [action_to_dict(a) for a in plan.actions],
        "rules": [
            {"id": r.id, "plan_id": r.plan_instance_id, "text": r.text, "is_active": r.is_active}
            for r in plan.rules
        ],
    }


def payday_plan_to_dict(plan: PaydayPlan) -> Dict[str, Any]:
    return {
        "total_income": plan.total_income,
        "is_safe": plan.is_safe,
        "lowest_balance": plan.lowest_balance,
        "risk_day": plan.risk_day,
        "unallocated": plan.unallocated,
        "buckets": {
            key: {
                "label": b.label,
                "priority": b.priority,
                "min_required": b.min_required,
                "allocated": b.allocated,
                "item_ids": list(b.item_ids),
            }
            for key, b in plan.buckets.items()
        },
        "cashflow": [
            {
                "day": f.day,
                "date": f.date.isoformat(),
                "inflow": f.inflow,
                "outflow": f.outflow,
                "balance": f.balance,
                "description": f.description,
            }
            for f in plan.cashflow
        ],
    }


def prompt_to_dict(prompt: SmartPrompt) -> Dict[str, Any]:
    return {
        "id": prompt.id,
        "type": prompt.type,
        "title": prompt.title,
        "message": prompt.message,
        "confidence": prompt.confidence,
        "action_label": prompt.action_label,
        "explanation": prompt.explanation,
        "action_data": dict(prompt.action_data),
    }
