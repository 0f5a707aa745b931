# finengine/plans.py
"""
Plan generation module.

Purpose
-------
One-shot synthesis of an action plan: given a template from the catalog, the
current risk classification and the caller's obligations, produce a plan
instance with its task list and behavioural rules. The caller owns what
happens next (marking actions done, toggling rules).

Key components
--------------
- TaskBlueprint, RuleBlueprint, PlanTemplate : static catalog data
- TemplateCatalog : immutable id -> template lookup passed explicitly
- StructuredTasks | LegacyTasks, StructuredRules | LegacyRules : where a
  template's actions and rules come from, resolved once per template
- PlanGenerator.create_plan : instance + actions + rules
- generate_weekly_plan : 7-day list of the most urgent payments plus tips

Generation rules
----------------
- Unknown template id raises TemplateNotFoundError.
- Horizon: the requested one if the template supports it, else the first.
- End date: day +1 day, week +7 days, month +1 month, quarter +3 months,
  year +1 year.
- Obligation actions (priority 1, tag "mandatory") for unpaid items due
  within 10 days (30-day month wrap), except for "reserve" templates.
- Structured tasks: one action per blueprint entry, recurring when it
  repeats, numeric effects only, 10 points.
  Legacy tasks: one action per example task, priority 3 + index, tag
  "general", 5 points.
- Structured rules: one active rule per entry, its description as text.
  Legacy rules: reserve -> pay yourself first, 24-hour purchase pause;
  debt -> no new debt; other categories -> none.

Identifiers are UUID5 values derived from the template id and start time
(instance) and from the instance id and position (actions, rules), so the
same inputs always yield the same plan.

Example
-------
>>> from datetime import datetime
>>> generator = PlanGenerator(catalog)
>>> plan = generator.create_plan("debt_avalanche", risk, obligations,
...                              started_at=datetime(2025, 3, 1, 9, 0))
>>> plan.instance.horizon
'month'
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, Iterator, List, Literal, Mapping, Optional, Sequence, Tuple, Union
import logging
import uuid

from .config import RiskConfig
from .exceptions import TemplateNotFoundError
from .risk import Obligation, RiskLevel, RiskResult, days_until_due
from .utils import DateLike, add_days, add_months, clamp_day

__all__ = [
    "PlanHorizon",
    "PlanCategory",
    "TaskBlueprint",
    "RuleBlueprint",
    "PlanTemplate",
    "TemplateCatalog",
    "StructuredTasks",
    "LegacyTasks",
    "StructuredRules",
    "LegacyRules",
    "resolve_task_source",
    "resolve_rule_source",
    "PlanInstance",
    "PlanAction",
    "PlanRule",
    "GeneratedPlan",
    "PlanGenerator",
    "plan_end_date",
    "week_start_of",
    "is_plan_current_week",
    "generate_weekly_plan",
]

logger = logging.getLogger(__name__)

PlanHorizon = Literal["day", "week", "month", "quarter", "year"]
PlanCategory = Literal["reserve", "debt", "optimization", "stability"]

PLAN_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_DNS, "plans.finengine")

STRUCTURED_POINTS = 10
LEGACY_POINTS = 5
LEGACY_BASE_PRIORITY = 3
WEEKLY_MAX_PAYMENTS = 5

_LEGACY_RULES: Dict[str, Tuple[str, ...]] = {
    "reserve": ("Pay yourself first (to reserve)", "24-hour pause before purchases"),
    "debt": ("No new debt",),
}

_RISK_TIPS: Dict[str, Tuple[str, ...]] = {
    "low": (
        "Move 10% of free money to the reserve",
        "Review subscriptions and cancel what you do not use",
    ),
    "medium": (
        "List optional expenses that can be postponed",
        "Call your creditor early if a payment looks difficult",
        "Ask service providers about instalment options",
    ),
    "high": (
        "Contact creditors BEFORE any payment is late",
        "Prepare a restructuring request",
        "Freeze all non-essential spending for the week",
        "Discuss the situation with family; temporary help may be possible",
    ),
}


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TaskBlueprint:
    """Structured task entry of a template."""
    title: str
    description: str = ""
    schedule: str = "immediate"
    priority: int = 3
    repeat: Optional[str] = None
    tag: str = "general"
    estimated_effect: Union[float, str, None] = None


@dataclass(frozen=True)
class RuleBlueprint:
    """Trigger/action rule entry of a template."""
    trigger: str
    action: str
    description: str
    trigger_params: Optional[Mapping[str, object]] = None


@dataclass(frozen=True)
class PlanTemplate:
    """
    Catalog entry.

    ``tasks_blueprint`` / ``rules_blueprint`` are None (or empty) for legacy
    templates, which fall back to ``example_tasks`` and category rules.
    """
    id: str
    title: str
    category: PlanCategory
    horizons: Tuple[PlanHorizon, ...]
    description: str = ""
    intensity: str = "medium"
    target_audience: str = ""
    requirements: Tuple[str, ...] = ()
    example_tasks: Tuple[str, ...] = ()
    required_params: Tuple[str, ...] = ()
    default_params: Mapping[str, object] = field(default_factory=dict)
    tasks_blueprint: Optional[Tuple[TaskBlueprint, ...]] = None
    rules_blueprint: Optional[Tuple[RuleBlueprint, ...]] = None

    def __post_init__(self):
        if not self.horizons:
            raise ValueError(f"template {self.id!r} must support at least one horizon")


class TemplateCatalog:
    """
    Immutable id -> PlanTemplate lookup.

    Parameters
    ----------
    templates : iterable of PlanTemplate
        Ids must be unique.

    Examples
    --------
    >>> catalog = TemplateCatalog([template_a, template_b])
    >>> catalog.get("debt_avalanche").category
    'debt'
    """

    def __init__(self, templates: Iterable[PlanTemplate] = ()):
        by_id: Dict[str, PlanTemplate] = {}
        for t in templates:
            if t.id in by_id:
                raise ValueError(f"duplicate template id {t.id!r}")
            by_id[t.id] = t
        self._by_id = by_id

    def get(self, template_id: str) -> PlanTemplate:
        """Template by id; raises TemplateNotFoundError when missing."""
        try:
            return self._by_id[template_id]
        except KeyError:
            raise TemplateNotFoundError(template_id, self._by_id.keys()) from None

    @property
    def ids(self) -> List[str]:
        return list(self._by_id)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._by_id

    def __iter__(self) -> Iterator[PlanTemplate]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __repr__(self) -> str:
        return f"TemplateCatalog({len(self)} templates)"


# ---------------------------------------------------------------------------
# Action / rule sources
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StructuredTasks:
    blueprint: Tuple[TaskBlueprint, ...]


@dataclass(frozen=True)
class LegacyTasks:
    example_tasks: Tuple[str, ...]


@dataclass(frozen=True)
class StructuredRules:
    blueprint: Tuple[RuleBlueprint, ...]


@dataclass(frozen=True)
class LegacyRules:
    category: PlanCategory


TaskSource = Union[StructuredTasks, LegacyTasks]
RuleSource = Union[StructuredRules, LegacyRules]


def resolve_task_source(template: PlanTemplate) -> TaskSource:
    """Structured blueprint when present and non-empty, else example tasks."""
    if template.tasks_blueprint:
        return StructuredTasks(tuple(template.tasks_blueprint))
    return LegacyTasks(tuple(template.example_tasks))


def resolve_rule_source(template: PlanTemplate) -> RuleSource:
    """Structured rule blueprint when present and non-empty, else category rules."""
    if template.rules_blueprint:
        return StructuredRules(tuple(template.rules_blueprint))
    return LegacyRules(template.category)


# ---------------------------------------------------------------------------
# Plan records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanInstance:
    """Caller-owned record of an active plan."""
    id: str
    template_id: str
    horizon: PlanHorizon
    started_at: datetime
    ends_at: datetime
    risk_level: RiskLevel
    status: Literal["active", "completed", "archived"] = "active"
    saved_amount: float = 0.0
    params: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class PlanAction:
    """Single task of a plan (the caller marks it done)."""
    id: str
    text: str
    priority: int
    plan_instance_id: Optional[str] = None
    description: str = ""
    is_done: bool = False
    is_recurring: bool = False
    tag: str = "general"
    estimated_effect: Optional[float] = None
    points: int = 0
    obligation_id: Optional[str] = None
    schedule: str = "immediate"
    week_start: Optional[date] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PlanRule:
    """Behavioural rule of a plan (the caller toggles it)."""
    id: str
    text: str
    plan_instance_id: str
    is_active: bool = True


@dataclass(frozen=True)
class GeneratedPlan:
    """Output of `PlanGenerator.create_plan`."""
    instance: PlanInstance
    actions: Tuple[PlanAction, ...]
    rules: Tuple[PlanRule, ...]


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

def plan_end_date(started_at: DateLike, horizon: PlanHorizon) -> DateLike:
    """End of a plan starting at *started_at* over *horizon*."""
    if horizon == "day":
        return add_days(started_at, 1)
    if horizon == "week":
        return add_days(started_at, 7)
    if horizon == "month":
        return add_months(started_at, 1)
    if horizon == "quarter":
        return add_months(started_at, 3)
    if horizon == "year":
        return add_months(started_at, 12)
    raise ValueError(f"Unknown horizon {horizon!r}")


def _derived_id(*parts: object) -> str:
    return str(uuid.uuid5(PLAN_NAMESPACE, ":".join(str(p) for p in parts)))


class PlanGenerator:
    """
    Builds plans from an explicit template catalog.

    Parameters
    ----------
    catalog : TemplateCatalog
    risk_config : RiskConfig, optional
        Supplies the obligation window (10 days) and month length.
    """

    def __init__(self, catalog: TemplateCatalog, risk_config: Optional[RiskConfig] = None):
        self.catalog = catalog
        self.risk_config = risk_config or RiskConfig()

    def create_plan(
        self,
        template_id: str,
        risk: RiskResult,
        obligations: Sequence[Obligation],
        started_at: datetime,
        horizon: Optional[PlanHorizon] = None,
        params: Optional[Mapping[str, object]] = None,
        instance_id: Optional[str] = None,
    ) -> GeneratedPlan:
        """
        Create a plan instance with its actions and rules.

        Parameters
        ----------
        template_id : str
        risk : RiskResult
            Current classification; its level is stored on the instance.
        obligations : sequence of Obligation
        started_at : datetime
            Plan start; also the "today" of the obligation window.
        horizon : str, optional
            Requested horizon (falls back to ``params["horizon"]``).
        params : mapping, optional
            User parameters layered over the template defaults.
        instance_id : str, optional
            Explicit id; derived from template id and start time otherwise.

        Returns
        -------
        GeneratedPlan

        Raises
        ------
        TemplateNotFoundError
            When *template_id* is not in the catalog.
        """
        template = self.catalog.get(template_id)
        params = dict(params or {})
        requested = horizon or params.get("horizon")
        chosen: PlanHorizon = requested if requested in template.horizons else template.horizons[0]

        plan_id = instance_id or _derived_id(template.id, started_at.isoformat())
        instance = PlanInstance(
            id=plan_id,
            template_id=template.id,
            horizon=chosen,
            started_at=started_at,
            ends_at=plan_end_date(started_at, chosen),
            risk_level=risk.level,
            params={**template.default_params, **params},
        )

        actions: List[PlanAction] = []
        if template.category != "reserve":
            actions.extend(self._obligation_actions(obligations, started_at, plan_id))
        actions.extend(self._template_actions(resolve_task_source(template), started_at, plan_id, len(actions)))
        rules = self._rules(resolve_rule_source(template), plan_id)

        logger.debug(
            "create_plan: template=%s horizon=%s actions=%d rules=%d",
            template.id, chosen, len(actions), len(rules),
        )
        return GeneratedPlan(instance=instance, actions=tuple(actions), rules=tuple(rules))

    def _obligation_actions(
        self,
        obligations: Sequence[Obligation],
        today: datetime,
        plan_id: str,
    ) -> List[PlanAction]:
        out = []
        window = self.risk_config.plan_window_days
        for o in obligations:
            if o.is_paid:
                continue
            diff = days_until_due(o, today, month_days=self.risk_config.month_days)
            if not (0 <= diff <= window):
                continue
            out.append(
                PlanAction(
                    id=_derived_id(plan_id, "action", len(out)),
                    text=f'Pay "{o.name}" ({o.amount:g}) by day {o.due_day}',
                    priority=1,
                    plan_instance_id=plan_id,
                    tag="mandatory",
                    estimated_effect=0.0,
                    obligation_id=o.id,
                    created_at=today,
                )
            )
        return out

    def _template_actions(
        self,
        source: TaskSource,
        now: datetime,
        plan_id: str,
        offset: int,
    ) -> List[PlanAction]:
        if isinstance(source, StructuredTasks):
            return [
                PlanAction(
                    id=_derived_id(plan_id, "action", offset + n),
                    text=bp.title,
                    description=bp.description,
                    priority=bp.priority,
                    plan_instance_id=plan_id,
                    is_recurring=bool(bp.repeat),
                    tag=bp.tag,
                    estimated_effect=(
                        float(bp.estimated_effect)
                        if isinstance(bp.estimated_effect, (int, float)) and not isinstance(bp.estimated_effect, bool)
                        else 0.0
                    ),
                    points=STRUCTURED_POINTS,
                    schedule=bp.schedule,
                    created_at=now,
                )
                for n, bp in enumerate(source.blueprint)
            ]
        if isinstance(source, LegacyTasks):
            return [
                PlanAction(
                    id=_derived_id(plan_id, "action", offset + n),
                    text=task,
                    priority=LEGACY_BASE_PRIORITY + n,
                    plan_instance_id=plan_id,
                    tag="general",
                    points=LEGACY_POINTS,
                    created_at=now,
                )
                for n, task in enumerate(source.example_tasks)
            ]
        raise TypeError(f"Unhandled task source: {type(source).__name__}")

    def _rules(self, source: RuleSource, plan_id: str) -> List[PlanRule]:
        if isinstance(source, StructuredRules):
            texts: Sequence[str] = [bp.description for bp in source.blueprint]
        elif isinstance(source, LegacyRules):
            texts = _LEGACY_RULES.get(source.category, ())
        else:
            raise TypeError(f"Unhandled rule source: {type(source).__name__}")
        return [
            PlanRule(id=_derived_id(plan_id, "rule", n), text=text, plan_instance_id=plan_id)
            for n, text in enumerate(texts)
        ]


# ---------------------------------------------------------------------------
# Weekly plan
# ---------------------------------------------------------------------------

def week_start_of(day: DateLike) -> date:
    """Monday of the week containing *day*."""
    d = day.date() if isinstance(day, datetime) else day
    return d - timedelta(days=d.weekday())


def is_plan_current_week(plan_week_start: Union[date, str], today: DateLike) -> bool:
    """True if a weekly plan started on *plan_week_start* covers *today*."""
    if isinstance(plan_week_start, str):
        plan_week_start = date.fromisoformat(plan_week_start)
    return plan_week_start == week_start_of(today)


def _payment_deadline(obligation: Obligation, week_start: date) -> date:
    """Next due date on or after *week_start*; the day is clamped to month length."""
    deadline = clamp_day(week_start.year, week_start.month, obligation.due_day)
    if deadline < week_start:
        nxt = add_months(date(week_start.year, week_start.month, 1), 1)
        deadline = clamp_day(nxt.year, nxt.month, obligation.due_day)
    return deadline


def generate_weekly_plan(
    obligations: Sequence[Obligation],
    risk: RiskResult,
    week_start: date,
) -> List[PlanAction]:
    """
    Seven-day action list.

    Up to five unpaid obligations, most urgent first (ties keep input
    order), followed by tips for the current risk level (2 for low, 3 for
    medium, 4 for high). Priorities run 1, 2, 3, ... across the list.
    """
    unpaid = [o for o in obligations if not o.is_paid]
    urgent = sorted(unpaid, key=lambda o: _payment_deadline(o, week_start))[:WEEKLY_MAX_PAYMENTS]

    actions: List[PlanAction] = []
    for o in urgent:
        deadline = _payment_deadline(o, week_start)
        actions.append(
            PlanAction(
                id=_derived_id("week", week_start.isoformat(), len(actions)),
                text=f'Pay "{o.name}" ({o.amount:g}) by {deadline.isoformat()}',
                priority=len(actions) + 1,
                obligation_id=o.id,
                tag="mandatory",
                week_start=week_start,
            )
        )
    for tip in _RISK_TIPS[risk.level]:
        actions.append(
            PlanAction(
                id=_derived_id("week", week_start.isoformat(), len(actions)),
                text=tip,
                priority=len(actions) + 1,
                week_start=week_start,
            )
        )
    return actions
