"""
Command-Line Interface for FinEngine.

Purpose
-------
Runs the engine on JSON input documents without writing Python code.
Every command reads one document, prints a table (or JSON with
``--format json``) and optionally writes the result with ``--output``.

Commands
--------
- risk: Classify short-term obligation risk
- budget: Forecast a budget period
- debts: Compare payoff strategies for a set of debts
- goal: Project a savings envelope
- score: Compute the financial health score
- settle: Settle shared expenses of a group
- plan: Generate a plan from a template catalog
- payday: Allocate a payday and simulate the period
- insights: Detect subscriptions and strategy hints
- config: Validate and display input documents
- info: Show version and dependency information

Example Usage
-------------
    # Obligation risk as of a given date
    $ finengine risk obligations.json --today 2025-03-05

    # Debt payoff with 5 000 extra per month, saved to disk
    $ finengine debts debts.json --extra 5000 -o debts.json

    # Validate an input document
    $ finengine config validate budget.json
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import date, datetime
from importlib.metadata import PackageNotFoundError, version as dist_version
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import click
import pydantic
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import AppSettings, ForecastConfig, OptimizerConfig
from .exceptions import FinEngineError

logger = logging.getLogger(__name__)

# Errors that mean "bad input", reported without a traceback
INPUT_ERRORS = (FinEngineError, pydantic.ValidationError, ValueError, TypeError, KeyError, OSError)

DATE_FORMAT = click.DateTime(formats=["%Y-%m-%d"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _configure_logging(settings: AppSettings, debug: bool) -> None:
    level = "DEBUG" if debug else settings.effective_log_level
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> None:
    click.echo(message, err=True)
    sys.exit(1)


def _today(value: Optional[datetime], doc: Mapping[str, Any], key: str = "today") -> date:
    """--today wins, then the document's field, then the system date."""
    if value is not None:
        return value.date()
    if key in doc:
        return date.fromisoformat(str(doc[key])[:10])
    return date.today()


def _balance(doc: Mapping[str, Any]) -> Optional[float]:
    """Optional current_balance coerced to float."""
    value = doc.get("current_balance")
    return None if value is None else float(value)


def _load(path: Path) -> Dict[str, Any]:
    from .serialization import load_document

    try:
        return load_document(path)
    except INPUT_ERRORS as e:
        _fail(f"Error loading {path}: {e}")


def _emit(
    ctx: click.Context,
    data: Dict[str, Any],
    output: Optional[Path],
    fmt: str,
    render: Callable[[Console], None],
) -> None:
    """Print *data* as a table or JSON, then save it when asked."""
    from .serialization import save_json

    console: Console = ctx.obj["console"]
    quiet = ctx.obj.get("quiet", False)

    if fmt == "json":
        click.echo(json.dumps(data, indent=2, default=str))
    elif not quiet:
        render(console)

    if output:
        if not output.is_absolute():
            output = ctx.obj["settings"].output_dir / output
        save_json(data, output)
        if not quiet and fmt != "json":
            console.print(f"[green]Results saved to {output}[/green]")


def _kv_table(title: str, rows) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for key, value in rows:
        table.add_row(key, value)
    return table


_format_option = click.option(
    "--format", "-f", "fmt",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format (default: table)",
)
_output_option = click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the result to this JSON file (relative paths land under FINENGINE_OUTPUT_DIR)",
)
_input_argument = click.argument("input_file", type=click.Path(exists=True, path_type=Path))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(version=__version__, prog_name="finengine")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, quiet: bool, debug: bool) -> None:
    """
    FinEngine - Personal finance analytics and simulation engine.

    Risk classification, budget forecasting, debt payoff optimization,
    savings projections, health scoring, shared-expense settlement and
    plan generation from JSON input documents.

    Use 'finengine COMMAND --help' for command-specific help.
    """
    settings = AppSettings()
    _configure_logging(settings, debug)
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings
    ctx.obj["console"] = Console()


# ---------------------------------------------------------------------------
# risk
# ---------------------------------------------------------------------------

@main.command()
@_input_argument
@click.option("--today", type=DATE_FORMAT, default=None, help="As-of date (YYYY-MM-DD)")
@_output_option
@_format_option
@click.pass_context
def risk(ctx: click.Context, input_file: Path, today: Optional[datetime], output: Optional[Path], fmt: str) -> None:
    """
    Classify obligation risk.

    The document holds "obligations", "salary_day" and optionally
    "current_balance" and "today".

    Example:
        finengine risk obligations.json --today 2025-03-05
    """
    from .risk import calculate_risk
    from .serialization import obligations_from_list, require_section, risk_to_dict

    doc = _load(input_file)
    try:
        obligations = obligations_from_list(require_section(doc, "obligations"))
        result = calculate_risk(
            obligations,
            salary_day=int(require_section(doc, "salary_day")),
            today=_today(today, doc),
            current_balance=_balance(doc),
        )
    except INPUT_ERRORS as e:
        _fail(f"Error computing risk: {e}")

    data = risk_to_dict(result)
    colors = {"low": "green", "medium": "yellow", "high": "red"}

    def render(console: Console) -> None:
        console.print(_kv_table("Obligation Risk", [
            ("Level", f"[{colors[result.level]}]{result.level}[/]"),
            ("Due in 7 days", f"{result.amount_due_7_days:,.2f}"),
            ("Due before salary", f"{result.amount_due_before_salary:,.2f}"),
            ("Days until salary", str(result.days_until_salary)),
            ("Overdue", "Yes" if result.has_overdue else "No"),
            ("At risk", ", ".join(o.name for o in result.at_risk) or "-"),
        ]))

    _emit(ctx, data, output, fmt, render)


# ---------------------------------------------------------------------------
# budget
# ---------------------------------------------------------------------------

@main.command()
@_input_argument
@click.option("--smoothing/--no-smoothing", default=False, help="Use the EWMA forecast")
@click.option("--confidence", type=click.Choice(["80", "95"]), default="95", help="Confidence level")
@_output_option
@_format_option
@click.pass_context
def budget(
    ctx: click.Context,
    input_file: Path,
    smoothing: bool,
    confidence: str,
    output: Optional[Path],
    fmt: str,
) -> None:
    """
    Forecast a budget period.

    The document's "budget" section holds limit, total_days, current_day,
    daily_spends ({day: amount}) and history (list of past periods).

    Example:
        finengine budget groceries.json --smoothing --confidence 80
    """
    from .budget import forecast_budget
    from .serialization import budget_config_from_dict, forecast_to_dict, require_section

    doc = _load(input_file)
    try:
        cfg = budget_config_from_dict(require_section(doc, "budget"))
        forecast = forecast_budget(
            cfg.limit,
            cfg.daily_spends,
            cfg.total_days,
            cfg.current_day,
            history=cfg.history,
            config=ForecastConfig(use_smoothing=smoothing, confidence_level=int(confidence)),
        )
    except INPUT_ERRORS as e:
        _fail(f"Error forecasting budget: {e}")

    data = {"name": cfg.name, "limit": cfg.limit, **forecast_to_dict(forecast)}

    def render(console: Console) -> None:
        overrun = forecast.expected_overrun_day
        console.print(_kv_table(f"Budget Forecast: {cfg.name}", [
            ("Limit", f"{cfg.limit:,.2f}"),
            ("Spent", f"{forecast.spend:,.2f} ({forecast.utilization:.0%})"),
            ("Forecast", f"{forecast.forecast:,.2f}"),
            (f"{confidence}% interval", f"{forecast.ci_low:,.2f} - {forecast.ci_high:,.2f}"),
            ("P(overrun)", f"{forecast.probability_of_overrun:.1%}"),
            ("Overrun day", "-" if overrun is None else str(overrun)),
            ("Anomalous today", "Yes" if forecast.is_anomalous else "No"),
            ("Recommended limit", f"{forecast.recommended_limit:,.2f}"),
            ("Risk tier", forecast.risk_tier),
        ]))

    _emit(ctx, data, output, fmt, render)


# ---------------------------------------------------------------------------
# debts
# ---------------------------------------------------------------------------

@main.command()
@_input_argument
@click.option("--extra", "-e", type=float, default=None, help="Extra monthly payment")
@click.option(
    "--strategy", "-s",
    type=click.Choice(["avalanche", "snowball"]),
    default=None,
    help="Strategy for the optimized run (default: avalanche)",
)
@click.option("--schedule", is_flag=True, help="Include month-by-month schedules in the output")
@_output_option
@_format_option
@click.pass_context
def debts(
    ctx: click.Context,
    input_file: Path,
    extra: Optional[float],
    strategy: Optional[str],
    schedule: bool,
    output: Optional[Path],
    fmt: str,
) -> None:
    """
    Compare debt payoff strategies.

    The document holds "debts" and optionally "extra_payment".

    Example:
        finengine debts debts.json --extra 5000 --strategy avalanche
    """
    from .optimizer import DebtOptimizer
    from .serialization import analysis_to_dict, debt_from_dict, require_section

    doc = _load(input_file)
    try:
        items = [debt_from_dict(d) for d in require_section(doc, "debts")]
        extra_payment = float(extra if extra is not None else doc.get("extra_payment", 0.0))
        optimizer = DebtOptimizer(OptimizerConfig(strategy=strategy or "avalanche"))
        analysis = optimizer.analyze(items, extra_payment=extra_payment)
    except INPUT_ERRORS as e:
        _fail(f"Error simulating debts: {e}")

    data = analysis_to_dict(analysis, include_schedule=schedule)

    def months(m: int) -> str:
        return "not within cap" if m < 0 else f"{m}"

    def render(console: Console) -> None:
        table = Table(title="Debt Payoff", show_header=True)
        table.add_column("Run", style="cyan")
        table.add_column("Strategy")
        table.add_column("Extra", justify="right")
        table.add_column("Months", justify="right")
        table.add_column("Interest", justify="right", style="green")
        for label, run in (
            ("Baseline", analysis.baseline),
            ("Optimized", analysis.optimized),
            (f"+{analysis.step:,.0f}", analysis.sensitivity),
        ):
            table.add_row(
                label,
                run.strategy,
                f"{run.extra_payment:,.0f}",
                months(run.debt_free_month),
                f"{run.total_interest:,.2f}",
            )
        console.print(table)
        console.print(f"Interest saved: [bold]{analysis.comparison.interest_savings:,.2f}[/bold]")
        if analysis.comparison.months_saved is not None:
            console.print(f"Months saved: [bold]{analysis.comparison.months_saved}[/bold]")
        console.print("Payoff order: " + " -> ".join(analysis.optimized.payoff_order))

    _emit(ctx, data, output, fmt, render)


# ---------------------------------------------------------------------------
# goal
# ---------------------------------------------------------------------------

@main.command()
@_input_argument
@click.option("--today", type=DATE_FORMAT, default=None, help="As-of date (YYYY-MM-DD)")
@_output_option
@_format_option
@click.pass_context
def goal(ctx: click.Context, input_file: Path, today: Optional[datetime], output: Optional[Path], fmt: str) -> None:
    """
    Project a savings envelope.

    The document holds "envelope", optionally "contributions" and "today".

    Example:
        finengine goal vacation.json --today 2025-03-01
    """
    from .envelopes import project_envelope
    from .serialization import (
        contribution_from_dict,
        envelope_from_dict,
        projection_to_dict,
        require_section,
    )

    doc = _load(input_file)
    try:
        envelope = envelope_from_dict(require_section(doc, "envelope"))
        contributions = [contribution_from_dict(c) for c in doc.get("contributions", [])]
        projection = project_envelope(envelope, contributions, _today(today, doc))
    except INPUT_ERRORS as e:
        _fail(f"Error projecting goal: {e}")

    data = {"envelope_id": envelope.id, **projection_to_dict(projection)}

    def render(console: Console) -> None:
        console.print(_kv_table(f"Goal: {envelope.name or envelope.id}", [
            ("Remaining", f"{projection.remaining:,.2f}"),
            ("Required per day", f"{projection.required_daily:,.2f}"),
            ("Pace per day", f"{projection.pace:,.2f}"),
            ("ETA", f"{projection.eta_date.isoformat()} ({projection.eta_days} days)"),
            ("ETA range", f"{projection.eta_optimistic} .. {projection.eta_pessimistic}"),
            ("Status", projection.status),
        ]))

    _emit(ctx, data, output, fmt, render)


# ---------------------------------------------------------------------------
# score
# ---------------------------------------------------------------------------

@main.command()
@_input_argument
@_output_option
@_format_option
@click.pass_context
def score(ctx: click.Context, input_file: Path, output: Optional[Path], fmt: str) -> None:
    """
    Compute the financial health score.

    The document holds "profile" and optionally "previous_profile"; with
    both, factors that dropped are reported as insights.

    Example:
        finengine score profile.json
    """
    from .insights import analyze_score_drop
    from .score import calculate_health_score
    from .serialization import (
        health_score_to_dict,
        profile_from_dict,
        prompt_to_dict,
        require_section,
    )

    doc = _load(input_file)
    try:
        result = calculate_health_score(profile_from_dict(require_section(doc, "profile")))
        prompts = []
        if "previous_profile" in doc:
            previous = calculate_health_score(profile_from_dict(doc["previous_profile"]))
            prompts = analyze_score_drop(previous.factors, result.factors)
    except INPUT_ERRORS as e:
        _fail(f"Error scoring profile: {e}")

    data = {**health_score_to_dict(result), "insights": [prompt_to_dict(p) for p in prompts]}

    def render(console: Console) -> None:
        table = Table(title=f"Health Score: {result.total_score} ({result.rating})", show_header=True)
        table.add_column("Factor", style="cyan")
        table.add_column("Value", justify="right")
        table.add_column("Score", justify="right", style="green")
        table.add_column("Weight", justify="right")
        table.add_column("Recommendation")
        for f in result.factors:
            table.add_row(f.label, f"{f.value:.2f}", f"{f.score:.1f}", f"{f.weight:.2f}", f.recommendation or "")
        console.print(table)
        for p in prompts:
            console.print(f"[yellow]{p.title}[/yellow]: {p.message}")

    _emit(ctx, data, output, fmt, render)


# ---------------------------------------------------------------------------
# settle
# ---------------------------------------------------------------------------

@main.command()
@_input_argument
@_output_option
@_format_option
@click.pass_context
def settle(ctx: click.Context, input_file: Path, output: Optional[Path], fmt: str) -> None:
    """
    Settle shared expenses.

    The document holds "members" and "transactions".

    Example:
        finengine settle trip.json
    """
    from .serialization import member_from_dict, require_section, settlements_to_dict, transaction_from_dict
    from .shared import calculate_balances, calculate_settlements

    doc = _load(input_file)
    try:
        members = [member_from_dict(m) for m in require_section(doc, "members")]
        transactions = [transaction_from_dict(t) for t in doc.get("transactions", [])]
        balances = calculate_balances(transactions, members)
        transfers = calculate_settlements(balances)
    except INPUT_ERRORS as e:
        _fail(f"Error settling expenses: {e}")

    data = {
        "balances": [
            {"member_id": b.member_id, "paid": b.paid, "share": b.share, "net": b.net}
            for b in balances
        ],
        "settlements": settlements_to_dict(transfers),
    }

    def render(console: Console) -> None:
        table = Table(title="Balances", show_header=True)
        table.add_column("Member", style="cyan")
        table.add_column("Paid", justify="right")
        table.add_column("Share", justify="right")
        table.add_column("Net", justify="right", style="green")
        for b in balances:
            table.add_row(b.member_id, f"{b.paid:,.2f}", f"{b.share:,.2f}", f"{b.net:,.2f}")
        console.print(table)
        if not transfers:
            console.print("[green]Everyone is settled.[/green]")
        for s in transfers:
            console.print(f"{s.from_id} -> {s.to_id}: [bold]{s.amount:,.2f}[/bold]")

    _emit(ctx, data, output, fmt, render)


# ---------------------------------------------------------------------------
# plan
# ---------------------------------------------------------------------------

@main.command()
@_input_argument
@click.option(
    "--catalog", "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Template catalog file (JSON); required unless --weekly",
)
@click.option("--template", "-t", "template_id", default=None, help="Template id")
@click.option("--horizon", type=click.Choice(["day", "week", "month", "quarter", "year"]), default=None)
@click.option("--weekly", is_flag=True, help="Generate the 7-day plan instead of a template plan")
@click.option("--today", type=DATE_FORMAT, default=None, help="Start date (YYYY-MM-DD)")
@_output_option
@_format_option
@click.pass_context
def plan(
    ctx: click.Context,
    input_file: Path,
    catalog: Optional[Path],
    template_id: Optional[str],
    horizon: Optional[str],
    weekly: bool,
    today: Optional[datetime],
    output: Optional[Path],
    fmt: str,
) -> None:
    """
    Generate an action plan.

    The document holds "obligations", "salary_day" and optionally
    "current_balance", "params" and "today". Risk is classified first and
    fed into the plan.

    Example:
        finengine plan obligations.json -c catalog.json -t debt_avalanche
    """
    from .plans import PlanGenerator, generate_weekly_plan, week_start_of
    from .risk import calculate_risk
    from .serialization import (
        action_to_dict,
        load_catalog,
        obligations_from_list,
        plan_to_dict,
        require_section,
    )

    doc = _load(input_file)
    try:
        obligations = obligations_from_list(require_section(doc, "obligations"))
        as_of = _today(today, doc)
        risk_result = calculate_risk(
            obligations,
            salary_day=int(require_section(doc, "salary_day")),
            today=as_of,
            current_balance=_balance(doc),
        )
        if weekly:
            week = week_start_of(as_of)
            actions = generate_weekly_plan(obligations, risk_result, week)
            data = {
                "week_start": week.isoformat(),
                "risk_level": risk_result.level,
                "actions": [action_to_dict(a) for a in actions],
            }
        else:
            if catalog is None or template_id is None:
                raise click.UsageError("--catalog and --template are required unless --weekly")
            generator = PlanGenerator(load_catalog(catalog))
            generated = generator.create_plan(
                template_id,
                risk_result,
                obligations,
                started_at=datetime(as_of.year, as_of.month, as_of.day),
                horizon=horizon,
                params=doc.get("params"),
            )
            actions = list(generated.actions)
            data = {"risk_level": risk_result.level, **plan_to_dict(generated)}
    except INPUT_ERRORS as e:
        _fail(f"Error generating plan: {e}")

    def render(console: Console) -> None:
        title = "Weekly Plan" if weekly else f"Plan {data['template_id']} ({data['horizon']})"
        table = Table(title=f"{title} - risk {risk_result.level}", show_header=True)
        table.add_column("#", justify="right")
        table.add_column("Action", style="cyan")
        table.add_column("Tag")
        for a in actions:
            table.add_row(str(a.priority), a.text, a.tag)
        console.print(table)
        for r in data.get("rules", []):
            console.print(f"- {r['text']}")

    _emit(ctx, data, output, fmt, render)


# ---------------------------------------------------------------------------
# payday
# ---------------------------------------------------------------------------

@main.command()
@_input_argument
@_output_option
@_format_option
@click.pass_context
def payday(ctx: click.Context, input_file: Path, output: Optional[Path], fmt: str) -> None:
    """
    Allocate a payday and simulate the period.

    The document's "payday" section holds payday_amount, payday_date,
    next_payday_date, current_balance, buffer_rate, mandatories and goals.

    Example:
        finengine payday payday.json
    """
    from .payday import plan_payday
    from .serialization import payday_from_dict, payday_plan_to_dict, require_section

    doc = _load(input_file)
    try:
        result = plan_payday(payday_from_dict(require_section(doc, "payday")))
    except INPUT_ERRORS as e:
        _fail(f"Error planning payday: {e}")

    data = payday_plan_to_dict(result)

    def render(console: Console) -> None:
        table = Table(title="Payday Allocation", show_header=True)
        table.add_column("Bucket", style="cyan")
        table.add_column("Required", justify="right")
        table.add_column("Allocated", justify="right", style="green")
        for b in sorted(result.buckets.values(), key=lambda b: b.priority):
            table.add_row(b.label, f"{b.min_required:,.2f}", f"{b.allocated:,.2f}")
        console.print(table)
        status = "[green]safe[/green]" if result.is_safe else f"[red]negative on day {result.risk_day}[/red]"
        console.print(f"Lowest balance: {result.lowest_balance:,.2f} ({status})")

    _emit(ctx, data, output, fmt, render)


# ---------------------------------------------------------------------------
# insights
# ---------------------------------------------------------------------------

@main.command()
@_input_argument
@_output_option
@_format_option
@click.pass_context
def insights(ctx: click.Context, input_file: Path, output: Optional[Path], fmt: str) -> None:
    """
    Detect subscriptions and debt strategy hints.

    The document holds "transactions" (id, merchant, amount, date) and/or
    "debts" with an optional "extra_payment".

    Example:
        finengine insights card.json
    """
    from .insights import MerchantTransaction, detect_subscriptions, recommend_debt_strategy
    from .serialization import debt_from_dict, prompt_to_dict

    doc = _load(input_file)
    try:
        txns = [
            MerchantTransaction(
                id=str(t["id"]),
                merchant=str(t["merchant"]),
                amount=float(t["amount"]),
                date=date.fromisoformat(str(t["date"])[:10]),
                category_id=t.get("category_id"),
            )
            for t in doc.get("transactions", [])
        ]
        prompts = detect_subscriptions(txns)
        hint = recommend_debt_strategy(
            [debt_from_dict(d) for d in doc.get("debts", [])],
            extra_payment=float(doc.get("extra_payment", 0.0)),
        )
        if hint is not None:
            prompts.append(hint)
    except INPUT_ERRORS as e:
        _fail(f"Error computing insights: {e}")

    data = {"insights": [prompt_to_dict(p) for p in prompts]}

    def render(console: Console) -> None:
        if not prompts:
            console.print("No insights.")
        for p in prompts:
            console.print(Panel(
                f"{p.message}\n[dim]{p.explanation or ''}[/dim]",
                title=f"{p.title} ({p.confidence:.0%})",
            ))

    _emit(ctx, data, output, fmt, render)


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

def _section_validators() -> Dict[str, Callable[[Any], int]]:
    """Section name -> validator returning the number of records checked."""
    from . import serialization as s

    def each(fn):
        return lambda items: len([fn(i) for i in items])

    def one(fn):
        def check(item):
            fn(item)
            return 1
        return check

    return {
        "obligations": each(s.obligation_from_dict),
        "debts": each(s.debt_from_dict),
        "envelope": one(s.envelope_from_dict),
        "contributions": each(s.contribution_from_dict),
        "profile": one(s.profile_from_dict),
        "previous_profile": one(s.profile_from_dict),
        "members": each(s.member_from_dict),
        "transactions": each(s.transaction_from_dict),
        "budget": one(s.budget_config_from_dict),
        "payday": one(s.payday_from_dict),
        "templates": each(s.template_from_dict),
    }


@main.group()
def config() -> None:
    """
    Input document management commands.

    Validate and display input documents.
    """
    pass


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def config_validate(ctx: click.Context, config_file: Path) -> None:
    """
    Validate an input document.

    Every known section is loaded through its validating model. Unknown
    sections are listed but not checked.

    Example:
        finengine config validate budget.json
    """
    console: Console = ctx.obj["console"]
    quiet = ctx.obj.get("quiet", False)

    doc = _load(config_file)
    validators = _section_validators()
    if "transactions" in doc and "members" not in doc:
        # merchant transactions for insights, not shared expenses
        validators.pop("transactions")
    checked: Dict[str, int] = {}
    try:
        for key, validate in validators.items():
            if key in doc:
                checked[key] = validate(doc[key])
    except INPUT_ERRORS as e:
        _fail(f"Configuration validation failed: {e}")

    if not checked:
        _fail("Configuration validation failed: no known sections found")

    skipped = sorted(k for k in doc if k not in checked and k != "schema_version")
    if quiet:
        return
    info = "[bold]Document Valid[/bold]\n\n"
    for key, count in checked.items():
        info += f"  [cyan]{key}[/cyan]: {count} record(s)\n"
    if skipped:
        info += f"\n  [dim]not checked: {', '.join(skipped)}[/dim]\n"
    console.print(Panel(info, title="Configuration Summary", border_style="green"))


@config.command("show")
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@_format_option
@click.pass_context
def config_show(ctx: click.Context, config_file: Path, fmt: str) -> None:
    """
    Display an input document.

    Example:
        finengine config show debts.json --format table
    """
    console: Console = ctx.obj["console"]

    with open(config_file, "r") as f:
        config_data = json.load(f)

    if fmt == "json":
        click.echo(json.dumps(config_data, indent=2))
        return

    for key, value in config_data.items():
        if isinstance(value, list) and value and isinstance(value[0], dict):
            table = Table(title=key)
            columns = list(dict.fromkeys(k for row in value for k in row))
            for col in columns:
                table.add_column(col, style="cyan" if col == "id" else None)
            for row in value:
                table.add_row(*(str(row.get(col, "")) for col in columns))
            console.print(table)
        elif isinstance(value, dict):
            console.print(_kv_table(key, [(k, str(v)) for k, v in value.items()]))
        else:
            console.print(f"[cyan]{key}[/cyan]: {value}")


# ---------------------------------------------------------------------------
# info
# ---------------------------------------------------------------------------

@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """
    Display system and package information.

    Shows version numbers, installed dependencies and the active settings.
    """
    console: Console = ctx.obj["console"]
    settings: AppSettings = ctx.obj["settings"]

    info_lines = [
        f"FinEngine Version: {__version__}",
        f"Python: {sys.version.split()[0]}",
    ]
    for name in ("numpy", "pandas", "pydantic", "pydantic-settings", "click", "rich"):
        try:
            info_lines.append(f"{name}: {dist_version(name)}")
        except PackageNotFoundError:
            info_lines.append(f"{name}: not installed")
    info_lines.append(f"Log level: {settings.effective_log_level}")
    info_lines.append(f"Output dir: {settings.output_dir}")

    console.print(Panel("\n".join(info_lines), title="System Information"))


if __name__ == "__main__":
    main()
