"""
FinEngine — Personal Finance Analytics and Simulation Engine

Deterministic, side-effect-free functions that turn financial facts
(obligations, balances, spending, debts, goals, shared expenses) into
forecasts, risk classifications and actionable plans.

Modules
-------
- stats       : EWMA, standard deviation, normal CDF, logistic scoring
- risk        : Short-term obligation risk classifier
- budget      : Budget burn rate, forecast, overrun probability
- debts       : Amortization formulas and strategy ordering
- optimizer   : Avalanche/snowball payoff simulation
- envelopes   : Savings goal pace, ETA and status
- score       : Financial health score (0-1000)
- shared      : Shared-expense splits and settlement
- plans       : Template-driven and weekly action plans
- payday      : Payday allocation and cashflow check
- insights    : Subscription detection and strategy hints
- utils       : Shared utilities (validation, calendar helpers)
"""

__version__ = "0.1.0"

from .risk import Obligation, RiskResult, calculate_risk
from .budget import BudgetForecast, forecast_budget
from .debts import Debt
from .optimizer import DebtOptimizer, SimulationResult
from .envelopes import Contribution, Envelope, project_envelope
from .score import FinancialProfile, HealthScore, calculate_health_score
from .shared import Member, SharedTransaction, calculate_balances, calculate_settlements
from .plans import PlanGenerator, PlanTemplate, TemplateCatalog, generate_weekly_plan
from .payday import PaydayInput, plan_payday
from . import utils
