"""
FirePlan — Financial Independence Planning Engine

Deterministic and stochastic calculators behind a personal-finance
planning product for Indian households.

Modules
-------
- tax           : Progressive income tax, deductions, regime comparison
- capital_gains : Holding-period classification and capital-gains tax
- amortization  : Loan schedules, prepayment, multi-debt payoff
- fire          : FIRE number, variants, years to target, crossover
- withdrawal    : Retirement withdrawal strategies
- simulation    : Monte Carlo survival of a retirement corpus
- score         : Freedom score (0-100) across four domains
- utils         : Shared utilities (validation, rates, percentiles)

"""

__version__ = "0.1.0"

from .snapshot import Debt, FinancialSnapshot
from .tax import compare_regimes, compute_tax
from .capital_gains import CapitalGainLot, classify_and_tax
from .amortization import generate_schedule, prepayment_impact, simulate_payoff
from .fire import UNREACHABLE, fire_metrics, fire_number, years_to_target
from .withdrawal import compute_withdrawal
from .simulation import MonteCarloSimulator
from .score import FreedomScoreAggregator
from . import utils

__all__ = [
    "__version__",
    "Debt",
    "FinancialSnapshot",
    "compare_regimes",
    "compute_tax",
    "CapitalGainLot",
    "classify_and_tax",
    "generate_schedule",
    "prepayment_impact",
    "simulate_payoff",
    "UNREACHABLE",
    "fire_metrics",
    "fire_number",
    "years_to_target",
    "compute_withdrawal",
    "MonteCarloSimulator",
    "FreedomScoreAggregator",
    "utils",
]
