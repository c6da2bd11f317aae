"""
Freedom score for FirePlan.

Purpose
-------
Condenses a household's position into a 0-100 score made of four 25-point
domains. Each domain is a weighted set of factors; a factor earns

    points = min(weight, value / target · weight)

and a domain's score is the rounded sum of its factor points.

Domains
-------
SAVE     savings rate (target 50%, w15), budget adherence (target 90%, w10)
GROW     diversification (w12), net-worth growth trend (w13)
PROTECT  emergency fund vs 6 months of expenses (w8), life cover vs 10x
         annual income (w6), health cover vs 5L (w5), debt freedom (w6)
READY    FIRE progress (w12), Monte Carlo success rate (w8), withdrawal
         plan in place (w5)

Without a simulation result the success-rate weight moves to FIRE
progress, so READY still totals 25.

Status bands: Excellent ≥ 85, Good ≥ 70, Fair ≥ 50, Developing ≥ 30,
otherwise Starting.

Example
-------
>>> from fireplan.snapshot import FinancialSnapshot
>>> snap = FinancialSnapshot(35, 50, monthly_income=200_000, monthly_expenses=100_000,
...                          holdings={"equity": 4_000_000, "ppf": 1_000_000})
>>> result = FreedomScoreAggregator().score(snap)
>>> 0 <= result.total <= 100
True
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .amortization import PayoffResult, PayoffStrategy, simulate_payoff
from .config import FireAssumptions
from .constants import MAX_PAYOFF_MONTHS, MONTHS_PER_YEAR
from .fire import FireMetrics, fire_metrics, savings_rate
from .simulation import SimulationResult
from .snapshot import EQUITY_CATEGORIES, FinancialSnapshot
from .types import FactorStatus, ScoreFactorDict
from .utils import clamp, safe_divide
from .withdrawal import WithdrawalStrategyParams

__all__ = [
    "Domain",
    "Factor",
    "DomainScore",
    "FreedomScore",
    "FreedomScoreAggregator",
    "score_status",
]


DEBT_CATEGORIES = frozenset({"debt", "debt_mf", "epf", "ppf", "fd", "bonds"})
RETIREMENT_CATEGORIES = frozenset({"nps", "nps_equity", "retirement"})

EMERGENCY_FUND_MONTHS = 6
LIFE_COVER_MULTIPLE = 10
HEALTH_COVER_TARGET = 500_000
DEFAULT_BUDGET_ADHERENCE = 50.0
NEUTRAL_GROWTH_TREND = 50.0


class Domain(str, Enum):
    SAVE = "save"
    GROW = "grow"
    PROTECT = "protect"
    READY = "ready"


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def score_status(total: float) -> str:
    """Status label of a total score."""
    if total >= 85:
        return "Excellent"
    if total >= 70:
        return "Good"
    if total >= 50:
        return "Fair"
    if total >= 30:
        return "Developing"
    return "Starting"


# ---------------------------------------------------------------------------
# Factors and domains
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Factor:
    """
    One weighted factor.

    ``bands`` are the (excellent, good, fair) thresholds on ``value``.
    """
    name: str
    value: float
    target: float
    weight: float
    bands: Tuple[float, float, float]

    @property
    def points(self) -> float:
        return min(self.weight, max(0.0, safe_divide(self.value, self.target)) * self.weight)

    @property
    def status(self) -> FactorStatus:
        excellent, good, fair = self.bands
        if self.value >= excellent:
            return "excellent"
        if self.value >= good:
            return "good"
        if self.value >= fair:
            return "fair"
        return "poor"

    def to_dict(self) -> ScoreFactorDict:
        return {
            "name": self.name,
            "value": self.value,
            "target": self.target,
            "weight": self.weight,
            "points": self.points,
            "status": self.status,
        }


@dataclass(frozen=True)
class DomainScore:
    domain: Domain
    factors: List[Factor]

    @property
    def score(self) -> int:
        return _round_half_up(sum(f.points for f in self.factors))

    def to_dict(self) -> dict:
        return {
            "domain": self.domain.value,
            "score": self.score,
            "factors": [f.to_dict() for f in self.factors],
        }


@dataclass(frozen=True)
class FreedomScore:
    domains: Dict[Domain, DomainScore] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(d.score for d in self.domains.values())

    @property
    def status(self) -> str:
        return score_status(self.total)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "status": self.status,
            "domains": {d.value: s.to_dict() for d, s in self.domains.items()},
        }


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

class FreedomScoreAggregator:
    """
    Composes calculator outputs into a FreedomScore.

    Missing FIRE metrics and payoff results are computed from the snapshot;
    the Monte Carlo result is optional and never simulated here.
    """

    def __init__(self, assumptions: Optional[FireAssumptions] = None):
        self.assumptions = assumptions or FireAssumptions()

    def score(
        self,
        snapshot: FinancialSnapshot,
        fire: Optional[FireMetrics] = None,
        simulation: Optional[SimulationResult] = None,
        payoff: Optional[PayoffResult] = None,
        withdrawal: Optional[WithdrawalStrategyParams] = None,
    ) -> FreedomScore:
        fire = fire or fire_metrics(snapshot, self.assumptions)
        if payoff is None and snapshot.total_debt > 0:
            payoff = simulate_payoff(snapshot.debts, PayoffStrategy.AVALANCHE)
        domains = [
            self.save(snapshot),
            self.grow(snapshot),
            self.protect(snapshot, payoff),
            self.ready(fire, simulation, withdrawal),
        ]
        return FreedomScore(domains={d.domain: d for d in domains})

    # -------------------- Domains --------------------
    def save(self, snapshot: FinancialSnapshot) -> DomainScore:
        rate = savings_rate(snapshot.monthly_income, snapshot.monthly_savings)
        adherence = (
            DEFAULT_BUDGET_ADHERENCE if snapshot.budget_adherence is None
            else snapshot.budget_adherence
        )
        return DomainScore(Domain.SAVE, [
            Factor("Savings Rate", rate, 50, 15, (50, 30, 15)),
            Factor("Budget Adherence", adherence, 90, 10, (90, 70, 50)),
        ])

    def grow(self, snapshot: FinancialSnapshot) -> DomainScore:
        held = {k.lower() for k, v in snapshot.holdings.items() if v > 0}
        diversification = (
            (33 if held & EQUITY_CATEGORIES else 0)
            + (33 if held & DEBT_CATEGORIES else 0)
            + (34 if held & RETIREMENT_CATEGORIES else 0)
        )
        trend = NEUTRAL_GROWTH_TREND
        history = snapshot.net_worth_history
        if len(history) >= 2 and history[0] > 0:
            growth = (history[-1] - history[0]) / history[0] * 100
            trend = clamp(NEUTRAL_GROWTH_TREND + growth, 0.0, 100.0)
        return DomainScore(Domain.GROW, [
            Factor("Diversification", diversification, 100, 12, (80, 60, 40)),
            Factor("Net Worth Growth", trend, 100, 13, (80, 60, 40)),
        ])

    def protect(self, snapshot: FinancialSnapshot, payoff: Optional[PayoffResult]) -> DomainScore:
        emergency_target = snapshot.monthly_expenses * EMERGENCY_FUND_MONTHS
        emergency = min(100.0, safe_divide(snapshot.emergency_fund, emergency_target, 1.0) * 100)
        life_target = snapshot.monthly_income * MONTHS_PER_YEAR * LIFE_COVER_MULTIPLE
        life = min(100.0, safe_divide(snapshot.life_cover, life_target, 1.0) * 100)
        health = min(100.0, snapshot.health_cover / HEALTH_COVER_TARGET * 100)
        if snapshot.total_debt <= 0:
            debt_free = 100.0
        elif payoff is None or not payoff.paid_off:
            debt_free = 0.0
        else:
            debt_free = 100.0 * (1.0 - payoff.months / MAX_PAYOFF_MONTHS)
        return DomainScore(Domain.PROTECT, [
            Factor("Emergency Fund", emergency, 100, 8, (100, 75, 50)),
            Factor("Life Cover", life, 100, 6, (100, 70, 40)),
            Factor("Health Cover", health, 100, 5, (100, 70, 40)),
            Factor("Debt Freedom", debt_free, 100, 6, (80, 60, 40)),
        ])

    def ready(
        self,
        fire: FireMetrics,
        simulation: Optional[SimulationResult],
        withdrawal: Optional[WithdrawalStrategyParams],
    ) -> DomainScore:
        plan = 100.0 if withdrawal is not None else 0.0
        factors = []
        if simulation is None:
            factors.append(Factor("FIRE Progress", fire.progress_percent, 100, 20, (75, 50, 25)))
        else:
            factors.append(Factor("FIRE Progress", fire.progress_percent, 100, 12, (75, 50, 25)))
            factors.append(
                Factor("Plan Success Rate", simulation.success_rate * 100, 100, 8, (95, 85, 70))
            )
        factors.append(Factor("Withdrawal Plan", plan, 100, 5, (100, 100, 100)))
        return DomainScore(Domain.READY, factors)
