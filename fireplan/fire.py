"""
FIRE (Financial Independence, Retire Early) metrics for FirePlan.

Purpose
-------
Corpus targets and time-to-target for a household:

    fire_number   = annual_expenses / swr
    variants      = fire_number · multiplier        (lean 0.6, regular 1.0, fat 1.5)
    coast_fire    = target / (1 + r)^years
    barista_fire  = max(0, annual_expenses − 12 · part_time_monthly_income) / swr

years_to_target compounds monthly (r/12) and adds the contribution at the end
of each month until the target is met or 1200 months have passed. A target
that is never met yields the UNREACHABLE sentinel rather than a number.

Example
-------
>>> fire_number(600_000, 0.04)
15000000.0
>>> years_to_target(15_000_000, 15_000_000, 50_000, 0.12)
0.0
>>> years_to_target(1_000_000, 15_000_000, 0, 0.12) is UNREACHABLE
True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union

from .config import FireAssumptions
from .constants import CROSSOVER_MONTHS, DEFAULT_FIRE_MULTIPLIERS, MAX_TARGET_MONTHS, MONTHS_PER_YEAR
from .exceptions import ValidationError
from .snapshot import FinancialSnapshot
from .types import CrossoverPointDict
from .utils import check_non_negative, check_positive, monthly_rate, safe_divide

__all__ = [
    "UNREACHABLE",
    "Unreachable",
    "YearsToTarget",
    "fire_number",
    "fire_variants",
    "years_to_target",
    "coast_fire",
    "barista_fire",
    "savings_rate",
    "CrossoverProjection",
    "crossover_projection",
    "FireMetrics",
    "fire_metrics",
]

logger = logging.getLogger(__name__)


class Unreachable:
    """Sentinel type for a target that is never reached within the cap."""

    _instance: Optional["Unreachable"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNREACHABLE"

    def __bool__(self) -> bool:
        return False


UNREACHABLE = Unreachable()

YearsToTarget = Union[float, Unreachable]


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------

def fire_number(annual_expenses: float, safe_withdrawal_rate: float) -> float:
    """
    Corpus whose safe withdrawal covers ``annual_expenses``.

    Raises
    ------
    ValidationError
        If expenses are negative or the withdrawal rate is not positive.
    """
    check_non_negative("annual_expenses", annual_expenses)
    check_positive("safe_withdrawal_rate", safe_withdrawal_rate)
    return float(annual_expenses) / safe_withdrawal_rate


def fire_variants(
    annual_expenses: float,
    safe_withdrawal_rate: float,
    multipliers: Optional[Mapping[str, float]] = None,
) -> Dict[str, float]:
    """FIRE number scaled by each multiplier (default lean/regular/fat)."""
    base = fire_number(annual_expenses, safe_withdrawal_rate)
    multipliers = DEFAULT_FIRE_MULTIPLIERS if multipliers is None else multipliers
    for name, m in multipliers.items():
        check_positive(f"multiplier {name!r}", m)
    return {name: base * m for name, m in multipliers.items()}


def years_to_target(
    current_corpus: float,
    target_corpus: float,
    monthly_contribution: float,
    annual_return: float,
    *,
    max_months: int = MAX_TARGET_MONTHS,
) -> YearsToTarget:
    """
    Years until the corpus reaches ``target_corpus``.

    Returns
    -------
    float or UNREACHABLE
        0.0 when already at target; months/12 otherwise; UNREACHABLE when
        nothing is contributed or the cap is hit first.
    """
    check_non_negative("current_corpus", current_corpus)
    check_non_negative("target_corpus", target_corpus)
    if current_corpus >= target_corpus:
        return 0.0
    if monthly_contribution <= 0:
        return UNREACHABLE

    r = monthly_rate(annual_return)
    corpus = float(current_corpus)
    months = 0
    while corpus < target_corpus:
        if months >= max_months:
            logger.debug("Target %.0f not reached in %d months", target_corpus, max_months)
            return UNREACHABLE
        corpus = corpus * (1.0 + r) + monthly_contribution
        months += 1
    return months / MONTHS_PER_YEAR


def coast_fire(target_corpus: float, years_to_retirement: float, annual_return: float) -> float:
    """Corpus that grows into ``target_corpus`` by retirement with no further savings."""
    check_non_negative("target_corpus", target_corpus)
    check_non_negative("years_to_retirement", years_to_retirement)
    if annual_return <= -1:
        raise ValidationError(f"annual_return must exceed -1 (got {annual_return}).")
    return target_corpus / (1.0 + annual_return) ** years_to_retirement


def barista_fire(
    annual_expenses: float,
    part_time_monthly_income: float,
    safe_withdrawal_rate: float,
) -> float:
    """Corpus needed when part-time work covers part of the expenses."""
    check_non_negative("annual_expenses", annual_expenses)
    check_non_negative("part_time_monthly_income", part_time_monthly_income)
    check_positive("safe_withdrawal_rate", safe_withdrawal_rate)
    shortfall = max(0.0, annual_expenses - part_time_monthly_income * MONTHS_PER_YEAR)
    return shortfall / safe_withdrawal_rate


def savings_rate(monthly_income: float, monthly_savings: float) -> float:
    """Savings as a percentage of income; 0 when income is not positive."""
    if monthly_income <= 0:
        return 0.0
    return monthly_savings / monthly_income * 100.0


# ---------------------------------------------------------------------------
# Crossover projection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CrossoverProjection:
    """
    Month-by-month passive income vs. inflating expenses.

    ``crossover_month`` is the first month in which corpus · swr / 12 covers
    the inflated monthly expenses, or None if that never happens within the
    projection.
    """
    points: List[CrossoverPointDict]
    crossover_month: Optional[int]

    @property
    def crossover_years(self) -> Optional[float]:
        if self.crossover_month is None:
            return None
        return self.crossover_month / MONTHS_PER_YEAR


def crossover_projection(
    current_corpus: float,
    monthly_expenses: float,
    monthly_savings: float,
    *,
    safe_withdrawal_rate: float,
    annual_return: float,
    inflation: float,
    months: int = CROSSOVER_MONTHS,
) -> CrossoverProjection:
    """
    Project corpus and expenses for months 0..``months``.

    Each month the corpus grows by annual_return / 12 plus savings, and
    expenses inflate by inflation / 12.
    """
    check_non_negative("current_corpus", current_corpus)
    check_non_negative("monthly_expenses", monthly_expenses)
    check_non_negative("monthly_savings", monthly_savings)
    check_positive("safe_withdrawal_rate", safe_withdrawal_rate)
    if months < 0:
        raise ValidationError(f"months must be non-negative (got {months}).")

    r = monthly_rate(annual_return)
    i = monthly_rate(inflation)
    corpus = float(current_corpus)
    expenses = float(monthly_expenses)
    points: List[CrossoverPointDict] = []
    crossover: Optional[int] = None
    for month in range(months + 1):
        passive = corpus * safe_withdrawal_rate / MONTHS_PER_YEAR
        covered = passive >= expenses
        points.append({
            "month": month,
            "corpus": corpus,
            "passive_income": passive,
            "expenses": expenses,
            "is_crossover": covered,
        })
        if crossover is None and covered:
            crossover = month
        corpus = corpus * (1.0 + r) + monthly_savings
        expenses = expenses * (1.0 + i)
    return CrossoverProjection(points=points, crossover_month=crossover)


# ---------------------------------------------------------------------------
# Snapshot metrics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FireMetrics:
    """
    FIRE figures for one snapshot.

    ``coast_fire_age`` is the current age when the corpus already exceeds
    the coast target, the age at FIRE otherwise, and None when FIRE is
    unreachable.
    """
    fire_number: float
    current_corpus: float
    progress_percent: float
    variants: Dict[str, float]
    years_to_fire: YearsToTarget
    coast_fire: float
    coast_fire_age: Optional[float]
    barista_fire: float
    barista_monthly_income: float
    monthly_savings: float
    savings_rate: float
    safe_withdrawal_rate: float = field(default=0.0)

    @property
    def reachable(self) -> bool:
        return self.years_to_fire is not UNREACHABLE

    def to_dict(self) -> dict:
        return {
            "fire_number": self.fire_number,
            "current_corpus": self.current_corpus,
            "progress_percent": self.progress_percent,
            "variants": dict(self.variants),
            "years_to_fire": None if not self.reachable else self.years_to_fire,
            "reachable": self.reachable,
            "coast_fire": self.coast_fire,
            "coast_fire_age": self.coast_fire_age,
            "barista_fire": self.barista_fire,
            "barista_monthly_income": self.barista_monthly_income,
            "monthly_savings": self.monthly_savings,
            "savings_rate": self.savings_rate,
            "safe_withdrawal_rate": self.safe_withdrawal_rate,
        }


def fire_metrics(
    snapshot: FinancialSnapshot,
    assumptions: Optional[FireAssumptions] = None,
) -> FireMetrics:
    """
    Bundle every FIRE figure for ``snapshot``.

    Examples
    --------
    >>> snap = FinancialSnapshot(30, 50, monthly_income=150_000, monthly_expenses=60_000,
    ...                          current_corpus=2_000_000)
    >>> m = fire_metrics(snap)
    >>> round(m.fire_number)
    20571429
    """
    a = assumptions or FireAssumptions()
    swr = a.safe_withdrawal_rate
    annual_expenses = snapshot.annual_expenses
    corpus = snapshot.corpus
    target = fire_number(annual_expenses, swr)
    progress = min(100.0, safe_divide(corpus, target, 1.0) * 100.0)

    years = years_to_target(corpus, target, snapshot.monthly_savings, a.expected_return)
    coast = coast_fire(target, snapshot.years_to_retirement, a.expected_return)
    if corpus >= coast:
        coast_age: Optional[float] = float(snapshot.current_age)
    elif years is UNREACHABLE:
        coast_age = None
    else:
        coast_age = snapshot.current_age + years

    part_time = snapshot.monthly_income * a.part_time_income_share
    return FireMetrics(
        fire_number=target,
        current_corpus=corpus,
        progress_percent=progress,
        variants=fire_variants(annual_expenses, swr, a.multipliers),
        years_to_fire=years,
        coast_fire=coast,
        coast_fire_age=coast_age,
        barista_fire=barista_fire(annual_expenses, part_time, swr),
        barista_monthly_income=part_time,
        monthly_savings=snapshot.monthly_savings,
        savings_rate=savings_rate(snapshot.monthly_income, snapshot.monthly_savings),
        safe_withdrawal_rate=swr,
    )
