"""
Financial state consumed by the FirePlan calculators.

Purpose
-------
FinancialSnapshot is the immutable input the calling layer assembles from
its own records (balances, transactions, user parameters). Debt is the
unit of the payoff simulation. Neither object is ever mutated by the engine;
simulations work on copies of the balances.

Key components
--------------
- Debt:
    Outstanding balance, annual rate (fraction), minimum payment and an
    optional remaining term.

- FinancialSnapshot:
    Ages, monthly cash flows, holdings by category, debts, tax inputs and
    protection inputs used by the freedom score.

Example
-------
>>> snap = FinancialSnapshot(
...     current_age=32,
...     target_retirement_age=50,
...     monthly_income=200_000,
...     monthly_expenses=80_000,
...     holdings={"equity": 3_000_000, "debt": 2_000_000},
... )
>>> snap.corpus
5000000.0
>>> snap.monthly_savings
120000.0
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Mapping, Optional, Tuple
import warnings

from .constants import DEFAULT_EQUITY_ALLOCATION, MONTHS_PER_YEAR
from .utils import check_allocation, check_non_negative, safe_divide
from .exceptions import ValidationError

__all__ = [
    "Debt",
    "FinancialSnapshot",
    "EQUITY_CATEGORIES",
]


EQUITY_CATEGORIES = frozenset({"equity", "mutual_fund", "equity_mf", "stocks", "nps_equity"})
"""Holding categories counted as equity when deriving an allocation."""


# ---------------------------------------------------------------------------
# Debt
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Debt:
    """
    One outstanding loan or credit line.

    Parameters
    ----------
    name : str
        Identifier shown in payoff orderings.
    balance : float
        Outstanding balance (non-negative).
    annual_rate : float
        Annual interest rate as a fraction (0.24 for 24%).
    minimum_payment : float
        Required monthly payment.
    remaining_months : int, optional
        Remaining contractual term, if known.

    Examples
    --------
    >>> Debt("Credit card", balance=50_000, annual_rate=0.24, minimum_payment=2_500)
    """
    name: str
    balance: float
    annual_rate: float
    minimum_payment: float
    remaining_months: Optional[int] = None

    def __post_init__(self):
        """Validate debt parameters."""
        check_non_negative("balance", self.balance)
        check_non_negative("annual_rate", self.annual_rate)
        check_non_negative("minimum_payment", self.minimum_payment)
        if self.remaining_months is not None and self.remaining_months <= 0:
            raise ValidationError(
                f"remaining_months must be positive, got {self.remaining_months}"
            )

    @property
    def monthly_interest(self) -> float:
        """Interest accrued on the current balance in one month."""
        return self.balance * self.annual_rate / MONTHS_PER_YEAR

    @property
    def is_paid_off(self) -> bool:
        return self.balance <= 0

    def __repr__(self) -> str:
        return (
            f"Debt(name={self.name!r}, balance={self.balance:,.0f}, "
            f"rate={self.annual_rate:.2%}, min={self.minimum_payment:,.0f})"
        )


# ---------------------------------------------------------------------------
# Financial Snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FinancialSnapshot:
    """
    Immutable snapshot of a household's financial state.

    Parameters
    ----------
    current_age, target_retirement_age : int
        Ages in years; retirement age must not precede the current age.
    monthly_income, monthly_expenses : float
        Net monthly cash flows.
    expense_categories : Mapping[str, float]
        Optional split of monthly expenses by category.
    holdings : Mapping[str, float]
        Liquid and retirement holdings by category.
    current_corpus : float, optional
        Explicit corpus. Defaults to the sum of holdings.
    equity_allocation : float, optional
        Equity fraction of the corpus. Derived from holdings when omitted.
    debts : tuple of Debt
        Active debts.
    income_streams : Mapping[str, float]
        Annual gross taxable income by source.
    deductions : Mapping[str, float]
        Claimed deductions by section (e.g. "80C").
    emergency_fund, life_cover, health_cover : float
        Protection inputs for the freedom score.
    budget_adherence : float, optional
        Budget adherence in percent (0-100), if tracked.
    net_worth_history : tuple of float
        Net worth observations, oldest first.
    """
    current_age: int
    target_retirement_age: int
    monthly_income: float
    monthly_expenses: float
    expense_categories: Mapping[str, float] = field(default_factory=dict)
    holdings: Mapping[str, float] = field(default_factory=dict)
    current_corpus: Optional[float] = None
    equity_allocation: Optional[float] = None
    debts: Tuple[Debt, ...] = ()
    income_streams: Mapping[str, float] = field(default_factory=dict)
    deductions: Mapping[str, float] = field(default_factory=dict)
    emergency_fund: float = 0.0
    life_cover: float = 0.0
    health_cover: float = 0.0
    budget_adherence: Optional[float] = None
    net_worth_history: Tuple[float, ...] = ()

    def __post_init__(self):
        """Validate and freeze snapshot contents."""
        if self.current_age < 0:
            raise ValidationError(f"current_age must be non-negative, got {self.current_age}")
        if self.target_retirement_age < self.current_age:
            raise ValidationError(
                f"target_retirement_age ({self.target_retirement_age}) must be "
                f">= current_age ({self.current_age})"
            )
        check_non_negative("monthly_income", self.monthly_income)
        check_non_negative("monthly_expenses", self.monthly_expenses)
        for mapping_name in ("expense_categories", "holdings", "income_streams", "deductions"):
            mapping = getattr(self, mapping_name)
            for key, value in mapping.items():
                check_non_negative(f"{mapping_name}[{key!r}]", value)
            object.__setattr__(self, mapping_name, MappingProxyType(dict(mapping)))
        if self.current_corpus is not None:
            check_non_negative("current_corpus", self.current_corpus)
        if self.equity_allocation is not None:
            check_allocation(self.equity_allocation, name="equity_allocation")
        for name in ("emergency_fund", "life_cover", "health_cover"):
            check_non_negative(name, getattr(self, name))
        if self.budget_adherence is not None and not 0 <= self.budget_adherence <= 100:
            raise ValidationError(
                f"budget_adherence must be in [0, 100], got {self.budget_adherence}"
            )
        object.__setattr__(self, "debts", tuple(self.debts))
        object.__setattr__(self, "net_worth_history", tuple(float(x) for x in self.net_worth_history))

    def __hash__(self):
        """Content hash; mapping fields hash by their sorted items."""
        return hash(tuple(
            tuple(sorted(value.items())) if isinstance(value, Mapping) else value
            for value in (getattr(self, f.name) for f in fields(self))
        ))

    # -------------------- Derived figures --------------------
    @property
    def corpus(self) -> float:
        """Investable corpus: explicit value, else the sum of holdings."""
        if self.current_corpus is not None:
            return float(self.current_corpus)
        return float(sum(self.holdings.values()))

    @property
    def annual_expenses(self) -> float:
        return self.monthly_expenses * MONTHS_PER_YEAR

    @property
    def monthly_savings(self) -> float:
        """Income left after expenses, floored at zero."""
        return max(0.0, self.monthly_income - self.monthly_expenses)

    @property
    def years_to_retirement(self) -> int:
        return max(0, self.target_retirement_age - self.current_age)

    @property
    def gross_annual_income(self) -> float:
        """Sum of taxable income streams (annual)."""
        return float(sum(self.income_streams.values()))

    @property
    def total_debt(self) -> float:
        return float(sum(d.balance for d in self.debts))

    @property
    def resolved_equity_allocation(self) -> float:
        """
        Equity fraction of the corpus.

        Uses the explicit allocation when given; otherwise the share of
        holdings in equity categories; falls back to the default 60% when
        the corpus is empty.
        """
        if self.equity_allocation is not None:
            return float(self.equity_allocation)
        total = float(sum(self.holdings.values()))
        if total <= 0:
            warnings.warn(
                f"No holdings to derive an equity allocation from; "
                f"using default {DEFAULT_EQUITY_ALLOCATION:.0%}.",
                UserWarning
            )
            return DEFAULT_EQUITY_ALLOCATION
        equity = sum(v for k, v in self.holdings.items() if k.lower() in EQUITY_CATEGORIES)
        return safe_divide(equity, total, DEFAULT_EQUITY_ALLOCATION)
