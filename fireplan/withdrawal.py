"""
Withdrawal strategy module for FirePlan.

Purpose
-------
Computes the annual amount drawn from a retirement corpus under one of four
interchangeable strategies. Strategy parameters are frozen dataclasses
carrying a StrategyKind tag; every calculation is a pure function of the
parameters and a WithdrawalContext, so switching strategies is a plain
input change.

Strategies
----------
- FixedSWR:
    withdrawal = corpus · rate

- Bucket:
    cash  = expenses · cash_years
    bonds = expenses · bond_years
    total = (cash + bonds) / (1 − equity_percent/100),  equity = total · equity_percent/100
    withdrawal = annual expenses, drawn cash → bonds → equity

- VariablePercentage (VPW):
    rate% = clamp(100 / max(1, end_age − age), 3, 10)
    withdrawal = corpus · rate%/100

- Guardrails (Guyton-Klinger):
    desired = previous · (1 + inflation),   current_rate = desired / corpus
    current_rate > initial · upper → max(previous · max_decrease, corpus · initial)   DECREASE
    current_rate < initial · lower → min(desired · max_increase, corpus · initial)    INCREASE
    otherwise desired                                                                NONE

Guardrails keep no state between calls; the caller threads the previous
withdrawal from one period to the next.

Example
-------
>>> ctx = WithdrawalContext(corpus=20_000_000, annual_expenses=700_000, current_age=50)
>>> compute_withdrawal(FixedSWR(rate=0.035), ctx).amount
700000.0
>>> compute_withdrawal(VariablePercentage(start_age=50, end_age=95), ctx).rate
0.03
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple, Union

from .constants import DEFAULT_INFLATION, DEFAULT_SWR
from .exceptions import ValidationError
from .utils import check_fraction, check_non_negative, check_positive, clamp, safe_divide

__all__ = [
    "StrategyKind",
    "Adjustment",
    "FixedSWR",
    "Bucket",
    "VariablePercentage",
    "Guardrails",
    "WithdrawalStrategyParams",
    "WithdrawalContext",
    "WithdrawalDecision",
    "BucketPlan",
    "BucketDraw",
    "bucket_plan",
    "draw_from_buckets",
    "vpw_rate",
    "guardrails_withdrawal",
    "compute_withdrawal",
    "params_from_config",
]

logger = logging.getLogger(__name__)


class StrategyKind(str, Enum):
    FIXED_SWR = "fixed_swr"
    BUCKET = "bucket"
    VARIABLE_PERCENTAGE = "variable_percentage"
    GUARDRAILS = "guardrails"


class Adjustment(str, Enum):
    NONE = "none"
    INCREASE = "increase"
    DECREASE = "decrease"


# ---------------------------------------------------------------------------
# Strategy parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FixedSWR:
    """Constant fraction of the current corpus."""
    rate: float = DEFAULT_SWR
    kind: StrategyKind = field(default=StrategyKind.FIXED_SWR, init=False)

    def __post_init__(self):
        check_positive("rate", self.rate)
        check_fraction("rate", self.rate)


@dataclass(frozen=True)
class Bucket:
    """
    Time-segmented buckets.

    Parameters
    ----------
    cash_years, bond_years : float
        Years of expenses held in cash and bonds.
    equity_percent : float
        Equity share of the total requirement, in percent [0, 100).
    """
    cash_years: float = 2.0
    bond_years: float = 5.0
    equity_percent: float = 60.0
    kind: StrategyKind = field(default=StrategyKind.BUCKET, init=False)

    def __post_init__(self):
        check_non_negative("cash_years", self.cash_years)
        check_non_negative("bond_years", self.bond_years)
        if not 0 <= self.equity_percent < 100:
            raise ValidationError(
                f"equity_percent must be in [0, 100) (got {self.equity_percent})."
            )


@dataclass(frozen=True)
class VariablePercentage:
    """Age-driven withdrawal percentage."""
    start_age: int = 50
    end_age: int = 95
    kind: StrategyKind = field(default=StrategyKind.VARIABLE_PERCENTAGE, init=False)

    def __post_init__(self):
        if self.start_age < 0 or self.end_age < 0:
            raise ValidationError("ages must be non-negative.")
        if self.end_age < self.start_age:
            raise ValidationError(
                f"end_age ({self.end_age}) must be >= start_age ({self.start_age})."
            )


@dataclass(frozen=True)
class Guardrails:
    """
    Guyton-Klinger parameters.

    Parameters
    ----------
    initial_rate : float
        Target withdrawal rate (fraction).
    upper_guardrail, lower_guardrail : float
        Multipliers of ``initial_rate`` that trigger a cut or a raise.
    max_increase, max_decrease : float
        Multipliers bounding a single adjustment.
    """
    initial_rate: float = 0.052
    upper_guardrail: float = 1.2
    lower_guardrail: float = 0.8
    max_increase: float = 1.1
    max_decrease: float = 0.9
    kind: StrategyKind = field(default=StrategyKind.GUARDRAILS, init=False)

    def __post_init__(self):
        check_positive("initial_rate", self.initial_rate)
        check_fraction("initial_rate", self.initial_rate)
        if self.upper_guardrail <= 1:
            raise ValidationError(f"upper_guardrail must exceed 1 (got {self.upper_guardrail}).")
        if not 0 < self.lower_guardrail < 1:
            raise ValidationError(f"lower_guardrail must be in (0, 1) (got {self.lower_guardrail}).")
        if self.max_increase < 1:
            raise ValidationError(f"max_increase must be >= 1 (got {self.max_increase}).")
        if not 0 < self.max_decrease <= 1:
            raise ValidationError(f"max_decrease must be in (0, 1] (got {self.max_decrease}).")


WithdrawalStrategyParams = Union[FixedSWR, Bucket, VariablePercentage, Guardrails]


@dataclass(frozen=True)
class WithdrawalContext:
    """
    Per-period inputs shared by all strategies.

    Parameters
    ----------
    corpus : float
        Corpus at the start of the period.
    annual_expenses : float
        Current annual expenses (Bucket withdrawal; Guardrails seed).
    current_age : int, optional
        Age used by VPW; defaults to the strategy's start age.
    previous_withdrawal : float, optional
        Last period's withdrawal (Guardrails). Defaults to annual expenses.
    inflation : float
        Annual inflation applied by Guardrails.
    """
    corpus: float
    annual_expenses: float = 0.0
    current_age: Optional[int] = None
    previous_withdrawal: Optional[float] = None
    inflation: float = DEFAULT_INFLATION

    def __post_init__(self):
        check_non_negative("corpus", self.corpus)
        check_non_negative("annual_expenses", self.annual_expenses)
        if self.previous_withdrawal is not None:
            check_non_negative("previous_withdrawal", self.previous_withdrawal)


# ---------------------------------------------------------------------------
# Buckets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BucketPlan:
    """Target bucket sizes for a given level of expenses."""
    cash: float
    bonds: float
    equity: float
    total: float

    @property
    def allocation(self) -> Dict[str, float]:
        """Share of each bucket in percent."""
        return {
            "cash": safe_divide(self.cash, self.total) * 100,
            "bonds": safe_divide(self.bonds, self.total) * 100,
            "equity": safe_divide(self.equity, self.total) * 100,
        }


def bucket_plan(annual_expenses: float, params: Bucket) -> BucketPlan:
    """
    Size the cash, bond and equity buckets.

    Examples
    --------
    >>> plan = bucket_plan(600_000, Bucket(cash_years=2, bond_years=5, equity_percent=60))
    >>> plan.total
    10500000.0
    """
    check_non_negative("annual_expenses", annual_expenses)
    cash = annual_expenses * params.cash_years
    bonds = annual_expenses * params.bond_years
    share = params.equity_percent / 100.0
    total = (cash + bonds) / (1.0 - share)
    return BucketPlan(cash=float(cash), bonds=float(bonds), equity=total * share, total=float(total))


@dataclass(frozen=True)
class BucketDraw:
    """Amounts taken from each bucket and the balances left behind."""
    from_cash: float
    from_bonds: float
    from_equity: float
    shortfall: float
    remaining: BucketPlan

    @property
    def total(self) -> float:
        return self.from_cash + self.from_bonds + self.from_equity


def draw_from_buckets(balances: BucketPlan, amount: float) -> BucketDraw:
    """
    Withdraw ``amount`` from cash first, then bonds, then equity.

    Refilling the cash and bond buckets from equity is left to the caller.
    Any amount the three buckets cannot cover is reported as ``shortfall``.
    """
    check_non_negative("amount", amount)
    need = float(amount)
    taken = []
    for available in (balances.cash, balances.bonds, balances.equity):
        take = min(need, max(0.0, available))
        taken.append(take)
        need -= take
    cash, bonds, equity = (
        balances.cash - taken[0],
        balances.bonds - taken[1],
        balances.equity - taken[2],
    )
    if need > 0:
        logger.debug("Buckets short by %.2f", need)
    return BucketDraw(
        from_cash=taken[0],
        from_bonds=taken[1],
        from_equity=taken[2],
        shortfall=need,
        remaining=BucketPlan(cash=cash, bonds=bonds, equity=equity, total=cash + bonds + equity),
    )


# ---------------------------------------------------------------------------
# VPW / Guardrails
# ---------------------------------------------------------------------------

def vpw_rate(current_age: int, params: VariablePercentage) -> float:
    """Withdrawal percentage (3-10) for ``current_age``."""
    remaining = max(1, params.end_age - current_age)
    return clamp(100.0 / remaining, 3.0, 10.0)


def guardrails_withdrawal(
    corpus: float,
    previous_withdrawal: float,
    inflation: float,
    params: Guardrails,
) -> Tuple[float, Adjustment]:
    """
    Guyton-Klinger withdrawal for one period.

    Returns
    -------
    (amount, Adjustment)

    Notes
    -----
    An empty corpus yields 0 flagged DECREASE when something was being
    withdrawn before.
    """
    check_non_negative("corpus", corpus)
    check_non_negative("previous_withdrawal", previous_withdrawal)
    desired = previous_withdrawal * (1.0 + inflation)
    if corpus <= 0:
        return 0.0, Adjustment.DECREASE if previous_withdrawal > 0 else Adjustment.NONE

    current_rate = desired / corpus
    if current_rate > params.initial_rate * params.upper_guardrail:
        amount = max(previous_withdrawal * params.max_decrease, corpus * params.initial_rate)
        return amount, Adjustment.DECREASE
    if current_rate < params.initial_rate * params.lower_guardrail:
        amount = min(desired * params.max_increase, corpus * params.initial_rate)
        return amount, Adjustment.INCREASE
    return desired, Adjustment.NONE


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WithdrawalDecision:
    """
    Result of compute_withdrawal.

    ``rate`` is the amount as a fraction of the corpus (0 for an empty
    corpus). ``buckets`` is set for the Bucket strategy only.
    """
    kind: StrategyKind
    amount: float
    rate: float
    adjustment: Adjustment = Adjustment.NONE
    buckets: Optional[BucketPlan] = None

    @property
    def monthly(self) -> float:
        return self.amount / 12.0

    def to_dict(self) -> dict:
        out = {
            "kind": self.kind.value,
            "amount": self.amount,
            "monthly": self.monthly,
            "rate": self.rate,
            "adjustment": self.adjustment.value,
            "buckets": None,
        }
        if self.buckets is not None:
            out["buckets"] = {
                "cash": self.buckets.cash,
                "bonds": self.buckets.bonds,
                "equity": self.buckets.equity,
                "total": self.buckets.total,
            }
        return out


def _fixed(params: FixedSWR, ctx: WithdrawalContext) -> WithdrawalDecision:
    amount = ctx.corpus * params.rate
    return WithdrawalDecision(params.kind, amount, params.rate if ctx.corpus > 0 else 0.0)


def _bucket(params: Bucket, ctx: WithdrawalContext) -> WithdrawalDecision:
    plan = bucket_plan(ctx.annual_expenses, params)
    amount = float(ctx.annual_expenses)
    return WithdrawalDecision(params.kind, amount, safe_divide(amount, ctx.corpus), buckets=plan)


def _vpw(params: VariablePercentage, ctx: WithdrawalContext) -> WithdrawalDecision:
    age = params.start_age if ctx.current_age is None else ctx.current_age
    rate = vpw_rate(age, params) / 100.0
    return WithdrawalDecision(params.kind, ctx.corpus * rate, rate)


def _guardrails(params: Guardrails, ctx: WithdrawalContext) -> WithdrawalDecision:
    previous = ctx.previous_withdrawal
    if previous is None:
        previous = ctx.annual_expenses if ctx.annual_expenses > 0 else ctx.corpus * params.initial_rate
    amount, adjustment = guardrails_withdrawal(ctx.corpus, previous, ctx.inflation, params)
    return WithdrawalDecision(params.kind, amount, safe_divide(amount, ctx.corpus), adjustment)


_CALCULATORS: Dict[StrategyKind, Callable[..., WithdrawalDecision]] = {
    StrategyKind.FIXED_SWR: _fixed,
    StrategyKind.BUCKET: _bucket,
    StrategyKind.VARIABLE_PERCENTAGE: _vpw,
    StrategyKind.GUARDRAILS: _guardrails,
}


def compute_withdrawal(
    params: WithdrawalStrategyParams, context: WithdrawalContext
) -> WithdrawalDecision:
    """
    Withdrawal for one period under ``params``.

    Raises
    ------
    ValidationError
        If ``params`` is not one of the strategy variants.
    """
    kind = getattr(params, "kind", None)
    if kind not in _CALCULATORS:
        raise ValidationError(f"Unknown withdrawal strategy: {params!r}")
    decision = _CALCULATORS[kind](params, context)
    logger.debug("%s withdrawal %.2f (%s)", kind.value, decision.amount, decision.adjustment.value)
    return decision


def params_from_config(config) -> WithdrawalStrategyParams:
    """Convert a validated WithdrawalStrategyConfig into strategy parameters."""
    data = config.model_dump()
    strategy = StrategyKind(data.pop("strategy"))
    if strategy == StrategyKind.FIXED_SWR:
        return FixedSWR(**data)
    if strategy == StrategyKind.BUCKET:
        return Bucket(**data)
    if strategy == StrategyKind.VARIABLE_PERCENTAGE:
        return VariablePercentage(**data)
    return Guardrails(**data)
