"""
Amortization and debt payoff module for FirePlan.

Purpose
-------
Time-value-of-money calculations for loans: level-installment schedules,
the effect of a lump-sum prepayment, and month-by-month simulation of
paying down several debts under an ordering strategy.

Mathematical Framework
----------------------
Per period with r = annual_rate / 12:

    interest_t  = B_{t-1} · r
    principal_t = min(P − interest_t, B_{t-1})
    B_t         = max(0, B_{t-1} − principal_t)

The final scheduled period repays whatever balance remains, so
Σ principal_t equals the original principal.

Prepayment (new balance B' = B − prepay):

    REDUCE_INSTALLMENT : P' = B' · r(1+r)^n / ((1+r)^n − 1),   n unchanged
    REDUCE_TERM        : n' = ceil( ln(P / (P − B'·r)) / ln(1+r) ),  P unchanged

    interest_saved = max(0, (P·n − B) − (P'·n' − B'))

Payoff simulation: every month each open debt accrues interest and receives
its minimum payment; the shared extra payment goes to the first open debt
in strategy order. A debt's payment is capped at balance + interest. The
loop stops at zero total balance or after 360 months, in which case the
result carries ``paid_off=False``.

Key components
--------------
- generate_schedule / schedule_frame
- PrepaymentMode, PrepaymentImpact, prepayment_impact
- PayoffStrategy, PayoffResult, simulate_payoff
- PayoffComparison, compare_payoff_strategies

Example
-------
>>> rows = generate_schedule(1_000_000, 0.10, 120)
>>> round(sum(r["principal_component"] for r in rows), 2)
1000000.0
>>> rows[0]["interest_component"]
8333.33
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .constants import MAX_PAYOFF_MONTHS
from .exceptions import ValidationError
from .snapshot import Debt
from .types import ScheduleRowDict
from .utils import (
    annuity_payment,
    annuity_term,
    check_non_negative,
    check_positive,
    monthly_rate,
    round_money,
)

__all__ = [
    "generate_schedule",
    "schedule_frame",
    "PrepaymentMode",
    "PrepaymentImpact",
    "prepayment_impact",
    "PayoffStrategy",
    "PayoffResult",
    "order_debts",
    "simulate_payoff",
    "PayoffComparison",
    "compare_payoff_strategies",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------

def generate_schedule(
    principal: float,
    annual_rate: float,
    term_months: int,
    installment: Optional[float] = None,
) -> List[ScheduleRowDict]:
    """
    Amortization schedule for a level-installment loan.

    Parameters
    ----------
    principal : float
        Amount borrowed (non-negative).
    annual_rate : float
        Nominal annual rate as a fraction.
    term_months : int
        Number of scheduled periods (positive).
    installment : float, optional
        Monthly installment. When omitted the annuity installment for
        ``term_months`` is used.

    Returns
    -------
    list of ScheduleRowDict
        Rows for months 1..k where k ≤ term_months is the period in which
        the balance reaches zero. Amounts are rounded to 2 decimals.

    Notes
    -----
    An installment too small to amortize the loan within the term leaves a
    balloon in the final row.
    """
    check_non_negative("principal", principal)
    check_non_negative("annual_rate", annual_rate)
    if term_months <= 0:
        raise ValidationError(f"term_months must be positive (got {term_months}).")
    if installment is None:
        installment = annuity_payment(principal, annual_rate, term_months)
    else:
        check_positive("installment", installment)

    r = monthly_rate(annual_rate)
    if principal > 0 and installment <= principal * r:
        warnings.warn(
            f"Installment {installment:,.2f} does not cover the first month's interest "
            f"({principal * r:,.2f}); the final period carries a balloon.",
            UserWarning
        )

    rows: List[ScheduleRowDict] = []
    balance = round_money(principal)
    for month in range(1, term_months + 1):
        if balance <= 0:
            break
        interest = round_money(balance * r)
        if month == term_months:
            principal_part = balance
        else:
            principal_part = round_money(min(installment - interest, balance))
        balance = round_money(max(0.0, balance - principal_part))
        rows.append({
            "month": month,
            "installment": round_money(principal_part + interest),
            "principal_component": principal_part,
            "interest_component": interest,
            "balance": balance,
        })
    logger.debug("Schedule: %d periods, installment %.2f", len(rows), installment)
    return rows


def schedule_frame(rows: Sequence[ScheduleRowDict]) -> pd.DataFrame:
    """Schedule rows as a DataFrame indexed by month."""
    columns = ["month", "installment", "principal_component", "interest_component", "balance"]
    return pd.DataFrame(list(rows), columns=columns).set_index("month")


# ---------------------------------------------------------------------------
# Prepayment
# ---------------------------------------------------------------------------

class PrepaymentMode(str, Enum):
    REDUCE_INSTALLMENT = "reduce_installment"
    REDUCE_TERM = "reduce_term"


@dataclass(frozen=True)
class PrepaymentImpact:
    """
    Outcome of a lump-sum prepayment.

    ``converged`` is False when REDUCE_TERM was requested but the installment
    does not cover the interest on the new balance; the original term is
    then reported unchanged.
    """
    new_balance: float
    new_installment: float
    new_term: int
    interest_saved: float
    converged: bool
    term_reduced: int
    installment_reduced: float

    def to_dict(self) -> dict:
        return {
            "new_balance": self.new_balance,
            "new_installment": self.new_installment,
            "new_term": self.new_term,
            "interest_saved": self.interest_saved,
            "converged": self.converged,
            "term_reduced": self.term_reduced,
            "installment_reduced": self.installment_reduced,
        }


def prepayment_impact(
    balance: float,
    annual_rate: float,
    remaining_months: int,
    installment: float,
    prepay_amount: float,
    mode: PrepaymentMode = PrepaymentMode.REDUCE_TERM,
) -> PrepaymentImpact:
    """
    Effect of prepaying ``prepay_amount`` on a running loan.

    Raises
    ------
    ValidationError
        For negative amounts, a non-positive term or installment, or a
        prepayment larger than the balance.

    Examples
    --------
    >>> impact = prepayment_impact(500_000, 0.09, 60, 10_379.18, 100_000,
    ...                            PrepaymentMode.REDUCE_TERM)
    >>> impact.new_term < 60
    True
    """
    check_non_negative("balance", balance)
    check_non_negative("annual_rate", annual_rate)
    check_positive("installment", installment)
    check_non_negative("prepay_amount", prepay_amount)
    if remaining_months <= 0:
        raise ValidationError(f"remaining_months must be positive (got {remaining_months}).")
    if prepay_amount > balance:
        raise ValidationError(
            f"prepay_amount ({prepay_amount}) exceeds balance ({balance})."
        )
    mode = PrepaymentMode(mode)

    new_balance = balance - prepay_amount
    converged = True
    if new_balance <= 0:
        new_installment, new_term = 0.0, 0
    elif mode == PrepaymentMode.REDUCE_INSTALLMENT:
        new_term = remaining_months
        new_installment = annuity_payment(new_balance, annual_rate, remaining_months)
    else:
        new_installment = installment
        solved = annuity_term(new_balance, annual_rate, installment)
        if solved is None:
            logger.debug("Installment %.2f cannot amortize %.2f", installment, new_balance)
            new_term, converged = remaining_months, False
        else:
            new_term = solved

    original_interest = installment * remaining_months - balance
    new_interest = new_installment * new_term - new_balance
    return PrepaymentImpact(
        new_balance=round_money(new_balance),
        new_installment=round_money(new_installment),
        new_term=int(new_term),
        interest_saved=round_money(max(0.0, original_interest - new_interest)),
        converged=converged,
        term_reduced=max(0, remaining_months - int(new_term)),
        installment_reduced=round_money(max(0.0, installment - new_installment)),
    )


# ---------------------------------------------------------------------------
# Multi-debt payoff
# ---------------------------------------------------------------------------

class PayoffStrategy(str, Enum):
    AVALANCHE = "avalanche"
    SNOWBALL = "snowball"


def order_debts(debts: Sequence[Debt], strategy: PayoffStrategy) -> List[Debt]:
    """Avalanche: highest rate first. Snowball: smallest balance first. Stable."""
    strategy = PayoffStrategy(strategy)
    if strategy == PayoffStrategy.AVALANCHE:
        return sorted(debts, key=lambda d: -d.annual_rate)
    return sorted(debts, key=lambda d: d.balance)


@dataclass(frozen=True)
class PayoffResult:
    """
    Outcome of a payoff simulation.

    ``payoff_date`` is None when the debts are not cleared within the
    horizon (``paid_off=False``); ``months`` is then the horizon. It is also
    None when no start date was given.
    """
    strategy: PayoffStrategy
    months: int
    total_interest: float
    total_paid: float
    payoff_date: Optional[date]
    paid_off: bool
    order: List[str]
    payoff_months: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy.value,
            "months": self.months,
            "total_interest": self.total_interest,
            "total_paid": self.total_paid,
            "payoff_date": self.payoff_date.isoformat() if self.payoff_date else None,
            "paid_off": self.paid_off,
            "order": list(self.order),
            "payoff_months": dict(self.payoff_months),
        }


def _add_months(start: date, months: int) -> date:
    return (pd.Timestamp(start) + pd.DateOffset(months=months)).date()


def simulate_payoff(
    debts: Sequence[Debt],
    ordering_strategy: PayoffStrategy = PayoffStrategy.AVALANCHE,
    extra_monthly_payment: float = 0.0,
    *,
    start_date: Optional[date] = None,
    max_months: int = MAX_PAYOFF_MONTHS,
) -> PayoffResult:
    """
    Simulate paying down ``debts`` month by month.

    Parameters
    ----------
    debts : sequence of Debt
        Not modified; balances are copied.
    ordering_strategy : PayoffStrategy
        Decides which open debt receives the extra payment.
    extra_monthly_payment : float
        Shared amount on top of the minimum payments.
    start_date : date, optional
        Month zero of the projection. Without it ``payoff_date`` is None.
    max_months : int
        Horizon cap (360).

    Returns
    -------
    PayoffResult
    """
    check_non_negative("extra_monthly_payment", extra_monthly_payment)
    if max_months <= 0:
        raise ValidationError(f"max_months must be positive (got {max_months}).")
    strategy = PayoffStrategy(ordering_strategy)
    ordered = order_debts(debts, strategy)
    balances = [float(d.balance) for d in ordered]
    payoff_months = {d.name: 0 for d, b in zip(ordered, balances) if b <= 0}

    total_interest = 0.0
    total_paid = 0.0
    month = 0
    while month < max_months and any(b > 0 for b in balances):
        month += 1
        target = next(i for i, b in enumerate(balances) if b > 0)
        for i, debt in enumerate(ordered):
            if balances[i] <= 0:
                continue
            interest = balances[i] * monthly_rate(debt.annual_rate)
            payment = debt.minimum_payment
            if i == target:
                payment += extra_monthly_payment
            payment = min(payment, balances[i] + interest)
            balances[i] = max(0.0, balances[i] + interest - payment)
            total_interest += interest
            total_paid += payment
            if balances[i] <= 0:
                payoff_months[debt.name] = month

    paid_off = all(b <= 0 for b in balances)
    if not paid_off:
        logger.debug("%s payoff not complete after %d months", strategy.value, max_months)
    return PayoffResult(
        strategy=strategy,
        months=month,
        total_interest=round_money(total_interest),
        total_paid=round_money(total_paid),
        payoff_date=_add_months(start_date, month) if paid_off and start_date else None,
        paid_off=paid_off,
        order=[d.name for d in ordered],
        payoff_months=payoff_months,
    )


@dataclass(frozen=True)
class PayoffComparison:
    avalanche: PayoffResult
    snowball: PayoffResult

    @property
    def recommended(self) -> PayoffStrategy:
        """Avalanche when it saves interest, else snowball."""
        if self.avalanche.total_interest < self.snowball.total_interest:
            return PayoffStrategy.AVALANCHE
        return PayoffStrategy.SNOWBALL

    @property
    def interest_savings(self) -> float:
        return round_money(abs(self.avalanche.total_interest - self.snowball.total_interest))

    def to_dict(self) -> dict:
        return {
            "avalanche": self.avalanche.to_dict(),
            "snowball": self.snowball.to_dict(),
            "recommended": self.recommended.value,
            "interest_savings": self.interest_savings,
        }


def compare_payoff_strategies(
    debts: Sequence[Debt],
    extra_monthly_payment: float = 0.0,
    *,
    start_date: Optional[date] = None,
    max_months: int = MAX_PAYOFF_MONTHS,
) -> PayoffComparison:
    """Run both orderings on the same debts."""
    kwargs = dict(start_date=start_date, max_months=max_months)
    return PayoffComparison(
        avalanche=simulate_payoff(debts, PayoffStrategy.AVALANCHE, extra_monthly_payment, **kwargs),
        snowball=simulate_payoff(debts, PayoffStrategy.SNOWBALL, extra_monthly_payment, **kwargs),
    )
