"""General utilities for FirePlan (primitives)

Contents
--------
- Validation helpers (non-negative, positive, fraction, finite)
- Rate/percentage helpers (percent <-> fraction, nominal monthly rate)
- Annuity math (installment, term solver)
- Percentile helpers (linear interpolation between order statistics)
- Period helpers (holding months, Indian fiscal-year labels)
- Money helpers (rounding, guarded division, clamping)
"""

from __future__ import annotations

import math
from datetime import date
from typing import Optional, Sequence

import numpy as np

from .constants import DAYS_PER_MONTH, MONTHS_PER_YEAR
from .exceptions import AllocationConstraintError, ValidationError

__all__ = [
    # Validation
    "check_non_negative",
    "check_positive",
    "check_finite",
    "check_fraction",
    "check_allocation",
    # Rates
    "percent_to_fraction",
    "fraction_to_percent",
    "monthly_rate",
    # Annuity
    "annuity_payment",
    "annuity_term",
    # Percentiles
    "percentile",
    "percentile_columns",
    # Periods
    "months_between",
    "fiscal_year",
    # Money
    "round_money",
    "safe_divide",
    "clamp",
]

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def check_finite(name: str, value: float) -> None:
    """Raise if *value* is NaN or infinite."""
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite (got {value}).")


def check_non_negative(name: str, value: float) -> None:
    """Raise if *value* is negative (strict)."""
    check_finite(name, value)
    if value < 0:
        raise ValidationError(f"{name} must be non-negative (got {value}).")


def check_positive(name: str, value: float) -> None:
    """Raise if *value* is zero or negative."""
    check_finite(name, value)
    if value <= 0:
        raise ValidationError(f"{name} must be positive (got {value}).")


def check_fraction(name: str, value: float) -> None:
    """Raise if *value* is outside the closed interval [0, 1]."""
    check_finite(name, value)
    if not 0.0 <= value <= 1.0:
        raise ValidationError(f"{name} must be a fraction in [0, 1] (got {value}).")


def check_allocation(*fractions: float, name: str = "allocation") -> None:
    """Raise if allocation fractions leave [0, 1] or do not sum to 1.

    With a single fraction only the range is checked; the complement is
    implied.
    """
    for f in fractions:
        if not math.isfinite(f) or not 0.0 <= f <= 1.0:
            raise AllocationConstraintError(
                f"{name} fractions must be in [0, 1] (got {list(fractions)})."
            )
    if len(fractions) > 1 and not math.isclose(sum(fractions), 1.0, abs_tol=1e-9):
        raise AllocationConstraintError(
            f"{name} fractions must sum to 1 (got {sum(fractions):.6f})."
        )


# ---------------------------------------------------------------------------
# Rates
# ---------------------------------------------------------------------------

def percent_to_fraction(pct: float) -> float:
    """Convert a 0-100 percentage to a 0-1 fraction."""
    return float(pct) / 100.0


def fraction_to_percent(frac: float) -> float:
    """Convert a 0-1 fraction to a 0-100 percentage."""
    return float(frac) * 100.0


def monthly_rate(annual_rate: float) -> float:
    """Nominal monthly rate used by loans and savings plans: annual / 12."""
    return float(annual_rate) / MONTHS_PER_YEAR


# ---------------------------------------------------------------------------
# Annuity math
# ---------------------------------------------------------------------------

def annuity_payment(principal: float, annual_rate: float, months: int) -> float:
    """Level installment that amortizes *principal* over *months*.

        P = B · r · (1 + r)^n / ((1 + r)^n − 1),   r = annual_rate / 12

    A zero rate degenerates to straight-line repayment B / n.
    """
    check_non_negative("principal", principal)
    check_non_negative("annual_rate", annual_rate)
    if months <= 0:
        raise ValidationError(f"months must be positive (got {months}).")
    r = monthly_rate(annual_rate)
    if r == 0:
        return principal / months
    growth = (1.0 + r) ** months
    return principal * r * growth / (growth - 1.0)


def annuity_term(principal: float, annual_rate: float, installment: float) -> Optional[int]:
    """Months needed for *installment* to repay *principal*.

        n = ceil( ln(P / (P − B·r)) / ln(1 + r) )

    Returns None when the installment cannot cover the first month's
    interest (P ≤ B·r), i.e. the loan never amortizes.
    """
    check_non_negative("principal", principal)
    check_non_negative("annual_rate", annual_rate)
    check_positive("installment", installment)
    if principal == 0:
        return 0
    r = monthly_rate(annual_rate)
    if r == 0:
        return math.ceil(principal / installment)
    interest = principal * r
    if installment <= interest:
        return None
    return math.ceil(math.log(installment / (installment - interest)) / math.log(1.0 + r))


# ---------------------------------------------------------------------------
# Percentiles
# ---------------------------------------------------------------------------

def percentile(values: Sequence[float] | np.ndarray, p: float) -> float:
    """Percentile *p* (0-100) by linear interpolation between order statistics.

    index = p/100 · (n − 1); the result interpolates sorted[floor(index)] and
    sorted[ceil(index)]. For [10, 20, 30, 40, 50]: p50 = 30, p25 = 20.
    """
    arr = np.sort(np.asarray(values, dtype=float).ravel())
    if arr.size == 0:
        raise ValidationError("percentile of an empty sequence is undefined.")
    if not 0.0 <= p <= 100.0:
        raise ValidationError(f"percentile must be in [0, 100] (got {p}).")
    index = (p / 100.0) * (arr.size - 1)
    lower = int(math.floor(index))
    upper = int(math.ceil(index))
    weight = index - lower
    return float(arr[lower] * (1.0 - weight) + arr[upper] * weight)


def percentile_columns(matrix: np.ndarray, p: float) -> np.ndarray:
    """Column-wise :func:`percentile` of a 2-D array (rows are observations)."""
    m = np.sort(np.asarray(matrix, dtype=float), axis=0)
    n = m.shape[0]
    if n == 0:
        raise ValidationError("percentile of an empty matrix is undefined.")
    index = (p / 100.0) * (n - 1)
    lower = int(math.floor(index))
    upper = int(math.ceil(index))
    weight = index - lower
    return m[lower] * (1.0 - weight) + m[upper] * weight


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------

def months_between(start: date, end: date) -> int:
    """Whole months between two dates using a 30-day month: floor(days / 30)."""
    return (end - start).days // DAYS_PER_MONTH


def fiscal_year(d: date) -> str:
    """Indian fiscal year label (April-March) for *d*, e.g. "2024-25"."""
    first = d.year if d.month >= 4 else d.year - 1
    return f"{first}-{str(first + 1)[-2:]}"


# ---------------------------------------------------------------------------
# Money helpers
# ---------------------------------------------------------------------------

def round_money(value: float, ndigits: int = 2) -> float:
    """Round a money amount; -0.0 is normalized to 0.0."""
    out = round(float(value), ndigits)
    return 0.0 if out == 0 else out


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Return numerator / denominator, or *default* when the denominator is 0."""
    if denominator == 0:
        return default
    return numerator / denominator


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp *value* into [lower, upper]."""
    return max(lower, min(upper, value))
