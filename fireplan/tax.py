"""
Income-tax calculation for FirePlan.

Purpose
-------
Progressive slab tax with rebate, surcharge and cess, for any regime
expressed as a TaxRegimeConfig. Two Indian regimes for FY 2025-26 ship as
presets ("old" and "new"); further jurisdictions are plain data.

Algorithm
---------
    taxable ≤ rebate_threshold             → 0
    base      = Σ_b (min(taxable, b.upper) − b.lower) · b.rate   for b.lower < taxable
    surcharge = base · s.rate                for the band s with s.lower < taxable ≤ s.upper
    cess      = (base + surcharge) · cess_rate
    tax       = round(base + surcharge + cess)

Income exactly on a bracket boundary is taxed entirely in the lower bracket
(inclusive upper, exclusive lower), so no boundary rupee is counted twice.

Example
-------
>>> from fireplan.tax import NEW_REGIME, OLD_REGIME, compute_tax, apply_deductions
>>> compute_tax(1_200_000, NEW_REGIME)
0.0
>>> taxable = apply_deductions(1_500_000, {"80C": 200_000}, OLD_REGIME)
>>> taxable
1300000.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional

from .config import SurchargeBracket, TaxBracket, TaxRegimeConfig
from .exceptions import ConfigurationError, ValidationError
from .utils import check_finite, check_non_negative, safe_divide

__all__ = [
    "OLD_REGIME",
    "NEW_REGIME",
    "REGIMES",
    "get_regime",
    "compute_tax",
    "apply_deductions",
    "tax_breakdown",
    "compare_regimes",
    "TaxBreakdown",
    "RegimeComparison",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# FY 2025-26 presets
# ---------------------------------------------------------------------------

_SURCHARGE = [
    SurchargeBracket(lower=0, upper=5_000_000, rate=0.0),
    SurchargeBracket(lower=5_000_000, upper=10_000_000, rate=0.10),
    SurchargeBracket(lower=10_000_000, upper=20_000_000, rate=0.15),
    SurchargeBracket(lower=20_000_000, upper=50_000_000, rate=0.25),
    SurchargeBracket(lower=50_000_000, upper=None, rate=0.37),
]

NEW_REGIME = TaxRegimeConfig(
    name="new",
    brackets=[
        TaxBracket(lower=0, upper=400_000, rate=0.0),
        TaxBracket(lower=400_000, upper=800_000, rate=0.05),
        TaxBracket(lower=800_000, upper=1_200_000, rate=0.10),
        TaxBracket(lower=1_200_000, upper=1_600_000, rate=0.15),
        TaxBracket(lower=1_600_000, upper=2_000_000, rate=0.20),
        TaxBracket(lower=2_000_000, upper=2_400_000, rate=0.25),
        TaxBracket(lower=2_400_000, upper=None, rate=0.30),
    ],
    standard_deduction=75_000,
    rebate_threshold=1_200_000,
    surcharge=_SURCHARGE,
    cess_rate=0.04,
    deduction_caps={},
)

OLD_REGIME = TaxRegimeConfig(
    name="old",
    brackets=[
        TaxBracket(lower=0, upper=250_000, rate=0.0),
        TaxBracket(lower=250_000, upper=500_000, rate=0.05),
        TaxBracket(lower=500_000, upper=1_000_000, rate=0.20),
        TaxBracket(lower=1_000_000, upper=None, rate=0.30),
    ],
    standard_deduction=50_000,
    rebate_threshold=500_000,
    surcharge=_SURCHARGE,
    cess_rate=0.04,
    deduction_caps={
        "80C": 150_000,
        "80D": 25_000,
        "80D_parents": 50_000,
        "80CCD1B": 50_000,
        "80TTA": 10_000,
        "24b": 200_000,
        "other": None,
    },
)

REGIMES: Dict[str, TaxRegimeConfig] = {"old": OLD_REGIME, "new": NEW_REGIME}


def get_regime(name: str) -> TaxRegimeConfig:
    """Look up a preset regime by name (case-insensitive)."""
    try:
        return REGIMES[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown regime {name!r}. Available: {sorted(REGIMES)}"
        ) from None


# ---------------------------------------------------------------------------
# Core calculations
# ---------------------------------------------------------------------------

def _slab_tax(income: float, brackets: Iterable[TaxBracket]) -> float:
    tax = 0.0
    for b in brackets:
        if income <= b.lower:
            break
        top = income if b.upper is None else min(income, b.upper)
        tax += max(0.0, top - b.lower) * b.rate
    return tax


def _surcharge_rate(income: float, schedule: Iterable[SurchargeBracket]) -> float:
    for band in schedule:
        if band.contains(income):
            return band.rate
    return 0.0


@dataclass(frozen=True)
class TaxBreakdown:
    """Components of a tax computation (all amounts unrounded except total)."""
    regime: str
    taxable_income: float
    base_tax: float
    surcharge: float
    cess: float
    total: float
    rebate_applied: bool

    @property
    def effective_rate(self) -> float:
        """Total tax as a fraction of taxable income (0 for zero income)."""
        return safe_divide(self.total, self.taxable_income)


def tax_breakdown(taxable_income: float, regime_config: TaxRegimeConfig) -> TaxBreakdown:
    """
    Compute base tax, surcharge, cess and total for *taxable_income*.

    Zero or negative income yields an all-zero breakdown.
    """
    check_finite("taxable_income", taxable_income)
    income = max(0.0, float(taxable_income))
    if income <= 0:
        return TaxBreakdown(regime_config.name, income, 0.0, 0.0, 0.0, 0.0, False)
    if income <= regime_config.rebate_threshold:
        return TaxBreakdown(regime_config.name, income, 0.0, 0.0, 0.0, 0.0, True)

    base = _slab_tax(income, regime_config.brackets)
    surcharge = base * _surcharge_rate(income, regime_config.surcharge)
    cess = (base + surcharge) * regime_config.cess_rate
    total = float(round(base + surcharge + cess))
    return TaxBreakdown(regime_config.name, income, base, surcharge, cess, total, False)


def compute_tax(taxable_income: float, regime_config: TaxRegimeConfig) -> float:
    """
    Tax payable on *taxable_income* under *regime_config*, rounded.

    Examples
    --------
    >>> compute_tax(1_300_000, NEW_REGIME)
    78000.0
    """
    return tax_breakdown(taxable_income, regime_config).total


def apply_deductions(
    gross_income: float,
    claimed_deductions: Optional[Mapping[str, float]],
    regime_config: TaxRegimeConfig,
) -> float:
    """
    Taxable income after the standard deduction and allowed itemised claims.

    Each claimed section is capped at the regime's ceiling. Sections the
    regime does not list fall under its "other" entry when it has one and
    are ignored otherwise. The result is floored at zero.

    Raises
    ------
    ValidationError
        If gross income or any claim is negative.
    """
    check_non_negative("gross_income", gross_income)
    caps = regime_config.deduction_caps
    total = regime_config.standard_deduction
    for section, amount in (claimed_deductions or {}).items():
        check_non_negative(f"deduction {section!r}", amount)
        key = section if section in caps else "other"
        if key not in caps:
            logger.debug("Regime %s ignores deduction %s", regime_config.name, section)
            continue
        cap = caps[key]
        total += amount if cap is None else min(amount, cap)
    return max(0.0, float(gross_income) - total)


# ---------------------------------------------------------------------------
# Regime comparison
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RegimeComparison:
    """Tax under each regime and the cheaper choice."""
    breakdowns: Dict[str, TaxBreakdown]
    recommended: str
    savings: float


def compare_regimes(
    gross_income: float,
    claimed_deductions: Optional[Mapping[str, float]] = None,
    regimes: Optional[Iterable[TaxRegimeConfig]] = None,
) -> RegimeComparison:
    """
    Compute tax under each regime and recommend the cheapest.

    Ties go to the first regime in iteration order. ``savings`` is the gap
    between the most and least expensive regime.

    Examples
    --------
    >>> cmp = compare_regimes(1_500_000, {"80C": 150_000})
    >>> cmp.recommended
    'new'
    """
    regimes = list(regimes) if regimes is not None else [NEW_REGIME, OLD_REGIME]
    if not regimes:
        raise ValidationError("compare_regimes needs at least one regime.")
    breakdowns: Dict[str, TaxBreakdown] = {}
    for regime in regimes:
        taxable = apply_deductions(gross_income, claimed_deductions, regime)
        breakdowns[regime.name] = tax_breakdown(taxable, regime)
    recommended = min(breakdowns, key=lambda name: breakdowns[name].total)
    totals = [b.total for b in breakdowns.values()]
    return RegimeComparison(
        breakdowns=breakdowns,
        recommended=recommended,
        savings=max(totals) - min(totals),
    )
