"""
Capital-gains module for FirePlan.

Purpose
-------
Classifies a disposed lot as short- or long-term, applies cost indexation
where requested and permitted, and computes the taxable gain and tax. Every
derived figure is recomputed from the lot on each call.

Computation
-----------
    holding_months = floor((disposal_date − acquisition_date).days / 30)
    gain_type      = LONG_TERM  if holding_months ≥ threshold[asset] else SHORT_TERM
    indexed_cost   = price · CII(disposal FY) / CII(acquisition FY)   (LONG_TERM + indexation)
    gross_gain     = disposal_price − indexed_cost − expenses
    taxable_gain   = max(0, gross_gain − asset_exemption − lot.exemption)
    tax            = taxable_gain · rate[(asset, gain_type, indexed)]

Rates missing from the table fall back to a slab proxy (30%).

Indexation cutovers
-------------------
An IndexationCutover names an asset class and a policy date. LONG_TERM lots
of that class acquired before the date are assessed both with indexation and
without, each at its own rate, and the cheaper method is recommended. The
default reproduces the 2024-07-23 change for property (20% indexed vs 12.5%
unindexed).

Key components
--------------
- AssetType, GainType : enums
- CapitalGainLot      : one disposed lot (frozen dataclass)
- GainAssessment      : result of classify_and_tax
- DualComputation     : indexed vs unindexed comparison for cutover lots
- assess_lots         : batch assessment with per-lot error isolation

Example
-------
>>> from datetime import date
>>> lot = CapitalGainLot(
...     asset_type=AssetType.EQUITY,
...     acquisition_date=date(2023, 1, 1), purchase_price=500_000,
...     disposal_date=date(2024, 2, 1), disposal_price=800_000,
... )
>>> result = classify_and_tax(lot)
>>> result.gain_type
<GainType.LONG_TERM: 'long_term'>
>>> result.taxable_gain       # 300k gain minus the 1.25L equity exemption
175000.0
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .constants import SLAB_PROXY_RATE
from .exceptions import ValidationError
from .utils import check_non_negative, fiscal_year, months_between, round_money

__all__ = [
    "AssetType",
    "GainType",
    "CapitalGainLot",
    "IndexationCutover",
    "GainAssessment",
    "DualComputation",
    "BatchAssessment",
    "HOLDING_THRESHOLDS",
    "RATE_TABLE",
    "ASSET_EXEMPTIONS",
    "COST_INFLATION_INDEX",
    "DEFAULT_CUTOVERS",
    "cost_inflation_index",
    "fiscal_year",
    "classify_and_tax",
    "assess_lots",
]

logger = logging.getLogger(__name__)


class AssetType(str, Enum):
    EQUITY = "equity"
    EQUITY_MF = "equity_mf"
    DEBT_MF = "debt_mf"
    PROPERTY = "property"
    GOLD = "gold"
    CRYPTO = "crypto"
    OTHER = "other"


class GainType(str, Enum):
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"


RateKey = Tuple[AssetType, GainType, bool]


# ---------------------------------------------------------------------------
# Reference tables (FY 2025-26)
# ---------------------------------------------------------------------------

HOLDING_THRESHOLDS: Dict[AssetType, int] = {
    AssetType.EQUITY: 12,
    AssetType.EQUITY_MF: 12,
    AssetType.DEBT_MF: 36,
    AssetType.PROPERTY: 24,
    AssetType.GOLD: 24,
    AssetType.CRYPTO: 12,
    AssetType.OTHER: 36,
}
"""Minimum holding period in months for a LONG_TERM classification."""

RATE_TABLE: Dict[RateKey, float] = {
    (AssetType.EQUITY, GainType.SHORT_TERM, False): 0.20,
    (AssetType.EQUITY, GainType.LONG_TERM, False): 0.125,
    (AssetType.EQUITY_MF, GainType.SHORT_TERM, False): 0.20,
    (AssetType.EQUITY_MF, GainType.LONG_TERM, False): 0.125,
    (AssetType.PROPERTY, GainType.LONG_TERM, False): 0.125,
    (AssetType.PROPERTY, GainType.LONG_TERM, True): 0.20,
    (AssetType.GOLD, GainType.LONG_TERM, False): 0.125,
    (AssetType.CRYPTO, GainType.SHORT_TERM, False): 0.30,
    (AssetType.CRYPTO, GainType.LONG_TERM, False): 0.30,
    (AssetType.OTHER, GainType.LONG_TERM, False): 0.20,
    (AssetType.OTHER, GainType.LONG_TERM, True): 0.20,
}
"""Flat rates keyed by (asset, gain type, indexation used). Absent keys are slab-taxed."""

ASSET_EXEMPTIONS: Dict[AssetType, float] = {
    AssetType.EQUITY: 125_000,
    AssetType.EQUITY_MF: 125_000,
}
"""Asset-class LTCG exemptions, applied before the lot's own exemption."""

COST_INFLATION_INDEX: Dict[str, int] = {
    "2001-02": 100, "2002-03": 105, "2003-04": 109, "2004-05": 113,
    "2005-06": 117, "2006-07": 122, "2007-08": 129, "2008-09": 137,
    "2009-10": 148, "2010-11": 167, "2011-12": 184, "2012-13": 200,
    "2013-14": 220, "2014-15": 240, "2015-16": 254, "2016-17": 264,
    "2017-18": 272, "2018-19": 280, "2019-20": 289, "2020-21": 301,
    "2021-22": 317, "2022-23": 331, "2023-24": 348, "2024-25": 363,
    "2025-26": 377,
}


def cost_inflation_index(
    d: date, table: Optional[Mapping[str, int]] = None
) -> Optional[int]:
    """CII of the fiscal year containing *d*, or None if the year is not published."""
    table = COST_INFLATION_INDEX if table is None else table
    return table.get(fiscal_year(d))


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IndexationCutover:
    """
    Policy date after which an asset class lost mandatory indexation.

    LONG_TERM lots acquired strictly before ``cutover`` get both methods
    computed; the taxpayer may choose the cheaper one.
    """
    asset_type: AssetType = AssetType.PROPERTY
    cutover: date = date(2024, 7, 23)
    indexed_rate: float = 0.20
    unindexed_rate: float = 0.125

    def applies_to(self, lot: "CapitalGainLot", gain_type: GainType) -> bool:
        return (
            lot.asset_type == self.asset_type
            and gain_type == GainType.LONG_TERM
            and lot.acquisition_date < self.cutover
        )


DEFAULT_CUTOVERS: Tuple[IndexationCutover, ...] = (IndexationCutover(),)


@dataclass(frozen=True)
class CapitalGainLot:
    """
    One disposed lot.

    Parameters
    ----------
    asset_type : AssetType
    acquisition_date, disposal_date : date
        Disposal must not precede acquisition.
    purchase_price, disposal_price : float
        Total consideration (non-negative).
    expenses : float
        Transfer/brokerage costs deductible from the gain.
    use_indexation : bool
        Request CII indexation (honoured only for LONG_TERM lots of classes
        with an indexed rate).
    exemption : float
        Additional exemption claimed on this lot (e.g. reinvestment relief).
    name : str
        Optional label.
    """
    asset_type: AssetType
    acquisition_date: date
    purchase_price: float
    disposal_date: date
    disposal_price: float
    expenses: float = 0.0
    use_indexation: bool = False
    exemption: float = 0.0
    name: str = ""

    def __post_init__(self):
        if not isinstance(self.asset_type, AssetType):
            object.__setattr__(self, "asset_type", AssetType(self.asset_type))
        check_non_negative("purchase_price", self.purchase_price)
        check_non_negative("disposal_price", self.disposal_price)
        check_non_negative("expenses", self.expenses)
        check_non_negative("exemption", self.exemption)
        if self.disposal_date < self.acquisition_date:
            raise ValidationError(
                f"disposal_date ({self.disposal_date}) precedes "
                f"acquisition_date ({self.acquisition_date})."
            )

    @property
    def holding_months(self) -> int:
        return months_between(self.acquisition_date, self.disposal_date)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "asset_type": self.asset_type.value,
            "acquisition_date": self.acquisition_date.isoformat(),
            "purchase_price": self.purchase_price,
            "disposal_date": self.disposal_date.isoformat(),
            "disposal_price": self.disposal_price,
            "expenses": self.expenses,
            "use_indexation": self.use_indexation,
            "exemption": self.exemption,
        }

    @classmethod
    def from_dict(cls, payload: Mapping) -> "CapitalGainLot":
        """Build a lot from a plain record (ISO dates accepted)."""
        try:
            acquired = payload["acquisition_date"]
            disposed = payload["disposal_date"]
            return cls(
                asset_type=AssetType(payload["asset_type"]),
                acquisition_date=date.fromisoformat(acquired) if isinstance(acquired, str) else acquired,
                purchase_price=float(payload["purchase_price"]),
                disposal_date=date.fromisoformat(disposed) if isinstance(disposed, str) else disposed,
                disposal_price=float(payload["disposal_price"]),
                expenses=float(payload.get("expenses", 0.0)),
                use_indexation=bool(payload.get("use_indexation", False)),
                exemption=float(payload.get("exemption", 0.0)),
                name=str(payload.get("name", "")),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Malformed capital-gain lot: {exc}") from exc


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DualComputation:
    """
    Indexed vs unindexed tax for a lot acquired before a cutover.

    When either fiscal year has no published index, the indexed side is
    left as None and no recommendation is made.
    """
    gain_with_indexation: Optional[float]
    tax_with_indexation: Optional[float]
    gain_without_indexation: float
    tax_without_indexation: float

    @property
    def index_missing(self) -> bool:
        return self.tax_with_indexation is None

    @property
    def recommended(self) -> Optional[str]:
        """"indexed" or "unindexed"; ties go to unindexed."""
        if self.tax_with_indexation is None:
            return None
        if self.tax_with_indexation < self.tax_without_indexation:
            return "indexed"
        return "unindexed"

    @property
    def savings(self) -> float:
        if self.tax_with_indexation is None:
            return 0.0
        return abs(self.tax_with_indexation - self.tax_without_indexation)


@dataclass(frozen=True)
class GainAssessment:
    holding_months: int
    gain_type: GainType
    cost_basis: float
    gross_gain: float
    exemption_applied: float
    taxable_gain: float
    rate: float
    tax: float
    indexation_applied: bool = False
    index_missing: bool = False
    dual: Optional[DualComputation] = None

    def to_dict(self) -> dict:
        out = {
            "holding_months": self.holding_months,
            "gain_type": self.gain_type.value,
            "cost_basis": self.cost_basis,
            "gross_gain": self.gross_gain,
            "exemption_applied": self.exemption_applied,
            "taxable_gain": self.taxable_gain,
            "rate": self.rate,
            "tax": self.tax,
            "indexation_applied": self.indexation_applied,
            "index_missing": self.index_missing,
            "dual": None,
        }
        if self.dual is not None:
            out["dual"] = {
                "gain_with_indexation": self.dual.gain_with_indexation,
                "tax_with_indexation": self.dual.tax_with_indexation,
                "gain_without_indexation": self.dual.gain_without_indexation,
                "tax_without_indexation": self.dual.tax_without_indexation,
                "recommended": self.dual.recommended,
                "savings": self.dual.savings,
                "index_missing": self.dual.index_missing,
            }
        return out


# ---------------------------------------------------------------------------
# Core calculation
# ---------------------------------------------------------------------------

def _indexed_cost(
    lot: CapitalGainLot, cii: Mapping[str, int]
) -> Tuple[float, bool]:
    """Return (cost, index_missing)."""
    start = cost_inflation_index(lot.acquisition_date, cii)
    end = cost_inflation_index(lot.disposal_date, cii)
    if not start or not end:
        warnings.warn(
            f"No cost inflation index for {fiscal_year(lot.acquisition_date)} or "
            f"{fiscal_year(lot.disposal_date)}; using the unindexed cost.",
            UserWarning
        )
        return float(lot.purchase_price), True
    return lot.purchase_price * end / start, False


def _taxable(
    lot: CapitalGainLot,
    gain_type: GainType,
    cost: float,
    asset_exemptions: Mapping[AssetType, float],
) -> Tuple[float, float, float]:
    """Return (gross_gain, exemption_applied, taxable_gain)."""
    gross = lot.disposal_price - cost - lot.expenses
    remaining = max(0.0, gross)
    applied = 0.0
    if gain_type == GainType.LONG_TERM:
        class_exempt = min(remaining, asset_exemptions.get(lot.asset_type, 0.0))
        remaining -= class_exempt
        applied += class_exempt
    lot_exempt = min(remaining, lot.exemption)
    remaining -= lot_exempt
    applied += lot_exempt
    return gross, applied, remaining


def classify_and_tax(
    lot: CapitalGainLot,
    rate_table: Optional[Mapping[RateKey, float]] = None,
    holding_thresholds: Optional[Mapping[AssetType, int]] = None,
    *,
    cutovers: Sequence[IndexationCutover] = DEFAULT_CUTOVERS,
    cii: Optional[Mapping[str, int]] = None,
    asset_exemptions: Optional[Mapping[AssetType, float]] = None,
    slab_proxy_rate: float = SLAB_PROXY_RATE,
) -> GainAssessment:
    """
    Classify a lot and compute its taxable gain and tax.

    Parameters
    ----------
    lot : CapitalGainLot
    rate_table : mapping, optional
        (asset, gain type, indexed) → rate. Defaults to RATE_TABLE.
    holding_thresholds : mapping, optional
        asset → LTCG threshold in months. Defaults to HOLDING_THRESHOLDS.
    cutovers : sequence of IndexationCutover
        Classes that get the dual indexed/unindexed computation.
    cii : mapping, optional
        Fiscal-year label → cost inflation index.
    asset_exemptions : mapping, optional
        asset → LTCG exemption. Defaults to ASSET_EXEMPTIONS.
    slab_proxy_rate : float
        Rate used for combinations absent from the table.

    Returns
    -------
    GainAssessment

    Notes
    -----
    Indexation is honoured only when requested, LONG_TERM, and the table
    carries an indexed rate for the asset class. A missing index year falls
    back to the unindexed cost with ``index_missing=True``.
    """
    rates = RATE_TABLE if rate_table is None else rate_table
    thresholds = HOLDING_THRESHOLDS if holding_thresholds is None else holding_thresholds
    cii = COST_INFLATION_INDEX if cii is None else cii
    exemptions = ASSET_EXEMPTIONS if asset_exemptions is None else asset_exemptions

    months = lot.holding_months
    threshold = thresholds.get(lot.asset_type)
    if threshold is None:
        raise ValidationError(f"No holding threshold configured for {lot.asset_type.value}.")
    gain_type = GainType.LONG_TERM if months >= threshold else GainType.SHORT_TERM

    index = (
        lot.use_indexation
        and gain_type == GainType.LONG_TERM
        and (lot.asset_type, gain_type, True) in rates
    )
    cost, missing = float(lot.purchase_price), False
    if index:
        cost, missing = _indexed_cost(lot, cii)
    indexed = index and not missing

    gross, applied, taxable = _taxable(lot, gain_type, cost, exemptions)
    rate = rates.get((lot.asset_type, gain_type, indexed), slab_proxy_rate)
    tax = taxable * rate

    dual = None
    for rule in cutovers:
        if rule.applies_to(lot, gain_type):
            if not index:
                cost_idx, missing_idx = _indexed_cost(lot, cii)
            else:
                cost_idx, missing_idx = cost, missing
            dual = _dual_computation(
                lot, gain_type, rule, None if missing_idx else cost_idx, exemptions
            )
            break

    logger.debug(
        "Lot %s: %d months, %s, taxable %.2f at %.3f",
        lot.name or lot.asset_type.value, months, gain_type.value, taxable, rate
    )
    return GainAssessment(
        holding_months=months,
        gain_type=gain_type,
        cost_basis=round_money(cost),
        gross_gain=round_money(gross),
        exemption_applied=round_money(applied),
        taxable_gain=round_money(taxable),
        rate=rate,
        tax=round_money(tax),
        indexation_applied=indexed,
        index_missing=missing,
        dual=dual,
    )


def _dual_computation(
    lot: CapitalGainLot,
    gain_type: GainType,
    rule: IndexationCutover,
    indexed_cost: Optional[float],
    exemptions: Mapping[AssetType, float],
) -> DualComputation:
    _, _, gain_plain = _taxable(lot, gain_type, float(lot.purchase_price), exemptions)
    gain_idx = tax_idx = None
    if indexed_cost is not None:
        _, _, gain = _taxable(lot, gain_type, indexed_cost, exemptions)
        gain_idx = round_money(gain)
        tax_idx = round_money(gain * rule.indexed_rate)
    return DualComputation(
        gain_with_indexation=gain_idx,
        tax_with_indexation=tax_idx,
        gain_without_indexation=round_money(gain_plain),
        tax_without_indexation=round_money(gain_plain * rule.unindexed_rate),
    )


# ---------------------------------------------------------------------------
# Batch assessment
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BatchAssessment:
    """
    Results of assess_lots.

    ``assessments[i]`` is None exactly when ``errors`` holds an entry for i.
    """
    assessments: List[Optional[GainAssessment]]
    errors: Dict[int, str] = field(default_factory=dict)

    @property
    def totals(self) -> Dict[str, Dict[str, float]]:
        """Taxable gain and tax summed by gain type."""
        out = {g.value: {"taxable_gain": 0.0, "tax": 0.0} for g in GainType}
        for a in self.assessments:
            if a is None:
                continue
            out[a.gain_type.value]["taxable_gain"] += a.taxable_gain
            out[a.gain_type.value]["tax"] += a.tax
        return out

    @property
    def total_tax(self) -> float:
        return sum(a.tax for a in self.assessments if a is not None)


def assess_lots(
    lots: Iterable[Union[CapitalGainLot, Mapping]],
    **kwargs,
) -> BatchAssessment:
    """
    Assess many lots; a lot that fails validation does not affect the others.

    Lots may be CapitalGainLot instances or plain records accepted by
    CapitalGainLot.from_dict. Keyword arguments go to classify_and_tax.
    """
    assessments: List[Optional[GainAssessment]] = []
    errors: Dict[int, str] = {}
    for i, raw in enumerate(lots):
        try:
            lot = raw if isinstance(raw, CapitalGainLot) else CapitalGainLot.from_dict(raw)
            assessments.append(classify_and_tax(lot, **kwargs))
        except ValidationError as exc:
            logger.debug("Lot %d rejected: %s", i, exc)
            assessments.append(None)
            errors[i] = str(exc)
    return BatchAssessment(assessments=assessments, errors=errors)
