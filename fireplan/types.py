"""
Type definitions for FirePlan.

Purpose
-------
TypedDict definitions for the plain records FirePlan returns to the calling
layer. Records are ordinary dicts so they serialize to JSON without adapters.

Type Definitions
----------------
ScheduleRowDict
    One amortization period: {"month", "installment", "principal_component", ...}

PercentileRowDict
    Corpus percentiles for one simulated year: {"year", "p10", ..., "p90"}

ScoreFactorDict
    One freedom-score factor: {"name", "value", "target", "weight", ...}

CrossoverPointDict
    One month of the crossover projection: {"month", "corpus", ...}
"""

from typing_extensions import Literal, TypedDict

__all__ = [
    "ScheduleRowDict",
    "PercentileRowDict",
    "ScoreFactorDict",
    "CrossoverPointDict",
    "FactorStatus",
]


FactorStatus = Literal["excellent", "good", "fair", "poor"]


class ScheduleRowDict(TypedDict):
    """
    One period of an amortization schedule.

    Attributes
    ----------
    month : int
        1-indexed period number.
    installment : float
        Amount paid in the period (principal + interest).
    principal_component : float
        Part of the installment that reduces the balance.
    interest_component : float
        Interest accrued on the opening balance.
    balance : float
        Closing balance (never negative).
    """

    month: int
    installment: float
    principal_component: float
    interest_component: float
    balance: float


class PercentileRowDict(TypedDict):
    """
    Corpus distribution for one simulated year.

    Examples
    --------
    >>> row: PercentileRowDict = {
    ...     "year": 0, "p10": 1e7, "p25": 1e7, "p50": 1e7, "p75": 1e7, "p90": 1e7
    ... }
    """

    year: int
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float


class ScoreFactorDict(TypedDict):
    """One weighted factor of a freedom-score domain."""

    name: str
    value: float
    target: float
    weight: float
    points: float
    status: FactorStatus


class CrossoverPointDict(TypedDict):
    """One month of a passive-income vs. expenses projection."""

    month: int
    corpus: float
    passive_income: float
    expenses: float
    is_crossover: bool
