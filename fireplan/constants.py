"""
Global constants for FirePlan.

Purpose
-------
Centralizes default values and magic numbers used throughout the FirePlan
calculators. Market and policy assumptions reflect Indian conditions
(FY 2025-26); every calculator accepts overrides.

Usage
-----
>>> from fireplan.constants import DEFAULT_SWR, MAX_PAYOFF_MONTHS
>>> fire_number(600_000, DEFAULT_SWR)
17142857.14...

Categories
----------
- Time: months per year, iteration caps
- FIRE: withdrawal rate, expected returns, inflation, variant multipliers
- Simulation: asset-class return assumptions, runs, seed, percentiles
- Tax: slab-proxy rate
"""

from typing import Dict, Tuple

__all__ = [
    # Time
    "MONTHS_PER_YEAR",
    "DAYS_PER_MONTH",
    "MAX_TARGET_MONTHS",
    "MAX_PAYOFF_MONTHS",
    "CROSSOVER_MONTHS",
    # FIRE
    "DEFAULT_SWR",
    "DEFAULT_EXPECTED_RETURN",
    "DEFAULT_INFLATION",
    "DEFAULT_FIRE_MULTIPLIERS",
    "DEFAULT_PART_TIME_INCOME_SHARE",
    # Simulation
    "EQUITY_MEAN_RETURN",
    "EQUITY_STD_DEV",
    "DEBT_MEAN_RETURN",
    "DEBT_STD_DEV",
    "DEFAULT_RUNS",
    "DEFAULT_YEARS",
    "DEFAULT_SEED",
    "DEFAULT_EQUITY_ALLOCATION",
    "DEFAULT_PERCENTILES",
    "SCENARIO_PERCENTILES",
    # Tax
    "SLAB_PROXY_RATE",
]


# =============================================================================
# Time
# =============================================================================

MONTHS_PER_YEAR: int = 12
"""Number of months in a year."""

DAYS_PER_MONTH: int = 30
"""Day count used for holding-period months (floor(days / 30))."""

MAX_TARGET_MONTHS: int = 1200
"""Iteration cap for years-to-target (100 years)."""

MAX_PAYOFF_MONTHS: int = 360
"""Horizon cap for multi-debt payoff simulation (30 years)."""

CROSSOVER_MONTHS: int = 360
"""Projection length for the passive-income crossover (30 years)."""


# =============================================================================
# FIRE Defaults
# =============================================================================

DEFAULT_SWR: float = 0.035
"""Default safe withdrawal rate (3.5%, India-adjusted vs. the US 4%)."""

DEFAULT_EXPECTED_RETURN: float = 0.12
"""Default expected annual return during accumulation."""

DEFAULT_INFLATION: float = 0.06
"""Default annual inflation."""

DEFAULT_FIRE_MULTIPLIERS: Dict[str, float] = {
    "lean": 0.6,
    "regular": 1.0,
    "fat": 1.5,
}
"""Multipliers applied to the base FIRE number for each variant."""

DEFAULT_PART_TIME_INCOME_SHARE: float = 0.3
"""Share of current monthly income assumed for Barista FIRE part-time work."""


# =============================================================================
# Simulation Defaults
# =============================================================================

EQUITY_MEAN_RETURN: float = 0.12
"""Mean annual equity return."""

EQUITY_STD_DEV: float = 0.20
"""Annual equity return standard deviation."""

DEBT_MEAN_RETURN: float = 0.07
"""Mean annual debt return."""

DEBT_STD_DEV: float = 0.03
"""Annual debt return standard deviation."""

DEFAULT_RUNS: int = 10_000
"""Default number of Monte Carlo paths."""

DEFAULT_YEARS: int = 30
"""Default simulation horizon in years."""

DEFAULT_SEED: int = 42
"""Default random seed for reproducibility."""

DEFAULT_EQUITY_ALLOCATION: float = 0.6
"""Equity fraction used when holdings do not reveal an allocation."""

DEFAULT_PERCENTILES: Tuple[float, ...] = (10, 25, 50, 75, 90)
"""Percentiles reported per simulated year."""

SCENARIO_PERCENTILES: Dict[str, float] = {
    "worst": 5,
    "poor": 10,
    "median": 50,
    "good": 90,
    "best": 95,
}
"""Named scenario paths picked by terminal corpus rank."""


# =============================================================================
# Tax
# =============================================================================

SLAB_PROXY_RATE: float = 0.30
"""Rate used when a gain is taxed at the investor's slab rate."""
