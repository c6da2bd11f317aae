"""
Configuration management module for FirePlan.

Purpose
-------
Centralized configuration using Pydantic models for type-safe parameter
management, validation, and serialization. Tax regimes, market and FIRE
assumptions, simulation parameters and the JSON shape of a financial
snapshot are all expressed here; environment-driven settings live in
AppSettings.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Serializable: Easy conversion to/from JSON for config files
- Data, not code: a new tax jurisdiction is a new TaxRegimeConfig value

Example
-------
>>> from fireplan.config import TaxRegimeConfig, TaxBracket, SimulationConfig
>>> regime = TaxRegimeConfig(
...     name="flat",
...     brackets=[TaxBracket(lower=0, upper=None, rate=0.1)],
... )
>>> sim_config = SimulationConfig(runs=1000, seed=42)
>>> SimulationConfig.model_validate_json(sim_config.model_dump_json()) == sim_config
True
"""

from __future__ import annotations
from typing import Dict, List, Literal, Optional, Sequence, Union
import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Annotated

from .constants import (
    DEBT_MEAN_RETURN,
    DEBT_STD_DEV,
    DEFAULT_EXPECTED_RETURN,
    DEFAULT_FIRE_MULTIPLIERS,
    DEFAULT_INFLATION,
    DEFAULT_PART_TIME_INCOME_SHARE,
    DEFAULT_RUNS,
    DEFAULT_SEED,
    DEFAULT_SWR,
    DEFAULT_YEARS,
    EQUITY_MEAN_RETURN,
    EQUITY_STD_DEV,
)
from .exceptions import BracketTableError

__all__ = [
    "TaxBracket",
    "SurchargeBracket",
    "TaxRegimeConfig",
    "validate_brackets",
    "MarketAssumptions",
    "FireAssumptions",
    "SimulationConfig",
    "DebtConfig",
    "SnapshotConfig",
    "FixedSWRConfig",
    "BucketConfig",
    "VariablePercentageConfig",
    "GuardrailsConfig",
    "WithdrawalStrategyConfig",
    "AppSettings",
]


# ---------------------------------------------------------------------------
# Tax Configuration
# ---------------------------------------------------------------------------

class TaxBracket(BaseModel):
    """
    One progressive tax slab.

    Income in (lower, upper] is taxed at ``rate``. ``upper=None`` marks the
    open top bracket.

    Examples
    --------
    >>> TaxBracket(lower=400_000, upper=800_000, rate=0.05)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    lower: float = Field(ge=0, description="Exclusive lower bound")
    upper: Optional[float] = Field(
        default=None,
        description="Inclusive upper bound (None = unbounded)"
    )
    rate: float = Field(ge=0, le=1, description="Marginal rate as a fraction")

    def contains(self, income: float) -> bool:
        """True when lower < income <= upper."""
        return income > self.lower and (self.upper is None or income <= self.upper)


class SurchargeBracket(TaxBracket):
    """Surcharge band: the whole base tax is surcharged at ``rate``."""


def validate_brackets(brackets: Sequence[TaxBracket], *, label: str = "brackets") -> None:
    """
    Reject bracket tables with gaps, overlaps or non-increasing bounds.

    Rules
    -----
    - The first bracket starts at 0
    - Each bracket's lower bound equals the previous bracket's upper bound
    - upper > lower for every bounded bracket
    - Only the last bracket may be unbounded

    Raises
    ------
    BracketTableError
        On any violation.
    """
    if not brackets:
        raise BracketTableError(f"{label} must contain at least one bracket.")
    if brackets[0].lower != 0:
        raise BracketTableError(
            f"{label}[0] must start at 0 (starts at {brackets[0].lower})."
        )
    for i, b in enumerate(brackets):
        last = i == len(brackets) - 1
        if b.upper is None and not last:
            raise BracketTableError(
                f"{label}[{i}] is unbounded but is not the last bracket."
            )
        if b.upper is not None and b.upper <= b.lower:
            raise BracketTableError(
                f"{label}[{i}] upper ({b.upper}) must exceed lower ({b.lower})."
            )
        if i > 0:
            prev = brackets[i - 1]
            if b.lower > prev.upper:
                raise BracketTableError(
                    f"{label}[{i}] starts at {b.lower} but {label}[{i - 1}] "
                    f"ends at {prev.upper} (gap)."
                )
            if b.lower < prev.upper:
                raise BracketTableError(
                    f"{label}[{i}] starts at {b.lower} but {label}[{i - 1}] "
                    f"ends at {prev.upper} (overlap)."
                )


class TaxRegimeConfig(BaseModel):
    """
    Complete description of an income-tax regime.

    Attributes
    ----------
    name : str
        Regime identifier (e.g., "old", "new").
    brackets : List[TaxBracket]
        Contiguous, increasing progressive slabs.
    standard_deduction : float
        Flat deduction always subtracted from gross income.
    rebate_threshold : float
        Taxable income at or below which the tax is zero.
    surcharge : List[SurchargeBracket]
        Surcharge schedule keyed by taxable income (may be empty).
    cess_rate : float
        Flat cess applied on (base tax + surcharge).
    deduction_caps : Dict[str, Optional[float]]
        Itemised deductions the regime allows, with their ceilings
        (None = uncapped). Sections absent from the map are not allowed.

    Examples
    --------
    >>> regime = TaxRegimeConfig(
    ...     name="toy",
    ...     brackets=[
    ...         TaxBracket(lower=0, upper=100_000, rate=0.0),
    ...         TaxBracket(lower=100_000, upper=None, rate=0.2),
    ...     ],
    ...     cess_rate=0.04,
    ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=50, description="Regime name")
    brackets: List[TaxBracket] = Field(description="Progressive slabs")
    standard_deduction: float = Field(default=0.0, ge=0)
    rebate_threshold: float = Field(default=0.0, ge=0)
    surcharge: List[SurchargeBracket] = Field(default_factory=list)
    cess_rate: float = Field(default=0.0, ge=0, le=1)
    deduction_caps: Dict[str, Optional[float]] = Field(default_factory=dict)

    @field_validator("deduction_caps")
    @classmethod
    def validate_caps(cls, v):
        """Ensure deduction ceilings are non-negative."""
        for section, cap in v.items():
            if cap is not None and cap < 0:
                raise ValueError(f"deduction cap for {section!r} must be >= 0, got {cap}")
        return v

    @model_validator(mode="after")
    def validate_tables(self):
        """Ensure bracket and surcharge tables are contiguous."""
        validate_brackets(self.brackets, label="brackets")
        if self.surcharge:
            validate_brackets(self.surcharge, label="surcharge")
        return self


# ---------------------------------------------------------------------------
# Market / FIRE Assumptions
# ---------------------------------------------------------------------------

class MarketAssumptions(BaseModel):
    """
    Annual return distribution of each asset class.

    Examples
    --------
    >>> MarketAssumptions(equity_mean=0.10, equity_std=0.18)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    equity_mean: float = Field(default=EQUITY_MEAN_RETURN, ge=-0.5, le=1.0)
    equity_std: float = Field(default=EQUITY_STD_DEV, ge=0, le=2.0)
    debt_mean: float = Field(default=DEBT_MEAN_RETURN, ge=-0.5, le=1.0)
    debt_std: float = Field(default=DEBT_STD_DEV, ge=0, le=2.0)


class FireAssumptions(BaseModel):
    """Assumptions behind FIRE metrics (withdrawal rate, returns, inflation)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    safe_withdrawal_rate: float = Field(default=DEFAULT_SWR, gt=0, le=1)
    expected_return: float = Field(default=DEFAULT_EXPECTED_RETURN, ge=-0.5, le=1.0)
    inflation: float = Field(default=DEFAULT_INFLATION, ge=-0.5, le=1.0)
    multipliers: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_FIRE_MULTIPLIERS),
        description="FIRE variant multipliers (lean/regular/fat)"
    )
    part_time_income_share: float = Field(
        default=DEFAULT_PART_TIME_INCOME_SHARE, ge=0, le=1,
        description="Share of income assumed from part-time work (Barista FIRE)"
    )

    @field_validator("multipliers")
    @classmethod
    def validate_multipliers(cls, v):
        """Ensure multipliers are positive."""
        for name, m in v.items():
            if m <= 0:
                raise ValueError(f"multiplier {name!r} must be positive, got {m}")
        return v


# ---------------------------------------------------------------------------
# Simulation Configuration
# ---------------------------------------------------------------------------

class SimulationConfig(BaseModel):
    """
    Configuration for Monte Carlo simulation parameters.

    Attributes
    ----------
    runs : int
        Number of simulated paths (1-100,000).
    years : int
        Horizon in years (1-100).
    seed : int, optional
        Random seed for reproducibility. If None, draws fresh entropy.
    mode : str
        "vectorized" (numpy across paths) or "sequential" (one path at a time).
    market : MarketAssumptions
        Asset-class return assumptions.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    runs: int = Field(default=DEFAULT_RUNS, ge=1, le=100_000)
    years: int = Field(default=DEFAULT_YEARS, ge=1, le=100)
    seed: Optional[int] = Field(default=None)
    mode: Literal["vectorized", "sequential"] = Field(default="vectorized")
    market: MarketAssumptions = Field(default_factory=MarketAssumptions)


# ---------------------------------------------------------------------------
# Snapshot Configuration (JSON shape of FinancialSnapshot)
# ---------------------------------------------------------------------------

class DebtConfig(BaseModel):
    """Configuration for one outstanding debt (annual_rate as a fraction)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=100)
    balance: float = Field(ge=0)
    annual_rate: float = Field(ge=0, le=1)
    minimum_payment: float = Field(ge=0)
    remaining_months: Optional[int] = Field(default=None, ge=1)


class SnapshotConfig(BaseModel):
    """
    Validated JSON representation of a FinancialSnapshot.

    Examples
    --------
    >>> cfg = SnapshotConfig(
    ...     current_age=32, target_retirement_age=50,
    ...     monthly_income=200_000, monthly_expenses=80_000,
    ...     holdings={"equity": 3_000_000, "debt": 2_000_000},
    ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    current_age: int = Field(ge=0, le=120)
    target_retirement_age: int = Field(ge=0, le=120)
    monthly_income: float = Field(ge=0)
    monthly_expenses: float = Field(ge=0)
    expense_categories: Dict[str, float] = Field(default_factory=dict)
    holdings: Dict[str, float] = Field(default_factory=dict)
    current_corpus: Optional[float] = Field(default=None, ge=0)
    equity_allocation: Optional[float] = Field(default=None, ge=0, le=1)
    debts: List[DebtConfig] = Field(default_factory=list)
    income_streams: Dict[str, float] = Field(default_factory=dict)
    deductions: Dict[str, float] = Field(default_factory=dict)
    emergency_fund: float = Field(default=0.0, ge=0)
    life_cover: float = Field(default=0.0, ge=0)
    health_cover: float = Field(default=0.0, ge=0)
    budget_adherence: Optional[float] = Field(default=None, ge=0, le=100)
    net_worth_history: List[float] = Field(default_factory=list)

    @field_validator("target_retirement_age")
    @classmethod
    def validate_retirement_age(cls, v, info):
        """Ensure retirement age is not before current age."""
        current = info.data.get("current_age", 0)
        if v < current:
            raise ValueError(
                f"target_retirement_age ({v}) must be >= current_age ({current})"
            )
        return v


# ---------------------------------------------------------------------------
# Withdrawal Strategy Configuration
# ---------------------------------------------------------------------------

class FixedSWRConfig(BaseModel):
    """Fixed safe-withdrawal-rate strategy (rate as a fraction)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: Literal["fixed_swr"] = "fixed_swr"
    rate: float = Field(default=DEFAULT_SWR, gt=0, le=1)


class BucketConfig(BaseModel):
    """Cash/bond/equity bucket strategy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: Literal["bucket"] = "bucket"
    cash_years: float = Field(default=2, ge=0)
    bond_years: float = Field(default=5, ge=0)
    equity_percent: float = Field(default=60, ge=0, lt=100)


class VariablePercentageConfig(BaseModel):
    """Age-driven variable percentage withdrawal."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: Literal["variable_percentage"] = "variable_percentage"
    start_age: int = Field(default=50, ge=0, le=120)
    end_age: int = Field(default=95, ge=0, le=130)


class GuardrailsConfig(BaseModel):
    """Guyton-Klinger guardrails."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: Literal["guardrails"] = "guardrails"
    initial_rate: float = Field(default=0.052, gt=0, le=1)
    upper_guardrail: float = Field(default=1.2, gt=1)
    lower_guardrail: float = Field(default=0.8, gt=0, lt=1)
    max_increase: float = Field(default=1.1, ge=1)
    max_decrease: float = Field(default=0.9, gt=0, le=1)


WithdrawalStrategyConfig = Annotated[
    Union[FixedSWRConfig, BucketConfig, VariablePercentageConfig, GuardrailsConfig],
    Field(discriminator="strategy"),
]


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    are prefixed with FIREPLAN_ (e.g., FIREPLAN_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    default_seed : int, optional
        Seed used by the CLI when none is given
    default_runs : int
        Monte Carlo path count used by the CLI when none is given
    max_runs : int
        Upper bound the CLI enforces on requested path counts

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'WARNING'
    """

    model_config = SettingsConfigDict(
        env_prefix="FIREPLAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    default_seed: Optional[int] = Field(
        default=DEFAULT_SEED,
        description="Seed used when none is supplied"
    )
    default_runs: int = Field(
        default=DEFAULT_RUNS,
        ge=1,
        le=100_000,
        description="Default Monte Carlo paths"
    )
    max_runs: int = Field(
        default=50_000,
        ge=1,
        le=100_000,
        description="Largest path count accepted by the CLI"
    )
    as_of: Optional[datetime.date] = Field(
        default=None,
        description="Reference date for payoff dates (None = today)"
    )
