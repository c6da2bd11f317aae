"""Monte Carlo retirement simulator for FirePlan

Simulates many independent yearly corpus paths under random equity and debt
returns, a fixed annual withdrawal and a constant equity allocation, then
aggregates survival and percentile statistics.

Model
-----
    r_eq ~ N(μ_eq, σ_eq),  r_debt ~ N(μ_debt, σ_debt)           (independent)
    r_t  = a · r_eq + (1 − a) · r_debt
    C_t  = C_{t−1} · (1 + r_t) − W

A path whose corpus reaches zero or below is clamped to zero and frozen
there for the rest of the horizon; it counts as a failure.

Design goals
------------
- Deterministic by default (explicit RNG seed).
- All normal draws are taken up front as one (runs, years, 2) array, so
  the vectorized and the sequential mode consume identical inputs and
  return identical results.

Typical usage
-------------
>>> sim = MonteCarloSimulator(SimulationConfig(runs=2_000, years=30, seed=42))
>>> result = sim.run(starting_corpus=25_000_000, annual_withdrawal=900_000,
...                  equity_allocation=0.6)
>>> result.paths.shape
(2000, 31)
>>> 0.0 <= result.success_rate <= 1.0
True
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .config import SimulationConfig
from .constants import DEFAULT_PERCENTILES, MONTHS_PER_YEAR, SCENARIO_PERCENTILES
from .exceptions import ValidationError
from .snapshot import FinancialSnapshot
from .types import PercentileRowDict
from .utils import check_allocation, check_non_negative, percentile, percentile_columns
from .withdrawal import FixedSWR

__all__ = [
    "SimulationResult",
    "MonteCarloSimulator",
    "interpret",
    "withdrawal_for",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def interpret(success_rate: float) -> str:
    """Qualitative band for a success rate given as a fraction."""
    if success_rate >= 0.95:
        return "excellent"
    if success_rate >= 0.85:
        return "good"
    if success_rate >= 0.70:
        return "fair"
    return "poor"


def withdrawal_for(snapshot: FinancialSnapshot, params: Optional[FixedSWR] = None) -> float:
    """
    First-year withdrawal for a snapshot: the SWR amount, floored at the
    current annual expenses.
    """
    params = params or FixedSWR()
    return max(snapshot.corpus * params.rate, snapshot.monthly_expenses * MONTHS_PER_YEAR)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SimulationResult:
    paths: np.ndarray                      # (runs, years + 1)
    success: np.ndarray                    # (runs,) bool
    percentiles: List[PercentileRowDict]
    terminal_percentiles: Dict[str, float]
    scenarios: Dict[str, np.ndarray]
    starting_corpus: float
    annual_withdrawal: float
    equity_allocation: float
    seed: Optional[int] = None
    depletion_years: np.ndarray = field(default_factory=lambda: np.empty(0))

    @property
    def runs(self) -> int:
        return int(self.paths.shape[0])

    @property
    def years(self) -> int:
        return int(self.paths.shape[1] - 1)

    @property
    def success_rate(self) -> float:
        return float(self.success.mean()) if self.runs else 0.0

    @property
    def status(self) -> str:
        return interpret(self.success_rate)

    @property
    def terminal(self) -> np.ndarray:
        return self.paths[:, -1]

    def percentile_frame(self) -> pd.DataFrame:
        """Per-year percentile table indexed by year."""
        return pd.DataFrame(self.percentiles).set_index("year")

    def to_dict(self, include_paths: bool = False) -> dict:
        out = {
            "runs": self.runs,
            "years": self.years,
            "seed": self.seed,
            "starting_corpus": self.starting_corpus,
            "annual_withdrawal": self.annual_withdrawal,
            "equity_allocation": self.equity_allocation,
            "success_rate": self.success_rate,
            "status": self.status,
            "terminal_percentiles": dict(self.terminal_percentiles),
            "percentiles": [dict(row) for row in self.percentiles],
            "scenarios": {k: v.tolist() for k, v in self.scenarios.items()},
        }
        if include_paths:
            out["paths"] = self.paths.tolist()
        return out


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class MonteCarloSimulator:
    """Seeded Monte Carlo engine over yearly corpus paths."""

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.cfg = config or SimulationConfig()

    # -------------------- Draws --------------------
    def _portfolio_returns(self, runs: int, years: int, equity_allocation: float) -> np.ndarray:
        """Blended annual returns, shape (runs, years)."""
        m = self.cfg.market
        rng = np.random.default_rng(self.cfg.seed)
        z = rng.standard_normal((runs, years, 2))
        equity = m.equity_mean + m.equity_std * z[:, :, 0]
        debt = m.debt_mean + m.debt_std * z[:, :, 1]
        return equity_allocation * equity + (1.0 - equity_allocation) * debt

    # -------------------- Path kernels --------------------
    @staticmethod
    def _paths_vectorized(start: float, withdrawal: float, returns: np.ndarray) -> np.ndarray:
        runs, years = returns.shape
        paths = np.zeros((runs, years + 1))
        paths[:, 0] = start
        alive = np.ones(runs, dtype=bool)
        for t in range(1, years + 1):
            corpus = paths[:, t - 1] * (1.0 + returns[:, t - 1]) - withdrawal
            failed = alive & (corpus <= 0)
            alive &= ~failed
            paths[:, t] = np.where(alive, corpus, 0.0)
        return paths

    @staticmethod
    def _paths_sequential(start: float, withdrawal: float, returns: np.ndarray) -> np.ndarray:
        runs, years = returns.shape
        paths = np.zeros((runs, years + 1))
        for i in range(runs):
            paths[i, 0] = start
            corpus = paths[i, 0]
            for t in range(1, years + 1):
                corpus = corpus * (1.0 + returns[i, t - 1]) - withdrawal
                if corpus <= 0:
                    break  # remaining years stay at zero
                paths[i, t] = corpus
        return paths

    # -------------------- Run --------------------
    def run(
        self,
        starting_corpus: float,
        annual_withdrawal: float,
        years: Optional[int] = None,
        equity_allocation: float = 0.6,
        runs: Optional[int] = None,
    ) -> SimulationResult:
        """
        Simulate ``runs`` paths of ``years`` years.

        Parameters
        ----------
        starting_corpus, annual_withdrawal : float
            Non-negative amounts; the withdrawal stays constant.
        years, runs : int, optional
            Override the configured horizon and path count.
        equity_allocation : float
            Equity fraction in [0, 1]; the remainder is debt.

        Returns
        -------
        SimulationResult
        """
        check_non_negative("starting_corpus", starting_corpus)
        check_non_negative("annual_withdrawal", annual_withdrawal)
        check_allocation(equity_allocation, name="equity_allocation")
        years = self.cfg.years if years is None else int(years)
        runs = self.cfg.runs if runs is None else int(runs)
        if years <= 0:
            raise ValidationError(f"years must be positive (got {years}).")
        if runs <= 0:
            raise ValidationError(f"runs must be positive (got {runs}).")

        returns = self._portfolio_returns(runs, years, equity_allocation)
        kernel = self._paths_vectorized if self.cfg.mode == "vectorized" else self._paths_sequential
        logger.debug("Simulating %d runs x %d years (%s)", runs, years, self.cfg.mode)
        paths = kernel(float(starting_corpus), float(annual_withdrawal), returns)

        success = paths[:, -1] > 0
        # first zero year per failed path, -1 for survivors
        depleted = np.where(success, -1, np.argmax(paths <= 0, axis=1))

        by_p = {f"p{int(p)}": percentile_columns(paths, p) for p in DEFAULT_PERCENTILES}
        rows: List[PercentileRowDict] = [
            {"year": year, **{k: float(v[year]) for k, v in by_p.items()}}  # type: ignore[misc]
            for year in range(years + 1)
        ]

        terminal = paths[:, -1]
        terminal_pct = {
            f"p{int(p)}": percentile(terminal, p)
            for p in sorted(set(DEFAULT_PERCENTILES) | set(SCENARIO_PERCENTILES.values()))
        }

        order = np.argsort(terminal, kind="stable")
        scenarios = {}
        for name, p in SCENARIO_PERCENTILES.items():
            idx = min(runs - 1, int(math.floor(runs * p / 100.0)))
            scenarios[name] = paths[order[idx]].copy()

        result = SimulationResult(
            paths=paths,
            success=success,
            percentiles=rows,
            terminal_percentiles=terminal_pct,
            scenarios=scenarios,
            starting_corpus=float(starting_corpus),
            annual_withdrawal=float(annual_withdrawal),
            equity_allocation=float(equity_allocation),
            seed=self.cfg.seed,
            depletion_years=depleted,
        )
        logger.debug("Success rate %.4f (%s)", result.success_rate, result.status)
        return result

    def run_snapshot(
        self,
        snapshot: FinancialSnapshot,
        params: Optional[FixedSWR] = None,
        years: Optional[int] = None,
        runs: Optional[int] = None,
    ) -> SimulationResult:
        """Simulate a snapshot's corpus with its derived withdrawal and allocation."""
        return self.run(
            starting_corpus=snapshot.corpus,
            annual_withdrawal=withdrawal_for(snapshot, params),
            years=years,
            equity_allocation=snapshot.resolved_equity_allocation,
            runs=runs,
        )
