"""
Pytest configuration and fixtures for the FirePlan test suite.

This module provides reusable fixtures for testing all FirePlan components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

import json
from datetime import date

import pytest

from fireplan.capital_gains import AssetType, CapitalGainLot
from fireplan.config import SimulationConfig
from fireplan.serialization import save_snapshot
from fireplan.snapshot import Debt, FinancialSnapshot


# ---------------------------------------------------------------------------
# Date / Simulation Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def start_date() -> date:
    """Standard start date for payoff projections."""
    return date(2025, 1, 1)


@pytest.fixture
def seed() -> int:
    """Standard random seed for reproducibility."""
    return 42


@pytest.fixture
def small_sim_config(seed) -> SimulationConfig:
    """Fast Monte Carlo configuration: 500 runs over 20 years."""
    return SimulationConfig(runs=500, years=20, seed=seed)


# ---------------------------------------------------------------------------
# Debt Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def credit_card() -> Debt:
    """Small, expensive debt: 50,000 at 24%."""
    return Debt(name="credit_card", balance=50_000, annual_rate=0.24, minimum_payment=2_500)


@pytest.fixture
def car_loan() -> Debt:
    """Larger, cheaper debt: 200,000 at 10%."""
    return Debt(name="car_loan", balance=200_000, annual_rate=0.10, minimum_payment=5_000)


@pytest.fixture
def debts(credit_card, car_loan):
    """Two debts where avalanche and snowball pick the same first target."""
    return [car_loan, credit_card]


# ---------------------------------------------------------------------------
# Snapshot Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def snapshot(debts) -> FinancialSnapshot:
    """
    Mid-career household.

    Income 200,000/month, expenses 100,000/month, 5M corpus (80% equity),
    two debts and partial protection cover.
    """
    return FinancialSnapshot(
        current_age=35,
        target_retirement_age=50,
        monthly_income=200_000,
        monthly_expenses=100_000,
        holdings={"equity": 3_000_000, "mutual_fund": 1_000_000, "ppf": 1_000_000},
        debts=tuple(debts),
        income_streams={"salary": 2_400_000},
        deductions={"80C": 150_000, "80D": 25_000},
        emergency_fund=600_000,
        life_cover=12_000_000,
        health_cover=500_000,
        budget_adherence=80,
        net_worth_history=(4_000_000, 4_500_000, 5_000_000),
    )


@pytest.fixture
def minimal_snapshot() -> FinancialSnapshot:
    """Snapshot with only the required fields and an explicit corpus."""
    return FinancialSnapshot(
        current_age=30,
        target_retirement_age=50,
        monthly_income=150_000,
        monthly_expenses=60_000,
        current_corpus=2_000_000,
        equity_allocation=0.6,
    )


@pytest.fixture
def snapshot_file(tmp_path, snapshot):
    """Snapshot saved as JSON."""
    path = tmp_path / "snapshot.json"
    save_snapshot(snapshot, path)
    return path


@pytest.fixture
def debt_free_snapshot_file(tmp_path, minimal_snapshot):
    """Snapshot without debts saved as JSON."""
    path = tmp_path / "debt_free.json"
    save_snapshot(minimal_snapshot, path)
    return path


# ---------------------------------------------------------------------------
# Capital Gains Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def equity_lot() -> CapitalGainLot:
    """Listed equity held 13 months with a 500,000 gain."""
    return CapitalGainLot(
        asset_type=AssetType.EQUITY,
        acquisition_date=date(2024, 1, 1),
        purchase_price=1_000_000,
        disposal_date=date(2025, 2, 5),
        disposal_price=1_500_000,
        name="index_fund",
    )


@pytest.fixture
def property_lot() -> CapitalGainLot:
    """Property bought before the indexation cutover and sold in FY 2025-26."""
    return CapitalGainLot(
        asset_type=AssetType.PROPERTY,
        acquisition_date=date(2015, 6, 1),
        purchase_price=5_000_000,
        disposal_date=date(2025, 6, 1),
        disposal_price=9_000_000,
        use_indexation=True,
        name="flat",
    )


@pytest.fixture
def lots_file(tmp_path, equity_lot, property_lot):
    """JSON file with two valid lots and one malformed record."""
    records = [equity_lot.to_dict(), property_lot.to_dict(), {"asset_type": "equity"}]
    path = tmp_path / "lots.json"
    with open(path, "w") as f:
        json.dump({"lots": records}, f)
    return path
