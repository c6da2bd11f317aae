"""
Unit tests for score.py module.

Tests factor scoring, domain composition and the freedom-score aggregator.
"""

import pytest

from fireplan.amortization import simulate_payoff
from fireplan.config import SimulationConfig
from fireplan.score import Domain, Factor, FreedomScoreAggregator, score_status
from fireplan.simulation import MonteCarloSimulator
from fireplan.snapshot import FinancialSnapshot
from fireplan.withdrawal import FixedSWR


class TestFactor:
    """Test factor points and status."""

    def test_points_proportional(self):
        """Points are value / target × weight."""
        f = Factor("x", 25, 50, 10, (50, 30, 15))
        assert f.points == pytest.approx(5)
        assert f.status == "fair"

    def test_points_capped(self):
        """Points never exceed the weight."""
        assert Factor("x", 200, 50, 10, (50, 30, 15)).points == 10

    def test_negative_value_floored(self):
        """Negative values earn nothing."""
        assert Factor("x", -5, 50, 10, (50, 30, 15)).points == 0

    def test_status_bands(self):
        """Status follows the factor's bands."""
        assert Factor("x", 60, 50, 10, (50, 30, 15)).status == "excellent"
        assert Factor("x", 10, 50, 10, (50, 30, 15)).status == "poor"


class TestScoreStatus:
    """Test total-score labels."""

    @pytest.mark.parametrize("total, label", [
        (90, "Excellent"), (85, "Excellent"), (70, "Good"),
        (55, "Fair"), (30, "Developing"), (10, "Starting"),
    ])
    def test_labels(self, total, label):
        """Labels at 85 / 70 / 50 / 30."""
        assert score_status(total) == label


class TestFreedomScoreAggregator:
    """Test the aggregated score."""

    def test_bounds(self, snapshot):
        """Total is 0-100 and each domain 0-25."""
        result = FreedomScoreAggregator().score(snapshot)
        assert 0 <= result.total <= 100
        assert set(result.domains) == set(Domain)
        for d in result.domains.values():
            assert 0 <= d.score <= 25
        assert result.total == sum(d.score for d in result.domains.values())

    def test_save_domain(self, snapshot):
        """50% savings and 80% adherence: 15 + 80/90 × 10."""
        result = FreedomScoreAggregator().score(snapshot)
        assert result.domains[Domain.SAVE].score == round(15 + 80 / 90 * 10)

    def test_grow_domain(self, snapshot):
        """Equity and debt-like holdings without retirement accounts score 66 diversification."""
        grow = FreedomScoreAggregator().score(snapshot).domains[Domain.GROW]
        factors = {f.name: f for f in grow.factors}
        assert factors["Diversification"].value == 66
        assert factors["Net Worth Growth"].value == pytest.approx(75)

    def test_empty_household(self):
        """A household with nothing scores low but valid."""
        snap = FinancialSnapshot(25, 60, 0, 0)
        result = FreedomScoreAggregator().score(snap)
        assert 0 <= result.total <= 100
        assert result.domains[Domain.GROW].factors[1].value == 50

    def test_debt_free_full_points(self, minimal_snapshot):
        """No debt earns the full debt-freedom weight."""
        protect = FreedomScoreAggregator().score(minimal_snapshot).domains[Domain.PROTECT]
        debt = next(f for f in protect.factors if f.name == "Debt Freedom")
        assert debt.points == 6

    def test_payoff_result_used(self, snapshot, debts, start_date):
        """A supplied payoff result drives the debt-freedom factor."""
        payoff = simulate_payoff(debts, extra_monthly_payment=5_000, start_date=start_date)
        protect = FreedomScoreAggregator().score(snapshot, payoff=payoff).domains[Domain.PROTECT]
        debt = next(f for f in protect.factors if f.name == "Debt Freedom")
        assert debt.value == pytest.approx(100 * (1 - payoff.months / 360))

    def test_ready_without_simulation(self, snapshot):
        """Without a simulation FIRE progress carries 20 points."""
        ready = FreedomScoreAggregator().score(snapshot).domains[Domain.READY]
        assert sum(f.weight for f in ready.factors) == 25
        assert [f.name for f in ready.factors] == ["FIRE Progress", "Withdrawal Plan"]

    def test_ready_with_simulation_and_plan(self, snapshot):
        """A simulation adds the success-rate factor and a plan earns 5 points."""
        sim = MonteCarloSimulator(SimulationConfig(runs=200, years=20, seed=1)).run_snapshot(snapshot)
        ready = FreedomScoreAggregator().score(
            snapshot, simulation=sim, withdrawal=FixedSWR()
        ).domains[Domain.READY]
        names = [f.name for f in ready.factors]
        assert "Plan Success Rate" in names
        assert sum(f.weight for f in ready.factors) == 25
        plan = next(f for f in ready.factors if f.name == "Withdrawal Plan")
        assert plan.points == 5

    def test_to_dict(self, snapshot):
        """Scores serialize with domain names."""
        data = FreedomScoreAggregator().score(snapshot).to_dict()
        assert set(data["domains"]) == {"save", "grow", "protect", "ready"}
        assert data["status"] == score_status(data["total"])
