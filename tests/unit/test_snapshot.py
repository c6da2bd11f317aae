"""
Unit tests for snapshot.py module.

Tests Debt and FinancialSnapshot validation and derived figures.
"""

import dataclasses

import pytest

from fireplan.exceptions import AllocationConstraintError, ValidationError
from fireplan.snapshot import Debt, FinancialSnapshot


class TestDebt:
    """Test Debt validation."""

    def test_monthly_interest(self, credit_card):
        """Monthly interest is balance × rate / 12."""
        assert credit_card.monthly_interest == pytest.approx(1_000)

    def test_negative_balance_rejected(self):
        """Balances must be non-negative."""
        with pytest.raises(ValidationError, match="balance"):
            Debt("bad", -1, 0.1, 100)

    def test_remaining_months_positive(self):
        """remaining_months must be positive when given."""
        with pytest.raises(ValidationError):
            Debt("bad", 1_000, 0.1, 100, remaining_months=0)

    def test_is_paid_off(self):
        """A zero balance is paid off."""
        assert Debt("done", 0, 0.1, 0).is_paid_off


class TestFinancialSnapshot:
    """Test snapshot validation and derived figures."""

    def test_corpus_from_holdings(self, snapshot):
        """Corpus defaults to the sum of holdings."""
        assert snapshot.corpus == 5_000_000

    def test_explicit_corpus(self, minimal_snapshot):
        """An explicit corpus wins over holdings."""
        assert minimal_snapshot.corpus == 2_000_000

    def test_derived_figures(self, snapshot):
        """Savings, expenses, years and debt totals."""
        assert snapshot.monthly_savings == 100_000
        assert snapshot.annual_expenses == 1_200_000
        assert snapshot.years_to_retirement == 15
        assert snapshot.total_debt == 250_000
        assert snapshot.gross_annual_income == 2_400_000

    def test_savings_floored(self):
        """Spending above income saves nothing."""
        snap = FinancialSnapshot(30, 50, 50_000, 80_000)
        assert snap.monthly_savings == 0

    def test_equity_allocation_derived(self, snapshot):
        """Equity share comes from equity categories."""
        assert snapshot.resolved_equity_allocation == pytest.approx(0.8)

    def test_equity_allocation_explicit(self, minimal_snapshot):
        """An explicit allocation is used as given."""
        assert minimal_snapshot.resolved_equity_allocation == 0.6

    def test_equity_allocation_default_warns(self):
        """No holdings fall back to the default allocation with a warning."""
        snap = FinancialSnapshot(30, 50, 100_000, 50_000, current_corpus=1_000_000)
        with pytest.warns(UserWarning, match="default"):
            assert snap.resolved_equity_allocation == 0.6

    def test_retirement_before_current_age(self):
        """Retirement age cannot precede current age."""
        with pytest.raises(ValidationError, match="target_retirement_age"):
            FinancialSnapshot(50, 40, 100_000, 50_000)

    def test_negative_holding_rejected(self):
        """Holdings must be non-negative."""
        with pytest.raises(ValidationError, match="holdings"):
            FinancialSnapshot(30, 50, 100_000, 50_000, holdings={"equity": -1})

    def test_bad_allocation_rejected(self):
        """Allocation must be a fraction."""
        with pytest.raises(AllocationConstraintError):
            FinancialSnapshot(30, 50, 100_000, 50_000, equity_allocation=1.2)

    def test_budget_adherence_range(self):
        """Budget adherence is a percentage."""
        with pytest.raises(ValidationError, match="budget_adherence"):
            FinancialSnapshot(30, 50, 100_000, 50_000, budget_adherence=120)

    def test_immutable(self, snapshot):
        """Snapshots and their mappings are read-only."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.monthly_income = 1
        with pytest.raises(TypeError):
            snapshot.holdings["equity"] = 0

    def test_caller_dict_not_shared(self):
        """Mutating the caller's dict does not change the snapshot."""
        holdings = {"equity": 1_000_000}
        snap = FinancialSnapshot(30, 50, 100_000, 50_000, holdings=holdings)
        holdings["equity"] = 0
        assert snap.corpus == 1_000_000

    def test_hash_by_content(self, snapshot):
        """Equal snapshots hash equally and can key a result cache."""
        copy = dataclasses.replace(snapshot)
        assert copy == snapshot
        assert hash(copy) == hash(snapshot)
        cache = {snapshot: "result"}
        assert cache[copy] == "result"

    def test_hash_ignores_mapping_order(self):
        """Holding order does not change the hash."""
        a = FinancialSnapshot(30, 50, 100_000, 50_000, holdings={"equity": 1, "debt": 2})
        b = FinancialSnapshot(30, 50, 100_000, 50_000, holdings={"debt": 2, "equity": 1})
        assert hash(a) == hash(b)
        changed = dataclasses.replace(a, monthly_expenses=60_000)
        assert hash(changed) != hash(a)
