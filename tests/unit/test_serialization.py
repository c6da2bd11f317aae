"""
Unit tests for serialization.py module.

Tests saving and loading snapshots, regimes, strategies and results.
"""

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from fireplan.amortization import compare_payoff_strategies
from fireplan.config import TaxBracket, TaxRegimeConfig
from fireplan.exceptions import BracketTableError
from fireplan.serialization import (
    SCHEMA_VERSION,
    load_regime,
    load_result,
    load_snapshot,
    regime_from_dict,
    regime_to_dict,
    save_result,
    save_snapshot,
    snapshot_from_dict,
    snapshot_to_dict,
    strategy_from_dict,
    strategy_to_dict,
)
from fireplan.simulation import MonteCarloSimulator
from fireplan.tax import NEW_REGIME, compute_tax
from fireplan.withdrawal import Bucket, FixedSWR, Guardrails


class TestSnapshotSerialization:
    """Test snapshot round trips."""

    def test_dict_round_trip(self, snapshot):
        """snapshot_from_dict inverts snapshot_to_dict."""
        restored = snapshot_from_dict(snapshot_to_dict(snapshot))
        assert restored == snapshot

    def test_file_round_trip(self, tmp_path, snapshot):
        """Saved snapshots load back equal and carry the schema version."""
        path = tmp_path / "nested" / "snap.json"
        save_snapshot(snapshot, path)
        with open(path) as f:
            assert json.load(f)["schema_version"] == SCHEMA_VERSION
        assert load_snapshot(path) == snapshot

    def test_invalid_payload(self):
        """Payloads failing validation raise pydantic errors."""
        with pytest.raises(PydanticValidationError):
            snapshot_from_dict({"current_age": 30})

    def test_schema_mismatch_warns(self, tmp_path, minimal_snapshot):
        """Files from another schema version load with a warning."""
        data = snapshot_to_dict(minimal_snapshot)
        data["schema_version"] = "0.0.1"
        path = tmp_path / "old.json"
        path.write_text(json.dumps(data))
        with pytest.warns(UserWarning, match="schema version"):
            assert load_snapshot(path) == minimal_snapshot


class TestRegimeSerialization:
    """Test custom regimes as data files."""

    def test_round_trip(self):
        """Preset regimes survive a dict round trip."""
        restored = regime_from_dict(regime_to_dict(NEW_REGIME))
        assert restored == NEW_REGIME
        assert compute_tax(1_300_000, restored) == compute_tax(1_300_000, NEW_REGIME)

    def test_load_from_file(self, tmp_path):
        """A flat regime loads from JSON."""
        flat = TaxRegimeConfig(name="flat", brackets=[TaxBracket(lower=0, upper=None, rate=0.1)])
        path = tmp_path / "flat.json"
        path.write_text(json.dumps({"schema_version": SCHEMA_VERSION, **regime_to_dict(flat)}))
        assert load_regime(path) == flat

    def test_gap_rejected(self):
        """Malformed tables fail on load."""
        with pytest.raises(BracketTableError):
            regime_from_dict({
                "name": "broken",
                "brackets": [
                    {"lower": 0, "upper": 100, "rate": 0.0},
                    {"lower": 200, "upper": None, "rate": 0.1},
                ],
            })


class TestStrategySerialization:
    """Test tagged strategy dictionaries."""

    @pytest.mark.parametrize("params", [FixedSWR(rate=0.04), Bucket(cash_years=3), Guardrails()])
    def test_round_trip(self, params):
        """Strategies rebuild from their tagged dict."""
        assert strategy_from_dict(strategy_to_dict(params)) == params

    def test_tag(self):
        """The tag is the strategy kind."""
        assert strategy_to_dict(FixedSWR(rate=0.04)) == {"strategy": "fixed_swr", "rate": 0.04}


class TestResultSerialization:
    """Test persisted results."""

    def test_simulation_result(self, tmp_path, small_sim_config):
        """Simulation results save as plain data with their seed."""
        result = MonteCarloSimulator(small_sim_config).run(1e7, 4e5)
        path = tmp_path / "sim.json"
        save_result(result, path)
        data = load_result(path)
        assert data["seed"] == 42
        assert data["success_rate"] == pytest.approx(result.success_rate)

    def test_forwarded_kwargs(self, tmp_path, small_sim_config):
        """Keyword arguments reach to_dict."""
        result = MonteCarloSimulator(small_sim_config).run(1e7, 4e5, runs=10, years=3)
        path = tmp_path / "sim_paths.json"
        save_result(result, path, include_paths=True)
        assert len(load_result(path)["paths"]) == 10

    def test_payoff_comparison(self, tmp_path, debts, start_date):
        """Payoff comparisons serialize with ISO dates."""
        cmp = compare_payoff_strategies(debts, 5_000, start_date=start_date)
        path = tmp_path / "payoff.json"
        save_result(cmp, path)
        data = load_result(path)
        assert data["recommended"] == "snowball"
        assert data["avalanche"]["payoff_date"].startswith("20")
