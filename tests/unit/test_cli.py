"""
Unit tests for CLI module.

Tests command-line interface functionality using Click's testing utilities.
"""

import json

import pytest
from click.testing import CliRunner

from fireplan import __version__
from fireplan.cli import main
from fireplan.serialization import strategy_to_dict
from fireplan.withdrawal import FixedSWR


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def strategy_file(tmp_path):
    """Withdrawal strategy file."""
    path = tmp_path / "strategy.json"
    path.write_text(json.dumps(strategy_to_dict(FixedSWR(rate=0.04))))
    return path


# ============================================================================
# MAIN COMMAND TESTS
# ============================================================================

class TestMainCommand:
    """Test main CLI entry point."""

    def test_main_help(self, runner):
        """Test main --help lists the commands."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "FirePlan" in result.output
        for command in ("tax", "fire", "simulate", "payoff", "score", "config"):
            assert command in result.output

    def test_main_version(self, runner):
        """Test main --version shows version."""
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


# ============================================================================
# CALCULATOR COMMANDS
# ============================================================================

class TestTaxCommand:
    """Test tax command."""

    def test_twelve_lakh(self, runner):
        """12 lakh gross pays nothing under the new regime."""
        result = runner.invoke(main, ["-q", "tax", "1200000"])
        assert result.exit_code == 0
        assert "new tax: 0" in result.output
        assert "recommended: new" in result.output

    def test_deductions(self, runner):
        """Deductions are parsed as SECTION=AMOUNT."""
        result = runner.invoke(main, ["-q", "tax", "1500000", "-d", "80C=150000", "-d", "80D=25000"])
        assert result.exit_code == 0
        assert "old taxable: 1,275,000" in result.output

    def test_bad_deduction(self, runner):
        """Malformed deductions are usage errors."""
        result = runner.invoke(main, ["tax", "1500000", "-d", "80C"])
        assert result.exit_code != 0

    def test_table_output(self, runner):
        """Without --quiet a table is printed."""
        result = runner.invoke(main, ["tax", "1500000"])
        assert result.exit_code == 0
        assert "Tax Comparison" in result.output


class TestGainsCommand:
    """Test gains command."""

    def test_assess_file(self, runner, lots_file):
        """Valid lots are assessed and bad ones reported."""
        result = runner.invoke(main, ["-q", "gains", str(lots_file)])
        assert result.exit_code == 0
        assert "lot 0: long_term" in result.output
        assert "lot 2: error" in result.output
        assert "total tax" in result.output


class TestScheduleCommand:
    """Test schedule command."""

    def test_schedule_csv(self, runner, tmp_path):
        """Schedules are summarized and optionally written as CSV."""
        out = tmp_path / "schedule.csv"
        result = runner.invoke(main, ["-q", "schedule", "1000000", "0.10", "120", "-o", str(out)])
        assert result.exit_code == 0
        assert "periods: 120" in result.output
        assert "installment: 13,215.07" in result.output
        assert out.exists()

    def test_invalid_term(self, runner):
        """Validation errors exit with status 1."""
        result = runner.invoke(main, ["schedule", "1000000", "0.10", "0"])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestFireCommand:
    """Test fire command."""

    def test_fire(self, runner, snapshot_file):
        """FIRE metrics for a snapshot."""
        result = runner.invoke(main, ["-q", "fire", str(snapshot_file)])
        assert result.exit_code == 0
        assert "fire number: 34,285,714" in result.output
        assert "lean fire" in result.output

    def test_swr_override(self, runner, snapshot_file):
        """--swr changes the FIRE number."""
        result = runner.invoke(main, ["-q", "fire", str(snapshot_file), "--swr", "0.04"])
        assert "fire number: 30,000,000" in result.output

    def test_invalid_swr(self, runner, snapshot_file):
        """A zero SWR is rejected."""
        result = runner.invoke(main, ["fire", str(snapshot_file), "--swr", "0"])
        assert result.exit_code == 1

    def test_missing_file(self, runner):
        """Missing snapshot files are usage errors."""
        result = runner.invoke(main, ["fire", "missing.json"])
        assert result.exit_code != 0


class TestSimulateCommand:
    """Test simulate command."""

    def test_simulate(self, runner, snapshot_file, tmp_path):
        """Simulation prints a summary and saves the result."""
        out = tmp_path / "sim.json"
        result = runner.invoke(
            main,
            ["-q", "simulate", str(snapshot_file), "-n", "200", "-y", "10", "-s", "7", "-o", str(out)],
        )
        assert result.exit_code == 0
        assert "runs: 200" in result.output
        assert "success rate" in result.output
        data = json.loads(out.read_text())
        assert data["result"]["seed"] == 7

    def test_runs_cap(self, runner, snapshot_file, monkeypatch):
        """Requests above max_runs are refused."""
        monkeypatch.setenv("FIREPLAN_MAX_RUNS", "100")
        result = runner.invoke(main, ["simulate", str(snapshot_file), "-n", "200"])
        assert result.exit_code == 1
        assert "max_runs" in result.output


class TestPayoffCommand:
    """Test payoff command."""

    def test_payoff(self, runner, snapshot_file):
        """Both strategies are reported."""
        result = runner.invoke(main, ["-q", "payoff", str(snapshot_file), "--extra", "5000"])
        assert result.exit_code == 0
        assert "avalanche order: credit_card > car_loan" in result.output
        assert "recommended: snowball" in result.output

    def test_no_debts(self, runner, debt_free_snapshot_file):
        """Snapshots without debts are rejected."""
        result = runner.invoke(main, ["payoff", str(debt_free_snapshot_file)])
        assert result.exit_code == 1
        assert "no debts" in result.output


class TestScoreCommand:
    """Test score command."""

    def test_score(self, runner, snapshot_file, strategy_file):
        """Score prints total and domains."""
        result = runner.invoke(
            main, ["-q", "score", str(snapshot_file), "--strategy-file", str(strategy_file)]
        )
        assert result.exit_code == 0
        assert "total:" in result.output
        assert "ready:" in result.output

    def test_score_with_simulation(self, runner, snapshot_file):
        """--simulate includes a Monte Carlo run."""
        result = runner.invoke(main, ["-q", "score", str(snapshot_file), "--simulate", "-n", "100"])
        assert result.exit_code == 0


# ============================================================================
# CONFIG COMMANDS
# ============================================================================

class TestConfigCommands:
    """Test config subcommands."""

    def test_show_json(self, runner):
        """Settings print as JSON."""
        result = runner.invoke(main, ["config", "show", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["settings"]["log_level"] == "WARNING"
        assert data["fire"]["safe_withdrawal_rate"] == 0.035

    def test_show_table(self, runner):
        """Settings print as panels."""
        result = runner.invoke(main, ["config", "show"])
        assert result.exit_code == 0
        assert "settings" in result.output

    def test_validate_ok(self, runner, snapshot_file):
        """Valid snapshots pass."""
        result = runner.invoke(main, ["config", "validate", str(snapshot_file)])
        assert result.exit_code == 0
        assert "Snapshot is valid" in result.output
        assert "Debts: 2" in result.output

    def test_validate_bad(self, runner, tmp_path):
        """Invalid snapshots fail with status 1."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"current_age": 30}))
        result = runner.invoke(main, ["config", "validate", str(path)])
        assert result.exit_code == 1
