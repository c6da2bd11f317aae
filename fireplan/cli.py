"""
Command-Line Interface for FirePlan.

Purpose
-------
Runs the FirePlan calculators on JSON snapshot files without writing
Python code.

Commands
--------
- tax: Income tax under each regime and the cheaper choice
- gains: Capital-gains assessment of a file of disposed lots
- schedule: Loan amortization schedule
- fire: FIRE number, variants and time to FIRE for a snapshot
- simulate: Monte Carlo survival of a snapshot's corpus
- payoff: Avalanche vs snowball debt payoff
- score: Freedom score of a snapshot
- config: Show settings and validate snapshot files

Example Usage
-------------
    $ fireplan tax 1800000 -d 80C=150000 -d 80D=25000
    $ fireplan fire snapshot.json --swr 0.035
    $ fireplan simulate snapshot.json --runs 5000 --years 35 --seed 7
    $ fireplan payoff snapshot.json --extra 5000
    $ fireplan config show
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Dict, Optional, Tuple

import click
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import AppSettings, FireAssumptions, SimulationConfig
from .exceptions import FirePlanError

logger = logging.getLogger(__name__)

_ERRORS = (FirePlanError, PydanticValidationError, OSError, json.JSONDecodeError)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _money(value: float) -> str:
    return f"{value:,.0f}"


def _emit(ctx: click.Context, title: str, rows: Dict[str, str]) -> None:
    """Print a two-column table, or plain ``key: value`` lines when quiet."""
    if ctx.obj["quiet"]:
        for key, value in rows.items():
            click.echo(f"{key}: {value}")
        return
    table = Table(title=title, show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for key, value in rows.items():
        table.add_row(key, value)
    ctx.obj["console"].print(table)


def _parse_deductions(pairs: Tuple[str, ...]) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for pair in pairs:
        section, sep, amount = pair.partition("=")
        if not sep:
            raise click.BadParameter(f"expected SECTION=AMOUNT, got {pair!r}")
        try:
            out[section.strip()] = out.get(section.strip(), 0.0) + float(amount)
        except ValueError:
            raise click.BadParameter(f"amount for {section!r} is not a number") from None
    return out


@click.group()
@click.version_option(version=__version__, prog_name="fireplan")
@click.option("--quiet", "-q", is_flag=True, help="Plain output instead of tables")
@click.pass_context
def main(ctx: click.Context, quiet: bool) -> None:
    """
    FirePlan - Financial independence planning engine.

    Use 'fireplan COMMAND --help' for command-specific help.
    """
    ctx.ensure_object(dict)
    settings = AppSettings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj["settings"] = settings
    ctx.obj["quiet"] = quiet
    ctx.obj["console"] = Console()


# ---------------------------------------------------------------------------
# Tax
# ---------------------------------------------------------------------------

@main.command()
@click.argument("gross_income", type=float)
@click.option(
    "--deduction", "-d",
    multiple=True,
    help="Claimed deduction as SECTION=AMOUNT (repeatable)"
)
@click.option(
    "--regime-file",
    type=click.Path(exists=True, path_type=Path),
    multiple=True,
    help="Additional regime definition (JSON)"
)
@click.pass_context
def tax(ctx: click.Context, gross_income: float, deduction: Tuple[str, ...],
        regime_file: Tuple[Path, ...]) -> None:
    """
    Compare income tax across regimes.

    Example:
        fireplan tax 1500000 -d 80C=150000
    """
    from .serialization import load_regime
    from .tax import NEW_REGIME, OLD_REGIME, compare_regimes

    try:
        claims = _parse_deductions(deduction)
        regimes = [NEW_REGIME, OLD_REGIME] + [load_regime(p) for p in regime_file]
        comparison = compare_regimes(gross_income, claims, regimes)
    except _ERRORS as e:
        _fail(str(e))

    rows = {}
    for name, b in comparison.breakdowns.items():
        rows[f"{name} taxable"] = _money(b.taxable_income)
        rows[f"{name} tax"] = _money(b.total)
    rows["recommended"] = comparison.recommended
    rows["savings"] = _money(comparison.savings)
    _emit(ctx, "Tax Comparison", rows)


# ---------------------------------------------------------------------------
# Capital gains
# ---------------------------------------------------------------------------

@main.command()
@click.argument("lots_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def gains(ctx: click.Context, lots_file: Path) -> None:
    """
    Assess a JSON list of disposed lots.

    Lots that fail validation are reported and skipped.
    """
    from .capital_gains import assess_lots

    try:
        with open(lots_file, "r", encoding="utf-8") as f:
            payload = json.load(f)
        lots = payload["lots"] if isinstance(payload, dict) else payload
        batch = assess_lots(lots)
    except (*_ERRORS, KeyError) as e:
        _fail(str(e))

    rows = {}
    for i, a in enumerate(batch.assessments):
        if a is None:
            rows[f"lot {i}"] = f"error: {batch.errors[i]}"
            continue
        text = f"{a.gain_type.value} {_money(a.taxable_gain)} @ {a.rate:.1%} = {_money(a.tax)}"
        if a.dual is not None and a.dual.recommended is not None:
            text += f" (recommended: {a.dual.recommended})"
        elif a.dual is not None:
            text += " (no index for indexed comparison)"
        rows[f"lot {i}"] = text
    rows["total tax"] = _money(batch.total_tax)
    _emit(ctx, "Capital Gains", rows)


# ---------------------------------------------------------------------------
# Amortization
# ---------------------------------------------------------------------------

@main.command()
@click.argument("principal", type=float)
@click.argument("annual_rate", type=float)
@click.argument("months", type=int)
@click.option("--installment", type=float, default=None, help="Monthly installment (default: annuity)")
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None, help="Write rows as CSV")
@click.pass_context
def schedule(ctx: click.Context, principal: float, annual_rate: float, months: int,
             installment: Optional[float], output: Optional[Path]) -> None:
    """
    Loan amortization schedule (rate as a fraction, e.g. 0.09).

    Example:
        fireplan schedule 1000000 0.10 120 -o schedule.csv
    """
    from .amortization import generate_schedule, schedule_frame

    try:
        rows = generate_schedule(principal, annual_rate, months, installment)
    except _ERRORS as e:
        _fail(str(e))

    frame = schedule_frame(rows)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(output)
    _emit(ctx, "Amortization", {
        "periods": str(len(frame)),
        "installment": f"{frame['installment'].iloc[0]:,.2f}" if len(frame) else "0",
        "total interest": f"{frame['interest_component'].sum():,.2f}",
        "total principal": f"{frame['principal_component'].sum():,.2f}",
    })


# ---------------------------------------------------------------------------
# FIRE
# ---------------------------------------------------------------------------

@main.command()
@click.argument("snapshot_file", type=click.Path(exists=True, path_type=Path))
@click.option("--swr", type=float, default=None, help="Safe withdrawal rate (fraction)")
@click.option("--expected-return", type=float, default=None, help="Annual return (fraction)")
@click.option("--inflation", type=float, default=None, help="Annual inflation (fraction)")
@click.pass_context
def fire(ctx: click.Context, snapshot_file: Path, swr: Optional[float],
         expected_return: Optional[float], inflation: Optional[float]) -> None:
    """FIRE number, variants and years to FIRE for a snapshot."""
    from .fire import crossover_projection, fire_metrics
    from .serialization import load_snapshot

    overrides = {
        k: v for k, v in {
            "safe_withdrawal_rate": swr,
            "expected_return": expected_return,
            "inflation": inflation,
        }.items() if v is not None
    }
    try:
        snapshot = load_snapshot(snapshot_file)
        assumptions = FireAssumptions(**overrides)
        metrics = fire_metrics(snapshot, assumptions)
        crossover = crossover_projection(
            snapshot.corpus,
            snapshot.monthly_expenses,
            snapshot.monthly_savings,
            safe_withdrawal_rate=assumptions.safe_withdrawal_rate,
            annual_return=assumptions.expected_return,
            inflation=assumptions.inflation,
        )
    except _ERRORS as e:
        _fail(str(e))

    rows = {
        "fire number": _money(metrics.fire_number),
        "progress": f"{metrics.progress_percent:.1f}%",
        "years to fire": (
            f"{metrics.years_to_fire:.1f}" if metrics.reachable else "unreachable"
        ),
    }
    for name, value in metrics.variants.items():
        rows[f"{name} fire"] = _money(value)
    rows["coast fire"] = _money(metrics.coast_fire)
    rows["barista fire"] = _money(metrics.barista_fire)
    rows["savings rate"] = f"{metrics.savings_rate:.1f}%"
    rows["crossover"] = (
        f"month {crossover.crossover_month}" if crossover.crossover_month is not None
        else "beyond projection"
    )
    _emit(ctx, "FIRE Metrics", rows)


# ---------------------------------------------------------------------------
# Monte Carlo
# ---------------------------------------------------------------------------

@main.command()
@click.argument("snapshot_file", type=click.Path(exists=True, path_type=Path))
@click.option("--runs", "-n", type=int, default=None, help="Number of paths (default: settings)")
@click.option("--years", "-y", type=int, default=30, help="Horizon in years (default: 30)")
@click.option("--seed", "-s", type=int, default=None, help="Random seed (default: settings)")
@click.option("--swr", type=float, default=None, help="Withdrawal rate before the expense floor")
@click.option(
    "--mode",
    type=click.Choice(["vectorized", "sequential"]),
    default="vectorized",
    help="Execution mode (results are identical)"
)
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None,
              help="Write the result as JSON")
@click.pass_context
def simulate(ctx: click.Context, snapshot_file: Path, runs: Optional[int], years: int,
             seed: Optional[int], swr: Optional[float], mode: str,
             output: Optional[Path]) -> None:
    """
    Monte Carlo survival of a snapshot's corpus.

    Example:
        fireplan simulate snapshot.json -n 5000 -y 35 --seed 7
    """
    from .serialization import load_snapshot, save_result
    from .simulation import MonteCarloSimulator
    from .withdrawal import FixedSWR

    settings: AppSettings = ctx.obj["settings"]
    runs = settings.default_runs if runs is None else runs
    seed = settings.default_seed if seed is None else seed
    if runs > settings.max_runs:
        _fail(f"runs ({runs}) exceeds max_runs ({settings.max_runs}).")

    try:
        snapshot = load_snapshot(snapshot_file)
        cfg = SimulationConfig(runs=runs, years=years, seed=seed, mode=mode)
        params = FixedSWR(rate=swr) if swr is not None else None
        result = MonteCarloSimulator(cfg).run_snapshot(snapshot, params)
    except _ERRORS as e:
        _fail(str(e))

    tp = result.terminal_percentiles
    _emit(ctx, "Simulation Results", {
        "runs": f"{result.runs:,}",
        "years": str(result.years),
        "annual withdrawal": _money(result.annual_withdrawal),
        "equity allocation": f"{result.equity_allocation:.0%}",
        "success rate": f"{result.success_rate:.1%}",
        "status": result.status,
        "p10 terminal": _money(tp["p10"]),
        "p50 terminal": _money(tp["p50"]),
        "p90 terminal": _money(tp["p90"]),
    })
    if output:
        save_result(result, output)
        if not ctx.obj["quiet"]:
            click.echo(f"Results saved to {output}")


# ---------------------------------------------------------------------------
# Debt payoff
# ---------------------------------------------------------------------------

@main.command()
@click.argument("snapshot_file", type=click.Path(exists=True, path_type=Path))
@click.option("--extra", "-e", type=float, default=0.0, help="Extra monthly payment")
@click.pass_context
def payoff(ctx: click.Context, snapshot_file: Path, extra: float) -> None:
    """Compare avalanche and snowball payoff of a snapshot's debts."""
    from .amortization import compare_payoff_strategies
    from .serialization import load_snapshot

    settings: AppSettings = ctx.obj["settings"]
    try:
        snapshot = load_snapshot(snapshot_file)
        if not snapshot.debts:
            _fail("snapshot has no debts.")
        comparison = compare_payoff_strategies(
            snapshot.debts, extra, start_date=settings.as_of or date.today()
        )
    except _ERRORS as e:
        _fail(str(e))

    rows = {}
    for result in (comparison.avalanche, comparison.snowball):
        name = result.strategy.value
        rows[f"{name} order"] = " > ".join(result.order)
        rows[f"{name} months"] = str(result.months) if result.paid_off else f"> {result.months}"
        rows[f"{name} interest"] = _money(result.total_interest)
    rows["recommended"] = comparison.recommended.value
    rows["interest savings"] = _money(comparison.interest_savings)
    _emit(ctx, "Debt Payoff", rows)


# ---------------------------------------------------------------------------
# Freedom score
# ---------------------------------------------------------------------------

@main.command()
@click.argument("snapshot_file", type=click.Path(exists=True, path_type=Path))
@click.option("--strategy-file", type=click.Path(exists=True, path_type=Path), default=None,
              help="Withdrawal strategy (JSON) counted as a retirement plan")
@click.option("--simulate/--no-simulate", default=False,
              help="Include a Monte Carlo success rate")
@click.option("--runs", "-n", type=int, default=2_000, help="Paths when simulating")
@click.pass_context
def score(ctx: click.Context, snapshot_file: Path, strategy_file: Optional[Path],
          simulate: bool, runs: int) -> None:
    """Freedom score (0-100) of a snapshot."""
    from .score import FreedomScoreAggregator
    from .serialization import load_snapshot, strategy_from_dict
    from .simulation import MonteCarloSimulator

    settings: AppSettings = ctx.obj["settings"]
    try:
        snapshot = load_snapshot(snapshot_file)
        strategy = None
        if strategy_file:
            with open(strategy_file, "r", encoding="utf-8") as f:
                strategy = strategy_from_dict(json.load(f))
        sim = None
        if simulate:
            cfg = SimulationConfig(runs=min(runs, settings.max_runs), seed=settings.default_seed)
            sim = MonteCarloSimulator(cfg).run_snapshot(snapshot)
        result = FreedomScoreAggregator().score(snapshot, simulation=sim, withdrawal=strategy)
    except _ERRORS as e:
        _fail(str(e))

    rows = {"total": f"{result.total}/100", "status": result.status}
    for domain, d in result.domains.items():
        rows[domain.value] = f"{d.score}/25"
    _emit(ctx, "Freedom Score", rows)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@main.group()
def config() -> None:
    """
    Configuration commands.

    Show effective settings and validate snapshot files.
    """


@config.command("show")
@click.option("--format", "-f", type=click.Choice(["json", "table"]), default="table")
@click.pass_context
def config_show(ctx: click.Context, format: str) -> None:
    """Display effective settings and default assumptions."""
    settings: AppSettings = ctx.obj["settings"]
    data = {
        "settings": settings.model_dump(mode="json"),
        "fire": FireAssumptions().model_dump(mode="json"),
        "simulation": SimulationConfig().model_dump(mode="json"),
    }
    if format == "json" or ctx.obj["quiet"]:
        click.echo(json.dumps(data, indent=2))
        return
    console: Console = ctx.obj["console"]
    for section, values in data.items():
        body = "\n".join(f"[cyan]{k}[/cyan]: {v}" for k, v in values.items())
        console.print(Panel(body, title=section, border_style="green"))


@config.command("validate")
@click.argument("snapshot_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def config_validate(ctx: click.Context, snapshot_file: Path) -> None:
    """Validate a snapshot file."""
    from .serialization import load_snapshot

    try:
        snapshot = load_snapshot(snapshot_file)
    except _ERRORS as e:
        click.echo(f"Snapshot validation failed: {e}", err=True)
        sys.exit(1)
    click.echo("Snapshot is valid")
    click.echo(f"Corpus: {_money(snapshot.corpus)}")
    click.echo(f"Debts: {len(snapshot.debts)}")


if __name__ == "__main__":
    main()
