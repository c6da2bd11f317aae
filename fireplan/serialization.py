"""
Serialization module for FirePlan inputs and results.

Purpose
-------
JSON serialization and deserialization of FirePlan inputs (snapshots, tax
regimes, withdrawal strategies) and of calculator results, so the calling
layer can persist or exchange them in a plain, versioned format.

Supports serialization of:
- FinancialSnapshot (validated through SnapshotConfig)
- TaxRegimeConfig (custom jurisdictions as data files)
- Withdrawal strategy parameters (tagged by "strategy")
- Any result exposing ``to_dict()``

Design Principles
-----------------
- Type-safe: Uses Pydantic configs for validation
- Human-readable: indented JSON
- Reproducible: simulation results carry their seed
- Backward compatible: Validates schema versions

Example
-------
>>> from pathlib import Path
>>> from fireplan.serialization import save_snapshot, load_snapshot
>>> save_snapshot(snapshot, Path("snapshot.json"))
>>> load_snapshot(Path("snapshot.json")) == snapshot
True
"""

from __future__ import annotations
from typing import Any, Dict, Union
from pathlib import Path
import json
import warnings

from pydantic import TypeAdapter

from .config import DebtConfig, SnapshotConfig, TaxRegimeConfig, WithdrawalStrategyConfig
from .snapshot import Debt, FinancialSnapshot
from .withdrawal import WithdrawalStrategyParams, params_from_config

__all__ = [
    "SCHEMA_VERSION",
    "snapshot_to_dict",
    "snapshot_from_dict",
    "save_snapshot",
    "load_snapshot",
    "regime_to_dict",
    "regime_from_dict",
    "load_regime",
    "strategy_to_dict",
    "strategy_from_dict",
    "save_result",
    "load_result",
]


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "1.0.0"


def _read(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    schema_version = payload.get("schema_version", "0.0.0")
    if schema_version != SCHEMA_VERSION:
        warnings.warn(
            f"File schema version {schema_version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )
    return payload


def _write(payload: Dict[str, Any], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"schema_version": SCHEMA_VERSION, **payload}, f, indent=2)


# ---------------------------------------------------------------------------
# Snapshot Serialization
# ---------------------------------------------------------------------------

def snapshot_to_dict(snapshot: FinancialSnapshot) -> Dict[str, Any]:
    """
    Convert a FinancialSnapshot to a plain dictionary.

    Parameters
    ----------
    snapshot : FinancialSnapshot
        Snapshot to serialize

    Returns
    -------
    dict
        JSON-compatible representation accepted by snapshot_from_dict
    """
    return {
        "current_age": snapshot.current_age,
        "target_retirement_age": snapshot.target_retirement_age,
        "monthly_income": snapshot.monthly_income,
        "monthly_expenses": snapshot.monthly_expenses,
        "expense_categories": dict(snapshot.expense_categories),
        "holdings": dict(snapshot.holdings),
        "current_corpus": snapshot.current_corpus,
        "equity_allocation": snapshot.equity_allocation,
        "debts": [
            {
                "name": d.name,
                "balance": d.balance,
                "annual_rate": d.annual_rate,
                "minimum_payment": d.minimum_payment,
                "remaining_months": d.remaining_months,
            }
            for d in snapshot.debts
        ],
        "income_streams": dict(snapshot.income_streams),
        "deductions": dict(snapshot.deductions),
        "emergency_fund": snapshot.emergency_fund,
        "life_cover": snapshot.life_cover,
        "health_cover": snapshot.health_cover,
        "budget_adherence": snapshot.budget_adherence,
        "net_worth_history": list(snapshot.net_worth_history),
    }


def _debt_from_config(cfg: DebtConfig) -> Debt:
    return Debt(
        name=cfg.name,
        balance=cfg.balance,
        annual_rate=cfg.annual_rate,
        minimum_payment=cfg.minimum_payment,
        remaining_months=cfg.remaining_months,
    )


def snapshot_from_dict(data: Dict[str, Any]) -> FinancialSnapshot:
    """
    Create a FinancialSnapshot from a dictionary.

    Raises
    ------
    pydantic.ValidationError
        If the payload does not match SnapshotConfig.
    """
    payload = {k: v for k, v in data.items() if k != "schema_version"}
    cfg = SnapshotConfig.model_validate(payload)
    fields = cfg.model_dump(exclude={"debts"})
    fields["net_worth_history"] = tuple(fields["net_worth_history"])
    return FinancialSnapshot(
        debts=tuple(_debt_from_config(d) for d in cfg.debts),
        **fields,
    )


def save_snapshot(snapshot: FinancialSnapshot, path: Path) -> None:
    """Save a snapshot to a JSON file."""
    _write(snapshot_to_dict(snapshot), Path(path))


def load_snapshot(path: Path) -> FinancialSnapshot:
    """Load a snapshot from a JSON file."""
    return snapshot_from_dict(_read(Path(path)))


# ---------------------------------------------------------------------------
# Tax Regime Serialization
# ---------------------------------------------------------------------------

def regime_to_dict(regime: TaxRegimeConfig) -> Dict[str, Any]:
    return regime.model_dump(mode="json")


def regime_from_dict(data: Dict[str, Any]) -> TaxRegimeConfig:
    """Validate a regime definition (bracket tables are checked for gaps)."""
    payload = {k: v for k, v in data.items() if k != "schema_version"}
    return TaxRegimeConfig.model_validate(payload)


def load_regime(path: Path) -> TaxRegimeConfig:
    """Load a custom tax regime from a JSON file."""
    return regime_from_dict(_read(Path(path)))


# ---------------------------------------------------------------------------
# Withdrawal Strategy Serialization
# ---------------------------------------------------------------------------

_STRATEGY_ADAPTER: TypeAdapter = TypeAdapter(WithdrawalStrategyConfig)


def strategy_to_dict(params: WithdrawalStrategyParams) -> Dict[str, Any]:
    """
    Convert strategy parameters to a dictionary tagged by ``strategy``.

    Examples
    --------
    >>> strategy_to_dict(FixedSWR(rate=0.04))
    {'strategy': 'fixed_swr', 'rate': 0.04}
    """
    out: Dict[str, Any] = {"strategy": params.kind.value}
    for name in params.__dataclass_fields__:
        if name != "kind":
            out[name] = getattr(params, name)
    return out


def strategy_from_dict(data: Dict[str, Any]) -> WithdrawalStrategyParams:
    """Validate a tagged strategy dictionary and build its parameters."""
    return params_from_config(_STRATEGY_ADAPTER.validate_python(data))


# ---------------------------------------------------------------------------
# Result Serialization
# ---------------------------------------------------------------------------

def save_result(result: Any, path: Path, **to_dict_kwargs) -> None:
    """
    Save a calculator result to JSON.

    ``result`` must expose ``to_dict()``; keyword arguments are forwarded
    (e.g. ``include_paths=True`` for simulation results).
    """
    _write({"result": result.to_dict(**to_dict_kwargs)}, Path(path))


def load_result(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a saved result as a dictionary.

    Results are returned as plain data; rebuilding calculator objects
    requires the original inputs.
    """
    return _read(Path(path))["result"]
