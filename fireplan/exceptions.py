"""
Custom exceptions for FirePlan.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all FirePlan calculators. All exceptions inherit from FirePlanError,
enabling catch-all handling at the calling layer.

Exception Hierarchy
-------------------
FirePlanError (base)
├── ConfigurationError - Invalid configuration or settings
└── ValidationError - Invalid input rejected before computation
    ├── BracketTableError - Tax bracket tables with gaps/overlaps
    └── AllocationConstraintError - Allocation fractions out of range

Non-convergence (years-to-target cap, installment below interest, payoff
horizon reached) is NOT an exception: calculators return an explicit
sentinel or flag so that batch computations never abort.

Usage
-----
>>> from fireplan.exceptions import ValidationError
>>>
>>> raise ValidationError("safe_withdrawal_rate must be positive, got 0")
>>>
>>> try:
...     tax = compute_tax(income, regime)
... except FirePlanError as e:
...     print(f"FirePlan error: {e}")
"""


class FirePlanError(Exception):
    """
    Base exception for all FirePlan errors.

    Examples
    --------
    >>> try:
    ...     result = simulator.run(...)
    ... except FirePlanError as e:
    ...     logger.error("Simulation failed: %s", e)
    """
    pass


class ConfigurationError(FirePlanError):
    """
    Invalid configuration or settings.

    Raised when engine configuration is unusable, such as:
    - Unknown tax regime name
    - Rate tables missing a required default
    - Incompatible parameter combinations

    Examples
    --------
    >>> raise ConfigurationError("Unknown regime 'legacy'. Available: ['new', 'old']")
    """
    pass


class ValidationError(FirePlanError):
    """
    Invalid input rejected before computation begins.

    Raised for negative principal, non-positive rates where a positive rate
    is required, zero safe withdrawal rate, allocation fractions outside
    [0, 1], and similar.

    Examples
    --------
    >>> raise ValidationError(
    ...     "principal must be positive, got -1000. "
    ...     "Use the outstanding balance of the loan."
    ... )
    """
    pass


class BracketTableError(ValidationError):
    """
    Malformed bracket table.

    Raised when tax or surcharge brackets:
    - Do not start at zero
    - Leave a gap or overlap between consecutive brackets
    - Are not strictly increasing

    Examples
    --------
    >>> raise BracketTableError(
    ...     "Bracket 2 starts at 500000 but bracket 1 ends at 400000 (gap)."
    ... )
    """
    pass


class AllocationConstraintError(ValidationError):
    """
    Allocation fraction violations.

    Raised when an equity/debt allocation is outside [0, 1], or when a set of
    allocation fractions does not sum to 1.

    Examples
    --------
    >>> raise AllocationConstraintError(
    ...     "equity_allocation must be in [0, 1], got 1.4"
    ... )
    """
    pass
