"""
Unit tests for utils.py module.

Tests validation functions, rate conversions, annuity math and percentiles.
"""

import math
from datetime import date

import numpy as np
import pytest

from fireplan.exceptions import AllocationConstraintError, ValidationError
from fireplan.utils import (
    annuity_payment,
    annuity_term,
    check_allocation,
    check_fraction,
    check_non_negative,
    check_positive,
    clamp,
    fiscal_year,
    monthly_rate,
    months_between,
    percentile,
    percentile_columns,
    round_money,
    safe_divide,
)


class TestValidation:
    """Test input validation functions."""

    def test_check_non_negative_valid(self):
        """Valid non-negative values should pass."""
        check_non_negative("test", 0)
        check_non_negative("test", 1.5)

    def test_check_non_negative_invalid(self):
        """Negative values should raise ValidationError."""
        with pytest.raises(ValidationError, match="test must be non-negative"):
            check_non_negative("test", -0.1)

    def test_check_non_negative_nan(self):
        """NaN is rejected as non-finite."""
        with pytest.raises(ValidationError, match="finite"):
            check_non_negative("test", float("nan"))

    def test_check_positive_zero(self):
        """Zero is not positive."""
        with pytest.raises(ValidationError, match="must be positive"):
            check_positive("rate", 0.0)

    def test_check_fraction_bounds(self):
        """Fractions outside [0, 1] are rejected."""
        check_fraction("f", 0.0)
        check_fraction("f", 1.0)
        with pytest.raises(ValidationError):
            check_fraction("f", 1.01)

    def test_check_allocation_single(self):
        """A single fraction only needs to be in range."""
        check_allocation(0.6)
        with pytest.raises(AllocationConstraintError):
            check_allocation(1.4)

    def test_check_allocation_sum(self):
        """Several fractions must sum to 1."""
        check_allocation(0.6, 0.4)
        with pytest.raises(AllocationConstraintError, match="sum to 1"):
            check_allocation(0.6, 0.6)

    def test_allocation_error_is_validation_error(self):
        """AllocationConstraintError is a ValidationError."""
        assert issubclass(AllocationConstraintError, ValidationError)


class TestRates:
    """Test rate helpers."""

    def test_monthly_rate_is_nominal(self):
        """Monthly rate is annual / 12."""
        assert monthly_rate(0.12) == pytest.approx(0.01)

    def test_annuity_payment_known_value(self):
        """1,000,000 at 10% over 120 months ≈ 13,215.07."""
        assert annuity_payment(1_000_000, 0.10, 120) == pytest.approx(13_215.07, abs=0.01)

    def test_annuity_payment_zero_rate(self):
        """Zero rate degenerates to straight-line repayment."""
        assert annuity_payment(120_000, 0.0, 12) == pytest.approx(10_000)

    def test_annuity_payment_rejects_zero_term(self):
        """A zero-month term is invalid."""
        with pytest.raises(ValidationError):
            annuity_payment(100_000, 0.1, 0)

    def test_annuity_term_inverts_payment(self):
        """Solving for the term recovers the original term."""
        payment = annuity_payment(500_000, 0.09, 60)
        assert annuity_term(500_000, 0.09, payment + 0.01) == 60

    def test_annuity_term_non_amortizing(self):
        """An installment at or below the interest never repays the loan."""
        assert annuity_term(1_000_000, 0.12, 10_000) is None

    def test_annuity_term_zero_principal(self):
        """Nothing to repay takes zero months."""
        assert annuity_term(0, 0.1, 1_000) == 0


class TestPercentile:
    """Test linear-interpolation percentiles."""

    def test_known_values(self):
        """[10, 20, 30, 40, 50]: p50 = 30, p25 = 20."""
        values = [10, 20, 30, 40, 50]
        assert percentile(values, 50) == pytest.approx(30)
        assert percentile(values, 25) == pytest.approx(20)

    def test_interpolates_between_order_statistics(self):
        """p10 of five values lies between the first two."""
        assert percentile([10, 20, 30, 40, 50], 10) == pytest.approx(14)

    def test_unsorted_input(self):
        """Input order does not matter."""
        assert percentile([50, 10, 40, 20, 30], 50) == pytest.approx(30)

    def test_extremes(self):
        """p0 and p100 are the min and the max."""
        values = [3.0, 1.0, 2.0]
        assert percentile(values, 0) == 1.0
        assert percentile(values, 100) == 3.0

    def test_empty_raises(self):
        """Empty input has no percentile."""
        with pytest.raises(ValidationError, match="empty"):
            percentile([], 50)

    def test_columns_match_scalar(self):
        """percentile_columns agrees with percentile per column."""
        rng = np.random.default_rng(0)
        m = rng.normal(size=(101, 4))
        cols = percentile_columns(m, 25)
        for j in range(4):
            assert cols[j] == pytest.approx(percentile(m[:, j], 25))


class TestPeriodsAndMoney:
    """Test date and money helpers."""

    def test_months_between_30_day_months(self):
        """13 months = floor(days / 30)."""
        assert months_between(date(2024, 1, 1), date(2025, 2, 5)) == 13

    def test_fiscal_year_april_boundary(self):
        """Indian fiscal years start in April."""
        assert fiscal_year(date(2025, 3, 31)) == "2024-25"
        assert fiscal_year(date(2025, 4, 1)) == "2025-26"

    def test_round_money_normalizes_negative_zero(self):
        """-0.0 becomes 0.0."""
        assert math.copysign(1.0, round_money(-0.001)) == 1.0

    def test_safe_divide_default(self):
        """Division by zero returns the default."""
        assert safe_divide(5, 0) == 0.0
        assert safe_divide(5, 0, default=1.0) == 1.0

    def test_clamp(self):
        """clamp bounds a value."""
        assert clamp(12, 3, 10) == 10
        assert clamp(1, 3, 10) == 3
