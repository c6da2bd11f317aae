"""
Unit tests for tax.py module.

Tests slab computation, rebate, surcharge and cess, deductions and regime
comparison.
"""

import pytest

from fireplan.config import TaxBracket, TaxRegimeConfig
from fireplan.exceptions import BracketTableError, ConfigurationError, ValidationError
from fireplan.tax import (
    NEW_REGIME,
    OLD_REGIME,
    apply_deductions,
    compare_regimes,
    compute_tax,
    get_regime,
    tax_breakdown,
)


class TestComputeTax:
    """Test progressive tax computation."""

    def test_zero_income(self):
        """Zero or negative income pays nothing."""
        assert compute_tax(0, NEW_REGIME) == 0.0
        assert compute_tax(-50_000, OLD_REGIME) == 0.0

    def test_new_regime_rebate_boundary(self):
        """Taxable income of exactly 12 lakh is fully rebated in the new regime."""
        assert compute_tax(1_200_000, NEW_REGIME) == 0.0

    def test_new_regime_just_above_rebate(self):
        """13 lakh: 20k + 40k + 15k = 75k, plus 4% cess."""
        assert compute_tax(1_300_000, NEW_REGIME) == 78_000.0

    def test_old_regime_known_value(self):
        """10 lakh in the old regime: 12.5k + 100k, plus 4% cess."""
        assert compute_tax(1_000_000, OLD_REGIME) == 117_000.0

    def test_old_regime_rebate(self):
        """Income up to 5 lakh is rebated in the old regime."""
        assert compute_tax(500_000, OLD_REGIME) == 0.0
        assert compute_tax(500_001, OLD_REGIME) > 0

    def test_surcharge_applies(self):
        """60 lakh attracts the 10% surcharge band."""
        b = tax_breakdown(6_000_000, NEW_REGIME)
        assert b.base_tax == pytest.approx(1_380_000)
        assert b.surcharge == pytest.approx(138_000)
        assert b.cess == pytest.approx(60_720)
        assert b.total == 1_578_720.0

    def test_result_is_rounded(self):
        """Totals are whole rupees."""
        total = compute_tax(1_234_567, NEW_REGIME)
        assert total == round(total)

    @pytest.mark.parametrize("regime", [NEW_REGIME, OLD_REGIME])
    def test_monotonic_in_income(self, regime):
        """More taxable income never means less tax."""
        incomes = range(0, 8_000_000, 37_500)
        taxes = [compute_tax(i, regime) for i in incomes]
        assert all(b >= a for a, b in zip(taxes, taxes[1:]))

    def test_effective_rate(self):
        """Effective rate is total / taxable."""
        b = tax_breakdown(1_300_000, NEW_REGIME)
        assert b.effective_rate == pytest.approx(78_000 / 1_300_000)
        assert tax_breakdown(0, NEW_REGIME).effective_rate == 0.0

    def test_nan_income_rejected(self):
        """Non-finite income is invalid."""
        with pytest.raises(ValidationError):
            compute_tax(float("nan"), NEW_REGIME)


class TestCustomRegime:
    """Test regimes defined as data."""

    def test_flat_regime(self):
        """A single unbounded bracket is a flat tax."""
        flat = TaxRegimeConfig(name="flat", brackets=[TaxBracket(lower=0, upper=None, rate=0.1)])
        assert compute_tax(1_000_000, flat) == 100_000.0

    def test_gap_rejected(self):
        """Gaps between brackets are rejected."""
        with pytest.raises(BracketTableError, match="gap"):
            TaxRegimeConfig(
                name="broken",
                brackets=[
                    TaxBracket(lower=0, upper=100_000, rate=0.0),
                    TaxBracket(lower=200_000, upper=None, rate=0.2),
                ],
            )

    def test_overlap_rejected(self):
        """Overlapping brackets are rejected."""
        with pytest.raises(BracketTableError, match="overlap"):
            TaxRegimeConfig(
                name="broken",
                brackets=[
                    TaxBracket(lower=0, upper=300_000, rate=0.0),
                    TaxBracket(lower=200_000, upper=None, rate=0.2),
                ],
            )

    def test_unbounded_not_last_rejected(self):
        """Only the last bracket may be open-ended."""
        with pytest.raises(BracketTableError, match="unbounded"):
            TaxRegimeConfig(
                name="broken",
                brackets=[
                    TaxBracket(lower=0, upper=None, rate=0.0),
                    TaxBracket(lower=100_000, upper=None, rate=0.2),
                ],
            )

    def test_get_regime(self):
        """Presets are found case-insensitively."""
        assert get_regime("NEW") is NEW_REGIME
        with pytest.raises(ConfigurationError, match="Unknown regime"):
            get_regime("legacy")


class TestDeductions:
    """Test deduction capping."""

    def test_standard_deduction_only(self):
        """The new regime allows only its standard deduction."""
        taxable = apply_deductions(1_500_000, {"80C": 150_000}, NEW_REGIME)
        assert taxable == 1_425_000

    def test_caps_applied(self):
        """Claims above a section cap are limited to the cap."""
        taxable = apply_deductions(1_500_000, {"80C": 300_000, "80D": 10_000}, OLD_REGIME)
        assert taxable == 1_500_000 - 50_000 - 150_000 - 10_000

    def test_unlisted_section_counts_as_other(self):
        """Sections the old regime does not name fall under its uncapped 'other'."""
        taxable = apply_deductions(1_000_000, {"80G": 20_000}, OLD_REGIME)
        assert taxable == 1_000_000 - 50_000 - 20_000

    def test_floor_at_zero(self):
        """Deductions cannot push taxable income below zero."""
        assert apply_deductions(40_000, {}, NEW_REGIME) == 0.0

    def test_negative_claim_rejected(self):
        """Negative claims are invalid."""
        with pytest.raises(ValidationError):
            apply_deductions(1_000_000, {"80C": -1}, OLD_REGIME)


class TestCompareRegimes:
    """Test regime comparison."""

    def test_twelve_lakh_gross_new_regime_free(self):
        """12 lakh gross is tax free under the new regime."""
        cmp = compare_regimes(1_200_000)
        assert cmp.breakdowns["new"].total == 0.0
        assert cmp.recommended == "new"
        assert cmp.savings == cmp.breakdowns["old"].total

    def test_heavy_deductions_favour_old(self):
        """Large itemised claims can make the old regime cheaper."""
        claims = {"80C": 150_000, "80D": 25_000, "80CCD1B": 50_000, "24b": 200_000, "other": 500_000}
        cmp = compare_regimes(2_000_000, claims)
        assert cmp.recommended == "old"
        assert cmp.breakdowns["old"].total < cmp.breakdowns["new"].total

    def test_tie_goes_to_first(self):
        """Equal totals recommend the first regime given."""
        cmp = compare_regimes(300_000, regimes=[OLD_REGIME, NEW_REGIME])
        assert cmp.recommended == "old"
        assert cmp.savings == 0.0

    def test_empty_regimes_rejected(self):
        """At least one regime is required."""
        with pytest.raises(ValidationError):
            compare_regimes(1_000_000, regimes=[])
