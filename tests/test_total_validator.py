"""Tests for subtotal + tax + tip consistency checks."""

import pytest
from tipscan.parsers.amount_finder import find_amounts_in_text
from tipscan.parsers.base import ExtractedAmount
from tipscan.parsers.total_validator import validate_total_relationship


class TestValidateTotalRelationship:
    """Test suite for validate_total_relationship."""

    def setup_method(self):
        """Set up a restaurant receipt."""
        self.amounts = find_amounts_in_text(
            "SUBTOTAL 45.00\nTAX 4.50\nTIP 2.00\nTOTAL 51.50\nCASH 60.00\nCHANGE 8.50"
        )

    def test_exact_sum_is_valid(self):
        """Test that subtotal + tax + tip validates with top confidence."""
        result = validate_total_relationship(51.5, self.amounts)

        assert result.valid
        assert result.confidence == pytest.approx(0.96)

    def test_unrelated_value_is_invalid(self):
        """Test a value that no combination explains."""
        result = validate_total_relationship(80, self.amounts)

        assert not result.valid
        assert result.confidence == 0

    def test_without_subtotal_nothing_validates(self):
        """Test that tax and tip alone are not an anchor."""
        amounts = find_amounts_in_text("TAX 4.50\nTOTAL 51.50")

        assert not validate_total_relationship(51.5, amounts).valid

    @pytest.mark.parametrize("total,confidence", [
        (110.0, 0.96),
        (113.0, 0.90),
        (118.0, 0.80),
    ])
    def test_confidence_tiers(self, total, confidence):
        """Test that looser matches get lower confidence."""
        amounts = find_amounts_in_text("SUBTOTAL 100.00\nTAX 8.00")

        result = validate_total_relationship(total, amounts)

        assert result.valid
        assert result.confidence == pytest.approx(confidence)

    def test_fallback_band_uses_latest_subtotal(self):
        """Test the moderate-markup fallback against the most recent subtotal."""
        amounts = find_amounts_in_text("SUBTOTAL 10.00\nSUBTOTAL 40.00")

        result = validate_total_relationship(50.0, amounts)

        assert result.valid
        assert result.confidence == pytest.approx(0.65)

    def test_fallback_band_upper_bound(self):
        amounts = find_amounts_in_text("SUBTOTAL 40.00")
        assert not validate_total_relationship(60.0, amounts).valid

    def test_only_recent_subtotals_are_considered(self):
        """Test that at most five subtotal lines are tried, latest first."""
        amounts = [ExtractedAmount(100.0, "SUBTOTAL 100.00", 0)] + [
            ExtractedAmount(10.0, "SUBTOTAL 10.00", i) for i in range(1, 6)
        ]

        assert not validate_total_relationship(100.0, amounts).valid
        assert validate_total_relationship(100.0, amounts[:5]).valid

    def test_before_tax_line_is_not_a_tax_amount(self):
        """Test that a subtotal labeled BEFORE TAX never counts as tax."""
        amounts = find_amounts_in_text("SUBTOTAL BEFORE TAX 50.00\nTOTAL 100.00")

        assert not validate_total_relationship(100.0, amounts).valid
        assert validate_total_relationship(50.0, amounts).valid
