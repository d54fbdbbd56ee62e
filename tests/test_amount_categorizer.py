"""Tests for semantic categorization of amount candidates."""

import pytest
from tipscan.parsers.amount_categorizer import categorize_amount, classify_amount
from tipscan.parsers.amount_finder import find_amounts_in_text
from tipscan.parsers.base import CategorizedAmount, ExtractedAmount


def _amount(value, context, line_index=0):
    return ExtractedAmount(value=value, context=context, line_index=line_index)


class TestClassifyAmount:
    """Test suite for classify_amount."""

    def setup_method(self):
        """Set up a receipt with payment lines."""
        self.amounts = find_amounts_in_text("TOTAL 37.20\nCASH 50.00\nCHANGE 12.80")

    def test_cash_line_is_payment(self):
        """Test that a CASH line among total, cash and change is a payment."""
        cash = self.amounts[1]
        assert classify_amount(cash, self.amounts) == "payment"

    def test_change_line_is_payment(self):
        assert classify_amount(self.amounts[2], self.amounts) == "payment"

    def test_payment_wins_over_total_keyword(self):
        """Test that a payment keyword takes priority over TOTAL."""
        amount = _amount(51.5, "VISA APPROVAL TOTAL 51.50")
        assert classify_amount(amount, [amount]) == "payment"

    @pytest.mark.parametrize("context", [
        "TOTAL 37.20",
        "GRAND TOTAL 37.20",
        "AMOUNT DUE 37.20",
        "BALANCE DUE 37.20",
    ])
    def test_total_lines(self, context):
        """Test strong and standalone total phrases."""
        amount = _amount(37.2, context)
        assert classify_amount(amount, [amount]) == "total"

    @pytest.mark.parametrize("context", ["SUBTOTAL 45.00", "SUB TOTAL 45.00", "SUB-TOTAL 45.00"])
    def test_subtotal_lines(self, context):
        """Test that a qualified TOTAL falls through to subtotal."""
        amount = _amount(45.0, context)
        assert classify_amount(amount, [amount]) == "subtotal"

    @pytest.mark.parametrize("context,expected", [
        ("SALES TAX 4.50", "tax"),
        ("VAT 4.50", "tax"),
        ("GRATUITY 4.50", "tip"),
        ("SERVICE CHARGE 4.50", "tip"),
    ])
    def test_tax_and_tip_lines(self, context, expected):
        amount = _amount(4.5, context)
        assert classify_amount(amount, [amount]) == expected

    def test_unlabeled_values_by_magnitude(self):
        """Test that large unlabeled values stay unknown and small ones are items."""
        amounts = find_amounts_in_text("BURGER 12.00\nFRIES 4.00\nSODA 2.00\nCOOKIE 1.00")

        categories = [classify_amount(a, amounts) for a in amounts]

        assert categories == ["unknown", "unknown", "unknown", "item"]

    def test_amount_outside_population(self):
        """Test classifying a candidate not included in the list."""
        amount = _amount(99.0, "MYSTERY 99.00")
        assert classify_amount(amount, []) == "unknown"


class TestCategorizeAmount:
    """Test suite for categorize_amount."""

    def test_returns_categorized_copy(self):
        """Test that the candidate fields are preserved alongside the category."""
        amounts = find_amounts_in_text("SUBTOTAL 45.00\nTAX 4.50")

        result = categorize_amount(amounts[1], amounts)

        assert isinstance(result, CategorizedAmount)
        assert result.value == 4.5
        assert result.context == "TAX 4.50"
        assert result.line_index == 1
        assert result.category == "tax"
