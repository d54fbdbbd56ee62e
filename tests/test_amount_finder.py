"""Tests for amount candidate discovery."""

from tipscan.parsers.amount_finder import find_amounts_in_text, is_valid_receipt_amount
from tipscan.parsers.amount_parser import extract_amounts_from_text
from tipscan.parsers.base import ExtractedAmount


class TestFindAmountsInText:
    """Test suite for find_amounts_in_text."""

    def test_line_context_and_index(self):
        """Test exact line context and line index of each candidate."""
        amounts = find_amounts_in_text("ITEM 9.99\nTOTAL CHF 1'234.56")

        assert len(amounts) == 2
        assert amounts[0] == ExtractedAmount(value=9.99, context="ITEM 9.99", line_index=0)
        assert amounts[1].value == 1234.56
        assert amounts[1].context == "TOTAL CHF 1'234.56"
        assert amounts[1].line_index == 1

    def test_context_is_whitespace_normalized(self):
        """Test that context collapses and trims whitespace."""
        amounts = find_amounts_in_text("   TOTAL \t   12.50   ")

        assert len(amounts) == 1
        assert amounts[0].context == "TOTAL 12.50"

    def test_discovery_order(self):
        """Test line order, then match order within a line."""
        amounts = find_amounts_in_text("A 1.00 2.00\nB 3.00")

        assert [a.value for a in amounts] == [1.0, 2.0, 3.0]
        assert [a.line_index for a in amounts] == [0, 0, 1]

    def test_duplicates_are_kept(self):
        """Test that a total printed twice yields two candidates."""
        amounts = find_amounts_in_text("TOTAL 10.00\nTOTAL 10.00")

        assert [a.line_index for a in amounts] == [0, 1]

    def test_currency_symbols(self):
        """Test leading and trailing currency symbols."""
        assert [a.value for a in find_amounts_in_text("TOTAL $12.50")] == [12.5]
        assert [a.value for a in find_amounts_in_text("TOTAL 12,50 €")] == [12.5]
        assert [a.value for a in find_amounts_in_text("TOTAL £ 7.25")] == [7.25]

    def test_invalid_amounts_are_dropped(self):
        """Test that zero and out-of-range values are never returned."""
        amounts = find_amounts_in_text("ZERO 0.00\nBIG 150000.00\nOK 5.00")

        assert [a.value for a in amounts] == [5.0]
        assert amounts[0].line_index == 2

    def test_european_receipt(self):
        """Test grouped European numbers."""
        amounts = find_amounts_in_text("SUBTOTAL 1.234,00\nTAX 12,34\nTOTAL 1.246,34")

        assert [a.value for a in amounts] == [1234.0, 12.34, 1246.34]

    def test_empty_text(self):
        """Test text without any content."""
        assert find_amounts_in_text("") == []
        assert find_amounts_in_text("THANK YOU") == []

    def test_space_grouping_with_decimal_part(self):
        """Test that a space groups thousands when cents follow."""
        amounts = find_amounts_in_text("TOTAL 1 234,56")

        assert [a.value for a in amounts] == [1234.56]
        assert extract_amounts_from_text("TOTAL 1 234,56").amount == 1234.56

    def test_bare_integers_separated_by_space_stay_apart(self):
        amounts = find_amounts_in_text("ROOM 12 345")

        assert [a.value for a in amounts] == [12.0, 345.0]

    def test_grouping_repeats_first_separator(self):
        """Test that mixed grouping never yields a three-digit fraction."""
        amounts = find_amounts_in_text("REF 12.345,678")

        assert [a.value for a in amounts] == [12345.0]

    def test_pure_function(self):
        """Test that repeated calls give identical output."""
        text = "SUBTOTAL 45.00\nTAX 4.50\nTOTAL 49.50"
        assert find_amounts_in_text(text) == find_amounts_in_text(text)


class TestIsValidReceiptAmount:
    """Test suite for the validity predicate."""

    def test_bounds(self):
        assert is_valid_receipt_amount(0.01)
        assert is_valid_receipt_amount(99999.99)
        assert not is_valid_receipt_amount(0)
        assert not is_valid_receipt_amount(-1)
        assert not is_valid_receipt_amount(100000)

    def test_non_finite(self):
        assert not is_valid_receipt_amount(float('inf'))
        assert not is_valid_receipt_amount(float('nan'))
