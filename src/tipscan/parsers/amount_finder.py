"""Discovery of amount-shaped tokens in OCR receipt text."""

import math
import re
import logging
from typing import List

from .base import ExtractedAmount
from .currency_parser import parse_currency_string
from .format_detector import detect_number_format

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = '$€£¥₹₽'
MAX_RECEIPT_AMOUNT = 100000

# Grouped forms first so "1'234.56" is not split at the apostrophe.
# Space grouping needs a two-digit decimal part so bare integers on one line
# stay apart. Other grouping repeats its first separator.
_NUMBER = (
    r"\d{1,3}(?: \d{3})+[.,]\d{2}"
    r"|\d{1,3}(?P<sep>[.,'’\u00a0\u202f])\d{3}(?:(?P=sep)\d{3})*(?:[.,]\d{1,2})?"
    r"|\d+(?:[.,]\d{0,2})?"
)

AMOUNT_PATTERN = re.compile(
    rf"(?P<leading>[{CURRENCY_SYMBOLS}]\s*)?"
    rf"(?<![\d.,'’])(?P<number>{_NUMBER})(?!\d)"
    rf"(?P<trailing>\s*[{CURRENCY_SYMBOLS}])?"
)

_WHITESPACE_PATTERN = re.compile(r'\s+')


def is_valid_receipt_amount(value) -> bool:
    """Check that a parsed value is a plausible receipt amount."""
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and 0 < value < MAX_RECEIPT_AMOUNT
    )


def normalize_context(line: str) -> str:
    """Collapse internal whitespace and trim a source line."""
    return _WHITESPACE_PATTERN.sub(' ', line).strip()


def find_amounts_in_text(text: str) -> List[ExtractedAmount]:
    """
    Find every plausible amount in receipt text.

    Candidates keep discovery order (line order, then match order within a
    line) and are never sorted or deduplicated. The context of each candidate
    is its own line, whitespace-normalized.

    Args:
        text: Raw OCR text

    Returns:
        List of ExtractedAmount candidates
    """
    if not text:
        return []

    format_hint = detect_number_format(text)
    amounts: List[ExtractedAmount] = []

    for line_index, line in enumerate(text.split('\n')):
        context = None
        for match in AMOUNT_PATTERN.finditer(line):
            value = parse_currency_string(match.group('number'), format_hint)
            if value is None or not is_valid_receipt_amount(value):
                continue

            if context is None:
                context = normalize_context(line)
            amounts.append(ExtractedAmount(value=value, context=context, line_index=line_index))

    logger.debug(f"Found {len(amounts)} amount candidates (format: {format_hint})")
    return amounts
