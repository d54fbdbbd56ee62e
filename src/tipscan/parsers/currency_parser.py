"""Locale-tolerant conversion of OCR numeric tokens to float values."""

import re
import logging
from typing import Optional

from .base import NumberFormat

logger = logging.getLogger(__name__)

# Everything except digits, separators, apostrophes and whitespace is noise
_NOISE_PATTERN = re.compile(r"[^\d.,'’\s]")
# Apostrophes and whitespace only ever group thousands (1'234.56, 1 234,56)
_GROUPING_ONLY_PATTERN = re.compile(r"['’\s]")
_NORMALIZED_PATTERN = re.compile(r'^\d+(?:\.\d+)?$')


def parse_currency_string(raw: str, format_hint: Optional[NumberFormat] = None) -> Optional[float]:
    """
    Convert a raw numeric substring into a float.

    The separator that occurs last is the decimal point when both ',' and '.'
    are present. A lone separator kind is a decimal point only when at most
    two digits follow its last occurrence; a trailing group of three digits
    reads as thousands grouping.

    Args:
        raw: Numeric text as recognised by OCR, e.g. "1'234.56" or "1.234,56"
        format_hint: Receipt-wide number format from detect_number_format

    Returns:
        Parsed value, or None when the text holds no valid number
    """
    if not raw or not isinstance(raw, str):
        return None

    stripped = raw.replace('\u00a0', ' ').replace('\u202f', ' ').strip()
    negative = stripped.startswith('-')

    cleaned = _NOISE_PATTERN.sub('', stripped)
    cleaned = _GROUPING_ONLY_PATTERN.sub('', cleaned)
    if not any(char.isdigit() for char in cleaned):
        return None

    normalized = _resolve_separators(cleaned, format_hint)
    if normalized is None or not _NORMALIZED_PATTERN.match(normalized):
        return None

    value = float(normalized)
    return -value if negative else value


def _resolve_separators(cleaned: str, format_hint: Optional[NumberFormat]) -> Optional[str]:
    """Rewrite a digits-and-separators string into plain digits[.digits]."""
    has_comma = ',' in cleaned
    has_dot = '.' in cleaned

    if has_comma and has_dot:
        decimal_sep = ',' if cleaned.rfind(',') > cleaned.rfind('.') else '.'
        grouping_sep = '.' if decimal_sep == ',' else ','
        without_grouping = cleaned.replace(grouping_sep, '')
        return _apply_decimal(without_grouping, decimal_sep)

    if not has_comma and not has_dot:
        return cleaned

    separator = ',' if has_comma else '.'
    parts = cleaned.split(separator)
    last_group = parts[-1]

    if len(last_group) == 0:
        # Trailing separator ("12." or "12,") carries no fraction
        return cleaned.replace(separator, '')

    if len(last_group) <= 2:
        # Last occurrence is the decimal point, earlier ones group thousands
        return ''.join(parts[:-1]) + '.' + last_group

    if len(parts) == 2 and len(last_group) == 3:
        # "1.234" or "1,234": grouping under every hint, the european hint
        # only confirms it
        logger.debug(f"Ambiguous separator in {cleaned!r} read as grouping (hint={format_hint})")

    return cleaned.replace(separator, '')


def _apply_decimal(without_grouping: str, decimal_sep: str) -> Optional[str]:
    """Turn the single remaining decimal separator into a dot."""
    if without_grouping.count(decimal_sep) > 1:
        return None
    integer_part, _, fraction = without_grouping.partition(decimal_sep)
    if not fraction:
        return integer_part
    return f"{integer_part}.{fraction}"
