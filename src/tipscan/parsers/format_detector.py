"""Receipt-wide detection of US vs European number formatting."""

import re
import logging

from .base import NumberFormat

logger = logging.getLogger(__name__)

# 1,234.56 / 1.234,56 / 1'234.56 / 1 234,56 / 12,34 / 12.34
GROUPED_NUMBER_PATTERN = re.compile(
    r"(?<![\d.,])\d{1,3}(?:[.,'’ \u00a0\u202f]\d{3})*(?:[.,]\d{1,2})?(?![\d])"
)

MIN_EVIDENCE_TOKENS = 3
DOMINANCE_RATIO = 1.5


def detect_number_format(text: str) -> NumberFormat:
    """
    Infer whether a receipt predominantly uses US or European formatting.

    Args:
        text: Full OCR text of the receipt

    Returns:
        'us', 'european' or 'mixed'; 'us' when there is too little evidence
    """
    tokens = GROUPED_NUMBER_PATTERN.findall(text or '')
    if len(tokens) < MIN_EVIDENCE_TOKENS:
        return 'us'

    us_count = 0
    european_count = 0
    for token in tokens:
        leaning = _classify_token(token)
        if leaning == 'us':
            us_count += 1
        elif leaning == 'european':
            european_count += 1

    logger.debug(f"Number format evidence: us={us_count}, european={european_count}")

    if european_count > us_count * DOMINANCE_RATIO:
        return 'european'
    if us_count > european_count * DOMINANCE_RATIO:
        return 'us'
    return 'mixed'


def _classify_token(token: str) -> str:
    """Return 'us', 'european' or '' for a single grouped number token."""
    compact = re.sub(r"['’\s]", '', token)
    has_comma = ',' in compact
    has_dot = '.' in compact

    if has_comma and has_dot:
        return 'european' if compact.rfind(',') > compact.rfind('.') else 'us'

    if not has_comma and not has_dot:
        return ''

    separator = ',' if has_comma else '.'
    last_group = compact.rsplit(separator, 1)[1]
    is_decimal = len(last_group) <= 2

    if separator == ',':
        # Decimal comma is European; comma grouping is US
        return 'european' if is_decimal else 'us'
    return 'us' if is_decimal else 'european'
