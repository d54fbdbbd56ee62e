"""Semantic categorization of amount candidates."""

import logging
from typing import List, Sequence

from .base import AmountCategory, CategorizedAmount, ExtractedAmount
from .keywords import (
    NON_FINAL_TOTAL_PATTERN,
    PAYMENT_PATTERN,
    STANDALONE_TOTAL_PATTERN,
    STRONG_TOTAL_PATTERN,
    SUBTOTAL_PATTERN,
    TAX_PATTERN,
    TIP_PATTERN,
)

logger = logging.getLogger(__name__)

LARGE_VALUE_RATIO = 0.9
TOP_VALUE_COUNT = 3
VALUE_TOLERANCE = 0.01


def top_values(amounts: Sequence[ExtractedAmount], count: int = TOP_VALUE_COUNT) -> List[float]:
    """Return the `count` largest candidate values, largest first."""
    return sorted((a.value for a in amounts), reverse=True)[:count]


def is_among_top_values(value: float, largest: Sequence[float]) -> bool:
    """Check whether a value ties one of the largest values within a cent."""
    return any(abs(candidate - value) < VALUE_TOLERANCE for candidate in largest)


def classify_amount(amount: ExtractedAmount, all_amounts: Sequence[ExtractedAmount]) -> AmountCategory:
    """
    Decide the role of one candidate on the receipt.

    Rules run in priority order and the first match wins: payment lines,
    strong total phrases, an unqualified TOTAL, subtotal, tax, tip, then
    relative magnitude among all candidates.

    Args:
        amount: Candidate to classify
        all_amounts: Every candidate found in the same text

    Returns:
        One of total, subtotal, tax, tip, item, payment, unknown
    """
    context = amount.context.upper()

    if PAYMENT_PATTERN.search(context):
        return 'payment'

    if STRONG_TOTAL_PATTERN.search(context):
        return 'total'

    if STANDALONE_TOTAL_PATTERN.search(context) and not NON_FINAL_TOTAL_PATTERN.search(context):
        return 'total'

    if SUBTOTAL_PATTERN.search(context):
        return 'subtotal'

    if TAX_PATTERN.search(context):
        return 'tax'

    if TIP_PATTERN.search(context):
        return 'tip'

    # Unlabeled: large values stay plausible totals without claiming the label
    population = list(all_amounts)
    if amount not in population:
        population.append(amount)
    max_value = max(a.value for a in population)

    is_large_value = amount.value >= max_value * LARGE_VALUE_RATIO
    if is_large_value or is_among_top_values(amount.value, top_values(population)):
        return 'unknown'

    return 'item'


def categorize_amount(amount: ExtractedAmount, all_amounts: Sequence[ExtractedAmount]) -> CategorizedAmount:
    """Return the candidate extended with its category."""
    category = classify_amount(amount, all_amounts)
    logger.debug(f"Categorized {amount.value} on line {amount.line_index} as {category}")
    return CategorizedAmount(
        value=amount.value,
        context=amount.context,
        line_index=amount.line_index,
        category=category,
    )
