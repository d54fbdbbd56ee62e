"""Consistency check of a proposed total against subtotal, tax and tip lines."""

import logging
from typing import List, Sequence

from .base import ExtractedAmount, ValidationResult
from .keywords import SUBTOTAL_PATTERN, TAX_PATTERN, TIP_PATTERN

logger = logging.getLogger(__name__)

MAX_COMPONENT_CANDIDATES = 5
EXACTISH_RATIO = 0.02

# (max relative error, confidence), tightest first
CONFIDENCE_TIERS = [
    (0.02, 0.96),
    (0.05, 0.90),
    (0.10, 0.80),
]

FALLBACK_BAND = (0.95, 1.35)
FALLBACK_CONFIDENCE = 0.65

INVALID = ValidationResult(valid=False, confidence=0.0)


def _latest_matching(amounts: Sequence[ExtractedAmount], pattern, exclude=None) -> List[ExtractedAmount]:
    """Most recent candidates (highest line first) whose context matches."""
    matching = [
        a for a in amounts
        if pattern.search(a.context) and not (exclude and exclude.search(a.context))
    ]
    matching.sort(key=lambda a: a.line_index, reverse=True)
    return matching[:MAX_COMPONENT_CANDIDATES]


def validate_total_relationship(total: float, all_amounts: Sequence[ExtractedAmount]) -> ValidationResult:
    """
    Check whether a proposed total equals some subtotal + tax + tip.

    Every combination of one subtotal with an optional tax and an optional
    tip is tried. Without any subtotal line there is no anchor and the total
    cannot be validated.

    Args:
        total: Proposed total value
        all_amounts: Every candidate found in the same text

    Returns:
        ValidationResult with validity flag and confidence
    """
    subtotals = _latest_matching(all_amounts, SUBTOTAL_PATTERN)
    if not subtotals:
        return INVALID

    # "TOTAL BEFORE TAX" is a subtotal line, not a tax line
    taxes = [0.0] + [a.value for a in _latest_matching(all_amounts, TAX_PATTERN, exclude=SUBTOTAL_PATTERN)]
    tips = [0.0] + [a.value for a in _latest_matching(all_amounts, TIP_PATTERN, exclude=SUBTOTAL_PATTERN)]

    best_ratio = float('inf')
    has_exactish_match = False
    for subtotal in subtotals:
        for tax in taxes:
            for tip in tips:
                expected_total = subtotal.value + tax + tip
                if expected_total <= 0:
                    continue
                ratio = abs(total - expected_total) / expected_total
                best_ratio = min(best_ratio, ratio)
                if ratio <= EXACTISH_RATIO:
                    has_exactish_match = True

    for max_ratio, confidence in CONFIDENCE_TIERS:
        if best_ratio <= max_ratio:
            return ValidationResult(valid=True, confidence=confidence)

    latest_subtotal = subtotals[0].value
    low, high = FALLBACK_BAND
    if not has_exactish_match and latest_subtotal * low <= total <= latest_subtotal * high:
        # Untagged fees can push a total moderately above its subtotal
        return ValidationResult(valid=True, confidence=FALLBACK_CONFIDENCE)

    logger.debug(f"Total {total} not explained by subtotal {latest_subtotal} (best ratio {best_ratio:.3f})")
    return INVALID
