"""Bill total selection with multi-signal scoring and calibrated confidence."""

import logging
from typing import Dict, List, Optional, Sequence

from .base import (
    BaseParser,
    ExtractedAmount,
    ExtractedData,
    ParseResult,
    ReceiptContext,
    ScoredAmount,
)
from .amount_categorizer import classify_amount, is_among_top_values, top_values
from .amount_finder import find_amounts_in_text
from .keywords import (
    MISLEADING_TOTAL_PATTERN,
    PAYMENT_PATTERN,
    RELATIONSHIP_ANCHOR_PATTERN,
    STRONG_TOTAL_PATTERN,
    WEAK_TOTAL_PATTERN,
)
from .total_validator import validate_total_relationship

logger = logging.getLogger(__name__)

MINIMUM_ACCEPTABLE_SCORE = 1.2
MIN_CONFIDENCE = 0.2
MAX_CONFIDENCE = 0.98


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class AmountParser(BaseParser):
    """Pick the bill total among all amounts on a receipt."""

    def __init__(self):
        super().__init__()

        # Keyword signals on the candidate's own line (name, pattern, weight)
        self.keyword_signals = [
            ('strong_total', STRONG_TOTAL_PATTERN, 4.2),
            ('weak_total', WEAK_TOTAL_PATTERN, 1.8),
            ('misleading_total', MISLEADING_TOTAL_PATTERN, -2.2),
        ]
        self.payment_penalty = -2.8

        self.category_weights = {
            'total': 1.4,
            'subtotal': 0.4,
            'tax': -0.8,
            'tip': -0.8,
            'item': -0.4,
        }

        self.validation_weight = 2.4
        self.unvalidated_anchor_penalty = -0.6
        self.max_magnitude_bonus = 1.2
        self.top_value_bonus = 0.5
        self.position_weight = 1.6
        self.small_value_penalty = -1.0

    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        """
        Extract the bill total from receipt context.

        Args:
            context: Receipt context with full text and lines

        Returns:
            ParseResult with the amount and confidence, or None if no
            candidate cleared the acceptance threshold
        """
        data = self.extract(context.full_text)
        if data.amount <= 0:
            self._log_result(None, context)
            return None

        ranked = self.score_candidates(data.all_amounts, len(context.lines))
        best = ranked[0]
        result = ParseResult(
            value=data.amount,
            confidence=data.confidence,
            source_text=best.context,
            metadata={
                'line_index': best.line_index,
                'category': best.category,
                'validated': best.validation.valid,
                'candidates': ranked,
            },
        )
        self._log_result(result, context)
        return result

    def extract(self, text: str) -> ExtractedData:
        """
        Run the full pipeline on raw OCR text.

        Args:
            text: Raw OCR text

        Returns:
            ExtractedData; amount is 0 when no candidate is convincing
        """
        text = text or ''
        candidates = find_amounts_in_text(text)
        if not candidates:
            self.logger.warning("No amount candidates found")
            return ExtractedData(amount=0, confidence=0.0, all_amounts=[], raw_text=text)

        ranked = self.score_candidates(candidates, len(text.split('\n')))
        best = ranked[0]

        if best.score < MINIMUM_ACCEPTABLE_SCORE:
            fallback_confidence = _clamp(best.score / 4, 0.1, 0.35)
            self.logger.warning(
                f"Best candidate {best.value} scored {best.score:.2f}, "
                f"below threshold {MINIMUM_ACCEPTABLE_SCORE}"
            )
            return ExtractedData(
                amount=0,
                confidence=fallback_confidence,
                all_amounts=list(candidates),
                raw_text=text,
            )

        confidence = self._compute_confidence(ranked)
        self.logger.info(f"Selected {best.value} from line {best.line_index} "
                         f"(score: {best.score:.2f}, confidence: {confidence:.2f})")
        return ExtractedData(
            amount=best.value,
            confidence=confidence,
            all_amounts=list(candidates),
            raw_text=text,
        )

    def score_candidates(self, candidates: Sequence[ExtractedAmount], line_count: int) -> List[ScoredAmount]:
        """
        Score every candidate and rank them.

        Args:
            candidates: Candidates in discovery order
            line_count: Number of lines in the source text

        Returns:
            ScoredAmount list, best first; equal scores prefer the later line
        """
        if not candidates:
            return []

        max_value = max(c.value for c in candidates)
        largest = top_values(candidates)
        has_relationship_anchors = any(
            RELATIONSHIP_ANCHOR_PATTERN.search(c.context) for c in candidates
        )

        scored = [
            self._score_candidate(c, candidates, max_value, largest, has_relationship_anchors, line_count)
            for c in candidates
        ]
        scored.sort(key=lambda s: (-s.score, -s.line_index))

        for item in scored:
            self.logger.debug(f"  {item.value:>10.2f} line {item.line_index:>3} "
                              f"{item.category:<8} score {item.score:6.2f}  {item.context}")
        return scored

    def _score_candidate(self,
                         candidate: ExtractedAmount,
                         candidates: Sequence[ExtractedAmount],
                         max_value: float,
                         largest: List[float],
                         has_relationship_anchors: bool,
                         line_count: int) -> ScoredAmount:
        """Sum the independent score contributions for one candidate."""
        context = candidate.context.upper()
        category = classify_amount(candidate, candidates)
        validation = validate_total_relationship(candidate.value, candidates)
        signals: Dict[str, float] = {}

        for name, pattern, weight in self.keyword_signals:
            if pattern.search(context):
                signals[name] = weight

        if PAYMENT_PATTERN.search(context) or category == 'payment':
            signals['payment'] = self.payment_penalty

        if category in self.category_weights:
            signals[f'category_{category}'] = self.category_weights[category]

        if validation.valid:
            signals['validated'] = self.validation_weight * validation.confidence
        elif has_relationship_anchors:
            signals['unvalidated'] = self.unvalidated_anchor_penalty

        signals['magnitude'] = min(self.max_magnitude_bonus, candidate.value / max_value)
        if is_among_top_values(candidate.value, largest):
            signals['top_value'] = self.top_value_bonus

        # Totals sit near the bottom of top-to-bottom itemized receipts
        relative_position = candidate.line_index / (line_count - 1) if line_count > 1 else 0.0
        signals['position'] = self.position_weight * relative_position

        if candidate.value < 1:
            signals['small_value'] = self.small_value_penalty

        return ScoredAmount(
            value=candidate.value,
            context=candidate.context,
            line_index=candidate.line_index,
            score=sum(signals.values()),
            category=category,
            validation=validation,
            signals=signals,
        )

    def _compute_confidence(self, ranked: List[ScoredAmount]) -> float:
        """Confidence from the winning score, tempered by the runner-up margin."""
        best = ranked[0]
        score_margin = best.score - ranked[1].score if len(ranked) > 1 else best.score

        base_confidence = _clamp(best.score / 8, MIN_CONFIDENCE, MAX_CONFIDENCE)
        margin_factor = _clamp(score_margin / 3, 0.45, 1.0)
        confidence = base_confidence * margin_factor

        if best.validation.valid:
            confidence = min(MAX_CONFIDENCE, confidence + 0.1)
        return confidence


_parser = AmountParser()


def score_candidates(candidates: Sequence[ExtractedAmount], line_count: int) -> List[ScoredAmount]:
    """Rank candidates by score; see AmountParser.score_candidates."""
    return _parser.score_candidates(candidates, line_count)


def extract_amounts_from_text(text: str) -> ExtractedData:
    """Select the bill total from raw OCR text; see AmountParser.extract."""
    return _parser.extract(text)


def get_no_amount_error_message(data: ExtractedData) -> Optional[str]:
    """
    Explain to the user why no amount was selected.

    Args:
        data: Extraction output

    Returns:
        A user-facing message, or None when an amount was selected
    """
    if data.amount > 0:
        return None

    if len(data.raw_text) < 10:
        return "Couldn't read text from image. Try better lighting or hold phone steadier."

    if not data.all_amounts:
        return "Found text but no amounts. Make sure the total is visible and try again."

    if len(data.all_amounts) == 1:
        return f"Found ${data.all_amounts[0].value:.2f} but unsure if it's the total. Click to use it anyway."

    return f"Found {len(data.all_amounts)} amounts. Click one below or try a clearer image."
