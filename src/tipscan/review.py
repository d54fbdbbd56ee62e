"""Manual override helpers and review queue for uncertain extractions."""

import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from pathlib import Path

from .parsers import ExtractedAmount, ExtractedData, get_no_amount_error_message, parse_currency_string

logger = logging.getLogger(__name__)

MAX_CHOICES = 8
SNIPPET_LENGTH = 200


def suggested_amounts(data: ExtractedData, limit: int = MAX_CHOICES) -> List[ExtractedAmount]:
    """Candidates to offer when no amount was selected, in discovery order."""
    return list(data.all_amounts[:limit])


def alternative_amounts(data: ExtractedData, limit: int = MAX_CHOICES) -> List[ExtractedAmount]:
    """Candidates to offer next to a selected amount, excluding its value."""
    return [a for a in data.all_amounts if a.value != data.amount][:limit]


def parse_manual_amount(raw: Optional[str]) -> Optional[float]:
    """
    Parse an amount typed by the user.

    Args:
        raw: User input such as "42.50" or "$1,234.00"

    Returns:
        Positive amount, or None if the input is not a usable amount
    """
    value = parse_currency_string(raw or '')
    if value is None or value <= 0:
        return None
    return value


@dataclass
class ReviewItem:
    """Represents a scan result that needs manual confirmation."""
    file_path: str
    reason: str
    suggested_amount: Optional[float] = None
    confidence: float = 0.0
    alternatives: List[float] = field(default_factory=list)
    raw_snippet: str = ""


class ReviewQueue:
    """Collects scan results that a person should confirm or correct."""

    def __init__(self, confidence_threshold: float = 0.75):
        """
        Initialize review queue.

        Args:
            confidence_threshold: Minimum confidence to accept without review
        """
        self.items: List[ReviewItem] = []
        self.confidence_threshold = confidence_threshold

    def review_reasons(self, data: ExtractedData) -> List[str]:
        """List why a result needs review; empty when it does not."""
        reasons = []

        if data.amount <= 0:
            reasons.append(get_no_amount_error_message(data) or "missing amount")
        elif data.confidence < self.confidence_threshold:
            reasons.append(f"Low confidence ({data.confidence:.2f})")

        return reasons

    def should_review(self, data: ExtractedData) -> bool:
        return bool(self.review_reasons(data))

    def add_item(self,
                 file_path: str,
                 reason: str,
                 suggested_amount: Optional[float] = None,
                 confidence: float = 0.0,
                 alternatives: Optional[List[float]] = None,
                 raw_snippet: str = ""):
        """Add an item to the review queue."""
        item = ReviewItem(
            file_path=file_path,
            reason=reason,
            suggested_amount=suggested_amount,
            confidence=confidence,
            alternatives=alternatives or [],
            raw_snippet=raw_snippet,
        )
        self.items.append(item)
        logger.debug(f"Added to review queue: {Path(file_path).name} - {reason}")

    def add_from_extraction(self, file_path: str, data: ExtractedData) -> bool:
        """
        Add a scan result to the queue if it is uncertain.

        Args:
            file_path: Path to the scanned receipt
            data: Extraction output for the receipt

        Returns:
            True if the result was queued for review
        """
        reasons = self.review_reasons(data)
        if not reasons:
            return False

        logger.info(f"Sending {Path(file_path).name} to review: {'; '.join(reasons)}")

        choices = alternative_amounts(data) if data.amount > 0 else suggested_amounts(data)
        self.add_item(
            file_path=file_path,
            reason="; ".join(reasons),
            suggested_amount=data.amount if data.amount > 0 else None,
            confidence=data.confidence,
            alternatives=[a.value for a in choices],
            raw_snippet=make_snippet(data.raw_text),
        )
        return True

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics for the review queue."""
        if not self.items:
            return {"total": 0}

        missing_amount = sum(1 for item in self.items if item.suggested_amount is None)
        return {
            "total": len(self.items),
            "missing_amount": missing_amount,
            "low_confidence": len(self.items) - missing_amount,
        }

    def clear(self):
        """Clear all items from the review queue."""
        self.items.clear()


def make_snippet(raw_text: str) -> str:
    """Single-line, spreadsheet-safe excerpt of OCR text."""
    snippet = raw_text.replace('\n', ' ')[:SNIPPET_LENGTH]
    snippet = ''.join(char for char in snippet if ord(char) >= 32)
    if len(raw_text) > SNIPPET_LENGTH:
        snippet += "..."
    return snippet
