"""Base classes and data model for receipt amount parsers."""

from abc import ABC, abstractmethod
from typing import Optional, Any, Dict, List, Literal
from dataclasses import dataclass, field
import logging

logger = logging.getLogger(__name__)

NumberFormat = Literal['us', 'european', 'mixed']
AmountCategory = Literal['total', 'subtotal', 'tax', 'tip', 'item', 'payment', 'unknown']


@dataclass(frozen=True)
class ExtractedAmount:
    """A numeric token found in receipt text, with its source line."""
    value: float
    context: str
    line_index: int


@dataclass(frozen=True)
class CategorizedAmount(ExtractedAmount):
    """Candidate amount tagged with its semantic role on the receipt."""
    category: AmountCategory = 'unknown'


@dataclass(frozen=True)
class ValidationResult:
    """Whether a proposed total agrees with subtotal + tax + tip lines."""
    valid: bool
    confidence: float


@dataclass(frozen=True)
class ScoredAmount(ExtractedAmount):
    """Candidate amount with its selection score and the signals behind it."""
    score: float = 0.0
    category: AmountCategory = 'unknown'
    validation: ValidationResult = ValidationResult(valid=False, confidence=0.0)
    signals: Dict[str, float] = field(default_factory=dict, compare=False)


@dataclass
class ExtractedData:
    """Final extraction output. An amount of 0 means no confident answer."""
    amount: float
    confidence: float
    all_amounts: List[ExtractedAmount]
    raw_text: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to plain JSON-compatible types."""
        return {
            'amount': self.amount,
            'confidence': round(self.confidence, 4),
            'all_amounts': [
                {'value': a.value, 'context': a.context, 'line_index': a.line_index}
                for a in self.all_amounts
            ],
            'raw_text': self.raw_text,
        }


@dataclass
class ParseResult:
    """Result of a parsing operation with confidence and metadata."""
    value: Any
    confidence: float
    source_text: str = ""
    metadata: Dict[str, Any] = None

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}


@dataclass
class ReceiptContext:
    """Context information about a receipt for parsing."""
    full_text: str
    lines: List[str] = None

    def __post_init__(self):
        if self.lines is None:
            self.lines = self.full_text.split('\n') if self.full_text else []


class BaseParser(ABC):
    """Base class for all receipt parsers."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        """
        Parse the specific field from receipt context.

        Args:
            context: Receipt context with text and lines

        Returns:
            ParseResult with value and confidence, or None if parsing failed
        """
        pass

    def _log_result(self, result: Optional[ParseResult], context: ReceiptContext):
        """Log parsing result for debugging."""
        if result:
            self.logger.info(f"Parsed: {result.value} (confidence: {result.confidence:.2f})")
        else:
            self.logger.warning(f"Parsing failed - no result ({len(context.lines)} lines)")
