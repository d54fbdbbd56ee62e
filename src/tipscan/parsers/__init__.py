"""Receipt amount parsing components - locale-aware, pure and deterministic."""

from .base import (
    CategorizedAmount,
    ExtractedAmount,
    ExtractedData,
    ParseResult,
    ReceiptContext,
    ScoredAmount,
    ValidationResult,
)
from .currency_parser import parse_currency_string
from .format_detector import detect_number_format
from .amount_finder import find_amounts_in_text, is_valid_receipt_amount
from .amount_categorizer import categorize_amount
from .total_validator import validate_total_relationship
from .amount_parser import (
    AmountParser,
    extract_amounts_from_text,
    get_no_amount_error_message,
    score_candidates,
)

__all__ = [
    'AmountParser',
    'CategorizedAmount',
    'ExtractedAmount',
    'ExtractedData',
    'ParseResult',
    'ReceiptContext',
    'ScoredAmount',
    'ValidationResult',
    'categorize_amount',
    'detect_number_format',
    'extract_amounts_from_text',
    'find_amounts_in_text',
    'get_no_amount_error_message',
    'is_valid_receipt_amount',
    'parse_currency_string',
    'score_candidates',
    'validate_total_relationship',
]
