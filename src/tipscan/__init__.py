"""Tipscan - pick the bill total out of noisy receipt OCR text."""

__version__ = "1.0.0"

from .parsers import (
    ExtractedAmount,
    ExtractedData,
    categorize_amount,
    detect_number_format,
    extract_amounts_from_text,
    find_amounts_in_text,
    get_no_amount_error_message,
    parse_currency_string,
    validate_total_relationship,
)
from .config import ScanConfig
from .scanner import ScanSession, scan_receipt_image
from .review import ReviewQueue, ReviewItem

__all__ = [
    'ExtractedAmount',
    'ExtractedData',
    'ReviewItem',
    'ReviewQueue',
    'ScanConfig',
    'ScanSession',
    'categorize_amount',
    'detect_number_format',
    'extract_amounts_from_text',
    'find_amounts_in_text',
    'get_no_amount_error_message',
    'parse_currency_string',
    'scan_receipt_image',
    'validate_total_relationship',
]
