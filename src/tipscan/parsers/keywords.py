"""Keyword patterns shared by categorization, validation and scoring.

All patterns are matched case-insensitively against a candidate's context.
"""

import re

PAYMENT_PATTERN = re.compile(
    r'\b(?:CASH|CHANGE|TENDERED|PAID|APPROVAL|AUTH|CARD|VISA|MASTERCARD|AMEX)\b', re.IGNORECASE
)

STRONG_TOTAL_PATTERN = re.compile(
    r'\b(?:GRAND\s*TOTAL|TOTAL\s*DUE|AMOUNT\s*DUE|BALANCE\s*DUE|PLEASE\s*PAY|FINAL\s*AMOUNT|TO\s*PAY)\b',
    re.IGNORECASE,
)

STANDALONE_TOTAL_PATTERN = re.compile(r'\bTOTAL\b', re.IGNORECASE)

# Qualifiers that turn "TOTAL" into a partial total
NON_FINAL_TOTAL_PATTERN = re.compile(
    r'\b(?:SUB|ITEMS?|SAVINGS|DISCOUNT|MERCHANDISE|FOOD)', re.IGNORECASE
)

WEAK_TOTAL_PATTERN = re.compile(r'\b(?:TOTAL|SUM|AMOUNT|DUE|BAL)\b', re.IGNORECASE)

MISLEADING_TOTAL_PATTERN = re.compile(
    r'\b(?:ITEMS?\s*TOTAL|TOTAL\s*SAVINGS?|SAVINGS?\s*TOTAL|DISCOUNT|MERCHANDISE|FOOD\s*TOTAL)\b',
    re.IGNORECASE,
)

SUBTOTAL_PATTERN = re.compile(r'SUB\s*-?\s*TOTAL|BEFORE\s*TAX', re.IGNORECASE)

TAX_PATTERN = re.compile(r'\b(?:TAX|HST|GST|PST|VAT)', re.IGNORECASE)

TIP_PATTERN = re.compile(r'\b(?:TIP|GRATUITY|SERVICE)', re.IGNORECASE)

RELATIONSHIP_ANCHOR_PATTERN = re.compile(
    r'SUB\s*-?\s*TOTAL|BEFORE\s*TAX|\b(?:TAX|HST|GST|PST|VAT|TIP|GRATUITY|SERVICE)', re.IGNORECASE
)
