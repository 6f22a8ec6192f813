"""
Patterns Module for Budget Forecast

Recurring transaction and bill detection.
"""

from .recurring_detector import (
    BillSuggestion,
    RecurrenceFrequency,
    RecurrencePattern,
    RecurringPatternDetector,
    detect_recurring_bills,
    detect_recurring_patterns,
    generate_bill_name,
    generate_pattern,
    normalize_description
)

__all__ = [
    'BillSuggestion',
    'RecurrenceFrequency',
    'RecurrencePattern',
    'RecurringPatternDetector',
    'detect_recurring_bills',
    'detect_recurring_patterns',
    'generate_bill_name',
    'generate_pattern',
    'normalize_description',
]
