"""
Bills Module

Recurring bill scheduling, cost summaries and transaction matching.
"""

from .frequency import (
    BillFrequencyScheduler,
    BillSchedule,
    DayClamp,
    Frequency,
    detect_frequency,
    monthly_equivalent,
    next_due_date
)
from .summary import (
    BillStatus,
    BillSummary,
    bill_status_for_month,
    match_transaction_to_bill,
    summarize_bills
)

__all__ = [
    'BillFrequencyScheduler',
    'BillSchedule',
    'DayClamp',
    'Frequency',
    'detect_frequency',
    'monthly_equivalent',
    'next_due_date',
    'BillStatus',
    'BillSummary',
    'bill_status_for_month',
    'match_transaction_to_bill',
    'summarize_bills',
]
