"""
Bill summaries, monthly status and transaction matching.

Operates on snapshots of BillSchedule objects; nothing here reads the clock.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from ..date_utils import days_in_month
from .frequency import BillSchedule, Frequency

logger = logging.getLogger(__name__)

# Relative amount tolerance when matching a transaction to a bill
AMOUNT_TOLERANCE = 0.1


@dataclass(frozen=True)
class BillSummary:
    """Aggregate cost of a set of active bills"""
    total_monthly: float
    total_yearly: float
    count: int
    by_category: Dict[int, float] = field(default_factory=dict)       # Monthly equivalents
    by_frequency: Dict[str, float] = field(default_factory=dict)      # Native amounts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_monthly": round(self.total_monthly, 2),
            "total_yearly": round(self.total_yearly, 2),
            "count": self.count,
            "by_category": {str(k): round(v, 2) for k, v in self.by_category.items()},
            "by_frequency": {k: round(v, 2) for k, v in self.by_frequency.items()},
        }


@dataclass(frozen=True)
class BillStatus:
    """Paid/overdue state of one bill within a calendar month"""
    bill: BillSchedule
    due_date: Optional[date]
    is_paid: bool
    is_overdue: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bill": self.bill.to_dict(),
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "is_paid": self.is_paid,
            "is_overdue": self.is_overdue,
        }


def summarize_bills(bills: Iterable[BillSchedule]) -> BillSummary:
    """
    Monthly cost summary of the active bills.

    by_category is keyed by category id (0 for uncategorised) and holds
    monthly equivalents; by_frequency holds the bills' native amounts.
    """
    active = [b for b in bills if b.is_active]

    total = 0.0
    by_category: Dict[int, float] = {}
    by_frequency = {frequency.value: 0.0 for frequency in Frequency}

    for bill in active:
        monthly = bill.monthly_equivalent
        total += monthly
        by_frequency[bill.frequency.value] += bill.amount
        category_id = bill.category_id or 0
        by_category[category_id] = by_category.get(category_id, 0.0) + monthly

    return BillSummary(
        total_monthly=total,
        total_yearly=total * 12,
        count=len(active),
        by_category=by_category,
        by_frequency=by_frequency,
    )


def _parse_month(month: str):
    try:
        year, number = (int(part) for part in month.split("-"))
    except ValueError:
        raise ValueError(f"Month must be formatted YYYY-MM, got {month!r}")
    if not 1 <= number <= 12:
        raise ValueError(f"Month must be formatted YYYY-MM, got {month!r}")
    return date(year, number, 1), date(year, number, days_in_month(year, number))


def bill_status_for_month(
    bills: Iterable[BillSchedule],
    month: str,
    today: date
) -> List[BillStatus]:
    """
    Status of the active bills due in a calendar month.

    Args:
        bills: Bill snapshot
        month: Calendar month as YYYY-MM
        today: Reference date for the overdue flag

    Returns:
        One BillStatus per bill whose next due date falls in the month. A bill
        is paid when its last payment falls in the month, and overdue when it
        is unpaid and its due date is before today.
    """
    start, end = _parse_month(month)
    statuses = []

    for bill in bills:
        if not bill.is_active or bill.next_due_date is None:
            continue
        if not start <= bill.next_due_date <= end:
            continue

        is_paid = bill.last_paid_date is not None and start <= bill.last_paid_date <= end
        statuses.append(BillStatus(
            bill=bill,
            due_date=bill.next_due_date,
            is_paid=is_paid,
            is_overdue=not is_paid and bill.next_due_date < today,
        ))

    return statuses


def match_transaction_to_bill(
    bills: Iterable[BillSchedule],
    description: str,
    amount: float
) -> Optional[BillSchedule]:
    """
    First active bill whose auto-detect pattern occurs in the description
    (case-insensitive) and whose amount is within 10% of the transaction.
    """
    haystack = description.lower()

    for bill in bills:
        if not bill.is_active or not bill.auto_detect_pattern:
            continue
        if bill.auto_detect_pattern.lower() not in haystack:
            continue
        if abs(amount - bill.amount) <= bill.amount * AMOUNT_TOLERANCE:
            logger.debug(f"Matched '{description}' to bill '{bill.name}'")
            return bill

    return None
