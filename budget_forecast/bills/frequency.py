"""
Bill Frequency Scheduler

Deterministic due-date arithmetic for recurring bills. Every calculation is a
pure function of the schedule and an explicit anchor date; the next due date is
always the first valid occurrence strictly after the anchor.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Optional

from ..date_utils import days_in_month, shift_month
from ..exceptions import InvalidScheduleError

logger = logging.getLogger(__name__)


class Frequency(Enum):
    """How often a bill recurs"""
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def occurrences_per_year(self) -> int:
        return {
            Frequency.DAILY: 365,
            Frequency.WEEKLY: 52,
            Frequency.BIWEEKLY: 26,
            Frequency.MONTHLY: 12,
            Frequency.QUARTERLY: 4,
            Frequency.YEARLY: 1,
        }[self]

    @property
    def monthly_multiplier(self) -> float:
        """Factor that normalises one payment to a per-month amount"""
        return self.occurrences_per_year / 12

    @property
    def label(self) -> str:
        return "Bi-weekly" if self is Frequency.BIWEEKLY else self.value.capitalize()

    @property
    def uses_weekday(self) -> bool:
        return self in (Frequency.WEEKLY, Frequency.BIWEEKLY)

    def to_monthly_amount(self, amount: float) -> float:
        return amount * self.monthly_multiplier

    @classmethod
    def parse(cls, value: Any) -> "Frequency":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidScheduleError(f"Unknown bill frequency: {value!r}")


class DayClamp(Enum):
    """How a due day beyond the end of a short month is resolved"""
    MONTH_END = "month_end"     # Day 31 falls on Feb 28/29, Apr 30, ...
    FIXED_28 = "fixed_28"       # Every due day above 28 becomes 28


# Average-interval bands (days) used to recognise a bill's frequency
FREQUENCY_BANDS = [
    (Frequency.DAILY, 0.5, 1.5),
    (Frequency.WEEKLY, 6, 8),
    (Frequency.BIWEEKLY, 12, 16),
    (Frequency.MONTHLY, 25, 35),
    (Frequency.QUARTERLY, 85, 100),
    (Frequency.YEARLY, 350, 380),
]


def detect_frequency(avg_interval_days: float) -> Optional[Frequency]:
    """Frequency whose band contains the average interval, or None"""
    for frequency, low, high in FREQUENCY_BANDS:
        if low <= avg_interval_days <= high:
            return frequency
    return None


@dataclass(frozen=True)
class BillSchedule:
    """
    A recurring bill.

    due_day is an ISO weekday (1 = Monday .. 7 = Sunday) for weekly and
    bi-weekly bills and a day of month (1-31) otherwise. due_month (1-12) sets
    the month of yearly bills and the quarter phase of quarterly bills.
    """
    frequency: Frequency
    amount: float = 0.0
    due_day: Optional[int] = None
    due_month: Optional[int] = None
    last_paid_date: Optional[date] = None
    next_due_date: Optional[date] = None
    name: str = ""
    category_id: Optional[int] = None
    account_id: Optional[int] = None
    auto_detect_pattern: str = ""
    is_active: bool = True

    def __post_init__(self):
        if not isinstance(self.frequency, Frequency):
            object.__setattr__(self, "frequency", Frequency.parse(self.frequency))
        if self.amount < 0:
            raise InvalidScheduleError(f"Bill amount must be >= 0, got {self.amount}")
        if self.due_day is not None:
            upper = 7 if self.frequency.uses_weekday else 31
            if not 1 <= self.due_day <= upper:
                raise InvalidScheduleError(
                    f"due_day for a {self.frequency.value} bill must be 1-{upper}, got {self.due_day}"
                )
        if self.due_month is not None and not 1 <= self.due_month <= 12:
            raise InvalidScheduleError(f"due_month must be 1-12, got {self.due_month}")

    @property
    def monthly_equivalent(self) -> float:
        return self.frequency.to_monthly_amount(self.amount)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "frequency": self.frequency.value,
            "amount": self.amount,
            "due_day": self.due_day,
            "due_month": self.due_month,
            "last_paid_date": self.last_paid_date.isoformat() if self.last_paid_date else None,
            "next_due_date": self.next_due_date.isoformat() if self.next_due_date else None,
            "category_id": self.category_id,
            "account_id": self.account_id,
            "auto_detect_pattern": self.auto_detect_pattern,
            "is_active": self.is_active,
            "monthly_equivalent": round(self.monthly_equivalent, 2),
        }


class BillFrequencyScheduler:
    """
    Computes due dates and monthly-equivalent amounts for bills.

    Example:
    ```python
    scheduler = BillFrequencyScheduler()
    bill = BillSchedule(Frequency.MONTHLY, amount=1200.0, due_day=15)

    scheduler.next_due_date(bill, date(2024, 1, 20))   # 2024-02-15
    scheduler.monthly_equivalent(bill)                 # 1200.0
    ```
    """

    def __init__(self, day_clamp: DayClamp = DayClamp.MONTH_END):
        self.day_clamp = DayClamp(day_clamp)

    def next_due_date(self, schedule: BillSchedule, anchor_date: date) -> date:
        """
        First occurrence of the schedule strictly after anchor_date.

        Args:
            schedule: The bill schedule
            anchor_date: Usually today, or the settled due date after a payment
        """
        frequency = schedule.frequency

        if frequency is Frequency.DAILY:
            return anchor_date + timedelta(days=1)

        if frequency.uses_weekday:
            weekday = schedule.due_day or 1
            days_ahead = (weekday - anchor_date.isoweekday()) % 7
            if days_ahead == 0:
                days_ahead = 14 if frequency is Frequency.BIWEEKLY else 7
            return anchor_date + timedelta(days=days_ahead)

        day = schedule.due_day or 1

        if frequency is Frequency.MONTHLY:
            return self._first_after(anchor_date, anchor_date.year, anchor_date.month, day, step=1)

        if frequency is Frequency.QUARTERLY:
            phase = ((schedule.due_month or 1) - 1) % 3
            return self._first_after(anchor_date, anchor_date.year, phase + 1, day, step=3)

        if frequency is Frequency.YEARLY:
            return self._first_after(anchor_date, anchor_date.year, schedule.due_month or 1, day, step=12)

        raise InvalidScheduleError(f"Unsupported frequency: {frequency}")

    def monthly_equivalent(self, schedule: BillSchedule) -> float:
        """Amount normalised to one month (weekly x 52/12, quarterly / 3, ...)"""
        return schedule.monthly_equivalent

    def yearly_total(self, schedule: BillSchedule) -> float:
        return schedule.amount * schedule.frequency.occurrences_per_year

    def schedule_from(self, schedule: BillSchedule, today: date) -> BillSchedule:
        """Copy of the schedule with next_due_date computed from today"""
        return replace(schedule, next_due_date=self.next_due_date(schedule, today))

    def mark_paid(self, schedule: BillSchedule, paid_date: date) -> BillSchedule:
        """
        Record a payment and advance the due date.

        The next due date is computed from the later of the payment date and
        the due date being settled, so an early payment settles the current
        occurrence rather than the same one twice.
        """
        anchor = paid_date
        if schedule.next_due_date is not None and schedule.next_due_date > paid_date:
            anchor = schedule.next_due_date

        next_due = self.next_due_date(schedule, anchor)
        logger.debug(f"Bill '{schedule.name}' paid on {paid_date}, next due {next_due}")
        return replace(schedule, last_paid_date=paid_date, next_due_date=next_due)

    def _clamped(self, year: int, month: int, day: int) -> date:
        if self.day_clamp is DayClamp.FIXED_28:
            return date(year, month, min(day, 28))
        return date(year, month, min(day, days_in_month(year, month)))

    def _first_after(self, anchor: date, year: int, month: int, day: int, step: int) -> date:
        candidate = self._clamped(year, month, day)
        while candidate <= anchor:
            year, month = shift_month(year, month, step)
            candidate = self._clamped(year, month, day)
        return candidate


_default_scheduler = BillFrequencyScheduler()


def next_due_date(schedule: BillSchedule, anchor_date: date) -> date:
    """First due date of the schedule strictly after anchor_date."""
    return _default_scheduler.next_due_date(schedule, anchor_date)


def monthly_equivalent(schedule: BillSchedule) -> float:
    """Bill amount normalised to one month."""
    return _default_scheduler.monthly_equivalent(schedule)
