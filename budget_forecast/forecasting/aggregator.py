"""
Time Series Aggregator

Groups a flat list of transactions into per-calendar-month totals. This is the
only pass over the raw transaction history, so it is also where malformed input
is rejected and where callers can interrupt long-running work.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..exceptions import AggregationCancelled
from ..transactions import DateWindow, Direction, TransactionLike, coerce_transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodAggregate:
    """Income and expense totals for one calendar month"""
    period_key: str     # YYYY-MM
    income: float
    expenses: float

    @property
    def net(self) -> float:
        return self.income - self.expenses

    @property
    def year(self) -> int:
        return int(self.period_key[:4])

    @property
    def month(self) -> int:
        return int(self.period_key[5:7])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period_key,
            "income": round(self.income, 2),
            "expenses": round(self.expenses, 2),
            "net": round(self.net, 2),
        }


class TimeSeriesAggregator:
    """
    Builds monthly income/expense series from transactions.

    Example:
    ```python
    aggregator = TimeSeriesAggregator()
    periods = aggregator.aggregate(transactions, window=DateWindow(start, end))
    incomes = [p.income for p in periods]
    ```
    """

    def __init__(self, check_interval: int = 500):
        """
        Initialize aggregator.

        Args:
            check_interval: Records processed between cancellation checks
        """
        self.check_interval = max(1, check_interval)

    def aggregate(
        self,
        transactions: Iterable[TransactionLike],
        window: Optional[DateWindow] = None,
        should_cancel: Optional[Callable[[], bool]] = None
    ) -> List[PeriodAggregate]:
        """
        Aggregate transactions into monthly totals.

        Args:
            transactions: Transactions in any order
            window: Optional inclusive date window; records outside are ignored
            should_cancel: Polled periodically, stops the pass when it returns True

        Returns:
            PeriodAggregates sorted ascending by period

        Raises:
            InvalidTransactionError: A record is malformed
            AggregationCancelled: should_cancel returned True
        """
        totals: Dict[str, List[float]] = {}

        for record in self._iter_records(transactions, window, should_cancel):
            bucket = totals.setdefault(record.period_key, [0.0, 0.0])
            if record.direction is Direction.CREDIT:
                bucket[0] += record.amount
            else:
                bucket[1] += record.amount

        return [
            PeriodAggregate(period_key=key, income=income, expenses=expenses)
            for key, (income, expenses) in sorted(totals.items())
        ]

    def aggregate_by_category(
        self,
        transactions: Iterable[TransactionLike],
        window: Optional[DateWindow] = None,
        debits_only: bool = False,
        include_uncategorized: bool = False,
        should_cancel: Optional[Callable[[], bool]] = None
    ) -> Dict[int, Dict[str, float]]:
        """
        Monthly totals per category.

        Returns:
            Dict mapping category id to {period_key: amount}, periods ascending.
            Uncategorised records are keyed under 0 when include_uncategorized is set.
        """
        categories: Dict[int, Dict[str, float]] = {}

        for record in self._iter_records(transactions, window, should_cancel):
            if debits_only and record.direction is not Direction.DEBIT:
                continue
            category_id = record.category_id
            if not category_id:
                if not include_uncategorized:
                    continue
                category_id = 0
            months = categories.setdefault(category_id, {})
            months[record.period_key] = months.get(record.period_key, 0.0) + record.amount

        return {
            category_id: dict(sorted(months.items()))
            for category_id, months in categories.items()
        }

    def _iter_records(
        self,
        transactions: Iterable[TransactionLike],
        window: Optional[DateWindow],
        should_cancel: Optional[Callable[[], bool]]
    ):
        for index, item in enumerate(transactions):
            if should_cancel is not None and index % self.check_interval == 0 and should_cancel():
                logger.info(f"Aggregation cancelled after {index} records")
                raise AggregationCancelled(f"Aggregation cancelled after {index} records")

            record = coerce_transaction(item)
            if window is not None and not window.contains(record.date):
                continue
            yield record


def aggregate(
    transactions: Iterable[TransactionLike],
    window: Optional[DateWindow] = None,
    should_cancel: Optional[Callable[[], bool]] = None
) -> List[PeriodAggregate]:
    """Aggregate transactions into sorted monthly PeriodAggregates."""
    return TimeSeriesAggregator().aggregate(transactions, window, should_cancel)
