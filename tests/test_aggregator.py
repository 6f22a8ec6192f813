"""
test_aggregator.py
-------------------
Tests for input records and monthly aggregation.

Run from the project root:
    python -m pytest tests/test_aggregator.py -v
"""

from datetime import date

import pytest

from budget_forecast.exceptions import AggregationCancelled, InvalidTransactionError
from budget_forecast.forecasting.aggregator import PeriodAggregate, TimeSeriesAggregator, aggregate
from budget_forecast.transactions import DateWindow, Direction, TransactionRecord


# =============================================================================
# HELPERS
# =============================================================================

def _make_txn(
    day: date,
    amount: float,
    direction: Direction = Direction.DEBIT,
    description: str = "GROCERIES",
    category_id=None,
    account_id: int = 1,
) -> TransactionRecord:
    return TransactionRecord(
        account_id=account_id,
        date=day,
        description=description,
        amount=amount,
        direction=direction,
        category_id=category_id,
    )


# =============================================================================
# TRANSACTION RECORDS
# =============================================================================

class TestTransactionRecord:

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidTransactionError):
            _make_txn(date(2024, 1, 1), -5.0)

    def test_nan_amount_rejected(self):
        with pytest.raises(InvalidTransactionError):
            _make_txn(date(2024, 1, 1), float("nan"))

    def test_string_direction_rejected_on_constructor(self):
        with pytest.raises(InvalidTransactionError):
            TransactionRecord(1, date(2024, 1, 1), "X", 10.0, "credit")

    def test_from_dict_accepts_type_alias_and_iso_dates(self):
        record = TransactionRecord.from_dict({
            "account_id": 3,
            "date": "2024-02-10",
            "description": "SALARY",
            "amount": "2500.50",
            "type": "credit",
            "category_id": 4,
        })
        assert record.date == date(2024, 2, 10)
        assert record.direction is Direction.CREDIT
        assert record.amount == pytest.approx(2500.50)
        assert record.category_id == 4
        assert record.period_key == "2024-02"

    def test_from_dict_accepts_datetime_strings(self):
        record = TransactionRecord.from_dict({
            "date": "2024-02-10T08:30:00",
            "description": "COFFEE",
            "amount": 3.5,
            "direction": "debit",
        })
        assert record.date == date(2024, 2, 10)
        assert record.signed_amount == pytest.approx(-3.5)

    def test_from_dict_malformed_date(self):
        with pytest.raises(InvalidTransactionError):
            TransactionRecord.from_dict({"date": "10/02/2024", "amount": 1, "direction": "debit"})

    def test_from_dict_trailing_text_after_date(self):
        with pytest.raises(InvalidTransactionError):
            TransactionRecord.from_dict({
                "date": "2024-01-15 not a date", "amount": 1, "direction": "debit",
            })

    def test_from_dict_space_separated_and_utc_timestamps(self):
        spaced = TransactionRecord.from_dict({
            "date": "2024-01-15 23:59:00", "amount": 1, "direction": "debit",
        })
        utc = TransactionRecord.from_dict({
            "date": "2024-01-15T10:00:00Z", "amount": 1, "direction": "debit",
        })
        assert spaced.date == date(2024, 1, 15)
        assert utc.date == date(2024, 1, 15)

    def test_from_dict_non_integer_category(self):
        with pytest.raises(InvalidTransactionError, match="category_id must be an integer"):
            TransactionRecord.from_dict({
                "date": "2024-01-15", "amount": 1, "direction": "debit", "category_id": "rent",
            })

    def test_from_dict_numeric_string_category(self):
        record = TransactionRecord.from_dict({
            "date": "2024-01-15", "amount": 1, "direction": "debit", "category_id": "7",
        })
        assert record.category_id == 7

    def test_from_dict_unknown_direction(self):
        with pytest.raises(InvalidTransactionError):
            TransactionRecord.from_dict({"date": "2024-02-10", "amount": 1, "direction": "refund"})

    def test_from_dict_missing_direction(self):
        with pytest.raises(InvalidTransactionError):
            TransactionRecord.from_dict({"date": "2024-02-10", "amount": 1})

    def test_empty_category_is_uncategorised(self):
        record = TransactionRecord.from_dict({
            "date": "2024-02-10", "amount": 1, "direction": "debit", "category_id": 0,
        })
        assert record.category_id is None


class TestDateWindow:

    def test_start_after_end_rejected(self):
        with pytest.raises(InvalidTransactionError):
            DateWindow(date(2024, 3, 1), date(2024, 2, 1))

    def test_trailing_months(self):
        window = DateWindow.trailing_months(date(2024, 7, 1), 6)
        assert window.start == date(2024, 1, 1)
        assert window.end == date(2024, 7, 1)
        assert window.contains(date(2024, 1, 1))
        assert not window.contains(date(2023, 12, 31))

    def test_trailing_months_clamps_month_end(self):
        window = DateWindow.trailing_months(date(2024, 3, 31), 1)
        assert window.start == date(2024, 2, 29)


# =============================================================================
# AGGREGATION
# =============================================================================

class TestTimeSeriesAggregator:

    def test_empty_input(self):
        assert aggregate([]) == []

    def test_splits_credits_and_debits_sorted_by_period(self):
        txns = [
            _make_txn(date(2024, 3, 5), 100.0),
            _make_txn(date(2024, 1, 15), 5000.0, Direction.CREDIT),
            _make_txn(date(2024, 1, 20), 250.0),
            _make_txn(date(2024, 1, 21), 50.0),
        ]
        periods = aggregate(txns)

        assert [p.period_key for p in periods] == ["2024-01", "2024-03"]
        assert periods[0].income == pytest.approx(5000.0)
        assert periods[0].expenses == pytest.approx(300.0)
        assert periods[0].net == pytest.approx(4700.0)
        assert periods[1].income == 0.0
        assert periods[1].expenses == pytest.approx(100.0)

    def test_window_filters_records(self):
        txns = [
            _make_txn(date(2023, 12, 31), 10.0),
            _make_txn(date(2024, 1, 1), 20.0),
            _make_txn(date(2024, 2, 1), 30.0),
        ]
        periods = aggregate(txns, window=DateWindow(date(2024, 1, 1), date(2024, 1, 31)))

        assert len(periods) == 1
        assert periods[0].expenses == pytest.approx(20.0)

    def test_accepts_mappings(self):
        periods = aggregate([
            {"date": "2024-05-01", "amount": 10, "type": "debit", "description": "A"},
            {"date": "2024-05-02", "amount": 40, "direction": "credit", "description": "B"},
        ])
        assert periods == [PeriodAggregate("2024-05", 40.0, 10.0)]

    def test_malformed_mapping_fails_fast(self):
        with pytest.raises(InvalidTransactionError):
            aggregate([{"date": "2024-05-01", "amount": -10, "direction": "debit"}])

    def test_bad_category_in_mapping_fails_with_domain_error(self):
        with pytest.raises(InvalidTransactionError):
            aggregate([
                {"date": "2024-05-01", "amount": 10, "direction": "debit", "category_id": "rent"}
            ])

    def test_rejects_unsupported_items(self):
        with pytest.raises(InvalidTransactionError):
            aggregate([("2024-05-01", 10)])

    def test_period_aggregate_fields(self):
        period = PeriodAggregate("2023-11", 10.0, 4.0)
        assert period.year == 2023
        assert period.month == 11
        assert period.to_dict() == {"period": "2023-11", "income": 10.0, "expenses": 4.0, "net": 6.0}


class TestCancellation:

    def test_cancel_stops_the_pass(self):
        calls = []

        def should_cancel():
            calls.append(1)
            return len(calls) >= 3

        txns = [_make_txn(date(2024, 1, d), 1.0) for d in range(1, 11)]
        with pytest.raises(AggregationCancelled):
            TimeSeriesAggregator(check_interval=1).aggregate(txns, should_cancel=should_cancel)
        assert len(calls) == 3

    def test_polls_every_check_interval(self):
        calls = []

        def should_cancel():
            calls.append(1)
            return False

        txns = [_make_txn(date(2024, 1, d), 1.0) for d in range(1, 6)]
        periods = TimeSeriesAggregator(check_interval=2).aggregate(txns, should_cancel=should_cancel)

        assert periods[0].expenses == pytest.approx(5.0)
        assert len(calls) == 3  # records 0, 2 and 4


class TestAggregateByCategory:

    def _txns(self):
        return [
            _make_txn(date(2024, 1, 3), 100.0, category_id=2),
            _make_txn(date(2024, 1, 9), 50.0, category_id=2),
            _make_txn(date(2024, 2, 3), 80.0, category_id=2),
            _make_txn(date(2024, 1, 25), 3000.0, Direction.CREDIT, category_id=1),
            _make_txn(date(2024, 1, 28), 12.0),
        ]

    def test_groups_by_category_and_period(self):
        series = TimeSeriesAggregator().aggregate_by_category(self._txns())

        assert set(series) == {1, 2}
        assert series[2] == {"2024-01": pytest.approx(150.0), "2024-02": pytest.approx(80.0)}
        assert list(series[2]) == ["2024-01", "2024-02"]

    def test_debits_only_and_uncategorized(self):
        series = TimeSeriesAggregator().aggregate_by_category(
            self._txns(), debits_only=True, include_uncategorized=True
        )

        assert set(series) == {0, 2}
        assert series[0] == {"2024-01": pytest.approx(12.0)}
