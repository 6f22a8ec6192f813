"""Shared fixtures for the forecast test suite."""

from datetime import date

import pytest

from budget_forecast.transactions import AccountSnapshot, Direction, TransactionRecord

AS_OF = date(2024, 7, 1)


def make_flat_history(
    account_id: int = 1,
    income: float = 5000.0,
    expenses: float = 3500.0,
    months=range(1, 7),
    year: int = 2024,
    income_category=1,
    expense_category=2,
):
    """One salary credit and one rent debit on the 15th of each month"""
    txns = []
    for month in months:
        txns.append(TransactionRecord(
            account_id, date(year, month, 15), "SALARY", income, Direction.CREDIT, income_category
        ))
        txns.append(TransactionRecord(
            account_id, date(year, month, 15), "RENT", expenses, Direction.DEBIT, expense_category
        ))
    return txns


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def flat_history():
    """Jan-Jun 2024: income 5000, expenses 3500 every month"""
    return make_flat_history()


@pytest.fixture
def account():
    return AccountSnapshot(account_id=1, balance=10000.0, name="Checking")
