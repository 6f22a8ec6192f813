"""Exceptions raised by the forecast engine"""


class BudgetForecastError(Exception):
    """Base exception for the forecast engine"""

    pass


class InvalidTransactionError(BudgetForecastError, ValueError):
    """Transaction data is malformed or violates an invariant"""

    pass


class InvalidScheduleError(BudgetForecastError, ValueError):
    """Bill schedule fields are out of range"""

    pass


class AggregationCancelled(BudgetForecastError):
    """Caller asked the aggregation pass to stop"""

    pass


class AccountNotFoundError(BudgetForecastError, LookupError):
    """Requested account is not part of the snapshot"""

    pass
