"""
Budget Forecast

Recurring pattern detection, cash-flow trend analysis and balance projection
for personal finance data.
"""

from .bills import (
    BillFrequencyScheduler,
    BillSchedule,
    BillSummary,
    Frequency,
    monthly_equivalent,
    next_due_date,
    summarize_bills
)
from .exceptions import (
    AccountNotFoundError,
    AggregationCancelled,
    BudgetForecastError,
    InvalidScheduleError,
    InvalidTransactionError
)
from .forecasting import (
    ConfidenceScorer,
    ForecastResult,
    ForecastService,
    PeriodAggregate,
    ProjectionEngine,
    ScenarioDefinition,
    ScenarioGenerator,
    TimeSeriesAggregator,
    TrendAnalyzer,
    aggregate,
    compute_seasonality,
    estimate_trend,
    estimate_volatility,
    run_scenarios,
    score_confidence
)
from .patterns import (
    RecurrencePattern,
    RecurringPatternDetector,
    detect_recurring_bills,
    detect_recurring_patterns
)
from .transactions import (
    AccountSnapshot,
    DateWindow,
    Direction,
    TransactionRecord
)

__version__ = "1.0.0"

__all__ = [
    # Inputs
    'AccountSnapshot',
    'DateWindow',
    'Direction',
    'TransactionRecord',
    # Forecasting
    'ConfidenceScorer',
    'ForecastResult',
    'ForecastService',
    'PeriodAggregate',
    'ProjectionEngine',
    'ScenarioDefinition',
    'ScenarioGenerator',
    'TimeSeriesAggregator',
    'TrendAnalyzer',
    'aggregate',
    'compute_seasonality',
    'estimate_trend',
    'estimate_volatility',
    'run_scenarios',
    'score_confidence',
    # Patterns
    'RecurrencePattern',
    'RecurringPatternDetector',
    'detect_recurring_bills',
    'detect_recurring_patterns',
    # Bills
    'BillFrequencyScheduler',
    'BillSchedule',
    'BillSummary',
    'Frequency',
    'monthly_equivalent',
    'next_due_date',
    'summarize_bills',
    # Errors
    'AccountNotFoundError',
    'AggregationCancelled',
    'BudgetForecastError',
    'InvalidScheduleError',
    'InvalidTransactionError',
]
