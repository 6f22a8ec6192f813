"""
Forecasting Module for Budget Forecast

Monthly aggregation, trend/volatility/seasonality estimation, confidence
scoring, balance projection and scenarios.
"""

from .aggregator import (
    PeriodAggregate,
    TimeSeriesAggregator,
    aggregate
)
from .trend_analyzer import (
    TrendAnalyzer,
    TrendDirection,
    TrendResult,
    compute_seasonality,
    estimate_trend,
    estimate_volatility
)
from .confidence import (
    ConfidenceBreakdown,
    ConfidenceScorer,
    score_confidence
)
from .projector import (
    AccountSummary,
    CategoryForecast,
    ForecastAssumptions,
    ForecastResult,
    MonthlyProjection,
    ProjectionEngine
)
from .scenarios import (
    DEFAULT_SCENARIOS,
    ScenarioDefinition,
    ScenarioGenerator,
    run_scenarios
)
from .service import (
    CategoryBreakdown,
    ForecastService,
    LiveForecast
)

__all__ = [
    # Aggregation
    'PeriodAggregate',
    'TimeSeriesAggregator',
    'aggregate',
    # Trend analysis
    'TrendAnalyzer',
    'TrendDirection',
    'TrendResult',
    'compute_seasonality',
    'estimate_trend',
    'estimate_volatility',
    # Confidence
    'ConfidenceBreakdown',
    'ConfidenceScorer',
    'score_confidence',
    # Projection
    'AccountSummary',
    'CategoryForecast',
    'ForecastAssumptions',
    'ForecastResult',
    'MonthlyProjection',
    'ProjectionEngine',
    # Scenarios
    'DEFAULT_SCENARIOS',
    'ScenarioDefinition',
    'ScenarioGenerator',
    'run_scenarios',
    # Service
    'CategoryBreakdown',
    'ForecastService',
    'LiveForecast',
]
