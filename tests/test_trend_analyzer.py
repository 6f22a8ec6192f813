"""
test_trend_analyzer.py
-----------------------
Tests for trend, volatility and seasonality estimation.

Run from the project root:
    python -m pytest tests/test_trend_analyzer.py -v
"""

import math

import pytest

from budget_forecast.date_utils import shift_month
from budget_forecast.forecasting.aggregator import PeriodAggregate
from budget_forecast.forecasting.trend_analyzer import (
    NEUTRAL_SEASONALITY,
    TrendAnalyzer,
    TrendDirection,
    compute_seasonality,
    estimate_trend,
    estimate_volatility
)


# =============================================================================
# HELPERS
# =============================================================================

def _make_periods(expenses, start_year: int = 2023, start_month: int = 1):
    """Consecutive monthly aggregates with the given expense values"""
    periods = []
    for offset, value in enumerate(expenses):
        year, month = shift_month(start_year, start_month, offset)
        periods.append(PeriodAggregate(f"{year:04d}-{month:02d}", income=0.0, expenses=value))
    return periods


# =============================================================================
# TREND
# =============================================================================

class TestTrend:

    def test_linear_series(self):
        assert estimate_trend([100, 200, 300]) == pytest.approx(100.0)

    def test_single_value(self):
        assert estimate_trend([42]) == 0.0

    def test_empty(self):
        assert estimate_trend([]) == 0.0

    def test_constant_series(self):
        assert estimate_trend([250, 250, 250, 250]) == pytest.approx(0.0)

    def test_constant_fractional_series_is_exactly_flat(self):
        assert estimate_trend([0.1] * 6) == 0.0
        assert estimate_trend([19.99] * 12) == 0.0
        assert estimate_trend([4321.07] * 24) == 0.0

    def test_decreasing_series(self):
        assert estimate_trend([30, 20, 10]) == pytest.approx(-10.0)

    def test_direction_thresholds(self):
        analyzer = TrendAnalyzer()
        assert analyzer.trend_direction(20.0, 1000.0) is TrendDirection.UP
        assert analyzer.trend_direction(-20.0, 1000.0) is TrendDirection.DOWN
        assert analyzer.trend_direction(5.0, 1000.0) is TrendDirection.STABLE
        assert analyzer.trend_direction(50.0, 0.0) is TrendDirection.STABLE

    def test_label(self):
        assert TrendAnalyzer.trend_label(0.5) == "increasing"
        assert TrendAnalyzer.trend_label(-0.5) == "decreasing"
        assert TrendAnalyzer.trend_label(0.0) == "stable"

    def test_moving_average(self):
        analyzer = TrendAnalyzer()
        assert analyzer.moving_average([1, 2, 3, 4], period=3) == pytest.approx([2.0, 3.0])
        assert analyzer.moving_average([1, 2], period=3) == []


# =============================================================================
# VOLATILITY
# =============================================================================

class TestVolatility:

    def test_constant_series(self):
        assert estimate_volatility([7, 7, 7]) == 0.0

    def test_known_value(self):
        assert estimate_volatility([10, 20, 30]) == pytest.approx(math.sqrt(200 / 3))
        assert estimate_volatility([10, 20, 30]) == pytest.approx(8.165, abs=1e-3)

    def test_degenerate_inputs(self):
        assert estimate_volatility([]) == 0.0
        assert estimate_volatility([99]) == 0.0

    def test_relative_volatility(self):
        analyzer = TrendAnalyzer()
        assert analyzer.relative_volatility([10, 20, 30]) == pytest.approx(math.sqrt(200 / 3) / 20)
        assert analyzer.relative_volatility([0, 0]) == 0.0
        assert analyzer.relative_volatility([]) == 0.0

    def test_summarize(self):
        result = TrendAnalyzer().summarize([4800, 5000, 5200], metric_name="income")
        assert result.metric_name == "income"
        assert result.periods == 3
        assert result.average == pytest.approx(5000.0)
        assert result.slope == pytest.approx(200.0)
        assert result.direction is TrendDirection.UP
        assert result.to_dict()["direction"] == "up"


# =============================================================================
# SEASONALITY
# =============================================================================

class TestSeasonality:

    def test_neutral_below_minimum_periods(self):
        periods = _make_periods([100.0 * m for m in range(1, 12)])
        assert compute_seasonality(periods) == NEUTRAL_SEASONALITY

    def test_neutral_when_no_spending(self):
        assert compute_seasonality(_make_periods([0.0] * 12)) == NEUTRAL_SEASONALITY

    def test_indices_average_to_one_with_full_coverage(self):
        periods = _make_periods([100.0 * m for m in range(1, 13)])
        seasonality = compute_seasonality(periods)

        assert set(seasonality) == set(range(1, 13))
        assert sum(seasonality.values()) / 12 == pytest.approx(1.0)
        assert seasonality[12] > seasonality[1]

    def test_weighted_average_over_two_years(self):
        periods = _make_periods([100.0 + 10 * i for i in range(24)])
        seasonality = compute_seasonality(periods)

        # Every month observed twice, so the plain mean is the weighted mean
        assert sum(seasonality.values()) / 12 == pytest.approx(1.0)

    def test_december_spike(self):
        expenses = [1000.0] * 12
        expenses[11] = 2000.0
        seasonality = compute_seasonality(_make_periods(expenses))

        annual_average = 13000.0 / 12
        assert seasonality[12] == pytest.approx(2000.0 / annual_average)
        assert seasonality[6] == pytest.approx(1000.0 / annual_average)

    def test_unobserved_month_is_neutral(self):
        # Jan-Nov 2023 and Jan 2024: twelve distinct periods, no December
        periods = _make_periods([100.0] * 11) + [PeriodAggregate("2024-01", 0.0, 300.0)]
        seasonality = compute_seasonality(periods)

        assert seasonality[12] == 1.0
        assert seasonality[1] > 1.0

    def test_custom_minimum(self):
        analyzer = TrendAnalyzer(min_seasonality_periods=3)
        seasonality = analyzer.compute_seasonality(_make_periods([100.0, 200.0, 300.0]))
        assert seasonality[3] == pytest.approx(1.5)
