"""
Trend Analyzer for Budget Forecast

Least-squares trend, population volatility and monthly seasonal indices over
monthly cash flow series. Sparse data degrades to neutral values (zero trend,
zero volatility, seasonal index 1.0) rather than raising.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Sequence

import numpy as np

from .aggregator import PeriodAggregate

logger = logging.getLogger(__name__)

NEUTRAL_SEASONALITY: Dict[int, float] = {month: 1.0 for month in range(1, 13)}


class TrendDirection(Enum):
    """Direction of a trend relative to its average"""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class TrendResult:
    """Summary statistics of one monthly series"""
    metric_name: str
    periods: int
    average: float
    slope: float
    volatility: float
    relative_volatility: float
    direction: TrendDirection
    moving_average: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric_name": self.metric_name,
            "periods": self.periods,
            "average": round(self.average, 2),
            "slope": round(self.slope, 4),
            "volatility": round(self.volatility, 4),
            "relative_volatility": round(self.relative_volatility, 4),
            "direction": self.direction.value,
            "moving_average": [round(v, 2) for v in self.moving_average],
        }


class TrendAnalyzer:
    """
    Analyzes monthly financial series for trend, volatility and seasonality.

    Provides:
    - Ordinary least squares slope per period
    - Population standard deviation
    - Calendar-month seasonal indices

    Example:
    ```python
    analyzer = TrendAnalyzer()

    analyzer.estimate_trend([100, 200, 300])       # 100.0
    analyzer.estimate_volatility([10, 20, 30])     # ~8.165

    result = analyzer.summarize([4800, 5000, 5200], metric_name="income")
    print(f"Trend: {result.direction.value}")
    ```
    """

    def __init__(
        self,
        min_seasonality_periods: int = 12,
        direction_threshold: float = 0.01  # Fraction of the average per period
    ):
        """
        Initialize analyzer.

        Args:
            min_seasonality_periods: Minimum distinct months for seasonality
            direction_threshold: Slope below this share of |average| is stable
        """
        self.min_seasonality_periods = min_seasonality_periods
        self.direction_threshold = direction_threshold

    def estimate_trend(self, values: Sequence[float]) -> float:
        """
        Least-squares slope with x = 1..N.

        Returns 0.0 for fewer than two values and for a constant series.
        """
        y = np.asarray(values, dtype=float)
        n = y.size
        if n < 2 or np.all(y == y[0]):
            return 0.0

        x = np.arange(1, n + 1, dtype=float)
        x_dev = x - x.mean()
        denominator = np.sum(x_dev * x_dev)
        if denominator == 0:
            return 0.0

        return float(np.sum(x_dev * (y - y.mean())) / denominator)

    def estimate_volatility(self, values: Sequence[float]) -> float:
        """Population standard deviation; 0.0 for one value or none"""
        y = np.asarray(values, dtype=float)
        if y.size <= 1:
            return 0.0
        return float(np.std(y))

    def relative_volatility(self, values: Sequence[float]) -> float:
        """Coefficient of variation (volatility / |mean|)"""
        y = np.asarray(values, dtype=float)
        if y.size == 0:
            return 0.0
        mean_val = float(np.mean(y))
        if mean_val == 0:
            return 0.0
        return self.estimate_volatility(y) / abs(mean_val)

    def moving_average(self, values: Sequence[float], period: int = 3) -> List[float]:
        """Trailing moving average; empty when the series is shorter than period"""
        y = np.asarray(values, dtype=float)
        if period < 1 or y.size < period:
            return []
        window = np.ones(period) / period
        return [float(v) for v in np.convolve(y, window, mode="valid")]

    def trend_direction(self, trend: float, average: float) -> TrendDirection:
        """Up/down when the slope exceeds the threshold share of the average"""
        if average == 0:
            return TrendDirection.STABLE

        threshold = abs(average) * self.direction_threshold
        if trend > threshold:
            return TrendDirection.UP
        elif trend < -threshold:
            return TrendDirection.DOWN
        return TrendDirection.STABLE

    @staticmethod
    def trend_label(trend: float) -> str:
        """Sign of the slope as increasing/decreasing/stable"""
        if trend > 0:
            return "increasing"
        elif trend < 0:
            return "decreasing"
        return "stable"

    def compute_seasonality(self, periods: Iterable[PeriodAggregate]) -> Dict[int, float]:
        """
        Expense seasonality index per calendar month.

        Index = (average expenses for that month across years) /
                (average expenses over all observed months).

        Args:
            periods: Monthly aggregates, one per distinct period

        Returns:
            Dict mapping month 1-12 to its index. All 1.0 when there are fewer
            than min_seasonality_periods months or no spending at all.
        """
        periods = list(periods)
        if len({p.period_key for p in periods}) < self.min_seasonality_periods:
            logger.debug(
                f"Seasonality skipped: {len(periods)} periods < {self.min_seasonality_periods}"
            )
            return dict(NEUTRAL_SEASONALITY)

        monthly_totals = np.zeros(12)
        monthly_counts = np.zeros(12)
        for period in periods:
            monthly_totals[period.month - 1] += period.expenses
            monthly_counts[period.month - 1] += 1

        total_count = monthly_counts.sum()
        annual_average = monthly_totals.sum() / total_count if total_count > 0 else 0.0
        if annual_average == 0:
            return dict(NEUTRAL_SEASONALITY)

        seasonality = {}
        for month in range(1, 13):
            count = monthly_counts[month - 1]
            if count > 0:
                seasonality[month] = float(monthly_totals[month - 1] / count / annual_average)
            else:
                seasonality[month] = 1.0

        return seasonality

    def summarize(self, values: Sequence[float], metric_name: str = "metric") -> TrendResult:
        """
        Average, slope, volatility and direction of a series in one pass.

        Args:
            values: Chronological monthly values
            metric_name: Name of the metric being analyzed

        Returns:
            TrendResult (zeros and STABLE for an empty series)
        """
        values = [float(v) for v in values]
        average = float(np.mean(values)) if values else 0.0
        slope = self.estimate_trend(values)

        return TrendResult(
            metric_name=metric_name,
            periods=len(values),
            average=average,
            slope=slope,
            volatility=self.estimate_volatility(values),
            relative_volatility=self.relative_volatility(values),
            direction=self.trend_direction(slope, average),
            moving_average=self.moving_average(values),
        )


_default_analyzer = TrendAnalyzer()


def estimate_trend(values: Sequence[float]) -> float:
    """OLS slope per period of a chronological series."""
    return _default_analyzer.estimate_trend(values)


def estimate_volatility(values: Sequence[float]) -> float:
    """Population standard deviation of a series."""
    return _default_analyzer.estimate_volatility(values)


def compute_seasonality(periods: Iterable[PeriodAggregate]) -> Dict[int, float]:
    """Calendar-month expense seasonality indices."""
    return _default_analyzer.compute_seasonality(periods)
