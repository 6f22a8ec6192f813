"""
Confidence Scoring for Budget Forecast

Heuristic quality indicators for forecasts. These are bounded scores built from
data volume and stability, not statistical confidence intervals.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float, high: float) -> float:
    if math.isnan(value):
        return low
    return max(low, min(high, value))


@dataclass(frozen=True)
class ConfidenceBreakdown:
    """Points contributed by each component of the data confidence score"""
    base: float
    history_points: float
    volume_points: float
    stability_points: float
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base": self.base,
            "history_points": round(self.history_points, 2),
            "volume_points": round(self.volume_points, 2),
            "stability_points": round(self.stability_points, 2),
            "score": round(self.score, 2),
        }


class ConfidenceScorer:
    """
    Bounded confidence heuristics for forecasts.

    Data confidence (0-100):
        50 base
        + up to 25 for months of history (2 per month)
        + up to 15 for transaction volume (1 per 10 transactions)
        + up to 10 for stable income (falls to 0 as income volatility grows)

    Example:
    ```python
    scorer = ConfidenceScorer()
    scorer.score_confidence(months_of_data=6, transaction_count=120,
                            volatility=250.0, avg_income=5000.0)   # 83.0
    ```
    """

    def __init__(
        self,
        base_score: float = 50.0,
        points_per_month: float = 2.0,
        max_history_points: float = 25.0,
        transactions_per_point: float = 10.0,
        max_volume_points: float = 15.0,
        max_stability_points: float = 10.0,
        stability_penalty: float = 20.0,
        projection_base: float = 0.8,
        projection_floor: float = 0.1
    ):
        self.base_score = base_score
        self.points_per_month = points_per_month
        self.max_history_points = max_history_points
        self.transactions_per_point = transactions_per_point
        self.max_volume_points = max_volume_points
        self.max_stability_points = max_stability_points
        self.stability_penalty = stability_penalty
        self.projection_base = projection_base
        self.projection_floor = projection_floor

    def breakdown(
        self,
        months_of_data: float,
        transaction_count: float,
        volatility: float,
        avg_income: float
    ) -> ConfidenceBreakdown:
        """Per-component points of the data confidence score"""
        history = min(max(months_of_data, 0) * self.points_per_month, self.max_history_points)
        volume = min(max(transaction_count, 0) / self.transactions_per_point, self.max_volume_points)

        stability = 0.0
        if avg_income > 0 and math.isfinite(volatility):
            relative_volatility = max(volatility, 0) / avg_income
            stability = max(0.0, self.max_stability_points - relative_volatility * self.stability_penalty)

        score = _clamp(self.base_score + history + volume + stability, 0.0, 100.0)

        return ConfidenceBreakdown(
            base=self.base_score,
            history_points=history,
            volume_points=volume,
            stability_points=stability,
            score=score,
        )

    def score_confidence(
        self,
        months_of_data: float,
        transaction_count: float,
        volatility: float,
        avg_income: float
    ) -> float:
        """
        Data confidence score in [0, 100].

        Args:
            months_of_data: Distinct months of history
            transaction_count: Transactions in the history window
            volatility: Income volatility (population standard deviation)
            avg_income: Average monthly income
        """
        return self.breakdown(months_of_data, transaction_count, volatility, avg_income).score

    def projection_confidence(
        self,
        income_volatility: float,
        expense_volatility: float,
        months_ahead: int
    ) -> float:
        """
        Confidence (0-1) of a single projected month.

        Decays with volatility (up to 0.3) and horizon distance (0.05 per month,
        up to 0.4), never below the floor.
        """
        avg_volatility = (income_volatility + expense_volatility) / 2
        volatility_penalty = min(max(avg_volatility, 0) / 1000, 0.3)
        time_decay = min(max(months_ahead, 0) * 0.05, 0.4)

        return max(self.projection_floor, self.projection_base - volatility_penalty - time_decay)

    def category_confidence(self, frequency: float, volatility: float) -> float:
        """
        Confidence (0-1) of a category forecast.

        Args:
            frequency: Share of history months the category appeared in
            volatility: Population standard deviation of the category series
        """
        frequency_boost = min(max(frequency, 0), 1.0) * 0.2
        volatility_penalty = min(max(volatility, 0) / 500, 0.4)

        return _clamp(0.7 + frequency_boost - volatility_penalty, self.projection_floor, 1.0)

    def overall_confidence(
        self,
        months_of_data: int,
        recurring_count: int,
        forecast_months: int
    ) -> float:
        """
        Overall confidence (0-1) of a forecast.

        Rewards a year of history and detected recurring patterns, decays by
        0.08 per month of horizon.
        """
        data_quality = months_of_data / 12
        recurring_score = recurring_count * 0.1
        time_decay = 1 - forecast_months * 0.08

        return _clamp(data_quality + recurring_score + time_decay, self.projection_floor, 1.0)


_default_scorer = ConfidenceScorer()


def score_confidence(
    months_of_data: float,
    transaction_count: float,
    volatility: float,
    avg_income: float
) -> float:
    """Bounded 0-100 data confidence score."""
    return _default_scorer.score_confidence(months_of_data, transaction_count, volatility, avg_income)
