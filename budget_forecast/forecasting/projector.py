"""
Balance Projector

Projects monthly income, expenses and ending balances per account (or across
all accounts) from the average + trend of the history window, modulated by
expense seasonality when a full year of history is available.

The projector never reads the clock or a data store: callers pass the account
and transaction snapshot, an explicit as_of date and a pre-resolved category
name mapping.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from ..date_utils import add_months, month_start, period_key
from ..patterns.recurring_detector import RecurringPatternDetector
from ..transactions import (
    AccountSnapshot,
    DateWindow,
    TransactionLike,
    TransactionRecord,
    coerce_transaction
)
from .aggregator import TimeSeriesAggregator
from .confidence import ConfidenceScorer
from .trend_analyzer import NEUTRAL_SEASONALITY, TrendAnalyzer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastAssumptions:
    """Baseline monthly behaviour derived from the history window"""
    avg_income: float = 0.0
    avg_expenses: float = 0.0
    income_trend: float = 0.0
    expense_trend: float = 0.0
    income_volatility: float = 0.0
    expense_volatility: float = 0.0
    seasonality: Dict[int, float] = field(default_factory=lambda: dict(NEUTRAL_SEASONALITY))
    months_of_data: int = 0
    transaction_count: int = 0
    recurring_count: int = 0

    def seasonal_factor(self, month: int) -> float:
        return self.seasonality.get(month, 1.0)

    def adjusted(self, income_factor: float, expense_factor: float) -> "ForecastAssumptions":
        """Copy with the average income and expenses scaled"""
        return replace(
            self,
            avg_income=self.avg_income * income_factor,
            avg_expenses=self.avg_expenses * expense_factor,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avg_income": round(self.avg_income, 2),
            "avg_expenses": round(self.avg_expenses, 2),
            "income_trend": round(self.income_trend, 4),
            "expense_trend": round(self.expense_trend, 4),
            "income_volatility": round(self.income_volatility, 4),
            "expense_volatility": round(self.expense_volatility, 4),
            "seasonality": {str(m): round(v, 4) for m, v in sorted(self.seasonality.items())},
            "months_of_data": self.months_of_data,
            "transaction_count": self.transaction_count,
            "recurring_count": self.recurring_count,
        }


@dataclass(frozen=True)
class MonthlyProjection:
    """One projected month"""
    month: str              # YYYY-MM
    starting_balance: float
    projected_income: float
    projected_expenses: float
    net_change: float
    ending_balance: float
    confidence: float       # 0-1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "starting_balance": self.starting_balance,
            "projected_income": self.projected_income,
            "projected_expenses": self.projected_expenses,
            "net_change": self.net_change,
            "ending_balance": self.ending_balance,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class CategoryForecast:
    """Average + trend projection of one category's monthly spend"""
    category_id: int
    category_name: str
    current_monthly_average: float
    projected_monthly: List[float]
    trend: str
    volatility: float
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "current_monthly_average": self.current_monthly_average,
            "projected_monthly": list(self.projected_monthly),
            "trend": self.trend,
            "volatility": self.volatility,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class AccountSummary:
    """Per-account headline figures of a forecast"""
    account_id: int
    account_name: str
    current_balance: float
    projected_balance: float
    confidence: float

    @property
    def projected_change(self) -> float:
        return round(self.projected_balance - self.current_balance, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "account_name": self.account_name,
            "current_balance": self.current_balance,
            "projected_balance": self.projected_balance,
            "projected_change": self.projected_change,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ForecastResult:
    """Result of a balance forecast"""
    account_id: Optional[int]
    current_balance: float
    monthly_projections: List[MonthlyProjection]
    category_forecasts: List[CategoryForecast]
    confidence: float                   # Overall, 0-1
    data_confidence: float              # Data quality score, 0-100
    as_of: Optional[date] = None
    scenario: str = "base"
    assumptions: Optional[ForecastAssumptions] = None
    account_summaries: List[AccountSummary] = field(default_factory=list)
    scenarios: Dict[str, "ForecastResult"] = field(default_factory=dict)

    @property
    def projected_balance(self) -> float:
        if not self.monthly_projections:
            return round(self.current_balance, 2)
        return self.monthly_projections[-1].ending_balance

    def with_scenarios(self, scenarios: Mapping[str, "ForecastResult"]) -> "ForecastResult":
        return replace(self, scenarios=dict(scenarios))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "as_of": self.as_of.isoformat() if self.as_of else None,
            "scenario": self.scenario,
            "current_balance": round(self.current_balance, 2),
            "projected_balance": self.projected_balance,
            "monthly_projections": [p.to_dict() for p in self.monthly_projections],
            "category_forecasts": [c.to_dict() for c in self.category_forecasts],
            "confidence": self.confidence,
            "data_confidence": self.data_confidence,
            "assumptions": self.assumptions.to_dict() if self.assumptions else None,
            "account_summaries": [s.to_dict() for s in self.account_summaries],
            "scenarios": {name: result.to_dict() for name, result in self.scenarios.items()},
        }


def snapshot_transactions(transactions: Iterable[TransactionLike]) -> List[TransactionRecord]:
    """Materialise and validate a transaction snapshot once"""
    return [coerce_transaction(t) for t in transactions]


class ProjectionEngine:
    """
    Balance projection engine.

    Example:
    ```python
    engine = ProjectionEngine()

    result = engine.project(
        AccountSnapshot(account_id=1, balance=10000.0),
        transactions,
        horizon_months=6,
        based_on_months=6,
        as_of=date(2024, 7, 1),
    )
    print(result.projected_balance)
    ```
    """

    def __init__(
        self,
        analyzer: Optional[TrendAnalyzer] = None,
        scorer: Optional[ConfidenceScorer] = None,
        aggregator: Optional[TimeSeriesAggregator] = None,
        detector: Optional[RecurringPatternDetector] = None
    ):
        """
        Initialize engine.

        Args:
            analyzer: Trend/volatility/seasonality estimator
            scorer: Confidence heuristics
            aggregator: Monthly aggregation
            detector: Recurring pattern detector, counts feed overall confidence
        """
        self.analyzer = analyzer or TrendAnalyzer()
        self.scorer = scorer or ConfidenceScorer()
        self.aggregator = aggregator or TimeSeriesAggregator()
        self.detector = detector or RecurringPatternDetector()

    # -------------------------------------------------------------------------
    # ASSUMPTIONS
    # -------------------------------------------------------------------------

    def build_assumptions(self, transactions: Sequence[TransactionRecord]) -> ForecastAssumptions:
        """
        Derive averages, trends, volatilities and seasonality from history.

        Empty history yields all-zero assumptions with neutral seasonality.
        """
        periods = self.aggregator.aggregate(transactions)
        months = len(periods)

        incomes = [p.income for p in periods]
        expenses = [p.expenses for p in periods]

        if months >= self.analyzer.min_seasonality_periods:
            seasonality = self.analyzer.compute_seasonality(periods)
        else:
            seasonality = dict(NEUTRAL_SEASONALITY)

        return ForecastAssumptions(
            avg_income=float(np.mean(incomes)) if months else 0.0,
            avg_expenses=float(np.mean(expenses)) if months else 0.0,
            income_trend=self.analyzer.estimate_trend(incomes),
            expense_trend=self.analyzer.estimate_trend(expenses),
            income_volatility=self.analyzer.estimate_volatility(incomes),
            expense_volatility=self.analyzer.estimate_volatility(expenses),
            seasonality=seasonality,
            months_of_data=months,
            transaction_count=len(transactions),
            recurring_count=len(self.detector.detect(transactions)),
        )

    # -------------------------------------------------------------------------
    # PROJECTION ARITHMETIC
    # -------------------------------------------------------------------------

    def project_months(
        self,
        assumptions: ForecastAssumptions,
        current_balance: float,
        horizon_months: int,
        as_of: date,
        apply_seasonality: bool = True
    ) -> List[MonthlyProjection]:
        """
        Roll the balance forward month by month.

        For month i: value = max(0, average + trend * i) * seasonal factor.
        """
        if horizon_months < 0:
            raise ValueError(f"horizon_months must be >= 0, got {horizon_months}")

        projections = []
        balance = current_balance
        first_day = month_start(as_of)

        for i in range(1, horizon_months + 1):
            target = add_months(first_day, i)
            factor = assumptions.seasonal_factor(target.month) if apply_seasonality else 1.0

            income = max(0.0, assumptions.avg_income + assumptions.income_trend * i) * factor
            expenses = max(0.0, assumptions.avg_expenses + assumptions.expense_trend * i) * factor
            net_change = income - expenses
            starting = balance
            balance += net_change

            projections.append(MonthlyProjection(
                month=period_key(target),
                starting_balance=round(starting, 2),
                projected_income=round(income, 2),
                projected_expenses=round(expenses, 2),
                net_change=round(net_change, 2),
                ending_balance=round(balance, 2),
                confidence=round(self.scorer.projection_confidence(
                    assumptions.income_volatility, assumptions.expense_volatility, i
                ), 4),
            ))

        return projections

    def category_forecasts(
        self,
        transactions: Sequence[TransactionRecord],
        based_on_months: int,
        horizon_months: int,
        category_names: Optional[Mapping[int, str]]
    ) -> List[CategoryForecast]:
        """
        Average + trend projections per category series.

        Categories missing from category_names are logged and left out.
        """
        if category_names is None:
            return []

        series = self.aggregator.aggregate_by_category(transactions)
        forecasts = []

        for category_id in sorted(series):
            name = self._resolve_category_name(category_names, category_id)
            if name is None:
                logger.warning(f"Category {category_id} not found, skipping category forecast")
                continue

            values = list(series[category_id].values())
            average = float(np.mean(values))
            trend = self.analyzer.estimate_trend(values)
            volatility = self.analyzer.estimate_volatility(values)
            frequency = len(values) / based_on_months if based_on_months > 0 else 0.0

            forecasts.append(CategoryForecast(
                category_id=category_id,
                category_name=name,
                current_monthly_average=round(average, 2),
                projected_monthly=[
                    round(max(0.0, average + trend * i), 2)
                    for i in range(1, horizon_months + 1)
                ],
                trend=self.analyzer.trend_label(trend),
                volatility=round(volatility, 4),
                confidence=round(self.scorer.category_confidence(frequency, volatility), 4),
            ))

        return forecasts

    @staticmethod
    def _resolve_category_name(
        category_names: Mapping[int, str],
        category_id: int
    ) -> Optional[str]:
        name = category_names.get(category_id)
        return name if name else None

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def project(
        self,
        account: AccountSnapshot,
        transactions: Iterable[TransactionLike],
        horizon_months: int,
        based_on_months: int,
        as_of: date,
        category_names: Optional[Mapping[int, str]] = None
    ) -> ForecastResult:
        """
        Forecast a single account.

        Args:
            account: Account snapshot with its current balance
            transactions: Transaction snapshot; other accounts' records are ignored
            horizon_months: Months to project
            based_on_months: Months of history before as_of to learn from
            as_of: Anchor date of the forecast
            category_names: Pre-resolved category id -> name mapping

        Returns:
            ForecastResult for the account
        """
        history = [
            t for t in self._history(transactions, based_on_months, as_of)
            if t.account_id == account.account_id
        ]
        result = self._forecast(
            account.account_id, account.balance, history,
            horizon_months, based_on_months, as_of, category_names
        )
        summary = self._summary(account, result)
        logger.info(
            f"Projected account {account.account_id}: {result.current_balance:.2f} -> "
            f"{result.projected_balance:.2f} over {horizon_months} months"
        )
        return replace(result, account_summaries=[summary])

    def project_all(
        self,
        accounts: Sequence[AccountSnapshot],
        transactions: Iterable[TransactionLike],
        horizon_months: int,
        based_on_months: int,
        as_of: date,
        category_names: Optional[Mapping[int, str]] = None
    ) -> ForecastResult:
        """
        Forecast the combined balance of all accounts.

        The aggregate projection uses every account's history; each account also
        gets its own summary line.
        """
        account_ids = {a.account_id for a in accounts}
        history = [
            t for t in self._history(transactions, based_on_months, as_of)
            if t.account_id in account_ids
        ]

        summaries = []
        for account in accounts:
            own_history = [t for t in history if t.account_id == account.account_id]
            own = self._forecast(
                account.account_id, account.balance, own_history,
                horizon_months, based_on_months, as_of, None
            )
            summaries.append(self._summary(account, own))

        combined = self._forecast(
            None, sum(a.balance for a in accounts), history,
            horizon_months, based_on_months, as_of, category_names
        )
        logger.info(
            f"Projected {len(accounts)} accounts: {combined.current_balance:.2f} -> "
            f"{combined.projected_balance:.2f} over {horizon_months} months"
        )
        return replace(combined, account_summaries=summaries)

    # -------------------------------------------------------------------------
    # INTERNAL
    # -------------------------------------------------------------------------

    def _history(
        self,
        transactions: Iterable[TransactionLike],
        based_on_months: int,
        as_of: date
    ) -> List[TransactionRecord]:
        window = DateWindow.trailing_months(as_of, based_on_months)
        return [t for t in snapshot_transactions(transactions) if window.contains(t.date)]

    def _forecast(
        self,
        account_id: Optional[int],
        current_balance: float,
        history: List[TransactionRecord],
        horizon_months: int,
        based_on_months: int,
        as_of: date,
        category_names: Optional[Mapping[int, str]]
    ) -> ForecastResult:
        assumptions = self.build_assumptions(history)
        if assumptions.months_of_data == 0:
            logger.warning(f"No history for account {account_id}, projecting a flat balance")

        return ForecastResult(
            account_id=account_id,
            current_balance=current_balance,
            monthly_projections=self.project_months(
                assumptions, current_balance, horizon_months, as_of
            ),
            category_forecasts=self.category_forecasts(
                history, based_on_months, horizon_months, category_names
            ),
            confidence=round(self.scorer.overall_confidence(
                assumptions.months_of_data, assumptions.recurring_count, horizon_months
            ), 4),
            data_confidence=round(self.scorer.score_confidence(
                assumptions.months_of_data, assumptions.transaction_count,
                assumptions.income_volatility, assumptions.avg_income
            ), 2),
            as_of=as_of,
            assumptions=assumptions,
        )

    @staticmethod
    def _summary(account: AccountSnapshot, result: ForecastResult) -> AccountSummary:
        return AccountSummary(
            account_id=account.account_id,
            account_name=account.name,
            current_balance=round(account.balance, 2),
            projected_balance=result.projected_balance,
            confidence=result.confidence,
        )
