"""
Forecast Service

Orchestrates the forecasting components over one snapshot of accounts and
transactions: per-account or combined forecasts with scenarios, the dashboard
"live" forecast, bill suggestions and historical balance reconstruction.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from ..bills.frequency import BillFrequencyScheduler, DayClamp
from ..date_utils import add_months, period_key
from ..exceptions import AccountNotFoundError
from ..patterns.recurring_detector import BillSuggestion, RecurringPatternDetector
from ..transactions import AccountSnapshot, DateWindow, TransactionLike, TransactionRecord
from .aggregator import TimeSeriesAggregator
from .projector import ForecastResult, MonthlyProjection, ProjectionEngine, snapshot_transactions
from .scenarios import ScenarioDefinition, ScenarioGenerator
from .trend_analyzer import TrendAnalyzer

logger = logging.getLogger(__name__)

# Minimum history for a live forecast to be flagged reliable
RELIABLE_MIN_MONTHS = 3
RELIABLE_MIN_TRANSACTIONS = 10


@dataclass(frozen=True)
class CategoryBreakdown:
    """Average monthly spend of one category"""
    category_id: int
    name: str
    avg_monthly: float
    trend: str          # up / down / stable

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_id": self.category_id,
            "name": self.name,
            "avg_monthly": self.avg_monthly,
            "trend": self.trend,
        }


@dataclass(frozen=True)
class LiveForecast:
    """Dashboard view of where the combined balance is heading"""
    as_of: date
    currency: str
    current_balance: float
    projected_balance: float
    monthly_projections: List[MonthlyProjection]
    trends: Dict[str, Any]
    savings_projection: Dict[str, Any]
    category_breakdown: List[CategoryBreakdown]
    confidence: float                               # Data confidence, 0-100
    data_quality: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_reliable(self) -> bool:
        return bool(self.data_quality.get("is_reliable"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "as_of": self.as_of.isoformat(),
            "currency": self.currency,
            "current_balance": self.current_balance,
            "projected_balance": self.projected_balance,
            "monthly_projections": [p.to_dict() for p in self.monthly_projections],
            "trends": dict(self.trends),
            "savings_projection": dict(self.savings_projection),
            "category_breakdown": [c.to_dict() for c in self.category_breakdown],
            "confidence": self.confidence,
            "data_quality": dict(self.data_quality),
        }


class ForecastService:
    """
    Entry point used by the surrounding application.

    Example:
    ```python
    service = ForecastService.from_config(get_config())

    result = service.generate_forecast(accounts, transactions, as_of=date(2024, 7, 1))
    live = service.live_forecast(accounts, transactions, as_of=date(2024, 7, 1))
    ```
    """

    def __init__(
        self,
        engine: Optional[ProjectionEngine] = None,
        scenario_generator: Optional[ScenarioGenerator] = None,
        scheduler: Optional[BillFrequencyScheduler] = None,
        based_on_months: int = 3,
        forecast_months: int = 6,
        live_history_months: int = 12
    ):
        self.engine = engine or ProjectionEngine()
        self.scenario_generator = scenario_generator or ScenarioGenerator(self.engine)
        self.scheduler = scheduler or BillFrequencyScheduler()
        self.based_on_months = based_on_months
        self.forecast_months = forecast_months
        self.live_history_months = live_history_months

    @classmethod
    def from_config(cls, config) -> "ForecastService":
        """Wire the components from a config class (see budget_forecast.config)"""
        engine = ProjectionEngine(
            analyzer=TrendAnalyzer(min_seasonality_periods=config.MIN_SEASONALITY_PERIODS),
            aggregator=TimeSeriesAggregator(check_interval=config.AGGREGATION_CHECK_INTERVAL),
            detector=RecurringPatternDetector(),
        )
        service = cls(
            engine=engine,
            scheduler=BillFrequencyScheduler(DayClamp(config.BILL_DAY_CLAMP)),
            based_on_months=config.DEFAULT_BASED_ON_MONTHS,
            forecast_months=config.DEFAULT_FORECAST_MONTHS,
            live_history_months=config.LIVE_HISTORY_MONTHS,
        )
        logger.info(
            f"Forecast service ready: history {service.based_on_months} months, "
            f"horizon {service.forecast_months} months, bill day clamp {config.BILL_DAY_CLAMP}"
        )
        return service

    # -------------------------------------------------------------------------
    # FORECASTS
    # -------------------------------------------------------------------------

    def generate_forecast(
        self,
        accounts: Sequence[AccountSnapshot],
        transactions: Iterable[TransactionLike],
        as_of: date,
        account_id: Optional[int] = None,
        based_on_months: Optional[int] = None,
        forecast_months: Optional[int] = None,
        category_names: Optional[Mapping[int, str]] = None,
        extra_scenarios: Optional[Iterable[ScenarioDefinition]] = None
    ) -> ForecastResult:
        """
        Forecast one account, or all accounts combined, with scenarios.

        Args:
            accounts: Account snapshot
            transactions: Transaction snapshot
            as_of: Anchor date of the forecast
            account_id: Forecast only this account; None combines all accounts
            based_on_months: Months of history to learn from (config default)
            forecast_months: Months to project (config default)
            category_names: Pre-resolved category id -> name mapping
            extra_scenarios: Custom scenarios run alongside the defaults

        Raises:
            AccountNotFoundError: account_id is not in the snapshot
        """
        based_on = self.based_on_months if based_on_months is None else based_on_months
        horizon = self.forecast_months if forecast_months is None else forecast_months
        records = snapshot_transactions(transactions)

        if account_id is not None:
            account = self._find_account(accounts, account_id)
            result = self.engine.project(
                account, records, horizon, based_on, as_of, category_names
            )
        else:
            result = self.engine.project_all(
                accounts, records, horizon, based_on, as_of, category_names
            )

        scenarios = self.scenario_generator.run_scenarios(
            result.assumptions, horizon, result.current_balance, as_of,
            extra=extra_scenarios, account_id=result.account_id
        )
        return result.with_scenarios(scenarios)

    def live_forecast(
        self,
        accounts: Sequence[AccountSnapshot],
        transactions: Iterable[TransactionLike],
        as_of: date,
        forecast_months: Optional[int] = None,
        category_names: Optional[Mapping[int, str]] = None
    ) -> LiveForecast:
        """
        Dashboard forecast of the combined balance.

        Learns from the trailing live-history window, projects without
        seasonality, and reports trends, savings, per-category spend and data
        quality.
        """
        horizon = self.forecast_months if forecast_months is None else forecast_months
        history = self._account_history(accounts, transactions, self.live_history_months, as_of)

        analyzer = self.engine.analyzer
        periods = self.engine.aggregator.aggregate(history)
        months = len(periods)
        savings = [p.net for p in periods]

        assumptions = self.engine.build_assumptions(history)
        avg_savings = assumptions.avg_income - assumptions.avg_expenses
        savings_trend = analyzer.estimate_trend(savings)

        current_balance = sum(a.balance for a in accounts)
        projections = self.engine.project_months(
            assumptions, current_balance, horizon, as_of, apply_seasonality=False
        )

        cumulative = [round(p.ending_balance - current_balance, 2) for p in projections]

        savings_rate = avg_savings / assumptions.avg_income * 100 if assumptions.avg_income > 0 else 0.0
        confidence = self.engine.scorer.score_confidence(
            months, len(history), assumptions.income_volatility, assumptions.avg_income
        )

        return LiveForecast(
            as_of=as_of,
            currency=self._primary_currency(accounts),
            current_balance=round(current_balance, 2),
            projected_balance=projections[-1].ending_balance if projections else round(current_balance, 2),
            monthly_projections=projections,
            trends={
                "avg_monthly_income": round(assumptions.avg_income, 2),
                "avg_monthly_expenses": round(assumptions.avg_expenses, 2),
                "avg_monthly_savings": round(avg_savings, 2),
                "income_direction": analyzer.trend_direction(
                    assumptions.income_trend, assumptions.avg_income).value,
                "expense_direction": analyzer.trend_direction(
                    assumptions.expense_trend, assumptions.avg_expenses).value,
                "savings_direction": analyzer.trend_direction(savings_trend, avg_savings).value,
            },
            savings_projection={
                "current_monthly_savings": round(avg_savings, 2),
                "projected_total_savings": cumulative[-1] if cumulative else 0.0,
                "savings_rate": round(savings_rate, 1),
                "monthly_data": cumulative,
            },
            category_breakdown=self.category_breakdown(history, category_names or {}),
            confidence=float(round(confidence)),
            data_quality={
                "months_of_data": months,
                "transaction_count": len(history),
                "is_reliable": months >= RELIABLE_MIN_MONTHS and len(history) >= RELIABLE_MIN_TRANSACTIONS,
            },
        )

    def category_breakdown(
        self,
        transactions: Sequence[TransactionRecord],
        category_names: Mapping[int, str]
    ) -> List[CategoryBreakdown]:
        """Average monthly spend per category, highest first"""
        analyzer = self.engine.analyzer
        series = self.engine.aggregator.aggregate_by_category(
            transactions, debits_only=True, include_uncategorized=True
        )

        breakdown = []
        for category_id in sorted(series):
            values = list(series[category_id].values())
            average = float(np.mean(values))
            if category_id == 0:
                name = "Uncategorized"
            else:
                name = category_names.get(category_id) or "Unknown"
            breakdown.append(CategoryBreakdown(
                category_id=category_id,
                name=name,
                avg_monthly=round(average, 2),
                trend=analyzer.trend_direction(analyzer.estimate_trend(values), average).value,
            ))

        breakdown.sort(key=lambda c: c.avg_monthly, reverse=True)
        return breakdown

    # -------------------------------------------------------------------------
    # BILLS & HISTORY
    # -------------------------------------------------------------------------

    def detect_bills(
        self,
        transactions: Iterable[TransactionLike],
        as_of: date,
        months: int = 6
    ) -> List[BillSuggestion]:
        """Bill suggestions from the trailing months of debits"""
        window = DateWindow.trailing_months(as_of, months)
        history = [t for t in snapshot_transactions(transactions) if window.contains(t.date)]
        suggestions = self.engine.detector.detect_bills(history)
        logger.info(f"Detected {len(suggestions)} recurring bills in {len(history)} transactions")
        return suggestions

    def historical_balances(
        self,
        accounts: Sequence[AccountSnapshot],
        transactions: Iterable[TransactionLike],
        as_of: date,
        months: int,
        account_id: Optional[int] = None
    ) -> List[float]:
        """
        Month-end balances reconstructed backwards from the current balance.

        Returns one balance per month, oldest first, ending with the current
        balance for the month of as_of.
        """
        if account_id is not None:
            accounts = [self._find_account(accounts, account_id)]

        history = self._account_history(accounts, transactions, months, as_of)
        changes: Dict[str, float] = {}
        for record in history:
            changes[record.period_key] = changes.get(record.period_key, 0.0) + record.signed_amount

        balance = sum(a.balance for a in accounts)
        balances = []
        for i in range(months):
            key = period_key(add_months(as_of, -i))
            balances.append(round(balance, 2))
            balance -= changes.get(key, 0.0)

        balances.reverse()
        return balances

    # -------------------------------------------------------------------------
    # INTERNAL
    # -------------------------------------------------------------------------

    @staticmethod
    def _find_account(accounts: Sequence[AccountSnapshot], account_id: int) -> AccountSnapshot:
        for account in accounts:
            if account.account_id == account_id:
                return account
        raise AccountNotFoundError(f"Account {account_id} not found")

    @staticmethod
    def _account_history(
        accounts: Sequence[AccountSnapshot],
        transactions: Iterable[TransactionLike],
        months: int,
        as_of: date
    ) -> List[TransactionRecord]:
        window = DateWindow.trailing_months(as_of, months)
        account_ids = {a.account_id for a in accounts}
        return [
            t for t in snapshot_transactions(transactions)
            if t.account_id in account_ids and window.contains(t.date)
        ]

    @staticmethod
    def _primary_currency(accounts: Sequence[AccountSnapshot]) -> str:
        """Currency holding the largest absolute balance"""
        weights: Dict[str, float] = {}
        for account in accounts:
            weights[account.currency] = weights.get(account.currency, 0.0) + abs(account.balance)
        if not weights:
            return "USD"
        return max(weights.items(), key=lambda item: item[1])[0]
