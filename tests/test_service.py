"""
test_service.py
----------------
Tests for forecast orchestration: generated forecasts, the live dashboard
forecast, bill suggestions and historical balances.

Run from the project root:
    python -m pytest tests/test_service.py -v
"""

from datetime import date

import pytest

from conftest import make_flat_history

from budget_forecast.bills.frequency import DayClamp
from budget_forecast.config import settings
from budget_forecast.exceptions import AccountNotFoundError
from budget_forecast.forecasting.scenarios import ScenarioDefinition
from budget_forecast.forecasting.service import ForecastService
from budget_forecast.transactions import AccountSnapshot, Direction, TransactionRecord


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def service():
    return ForecastService.from_config(settings.TestingConfig)


@pytest.fixture
def accounts():
    return [AccountSnapshot(1, 10000.0, "Checking")]


# =============================================================================
# CONFIGURATION
# =============================================================================

class TestFromConfig:

    def test_defaults_come_from_config(self, service):
        assert service.based_on_months == settings.TestingConfig.DEFAULT_BASED_ON_MONTHS
        assert service.forecast_months == settings.TestingConfig.DEFAULT_FORECAST_MONTHS
        assert service.live_history_months == settings.TestingConfig.LIVE_HISTORY_MONTHS
        assert service.engine.aggregator.check_interval == 1
        assert service.scheduler.day_clamp is DayClamp.MONTH_END

    def test_bill_day_clamp_from_config(self):
        class LegacyConfig(settings.TestingConfig):
            BILL_DAY_CLAMP = 'fixed_28'

        service = ForecastService.from_config(LegacyConfig)
        assert service.scheduler.day_clamp is DayClamp.FIXED_28


# =============================================================================
# GENERATED FORECASTS
# =============================================================================

class TestGenerateForecast:

    def test_single_account_with_scenarios(self, service, accounts, flat_history, as_of):
        result = service.generate_forecast(accounts, flat_history, as_of, account_id=1)

        assert result.account_id == 1
        assert len(result.monthly_projections) == 6
        assert result.projected_balance == pytest.approx(19000.0)
        assert list(result.scenarios) == ["base", "conservative", "optimistic", "recession"]
        assert result.scenarios["base"].projected_balance == pytest.approx(result.projected_balance)
        assert result.scenarios["conservative"].account_id == 1

    def test_all_accounts(self, service, flat_history, as_of):
        accounts = [AccountSnapshot(1, 10000.0), AccountSnapshot(2, 500.0)]
        result = service.generate_forecast(accounts, flat_history, as_of)

        assert result.account_id is None
        assert result.current_balance == pytest.approx(10500.0)
        assert len(result.account_summaries) == 2
        assert result.scenarios["base"].account_id is None

    def test_overrides_and_extra_scenarios(self, service, accounts, flat_history, as_of):
        extra = [ScenarioDefinition.from_growth("bonus", income_growth=0.2)]
        result = service.generate_forecast(
            accounts, flat_history, as_of, account_id=1,
            forecast_months=2, extra_scenarios=extra,
        )

        assert len(result.monthly_projections) == 2
        assert result.scenarios["bonus"].projected_balance == pytest.approx(10000.0 + 2 * 2500.0)

    def test_unknown_account(self, service, accounts, flat_history, as_of):
        with pytest.raises(AccountNotFoundError):
            service.generate_forecast(accounts, flat_history, as_of, account_id=42)

    def test_accepts_mappings(self, service, accounts, flat_history, as_of):
        mappings = [t.to_dict() for t in flat_history]
        result = service.generate_forecast(accounts, mappings, as_of, account_id=1)
        assert result.projected_balance == pytest.approx(19000.0)

    def test_serialises_nested_scenarios(self, service, accounts, flat_history, as_of):
        data = service.generate_forecast(accounts, flat_history, as_of, account_id=1).to_dict()
        assert data["scenarios"]["recession"]["scenario"] == "recession"
        assert data["as_of"] == "2024-07-01"


# =============================================================================
# LIVE FORECAST
# =============================================================================

class TestLiveForecast:

    def test_trends_savings_and_quality(self, service, accounts, flat_history, as_of):
        live = service.live_forecast(accounts, flat_history, as_of, forecast_months=6)

        assert live.current_balance == pytest.approx(10000.0)
        assert live.projected_balance == pytest.approx(19000.0)
        assert live.trends["avg_monthly_income"] == pytest.approx(5000.0)
        assert live.trends["avg_monthly_expenses"] == pytest.approx(3500.0)
        assert live.trends["avg_monthly_savings"] == pytest.approx(1500.0)
        assert live.trends["income_direction"] == "stable"
        assert live.savings_projection["savings_rate"] == pytest.approx(30.0)
        assert live.savings_projection["monthly_data"] == pytest.approx([1500.0 * i for i in range(1, 7)])
        assert live.savings_projection["projected_total_savings"] == pytest.approx(9000.0)
        assert live.confidence == pytest.approx(73.0)
        assert live.data_quality == {"months_of_data": 6, "transaction_count": 12, "is_reliable": True}
        assert live.is_reliable

    def test_cumulative_savings_track_unrounded_balance(self, service, accounts, as_of):
        history = [
            TransactionRecord(1, date(2024, m, 15), "SALARY", 1000.004, Direction.CREDIT)
            for m in range(1, 7)
        ]
        live = service.live_forecast(accounts, history, as_of, forecast_months=12)

        monthly = live.savings_projection["monthly_data"]
        assert monthly[0] == pytest.approx(1000.0)
        assert monthly[-1] == pytest.approx(12000.05)
        assert live.savings_projection["projected_total_savings"] == pytest.approx(
            live.projected_balance - live.current_balance
        )

    def test_short_history_is_unreliable(self, service, accounts, as_of):
        history = make_flat_history(months=[5, 6])
        live = service.live_forecast(accounts, history, as_of)

        assert live.data_quality["months_of_data"] == 2
        assert not live.is_reliable

    def test_growing_income_direction(self, service, accounts, as_of):
        history = [
            TransactionRecord(1, date(2024, m, 1), "SALARY", 4000.0 + 200 * m, Direction.CREDIT)
            for m in range(1, 7)
        ]
        live = service.live_forecast(accounts, history, as_of)

        assert live.trends["income_direction"] == "up"
        assert live.trends["expense_direction"] == "stable"

    def test_primary_currency(self, service, flat_history, as_of):
        accounts = [
            AccountSnapshot(1, 100.0, currency="USD"),
            AccountSnapshot(2, -5000.0, currency="EUR"),
        ]
        assert service.live_forecast(accounts, flat_history, as_of).currency == "EUR"

    def test_category_breakdown(self, service, accounts, flat_history, as_of):
        extra = [
            TransactionRecord(1, date(2024, m, 3), "CORNER SHOP", 100.0, Direction.DEBIT)
            for m in range(1, 7)
        ] + [
            TransactionRecord(1, date(2024, m, 4), "MYSTERY", 50.0, Direction.DEBIT, 9)
            for m in range(1, 7)
        ]
        live = service.live_forecast(
            accounts, flat_history + extra, as_of, category_names={2: "Housing"}
        )

        breakdown = [(c.category_id, c.name, c.avg_monthly) for c in live.category_breakdown]
        assert breakdown == [(2, "Housing", 3500.0), (0, "Uncategorized", 100.0), (9, "Unknown", 50.0)]
        assert all(c.trend == "stable" for c in live.category_breakdown)

    def test_serialises(self, service, accounts, flat_history, as_of):
        data = service.live_forecast(accounts, flat_history, as_of).to_dict()
        assert data["monthly_projections"][0]["ending_balance"] == pytest.approx(11500.0)
        assert data["category_breakdown"][0]["name"] == "Unknown"


# =============================================================================
# BILLS & HISTORY
# =============================================================================

class TestBillsAndHistory:

    def test_detect_bills_uses_trailing_window(self, service, flat_history, as_of):
        suggestions = service.detect_bills(flat_history, as_of, months=6)

        assert [s.description for s in suggestions] == ["RENT"]
        assert service.detect_bills(flat_history, date(2025, 7, 1), months=6) == []

    def test_historical_balances(self, service, accounts, flat_history):
        balances = service.historical_balances(accounts, flat_history, date(2024, 6, 20), months=3)
        assert balances == pytest.approx([7000.0, 8500.0, 10000.0])

    def test_historical_balances_unknown_account(self, service, accounts, flat_history, as_of):
        with pytest.raises(AccountNotFoundError):
            service.historical_balances(accounts, flat_history, as_of, months=3, account_id=5)
