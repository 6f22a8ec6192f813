"""
Budget Forecast - command line demo

Generates a demo household and prints its forecast, scenarios, recurring
patterns and bill summary as JSON.

Usage:
    budget-forecast                          # Young professional, as of today
    budget-forecast --profile family --seed 7
    budget-forecast --as-of 2024-07-01 --horizon 12 --live
"""

import argparse
import json
import logging
import sys
from datetime import date
from typing import List, Optional

from .bills.summary import summarize_bills
from .config import get_config
from .demo_data import HOUSEHOLD_PROFILES, DemoDataGenerator
from .exceptions import BudgetForecastError
from .forecasting.service import ForecastService

logger = logging.getLogger("budget_forecast.cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Budget Forecast demo: forecast a generated household'
    )
    parser.add_argument(
        '--profile',
        choices=sorted(HOUSEHOLD_PROFILES),
        default='young_professional',
        help='Household profile to generate (default: young_professional)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help='Random seed for the demo data (default: 42)'
    )
    parser.add_argument(
        '--as-of',
        type=date.fromisoformat,
        default=None,
        help='Forecast anchor date, YYYY-MM-DD (default: today)'
    )
    parser.add_argument(
        '--history',
        type=int,
        default=12,
        help='Months of demo history to generate (default: 12)'
    )
    parser.add_argument(
        '--based-on',
        type=int,
        default=None,
        help='Months of history the forecast learns from (default: from config)'
    )
    parser.add_argument(
        '--horizon',
        type=int,
        default=None,
        help='Months to forecast (default: from config)'
    )
    parser.add_argument(
        '--live',
        action='store_true',
        help='Include the dashboard live forecast'
    )
    parser.add_argument(
        '--indent',
        type=int,
        default=2,
        help='JSON indentation (default: 2)'
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)
    settings = get_config()

    logging.basicConfig(
        level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    as_of = args.as_of or date.today()
    household = DemoDataGenerator(seed=args.seed).generate_household(
        profile=args.profile,
        as_of=as_of,
        months_of_history=args.history,
    )
    logger.info(
        f"Generated {household.name} ({args.profile}): "
        f"{len(household.transactions)} transactions, {len(household.bills)} bills"
    )

    service = ForecastService.from_config(settings)
    accounts = [household.account]

    try:
        forecast = service.generate_forecast(
            accounts,
            household.transactions,
            as_of,
            account_id=household.account.account_id,
            based_on_months=args.based_on,
            forecast_months=args.horizon,
            category_names=household.category_names,
        )
        output = {
            "household": {
                "name": household.name,
                "description": household.description,
                "profile": household.profile,
                "account": household.account.to_dict(),
            },
            "forecast": forecast.to_dict(),
            "recurring_patterns": [
                p.to_dict() for p in service.engine.detector.detect(household.transactions)
            ],
            "bill_suggestions": [
                s.to_dict() for s in service.detect_bills(household.transactions, as_of)
            ],
            "bills": [
                service.scheduler.schedule_from(bill, as_of).to_dict() for bill in household.bills
            ],
            "bill_summary": summarize_bills(household.bills).to_dict(),
        }
        if args.live:
            output["live"] = service.live_forecast(
                accounts, household.transactions, as_of,
                forecast_months=args.horizon,
                category_names=household.category_names,
            ).to_dict()
    except BudgetForecastError as e:
        logger.error(f"Forecast failed: {e}")
        return 1

    print(json.dumps(output, indent=args.indent))
    return 0


if __name__ == '__main__':
    sys.exit(main())
