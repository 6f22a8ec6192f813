"""
Demo Data Generator for Budget Forecast

Generates realistic household transaction histories for demonstrations and
testing. Each household gets a checking account, salary, fixed bills,
subscriptions and seasonal everyday spending.
"""

import random
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional

from .bills.frequency import BillSchedule, Frequency
from .date_utils import add_months, days_in_month, month_start
from .transactions import AccountSnapshot, Direction, TransactionRecord

CATEGORY_NAMES = {
    1: "Salary",
    2: "Housing",
    3: "Utilities",
    4: "Subscriptions",
    5: "Groceries",
    6: "Dining Out",
    7: "Insurance",
}

# Household configurations with realistic monthly profiles
HOUSEHOLD_PROFILES = {
    "young_professional": {
        "name": "Young Professional",
        "salary_range": (3800, 5200),
        "cash_buffer_months": (1.0, 3.0),
        "bills": [
            # (description, category, frequency, amount range, due day, due month)
            ("CITYVIEW APARTMENTS RENT", 2, Frequency.MONTHLY, (1300, 1700), 1, None),
            ("METRO POWER DD", 3, Frequency.MONTHLY, (60, 90), 12, None),
            ("FASTNET BROADBAND", 3, Frequency.MONTHLY, (35, 50), 18, None),
            ("STREAMFLIX SUBSCRIPTION", 4, Frequency.MONTHLY, (12, 18), 5, None),
            ("GYMCO MEMBERSHIP", 4, Frequency.MONTHLY, (30, 45), 3, None),
        ],
        "grocery_range": (70, 110),
        "dining_per_month": (4, 9),
        "seasonality": [1.0, 0.95, 1.0, 1.0, 1.05, 1.05, 1.1, 1.05, 1.0, 1.0, 1.1, 1.3],
        "example_households": [
            ("Alex Rivera", "Software tester renting downtown"),
            ("Jordan Lee", "Junior architect with a gym habit"),
        ]
    },
    "family": {
        "name": "Family",
        "salary_range": (6500, 9000),
        "cash_buffer_months": (0.5, 2.0),
        "bills": [
            ("FIRST HOME MORTGAGE PAYMENT", 2, Frequency.MONTHLY, (1900, 2400), 1, None),
            ("NORTHERN GAS AND ELECTRIC DD", 3, Frequency.MONTHLY, (140, 220), 15, None),
            ("AQUA WATER BOARD", 3, Frequency.QUARTERLY, (90, 140), 20, 1),
            ("FAMILYNET FIBRE", 3, Frequency.MONTHLY, (55, 70), 22, None),
            ("STREAMFLIX SUBSCRIPTION", 4, Frequency.MONTHLY, (18, 23), 5, None),
            ("SAFEDRIVE CAR INSURANCE", 7, Frequency.YEARLY, (650, 900), 14, 3),
        ],
        "grocery_range": (160, 240),
        "dining_per_month": (2, 5),
        "seasonality": [0.95, 0.9, 0.95, 1.0, 1.0, 1.05, 1.1, 1.1, 1.05, 1.0, 1.05, 1.35],
        "example_households": [
            ("The Okafor Family", "Two adults, two children, suburban mortgage"),
            ("The Lindqvist Family", "Two adults, one child, car commuters"),
        ]
    },
    "retiree": {
        "name": "Retiree",
        "salary_range": (2600, 3400),
        "cash_buffer_months": (4.0, 10.0),
        "bills": [
            ("HARBOUR VIEW STRATA FEES", 2, Frequency.MONTHLY, (350, 450), 1, None),
            ("COASTAL ENERGY DD", 3, Frequency.MONTHLY, (80, 150), 9, None),
            ("DAILY GAZETTE PAPER", 4, Frequency.MONTHLY, (25, 30), 2, None),
            ("SILVER HEALTH INSURANCE", 7, Frequency.QUARTERLY, (300, 420), 7, 2),
        ],
        "grocery_range": (60, 95),
        "dining_per_month": (1, 4),
        "seasonality": [1.1, 1.05, 1.0, 0.95, 0.95, 0.9, 0.9, 0.95, 1.0, 1.0, 1.05, 1.2],
        "example_households": [
            ("Margaret Chen", "Retired teacher living by the coast"),
            ("Walter Brooks", "Retired engineer, part-time volunteer"),
        ]
    },
}

SALARY_DESCRIPTIONS = {
    "young_professional": "BRIGHTWORKS LTD PAYROLL",
    "family": "CONTOSO PAYROLL",
    "retiree": "STATE PENSION",
}

DINING_VENDORS = ["CORNER BISTRO", "NOODLE HOUSE", "PIZZA PLANET", "THE DAILY GRIND CAFE"]


@dataclass
class GeneratedHousehold:
    """Complete generated household data"""
    name: str
    description: str
    profile: str
    account: AccountSnapshot
    transactions: List[TransactionRecord] = field(default_factory=list)
    bills: List[BillSchedule] = field(default_factory=list)
    category_names: Dict[int, str] = field(default_factory=lambda: dict(CATEGORY_NAMES))


class DemoDataGenerator:
    """
    Generates realistic demo data for households.

    Output is fully determined by the seed and the as_of date.

    Example:
        generator = DemoDataGenerator(seed=42)

        household = generator.generate_household(
            profile="family",
            as_of=date(2024, 7, 1)
        )
        households = generator.generate_demo_set(as_of=date(2024, 7, 1))
    """

    def __init__(self, seed: Optional[int] = None):
        """Initialize generator with optional random seed for reproducibility"""
        self.rng = random.Random(seed)

    def generate_household(
        self,
        profile: str = "young_professional",
        as_of: Optional[date] = None,
        months_of_history: int = 12,
        account_id: int = 1,
        name: Optional[str] = None
    ) -> GeneratedHousehold:
        """
        Generate a household with the given months of history before as_of.

        Args:
            profile: Household type (see HOUSEHOLD_PROFILES)
            as_of: Snapshot date; history covers the whole months before it
            months_of_history: Number of months of data to generate
            account_id: Id of the generated checking account
            name: Optional custom household name

        Returns:
            GeneratedHousehold with transactions, bills and account balance
        """
        if as_of is None:
            raise ValueError("as_of is required so generated data is reproducible")

        settings = HOUSEHOLD_PROFILES.get(profile, HOUSEHOLD_PROFILES["young_professional"])
        rng = self.rng

        example = rng.choice(settings["example_households"])
        if name is None:
            name, description = example
        else:
            description = f"{name} - {settings['name']} household"

        salary = round(rng.uniform(*settings["salary_range"]), 2)
        bill_amounts = [round(rng.uniform(*bill[3]), 2) for bill in settings["bills"]]
        balance = round(salary * rng.uniform(*settings["cash_buffer_months"]), 2)

        transactions: List[TransactionRecord] = []
        first_month = add_months(month_start(as_of), -months_of_history)

        for offset in range(months_of_history):
            month = add_months(first_month, offset)
            seasonality = settings["seasonality"][month.month - 1]

            transactions.append(self._record(
                account_id, date(month.year, month.month, 25),
                SALARY_DESCRIPTIONS.get(profile, "PAYROLL"), salary, Direction.CREDIT, 1
            ))

            for (bill_description, category_id, frequency, _, due_day, due_month), amount in zip(
                settings["bills"], bill_amounts
            ):
                if not self._is_due(frequency, month, due_month):
                    continue
                if category_id == 3:
                    # Utilities swing with the weather
                    amount = round(amount * seasonality * rng.uniform(0.9, 1.1), 2)
                day = min(due_day, days_in_month(month.year, month.month))
                transactions.append(self._record(
                    account_id, date(month.year, month.month, day),
                    bill_description, amount, Direction.DEBIT, category_id
                ))

            transactions.extend(self._groceries(account_id, month, settings, seasonality))
            transactions.extend(self._dining(account_id, month, settings))

        transactions = [t for t in transactions if t.date < as_of]
        transactions.sort(key=lambda t: (t.date, t.description))

        for record in transactions:
            balance += record.signed_amount

        bills = [
            BillSchedule(
                frequency=frequency,
                amount=amount,
                due_day=due_day,
                due_month=due_month,
                name=bill_description.title(),
                category_id=category_id,
                account_id=account_id,
                auto_detect_pattern=bill_description,
            )
            for (bill_description, category_id, frequency, _, due_day, due_month), amount in zip(
                settings["bills"], bill_amounts
            )
        ]

        return GeneratedHousehold(
            name=name,
            description=description,
            profile=profile,
            account=AccountSnapshot(
                account_id=account_id,
                balance=round(balance, 2),
                name=f"{name} Checking",
            ),
            transactions=transactions,
            bills=bills,
        )

    def generate_demo_set(self, as_of: date, count: int = 3) -> List[GeneratedHousehold]:
        """
        Generate one household per profile, cycling through profiles.

        Args:
            as_of: Snapshot date shared by all households
            count: Number of households to generate
        """
        profiles = list(HOUSEHOLD_PROFILES)
        return [
            self.generate_household(
                profile=profiles[i % len(profiles)],
                as_of=as_of,
                account_id=i + 1,
            )
            for i in range(count)
        ]

    def _groceries(self, account_id: int, month: date, settings: Dict, seasonality: float) -> List[TransactionRecord]:
        # Weekly shop on Saturdays
        day = month + timedelta(days=(5 - month.weekday()) % 7)
        records = []
        while day.month == month.month:
            amount = round(self.rng.uniform(*settings["grocery_range"]) * seasonality, 2)
            records.append(self._record(
                account_id, day, "FRESHMART GROCERIES", amount, Direction.DEBIT, 5
            ))
            day += timedelta(days=7)
        return records

    def _dining(self, account_id: int, month: date, settings: Dict) -> List[TransactionRecord]:
        visits = self.rng.randint(*settings["dining_per_month"])
        last_day = days_in_month(month.year, month.month)
        return [
            self._record(
                account_id,
                date(month.year, month.month, self.rng.randint(1, last_day)),
                self.rng.choice(DINING_VENDORS),
                round(self.rng.uniform(15, 80), 2),
                Direction.DEBIT,
                6,
            )
            for _ in range(visits)
        ]

    @staticmethod
    def _is_due(frequency: Frequency, month: date, due_month: Optional[int]) -> bool:
        if frequency is Frequency.QUARTERLY:
            return (month.month - (due_month or 1)) % 3 == 0
        if frequency is Frequency.YEARLY:
            return month.month == (due_month or 1)
        return True

    @staticmethod
    def _record(
        account_id: int,
        day: date,
        description: str,
        amount: float,
        direction: Direction,
        category_id: int
    ) -> TransactionRecord:
        return TransactionRecord(
            account_id=account_id,
            date=day,
            description=description,
            amount=amount,
            direction=direction,
            category_id=category_id,
        )
