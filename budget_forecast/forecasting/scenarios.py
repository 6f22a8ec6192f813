"""
Scenario Generator

Runs the base projection arithmetic under named multiplicative adjustments of
the average income and expenses. Scenarios are plain data: adding one only
needs a new ScenarioDefinition.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from .projector import ForecastAssumptions, ForecastResult, ProjectionEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScenarioDefinition:
    """A named (income factor, expense factor) pair"""
    name: str
    label: str
    description: str
    income_factor: float = 1.0
    expense_factor: float = 1.0

    def __post_init__(self):
        if not self.name:
            raise ValueError("Scenario name must not be empty")
        if self.income_factor < 0 or self.expense_factor < 0:
            raise ValueError(
                f"Scenario '{self.name}' factors must be >= 0, got "
                f"{self.income_factor}/{self.expense_factor}"
            )

    @classmethod
    def from_growth(
        cls,
        name: str,
        income_growth: float = 0.0,
        expense_growth: float = 0.0,
        description: str = ""
    ) -> "ScenarioDefinition":
        """Build a scenario from growth rates, e.g. income_growth=-0.15 for a 15% cut"""
        return cls(
            name=name,
            label=name.replace("_", " ").title(),
            description=description,
            income_factor=1 + income_growth,
            expense_factor=1 + expense_growth,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "description": self.description,
            "income_factor": self.income_factor,
            "expense_factor": self.expense_factor,
        }


DEFAULT_SCENARIOS: List[ScenarioDefinition] = [
    ScenarioDefinition(
        "base", "Base", "Current averages and trends continue", 1.0, 1.0
    ),
    ScenarioDefinition(
        "conservative", "Conservative",
        "Assumes 20% lower income and 10% higher expenses", 0.8, 1.1
    ),
    ScenarioDefinition(
        "optimistic", "Optimistic",
        "Assumes 10% higher income and 5% lower expenses", 1.1, 0.95
    ),
    ScenarioDefinition(
        "recession", "Economic Downturn",
        "Assumes 30% income reduction and 20% expense increase", 0.7, 1.2
    ),
]


class ScenarioGenerator:
    """
    Projects the same baseline under several scenarios.

    Example:
    ```python
    generator = ScenarioGenerator()
    results = generator.run_scenarios(assumptions, 12, 10000.0, date(2024, 7, 1))

    for name, result in results.items():
        print(name, result.projected_balance)
    ```
    """

    def __init__(
        self,
        engine: Optional[ProjectionEngine] = None,
        scenarios: Optional[Iterable[ScenarioDefinition]] = None
    ):
        self.engine = engine or ProjectionEngine()
        self.scenarios = list(scenarios) if scenarios is not None else list(DEFAULT_SCENARIOS)

    def run_scenarios(
        self,
        base_assumptions: ForecastAssumptions,
        horizon_months: int,
        current_balance: float,
        as_of: date,
        extra: Optional[Iterable[ScenarioDefinition]] = None,
        account_id: Optional[int] = None
    ) -> Dict[str, ForecastResult]:
        """
        Project every scenario.

        Args:
            base_assumptions: Unadjusted assumptions from the history window
            horizon_months: Months to project
            current_balance: Starting balance
            as_of: Anchor date; month labels start the month after
            extra: Custom scenarios run after the configured ones; a custom
                scenario with an existing name replaces it
            account_id: Account the results belong to, None for all accounts

        Returns:
            Dict mapping scenario name to its ForecastResult, in run order
        """
        definitions = {s.name: s for s in self.scenarios}
        for scenario in extra or []:
            definitions[scenario.name] = scenario

        scorer = self.engine.scorer
        confidence = round(scorer.overall_confidence(
            base_assumptions.months_of_data, base_assumptions.recurring_count, horizon_months
        ), 4)
        data_confidence = round(scorer.score_confidence(
            base_assumptions.months_of_data, base_assumptions.transaction_count,
            base_assumptions.income_volatility, base_assumptions.avg_income
        ), 2)

        results = {}
        for name, scenario in definitions.items():
            assumptions = base_assumptions.adjusted(scenario.income_factor, scenario.expense_factor)
            results[name] = ForecastResult(
                account_id=account_id,
                current_balance=current_balance,
                monthly_projections=self.engine.project_months(
                    assumptions, current_balance, horizon_months, as_of
                ),
                category_forecasts=[],
                confidence=confidence,
                data_confidence=data_confidence,
                as_of=as_of,
                scenario=name,
                assumptions=assumptions,
            )
            logger.debug(f"Scenario '{name}': projected balance {results[name].projected_balance:.2f}")

        logger.info(f"Ran {len(results)} scenarios over {horizon_months} months")
        return results


def run_scenarios(
    base_assumptions: ForecastAssumptions,
    horizon_months: int,
    current_balance: float,
    as_of: date,
    extra: Optional[Iterable[ScenarioDefinition]] = None
) -> Dict[str, ForecastResult]:
    """Project the default scenarios plus any custom ones."""
    return ScenarioGenerator().run_scenarios(
        base_assumptions, horizon_months, current_balance, as_of, extra
    )
