"""Budget progress analysis for one month."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .utils import safe_divide


@dataclass
class BudgetAnalysisResult:
    # sales / full budget
    budget_achievement_rate: float
    # sales / budget accrued through the elapsed days
    budget_progress_rate: float
    # accrued budget / full budget
    budget_elapsed_rate: float
    average_daily_sales: float
    projected_sales: float
    projected_achievement: float
    remaining_budget: float
    # day -> (cumulative sales, cumulative budget)
    daily_cumulative: dict[int, tuple[float, float]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "budget_achievement_rate": self.budget_achievement_rate,
            "budget_progress_rate": self.budget_progress_rate,
            "budget_elapsed_rate": self.budget_elapsed_rate,
            "average_daily_sales": self.average_daily_sales,
            "projected_sales": self.projected_sales,
            "projected_achievement": self.projected_achievement,
            "remaining_budget": self.remaining_budget,
            "daily_cumulative": {
                day: {"sales": s, "budget": b}
                for day, (s, b) in self.daily_cumulative.items()
            },
        }


def calculate_budget_analysis(
    total_sales: float,
    budget: float,
    budget_daily: Mapping[int, float],
    sales_daily: Mapping[int, float],
    elapsed_days: int,
    sales_days: int,
    days_in_month: int,
) -> BudgetAnalysisResult:
    budget_achievement_rate = safe_divide(total_sales, budget, 0)

    cumulative_budget = sum(budget_daily.get(d, 0) for d in range(1, elapsed_days + 1))
    budget_progress_rate = safe_divide(total_sales, cumulative_budget, 0)
    budget_elapsed_rate = safe_divide(cumulative_budget, budget, 0)

    # average over selling days, projected across the remaining calendar days
    average_daily_sales = safe_divide(total_sales, sales_days, 0)
    remaining_days = days_in_month - elapsed_days
    projected_sales = total_sales + average_daily_sales * remaining_days

    daily_cumulative: dict[int, tuple[float, float]] = {}
    cum_sales = 0.0
    cum_budget = 0.0
    for d in range(1, days_in_month + 1):
        cum_sales += sales_daily.get(d, 0)
        cum_budget += budget_daily.get(d, 0)
        daily_cumulative[d] = (cum_sales, cum_budget)

    return BudgetAnalysisResult(
        budget_achievement_rate=budget_achievement_rate,
        budget_progress_rate=budget_progress_rate,
        budget_elapsed_rate=budget_elapsed_rate,
        average_daily_sales=average_daily_sales,
        projected_sales=projected_sales,
        projected_achievement=safe_divide(projected_sales, budget, 0),
        remaining_budget=budget - total_sales,
        daily_cumulative=daily_cumulative,
    )
