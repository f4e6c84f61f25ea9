"""Cross-month trend analysis.

Works on one data point per (year, month), typically loaded from stored
past months by the caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from enum import Enum


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


# Recent vs previous average must move more than this to count as a trend
TREND_DEAD_BAND = 0.03


@dataclass
class MonthlyDataPoint:
    year: int
    month: int
    total_sales: float
    total_customers: int | None = None
    gross_profit: float | None = None
    gross_profit_rate: float | None = None
    budget: float | None = None
    budget_achievement: float | None = None
    store_count: int = 1

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TrendAnalysisResult:
    data_points: list[MonthlyDataPoint] = field(default_factory=list)
    # current / previous month, None at index 0 or when previous is 0
    mom_changes: list[float | None] = field(default_factory=list)
    # current / same month last year, None without a comparable point
    yoy_changes: list[float | None] = field(default_factory=list)
    moving_avg_3: list[float | None] = field(default_factory=list)
    moving_avg_6: list[float | None] = field(default_factory=list)
    # 12 entries, January first
    seasonal_index: list[float] = field(default_factory=lambda: [1.0] * 12)
    overall_trend: TrendDirection = TrendDirection.FLAT
    average_monthly_sales: float = 0.0

    def to_dict(self) -> dict:
        return {
            "data_points": [p.to_dict() for p in self.data_points],
            "mom_changes": self.mom_changes,
            "yoy_changes": self.yoy_changes,
            "moving_avg_3": self.moving_avg_3,
            "moving_avg_6": self.moving_avg_6,
            "seasonal_index": self.seasonal_index,
            "overall_trend": self.overall_trend.value,
            "average_monthly_sales": self.average_monthly_sales,
        }


def analyze_trend(data_points: Iterable[MonthlyDataPoint]) -> TrendAnalysisResult:
    points = sorted(data_points, key=lambda p: (p.year, p.month))
    if not points:
        return TrendAnalysisResult()

    mom: list[float | None] = [None]
    for prev, cur in zip(points, points[1:]):
        mom.append(None if prev.total_sales == 0 else cur.total_sales / prev.total_sales)

    by_period = {(p.year, p.month): p for p in points}
    yoy: list[float | None] = []
    for p in points:
        last_year = by_period.get((p.year - 1, p.month))
        if last_year is None or last_year.total_sales == 0:
            yoy.append(None)
        else:
            yoy.append(p.total_sales / last_year.total_sales)

    sales = [p.total_sales for p in points]
    return TrendAnalysisResult(
        data_points=points,
        mom_changes=mom,
        yoy_changes=yoy,
        moving_avg_3=_moving_average(sales, 3),
        moving_avg_6=_moving_average(sales, 6),
        seasonal_index=_seasonal_index(points),
        overall_trend=_overall_trend(sales),
        average_monthly_sales=sum(sales) / len(sales),
    )


def _moving_average(values: list[float], window: int) -> list[float | None]:
    return [
        None if i < window - 1 else sum(values[i - window + 1 : i + 1]) / window
        for i in range(len(values))
    ]


def _seasonal_index(points: list[MonthlyDataPoint]) -> list[float]:
    """Each calendar month's average sales / the overall monthly average."""
    totals = [0.0] * 12
    counts = [0] * 12
    for p in points:
        totals[p.month - 1] += p.total_sales
        counts[p.month - 1] += 1

    grand_avg = sum(totals) / len(points) if points else 0
    if grand_avg == 0:
        return [1.0] * 12
    return [
        1.0 if counts[m] == 0 else (totals[m] / counts[m]) / grand_avg
        for m in range(12)
    ]


def _overall_trend(sales: list[float]) -> TrendDirection:
    """Compare the last 3 months with up to 3 months before them."""
    if len(sales) < 4:
        return TrendDirection.FLAT

    recent = sales[-3:]
    previous = sales[-6:-3]
    recent_avg = sum(recent) / len(recent)
    previous_avg = sum(previous) / len(previous)
    if previous_avg == 0:
        return TrendDirection.FLAT

    change = (recent_avg - previous_avg) / previous_avg
    if change > TREND_DEAD_BAND:
        return TrendDirection.UP
    if change < -TREND_DEAD_BAND:
        return TrendDirection.DOWN
    return TrendDirection.FLAT
