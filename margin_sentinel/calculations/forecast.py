"""Weekly summaries, day-of-week averages and anomaly detection.

Weeks start on Monday and end on Sunday or at month end. Day-of-week
buckets use 0 = Sunday ... 6 = Saturday.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import date

import numpy as np

from ..config import get_days_in_month
from .utils import safe_divide


@dataclass
class WeeklySummary:
    week_number: int
    start_day: int
    end_day: int
    total_sales: float
    total_gross_profit: float
    gross_profit_rate: float
    # days with sales
    days: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DayOfWeekAverage:
    day_of_week: int
    average_sales: float
    count: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AnomalyDetectionResult:
    day: int
    value: float
    mean: float
    std_dev: float
    z_score: float
    is_anomaly: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ForecastResult:
    weekly_summaries: list[WeeklySummary] = field(default_factory=list)
    day_of_week_averages: list[DayOfWeekAverage] = field(default_factory=list)
    anomalies: list[AnomalyDetectionResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "weekly_summaries": [w.to_dict() for w in self.weekly_summaries],
            "day_of_week_averages": [d.to_dict() for d in self.day_of_week_averages],
            "anomalies": [a.to_dict() for a in self.anomalies],
        }


def sunday_based_weekday(d: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (d.weekday() + 1) % 7


def calculate_std_dev(values: list[float]) -> tuple[float, float]:
    """(mean, population standard deviation). Empty input gives (0, 0)."""
    if not values:
        return 0.0, 0.0
    arr = np.asarray(values, dtype=float)
    return float(arr.mean()), float(arr.std())


def get_week_ranges(year: int, month: int) -> list[tuple[int, int, int]]:
    """Monday-start weeks as (week_number, start_day, end_day)."""
    days_in_month = get_days_in_month(year, month)
    weeks: list[tuple[int, int, int]] = []
    week_number = 1
    day = 1
    while day <= days_in_month:
        # Monday = 0
        days_until_sunday = 6 - date(year, month, day).weekday()
        end_day = min(day + days_until_sunday, days_in_month)
        weeks.append((week_number, day, end_day))
        week_number += 1
        day = end_day + 1
    return weeks


def calculate_weekly_summaries(
    year: int,
    month: int,
    daily_sales: Mapping[int, float],
    daily_gross_profit: Mapping[int, float],
) -> list[WeeklySummary]:
    summaries = []
    for week_number, start_day, end_day in get_week_ranges(year, month):
        total_sales = 0.0
        total_gp = 0.0
        days = 0
        for d in range(start_day, end_day + 1):
            sales = daily_sales.get(d, 0)
            if sales > 0:
                days += 1
            total_sales += sales
            total_gp += daily_gross_profit.get(d, 0)
        summaries.append(
            WeeklySummary(
                week_number=week_number,
                start_day=start_day,
                end_day=end_day,
                total_sales=total_sales,
                total_gross_profit=total_gp,
                gross_profit_rate=safe_divide(total_gp, total_sales, 0),
                days=days,
            )
        )
    return summaries


def calculate_day_of_week_averages(
    year: int,
    month: int,
    daily_sales: Mapping[int, float],
) -> list[DayOfWeekAverage]:
    totals = [0.0] * 7
    counts = [0] * 7
    for d in range(1, get_days_in_month(year, month) + 1):
        sales = daily_sales.get(d, 0)
        if sales > 0:
            dow = sunday_based_weekday(date(year, month, d))
            totals[dow] += sales
            counts[dow] += 1

    return [
        DayOfWeekAverage(
            day_of_week=i,
            average_sales=safe_divide(totals[i], counts[i], 0),
            count=counts[i],
        )
        for i in range(7)
    ]


def detect_anomalies(
    daily_sales: Mapping[int, float],
    threshold: float = 2.0,
) -> list[AnomalyDetectionResult]:
    """Days whose sales z-score exceeds ``threshold`` in absolute value.

    Only days with sales count. Needs at least 3 such days and a non-zero
    standard deviation.
    """
    entries = [(day, value) for day, value in daily_sales.items() if value > 0]
    if len(entries) < 3:
        return []

    mean, std_dev = calculate_std_dev([v for _, v in entries])
    if std_dev == 0:
        return []

    results = []
    for day, value in entries:
        z_score = (value - mean) / std_dev
        if abs(z_score) > threshold:
            results.append(
                AnomalyDetectionResult(
                    day=day,
                    value=value,
                    mean=mean,
                    std_dev=std_dev,
                    z_score=z_score,
                    is_anomaly=True,
                )
            )
    return results


def calculate_forecast(
    year: int,
    month: int,
    daily_sales: Mapping[int, float],
    daily_gross_profit: Mapping[int, float],
) -> ForecastResult:
    return ForecastResult(
        weekly_summaries=calculate_weekly_summaries(
            year, month, daily_sales, daily_gross_profit
        ),
        day_of_week_averages=calculate_day_of_week_averages(year, month, daily_sales),
        anomalies=detect_anomalies(daily_sales),
    )
