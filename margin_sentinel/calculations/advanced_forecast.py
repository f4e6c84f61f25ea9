"""Month-end projection.

Combines four projections of month-end sales:

    linear      actual + simple daily average x remaining days
    dow         actual + per-weekday average for each remaining day
    wma         actual + latest weighted moving average x remaining days
    regression  actual + sum(max(0, slope x day + intercept)) for remaining days

A 95% confidence band (z = 1.96) is placed around the mean of the first
three, using the standard error of the daily sales times the remaining
days.

Usage:
    from margin_sentinel.calculations.advanced_forecast import (
        calculate_month_end_projection,
    )

    projection = calculate_month_end_projection(2026, 2, result.daily_sales())
    print(projection.confidence_interval)
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import date

from ..config import get_days_in_month
from .forecast import calculate_std_dev, sunday_based_weekday
from .utils import round_half_up, safe_divide

Z_95 = 1.96


@dataclass
class WMAEntry:
    day: int
    actual: float
    wma: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class LinearRegressionResult:
    # change in sales per day
    slope: float
    intercept: float
    r_squared: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MonthEndProjection:
    linear_projection: int
    dow_adjusted_projection: int
    wma_projection: int
    confidence_interval: tuple[int, int]
    daily_trend: int
    regression_projection: int

    def to_dict(self) -> dict:
        lower, upper = self.confidence_interval
        return {
            "linear_projection": self.linear_projection,
            "dow_adjusted_projection": self.dow_adjusted_projection,
            "wma_projection": self.wma_projection,
            "confidence_interval": {"lower": lower, "upper": upper},
            "daily_trend": self.daily_trend,
            "regression_projection": self.regression_projection,
        }


def _nonzero_sorted(daily_sales: Mapping[int, float]) -> list[tuple[int, float]]:
    return sorted((d, v) for d, v in daily_sales.items() if v > 0)


# ---------------------------------------------------------------------------
# Weighted moving average
# ---------------------------------------------------------------------------


def calculate_wma(daily_sales: Mapping[int, float], window: int = 5) -> list[WMAEntry]:
    """Weighted moving average with weights 1..window, newest heaviest.

    Days without sales are dropped first. Entries before the window is
    full carry their actual value.
    """
    entries = _nonzero_sorted(daily_sales)
    total_weight = window * (window + 1) / 2

    results = []
    for i, (day, actual) in enumerate(entries):
        if i < window - 1:
            results.append(WMAEntry(day=day, actual=actual, wma=actual))
            continue
        span = entries[i - window + 1 : i + 1]
        weighted = sum(value * (j + 1) for j, (_, value) in enumerate(span))
        results.append(WMAEntry(day=day, actual=actual, wma=weighted / total_weight))
    return results


# ---------------------------------------------------------------------------
# Linear regression
# ---------------------------------------------------------------------------


def linear_regression(daily_sales: Mapping[int, float]) -> LinearRegressionResult:
    """Ordinary least squares of sales on day number (days with sales only)."""
    entries = [(d, v) for d, v in daily_sales.items() if v > 0]
    n = len(entries)
    if n < 2:
        return LinearRegressionResult(slope=0, intercept=0, r_squared=0)

    sum_x = sum(x for x, _ in entries)
    sum_y = sum(y for _, y in entries)
    sum_xy = sum(x * y for x, y in entries)
    sum_x2 = sum(x * x for x, _ in entries)

    denom = n * sum_x2 - sum_x * sum_x
    if denom == 0:
        return LinearRegressionResult(slope=0, intercept=0, r_squared=0)

    slope = (n * sum_xy - sum_x * sum_y) / denom
    intercept = (sum_y - slope * sum_x) / n

    y_mean = sum_y / n
    ss_tot = sum((y - y_mean) ** 2 for _, y in entries)
    ss_res = sum((y - (slope * x + intercept)) ** 2 for x, y in entries)
    r_squared = 0 if ss_tot == 0 else 1 - ss_res / ss_tot

    return LinearRegressionResult(slope=slope, intercept=intercept, r_squared=r_squared)


# ---------------------------------------------------------------------------
# Day-of-week adjusted projection
# ---------------------------------------------------------------------------


def project_dow_adjusted(
    year: int,
    month: int,
    daily_sales: Mapping[int, float],
    data_end_day: int,
) -> float:
    """Actual sales plus the weekday average for every day after ``data_end_day``."""
    totals = [0.0] * 7
    counts = [0] * 7
    for day, sales in daily_sales.items():
        if sales > 0:
            dow = sunday_based_weekday(date(year, month, day))
            totals[dow] += sales
            counts[dow] += 1
    dow_avg = [safe_divide(totals[i], counts[i], 0) for i in range(7)]

    actual_total = sum(daily_sales.values())
    remaining = sum(
        dow_avg[sunday_based_weekday(date(year, month, d))]
        for d in range(data_end_day + 1, get_days_in_month(year, month) + 1)
    )
    return actual_total + remaining


# ---------------------------------------------------------------------------
# Composite month-end projection
# ---------------------------------------------------------------------------


def calculate_month_end_projection(
    year: int,
    month: int,
    daily_sales: Mapping[int, float],
) -> MonthEndProjection:
    entries = _nonzero_sorted(daily_sales)
    if not entries:
        return MonthEndProjection(
            linear_projection=0,
            dow_adjusted_projection=0,
            wma_projection=0,
            confidence_interval=(0, 0),
            daily_trend=0,
            regression_projection=0,
        )

    days_in_month = get_days_in_month(year, month)
    values = [v for _, v in entries]
    actual_total = sum(values)
    data_end_day = max(d for d, _ in entries)
    remaining_days = days_in_month - data_end_day

    daily_avg = actual_total / len(entries)
    linear = actual_total + daily_avg * remaining_days

    dow_adjusted = project_dow_adjusted(year, month, daily_sales, data_end_day)

    wma_entries = calculate_wma(daily_sales)
    last_wma = wma_entries[-1].wma if wma_entries else daily_avg
    wma = actual_total + last_wma * remaining_days

    reg = linear_regression(daily_sales)
    regression = actual_total + sum(
        max(0.0, reg.slope * d + reg.intercept)
        for d in range(data_end_day + 1, days_in_month + 1)
    )

    _, std_dev = calculate_std_dev(values)
    uncertainty = Z_95 * (std_dev / math.sqrt(len(entries))) * remaining_days
    best_estimate = (linear + dow_adjusted + wma) / 3

    return MonthEndProjection(
        linear_projection=round_half_up(linear),
        dow_adjusted_projection=round_half_up(dow_adjusted),
        wma_projection=round_half_up(wma),
        confidence_interval=(
            round_half_up(max(0.0, best_estimate - uncertainty)),
            round_half_up(best_estimate + uncertainty),
        ),
        daily_trend=round_half_up(reg.slope),
        regression_projection=round_half_up(regression),
    )
