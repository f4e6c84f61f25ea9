"""Tests for forecasting, month-end projection and trend analysis.

Covers:
    - Monday-start week ranges and weekly summaries
    - Day-of-week averages (0 = Sunday)
    - Z-score anomaly detection and its minimum-data guards
    - Weighted moving average and linear regression
    - Month-end projection, including the empty case
    - Cross-month trend analysis
"""

from datetime import date

import pytest

from margin_sentinel.calculations import (
    MonthlyDataPoint,
    TrendDirection,
    analyze_trend,
    calculate_day_of_week_averages,
    calculate_forecast,
    calculate_month_end_projection,
    calculate_std_dev,
    calculate_weekly_summaries,
    calculate_wma,
    detect_anomalies,
    get_week_ranges,
    linear_regression,
    project_dow_adjusted,
)
from margin_sentinel.calculations.forecast import sunday_based_weekday


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _make_point(year: int, month: int, sales: float) -> MonthlyDataPoint:
    return MonthlyDataPoint(year=year, month=month, total_sales=sales)


def _flat_sales(days: int, value: float = 100) -> dict[int, float]:
    return {d: value for d in range(1, days + 1)}


# ---------------------------------------------------------------------------
# Weeks and weekdays
# ---------------------------------------------------------------------------


class TestWeeks:
    def test_sunday_based_weekday(self):
        # 2026-02-01 is a Sunday
        assert sunday_based_weekday(date(2026, 2, 1)) == 0
        assert sunday_based_weekday(date(2026, 2, 7)) == 6

    def test_week_ranges_start_on_monday(self):
        weeks = get_week_ranges(2026, 2)
        assert weeks[0] == (1, 1, 1)
        assert weeks[1] == (2, 2, 8)
        assert weeks[-1] == (5, 23, 28)

    def test_weeks_cover_the_month(self):
        weeks = get_week_ranges(2026, 3)
        assert weeks[0][1] == 1
        assert weeks[-1][2] == 31
        for (_, _, end), (_, start, _) in zip(weeks, weeks[1:]):
            assert start == end + 1

    def test_weekly_summaries(self):
        sales = {2: 100, 3: 200, 9: 300}
        gp = {2: 25, 3: 50, 9: 60}
        summaries = calculate_weekly_summaries(2026, 2, sales, gp)
        second = summaries[1]
        assert second.total_sales == pytest.approx(300)
        assert second.total_gross_profit == pytest.approx(75)
        assert second.gross_profit_rate == pytest.approx(0.25)
        assert second.days == 2
        assert summaries[0].gross_profit_rate == 0

    def test_day_of_week_averages(self):
        averages = calculate_day_of_week_averages(2026, 2, {1: 100, 8: 300, 2: 50})
        assert len(averages) == 7
        assert averages[0].average_sales == pytest.approx(200)
        assert averages[0].count == 2
        assert averages[1].count == 1
        assert averages[3].average_sales == 0


# ---------------------------------------------------------------------------
# Anomalies
# ---------------------------------------------------------------------------


class TestAnomalies:
    def test_std_dev_is_population(self):
        mean, std = calculate_std_dev([2, 4, 4, 4, 5, 5, 7, 9])
        assert mean == pytest.approx(5)
        assert std == pytest.approx(2)

    def test_spike_is_flagged(self):
        sales = _flat_sales(9)
        sales[10] = 1000
        anomalies = detect_anomalies(sales)
        assert [a.day for a in anomalies] == [10]
        assert anomalies[0].z_score == pytest.approx(3.0)
        assert anomalies[0].mean == pytest.approx(190)
        assert anomalies[0].is_anomaly

    def test_needs_three_days(self):
        assert detect_anomalies({1: 100, 2: 10_000}) == []

    def test_flat_sales_have_no_anomalies(self):
        assert detect_anomalies(_flat_sales(10)) == []

    def test_zero_days_are_ignored(self):
        sales = _flat_sales(9)
        sales.update({10: 1000, 11: 0})
        assert all(a.day != 11 for a in detect_anomalies(sales))

    def test_forecast_bundle(self):
        r = calculate_forecast(2026, 2, {1: 100}, {1: 20})
        assert len(r.weekly_summaries) == 5
        assert len(r.day_of_week_averages) == 7
        assert r.anomalies == []


# ---------------------------------------------------------------------------
# Advanced forecast
# ---------------------------------------------------------------------------


class TestWeightedMovingAverage:
    def test_window_of_three(self):
        entries = calculate_wma({1: 100, 2: 200, 3: 300, 4: 400}, window=3)
        assert [e.wma for e in entries[:2]] == [100, 200]
        assert entries[2].wma == pytest.approx(1400 / 6)
        assert entries[3].wma == pytest.approx(2000 / 6)

    def test_zero_days_dropped(self):
        entries = calculate_wma({1: 100, 2: 0, 3: 300}, window=2)
        assert [e.day for e in entries] == [1, 3]
        assert entries[1].wma == pytest.approx((100 + 600) / 3)


class TestLinearRegression:
    def test_exact_line(self):
        r = linear_regression({d: 100 * d + 500 for d in range(1, 6)})
        assert r.slope == pytest.approx(100)
        assert r.intercept == pytest.approx(500)
        assert r.r_squared == pytest.approx(1.0)

    def test_degenerate_inputs(self):
        r = linear_regression({1: 100})
        assert (r.slope, r.intercept, r.r_squared) == (0, 0, 0)

    def test_flat_line_has_zero_r_squared(self):
        r = linear_regression(_flat_sales(5))
        assert r.slope == pytest.approx(0)
        assert r.intercept == pytest.approx(100)
        assert r.r_squared == 0


class TestMonthEndProjection:
    def test_empty_is_all_zero(self):
        p = calculate_month_end_projection(2026, 2, {})
        assert p.linear_projection == 0
        assert p.dow_adjusted_projection == 0
        assert p.wma_projection == 0
        assert p.regression_projection == 0
        assert p.confidence_interval == (0, 0)

    def test_flat_sales_agree(self):
        p = calculate_month_end_projection(2026, 2, _flat_sales(14))
        assert p.linear_projection == 2800
        assert p.dow_adjusted_projection == 2800
        assert p.wma_projection == 2800
        assert p.regression_projection == 2800
        assert p.confidence_interval == (2800, 2800)
        assert p.daily_trend == 0

    def test_dow_adjusted(self):
        # Feb 2026: Sundays are 1, 8, 15, 22
        sales = {d: (300 if d in (1, 8) else 100) for d in range(1, 14)}
        total = sum(sales.values())
        projected = project_dow_adjusted(2026, 2, sales, 13)
        remaining = 2 * 300 + 13 * 100
        assert projected == pytest.approx(total + remaining)

    def test_confidence_interval_brackets_estimate(self):
        sales = {1: 100, 2: 150, 3: 90, 4: 200, 5: 120}
        p = calculate_month_end_projection(2026, 2, sales)
        lower, upper = p.confidence_interval
        assert 0 <= lower < upper
        assert p.to_dict()["confidence_interval"] == {"lower": lower, "upper": upper}


# ---------------------------------------------------------------------------
# Trend
# ---------------------------------------------------------------------------


class TestTrend:
    def test_upward_trend(self):
        points = [
            _make_point(2025, m, s)
            for m, s in zip(range(1, 7), [100, 100, 100, 120, 120, 120])
        ]
        r = analyze_trend(points)
        assert r.overall_trend is TrendDirection.UP
        assert r.mom_changes[0] is None
        assert r.mom_changes[3] == pytest.approx(1.2)
        assert r.moving_avg_3[:3] == [None, None, pytest.approx(100)]
        assert r.moving_avg_6[5] == pytest.approx(110)

    def test_points_sorted_and_yoy(self):
        r = analyze_trend([_make_point(2026, 1, 150), _make_point(2025, 1, 100)])
        assert [(p.year, p.month) for p in r.data_points] == [(2025, 1), (2026, 1)]
        assert r.yoy_changes == [None, pytest.approx(1.5)]

    def test_short_history_is_flat(self):
        r = analyze_trend([_make_point(2025, m, 100 * m) for m in range(1, 4)])
        assert r.overall_trend is TrendDirection.FLAT

    def test_seasonal_index(self):
        r = analyze_trend([_make_point(2025, 1, 50), _make_point(2025, 2, 150)])
        assert r.seasonal_index[0] == pytest.approx(0.5)
        assert r.seasonal_index[1] == pytest.approx(1.5)
        assert r.seasonal_index[2] == 1.0

    def test_empty(self):
        r = analyze_trend([])
        assert r.data_points == []
        assert r.overall_trend is TrendDirection.FLAT
