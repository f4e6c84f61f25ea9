"""Pure calculation functions over DailyRecord / StoreResult data."""

from .advanced_forecast import (
    LinearRegressionResult,
    MonthEndProjection,
    WMAEntry,
    calculate_month_end_projection,
    calculate_wma,
    linear_regression,
    project_dow_adjusted,
)
from .aggregation import (
    AggregatedResult,
    aggregate_stores,
    sum_nullable_values,
    sum_store_values,
    weighted_average_by_sales,
)
from .alerts import (
    DEFAULT_ALERT_RULES,
    Alert,
    AlertRule,
    AlertRuleType,
    AlertSeverity,
    evaluate_alerts,
    evaluate_all_store_alerts,
    load_alert_rules,
)
from .budget_analysis import BudgetAnalysisResult, calculate_budget_analysis
from .discount_impact import DiscountImpactResult, calculate_discount_impact
from .estimation_method import (
    CoreSalesResult,
    EstMethodResult,
    calculate_core_sales,
    calculate_discount_rate,
    calculate_est_method,
)
from .forecast import (
    AnomalyDetectionResult,
    DayOfWeekAverage,
    ForecastResult,
    WeeklySummary,
    calculate_day_of_week_averages,
    calculate_forecast,
    calculate_std_dev,
    calculate_weekly_summaries,
    detect_anomalies,
    get_week_ranges,
)
from .inventory_method import InvMethodResult, calculate_inv_method
from .pin_intervals import PinInterval, calculate_pin_intervals
from .trend import MonthlyDataPoint, TrendAnalysisResult, TrendDirection, analyze_trend
from .utils import (
    format_currency,
    format_man_yen,
    format_percent,
    format_point_diff,
    safe_divide,
    safe_number,
)

__all__ = [
    # profit methods
    "CoreSalesResult",
    "DiscountImpactResult",
    "EstMethodResult",
    "InvMethodResult",
    "PinInterval",
    "calculate_core_sales",
    "calculate_discount_impact",
    "calculate_discount_rate",
    "calculate_est_method",
    "calculate_inv_method",
    "calculate_pin_intervals",
    # budget
    "BudgetAnalysisResult",
    "calculate_budget_analysis",
    # forecast
    "AnomalyDetectionResult",
    "DayOfWeekAverage",
    "ForecastResult",
    "LinearRegressionResult",
    "MonthEndProjection",
    "WMAEntry",
    "WeeklySummary",
    "calculate_day_of_week_averages",
    "calculate_forecast",
    "calculate_month_end_projection",
    "calculate_std_dev",
    "calculate_weekly_summaries",
    "calculate_wma",
    "detect_anomalies",
    "get_week_ranges",
    "linear_regression",
    "project_dow_adjusted",
    # trend
    "MonthlyDataPoint",
    "TrendAnalysisResult",
    "TrendDirection",
    "analyze_trend",
    # alerts
    "DEFAULT_ALERT_RULES",
    "Alert",
    "AlertRule",
    "AlertRuleType",
    "AlertSeverity",
    "evaluate_alerts",
    "evaluate_all_store_alerts",
    "load_alert_rules",
    # aggregation
    "AggregatedResult",
    "aggregate_stores",
    "sum_nullable_values",
    "sum_store_values",
    "weighted_average_by_sales",
    # utils
    "format_currency",
    "format_man_yen",
    "format_percent",
    "format_point_diff",
    "safe_divide",
    "safe_number",
]
