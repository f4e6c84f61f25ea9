"""Numeric helpers shared by every calculation.

Division by zero never raises here: callers pass an explicit fallback.
"""

from __future__ import annotations

import math
from typing import Any


def safe_number(value: Any) -> float:
    """Coerce a cell value to a number. None, NaN and garbage become 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return 0 if math.isnan(value) else value
    text = str(value).strip().replace(",", "")
    if not text:
        return 0
    try:
        number = float(text)
    except ValueError:
        return 0
    if math.isnan(number):
        return 0
    return int(number) if number.is_integer() else number


def safe_divide(numerator: float, denominator: float, fallback: float = 0) -> float:
    """numerator / denominator, or ``fallback`` when the denominator is 0."""
    return numerator / denominator if denominator != 0 else fallback


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return math.floor(value + 0.5)


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------


def _is_missing(n: float | None) -> bool:
    return n is None or math.isnan(n)


def format_currency(n: float | None) -> str:
    """1234567.8 -> '1,234,568'."""
    if _is_missing(n):
        return "-"
    return f"{round_half_up(n):,}"


def format_man_yen(n: float | None) -> str:
    """Amount in units of 10,000 yen: 125000 -> '+13万円'."""
    if _is_missing(n):
        return "-"
    man_yen = round_half_up(n / 10_000)
    sign = "+" if man_yen > 0 else ""
    return f"{sign}{man_yen}万円"


def format_percent(n: float | None, decimals: int = 2) -> str:
    """0.2571 -> '25.71%'."""
    if _is_missing(n):
        return "-"
    return f"{n * 100:.{decimals}f}%"


def format_point_diff(n: float | None, decimals: int = 1) -> str:
    """Rate difference in percentage points: 0.015 -> '+1.5pt'."""
    if _is_missing(n):
        return "-"
    pt = n * 100
    sign = "+" if pt > 0 else ""
    return f"{sign}{pt:.{decimals}f}pt"
