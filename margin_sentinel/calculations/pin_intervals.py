"""Inventory-method profit between user-pinned inventory counts.

A pin is ``(day, closing_inventory)``. Each pin closes an interval that
starts the day after the previous pin (or on day 1). The closing count of
one interval is the opening count of the next.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass

from ..models import DailyRecord, get_daily_total_cost


@dataclass
class PinInterval:
    start_day: int
    end_day: int
    opening_inventory: float
    closing_inventory: float
    total_sales: float
    total_purchase_cost: float
    cogs: float
    gross_profit: float
    gross_profit_rate: float

    def to_dict(self) -> dict:
        return asdict(self)


def calculate_pin_intervals(
    daily: Mapping[int, DailyRecord],
    opening_inventory: float | None,
    pins: Iterable[tuple[int, float]],
) -> list[PinInterval]:
    intervals: list[PinInterval] = []
    prev_day = 0
    prev_inventory = opening_inventory or 0

    for day, closing in sorted(pins, key=lambda p: p[0]):
        total_sales = 0.0
        total_cost = 0.0
        for d in range(prev_day + 1, day + 1):
            rec = daily.get(d)
            if rec is not None:
                total_sales += rec.sales
                total_cost += get_daily_total_cost(rec)

        cogs = prev_inventory + total_cost - closing
        gross_profit = total_sales - cogs
        intervals.append(
            PinInterval(
                start_day=prev_day + 1,
                end_day=day,
                opening_inventory=prev_inventory,
                closing_inventory=closing,
                total_sales=total_sales,
                total_purchase_cost=total_cost,
                cogs=cogs,
                gross_profit=gross_profit,
                gross_profit_rate=gross_profit / total_sales if total_sales > 0 else 0,
            )
        )
        prev_day = day
        prev_inventory = closing

    return intervals
