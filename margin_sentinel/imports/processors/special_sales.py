"""Flowers and direct-produce exports.

Only selling prices are exported; cost is derived from a configured cost
rate and rounded half-up to whole currency units.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Sequence

from ...calculations.utils import round_half_up, safe_number
from ...models import SpecialSalesDayEntry
from ..date_parser import get_day_of_month
from ..layout import SPECIAL_SALES_LAYOUT, build_store_columns

logger = logging.getLogger("margin_sentinel.processors.special_sales")

MIN_ROWS = 4


def process_special_sales(
    rows: Sequence[Sequence[Any]], cost_rate: float, context_year: int | None = None
) -> dict[str, dict[int, SpecialSalesDayEntry]]:
    """store_id -> day -> (price, cost). Zero prices are skipped."""
    if len(rows) < MIN_ROWS:
        return {}

    columns = build_store_columns(rows, SPECIAL_SALES_LAYOUT)
    logger.debug("Mapped %d store columns (cost rate %.2f)", len(columns), cost_rate)

    result: dict[str, dict[int, SpecialSalesDayEntry]] = defaultdict(dict)
    for r in rows[SPECIAL_SALES_LAYOUT.data_start_row:]:
        day = get_day_of_month(r[0] if r else None, context_year)
        if day is None:
            continue
        for column in columns:
            price = safe_number(column.value(r, "price"))
            if price == 0:
                continue
            entry = result[column.store.id].setdefault(day, SpecialSalesDayEntry())
            entry.price += price
            entry.cost += round_half_up(price * cost_rate)
    return dict(result)
