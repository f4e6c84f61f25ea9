"""Discount and combined sales/discount exports.

Each store group is (sales, discount); discounts are stored as absolute
values. Days with zero sales are not recorded.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Sequence

from ...calculations.utils import safe_number
from ...models import DiscountDayEntry, SalesDayEntry, Store
from ..date_parser import parse_date
from ..layout import DISCOUNT_LAYOUT, build_store_columns, extract_stores

logger = logging.getLogger("margin_sentinel.processors.discount")

MIN_ROWS = 3


def process_discount(
    rows: Sequence[Sequence[Any]],
    target_month: int | None = None,
    context_year: int | None = None,
) -> dict[str, dict[int, DiscountDayEntry]]:
    """store_id -> day -> (sales, discount).

    Rows dated outside ``target_month`` are skipped when it is given.
    """
    if len(rows) < MIN_ROWS:
        return {}

    columns = build_store_columns(rows, DISCOUNT_LAYOUT)
    logger.debug("Mapped %d store columns", len(columns))

    result: dict[str, dict[int, DiscountDayEntry]] = defaultdict(dict)
    for r in rows[DISCOUNT_LAYOUT.data_start_row:]:
        parsed = parse_date(r[0] if r else None, context_year)
        if parsed is None:
            continue
        if target_month is not None and parsed.month != target_month:
            continue

        for column in columns:
            sales = safe_number(column.value(r, "sales"))
            if sales == 0:
                continue
            discount = abs(safe_number(column.value(r, "discount")))
            result[column.store.id][parsed.day] = DiscountDayEntry(
                sales=sales, discount=discount
            )
    return dict(result)


def sales_from_discount(
    discount: dict[str, dict[int, DiscountDayEntry]],
) -> dict[str, dict[int, SalesDayEntry]]:
    """Sales view of a combined sales/discount import."""
    return {
        store_id: {day: SalesDayEntry(sales=entry.sales) for day, entry in days.items()}
        for store_id, days in discount.items()
    }


def extract_stores_from_discount(rows: Sequence[Sequence[Any]]) -> dict[str, Store]:
    return extract_stores(rows, DISCOUNT_LAYOUT)
