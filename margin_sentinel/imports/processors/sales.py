"""Daily sales exports: one sales column per store, data from row 3."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Sequence

from ...calculations.utils import safe_number
from ...models import SalesDayEntry, Store
from ..date_parser import get_day_of_month
from ..layout import SALES_LAYOUT, build_store_columns, extract_stores

logger = logging.getLogger("margin_sentinel.processors.sales")

MIN_ROWS = 4


def process_sales(
    rows: Sequence[Sequence[Any]], context_year: int | None = None
) -> dict[str, dict[int, SalesDayEntry]]:
    """store_id -> day -> sales. A later row for the same day overwrites."""
    if len(rows) < MIN_ROWS:
        return {}

    columns = build_store_columns(rows, SALES_LAYOUT)
    logger.debug("Mapped %d store columns", len(columns))

    result: dict[str, dict[int, SalesDayEntry]] = defaultdict(dict)
    for r in rows[SALES_LAYOUT.data_start_row:]:
        day = get_day_of_month(r[0] if r else None, context_year)
        if day is None:
            continue
        for column in columns:
            result[column.store.id][day] = SalesDayEntry(
                sales=safe_number(column.value(r, "sales"))
            )
    return dict(result)


def extract_stores_from_sales(rows: Sequence[Sequence[Any]]) -> dict[str, Store]:
    return extract_stores(rows, SALES_LAYOUT)
