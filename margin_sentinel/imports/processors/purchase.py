"""Purchase exports: one (cost, price) pair per supplier x store column.

Layout:
    row 0: supplier cells "0000123:青果市場"
    row 1: store cells "0001:本店"
    rows 2-3: sub-headers
    row 4+: date, ..., cost, price, cost, price, ...
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Collection, Sequence

from ...calculations.utils import safe_number
from ...models import CostPricePair, PurchaseDayEntry, Store, Supplier, SupplierEntry
from ..date_parser import get_day_of_month
from ..layout import PURCHASE_LAYOUT, build_store_columns, extract_stores

logger = logging.getLogger("margin_sentinel.processors.purchase")

MIN_ROWS = 5


def process_purchase(
    rows: Sequence[Sequence[Any]],
    stores: Collection[str],
    context_year: int | None = None,
) -> dict[str, dict[int, PurchaseDayEntry]]:
    """Accumulate purchases per store and day for the ``stores`` given.

    Columns of stores outside ``stores`` and pairs where cost and price
    are both 0 are skipped.
    """
    if len(rows) < MIN_ROWS:
        return {}

    columns = [
        c for c in build_store_columns(rows, PURCHASE_LAYOUT) if c.store.id in stores
    ]
    logger.debug("Mapped %d supplier/store columns", len(columns))

    result: dict[str, dict[int, PurchaseDayEntry]] = defaultdict(dict)
    for r in rows[PURCHASE_LAYOUT.data_start_row:]:
        day = get_day_of_month(r[0] if r else None, context_year)
        if day is None:
            continue

        for column in columns:
            cost = safe_number(column.value(r, "cost"))
            price = safe_number(column.value(r, "price"))
            if cost == 0 and price == 0:
                continue

            entry = result[column.store.id].setdefault(day, PurchaseDayEntry())
            supplier = column.supplier
            sup = entry.suppliers.setdefault(
                supplier.code, SupplierEntry(name=supplier.name)
            )
            sup.cost += cost
            sup.price += price
            entry.total = entry.total + CostPricePair(cost=cost, price=price)

    return dict(result)


def extract_stores_from_purchase(rows: Sequence[Sequence[Any]]) -> dict[str, Store]:
    """Stores named in the store header row."""
    if len(rows) < 2:
        return {}
    return extract_stores(rows, PURCHASE_LAYOUT)


def extract_suppliers_from_purchase(rows: Sequence[Sequence[Any]]) -> dict[str, Supplier]:
    """Suppliers named in the supplier header row, first occurrence wins."""
    suppliers: dict[str, Supplier] = {}
    for column in build_store_columns(rows, PURCHASE_LAYOUT):
        if column.supplier is not None:
            suppliers.setdefault(column.supplier.code, column.supplier)
    return suppliers
