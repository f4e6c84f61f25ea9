"""Daily sales budget per store. Columns: store code, date, amount."""

from __future__ import annotations

from typing import Any, Sequence

from ...calculations.utils import safe_number
from ...models import BudgetData
from ..date_parser import get_day_of_month
from ..layout import cell, to_store_id


def process_budget(
    rows: Sequence[Sequence[Any]], context_year: int | None = None
) -> dict[str, BudgetData]:
    """store_id -> BudgetData. Non-positive amounts are skipped."""
    result: dict[str, BudgetData] = {}
    for r in rows[1:]:
        store_id = to_store_id(cell(r, 0))
        if store_id is None:
            continue
        day = get_day_of_month(cell(r, 1), context_year)
        if day is None:
            continue
        amount = safe_number(cell(r, 2))
        if amount <= 0:
            continue

        budget = result.setdefault(store_id, BudgetData(store_id=store_id))
        budget.daily[day] = amount
        budget.total += amount
    return result
