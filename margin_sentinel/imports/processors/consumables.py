"""Consumables (supplies) exports.

The store comes from the leading digits of the filename ("01消耗品.xlsx"
-> store "1"). Only rows booked to the consumables account are kept.
Columns: account, item code, item name, quantity, cost, date.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from pathlib import PurePath
from typing import Any, Sequence

from ...calculations.utils import safe_number
from ...models import ConsumableDailyRecord, ConsumableItem
from ..date_parser import get_day_of_month
from ..layout import cell, cell_text

logger = logging.getLogger("margin_sentinel.processors.consumables")

TARGET_ACCOUNT_CODE = "81257"

_STORE_PREFIX_RE = re.compile(r"^(\d{1,2})")


def store_id_from_filename(filename: str) -> str | None:
    m = _STORE_PREFIX_RE.match(PurePath(filename).name)
    return str(int(m.group(1))) if m else None


def process_consumables(
    rows: Sequence[Sequence[Any]], filename: str, context_year: int | None = None
) -> dict[str, dict[int, ConsumableDailyRecord]]:
    """store_id -> day -> consumable cost and items for one store's file."""
    store_id = store_id_from_filename(filename)
    if store_id is None:
        logger.debug("No store prefix in %s", filename)
        return {}

    days: dict[int, ConsumableDailyRecord] = {}
    for r in rows[1:]:
        account = cell_text(cell(r, 0))
        if account != TARGET_ACCOUNT_CODE:
            continue
        day = get_day_of_month(cell(r, 5), context_year)
        if day is None:
            continue

        item = ConsumableItem(
            account_code=account,
            item_code=cell_text(cell(r, 1)),
            item_name=cell_text(cell(r, 2)),
            quantity=safe_number(cell(r, 3)),
            cost=safe_number(cell(r, 4)),
        )
        record = days.setdefault(day, ConsumableDailyRecord())
        record.cost += item.cost
        record.items.append(item)

    return {store_id: days} if days else {}


def merge_consumables(
    existing: dict[str, dict[int, ConsumableDailyRecord]],
    incoming: dict[str, dict[int, ConsumableDailyRecord]],
) -> dict[str, dict[int, ConsumableDailyRecord]]:
    """Additive merge: costs are summed and item lists concatenated.

    Neither input is modified.
    """
    merged: dict[str, dict[int, ConsumableDailyRecord]] = defaultdict(dict)
    for source in (existing, incoming):
        for store_id, days in source.items():
            for day, record in days.items():
                current = merged[store_id].get(day)
                if current is None:
                    merged[store_id][day] = ConsumableDailyRecord(
                        cost=record.cost, items=list(record.items)
                    )
                else:
                    merged[store_id][day] = ConsumableDailyRecord(
                        cost=current.cost + record.cost,
                        items=current.items + list(record.items),
                    )
    return dict(merged)
