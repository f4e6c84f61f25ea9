"""Initial settings: opening/closing inventory and gross-profit budget per store.

Columns: store code, opening inventory, closing inventory, gross-profit budget.
"""

from __future__ import annotations

from typing import Any, Sequence

from ...calculations.utils import safe_number
from ...models import InventoryConfig
from ..layout import cell, to_store_id


def process_settings(rows: Sequence[Sequence[Any]]) -> dict[str, InventoryConfig]:
    """store_id -> InventoryConfig. Zero inventories and budgets become None."""
    result: dict[str, InventoryConfig] = {}
    for r in rows[1:]:
        store_id = to_store_id(cell(r, 0))
        if store_id is None:
            continue

        opening = safe_number(cell(r, 1))
        closing = safe_number(cell(r, 2))
        gp_budget = safe_number(cell(r, 3))
        result[store_id] = InventoryConfig(
            store_id=store_id,
            opening_inventory=opening or None,
            closing_inventory=closing or None,
            gross_profit_budget=gp_budget if gp_budget > 0 else None,
        )
    return result
