"""Inventory method gross profit.

Scope: all sales and all purchases, flowers and direct produce included.
Requires both an opening and a closing inventory count.

    cogs         = opening + total purchase cost - closing
    gross profit = sales - cogs
    rate         = gross profit / sales
"""

from __future__ import annotations

from dataclasses import dataclass

from .utils import safe_divide


@dataclass
class InvMethodResult:
    cogs: float | None
    gross_profit: float | None
    gross_profit_rate: float | None

    def to_dict(self) -> dict:
        return {
            "cogs": self.cogs,
            "gross_profit": self.gross_profit,
            "gross_profit_rate": self.gross_profit_rate,
        }


def calculate_inv_method(
    opening_inventory: float | None,
    closing_inventory: float | None,
    total_purchase_cost: float,
    total_sales: float,
) -> InvMethodResult:
    """Compute inventory-method COGS and gross profit.

    All outputs are None when either inventory count is unknown.
    """
    if opening_inventory is None or closing_inventory is None:
        return InvMethodResult(cogs=None, gross_profit=None, gross_profit_rate=None)

    cogs = opening_inventory + total_purchase_cost - closing_inventory
    gross_profit = total_sales - cogs
    return InvMethodResult(
        cogs=cogs,
        gross_profit=gross_profit,
        gross_profit_rate=safe_divide(gross_profit, total_sales, 0),
    )
