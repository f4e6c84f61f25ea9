"""Estimation method.

Scope: inventory sales only (flowers, direct produce and delivery sales
excluded). The margin computed here is NOT a gross profit figure. It
exists to derive an estimated closing inventory, which is compared with
the actual count to surface shrinkage and other invisible losses.

    gross sales       = core sales / (1 - discount rate)
    estimated cogs    = gross sales * (1 - markup rate) + consumables
    estimated margin  = core sales - estimated cogs
    estimated closing = opening + inventory purchase cost - estimated cogs
"""

from __future__ import annotations

from dataclasses import dataclass

from .utils import safe_divide


@dataclass
class EstMethodResult:
    gross_sales: float
    cogs: float
    margin: float
    margin_rate: float
    closing_inventory: float | None

    def to_dict(self) -> dict:
        return {
            "gross_sales": self.gross_sales,
            "cogs": self.cogs,
            "margin": self.margin,
            "margin_rate": self.margin_rate,
            "closing_inventory": self.closing_inventory,
        }


@dataclass
class CoreSalesResult:
    core_sales: float
    is_over_delivery: bool
    over_delivery_amount: float


def calculate_est_method(
    core_sales: float,
    discount_rate: float,
    markup_rate: float,
    consumable_cost: float,
    opening_inventory: float | None,
    inventory_purchase_cost: float,
) -> EstMethodResult:
    # divisor <= 0 (discount rate >= 1) falls back to core sales
    divisor = 1 - discount_rate
    gross_sales = core_sales / divisor if divisor > 0 else core_sales

    cogs = gross_sales * (1 - markup_rate) + consumable_cost
    margin = core_sales - cogs
    margin_rate = safe_divide(margin, core_sales, 0)

    closing_inventory = (
        opening_inventory + inventory_purchase_cost - cogs
        if opening_inventory is not None
        else None
    )

    return EstMethodResult(
        gross_sales=gross_sales,
        cogs=cogs,
        margin=margin,
        margin_rate=margin_rate,
        closing_inventory=closing_inventory,
    )


def calculate_core_sales(
    total_sales: float,
    flower_sales_price: float,
    direct_produce_sales_price: float,
) -> CoreSalesResult:
    """Sales minus flowers and direct produce, clamped at 0.

    Delivery sales are currently flowers + direct produce, so they are
    excluded as well.
    """
    core_sales = total_sales - flower_sales_price - direct_produce_sales_price
    if core_sales < 0:
        return CoreSalesResult(
            core_sales=0,
            is_over_delivery=True,
            over_delivery_amount=-core_sales,
        )
    return CoreSalesResult(
        core_sales=core_sales,
        is_over_delivery=False,
        over_delivery_amount=0,
    )


def calculate_discount_rate(sales_amount: float, discount_amount: float) -> float:
    """discount / (sales + discount), on a selling-price basis.

    A day with no sales but some discount yields 1.0.
    """
    return safe_divide(discount_amount, sales_amount + discount_amount, 0)
