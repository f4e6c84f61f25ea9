"""All-stores roll-up of StoreResult figures.

Amounts are summed. Rates are sales-weighted averages.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass

from ..models import StoreResult
from .utils import safe_divide


def sum_store_values(
    stores: Sequence[StoreResult],
    getter: Callable[[StoreResult], float],
) -> float:
    return sum(getter(s) for s in stores)


def sum_nullable_values(
    stores: Sequence[StoreResult],
    getter: Callable[[StoreResult], float | None],
) -> float | None:
    """Sum of the non-None values, or None when every value is None."""
    values = [v for v in (getter(s) for s in stores) if v is not None]
    return sum(values) if values else None


def weighted_average_by_sales(
    stores: Sequence[StoreResult],
    rate_getter: Callable[[StoreResult], float],
    sales_getter: Callable[[StoreResult], float],
) -> float:
    """sum(rate x sales) / sum(sales), ignoring stores with sales <= 0."""
    weighted_sum = 0.0
    total_weight = 0.0
    for s in stores:
        sales = sales_getter(s)
        if sales > 0:
            weighted_sum += rate_getter(s) * sales
            total_weight += sales
    return safe_divide(weighted_sum, total_weight, 0)


@dataclass
class AggregatedResult:
    total_sales: float = 0.0
    total_core_sales: float = 0.0
    gross_sales: float = 0.0
    delivery_sales_price: float = 0.0
    flower_sales_price: float = 0.0
    direct_produce_sales_price: float = 0.0

    total_cost: float = 0.0
    inventory_cost: float = 0.0
    delivery_sales_cost: float = 0.0

    inv_method_cogs: float | None = None
    inv_method_gross_profit: float | None = None
    inv_method_gross_profit_rate: float | None = None

    est_method_cogs: float = 0.0
    est_method_margin: float = 0.0
    est_method_margin_rate: float = 0.0
    est_method_closing_inventory: float | None = None

    total_discount: float = 0.0
    discount_rate: float = 0.0
    discount_loss_cost: float = 0.0

    average_markup_rate: float = 0.0
    core_markup_rate: float = 0.0

    total_consumable: float = 0.0
    consumable_rate: float = 0.0

    budget: float = 0.0
    gross_profit_budget: float = 0.0

    opening_inventory: float | None = None
    closing_inventory: float | None = None

    elapsed_days: int = 0
    sales_days: int = 0
    average_daily_sales: float = 0.0
    projected_sales: float = 0.0
    projected_achievement: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def aggregate_stores(stores: Sequence[StoreResult]) -> AggregatedResult:
    """Roll up store results. No stores gives an all-zero result."""
    if not stores:
        return AggregatedResult()

    total_sales = sum_store_values(stores, lambda s: s.total_sales)
    total_core_sales = sum_store_values(stores, lambda s: s.total_core_sales)
    est_method_margin = sum_store_values(stores, lambda s: s.est_method_margin)
    total_consumable = sum_store_values(stores, lambda s: s.total_consumable)
    budget = sum_store_values(stores, lambda s: s.budget)
    projected_sales = sum_store_values(stores, lambda s: s.projected_sales)

    with_inv_rate = [s for s in stores if s.inv_method_gross_profit_rate is not None]

    return AggregatedResult(
        total_sales=total_sales,
        total_core_sales=total_core_sales,
        gross_sales=sum_store_values(stores, lambda s: s.gross_sales),
        delivery_sales_price=sum_store_values(stores, lambda s: s.delivery_sales_price),
        flower_sales_price=sum_store_values(stores, lambda s: s.flower_sales_price),
        direct_produce_sales_price=sum_store_values(
            stores, lambda s: s.direct_produce_sales_price
        ),
        total_cost=sum_store_values(stores, lambda s: s.total_cost),
        inventory_cost=sum_store_values(stores, lambda s: s.inventory_cost),
        delivery_sales_cost=sum_store_values(stores, lambda s: s.delivery_sales_cost),
        inv_method_cogs=sum_nullable_values(stores, lambda s: s.inv_method_cogs),
        inv_method_gross_profit=sum_nullable_values(
            stores, lambda s: s.inv_method_gross_profit
        ),
        inv_method_gross_profit_rate=weighted_average_by_sales(
            with_inv_rate,
            lambda s: s.inv_method_gross_profit_rate,
            lambda s: s.total_sales,
        ),
        est_method_cogs=sum_store_values(stores, lambda s: s.est_method_cogs),
        est_method_margin=est_method_margin,
        est_method_margin_rate=safe_divide(est_method_margin, total_core_sales, 0),
        est_method_closing_inventory=sum_nullable_values(
            stores, lambda s: s.est_method_closing_inventory
        ),
        total_discount=sum_store_values(stores, lambda s: s.total_discount),
        discount_rate=weighted_average_by_sales(
            stores, lambda s: s.discount_rate, lambda s: s.total_sales
        ),
        discount_loss_cost=sum_store_values(stores, lambda s: s.discount_loss_cost),
        average_markup_rate=weighted_average_by_sales(
            stores, lambda s: s.average_markup_rate, lambda s: s.total_cost
        ),
        core_markup_rate=weighted_average_by_sales(
            stores, lambda s: s.core_markup_rate, lambda s: s.total_core_sales
        ),
        total_consumable=total_consumable,
        consumable_rate=safe_divide(total_consumable, total_core_sales, 0),
        budget=budget,
        gross_profit_budget=sum_store_values(stores, lambda s: s.gross_profit_budget),
        opening_inventory=sum_nullable_values(stores, lambda s: s.opening_inventory),
        closing_inventory=sum_nullable_values(stores, lambda s: s.closing_inventory),
        elapsed_days=max(s.elapsed_days for s in stores),
        sales_days=max(s.sales_days for s in stores),
        average_daily_sales=sum_store_values(stores, lambda s: s.average_daily_sales),
        projected_sales=projected_sales,
        projected_achievement=safe_divide(projected_sales, budget, 0),
    )
