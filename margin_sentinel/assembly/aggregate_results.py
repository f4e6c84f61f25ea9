"""Merges per-store StoreResults into one all-stores StoreResult."""

from __future__ import annotations

from collections.abc import Sequence

from ..calculations.estimation_method import calculate_discount_rate
from ..calculations.utils import safe_divide
from ..config import ALL_STORES_ID
from ..models import (
    CategoryType,
    ConsumableDailyRecord,
    CostPricePair,
    CumulativeEntry,
    DailyRecord,
    StoreResult,
    SupplierTotal,
    TransferBreakdown,
    TransferDetails,
)
from .daily_builder import add_to_category


def _merge_breakdown(a: TransferBreakdown, b: TransferBreakdown) -> TransferBreakdown:
    return TransferBreakdown(
        inter_store_in=a.inter_store_in + b.inter_store_in,
        inter_store_out=a.inter_store_out + b.inter_store_out,
        inter_department_in=a.inter_department_in + b.inter_department_in,
        inter_department_out=a.inter_department_out + b.inter_department_out,
    )


def merge_daily_record(existing: DailyRecord, rec: DailyRecord) -> DailyRecord:
    """Sum two stores' records for the same day."""
    suppliers = dict(existing.supplier_breakdown)
    for code, pair in rec.supplier_breakdown.items():
        suppliers[code] = suppliers.get(code, CostPricePair()) + pair

    return DailyRecord(
        day=existing.day,
        sales=existing.sales + rec.sales,
        core_sales=existing.core_sales + rec.core_sales,
        gross_sales=existing.gross_sales + rec.gross_sales,
        purchase=existing.purchase + rec.purchase,
        delivery_sales=existing.delivery_sales + rec.delivery_sales,
        inter_store_in=existing.inter_store_in + rec.inter_store_in,
        inter_store_out=existing.inter_store_out + rec.inter_store_out,
        inter_department_in=existing.inter_department_in + rec.inter_department_in,
        inter_department_out=existing.inter_department_out + rec.inter_department_out,
        flowers=existing.flowers + rec.flowers,
        direct_produce=existing.direct_produce + rec.direct_produce,
        consumable=ConsumableDailyRecord(
            cost=existing.consumable.cost + rec.consumable.cost,
            items=existing.consumable.items + rec.consumable.items,
        ),
        discount_amount=existing.discount_amount + rec.discount_amount,
        discount_absolute=existing.discount_absolute + rec.discount_absolute,
        supplier_breakdown=suppliers,
        transfer_breakdown=_merge_breakdown(existing.transfer_breakdown, rec.transfer_breakdown),
    )


def aggregate_store_results(
    results: Sequence[StoreResult], days_in_month: int
) -> StoreResult:
    """Combine store results into the all-stores view.

    Amounts are summed; rates are recomputed from the summed amounts.
    Opening/closing inventory is the sum over the stores that have one,
    or None when no store has it. Elapsed and sales days are the maximum
    over stores.

    Raises:
        ValueError: If ``results`` is empty.
    """
    if not results:
        raise ValueError("cannot aggregate 0 store results")

    daily: dict[int, DailyRecord] = {}
    categories: dict[CategoryType, CostPricePair] = {}
    suppliers: dict[str, SupplierTotal] = {}
    budget_daily: dict[int, float] = {}
    transfer = TransferDetails()

    opening_values = [r.opening_inventory for r in results if r.opening_inventory is not None]
    closing_values = [r.closing_inventory for r in results if r.closing_inventory is not None]

    for r in results:
        for day, rec in r.daily.items():
            existing = daily.get(day)
            if existing is None:
                daily[day] = rec.model_copy(deep=True)
            else:
                daily[day] = merge_daily_record(existing, rec)

        for category, pair in r.category_totals.items():
            add_to_category(categories, category, pair)

        for code, st in r.supplier_totals.items():
            ex = suppliers.get(code)
            if ex is None:
                suppliers[code] = st.model_copy()
            else:
                cost = ex.cost + st.cost
                price = ex.price + st.price
                suppliers[code] = ex.model_copy(
                    update={
                        "cost": cost,
                        "price": price,
                        "markup_rate": safe_divide(price - cost, price, 0),
                    }
                )

        for day, value in r.budget_daily.items():
            budget_daily[day] = budget_daily.get(day, 0) + value

        td = r.transfer_details
        transfer = TransferDetails(
            inter_store_in=transfer.inter_store_in + td.inter_store_in,
            inter_store_out=transfer.inter_store_out + td.inter_store_out,
            inter_department_in=transfer.inter_department_in + td.inter_department_in,
            inter_department_out=transfer.inter_department_out + td.inter_department_out,
        )

    transfer.net_transfer = (
        transfer.inter_store_in
        + transfer.inter_store_out
        + transfer.inter_department_in
        + transfer.inter_department_out
    )

    total_sales = sum(r.total_sales for r in results)
    total_core_sales = sum(r.total_core_sales for r in results)
    total_cost = sum(r.total_cost for r in results)
    total_discount = sum(r.total_discount for r in results)
    total_consumable = sum(r.total_consumable for r in results)
    budget = sum(r.budget for r in results)
    gp_budget = sum(r.gross_profit_budget for r in results)
    elapsed_days = max(r.elapsed_days for r in results)
    sales_days = max(r.sales_days for r in results)

    purchase_cost = sum(st.cost for st in suppliers.values())
    purchase_price = sum(st.price for st in suppliers.values())
    flowers = categories.get(CategoryType.FLOWERS, CostPricePair())
    produce = categories.get(CategoryType.DIRECT_PRODUCE, CostPricePair())
    all_price = purchase_price + flowers.price + produce.price
    all_cost = purchase_cost + flowers.cost + produce.cost

    opening = sum(opening_values) if opening_values else None
    closing = sum(closing_values) if closing_values else None
    inv_cogs = inv_gp = inv_rate = None
    if opening is not None and closing is not None:
        inv_cogs = opening + total_cost - closing
        inv_gp = total_sales - inv_cogs
        inv_rate = safe_divide(inv_gp, total_sales, 0)

    est_margin = sum(r.est_method_margin for r in results)
    est_closing_values = [
        r.est_method_closing_inventory
        for r in results
        if r.est_method_closing_inventory is not None
    ]

    average_daily_sales = safe_divide(total_sales, sales_days, 0)
    projected_sales = total_sales + average_daily_sales * (days_in_month - elapsed_days)
    cumulative_budget = sum(budget_daily.get(d, 0) for d in range(1, elapsed_days + 1))

    daily_cumulative: dict[int, CumulativeEntry] = {}
    cum_sales = cum_budget = 0.0
    for d in range(1, days_in_month + 1):
        rec = daily.get(d)
        cum_sales += rec.sales if rec else 0
        cum_budget += budget_daily.get(d, 0)
        daily_cumulative[d] = CumulativeEntry(sales=cum_sales, budget=cum_budget)

    return StoreResult(
        store_id=ALL_STORES_ID,
        opening_inventory=opening,
        closing_inventory=closing,
        total_sales=total_sales,
        total_core_sales=total_core_sales,
        delivery_sales_price=sum(r.delivery_sales_price for r in results),
        flower_sales_price=sum(r.flower_sales_price for r in results),
        direct_produce_sales_price=sum(r.direct_produce_sales_price for r in results),
        gross_sales=sum(r.gross_sales for r in results),
        total_cost=total_cost,
        inventory_cost=sum(r.inventory_cost for r in results),
        delivery_sales_cost=sum(r.delivery_sales_cost for r in results),
        inv_method_cogs=inv_cogs,
        inv_method_gross_profit=inv_gp,
        inv_method_gross_profit_rate=inv_rate,
        est_method_cogs=sum(r.est_method_cogs for r in results),
        est_method_margin=est_margin,
        est_method_margin_rate=safe_divide(est_margin, total_core_sales, 0),
        est_method_closing_inventory=sum(est_closing_values) if est_closing_values else None,
        total_discount=total_discount,
        discount_rate=calculate_discount_rate(total_sales, total_discount),
        discount_loss_cost=sum(r.discount_loss_cost for r in results),
        average_markup_rate=safe_divide(all_price - all_cost, all_price, 0),
        core_markup_rate=safe_divide(purchase_price - purchase_cost, purchase_price, 0),
        total_consumable=total_consumable,
        consumable_rate=safe_divide(total_consumable, total_sales, 0),
        budget=budget,
        gross_profit_budget=gp_budget,
        gross_profit_rate_budget=safe_divide(gp_budget, budget, 0),
        budget_daily=budget_daily,
        daily=daily,
        category_totals=categories,
        supplier_totals=suppliers,
        transfer_details=transfer,
        elapsed_days=elapsed_days,
        sales_days=sales_days,
        average_daily_sales=average_daily_sales,
        projected_sales=projected_sales,
        projected_achievement=safe_divide(projected_sales, budget, 0),
        budget_achievement_rate=safe_divide(total_sales, budget, 0),
        budget_progress_rate=safe_divide(total_sales, cumulative_budget, 0),
        budget_elapsed_rate=safe_divide(cumulative_budget, budget, 0),
        remaining_budget=budget - total_sales,
        daily_cumulative=daily_cumulative,
    )
