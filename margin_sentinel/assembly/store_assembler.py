"""Turns a MonthlyAccumulator into a StoreResult.

Both profit methods run side by side:

* inventory method: all sales and all costs, needs opening and closing
  inventory;
* estimation method: core sales only, used to derive an estimated
  closing inventory.
"""

from __future__ import annotations

from ..calculations.budget_analysis import calculate_budget_analysis
from ..calculations.discount_impact import calculate_discount_impact
from ..calculations.estimation_method import (
    calculate_core_sales,
    calculate_discount_rate,
    calculate_est_method,
)
from ..calculations.inventory_method import calculate_inv_method
from ..calculations.utils import safe_divide
from ..config import AppSettings
from ..models import (
    CategoryType,
    CostPricePair,
    CumulativeEntry,
    ImportedData,
    StoreResult,
    TransferDetails,
)
from .daily_builder import MonthlyAccumulator, add_to_category


def assemble_store_result(
    store_id: str,
    acc: MonthlyAccumulator,
    data: ImportedData,
    settings: AppSettings,
    days_in_month: int,
) -> StoreResult:
    inv_config = data.settings.get(store_id)
    budget_data = data.budget.get(store_id)
    opening = inv_config.opening_inventory if inv_config else None
    closing = inv_config.closing_inventory if inv_config else None

    delivery_sales_price = acc.total_flower_price + acc.total_direct_produce_price
    delivery_sales_cost = acc.total_flower_cost + acc.total_direct_produce_cost
    total_core_sales = calculate_core_sales(
        acc.total_sales, acc.total_flower_price, acc.total_direct_produce_price
    ).core_sales

    inventory_cost = acc.total_cost - delivery_sales_cost
    gross_sales = acc.total_sales + acc.total_discount
    discount_rate = calculate_discount_rate(acc.total_sales, acc.total_discount)

    transfers = acc.transfer_totals.net
    all_purchase_price = (
        acc.total_purchase_price
        + acc.total_flower_price
        + acc.total_direct_produce_price
        + transfers.price
    )
    all_purchase_cost = (
        acc.total_purchase_cost
        + acc.total_flower_cost
        + acc.total_direct_produce_cost
        + transfers.cost
    )
    average_markup_rate = safe_divide(
        all_purchase_price - all_purchase_cost, all_purchase_price, 0
    )
    core_price = acc.total_purchase_price + transfers.price
    core_cost = acc.total_purchase_cost + transfers.cost
    core_markup_rate = safe_divide(
        core_price - core_cost, core_price, settings.default_markup_rate
    )

    inv = calculate_inv_method(
        opening_inventory=opening,
        closing_inventory=closing,
        total_purchase_cost=acc.total_cost,
        total_sales=acc.total_sales,
    )
    est = calculate_est_method(
        core_sales=total_core_sales,
        discount_rate=discount_rate,
        markup_rate=core_markup_rate,
        consumable_cost=acc.total_consumable,
        opening_inventory=opening,
        inventory_purchase_cost=inventory_cost,
    )
    impact = calculate_discount_impact(
        core_sales=total_core_sales,
        markup_rate=core_markup_rate,
        discount_rate=discount_rate,
    )

    category_totals = dict(acc.category_totals)
    tt = acc.transfer_totals
    add_to_category(
        category_totals,
        CategoryType.FLOWERS,
        CostPricePair(cost=acc.total_flower_cost, price=acc.total_flower_price),
    )
    add_to_category(
        category_totals,
        CategoryType.DIRECT_PRODUCE,
        CostPricePair(cost=acc.total_direct_produce_cost, price=acc.total_direct_produce_price),
    )
    add_to_category(
        category_totals, CategoryType.CONSUMABLES, CostPricePair(cost=acc.total_consumable)
    )
    add_to_category(
        category_totals, CategoryType.INTER_STORE, tt.inter_store_in + tt.inter_store_out
    )
    add_to_category(
        category_totals,
        CategoryType.INTER_DEPARTMENT,
        tt.inter_department_in + tt.inter_department_out,
    )

    supplier_totals = {
        code: st.model_copy(
            update={"markup_rate": safe_divide(st.price - st.cost, st.price, 0)}
        )
        for code, st in acc.supplier_totals.items()
    }

    budget = budget_data.total if budget_data else settings.default_budget
    budget_daily = dict(budget_data.daily) if budget_data else {}
    gp_budget = (inv_config.gross_profit_budget if inv_config else None) or 0

    analysis = calculate_budget_analysis(
        total_sales=acc.total_sales,
        budget=budget,
        budget_daily=budget_daily,
        sales_daily={d: rec.sales for d, rec in acc.daily.items()},
        elapsed_days=acc.elapsed_days,
        sales_days=acc.sales_days,
        days_in_month=days_in_month,
    )

    return StoreResult(
        store_id=store_id,
        opening_inventory=opening,
        closing_inventory=closing,
        total_sales=acc.total_sales,
        total_core_sales=total_core_sales,
        delivery_sales_price=delivery_sales_price,
        flower_sales_price=acc.total_flower_price,
        direct_produce_sales_price=acc.total_direct_produce_price,
        gross_sales=gross_sales,
        total_cost=acc.total_cost,
        inventory_cost=inventory_cost,
        delivery_sales_cost=delivery_sales_cost,
        inv_method_cogs=inv.cogs,
        inv_method_gross_profit=inv.gross_profit,
        inv_method_gross_profit_rate=inv.gross_profit_rate,
        est_method_cogs=est.cogs,
        est_method_margin=est.margin,
        est_method_margin_rate=est.margin_rate,
        est_method_closing_inventory=est.closing_inventory,
        total_discount=acc.total_discount,
        discount_rate=discount_rate,
        discount_loss_cost=impact.discount_loss_cost,
        average_markup_rate=average_markup_rate,
        core_markup_rate=core_markup_rate,
        total_consumable=acc.total_consumable,
        consumable_rate=safe_divide(acc.total_consumable, acc.total_sales, 0),
        budget=budget,
        gross_profit_budget=gp_budget,
        gross_profit_rate_budget=safe_divide(gp_budget, budget, 0),
        budget_daily=budget_daily,
        daily=dict(acc.daily),
        category_totals=category_totals,
        supplier_totals=supplier_totals,
        transfer_details=TransferDetails(
            inter_store_in=tt.inter_store_in,
            inter_store_out=tt.inter_store_out,
            inter_department_in=tt.inter_department_in,
            inter_department_out=tt.inter_department_out,
            net_transfer=tt.net,
        ),
        elapsed_days=acc.elapsed_days,
        sales_days=acc.sales_days,
        average_daily_sales=analysis.average_daily_sales,
        projected_sales=analysis.projected_sales,
        projected_achievement=analysis.projected_achievement,
        budget_achievement_rate=analysis.budget_achievement_rate,
        budget_progress_rate=analysis.budget_progress_rate,
        budget_elapsed_rate=analysis.budget_elapsed_rate,
        remaining_budget=analysis.remaining_budget,
        daily_cumulative={
            d: CumulativeEntry(sales=s, budget=b)
            for d, (s, b) in analysis.daily_cumulative.items()
        },
    )
