"""Builds one store's DailyRecords and monthly running totals."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from ..calculations.estimation_method import calculate_core_sales
from ..models import (
    CUSTOM_CATEGORY_TYPES,
    CategoryType,
    ConsumableDailyRecord,
    CostPricePair,
    DailyRecord,
    ImportedData,
    SupplierTotal,
    TransferBreakdown,
    TransferBreakdownEntry,
    TransferRecord,
    get_daily_total_cost,
)


@dataclass
class TransferTotals:
    inter_store_in: CostPricePair = field(default_factory=CostPricePair)
    inter_store_out: CostPricePair = field(default_factory=CostPricePair)
    inter_department_in: CostPricePair = field(default_factory=CostPricePair)
    inter_department_out: CostPricePair = field(default_factory=CostPricePair)

    @property
    def net(self) -> CostPricePair:
        return (
            self.inter_store_in
            + self.inter_store_out
            + self.inter_department_in
            + self.inter_department_out
        )


@dataclass
class MonthlyAccumulator:
    """Daily records plus month totals for one store.

    ``daily`` only holds days that carry data. The other totals are summed
    over every built day.
    """

    daily: dict[int, DailyRecord] = field(default_factory=dict)
    category_totals: dict[CategoryType, CostPricePair] = field(default_factory=dict)
    supplier_totals: dict[str, SupplierTotal] = field(default_factory=dict)
    total_sales: float = 0.0
    total_cost: float = 0.0
    total_flower_price: float = 0.0
    total_flower_cost: float = 0.0
    total_direct_produce_price: float = 0.0
    total_direct_produce_cost: float = 0.0
    total_purchase_cost: float = 0.0
    total_purchase_price: float = 0.0
    total_discount: float = 0.0
    total_consumable: float = 0.0
    sales_days: int = 0
    elapsed_days: int = 0
    transfer_totals: TransferTotals = field(default_factory=TransferTotals)


def _sum_records(records: Iterable[TransferRecord]) -> CostPricePair:
    total = CostPricePair()
    for r in records:
        total = total + CostPricePair(cost=r.cost, price=r.price)
    return total


def _breakdown(records: Iterable[TransferRecord]) -> list[TransferBreakdownEntry]:
    return [
        TransferBreakdownEntry(
            from_store_id=r.from_store_id,
            to_store_id=r.to_store_id,
            cost=r.cost,
            price=r.price,
        )
        for r in records
    ]


def add_to_category(
    totals: dict[CategoryType, CostPricePair], category: CategoryType, pair: CostPricePair
) -> None:
    totals[category] = totals.get(category, CostPricePair()) + pair


def _supplier_category(code: str, category_map: Mapping[str, str]) -> CategoryType:
    label = category_map.get(code)
    if label is None:
        return CategoryType.OTHER
    return CUSTOM_CATEGORY_TYPES.get(label, CategoryType.OTHER)


def build_daily_records(
    store_id: str,
    data: ImportedData,
    days_in_month: int,
    supplier_category_map: Mapping[str, str] | None = None,
) -> MonthlyAccumulator:
    """Walk days 1..days_in_month and build the store's daily records.

    A day gets a record when it has sales or any non-zero cost, discount
    or consumable. ``elapsed_days`` is the last such day; ``sales_days``
    counts days with positive sales.
    """
    category_map = supplier_category_map or {}
    purchase_store = data.purchase.get(store_id, {})
    sales_store = data.sales.get(store_id, {})
    discount_store = data.discount.get(store_id, {})
    in_store = data.inter_store_in.get(store_id, {})
    out_store = data.inter_store_out.get(store_id, {})
    flowers_store = data.flowers.get(store_id, {})
    produce_store = data.direct_produce.get(store_id, {})
    consumables_store = data.consumables.get(store_id, {})

    acc = MonthlyAccumulator()
    tt = acc.transfer_totals

    for day in range(1, days_in_month + 1):
        purchase_day = purchase_store.get(day)
        sales_day = sales_store.get(day)
        discount_day = discount_store.get(day)
        in_day = in_store.get(day)
        out_day = out_store.get(day)
        flower_day = flowers_store.get(day)
        produce_day = produce_store.get(day)

        purchase = (
            CostPricePair(cost=purchase_day.total.cost, price=purchase_day.total.price)
            if purchase_day
            else CostPricePair()
        )
        day_sales = sales_day.sales if sales_day else 0
        flowers = (
            CostPricePair(cost=flower_day.cost, price=flower_day.price)
            if flower_day
            else CostPricePair()
        )
        produce = (
            CostPricePair(cost=produce_day.cost, price=produce_day.price)
            if produce_day
            else CostPricePair()
        )
        delivery_sales = flowers + produce

        breakdown = TransferBreakdown()
        inter_store_in = inter_department_in = CostPricePair()
        inter_store_out = inter_department_out = CostPricePair()
        if in_day:
            inter_store_in = _sum_records(in_day.inter_store_in)
            inter_department_in = _sum_records(in_day.inter_department_in)
            breakdown.inter_store_in = _breakdown(in_day.inter_store_in)
            breakdown.inter_department_in = _breakdown(in_day.inter_department_in)
        if out_day:
            inter_store_out = _sum_records(out_day.inter_store_out)
            inter_department_out = _sum_records(out_day.inter_department_out)
            breakdown.inter_store_out = _breakdown(out_day.inter_store_out)
            breakdown.inter_department_out = _breakdown(out_day.inter_department_out)

        consumable = consumables_store.get(day) or ConsumableDailyRecord()
        discount_amount = discount_day.discount if discount_day else 0
        discount_absolute = abs(discount_amount)
        core = calculate_core_sales(day_sales, flowers.price, produce.price)

        supplier_breakdown: dict[str, CostPricePair] = {}
        if purchase_day:
            for code, sup in purchase_day.suppliers.items():
                pair = CostPricePair(cost=sup.cost, price=sup.price)
                supplier_breakdown[code] = pair
                total = acc.supplier_totals.get(code)
                if total is None:
                    total = SupplierTotal(
                        supplier_code=code,
                        supplier_name=sup.name,
                        category=_supplier_category(code, category_map),
                    )
                    acc.supplier_totals[code] = total
                total.cost += sup.cost
                total.price += sup.price
                add_to_category(acc.category_totals, total.category, pair)

        has_data = (
            day_sales > 0
            or purchase.cost != 0
            or delivery_sales.cost != 0
            or inter_store_in.cost != 0
            or inter_store_out.cost != 0
            or inter_department_in.cost != 0
            or inter_department_out.cost != 0
            or discount_absolute != 0
            or consumable.cost != 0
        )
        if has_data:
            acc.elapsed_days = day
            if day_sales > 0:
                acc.sales_days += 1
            record = DailyRecord(
                day=day,
                sales=day_sales,
                core_sales=core.core_sales,
                gross_sales=day_sales + discount_absolute,
                purchase=purchase,
                delivery_sales=delivery_sales,
                inter_store_in=inter_store_in,
                inter_store_out=inter_store_out,
                inter_department_in=inter_department_in,
                inter_department_out=inter_department_out,
                flowers=flowers,
                direct_produce=produce,
                consumable=consumable,
                discount_amount=discount_amount,
                discount_absolute=discount_absolute,
                supplier_breakdown=supplier_breakdown,
                transfer_breakdown=breakdown,
            )
            acc.daily[day] = record
            acc.total_cost += get_daily_total_cost(record)

        acc.total_sales += day_sales
        acc.total_purchase_cost += purchase.cost
        acc.total_purchase_price += purchase.price
        acc.total_flower_price += flowers.price
        acc.total_flower_cost += flowers.cost
        acc.total_direct_produce_price += produce.price
        acc.total_direct_produce_cost += produce.cost
        acc.total_discount += discount_absolute
        acc.total_consumable += consumable.cost
        tt.inter_store_in = tt.inter_store_in + inter_store_in
        tt.inter_store_out = tt.inter_store_out + inter_store_out
        tt.inter_department_in = tt.inter_department_in + inter_department_in
        tt.inter_department_out = tt.inter_department_out + inter_department_out

    return acc
