"""Tests for the per-type processors.

Covers:
    - Purchase supplier x store accumulation
    - Sales, discount and combined sales/discount rows
    - Initial settings and budget rows
    - Inter-store / inter-department transfer classification
    - Flowers / direct produce cost derivation
    - Consumables account filtering and additive merge
    - Category time-slot sales and department KPI sheets
"""

import pytest

from margin_sentinel.imports.processors import (
    extract_stores_from_discount,
    extract_stores_from_purchase,
    extract_stores_from_sales,
    extract_suppliers_from_purchase,
    merge_category_time_sales,
    merge_consumables,
    merge_department_kpi,
    process_budget,
    process_category_time_sales,
    process_consumables,
    process_department_kpi,
    process_discount,
    process_inter_store_in,
    process_inter_store_out,
    process_purchase,
    process_sales,
    process_settings,
    process_special_sales,
    sales_from_discount,
    store_id_from_filename,
)
from margin_sentinel.models import ConsumableDailyRecord, ConsumableItem


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _purchase_rows() -> list[list]:
    return [
        [None, None, None, "0000001:青果市場", None, "0000002:鮮魚", None],
        [None, None, None, "0001:本店", None, "0001:本店", None],
        ["日付", None, None, "原価金額", "売価金額", "原価金額", "売価金額"],
        [],
        ["2026-02-01", None, None, 1000, 1350, 500, 700],
        ["2026-02-02", None, None, 0, 0, 300, 400],
        ["合計", None, None, 9999, 9999, 9999, 9999],
    ]


def _sales_rows() -> list[list]:
    return [
        ["日付", None, None, "0001:本店", "0002:駅前"],
        [],
        [],
        ["2026-02-01", None, None, 1000, 2000],
        ["2026-02-02", None, None, 0, 2500],
        ["2026-02-01", None, None, 1100, 2100],
    ]


def _discount_rows() -> list[list]:
    return [
        [None, None, None, "0001:本店", None, "0002:駅前", None],
        ["日付", None, None, "売上", "売変", "売上", "売変"],
        ["2026-02-01", None, None, 1000, -50, 0, -10],
        ["2026-01-31", None, None, 900, -20, 800, -5],
    ]


def _cts_rows() -> list[list]:
    return [
        [None, None, None, None, None, "合計", None, "9:00", "9:00", "10:00", "10:00"],
        [None, None, None, None, None, "数量", "金額", "数量", "金額", "数量", "金額"],
        ["【期間】", "【店舗】", "【部門】", "【ライン】", "【クラス】"],
        ["2026-02-01", "0001:本店", "000061:果物", "0001:りんご", "000123:ふじ",
         15, 3000, 5, 1000, 10, 2000],
        ["2026-02-01", "0001:本店", "000061:果物", "0001:りんご", "000124:王林",
         3, 500, 0, 0, 2, 400, 1, 100],
        [None, None, None, None, None, 99, 99],
        ["2026-01-31", "0001:本店", "000061:果物", "0001:りんご", "000123:ふじ",
         1, 100, 1, 100],
    ]


# ---------------------------------------------------------------------------
# Purchase
# ---------------------------------------------------------------------------


class TestPurchase:
    def test_accumulates_suppliers_and_total(self):
        result = process_purchase(_purchase_rows(), {"1"})
        day1 = result["1"][1]
        assert set(day1.suppliers) == {"0000001", "0000002"}
        assert day1.suppliers["0000001"].name == "青果市場"
        assert day1.total.cost == pytest.approx(1500)
        assert day1.total.price == pytest.approx(2050)

    def test_zero_pairs_skipped(self):
        day2 = process_purchase(_purchase_rows(), {"1"})["1"][2]
        assert list(day2.suppliers) == ["0000002"]
        assert day2.total.cost == pytest.approx(300)

    def test_non_date_rows_skipped(self):
        assert set(process_purchase(_purchase_rows(), {"1"})["1"]) == {1, 2}

    def test_unknown_stores_filtered(self):
        assert process_purchase(_purchase_rows(), {"9"}) == {}

    def test_too_few_rows(self):
        assert process_purchase(_purchase_rows()[:4], {"1"}) == {}

    def test_merged_store_cell_keeps_every_supplier(self):
        rows = [
            [None, None, None, "0000001:青果市場", None, "0000002:鮮魚", None],
            [None, None, None, "0001:本店", "0001:本店", "0001:本店", "0001:本店"],
            ["日付", None, None, "原価", "売価", "原価", "売価"],
            [],
            ["2026-02-01", None, None, 1000, 1350, 500, 700],
        ]
        day1 = process_purchase(rows, {"1"})["1"][1]
        assert set(day1.suppliers) == {"0000001", "0000002"}
        assert day1.total.cost == pytest.approx(1500)

    def test_extract_stores_and_suppliers(self):
        rows = _purchase_rows()
        assert list(extract_stores_from_purchase(rows)) == ["1"]
        suppliers = extract_suppliers_from_purchase(rows)
        assert suppliers["0000002"].name == "鮮魚"
        assert extract_stores_from_purchase(rows[:1]) == {}


# ---------------------------------------------------------------------------
# Sales and discounts
# ---------------------------------------------------------------------------


class TestSales:
    def test_later_rows_overwrite(self):
        result = process_sales(_sales_rows())
        assert result["1"][1].sales == 1100
        assert result["2"][1].sales == 2100

    def test_zero_sales_recorded(self):
        assert process_sales(_sales_rows())["1"][2].sales == 0

    def test_stores(self):
        stores = extract_stores_from_sales(_sales_rows())
        assert {s.name for s in stores.values()} == {"本店", "駅前"}

    def test_too_few_rows(self):
        assert process_sales(_sales_rows()[:3]) == {}


class TestDiscount:
    def test_discount_is_absolute(self):
        result = process_discount(_discount_rows())
        assert result["1"][1].sales == 1000
        assert result["1"][1].discount == 50
        assert result["2"][31].discount == 5

    def test_zero_sales_days_skipped(self):
        assert 1 not in process_discount(_discount_rows())["2"]

    def test_target_month_filter(self):
        result = process_discount(_discount_rows(), target_month=2)
        assert list(result) == ["1"]
        assert list(result["1"]) == [1]

    def test_sales_view(self):
        sales = sales_from_discount(process_discount(_discount_rows()))
        assert sales["1"][31].sales == 900

    def test_stores(self):
        assert list(extract_stores_from_discount(_discount_rows())) == ["1", "2"]


# ---------------------------------------------------------------------------
# Settings and budget
# ---------------------------------------------------------------------------


class TestSettingsAndBudget:
    def test_settings(self):
        rows = [
            ["店舗コード", "期首在庫", "期末在庫", "粗利予算"],
            ["0001", 1_000_000, 800_000, 250_000],
            ["2", 0, None, 0],
            ["合計", 1, 1, 1],
        ]
        result = process_settings(rows)
        assert set(result) == {"1", "2"}
        assert result["1"].opening_inventory == 1_000_000
        assert result["1"].gross_profit_budget == 250_000
        assert result["2"].opening_inventory is None
        assert result["2"].closing_inventory is None
        assert result["2"].gross_profit_budget is None

    def test_budget(self):
        rows = [
            ["店舗", "日付", "予算"],
            ["0001", "2026-02-01", 200_000],
            ["0001", "2026-02-02", 250_000],
            ["0001", "2026-02-03", 0],
            ["0002", "bad", 100],
            ["0002", "2026-02-01", -5],
        ]
        result = process_budget(rows)
        assert list(result) == ["1"]
        assert result["1"].daily == {1: 200_000, 2: 250_000}
        assert result["1"].total == pytest.approx(450_000)


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------


class TestTransfers:
    def test_inbound(self):
        rows = [
            ["入庫店", "日付", "出庫店", "原価", "売価"],
            ["0001", "2026-02-03", "0002", 1000, 1300],
            ["0001", "2026-02-03", "0001", -200, -260],
            ["0003", "bad", "0001", 1, 1],
        ]
        day = process_inter_store_in(rows)["1"][3]
        [store_in] = day.inter_store_in
        assert (store_in.from_store_id, store_in.to_store_id) == ("2", "1")
        assert store_in.cost == 1000
        [dept_in] = day.inter_department_in
        assert dept_in.is_department_transfer
        assert (dept_in.cost, dept_in.price) == (200, 260)

    def test_outbound_is_negative(self):
        rows = [
            ["日付", "出庫店", "入庫店", "部門", "原価", "売価"],
            ["2026-02-04", "0001", "0002", "10", 500, 650],
            ["2026-02-04", "1", "0001", "20", 100, 130],
        ]
        day = process_inter_store_out(rows)["1"][4]
        [store_out] = day.inter_store_out
        assert (store_out.cost, store_out.price) == (-500, -650)
        [dept_out] = day.inter_department_out
        # same store id written two ways
        assert dept_out.is_department_transfer
        assert dept_out.cost == -100

    def test_unparsable_store_code(self):
        rows = [["h"], ["2026-02-05", "本部", "0002", "", 10, 20]]
        result = process_inter_store_out(rows)
        assert list(result) == ["0"]
        assert result["0"][5].inter_store_out[0].to_store_id == "2"


# ---------------------------------------------------------------------------
# Flowers / direct produce
# ---------------------------------------------------------------------------


class TestSpecialSales:
    def test_cost_from_rate(self):
        rows = [
            [None, None, None, "0001:本店", "0002:駅前"],
            [],
            [],
            ["2026-02-01", None, None, 1001, 0],
            ["2026-02-01", None, None, 500, 100],
        ]
        result = process_special_sales(rows, 0.8)
        assert result["1"][1].price == 1501
        # each row rounds half up on its own: 801 + 400
        assert result["1"][1].cost == 1201
        assert result["2"][1].cost == 80

    def test_too_few_rows(self):
        assert process_special_sales([[None, None, None, "0001:本店"]], 0.8) == {}


# ---------------------------------------------------------------------------
# Consumables
# ---------------------------------------------------------------------------


class TestConsumables:
    rows = [
        ["勘定", "品目コード", "品名", "数量", "金額", "日付"],
        ["81257", "A1", "ゴミ袋", 10, 1500, "2026-02-03"],
        [81257, "A2", "ラップ", 2, 800, "2026-02-03"],
        ["81258", "X", "other", 1, 999, "2026-02-03"],
        ["81257", "A3", "手袋", 1, 300, "bad"],
    ]

    def test_store_from_filename(self):
        assert store_id_from_filename("01消耗品.xlsx") == "1"
        assert store_id_from_filename("/tmp/12_consumables.csv") == "12"
        assert store_id_from_filename("消耗品.xlsx") is None

    def test_filters_account(self):
        result = process_consumables(self.rows, "01消耗品.xlsx")
        record = result["1"][3]
        assert record.cost == 2300
        assert [i.item_name for i in record.items] == ["ゴミ袋", "ラップ"]

    def test_no_store_prefix(self):
        assert process_consumables(self.rows, "消耗品.xlsx") == {}

    def test_merge_is_additive_and_pure(self):
        item = ConsumableItem(account_code="81257", item_code="A", item_name="a", cost=100)
        existing = {"1": {3: ConsumableDailyRecord(cost=100, items=[item])}}
        incoming = {"1": {3: ConsumableDailyRecord(cost=50, items=[item])}, "2": {1: ConsumableDailyRecord(cost=5)}}
        merged = merge_consumables(existing, incoming)
        assert merged["1"][3].cost == 150
        assert len(merged["1"][3].items) == 2
        assert merged["2"][1].cost == 5
        assert existing["1"][3].cost == 100
        assert len(existing["1"][3].items) == 1


# ---------------------------------------------------------------------------
# Category time-slot sales
# ---------------------------------------------------------------------------


class TestCategoryTimeSales:
    def test_records(self):
        records = process_category_time_sales(_cts_rows())
        assert len(records) == 3
        first = records[0]
        assert first.day == 1
        assert first.store_id == "1"
        assert first.department.code == "000061"
        assert first.klass.name == "ふじ"
        assert first.total_amount == 3000
        assert [(s.hour, s.amount) for s in first.time_slots] == [(9, 1000), (10, 2000)]

    def test_zero_slots_dropped_and_hour_fallback(self):
        second = process_category_time_sales(_cts_rows())[1]
        assert [s.hour for s in second.time_slots] == [10, 11]

    def test_target_month(self):
        records = process_category_time_sales(_cts_rows(), target_month=2)
        assert len(records) == 2

    def test_merge_incoming_wins(self):
        old = process_category_time_sales(_cts_rows(), target_month=2)
        new = [old[0].model_copy(update={"total_amount": 1})]
        merged = merge_category_time_sales(old, new)
        assert len(merged) == 2
        assert merged[0].total_amount == 1


# ---------------------------------------------------------------------------
# Department KPI
# ---------------------------------------------------------------------------


class TestDepartmentKpi:
    rows = [
        ["部門", "部門名", "粗利率予算", "粗利率実績"],
        ["61", "果物", 25.0, 23.5, -1.5, 28.0, 2.0, 1_000_000, 950_000, -50_000,
         95.0, 500_000, 480_000, 24.0, 1_900_000],
        ["62", 0.25, 0.24, -0.01, 0.3, 0.02, 100, 90, -10, 0.9, 1, 2, 0.24, 180],
        ["合計", None, 1, 1],
    ]

    def test_percentages_normalised(self):
        fruit = process_department_kpi(self.rows)[0]
        assert fruit.dept_name == "果物"
        assert fruit.gp_rate_budget == pytest.approx(0.25)
        assert fruit.gp_rate_actual == pytest.approx(0.235)
        assert fruit.gp_rate_variance == pytest.approx(-1.5)
        assert fruit.sales_achievement == pytest.approx(0.95)
        assert fruit.closing_inventory == 480_000
        assert fruit.sales_landing == 1_900_000

    def test_name_column_optional(self):
        records = process_department_kpi(self.rows)
        assert [r.dept_code for r in records] == ["61", "62"]
        assert records[1].dept_name == ""
        assert records[1].gp_rate_budget == pytest.approx(0.25)
        assert records[1].sales_landing == 180

    def test_merge_by_code(self):
        records = process_department_kpi(self.rows)
        merged = merge_department_kpi(records, [records[0].model_copy(update={"dept_name": "青果"})])
        assert [r.dept_name for r in merged] == ["青果", ""]
