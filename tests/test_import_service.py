"""Tests for the import service.

Covers:
    - process_file_data merge semantics per data type
    - Overwrite sources are idempotent, consumables are additive
    - Batch import isolates failing files and reports progress
    - Type override skips detection
    - Completeness validation messages
"""

from datetime import date

import pytest

from margin_sentinel.config import create_default_settings
from margin_sentinel.imports.errors import FileImportError, ImportErrorKind, ValidationLevel
from margin_sentinel.imports.service import (
    GENERIC_READ_FAILURE,
    has_validation_errors,
    merge_store_days,
    process_dropped_files,
    process_file_data,
    read_and_detect,
    validate_imported_data,
)
from margin_sentinel.models import (
    DataType,
    InventoryConfig,
    SalesDayEntry,
    Store,
    create_empty_imported_data,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

SALES_CSV = (
    "日付,,,0001:本店,0002:駅前\n"
    ",,,,\n"
    ",,,,\n"
    "2026-02-01,,,1000,2000\n"
    "2026-02-02,,,1100,2100\n"
)

SETTINGS_CSV = (
    "店舗コード,期首在庫,期末在庫,粗利予算\n"
    "0001,1000000,800000,250000\n"
)


@pytest.fixture
def settings():
    return create_default_settings(date(2026, 2, 1))


def _sales_rows(day1: int = 1000, day2: int = 1100) -> list[list]:
    return [
        ["日付", None, None, "0001:本店"],
        [],
        [],
        ["2026-02-01", None, None, day1],
        ["2026-02-02", None, None, day2],
    ]


def _consumable_rows() -> list[list]:
    return [
        ["勘定", "品目コード", "品名", "数量", "金額", "日付"],
        ["81257", "A1", "ゴミ袋", 10, 1500, "2026-02-03"],
    ]


def _purchase_rows() -> list[list]:
    return [
        [None, None, None, "0000001:青果市場", None],
        [None, None, None, "0001:本店", None],
        ["日付", None, None, "原価金額", "売価金額"],
        [],
        ["2026-02-01", None, None, 1000, 1350],
    ]


# ---------------------------------------------------------------------------
# process_file_data
# ---------------------------------------------------------------------------


class TestProcessFileData:
    def test_sales_import_is_idempotent(self, settings):
        empty = create_empty_imported_data()
        once = process_file_data(DataType.SALES, _sales_rows(), "売上.csv", empty, settings)
        twice = process_file_data(DataType.SALES, _sales_rows(), "売上.csv", once, settings)
        assert twice == once
        assert once.stores["1"].name == "本店"

    def test_later_file_wins_per_day(self, settings):
        data = create_empty_imported_data()
        data = process_file_data(DataType.SALES, _sales_rows(), "a.csv", data, settings)
        later = [r for i, r in enumerate(_sales_rows(day1=5000)) if i != 4]
        data = process_file_data(DataType.SALES, later, "b.csv", data, settings)
        assert data.sales["1"][1].sales == 5000
        assert data.sales["1"][2].sales == 1100

    def test_input_not_mutated(self, settings):
        empty = create_empty_imported_data()
        process_file_data(DataType.SALES, _sales_rows(), "売上.csv", empty, settings)
        assert empty.sales == {}
        assert empty.stores == {}

    def test_consumables_are_additive(self, settings):
        data = create_empty_imported_data()
        for _ in range(2):
            data = process_file_data(
                DataType.CONSUMABLES, _consumable_rows(), "01消耗品.xlsx", data, settings
            )
        record = data.consumables["1"][3]
        assert record.cost == 3000
        assert len(record.items) == 2

    def test_purchase_registers_stores_and_suppliers(self, settings):
        data = process_file_data(
            DataType.PURCHASE, _purchase_rows(), "仕入.xlsx", create_empty_imported_data(), settings
        )
        assert list(data.stores) == ["1"]
        assert data.suppliers["0000001"].name == "青果市場"
        assert data.purchase["1"][1].total.cost == 1000

    def test_sales_discount_fills_both(self, settings):
        rows = [
            [None, None, None, "0001:本店", None],
            ["日付", None, None, "売上", "売変"],
            ["2026-02-01", None, None, 1000, -50],
        ]
        data = process_file_data(
            DataType.SALES_DISCOUNT, rows, "売上売変.xlsx", create_empty_imported_data(), settings
        )
        assert data.sales["1"][1].sales == 1000
        assert data.discount["1"][1].discount == 50

    def test_prev_year_filters_target_month(self, settings):
        rows = [
            [None, None, None, "0001:本店", None],
            ["日付", None, None, "売上", "売変"],
            ["2025-02-01", None, None, 900, -10],
            ["2025-03-01", None, None, 800, -10],
        ]
        data = process_file_data(
            DataType.PREV_YEAR_SALES_DISCOUNT,
            rows,
            "前年売上売変.xlsx",
            create_empty_imported_data(),
            settings,
        )
        assert data.prev_year_sales["1"] == {1: SalesDayEntry(sales=900)}
        assert data.sales == {}
        assert data.prev_year_daily_sales() == {"1": {1: 900}}

    def test_flowers_use_configured_rate(self, settings):
        rows = [[None, None, None, "0001:本店"], [], [], ["2026-02-01", None, None, 1000]]
        data = process_file_data(
            DataType.FLOWERS, rows, "花.xlsx", create_empty_imported_data(), settings
        )
        assert data.flowers["1"][1].cost == round(1000 * settings.flower_cost_rate)

    def test_bare_month_day_uses_target_year(self):
        leap = create_default_settings(date(2028, 2, 1))
        rows = _sales_rows()
        rows[3][0] = "02/28"
        rows[4][0] = "02/29"
        data = process_file_data(
            DataType.SALES, rows, "売上.csv", create_empty_imported_data(), leap
        )
        assert set(data.sales["1"]) == {28, 29}
        assert data.sales["1"][29].sales == 1100

    def test_prev_year_bare_dates_use_previous_year(self):
        # target Feb 2029; the previous year 2028 is a leap year
        settings = create_default_settings(date(2029, 2, 1))
        rows = [
            [None, None, None, "0001:本店", None],
            ["日付", None, None, "売上", "売変"],
            ["02/29", None, None, 900, -10],
        ]
        data = process_file_data(
            DataType.PREV_YEAR_SALES_DISCOUNT,
            rows,
            "前年売上売変.xlsx",
            create_empty_imported_data(),
            settings,
        )
        assert data.prev_year_sales["1"] == {29: SalesDayEntry(sales=900)}

    def test_settings_merge_per_store(self, settings):
        data = create_empty_imported_data().model_copy(
            update={"settings": {"2": InventoryConfig(store_id="2", opening_inventory=5)}}
        )
        rows = [["店舗", "期首", "期末"], ["0001", 100, 200]]
        data = process_file_data(DataType.INITIAL_SETTINGS, rows, "初期設定.xlsx", data, settings)
        assert set(data.settings) == {"1", "2"}

    def test_structural_error(self, settings):
        with pytest.raises(FileImportError) as exc:
            process_file_data(
                DataType.SALES, [["x"]], "売上.csv", create_empty_imported_data(), settings
            )
        assert exc.value.kind is ImportErrorKind.VALIDATION_ERROR

    def test_merge_store_days(self):
        existing = {"1": {1: "a", 2: "b"}}
        merged = merge_store_days(existing, {"1": {2: "c"}, "2": {1: "d"}})
        assert merged == {"1": {1: "a", 2: "c"}, "2": {1: "d"}}
        assert existing == {"1": {1: "a", 2: "b"}}


# ---------------------------------------------------------------------------
# Batch import
# ---------------------------------------------------------------------------


class TestBatchImport:
    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, tmp_path, settings):
        (tmp_path / "売上.csv").write_text(SALES_CSV, encoding="utf-8")
        (tmp_path / "notes.csv").write_text("hello,world\n", encoding="utf-8")
        (tmp_path / "仕入.xlsx").write_bytes(b"not really a workbook")
        (tmp_path / "empty.csv").write_bytes(b"")
        (tmp_path / "初期設定.csv").write_text(SETTINGS_CSV, encoding="utf-8")
        names = ["売上.csv", "notes.csv", "仕入.xlsx", "empty.csv", "初期設定.csv"]

        progress = []
        summary, data = await process_dropped_files(
            [tmp_path / n for n in names],
            settings,
            create_empty_imported_data(),
            on_progress=lambda i, total, name: progress.append((i, total, name)),
        )

        assert progress == [(i + 1, 5, n) for i, n in enumerate(names)]
        assert summary.success_count == 2
        assert summary.failure_count == 3
        by_name = {r.filename: r for r in summary.results}
        assert by_name["売上.csv"].type is DataType.SALES
        assert by_name["notes.csv"].error == "could not determine the file type"
        assert by_name["仕入.xlsx"].error == GENERIC_READ_FAILURE
        assert by_name["empty.csv"].error == "file is empty"
        assert data.sales["2"][2].sales == 2100
        assert data.settings["1"].closing_inventory == 800_000

    @pytest.mark.asyncio
    async def test_override_type(self, tmp_path, settings):
        path = tmp_path / "export.csv"
        path.write_text(SALES_CSV, encoding="utf-8")
        summary, data = await process_dropped_files(
            [path], settings, create_empty_imported_data(), override_type=DataType.SALES
        )
        assert summary.results[0].ok
        assert summary.results[0].type_name == "売上"
        assert data.sales["1"][1].sales == 1000

    @pytest.mark.asyncio
    async def test_read_and_detect(self, tmp_path):
        path = tmp_path / "売上.csv"
        path.write_text(SALES_CSV, encoding="utf-8")
        detected = await read_and_detect(path)
        assert detected.type is DataType.SALES
        assert detected.rows[3][3] == 1000

    def test_summary_to_dict(self):
        from margin_sentinel.imports.service import FileImportResult, ImportSummary

        summary = ImportSummary(
            [FileImportResult(ok=True, filename="a.csv", type=DataType.SALES, type_name="売上")]
        )
        d = summary.to_dict()
        assert d["success_count"] == 1
        assert d["results"][0]["type"] == "sales"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_empty_data(self):
        messages = validate_imported_data(create_empty_imported_data())
        by_level = {(m.level, m.message) for m in messages}
        assert (ValidationLevel.ERROR, "no purchase data") in by_level
        assert (ValidationLevel.ERROR, "no sales data") in by_level
        assert (ValidationLevel.WARNING, "no stores detected") in by_level
        assert (ValidationLevel.INFO, "no budget data; the default budget is used") in by_level
        assert has_validation_errors(messages)

    def test_partial_settings(self, settings):
        data = process_file_data(
            DataType.PURCHASE, _purchase_rows(), "仕入.xlsx", create_empty_imported_data(), settings
        )
        data = process_file_data(DataType.SALES, _sales_rows(), "売上.csv", data, settings)
        data = data.model_copy(
            update={
                "stores": {**data.stores, "2": Store(id="2", code="0002", name="駅前")},
                "settings": {"1": InventoryConfig(store_id="1")},
            }
        )
        messages = validate_imported_data(data)
        assert not has_validation_errors(messages)
        assert any(m.message == "inventory settings missing for some stores (1/2)" for m in messages)
