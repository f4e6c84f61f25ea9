"""Import service: turns files into an updated ImportedData aggregate.

``process_file_data`` is pure: it returns a new aggregate and leaves the
one passed in untouched. ``process_dropped_files`` reads files one at a
time and folds them left to right, so a later file's values win for
overwrite-type sources. A broken file becomes a failed entry in the
summary and never aborts the batch.

Usage:
    summary, data = await process_dropped_files(paths, settings, create_empty_imported_data())
    for msg in validate_imported_data(data):
        print(msg.level.value, msg.message)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence, TypeVar

from ..config import AppSettings
from ..models import DataType, ImportedData
from .detection import detect_file_type, get_data_type_name
from .errors import FileImportError, ImportErrorKind, ValidationLevel, ValidationMessage
from .processors import (
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
)
from .reader import Cell, read_tabular_file
from .schemas import validate_raw_rows

logger = logging.getLogger("margin_sentinel.imports.service")

E = TypeVar("E")

ProgressCallback = Callable[[int, int, str], None]

GENERIC_READ_FAILURE = "failed to read file"


@dataclass
class FileImportResult:
    ok: bool
    filename: str
    type: DataType | None = None
    type_name: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "filename": self.filename,
            "type": self.type.value if self.type else None,
            "type_name": self.type_name,
            "error": self.error,
        }


@dataclass
class ImportSummary:
    results: list[FileImportResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "success_count": self.success_count,
            "failure_count": self.failure_count,
        }


@dataclass
class DetectedFile:
    rows: list[list[Cell]]
    type: DataType
    type_name: str


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


def merge_store_days(
    existing: dict[str, dict[int, E]], incoming: dict[str, dict[int, E]]
) -> dict[str, dict[int, E]]:
    """Overwrite merge of store/day maps: incoming store/day entries win."""
    merged = {store_id: dict(days) for store_id, days in existing.items()}
    for store_id, days in incoming.items():
        merged.setdefault(store_id, {}).update(days)
    return merged


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------


def process_file_data(
    data_type: DataType,
    rows: Sequence[Sequence[Any]],
    filename: str,
    current: ImportedData,
    settings: AppSettings,
) -> ImportedData:
    """Apply one file's rows to ``current`` and return the new aggregate.

    Raises:
        FileImportError: If the rows fail structural validation.
    """
    validate_raw_rows(data_type, rows, filename)

    year = settings.target_year
    stores = dict(current.stores)
    update: dict[str, Any]

    match data_type:
        case DataType.PURCHASE:
            stores.update(extract_stores_from_purchase(rows))
            suppliers = dict(current.suppliers)
            suppliers.update(extract_suppliers_from_purchase(rows))
            update = {
                "stores": stores,
                "suppliers": suppliers,
                "purchase": merge_store_days(
                    current.purchase, process_purchase(rows, set(stores), year)
                ),
            }
        case DataType.SALES:
            stores.update(extract_stores_from_sales(rows))
            update = {
                "stores": stores,
                "sales": merge_store_days(current.sales, process_sales(rows, year)),
            }
        case DataType.DISCOUNT:
            update = {
                "discount": merge_store_days(
                    current.discount, process_discount(rows, context_year=year)
                ),
            }
        case DataType.SALES_DISCOUNT:
            stores.update(extract_stores_from_discount(rows))
            discount = process_discount(rows, context_year=year)
            update = {
                "stores": stores,
                "sales": merge_store_days(current.sales, sales_from_discount(discount)),
                "discount": merge_store_days(current.discount, discount),
            }
        case DataType.PREV_YEAR_SALES_DISCOUNT:
            discount = process_discount(rows, settings.target_month, year - 1)
            update = {
                "prev_year_sales": merge_store_days(
                    current.prev_year_sales, sales_from_discount(discount)
                ),
                "prev_year_discount": merge_store_days(current.prev_year_discount, discount),
            }
        case DataType.INITIAL_SETTINGS:
            update = {"settings": {**current.settings, **process_settings(rows)}}
        case DataType.BUDGET:
            update = {"budget": {**current.budget, **process_budget(rows, year)}}
        case DataType.INTER_STORE_IN:
            update = {
                "inter_store_in": merge_store_days(
                    current.inter_store_in, process_inter_store_in(rows, year)
                ),
            }
        case DataType.INTER_STORE_OUT:
            update = {
                "inter_store_out": merge_store_days(
                    current.inter_store_out, process_inter_store_out(rows, year)
                ),
            }
        case DataType.FLOWERS:
            update = {
                "flowers": merge_store_days(
                    current.flowers,
                    process_special_sales(rows, settings.flower_cost_rate, year),
                ),
            }
        case DataType.DIRECT_PRODUCE:
            update = {
                "direct_produce": merge_store_days(
                    current.direct_produce,
                    process_special_sales(rows, settings.direct_produce_cost_rate, year),
                ),
            }
        case DataType.CONSUMABLES:
            update = {
                "consumables": merge_consumables(
                    current.consumables, process_consumables(rows, filename, year)
                ),
            }
        case DataType.CATEGORY_TIME_SALES:
            update = {
                "category_time_sales": merge_category_time_sales(
                    current.category_time_sales,
                    process_category_time_sales(rows, settings.target_month, year),
                ),
            }
        case DataType.DEPARTMENT_KPI:
            update = {
                "department_kpi": merge_department_kpi(
                    current.department_kpi, process_department_kpi(rows)
                ),
            }
        case _:
            raise ValueError(f"unsupported data type: {data_type}")

    return current.model_copy(update=update)


async def _read_rows(path: Path) -> list[list[Cell]]:
    rows = await read_tabular_file(path)
    if not rows:
        raise FileImportError("file is empty", ImportErrorKind.INVALID_FORMAT, path.name)
    return rows


async def read_and_detect(path: str | Path) -> DetectedFile:
    """Read a file and detect its data type.

    Raises:
        FileImportError: INVALID_FORMAT for an empty file, UNKNOWN_TYPE when
            no detection rule matches.
    """
    path = Path(path)
    rows = await _read_rows(path)
    detection = detect_file_type(path.name, rows)
    if detection.type is None:
        raise FileImportError(
            "could not determine the file type", ImportErrorKind.UNKNOWN_TYPE, path.name
        )
    return DetectedFile(
        rows=rows,
        type=detection.type,
        type_name=detection.rule_name or get_data_type_name(detection.type),
    )


async def process_dropped_files(
    paths: Iterable[str | Path],
    settings: AppSettings,
    current: ImportedData,
    on_progress: ProgressCallback | None = None,
    override_type: DataType | None = None,
) -> tuple[ImportSummary, ImportedData]:
    """Import files in order, isolating failures per file.

    Args:
        paths: Files to import, processed strictly in this order.
        settings: Settings supplying cost rates and the target month.
        current: Aggregate to start from.
        on_progress: Called as ``on_progress(index, total, filename)``
            before each file, with a 1-based index.
        override_type: Skip detection and treat every file as this type.

    Returns:
        (summary, new aggregate)
    """
    path_list = [Path(p) for p in paths]
    summary = ImportSummary()
    data = current

    for i, path in enumerate(path_list):
        if on_progress is not None:
            on_progress(i + 1, len(path_list), path.name)
        try:
            if override_type is not None:
                rows = await _read_rows(path)
                data_type = override_type
                type_name = get_data_type_name(override_type)
            else:
                detected = await read_and_detect(path)
                rows, data_type, type_name = detected.rows, detected.type, detected.type_name

            data = process_file_data(data_type, rows, path.name, data, settings)
            summary.results.append(
                FileImportResult(ok=True, filename=path.name, type=data_type, type_name=type_name)
            )
            logger.info("Imported %s as %s (%d rows)", path.name, data_type.value, len(rows))
        except FileImportError as e:
            logger.warning("Import failed for %s: %s (%s)", path.name, e.message, e.kind.value)
            summary.results.append(FileImportResult(ok=False, filename=path.name, error=e.message))
        except Exception:
            logger.exception("Unexpected error importing %s", path.name)
            summary.results.append(
                FileImportResult(ok=False, filename=path.name, error=GENERIC_READ_FAILURE)
            )

    return summary, data


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_imported_data(data: ImportedData) -> list[ValidationMessage]:
    """Completeness checks. Never raises; returns leveled messages."""
    messages: list[ValidationMessage] = []
    store_count = len(data.stores)

    if not data.purchase:
        messages.append(ValidationMessage(ValidationLevel.ERROR, "no purchase data"))
    if not data.sales:
        messages.append(ValidationMessage(ValidationLevel.ERROR, "no sales data"))
    if store_count == 0:
        messages.append(ValidationMessage(ValidationLevel.WARNING, "no stores detected"))

    settings_count = len(data.settings)
    if settings_count == 0:
        messages.append(
            ValidationMessage(
                ValidationLevel.WARNING,
                "no inventory settings; import an initial settings file",
            )
        )
    elif settings_count < store_count:
        messages.append(
            ValidationMessage(
                ValidationLevel.WARNING,
                f"inventory settings missing for some stores ({settings_count}/{store_count})",
            )
        )

    if not data.budget:
        messages.append(
            ValidationMessage(
                ValidationLevel.INFO,
                "no budget data; the default budget is used",
            )
        )
    if not data.discount:
        messages.append(
            ValidationMessage(
                ValidationLevel.INFO,
                "no discount data; estimated figures assume no discounts",
            )
        )
    return messages


def has_validation_errors(messages: Iterable[ValidationMessage]) -> bool:
    return any(m.level is ValidationLevel.ERROR for m in messages)
