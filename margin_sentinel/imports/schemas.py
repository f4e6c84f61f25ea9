"""Structural validation of raw rows before processing.

Catches files that are obviously the wrong shape (too few rows or
columns, no data at all) with a readable message instead of letting a
processor silently return nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from ..models import DataType
from .errors import FileImportError, ImportErrorKind


@dataclass(frozen=True)
class StructuralRule:
    min_rows: int
    min_cols: int
    label: str


STRUCTURAL_RULES: dict[DataType, StructuralRule] = {
    DataType.PURCHASE: StructuralRule(3, 4, "purchase data"),
    DataType.SALES: StructuralRule(4, 4, "sales data"),
    DataType.DISCOUNT: StructuralRule(3, 3, "discount data"),
    DataType.SALES_DISCOUNT: StructuralRule(3, 3, "sales/discount data"),
    DataType.PREV_YEAR_SALES_DISCOUNT: StructuralRule(3, 3, "previous-year sales/discount data"),
    DataType.INITIAL_SETTINGS: StructuralRule(2, 2, "initial settings"),
    DataType.BUDGET: StructuralRule(2, 2, "budget data"),
    DataType.INTER_STORE_IN: StructuralRule(2, 3, "inter-store inbound data"),
    DataType.INTER_STORE_OUT: StructuralRule(2, 3, "inter-store outbound data"),
    DataType.FLOWERS: StructuralRule(2, 2, "flower data"),
    DataType.DIRECT_PRODUCE: StructuralRule(2, 2, "direct-produce data"),
    DataType.CONSUMABLES: StructuralRule(2, 2, "consumables data"),
    DataType.CATEGORY_TIME_SALES: StructuralRule(4, 5, "category time-slot sales data"),
    DataType.DEPARTMENT_KPI: StructuralRule(2, 5, "department KPI data"),
}


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def validate_raw_rows(
    data_type: DataType, rows: Sequence[Sequence[Any]], filename: str
) -> None:
    """Raise FileImportError(VALIDATION_ERROR) if ``rows`` cannot be this type.

    The column check uses the widest row, since header rows are often
    shorter than data rows.
    """
    rule = STRUCTURAL_RULES.get(data_type)
    if rule is None:
        return

    if len(rows) < rule.min_rows:
        raise FileImportError(
            f"{rule.label} needs at least {rule.min_rows} rows, got {len(rows)}",
            ImportErrorKind.VALIDATION_ERROR,
            filename,
        )

    max_cols = max((len(row) for row in rows), default=0)
    if max_cols < rule.min_cols:
        raise FileImportError(
            f"{rule.label} needs at least {rule.min_cols} columns, widest row has {max_cols}",
            ImportErrorKind.VALIDATION_ERROR,
            filename,
        )

    if not any(any(not _is_blank(c) for c in row) for row in rows[1:]):
        raise FileImportError(
            f"{rule.label} contains no data rows",
            ImportErrorKind.VALIDATION_ERROR,
            filename,
        )
