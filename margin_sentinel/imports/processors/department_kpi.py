"""Department KPI sheets.

Only rows whose first cell is a numeric department code are data rows, so
single and two-line headers both work. The department name column is
optional. Percentages exported as 22.2 are stored as 0.222.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Sequence

from ...calculations.utils import safe_number
from ...models import DepartmentKpiRecord
from ..layout import cell, cell_text

_DEPT_CODE_RE = re.compile(r"^\d+$")
_NUMERIC_START_RE = re.compile(r"^-?\d")


def _ratio(value: float) -> float:
    return value / 100 if abs(value) > 1 else value


def process_department_kpi(rows: Sequence[Sequence[Any]]) -> list[DepartmentKpiRecord]:
    records: list[DepartmentKpiRecord] = []
    for r in rows:
        if len(r) < 2:
            continue
        code = cell_text(cell(r, 0))
        if not _DEPT_CODE_RE.match(code):
            continue

        name = ""
        name_col = 1
        second = cell_text(cell(r, 1))
        if second and not _NUMERIC_START_RE.match(second):
            name = second
            name_col = 2

        def col(offset: int) -> float:
            return safe_number(cell(r, name_col + offset))

        records.append(
            DepartmentKpiRecord(
                dept_code=code,
                dept_name=name,
                gp_rate_budget=_ratio(col(0)),
                gp_rate_actual=_ratio(col(1)),
                gp_rate_variance=col(2),
                markup_rate=_ratio(col(3)),
                discount_rate=_ratio(col(4)),
                sales_budget=col(5),
                sales_actual=col(6),
                sales_variance=col(7),
                sales_achievement=_ratio(col(8)),
                opening_inventory=col(9),
                closing_inventory=col(10),
                gp_rate_landing=_ratio(col(11)),
                sales_landing=col(12),
            )
        )
    return records


def merge_department_kpi(
    existing: Iterable[DepartmentKpiRecord], incoming: Iterable[DepartmentKpiRecord]
) -> list[DepartmentKpiRecord]:
    """Merge by department code; incoming wins."""
    merged: dict[str, DepartmentKpiRecord] = {}
    for record in existing:
        merged[record.dept_code] = record
    for record in incoming:
        merged[record.dept_code] = record
    return list(merged.values())
