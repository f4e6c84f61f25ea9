"""Category x time-slot sales exports.

Layout:
    row 0: 5 blank cells, totals header, then "9:00", "9:00", "10:00", ...
    row 1: quantity / amount sub-headers
    row 2: 【期間】【店舗】【部門】【ライン】【クラス】 ...
    row 3+: date, store, department, line, class, total qty, total amount,
            then (qty, amount) per time slot
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Sequence

from ...calculations.utils import safe_number
from ...models import CategoryTimeSalesRecord, TimeSlotEntry
from ..date_parser import parse_date
from ..layout import cell, parse_code_name, parse_store_cell

logger = logging.getLogger("margin_sentinel.processors.category_time_sales")

MIN_ROWS = 4
DATA_START_ROW = 3
TOTALS_COL = 5
FIRST_SLOT_COL = TOTALS_COL + 2
# hour assumed for slot n when the header has no time for it
FALLBACK_FIRST_HOUR = 9

_HOUR_RE = re.compile(r"^(\d{1,2}):")


def _parse_hours(header: Sequence[Any]) -> list[int]:
    hours: list[int] = []
    for value in header[TOTALS_COL:]:
        m = _HOUR_RE.match("" if value is None else str(value).strip())
        if m:
            hour = int(m.group(1))
            if hour not in hours:
                hours.append(hour)
    return hours


def _store_id(value: Any) -> str:
    store = parse_store_cell(value)
    if store is not None:
        return store.id
    return "" if value is None else str(value)


def process_category_time_sales(
    rows: Sequence[Sequence[Any]],
    target_month: int | None = None,
    context_year: int | None = None,
) -> list[CategoryTimeSalesRecord]:
    """One record per (day, store, department, line, class) row.

    Time slots where both quantity and amount are 0 are dropped.
    """
    if len(rows) < MIN_ROWS:
        return []

    hours = _parse_hours(rows[0])
    logger.debug("Time-slot hours: %s", hours)

    records: list[CategoryTimeSalesRecord] = []
    for r in rows[DATA_START_ROW:]:
        if not cell(r, 0) and not cell(r, 1):
            continue
        parsed = parse_date(cell(r, 0), context_year)
        if parsed is None:
            continue
        if target_month is not None and parsed.month != target_month:
            continue

        slots: list[TimeSlotEntry] = []
        for idx, col in enumerate(range(FIRST_SLOT_COL, len(r) - 1, 2)):
            quantity = safe_number(r[col])
            amount = safe_number(r[col + 1])
            if quantity == 0 and amount == 0:
                continue
            hour = hours[idx] if idx < len(hours) else FALLBACK_FIRST_HOUR + idx
            slots.append(TimeSlotEntry(hour=hour, quantity=quantity, amount=amount))

        records.append(
            CategoryTimeSalesRecord(
                day=parsed.day,
                store_id=_store_id(cell(r, 1)),
                department=parse_code_name(cell(r, 2)),
                line=parse_code_name(cell(r, 3)),
                klass=parse_code_name(cell(r, 4)),
                time_slots=slots,
                total_quantity=safe_number(cell(r, TOTALS_COL)),
                total_amount=safe_number(cell(r, TOTALS_COL + 1)),
            )
        )
    return records


def merge_category_time_sales(
    existing: Iterable[CategoryTimeSalesRecord],
    incoming: Iterable[CategoryTimeSalesRecord],
) -> list[CategoryTimeSalesRecord]:
    """Merge by (day, store, department, line, class); incoming wins."""
    merged: dict[tuple, CategoryTimeSalesRecord] = {}
    for record in existing:
        merged[record.key] = record
    for record in incoming:
        merged[record.key] = record
    return list(merged.values())
