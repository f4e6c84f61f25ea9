"""Inter-store transfer exports.

Inbound rows:  to-store, date, from-store, cost, price
Outbound rows: date, from-store, to-store, department, cost, price

Inbound amounts are kept positive, outbound amounts are stored as
negative absolute values. A transfer whose two store codes are the same
is an inter-department transfer within that store.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Sequence

from ...calculations.utils import safe_number
from ...models import TransferDayEntry, TransferRecord
from ..date_parser import get_day_of_month
from ..layout import cell, cell_text, to_store_id

logger = logging.getLogger("margin_sentinel.processors.transfers")


def _store_id(code: str) -> str:
    # unparsable codes collapse to "0"
    return to_store_id(code) or "0"


def _is_department_transfer(code_a: str, code_b: str, id_a: str, id_b: str) -> bool:
    return code_a == code_b or id_a == id_b


def process_inter_store_in(
    rows: Sequence[Sequence[Any]],
    context_year: int | None = None,
) -> dict[str, dict[int, TransferDayEntry]]:
    """Inbound transfers keyed by the receiving store."""
    result: dict[str, dict[int, TransferDayEntry]] = defaultdict(dict)
    for r in rows[1:]:
        to_code = cell_text(cell(r, 0))
        day = get_day_of_month(cell(r, 1), context_year)
        from_code = cell_text(cell(r, 2))
        if day is None:
            continue

        to_id = _store_id(to_code)
        from_id = _store_id(from_code)
        record = TransferRecord(
            day=day,
            cost=abs(safe_number(cell(r, 3))),
            price=abs(safe_number(cell(r, 4))),
            from_store_id=from_id,
            to_store_id=to_id,
            is_department_transfer=_is_department_transfer(
                to_code, from_code, to_id, from_id
            ),
        )
        entry = result[to_id].setdefault(day, TransferDayEntry())
        if record.is_department_transfer:
            entry.inter_department_in.append(record)
        else:
            entry.inter_store_in.append(record)
    return dict(result)


def process_inter_store_out(
    rows: Sequence[Sequence[Any]],
    context_year: int | None = None,
) -> dict[str, dict[int, TransferDayEntry]]:
    """Outbound transfers keyed by the sending store."""
    result: dict[str, dict[int, TransferDayEntry]] = defaultdict(dict)
    for r in rows[1:]:
        day = get_day_of_month(cell(r, 0), context_year)
        from_code = cell_text(cell(r, 1))
        to_code = cell_text(cell(r, 2))
        if day is None:
            continue

        from_id = _store_id(from_code)
        to_id = _store_id(to_code)
        record = TransferRecord(
            day=day,
            cost=-abs(safe_number(cell(r, 4))),
            price=-abs(safe_number(cell(r, 5))),
            from_store_id=from_id,
            to_store_id=to_id,
            is_department_transfer=_is_department_transfer(
                from_code, to_code, from_id, to_id
            ),
        )
        entry = result[from_id].setdefault(day, TransferDayEntry())
        if record.is_department_transfer:
            entry.inter_department_out.append(record)
        else:
            entry.inter_store_out.append(record)
    return dict(result)
