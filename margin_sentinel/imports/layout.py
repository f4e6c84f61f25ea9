"""Header-cell parsing and column layouts.

Repeating-group exports put one ``code:name`` header cell at the start of
each store group::

    row 0:  日付 | ... | ... | 0001:本店 | (blank) | 0002:駅前 | (blank)
    row n:  2/1  |     |     | 1200      | 80      | 900       | 40

A ``ColumnLayout`` describes where the header lives, where groups start,
where data starts and which field sits at which offset inside a group.
``build_store_columns`` reads the header once and returns a typed column
map that processors iterate for every data row.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..models import CodeName, Store, Supplier

_CODE_NAME_RE = re.compile(r"^(\d+):(.*)$")
_STORE_RE = re.compile(r"(\d{4}):(.*)")
_SUPPLIER_RE = re.compile(r"(\d{7})")
_SUPPLIER_PREFIX_RE = re.compile(r"^\d{7}:?")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

Row = Sequence[Any]


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------


def cell(row: Row, col: int) -> Any:
    """Cell at ``col``, or None when the row is shorter."""
    return row[col] if 0 <= col < len(row) else None


def cell_text(value: Any) -> str:
    """Cell value as stripped text. Whole floats lose their ``.0``."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def to_store_id(value: Any) -> str | None:
    """Store id from a store-code cell ("0001" -> "1"), or None.

    Only the leading integer counts, so "12 本店" gives "12".
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and value != value:
            return None
        return str(int(value))
    m = _LEADING_INT_RE.match(str(value))
    return str(int(m.group(1))) if m else None


def parse_code_name(value: Any) -> CodeName:
    """``"000061:果物"`` -> CodeName("000061", "果物").

    Text without a numeric code becomes both code and name.
    """
    text = "" if value is None else str(value)
    m = _CODE_NAME_RE.match(text)
    if m:
        return CodeName(code=m.group(1), name=m.group(2).strip())
    return CodeName(code=text, name=text)


def parse_store_cell(value: Any) -> Store | None:
    """``"0001:本店"`` -> Store(id="1", code="0001", name="本店")."""
    if value is None:
        return None
    m = _STORE_RE.search(str(value))
    if not m:
        return None
    code = m.group(1)
    return Store(id=str(int(code)), code=code, name=m.group(2).strip() or code)


def parse_supplier_cell(value: Any) -> Supplier | None:
    """``"0000123:青果市場"`` -> Supplier("0000123", "青果市場")."""
    if value is None:
        return None
    text = str(value)
    m = _SUPPLIER_RE.search(text)
    if not m:
        return None
    code = m.group(1)
    return Supplier(code=code, name=_SUPPLIER_PREFIX_RE.sub("", text).strip() or code)


# ---------------------------------------------------------------------------
# Column layouts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ColumnLayout:
    """Repeating-group layout of one export type.

    Attributes:
        header_row: Row holding the ``code:name`` store cells.
        first_col: First column scanned for store cells.
        data_start_row: First data row.
        fields: Field names in group order (offset = position).
        stride: Distance between groups when it cannot be inferred.
        supplier_row: Row holding supplier cells, for purchase exports.
    """

    header_row: int
    first_col: int
    data_start_row: int
    fields: tuple[str, ...]
    stride: int = 2
    supplier_row: int | None = None

    @property
    def min_header_rows(self) -> int:
        rows = [self.header_row]
        if self.supplier_row is not None:
            rows.append(self.supplier_row)
        return max(rows) + 1


@dataclass
class StoreColumn:
    """One store group resolved from the header."""

    col: int
    store: Store
    fields: dict[str, int] = field(default_factory=dict)
    supplier: Supplier | None = None

    def value(self, row: Row, name: str) -> Any:
        return cell(row, self.fields[name])


PURCHASE_LAYOUT = ColumnLayout(
    header_row=1,
    first_col=3,
    data_start_row=4,
    fields=("cost", "price"),
    supplier_row=0,
)
SALES_LAYOUT = ColumnLayout(header_row=0, first_col=3, data_start_row=3, fields=("sales",))
DISCOUNT_LAYOUT = ColumnLayout(
    header_row=0, first_col=3, data_start_row=2, fields=("sales", "discount")
)
SPECIAL_SALES_LAYOUT = ColumnLayout(
    header_row=0, first_col=3, data_start_row=3, fields=("price",)
)


def infer_stride(matched_columns: Sequence[int], fallback: int) -> int:
    """Distance between the first two matched groups, else ``fallback``."""
    if len(matched_columns) < 2:
        return fallback
    distance = matched_columns[1] - matched_columns[0]
    return distance if distance > 0 else fallback


def _header_matches(header: Row, layout: ColumnLayout) -> list[tuple[int, Store]]:
    span = max(len(layout.fields), layout.stride)
    matches: list[tuple[int, Store]] = []
    last_col = None
    for col in range(layout.first_col, len(header)):
        raw = header[col]
        store = parse_store_cell(raw)
        if store is None:
            continue
        # merged header cells repeat their text across the rest of the group
        if last_col is not None and col - last_col < span and raw == header[last_col]:
            continue
        matches.append((col, store))
        last_col = col
    return matches


def build_store_columns(rows: Sequence[Row], layout: ColumnLayout) -> list[StoreColumn]:
    """Resolve the store groups of a repeating-group export.

    Groups sit at ``first_match + k * stride``; matches off that grid are
    ignored. For purchase layouts a column without a supplier cell is
    dropped.
    """
    if len(rows) < layout.min_header_rows:
        return []

    matches = _header_matches(rows[layout.header_row], layout)
    if not matches:
        return []

    stride = infer_stride([col for col, _ in matches], layout.stride)
    anchor = matches[0][0]

    columns: list[StoreColumn] = []
    for col, store in matches:
        if (col - anchor) % stride:
            continue
        supplier = None
        if layout.supplier_row is not None:
            supplier = parse_supplier_cell(cell(rows[layout.supplier_row], col))
            if supplier is None:
                continue
        columns.append(
            StoreColumn(
                col=col,
                store=store,
                fields={name: col + offset for offset, name in enumerate(layout.fields)},
                supplier=supplier,
            )
        )
    return columns


def extract_stores(rows: Sequence[Row], layout: ColumnLayout) -> dict[str, Store]:
    """Unique stores named in the header, first occurrence wins."""
    stores: dict[str, Store] = {}
    if len(rows) <= layout.header_row:
        return stores
    for _, store in _header_matches(rows[layout.header_row], layout):
        stores.setdefault(store.id, store)
    return stores
