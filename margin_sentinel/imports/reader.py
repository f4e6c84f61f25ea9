"""Tabular file reader: CSV / Excel -> list of rows of cells.

The first sheet (or the whole CSV) is read without a header row, so row 0
of the result is row 1 of the file. Cells come back as ``str``, ``int``,
``float``, ``date`` or None.

Usage:
    rows = await read_tabular_file("data/2_仕入.xlsx")
"""

from __future__ import annotations

import asyncio
import csv
import io
import logging
import math
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Union

import numpy as np
import pandas as pd

from .errors import FileImportError, ImportErrorKind

logger = logging.getLogger("margin_sentinel.imports.reader")

Cell = Union[str, int, float, date, None]

CSV_EXTENSIONS = {".csv", ".txt"}
EXCEL_EXTENSIONS = {".xlsx", ".xlsm", ".xls"}
SUPPORTED_EXTENSIONS = CSV_EXTENSIONS | EXCEL_EXTENSIONS

# Numeric text without leading zeros, so codes like "0001" stay text
_NUMERIC_TEXT_RE = re.compile(r"^-?(0|[1-9]\d*)(\.\d+)?$")


def normalize_cell(value: Any) -> Cell:
    """Convert a pandas cell into a plain Python value."""
    if value is None:
        return None
    if isinstance(value, (pd.Timestamp, datetime)):
        if pd.isna(value):
            return None
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (np.integer, int)):
        return int(value)
    if isinstance(value, (np.floating, float)):
        f = float(value)
        if math.isnan(f):
            return None
        return int(f) if f.is_integer() else f
    text = str(value).strip()
    if not text:
        return None
    if _NUMERIC_TEXT_RE.match(text):
        number = float(text)
        return int(number) if number.is_integer() and "." not in text else number
    return text


def dataframe_to_rows(df: pd.DataFrame) -> list[list[Cell]]:
    """Rows of normalized cells with trailing blanks trimmed."""
    rows: list[list[Cell]] = []
    for raw in df.itertuples(index=False, name=None):
        row = [normalize_cell(v) for v in raw]
        while row and row[-1] is None:
            row.pop()
        rows.append(row)
    while rows and not rows[-1]:
        rows.pop()
    return rows


def _decode(contents: bytes) -> str:
    try:
        return contents.decode("utf-8-sig")
    except UnicodeDecodeError:
        return contents.decode("cp932")


def _read_csv(path: Path) -> pd.DataFrame:
    text = _decode(path.read_bytes())
    # rows have different widths, so name every column up front
    width = max((len(r) for r in csv.reader(io.StringIO(text))), default=0)
    if width == 0:
        return pd.DataFrame()
    return pd.read_csv(
        io.StringIO(text),
        header=None,
        names=list(range(width)),
        dtype=object,
        keep_default_na=False,
        na_values=[""],
        skip_blank_lines=False,
    )


def read_tabular_file_sync(path: str | Path) -> list[list[Cell]]:
    """Blocking read of a CSV or Excel file."""
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix in CSV_EXTENSIONS:
        df = _read_csv(path)
    elif suffix in EXCEL_EXTENSIONS:
        df = pd.read_excel(path, sheet_name=0, header=None, dtype=object)
    else:
        raise FileImportError(
            f"unsupported file extension: {suffix or '(none)'}",
            ImportErrorKind.INVALID_FORMAT,
            path.name,
        )

    rows = dataframe_to_rows(df)
    logger.debug("Read %s: %d rows", path.name, len(rows))
    return rows


async def read_tabular_file(path: str | Path) -> list[list[Cell]]:
    """Read a CSV or Excel file in a worker thread."""
    return await asyncio.to_thread(read_tabular_file_sync, path)
