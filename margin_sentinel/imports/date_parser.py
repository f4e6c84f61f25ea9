"""Cell-to-date parsing.

Accepted inputs:
    - date / datetime objects (datetimes lose their time)
    - spreadsheet serial numbers (1 .. 2958465, epoch 1899-12-30)
    - numeric strings between 30000 and 100000, read as serials
    - era dates: 令和8年2月15日, R8.2.15, 平成31年4月30日, H31/4/30
    - 2026年2月15日 (trailing weekday text is ignored)
    - 2026-02-15, 2026/02/15, 26/02/15, 2026.02.15
    - 02/15, which takes ``context_year`` or the current year

Anything else, including impossible calendar dates, returns None.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from typing import Any

# Serial 1 = 1900-01-01 (with the 1900 leap-year bug), so day 0 is 1899-12-30
_EXCEL_EPOCH = date(1899, 12, 30)
_EXCEL_SERIAL_MIN = 1
_EXCEL_SERIAL_MAX = 2958465  # 9999-12-31

# Numeric strings are only treated as serials inside this range
_SERIAL_STRING_MIN = 30000
_SERIAL_STRING_MAX = 100000

# era -> year offset (era year 1 = base + 1)
_ERA_OFFSETS = {
    "令和": 2018,
    "R": 2018,
    "平成": 1988,
    "H": 1988,
}

_ERA_RE = re.compile(
    r"^(令和|平成|R|H)\s*(\d{1,2}|元)\s*[年./\-]\s*(\d{1,2})\s*[月./\-]\s*(\d{1,2})"
)
_JAPANESE_RE = re.compile(r"(\d{4})年\s*(\d{1,2})月\s*(\d{1,2})日")
_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_SLASH_RE = re.compile(r"^(\d{4}|\d{2})/(\d{1,2})/(\d{1,2})")
_DOT_RE = re.compile(r"^(\d{4})\.(\d{1,2})\.(\d{1,2})")
_MONTH_DAY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})$")

# 2-digit years below the pivot are 20xx, others 19xx
_TWO_DIGIT_YEAR_PIVOT = 50


def _make_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _from_serial(serial: float) -> date | None:
    if not _EXCEL_SERIAL_MIN <= serial <= _EXCEL_SERIAL_MAX:
        return None
    return _EXCEL_EPOCH + timedelta(days=math.floor(serial))


def _expand_year(text: str) -> int:
    year = int(text)
    if len(text) == 2:
        year += 2000 if year < _TWO_DIGIT_YEAR_PIVOT else 1900
    return year


def parse_date(value: Any, context_year: int | None = None) -> date | None:
    """Interpret a cell as a calendar date, or return None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return _from_serial(value)

    s = str(value).strip()
    if not s:
        return None

    try:
        num = float(s)
    except ValueError:
        num = None
    if num is not None:
        if _SERIAL_STRING_MIN < num < _SERIAL_STRING_MAX:
            return _from_serial(num)
        return None

    m = _ERA_RE.match(s)
    if m:
        era_year = 1 if m.group(2) == "元" else int(m.group(2))
        return _make_date(
            _ERA_OFFSETS[m.group(1)] + era_year, int(m.group(3)), int(m.group(4))
        )

    m = _JAPANESE_RE.search(s)
    if m:
        return _make_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _ISO_RE.match(s)
    if m:
        return _make_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _SLASH_RE.match(s)
    if m:
        return _make_date(_expand_year(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _DOT_RE.match(s)
    if m:
        return _make_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _MONTH_DAY_RE.match(s)
    if m:
        year = context_year if context_year is not None else date.today().year
        return _make_date(year, int(m.group(1)), int(m.group(2)))

    return None


def get_day_of_month(value: Any, context_year: int | None = None) -> int | None:
    """Day (1-31) of the parsed date, or None."""
    parsed = parse_date(value, context_year)
    return parsed.day if parsed else None
