"""Auto-detection of the data type of an imported file.

Detection order (first match wins):
1. Special filename patterns ("8.分類別..." time-slot exports, "NN消耗..." files)
2. Filename keywords, checked rule by rule in registry order
3. Numeric filename prefix ("2_仕入.xlsx" -> purchase)
4. Header keywords found in the first rows of the file

Registry order matters: more specific names (売上売変, 前年売上売変) are
listed before the generic ones (売上, 売変) they contain.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Sequence

from ..models import DataType

_CATEGORY_TIME_SALES_NAME = re.compile(r"^8\.(分類別|.*時間帯)")
_CONSUMABLES_NAME = re.compile(r"^\d{2}消耗")
_NUMERIC_PREFIX = re.compile(r"^(\d+)_")

# Number of leading rows joined together for header matching
HEADER_SCAN_ROWS = 3


@dataclass(frozen=True)
class DetectionRule:
    type: DataType
    name: str
    filename_keywords: tuple[str, ...]
    header_keywords: tuple[str, ...] = ()


@dataclass
class DetectionResult:
    type: DataType | None
    confidence: str = "none"  # "filename" | "header" | "none"
    rule_name: str | None = None

    @property
    def detected(self) -> bool:
        return self.type is not None


# Detection rules, ordered by priority
FILE_TYPE_RULES: list[DetectionRule] = [
    DetectionRule(DataType.FLOWERS, "花", ("花", "hana"), ("販売金額",)),
    DetectionRule(DataType.DIRECT_PRODUCE, "産直", ("産直", "sanchoku"), ("販売金額",)),
    DetectionRule(
        DataType.PURCHASE,
        "仕入",
        ("仕入", "shiire"),
        ("取引先コード", "原価金額", "売価金額"),
    ),
    DetectionRule(
        DataType.BUDGET, "予算", ("売上予算", "予算", "budget"), ("売上予算", "予算")
    ),
    DetectionRule(
        DataType.PREV_YEAR_SALES_DISCOUNT,
        "前年売上売変",
        ("前年売上売変", "前年売上", "prev_uriage"),
    ),
    DetectionRule(
        DataType.SALES_DISCOUNT,
        "売上売変",
        ("売上売変客数", "売上売変", "uriage_baihen", "uriagebaihen"),
    ),
    DetectionRule(
        DataType.CATEGORY_TIME_SALES,
        "分類別時間帯売上",
        ("分類別時間帯売上", "時間帯売上"),
        ("取引時間", "【ライン】", "【クラス】"),
    ),
    DetectionRule(DataType.SALES, "売上", ("売上", "uriage"), ("販売金額", "売上")),
    DetectionRule(DataType.DISCOUNT, "売変", ("売変", "baihen"), ("売変合計", "値引")),
    DetectionRule(
        DataType.INITIAL_SETTINGS,
        "初期設定",
        ("初期", "設定", "setting"),
        ("期首", "期末"),
    ),
    DetectionRule(
        DataType.INTER_STORE_IN,
        "店間入",
        ("店間入", "入庫"),
        ("店コードin", "店舗コードin"),
    ),
    DetectionRule(
        DataType.INTER_STORE_OUT,
        "店間出",
        ("店間出", "出庫"),
        ("店コードout", "店舗コードout"),
    ),
    DetectionRule(DataType.CONSUMABLES, "消耗品", ("消耗", "consumable")),
    DetectionRule(
        DataType.DEPARTMENT_KPI,
        "部門別KPI",
        ("部門別kpi", "部門kpi", "department_kpi"),
        ("粗利率予算", "粗利率実績"),
    ),
]

_PREFIX_TYPES: dict[str, DataType] = {
    "0": DataType.BUDGET,
    "1": DataType.SALES_DISCOUNT,
    "2": DataType.PURCHASE,
    "3": DataType.FLOWERS,
    "4": DataType.DIRECT_PRODUCE,
    "5": DataType.INTER_STORE_IN,
    "6": DataType.INTER_STORE_OUT,
    "7": DataType.INITIAL_SETTINGS,
    "8": DataType.CONSUMABLES,
    "998": DataType.PREV_YEAR_SALES_DISCOUNT,
}


def _header_text(rows: Sequence[Sequence[Any]]) -> str:
    cells: list[str] = []
    for row in rows[:HEADER_SCAN_ROWS]:
        cells.extend("" if c is None else str(c) for c in row)
    return " ".join(cells).lower()


def detect_file_type(filename: str, rows: Sequence[Sequence[Any]] = ()) -> DetectionResult:
    """Detect the data type of a file from its name and first rows.

    Args:
        filename: File name (a path is accepted; only the name is used for
            prefix and special-pattern checks).
        rows: Parsed rows of the file, used for header matching.

    Returns:
        DetectionResult; ``type`` is None when nothing matched.
    """
    base = PurePath(filename).name
    lowered = base.lower()

    if _CATEGORY_TIME_SALES_NAME.match(base):
        return DetectionResult(DataType.CATEGORY_TIME_SALES, "filename", "分類別時間帯売上")
    if _CONSUMABLES_NAME.match(base):
        return DetectionResult(DataType.CONSUMABLES, "filename", "消耗品")

    for rule in FILE_TYPE_RULES:
        if any(k.lower() in lowered for k in rule.filename_keywords):
            return DetectionResult(rule.type, "filename", rule.name)

    m = _NUMERIC_PREFIX.match(base)
    if m and m.group(1) in _PREFIX_TYPES:
        data_type = _PREFIX_TYPES[m.group(1)]
        return DetectionResult(data_type, "filename", get_data_type_name(data_type))

    if rows:
        header = _header_text(rows)
        for rule in FILE_TYPE_RULES:
            if rule.header_keywords and any(
                k.lower() in header for k in rule.header_keywords
            ):
                return DetectionResult(rule.type, "header", rule.name)

    return DetectionResult(None)


def get_data_type_name(data_type: DataType) -> str:
    """Human-readable name of a data type."""
    for rule in FILE_TYPE_RULES:
        if rule.type is data_type:
            return rule.name
    return data_type.value


def list_rules() -> list[dict[str, str]]:
    """List all registered detection rules."""
    return [{"type": r.type.value, "name": r.name} for r in FILE_TYPE_RULES]
