"""Application settings for margin-sentinel.

Follows the pydantic-settings pattern: every value can be supplied through
environment variables (prefix ``MARGIN_``) or a ``.env`` file.

The target year/month default to the month containing "today". Callers
build settings once at start-up and pass them down:

Usage:
    from datetime import date
    from margin_sentinel.config import create_default_settings

    settings = create_default_settings(date.today())
    settings = create_default_settings(date(2026, 2, 1), default_budget=7_000_000)
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Allowed range for flower / direct-produce cost rates
COST_RATE_MIN = 0.0
COST_RATE_MAX = 1.2

# Virtual store id used for the "all stores" roll-up
ALL_STORES_ID = "all"

# Supplier categories a user may assign in supplier_category_map
CUSTOM_CATEGORIES: tuple[str, ...] = (
    "市場仕入",
    "LFC",
    "サラダ",
    "加工品",
    "消耗品",
    "直伝",
    "その他",
)


class AppSettings(BaseSettings):
    """Calculation and import settings for one target month."""

    # ----- Target period -----
    target_year: int = Field(default=2026, description="Target year.")
    target_month: int = Field(default=1, ge=1, le=12, description="Target month (1-12).")
    data_end_day: int | None = Field(
        default=None,
        ge=1,
        le=31,
        description="Only build daily records up to this day. None = whole month.",
    )

    # ----- Profit targets -----
    target_gross_profit_rate: float = Field(
        default=0.25,
        description="Target gross profit rate.",
    )
    warning_threshold: float = Field(
        default=0.23,
        description="Gross profit rate below which a store is flagged.",
    )

    # ----- Cost rates -----
    flower_cost_rate: float = Field(
        default=0.80,
        description="Cost rate applied to flower sales prices.",
    )
    direct_produce_cost_rate: float = Field(
        default=0.85,
        description="Cost rate applied to direct-produce sales prices.",
    )
    default_markup_rate: float = Field(
        default=0.26,
        description="Markup rate used when no purchase data is available.",
    )

    # ----- Budget -----
    default_budget: float = Field(
        default=6_450_000,
        description="Monthly sales budget used when no budget file is imported.",
    )

    # ----- Suppliers -----
    supplier_category_map: dict[str, str] = Field(
        default_factory=dict,
        description="Supplier code -> custom category label.",
    )

    # ----- Runtime -----
    alert_rules_path: str | None = Field(
        default=None,
        description="Optional YAML file with alert rules.",
    )
    log_level: str = Field(default="INFO", description="Root log level for the CLI.")

    model_config = {
        "env_prefix": "MARGIN_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("flower_cost_rate", "direct_produce_cost_rate")
    @classmethod
    def _check_cost_rate(cls, value: float) -> float:
        if not COST_RATE_MIN <= value <= COST_RATE_MAX:
            raise ValueError(
                f"cost rate must be between {COST_RATE_MIN} and {COST_RATE_MAX}, got {value}"
            )
        return value

    @field_validator("supplier_category_map")
    @classmethod
    def _check_categories(cls, value: dict[str, str]) -> dict[str, str]:
        unknown = sorted({c for c in value.values() if c not in CUSTOM_CATEGORIES})
        if unknown:
            raise ValueError(f"unknown supplier categories: {', '.join(unknown)}")
        return value

    @property
    def days_in_month(self) -> int:
        return get_days_in_month(self.target_year, self.target_month)


def create_default_settings(today: date, **overrides: Any) -> AppSettings:
    """Build settings targeting the month that contains ``today``.

    Explicit ``overrides`` win over environment values and defaults.
    """
    values: dict[str, Any] = {"target_year": today.year, "target_month": today.month}
    values.update(overrides)
    return AppSettings(**values)


def get_days_in_month(year: int, month: int) -> int:
    """Number of days in the given month."""
    return calendar.monthrange(year, month)[1]
