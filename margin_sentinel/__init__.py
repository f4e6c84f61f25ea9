"""Margin Sentinel: retail back-office imports and gross-profit analytics.

Normalizes heterogeneous spreadsheet exports (purchases, sales, discounts,
transfers, budgets, consumables, time-slot sales) into per-store daily
records, then computes profit, budget, forecast and alert figures.

Usage:
    import asyncio
    from datetime import date

    from margin_sentinel import (
        calculate_all_stores,
        create_default_settings,
        create_empty_imported_data,
        process_dropped_files,
    )

    settings = create_default_settings(date(2026, 2, 1))
    summary, data = asyncio.run(
        process_dropped_files(paths, settings, create_empty_imported_data())
    )
    results = calculate_all_stores(data, settings)
"""

from .assembly import aggregate_store_results, calculate_all_stores, calculate_store_result
from .config import ALL_STORES_ID, AppSettings, create_default_settings, get_days_in_month
from .imports import (
    FileImportError,
    ImportErrorKind,
    ValidationLevel,
    ValidationMessage,
    detect_file_type,
    has_validation_errors,
    process_dropped_files,
    process_file_data,
    validate_imported_data,
)
from .models import (
    CategoryType,
    DailyRecord,
    DataType,
    ImportedData,
    StoreResult,
    create_empty_imported_data,
)

__version__ = "0.4.0"

__all__ = [
    # config
    "ALL_STORES_ID",
    "AppSettings",
    "create_default_settings",
    "get_days_in_month",
    # models
    "CategoryType",
    "DailyRecord",
    "DataType",
    "ImportedData",
    "StoreResult",
    "create_empty_imported_data",
    # imports
    "FileImportError",
    "ImportErrorKind",
    "ValidationLevel",
    "ValidationMessage",
    "detect_file_type",
    "has_validation_errors",
    "process_dropped_files",
    "process_file_data",
    "validate_imported_data",
    # assembly
    "aggregate_store_results",
    "calculate_all_stores",
    "calculate_store_result",
]
