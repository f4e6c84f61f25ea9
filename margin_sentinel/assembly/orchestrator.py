"""Entry points for turning ImportedData into StoreResults.

Usage:
    results = calculate_all_stores(data, settings)
    overall = aggregate_store_results(list(results.values()), settings.days_in_month)
"""

from __future__ import annotations

import logging

from ..config import AppSettings
from ..models import ImportedData, StoreResult
from .daily_builder import build_daily_records
from .store_assembler import assemble_store_result

logger = logging.getLogger("margin_sentinel.assembly.orchestrator")


def calculate_store_result(
    store_id: str,
    data: ImportedData,
    settings: AppSettings,
    days_in_month: int | None = None,
) -> StoreResult:
    """StoreResult for one store.

    Days after ``settings.data_end_day`` are not built; projections still
    use the full month length.
    """
    if days_in_month is None:
        days_in_month = settings.days_in_month
    effective_days = (
        min(settings.data_end_day, days_in_month)
        if settings.data_end_day is not None
        else days_in_month
    )
    acc = build_daily_records(
        store_id, data, effective_days, settings.supplier_category_map
    )
    return assemble_store_result(store_id, acc, data, settings, days_in_month)


def calculate_all_stores(
    data: ImportedData,
    settings: AppSettings,
    days_in_month: int | None = None,
) -> dict[str, StoreResult]:
    """StoreResult for every known store, in store discovery order."""
    results = {
        store_id: calculate_store_result(store_id, data, settings, days_in_month)
        for store_id in data.stores
    }
    logger.debug("Calculated %d stores", len(results))
    return results
