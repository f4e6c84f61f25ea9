"""Store assembly: ImportedData -> DailyRecords -> StoreResult."""

from .aggregate_results import aggregate_store_results, merge_daily_record
from .daily_builder import MonthlyAccumulator, TransferTotals, build_daily_records
from .orchestrator import calculate_all_stores, calculate_store_result
from .store_assembler import assemble_store_result

__all__ = [
    "MonthlyAccumulator",
    "TransferTotals",
    "aggregate_store_results",
    "assemble_store_result",
    "build_daily_records",
    "calculate_all_stores",
    "calculate_store_result",
    "merge_daily_record",
]
