"""Per-type processors: raw rows -> canonical store/day records."""

from .budget import process_budget
from .category_time_sales import merge_category_time_sales, process_category_time_sales
from .consumables import merge_consumables, process_consumables, store_id_from_filename
from .department_kpi import merge_department_kpi, process_department_kpi
from .discount import extract_stores_from_discount, process_discount, sales_from_discount
from .inventory_settings import process_settings
from .purchase import (
    extract_stores_from_purchase,
    extract_suppliers_from_purchase,
    process_purchase,
)
from .sales import extract_stores_from_sales, process_sales
from .special_sales import process_special_sales
from .transfers import process_inter_store_in, process_inter_store_out

__all__ = [
    "extract_stores_from_discount",
    "extract_stores_from_purchase",
    "extract_stores_from_sales",
    "extract_suppliers_from_purchase",
    "merge_category_time_sales",
    "merge_consumables",
    "merge_department_kpi",
    "process_budget",
    "process_category_time_sales",
    "process_consumables",
    "process_department_kpi",
    "process_discount",
    "process_inter_store_in",
    "process_inter_store_out",
    "process_purchase",
    "process_sales",
    "process_settings",
    "process_special_sales",
    "sales_from_discount",
    "store_id_from_filename",
]
