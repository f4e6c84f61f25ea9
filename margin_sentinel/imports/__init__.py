"""File import layer: reading, detection, processing and validation."""

from .date_parser import get_day_of_month, parse_date
from .detection import DetectionResult, detect_file_type, get_data_type_name
from .errors import FileImportError, ImportErrorKind, ValidationLevel, ValidationMessage
from .reader import read_tabular_file, read_tabular_file_sync
from .schemas import validate_raw_rows
from .service import (
    FileImportResult,
    ImportSummary,
    has_validation_errors,
    process_dropped_files,
    process_file_data,
    read_and_detect,
    validate_imported_data,
)

__all__ = [
    "DetectionResult",
    "FileImportError",
    "FileImportResult",
    "ImportErrorKind",
    "ImportSummary",
    "ValidationLevel",
    "ValidationMessage",
    "detect_file_type",
    "get_data_type_name",
    "get_day_of_month",
    "has_validation_errors",
    "parse_date",
    "process_dropped_files",
    "process_file_data",
    "read_and_detect",
    "read_tabular_file",
    "read_tabular_file_sync",
    "validate_imported_data",
    "validate_raw_rows",
]
