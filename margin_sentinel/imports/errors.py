"""Import error taxonomy and validation messages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ImportErrorKind(str, Enum):
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_FORMAT = "INVALID_FORMAT"
    MISSING_DATA = "MISSING_DATA"
    UNKNOWN_TYPE = "UNKNOWN_TYPE"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class FileImportError(Exception):
    """A file could not be imported. Always names the offending file."""

    def __init__(self, message: str, kind: ImportErrorKind, filename: str):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.filename = filename

    def __str__(self) -> str:
        return f"{self.filename}: {self.message}"


class ValidationLevel(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class ValidationMessage:
    level: ValidationLevel
    message: str

    def to_dict(self) -> dict:
        return {"level": self.level.value, "message": self.message}
