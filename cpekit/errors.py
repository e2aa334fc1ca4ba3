"""Centralized error classes for CPEKit.

Structural problems (malformed sections, unparseable dates, missing tables or
columns) and configuration problems are fatal and raised at the point of
detection. Data-quality omissions such as a missing certification number are
not errors; they are logged and reported by the report assembler.
"""

from typing import Any, Dict, List, Optional


class CpeKitError(Exception):
    """Base class for all CPEKit errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'details': self.details,
        }


class ReportParseError(CpeKitError):
    """Raised when an attendance export section or row is malformed."""

    def __init__(self, message: str, table: Optional[str] = None, line: Optional[int] = None):
        details: Dict[str, Any] = {}
        if table is not None:
            details['table'] = table
            message = f"table '{table}': {message}"
        if line is not None:
            details['line'] = line
            message = f"{message} (line {line})"
        super().__init__(message, "REPORT_PARSE_ERROR", details)
        self.table = table
        self.line = line


class DateParseError(CpeKitError):
    """Raised when date text matches none of the supported formats."""

    def __init__(self, text: Any, reason: Optional[str] = None):
        message = f"failed to parse date: {text!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, "DATE_PARSE_ERROR", {'text': text})
        self.text = text


class TableLookupError(CpeKitError):
    """
    Raised when a required table, column or row is missing.

    The message lists what is available so a user can tell a renamed column
    from a truncated export.
    """

    def __init__(self, table: str, column: Optional[str] = None, row: Optional[int] = None,
                 available: Optional[List[str]] = None, row_count: Optional[int] = None):
        if column is None and row is None:
            msg = f"no such table '{table}'"
            if available is not None:
                msg += f" - defined tables: {', '.join(sorted(available))}"
        elif row is not None and column is None:
            msg = f"no row {row} in table '{table}'"
            if row_count is not None:
                msg += f", max={row_count - 1}"
        else:
            msg = f"no column '{column}' in table '{table}'"
            if available is not None:
                msg += f" (columns: {', '.join(available)})"

        super().__init__(msg, "TABLE_LOOKUP_ERROR", {
            'table': table,
            'column': column,
            'row': row,
        })
        self.table = table
        self.column = column
        self.row = row


class ConfigurationError(CpeKitError):
    """Raised at startup when an option is unknown or has an invalid value."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors or []
        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        super().__init__(message, "CONFIGURATION_ERROR", {'errors': self.errors})
