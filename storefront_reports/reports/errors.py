"""
Report Errors

Exceptions raised by the report engine, its data sources and the exporter.
"""

from typing import Optional


class ReportError(Exception):
    """Base class for report failures"""

    code = "report_error"


class UnknownReportError(ReportError):
    """Raised when a report id is not in the registry"""

    code = "unknown_report"

    def __init__(self, report_id: str):
        super().__init__(f"Unknown report: {report_id}")
        self.report_id = report_id


class DataSourceError(ReportError):
    """Raised when a table fetch fails"""

    code = "data_source_error"

    def __init__(self, message: str, table: Optional[str] = None):
        super().__init__(message)
        self.table = table


class EmptyReportError(ReportError):
    """Raised when exporting a report with no rows"""

    code = "empty_report"


class InvalidWindowError(ReportError, ValueError):
    """Raised for malformed or inverted date windows"""

    code = "invalid_window"
