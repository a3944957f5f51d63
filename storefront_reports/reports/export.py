"""
CSV Export

Serializes a report table for download. Columns follow ``result.columns``
(or the first row's keys), values are written in header order and missing
values become empty cells. Fields are quoted per RFC 4180 when needed.
"""

from datetime import date
from typing import Any, Optional

import polars as pl

from .errors import EmptyReportError
from .models import ReportResult


def export_filename(report_id: str, day: Optional[date] = None) -> str:
    """``{report_id}-{YYYY-MM-DD}.csv``"""
    day = day or date.today()
    return f"{report_id}-{day.isoformat()}.csv"


def _cell(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def to_csv(result: ReportResult) -> str:
    """
    Render a report table as CSV text.

    Cells are written as text so columns mixing numbers and sentinels
    such as ``'-'`` keep each value as shown.

    Raises:
        EmptyReportError: If the table has no rows
    """
    if not result.table:
        raise EmptyReportError(f"Report {result.report_id} has no rows to export")

    columns = result.columns or list(result.table[0].keys())
    df = pl.DataFrame(
        {column: [_cell(row.get(column)) for row in result.table] for column in columns},
        schema={column: pl.Utf8 for column in columns},
    )
    return df.write_csv()
