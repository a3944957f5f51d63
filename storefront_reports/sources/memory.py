"""
In-memory Data Source

Serves tables held in process, used by tests, demos and the synthetic
dataset generator.
"""

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog

from storefront_reports.reports.window import DateRange
from .base import DATE_COLUMNS, TIME_COLUMNS, DataSource, Row, check_table

logger = structlog.get_logger(__name__)


def _parse(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        return None


class MemoryDataSource(DataSource):
    """
    Tables as lists of dicts.

    Rows handed out are copies, so report code can never mutate the
    stored data.

    Example:
        source = MemoryDataSource({
            "orders": [{"id": "o1", "total": 100, "created_at": "2024-05-01T10:00:00Z"}],
        })
    """

    def __init__(self, tables: Optional[Mapping[str, Iterable[Row]]] = None):
        self._tables: Dict[str, List[Row]] = {}
        for table, rows in (tables or {}).items():
            self.load(table, rows)

    def load(self, table: str, rows: Iterable[Row]) -> None:
        """Replace the contents of ``table``"""
        check_table(table)
        self._tables[table] = [dict(row) for row in rows]

    def _in_window(self, table: str, row: Row, window: DateRange) -> bool:
        column = TIME_COLUMNS[table]
        value = _parse(row.get(column))
        if table in DATE_COLUMNS:
            return window.contains_date(value)
        return window.contains(value)

    async def fetch(self, table: str, window: Optional[DateRange] = None) -> List[Row]:
        check_table(table)
        rows = self._tables.get(table, [])

        if window is not None:
            if table == "order_items":
                order_ids = {
                    order.get("id")
                    for order in self._tables.get("orders", [])
                    if self._in_window("orders", order, window)
                }
                rows = [row for row in rows if row.get("order_id") in order_ids]
            elif TIME_COLUMNS[table]:
                rows = [row for row in rows if self._in_window(table, row, window)]

        logger.debug("Fetched rows", table=table, rows=len(rows), windowed=window is not None)
        return [dict(row) for row in rows]
