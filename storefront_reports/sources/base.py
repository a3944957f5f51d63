"""
Tabular Data Source

The report engine reads the storefront tables through this interface and
never depends on how they are stored. A source only needs to answer
"give me the rows of table T, optionally restricted to window W".
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from storefront_reports.reports.window import DateRange

Row = Dict[str, Any]

# Column each table is windowed on. Order items have no timestamp of their
# own and are windowed through their parent order.
TIME_COLUMNS: Dict[str, Optional[str]] = {
    "orders": "created_at",
    "order_items": None,
    "payments": "created_at",
    "deliveries": "created_at",
    "expenses": "date",
    "profiles": "created_at",
    "analytics_events": "created_at",
    "products": None,
    "categories": None,
}

# Tables whose time column holds calendar dates rather than timestamps
DATE_COLUMNS = {"expenses"}

TABLES = tuple(TIME_COLUMNS)


class DataSource(ABC):
    """
    Read-only access to the storefront tables.

    Example:
        source = MemoryDataSource({"orders": [...]})
        rows = await source.fetch("orders", window)
    """

    @abstractmethod
    async def fetch(self, table: str, window: Optional[DateRange] = None) -> List[Row]:
        """
        Fetch the rows of ``table``.

        Args:
            table: Logical table name (see ``TABLES``)
            window: Restrict to rows inside ``[since, until)``; None for all rows

        Returns:
            Rows as plain dicts. Callers must not rely on row order.
        """

    async def close(self) -> None:
        """Release any held resources"""
        return None


def check_table(table: str) -> None:
    if table not in TIME_COLUMNS:
        raise KeyError(f"Unknown table: {table}")
