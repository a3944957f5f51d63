"""
SQL Data Source

Reads the storefront tables through SQLAlchemy 2.0 async sessions. Each
fetch uses its own session so that a report's tables can be fetched
concurrently.
"""

from typing import AsyncContextManager, Callable, List, Optional

import structlog
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront_reports.database.connection import read_session
from storefront_reports.database.models import TABLE_MODELS
from storefront_reports.reports.window import DateRange
from .base import DATE_COLUMNS, TIME_COLUMNS, DataSource, Row, check_table

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class SqlDataSource(DataSource):
    """
    Data source backed by the storefront database.

    Example:
        await init_database()
        source = SqlDataSource()
        orders = await source.fetch("orders", window)
    """

    def __init__(self, session_factory: SessionFactory = read_session):
        self._session_factory = session_factory

    def build_query(self, table: str, window: Optional[DateRange] = None) -> Select:
        """SELECT for ``table``, restricted to ``window`` when given"""
        check_table(table)
        source = TABLE_MODELS[table].__table__
        query = select(source)
        if window is None:
            return query

        if table == "order_items":
            orders = TABLE_MODELS["orders"].__table__
            return (
                query.join(orders, source.c.order_id == orders.c.id)
                .where(orders.c.created_at >= window.since, orders.c.created_at < window.until)
            )

        column_name = TIME_COLUMNS[table]
        if column_name is None:
            return query
        column = source.c[column_name]
        if table in DATE_COLUMNS:
            start, end = window.date_bounds()
            return query.where(column >= start, column < end)
        return query.where(column >= window.since, column < window.until)

    async def fetch(self, table: str, window: Optional[DateRange] = None) -> List[Row]:
        query = self.build_query(table, window)
        async with self._session_factory() as session:
            result = await session.execute(query)
            rows = [dict(row) for row in result.mappings()]
        logger.debug("Fetched rows", table=table, rows=len(rows), windowed=window is not None)
        return rows
