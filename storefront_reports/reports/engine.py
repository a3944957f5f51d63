"""
Report Engine

Entry point of the reporting layer:
- Resolves a report id against the registry
- Fetches the report's tables concurrently, windowed where applicable
- Normalizes raw rows into typed frames and applies request filters
- Runs the report's aggregation and returns a normalized ReportResult
"""

import asyncio
import time
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import polars as pl
import structlog
from prometheus_client import Counter, Histogram

from storefront_reports.config import get_settings
from .errors import DataSourceError, ReportError, UnknownReportError
from .frames import RowNormalizer
from .models import ReportCategory, ReportDefinition, ReportFilters, ReportResult
from .registry import RegisteredReport, ReportRegistry, registry as default_registry
from .rows import ReportRows
from .window import DateRange

if TYPE_CHECKING:
    from storefront_reports.sources.base import DataSource

logger = structlog.get_logger(__name__)

# =============================================================================
# METRICS
# =============================================================================

REPORTS_COMPUTED = Counter(
    "storefront_reports_computed_total",
    "Total number of report computations",
    ["report_id", "status"],
)

REPORT_COMPUTE_TIME = Histogram(
    "storefront_report_compute_seconds",
    "Time spent fetching and aggregating a report",
    ["report_id"],
)

# Tables narrowed to the orders that survive the status filter
ORDER_CHILD_TABLES = ("order_items", "payments", "deliveries")


class ReportEngine:
    """
    Computes registered reports against a data source.

    Example:
        engine = ReportEngine(MemoryDataSource(tables))
        result = await engine.compute_report("sales-summary", since, until)
    """

    def __init__(
        self,
        source: "DataSource",
        registry: Optional[ReportRegistry] = None,
        timezone: Optional[str] = None,
    ):
        self.source = source
        self.registry = registry or default_registry
        self.normalizer = RowNormalizer(timezone or get_settings().reports.timezone)

    def definitions(self, category: Optional[ReportCategory] = None) -> List[ReportDefinition]:
        return self.registry.definitions(category)

    async def _fetch_table(self, entry: RegisteredReport, table: str, window: DateRange) -> List[Dict[str, Any]]:
        try:
            return await self.source.fetch(table, window if entry.windowed(table) else None)
        except DataSourceError:
            raise
        except Exception as e:
            raise DataSourceError(f"Failed to fetch {table}: {e}", table=table) from e

    async def _fetch(self, entry: RegisteredReport, window: DateRange) -> Dict[str, List[Dict[str, Any]]]:
        tables = entry.definition.tables
        results = await asyncio.gather(*(self._fetch_table(entry, table, window) for table in tables))
        return dict(zip(tables, results))

    def _frames(self, raw: Dict[str, List[Dict[str, Any]]], filters: ReportFilters) -> Dict[str, pl.DataFrame]:
        frames = {table: self.normalizer.frame(table, rows) for table, rows in raw.items()}

        status = filters.order_status
        if status and "orders" in frames:
            orders = frames["orders"].filter(pl.col("status") == status)
            frames["orders"] = orders
            order_ids = orders.select(pl.col("id").alias("order_id")).drop_nulls().unique()
            for table in ORDER_CHILD_TABLES:
                if table in frames:
                    frames[table] = frames[table].join(order_ids, on="order_id", how="semi")

        category = filters.category_name
        if category and "expenses" in frames:
            frames["expenses"] = frames["expenses"].filter(
                pl.col("category").str.to_lowercase() == category.lower()
            )
        return frames

    async def compute(
        self,
        report_id: str,
        window: DateRange,
        filters: Optional[ReportFilters] = None,
    ) -> ReportResult:
        """
        Compute one report for a window.

        Raises:
            UnknownReportError: If ``report_id`` is not registered
            DataSourceError: If any table fetch fails
        """
        filters = filters or ReportFilters()
        entry = self.registry.get(report_id)
        start = time.perf_counter()

        try:
            raw = await self._fetch(entry, window)
            rows = ReportRows(
                definition=entry.definition,
                window=window,
                filters=filters,
                frames=self._frames(raw, filters),
            )
            result = entry.func(rows, filters)
        except Exception:
            REPORTS_COMPUTED.labels(report_id=report_id, status="error").inc()
            raise

        duration = time.perf_counter() - start
        REPORTS_COMPUTED.labels(report_id=report_id, status="success").inc()
        REPORT_COMPUTE_TIME.labels(report_id=report_id).observe(duration)

        logger.info(
            "Report computed",
            report_id=report_id,
            rows=len(result.table),
            source_rows=sum(len(r) for r in raw.values()),
            filters=filters.cache_key(),
            duration_ms=round(duration * 1000, 2),
        )
        return result

    async def compute_report(
        self,
        report_id: str,
        since: datetime,
        until: datetime,
        filters: Optional[ReportFilters] = None,
    ) -> ReportResult:
        """Compute ``report_id`` over the half-open window ``[since, until)``"""
        return await self.compute(report_id, DateRange(since, until), filters)

    async def run_report(
        self,
        report_id: str,
        window: DateRange,
        filters: Optional[ReportFilters] = None,
    ) -> ReportResult:
        """
        Presentation-facing variant of ``compute``.

        Unknown reports and failed fetches produce an empty result carrying
        the error code instead of raising.
        """
        try:
            return await self.compute(report_id, window, filters)
        except UnknownReportError as e:
            logger.warning("Unknown report requested", report_id=report_id)
            return self._empty(report_id, e, window)
        except DataSourceError as e:
            logger.error("Report data fetch failed", report_id=report_id, table=e.table, error=str(e))
            return self._empty(report_id, e, window)

    def _empty(self, report_id: str, error: ReportError, window: DateRange) -> ReportResult:
        title = self.registry.get(report_id).definition.name if report_id in self.registry else ""
        return ReportResult.empty(
            report_id,
            title=title,
            error_code=error.code,
            since=window.since,
            until=window.until,
        )
