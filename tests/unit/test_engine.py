"""
Unit Tests - Report Engine and Session
"""
import asyncio
from datetime import datetime, timezone

import pytest

from storefront_reports.reports import (
    NO_DATA_MESSAGE,
    DataSourceError,
    DateRange,
    EmptyReportError,
    ReportEngine,
    ReportFilters,
    ReportSession,
    UnknownReportError,
    registry,
    to_csv,
)
from storefront_reports.sources import MemoryDataSource

# Reports whose orders are read inside the request window
ORDER_WINDOWED_REPORTS = [
    d.id for d in registry.definitions()
    if "orders" in d.tables and registry.get(d.id).windowed("orders")
]


class RecordingSource(MemoryDataSource):
    """Remembers which window each table was fetched with"""

    def __init__(self, tables=None):
        super().__init__(tables)
        self.calls = {}

    async def fetch(self, table, window=None):
        self.calls[table] = window
        return await super().fetch(table, window)


class FailingSource(MemoryDataSource):
    def __init__(self, tables=None, failing="payments"):
        super().__init__(tables)
        self.failing = failing

    async def fetch(self, table, window=None):
        if table == self.failing:
            raise RuntimeError("connection reset")
        return await super().fetch(table, window)


class GatedSource(MemoryDataSource):
    """Blocks every fetch until the gate opens"""

    def __init__(self, tables=None):
        super().__init__(tables)
        self.gate = asyncio.Event()

    async def fetch(self, table, window=None):
        await self.gate.wait()
        return await super().fetch(table, window)


class TestReportEngine:
    """Tests for ReportEngine"""

    @pytest.mark.asyncio
    async def test_sales_summary_scenario(self, may_window, kpis):
        """Test sales summary scenario"""
        source = MemoryDataSource({
            "orders": [
                {"id": "a", "total": 100, "status": "delivered", "created_at": "2024-05-02T10:00:00Z"},
                {"id": "b", "total": 200, "status": "cancelled", "created_at": "2024-05-02T11:00:00Z"},
            ],
        })
        result = await ReportEngine(source).compute("sales-summary", may_window, ReportFilters(status="all"))

        values = kpis(result)
        assert values["Total Orders"] == 2
        assert values["Total Revenue"] == 300
        assert values["Avg Order Value"] == 150
        assert [k.display for k in result.kpis][:3] == ["₹300", "2", "₹150"]

    @pytest.mark.asyncio
    async def test_status_filter_narrows_orders(self, engine, may_window, kpis):
        """Test status filter narrows orders"""
        result = await engine.compute("sales-summary", may_window, ReportFilters(status="Delivered"))
        assert kpis(result)["Total Orders"] == 1
        assert kpis(result)["Total Revenue"] == 2500

    @pytest.mark.asyncio
    async def test_status_filter_narrows_order_items(self, engine, may_window):
        """Test status filter narrows order items"""
        result = await engine.compute("sales-by-category", may_window, ReportFilters(status="delivered"))
        assert [(r["name"], r["revenue"]) for r in result.table] == [("Sarees", 2000), ("Jewellery", 500)]

    @pytest.mark.asyncio
    async def test_status_filter_narrows_payments(self, engine, may_window):
        """Test status filter narrows payments"""
        result = await engine.compute("payments-received", may_window, ReportFilters(status="cancelled"))
        assert [r["order_number"] for r in result.table] == ["ORD-002"]

    @pytest.mark.asyncio
    async def test_category_filter_on_expenses(self, engine, may_window):
        """Test category filter on expenses"""
        result = await engine.compute("expense-by-category", may_window, ReportFilters(category="ADS"))
        assert result.table == [{"name": "ads", "value": 800, "share": "100.0%"}]

    @pytest.mark.asyncio
    async def test_static_tables_fetched_without_window(self, storefront_tables, may_window):
        """Test static tables fetched without window"""
        source = RecordingSource(storefront_tables)
        await ReportEngine(source).compute("sales-return-history", may_window)
        assert source.calls["orders"] == may_window
        assert source.calls["payments"] is None
        assert source.calls["profiles"] is None

    @pytest.mark.asyncio
    async def test_compute_report_builds_window(self, engine, kpis):
        """Test compute report builds window"""
        result = await engine.compute_report(
            "sales-summary",
            datetime(2024, 5, 3, tzinfo=timezone.utc),
            datetime(2024, 5, 4, tzinfo=timezone.utc),
        )
        assert kpis(result)["Total Orders"] == 2
        assert result.since == datetime(2024, 5, 3, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_unknown_report_raises(self, engine, may_window):
        """Test unknown report raises"""
        with pytest.raises(UnknownReportError):
            await engine.compute("sales-by-weather", may_window)

    @pytest.mark.asyncio
    async def test_unknown_report_yields_empty_result(self, engine, may_window):
        """Test unknown report yields empty result"""
        result = await engine.run_report("sales-by-weather", may_window)
        assert result.is_empty
        assert result.error_code == "unknown_report"
        assert result.message == NO_DATA_MESSAGE

    @pytest.mark.asyncio
    async def test_fetch_failure_is_wrapped(self, storefront_tables, may_window):
        """Test fetch failure is wrapped"""
        engine = ReportEngine(FailingSource(storefront_tables))
        with pytest.raises(DataSourceError) as exc:
            await engine.compute("payments-received", may_window)
        assert exc.value.table == "payments"
        assert isinstance(exc.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_fetch_failure_yields_empty_result(self, storefront_tables, may_window):
        """Test fetch failure yields empty result"""
        engine = ReportEngine(FailingSource(storefront_tables))
        result = await engine.run_report("payments-received", may_window)
        assert result.table == []
        assert result.title == "Payments Received"
        assert result.error_code == "data_source_error"


class TestEmptyWindow:
    """Every report over a window with no rows"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("report_id", [d.id for d in registry.definitions()])
    async def test_report_is_empty_with_zero_kpis(self, report_id, may_window):
        """Test report is empty with zero kpis"""
        result = await ReportEngine(MemoryDataSource()).compute(report_id, may_window)

        assert result.table == []
        assert result.chart is None
        assert result.message == NO_DATA_MESSAGE
        assert result.error_code is None
        assert len(result.kpis) == 4
        assert all(kpi.value == 0 for kpi in result.kpis)
        with pytest.raises(EmptyReportError):
            to_csv(result)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("report_id", ORDER_WINDOWED_REPORTS)
    async def test_order_reports_empty_with_catalog_loaded(self, engine, report_id):
        """Test order reports empty with catalog loaded"""
        window = DateRange(datetime(2023, 1, 1), datetime(2023, 2, 1))
        result = await engine.compute(report_id, window)

        assert result.table == []
        assert result.chart is None
        assert all(kpi.value == 0 for kpi in result.kpis)

    @pytest.mark.asyncio
    async def test_window_without_orders(self, engine, kpis):
        """Test window without orders"""
        window = DateRange(datetime(2023, 1, 1), datetime(2023, 2, 1))
        result = await engine.compute("sales-summary", window)
        assert result.table == []
        assert kpis(result)["Total Revenue"] == 0
        assert result.kpis[0].display == "₹0"


class TestReportSession:
    """Tests for last-request-wins sessions"""

    @pytest.mark.asyncio
    async def test_newer_request_supersedes_older(self, storefront_tables, may_window):
        """Test newer request supersedes older"""
        source = GatedSource(storefront_tables)
        session = ReportSession(ReportEngine(source))

        first = asyncio.create_task(session.request("sales-summary", may_window))
        await asyncio.sleep(0)
        second = asyncio.create_task(session.request("orders-by-status", may_window))
        await asyncio.sleep(0)
        source.gate.set()

        assert await first is None
        latest = await second
        assert latest.report_id == "orders-by-status"
        assert session.current is latest
        assert session.token == 2
        assert not session.busy

    @pytest.mark.asyncio
    async def test_sequential_requests(self, engine, may_window):
        """Test sequential requests"""
        session = ReportSession(engine)
        first = await session.request("sales-summary", may_window)
        second = await session.request("refunds", may_window)
        assert first.report_id == "sales-summary"
        assert session.current is second


class TestCalendarDates:
    """Date-only columns keep their day in any report timezone"""

    @pytest.mark.asyncio
    async def test_expense_month_west_of_utc(self, memory_source, may_window):
        """Test expense month west of utc"""
        engine = ReportEngine(memory_source, timezone="America/New_York")
        result = await engine.compute("expense-summary", may_window)

        assert [row["month"] for row in result.table] == ["May 2024"]
        assert result.table[0]["amount"] == 1800

    @pytest.mark.asyncio
    async def test_profit_loss_not_split_across_months(self, memory_source, may_window):
        """Test profit loss not split across months"""
        engine = ReportEngine(memory_source, timezone="America/New_York")
        result = await engine.compute("profit-loss", may_window)

        assert [row["month"] for row in result.table] == ["May 2024"]
        assert result.table[0]["expenses"] == 1800
        assert result.table[0]["revenue"] == 3500
