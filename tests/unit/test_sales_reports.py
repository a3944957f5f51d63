"""
Unit Tests - Sales Reports
"""
import pytest

from storefront_reports.reports import ReportFilters
from storefront_reports.reports.models import ChartKind


class TestSalesReports:
    """Sales reports over the May 2024 storefront"""

    @pytest.mark.asyncio
    async def test_sales_summary(self, engine, may_window, kpis):
        """Test sales summary"""
        result = await engine.compute("sales-summary", may_window)

        assert result.columns == ["date", "orders", "revenue", "avg_order_value"]
        assert result.table == [
            {"date": "03 May", "orders": 2, "revenue": 3000, "avg_order_value": 1500},
            {"date": "10 May", "orders": 1, "revenue": 1000, "avg_order_value": 1000},
        ]
        values = kpis(result)
        assert values["Total Revenue"] == 4000
        assert values["Total Orders"] == 3
        assert values["Avg Order Value"] == 1333.33
        assert values["Total Discount"] == 50
        assert result.chart.kind == ChartKind.LINE
        assert [p["date"] for p in result.chart.data] == ["03 May", "10 May"]

    @pytest.mark.asyncio
    async def test_sales_by_date(self, engine, may_window, kpis):
        """Test sales by date"""
        result = await engine.compute("sales-by-date", may_window)
        assert [r["date"] for r in result.table] == ["03 May", "10 May"]
        assert result.table[0]["discount"] == 50
        assert kpis(result)["Best Day Revenue"] == 3000
        assert kpis(result)["Avg Daily Revenue"] == 2000
        assert result.chart.horizontal is False

    @pytest.mark.asyncio
    async def test_revenue_by_date_skips_cancelled_and_returned(self, engine, may_window, kpis):
        """Test revenue by date skips cancelled and returned"""
        result = await engine.compute("revenue-by-date", may_window)
        assert [(r["date"], r["orders"], r["revenue"]) for r in result.table] == [
            ("03 May", 1, 2500),
            ("10 May", 1, 1000),
        ]
        values = kpis(result)
        assert values["Net Revenue"] == 3500
        assert values["Orders"] == 2
        assert values["Avg Order Value"] == 1750
        assert values["Excluded Orders"] == 1

    @pytest.mark.asyncio
    async def test_sales_by_customer(self, engine, may_window):
        """Test sales by customer"""
        result = await engine.compute("sales-by-customer", may_window)
        assert [(r["name"], r["revenue"], r["share"]) for r in result.table] == [
            ("Asha Rao", 2500, "62.5%"),
            ("Guest", 1000, "25.0%"),
            ("ravi@example.com", 500, "12.5%"),
        ]

    @pytest.mark.asyncio
    async def test_sales_by_category(self, engine, may_window, kpis):
        """Test sales by category"""
        result = await engine.compute("sales-by-category", may_window)
        assert result.table == [
            {"name": "Sarees", "units": 2, "revenue": 3000, "share": "75.0%"},
            {"name": "Jewellery", "units": 2, "revenue": 1000, "share": "25.0%"},
        ]
        assert kpis(result)["Top Category Revenue"] == 3000

    @pytest.mark.asyncio
    async def test_sales_by_category_filtered(self, engine, may_window):
        """Test sales by category filtered"""
        result = await engine.compute("sales-by-category", may_window, ReportFilters(category="jewellery"))
        assert [r["name"] for r in result.table] == ["Jewellery"]

    @pytest.mark.asyncio
    async def test_sales_by_product_resolves_by_name(self, engine, may_window, kpis):
        """Test sales by product resolves by name"""
        result = await engine.compute("sales-by-product", may_window)
        assert [(r["name"], r["units"], r["revenue"]) for r in result.table] == [
            ("Silk Saree", 1, 2000),
            ("Jhumka", 2, 1000),
            ("Cotton Saree", 1, 1000),
        ]
        assert result.table[1]["avg_price"] == 500
        assert kpis(result)["Units Sold"] == 4

    @pytest.mark.asyncio
    async def test_sales_by_product_category_filter_uses_name_match(self, engine, may_window):
        """Test sales by product category filter uses name match"""
        result = await engine.compute("sales-by-product", may_window, ReportFilters(category="Sarees"))
        assert {r["name"] for r in result.table} == {"Silk Saree", "Cotton Saree"}

    @pytest.mark.asyncio
    async def test_sales_by_variant(self, engine, may_window):
        """Test sales by variant"""
        result = await engine.compute("sales-by-variant", may_window)
        assert result.table[0] == {"product": "Silk Saree", "variant": "Red", "units": 1, "revenue": 2000, "share": "50.0%"}
        assert {r["variant"] for r in result.table[1:]} == {"-"}
        assert result.chart.data[0]["label"] == "Silk Saree (Red)"
        assert all("label" not in row for row in result.table)

    @pytest.mark.asyncio
    async def test_sales_by_coupon(self, engine, may_window):
        """Test sales by coupon"""
        result = await engine.compute("sales-by-coupon", may_window)
        assert result.table == [
            {"coupon": "FESTIVE20", "orders": 1, "discount": 50, "revenue": 500, "avg_discount": 50},
        ]

    @pytest.mark.asyncio
    async def test_sales_return_history(self, engine, may_window, kpis):
        """Test sales return history"""
        result = await engine.compute("sales-return-history", may_window)
        assert result.table == [{
            "order_number": "ORD-002",
            "date": "03 May 2024",
            "customer": "ravi@example.com",
            "status": "Cancelled",
            "total": 500,
            "refund_amount": 500,
            "refund_status": "Refunded",
        }]
        values = kpis(result)
        assert values["Cancelled Orders"] == 1
        assert values["Returned Orders"] == 0
        assert result.chart.kind == ChartKind.PIE
