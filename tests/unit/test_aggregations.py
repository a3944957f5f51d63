"""
Unit Tests - Aggregation Primitives and Row Normalization
"""
from datetime import datetime, timezone

import polars as pl
import pytest

from storefront_reports.reports.aggregations import (
    DASH,
    UNKNOWN,
    add_shares,
    average,
    average_or_dash,
    column_total,
    count_by,
    daily,
    group_totals,
    monthly,
    percent,
    ranked,
    sessions_for,
    share,
    stock_status,
    title_case,
    title_case_expr,
    turnover_class,
)
from storefront_reports.reports.frames import RowNormalizer, to_bool, to_float, to_int
from storefront_reports.reports.models import Kpi, KpiFormat, ReportResult


class TestScalars:
    """Tests for guarded arithmetic helpers"""

    def test_average_of_nothing_is_zero(self):
        """Test average of nothing is zero"""
        assert average(0, 0) == 0
        assert average(300, 2) == 150

    def test_average_or_dash(self):
        """Test average or dash"""
        assert average_or_dash(100, 0) == DASH
        assert average_or_dash(100, 3) == 33.33

    def test_percent(self):
        """Test percent"""
        assert percent(1, 3) == 33.3
        assert percent(5, 0) == 0

    def test_share_strings(self):
        """Test share strings"""
        assert share(1000, 1800) == "55.6%"
        assert share(800, 1800) == "44.4%"
        assert share(0, 0) == DASH

    @pytest.mark.parametrize("units,expected", [(11, "Fast"), (10, "Normal"), (4, "Normal"), (3, "Slow"), (0, "Slow")])
    def test_turnover_class(self, units, expected):
        """Test turnover class"""
        assert turnover_class(units) == expected

    @pytest.mark.parametrize("qty,expected", [(0, "Out of Stock"), (-1, "Out of Stock"), (5, "Low"), (6, "In Stock")])
    def test_stock_status(self, qty, expected):
        """Test stock status"""
        assert stock_status(qty, 5) == expected

    def test_title_case(self):
        """Test title case"""
        assert title_case("in_transit") == "In transit"
        assert title_case("") == UNKNOWN
        assert title_case(None) == UNKNOWN

    def test_title_case_expr_matches_scalar(self):
        """Test title case expr matches scalar"""
        df = pl.DataFrame({"status": ["in_transit", None, "", "paid"]})
        result = df.select(title_case_expr("status").alias("label"))["label"].to_list()
        assert result == [title_case(v) for v in df["status"].to_list()]


class TestGrouping:
    """Tests for frame aggregation"""

    def test_group_totals_keeps_first_appearance_order(self):
        """Test group totals keeps first appearance order"""
        df = pl.DataFrame({"k": ["b", "a", "b"], "v": [1.0, 2.0, None]})
        result = group_totals(df, "k", sums={"total": "v"})
        assert result.to_dicts() == [
            {"k": "b", "total": 1.0, "count": 2},
            {"k": "a", "total": 2.0, "count": 1},
        ]

    def test_group_totals_distinct(self):
        """Test group totals distinct"""
        df = pl.DataFrame({"k": ["a", "a", "a"], "visitor": ["v1", "v1", None]})
        result = group_totals(df, "k", distinct={"visitors": "visitor"}, count=None)
        assert result["visitors"].to_list() == [1]

    def test_ranked_is_stable_for_ties(self):
        """Test ranked is stable for ties"""
        df = pl.DataFrame({"name": ["x", "y", "z"], "revenue": [10, 20, 10]})
        assert ranked(df, "revenue")["name"].to_list() == ["y", "x", "z"]

    def test_daily_buckets_are_chronological(self):
        """Test daily buckets are chronological"""
        df = pl.DataFrame({
            "created_at": [datetime(2024, 5, 3, 15), datetime(2024, 5, 1, 9), datetime(2024, 5, 3, 8), None],
            "total": [10.0, 20.0, 30.0, 40.0],
        })
        result = daily(df, "created_at", sums={"revenue": "total"})
        assert result["date"].to_list() == ["01 May", "03 May"]
        assert result["revenue"].to_list() == [20.0, 40.0]

    def test_monthly_labels(self):
        """Test monthly labels"""
        df = pl.DataFrame({"date": [datetime(2024, 1, 31), datetime(2023, 12, 1)], "amount": [1.0, 2.0]})
        assert monthly(df, "date", sums={"amount": "amount"})["month"].to_list() == ["Dec 2023", "Jan 2024"]

    def test_sessions_for_ignores_null_sessions(self):
        """Test sessions for ignores null sessions"""
        events = pl.DataFrame({
            "event_type": ["add_to_cart", "add_to_cart", "add_to_cart", "page_view"],
            "session_id": ["s1", "s1", None, "s2"],
        })
        assert sessions_for(events, "add_to_cart") == {"s1"}

    def test_add_shares_and_totals(self):
        """Test add shares and totals"""
        rows = add_shares([{"value": 1000.0}, {"value": 800.0}], "value")
        assert [r["share"] for r in rows] == ["55.6%", "44.4%"]
        assert column_total(rows + [{"value": DASH}], "value") == 1800

    def test_count_by_is_ordered(self):
        """Test count by is ordered"""
        assert list(count_by([{"s": "b"}, {"s": "a"}, {"s": "b"}], "s").items()) == [("b", 2), ("a", 1)]


class TestRowNormalizer:
    """Tests for typed frame construction"""

    def test_coercions(self):
        """Test coercions"""
        assert to_float("12.50") == 12.5
        assert to_float("abc") == 0
        assert to_float(None) == 0
        assert to_float(float("nan")) == 0
        assert to_int("3") == 3
        assert to_bool("true") is True
        assert to_bool("0") is False

    def test_frame_has_table_schema(self):
        """Test frame has table schema"""
        frame = RowNormalizer().frame("orders", [{"id": "o1", "total": "99.5", "status": "Delivered", "extra": 1}])
        assert frame.columns[0] == "id"
        assert "extra" not in frame.columns
        row = frame.to_dicts()[0]
        assert row["total"] == 99.5
        assert row["status"] == "delivered"
        assert row["discount"] == 0
        assert row["coupon_code"] is None

    def test_timestamps_converted_to_local_time(self):
        """Test timestamps converted to local time"""
        normalizer = RowNormalizer("Asia/Kolkata")
        frame = normalizer.frame("orders", [{"id": "o1", "created_at": "2024-05-01T20:00:00Z"}])
        assert frame["created_at"][0] == datetime(2024, 5, 2, 1, 30)

    def test_date_only_strings_are_not_shifted(self):
        """Test date only strings are not shifted"""
        normalizer = RowNormalizer("America/New_York")
        frame = normalizer.frame("expenses", [{"id": "e1", "amount": 10, "date": "2024-05-01"}])
        assert frame["date"][0] == datetime(2024, 5, 1)

    def test_unparseable_timestamp_is_null(self):
        """Test unparseable timestamp is null"""
        frame = RowNormalizer().frame("orders", [{"id": "o1", "created_at": "yesterday"}])
        assert frame["created_at"][0] is None

    def test_aware_datetime_values(self):
        """Test aware datetime values"""
        value = datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
        frame = RowNormalizer().frame("payments", [{"id": "p1", "created_at": value}])
        assert frame["created_at"][0] == datetime(2024, 5, 1, 12)

    def test_scroll_depth_read_from_metadata(self):
        """Test scroll depth read from metadata"""
        frame = RowNormalizer().frame("analytics_events", [
            {"event_type": "scroll_depth", "metadata": {"depth": "75"}},
            {"event_type": "page_view", "metadata": None},
        ])
        assert frame["scroll_depth"].to_list() == [75, None]

    def test_product_defaults(self):
        """Test product defaults"""
        frame = RowNormalizer().frame("products", [{"id": "p1", "low_stock_threshold": None, "is_active": None}])
        row = frame.to_dicts()[0]
        assert row["low_stock_threshold"] == 5
        assert row["is_active"] is True

    def test_empty_rows_keep_schema(self):
        """Test empty rows keep schema"""
        frame = RowNormalizer().frame("payments", [])
        assert frame.is_empty()
        assert frame.schema["amount"] == pl.Float64


class TestKpiDisplay:
    """Tests for KPI display strings"""

    def test_currency(self):
        """Test currency"""
        assert Kpi(label="Revenue", value=300, format=KpiFormat.CURRENCY).display == "₹300"
        assert Kpi(label="Revenue", value=1333.333, format=KpiFormat.CURRENCY).display == "₹1,333.33"

    def test_zero_currency(self):
        """Test zero currency"""
        assert Kpi(label="Revenue", value=0.0, format=KpiFormat.CURRENCY).display == "₹0"

    def test_percent_and_number(self):
        """Test percent and number"""
        assert Kpi(label="Rate", value=48.6, format=KpiFormat.PERCENT).display == "48.6%"
        assert Kpi(label="Orders", value=1200).display == "1,200"


class TestReportResult:
    """Tests for ReportResult defaults"""

    def test_generated_at_is_utc_aware(self):
        """Test generated at is utc aware"""
        result = ReportResult.empty("sales-summary")
        assert result.generated_at.tzinfo is not None
        assert result.generated_at.utcoffset().total_seconds() == 0
