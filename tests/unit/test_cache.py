"""
Unit Tests - Report Cache
"""
import pytest

from storefront_reports.reports import ReportFilters, ReportResult
from storefront_reports.serving.cache import ReportCache, redis_available


class TestReportCache:
    """ReportCache without a Redis connection"""

    def test_key_includes_window_and_filters(self, may_window):
        """Test key includes window and filters"""
        key = ReportCache().key("sales-summary", may_window, ReportFilters(status="delivered"))
        assert key == "reports:sales-summary:202405010000-202406010000:delivered:all"

    def test_key_ignores_all_status(self, may_window):
        """Test key ignores all status"""
        cache = ReportCache()
        assert cache.key("refunds", may_window, ReportFilters(status="all")) == cache.key(
            "refunds", may_window, ReportFilters()
        )

    @pytest.mark.asyncio
    async def test_misses_without_redis(self, may_window):
        """Test misses without redis"""
        assert not redis_available()
        cache = ReportCache()
        result = ReportResult(report_id="refunds", table=[{"amount": 1}])

        assert await cache.put(result, may_window, ReportFilters()) is False
        assert await cache.get("refunds", may_window, ReportFilters()) is None
        assert await cache.invalidate() == 0
