"""
Unit Tests - Report Windows
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from storefront_reports.reports import (
    DateRange,
    InvalidWindowError,
    custom_window,
    preset_window,
    resolve_window,
)

NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


class TestDateRange:
    """Tests for half-open windows"""

    def test_naive_bounds_are_utc(self):
        """Test naive bounds are utc"""
        window = DateRange(datetime(2024, 5, 1), datetime(2024, 5, 2))
        assert window.since.tzinfo == timezone.utc
        assert window.until.tzinfo == timezone.utc

    def test_inverted_window_rejected(self):
        """Test inverted window rejected"""
        with pytest.raises(InvalidWindowError):
            DateRange(NOW, NOW - timedelta(days=1))

    def test_empty_window_rejected(self):
        """Test empty window rejected"""
        with pytest.raises(InvalidWindowError):
            DateRange(NOW, NOW)

    def test_half_open(self):
        """Test half open"""
        window = DateRange(datetime(2024, 5, 1), datetime(2024, 5, 2))
        assert window.contains(datetime(2024, 5, 1, tzinfo=timezone.utc))
        assert window.contains(datetime(2024, 5, 1, 23, 59, 59))
        assert not window.contains(datetime(2024, 5, 2, tzinfo=timezone.utc))
        assert not window.contains(None)

    def test_aware_values_compared_in_utc(self):
        """Test aware values compared in utc"""
        window = DateRange(datetime(2024, 5, 1), datetime(2024, 5, 2))
        ist = timezone(timedelta(hours=5, minutes=30))
        # 04:00 IST on 1 May is 22:30 UTC on 30 April
        assert not window.contains(datetime(2024, 5, 1, 4, 0, tzinfo=ist))
        assert window.contains(datetime(2024, 5, 2, 4, 0, tzinfo=ist))

    def test_date_bounds_include_partial_last_day(self):
        """Test date bounds include partial last day"""
        window = DateRange(datetime(2024, 5, 1), datetime(2024, 5, 3, 12))
        assert window.date_bounds() == (date(2024, 5, 1), date(2024, 5, 4))
        assert window.contains_date(date(2024, 5, 3))
        assert not window.contains_date(date(2024, 5, 4))

    def test_date_bounds_at_midnight(self):
        """Test date bounds at midnight"""
        window = DateRange(datetime(2024, 5, 1), datetime(2024, 5, 3))
        assert window.date_bounds() == (date(2024, 5, 1), date(2024, 5, 3))
        assert not window.contains_date(date(2024, 5, 3))


class TestPresets:
    """Tests for preset and custom windows"""

    @pytest.mark.parametrize("days", [1, 7, 30, 90, 180, 365])
    def test_preset_spans_days(self, days):
        """Test preset spans days"""
        window = preset_window(days, now=NOW)
        assert window.until == NOW
        assert window.days == days

    def test_preset_accepts_string(self):
        """Test preset accepts string"""
        assert preset_window("7", now=NOW).days == 7

    @pytest.mark.parametrize("days", [0, 2, 400, "week", None])
    def test_unknown_preset_rejected(self, days):
        """Test unknown preset rejected"""
        with pytest.raises(InvalidWindowError):
            preset_window(days, now=NOW)

    def test_custom_window_is_inclusive_of_last_day(self):
        """Test custom window is inclusive of last day"""
        window = custom_window(date(2024, 5, 1), date(2024, 5, 31))
        assert window.since == datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert window.until == datetime(2024, 6, 1, tzinfo=timezone.utc)

    def test_single_day_custom_window(self):
        """Test single day custom window"""
        window = custom_window(date(2024, 5, 1), date(2024, 5, 1))
        assert window.days == 1

    def test_custom_window_rejects_reversed_dates(self):
        """Test custom window rejects reversed dates"""
        with pytest.raises(InvalidWindowError):
            custom_window(date(2024, 5, 2), date(2024, 5, 1))

    def test_resolve_defaults_to_thirty_days(self):
        """Test resolve defaults to thirty days"""
        assert resolve_window(now=NOW).days == 30

    def test_resolve_prefers_explicit_range(self):
        """Test resolve prefers explicit range"""
        window = resolve_window(preset="7", date_from=date(2024, 1, 1), date_to=date(2024, 1, 31), now=NOW)
        assert window.since == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_resolve_half_custom_range_falls_back(self):
        """Test resolve half custom range falls back"""
        window = resolve_window(preset="custom", date_from=date(2024, 1, 1), now=NOW)
        assert window.until == NOW
        assert window.days == 30
