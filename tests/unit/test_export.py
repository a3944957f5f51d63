"""
Unit Tests - CSV Export
"""
import csv
import io
from datetime import date

import pytest

from storefront_reports.reports import EmptyReportError, ReportResult, export_filename, to_csv


def parse(text: str):
    return list(csv.reader(io.StringIO(text)))


class TestCsvExport:
    """Tests for to_csv"""

    def test_header_then_one_line_per_row(self):
        """Test header then one line per row"""
        result = ReportResult(
            report_id="expense-by-category",
            table=[
                {"name": "rent", "value": 1000.0, "share": "55.6%"},
                {"name": "ads", "value": 800.0, "share": "44.4%"},
            ],
            columns=["name", "value", "share"],
        )
        text = to_csv(result)
        rows = parse(text)

        assert len(rows) == len(result.table) + 1
        assert rows[0] == ["name", "value", "share"]
        assert rows[1] == ["rent", "1000.0", "55.6%"]
        assert text.endswith("\n")

    def test_values_follow_column_order(self):
        """Test values follow column order"""
        result = ReportResult(
            report_id="x",
            table=[{"b": 2, "a": 1, "hidden": "x"}],
            columns=["a", "b"],
        )
        assert parse(to_csv(result)) == [["a", "b"], ["1", "2"]]

    def test_columns_default_to_first_row_keys(self):
        """Test columns default to first row keys"""
        result = ReportResult(report_id="x", table=[{"stage": "Visited", "sessions": 4}])
        assert parse(to_csv(result))[0] == ["stage", "sessions"]

    def test_special_characters_are_quoted(self):
        """Test special characters are quoted"""
        result = ReportResult(
            report_id="refunds",
            table=[{"reason": 'Wrong size, "XL" sent\nasked for M', "amount": 500}],
            columns=["reason", "amount"],
        )
        text = to_csv(result)
        rows = parse(text)

        assert len(rows) == 2
        assert rows[1] == ['Wrong size, "XL" sent\nasked for M', "500"]
        assert '"Wrong size, ""XL"" sent' in text

    def test_missing_values_are_empty_cells(self):
        """Test missing values are empty cells"""
        result = ReportResult(report_id="x", table=[{"a": None}], columns=["a", "b"])
        assert parse(to_csv(result))[1] == ["", ""]

    def test_empty_table_cannot_be_exported(self):
        """Test empty table cannot be exported"""
        with pytest.raises(EmptyReportError):
            to_csv(ReportResult.empty("sales-summary"))

    def test_filename(self):
        """Test filename"""
        assert export_filename("sales-summary", date(2024, 5, 31)) == "sales-summary-2024-05-31.csv"
        assert export_filename("refunds").startswith("refunds-")
