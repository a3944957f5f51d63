"""
Expense and Profit Reports

Expenses are bucketed by calendar month (``"Mon YYYY"``). Profit & loss
accumulates order revenue and expenses independently per month before
deriving profit and margin.
"""

from typing import Any, Dict

import polars as pl

from ..aggregations import (
    MONTH_LABEL,
    UNCATEGORIZED,
    add_shares,
    average,
    column_total,
    group_totals,
    money,
    monthly,
    percent,
    ranked,
)
from ..models import ReportCategory, ReportFilters, ReportResult
from ..presentation import bar_chart, count_kpi, currency_kpi, percent_kpi, pie_chart
from ..registry import report
from ..rows import ReportRows

# Orders that never turned into revenue
NON_REVENUE_STATUSES = ["cancelled", "returned"]


def _expenses(rows: ReportRows) -> pl.DataFrame:
    return rows.frame("expenses").with_columns(pl.col("category").fill_null(UNCATEGORIZED))


@report(
    "expense-summary",
    name="Expense Summary",
    category=ReportCategory.EXPENSES,
    description="Monthly expense totals",
    tables=("expenses",),
)
def expense_summary(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    expenses = _expenses(rows)
    months = monthly(expenses, "date", sums={"amount": "amount"}, count="entries")

    top_by_month: Dict[Any, str] = {}
    per_category = ranked(
        group_totals(
            expenses.filter(pl.col("date").is_not_null()).with_columns(pl.col("date").dt.truncate("1mo").alias("bucket")),
            ["bucket", "category"],
            sums={"amount": "amount"},
            count=None,
        ),
        "amount",
    )
    for row in per_category.to_dicts():
        top_by_month.setdefault(row["bucket"], row["category"])

    table = [
        {
            "month": m["month"],
            "entries": m["entries"],
            "amount": money(m["amount"]),
            "top_category": top_by_month.get(m["bucket"], UNCATEGORIZED),
        }
        for m in months.to_dicts()
    ]

    total = column_total(table, "amount")
    kpis = [
        currency_kpi("Total Expenses", total, icon="wallet", color="red"),
        count_kpi("Entries", sum(r["entries"] for r in table), icon="receipt"),
        count_kpi("Months", len(table), icon="calendar", color="blue"),
        currency_kpi("Avg Monthly Expense", average(total, len(table)), icon="trending-up", color="purple"),
    ]
    chart = bar_chart(table, "month", [("amount", "Expenses")], horizontal=False, limit=len(table))
    return rows.result(table, ["month", "entries", "amount", "top_category"], kpis, chart)


@report(
    "expense-by-category",
    name="Expense by Category",
    category=ReportCategory.EXPENSES,
    description="Expenses split by category",
    tables=("expenses",),
)
def expense_by_category(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    grouped = ranked(
        group_totals(_expenses(rows), "category", sums={"value": "amount"}, count="entries"),
        "value",
    )
    groups = grouped.to_dicts()
    table = [{"name": g["category"], "value": money(g["value"])} for g in groups]
    add_shares(table, "value")

    total = column_total(table, "value")
    entries = sum(g["entries"] for g in groups)
    kpis = [
        currency_kpi("Total Expenses", total, icon="wallet", color="red"),
        count_kpi("Categories", len(table), icon="layers"),
        currency_kpi("Largest Category", table[0]["value"] if table else 0, icon="award", color="amber"),
        currency_kpi("Avg per Entry", average(total, entries), icon="receipt", color="purple"),
    ]
    chart = pie_chart(table, "name", "value", label="Expenses")
    return rows.result(table, ["name", "value", "share"], kpis, chart)


@report(
    "profit-loss",
    name="Profit & Loss",
    category=ReportCategory.EXPENSES,
    description="Monthly revenue against expenses",
    tables=("orders", "expenses"),
)
def profit_loss(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    earning = rows.orders.filter(~pl.col("status").is_in(NON_REVENUE_STATUSES) | pl.col("status").is_null())
    revenue = monthly(earning, "created_at", sums={"revenue": "total"}, count=None)
    spending = monthly(rows.frame("expenses"), "date", sums={"expenses": "amount"}, count=None)

    buckets: Dict[Any, Dict[str, float]] = {}
    for row in revenue.to_dicts():
        buckets.setdefault(row["bucket"], {"revenue": 0.0, "expenses": 0.0})["revenue"] += row["revenue"]
    for row in spending.to_dicts():
        buckets.setdefault(row["bucket"], {"revenue": 0.0, "expenses": 0.0})["expenses"] += row["expenses"]

    table = []
    for bucket in sorted(buckets):
        totals = buckets[bucket]
        profit = totals["revenue"] - totals["expenses"]
        table.append({
            "month": bucket.strftime(MONTH_LABEL),
            "revenue": money(totals["revenue"]),
            "expenses": money(totals["expenses"]),
            "profit": money(profit),
            "margin": percent(profit, totals["revenue"]),
        })

    total_revenue = column_total(table, "revenue")
    total_profit = column_total(table, "profit")
    kpis = [
        currency_kpi("Revenue", total_revenue),
        currency_kpi("Expenses", column_total(table, "expenses"), icon="wallet", color="red"),
        currency_kpi("Net Profit", total_profit, icon="trending-up", color="blue"),
        percent_kpi("Margin", percent(total_profit, total_revenue)),
    ]
    chart = bar_chart(
        table, "month", [("revenue", "Revenue"), ("expenses", "Expenses"), ("profit", "Profit")],
        horizontal=False, limit=len(table),
    )
    return rows.result(table, ["month", "revenue", "expenses", "profit", "margin"], kpis, chart)
