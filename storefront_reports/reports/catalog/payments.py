"""
Payment Reports
"""

import polars as pl

from ..aggregations import (
    DASH,
    add_shares,
    average,
    column_total,
    group_totals,
    money,
    ranked,
    title_case,
    title_case_expr,
)
from ..models import ReportCategory, ReportFilters, ReportResult
from ..presentation import count_kpi, currency_kpi, pie_chart
from ..registry import report
from ..rows import ReportRows

UNKNOWN_METHOD = "UNKNOWN"
LIST_DATE = "%d %b %Y"


def _method_label(column: str) -> pl.Expr:
    return pl.col(column).str.to_uppercase().fill_null(UNKNOWN_METHOD).alias("method_label")


def _payments_with_orders(rows: ReportRows) -> pl.DataFrame:
    """Payments in chronological order with their order number and method label"""
    return (
        rows.frame("payments")
        .join(rows.order_lookup().select("order_id", "order_number"), on="order_id", how="left")
        .with_columns(_method_label("method"))
        .sort("created_at", nulls_last=True, maintain_order=True)
    )


def _date(value) -> str:
    return value.strftime(LIST_DATE) if value else DASH


@report(
    "payments-received",
    name="Payments Received",
    category=ReportCategory.PAYMENTS,
    description="Every payment recorded in the period",
    tables=("payments", "orders"),
    static_tables=("orders",),
)
def payments_received(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    table = []
    for p in _payments_with_orders(rows).to_dicts():
        amount = money(p["amount"])
        refunded = money(p["refund_amount"])
        table.append({
            "date": _date(p["created_at"]),
            "order_number": p["order_number"] or DASH,
            "method": p["method_label"],
            "status": title_case(p["status"]),
            "amount": amount,
            "refunded": refunded,
            "net": money(amount - refunded),
        })

    kpis = [
        count_kpi("Payments", len(table), icon="credit-card"),
        currency_kpi("Amount Received", column_total(table, "amount")),
        currency_kpi("Refunded", column_total(table, "refunded"), icon="rotate-ccw", color="red"),
        currency_kpi("Net Received", column_total(table, "net"), icon="wallet", color="blue"),
    ]
    return rows.result(table, ["date", "order_number", "method", "status", "amount", "refunded", "net"], kpis)


@report(
    "payments-by-method",
    name="Payments by Method",
    category=ReportCategory.PAYMENTS,
    description="Order value split by payment method",
    tables=("orders",),
)
def payments_by_method(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    orders = rows.orders.with_columns(_method_label("payment_method"))
    grouped = ranked(
        group_totals(orders, "method_label", sums={"value": "total"}, count="count"),
        "value", "count",
    )
    table = [
        {"name": g["method_label"], "count": g["count"], "value": money(g["value"])}
        for g in grouped.to_dicts()
    ]
    add_shares(table, "value")

    value = column_total(table, "value")
    orders_count = sum(r["count"] for r in table)
    kpis = [
        count_kpi("Payment Methods", len(table), icon="credit-card"),
        count_kpi("Orders", orders_count, icon="shopping-cart", color="blue"),
        currency_kpi("Order Value", value),
        currency_kpi("Avg Order Value", average(value, orders_count), icon="trending-up", color="purple"),
    ]
    chart = pie_chart(table, "name", "value", label="Order Value")
    return rows.result(table, ["name", "count", "value", "share"], kpis, chart)


@report(
    "payment-status",
    name="Payment Status",
    category=ReportCategory.PAYMENTS,
    description="Payments grouped by status",
    tables=("payments", "orders"),
    static_tables=("orders",),
)
def payment_status(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    payments = rows.frame("payments").with_columns(
        title_case_expr("status").alias("label")
    )
    grouped = ranked(
        group_totals(payments, "label", sums={"amount": "amount"}, count="count"),
        "count", "amount",
    )
    table = [
        {"name": g["label"], "count": g["count"], "amount": money(g["amount"])}
        for g in grouped.to_dicts()
    ]
    add_shares(table, "count")

    by_name = {r["name"]: r for r in table}
    kpis = [
        count_kpi("Payments", sum(r["count"] for r in table), icon="credit-card"),
        currency_kpi("Paid", by_name.get("Paid", {}).get("amount", 0)),
        currency_kpi("Pending", by_name.get("Pending", {}).get("amount", 0), icon="clock", color="amber"),
        currency_kpi("Failed", by_name.get("Failed", {}).get("amount", 0), icon="x-circle", color="red"),
    ]
    chart = pie_chart(table, "name", "count", label="Payments")
    return rows.result(table, ["name", "count", "amount", "share"], kpis, chart)


@report(
    "refunds",
    name="Refund Report",
    category=ReportCategory.PAYMENTS,
    description="Refunded payments and their reasons",
    tables=("payments", "orders"),
    static_tables=("orders",),
)
def refunds(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    refunded = _payments_with_orders(rows).filter(
        (pl.col("refund_amount") > 0) | (pl.col("status") == "refunded")
    )
    table = [
        {
            "date": _date(p["created_at"]),
            "order_number": p["order_number"] or DASH,
            "method": p["method_label"],
            "amount": money(p["amount"]),
            "refund_amount": money(p["refund_amount"]),
            "reason": p["refund_reason"] or DASH,
        }
        for p in refunded.to_dicts()
    ]

    total = column_total(table, "refund_amount")
    kpis = [
        count_kpi("Refunds", len(table), icon="rotate-ccw", color="red"),
        currency_kpi("Refunded Amount", total, icon="indian-rupee", color="red"),
        currency_kpi("Avg Refund", average(total, len(table)), icon="trending-down", color="amber"),
        currency_kpi("Original Amount", column_total(table, "amount"), icon="credit-card", color="blue"),
    ]
    return rows.result(table, ["date", "order_number", "method", "amount", "refund_amount", "reason"], kpis)
