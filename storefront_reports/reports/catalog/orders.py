"""
Order Reports
"""

import polars as pl

from ..aggregations import (
    DASH,
    add_shares,
    average,
    column_total,
    count_by,
    daily,
    group_totals,
    money,
    percent,
    ranked,
    title_case,
    title_case_expr,
)
from ..models import ReportCategory, ReportFilters, ReportResult
from ..presentation import bar_chart, count_kpi, currency_kpi, number_kpi, percent_kpi, pie_chart
from ..registry import report
from ..rows import ReportRows

LIFECYCLE = ("new", "confirmed", "packed", "shipped", "delivered", "cancelled", "returned")
IN_PROGRESS = ("New", "Confirmed", "Packed", "Shipped")
LIST_DATE = "%d %b %Y"


def _payment_state(order) -> str:
    """Latest payment status, falling back to the status stored on the order"""
    status = order["payment_status_latest"] or order["payment_status"]
    return title_case(status) if status else DASH


@report(
    "orders-by-status",
    name="Orders by Status",
    category=ReportCategory.ORDERS,
    description="Order count and revenue per status",
    tables=("orders",),
)
def orders_by_status(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    orders = rows.orders.with_columns(title_case_expr("status").alias("label"))
    grouped = ranked(
        group_totals(orders, "label", sums={"revenue": "total"}, count="value"),
        "value", "revenue",
    )
    table = [
        {"name": g["label"], "value": g["value"], "revenue": money(g["revenue"])}
        for g in grouped.to_dicts()
    ]
    add_shares(table, "value")

    by_name = {r["name"]: r["value"] for r in table}
    kpis = [
        count_kpi("Total Orders", sum(r["value"] for r in table), icon="shopping-cart"),
        currency_kpi("Revenue", column_total(table, "revenue")),
        count_kpi("Delivered", by_name.get("Delivered", 0), icon="check-circle", color="green"),
        count_kpi("Cancelled", by_name.get("Cancelled", 0), icon="x-circle", color="red"),
    ]
    chart = pie_chart(table, "name", "value", label="Orders")
    return rows.result(table, ["name", "value", "revenue", "share"], kpis, chart)


@report(
    "order-fulfillment",
    name="Order Fulfillment",
    category=ReportCategory.ORDERS,
    description="Orders at each fulfillment stage",
    tables=("orders",),
)
def order_fulfillment(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    counts = count_by(rows.orders.select("status").to_dicts(), "status")
    stages = [s for s in LIFECYCLE if s in counts] + [s for s in counts if s not in LIFECYCLE]
    table = [{"stage": title_case(s), "orders": counts[s]} for s in stages]
    add_shares(table, "orders")

    total = sum(r["orders"] for r in table)
    delivered = counts.get("delivered", 0)
    kpis = [
        count_kpi("Total Orders", total, icon="shopping-cart"),
        count_kpi("In Progress", sum(r["orders"] for r in table if r["stage"] in IN_PROGRESS), icon="loader", color="amber"),
        count_kpi("Delivered", delivered, icon="check-circle", color="green"),
        percent_kpi("Fulfillment Rate", percent(delivered, total)),
    ]
    chart = bar_chart(table, "stage", [("orders", "Orders")], horizontal=False)
    return rows.result(table, ["stage", "orders", "share"], kpis, chart)


@report(
    "orders-by-date",
    name="Orders by Date",
    category=ReportCategory.ORDERS,
    description="Daily order volume",
    tables=("orders",),
)
def orders_by_date(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    days = daily(rows.orders, "created_at", sums={"value": "total"}, count="orders")
    table = [
        {
            "date": d["date"],
            "orders": d["orders"],
            "value": money(d["value"]),
            "avg_order_value": average(d["value"], d["orders"]),
        }
        for d in days.to_dicts()
    ]

    orders = sum(r["orders"] for r in table)
    kpis = [
        count_kpi("Total Orders", orders, icon="shopping-cart"),
        currency_kpi("Order Value", column_total(table, "value")),
        number_kpi("Avg Orders per Day", average(orders, len(table))),
        count_kpi("Peak Day Orders", max((r["orders"] for r in table), default=0), icon="award", color="amber"),
    ]
    chart = bar_chart(table, "date", [("orders", "Orders")], horizontal=False, limit=len(table))
    return rows.result(table, ["date", "orders", "value", "avg_order_value"], kpis, chart)


@report(
    "cancelled-orders",
    name="Cancelled Orders",
    category=ReportCategory.ORDERS,
    description="Cancelled orders with payment state",
    tables=("orders", "payments", "profiles"),
    static_tables=("payments", "profiles"),
)
def cancelled_orders(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    cancelled = (
        rows.with_customers(rows.orders.filter(pl.col("status") == "cancelled"))
        .join(rows.latest_payments(), left_on="id", right_on="order_id", how="left")
        .sort("created_at", nulls_last=True, maintain_order=True)
    )
    table = [
        {
            "order_number": o["order_number"] or DASH,
            "date": o["created_at"].strftime(LIST_DATE) if o["created_at"] else DASH,
            "customer": o["customer"],
            "payment_method": o["payment_method"].upper() if o["payment_method"] else "UNKNOWN",
            "total": money(o["total"]),
            "payment_status": _payment_state(o),
            "reason": o["refund_reason"] or DASH,
        }
        for o in cancelled.to_dicts()
    ]

    value = column_total(table, "total")
    kpis = [
        count_kpi("Cancelled Orders", len(table), icon="x-circle", color="red"),
        currency_kpi("Value Cancelled", value, icon="trending-down", color="red"),
        currency_kpi("Avg Cancelled Value", average(value, len(table)), icon="indian-rupee", color="amber"),
        count_kpi("Prepaid Cancellations", sum(1 for r in table if r["payment_method"] != "COD"), icon="credit-card", color="purple"),
    ]
    return rows.result(
        table,
        ["order_number", "date", "customer", "payment_method", "total", "payment_status", "reason"],
        kpis,
    )
