"""
Delivery Reports

Shipment state, cash-on-delivery collection and courier partner performance.
"""

import polars as pl

from ..aggregations import (
    DASH,
    UNASSIGNED,
    add_shares,
    column_total,
    group_totals,
    money,
    percent,
    ranked,
    title_case_expr,
)
from ..models import ReportCategory, ReportFilters, ReportResult
from ..presentation import bar_chart, count_kpi, currency_kpi, percent_kpi, pie_chart
from ..registry import report
from ..rows import ReportRows

DELIVERY_TABLES = ("deliveries", "orders")
IN_TRANSIT = ("Assigned", "Picked", "In transit")


def _by_partner(deliveries: pl.DataFrame) -> pl.DataFrame:
    return deliveries.with_columns(pl.col("partner_name").fill_null(UNASSIGNED).alias("partner"))


@report(
    "delivery-status",
    name="Delivery Status",
    category=ReportCategory.DELIVERY,
    description="Shipments grouped by delivery status",
    tables=DELIVERY_TABLES,
    static_tables=("orders",),
)
def delivery_status(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    deliveries = rows.frame("deliveries").with_columns(title_case_expr("status").alias("label"))
    grouped = ranked(group_totals(deliveries, "label", count="count"), "count")
    table = [{"name": g["label"], "count": g["count"]} for g in grouped.to_dicts()]
    add_shares(table, "count")

    by_name = {r["name"]: r["count"] for r in table}
    kpis = [
        count_kpi("Shipments", sum(by_name.values()), icon="truck"),
        count_kpi("Delivered", by_name.get("Delivered", 0), icon="check-circle", color="green"),
        count_kpi("In Transit", sum(by_name.get(s, 0) for s in IN_TRANSIT), icon="navigation", color="blue"),
        count_kpi("Failed", by_name.get("Failed", 0), icon="x-circle", color="red"),
    ]
    chart = pie_chart(table, "name", "count", label="Shipments")
    return rows.result(table, ["name", "count", "share"], kpis, chart)


@report(
    "cod-collection",
    name="COD Collection",
    category=ReportCategory.DELIVERY,
    description="Cash-on-delivery amounts collected and pending per partner",
    tables=DELIVERY_TABLES,
    static_tables=("orders",),
)
def cod_collection(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    cod = _by_partner(rows.frame("deliveries").filter(pl.col("is_cod"))).with_columns(
        pl.when(pl.col("cod_collected")).then(pl.col("cod_amount")).otherwise(0.0).alias("collected_amount")
    )
    grouped = ranked(
        group_totals(cod, "partner", sums={"cod_amount": "cod_amount", "collected": "collected_amount"}, count="cod_orders"),
        "cod_amount", "cod_orders",
    )
    table = [
        {
            "partner": g["partner"],
            "cod_orders": g["cod_orders"],
            "cod_amount": money(g["cod_amount"]),
            "collected": money(g["collected"]),
            "pending": money(g["cod_amount"] - g["collected"]),
            "collection_rate": percent(g["collected"], g["cod_amount"]),
        }
        for g in grouped.to_dicts()
    ]

    kpis = [
        count_kpi("COD Orders", sum(r["cod_orders"] for r in table), icon="banknote"),
        currency_kpi("COD Amount", column_total(table, "cod_amount"), color="blue"),
        currency_kpi("Collected", column_total(table, "collected")),
        currency_kpi("Pending", column_total(table, "pending"), icon="clock", color="amber"),
    ]
    chart = bar_chart(table, "partner", [("collected", "Collected"), ("pending", "Pending")])
    return rows.result(
        table,
        ["partner", "cod_orders", "cod_amount", "collected", "pending", "collection_rate"],
        kpis,
        chart,
    )


@report(
    "delivery-performance",
    name="Delivery Performance",
    category=ReportCategory.DELIVERY,
    description="Success rate and delivery time per courier partner",
    tables=DELIVERY_TABLES,
    static_tables=("orders",),
)
def delivery_performance(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    deliveries = _by_partner(rows.frame("deliveries")).with_columns(
        ((pl.col("delivered_at") - pl.col("created_at")).dt.total_seconds() / 86400).alias("days")
    )
    delivered = pl.col("status") == "delivered"
    grouped = ranked(
        deliveries.group_by("partner", maintain_order=True).agg(
            pl.len().alias("shipments"),
            delivered.sum().alias("delivered"),
            (pl.col("status") == "failed").sum().alias("failed"),
            pl.col("days").filter(delivered & (pl.col("days") >= 0)).mean().alias("avg_days"),
        ),
        "shipments", "delivered",
    )
    table = [
        {
            "partner": g["partner"],
            "shipments": g["shipments"],
            "delivered": g["delivered"],
            "failed": g["failed"],
            "success_rate": percent(g["delivered"], g["shipments"]),
            "avg_days": round(g["avg_days"], 1) if g["avg_days"] is not None else DASH,
        }
        for g in grouped.to_dicts()
    ]

    shipments = sum(r["shipments"] for r in table)
    delivered_count = sum(r["delivered"] for r in table)
    kpis = [
        count_kpi("Shipments", shipments, icon="truck"),
        count_kpi("Delivered", delivered_count, icon="check-circle", color="green"),
        count_kpi("Failed", sum(r["failed"] for r in table), icon="x-circle", color="red"),
        percent_kpi("Success Rate", percent(delivered_count, shipments)),
    ]
    chart = bar_chart(table, "partner", [("delivered", "Delivered"), ("failed", "Failed")])
    return rows.result(
        table,
        ["partner", "shipments", "delivered", "failed", "success_rate", "avg_days"],
        kpis,
        chart,
    )
