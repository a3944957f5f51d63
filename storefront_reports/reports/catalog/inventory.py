"""
Inventory Reports

Stock position and product movement. The catalog tables are snapshots and are
read without the date window; product-performance lists only products sold
inside it.
"""

import polars as pl

from ..aggregations import UNKNOWN, column_total, money, ranked, stock_status, turnover_class
from ..models import ReportCategory, ReportFilters, ReportResult
from ..presentation import bar_chart, count_kpi, currency_kpi
from ..registry import report
from ..rows import ReportRows

CATALOG = ("products", "categories")


def _catalog(rows: ReportRows) -> pl.DataFrame:
    """Products with category names, narrowed by the category filter"""
    catalog = rows.product_catalog().with_columns(pl.col("name").fill_null(UNKNOWN))
    category = rows.filters.category_name
    if category:
        catalog = catalog.filter(pl.col("category_name").str.to_lowercase() == category.lower())
    return catalog


@report(
    "stock-summary",
    name="Stock Summary",
    category=ReportCategory.INVENTORY,
    description="Current stock levels and stock value",
    tables=CATALOG,
    static_tables=CATALOG,
)
def stock_summary(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    catalog = ranked(
        _catalog(rows).with_columns((pl.col("stock_quantity") * pl.col("price")).alias("value")),
        "value", "stock_quantity",
    )
    table = [
        {
            "name": p["name"],
            "category": p["category_name"],
            "stock": p["stock_quantity"],
            "price": money(p["price"]),
            "value": money(p["value"]),
            "status": stock_status(p["stock_quantity"], p["low_stock_threshold"]),
        }
        for p in catalog.to_dicts()
    ]

    attention = sum(1 for r in table if r["status"] != "In Stock")
    kpis = [
        count_kpi("Products", len(table), icon="package"),
        count_kpi("Units in Stock", sum(r["stock"] for r in table), icon="boxes", color="blue"),
        currency_kpi("Stock Value", column_total(table, "value")),
        count_kpi("Needs Restock", attention, icon="alert-triangle", color="red"),
    ]
    chart = bar_chart(table, "name", [("value", "Stock Value")])
    return rows.result(table, ["name", "category", "stock", "price", "value", "status"], kpis, chart)


@report(
    "low-stock",
    name="Low Stock Report",
    category=ReportCategory.INVENTORY,
    description="Products at or below their restock threshold",
    tables=CATALOG,
    static_tables=CATALOG,
)
def low_stock(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    low = (
        _catalog(rows)
        .filter((pl.col("stock_quantity") > 0) & (pl.col("stock_quantity") <= pl.col("low_stock_threshold")))
        .with_columns((pl.col("low_stock_threshold") - pl.col("stock_quantity")).alias("shortfall"))
    )
    low = ranked(low, "shortfall")
    table = [
        {
            "name": p["name"],
            "category": p["category_name"],
            "stock": p["stock_quantity"],
            "threshold": p["low_stock_threshold"],
            "shortfall": p["shortfall"],
        }
        for p in low.to_dicts()
    ]

    kpis = [
        count_kpi("Low Stock Products", len(table), icon="alert-triangle", color="amber"),
        count_kpi("Units Remaining", sum(r["stock"] for r in table), icon="boxes", color="blue"),
        count_kpi("Units to Restock", sum(r["shortfall"] for r in table), icon="truck", color="red"),
        count_kpi("Categories Affected", len({r["category"] for r in table}), icon="layers", color="purple"),
    ]
    chart = bar_chart(table, "name", [("stock", "Stock"), ("threshold", "Threshold")])
    return rows.result(table, ["name", "category", "stock", "threshold", "shortfall"], kpis, chart)


@report(
    "out-of-stock",
    name="Out of Stock",
    category=ReportCategory.INVENTORY,
    description="Products with no stock left",
    tables=CATALOG,
    static_tables=CATALOG,
)
def out_of_stock(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    empty = _catalog(rows).filter(pl.col("stock_quantity") <= 0).sort("name", nulls_last=True, maintain_order=True)
    table = [
        {
            "name": p["name"],
            "category": p["category_name"],
            "price": money(p["price"]),
            "status": "Active" if p["is_active"] else "Inactive",
        }
        for p in empty.to_dicts()
    ]

    kpis = [
        count_kpi("Out of Stock", len(table), icon="package-x", color="red"),
        count_kpi("Active Listings", sum(1 for r in table if r["status"] == "Active"), icon="eye", color="amber"),
        count_kpi("Categories Affected", len({r["category"] for r in table}), icon="layers", color="purple"),
        currency_kpi("Catalog Price Total", column_total(table, "price"), icon="tag"),
    ]
    return rows.result(table, ["name", "category", "price", "status"], kpis)


@report(
    "product-performance",
    name="Product Performance",
    category=ReportCategory.INVENTORY,
    description="Units sold, revenue and turnover per product",
    tables=("orders", "order_items") + CATALOG,
    static_tables=CATALOG,
)
def product_performance(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    sold = (
        rows.sold_items()
        .filter(pl.col("resolved_product_id").is_not_null())
        .group_by("resolved_product_id")
        .agg(
            pl.col("quantity").fill_null(0).sum().alias("units"),
            pl.col("total").fill_null(0).sum().alias("revenue"),
        )
        .rename({"resolved_product_id": "id"})
    )
    performance = ranked(sold.join(_catalog(rows), on="id", how="inner"), "revenue", "units")
    table = [
        {
            "name": p["name"],
            "units": p["units"],
            "revenue": money(p["revenue"]),
            "stock_left": p["stock_quantity"],
            "stock_status": stock_status(p["stock_quantity"], p["low_stock_threshold"]),
            "turnover": turnover_class(p["units"]),
        }
        for p in performance.to_dicts()
    ]

    kpis = [
        count_kpi("Products", len(table), icon="package"),
        count_kpi("Units Sold", sum(r["units"] for r in table), icon="shopping-bag", color="blue"),
        currency_kpi("Revenue", column_total(table, "revenue")),
        count_kpi("Fast Movers", sum(1 for r in table if r["turnover"] == "Fast"), icon="zap", color="amber"),
    ]
    chart = bar_chart(table, "name", [("revenue", "Revenue"), ("units", "Units")])
    return rows.result(
        table,
        ["name", "units", "revenue", "stock_left", "stock_status", "turnover"],
        kpis,
        chart,
    )
