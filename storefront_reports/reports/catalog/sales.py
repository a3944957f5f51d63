"""
Sales Reports

Revenue broken down by customer, category, product, variant, coupon and day,
net daily revenue, and the return/cancellation history.
"""

import polars as pl

from ..aggregations import (
    DASH,
    UNKNOWN,
    add_shares,
    average,
    average_or_dash,
    column_total,
    count_by,
    daily,
    group_totals,
    money,
    ranked,
    title_case,
)
from ..models import ReportCategory, ReportFilters, ReportResult
from ..presentation import bar_chart, count_kpi, currency_kpi, line_chart, pie_chart
from ..registry import report
from ..rows import ReportRows

ITEM_TABLES = ("orders", "order_items", "products", "categories")
CATALOG = ("products", "categories")
RETURN_STATUSES = ["returned", "cancelled"]
LIST_DATE = "%d %b %Y"


@report(
    "sales-by-customer",
    name="Sales by Customer",
    category=ReportCategory.SALES,
    description="Revenue breakdown by customer",
    tables=("orders", "profiles"),
    static_tables=("profiles",),
)
def sales_by_customer(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    orders = rows.with_customers(rows.orders)
    grouped = ranked(
        group_totals(orders, "customer", sums={"revenue": "total"}, count="orders"),
        "revenue", "orders",
    )
    table = [
        {
            "name": g["customer"],
            "orders": g["orders"],
            "revenue": money(g["revenue"]),
            "avg_order_value": average(g["revenue"], g["orders"]),
        }
        for g in grouped.to_dicts()
    ]
    add_shares(table, "revenue")

    revenue = column_total(table, "revenue")
    kpis = [
        count_kpi("Customers", len(table), icon="users"),
        currency_kpi("Total Revenue", revenue),
        count_kpi("Total Orders", sum(r["orders"] for r in table), icon="shopping-cart", color="blue"),
        currency_kpi("Avg Revenue per Customer", average(revenue, len(table)), icon="trending-up", color="purple"),
    ]
    chart = bar_chart(table, "name", [("revenue", "Revenue")])
    return rows.result(table, ["name", "orders", "revenue", "avg_order_value", "share"], kpis, chart)


@report(
    "sales-by-category",
    name="Sales by Category",
    category=ReportCategory.SALES,
    description="Revenue breakdown by product category",
    tables=ITEM_TABLES,
    static_tables=CATALOG,
)
def sales_by_category(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    grouped = ranked(
        group_totals(rows.sold_items(), "category_name", sums={"revenue": "total", "units": "quantity"}, count=None),
        "revenue", "units",
    )
    table = [
        {"name": g["category_name"], "units": g["units"], "revenue": money(g["revenue"])}
        for g in grouped.to_dicts()
    ]
    add_shares(table, "revenue")

    kpis = [
        count_kpi("Categories", len(table), icon="layers"),
        currency_kpi("Total Revenue", column_total(table, "revenue")),
        count_kpi("Units Sold", sum(r["units"] for r in table), icon="package", color="blue"),
        currency_kpi("Top Category Revenue", table[0]["revenue"] if table else 0, icon="award", color="amber"),
    ]
    chart = bar_chart(table, "name", [("revenue", "Revenue"), ("units", "Units")])
    return rows.result(table, ["name", "units", "revenue", "share"], kpis, chart)


@report(
    "sales-by-product",
    name="Sales by Product",
    category=ReportCategory.SALES,
    description="Revenue breakdown by individual product",
    tables=ITEM_TABLES,
    static_tables=CATALOG,
)
def sales_by_product(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    items = rows.sold_items().with_columns(pl.col("product_name").fill_null(UNKNOWN).alias("name"))
    grouped = ranked(
        group_totals(items, "name", sums={"revenue": "total", "units": "quantity"}, count=None),
        "revenue", "units",
    )
    table = [
        {
            "name": g["name"],
            "units": g["units"],
            "revenue": money(g["revenue"]),
            "avg_price": average_or_dash(g["revenue"], g["units"]),
        }
        for g in grouped.to_dicts()
    ]
    add_shares(table, "revenue")

    revenue = column_total(table, "revenue")
    units = sum(r["units"] for r in table)
    kpis = [
        count_kpi("Products Sold", len(table), icon="shopping-bag"),
        currency_kpi("Total Revenue", revenue),
        count_kpi("Units Sold", units, icon="package", color="blue"),
        currency_kpi("Avg Selling Price", average(revenue, units), icon="tag", color="purple"),
    ]
    chart = bar_chart(table, "name", [("revenue", "Revenue"), ("units", "Units")])
    return rows.result(table, ["name", "units", "revenue", "avg_price", "share"], kpis, chart)


@report(
    "sales-by-variant",
    name="Sales by Variant",
    category=ReportCategory.SALES,
    description="Revenue breakdown by product variant",
    tables=ITEM_TABLES,
    static_tables=CATALOG,
)
def sales_by_variant(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    items = rows.sold_items().with_columns(
        pl.col("product_name").fill_null(UNKNOWN).alias("product"),
        pl.col("variant_name").fill_null(DASH).alias("variant"),
    )
    grouped = ranked(
        group_totals(items, ["product", "variant"], sums={"revenue": "total", "units": "quantity"}, count=None),
        "revenue", "units",
    )
    table = [
        {"product": g["product"], "variant": g["variant"], "units": g["units"], "revenue": money(g["revenue"])}
        for g in grouped.to_dicts()
    ]
    add_shares(table, "revenue")
    for row in table:
        row["label"] = row["product"] if row["variant"] == DASH else f"{row['product']} ({row['variant']})"

    kpis = [
        count_kpi("Variants Sold", len(table), icon="layers"),
        currency_kpi("Total Revenue", column_total(table, "revenue")),
        count_kpi("Units Sold", sum(r["units"] for r in table), icon="package", color="blue"),
        currency_kpi("Top Variant Revenue", table[0]["revenue"] if table else 0, icon="award", color="amber"),
    ]
    chart = bar_chart(table, "label", [("revenue", "Revenue")])
    for row in table:
        del row["label"]
    return rows.result(table, ["product", "variant", "units", "revenue", "share"], kpis, chart)


@report(
    "sales-by-coupon",
    name="Sales by Coupon",
    category=ReportCategory.SALES,
    description="Orders and revenue per coupon code",
    tables=("orders",),
)
def sales_by_coupon(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    orders = rows.orders.filter(pl.col("coupon_code").is_not_null()).with_columns(
        pl.col("coupon_code").str.to_uppercase().alias("coupon")
    )
    grouped = ranked(
        group_totals(orders, "coupon", sums={"revenue": "total", "discount": "discount"}, count="orders"),
        "revenue", "orders",
    )
    table = [
        {
            "coupon": g["coupon"],
            "orders": g["orders"],
            "discount": money(g["discount"]),
            "revenue": money(g["revenue"]),
            "avg_discount": average(g["discount"], g["orders"]),
        }
        for g in grouped.to_dicts()
    ]

    kpis = [
        count_kpi("Coupons Used", len(table), icon="ticket"),
        count_kpi("Coupon Orders", sum(r["orders"] for r in table), icon="shopping-cart", color="blue"),
        currency_kpi("Total Discount", column_total(table, "discount"), icon="percent", color="red"),
        currency_kpi("Coupon Revenue", column_total(table, "revenue")),
    ]
    chart = bar_chart(table, "coupon", [("revenue", "Revenue"), ("discount", "Discount")])
    return rows.result(table, ["coupon", "orders", "discount", "revenue", "avg_discount"], kpis, chart)


@report(
    "sales-summary",
    name="Sales Summary",
    category=ReportCategory.SALES,
    description="Overall sales summary with trends",
    tables=("orders",),
)
def sales_summary(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    days = daily(rows.orders, "created_at", sums={"revenue": "total", "discount": "discount"}, count="orders")
    table = [
        {
            "date": d["date"],
            "orders": d["orders"],
            "revenue": money(d["revenue"]),
            "avg_order_value": average(d["revenue"], d["orders"]),
        }
        for d in days.to_dicts()
    ]

    revenue = column_total(table, "revenue")
    orders = sum(r["orders"] for r in table)
    kpis = [
        currency_kpi("Total Revenue", revenue),
        count_kpi("Total Orders", orders, icon="shopping-cart", color="blue"),
        currency_kpi("Avg Order Value", average(revenue, orders), icon="trending-up", color="purple"),
        currency_kpi("Total Discount", money(days["discount"].sum()), icon="percent", color="red"),
    ]
    chart = line_chart(table, "date", [("revenue", "Revenue"), ("orders", "Orders")])
    return rows.result(table, ["date", "orders", "revenue", "avg_order_value"], kpis, chart)


@report(
    "sales-by-date",
    name="Daily Sales Report",
    category=ReportCategory.SALES,
    description="Day-wise sales breakdown",
    tables=("orders",),
)
def sales_by_date(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    days = daily(
        rows.orders,
        "created_at",
        sums={"revenue": "total", "discount": "discount", "tax": "tax", "shipping": "shipping_charge"},
        count="orders",
    )
    table = [
        {
            "date": d["date"],
            "orders": d["orders"],
            "discount": money(d["discount"]),
            "tax": money(d["tax"]),
            "shipping": money(d["shipping"]),
            "revenue": money(d["revenue"]),
        }
        for d in days.to_dicts()
    ]

    revenue = column_total(table, "revenue")
    kpis = [
        currency_kpi("Total Revenue", revenue),
        count_kpi("Days with Sales", len(table), icon="calendar", color="blue"),
        currency_kpi("Best Day Revenue", max((r["revenue"] for r in table), default=0), icon="award", color="amber"),
        currency_kpi("Avg Daily Revenue", average(revenue, len(table)), icon="trending-up", color="purple"),
    ]
    chart = bar_chart(table, "date", [("revenue", "Revenue")], horizontal=False, limit=len(table))
    return rows.result(table, ["date", "orders", "discount", "tax", "shipping", "revenue"], kpis, chart)


@report(
    "sales-return-history",
    name="Sales Return History",
    category=ReportCategory.SALES,
    description="Returned and cancelled orders",
    tables=("orders", "payments", "profiles"),
    static_tables=("payments", "profiles"),
)
def sales_return_history(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    returns = (
        rows.with_customers(rows.orders.filter(pl.col("status").is_in(RETURN_STATUSES)))
        .join(rows.latest_payments(), left_on="id", right_on="order_id", how="left")
        .sort("created_at", nulls_last=True, maintain_order=True)
    )
    table = [
        {
            "order_number": o["order_number"] or DASH,
            "date": o["created_at"].strftime(LIST_DATE) if o["created_at"] else DASH,
            "customer": o["customer"],
            "status": title_case(o["status"]),
            "total": money(o["total"]),
            "refund_amount": money(o["refund_amount"]),
            "refund_status": title_case(o["payment_status_latest"]) if o["payment_status_latest"] else DASH,
        }
        for o in returns.to_dicts()
    ]

    by_status = count_by(table, "status")
    kpis = [
        count_kpi("Returned Orders", by_status.get("Returned", 0), icon="rotate-ccw", color="amber"),
        count_kpi("Cancelled Orders", by_status.get("Cancelled", 0), icon="x-circle", color="red"),
        currency_kpi("Value Lost", column_total(table, "total"), icon="trending-down", color="red"),
        currency_kpi("Refunded", column_total(table, "refund_amount"), icon="credit-card", color="purple"),
    ]
    chart = pie_chart([{"name": k, "value": v} for k, v in by_status.items()], "name", "value", label="Orders")
    return rows.result(
        table,
        ["order_number", "date", "customer", "status", "total", "refund_amount", "refund_status"],
        kpis,
        chart,
    )


@report(
    "revenue-by-date",
    name="Net Revenue by Day",
    category=ReportCategory.SALES,
    description="Daily revenue from orders that were not cancelled or returned",
    tables=("orders",),
)
def revenue_by_date(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    kept = rows.orders.filter(~pl.col("status").is_in(RETURN_STATUSES) | pl.col("status").is_null())
    days = daily(kept, "created_at", sums={"revenue": "total"}, count="orders")
    table = [
        {
            "date": d["date"],
            "orders": d["orders"],
            "revenue": money(d["revenue"]),
            "avg_order_value": average(d["revenue"], d["orders"]),
        }
        for d in days.to_dicts()
    ]

    revenue = column_total(table, "revenue")
    orders = sum(r["orders"] for r in table)
    kpis = [
        currency_kpi("Net Revenue", revenue),
        count_kpi("Orders", orders, icon="shopping-cart", color="blue"),
        currency_kpi("Avg Order Value", average(revenue, orders), icon="trending-up", color="purple"),
        count_kpi("Excluded Orders", len(rows.orders) - len(kept), icon="x-circle", color="red"),
    ]
    chart = line_chart(table, "date", [("revenue", "Revenue"), ("orders", "Orders")])
    return rows.result(table, ["date", "orders", "revenue", "avg_order_value"], kpis, chart)
