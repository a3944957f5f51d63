"""
Customer Reports
"""

import polars as pl

from storefront_reports.config import get_settings

from ..aggregations import (
    DASH,
    GUEST,
    UNKNOWN,
    add_shares,
    average,
    column_total,
    daily,
    group_totals,
    money,
    percent,
    ranked,
)
from ..models import ReportCategory, ReportFilters, ReportResult
from ..presentation import bar_chart, count_kpi, currency_kpi, line_chart, percent_kpi, pie_chart
from ..registry import report
from ..rows import ReportRows

LIST_DATE = "%d %b %Y"

NEW_BUYERS = "New"
RETURNING_BUYERS = "Returning"


def _spend_by_user(orders: pl.DataFrame) -> pl.DataFrame:
    return group_totals(
        orders.filter(pl.col("user_id").is_not_null()),
        "user_id",
        sums={"spent": "total"},
        count="orders",
    )


def _customers(rows: ReportRows, profiles: pl.DataFrame) -> pl.DataFrame:
    """Profiles with their order count and spend, one row per user"""
    return (
        profiles.unique(subset="user_id", keep="first", maintain_order=True)
        .join(_spend_by_user(rows.orders), on="user_id", how="left")
        .with_columns(
            pl.coalesce(pl.col("full_name"), pl.col("email"), pl.lit(UNKNOWN)).alias("name"),
            pl.col("orders").fill_null(0),
            pl.col("spent").fill_null(0.0),
        )
        .sort("created_at", nulls_last=True, maintain_order=True)
    )


def _joined(value) -> str:
    return value.strftime(LIST_DATE) if value else DASH


@report(
    "customer-list",
    name="Customer List",
    category=ReportCategory.CUSTOMERS,
    description="All registered customers with lifetime orders",
    tables=("profiles", "orders"),
    static_tables=("profiles", "orders"),
)
def customer_list(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    table = [
        {
            "name": c["name"],
            "email": c["email"] or DASH,
            "mobile": c["mobile_number"] or DASH,
            "orders": c["orders"],
            "total_spent": money(c["spent"]),
            "joined": _joined(c["created_at"]),
            "status": "Blocked" if c["is_blocked"] else "Active",
        }
        for c in _customers(rows, rows.frame("profiles")).to_dicts()
    ]

    blocked = sum(1 for r in table if r["status"] == "Blocked")
    kpis = [
        count_kpi("Customers", len(table), icon="users"),
        count_kpi("Active", len(table) - blocked, icon="user-check", color="green"),
        count_kpi("Blocked", blocked, icon="user-x", color="red"),
        currency_kpi("Total Spent", column_total(table, "total_spent"), color="blue"),
    ]
    return rows.result(
        table,
        ["name", "email", "mobile", "orders", "total_spent", "joined", "status"],
        kpis,
    )


@report(
    "top-customers",
    name="Top Customers",
    category=ReportCategory.CUSTOMERS,
    description="Highest spending customers in the period",
    tables=("orders", "profiles"),
    static_tables=("profiles",),
)
def top_customers(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    limit = get_settings().reports.top_customers_limit
    orders = rows.with_customers(rows.orders)
    grouped = ranked(
        orders.group_by("user_id", maintain_order=True).agg(
            pl.col("customer").first(),
            pl.col("profile_email").first(),
            pl.col("total").fill_null(0).sum().alias("revenue"),
            pl.len().alias("orders"),
        ),
        "revenue", "orders",
    ).head(limit)
    table = [
        {
            "name": g["customer"],
            "email": g["profile_email"] or DASH,
            "orders": g["orders"],
            "revenue": money(g["revenue"]),
            "avg_order_value": average(g["revenue"], g["orders"]),
        }
        for g in grouped.to_dicts()
    ]

    revenue = column_total(table, "revenue")
    orders_count = sum(r["orders"] for r in table)
    kpis = [
        count_kpi("Customers", len(table), icon="users"),
        currency_kpi("Revenue", revenue),
        count_kpi("Orders", orders_count, icon="shopping-cart", color="blue"),
        currency_kpi("Avg Order Value", average(revenue, orders_count), icon="trending-up", color="purple"),
    ]
    chart = bar_chart(table, "name", [("revenue", "Revenue")])
    return rows.result(table, ["name", "email", "orders", "revenue", "avg_order_value"], kpis, chart)


@report(
    "new-customers",
    name="New Customers",
    category=ReportCategory.CUSTOMERS,
    description="Customers who signed up in the period",
    tables=("profiles", "orders"),
)
def new_customers(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    profiles = rows.frame("profiles")
    table = [
        {
            "name": c["name"],
            "email": c["email"] or DASH,
            "joined": _joined(c["created_at"]),
            "orders": c["orders"],
            "spent": money(c["spent"]),
        }
        for c in _customers(rows, profiles).to_dicts()
    ]
    signups = [
        {"date": d["date"], "signups": d["signups"]}
        for d in daily(profiles.unique(subset="user_id", keep="first"), "created_at", count="signups").to_dicts()
    ]

    ordered = sum(1 for r in table if r["orders"] > 0)
    kpis = [
        count_kpi("New Customers", len(table), icon="user-plus"),
        count_kpi("Placed an Order", ordered, icon="shopping-cart", color="blue"),
        currency_kpi("Spent", column_total(table, "spent")),
        percent_kpi("Conversion", percent(ordered, len(table))),
    ]
    chart = line_chart(signups, "date", [("signups", "Signups")])
    return rows.result(table, ["name", "email", "joined", "orders", "spent"], kpis, chart)


@report(
    "customer-retention",
    name="New vs Returning Customers",
    category=ReportCategory.CUSTOMERS,
    description="Buyers split by whether they signed up in the period",
    tables=("orders", "profiles"),
)
def customer_retention(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    """
    Profiles are read inside the window, so a buyer with a profile here
    signed up in the period; any other registered buyer is returning.
    """
    signed_up = (
        rows.frame("profiles")
        .filter(pl.col("user_id").is_not_null())
        .select("user_id")
        .unique()
        .with_columns(pl.lit(True).alias("_signed_up"))
    )
    orders = rows.orders.join(signed_up, on="user_id", how="left").with_columns(
        pl.when(pl.col("user_id").is_null())
        .then(pl.lit(GUEST))
        .when(pl.col("_signed_up").fill_null(False))
        .then(pl.lit(NEW_BUYERS))
        .otherwise(pl.lit(RETURNING_BUYERS))
        .alias("segment")
    )
    grouped = ranked(
        group_totals(orders, "segment", sums={"revenue": "total"}, count="orders", distinct={"customers": "user_id"}),
        "revenue", "orders",
    )
    table = [
        {
            "segment": g["segment"],
            "customers": g["customers"],
            "orders": g["orders"],
            "revenue": money(g["revenue"]),
            "avg_order_value": average(g["revenue"], g["orders"]),
        }
        for g in grouped.to_dicts()
    ]
    add_shares(table, "revenue")

    by_segment = {r["segment"]: r for r in table}
    new = by_segment.get(NEW_BUYERS, {}).get("customers", 0)
    returning = by_segment.get(RETURNING_BUYERS, {}).get("customers", 0)
    kpis = [
        count_kpi("Buyers", new + returning, icon="users"),
        count_kpi("New Buyers", new, icon="user-plus", color="green"),
        count_kpi("Returning Buyers", returning, icon="repeat", color="blue"),
        percent_kpi("Repeat Rate", percent(returning, new + returning)),
    ]
    chart = pie_chart(table, "segment", "revenue", label="Revenue")
    return rows.result(table, ["segment", "customers", "orders", "revenue", "avg_order_value", "share"], kpis, chart)
