"""
Storefront Analytics Reports

Built from tracked storefront events:
- Page and product views
- Daily traffic with unique visitors
- Session conversion funnel with cart abandonment
- Scroll depth milestones
"""

import polars as pl

from ..aggregations import (
    UNKNOWN,
    add_shares,
    average,
    daily,
    percent,
    ranked,
    sessions_for,
)
from ..models import ReportCategory, ReportFilters, ReportResult
from ..presentation import bar_chart, count_kpi, funnel_chart, line_chart, number_kpi, percent_kpi
from ..registry import report
from ..rows import ReportRows

ROOT_PAGE = "/"

FUNNEL_STAGES = (
    ("page_view", "Visited"),
    ("product_view", "Viewed Product"),
    ("add_to_cart", "Added to Cart"),
    ("checkout_started", "Started Checkout"),
    ("order_completed", "Purchased"),
)

SCROLL_MILESTONES = (25, 50, 75, 100)


def _events(rows: ReportRows, event_type: str) -> pl.DataFrame:
    return rows.frame("analytics_events").filter(pl.col("event_type") == event_type)


@report(
    "page-views",
    name="Page Views",
    category=ReportCategory.ANALYTICS,
    description="Most visited storefront pages",
    tables=("analytics_events",),
)
def page_views(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    views = _events(rows, "page_view").with_columns(pl.col("page_path").fill_null(ROOT_PAGE).alias("page"))
    grouped = ranked(
        views.group_by("page", maintain_order=True).agg(
            pl.len().alias("views"),
            pl.col("visitor_id").drop_nulls().n_unique().alias("visitors"),
        ),
        "views", "visitors",
    )
    table = grouped.select("page", "views", "visitors").to_dicts()
    add_shares(table, "views")

    total_views = sum(r["views"] for r in table)
    visitors = views["visitor_id"].drop_nulls().n_unique()
    kpis = [
        count_kpi("Page Views", total_views, icon="eye"),
        count_kpi("Unique Visitors", visitors, icon="users", color="blue"),
        count_kpi("Pages", len(table), icon="file-text", color="purple"),
        number_kpi("Views per Visitor", average(total_views, visitors)),
    ]
    chart = bar_chart(table, "page", [("views", "Views"), ("visitors", "Visitors")])
    return rows.result(table, ["page", "views", "visitors", "share"], kpis, chart)


@report(
    "traffic-by-date",
    name="Daily Traffic",
    category=ReportCategory.ANALYTICS,
    description="Page views and unique visitors per day",
    tables=("analytics_events",),
)
def traffic_by_date(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    views = _events(rows, "page_view")
    days = daily(views, "created_at", count="views", distinct={"visitors": "visitor_id", "sessions": "session_id"})
    table = [
        {"date": d["date"], "views": d["views"], "visitors": d["visitors"], "sessions": d["sessions"]}
        for d in days.to_dicts()
    ]

    total_views = sum(r["views"] for r in table)
    kpis = [
        count_kpi("Page Views", total_views, icon="eye"),
        count_kpi("Unique Visitors", views["visitor_id"].drop_nulls().n_unique(), icon="users", color="blue"),
        number_kpi("Avg Daily Views", average(total_views, len(table))),
        count_kpi("Busiest Day Views", max((r["views"] for r in table), default=0), icon="award", color="amber"),
    ]
    chart = line_chart(table, "date", [("views", "Views"), ("visitors", "Visitors")])
    return rows.result(table, ["date", "views", "visitors", "sessions"], kpis, chart)


@report(
    "product-views",
    name="Product Views",
    category=ReportCategory.ANALYTICS,
    description="Product views, cart adds and orders per product",
    tables=("analytics_events", "order_items", "orders", "products", "categories"),
    static_tables=("products", "categories"),
)
def product_views(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    engagement = (
        rows.frame("analytics_events")
        .filter(pl.col("product_id").is_not_null())
        .group_by("product_id", maintain_order=True)
        .agg(
            (pl.col("event_type") == "product_view").sum().alias("views"),
            (pl.col("event_type") == "add_to_cart").sum().alias("cart_adds"),
        )
        .filter(pl.col("views") > 0)
    )
    ordered = (
        rows.sold_items()
        .filter(pl.col("resolved_product_id").is_not_null())
        .group_by("resolved_product_id")
        .agg(pl.col("quantity").fill_null(0).sum().alias("units_ordered"))
        .rename({"resolved_product_id": "product_id"})
    )
    catalog = rows.product_catalog().select(
        pl.col("id").alias("product_id"), pl.col("name").alias("product"), "category_name"
    )
    joined = (
        engagement.join(ordered, on="product_id", how="left")
        .join(catalog, on="product_id", how="left")
        .with_columns(
            pl.col("units_ordered").fill_null(0),
            pl.col("product").fill_null(UNKNOWN),
        )
    )
    category = filters.category_name
    if category:
        joined = joined.filter(pl.col("category_name").str.to_lowercase() == category.lower())

    table = [
        {
            "product": p["product"],
            "views": p["views"],
            "cart_adds": p["cart_adds"],
            "units_ordered": p["units_ordered"],
            "conversion": percent(p["units_ordered"], p["views"]),
        }
        for p in ranked(joined, "views", "cart_adds").to_dicts()
    ]

    views = sum(r["views"] for r in table)
    cart_adds = sum(r["cart_adds"] for r in table)
    kpis = [
        count_kpi("Product Views", views, icon="eye"),
        count_kpi("Cart Adds", cart_adds, icon="shopping-cart", color="blue"),
        count_kpi("Units Ordered", sum(r["units_ordered"] for r in table), icon="package", color="green"),
        percent_kpi("View to Cart", percent(cart_adds, views)),
    ]
    chart = bar_chart(table, "product", [("views", "Views"), ("cart_adds", "Cart Adds")])
    return rows.result(table, ["product", "views", "cart_adds", "units_ordered", "conversion"], kpis, chart)


@report(
    "conversion-funnel",
    name="Conversion Funnel",
    category=ReportCategory.ANALYTICS,
    description="Sessions reaching each step from visit to purchase",
    tables=("analytics_events",),
)
def conversion_funnel(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    events = rows.frame("analytics_events")
    stage_sessions = [(label, sessions_for(events, event_type)) for event_type, label in FUNNEL_STAGES]

    table = []
    if any(sessions for _, sessions in stage_sessions):
        entry = len(stage_sessions[0][1])
        previous = None
        for label, sessions in stage_sessions:
            count = len(sessions)
            table.append({
                "stage": label,
                "sessions": count,
                "conversion": percent(count, entry),
                "step_conversion": 100.0 if previous is None else percent(count, previous),
            })
            previous = count

    all_sessions = set(events.filter(pl.col("session_id").is_not_null())["session_id"].to_list())
    cart = dict(stage_sessions)["Added to Cart"]
    purchased = dict(stage_sessions)["Purchased"]
    abandoned = max(len(cart) - len(purchased), 0)
    kpis = [
        count_kpi("Sessions", len(all_sessions), icon="activity"),
        count_kpi("Purchases", len(purchased), icon="shopping-bag", color="green"),
        percent_kpi("Conversion Rate", percent(len(purchased), len(all_sessions)), color="blue"),
        percent_kpi("Cart Abandonment", percent(abandoned, len(cart)), icon="alert-triangle", color="red"),
    ]
    chart = funnel_chart(table, "stage", "sessions")
    return rows.result(table, ["stage", "sessions", "conversion", "step_conversion"], kpis, chart)


@report(
    "scroll-depth",
    name="Scroll Depth",
    category=ReportCategory.ANALYTICS,
    description="How far visitors scroll down storefront pages",
    tables=("analytics_events",),
)
def scroll_depth(rows: ReportRows, filters: ReportFilters) -> ReportResult:
    depths = _events(rows, "scroll_depth")["scroll_depth"].to_list()
    counts = {milestone: depths.count(milestone) for milestone in SCROLL_MILESTONES}

    table = []
    if any(counts.values()):
        table = [{"depth": f"{m}%", "events": counts[m]} for m in SCROLL_MILESTONES]
        add_shares(table, "events")

    total = sum(counts.values())
    kpis = [
        count_kpi("Scroll Events", total, icon="mouse-pointer"),
        count_kpi("Reached 50%", counts[50] + counts[75] + counts[100], icon="chevrons-down", color="blue"),
        count_kpi("Read to Bottom", counts[100], icon="check-circle", color="green"),
        percent_kpi("Completion Rate", percent(counts[100], total)),
    ]
    chart = bar_chart(table, "depth", [("events", "Events")], horizontal=False)
    return rows.result(table, ["depth", "events", "share"], kpis, chart)
