"""
Report Rows

The per-request bundle handed to a report function: typed frames for each
fetched table, the request window, and the relational indices reports use
to join tables in memory.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import polars as pl

from .aggregations import GUEST, UNCATEGORIZED, UNKNOWN
from .frames import SCHEMAS
from .models import NO_DATA_MESSAGE, ChartSpec, Kpi, ReportDefinition, ReportFilters, ReportResult
from .window import DateRange


@dataclass
class ReportRows:
    """
    Typed input of a single report computation.

    Frames are already narrowed by the request filters: orders by status,
    and order-dependent tables (items, payments, deliveries) to the
    surviving orders.
    """
    definition: ReportDefinition
    window: DateRange
    filters: ReportFilters = field(default_factory=ReportFilters)
    frames: Dict[str, pl.DataFrame] = field(default_factory=dict)

    def frame(self, table: str) -> pl.DataFrame:
        """Frame for ``table``, empty with the right schema when not fetched"""
        df = self.frames.get(table)
        if df is None:
            return pl.DataFrame(schema=SCHEMAS[table])
        return df

    @property
    def orders(self) -> pl.DataFrame:
        return self.frame("orders")

    # ------------------------------------------------------------------
    # Indices
    # ------------------------------------------------------------------

    def profile_names(self) -> pl.DataFrame:
        """user_id -> display name (full name, else email), one row per user"""
        return (
            self.frame("profiles")
            .unique(subset="user_id", keep="first", maintain_order=True)
            .filter(pl.col("user_id").is_not_null())
            .select(
                "user_id",
                pl.col("email").alias("profile_email"),
                pl.coalesce(pl.col("full_name"), pl.col("email")).alias("profile_name"),
            )
        )

    def with_customers(self, orders: pl.DataFrame) -> pl.DataFrame:
        """
        Attach a ``customer`` label to each order.

        Orders without a user are 'Guest'; users without a profile are 'Unknown'.
        """
        return orders.join(self.profile_names(), on="user_id", how="left").with_columns(
            pl.when(pl.col("user_id").is_null())
            .then(pl.lit(GUEST))
            .otherwise(pl.coalesce(pl.col("profile_name"), pl.lit(UNKNOWN)))
            .alias("customer")
        )

    def order_lookup(self) -> pl.DataFrame:
        """order id -> order number, total, status, payment method"""
        return (
            self.orders
            .unique(subset="id", keep="first", maintain_order=True)
            .select(
                pl.col("id").alias("order_id"),
                "order_number",
                pl.col("total").alias("order_total"),
                pl.col("status").alias("order_status"),
                "payment_method",
                "user_id",
            )
        )

    def latest_payments(self) -> pl.DataFrame:
        """order id -> most recent payment"""
        payments = self.frame("payments")
        return (
            payments
            .filter(pl.col("order_id").is_not_null())
            .sort("created_at", nulls_last=False, maintain_order=True)
            .unique(subset="order_id", keep="last", maintain_order=True)
            .select(
                "order_id",
                pl.col("status").alias("payment_status_latest"),
                "refund_amount",
                "refund_reason",
            )
        )

    def product_catalog(self) -> pl.DataFrame:
        """product id -> name, stock, threshold and category name"""
        categories = (
            self.frame("categories")
            .unique(subset="id", keep="first")
            .select(pl.col("id").alias("category_id"), pl.col("name").alias("category_name"))
        )
        return (
            self.frame("products")
            .unique(subset="id", keep="first", maintain_order=True)
            .join(categories, on="category_id", how="left")
            .with_columns(pl.col("category_name").fill_null(UNCATEGORIZED))
        )

    def sold_items(self) -> pl.DataFrame:
        """
        Order items resolved against the catalog.

        An item matches its product by ``product_id``; when the id is missing
        or no longer in the catalog it falls back to ``product_name``.
        Adds ``resolved_product_id``, ``category_name`` and, when the request
        carries a category filter, keeps only that category.
        """
        items = self.frame("order_items")
        catalog = self.product_catalog()

        known_ids = catalog.select(pl.col("id").alias("product_id"), pl.lit(True).alias("_known"))
        by_name = (
            catalog.filter(pl.col("name").is_not_null())
            .unique(subset="name", keep="first", maintain_order=True)
            .select(pl.col("name").alias("product_name"), pl.col("id").alias("_name_match"))
        )
        resolved = (
            items.join(known_ids, on="product_id", how="left")
            .join(by_name, on="product_name", how="left")
            .with_columns(
                pl.when(pl.col("_known").fill_null(False))
                .then(pl.col("product_id"))
                .otherwise(pl.col("_name_match"))
                .alias("resolved_product_id")
            )
            .drop("_known", "_name_match")
        )
        enriched = resolved.join(
            catalog.select(pl.col("id").alias("resolved_product_id"), "category_name"),
            on="resolved_product_id",
            how="left",
        ).with_columns(pl.col("category_name").fill_null(UNCATEGORIZED))

        category = self.filters.category_name
        if category:
            enriched = enriched.filter(
                pl.col("category_name").str.to_lowercase() == category.lower()
            )
        return enriched

    # ------------------------------------------------------------------
    # Result assembly
    # ------------------------------------------------------------------

    def result(
        self,
        table: List[Dict[str, Any]],
        columns: List[str],
        kpis: List[Kpi],
        chart: Optional[ChartSpec] = None,
    ) -> ReportResult:
        """Package a report's three projections"""
        return ReportResult(
            report_id=self.definition.id,
            title=self.definition.name,
            kpis=kpis,
            chart=chart if table else None,
            table=table,
            columns=columns,
            since=self.window.since,
            until=self.window.until,
            message=None if table else NO_DATA_MESSAGE,
        )
