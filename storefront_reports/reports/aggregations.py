"""
Aggregation Primitives

Reusable building blocks shared by every report:
- Group-by-key running sums and counts
- Descending ranking and chronological day/month bucketing
- Guarded averages, percentages and share strings
- Turnover and stock-status classification
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

import polars as pl

# Sentinel labels for missing relations
GUEST = "Guest"
UNKNOWN = "Unknown"
UNCATEGORIZED = "Uncategorized"
UNASSIGNED = "Unassigned"
DASH = "-"

# Turnover thresholds (units sold in window)
FAST_MOVING_UNITS = 10
NORMAL_MOVING_UNITS = 3

DAY_LABEL = "%d %b"
MONTH_LABEL = "%b %Y"

Number = Union[int, float]


def safe_div(numerator: Number, denominator: Number) -> float:
    """Division that yields 0 for an empty denominator"""
    if not denominator:
        return 0.0
    return numerator / denominator


def money(value: Number) -> float:
    return round(float(value or 0), 2)


def average(total: Number, count: Number) -> float:
    """Rounded average, 0 when there is nothing to average"""
    return money(safe_div(total, count))


def average_or_dash(total: Number, count: Number) -> Union[float, str]:
    """Table-cell average, '-' when there is nothing to average"""
    if not count:
        return DASH
    return money(total / count)


def percent(part: Number, total: Number) -> float:
    """Percentage rounded to one decimal, 0 for an empty total"""
    if not total:
        return 0.0
    return round(part / total * 100, 1)


def share(part: Number, total: Number) -> str:
    """Percentage string such as '44.4%', '-' for an empty total"""
    if not total:
        return DASH
    return f"{part / total * 100:.1f}%"


def turnover_class(units_sold: Number) -> str:
    """Fast / Normal / Slow movers by units sold in the window"""
    if units_sold > FAST_MOVING_UNITS:
        return "Fast"
    if units_sold > NORMAL_MOVING_UNITS:
        return "Normal"
    return "Slow"


def stock_status(quantity: int, threshold: int) -> str:
    if quantity <= 0:
        return "Out of Stock"
    if quantity <= threshold:
        return "Low"
    return "In Stock"


def title_case(value: Optional[str]) -> str:
    """'in_transit' -> 'In transit'"""
    if not value:
        return UNKNOWN
    text = value.replace("_", " ")
    return text[:1].upper() + text[1:]


def group_totals(
    df: pl.DataFrame,
    by: Union[str, Sequence[str]],
    sums: Optional[Mapping[str, str]] = None,
    count: Optional[str] = "count",
    distinct: Optional[Mapping[str, str]] = None,
) -> pl.DataFrame:
    """
    Partition rows by ``by`` and accumulate per group.

    Args:
        df: Source frame
        by: Grouping column(s)
        sums: Output column -> source column to sum
        count: Name of the row-count column, None to skip it
        distinct: Output column -> source column to count distinct non-null values

    Returns:
        One row per group, in first-appearance order
    """
    aggs: List[pl.Expr] = []
    for alias, column in (sums or {}).items():
        aggs.append(pl.col(column).fill_null(0).sum().alias(alias))
    for alias, column in (distinct or {}).items():
        aggs.append(pl.col(column).drop_nulls().n_unique().alias(alias))
    if count:
        aggs.append(pl.len().alias(count))
    return df.group_by(by, maintain_order=True).agg(aggs)


def ranked(df: pl.DataFrame, metric: str, *tiebreakers: str) -> pl.DataFrame:
    """Sort descending by the primary metric, stable for ties"""
    columns = [metric, *tiebreakers]
    return df.sort(columns, descending=[True] * len(columns), maintain_order=True)


def bucketed(
    df: pl.DataFrame,
    timestamp: str,
    every: str,
    label_format: str,
    sums: Optional[Mapping[str, str]] = None,
    count: Optional[str] = "count",
    label: str = "date",
    distinct: Optional[Mapping[str, str]] = None,
) -> pl.DataFrame:
    """
    Calendar buckets in chronological order.

    Rows without a timestamp cannot fall in any window and are skipped.
    The returned frame keeps the ``bucket`` start for later merging.
    """
    dated = df.filter(pl.col(timestamp).is_not_null()).with_columns(
        pl.col(timestamp).dt.truncate(every).alias("bucket")
    )
    grouped = group_totals(dated, "bucket", sums=sums, count=count, distinct=distinct)
    return grouped.sort("bucket").with_columns(
        pl.col("bucket").dt.strftime(label_format).alias(label)
    )


def daily(df: pl.DataFrame, timestamp: str, sums=None, count="count", label="date", distinct=None) -> pl.DataFrame:
    return bucketed(df, timestamp, "1d", DAY_LABEL, sums=sums, count=count, label=label, distinct=distinct)


def monthly(df: pl.DataFrame, timestamp: str, sums=None, count="count", label="month") -> pl.DataFrame:
    return bucketed(df, timestamp, "1mo", MONTH_LABEL, sums=sums, count=count, label=label)


def sessions_for(events: pl.DataFrame, event_type: str) -> Set[str]:
    """Distinct session ids that emitted ``event_type``"""
    return set(
        events.filter(
            (pl.col("event_type") == event_type) & pl.col("session_id").is_not_null()
        )["session_id"].to_list()
    )


def column_total(rows: Iterable[Mapping[str, Any]], key: str) -> float:
    """Sum a numeric table column, ignoring sentinel strings"""
    return money(sum(row[key] for row in rows if isinstance(row.get(key), (int, float))))


def add_shares(
    rows: List[Dict[str, Any]],
    metric: str,
    column: str = "share",
) -> List[Dict[str, Any]]:
    """Attach each row's share of the metric total"""
    total = sum(row[metric] for row in rows)
    for row in rows:
        row[column] = share(row[metric], total)
    return rows


def count_by(rows: Iterable[Mapping[str, Any]], key: str) -> Dict[Any, int]:
    """Ordered occurrence counts of a column"""
    counts: Dict[Any, int] = {}
    for row in rows:
        counts[row[key]] = counts.get(row[key], 0) + 1
    return counts


def label_of(value: Optional[str], fallback: str = UNKNOWN) -> str:
    return value if value else fallback


def title_case_expr(column: str) -> pl.Expr:
    """Column-wise ``title_case``"""
    text = pl.col(column).str.replace_all("_", " ")
    return (
        pl.when(pl.col(column).is_null() | (pl.col(column) == ""))
        .then(pl.lit(UNKNOWN))
        .otherwise(text.str.slice(0, 1).str.to_uppercase() + text.str.slice(1))
    )
