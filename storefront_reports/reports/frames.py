"""
Row Normalization

Turns raw rows from a data source into typed Polars DataFrames:
- Missing or malformed numerics become 0
- Identifiers (UUIDs, ints) become strings
- Blank strings become null so sentinel labels apply
- Timestamps are parsed and shifted into the report timezone; date-only
  values are calendar dates and stay on their day

Source rows are read, never modified.
"""

import math
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

import polars as pl
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_LOW_STOCK_THRESHOLD = 5

Utf8 = pl.Utf8
Float = pl.Float64
Int = pl.Int64
Bool = pl.Boolean
Timestamp = pl.Datetime("us")

SCHEMAS: Dict[str, Dict[str, pl.DataType]] = {
    "orders": {
        "id": Utf8,
        "user_id": Utf8,
        "order_number": Utf8,
        "status": Utf8,
        "payment_method": Utf8,
        "payment_status": Utf8,
        "subtotal": Float,
        "discount": Float,
        "shipping_charge": Float,
        "tax": Float,
        "total": Float,
        "coupon_code": Utf8,
        "created_at": Timestamp,
    },
    "order_items": {
        "id": Utf8,
        "order_id": Utf8,
        "product_id": Utf8,
        "product_name": Utf8,
        "variant_name": Utf8,
        "bundle_id": Utf8,
        "quantity": Int,
        "price": Float,
        "total": Float,
    },
    "payments": {
        "id": Utf8,
        "order_id": Utf8,
        "method": Utf8,
        "status": Utf8,
        "amount": Float,
        "refund_amount": Float,
        "refund_reason": Utf8,
        "created_at": Timestamp,
        "updated_at": Timestamp,
    },
    "deliveries": {
        "id": Utf8,
        "order_id": Utf8,
        "status": Utf8,
        "partner_name": Utf8,
        "is_cod": Bool,
        "cod_amount": Float,
        "cod_collected": Bool,
        "delivered_at": Timestamp,
        "created_at": Timestamp,
    },
    "expenses": {
        "id": Utf8,
        "category": Utf8,
        "description": Utf8,
        "amount": Float,
        "date": Timestamp,
    },
    "profiles": {
        "user_id": Utf8,
        "full_name": Utf8,
        "email": Utf8,
        "mobile_number": Utf8,
        "is_blocked": Bool,
        "created_at": Timestamp,
    },
    "analytics_events": {
        "event_type": Utf8,
        "session_id": Utf8,
        "visitor_id": Utf8,
        "product_id": Utf8,
        "page_path": Utf8,
        "scroll_depth": Int,
        "created_at": Timestamp,
    },
    "products": {
        "id": Utf8,
        "name": Utf8,
        "category_id": Utf8,
        "price": Float,
        "stock_quantity": Int,
        "low_stock_threshold": Int,
        "is_active": Bool,
    },
    "categories": {
        "id": Utf8,
        "name": Utf8,
    },
}

# Columns whose values are compared case-insensitively downstream
LOWERCASE_COLUMNS = {"status", "event_type", "payment_method", "method", "payment_status"}


def to_float(value: Any) -> float:
    """Coerce to float; null, blank and non-numeric values become 0"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        result = float(Decimal(str(value))) if isinstance(value, str) else float(value)
    except (TypeError, ValueError, InvalidOperation):
        return 0.0
    if math.isnan(result) or math.isinf(result):
        return 0.0
    return result


def to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return int(to_float(value))


def to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "t", "1", "yes", "y")
    return bool(value)


def to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class RowNormalizer:
    """
    Converts source rows into typed frames.

    Example:
        normalizer = RowNormalizer(timezone="Asia/Kolkata")
        orders = normalizer.frame("orders", rows)
    """

    def __init__(self, timezone: str = "UTC"):
        self.tz = ZoneInfo(timezone)
        self._converters: List[Tuple[pl.DataType, Callable[[Any], Any]]] = [
            (Utf8, to_text),
            (Float, to_float),
            (Int, to_int),
            (Bool, to_bool),
            (Timestamp, self.to_local_datetime),
        ]

    def to_local_datetime(self, value: Any) -> Optional[datetime]:
        """Parse a timestamp and express it as naive local time"""
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            # calendar dates carry no timezone
            return datetime(value.year, value.month, value.day)
        else:
            text = str(value).strip()
            try:
                day = date.fromisoformat(text)
            except ValueError:
                pass
            else:
                return datetime(day.year, day.month, day.day)
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                logger.debug("Unparseable timestamp dropped", value=str(value))
                return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(self.tz).replace(tzinfo=None)

    def _value(self, table: str, column: str, dtype: pl.DataType, row: Mapping[str, Any]) -> Any:
        if table == "analytics_events" and column == "scroll_depth":
            metadata = row.get("metadata") or {}
            raw = metadata.get("depth") if isinstance(metadata, Mapping) else None
            return to_int(raw) if raw is not None else None
        if table == "products" and column == "low_stock_threshold":
            return to_int(row.get(column)) or DEFAULT_LOW_STOCK_THRESHOLD
        if table == "products" and column == "is_active" and row.get(column) is None:
            return True
        convert = next(func for kind, func in self._converters if kind is dtype)
        value = convert(row.get(column))
        if column in LOWERCASE_COLUMNS and value is not None:
            value = value.lower()
        return value

    def frame(self, table: str, rows: Iterable[Mapping[str, Any]]) -> pl.DataFrame:
        """
        Build a typed DataFrame for ``table``.

        Args:
            table: Logical table name, a key of ``SCHEMAS``
            rows: Raw rows as mappings; unknown keys are ignored

        Returns:
            DataFrame with exactly the table's schema
        """
        schema = SCHEMAS[table]
        rows = list(rows)
        data: Dict[str, List[Any]] = {
            column: [self._value(table, column, dtype, row) for row in rows]
            for column, dtype in schema.items()
        }
        return pl.DataFrame(data, schema=schema)

    def empty(self, table: str) -> pl.DataFrame:
        return pl.DataFrame(schema=SCHEMAS[table])
