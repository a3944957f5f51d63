"""
Test Suite Configuration
"""
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

from storefront_reports.reports import DateRange, ReportEngine
from storefront_reports.sources import MemoryDataSource


def ts(day: int, hour: int = 10, month: int = 5) -> str:
    """ISO timestamp in 2024, UTC"""
    return datetime(2024, month, day, hour, tzinfo=timezone.utc).isoformat()


def event(event_type: str, session: str, visitor: str, **fields: Any) -> Dict[str, Any]:
    return {
        "event_type": event_type,
        "session_id": session,
        "visitor_id": visitor,
        "product_id": fields.get("product_id"),
        "page_path": fields.get("page_path"),
        "metadata": fields.get("metadata"),
        "created_at": fields.get("created_at", ts(6)),
    }


@pytest.fixture
def may_window() -> DateRange:
    """All of May 2024"""
    return DateRange(
        since=datetime(2024, 5, 1, tzinfo=timezone.utc),
        until=datetime(2024, 6, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def storefront_tables() -> Dict[str, List[Dict[str, Any]]]:
    """
    Small storefront covering every table.

    Three orders fall in May 2024 (delivered, cancelled, shipped); one
    delivered order and one expense fall in April.
    """
    return {
        "categories": [
            {"id": "c1", "name": "Sarees"},
            {"id": "c2", "name": "Jewellery"},
        ],
        "products": [
            {"id": "p1", "name": "Silk Saree", "category_id": "c1", "price": 2000,
             "stock_quantity": 10, "low_stock_threshold": 5, "is_active": True},
            {"id": "p2", "name": "Jhumka", "category_id": "c2", "price": 500,
             "stock_quantity": 3, "low_stock_threshold": 5, "is_active": True},
            {"id": "p3", "name": "Cotton Saree", "category_id": "c1", "price": 1000,
             "stock_quantity": 0, "low_stock_threshold": 5, "is_active": False},
        ],
        "profiles": [
            {"user_id": "u1", "full_name": "Asha Rao", "email": "asha@example.com",
             "mobile_number": "9800000001", "is_blocked": False, "created_at": ts(2)},
            {"user_id": "u2", "full_name": None, "email": "ravi@example.com",
             "mobile_number": None, "is_blocked": True, "created_at": ts(1, month=3)},
        ],
        "orders": [
            {"id": "o1", "user_id": "u1", "order_number": "ORD-001", "status": "delivered",
             "payment_method": "upi", "payment_status": "paid", "subtotal": 2500, "discount": 0,
             "shipping_charge": 0, "tax": 0, "total": 2500, "coupon_code": None, "created_at": ts(3, 10)},
            {"id": "o2", "user_id": "u2", "order_number": "ORD-002", "status": "cancelled",
             "payment_method": "upi", "payment_status": "refunded", "subtotal": 550, "discount": 50,
             "shipping_charge": 0, "tax": 0, "total": 500, "coupon_code": "festive20", "created_at": ts(3, 15)},
            {"id": "o3", "user_id": None, "order_number": "ORD-003", "status": "shipped",
             "payment_method": "cod", "payment_status": "pending", "subtotal": 1000, "discount": 0,
             "shipping_charge": 0, "tax": 0, "total": 1000, "coupon_code": None, "created_at": ts(10, 9)},
            {"id": "o4", "user_id": "u1", "order_number": "ORD-004", "status": "delivered",
             "payment_method": "card", "payment_status": "paid", "subtotal": 4000, "discount": 0,
             "shipping_charge": 0, "tax": 0, "total": 4000, "coupon_code": None, "created_at": ts(20, month=4)},
        ],
        "order_items": [
            {"id": "i1", "order_id": "o1", "product_id": "p1", "product_name": "Silk Saree",
             "variant_name": "Red", "quantity": 1, "price": 2000, "total": 2000},
            {"id": "i2", "order_id": "o1", "product_id": "p2", "product_name": "Jhumka",
             "variant_name": None, "quantity": 1, "price": 500, "total": 500},
            {"id": "i3", "order_id": "o2", "product_id": "p2", "product_name": "Jhumka",
             "variant_name": None, "quantity": 1, "price": 500, "total": 500},
            {"id": "i4", "order_id": "o3", "product_id": None, "product_name": "Cotton Saree",
             "variant_name": None, "quantity": 1, "price": 1000, "total": 1000},
            {"id": "i5", "order_id": "o4", "product_id": "p1", "product_name": "Silk Saree",
             "variant_name": "Red", "quantity": 2, "price": 2000, "total": 4000},
        ],
        "payments": [
            {"id": "pay1", "order_id": "o1", "method": "upi", "status": "paid", "amount": 2500,
             "refund_amount": None, "refund_reason": None, "created_at": ts(3, 11)},
            {"id": "pay2", "order_id": "o2", "method": "upi", "status": "refunded", "amount": 500,
             "refund_amount": 500, "refund_reason": "Changed mind", "created_at": ts(3, 16)},
            {"id": "pay3", "order_id": "o3", "method": "cod", "status": "pending", "amount": 1000,
             "refund_amount": None, "refund_reason": None, "created_at": ts(10, 11)},
        ],
        "deliveries": [
            {"id": "d1", "order_id": "o1", "status": "delivered", "partner_name": "Delhivery",
             "is_cod": False, "cod_amount": None, "cod_collected": False,
             "delivered_at": ts(5, 12), "created_at": ts(3, 12)},
            {"id": "d2", "order_id": "o3", "status": "in_transit", "partner_name": None,
             "is_cod": True, "cod_amount": 1000, "cod_collected": False,
             "delivered_at": None, "created_at": ts(10, 12)},
        ],
        "expenses": [
            {"id": "e1", "category": "ads", "description": "Instagram", "amount": 500, "date": "2024-05-05"},
            {"id": "e2", "category": "ads", "description": "Google", "amount": 300, "date": "2024-05-20"},
            {"id": "e3", "category": "rent", "description": "Studio", "amount": 1000, "date": "2024-05-01"},
            {"id": "e4", "category": "rent", "description": "Studio", "amount": 900, "date": "2024-04-01"},
        ],
        "analytics_events": [
            event("page_view", "s1", "v1", page_path="/"),
            event("product_view", "s1", "v1", product_id="p1"),
            event("add_to_cart", "s1", "v1", product_id="p1"),
            event("checkout_started", "s1", "v1", page_path="/checkout"),
            event("order_completed", "s1", "v1", page_path="/checkout/success"),
            event("page_view", "s2", "v2", page_path="/shop"),
            event("product_view", "s2", "v2", product_id="p1"),
            event("add_to_cart", "s2", "v2", product_id="p1"),
            event("page_view", "s3", "v1", page_path="/"),
            event("scroll_depth", "s3", "v1", page_path="/", metadata={"depth": 50}),
            event("scroll_depth", "s3", "v1", page_path="/", metadata={"depth": 100}),
            event("page_view", "s4", "v3"),
        ],
    }


@pytest.fixture
def memory_source(storefront_tables) -> MemoryDataSource:
    return MemoryDataSource(storefront_tables)


@pytest.fixture
def engine(memory_source) -> ReportEngine:
    return ReportEngine(memory_source, timezone="UTC")


def kpis_of(result) -> Dict[str, Any]:
    """KPI label -> value"""
    return {kpi.label: kpi.value for kpi in result.kpis}


@pytest.fixture
def kpis():
    return kpis_of
