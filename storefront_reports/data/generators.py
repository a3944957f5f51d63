"""
Synthetic Storefront Data Generator

Generates a consistent back-office dataset for demos and development.
Includes:
- Categories and a product catalog with stock levels
- Customer profiles
- Orders with line items, payments and deliveries
- Monthly back-office expenses
- Storefront analytics sessions (views, cart, checkout, scroll depth)

Every table is a list of dicts shaped like the storefront schema, ready for
``MemoryDataSource`` or the database seeder.
"""

import random
import uuid
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import polars as pl
import structlog
from faker import Faker

from storefront_reports.sources import MemoryDataSource

logger = structlog.get_logger(__name__)

fake = Faker("en_IN")

Row = Dict[str, Any]


# =============================================================================
# CONFIGURATION
# =============================================================================

CATEGORIES = [
    ("Sarees", ["Silk Saree", "Cotton Saree", "Chiffon Saree"], (1200, 9000)),
    ("Kurtas", ["Straight Kurta", "Anarkali Kurta", "Printed Kurta"], (600, 3500)),
    ("Jewellery", ["Jhumka", "Bangle Set", "Necklace"], (250, 4000)),
    ("Home Decor", ["Cushion Cover", "Table Runner", "Wall Hanging"], (300, 2500)),
    ("Footwear", ["Juttis", "Kolhapuri", "Sandals"], (500, 2800)),
]

VARIANTS = ["S", "M", "L", "XL", "Free Size", None, None]

PAYMENT_METHODS = [("cod", 0.35), ("upi", 0.40), ("card", 0.15), ("netbanking", 0.10)]
COURIERS = ["Delhivery", "Blue Dart", "Ekart", "Shadowfax", None]
COUPONS = ["WELCOME10", "FESTIVE20", "FREESHIP", "VIP15"]

ORDER_STATUSES = [
    ("new", 0.06),
    ("confirmed", 0.08),
    ("packed", 0.06),
    ("shipped", 0.12),
    ("delivered", 0.58),
    ("cancelled", 0.06),
    ("returned", 0.04),
]

# Orders younger than this never reach a terminal status
RECENT_DAYS = 3
OPEN_STATUSES = ["new", "confirmed", "packed"]

EXPENSE_BUDGETS = {
    "ads": (8000, 25000),
    "packaging": (2000, 6000),
    "delivery": (5000, 15000),
    "staff": (30000, 45000),
    "rent": (20000, 20000),
    "utilities": (1500, 4000),
    "software": (1000, 3000),
}

PAGES = ["/", "/shop", "/collections/new", "/about", "/contact", "/cart"]
SCROLL_MILESTONES = [25, 50, 75, 100]


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


# =============================================================================
# GENERATORS
# =============================================================================

class CatalogGenerator:
    """Generate categories and products"""

    def generate(self, n: int = 60) -> Tuple[List[Row], List[Row]]:
        categories = [{"id": str(uuid.uuid4()), "name": name} for name, _, _ in CATEGORIES]

        products = []
        used_names = set()
        for _ in range(n):
            idx = random.randrange(len(CATEGORIES))
            _, kinds, (low, high) = CATEGORIES[idx]
            name = f"{fake.unique.first_name()} {random.choice(kinds)}"
            if name in used_names:
                continue
            used_names.add(name)

            # Most products are well stocked, a tail runs low or out
            stock = int(np.random.choice(
                [0, random.randint(1, 5), random.randint(6, 200)],
                p=[0.08, 0.17, 0.75],
            ))
            products.append({
                "id": str(uuid.uuid4()),
                "name": name,
                "category_id": categories[idx]["id"],
                "price": round(random.uniform(low, high), -1),
                "stock_quantity": stock,
                "low_stock_threshold": random.choice([5, 5, 5, 10]),
                "is_active": random.random() > 0.05,
            })

        return categories, products


class CustomerGenerator:
    """Generate customer profiles"""

    def generate(self, n: int = 300, start_date: Optional[datetime] = None) -> List[Row]:
        start_date = start_date or datetime.now(timezone.utc) - timedelta(days=540)
        profiles = []
        for _ in range(n):
            joined = fake.date_time_between(start_date=start_date, end_date="now", tzinfo=timezone.utc)
            profiles.append({
                "id": str(uuid.uuid4()),
                "user_id": str(uuid.uuid4()),
                "full_name": fake.name() if random.random() > 0.1 else None,
                "email": fake.unique.email(),
                "mobile_number": fake.msisdn()[:10] if random.random() > 0.2 else None,
                "is_blocked": random.random() < 0.02,
                "created_at": _iso(joined),
            })
        return profiles


class OrderGenerator:
    """Generate orders with line items, payments and deliveries"""

    def __init__(self, profiles: List[Row], products: List[Row]):
        self.user_ids = [p["user_id"] for p in profiles]
        self.products = products

    def _items(self, order_id: str) -> List[Row]:
        n_items = int(np.random.choice([1, 2, 3, 4], p=[0.55, 0.28, 0.12, 0.05]))
        items = []
        for product in random.sample(self.products, k=min(n_items, len(self.products))):
            quantity = int(np.random.choice([1, 2, 3], p=[0.75, 0.2, 0.05]))
            items.append({
                "id": str(uuid.uuid4()),
                "order_id": order_id,
                "product_id": product["id"],
                "product_name": product["name"],
                "variant_name": random.choice(VARIANTS),
                "bundle_id": None,
                "quantity": quantity,
                "price": product["price"],
                "total": round(product["price"] * quantity, 2),
            })
        return items

    def _status(self, created_at: datetime) -> str:
        if (datetime.now(timezone.utc) - created_at).days < RECENT_DAYS:
            return random.choice(OPEN_STATUSES)
        return random.choices(
            [s[0] for s in ORDER_STATUSES],
            weights=[s[1] for s in ORDER_STATUSES],
        )[0]

    def _payment(self, order: Row, created_at: datetime) -> Row:
        status = order["status"]
        method = order["payment_method"]
        refund = None
        if status in ("cancelled", "returned") and method != "cod":
            payment_status = "refunded"
            refund = order["total"]
        elif method == "cod":
            payment_status = "paid" if status == "delivered" else "pending"
        else:
            payment_status = random.choices(["paid", "failed"], weights=[0.95, 0.05])[0]

        return {
            "id": str(uuid.uuid4()),
            "order_id": order["id"],
            "method": method,
            "status": payment_status,
            "amount": order["total"],
            "refund_amount": refund,
            "refund_reason": random.choice(["Customer request", "Damaged in transit", "Size issue"]) if refund else None,
            "created_at": _iso(created_at + timedelta(minutes=random.randint(1, 30))),
            "updated_at": None,
        }

    def _delivery(self, order: Row, created_at: datetime) -> Optional[Row]:
        status = order["status"]
        if status in ("new", "confirmed", "cancelled"):
            return None

        delivered_at = None
        if status in ("delivered", "returned"):
            delivery_status = "delivered"
            delivered_at = _iso(created_at + timedelta(days=random.randint(2, 9), hours=random.randint(0, 12)))
        elif status == "shipped":
            delivery_status = random.choice(["picked", "in_transit", "in_transit"])
        else:
            delivery_status = random.choice(["pending", "assigned"])
        if status == "shipped" and random.random() < 0.1:
            delivery_status = "failed"

        is_cod = order["payment_method"] == "cod"
        return {
            "id": str(uuid.uuid4()),
            "order_id": order["id"],
            "status": delivery_status,
            "partner_name": random.choice(COURIERS),
            "is_cod": is_cod,
            "cod_amount": order["total"] if is_cod else None,
            "cod_collected": is_cod and delivery_status == "delivered",
            "delivered_at": delivered_at,
            "created_at": _iso(created_at + timedelta(hours=random.randint(4, 48))),
        }

    def generate(
        self,
        n: int = 1500,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, List[Row]]:
        """Generate n orders and the rows that hang off them"""
        end_date = end_date or datetime.now(timezone.utc)
        start_date = start_date or end_date - timedelta(days=365)

        tables: Dict[str, List[Row]] = {"orders": [], "order_items": [], "payments": [], "deliveries": []}
        for i in range(n):
            order_id = str(uuid.uuid4())
            created_at = fake.date_time_between(start_date=start_date, end_date=end_date, tzinfo=timezone.utc)
            items = self._items(order_id)

            subtotal = round(sum(item["total"] for item in items), 2)
            coupon = random.choice(COUPONS) if random.random() < 0.2 else None
            discount = round(subtotal * 0.1, 2) if coupon else 0.0
            shipping = 0.0 if subtotal >= 999 else 79.0
            tax = round((subtotal - discount) * 0.05, 2)

            order = {
                "id": order_id,
                "user_id": random.choice(self.user_ids) if random.random() > 0.1 else None,
                "order_number": f"ORD-{created_at:%y%m}-{i:05d}",
                "status": self._status(created_at),
                "payment_method": random.choices(
                    [m[0] for m in PAYMENT_METHODS],
                    weights=[m[1] for m in PAYMENT_METHODS],
                )[0],
                "subtotal": subtotal,
                "discount": discount,
                "shipping_charge": shipping,
                "tax": tax,
                "total": round(subtotal - discount + shipping + tax, 2),
                "coupon_code": coupon,
                "created_at": _iso(created_at),
            }
            payment = self._payment(order, created_at)
            order["payment_status"] = payment["status"]

            tables["orders"].append(order)
            tables["order_items"].extend(items)
            tables["payments"].append(payment)
            delivery = self._delivery(order, created_at)
            if delivery:
                tables["deliveries"].append(delivery)

        return tables


class ExpenseGenerator:
    """Generate monthly back-office expenses"""

    def generate(self, start_date: date, end_date: date) -> List[Row]:
        expenses = []
        month = date(start_date.year, start_date.month, 1)
        while month <= end_date:
            for category, (low, high) in EXPENSE_BUDGETS.items():
                # Skip the odd month for variable spend
                if low != high and random.random() < 0.1:
                    continue
                day = min(month + timedelta(days=random.randint(0, 27)), end_date)
                expenses.append({
                    "id": str(uuid.uuid4()),
                    "category": category,
                    "description": f"{category.title()} - {month:%b %Y}",
                    "amount": round(random.uniform(low, high), -1),
                    "date": day.isoformat(),
                })
            month = date(month.year + month.month // 12, month.month % 12 + 1, 1)
        return expenses


class ClickstreamGenerator:
    """Generate storefront tracking sessions"""

    def __init__(self, products: List[Row]):
        self.product_ids = [p["id"] for p in products]

    def generate(
        self,
        n_sessions: int = 3000,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Row]:
        end_date = end_date or datetime.now(timezone.utc)
        start_date = start_date or end_date - timedelta(days=90)

        events = []
        visitors = [str(uuid.uuid4()) for _ in range(max(n_sessions // 3, 1))]

        for _ in range(n_sessions):
            session_id = str(uuid.uuid4())
            visitor_id = random.choice(visitors)
            current = fake.date_time_between(start_date=start_date, end_date=end_date, tzinfo=timezone.utc)

            def track(event_type: str, **fields: Any) -> None:
                nonlocal current
                events.append({
                    "id": str(uuid.uuid4()),
                    "event_type": event_type,
                    "session_id": session_id,
                    "visitor_id": visitor_id,
                    "product_id": fields.get("product_id"),
                    "page_path": fields.get("page_path"),
                    "metadata": fields.get("metadata"),
                    "created_at": _iso(current),
                })
                current += timedelta(seconds=random.randint(5, 120))

            n_pages = int(np.random.choice([1, 2, 3, 4, 5], p=[0.3, 0.25, 0.2, 0.15, 0.1]))
            for _ in range(n_pages):
                path = random.choice(PAGES)
                track("page_view", page_path=path)
                reached = [m for m in SCROLL_MILESTONES if random.random() < 0.8 ** (m / 25)]
                for depth in reached:
                    track("scroll_depth", page_path=path, metadata={"depth": depth})

            # Funnel drop-off at each stage
            if random.random() > 0.55 and self.product_ids:
                product_id = random.choice(self.product_ids)
                track("product_view", product_id=product_id, page_path=f"/product/{product_id[:8]}")
                if random.random() > 0.6:
                    track("add_to_cart", product_id=product_id)
                    if random.random() > 0.45:
                        track("checkout_started", page_path="/checkout")
                        if random.random() > 0.35:
                            track("order_completed", page_path="/checkout/success")

        return events


# =============================================================================
# MAIN GENERATOR
# =============================================================================

class StorefrontGenerator:
    """
    Main data generator orchestrator.

    Example:
        data = StorefrontGenerator(seed=42).generate_all(n_orders=500)
        engine = ReportEngine(MemoryDataSource(data))
    """

    def __init__(self, seed: Optional[int] = 42):
        if seed is not None:
            random.seed(seed)
            np.random.seed(seed)
            Faker.seed(seed)
        fake.unique.clear()

    def generate_all(
        self,
        n_products: int = 60,
        n_customers: int = 300,
        n_orders: int = 1500,
        n_sessions: int = 3000,
        days: int = 365,
    ) -> Dict[str, List[Row]]:
        """Generate every storefront table"""
        end = datetime.now(timezone.utc)
        start = end - timedelta(days=days)

        logger.info("Generating storefront dataset", orders=n_orders, products=n_products, days=days)
        categories, products = CatalogGenerator().generate(n_products)
        profiles = CustomerGenerator().generate(n_customers, start_date=start - timedelta(days=180))
        data: Dict[str, List[Row]] = {
            "categories": categories,
            "products": products,
            "profiles": profiles,
        }
        data.update(OrderGenerator(profiles, products).generate(n_orders, start, end))
        data["expenses"] = ExpenseGenerator().generate(start.date(), end.date())
        data["analytics_events"] = ClickstreamGenerator(products).generate(
            n_sessions, end - timedelta(days=min(days, 90)), end
        )

        logger.info("Dataset generated", **{table: len(rows) for table, rows in data.items()})
        return data

    def source(self, **kwargs: Any) -> MemoryDataSource:
        """Generate a dataset and serve it from memory"""
        return MemoryDataSource(self.generate_all(**kwargs))

    @staticmethod
    def save(data: Dict[str, List[Row]], output_dir: Path) -> List[Path]:
        """Write each table as newline-delimited JSON"""
        output_dir.mkdir(parents=True, exist_ok=True)
        paths = []
        for table, rows in data.items():
            path = output_dir / f"{table}.ndjson"
            pl.DataFrame(rows, infer_schema_length=None).write_ndjson(path)
            logger.info("Saved table", table=table, rows=len(rows), path=str(path))
            paths.append(path)
        return paths

    @staticmethod
    def load(input_dir: Path) -> Dict[str, List[Row]]:
        """Read tables written by ``save``"""
        return {path.stem: pl.read_ndjson(path).to_dicts() for path in sorted(input_dir.glob("*.ndjson"))}
