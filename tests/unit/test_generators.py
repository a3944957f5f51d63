"""
Unit Tests - Synthetic Data Generator
"""
import pytest

from storefront_reports.data import StorefrontGenerator
from storefront_reports.reports import ReportEngine, preset_window, registry
from storefront_reports.sources import MemoryDataSource

TABLES = {
    "categories", "products", "profiles", "orders", "order_items",
    "payments", "deliveries", "expenses", "analytics_events",
}


@pytest.fixture
def dataset():
    return StorefrontGenerator(seed=7).generate_all(
        n_products=20, n_customers=30, n_orders=120, n_sessions=80, days=120,
    )


class TestStorefrontGenerator:
    """Tests for StorefrontGenerator"""

    def test_every_table_generated(self, dataset):
        """Test every table generated"""
        assert set(dataset) == TABLES
        assert len(dataset["orders"]) == 120
        assert len(dataset["payments"]) == 120

    def test_foreign_keys_are_consistent(self, dataset):
        """Test foreign keys are consistent"""
        order_ids = {o["id"] for o in dataset["orders"]}
        product_ids = {p["id"] for p in dataset["products"]}
        category_ids = {c["id"] for c in dataset["categories"]}
        user_ids = {p["user_id"] for p in dataset["profiles"]}

        assert {i["order_id"] for i in dataset["order_items"]} <= order_ids
        assert {i["product_id"] for i in dataset["order_items"]} <= product_ids
        assert {p["category_id"] for p in dataset["products"]} <= category_ids
        assert {o["user_id"] for o in dataset["orders"] if o["user_id"]} <= user_ids
        assert {d["order_id"] for d in dataset["deliveries"]} <= order_ids

    def test_order_totals_match_items(self, dataset):
        """Test order totals match items"""
        items_by_order = {}
        for item in dataset["order_items"]:
            items_by_order[item["order_id"]] = items_by_order.get(item["order_id"], 0) + item["total"]
        for order in dataset["orders"]:
            assert order["subtotal"] == pytest.approx(items_by_order[order["id"]])

    def test_refunds_only_for_cancelled_or_returned(self, dataset):
        """Test refunds only for cancelled or returned"""
        statuses = {o["id"]: o["status"] for o in dataset["orders"]}
        for payment in dataset["payments"]:
            if payment["refund_amount"]:
                assert statuses[payment["order_id"]] in ("cancelled", "returned")

    def test_seed_is_reproducible(self):
        """Test seed is reproducible"""
        first = StorefrontGenerator(seed=3).generate_all(n_products=5, n_customers=5, n_orders=10, n_sessions=5)
        second = StorefrontGenerator(seed=3).generate_all(n_products=5, n_customers=5, n_orders=10, n_sessions=5)
        assert [o["total"] for o in first["orders"]] == [o["total"] for o in second["orders"]]

    @pytest.mark.asyncio
    async def test_every_report_runs(self, dataset):
        """Test every report runs"""
        engine = ReportEngine(MemoryDataSource(dataset), timezone="Asia/Kolkata")
        window = preset_window("90")
        for definition in registry.definitions():
            result = await engine.compute(definition.id, window)
            assert len(result.kpis) == 4, definition.id

    def test_save_and_load(self, dataset, tmp_path):
        """Test save and load"""
        paths = StorefrontGenerator.save(dataset, tmp_path)
        assert len(paths) == len(TABLES)

        loaded = StorefrontGenerator.load(tmp_path)
        assert set(loaded) == TABLES
        assert len(loaded["orders"]) == len(dataset["orders"])
        assert {o["id"] for o in loaded["orders"]} == {o["id"] for o in dataset["orders"]}
