"""
Database Seeder

Loads a generated storefront dataset into the database. Tables are
inserted parents first so foreign keys resolve.

Usage:
    python -m storefront_reports.ingestion.seed_db [--input data/generated]
"""

import argparse
import asyncio
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import insert

from storefront_reports.config.logging import configure_logging
from storefront_reports.data import StorefrontGenerator
from storefront_reports.database import TABLE_MODELS, close_database, create_tables, get_db, init_database
from storefront_reports.serving.cache import close_redis, init_redis, reports_cache

logger = structlog.get_logger(__name__)

SEED_ORDER = [
    "categories",
    "products",
    "profiles",
    "orders",
    "order_items",
    "payments",
    "deliveries",
    "expenses",
    "analytics_events",
]

DATETIME_COLUMNS = {"created_at", "updated_at", "delivered_at"}
CHUNK_SIZE = 1000


def _coerce(column: str, value: Any) -> Any:
    if value is None or not isinstance(value, str):
        return value
    if column in DATETIME_COLUMNS:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    if column == "date":
        return date.fromisoformat(value[:10])
    return value


def prepare_records(table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep the table's columns and parse timestamp strings"""
    columns = set(TABLE_MODELS[table].__table__.columns.keys())
    return [
        {column: _coerce(column, value) for column, value in row.items() if column in columns}
        for row in rows
    ]


async def execute_batch_insert(table: str, records: List[Dict[str, Any]]) -> int:
    """Insert records in chunks using Core insert"""
    if not records:
        return 0

    target = TABLE_MODELS[table].__table__
    async with get_db() as db:
        for i in range(0, len(records), CHUNK_SIZE):
            await db.execute(insert(target), records[i:i + CHUNK_SIZE])
    logger.info("Inserted records", table=table, rows=len(records))
    return len(records)


async def seed_tables(data: Dict[str, List[Dict[str, Any]]]) -> Dict[str, int]:
    """Insert every known table of ``data``; returns rows inserted per table"""
    counts = {}
    for table in SEED_ORDER:
        if table in data:
            counts[table] = await execute_batch_insert(table, prepare_records(table, data[table]))
    return counts


async def _invalidate_cache() -> None:
    try:
        await init_redis()
    except Exception as e:
        logger.warning("Redis unavailable, cached reports not invalidated", error=str(e))
        return
    try:
        await reports_cache.invalidate()
    finally:
        await close_redis()


async def main(input_dir: Optional[Path] = None, url: Optional[str] = None) -> None:
    configure_logging()
    logger.info("Starting database seeding...")
    if input_dir is not None:
        data = StorefrontGenerator.load(input_dir)
    else:
        data = StorefrontGenerator().generate_all()

    await init_database(url)
    try:
        await create_tables()
        counts = await seed_tables(data)
        logger.info("Database seeding completed", **counts)
        await _invalidate_cache()
    except Exception as e:
        logger.error("Seeding failed", error=str(e))
        raise
    finally:
        await close_database()


def cli() -> None:
    parser = argparse.ArgumentParser(description="Seed the storefront database")
    parser.add_argument("--input", type=Path, help="Directory written by scripts/generate_dataset.py")
    parser.add_argument("--url", help="Async database URL")
    args = parser.parse_args()
    asyncio.run(main(args.input, args.url))


if __name__ == "__main__":
    cli()
