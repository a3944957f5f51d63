"""
Storefront Dataset Generator

Writes a synthetic storefront dataset as NDJSON, one file per table, for
seeding a database or loading into a MemoryDataSource.

Usage:
    python scripts/generate_dataset.py --orders 5000 --days 365
"""

import argparse
from pathlib import Path

from storefront_reports.config.logging import configure_logging
from storefront_reports.data import StorefrontGenerator

OUTPUT_DIR = Path(__file__).parent.parent / "data" / "generated"


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a synthetic storefront dataset")
    parser.add_argument("--output", type=Path, default=OUTPUT_DIR)
    parser.add_argument("--products", type=int, default=60)
    parser.add_argument("--customers", type=int, default=300)
    parser.add_argument("--orders", type=int, default=1500)
    parser.add_argument("--sessions", type=int, default=3000)
    parser.add_argument("--days", type=int, default=365)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    configure_logging()
    generator = StorefrontGenerator(seed=args.seed)
    data = generator.generate_all(
        n_products=args.products,
        n_customers=args.customers,
        n_orders=args.orders,
        n_sessions=args.sessions,
        days=args.days,
    )
    paths = generator.save(data, args.output)

    print(f"\nDataset written to {args.output}")
    for path in paths:
        size = path.stat().st_size / 1024
        print(f"   {path.name}: {len(data[path.stem]):,} rows ({size:.1f} KB)")


if __name__ == "__main__":
    main()
