#!/usr/bin/env python3
"""
Write the seed catalog (assets and real estate cities) into DynamoDB.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --dry-run
    python scripts/seed_catalog.py --create-tables          # local DynamoDB
    python scripts/seed_catalog.py --only assets

Existing records are overwritten with the seed prices; run it before the
market-data job takes over price updates.

Environment:
    AWS_REGION: AWS region (default: us-east-1)
    DYNAMODB_ENDPOINT: Local DynamoDB endpoint, e.g. http://localhost:8000
    TABLE_PREFIX: Prefix applied to every table name
"""

import argparse
import sys

from app.core.config import get_settings
from app.core.logging_config import get_logger, setup_logging
from app.services.catalog_data import STATIC_ASSETS, STATIC_CITIES
from app.services.document_store import DocumentStore

logger = get_logger("app.scripts.seed_catalog")


def seed(store: DocumentStore, only: str = "all", dry_run: bool = False) -> dict:
    """Write seed records and return counts per kind."""
    counts = {"assets": 0, "cities": 0}

    if only in ("all", "assets"):
        for asset in STATIC_ASSETS:
            print(f"  ASSET: {asset.ticker:<16} {asset.category:<20} {asset.price:>12,.2f} {asset.currency}")
            if not dry_run:
                store.save_asset(asset)
            counts["assets"] += 1

    if only in ("all", "cities"):
        for city in STATIC_CITIES:
            print(f"  CITY:  {city.city_key:<16} {city.price_per_sqm:>12,.2f} {city.currency}/m2")
            if not dry_run:
                store.save_city(city)
            counts["cities"] += 1

    return counts


def main():
    parser = argparse.ArgumentParser(
        description="Seed the catalog tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--dry-run', action='store_true',
                        help='Print what would be written without writing')
    parser.add_argument('--create-tables', action='store_true',
                        help='Create missing tables first (local development)')
    parser.add_argument('--only', choices=['all', 'assets', 'cities'], default='all',
                        help='Restrict seeding to one kind of record')
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(json_format=False, level=settings.LOG_LEVEL)
    store = DocumentStore.from_settings(settings)

    try:
        if args.create_tables and not args.dry_run:
            store.create_tables()
        counts = seed(store, only=args.only, dry_run=args.dry_run)
    except Exception as e:
        logger.error("Seeding failed: %s", e)
        sys.exit(1)
    finally:
        store.close()

    verb = "Would write" if args.dry_run else "Wrote"
    print(f"\n{verb} {counts['assets']} assets and {counts['cities']} cities")


if __name__ == '__main__':
    main()
