#!/usr/bin/env python3
"""
Run one import cycle from the command line.

Usage:
    uv run python scripts/import_listings.py
    uv run python scripts/import_listings.py --provider otodom --limit 20
    uv run python scripts/import_listings.py --limit 3 --sync   # enrich + attach inline
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from src.connections.postgres import close_postgres, get_postgres  # noqa: E402
from src.connections.redis import close_redis  # noqa: E402
from src.jobs.runtime import close_runtime, get_runtime  # noqa: E402


async def main(provider: str | None, limit: int | None, sync: bool) -> int:
    """Run the import and print a summary."""
    print(f"\n{'=' * 60}")
    print(f"Import: provider={provider or 'default'} limit={limit or 'default'}")
    print(f"Mode: {'sync (inline enrichment + images)' if sync else 'queue'}")
    print(f"{'=' * 60}\n")

    try:
        postgres = await get_postgres()
        await postgres.ensure_schema()
        runtime = await get_runtime()

        try:
            stats = await runtime.pipeline.run(provider, limit, sync=sync)
        except ValueError as e:
            print(f"Error: {e}")
            return 1

        print("=== Import Summary ===")
        print(f"Fetched:            {stats.fetched}")
        print(f"Skeletons created:  {stats.created}")
        print(f"Duplicates skipped: {stats.skipped}")
        print(f"  fingerprint:      {stats.skipped_fingerprint}")
        print(f"  external id:      {stats.skipped_external}")
        if not sync:
            print(f"Jobs dispatched:    {stats.dispatched} (enrichment + media)")
        if stats.errors:
            print(f"Errors:             {stats.errors}")
        return 0
    finally:
        await close_runtime()
        await close_redis()
        await close_postgres()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import listings from a provider")
    parser.add_argument("--provider", help="Provider slug (default: SCRAPER_PROVIDER)")
    parser.add_argument("--limit", type=int, help="Maximum offers (default: SCRAPER_IMPORT_LIMIT)")
    parser.add_argument("--sync", action="store_true", help="Process without the queue")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.provider, args.limit, args.sync)))
