#!/usr/bin/env python3
"""
Sync the local product catalog and inspect it.

- default: get_products() (initial sync if the cache is empty, background
  revalidation if it is stale)
- --force: always fetch the full catalog and persist it
- --search TERM: print matching products after the sync

Progress messages (loading:status) are printed as they arrive.
Uses config/catalog_config.yml; set CATALOG_API_TOKEN (or the OAuth variables) in .env.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from pos_catalog.api.main import build_coordinator
from pos_catalog.errors import FetchFailed, StorageUnavailable
from pos_catalog.events.event_bus import LOADING_STATUS, event_bus
from pos_catalog.quoting.budget import search_products
from pos_catalog.utils.config_loader import load_catalog_config
from pos_catalog.utils.formatting import format_brl, format_count


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", force=True)


async def run(args: argparse.Namespace) -> int:
    cfg = load_catalog_config(Path(args.config) if args.config else None)
    coordinator = build_coordinator(cfg)
    subscription = event_bus.subscribe(LOADING_STATUS, lambda message: print(f"  … {message}"))
    try:
        entries = await (coordinator.force_sync() if args.force else coordinator.get_products())
        await coordinator.aclose()
    except FetchFailed as e:
        print(f"Sync failed: {e}")
        return 1
    except StorageUnavailable as e:
        print(f"Local store unavailable: {e}")
        return 2
    finally:
        event_bus.unsubscribe(subscription)
        coordinator.store.close()

    print(f"\n{format_count(len(entries))} products cached ({cfg.store.database_url}).")

    if args.search:
        matches = search_products(entries, args.search, limit=args.limit)
        print(f"\n### {len(matches)} match(es) for '{args.search}'\n")
        for entry in matches:
            print(f"{entry.code:>8}  {entry.name[:60]:<60}  {format_brl(entry.unit_price):>14}  estoque {entry.stock_quantity}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Sync and inspect the local product catalog")
    parser.add_argument("--config", help="Path to catalog_config.yml")
    parser.add_argument("--force", action="store_true", help="Fetch the full catalog even if the cache is fresh")
    parser.add_argument("--search", help="Print products whose name or code contains this text")
    parser.add_argument("--limit", type=int, default=20, help="Maximum search results (default 20)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    setup_logging(args.verbose)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
