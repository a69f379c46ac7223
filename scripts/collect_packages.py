"""
Collect one distribution's packages, score them and store them.

Examples:
    python scripts/collect_packages.py --dist debian
    python scripts/collect_packages.py --dist ubuntu --packages-file Packages.gz
    python scripts/collect_packages.py --dist pypi --entries-file pypi_entries.json --page-rank-file ranks.json
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from collector.pipeline import PackageCollector
from collector.sources import fetch_control_index, load_entries_file, load_packages_file, load_page_rank_file
from collector.store import PackageStore
from core.database import create_engine, create_session_factory
from core.exceptions import CatalogError
from core.logging import setup_logging
from enumeration.http import HttpFetcher
from models.base import DistType

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Collect distribution packages into the package store")
    parser.add_argument("--dist", required=True, choices=[d.value for d in DistType])
    parser.add_argument("--table-prefix", default=None, help="Defaults to the distribution name")
    parser.add_argument("--packages-file", default=None, help="Local control-format Packages file (optionally .gz)")
    parser.add_argument("--entries-file", default=None, help="JSON list of raw entries instead of the mirrors")
    parser.add_argument("--page-rank-file", default=None, help="JSON object of package name -> PageRank")
    return parser


async def collect(args: argparse.Namespace) -> int:
    dist_type = DistType(args.dist)
    table_prefix = args.table_prefix or dist_type.value

    engine = create_engine()
    try:
        store = PackageStore(create_session_factory(engine))
        if args.packages_file:
            entries = load_packages_file(args.packages_file, dist_type, table_prefix)
        elif args.entries_file:
            entries = load_entries_file(args.entries_file)
        else:
            async with HttpFetcher(dist_type.value) as fetcher:
                entries = await fetch_control_index(dist_type, table_prefix, fetcher)

        page_rank = load_page_rank_file(args.page_rank_file) if args.page_rank_file else None

        result = await PackageCollector(store, dist_type, table_prefix).collect(entries, page_rank)
        logger.info(f"Collection finished: {result.to_dict()}")
        return 0
    except CatalogError as e:
        logger.error(f"Collection failed for {dist_type.value}: {e}")
        return 1
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(collect(build_parser().parse_args())))
