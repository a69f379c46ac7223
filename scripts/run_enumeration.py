"""
Enumerate the configured platforms into one output.

Examples:
    python scripts/run_enumeration.py --platforms github --min-stars 500 -j 8
    python scripts/run_enumeration.py --platforms gitlab,bitbucket --output file --output-file repos.jsonl
    python scripts/run_enumeration.py --platforms npm --output db
"""

import argparse
import asyncio
import sys
import os
import logging
from datetime import date

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import create_engine, create_session_factory
from core.exceptions import ConfigurationError
from core.logging import setup_logging
from enumeration.registry import PLATFORMS, parse_platforms
from enumeration.runner import EnumerationRunner
from schemas.enumeration import EnumerationOptions

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Enumerate repositories and packages from public platforms")
    parser.add_argument("--platforms", default=settings.PLATFORMS,
                        help=f"Comma separated platforms ({', '.join(sorted(PLATFORMS))})")
    parser.add_argument("--output", default=settings.OUTPUT_KIND, help="Output kind: stdout, file or db")
    parser.add_argument("--output-file", default=settings.OUTPUT_FILE, help="Output path for --output file")
    parser.add_argument("-j", "--jobs", type=int, default=None, help="Concurrent fetch workers")
    parser.add_argument("--take", type=int, default=None, help="Maximum items for list-style platforms")
    parser.add_argument("--min-stars", type=int, default=None)
    parser.add_argument("--star-overlap", type=int, default=None)
    parser.add_argument("--require-min-stars", action="store_true", default=None)
    parser.add_argument("--query", default=None, help="Base search query")
    parser.add_argument("--start-date", type=date.fromisoformat, default=None, help="YYYY-MM-DD")
    parser.add_argument("--end-date", type=date.fromisoformat, default=None, help="YYYY-MM-DD")
    return parser


async def run_enumeration(args: argparse.Namespace) -> int:
    options = EnumerationOptions.from_settings(
        settings,
        workers=args.jobs,
        take=args.take,
        min_stars=args.min_stars,
        star_overlap=args.star_overlap,
        require_min_stars=args.require_min_stars,
        query=args.query,
        start_date=args.start_date,
        end_date=args.end_date,
    )

    engine = create_engine(pool_size=options.workers) if args.output == "db" else None
    try:
        runner = EnumerationRunner(
            output_kind=args.output,
            output_path=args.output_file,
            session_factory=create_session_factory(engine) if engine is not None else None,
            options=options,
        )
        result = await runner.run(parse_platforms(args.platforms))
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2
    finally:
        if engine is not None:
            await engine.dispose()

    for name, platform in result["platforms"].items():
        logger.info(
            f"{name}: {platform['status']}, written={platform['records_written']}, "
            f"failed={platform['records_failed']}, failed_tasks={len(platform['failed_tasks'])}"
        )
    return 0 if result["status"] == "success" else 1


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(run_enumeration(build_parser().parse_args())))
