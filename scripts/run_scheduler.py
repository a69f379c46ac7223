"""
Run the enumeration scheduler until interrupted.

Examples:
    python scripts/run_scheduler.py
    python scripts/run_scheduler.py --interval-hours 6 --run-now
"""

import argparse
import asyncio
import signal
import sys
import os
import logging
from typing import Optional

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.logging import setup_logging
from enumeration.scheduler import EnumerationScheduler

logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Re-enumerate the configured platforms periodically")
    parser.add_argument("--interval-hours", type=int, default=settings.ENUMERATION_INTERVAL_HOURS)
    parser.add_argument("--run-now", action="store_true", help="Run one enumeration before the first interval")
    return parser


async def serve(
    scheduler: EnumerationScheduler,
    stop_event: Optional[asyncio.Event] = None,
    run_now: bool = False,
) -> None:
    """Start ``scheduler`` and keep the loop alive until SIGINT/SIGTERM or ``stop_event``"""
    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in STOP_SIGNALS:
        loop.add_signal_handler(sig, stop_event.set)

    scheduler.start()
    try:
        if run_now:
            await scheduler.run_enumeration_job()
        await stop_event.wait()
        logger.info("Stop requested")
    finally:
        scheduler.stop()
        for sig in STOP_SIGNALS:
            loop.remove_signal_handler(sig)
        if scheduler.engine is not None:
            await scheduler.engine.dispose()


if __name__ == "__main__":
    setup_logging()
    args = build_parser().parse_args()
    asyncio.run(serve(EnumerationScheduler(interval_hours=args.interval_hours), run_now=args.run_now))
