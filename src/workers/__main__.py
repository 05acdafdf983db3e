#!/usr/bin/env python3
"""CLI entry point for the overdue sweep worker.

    python -m src.workers            # run the scheduler until SIGINT/SIGTERM
    python -m src.workers --once     # run one sweep now and print the report
"""

import argparse
import asyncio
import json
import signal
import sys

import structlog

from src.library.application.worker import OverdueScheduler
from src.library.infrastructure.dependencies import build_circulation_container
from src.shared.config import get_settings
from src.shared.database import close_database, get_session_factory, init_database
from src.shared.logging import setup_logging

logger = structlog.get_logger()


async def run_once() -> dict:
    """Run a single sweep and return its report."""
    settings = get_settings()
    await init_database(settings=settings)
    try:
        container = build_circulation_container(settings, get_session_factory())
        report = await container.sweep.run_sweep()
        return report.as_dict()
    finally:
        await close_database()


async def run_scheduler() -> None:
    """Run the sweep on its schedule until a shutdown signal arrives."""
    settings = get_settings()
    await init_database(settings=settings)
    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)

    container = build_circulation_container(settings, get_session_factory())
    scheduler = OverdueScheduler(container.sweep, settings)
    scheduler.start()
    logger.info("Overdue sweep worker running", jobs=scheduler.job_ids)
    try:
        await shutdown_event.wait()
    finally:
        scheduler.stop()
        await close_database()
        logger.info("Overdue sweep worker shutdown complete")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Library circulation workers")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one overdue sweep immediately and exit",
    )
    args = parser.parse_args()

    setup_logging(get_settings())
    try:
        if args.once:
            print(json.dumps(asyncio.run(run_once()), indent=2))
        else:
            asyncio.run(run_scheduler())
    except KeyboardInterrupt:
        print("\nShutting down workers...")


if __name__ == "__main__":
    main()
