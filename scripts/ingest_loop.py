from __future__ import annotations

import argparse
import asyncio
import logging
import time

from pricewatch.config import settings
from pricewatch.ingestion.pipeline import build_pipeline

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Continuous polling loop recording price changes.")
    parser.add_argument(
        "--interval",
        type=int,
        default=settings.poll_interval_seconds,
        help="Interval in seconds between cycles (default: POLL_INTERVAL_SECONDS).",
    )
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    pipeline = build_pipeline()
    logger.info("Starting polling loop on %s with interval %s seconds", pipeline.provider.name, args.interval)

    while True:
        start = time.time()
        summary = await pipeline.run_once()
        logger.info("Cycle completed: %s", summary.model_dump())

        elapsed = time.time() - start
        sleep_for = max(0, args.interval - elapsed)
        await asyncio.sleep(sleep_for)


if __name__ == "__main__":
    asyncio.run(main())
