from __future__ import annotations

import argparse
import logging
from pathlib import Path

from pymongo import MongoClient

from pricewatch.config import ConfigurationError, settings
from pricewatch.export import export_snapshots_csv
from pricewatch.models import Snapshot
from pricewatch.storage import MongoRepository

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export the recorded price changes to CSV.")
    parser.add_argument(
        "--output",
        type=Path,
        default=settings.data_dir / "export" / "price_changes.csv",
        help="Destination CSV path (directories will be created).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    if not settings.mongodb_uri:
        raise ConfigurationError("MONGODB_URI must be set")

    client: MongoClient = MongoClient(settings.mongodb_uri)
    repository = MongoRepository(client[settings.mongodb_database][settings.snapshots_collection], Snapshot)
    rows = export_snapshots_csv(repository, args.output)
    logger.info("Export complete: %s rows -> %s", rows, args.output)


if __name__ == "__main__":
    main()
