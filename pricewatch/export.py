from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import pandas as pd

from pricewatch.models import Snapshot
from pricewatch.storage import MongoRepository

logger = logging.getLogger(__name__)

COLUMNS = ["captured_at", "asset_id", "symbol", "currency", "price"]


def snapshots_to_frame(snapshots: Iterable[Snapshot]) -> pd.DataFrame:
    """Flatten delta snapshots into one row per asset and currency."""
    rows = [
        {
            "captured_at": snapshot.captured_at,
            "asset_id": asset.id,
            "symbol": asset.symbol,
            "currency": currency,
            "price": price,
        }
        for snapshot in snapshots
        for asset in snapshot.assets.values()
        for currency, price in asset.prices.items()
    ]
    df = pd.DataFrame(rows, columns=COLUMNS)
    if df.empty:
        return df

    df["captured_at"] = pd.to_datetime(df["captured_at"], unit="ms", utc=True)
    df.sort_values(by=["captured_at", "asset_id", "currency"], inplace=True)
    df.reset_index(drop=True, inplace=True)
    return df


def export_snapshots_csv(repository: MongoRepository[Snapshot], destination: Path) -> int:
    destination.parent.mkdir(parents=True, exist_ok=True)
    df = snapshots_to_frame(repository.find_all())
    if df.empty:
        logger.warning("No snapshots recorded in %s. Nothing to export.", repository.name)
        return 0

    df.to_csv(destination, index=False)
    logger.info("Exported %s rows to %s", len(df), destination)
    return len(df)
