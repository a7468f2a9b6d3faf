from __future__ import annotations

import logging
from typing import Optional, Tuple

from pricewatch.models import Asset, PriceHistory, Snapshot
from pricewatch.storage import DocumentRepository

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAPACITY = 2


def append_prices(history: PriceHistory, asset: Asset, now: int, capacity: int = DEFAULT_HISTORY_CAPACITY) -> PriceHistory:
    """Push ``asset``'s price map onto the window, evicting the oldest entries first.

    ``updated_at`` is always stamped, even when ``capacity`` is 0 and the
    window stays empty.
    """
    if capacity < 0:
        raise ValueError(f"History capacity must be >= 0, got {capacity}")

    history.updated_at = now
    if capacity == 0:
        return history

    overflow = len(history.prices) - capacity + 1
    if overflow > 0:
        del history.prices[:overflow]
    history.prices.append(dict(asset.prices))
    return history


def find_history(repository: DocumentRepository[PriceHistory], asset_id: str) -> Optional[PriceHistory]:
    """Load the stored window for ``asset_id``; ``None`` means skip it this cycle."""
    return repository.find_one(asset_id)


def update_histories(
    repository: DocumentRepository[PriceHistory],
    delta: Snapshot,
    now: int,
    capacity: int = DEFAULT_HISTORY_CAPACITY,
) -> Tuple[int, int]:
    """Append every changed asset to its stored window and save it back.

    Assets without a stored window are skipped, not created.
    Returns ``(updated, skipped)``.
    """
    updated = 0
    skipped = 0
    for asset_id, asset in delta.assets.items():
        history = find_history(repository, asset_id)
        if history is None:
            logger.info("No price history for %s, skipping update", asset_id)
            skipped += 1
            continue

        append_prices(history, asset, now=now, capacity=capacity)
        repository.save(asset_id, history)
        updated += 1

    return updated, skipped
