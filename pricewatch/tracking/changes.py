from __future__ import annotations

from typing import Dict

from pricewatch.models import Asset, Snapshot

DEFAULT_REFERENCE_CURRENCY = "usd"


def compute_delta(cached: Snapshot, incoming: Snapshot, reference_currency: str = DEFAULT_REFERENCE_CURRENCY) -> Snapshot:
    """Return the assets of ``incoming`` that are new or whose reference price moved.

    Change detection is gated on a single currency: an asset known to both
    snapshots is only compared on ``reference_currency`` and is left out when
    either side lacks that price. Prices are compared with exact equality.
    Changed assets are carried over whole, with every currency of ``incoming``.
    """
    changed: Dict[str, Asset] = {}
    for asset_id, asset in incoming.assets.items():
        previous = cached.assets.get(asset_id)
        if previous is None:
            changed[asset_id] = asset
            continue

        old_price = previous.prices.get(reference_currency)
        new_price = asset.prices.get(reference_currency)
        if old_price is None or new_price is None:
            continue
        if old_price == new_price:
            continue
        changed[asset_id] = asset

    return Snapshot(captured_at=incoming.captured_at, assets=changed)
