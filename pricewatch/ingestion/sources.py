from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Protocol

import httpx

from pricewatch.clock import Clock, SystemClock
from pricewatch.models import Asset, Snapshot
from pricewatch.providers import Provider

logger = logging.getLogger(__name__)


class PriceSource(Protocol):
    name: str

    async def fetch(self, client: httpx.AsyncClient) -> Snapshot: ...


def format_coin_data(payload: Mapping[str, Any], coins: Mapping[str, str]) -> Dict[str, Asset]:
    """Turn a ``{id: {currency: price}}`` response into assets known to the provider."""
    assets: Dict[str, Asset] = {}
    for asset_id, prices in payload.items():
        symbol = coins.get(asset_id)
        if symbol is None:
            continue
        assets[asset_id] = Asset(
            id=asset_id,
            symbol=symbol,
            prices={currency: float(price) for currency, price in prices.items()},
        )
    return assets


class CoinGeckoSimplePriceSource:
    """CoinGecko ``simple/price`` endpoint for the provider's coins and currencies."""

    route = "simple_price"

    def __init__(self, provider: Provider, clock: Clock | None = None) -> None:
        self.provider = provider
        self.clock = clock or SystemClock()

    @property
    def name(self) -> str:
        return self.provider.name

    async def fetch(self, client: httpx.AsyncClient) -> Snapshot:
        url = self.provider.get_uri(self.route)
        if url is None:
            raise ValueError(f"Provider {self.provider.name} has no '{self.route}' route")

        params = {
            "ids": self.provider.coins_string(),
            "vs_currencies": self.provider.currencies_string(),
        }
        resp = await client.get(url, params=params)
        resp.raise_for_status()
        payload = resp.json()

        assets = format_coin_data(payload, self.provider.coins)
        if not assets:
            raise ValueError("Could not retrieve any coin data")

        logger.info("Fetched prices for %s assets from %s", len(assets), self.name)
        return Snapshot(captured_at=self.clock.now_ms(), assets=assets)
