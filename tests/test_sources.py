import asyncio

import httpx
import pytest

from pricewatch.ingestion.sources import CoinGeckoSimplePriceSource, format_coin_data


def fetch_with(handler, source: CoinGeckoSimplePriceSource):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await source.fetch(client)

    return asyncio.run(run())


def test_format_coin_data_drops_unknown_ids() -> None:
    assets = format_coin_data(
        {"bitcoin": {"usd": 64000, "eur": 59000}, "dogecoin": {"usd": 0.1}},
        {"bitcoin": "btc"},
    )

    assert list(assets) == ["bitcoin"]
    assert assets["bitcoin"].symbol == "btc"
    assert assets["bitcoin"].prices == {"usd": 64000.0, "eur": 59000.0}


def test_fetch_builds_snapshot(provider, clock) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"bitcoin": {"usd": 64000.5, "eur": 59000}, "ethereum": {"usd": 3100}})

    snapshot = fetch_with(handler, CoinGeckoSimplePriceSource(provider, clock=clock))

    assert seen["path"] == "/api/v3/simple/price"
    assert seen["params"] == {"ids": "bitcoin,ethereum", "vs_currencies": "usd,eur"}
    assert snapshot.captured_at == clock.now
    assert snapshot.assets["bitcoin"].prices == {"usd": 64000.5, "eur": 59000.0}
    assert snapshot.assets["ethereum"].symbol == "eth"


def test_fetch_without_known_coins_fails(provider, clock) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"dogecoin": {"usd": 0.1}})

    with pytest.raises(ValueError, match="Could not retrieve any coin data"):
        fetch_with(handler, CoinGeckoSimplePriceSource(provider, clock=clock))


def test_fetch_http_error_propagates(provider, clock) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"status": "rate limited"})

    with pytest.raises(httpx.HTTPStatusError):
        fetch_with(handler, CoinGeckoSimplePriceSource(provider, clock=clock))


def test_fetch_requires_simple_price_route(provider, clock) -> None:
    source = CoinGeckoSimplePriceSource(provider.model_copy(update={"routes": {}}), clock=clock)

    with pytest.raises(ValueError, match="simple_price"):
        fetch_with(lambda request: httpx.Response(200, json={}), source)
