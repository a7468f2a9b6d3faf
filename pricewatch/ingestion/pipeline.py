from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Set

import httpx
from pymongo import MongoClient

from pricewatch.clock import Clock, SystemClock
from pricewatch.config import ConfigurationError, Settings, settings
from pricewatch.ingestion.sources import CoinGeckoSimplePriceSource, PriceSource
from pricewatch.models import AssetInfo, CycleSummary, PriceHistory, Snapshot
from pricewatch.providers import Provider, load_providers
from pricewatch.storage import DocumentRepository, MongoRepository
from pricewatch.tracking.changes import DEFAULT_REFERENCE_CURRENCY, compute_delta
from pricewatch.tracking.history import DEFAULT_HISTORY_CAPACITY, update_histories

logger = logging.getLogger(__name__)

ProviderLoader = Callable[[], Provider]
SourceFactory = Callable[[Provider], PriceSource]


@dataclass(slots=True)
class PipelineOptions:
    reference_currency: str = DEFAULT_REFERENCE_CURRENCY
    history_capacity: int = DEFAULT_HISTORY_CAPACITY
    refresh_every_cycles: int = 4
    request_timeout_seconds: float = 15.0


class PriceTrackingPipeline:
    """Polls one provider and records price changes, one cycle at a time.

    The pipeline keeps the last fetched snapshot as its cache. Each cycle diffs
    the new snapshot against it, appends the delta to the time series, pushes
    changed prices into the per-asset windows and then replaces the cache with
    the full snapshot. Cycles must be awaited one after another.
    """

    def __init__(
        self,
        provider_loader: ProviderLoader,
        source_factory: SourceFactory,
        snapshots: DocumentRepository[Snapshot],
        histories: DocumentRepository[PriceHistory],
        registry: DocumentRepository[AssetInfo],
        options: PipelineOptions | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.provider_loader = provider_loader
        self.source_factory = source_factory
        self.snapshots = snapshots
        self.histories = histories
        self.registry = registry
        self.options = options or PipelineOptions()
        self.clock = clock or SystemClock()

        self.provider = provider_loader()
        self.source = source_factory(self.provider)
        self.cache = Snapshot(captured_at=0)
        self.cycle = 0
        self._registered: Set[str] = set()

    def refresh_directory(self, errors: List[str]) -> bool:
        """Reload the provider entry and register coins seen for the first time.

        A failed reload keeps the current provider.
        """
        try:
            provider = self.provider_loader()
        except Exception as exc:  # noqa: BLE001
            logger.exception("Provider directory refresh failed, keeping %s", self.provider.name)
            errors.append(f"directory: {exc}")
            provider = self.provider
            refreshed = False
        else:
            refreshed = True

        self.provider = provider
        self.source = self.source_factory(provider)
        seeded = self.seed_registry(provider)
        if seeded:
            logger.info("Registered %s new asset(s) from %s", seeded, provider.name)
        return refreshed

    def seed_registry(self, provider: Provider) -> int:
        seeded = 0
        for asset_id, symbol in provider.coins.items():
            if asset_id in self._registered:
                continue
            if self.registry.find_one(asset_id) is None:
                info = AssetInfo(id=asset_id, symbol=symbol, created_at=self.clock.now_ms())
                self.registry.save(asset_id, info)
                seeded += 1
            self._registered.add(asset_id)
        return seeded

    async def _fetch(self) -> Snapshot:
        timeout = httpx.Timeout(self.options.request_timeout_seconds)
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            return await self.source.fetch(client)

    async def run_once(self) -> CycleSummary:
        """Run one fetch, diff, persist and rotate cycle and summarize it."""
        summary = CycleSummary(cycle=self.cycle)
        self.cycle += 1

        if summary.cycle % self.options.refresh_every_cycles == 0:
            summary.directory_refreshed = self.refresh_directory(summary.errors)

        try:
            snapshot = await self._fetch()
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error fetching from %s", self.source.name)
            summary.errors.append(f"{self.source.name}: {exc}")
            return summary

        summary.fetched_assets = len(snapshot)
        delta = compute_delta(self.cache, snapshot, self.options.reference_currency)
        summary.changed_assets = len(delta)

        if not delta.is_empty():
            self.snapshots.insert(delta)
            updated, skipped = update_histories(
                self.histories,
                delta,
                now=self.clock.now_ms(),
                capacity=self.options.history_capacity,
            )
            summary.histories_updated = updated
            summary.histories_skipped = skipped

        self.cache = snapshot
        return summary


def select_provider(config: Settings) -> Provider:
    providers = load_providers(config.ref_file)
    provider = providers.get(config.provider_name)
    if provider is None:
        raise ConfigurationError(f"{config.provider_name} config in {config.ref_file} file must be provided")
    return provider


def build_pipeline(config: Settings = settings, clock: Clock | None = None) -> PriceTrackingPipeline:
    """Create a pipeline backed by MongoDB from validated settings."""
    config.require()
    clock = clock or SystemClock()

    client: MongoClient = MongoClient(config.mongodb_uri)
    db = client[config.mongodb_database]
    options = PipelineOptions(
        reference_currency=config.reference_currency,
        history_capacity=config.history_capacity,
        refresh_every_cycles=config.refresh_every_cycles,
        request_timeout_seconds=config.request_timeout_seconds,
    )
    return PriceTrackingPipeline(
        provider_loader=lambda: select_provider(config),
        source_factory=lambda provider: CoinGeckoSimplePriceSource(provider, clock=clock),
        snapshots=MongoRepository(db[config.snapshots_collection], Snapshot),
        histories=MongoRepository(db[config.history_collection], PriceHistory),
        registry=MongoRepository(db[config.registry_collection], AssetInfo),
        options=options,
        clock=clock,
    )
