from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Asset(BaseModel):
    """One tracked coin with its prices by currency code."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Provider asset id (e.g. 'bitcoin').")
    symbol: str = Field(..., description="Display symbol (e.g. 'btc').")
    prices: Dict[str, float] = Field(default_factory=dict, description="Price by currency code.")


class Snapshot(BaseModel):
    """A timestamped batch of asset prices, as fetched or as a delta."""

    model_config = ConfigDict(frozen=True)

    captured_at: int = Field(..., description="Capture time in milliseconds since epoch.")
    assets: Dict[str, Asset] = Field(default_factory=dict, description="Assets keyed by id.")

    def is_empty(self) -> bool:
        return not self.assets

    def __len__(self) -> int:
        return len(self.assets)


class PriceHistory(BaseModel):
    """Bounded window of an asset's most recent price maps, oldest first."""

    id: str
    symbol: str
    prices: List[Dict[str, float]] = Field(default_factory=list)
    updated_at: int = 0


class AssetInfo(BaseModel):
    """Registry entry written the first time an asset id is seen."""

    id: str
    symbol: str
    created_at: int = Field(..., description="First-seen time in milliseconds since epoch.")


class CycleSummary(BaseModel):
    """Outcome of a polling cycle."""

    cycle: int
    fetched_assets: int = 0
    changed_assets: int = 0
    histories_updated: int = 0
    histories_skipped: int = 0
    directory_refreshed: bool = False
    errors: List[str] = Field(default_factory=list)
