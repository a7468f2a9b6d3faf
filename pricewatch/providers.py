from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Provider(BaseModel):
    """A quote service entry of the provider directory."""

    name: str
    base_route: str = Field(..., description="Base URI, without trailing route.")
    coins: Dict[str, str] = Field(default_factory=dict, description="Asset id to display symbol.")
    currencies: List[str] = Field(default_factory=list, description="Quote currency codes.")
    routes: Dict[str, str] = Field(default_factory=dict, description="Route name to path.")

    def get_uri(self, route: str) -> Optional[str]:
        path = self.routes.get(route)
        if path is None:
            return None
        return self.base_route + path

    def coins_string(self) -> str:
        return ",".join(self.coins)

    def currencies_string(self) -> str:
        return ",".join(self.currencies)


class ProviderDirectory(BaseModel):
    providers: Dict[str, Provider] = Field(default_factory=dict)


def load_providers(path: Path) -> Dict[str, Provider]:
    """Parse a providers TOML file into a ``name -> Provider`` mapping."""
    if not path.exists():
        raise FileNotFoundError(f"Provider file not found: {path}")

    with path.open("rb") as fh:
        try:
            payload = tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            raise ValueError(f"Invalid provider file {path}: {exc}") from exc

    directory = ProviderDirectory.model_validate(payload)
    logger.info("Loaded %s provider(s) from %s", len(directory.providers), path)
    return directory.providers
