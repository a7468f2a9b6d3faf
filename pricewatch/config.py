from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised when the agent cannot start with the current environment."""


@dataclass(slots=True)
class Settings:
    """Central configuration driven by environment variables."""

    mongodb_uri: str | None = os.getenv("MONGODB_URI")
    mongodb_database: str = os.getenv("MONGODB_DATABASE", "pricewatch")
    ref_file_raw: str | None = os.getenv("REF_FILE")

    provider_name: str = os.getenv("PROVIDER_NAME", "coingecko")
    reference_currency: str = os.getenv("REFERENCE_CURRENCY", "usd")
    history_capacity: int = int(os.getenv("HISTORY_CAPACITY", "2"))
    refresh_every_cycles: int = int(os.getenv("REFRESH_EVERY_CYCLES", "4"))
    poll_interval_seconds: int = int(os.getenv("POLL_INTERVAL_SECONDS", "60"))
    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "15"))

    snapshots_collection: str = os.getenv("SNAPSHOTS_COLLECTION", "snapshots")
    history_collection: str = os.getenv("HISTORY_COLLECTION", "latest_entries")
    registry_collection: str = os.getenv("REGISTRY_COLLECTION", "coins")

    data_dir: Path = field(default_factory=lambda: Path(os.getenv("DATA_DIR", "./data")))

    @property
    def ref_file(self) -> Path:
        return Path(self.ref_file_raw or "")

    def require(self) -> None:
        """Fail fast on anything the polling loop cannot run without."""
        if not self.mongodb_uri:
            raise ConfigurationError("MONGODB_URI must be set")
        if not self.ref_file_raw:
            raise ConfigurationError("REF_FILE must be set")
        if not self.ref_file.is_file():
            raise ConfigurationError(f"REF_FILE does not point to a file: {self.ref_file}")
        if self.history_capacity < 0:
            raise ConfigurationError("HISTORY_CAPACITY must be >= 0")
        if self.refresh_every_cycles < 1:
            raise ConfigurationError("REFRESH_EVERY_CYCLES must be >= 1")
        if self.poll_interval_seconds < 0:
            raise ConfigurationError("POLL_INTERVAL_SECONDS must be >= 0")


# Singleton-style settings import
settings: Final[Settings] = Settings()
