from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
from pymongo.errors import PyMongoError

from pricewatch.providers import Provider


class InMemoryRepository:
    """Dict-backed repository; loaded documents are copies, like a real store."""

    def __init__(self, documents: Optional[Dict[str, Any]] = None) -> None:
        self.documents: Dict[str, Any] = dict(documents or {})
        self.inserted: List[Any] = []
        self.saves: List[str] = []
        self.lookups: List[str] = []

    def find_one(self, id: str):
        self.lookups.append(id)
        document = self.documents.get(id)
        return document.model_copy(deep=True) if document is not None else None

    def save(self, id: str, entity) -> None:
        self.saves.append(id)
        self.documents[id] = entity.model_copy(deep=True)

    def insert(self, entity) -> None:
        self.inserted.append(entity)


class FakeCollection:
    """Subset of ``pymongo.collection.Collection`` used by ``MongoRepository``."""

    def __init__(self, name: str = "test", documents: Optional[List[dict]] = None, fail: bool = False) -> None:
        self.name = name
        self.documents: List[dict] = list(documents or [])
        self.fail = fail
        self.replace_calls: List[tuple] = []

    def _check(self) -> None:
        if self.fail:
            raise PyMongoError("connection refused")

    def find_one(self, query: dict):
        self._check()
        for document in self.documents:
            if all(document.get(key) == value for key, value in query.items()):
                return dict(document)
        return None

    def find(self, query: dict):
        self._check()
        return [dict(document) for document in self.documents]

    def replace_one(self, query: dict, replacement: dict, upsert: bool = False) -> None:
        self._check()
        self.replace_calls.append((query, replacement, upsert))
        for index, document in enumerate(self.documents):
            if all(document.get(key) == value for key, value in query.items()):
                self.documents[index] = dict(replacement, _id=document.get("_id"))
                return
        if upsert:
            self.documents.append(dict(replacement, _id=len(self.documents) + 1))

    def insert_one(self, document: dict) -> None:
        self._check()
        self.documents.append(dict(document, _id=len(self.documents) + 1))


class FixedClock:
    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def now_ms(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def memory_repository():
    return InMemoryRepository


@pytest.fixture
def fake_collection():
    return FakeCollection


@pytest.fixture
def provider() -> Provider:
    return Provider(
        name="coingecko",
        base_route="https://api.coingecko.com/api/v3",
        coins={"bitcoin": "btc", "ethereum": "eth"},
        currencies=["usd", "eur"],
        routes={"simple_price": "/simple/price", "ping": "/ping"},
    )
