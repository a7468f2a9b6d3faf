from __future__ import annotations

import logging
from typing import Any, Generic, List, Mapping, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class DocumentRepository(Protocol[T]):
    """Keyed document storage contract used by the tracking core."""

    def find_one(self, id: str) -> Optional[T]: ...

    def save(self, id: str, entity: T) -> None: ...

    def insert(self, entity: T) -> None: ...


class MongoRepository(Generic[T]):
    """MongoDB collection holding documents of one pydantic model type.

    Documents are addressed by their ``id`` field, not by MongoDB's ``_id``.
    Reads collapse every failure into ``None`` and writes are best effort:
    errors are logged and never raised to the caller.
    """

    def __init__(self, collection: Collection, model: Type[T]) -> None:
        self.collection = collection
        self.model = model

    @property
    def name(self) -> str:
        return self.collection.name

    def _to_model(self, document: Mapping[str, Any]) -> T:
        payload = {key: value for key, value in document.items() if key != "_id"}
        return self.model.model_validate(payload)

    def find_one(self, id: str) -> Optional[T]:
        try:
            document = self.collection.find_one({"id": id})
        except PyMongoError as exc:
            logger.warning("Could not query document with id %s in %s collection: %s", id, self.name, exc)
            return None

        if document is None:
            logger.warning("Could not find any document for id %s in %s collection", id, self.name)
            return None

        try:
            return self._to_model(document)
        except ValidationError as exc:
            logger.warning("Could not deserialize document with id %s in %s collection: %s", id, self.name, exc)
            return None

    def save(self, id: str, entity: T) -> None:
        try:
            self.collection.replace_one({"id": id}, entity.model_dump(), upsert=True)
        except PyMongoError as exc:
            logger.error("Could not save document with id %s in %s collection: %s", id, self.name, exc)

    def insert(self, entity: T) -> None:
        try:
            self.collection.insert_one(entity.model_dump())
        except PyMongoError as exc:
            logger.error("Could not insert document in %s collection: %s", self.name, exc)

    def find_all(self) -> List[T]:
        """Read every valid document of the collection, skipping unreadable ones."""
        try:
            documents = list(self.collection.find({}))
        except PyMongoError as exc:
            logger.warning("Could not read %s collection: %s", self.name, exc)
            return []

        records: List[T] = []
        for document in documents:
            try:
                records.append(self._to_model(document))
            except ValidationError as exc:
                logger.warning("Skipping unreadable document in %s collection: %s", self.name, exc)
        return records
