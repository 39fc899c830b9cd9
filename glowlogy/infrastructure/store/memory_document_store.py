from __future__ import annotations

import copy
import logging
import secrets
import string
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from glowlogy.application.ports.document_store import (
    SERVER_TIMESTAMP,
    Document,
    DocumentExistsError,
    DocumentStorePort,
    Filter,
    OrderBy,
)


_ID_ALPHABET = string.ascii_letters + string.digits


def generate_document_id(length: int = 20) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


class MemoryDocumentStore(DocumentStorePort):
    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logging.getLogger(__name__)

    def seed(self, collection: str, doc_id: str, record: dict[str, Any]) -> None:
        self._collection(collection)[doc_id] = self._resolve(record)

    async def insert(self, collection: str, record: dict[str, Any]) -> str:
        doc_id = generate_document_id()
        self._collection(collection)[doc_id] = self._resolve(record)
        self._logger.debug("Document inserted", extra={"collection": collection})
        return doc_id

    async def create_if_absent(self, collection: str, doc_id: str, record: dict[str, Any]) -> None:
        documents = self._collection(collection)
        if doc_id in documents:
            raise DocumentExistsError(collection, doc_id)
        documents[doc_id] = self._resolve(record)

    async def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: Iterable[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Document]:
        filters = list(filters)
        matches = [
            Document(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._collection(collection).items()
            if all(_matches(data, f) for f in filters)
        ]
        # Stable sorts applied last-key-first give multi-key ordering.
        for order in reversed(list(order_by)):
            matches.sort(key=lambda doc: _sort_key(doc.data.get(order.field)), reverse=order.descending)
        if limit is not None:
            matches = matches[:limit]
        return matches

    async def get_by_id(self, collection: str, doc_id: str) -> Document | None:
        data = self._collection(collection).get(doc_id)
        if data is None:
            return None
        return Document(id=doc_id, data=copy.deepcopy(data))

    async def get_many(self, collection: str, doc_ids: list[str]) -> list[Document]:
        documents = self._collection(collection)
        return [
            Document(id=doc_id, data=copy.deepcopy(documents[doc_id]))
            for doc_id in dict.fromkeys(doc_ids)
            if doc_id in documents
        ]

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        documents = self._collection(collection)
        if doc_id not in documents:
            raise KeyError(f"{collection}/{doc_id} does not exist")
        documents[doc_id].update(self._resolve(fields))

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def _resolve(self, record: dict[str, Any]) -> dict[str, Any]:
        now = self._clock()
        return {
            key: (now if value is SERVER_TIMESTAMP else copy.deepcopy(value))
            for key, value in record.items()
        }


def _matches(data: dict[str, Any], f: Filter) -> bool:
    if f.field not in data:
        return False
    value = data[f.field]
    try:
        if f.op == "==":
            return value == f.value
        if f.op == "in":
            return value in f.value
        if f.op == "<":
            return value < f.value
        if f.op == "<=":
            return value <= f.value
        if f.op == ">":
            return value > f.value
        if f.op == ">=":
            return value >= f.value
    except TypeError:
        return False
    return False


def _sort_key(value: Any) -> tuple:
    return (value is not None, value if value is not None else 0)
