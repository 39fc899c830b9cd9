from __future__ import annotations

from datetime import datetime, timezone

import pytest

from glowlogy.application.ports.key_value_store import KeyValueStorePort, StorageQuotaExceededError
from glowlogy.infrastructure.store.memory_document_store import MemoryDocumentStore


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def as_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.now, timezone.utc)


class FlakyKeyValueStore(KeyValueStorePort):
    """Key/value store whose writes fail a configurable number of times."""

    def __init__(self, failures: int = 0) -> None:
        self.items: dict[str, str] = {}
        self.failures = failures
        self.write_attempts = 0

    def read(self, key: str) -> str | None:
        return self.items.get(key)

    def write(self, key: str, value: str) -> None:
        self.write_attempts += 1
        if self.failures:
            self.failures -= 1
            raise StorageQuotaExceededError("quota exceeded")
        self.items[key] = value

    def delete(self, key: str) -> None:
        self.items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self.items)


class CountingDocumentStore(MemoryDocumentStore):
    """In-memory store that counts calls and can be told to fail."""

    def __init__(self, clock=None) -> None:
        super().__init__(clock=clock)
        self.calls: dict[str, int] = {}
        self.fail_on: set[str] = set()

    def _record(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1
        if name in self.fail_on:
            raise ConnectionError(f"{name} unavailable")

    async def insert(self, collection, record):
        self._record("insert")
        return await super().insert(collection, record)

    async def create_if_absent(self, collection, doc_id, record):
        self._record("create_if_absent")
        return await super().create_if_absent(collection, doc_id, record)

    async def query(self, collection, filters=(), order_by=(), limit=None):
        self._record("query")
        return await super().query(collection, filters, order_by, limit)

    async def get_by_id(self, collection, doc_id):
        self._record("get_by_id")
        return await super().get_by_id(collection, doc_id)

    async def get_many(self, collection, doc_ids):
        self._record("get_many")
        return await super().get_many(collection, doc_ids)

    async def update(self, collection, doc_id, fields):
        self._record("update")
        return await super().update(collection, doc_id, fields)

    async def delete(self, collection, doc_id):
        self._record("delete")
        return await super().delete(collection, doc_id)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def document_store(clock) -> CountingDocumentStore:
    return CountingDocumentStore(clock=clock.as_datetime)
