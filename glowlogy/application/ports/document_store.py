from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable


class _ServerTimestamp:
    """Sentinel asking the store to stamp a field with its own clock."""

    _instance: "_ServerTimestamp | None" = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()

FILTER_OPERATORS = frozenset({"==", "<", "<=", ">", ">=", "in"})


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Document:
    id: str
    data: dict[str, Any]


class DocumentExistsError(RuntimeError):
    """Raised by create_if_absent when the target document already exists."""

    def __init__(self, collection: str, doc_id: str) -> None:
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id} already exists")


class DocumentStorePort(ABC):
    @abstractmethod
    async def insert(self, collection: str, record: dict[str, Any]) -> str:
        """Insert a record under a generated id. Returns the id."""
        raise NotImplementedError

    @abstractmethod
    async def create_if_absent(self, collection: str, doc_id: str, record: dict[str, Any]) -> None:
        """Create a record under a fixed id. Raises DocumentExistsError if it exists."""
        raise NotImplementedError

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: Iterable[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Document]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_id(self, collection: str, doc_id: str) -> Document | None:
        raise NotImplementedError

    @abstractmethod
    async def get_many(self, collection: str, doc_ids: list[str]) -> list[Document]:
        """Fetch several documents by id in one call. Missing ids are skipped."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Merge fields into an existing document."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError
