from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Iterable

import httpx

from glowlogy.application.ports.document_store import (
    SERVER_TIMESTAMP,
    Document,
    DocumentExistsError,
    DocumentStorePort,
    Filter,
    OrderBy,
)
from glowlogy.core.config import settings
from glowlogy.infrastructure.store.memory_document_store import generate_document_id


_OPERATORS = {
    "==": "EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
    "in": "IN",
}

_FRACTION = re.compile(r"\.(\d+)")


class FirestoreDocumentStore(DocumentStorePort):
    """Document store backed by the Firestore REST API (v1)."""

    def __init__(
        self,
        project_id: str | None = None,
        api_key: str | None = None,
        access_token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._project_id = project_id or settings.FIRESTORE_PROJECT_ID
        self._api_key = api_key or settings.FIRESTORE_API_KEY
        self._access_token = access_token or settings.FIRESTORE_ACCESS_TOKEN
        self._base_url = (base_url or settings.FIRESTORE_BASE_URL).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout or settings.FIRESTORE_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

        if not self._project_id:
            raise ValueError("FIRESTORE_PROJECT_ID is required for the Firestore store")

        self._database = f"projects/{self._project_id}/databases/(default)"
        self._documents_root = f"{self._database}/documents"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def insert(self, collection: str, record: dict[str, Any]) -> str:
        doc_id = generate_document_id()
        await self._commit([self._update_write(collection, doc_id, record, exists=False)])
        return doc_id

    async def create_if_absent(self, collection: str, doc_id: str, record: dict[str, Any]) -> None:
        try:
            await self._commit([self._update_write(collection, doc_id, record, exists=False)])
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 409:
                raise DocumentExistsError(collection, doc_id) from e
            raise

    async def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: Iterable[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Document]:
        structured: dict[str, Any] = {"from": [{"collectionId": collection}]}

        clauses = [_field_filter(f) for f in filters]
        if len(clauses) == 1:
            structured["where"] = clauses[0]
        elif clauses:
            structured["where"] = {"compositeFilter": {"op": "AND", "filters": clauses}}

        orders = [
            {"field": {"fieldPath": o.field}, "direction": "DESCENDING" if o.descending else "ASCENDING"}
            for o in order_by
        ]
        if orders:
            structured["orderBy"] = orders
        if limit is not None:
            structured["limit"] = limit

        data = await self._request(
            "POST",
            f"{self._documents_root}:runQuery",
            json={"structuredQuery": structured},
        )
        return [_to_document(item["document"]) for item in data or [] if item.get("document")]

    async def get_by_id(self, collection: str, doc_id: str) -> Document | None:
        try:
            data = await self._request("GET", f"{self._documents_root}/{collection}/{doc_id}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise
        return _to_document(data)

    async def get_many(self, collection: str, doc_ids: list[str]) -> list[Document]:
        if not doc_ids:
            return []
        names = [self._name(collection, doc_id) for doc_id in dict.fromkeys(doc_ids)]
        data = await self._request("POST", f"{self._documents_root}:batchGet", json={"documents": names})
        return [_to_document(item["found"]) for item in data or [] if item.get("found")]

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        await self._commit([self._update_write(collection, doc_id, fields, exists=True, merge=True)])

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._commit([{"delete": self._name(collection, doc_id)}])

    def _name(self, collection: str, doc_id: str) -> str:
        return f"{self._documents_root}/{collection}/{doc_id}"

    def _update_write(
        self,
        collection: str,
        doc_id: str,
        record: dict[str, Any],
        exists: bool,
        merge: bool = False,
    ) -> dict[str, Any]:
        fields = {key: encode_value(value) for key, value in record.items() if value is not SERVER_TIMESTAMP}
        transforms = [
            {"fieldPath": key, "setToServerValue": "REQUEST_TIME"}
            for key, value in record.items()
            if value is SERVER_TIMESTAMP
        ]
        write: dict[str, Any] = {
            "update": {"name": self._name(collection, doc_id), "fields": fields},
            "currentDocument": {"exists": exists},
        }
        if merge:
            write["updateMask"] = {"fieldPaths": list(fields)}
        if transforms:
            write["updateTransforms"] = transforms
        return write

    async def _commit(self, writes: list[dict[str, Any]]) -> None:
        await self._request("POST", f"{self._documents_root}:commit", json={"writes": writes})

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        headers = {"Content-Type": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        params = {"key": self._api_key} if self._api_key else None

        response = await self._client.request(
            method,
            f"{self._base_url}/{path}",
            json=json,
            headers=headers,
            params=params,
        )
        if response.status_code >= 400 and response.status_code not in (404, 409):
            self._logger.error(
                "Firestore request failed",
                extra={"reason": f"{method} {path} -> {response.status_code}", "error": response.text[:200]},
            )
        response.raise_for_status()
        return response.json() if response.content else None


def _field_filter(f: Filter) -> dict[str, Any]:
    return {
        "fieldFilter": {
            "field": {"fieldPath": f.field},
            "op": _OPERATORS[f.op],
            "value": encode_value(f.value),
        }
    }


def _to_document(raw: dict[str, Any]) -> Document:
    doc_id = raw["name"].rsplit("/", 1)[-1]
    return Document(id=doc_id, data=decode_fields(raw.get("fields") or {}))


def encode_value(value: Any) -> dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {"timestampValue": value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")}
    if isinstance(value, date):
        return {"stringValue": value.isoformat()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": {str(k): encode_value(v) for k, v in value.items()}}}
    raise TypeError(f"Cannot store value of type {type(value).__name__}")


def decode_fields(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: decode_value(value) for key, value in fields.items()}


def decode_value(value: dict[str, Any]) -> Any:
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return parse_timestamp(value["timestampValue"])
    if "arrayValue" in value:
        return [decode_value(item) for item in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    # referenceValue, geoPointValue, bytesValue are passed through untouched.
    return next(iter(value.values()), None)


def parse_timestamp(text: str) -> datetime:
    # Firestore emits nanoseconds; datetime keeps microseconds.
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return datetime.fromisoformat(text.replace("Z", "+00:00"))
