"""
Firestore REST client

Thin async client over the Firestore v1 REST API, which is where the
storefront keeps products, services, packages and orders.

- Typed value codec (stringValue, integerValue, mapValue, ...)
- get / list / runQuery reads, commit-based create with server timestamps,
  masked field updates
- Transport and HTTP errors surface as DocumentStoreError

Usage:
    async with FirestoreClient() as client:
        doc = await client.get_document("products", "abc123")
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

import httpx

from vinayak_store.core.config import settings
from vinayak_store.core.exceptions import DocumentStoreError

logger = logging.getLogger(__name__)

_TIMESTAMP_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$"
)


# ==================== Value codec ====================

def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp; nanosecond precision is truncated to micros."""
    match = _TIMESTAMP_RE.match(value)
    if not match:
        raise ValueError(f"Invalid timestamp: {value!r}")
    base, fraction, offset = match.groups()
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    parsed = datetime.strptime(base, "%Y-%m-%dT%H:%M:%S").replace(microsecond=micros)
    if offset == "Z":
        tz = timezone.utc
    else:
        sign = 1 if offset[0] == "+" else -1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return parsed.replace(tzinfo=tz)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def encode_value(value: Any) -> Dict[str, Any]:
    """Python value -> Firestore typed value."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, Enum):
        return encode_value(value.value)
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": format_timestamp(value)}
    if isinstance(value, (list, tuple)):
        if not value:
            return {"arrayValue": {}}
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    raise TypeError(f"Cannot encode {type(value).__name__} as a Firestore value")


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {str(k): encode_value(v) for k, v in data.items()}


def decode_value(value: Dict[str, Any]) -> Any:
    """Firestore typed value -> Python value."""
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
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "referenceValue" in value:
        return value["referenceValue"]
    if "bytesValue" in value:
        return value["bytesValue"]
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    raise ValueError(f"Unknown Firestore value type: {sorted(value)}")


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: decode_value(v) for k, v in fields.items()}


@dataclass
class FirestoreDocument:
    """A decoded document."""
    name: str
    data: Dict[str, Any] = field(default_factory=dict)
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None

    @property
    def id(self) -> str:
        return self.name.rsplit("/", 1)[-1]

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "FirestoreDocument":
        create_time = payload.get("createTime")
        update_time = payload.get("updateTime")
        return cls(
            name=payload["name"],
            data=decode_fields(payload.get("fields", {})),
            create_time=parse_timestamp(create_time) if create_time else None,
            update_time=parse_timestamp(update_time) if update_time else None,
        )


def new_document_id() -> str:
    """20-character id in the style Firestore assigns to auto-id documents."""
    return uuid4().hex[:20]


# ==================== Client ====================

class FirestoreClient:
    """
    Async Firestore REST client.

    Either use as an async context manager or call init()/close().
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        database: Optional[str] = None,
        timeout: Optional[float] = None,
        auth_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.project_id = project_id or settings.FIRESTORE_PROJECT_ID
        self.api_key = api_key if api_key is not None else settings.FIRESTORE_API_KEY
        self.base_url = (base_url or settings.FIRESTORE_BASE_URL).rstrip("/")
        self.database = database or settings.FIRESTORE_DATABASE
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self.auth_token = auth_token
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def init(self):
        """Initialize client without context manager. Must call close() when done."""
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.auth_token:
                headers["Authorization"] = f"Bearer {self.auth_token}"
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self

    async def close(self):
        """Close the client. Use this when not using context manager."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def database_path(self) -> str:
        return f"projects/{self.project_id}/databases/{self.database}"

    @property
    def documents_url(self) -> str:
        return f"{self.base_url}/{self.database_path}/documents"

    def document_name(self, collection: str, doc_id: str) -> str:
        return f"{self.database_path}/documents/{collection}/{doc_id}"

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[List[Tuple[str, Any]]] = None,
        json: Optional[Any] = None,
        allow_not_found: bool = False,
    ) -> Optional[httpx.Response]:
        await self.init()
        query = list(params or [])
        if self.api_key:
            query.append(("key", self.api_key))

        try:
            response = await self._client.request(method, url, params=query, json=json)
        except httpx.HTTPError as e:
            logger.error("Firestore %s %s failed: %s", method, url, e)
            raise DocumentStoreError(f"Document store request failed: {e}", path=url)

        if response.status_code == 404 and allow_not_found:
            return None
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                "Firestore %s %s returned %d: %s",
                method, url, response.status_code, message,
            )
            raise DocumentStoreError(
                message,
                status_code=response.status_code,
                path=url,
            )
        return response

    async def get_document(self, collection: str, doc_id: str) -> Optional[FirestoreDocument]:
        """Fetch one document; None when it does not exist."""
        response = await self._request(
            "GET", f"{self.documents_url}/{collection}/{doc_id}", allow_not_found=True
        )
        if response is None:
            return None
        return FirestoreDocument.from_api(response.json())

    async def list_documents(self, collection: str, page_size: int = 100) -> List[FirestoreDocument]:
        """All documents in a collection, following page tokens."""
        documents: List[FirestoreDocument] = []
        page_token: Optional[str] = None
        while True:
            params: List[Tuple[str, Any]] = [("pageSize", page_size)]
            if page_token:
                params.append(("pageToken", page_token))
            response = await self._request(
                "GET", f"{self.documents_url}/{collection}", params=params
            )
            payload = response.json()
            documents.extend(FirestoreDocument.from_api(d) for d in payload.get("documents", []))
            page_token = payload.get("nextPageToken")
            if not page_token:
                return documents

    async def query_equal(self, collection: str, field_path: str, value: Any) -> List[FirestoreDocument]:
        """Documents whose field equals value (structured query, no ordering)."""
        body = {
            "structuredQuery": {
                "from": [{"collectionId": collection}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": field_path},
                        "op": "EQUAL",
                        "value": encode_value(value),
                    }
                },
            }
        }
        response = await self._request("POST", f"{self.documents_url}:runQuery", json=body)
        # runQuery answers with one entry per result; entries without
        # "document" only carry read metadata
        return [
            FirestoreDocument.from_api(entry["document"])
            for entry in response.json()
            if "document" in entry
        ]

    async def create_document(
        self,
        collection: str,
        data: Dict[str, Any],
        doc_id: Optional[str] = None,
        server_timestamp_fields: Sequence[str] = (),
    ) -> str:
        """
        Create a document in one atomic commit and return its id.

        Fields in server_timestamp_fields are set to the commit time by the
        server. The write fails if the document already exists.
        """
        doc_id = doc_id or new_document_id()
        write: Dict[str, Any] = {
            "update": {
                "name": self.document_name(collection, doc_id),
                "fields": encode_fields(data),
            },
            "currentDocument": {"exists": False},
        }
        if server_timestamp_fields:
            write["updateTransforms"] = [
                {"fieldPath": f, "setToServerValue": "REQUEST_TIME"}
                for f in server_timestamp_fields
            ]
        await self._request("POST", f"{self.documents_url}:commit", json={"writes": [write]})
        logger.info("Created document %s/%s", collection, doc_id)
        return doc_id

    async def update_fields(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
    ) -> Optional[FirestoreDocument]:
        """
        Overwrite only the given fields of an existing document.

        Returns None when the document does not exist.
        """
        params: List[Tuple[str, Any]] = [("updateMask.fieldPaths", k) for k in data]
        params.append(("currentDocument.exists", "true"))
        response = await self._request(
            "PATCH",
            f"{self.documents_url}/{collection}/{doc_id}",
            params=params,
            json={"fields": encode_fields(data)},
            allow_not_found=True,
        )
        if response is None:
            return None
        return FirestoreDocument.from_api(response.json())


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(payload, list) and payload:
        payload = payload[0]
    if isinstance(payload, dict):
        err = payload.get("error") or {}
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
    return f"HTTP {response.status_code}"
