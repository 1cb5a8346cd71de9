"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Iterable
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from accounts.infrastructure.exceptions import DocumentExistsError
from accounts.infrastructure.firestore._rest_encoding import (
    decode_document,
    document_id,
    encode_fields,
    encode_value,
)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
) -> Any:
    """Perform async HTTP request to Firestore REST API. 404 returns None."""
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    if method == "GET":
        resp = await client.get(url, headers=headers)
    elif method == "PATCH":
        resp = await client.patch(url, headers=headers, json=body)
    elif method == "POST":
        resp = await client.post(url, headers=headers, json=body)
    elif method == "DELETE":
        resp = await client.delete(url, headers=headers)
    else:
        raise ValueError(f"Unsupported method: {method!r}")
    if resp.status_code == 404:
        return None
    if resp.status_code == 409:
        raise DocumentExistsError("Document already exists")
    if resp.status_code not in (200, 204):
        resp.raise_for_status()
    if method == "DELETE":
        return {}
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


class DocumentSnapshot:
    """Snapshot of a document (id + data)."""

    def __init__(self, id_: str, data: dict):
        self.id = id_
        self._data = data

    def to_dict(self) -> dict:
        return self._data


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: "FirestoreRESTClient", path: str):
        self._client = client
        self._path = path

    @property
    def id(self) -> str:
        return self._path.split("/")[-1]

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        url = f"{_BASE}/{self._path}"
        out = await _request_async(
            self._client._http, url, access_token=await self._client.get_token()
        )
        if not out:
            return None
        return DocumentSnapshot(self.id, decode_document(out))

    async def update(self, changes: dict[str, Any]) -> DocumentSnapshot | None:
        """Patch only the given fields; returns None if the document is gone.

        The updateMask limits the write to the changed fields and the
        exists precondition keeps a concurrently deleted document deleted.
        """
        params = [("updateMask.fieldPaths", f) for f in changes]
        params.append(("currentDocument.exists", "true"))
        url = f"{_BASE}/{self._path}?{urlencode(params)}"
        try:
            out = await _request_async(
                self._client._http,
                url,
                method="PATCH",
                body=encode_fields(changes),
                access_token=await self._client.get_token(),
            )
        except httpx.HTTPStatusError as e:
            # FAILED_PRECONDITION: the document no longer exists
            if e.response.status_code == 400:
                return None
            raise
        if not out:
            return None
        return DocumentSnapshot(self.id, decode_document(out))

    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing (404)."""
        url = f"{_BASE}/{self._path}"
        await _request_async(
            self._client._http,
            url,
            method="DELETE",
            access_token=await self._client.get_token(),
        )


_OP_MAP: dict[str, str] = {
    "$eq": "EQUAL",
    "$ne": "NOT_EQUAL",
    "$lt": "LESS_THAN",
    "$lte": "LESS_THAN_OR_EQUAL",
    "$gt": "GREATER_THAN",
    "$gte": "GREATER_THAN_OR_EQUAL",
    "$in": "IN",
}


def build_structured_query(
    collection_id: str,
    conditions: Iterable[tuple[str, str, Any]] = (),
    order_by: Iterable[tuple[str, str]] = (),
    *,
    select: Iterable[str] | None = None,
    offset: int = 0,
    limit: int | None = None,
) -> dict[str, Any]:
    """Build a runQuery structuredQuery body.

    conditions are (field, operator, value) triples with operators from
    _OP_MAP; they are ANDed. order_by is (field, 'asc'|'desc') pairs.
    """
    structured: dict[str, Any] = {"from": [{"collectionId": collection_id}]}
    filters = [
        {
            "fieldFilter": {
                "field": {"fieldPath": field},
                "op": _OP_MAP[op],
                "value": encode_value(value),
            }
        }
        for field, op, value in conditions
    ]
    if len(filters) == 1:
        structured["where"] = filters[0]
    elif filters:
        structured["where"] = {"compositeFilter": {"op": "AND", "filters": filters}}
    orders = [
        {
            "field": {"fieldPath": field},
            "direction": "DESCENDING" if direction == "desc" else "ASCENDING",
        }
        for field, direction in order_by
    ]
    if orders:
        structured["orderBy"] = orders
    if select is not None:
        structured["select"] = {"fields": [{"fieldPath": f} for f in select]}
    if offset:
        structured["offset"] = offset
    if limit is not None:
        structured["limit"] = limit
    return structured


class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: "FirestoreRESTClient", path: str):
        self._client = client
        self._path = path.rstrip("/")

    @property
    def id(self) -> str:
        return self._path.split("/")[-1]

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self._path}/{document_id}")

    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        """Create a document with the given ID (fail with DocumentExistsError if it exists)."""
        url = f"{_BASE}/{self._path}?documentId={quote(document_id, safe='')}"
        await _request_async(
            self._client._http,
            url,
            method="POST",
            body=encode_fields(data),
            access_token=await self._client.get_token(),
        )

    async def run_query(self, structured: dict[str, Any]) -> AsyncIterator[DocumentSnapshot]:
        """Execute a structured query against this collection and yield snapshots."""
        parent = self._path.rsplit("/", 1)[0]
        url = f"{_BASE}/{parent}:runQuery"
        resp = await _request_async(
            self._client._http,
            url,
            method="POST",
            body={"structuredQuery": structured},
            access_token=await self._client.get_token(),
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        for item in items:
            if "document" not in item:
                continue
            doc = item["document"]
            yield DocumentSnapshot(document_id(doc), decode_document(doc))


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._prefix = f"projects/{project_id}/databases/(default)/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=30.0)
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        if self._credentials is None:
            return ""
        return await asyncio.to_thread(_get_access_token, self._credentials)

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{collection_id}")
