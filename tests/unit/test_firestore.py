"""Tests for the Firestore REST encoding, query building and collection adapter.

HTTP is served by httpx.MockTransport; no network or credentials involved.
"""

import json
from datetime import UTC, datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from accounts.application.dtos.query import Projection, SortKey
from accounts.infrastructure.exceptions import DocumentExistsError
from accounts.infrastructure.firestore._rest_client import (
    FirestoreRESTClient,
    build_structured_query,
)
from accounts.infrastructure.firestore._rest_encoding import (
    decode_document,
    encode_fields,
    encode_value,
)
from accounts.infrastructure.firestore.document_store import (
    FirestoreDocumentStore,
    _conditions,
)

PREFIX = "projects/demo/databases/(default)/documents"
WHEN = datetime(2030, 1, 2, 3, 4, 5, tzinfo=UTC)


def _doc(doc_id: str, **fields) -> dict:
    return {"name": f"{PREFIX}/users/{doc_id}", **encode_fields(fields)}


class TestEncoding:
    def test_document_round_trip(self) -> None:
        data = {
            "email": "ada@acme.io",
            "deleted": False,
            "__v": 3,
            "score": 1.5,
            "tel": None,
            "created_at": WHEN,
            "tags": ["a", "b"],
            "meta": {"k": "v"},
        }
        assert decode_document(encode_fields(data)) == data

    def test_bool_is_not_integer(self) -> None:
        assert encode_value(True) == {"booleanValue": True}
        assert encode_value(1) == {"integerValue": "1"}

    def test_timestamps_converted_to_utc(self) -> None:
        local = WHEN.astimezone(timezone(timedelta(hours=3)))
        assert encode_value(local) == {"timestampValue": "2030-01-02T03:04:05.000000Z"}

    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError):
            encode_value(object())

    def test_empty_document(self) -> None:
        assert decode_document(None) == {}


class TestStructuredQuery:
    def test_single_condition(self) -> None:
        q = build_structured_query("users", [("email", "$eq", "a@x.com")])
        assert q["from"] == [{"collectionId": "users"}]
        assert q["where"] == {
            "fieldFilter": {
                "field": {"fieldPath": "email"},
                "op": "EQUAL",
                "value": {"stringValue": "a@x.com"},
            }
        }

    def test_composite_order_window_select(self) -> None:
        q = build_structured_query(
            "users",
            [("deleted", "$eq", False), ("role", "$in", ["admin"])],
            [("created_at", "desc")],
            select=["email"],
            offset=10,
            limit=5,
        )
        assert q["where"]["compositeFilter"]["op"] == "AND"
        ops = [f["fieldFilter"]["op"] for f in q["where"]["compositeFilter"]["filters"]]
        assert ops == ["EQUAL", "IN"]
        assert q["orderBy"] == [{"field": {"fieldPath": "created_at"}, "direction": "DESCENDING"}]
        assert q["select"] == {"fields": [{"fieldPath": "email"}]}
        assert (q["offset"], q["limit"]) == (10, 5)

    def test_no_window_when_unlimited(self) -> None:
        q = build_structured_query("users")
        assert "where" not in q and "limit" not in q and "offset" not in q

    def test_boolean_ne_becomes_equality(self) -> None:
        assert _conditions({"deleted": {"$ne": True}, "age": {"$gte": 18}}) == [
            ("deleted", "$eq", False),
            ("age", "$gte", 18),
        ]

    def test_list_becomes_in(self) -> None:
        assert _conditions({"role": ["admin", "super_admin"]}) == [
            ("role", "$in", ["admin", "super_admin"])
        ]


class FakeFirestore:
    """Records requests and answers from an in-test document map."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.documents: dict[str, dict] = {}
        self.query_results: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v1/")
        if path.endswith(":runQuery"):
            return httpx.Response(200, json=[{"document": d} for d in self.query_results] + [{"readTime": "x"}])
        if request.method == "GET":
            doc = self.documents.get(path)
            return httpx.Response(200, json=doc) if doc else httpx.Response(404, json={})
        if request.method == "POST":
            doc_id = parse_qs(urlparse(str(request.url)).query)["documentId"][0]
            name = f"{path}/{doc_id}"
            if name in self.documents:
                return httpx.Response(409, json={})
            self.documents[name] = {"name": name, **json.loads(request.content)}
            return httpx.Response(200, json=self.documents[name])
        if request.method == "PATCH":
            current = self.documents.get(path)
            if current is None:
                return httpx.Response(400, json={})
            current["fields"].update(json.loads(request.content)["fields"])
            return httpx.Response(200, json=current)
        if request.method == "DELETE":
            self.documents.pop(path, None)
            return httpx.Response(200, json={})
        return httpx.Response(405)


@pytest.fixture
def fake() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
async def users(fake: FakeFirestore):
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake.handler))
    store = FirestoreDocumentStore(FirestoreRESTClient("demo", None, http_client=http))
    yield store.collection("users")
    await store.aclose()
    await http.aclose()


async def test_insert_strips_id_and_rejects_existing(users, fake) -> None:
    await users.insert({"id": "u1", "email": "ada@acme.io"})
    stored = fake.documents[f"{PREFIX}/users/u1"]
    assert decode_document(stored) == {"email": "ada@acme.io"}
    with pytest.raises(DocumentExistsError):
        await users.insert({"id": "u1", "email": "ada@acme.io"})


async def test_find_by_id_uses_get(users, fake) -> None:
    fake.documents[f"{PREFIX}/users/u1"] = _doc("u1", email="ada@acme.io", deleted=False)
    assert await users.find({"id": "u1", "deleted": {"$ne": True}}) == [
        {"id": "u1", "email": "ada@acme.io", "deleted": False}
    ]
    assert await users.find({"id": "u1", "deleted": True}) == []
    assert await users.find({"id": "missing"}) == []
    assert all(r.method == "GET" for r in fake.requests)


async def test_find_pushes_query_down(users, fake) -> None:
    fake.query_results = [_doc("u1", email="ada@acme.io", __v=0)]
    found = await users.find(
        {"deleted": {"$ne": True}},
        sort=(SortKey("id"),),
        projection=Projection(exclude=("__v",)),
        skip=2,
        limit=3,
    )
    assert found == [{"id": "u1", "email": "ada@acme.io"}]
    body = json.loads(fake.requests[-1].content)["structuredQuery"]
    assert body["where"]["fieldFilter"]["op"] == "EQUAL"
    assert body["orderBy"][0]["field"]["fieldPath"] == "__name__"
    assert (body["offset"], body["limit"]) == (2, 3)


async def test_update_one_patches_changed_fields(users, fake) -> None:
    fake.documents[f"{PREFIX}/users/u1"] = _doc("u1", email="ada@acme.io", deleted=False)
    updated = await users.update_one({"id": "u1"}, {"deleted": True})
    assert updated == {"id": "u1", "email": "ada@acme.io", "deleted": True}
    patch = fake.requests[-1]
    assert patch.method == "PATCH"
    params = parse_qs(urlparse(str(patch.url)).query)
    assert params["updateMask.fieldPaths"] == ["deleted"]
    assert params["currentDocument.exists"] == ["true"]


async def test_delete_one_returns_removed(users, fake) -> None:
    fake.documents[f"{PREFIX}/users/u1"] = _doc("u1", email="ada@acme.io")
    assert await users.delete_one({"id": "u1"}) == {"id": "u1", "email": "ada@acme.io"}
    assert f"{PREFIX}/users/u1" not in fake.documents
    assert await users.delete_one({"id": "u1"}) is None
