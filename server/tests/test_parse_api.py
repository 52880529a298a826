"""
Tests for the Parse REST surface served by server.main.

Covers query-string and _method=GET queries, the users/roles aliases,
batch requests, and how engine errors map onto HTTP responses.
"""

import json

from fastapi.testclient import TestClient
from httpx import AsyncClient

import mockdb
from mockdb.kernel.types import HookRejected, make_pointer
from server.main import app


async def create(client: AsyncClient, path: str, data: dict) -> dict:
    response = await client.post(path, json=data)
    assert response.status_code == 201
    return response.json()


class TestHealth:
    def test_health_endpoint(self):
        """GET /health returns {"status": "ok"}."""
        client = TestClient(app)
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestClasses:
    """CRUD on /1/classes."""

    async def test_create_then_fetch(self, client: AsyncClient):
        created = await create(client, "/1/classes/Item", {"name": "Apple", "price": 30})
        assert "updatedAt" not in created

        response = await client.get(f"/1/classes/Item/{created['objectId']}")
        assert response.status_code == 200
        fetched = response.json()
        assert fetched["name"] == "Apple"
        assert fetched["createdAt"] == fetched["updatedAt"] == created["createdAt"]

    async def test_query_string_where(self, client: AsyncClient):
        await create(client, "/1/classes/Item", {"price": 30})
        await create(client, "/1/classes/Item", {"price": 20})

        response = await client.get("/1/classes/Item", params={"where": json.dumps({"price": 30})})
        assert response.status_code == 200
        assert [r["price"] for r in response.json()["results"]] == [30]

    async def test_limit_skip_order_count(self, client: AsyncClient):
        for price in [10, 30, 20]:
            await create(client, "/1/classes/Item", {"price": price})

        response = await client.get("/1/classes/Item", params={"order": "price", "limit": 1, "skip": 1})
        assert [r["price"] for r in response.json()["results"]] == [20]

        response = await client.get("/1/classes/Item", params={"count": 1, "limit": 0})
        assert response.json() == {"count": 3}

    async def test_update_and_delete(self, client: AsyncClient):
        created = await create(client, "/1/classes/Item", {"price": 30})
        path = f"/1/classes/Item/{created['objectId']}"

        response = await client.put(path, json={"price": {"__op": "Increment", "amount": -5}})
        assert response.status_code == 200
        assert response.json()["price"] == 25

        response = await client.delete(path)
        assert response.status_code == 200
        assert response.json() == {}

        response = await client.get(path)
        assert response.status_code == 404
        assert response.json() == {"code": 101, "error": "Object not found."}

    async def test_include(self, client: AsyncClient):
        brand = await create(client, "/1/classes/Brand", {"name": "Acme"})
        await create(client, "/1/classes/Item", {"brand": make_pointer("Brand", brand["objectId"])})

        response = await client.get("/1/classes/Item", params={"include": "brand"})
        (item,) = response.json()["results"]
        assert item["brand"]["__type"] == "Object"
        assert item["brand"]["name"] == "Acme"


class TestMethodOverride:
    """The JS SDK sends queries as POST with _method=GET."""

    async def test_post_as_query(self, client: AsyncClient):
        await create(client, "/1/classes/Item", {"price": 30})
        await create(client, "/1/classes/Item", {"price": 20})

        response = await client.post(
            "/1/classes/Item",
            json={
                "_method": "GET",
                "_ApplicationId": "app",
                "_ClientVersion": "js4.0.0",
                "where": {"price": {"$lt": 25}},
            },
        )
        assert response.status_code == 200
        assert [r["price"] for r in response.json()["results"]] == [20]

    async def test_envelope_keys_are_not_stored(self, client: AsyncClient):
        created = await create(
            client, "/1/classes/Item", {"_ApplicationId": "app", "_InstallationId": "inst", "name": "Apple"}
        )
        stored = mockdb.get_default_db().store.get("Item", created["objectId"])
        assert "_ApplicationId" not in stored
        assert "_InstallationId" not in stored


class TestSpecialClasses:
    async def test_users_and_roles(self, client: AsyncClient):
        user = await create(client, "/1/users", {"username": "ada"})
        role = await create(client, "/1/roles", {"name": "admin"})

        db = mockdb.get_default_db()
        assert db.store.get("_User", user["objectId"])["username"] == "ada"
        assert db.store.get("_Role", role["objectId"])["name"] == "admin"

        response = await client.get(f"/1/users/{user['objectId']}")
        assert response.json()["username"] == "ada"


class TestBatch:
    async def test_batch(self, client: AsyncClient):
        response = await client.post(
            "/1/batch",
            json={
                "requests": [
                    {"method": "POST", "path": "/1/classes/Item", "body": {"name": "Apple"}},
                    {"method": "GET", "path": "/1/classes/Item/missing"},
                ]
            },
        )
        assert response.status_code == 200
        first, second = response.json()
        assert first["success"]["name"] == "Apple"
        assert second["error"]["code"] == 101

    async def test_malformed_batch(self, client: AsyncClient):
        response = await client.post("/1/batch", json={"requests": [{"path": "/1/classes/Item"}]})
        assert response.status_code == 400
        assert response.json()["code"] == 107


class TestErrors:
    async def test_hook_rejection(self, client: AsyncClient):
        def before_save(request):
            if request.object.get("error"):
                raise HookRejected("whoah")
            return request.object.set("cool", True)

        mockdb.register_hook("Brand", "beforeSave", before_save)

        created = await create(client, "/1/classes/Brand", {"name": "Acme"})
        assert created["cool"] is True

        response = await client.post("/1/classes/Brand", json={"error": True})
        assert response.status_code == 400
        assert response.json() == {"code": 141, "error": "whoah"}
        assert len(mockdb.get_default_db().store.records("Brand")) == 1

    async def test_unknown_operator(self, client: AsyncClient):
        response = await client.post("/1/classes/Item", json={"price": {"__op": "Explode"}})
        assert response.status_code == 400
        assert response.json()["code"] == 111
        assert mockdb.get_default_db().store.records("Item") == []

    async def test_non_string_operator(self, client: AsyncClient):
        response = await client.post("/1/classes/Item", json={"tags": {"__op": ["Add"], "objects": [1]}})
        assert response.status_code == 400
        assert response.json()["code"] == 111

    async def test_invalid_regex(self, client: AsyncClient):
        await create(client, "/1/classes/Item", {"name": "Apple"})
        where = json.dumps({"name": {"$regex": "(unclosed"}})
        response = await client.get("/1/classes/Item", params={"where": where})
        assert response.status_code == 400
        assert response.json()["code"] == 102

    async def test_unknown_route(self, client: AsyncClient):
        response = await client.get("/1/functions/hello")
        assert response.status_code == 404

    async def test_invalid_json(self, client: AsyncClient):
        response = await client.post(
            "/1/classes/Item", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == 107

    async def test_non_object_body(self, client: AsyncClient):
        response = await client.post("/1/classes/Item", json=[1, 2])
        assert response.status_code == 400


class TestReset:
    async def test_reset(self, client: AsyncClient):
        await create(client, "/1/classes/Item", {"price": 1})
        mockdb.register_hook("Item", "beforeSave", lambda request: None)

        response = await client.post("/_mockdb/reset")
        assert response.status_code == 200

        db = mockdb.get_default_db()
        assert db.store.records("Item") == []
        assert db.hooks.get("Item", "beforeSave") is None
