"""
Chow Service REST API tests

Tests:
  1. Order lifecycle (create, edit, fetch, delete) with links and Location
  2. Cuisine search with next / prev paging links
  3. Parameter validation reports every problem at once
  4. Unknown routes and methods map to NOT_FOUND
  5. Health and root endpoints
"""
import dataclasses
from unittest.mock import AsyncMock

import httpx
import pytest
from httpx import ASGITransport
from redis.exceptions import ConnectionError as RedisConnectionError

from chowdown.db.eatery_cache import EateryCache
from chowdown.main import create_app

SEARCH = "/eateries/42.087225,-75.967951"


def links_by_rel(body: dict) -> dict[str, str]:
    return {link["rel"]: link["href"] for link in body["links"]}


def error_codes(body: dict) -> list[str]:
    return [e["options"]["code"] for e in body["errors"]]


async def new_order(client, eatery_id="house.of.spice") -> dict:
    r = await client.post("/orders", params={"eateryId": eatery_id})
    assert r.status_code == 201, r.text
    return r.json()


# ─── Test 1: Order lifecycle ───────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_order_lifecycle(client):
    order = await new_order(client)
    order_id = order["id"]
    assert order["eateryId"] == "house.of.spice"
    assert order["name"] == "House of Spice"
    assert order["items"] == []
    assert order["total"] == 0

    links = links_by_rel(order)
    assert links["order"] == f"http://test/orders/{order_id}"
    assert links["eatery"] == "http://test/eateries/house.of.spice"
    assert links["self"].startswith("http://test/orders?")

    r = await client.patch(f"/orders/{order_id}", params={"itemId": "samosa", "nItems": "2"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert len(body["items"]) == 1
    assert body["items"][0]["quantityPrice"] == 6
    assert body["items"][0]["category"] == "Appetizers"
    assert body["total"] == 6
    assert links_by_rel(body)["self"] == f"http://test/orders/{order_id}"

    r = await client.get(f"/orders/{order_id}")
    assert r.status_code == 200
    assert r.json()["total"] == 6
    assert set(links_by_rel(r.json())) == {"self", "eatery"}

    r = await client.delete(f"/orders/{order_id}")
    assert r.status_code == 200
    assert r.json() == {}

    r = await client.get(f"/orders/{order_id}")
    assert r.status_code == 404
    body = r.json()
    assert body["status"] == 404
    assert error_codes(body) == ["NOT_FOUND"]


@pytest.mark.asyncio
async def test_create_order_sets_location_header(client):
    r = await client.post("/orders", params={"eateryId": "taco-stand"})
    assert r.status_code == 201
    assert r.headers["location"] == f"http://test/orders/{r.json()['id']}"


@pytest.mark.asyncio
async def test_order_items_accumulate_and_drop(client):
    order_id = (await new_order(client))["id"]
    await client.patch(f"/orders/{order_id}", params={"itemId": "samosa", "nItems": "2"})
    await client.patch(f"/orders/{order_id}", params={"itemId": "korma", "nItems": "1"})
    r = await client.patch(f"/orders/{order_id}", params={"itemId": "samosa", "nItems": "0"})
    body = r.json()
    assert [item["id"] for item in body["items"]] == ["korma"]
    assert body["total"] == 5


@pytest.mark.asyncio
async def test_create_order_for_unknown_eatery(client):
    r = await client.post("/orders", params={"eateryId": "nowhere"})
    assert r.status_code == 404
    assert error_codes(r.json()) == ["NOT_FOUND"]

    r = await client.post("/orders")
    assert r.status_code == 400
    assert error_codes(r.json()) == ["BAD_REQ"]


@pytest.mark.asyncio
async def test_edit_rejects_items_not_on_the_menu(client):
    order_id = (await new_order(client))["id"]
    r = await client.patch(f"/orders/{order_id}", params={"itemId": "al-pastor", "nItems": "1"})
    assert r.status_code == 404
    r = await client.get(f"/orders/{order_id}")
    assert r.json()["items"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize("params, n_errors", [
    ({}, 2),
    ({"itemId": "samosa"}, 1),
    ({"itemId": "samosa", "nItems": "-1"}, 1),
    ({"itemId": "samosa", "nItems": "lots"}, 1),
])
async def test_edit_validation(client, params, n_errors):
    order_id = (await new_order(client))["id"]
    r = await client.patch(f"/orders/{order_id}", params=params)
    assert r.status_code == 400
    assert error_codes(r.json()) == ["BAD_REQ"] * n_errors


@pytest.mark.asyncio
async def test_delete_unknown_order(client):
    r = await client.delete("/orders/123_4567")
    assert r.status_code == 404


# ─── Test 2: Cuisine search ────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_search_first_page(client):
    r = await client.get(SEARCH, params={"cuisine": "chinese", "count": "3"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert [e["id"] for e in body["eateries"]] == ["chinese.1", "chinese.2", "chinese.3"]
    first = body["eateries"][0]
    assert set(first) == {"links", "id", "name", "loc", "dist"}
    assert first["links"] == [
        {"rel": "self", "name": "self", "href": "http://test/eateries/chinese.1"}
    ]

    links = links_by_rel(body)
    assert "prev" not in links
    next_params = httpx.URL(links["next"]).params
    assert next_params["offset"] == "3"
    assert next_params["count"] == "3"
    assert next_params["cuisine"] == "chinese"


@pytest.mark.asyncio
async def test_search_middle_and_last_pages(client):
    r = await client.get(SEARCH, params={"cuisine": "Chinese", "offset": "3", "count": "3"})
    links = links_by_rel(r.json())
    assert httpx.URL(links["next"]).params["offset"] == "6"
    assert httpx.URL(links["prev"]).params["offset"] == "0"

    r = await client.get(SEARCH, params={"cuisine": "Chinese", "offset": "6", "count": "3"})
    body = r.json()
    assert [e["id"] for e in body["eateries"]] == ["chinese.7"]
    links = links_by_rel(body)
    assert "next" not in links
    assert httpx.URL(links["prev"]).params["offset"] == "3"


@pytest.mark.asyncio
async def test_search_without_matches(client):
    r = await client.get(SEARCH, params={"cuisine": "Martian"})
    assert r.status_code == 200
    body = r.json()
    assert body["eateries"] == []
    assert set(links_by_rel(body)) == {"self"}


@pytest.mark.asyncio
async def test_search_default_count(client):
    r = await client.get(SEARCH, params={"cuisine": "Chinese"})
    assert len(r.json()["eateries"]) == 5


@pytest.mark.asyncio
async def test_get_eatery(client):
    r = await client.get("/eateries/house.of.spice")
    assert r.status_code == 200
    body = r.json()
    assert links_by_rel(body) == {"self": "http://test/eateries/house.of.spice"}
    assert body["menuCategories"] == ["Appetizers", "Entrees"]
    assert body["flatMenu"]["samosa"]["category"] == "Appetizers"
    assert body["phone"] == "607-555-0142"

    r = await client.get("/eateries/nowhere")
    assert r.status_code == 404


# ─── Test 3: Validation ────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_search_reports_all_bad_parameters(client):
    r = await client.get("/eateries/north,500", params={"cuisine": "", "offset": "x", "count": "0"})
    assert r.status_code == 400
    body = r.json()
    assert body["status"] == 400
    assert error_codes(body) == ["BAD_REQ"] * 5
    assert body["errors"][0]["message"] == 'BAD_REQ: bad latitude "north"'


@pytest.mark.asyncio
@pytest.mark.parametrize("param", ["offset", "count"])
async def test_search_rejects_oversized_paging(client, param):
    r = await client.get(SEARCH, params={"cuisine": "chinese", param: "99999999999999999999"})
    assert r.status_code == 400, r.text
    body = r.json()
    assert error_codes(body) == ["BAD_REQ"]
    assert body["errors"][0]["message"] == f'BAD_REQ: bad {param} "99999999999999999999"'


# ─── Test 4: Unknown routes ────────────────────────────────────────────────────
@pytest.mark.asyncio
@pytest.mark.parametrize("method, path", [
    ("GET", "/no/such/path"),
    ("PUT", "/orders/123_4567"),
    ("POST", "/eateries/house.of.spice"),
])
async def test_unsupported_routes_are_not_found(client, method, path):
    r = await client.request(method, path)
    assert r.status_code == 404
    body = r.json()
    assert error_codes(body) == ["NOT_FOUND"]
    assert body["errors"][0]["message"] == f"NOT_FOUND: {method} not supported for {path}"


# ─── Test 5: Health / root ─────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["dependencies"] == {"database": "ok"}


@pytest.mark.asyncio
async def test_root(client):
    r = await client.get("/")
    assert r.json() == {"service": "chow-service", "version": "1.0.0"}


@pytest.mark.asyncio
async def test_health_degraded_when_cache_is_down(settings, loaded_repos):
    redis = AsyncMock()
    redis.ping.side_effect = RedisConnectionError("connection refused")
    repositories = dataclasses.replace(loaded_repos, cache=EateryCache(redis, 60))

    app = create_app(settings, repositories)
    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.get("/health")
    assert r.status_code == 503
    body = r.json()
    assert body["status"] == "degraded"
    assert body["dependencies"]["database"] == "ok"
    assert body["dependencies"]["redis"].startswith("error: connection refused")
