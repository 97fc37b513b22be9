from datetime import date

from dailyreport.routers import customers as customers_router

CUSTOMERS = "/api/v1/customers"


async def test_create_customer(client, org, auth):
    resp = await client.post(
        CUSTOMERS,
        json={"customer_name": "Acme Trading", "phone": "03-1234-5678", "address": "", "contact_person": "Tanaka"},
        headers=auth(org.alice),
    )

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["customer_name"] == "Acme Trading"
    assert data["address"] is None  # empty string normalised
    assert data["contact_person"] == "Tanaka"


async def test_create_customer_validation(client, org, auth):
    for payload in (
        {"customer_name": ""},
        {"customer_name": "x" * 101},
        {"customer_name": "Acme", "phone": "12345"},
        {"customer_name": "Acme", "contact_person": "x" * 51},
    ):
        resp = await client.post(CUSTOMERS, json=payload, headers=auth(org.alice))
        assert resp.status_code == 422, payload
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_duplicate_customer_name(client, org, seed, auth):
    await seed.customer("Acme")
    resp = await client.post(CUSTOMERS, json={"customer_name": "Acme"}, headers=auth(org.alice))
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "DUPLICATE_ENTRY"


async def test_list_customers_paging_and_search(client, org, seed, auth):
    for name in ("Acme", "Globex", "Initech", "Acme West"):
        await seed.customer(name)

    resp = await client.get(
        CUSTOMERS,
        params={"customer_name": "acme", "sort": "customer_name", "order": "asc"},
        headers=auth(org.alice),
    )
    data = resp.json()["data"]
    assert [c["customer_name"] for c in data["items"]] == ["Acme", "Acme West"]
    assert data["pagination"] == {
        "total": 2,
        "per_page": 20,
        "current_page": 1,
        "last_page": 1,
        "from": 1,
        "to": 2,
    }

    resp = await client.get(
        CUSTOMERS,
        params={"per_page": 3, "page": 2, "sort": "customer_name", "order": "asc"},
        headers=auth(org.alice),
    )
    data = resp.json()["data"]
    assert [c["customer_name"] for c in data["items"]] == ["Initech"]
    assert (data["pagination"]["from"], data["pagination"]["to"]) == (4, 4)


async def test_list_customers_empty(client, org, auth):
    resp = await client.get(CUSTOMERS, headers=auth(org.alice))
    assert resp.json()["data"]["items"] == []
    assert resp.json()["data"]["pagination"]["from"] == 0
    assert resp.json()["data"]["pagination"]["to"] == 0


async def test_list_customers_bad_query(client, org, auth):
    for params in ({"per_page": 0}, {"per_page": 101}, {"order": "sideways"}, {"sort": "phone"}):
        resp = await client.get(CUSTOMERS, params=params, headers=auth(org.alice))
        assert resp.status_code == 422, params


async def test_customers_require_auth(client):
    assert (await client.get(CUSTOMERS)).status_code == 401
    assert (await client.post(CUSTOMERS, json={"customer_name": "Acme"})).status_code == 401


async def test_get_update_customer(client, org, seed, auth):
    acme = await seed.customer("Acme")
    await seed.customer("Globex")

    resp = await client.get(f"{CUSTOMERS}/{acme.id}", headers=auth(org.alice))
    assert resp.json()["data"]["customer_name"] == "Acme"

    resp = await client.put(
        f"{CUSTOMERS}/{acme.id}",
        json={"customer_name": "Acme Holdings", "phone": "090-1234-5678"},
        headers=auth(org.alice),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["phone"] == "090-1234-5678"

    # keeping its own name is fine, taking another's is not
    resp = await client.put(f"{CUSTOMERS}/{acme.id}", json={"customer_name": "Acme Holdings"}, headers=auth(org.alice))
    assert resp.status_code == 200
    resp = await client.put(f"{CUSTOMERS}/{acme.id}", json={"customer_name": "Globex"}, headers=auth(org.alice))
    assert resp.status_code == 400

    assert (await client.get(f"{CUSTOMERS}/999", headers=auth(org.alice))).status_code == 404


async def test_delete_customer(client, org, seed, auth):
    acme = await seed.customer("Acme")

    resp = await client.delete(f"{CUSTOMERS}/{acme.id}", headers=auth(org.alice))
    assert resp.status_code == 200
    assert resp.json()["data"] == {"customer_id": acme.id}
    assert (await client.get(f"{CUSTOMERS}/{acme.id}", headers=auth(org.alice))).status_code == 404


async def test_customer_in_use_cannot_be_deleted(client, org, seed, auth):
    acme = await seed.customer("Acme")
    await seed.report(org.alice, report_date=date(2025, 6, 2), customers=[acme])

    resp = await client.delete(f"{CUSTOMERS}/{acme.id}", headers=auth(org.alice))
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "RESOURCE_IN_USE"


async def test_page_past_end_shows_last_page(client, org, seed, auth):
    await seed.customer("Acme")

    resp = await client.get(CUSTOMERS, params={"page": 5}, headers=auth(org.alice))

    data = resp.json()["data"]
    assert [c["customer_name"] for c in data["items"]] == ["Acme"]
    assert data["pagination"] == {
        "total": 1,
        "per_page": 20,
        "current_page": 1,
        "last_page": 1,
        "from": 1,
        "to": 1,
    }


async def test_search_treats_wildcards_literally(client, org, seed, auth):
    await seed.customer("Acme")
    await seed.customer("Beta")
    await seed.customer("100% Foods")

    resp = await client.get(CUSTOMERS, params={"customer_name": "%"}, headers=auth(org.alice))
    assert [c["customer_name"] for c in resp.json()["data"]["items"]] == ["100% Foods"]

    resp = await client.get(CUSTOMERS, params={"customer_name": "_"}, headers=auth(org.alice))
    assert resp.json()["data"]["pagination"]["total"] == 0


async def test_visit_added_during_delete_is_409(client, org, seed, auth, monkeypatch):
    # the in-use count runs before another request's visit lands
    async def no_visits_yet(*args, **kwargs):
        return 0

    monkeypatch.setattr(customers_router, "_visit_count", no_visits_yet)
    acme = await seed.customer("Acme")
    await seed.report(org.alice, report_date=date(2025, 6, 2), customers=[acme])

    resp = await client.delete(f"{CUSTOMERS}/{acme.id}", headers=auth(org.alice))

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "RESOURCE_IN_USE"
    assert (await client.get(f"{CUSTOMERS}/{acme.id}", headers=auth(org.alice))).status_code == 200
