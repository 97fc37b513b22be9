from datetime import timedelta

from dailyreport.routers.auth import create_access_token

PASSWORD = "password123"


async def test_login(client, org):
    resp = await client.post("/api/v1/auth/login", json={"email": "Alice@Example.com", "password": PASSWORD})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["sales_person_id"] == org.alice.id
    assert data["is_manager"] is False

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "alice@example.com"


async def test_login_wrong_password(client, org):
    resp = await client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "wrong"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "AUTH_INVALID_CREDENTIALS"


async def test_login_unknown_email(client, org):
    resp = await client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "AUTH_INVALID_CREDENTIALS"


async def test_login_malformed_body(client):
    resp = await client.post("/api/v1/auth/login", json={"email": "not-an-email"})
    assert resp.status_code == 422
    fields = {d["field"] for d in resp.json()["error"]["details"]}
    assert {"email", "password"} <= fields


async def test_me_requires_token(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json() == {
        "success": False,
        "error": {"code": "AUTH_UNAUTHORIZED", "message": "Authentication required"},
    }


async def test_expired_token(client, org, settings):
    token = create_access_token(settings, {"sub": str(org.alice.id)}, expires_delta=timedelta(minutes=-1))
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_token_signed_with_other_key(client, org, settings):
    other = settings.model_copy(update={"jwt_secret_key": "someone-else"})
    token = create_access_token(other, {"sub": str(org.alice.id)})
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_token_for_deleted_sales_person(client, settings, org):
    token = create_access_token(settings, {"sub": "999"})
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_health(client):
    resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}


async def test_unknown_route_uses_error_envelope(client):
    resp = await client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.json()["success"] is False
    assert resp.json()["error"]["code"] == "RESOURCE_NOT_FOUND"
