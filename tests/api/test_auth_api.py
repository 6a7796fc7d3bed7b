"""
Health, sign-up/sign-in and role guards over HTTP
"""
import pytest

from seatmarket.models import UserRole
from tests.factories import create_user, login, PASSWORD


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert set(body["workers"]) == {"hold_expiry", "ban_expiry"}
    assert "X-Trace-ID" in response.headers


@pytest.mark.asyncio
async def test_trace_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Trace-ID": "abc-123"})
    assert response.headers["X-Trace-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_metrics(client):
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "orders_created_total" in response.text


@pytest.mark.asyncio
async def test_sign_up_and_sign_in(client):
    response = await client.post("/api/v1/auth/sign-up", json={
        "name": "Minh Anh",
        "email": "Minh.Anh@Example.com",
        "password": PASSWORD,
    })
    assert response.status_code == 201
    assert response.json()["email"] == "minh.anh@example.com"
    assert response.json()["role"] == "customer"

    response = await client.post("/api/v1/auth/sign-in", json={"email": "minh.anh@example.com", "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["token"]

    response = await client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["name"] == "Minh Anh"
    assert response.json()["organizer"] is None


@pytest.mark.asyncio
async def test_organizer_sign_up_awaits_approval(client):
    response = await client.post("/api/v1/auth/sign-up", json={
        "name": "Lan",
        "email": "lan@example.com",
        "password": PASSWORD,
        "role": "organizer",
        "organizer_name": "Lan Productions",
    })
    assert response.status_code == 201

    response = await client.post("/api/v1/auth/sign-in", json={"email": "lan@example.com", "password": PASSWORD})
    me = await client.get("/api/v1/me", headers={"Authorization": f"Bearer {response.json()['token']}"})
    assert me.json()["organizer"]["name"] == "Lan Productions"
    assert me.json()["organizer"]["is_active"] is False


@pytest.mark.asyncio
async def test_cannot_sign_up_as_admin(client):
    response = await client.post("/api/v1/auth/sign-up", json={
        "name": "Mallory", "email": "mallory@example.com", "password": PASSWORD, "role": "admin",
    })
    assert response.status_code == 400
    assert response.json()["error"] == "AUTH_ERROR"


@pytest.mark.asyncio
async def test_duplicate_email(client, db):
    await create_user(db, email="taken@example.com")
    response = await client.post("/api/v1/auth/sign-up", json={
        "name": "Again", "email": "taken@example.com", "password": PASSWORD,
    })
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_wrong_password(client, db):
    await create_user(db, email="user@example.com")
    response = await client.post("/api/v1/auth/sign-in", json={"email": "user@example.com", "password": "wrong-pass"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_locked_account_cannot_sign_in(client, db):
    user = await create_user(db, email="locked@example.com")
    user.banned, user.ban_reason = True, "Fraud"
    await db.commit()

    response = await client.post("/api/v1/auth/sign-in", json={"email": "locked@example.com", "password": PASSWORD})
    assert response.status_code == 403
    assert "Fraud" in response.json()["message"]


@pytest.mark.asyncio
async def test_sign_out_ends_session(client, db):
    headers = await login(db, await create_user(db))

    assert (await client.post("/api/v1/auth/sign-out", headers=headers)).status_code == 204
    assert (await client.get("/api/v1/me", headers=headers)).status_code == 401


@pytest.mark.asyncio
async def test_anonymous_requests_rejected(client):
    response = await client.get("/api/v1/orders")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


@pytest.mark.asyncio
async def test_admin_routes_need_admin(client, db):
    customer_headers = await login(db, await create_user(db, UserRole.CUSTOMER))
    admin_headers = await login(db, await create_user(db, UserRole.ADMIN))

    assert (await client.get("/api/v1/admin/stats", headers=customer_headers)).status_code == 403
    response = await client.get("/api/v1/admin/stats", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["users_by_role"] == {"customer": 1, "admin": 1}


@pytest.mark.asyncio
async def test_admin_lock_user(client, db):
    admin_headers = await login(db, await create_user(db, UserRole.ADMIN))
    target = await create_user(db, UserRole.CUSTOMER)
    target_headers = await login(db, target)

    response = await client.put(
        f"/api/v1/admin/users/{target.id}/lock",
        json={"banned": True, "reason": "Abuse"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["banned"] is True
    assert (await client.get("/api/v1/me", headers=target_headers)).status_code == 401


@pytest.mark.asyncio
async def test_upload_signing(client, db):
    organizer_headers = await login(db, await create_user(db, UserRole.ORGANIZER))
    customer_headers = await login(db, await create_user(db, UserRole.CUSTOMER))
    payload = {"params": {"folder": "posters", "timestamp": 1700000000}}

    response = await client.post("/api/v1/uploads/sign", json=payload, headers=organizer_headers)
    assert response.status_code == 200
    assert response.json()["timestamp"] == 1700000000
    assert response.json()["cloud_name"] == "test-cloud"

    response = await client.post("/api/v1/uploads/sign", json=payload, headers=customer_headers)
    assert response.status_code == 403
