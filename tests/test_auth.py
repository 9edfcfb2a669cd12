import pytest

from posadmin.core.config import settings
from posadmin.core.permissions import all_permission_codes

API = settings.API_V1_STR


async def create_cashier(api, email="cashier@posadmin.local", permissions=None):
    role = await api.post("/roles/", {
        "name": "cashier",
        "display_name": "Cashier",
        "permissions": permissions or {"product.view": True, "sales.view": True, "sales.add": True},
    })
    staff = await api.post("/staff/", {
        "full_name": "Casey Cashier",
        "email": email,
        "password": "secret123",
        "role_id": role["id"],
    })
    return role, staff


@pytest.mark.asyncio
async def test_login_returns_token_and_permissions(client):
    response = await client.post(f"{API}/auth/login", json={
        "email": settings.FIRST_ADMIN_EMAIL.upper(),
        "password": settings.FIRST_ADMIN_PASSWORD,
    })
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["staff"]["email"] == settings.FIRST_ADMIN_EMAIL
    assert set(body["permissions"]) == set(all_permission_codes())
    assert all(body["permissions"].values())


@pytest.mark.asyncio
async def test_login_rejects_wrong_password(client):
    response = await client.post(f"{API}/auth/login", json={
        "email": settings.FIRST_ADMIN_EMAIL,
        "password": "wrong-password",
    })
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_missing_or_unknown_token_is_unauthorized(client):
    response = await client.get(f"{API}/warehouses/")
    assert response.status_code == 401

    response = await client.get(f"{API}/warehouses/", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired session"


@pytest.mark.asyncio
async def test_me_and_logout(client, admin_headers):
    response = await client.get(f"{API}/auth/me", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["staff"]["role_name"] == "Administrator"

    response = await client.post(f"{API}/auth/logout", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"{API}/auth/me", headers=admin_headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_staff_without_permission_gets_403(api, client, login_as):
    await create_cashier(api)
    headers = await login_as("cashier@posadmin.local", "secret123")

    response = await client.get(f"{API}/products/", headers=headers)
    assert response.status_code == 200

    response = await client.get(f"{API}/warehouses/", headers=headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Permission denied: warehouse.view"

    response = await client.get(f"{API}/auth/check/warehouse.view", headers=headers)
    assert response.json()["granted"] is False
    response = await client.get(f"{API}/auth/check/sales.add", headers=headers)
    assert response.json()["granted"] is True


@pytest.mark.asyncio
async def test_inactive_role_grants_nothing(api, client, login_as):
    role, _ = await create_cashier(api)
    headers = await login_as("cashier@posadmin.local", "secret123")

    await api.request("PUT", f"/roles/{role['id']}", json={"is_active": False})

    response = await client.get(f"{API}/products/", headers=headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_change_password(api, client, login_as):
    await create_cashier(api)
    headers = await login_as("cashier@posadmin.local", "secret123")

    response = await client.post(f"{API}/auth/change-password", headers=headers, json={
        "old_password": "wrong",
        "new_password": "another123",
    })
    assert response.status_code == 400

    response = await client.post(f"{API}/auth/change-password", headers=headers, json={
        "old_password": "secret123",
        "new_password": "another123",
    })
    assert response.status_code == 200

    await login_as("cashier@posadmin.local", "another123")


@pytest.mark.asyncio
async def test_deleted_staff_cannot_sign_in(api, client, login_as):
    _, staff = await create_cashier(api)
    headers = await login_as("cashier@posadmin.local", "secret123")

    await api.request("DELETE", f"/staff/{staff['id']}")

    response = await client.get(f"{API}/products/", headers=headers)
    assert response.status_code == 401

    response = await client.post(f"{API}/auth/login", json={
        "email": "cashier@posadmin.local",
        "password": "secret123",
    })
    assert response.status_code == 401
