import pytest


@pytest.mark.asyncio
async def test_admin_role_is_seeded(api):
    roles = await api.get("/roles/")
    assert roles["total"] == 1
    admin = roles["data"][0]
    assert admin["name"] == "admin"
    assert admin["is_system"] is True
    assert admin["staff_count"] == 1


@pytest.mark.asyncio
async def test_system_role_cannot_be_deleted_or_renamed(api):
    admin = (await api.get("/roles/"))["data"][0]
    await api.request("DELETE", f"/roles/{admin['id']}", expected=400)
    await api.request("PUT", f"/roles/{admin['id']}", expected=400, json={"name": "owner"})


@pytest.mark.asyncio
async def test_role_permissions_merge_on_update(api):
    role = await api.post("/roles/", {
        "name": "Stock Keeper",
        "display_name": "Stock Keeper",
        "permissions": {"batch.view": True},
    })
    assert role["name"] == "stock keeper"
    assert role["permissions"]["batch.view"] is True
    assert role["permissions"]["batch.add"] is False

    role = await api.request("PUT", f"/roles/{role['id']}", json={"permissions": {"batch.add": True}})
    assert role["permissions"]["batch.view"] is True
    assert role["permissions"]["batch.add"] is True


@pytest.mark.asyncio
async def test_role_rejects_unknown_permission_and_duplicates(api):
    await api.post("/roles/", {
        "name": "ghost",
        "display_name": "Ghost",
        "permissions": {"spaceship.fly": True},
    }, expected=400)

    await api.post("/roles/", {"name": "clerk", "display_name": "Clerk"})
    await api.post("/roles/", {"name": "other", "display_name": "clerk"}, expected=400)


@pytest.mark.asyncio
async def test_role_in_use_cannot_be_deleted(api):
    role = await api.post("/roles/", {"name": "clerk", "display_name": "Clerk"})
    await api.post("/staff/", {
        "full_name": "Chris Clerk",
        "email": "chris@posadmin.local",
        "password": "secret123",
        "role_id": role["id"],
    })
    await api.request("DELETE", f"/roles/{role['id']}", expected=400)


@pytest.mark.asyncio
async def test_staff_crud_and_stats(api):
    role = await api.post("/roles/", {"name": "clerk", "display_name": "Clerk"})
    department = await api.post("/departments/", {"name": "Front Desk"})
    warehouse = await api.warehouse()

    staff = await api.post("/staff/", {
        "full_name": "Dana Clerk",
        "email": "Dana@PosAdmin.local",
        "password": "secret123",
        "role_id": role["id"],
        "department_id": department["id"],
        "warehouse_ids": [warehouse["id"]],
        "address": {"city": "Springfield"},
    })
    assert staff["email"] == "dana@posadmin.local"
    assert staff["username"] == "dana"
    assert staff["department_name"] == "Front Desk"
    assert staff["role_name"] == "Clerk"
    assert [w["id"] for w in staff["warehouses"]] == [warehouse["id"]]
    assert staff["address"]["city"] == "Springfield"

    await api.post("/staff/", {
        "full_name": "Dana Again",
        "email": "dana@posadmin.local",
        "password": "secret123",
        "role_id": role["id"],
    }, expected=400)

    updated = await api.request("PUT", f"/staff/{staff['id']}", json={"on_leave": True, "job_title": "Senior clerk"})
    assert updated["on_leave"] is True
    assert updated["job_title"] == "Senior clerk"

    stats = await api.get("/staff/stats")
    assert stats == {"total": 2, "active": 2, "inactive": 0, "on_leave": 1}

    await api.request("DELETE", f"/departments/{department['id']}", expected=400)

    await api.request("DELETE", f"/staff/{staff['id']}")
    await api.get(f"/staff/{staff['id']}", expected=404)
    assert (await api.get("/staff/stats"))["total"] == 1


@pytest.mark.asyncio
async def test_staff_cannot_delete_self(api):
    me = await api.get("/auth/me")
    await api.request("DELETE", f"/staff/{me['staff']['id']}", expected=400)


@pytest.mark.asyncio
async def test_actions_are_recorded_in_history(api):
    await api.post("/departments/", {"name": "Logistics"})
    history = await api.get("/history/", params={"entity_type": "department"})
    assert history["total"] == 1
    assert history["data"][0]["action_type"] == "DEPARTMENT_CREATED"
