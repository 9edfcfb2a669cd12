from datetime import date, timedelta

import pytest


@pytest.mark.asyncio
async def test_salary_request_decision(api):
    request = await api.post("/hr/salary-requests", {"amount": "250", "reason": "Annual review"})
    assert request["status"] == "pending"
    assert request["staff_name"] == "System Administrator"

    request = await api.request("PUT", f"/hr/salary-requests/{request['id']}/status", json={"status": "approved"})
    assert request["status"] == "approved"
    assert request["approved_by_name"] == "System Administrator"
    assert request["approved_at"] is not None

    response = await api.client.put(
        f"/api/v1/hr/salary-requests/{request['id']}/status",
        headers=api.headers,
        json={"status": "rejected"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Request already approved"

    listing = await api.get("/hr/salary-requests", params={"status": "approved"})
    assert listing["total"] == 1


@pytest.mark.asyncio
async def test_leave_days_count_both_ends(api):
    start = date.today() + timedelta(days=10)
    request = await api.post("/hr/leave-requests", {
        "leave_type": "annual",
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=4)).isoformat(),
        "reason": "Family trip",
    })
    assert request["days"] == 5

    await api.post("/hr/leave-requests", {
        "leave_type": "annual",
        "start_date": start.isoformat(),
        "end_date": (start - timedelta(days=1)).isoformat(),
        "reason": "Backwards",
    }, expected=422)


@pytest.mark.asyncio
async def test_approved_leave_covering_today_sets_on_leave(api):
    request = await api.post("/hr/leave-requests", {
        "leave_type": "sick",
        "start_date": date.today().isoformat(),
        "end_date": (date.today() + timedelta(days=2)).isoformat(),
        "reason": "Flu",
    })
    await api.request("PUT", f"/hr/leave-requests/{request['id']}/status", json={"status": "approved"})

    me = await api.get("/auth/me")
    assert me["staff"]["on_leave"] is True
    assert (await api.get("/staff/stats"))["on_leave"] == 1


@pytest.mark.asyncio
async def test_rejected_leave_changes_nothing(api):
    request = await api.post("/hr/leave-requests", {
        "leave_type": "study",
        "start_date": date.today().isoformat(),
        "end_date": date.today().isoformat(),
        "reason": "Exam",
    })
    request = await api.request("PUT", f"/hr/leave-requests/{request['id']}/status", json={"status": "rejected"})
    assert request["status"] == "rejected"
    assert (await api.get("/auth/me"))["staff"]["on_leave"] is False


@pytest.mark.asyncio
async def test_expenses_crud_and_totals(api):
    rent = await api.post("/accounts/expenses", {
        "title": "Shop rent", "category": "Rent", "amount": "1200", "status": "paid"
    })
    await api.post("/accounts/expenses", {"title": "Light bill", "category": "Utilities", "amount": "80.50"})

    listing = await api.get("/accounts/expenses")
    assert listing["total"] == 2
    assert float(listing["total_amount"]) == 1280.5

    listing = await api.get("/accounts/expenses", params={"status": "paid"})
    assert listing["total"] == 1

    rent = await api.request("PUT", f"/accounts/expenses/{rent['id']}", json={"amount": "1300"})
    assert float(rent["amount"]) == 1300.0
    assert rent["status"] == "paid"

    await api.request("DELETE", f"/accounts/expenses/{rent['id']}")
    assert (await api.get("/accounts/expenses"))["total"] == 1
    await api.request("DELETE", f"/accounts/expenses/{rent['id']}", expected=404)


@pytest.mark.asyncio
async def test_income_status_values(api):
    income = await api.post("/accounts/incomes", {
        "title": "Shelf rental", "category": "Rental", "amount": "150", "status": "received"
    })
    assert income["status"] == "received"
    await api.post("/accounts/incomes", {
        "title": "Bad", "category": "Rental", "amount": "1", "status": "paid"
    }, expected=422)
    await api.post("/accounts/incomes", {"title": "Nothing", "category": "Rental", "amount": "0"}, expected=422)
