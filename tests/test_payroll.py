import pytest
import pytest_asyncio

from posadmin.core.config import settings

API = settings.API_V1_STR


@pytest_asyncio.fixture
async def cashier(api):
    """Cashier structure and two staff: the admin and a new cashier"""
    structure = await api.post("/payroll/structures", {
        "title": "Cashier",
        "position": "Cashier",
        "basic_salary": "1000",
        "allowances": [
            {"name": "Transport", "amount": "50", "type": "fixed"},
            {"name": "Housing", "amount": "10", "type": "percentage"},
        ],
        "deductions": [{"name": "Pension", "amount": "5", "type": "percentage"}],
    })
    role = await api.post("/roles/", {
        "name": "cashier",
        "display_name": "Cashier",
        "permissions": {"sales.view": True},
    })
    staff = await api.post("/staff/", {
        "full_name": "Casey Cashier",
        "email": "casey@posadmin.local",
        "password": "secret123",
        "role_id": role["id"],
    })
    admin = (await api.get("/auth/me"))["staff"]
    return structure, staff, admin


@pytest.mark.asyncio
async def test_structure_totals(api, cashier):
    structure, _, _ = cashier
    assert float(structure["total_allowances"]) == 150.0
    assert float(structure["total_deductions"]) == 50.0
    assert float(structure["total_salary"]) == 1100.0
    assert structure["allowances"][1]["type"] == "percentage"

    structure = await api.request("PUT", f"/payroll/structures/{structure['id']}", json={"basic_salary": "2000"})
    assert float(structure["total_allowances"]) == 250.0
    assert float(structure["total_salary"]) == 2150.0

    await api.post("/payroll/structures", {"title": "Bad", "basic_salary": "0"}, expected=422)
    assert len(await api.get("/payroll/structures")) == 1


@pytest.mark.asyncio
async def test_payment_for_one_month(api, cashier):
    structure, staff, _ = cashier
    response = await api.client.post(f"{API}/payroll/payments", headers=api.headers, json={
        "staff_id": staff["id"], "pay_month": 5, "pay_year": 2025,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Staff member has no salary structure"

    await api.request("PUT", f"/payroll/staff/{staff['id']}/structure", json={"structure_id": structure["id"]})
    payment = await api.post("/payroll/payments", {"staff_id": staff["id"], "pay_month": 5, "pay_year": 2025})
    assert payment["status"] == "pending"
    assert payment["period"] == "2025-05"
    assert payment["staff_name"] == "Casey Cashier"
    assert float(payment["gross_salary"]) == 1150.0
    assert float(payment["net_salary"]) == 1100.0

    await api.post("/payroll/payments", {"staff_id": staff["id"], "pay_month": 5, "pay_year": 2025}, expected=400)


@pytest.mark.asyncio
async def test_monthly_payroll_run(api, cashier):
    structure, staff, admin = cashier
    await api.request("PUT", f"/payroll/staff/{staff['id']}/structure", json={"structure_id": structure["id"]})
    await api.request("PUT", f"/payroll/staff/{admin['id']}/structure", json={"structure_id": structure["id"]})
    await api.post("/payroll/payments", {"staff_id": admin["id"], "pay_month": 6, "pay_year": 2025})

    run = await api.post("/payroll/generate", {"pay_month": 6, "pay_year": 2025})
    assert run["period"] == "2025-06"
    assert [p["staff_id"] for p in run["created"]] == [staff["id"]]
    assert run["skipped"] == 1

    again = await api.post("/payroll/generate", {"pay_month": 6, "pay_year": 2025})
    assert again["created"] == []
    assert again["skipped"] == 2

    listing = await api.get("/payroll/payments", params={"pay_month": 6, "pay_year": 2025})
    assert listing["total"] == 2
    assert float(listing["total_net"]) == 2200.0


@pytest.mark.asyncio
async def test_inactive_structure_is_skipped(api, cashier):
    structure, staff, _ = cashier
    await api.request("PUT", f"/payroll/staff/{staff['id']}/structure", json={"structure_id": structure["id"]})
    await api.request("DELETE", f"/payroll/structures/{structure['id']}")

    run = await api.post("/payroll/generate", {"pay_month": 1, "pay_year": 2026})
    assert run["created"] == []
    assert run["skipped"] == 1

    await api.request("PUT", f"/payroll/staff/{staff['id']}/structure",
                      json={"structure_id": structure["id"]}, expected=400)


@pytest.mark.asyncio
async def test_processing_pays_from_an_account(api, cashier):
    structure, staff, _ = cashier
    await api.request("PUT", f"/payroll/staff/{staff['id']}/structure", json={"structure_id": structure["id"]})
    payment = await api.post("/payroll/payments", {"staff_id": staff["id"], "pay_month": 7, "pay_year": 2025})
    poor = await api.post("/accounts/payment-accounts", {"name": "Petty Cash", "account_type": "cash", "balance": "100"})
    bank = await api.post("/accounts/payment-accounts", {"name": "Payroll Bank", "account_type": "bank", "balance": "5000"})

    response = await api.client.post(f"{API}/payroll/payments/{payment['id']}/process", headers=api.headers, json={
        "account_id": poor["id"],
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient funds"

    paid = await api.post(f"/payroll/payments/{payment['id']}/process", {"account_id": bank["id"]})
    assert paid["status"] == "paid"
    assert paid["payment_date"] is not None
    assert paid["account_id"] == bank["id"]

    accounts = {a["name"]: float(a["balance"]) for a in await api.get("/accounts/payment-accounts")}
    assert accounts == {"Payroll Bank": 3900.0, "Petty Cash": 100.0}

    salaries = await api.get("/accounts/expenses", params={"category": "Salary"})
    assert salaries["total"] == 1
    assert float(salaries["total_amount"]) == 1100.0
    assert salaries["data"][0]["status"] == "paid"
    assert float((await api.get("/reports/profit-loss"))["summary"]["total_expenses"]) == 1100.0

    await api.post(f"/payroll/payments/{payment['id']}/process", {}, expected=400)
    await api.post(f"/payroll/payments/{payment['id']}/cancel", expected=400)


@pytest.mark.asyncio
async def test_cancel_pending_payment(api, cashier):
    structure, staff, _ = cashier
    payment = await api.post("/payroll/payments", {
        "staff_id": staff["id"], "pay_month": 8, "pay_year": 2025, "structure_id": structure["id"],
    })
    payment = await api.post(f"/payroll/payments/{payment['id']}/cancel")
    assert payment["status"] == "cancelled"
    assert (await api.get("/payroll/payments", params={"status": "cancelled"}))["total"] == 1
