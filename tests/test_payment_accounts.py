import pytest
import pytest_asyncio

from posadmin.core.config import settings

API = settings.API_V1_STR


@pytest_asyncio.fixture
async def accounts(api):
    till = await api.post("/accounts/payment-accounts", {
        "name": "Shop Till", "account_type": "cash", "balance": "500",
    })
    bank = await api.post("/accounts/payment-accounts", {
        "name": "Main Bank", "account_type": "bank", "balance": "1000",
        "bank_name": "First Bank", "account_number": "0012345",
    })
    return till, bank


@pytest.mark.asyncio
async def test_open_and_list_accounts(api, accounts):
    till, bank = accounts
    assert till["status"] == "active"
    assert float(bank["balance"]) == 1000.0

    await api.post("/accounts/payment-accounts", {"name": "Shop Till", "account_type": "cash"}, expected=400)
    await api.post("/accounts/payment-accounts", {"name": "Odd", "account_type": "wallet"}, expected=422)

    names = [a["name"] for a in await api.get("/accounts/payment-accounts")]
    assert names == ["Main Bank", "Shop Till"]
    cash_only = await api.get("/accounts/payment-accounts", params={"account_type": "cash"})
    assert [a["id"] for a in cash_only] == [till["id"]]


@pytest.mark.asyncio
async def test_transfer_moves_balances_and_books_both_sides(api, accounts):
    till, bank = accounts
    result = await api.post("/accounts/transfer", {
        "from_account_id": till["id"], "to_account_id": bank["id"], "amount": "200",
        "description": "Evening deposit",
    })
    assert float(result["from_account"]["balance"]) == 300.0
    assert float(result["to_account"]["balance"]) == 1200.0

    expenses = (await api.get("/accounts/expenses", params={"category": "Transfer"}))["data"]
    assert len(expenses) == 1
    assert expenses[0]["id"] == result["expense_id"]
    assert expenses[0]["title"] == "Transfer to Main Bank"
    assert expenses[0]["status"] == "paid"
    assert expenses[0]["account_id"] == till["id"]

    incomes = (await api.get("/accounts/incomes", params={"category": "Transfer"}))["data"]
    assert incomes[0]["title"] == "Transfer from Shop Till"
    assert incomes[0]["status"] == "received"
    assert incomes[0]["account_id"] == bank["id"]

    history = await api.get(f"/accounts/payment-accounts/{till['id']}/transactions")
    assert history["total"] == 1
    assert history["data"][0]["type"] == "expense"
    assert float(history["data"][0]["amount"]) == 200.0


@pytest.mark.asyncio
async def test_transfer_needs_funds_and_two_accounts(api, accounts):
    till, bank = accounts
    response = await api.client.post(f"{API}/accounts/transfer", headers=api.headers, json={
        "from_account_id": till["id"], "to_account_id": bank["id"], "amount": "500.01",
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient funds"

    await api.post("/accounts/transfer", {
        "from_account_id": till["id"], "to_account_id": till["id"], "amount": "1",
    }, expected=400)
    await api.post("/accounts/transfer", {
        "from_account_id": till["id"], "to_account_id": 999, "amount": "1",
    }, expected=404)

    balances = {a["id"]: float(a["balance"]) for a in await api.get("/accounts/payment-accounts")}
    assert balances == {till["id"]: 500.0, bank["id"]: 1000.0}


@pytest.mark.asyncio
async def test_closed_account_takes_no_money(api, accounts):
    till, bank = accounts
    await api.request("DELETE", f"/accounts/payment-accounts/{till['id']}")

    assert [a["id"] for a in await api.get("/accounts/payment-accounts")] == [bank["id"]]
    listed = await api.get("/accounts/payment-accounts", params={"include_closed": True})
    assert {a["status"] for a in listed} == {"active", "closed"}

    await api.post("/accounts/transfer", {
        "from_account_id": bank["id"], "to_account_id": till["id"], "amount": "1",
    }, expected=400)
    await api.post("/accounts/expenses", {
        "title": "Petty cash", "category": "Supplies", "amount": "5", "account_id": till["id"],
    }, expected=400)


@pytest.mark.asyncio
async def test_transactions_mix_expenses_and_incomes(api, accounts):
    _, bank = accounts
    await api.post("/accounts/expenses", {
        "title": "Card fees", "category": "Bank", "amount": "12", "status": "paid",
        "account_id": bank["id"], "date": "2024-03-01T10:00:00",
    })
    await api.post("/accounts/incomes", {
        "title": "Interest", "category": "Bank", "amount": "3", "status": "received",
        "account_id": bank["id"], "date": "2024-03-05T10:00:00",
    })
    await api.post("/accounts/expenses", {"title": "Unlinked", "category": "Bank", "amount": "1"})

    history = await api.get(f"/accounts/payment-accounts/{bank['id']}/transactions")
    assert history["account"]["name"] == "Main Bank"
    assert [(row["type"], row["title"]) for row in history["data"]] == [
        ("income", "Interest"),
        ("expense", "Card fees"),
    ]
    await api.get("/accounts/payment-accounts/999/transactions", expected=404)


@pytest.mark.asyncio
async def test_balance_sheet(api, accounts):
    till, bank = accounts
    await api.post("/accounts/payment-accounts", {"name": "Van Loan", "account_type": "liability", "balance": "800"})
    await api.post("/accounts/payment-accounts", {"name": "Store Card", "account_type": "credit", "balance": "50"})
    await api.post("/accounts/payment-accounts", {"name": "Owner Capital", "account_type": "equity", "balance": "600"})
    await api.post("/accounts/payment-accounts", {"name": "Shelving", "account_type": "asset", "balance": "250"})

    await api.post("/accounts/incomes", {"title": "Rental", "category": "Rental", "amount": "90", "status": "received"})
    await api.post("/accounts/expenses", {"title": "Rent", "category": "Rent", "amount": "40", "status": "paid"})
    await api.post("/accounts/expenses", {"title": "Later", "category": "Rent", "amount": "999"})
    await api.post("/accounts/transfer", {
        "from_account_id": bank["id"], "to_account_id": till["id"], "amount": "100",
    })

    sheet = await api.get("/accounts/balance-sheet")
    assert float(sheet["cash"]) == 600.0
    assert float(sheet["bank"]) == 900.0
    assert float(sheet["other_assets"]) == 250.0
    assert float(sheet["total_assets"]) == 1750.0
    assert float(sheet["liabilities"]) == 850.0
    assert float(sheet["equity"]) == 600.0
    assert float(sheet["retained_earnings"]) == 50.0
    assert float(sheet["total_equity"]) == 650.0


@pytest.mark.asyncio
async def test_transfers_stay_out_of_profit_and_loss(api, accounts):
    till, bank = accounts
    await api.post("/accounts/transfer", {
        "from_account_id": till["id"], "to_account_id": bank["id"], "amount": "250",
    })
    summary = (await api.get("/reports/profit-loss"))["summary"]
    assert float(summary["total_expenses"]) == 0.0
    assert float(summary["total_other_income"]) == 0.0
