import pytest
import pytest_asyncio

from posadmin.core.config import settings

API = settings.API_V1_STR


@pytest_asyncio.fixture
async def trading_day(api):
    """One sale of 8 rice @ 5.00 drawn from 5 @ 2.00 and 10 @ 3.00"""
    warehouse = await api.warehouse("Shop Floor")
    product = await api.product("Rice", sku="RICE-1")
    await api.batch(product["id"], warehouse["id"], 5, "2.00", selling_price="4.00")
    await api.batch(product["id"], warehouse["id"], 10, "3.00", selling_price="5.00")
    sale = await api.post("/sales/", {
        "warehouse_id": warehouse["id"],
        "items": [{"product_id": product["id"], "quantity": 8, "unit_price": "5.00"}],
        "payment_method": "cash",
        "cash_received": "50",
    })
    return warehouse, product, sale


@pytest.mark.asyncio
async def test_dashboard(api, trading_day):
    _, product, sale = trading_day
    dashboard = await api.get("/reports/dashboard")

    assert float(dashboard["today_revenue"]) == 40.0
    assert dashboard["today_transactions"] == 1
    assert float(dashboard["yesterday_revenue"]) == 0.0
    assert float(dashboard["revenue_change"]) == 100.0
    assert dashboard["total_products"] == 1
    assert dashboard["low_stock_count"] == 1

    assert dashboard["top_products"][0]["product_id"] == product["id"]
    assert dashboard["top_products"][0]["quantity"] == 8
    assert dashboard["recent_orders"][0]["sale_number"] == sale["sale_number"]
    assert dashboard["recent_orders"][0]["items"] == 1


@pytest.mark.asyncio
async def test_revenue_chart_has_one_point_per_day(api, trading_day):
    chart = await api.get("/reports/revenue-chart", params={"days": 3})
    assert len(chart) == 3
    assert float(chart[-1]["revenue"]) == 40.0
    assert chart[-1]["transactions"] == 1
    assert float(chart[0]["revenue"]) == 0.0

    await api.get("/reports/revenue-chart", params={"days": 0}, expected=422)


@pytest.mark.asyncio
async def test_sales_report(api, trading_day):
    report = await api.get("/reports/sales")
    assert float(report["total_sales"]) == 40.0
    assert float(report["total_profit"]) == 21.0
    assert report["transactions"] == 1
    assert report["payment_methods"] == [
        {"payment_method": "cash", "amount": report["payment_methods"][0]["amount"], "transactions": 1}
    ]
    assert float(report["payment_methods"][0]["amount"]) == 40.0

    await api.get("/reports/sales", params={"start_date": "01/02/2024"}, expected=400)


@pytest.mark.asyncio
async def test_profit_and_loss(api, trading_day):
    await api.post("/accounts/expenses", {"title": "Rent", "category": "Rent", "amount": "10", "status": "paid"})
    await api.post("/accounts/expenses", {"title": "Bill", "category": "Utilities", "amount": "5"})
    await api.post("/accounts/incomes", {
        "title": "Shelf rental", "category": "Rental", "amount": "6", "status": "received"
    })
    await api.post("/accounts/incomes", {
        "title": "Counter sales", "category": "Sales", "amount": "100", "status": "received"
    })

    report = await api.get("/reports/profit-loss")
    summary = report["summary"]
    assert float(summary["total_sales"]) == 40.0
    assert float(summary["total_cogs"]) == 19.0
    assert float(summary["gross_profit"]) == 21.0
    assert float(summary["gross_profit_margin"]) == 52.5
    assert float(summary["total_expenses"]) == 10.0
    assert float(summary["total_other_income"]) == 6.0
    assert float(summary["net_profit"]) == 17.0

    assert report["stock"]["batches"] == 1
    assert float(report["stock"]["by_purchase_price"]) == 21.0
    assert float(report["stock"]["by_sale_price"]) == 35.0

    assert list(report["breakdown"]["expenses"]) == ["Rent"]
    assert list(report["breakdown"]["other_income"]) == ["Rental"]
    assert report["transactions"] == {"sales_count": 1, "expenses_count": 1, "incomes_count": 1}


@pytest.mark.asyncio
async def test_voided_sale_leaves_the_books(api, trading_day):
    _, _, sale = trading_day
    await api.post(f"/sales/{sale['id']}/void", {"reason": "Mistake"})

    summary = (await api.get("/reports/profit-loss"))["summary"]
    assert float(summary["total_sales"]) == 0.0
    assert float(summary["total_cogs"]) == 0.0
    assert float(summary["gross_profit_margin"]) == 0.0


@pytest.mark.asyncio
async def test_low_stock_threshold(api, trading_day):
    _, product, _ = trading_day
    rows = await api.get("/reports/low-stock")
    assert rows == [{"product_id": product["id"], "name": "Rice", "sku": "RICE-1", "stock": 7}]

    assert await api.get("/reports/low-stock", params={"threshold": 5}) == []


@pytest.mark.asyncio
async def test_staff_stats(api):
    stats = await api.get("/reports/staff-stats")
    assert stats["total"] == 1
    assert stats["active"] == 1


@pytest.mark.asyncio
async def test_report_permissions_are_separate(api, client, login_as):
    role = await api.post("/roles/", {
        "name": "analyst",
        "display_name": "Analyst",
        "permissions": {"report.sales": True},
    })
    await api.post("/staff/", {
        "full_name": "Alex Analyst",
        "email": "analyst@posadmin.local",
        "password": "secret123",
        "role_id": role["id"],
    })
    headers = await login_as("analyst@posadmin.local", "secret123")

    response = await client.get(f"{API}/reports/sales", headers=headers)
    assert response.status_code == 200

    response = await client.get(f"{API}/reports/profit-loss", headers=headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Permission denied: report.profit_loss"


@pytest.mark.asyncio
async def test_health_needs_no_session(client):
    response = await client.get(f"{API}/system/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_scheduler_status_when_not_started(api):
    status = await api.get("/system/scheduler")
    assert status == {"enabled": False, "running": False, "jobs": []}


@pytest.mark.asyncio
async def test_stock_value_includes_extra_expenses(api):
    warehouse = await api.warehouse("Back Room")
    product = await api.product("Olive Oil", sku="OIL-1")
    await api.batch(
        product["id"], warehouse["id"], 10, "2.00",
        additional_expenses="10", selling_price="5.00",
    )

    stock = (await api.get("/reports/profit-loss"))["stock"]
    assert stock["batches"] == 1
    assert float(stock["by_purchase_price"]) == 30.0
    assert float(stock["by_sale_price"]) == 50.0


@pytest.mark.asyncio
async def test_expenses_report(api):
    await api.post("/accounts/expenses", {
        "title": "Shop rent", "category": "Rent", "amount": "300", "status": "paid",
        "payment_method": "bank_transfer",
    })
    await api.post("/accounts/expenses", {
        "title": "Light bill", "category": "Utilities", "amount": "60", "payment_method": "cash",
    })
    await api.post("/accounts/expenses", {
        "title": "Water bill", "category": "Utilities", "amount": "40", "payment_method": "cash",
    })

    report = await api.get("/reports/expenses")
    assert float(report["total_expenses"]) == 400.0
    assert report["transactions"] == 3
    assert float(report["average_expense"]) == 133.33
    assert report["top_category"] == "Rent"
    assert [row["category"] for row in report["categories"]] == ["Rent", "Utilities"]
    assert float(report["categories"][0]["percentage"]) == 75.0
    assert report["categories"][1]["count"] == 2
    assert len(report["monthly"]) == 1
    assert report["monthly"][0]["count"] == 3
    assert [row["method"] for row in report["payment_methods"]] == ["bank_transfer", "cash"]
