from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from posadmin.core.config import settings

API = settings.API_V1_STR


def days_ahead(days: int) -> str:
    return (datetime.utcnow() + timedelta(days=days)).isoformat()


@pytest_asyncio.fixture
async def stocked_shop(api):
    """Milk expiring in 3 and 10 days, tea in 40 days, 4 milk sold"""
    warehouse = await api.warehouse("Corner Shop")
    milk = await api.product("Milk", sku="MILK-1")
    tea = await api.product("Black Tea", sku="TEA-1")
    soon = await api.batch(milk["id"], warehouse["id"], 10, "2.00", selling_price="5.00", expiry_date=days_ahead(3))
    later = await api.batch(milk["id"], warehouse["id"], 5, "4.00", selling_price="5.00", expiry_date=days_ahead(10))
    far = await api.batch(tea["id"], warehouse["id"], 20, "1.00", selling_price="1.05", expiry_date=days_ahead(40))
    await api.post("/sales/", {
        "warehouse_id": warehouse["id"],
        "items": [{"product_id": milk["id"], "quantity": 4, "unit_price": "5.00"}],
        "payment_method": "cash",
        "cash_received": "20",
    })
    return warehouse, milk, tea, (soon, later, far)


@pytest.mark.asyncio
async def test_expiry_alerts(api, stocked_shop):
    warehouse, milk, _, (soon, later, far) = stocked_shop
    alerts = await api.get(f"/analytics/warehouses/{warehouse['id']}/expiry-alerts")

    assert [a["batch_id"] for a in alerts] == [soon["id"], later["id"]]
    assert [a["urgency"] for a in alerts] == ["critical", "warning"]
    assert alerts[0]["product_name"] == "Milk"
    assert alerts[0]["sku"] == "MILK-1"
    assert sum(a["quantity"] for a in alerts) == 11
    assert alerts[0]["days_to_expiry"] <= 3

    wider = await api.get(f"/analytics/warehouses/{warehouse['id']}/expiry-alerts", params={"days": 60})
    assert wider[-1]["batch_id"] == far["id"]
    assert wider[-1]["urgency"] == "info"
    assert float(wider[-1]["total_value"]) == 21.0


@pytest.mark.asyncio
async def test_slow_moving_lists_batches_with_stock(api, stocked_shop):
    warehouse, _, _, (soon, later, far) = stocked_shop
    rows = await api.get(f"/analytics/warehouses/{warehouse['id']}/slow-moving", params={"days": 0})
    assert [r["batch_id"] for r in rows] == [soon["id"], later["id"], far["id"]]
    assert all(r["days_in_stock"] == 0 for r in rows)

    assert await api.get(f"/analytics/warehouses/{warehouse['id']}/slow-moving") == []


@pytest.mark.asyncio
async def test_turnover_and_profitability(api, stocked_shop):
    warehouse, milk, _, (soon, later, far) = stocked_shop
    turnover = await api.get(f"/analytics/warehouses/{warehouse['id']}/turnover")
    assert len(turnover) == 1
    assert turnover[0]["product_id"] == milk["id"]
    assert turnover[0]["sold_quantity"] == 4
    assert turnover[0]["current_stock"] == 11
    assert float(turnover[0]["revenue"]) == 20.0
    assert float(turnover[0]["turnover_rate"]) == 26.67

    margins = await api.get(f"/analytics/warehouses/{warehouse['id']}/profitability")
    assert [m["batch_id"] for m in margins] == [soon["id"], later["id"], far["id"]]
    assert [float(m["margin_percent"]) for m in margins] == [60.0, 20.0, 4.76]
    assert float(margins[2]["potential_profit"]) == 1.0


@pytest.mark.asyncio
async def test_summary(api, stocked_shop):
    warehouse, _, _, (soon, _, far) = stocked_shop
    summary = await api.get(f"/analytics/warehouses/{warehouse['id']}/summary")

    assert summary["summary"]["total_products"] == 2
    assert float(summary["summary"]["avg_turnover_rate"]) == 26.67
    assert float(summary["summary"]["avg_margin"]) == 28.25
    assert float(summary["summary"]["slow_moving_value"]) == 0.0
    assert summary["summary"]["critical_expiry_count"] == 1
    assert [r["batch_id"] for r in summary["low_performers"]] == [far["id"]]
    assert [r["batch_id"] for r in summary["expiring"]] == [soon["id"]]


@pytest.mark.asyncio
async def test_unknown_warehouse(api):
    response = await api.client.get(f"{API}/analytics/warehouses/999/summary", headers=api.headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Warehouse not found"
