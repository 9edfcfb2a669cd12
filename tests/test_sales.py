import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def shop(api):
    """Warehouse with two rice batches (5 @ 2.00, 10 @ 3.00) and a customer"""
    warehouse = await api.warehouse("Shop Floor")
    product = await api.product("Rice", sku="RICE-1")
    first = await api.batch(product["id"], warehouse["id"], 5, "2.00", selling_price="4.00")
    second = await api.batch(product["id"], warehouse["id"], 10, "3.00", selling_price="5.00")
    customer = await api.post("/customers/", {"name": "Ana Buyer"})
    return warehouse, product, first, second, customer


def sale_payload(warehouse, product, quantity=8, **extra):
    payload = {
        "warehouse_id": warehouse["id"],
        "items": [{"product_id": product["id"], "quantity": quantity, "unit_price": "5.00"}],
        "payment_method": "cash",
        "cash_received": "100",
    }
    payload.update(extra)
    return payload


@pytest.mark.asyncio
async def test_sale_costs_follow_fifo(api, shop):
    warehouse, product, first, second, customer = shop

    sale = await api.post("/sales/", sale_payload(warehouse, product, customer_id=customer["id"], cash_received="50"))
    assert sale["sale_number"].startswith("POS")
    assert float(sale["subtotal"]) == 40.0
    assert float(sale["total"]) == 40.0
    assert float(sale["change_due"]) == 10.0
    assert float(sale["total_cost"]) == 19.0
    assert float(sale["profit"]) == 21.0
    assert sale["customer_name"] == "Ana Buyer"

    allocations = sale["items"][0]["allocations"]
    assert [(a["batch_id"], a["quantity"], float(a["cost_amount"])) for a in allocations] == [
        (first["id"], 5, 10.0),
        (second["id"], 3, 9.0),
    ]

    assert (await api.get(f"/batches/{first['id']}"))["status"] == "depleted"
    assert (await api.get(f"/batches/{second['id']}"))["remaining"] == 7

    customer = await api.get(f"/customers/{customer['id']}")
    assert customer["loyalty_points"] == 40
    assert customer["total_orders"] == 1
    assert float(customer["total_spent"]) == 40.0


@pytest.mark.asyncio
async def test_void_restores_the_consumed_batches(api, shop):
    warehouse, product, first, second, customer = shop
    sale = await api.post("/sales/", sale_payload(warehouse, product, customer_id=customer["id"]))

    voided = await api.post(f"/sales/{sale['id']}/void", {"reason": "Customer returned goods"})
    assert voided["is_voided"] is True
    assert voided["void_reason"] == "Customer returned goods"

    first = await api.get(f"/batches/{first['id']}")
    assert first["remaining"] == 5
    assert first["status"] == "in_stock"
    assert first["is_depleted"] is False
    assert (await api.get(f"/batches/{second['id']}"))["remaining"] == 10

    customer = await api.get(f"/customers/{customer['id']}")
    assert customer["loyalty_points"] == 0
    assert customer["total_orders"] == 0

    await api.post(f"/sales/{sale['id']}/void", {"reason": "Again"}, expected=400)

    assert (await api.get("/sales/"))["total"] == 0
    assert (await api.get("/sales/", params={"include_voided": True}))["total"] == 1


@pytest.mark.asyncio
async def test_shortage_rolls_back_the_whole_sale(api, shop):
    warehouse, product, first, second, _ = shop
    other = await api.product("Beans", sku="BEAN-1")
    await api.batch(other["id"], warehouse["id"], 2, "1.00")

    payload = sale_payload(warehouse, product, quantity=4)
    payload["items"].append({"product_id": other["id"], "quantity": 3, "unit_price": "2.00"})
    await api.post("/sales/", payload, expected=400)

    assert (await api.get(f"/batches/{first['id']}"))["remaining"] == 5
    assert (await api.get("/sales/", params={"include_voided": True}))["total"] == 0


@pytest.mark.asyncio
async def test_payment_rules(api, shop):
    warehouse, product, _, _, _ = shop

    response = await api.client.post("/api/v1/sales/", headers=api.headers, json=sale_payload(
        warehouse, product, quantity=2, cash_received="5"
    ))
    assert response.status_code == 400
    assert response.json()["detail"] == "Cash received is less than the total"

    await api.post("/sales/", sale_payload(warehouse, product, quantity=2, discount="11"), expected=400)

    sale = await api.post("/sales/", sale_payload(
        warehouse, product, quantity=2, discount="1", tax="0.50",
        payment_method="card", cash_received=None
    ))
    assert float(sale["total"]) == 9.5
    assert sale["change_due"] is None


@pytest.mark.asyncio
async def test_today_summary(api, shop):
    warehouse, product, _, _, _ = shop
    await api.post("/sales/", sale_payload(warehouse, product, quantity=2))
    await api.post("/sales/", sale_payload(warehouse, product, quantity=2))

    today = await api.get("/sales/today")
    assert today["transactions"] == 2
    assert float(today["total_sales"]) == 20.0
    assert float(today["average_order_value"]) == 10.0
    assert len(today["hourly"]) == 12


@pytest.mark.asyncio
async def test_sale_numbers_increase(api, shop):
    warehouse, product, _, _, _ = shop
    first = await api.post("/sales/", sale_payload(warehouse, product, quantity=1))
    second = await api.post("/sales/", sale_payload(warehouse, product, quantity=1))
    assert first["sale_number"].endswith("-0001")
    assert second["sale_number"].endswith("-0002")
