import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def order(api):
    supplier = await api.supplier()
    warehouse = await api.warehouse()
    flour = await api.product("Flour", sku="FL-1")
    sugar = await api.product("Sugar", sku="SU-1")
    purchase = await api.post("/purchases/", {
        "supplier_id": supplier["id"],
        "warehouse_id": warehouse["id"],
        "items": [
            {"product_id": flour["id"], "quantity": 10, "unit_price": "5.00"},
            {"product_id": sugar["id"], "quantity": 20, "unit_price": "7.50"},
        ],
        "transport_cost": "20",
        "tax": "10",
        "other_expenses": "10",
    })
    return supplier, warehouse, flour, sugar, purchase


@pytest.mark.asyncio
async def test_purchase_totals(order):
    _, _, _, _, purchase = order
    assert purchase["status"] == "ordered"
    assert purchase["purchase_number"].startswith("PO")
    assert purchase["purchase_number"].endswith("-001")
    assert float(purchase["items_total"]) == 200.0
    assert float(purchase["total_amount"]) == 240.0
    assert [float(i["line_total"]) for i in purchase["items"]] == [50.0, 150.0]


@pytest.mark.asyncio
async def test_receive_spreads_extra_costs_over_batches(api, order):
    supplier, warehouse, flour, sugar, purchase = order

    received = await api.post(f"/purchases/{purchase['id']}/receive", {"margin": "20"})
    assert received["status"] == "received"
    assert received["received_at"] is not None

    batches = await api.get("/batches/", params={"supplier_id": supplier["id"]})
    assert batches["total"] == 2
    by_product = {b["product_id"]: b for b in batches["data"]}

    flour_batch = by_product[flour["id"]]
    assert flour_batch["purchase_id"] == purchase["id"]
    assert flour_batch["warehouse_id"] == warehouse["id"]
    assert float(flour_batch["additional_expenses"]) == 10.0
    assert float(flour_batch["landed_unit_cost"]) == 6.0
    assert float(flour_batch["selling_price"]) == 7.2

    sugar_batch = by_product[sugar["id"]]
    assert float(sugar_batch["additional_expenses"]) == 30.0
    assert float(sugar_batch["landed_unit_cost"]) == 9.0
    assert float(sugar_batch["selling_price"]) == 10.8
    assert sugar_batch["remaining"] == 20

    supplier = await api.get(f"/suppliers/{supplier['id']}")
    assert supplier["total_orders"] == 1
    assert float(supplier["total_spent"]) == 240.0


@pytest.mark.asyncio
async def test_receive_without_body_prices_at_cost(api, order):
    _, _, flour, _, purchase = order
    await api.post(f"/purchases/{purchase['id']}/receive")

    batches = await api.get("/batches/", params={"product_id": flour["id"]})
    assert float(batches["data"][0]["selling_price"]) == 6.0


@pytest.mark.asyncio
async def test_purchase_is_received_once(api, order):
    _, _, _, _, purchase = order
    await api.post(f"/purchases/{purchase['id']}/receive")

    response = await api.client.post(
        f"/api/v1/purchases/{purchase['id']}/receive", headers=api.headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Purchase already received"

    await api.post(f"/purchases/{purchase['id']}/cancel", expected=400)
    assert (await api.get("/batches/"))["total"] == 2


@pytest.mark.asyncio
async def test_cancelled_purchase_cannot_be_received(api, order):
    _, _, _, _, purchase = order
    cancelled = await api.post(f"/purchases/{purchase['id']}/cancel")
    assert cancelled["status"] == "cancelled"

    response = await api.client.post(
        f"/api/v1/purchases/{purchase['id']}/receive", headers=api.headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot receive a cancelled purchase"


@pytest.mark.asyncio
async def test_purchase_needs_known_supplier_and_products(api):
    warehouse = await api.warehouse()
    supplier = await api.supplier()
    product = await api.product(sku="X-1")

    await api.post("/purchases/", {
        "supplier_id": 999,
        "warehouse_id": warehouse["id"],
        "items": [{"product_id": product["id"], "quantity": 1, "unit_price": "1"}],
    }, expected=400)
    await api.post("/purchases/", {
        "supplier_id": supplier["id"],
        "warehouse_id": warehouse["id"],
        "items": [{"product_id": 999, "quantity": 1, "unit_price": "1"}],
    }, expected=400)
    await api.post("/purchases/", {
        "supplier_id": supplier["id"],
        "warehouse_id": warehouse["id"],
        "items": [],
    }, expected=422)


@pytest.mark.asyncio
async def test_purchase_list_filters(api, order):
    _, warehouse, _, _, _ = order
    assert (await api.get("/purchases/", params={"status": "ordered"}))["total"] == 1
    assert (await api.get("/purchases/", params={"status": "received"}))["total"] == 0
    assert (await api.get("/purchases/", params={"warehouse_id": warehouse["id"]}))["total"] == 1


@pytest.mark.asyncio
async def test_purchase_stats(api, order):
    supplier, warehouse, flour, _, _ = order
    old = await api.post("/purchases/", {
        "supplier_id": supplier["id"],
        "warehouse_id": warehouse["id"],
        "items": [{"product_id": flour["id"], "quantity": 10, "unit_price": "5.00"}],
        "purchase_date": "2020-01-15T09:00:00",
    })
    await api.post(f"/purchases/{old['id']}/receive")
    dropped = await api.post("/purchases/", {
        "supplier_id": supplier["id"],
        "warehouse_id": warehouse["id"],
        "items": [{"product_id": flour["id"], "quantity": 1, "unit_price": "999"}],
    })
    await api.post(f"/purchases/{dropped['id']}/cancel")

    stats = await api.get("/purchases/stats")
    assert float(stats["today_spent"]) == 240.0
    assert stats["today_orders"] == 1
    assert float(stats["month_spent"]) == 240.0
    assert stats["month_orders"] == 1
    assert float(stats["total_spent"]) == 290.0
    assert stats["total_orders"] == 2
    assert (stats["pending_orders"], stats["received_orders"], stats["cancelled_orders"]) == (1, 1, 1)
    assert float(stats["avg_order_value"]) == 145.0
