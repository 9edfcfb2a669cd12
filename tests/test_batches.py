from datetime import datetime, timedelta

import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def stock(api):
    """Two batches of one product in one warehouse: 5 @ 2.00 then 10 @ 3.00"""
    warehouse = await api.warehouse()
    product = await api.product(sku="RICE-1")
    first = await api.batch(product["id"], warehouse["id"], 5, "2.00", selling_price="4.00")
    second = await api.batch(product["id"], warehouse["id"], 10, "3.00", selling_price="5.00")
    return warehouse, product, first, second


@pytest.mark.asyncio
async def test_landed_cost_and_margin(api):
    warehouse = await api.warehouse()
    product = await api.product(sku="OIL-1")

    batch = await api.batch(
        product["id"], warehouse["id"], 10, "10.00",
        additional_expenses="20.00", margin="50"
    )
    assert batch["batch_number"].startswith("BN")
    assert float(batch["landed_unit_cost"]) == 12.0
    assert float(batch["selling_price"]) == 18.0
    assert float(batch["margin_percent"]) == 33.33
    assert float(batch["markup_percent"]) == 50.0
    assert float(batch["stock_value"]) == 120.0
    assert batch["status"] == "in_stock"


@pytest.mark.asyncio
async def test_batch_numbers_are_sequential(api):
    warehouse = await api.warehouse()
    product = await api.product(sku="OIL-2")
    batches = await api.post("/batches/", {"items": [
        {"product_id": product["id"], "warehouse_id": warehouse["id"], "quantity": 1, "unit_cost": "1"},
        {"product_id": product["id"], "warehouse_id": warehouse["id"], "quantity": 2, "unit_cost": "1"},
    ]})
    numbers = [b["batch_number"] for b in batches]
    assert numbers[0].endswith("-001")
    assert numbers[1].endswith("-002")


@pytest.mark.asyncio
async def test_batch_needs_active_product_and_warehouse(api):
    warehouse = await api.warehouse()
    product = await api.product(sku="OIL-3")
    await api.post("/batches/", {"items": [
        {"product_id": 999, "warehouse_id": warehouse["id"], "quantity": 1, "unit_cost": "1"},
    ]}, expected=400)
    await api.post("/batches/", {"items": [
        {"product_id": product["id"], "warehouse_id": 999, "quantity": 1, "unit_cost": "1"},
    ]}, expected=400)


@pytest.mark.asyncio
async def test_available_batches_in_fifo_order(api, stock):
    warehouse, product, first, second = stock
    batches = await api.get("/batches/available", params={
        "product_id": product["id"], "warehouse_id": warehouse["id"]
    })
    assert [b["id"] for b in batches] == [first["id"], second["id"]]


@pytest.mark.asyncio
async def test_deduct_takes_oldest_batch_first(api, stock):
    warehouse, product, first, second = stock
    result = await api.post("/batches/deduct", {
        "product_id": product["id"],
        "warehouse_id": warehouse["id"],
        "quantity": 8,
        "reason": "Water damage",
    })
    assert float(result["total_cost"]) == 19.0
    assert [(a["batch_id"], a["quantity"]) for a in result["allocations"]] == [
        (first["id"], 5), (second["id"], 3)
    ]

    first = await api.get(f"/batches/{first['id']}")
    assert first["remaining"] == 0
    assert first["is_depleted"] is True
    assert first["status"] == "depleted"
    second = await api.get(f"/batches/{second['id']}")
    assert second["remaining"] == 7

    history = await api.get("/history/", params={"action_type": "STOCK_DEDUCTED"})
    assert history["total"] == 1


@pytest.mark.asyncio
async def test_deduct_shortage_changes_nothing(api, stock):
    warehouse, product, first, second = stock
    await api.post("/batches/deduct", {
        "product_id": product["id"],
        "warehouse_id": warehouse["id"],
        "quantity": 16,
    }, expected=400)

    assert (await api.get(f"/batches/{first['id']}"))["remaining"] == 5
    assert (await api.get(f"/batches/{second['id']}"))["remaining"] == 10


@pytest.mark.asyncio
async def test_depleted_batches_are_hidden_by_default(api, stock):
    warehouse, product, first, second = stock
    await api.post("/batches/deduct", {
        "product_id": product["id"], "warehouse_id": warehouse["id"], "quantity": 5
    })
    listing = await api.get("/batches/")
    assert [b["id"] for b in listing["data"]] == [second["id"]]

    listing = await api.get("/batches/", params={"include_depleted": True})
    assert listing["total"] == 2


@pytest.mark.asyncio
async def test_stock_take_adjustment(api, stock):
    _, _, first, _ = stock
    await api.post(f"/batches/{first['id']}/adjust", {"new_remaining": 5, "reason": "Count"}, expected=400)
    await api.post(f"/batches/{first['id']}/adjust", {"new_remaining": 6, "reason": "Count"}, expected=400)

    batch = await api.post(f"/batches/{first['id']}/adjust", {"new_remaining": 3, "reason": "Shelf count"})
    assert batch["remaining"] == 3
    assert "Stock-take: 5 -> 3" in batch["notes"]

    batch = await api.post(f"/batches/{first['id']}/adjust", {"new_remaining": 0, "reason": "Lost"})
    assert batch["status"] == "depleted"


@pytest.mark.asyncio
async def test_pricing_calculator(api):
    result = await api.post("/batches/pricing", {"cost": "8", "margin": "25"})
    assert float(result["selling_price"]) == 10.0
    assert float(result["margin_percent"]) == 20.0
    assert float(result["profit_per_unit"]) == 2.0

    result = await api.post("/batches/pricing", {"cost": "8", "selling_price": "12"})
    assert float(result["markup_percent"]) == 50.0

    await api.post("/batches/pricing", {"cost": "8"}, expected=422)


@pytest.mark.asyncio
async def test_expiry_sweep(api):
    warehouse = await api.warehouse()
    product = await api.product(sku="MILK-1")
    expired = await api.batch(
        product["id"], warehouse["id"], 4, "1.00",
        expiry_date=(datetime.utcnow() - timedelta(days=2)).isoformat()
    )
    fresh = await api.batch(
        product["id"], warehouse["id"], 4, "1.00",
        expiry_date=(datetime.utcnow() + timedelta(days=30)).isoformat()
    )

    result = await api.post("/system/expire-batches")
    assert result["count"] == 1
    assert (await api.get(f"/batches/{expired['id']}"))["status"] == "expired"
    assert (await api.get(f"/batches/{fresh['id']}"))["status"] == "in_stock"
