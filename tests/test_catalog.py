import pytest


@pytest.mark.asyncio
async def test_warehouse_names_are_unique(api):
    warehouse = await api.warehouse("Central")
    assert warehouse["is_active"] is True
    assert warehouse["warehouse_type"] == "main"

    await api.post("/warehouses/", {"name": "central ", "location": "Elsewhere", "capacity": 10}, expected=400)


@pytest.mark.asyncio
async def test_warehouse_with_stock_cannot_be_deleted(api):
    warehouse = await api.warehouse()
    product = await api.product(sku="TEA-1")
    await api.batch(product["id"], warehouse["id"], 5, "2.00")

    await api.request("DELETE", f"/warehouses/{warehouse['id']}", expected=400)

    stock = await api.get(f"/warehouses/{warehouse['id']}/stock")
    assert len(stock) == 1
    assert stock[0]["total_quantity"] == 5
    assert float(stock[0]["stock_value"]) == 10.0


@pytest.mark.asyncio
async def test_seed_base_units_is_idempotent(api):
    first = await api.post("/units/seed-base")
    assert "kilogram" in first["created"]
    assert first["existing"] == []

    second = await api.post("/units/seed-base")
    assert second["created"] == []
    assert set(second["existing"]) == set(first["created"])

    units = {u["name"]: u for u in await api.get("/units/")}
    assert units["gram"]["base_unit_name"] == "kilogram"
    assert float(units["dozen"]["conversion_factor"]) == 12.0
    assert units["dozen"]["is_base"] is False


@pytest.mark.asyncio
async def test_derived_unit_needs_base_unit(api):
    box = await api.post("/units/", {"name": "crate", "short_name": "cr"})
    assert box["is_base"] is True
    dozen = await api.post("/units/", {
        "name": "dozen crates",
        "short_name": "dzc",
        "base_unit_id": box["id"],
        "conversion_factor": "12",
    })
    await api.post("/units/", {
        "name": "gross",
        "short_name": "gr",
        "base_unit_id": dozen["id"],
        "conversion_factor": "12",
    }, expected=400)


@pytest.mark.asyncio
async def test_product_codes_are_unique(api):
    await api.product("Black Tea", sku="TEA-1", barcode="4001")
    await api.post("/products/", {"name": "Other Tea", "sku": "TEA-1"}, expected=400)
    await api.post("/products/", {"name": "Other Tea", "barcode": "4001"}, expected=400)


@pytest.mark.asyncio
async def test_product_references_and_stock(api):
    category = await api.post("/categories/", {"name": "Beverages"})
    brand = await api.post("/brands/", {"name": "Leafy"})
    warehouse = await api.warehouse()

    product = await api.product("Jasmine Tea", sku="TEA-2", category_id=category["id"], brand_id=brand["id"])
    assert product["category_name"] == "Beverages"
    assert product["brand_name"] == "Leafy"
    assert product["stock"] == 0

    await api.batch(product["id"], warehouse["id"], 60, "1.50", selling_price="3.00")

    listing = await api.get("/products/", params={"search": "jasmine"})
    assert listing["total"] == 1
    assert listing["data"][0]["stock"] == 60

    pos = await api.get("/products/pos")
    assert pos[0]["is_popular"] is True
    assert float(pos[0]["price"]) == 3.0

    await api.request("DELETE", f"/categories/{category['id']}", expected=400)
    await api.post("/products/", {"name": "Bad Ref", "category_id": 999}, expected=400)


@pytest.mark.asyncio
async def test_product_soft_delete(api):
    product = await api.product(sku="TEA-3")
    await api.request("DELETE", f"/products/{product['id']}")
    await api.get(f"/products/{product['id']}", expected=404)
    assert (await api.get("/products/"))["total"] == 0


@pytest.mark.asyncio
async def test_supplier_email_is_unique_and_stats(api):
    supplier = await api.supplier()
    assert supplier["total_orders"] == 0

    response = await api.client.post("/api/v1/suppliers/", headers=api.headers, json={
        "name": "Copy Farms",
        "contact_person": "John Roe",
        "email": "SALES@freshfarms.test",
        "phone": "555-0199",
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Supplier with this email already exists"

    stats = await api.get("/suppliers/stats")
    assert stats["total_suppliers"] == 1
    assert stats["active_suppliers"] == 1


@pytest.mark.asyncio
async def test_customer_loyalty_points(api):
    customer = await api.post("/customers/", {"name": "Ana Buyer", "phone": "555-0200"})
    assert customer["tier"] == "bronze"
    assert customer["loyalty_points"] == 0

    customer = await api.post(f"/customers/{customer['id']}/points", {"points": 25})
    assert customer["loyalty_points"] == 25
    assert customer["last_visit"] is not None

    await api.post(f"/customers/{customer['id']}/points", {"points": 0}, expected=422)
