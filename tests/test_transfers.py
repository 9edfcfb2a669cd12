import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def branches(api):
    """Stocked main warehouse, empty branch, one van"""
    main = await api.warehouse("Main Store")
    branch = await api.warehouse("Branch Store", warehouse_type="secondary")
    product = await api.product("Rice", sku="RICE-1")
    first = await api.batch(product["id"], main["id"], 5, "2.00", selling_price="4.00")
    second = await api.batch(product["id"], main["id"], 10, "3.00", selling_price="5.00")
    transport = await api.transport("VAN-01")
    return main, branch, product, first, second, transport


async def request_transfer(api, main, branch, items):
    return await api.post("/stock-transfers/", {
        "from_warehouse_id": main["id"],
        "to_warehouse_id": branch["id"],
        "items": items,
        "reason": "Restock branch",
    })


@pytest.mark.asyncio
async def test_transfer_lifecycle(api, branches):
    main, branch, product, first, second, transport = branches

    transfer = await request_transfer(api, main, branch, [
        {"product_id": product["id"], "quantity": 8, "unit_cost": "2.50"},
    ])
    assert transfer["status"] == "pending"
    assert transfer["transfer_number"].startswith("ST")
    assert transfer["total_quantity"] == 8
    assert float(transfer["total_value"]) == 20.0
    assert transfer["requested_by_name"] == "System Administrator"

    transfer = await api.post(f"/stock-transfers/{transfer['id']}/approve", {"transport_id": transport["id"]})
    assert transfer["status"] == "in-transit"
    assert transfer["shipment_id"] is not None

    shipment = await api.get(f"/shipments/{transfer['shipment_id']}")
    assert shipment["status"] == "in-transit"
    assert shipment["stock_transfer_id"] == transfer["id"]
    assert shipment["driver_name"] == "Sam Driver"
    assert shipment["items"][0]["quantity"] == 8
    assert (await api.get(f"/transports/{transport['id']}"))["status"] == "in-use"

    transfer = await api.post(f"/stock-transfers/{transfer['id']}/complete")
    assert transfer["status"] == "completed"
    assert transfer["completed_date"] is not None

    assert (await api.get(f"/batches/{first['id']}"))["remaining"] == 0
    assert (await api.get(f"/batches/{second['id']}"))["remaining"] == 7

    moved = await api.get("/batches/", params={"warehouse_id": branch["id"]})
    assert moved["total"] == 1
    batch = moved["data"][0]
    assert batch["batch_number"] == f"TR-{transfer['transfer_number']}-RICE-1"
    assert batch["quantity"] == 8
    assert batch["transfer_id"] == transfer["id"]
    assert float(batch["unit_cost"]) == 2.5
    assert float(batch["selling_price"]) == 4.38
    assert batch["expiry_date"] is not None

    shipment = await api.get(f"/shipments/{transfer['shipment_id']}")
    assert shipment["status"] == "delivered"
    assert (await api.get(f"/transports/{transport['id']}"))["status"] == "available"

    response = await api.client.post(
        f"/api/v1/stock-transfers/{transfer['id']}/complete", headers=api.headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Transfer already completed"


@pytest.mark.asyncio
async def test_shortage_leaves_both_warehouses_untouched(api, branches):
    main, branch, product, first, second, _ = branches
    beans = await api.product("Beans", sku="BEAN-1")
    await api.batch(beans["id"], main["id"], 2, "1.00")

    transfer = await request_transfer(api, main, branch, [
        {"product_id": product["id"], "quantity": 6, "unit_cost": "2.00"},
        {"product_id": beans["id"], "quantity": 3, "unit_cost": "1.00"},
    ])
    await api.post(f"/stock-transfers/{transfer['id']}/complete", expected=400)

    assert (await api.get(f"/batches/{first['id']}"))["remaining"] == 5
    assert (await api.get(f"/batches/{second['id']}"))["remaining"] == 10
    assert (await api.get("/batches/", params={"warehouse_id": branch["id"]}))["total"] == 0
    assert (await api.get(f"/stock-transfers/{transfer['id']}"))["status"] == "pending"


@pytest.mark.asyncio
async def test_product_listed_twice_is_rejected(api, branches):
    main, branch, product, _, _, _ = branches
    await api.post("/stock-transfers/", {
        "from_warehouse_id": main["id"],
        "to_warehouse_id": branch["id"],
        "items": [
            {"product_id": product["id"], "quantity": 1, "unit_cost": "2.00"},
            {"product_id": product["id"], "quantity": 2, "unit_cost": "2.00"},
        ],
        "reason": "Restock branch",
    }, expected=400)


@pytest.mark.asyncio
async def test_cancel_releases_the_shipment(api, branches):
    main, branch, product, _, _, transport = branches
    transfer = await request_transfer(api, main, branch, [
        {"product_id": product["id"], "quantity": 2, "unit_cost": "2.00"},
    ])
    transfer = await api.post(f"/stock-transfers/{transfer['id']}/approve", {"transport_id": transport["id"]})
    await api.post(f"/stock-transfers/{transfer['id']}/approve", expected=400)

    transfer = await api.post(f"/stock-transfers/{transfer['id']}/cancel")
    assert transfer["status"] == "cancelled"

    shipment = await api.get(f"/shipments/{transfer['shipment_id']}")
    assert shipment["status"] == "cancelled"
    assert (await api.get(f"/transports/{transport['id']}"))["status"] == "available"

    await api.post(f"/stock-transfers/{transfer['id']}/complete", expected=400)


@pytest.mark.asyncio
async def test_transfer_shipment_is_not_received_directly(api, branches):
    main, branch, product, _, _, _ = branches
    transfer = await request_transfer(api, main, branch, [
        {"product_id": product["id"], "quantity": 2, "unit_cost": "2.00"},
    ])
    transfer = await api.post(f"/stock-transfers/{transfer['id']}/approve")
    shipment = await api.get(f"/shipments/{transfer['shipment_id']}")
    assert shipment["transport_id"] is None

    await api.post(f"/shipments/{shipment['id']}/receive", {
        "items": [{"item_id": shipment["items"][0]["id"], "received_quantity": 2}],
    }, expected=400)


@pytest.mark.asyncio
async def test_source_stock_and_filters(api, branches):
    main, branch, product, _, _, _ = branches
    stock = await api.get(f"/stock-transfers/warehouse-stock/{main['id']}")
    assert stock[0]["product_id"] == product["id"]
    assert stock[0]["total_quantity"] == 15
    assert [b["remaining"] for b in stock[0]["batches"]] == [5, 10]

    await request_transfer(api, main, branch, [
        {"product_id": product["id"], "quantity": 1, "unit_cost": "2.00"},
    ])
    assert len(await api.get("/stock-transfers/", params={"status": "pending"})) == 1
    assert len(await api.get("/stock-transfers/", params={"status": "completed"})) == 0
    assert len(await api.get("/stock-transfers/warehouses")) == 2


@pytest.mark.asyncio
async def test_transfer_shipment_closes_only_with_the_transfer(api, branches):
    main, branch, product, _, _, transport = branches
    transfer = await request_transfer(api, main, branch, [
        {"product_id": product["id"], "quantity": 3, "unit_cost": "2.00"},
    ])
    transfer = await api.post(f"/stock-transfers/{transfer['id']}/approve", {"transport_id": transport["id"]})
    status_path = f"/api/v1/shipments/{transfer['shipment_id']}/status"

    response = await api.client.patch(status_path, headers=api.headers, json={"status": "cancelled"})
    assert response.status_code == 400
    assert response.json()["detail"] == "This shipment belongs to a stock transfer; cancel the transfer instead"

    response = await api.client.patch(status_path, headers=api.headers, json={"status": "delivered"})
    assert response.status_code == 400
    assert response.json()["detail"] == "This shipment belongs to a stock transfer; complete the transfer instead"

    await api.request("PATCH", f"/shipments/{transfer['shipment_id']}/status", json={"status": "delayed"})
    assert (await api.get(f"/shipments/{transfer['shipment_id']}"))["status"] == "delayed"

    transfer = await api.post(f"/stock-transfers/{transfer['id']}/complete")
    assert transfer["status"] == "completed"
    assert (await api.get(f"/shipments/{transfer['shipment_id']}"))["status"] == "delivered"
    assert (await api.get("/batches/", params={"warehouse_id": branch["id"]}))["total"] == 1
    assert (await api.get(f"/transports/{transport['id']}"))["status"] == "available"
